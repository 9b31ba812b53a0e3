"""
Project lookups and maintenance.
"""
import logging
from typing import Any, Dict, List, Optional

from models.domain import ProjectRecord
from repositories.planning import ProjectRepository
from services.code_matching import build_full_code
from utils.parsing import number_text

logger = logging.getLogger(__name__)


class ProjectService:
    """Project CRUD over the projects list table."""

    def __init__(self):
        self.repository = ProjectRepository()

    async def list_projects(self, search: Optional[str] = None) -> List[ProjectRecord]:
        rows = await self.repository.fetch_all()
        projects = [ProjectRecord.from_row(row) for row in rows]

        if search and search.strip():
            term = search.strip().lower()
            projects = [
                project for project in projects
                if any(term in value.lower() for value in (
                    project.project_code, project.project_sub_code,
                    project.project_full_code, project.project_name,
                ))
            ]

        return sorted(projects, key=lambda project: project.project_full_code.upper())

    async def get_project(self, project_id: str) -> Optional[ProjectRecord]:
        row = await self.repository.get_by_id(project_id)
        return ProjectRecord.from_row(row) if row else None

    def _prepare(self, data: Dict[str, Any]) -> Dict[str, Any]:
        prepared = dict(data)
        if "contract_amount" in prepared:
            prepared["contract_amount"] = number_text(prepared["contract_amount"])
        if not prepared.get("project_full_code") and prepared.get("project_code"):
            prepared["project_full_code"] = build_full_code(
                prepared.get("project_code"), prepared.get("project_sub_code")
            )
        return prepared

    async def create_project(self, data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            row = await self.repository.insert(self._prepare(data))
            logger.info(f"Created project {row['project_full_code']}")
            return {'success': True, 'project': ProjectRecord.from_row(row)}
        except Exception as e:
            logger.error(f"Project creation failed: {e}", exc_info=True)
            return {'success': False, 'error': str(e)}

    async def update_project(self, project_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            existing = await self.repository.get_by_id(project_id)
            if existing is None:
                return {'success': False, 'error': f"Project {project_id} not found"}

            merged = {**existing, **data}
            if "project_full_code" not in data:
                merged["project_full_code"] = None
            row = await self.repository.update(project_id, self._prepare(merged))
            return {'success': True, 'project': ProjectRecord.from_row(row)}
        except Exception as e:
            logger.error(f"Project update failed: {e}", exc_info=True)
            return {'success': False, 'error': str(e)}

    async def delete_project(self, project_id: str) -> Dict[str, Any]:
        try:
            if not await self.repository.delete(project_id):
                return {'success': False, 'error': f"Project {project_id} not found"}
            logger.info(f"Deleted project {project_id}")
            return {'success': True, 'message': f"Project {project_id} deleted"}
        except Exception as e:
            logger.error(f"Project deletion failed: {e}", exc_info=True)
            return {'success': False, 'error': str(e)}
