from dataclasses import asdict
from typing import List, Optional
from fastapi import APIRouter, HTTPException, Body, Query
from dto.request_dto.planning import ProjectRequest, ProjectUpdateRequest
from dto.response_dto.planning import ProjectResponse
from services.projects import ProjectService
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/projects", tags=["Projects"])


def _status_for(error: str) -> int:
    return 404 if 'not found' in (error or '').lower() else 500


@router.get("", response_model=List[ProjectResponse], summary="List Projects")
async def list_projects(search: Optional[str] = Query(default=None, description="Code, sub-code, full code or name")):
    """List projects with their derived full codes."""
    try:
        projects = await ProjectService().list_projects(search)
        return [ProjectResponse(**asdict(project)) for project in projects]
    except Exception as e:
        logger.error(f"List projects error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to list projects: {str(e)}")


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: str):
    try:
        project = await ProjectService().get_project(project_id)
        if not project:
            raise HTTPException(status_code=404, detail=f"Project {project_id} not found")
        return ProjectResponse(**asdict(project))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get project error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to get project: {str(e)}")


@router.post("", response_model=ProjectResponse, status_code=201, summary="Create Project")
async def create_project(request: ProjectRequest = Body(...)):
    result = await ProjectService().create_project(request.model_dump(exclude_none=True))
    if not result['success']:
        raise HTTPException(status_code=500, detail=result.get('error', 'Failed to create project'))
    return ProjectResponse(**asdict(result['project']))


@router.put("/{project_id}", response_model=ProjectResponse, summary="Update Project")
async def update_project(project_id: str, request: ProjectUpdateRequest = Body(...)):
    result = await ProjectService().update_project(project_id, request.model_dump(exclude_unset=True))
    if not result['success']:
        raise HTTPException(status_code=_status_for(result.get('error')), detail=result.get('error'))
    return ProjectResponse(**asdict(result['project']))


@router.delete("/{project_id}", summary="Delete Project")
async def delete_project(project_id: str):
    result = await ProjectService().delete_project(project_id)
    if not result['success']:
        raise HTTPException(status_code=_status_for(result.get('error')), detail=result.get('error'))
    return result
