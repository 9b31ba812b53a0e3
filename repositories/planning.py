"""
Async repositories for the planning tables (projects, BOQ activities, KPIs).
"""
import logging
from typing import Any, Dict, Iterable, List
from sqlalchemy import select, delete, func
from models.planning_models import Project, BoqActivity, Kpi
from repositories.base import BaseRepository, row_to_dict

logger = logging.getLogger(__name__)


def _upper_codes(codes: Iterable[str]) -> List[str]:
    return sorted({code.strip().upper() for code in codes if code and code.strip()})


class ProjectRepository(BaseRepository):
    model = Project


class BoqRepository(BaseRepository):
    model = BoqActivity

    async def fetch_by_project_codes(self, project_codes: Iterable[str]) -> List[Dict[str, Any]]:
        """Candidate activities whose project code or full code is in the given set."""
        codes = _upper_codes(project_codes)
        if not codes:
            return []

        async with self.AsyncSessionLocal() as session:
            result = await session.execute(
                select(BoqActivity).where(
                    func.upper(func.trim(BoqActivity.project_code)).in_(codes)
                    | func.upper(func.trim(BoqActivity.project_full_code)).in_(codes)
                )
            )
            return [row_to_dict(item) for item in result.scalars().all()]

    async def delete_with_kpis(self, activity_ids: Iterable[str], kpi_ids: Iterable[str]) -> Dict[str, int]:
        """Delete activities and their KPI rows in a single transaction."""
        activity_ids = list(activity_ids)
        kpi_ids = list(kpi_ids)

        async with self.AsyncSessionLocal() as session:
            async with session.begin():
                deleted_kpis = 0
                if kpi_ids:
                    kpi_result = await session.execute(delete(Kpi).where(Kpi.id.in_(kpi_ids)))
                    deleted_kpis = kpi_result.rowcount
                activity_result = await session.execute(
                    delete(BoqActivity).where(BoqActivity.id.in_(activity_ids))
                )

        logger.info(f"Deleted {activity_result.rowcount} activities and {deleted_kpis} KPIs")
        return {"activities": activity_result.rowcount, "kpis": deleted_kpis}


class KpiRepository(BaseRepository):
    model = Kpi

    async def fetch_by_project_codes(self, project_codes: Iterable[str]) -> List[Dict[str, Any]]:
        """Candidate KPI rows whose project code or full code is in the given set."""
        codes = _upper_codes(project_codes)
        if not codes:
            return []

        async with self.AsyncSessionLocal() as session:
            result = await session.execute(
                select(Kpi).where(
                    func.upper(func.trim(Kpi.project_code)).in_(codes)
                    | func.upper(func.trim(Kpi.project_full_code)).in_(codes)
                ).order_by(Kpi.activity_date)
            )
            return [row_to_dict(item) for item in result.scalars().all()]
