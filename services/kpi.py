"""
KPI records and the dashboard summary built from them.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from models.domain import ActivityRecord, KpiRecord
from repositories.planning import BoqRepository, KpiRepository
from services.boq_values import calculate_project_progress
from services.code_matching import build_full_code, lookup_codes, matches_any_project
from services.kpi_aggregation import summarize_kpis
from utils.parsing import number_text

logger = logging.getLogger(__name__)

INPUT_TYPES = ("Planned", "Actual")


def normalize_input_type(value: Optional[str]) -> Optional[str]:
    """'actual ' -> 'Actual'; None for anything else."""
    cleaned = (value or "").strip().lower()
    for input_type in INPUT_TYPES:
        if cleaned == input_type.lower():
            return input_type
    return None


class KpiService:
    """KPI listing, recording and dashboard aggregation."""

    def __init__(self):
        self.repository = KpiRepository()
        self.boq_repository = BoqRepository()

    async def list_kpis(self, projects: Sequence[str] = (),
                        input_type: Optional[str] = None) -> List[KpiRecord]:
        if projects:
            rows = await self.repository.fetch_by_project_codes(lookup_codes(projects))
        else:
            rows = await self.repository.fetch_all()

        kpis = [KpiRecord.from_row(row) for row in rows]
        if projects:
            kpis = [
                kpi for kpi in kpis
                if matches_any_project(projects, kpi.project_code, kpi.project_sub_code, kpi.project_full_code)
            ]
        if input_type:
            wanted = normalize_input_type(input_type)
            kpis = [kpi for kpi in kpis if kpi.input_type == wanted]
        return kpis

    async def create_kpi(self, data: Dict[str, Any]) -> Dict[str, Any]:
        input_type = normalize_input_type(data.get("input_type"))
        if input_type is None:
            return {'success': False, 'error': "Input Type must be 'Planned' or 'Actual'"}

        try:
            prepared = dict(data)
            prepared["input_type"] = input_type
            prepared["quantity"] = number_text(prepared.get("quantity"))
            prepared["value"] = number_text(prepared.get("value"))
            if not prepared.get("project_full_code"):
                prepared["project_full_code"] = build_full_code(
                    prepared.get("project_code"), prepared.get("project_sub_code")
                )

            row = await self.repository.insert(prepared)
            logger.info(f"Recorded {input_type} KPI for {row['project_full_code']}")
            return {'success': True, 'kpi': KpiRecord.from_row(row)}
        except Exception as e:
            logger.error(f"KPI creation failed: {e}", exc_info=True)
            return {'success': False, 'error': str(e)}

    async def delete_kpi(self, kpi_id: str) -> Dict[str, Any]:
        try:
            if not await self.repository.delete(kpi_id):
                return {'success': False, 'error': f"KPI {kpi_id} not found"}
            return {'success': True, 'message': f"KPI {kpi_id} deleted"}
        except Exception as e:
            logger.error(f"KPI deletion failed: {e}", exc_info=True)
            return {'success': False, 'error': str(e)}

    async def dashboard_summary(self, projects: Sequence[str]) -> Dict[str, Any]:
        """Planned vs actual quantities and values for the selected projects."""
        codes = lookup_codes(projects)
        activity_rows = await self.boq_repository.fetch_by_project_codes(codes)
        activities = [
            activity for activity in (ActivityRecord.from_row(row) for row in activity_rows)
            if matches_any_project(projects, activity.project_code,
                                   activity.project_sub_code, activity.project_full_code)
        ]
        kpis = await self.list_kpis(projects)

        summary = summarize_kpis(kpis, activities)
        progress = calculate_project_progress(activities)
        logger.info(
            f"Dashboard summary for {len(projects)} project(s): "
            f"{summary.matched} KPIs matched, {summary.unmatched} unmatched"
        )
        return {
            'projects': list(projects),
            'activities': len(activities),
            'kpis': len(kpis),
            **summary.to_dict(),
            'total_project_value': progress.total_project_value,
            'total_earned_value': progress.total_earned_value,
            'earned_value_progress': progress.progress,
        }
