"""
BOQ activity management.

Deleting an activity is guarded: if any Actual KPI is linked to it, the delete
is refused and nothing changes. Otherwise its Planned KPIs are removed with it
in one transaction.
"""
import math
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from core.settings import settings
from models.domain import ActivityRecord, KpiRecord
from repositories.planning import BoqRepository, KpiRepository
from services.boq_filter import BoqFilterCriteria, filter_activities, build_facets, paginate
from services.boq_values import calculate_boq_values
from services.code_matching import build_full_code
from services.kpi_aggregation import kpi_matches_activity
from utils.parsing import number_text

logger = logging.getLogger(__name__)

NUMERIC_FIELDS = (
    "total_units", "planned_units", "actual_units", "rate",
    "total_value", "planned_value", "earned_value", "calendar_duration",
)
DATE_FIELDS = ("planned_activity_start_date", "deadline")


def blocked_message(description: str, actual_count: int) -> str:
    return (
        f"Cannot delete activity '{description}': it has {actual_count} Actual KPI "
        f"record(s). Delete the Actual KPIs first."
    )


class BoqService:
    """Filtering, CRUD and guarded deletes for BOQ activities."""

    def __init__(self):
        self.repository = BoqRepository()
        self.kpi_repository = KpiRepository()

    async def load_activities(self) -> List[ActivityRecord]:
        rows = await self.repository.fetch_all()
        return [ActivityRecord.from_row(row) for row in rows]

    async def list_activities(self, criteria: BoqFilterCriteria, page: int = 1,
                              page_size: Optional[int] = None) -> Dict[str, Any]:
        page_size = page_size or settings.BOQ_PAGE_SIZE
        activities = filter_activities(await self.load_activities(), criteria)
        items, total = paginate(activities, page, page_size)
        return {
            'items': items,
            'total': total,
            'page': page,
            'page_size': page_size,
            'total_pages': math.ceil(total / page_size) if total else 0,
        }

    async def get_facets(self, selected_projects: Sequence[str] = ()) -> Dict[str, List[str]]:
        return build_facets(await self.load_activities(), selected_projects)

    async def get_activity(self, activity_id: str) -> Optional[ActivityRecord]:
        row = await self.repository.get_by_id(activity_id)
        return ActivityRecord.from_row(row) if row else None

    def _prepare(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Convert typed input to the text columns of the activities table."""
        prepared = dict(data)
        for name in NUMERIC_FIELDS:
            if name in prepared:
                prepared[name] = number_text(prepared[name])
        for name in DATE_FIELDS:
            if isinstance(prepared.get(name), date):
                prepared[name] = prepared[name].isoformat()

        if prepared.get("rate") is None and prepared.get("total_value") and prepared.get("total_units"):
            values = calculate_boq_values(
                float(prepared["total_units"]), float(prepared.get("planned_units") or 0),
                float(prepared.get("actual_units") or 0), float(prepared["total_value"]),
            )
            prepared["rate"] = number_text(values.rate)
            prepared["earned_value"] = prepared.get("earned_value") or number_text(values.earned_value)

        if not prepared.get("project_full_code"):
            prepared["project_full_code"] = build_full_code(
                prepared.get("project_code"), prepared.get("project_sub_code")
            )
        return prepared

    async def create_activity(self, data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            row = await self.repository.insert(self._prepare(data))
            logger.info(f"Created activity {row['id']} for {row['project_full_code']}")
            return {'success': True, 'activity': ActivityRecord.from_row(row)}
        except Exception as e:
            logger.error(f"Activity creation failed: {e}", exc_info=True)
            return {'success': False, 'error': str(e)}

    async def update_activity(self, activity_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            existing = await self.repository.get_by_id(activity_id)
            if existing is None:
                return {'success': False, 'error': f"Activity {activity_id} not found"}

            changes = dict(data)
            code_changed = "project_code" in changes or "project_sub_code" in changes
            if code_changed and not changes.get("project_full_code"):
                changes["project_full_code"] = build_full_code(
                    changes.get("project_code", existing["project_code"]),
                    changes.get("project_sub_code", existing["project_sub_code"]),
                )

            merged = {**existing, **changes}
            totals_changed = "total_value" in changes or "total_units" in changes
            if totals_changed and "rate" not in changes:
                merged["rate"] = None
                if "earned_value" not in changes:
                    merged["earned_value"] = None

            prepared = self._prepare(merged)
            row = await self.repository.update(activity_id, prepared)
            return {'success': True, 'activity': ActivityRecord.from_row(row)}
        except Exception as e:
            logger.error(f"Activity update failed: {e}", exc_info=True)
            return {'success': False, 'error': str(e)}

    async def linked_kpis(self, activity: ActivityRecord) -> List[KpiRecord]:
        """KPI rows recorded against exactly this activity (same description, project and zone)."""
        rows = await self.kpi_repository.fetch_by_project_codes(
            {activity.project_code, activity.project_full_code}
        )
        kpis = [KpiRecord.from_row(row) for row in rows]
        description = activity.activity_description.strip().lower()
        return [
            kpi for kpi in kpis
            if kpi.activity_description.strip().lower() == description and kpi_matches_activity(kpi, activity)
        ]

    async def check_delete(self, activity: ActivityRecord) -> Dict[str, Any]:
        kpis = await self.linked_kpis(activity)
        actual = [kpi for kpi in kpis if kpi.is_actual]
        planned = [kpi for kpi in kpis if kpi.is_planned]
        return {
            'activity': activity,
            'blocked': bool(actual),
            'actual_kpis': len(actual),
            'planned_kpi_ids': [kpi.id for kpi in planned],
        }

    async def delete_activity(self, activity_id: str) -> Dict[str, Any]:
        """Delete one activity and its Planned KPIs, unless Actual KPIs exist."""
        try:
            activity = await self.get_activity(activity_id)
            if activity is None:
                return {'success': False, 'error': f"Activity {activity_id} not found"}

            check = await self.check_delete(activity)
            if check['blocked']:
                logger.warning(
                    f"Delete of activity {activity_id} blocked by {check['actual_kpis']} Actual KPIs"
                )
                return {
                    'success': False,
                    'blocked': True,
                    'error': blocked_message(activity.activity_description, check['actual_kpis']),
                    'blocked_ids': [activity_id],
                }

            counts = await self.repository.delete_with_kpis([activity_id], check['planned_kpi_ids'])
            return {
                'success': True,
                'deleted_activities': counts['activities'],
                'deleted_kpis': counts['kpis'],
                'message': f"Activity deleted with {counts['kpis']} Planned KPI record(s)",
            }
        except Exception as e:
            logger.error(f"Activity deletion failed: {e}", exc_info=True)
            return {'success': False, 'error': str(e)}

    async def bulk_delete(self, activity_ids: Sequence[str]) -> Dict[str, Any]:
        """All-or-nothing delete: one blocked activity rejects the whole batch."""
        try:
            checks = []
            missing = []
            for activity_id in activity_ids:
                activity = await self.get_activity(activity_id)
                if activity is None:
                    missing.append(activity_id)
                    continue
                checks.append(await self.check_delete(activity))

            blocked = [check for check in checks if check['blocked']]
            if blocked:
                names = ", ".join(f"'{check['activity'].activity_description}'" for check in blocked)
                return {
                    'success': False,
                    'blocked': True,
                    'error': (
                        f"Cannot delete {len(blocked)} of {len(checks)} activities because they "
                        f"have Actual KPI records: {names}. Nothing was deleted."
                    ),
                    'blocked_ids': [check['activity'].id for check in blocked],
                }

            if not checks:
                return {'success': False, 'error': "Activities not found"}

            kpi_ids = [kpi_id for check in checks for kpi_id in check['planned_kpi_ids']]
            counts = await self.repository.delete_with_kpis(
                [check['activity'].id for check in checks], kpi_ids
            )
            return {
                'success': True,
                'deleted_activities': counts['activities'],
                'deleted_kpis': counts['kpis'],
                'missing_ids': missing,
                'message': f"Deleted {counts['activities']} activities",
            }
        except Exception as e:
            logger.error(f"Bulk deletion failed: {e}", exc_info=True)
            return {'success': False, 'error': str(e)}
