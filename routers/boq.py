from dataclasses import asdict
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, HTTPException, Body, Query
from core.settings import settings
from dto.request_dto.planning import BoqActivityRequest, BoqActivityUpdateRequest, BulkDeleteRequest
from dto.response_dto.planning import ActivityResponse, ActivityListResponse, FacetsResponse, DeleteResponse
from models.domain import ActivityRecord
from services.boq import BoqService
from services.boq_filter import BoqFilterCriteria
from services.boq_values import calculate_boq_values
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/boq", tags=["BOQ Activities"])


def to_response(activity: ActivityRecord) -> ActivityResponse:
    values = calculate_boq_values(
        activity.total_units, activity.planned_units, activity.actual_units, activity.total_value
    )
    return ActivityResponse(
        **asdict(activity),
        progress=values.progress,
        remaining_value=values.remaining_value,
    )


def raise_for_result(result: dict, default: str):
    """Map a failed service result to the matching HTTP error."""
    error = result.get('error') or default
    if result.get('blocked'):
        raise HTTPException(
            status_code=409,
            detail={"message": error, "blocked_ids": result.get('blocked_ids', [])},
        )
    if 'not found' in error.lower():
        raise HTTPException(status_code=404, detail=error)
    raise HTTPException(status_code=500, detail=error)


@router.get("/activities", response_model=ActivityListResponse, summary="List BOQ Activities")
async def list_activities(
    projects: List[str] = Query(default=[], description="Selected project full codes"),
    activities: List[str] = Query(default=[]),
    zones: List[str] = Query(default=[]),
    units: List[str] = Query(default=[]),
    divisions: List[str] = Query(default=[]),
    date_from: Optional[date] = Query(default=None),
    date_to: Optional[date] = Query(default=None),
    min_value: Optional[float] = Query(default=None),
    max_value: Optional[float] = Query(default=None),
    min_quantity: Optional[float] = Query(default=None),
    max_quantity: Optional[float] = Query(default=None),
    search: Optional[str] = Query(default=None),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=settings.BOQ_PAGE_SIZE, ge=1, le=500),
):
    """Filter activities across projects, zones, units, divisions, dates and ranges."""
    try:
        criteria = BoqFilterCriteria(
            projects=projects, activities=activities, zones=zones, units=units,
            divisions=divisions, date_from=date_from, date_to=date_to,
            min_value=min_value, max_value=max_value,
            min_quantity=min_quantity, max_quantity=max_quantity, search=search,
        )
        result = await BoqService().list_activities(criteria, page, page_size)
        return ActivityListResponse(
            items=[to_response(activity) for activity in result['items']],
            total=result['total'],
            page=result['page'],
            page_size=result['page_size'],
            total_pages=result['total_pages'],
        )
    except Exception as e:
        logger.error(f"List activities error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to list activities: {str(e)}")


@router.get("/facets", response_model=FacetsResponse, summary="Filter Options")
async def get_facets(projects: List[str] = Query(default=[])):
    """Activities, zones, units and divisions available under the selected projects."""
    try:
        return FacetsResponse(**await BoqService().get_facets(projects))
    except Exception as e:
        logger.error(f"Facets error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to build filter options: {str(e)}")


@router.get("/activities/{activity_id}", response_model=ActivityResponse)
async def get_activity(activity_id: str):
    activity = await BoqService().get_activity(activity_id)
    if not activity:
        raise HTTPException(status_code=404, detail=f"Activity {activity_id} not found")
    return to_response(activity)


@router.post("/activities", response_model=ActivityResponse, status_code=201, summary="Create BOQ Activity")
async def create_activity(request: BoqActivityRequest = Body(...)):
    result = await BoqService().create_activity(request.model_dump(exclude_none=True))
    if not result['success']:
        raise_for_result(result, 'Failed to create activity')
    return to_response(result['activity'])


@router.put("/activities/{activity_id}", response_model=ActivityResponse, summary="Update BOQ Activity")
async def update_activity(activity_id: str, request: BoqActivityUpdateRequest = Body(...)):
    result = await BoqService().update_activity(activity_id, request.model_dump(exclude_unset=True))
    if not result['success']:
        raise_for_result(result, 'Failed to update activity')
    return to_response(result['activity'])


@router.delete("/activities/{activity_id}", response_model=DeleteResponse, summary="Delete BOQ Activity")
async def delete_activity(activity_id: str):
    """Delete an activity and its Planned KPIs. Refused (409) while Actual KPIs exist."""
    result = await BoqService().delete_activity(activity_id)
    if not result['success']:
        raise_for_result(result, 'Failed to delete activity')
    return DeleteResponse(**result)


@router.post("/activities/bulk-delete", response_model=DeleteResponse, summary="Bulk Delete BOQ Activities")
async def bulk_delete_activities(request: BulkDeleteRequest = Body(...)):
    """All-or-nothing: one activity with Actual KPIs rejects the whole batch (409)."""
    result = await BoqService().bulk_delete(request.ids)
    if not result['success']:
        raise_for_result(result, 'Failed to delete activities')
    return DeleteResponse(**result)
