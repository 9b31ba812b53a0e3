from dataclasses import asdict
from typing import List, Optional
from fastapi import APIRouter, HTTPException, Body, Query
from dto.request_dto.planning import KpiRequest
from dto.response_dto.planning import KpiResponse, KpiSummaryResponse
from services.kpi import KpiService
import logging

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/kpi", tags=["KPI"])
dashboard_router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("", response_model=List[KpiResponse], summary="List KPIs")
async def list_kpis(
    projects: List[str] = Query(default=[], description="Selected project full codes"),
    input_type: Optional[str] = Query(default=None, pattern="(?i)^(planned|actual)$"),
):
    try:
        kpis = await KpiService().list_kpis(projects, input_type)
        return [KpiResponse(**asdict(kpi)) for kpi in kpis]
    except Exception as e:
        logger.error(f"List KPIs error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to list KPIs: {str(e)}")


@router.post("", response_model=KpiResponse, status_code=201, summary="Record KPI")
async def create_kpi(request: KpiRequest = Body(...)):
    result = await KpiService().create_kpi(request.model_dump(exclude_none=True))
    if not result['success']:
        status = 400 if 'input type' in result.get('error', '').lower() else 500
        raise HTTPException(status_code=status, detail=result.get('error'))
    return KpiResponse(**asdict(result['kpi']))


@router.delete("/{kpi_id}", summary="Delete KPI")
async def delete_kpi(kpi_id: str):
    result = await KpiService().delete_kpi(kpi_id)
    if not result['success']:
        status = 404 if 'not found' in result.get('error', '').lower() else 500
        raise HTTPException(status_code=status, detail=result.get('error'))
    return result


@dashboard_router.get("/kpi-summary", response_model=KpiSummaryResponse, summary="KPI Summary")
async def kpi_summary(projects: List[str] = Query(..., description="Selected project full codes")):
    """Planned and actual quantity/value totals for the selected projects."""
    try:
        return KpiSummaryResponse(**await KpiService().dashboard_summary(projects))
    except Exception as e:
        logger.error(f"KPI summary error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to build KPI summary: {str(e)}")
