import io
import uuid
import logging
from datetime import date
from typing import Dict, List, Optional, Type
from fastapi import APIRouter, HTTPException, BackgroundTasks, Body, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel
from dto.request_dto.cost_control import (
    LedgerImportRequest, HiredManpowerRequest, OtherCostRequest,
    RentedEquipmentRequest, TransportationRequest,
)
from dto.request_dto.planning import BulkDeleteRequest
from dto.response_dto.cost_control import (
    ProcessingStatus, ImportResult, LedgerListResponse, LedgerBulkDeleteResponse,
)
from core.settings import settings
from services.cost_control import (
    LedgerDefinition, LedgerFilter, LedgerService, EXCEL_MEDIA_TYPE,
    HIRED_MANPOWER, OTHER_COST, RENTED_EQUIPMENT, TRANSPORTATION,
)
from tasks.background_tasks import create_task, get_task, update_progress, processing_tasks

logger = logging.getLogger(__name__)

CONFIRMED_CHOICES = {"all": None, "yes": True, "no": False}


async def import_ledger_background(task_id: str, ledger: LedgerDefinition, file_url: str, uploaded_by: str):
    """Background task for ledger import from URL."""
    try:
        processing_tasks[task_id]["status"] = "processing"
        processing_tasks[task_id]["message"] = f"Importing {ledger.title} from URL..."
        logger.info(f"{ledger.title} import {task_id} started by {uploaded_by}")

        service = LedgerService(ledger)
        result = await service.import_from_url(
            file_url, progress=lambda done, total: update_progress(task_id, done, total)
        )

        processing_tasks[task_id].update({
            "status": "completed" if result["success"] else "failed",
            "result": result,
            "message": result.get("message") or f"Error: {result.get('error')}",
        })
    except Exception as e:
        logger.error(f"Background import failed: {e}", exc_info=True)
        processing_tasks[task_id].update({
            "status": "failed",
            "result": {"success": False, "error": str(e)},
            "message": f"Error: {str(e)}",
        })


def _file_response(content: bytes, file_format: str, base_name: str) -> StreamingResponse:
    if file_format == "csv":
        media_type, extension = "text/csv", "csv"
    else:
        media_type, extension = EXCEL_MEDIA_TYPE, "xlsx"
    return StreamingResponse(
        io.BytesIO(content),
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={base_name}.{extension}"}
    )


def _build_filter(ledger: LedgerDefinition, request: Request, search: Optional[str],
                  date_from: Optional[date], date_to: Optional[date],
                  project_codes: List[str], confirmed: str) -> LedgerFilter:
    """Dimension filters come in as repeated query params named after the field."""
    dimensions: Dict[str, List[str]] = {
        name: request.query_params.getlist(name)
        for name in ledger.dimensions
        if request.query_params.getlist(name)
    }
    return LedgerFilter(
        search=search,
        date_from=date_from,
        date_to=date_to,
        project_codes=project_codes,
        dimensions=dimensions,
        confirmed=CONFIRMED_CHOICES[confirmed],
    )


def build_ledger_router(ledger: LedgerDefinition, entry_model: Type[BaseModel]) -> APIRouter:
    """Routes for one cost-control ledger under /cost-control/<name>."""
    router = APIRouter(prefix=f"/cost-control/{ledger.name}", tags=[f"Cost Control - {ledger.title}"])
    file_name = ledger.name.replace("-", "_")

    def _raise(result: dict, default: str):
        error = result.get('error') or default
        status = 404 if 'not found' in error.lower() else 500
        raise HTTPException(status_code=status, detail=error)

    @router.get("", response_model=LedgerListResponse, summary=f"List {ledger.title}")
    async def list_entries(
        request: Request,
        search: Optional[str] = Query(default=None),
        date_from: Optional[date] = Query(default=None),
        date_to: Optional[date] = Query(default=None),
        project_codes: List[str] = Query(default=[]),
        confirmed: str = Query(default="all", pattern="^(all|yes|no)$"),
        page: int = Query(default=1, ge=1),
        page_size: int = Query(default=settings.LEDGER_PAGE_SIZE, ge=1, le=1000),
    ):
        """Filter by search, inclusive date range, project codes and the ledger's dimensions."""
        try:
            criteria = _build_filter(ledger, request, search, date_from, date_to, project_codes, confirmed)
            result = await LedgerService(ledger).list_entries(criteria, page, page_size)
            return LedgerListResponse(**result)
        except Exception as e:
            logger.error(f"List {ledger.name} error: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=f"Failed to list {ledger.title}: {str(e)}")

    @router.get("/options", summary=f"{ledger.title} Filter Options")
    async def get_options():
        try:
            return await LedgerService(ledger).get_options()
        except Exception as e:
            logger.error(f"Options {ledger.name} error: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=f"Failed to load options: {str(e)}")

    @router.get("/export", summary=f"Export {ledger.title}")
    async def export_entries(
        request: Request,
        file_format: str = Query(default="excel", alias="format", pattern="^(excel|csv)$"),
        search: Optional[str] = Query(default=None),
        date_from: Optional[date] = Query(default=None),
        date_to: Optional[date] = Query(default=None),
        project_codes: List[str] = Query(default=[]),
        confirmed: str = Query(default="all", pattern="^(all|yes|no)$"),
    ):
        try:
            criteria = _build_filter(ledger, request, search, date_from, date_to, project_codes, confirmed)
            content = await LedgerService(ledger).export(criteria, file_format)
            return _file_response(content, file_format, f"{file_name}_{date.today():%Y%m%d}")
        except Exception as e:
            logger.error(f"Export {ledger.name} error: {e}", exc_info=True)
            raise HTTPException(status_code=500, detail=f"Failed to export {ledger.title}: {str(e)}")

    @router.get("/template", summary=f"{ledger.title} Import Template")
    async def download_template(file_format: str = Query(default="excel", alias="format", pattern="^(excel|csv)$")):
        content = LedgerService(ledger).template(file_format)
        return _file_response(content, file_format, f"{file_name}_template")

    @router.post("/import", response_model=ProcessingStatus, summary=f"Import {ledger.title} via URL")
    async def import_entries(background_tasks: BackgroundTasks, request: LedgerImportRequest = Body(...)):
        """Import a CSV/XLSX file from a URL in the background."""
        task_id = str(uuid.uuid4())
        create_task(task_id, kind=f"import:{ledger.name}")
        processing_tasks[task_id]["message"] = "Starting import from URL..."

        background_tasks.add_task(
            import_ledger_background, task_id, ledger, str(request.file_url), request.uploaded_by
        )
        return ProcessingStatus(task_id=task_id, status="pending", message=f"{ledger.title} import started.")

    @router.get("/import/status/{task_id}", response_model=ProcessingStatus)
    async def get_import_status(task_id: str):
        task = get_task(task_id)
        if not task:
            raise HTTPException(status_code=404, detail="Task not found")
        return ProcessingStatus(
            task_id=task_id,
            status=task["status"],
            message=task["message"],
            progress=task.get("progress"),
        )

    @router.get("/import/result/{task_id}", response_model=ImportResult)
    async def get_import_result(task_id: str):
        task = get_task(task_id)
        if not task:
            raise HTTPException(status_code=404, detail="Task not found")
        if task["status"] not in ["completed", "failed"]:
            raise HTTPException(status_code=400, detail="Not complete")
        return ImportResult(**task["result"])

    @router.post("/bulk-delete", response_model=LedgerBulkDeleteResponse, summary=f"Bulk Delete {ledger.title}")
    async def bulk_delete(request: BulkDeleteRequest = Body(...)):
        result = await LedgerService(ledger).bulk_delete(request.ids)
        return LedgerBulkDeleteResponse(**result)

    @router.get("/{entry_id}")
    async def get_entry(entry_id: str):
        entry = await LedgerService(ledger).get_entry(entry_id)
        if not entry:
            raise HTTPException(status_code=404, detail=f"{ledger.title} entry {entry_id} not found")
        return entry

    @router.post("", status_code=201, summary=f"Create {ledger.title} Entry")
    async def create_entry(request: entry_model = Body(...)):
        result = await LedgerService(ledger).create_entry(request.model_dump(exclude_none=True))
        if not result['success']:
            _raise(result, f"Failed to create {ledger.title} entry")
        return result['entry']

    @router.put("/{entry_id}", summary=f"Update {ledger.title} Entry")
    async def update_entry(entry_id: str, request: entry_model = Body(...)):
        result = await LedgerService(ledger).update_entry(entry_id, request.model_dump(exclude_unset=True))
        if not result['success']:
            _raise(result, f"Failed to update {ledger.title} entry")
        return result['entry']

    @router.delete("/{entry_id}", summary=f"Delete {ledger.title} Entry")
    async def delete_entry(entry_id: str):
        result = await LedgerService(ledger).delete_entry(entry_id)
        if not result['success']:
            _raise(result, f"Failed to delete {ledger.title} entry")
        return result

    return router


hired_manpower_router = build_ledger_router(HIRED_MANPOWER, HiredManpowerRequest)
other_cost_router = build_ledger_router(OTHER_COST, OtherCostRequest)
rented_equipment_router = build_ledger_router(RENTED_EQUIPMENT, RentedEquipmentRequest)
transportation_router = build_ledger_router(TRANSPORTATION, TransportationRequest)

routers = [hired_manpower_router, other_cost_router, rented_equipment_router, transportation_router]
