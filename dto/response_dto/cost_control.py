from pydantic import BaseModel
from typing import Optional, List, Dict, Any


class ProcessingStatus(BaseModel):
    task_id: str
    status: str
    message: str
    progress: Optional[float] = None


class ImportResult(BaseModel):
    success: bool
    total_rows: Optional[int] = None
    imported: int = 0
    failed: int = 0
    skipped: Optional[int] = None
    message: Optional[str] = None
    error: Optional[str] = None


class LedgerListResponse(BaseModel):
    items: List[Dict[str, Any]] = []
    total: int
    page: int
    page_size: int
    total_pages: int
    total_cost: float = 0.0


class LedgerBulkDeleteResponse(BaseModel):
    success: bool
    deleted: int
    failed: int
    message: str
