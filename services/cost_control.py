"""
Cost-control ledgers: hired manpower, other costs, rented equipment and
transportation.

Every ledger is described by a LedgerDefinition (table, spreadsheet columns,
filterable dimensions) and served by the same LedgerService: chunked
fetch-all, in-memory filtering and paging, CRUD, batched deletes, and
CSV/Excel import and export.
"""
import io
import math
import logging
import requests
import pandas as pd
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

from core.settings import settings
from models.base import Base
from models.cost_control_models import HiredManpower, OtherCost, RentedEquipment, Transportation
from repositories.base import BaseRepository
from utils.excel_dates import format_date, parse_date
from utils.parsing import clean_text, get_value, parse_bool, parse_number

logger = logging.getLogger(__name__)

EXCEL_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class LedgerColumn:
    field: str
    header: str
    kind: str = "text"  # text | number | date | bool
    aliases: Tuple[str, ...] = ()

    @property
    def names(self) -> Tuple[str, ...]:
        return (self.header, self.field, self.field.replace("_", " ")) + self.aliases

    def convert(self, value: Any) -> Any:
        if self.kind == "date":
            return parse_date(value)
        if self.kind == "number":
            number = parse_number(value, default=None)
            return Decimal(str(round(number, 6))) if number is not None else None
        if self.kind == "bool":
            return parse_bool(value)
        return clean_text(value)


@dataclass(frozen=True)
class LedgerDefinition:
    name: str
    title: str
    model: Type[Base]
    columns: Tuple[LedgerColumn, ...]
    project_fields: Tuple[str, ...]
    dimensions: Tuple[str, ...]
    search_fields: Tuple[str, ...]
    key_fields: Tuple[str, ...]

    @property
    def headers(self) -> List[str]:
        return [column.header for column in self.columns]

    def column(self, field_name: str) -> Optional[LedgerColumn]:
        for column in self.columns:
            if column.field == field_name:
                return column
        return None


HIRED_MANPOWER = LedgerDefinition(
    name="hired-manpower",
    title="Hired Manpower",
    model=HiredManpower,
    columns=(
        LedgerColumn("date", "DATE", "date"),
        LedgerColumn("project_code", "PROJECT CODE"),
        LedgerColumn("designation", "DESIGNATION"),
        LedgerColumn("total_number", "TOTAL NUMBER", "number"),
        LedgerColumn("total_hrs", "TOTAL HRS", "number", aliases=("TOTAL HOURS",)),
        LedgerColumn("rate", "RATE", "number"),
        LedgerColumn("cost", "COST", "number"),
        LedgerColumn("note", "Note"),
    ),
    project_fields=("project_code",),
    dimensions=("designation",),
    search_fields=("project_code", "designation", "note"),
    key_fields=("date", "project_code", "designation"),
)

OTHER_COST = LedgerDefinition(
    name="other-cost",
    title="Other Cost",
    model=OtherCost,
    columns=(
        LedgerColumn("date", "DATE", "date"),
        LedgerColumn("project_code", "PROJECT CODE"),
        LedgerColumn("category", "Category"),
        LedgerColumn("reference", "Reference "),
        LedgerColumn("unit", "UNIT"),
        LedgerColumn("qtty", "QTTY", "number", aliases=("QTY", "QUANTITY")),
        LedgerColumn("rate", "RATE", "number"),
        LedgerColumn("cost", "Cost", "number"),
        LedgerColumn("join_text", "JOIN TEXT"),
        LedgerColumn("note", "NOTE"),
    ),
    project_fields=("project_code",),
    dimensions=("category",),
    search_fields=("project_code", "category", "reference", "unit", "join_text", "note"),
    key_fields=("date", "project_code", "category", "reference"),
)

RENTED_EQUIPMENT = LedgerDefinition(
    name="rented-equipment",
    title="Rented Equipment",
    model=RentedEquipment,
    columns=(
        LedgerColumn("date", "DATE", "date"),
        LedgerColumn("project_code", "PROJECT CODE"),
        LedgerColumn("machine_type", "MACHINE TYPE"),
        LedgerColumn("machine_name", "MACHINE NAME"),
        LedgerColumn("hrs", "HRS", "number", aliases=("HOURS",)),
        LedgerColumn("time_sheet_review", "Time Sheet Review"),
        LedgerColumn("rate", "RATE", "number"),
        LedgerColumn("cost", "Cost", "number"),
        LedgerColumn("supplier", "SUPPLIER"),
        LedgerColumn("comment", "COMMENT"),
        LedgerColumn("status", "Status"),
    ),
    project_fields=("project_code",),
    dimensions=("machine_type", "supplier"),
    search_fields=("project_code", "machine_type", "machine_name", "supplier", "comment", "status"),
    key_fields=("date", "project_code", "machine_type", "machine_name"),
)

TRANSPORTATION = LedgerDefinition(
    name="transportation",
    title="Transportation",
    model=Transportation,
    columns=(
        LedgerColumn("date", "DATE", "date"),
        LedgerColumn("type", "TYPE"),
        LedgerColumn("category", "Category"),
        LedgerColumn("nos", "NOs", "number"),
        LedgerColumn("length_m", "LENGTH(M)", "number", aliases=("LENGTH",)),
        LedgerColumn("items", "ITEMS"),
        LedgerColumn("project_code_from", "PROJECT CODE ( FROM )", aliases=("PROJECT CODE FROM", "FROM")),
        LedgerColumn("project_code_to", "PROJECT CODE ( TO )", aliases=("PROJECT CODE TO", "TO")),
        LedgerColumn("rate", "RATE", "number"),
        LedgerColumn("waiting_rate", "WAITING RATE", "number"),
        LedgerColumn("cost", "Cost", "number"),
        LedgerColumn("comment", "COMMENT"),
        LedgerColumn("confirmed", "Confirmed", "bool"),
    ),
    project_fields=("project_code_from", "project_code_to"),
    dimensions=("type", "category", "project_code_from", "project_code_to"),
    search_fields=("type", "category", "items", "project_code_from", "project_code_to", "comment"),
    key_fields=("date", "type", "category", "items", "project_code_from", "project_code_to"),
)

LEDGERS: Dict[str, LedgerDefinition] = {
    ledger.name: ledger for ledger in (HIRED_MANPOWER, OTHER_COST, RENTED_EQUIPMENT, TRANSPORTATION)
}


@dataclass
class LedgerFilter:
    search: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    project_codes: List[str] = field(default_factory=list)
    dimensions: Dict[str, List[str]] = field(default_factory=dict)
    confirmed: Optional[bool] = None


def _plain(value: Any) -> Any:
    return float(value) if isinstance(value, Decimal) else value


def to_output(row: Dict[str, Any]) -> Dict[str, Any]:
    """JSON-friendly copy of a ledger row."""
    return {key: _plain(value) for key, value in row.items()}


def filter_rows(ledger: LedgerDefinition, rows: Sequence[Dict[str, Any]],
                criteria: LedgerFilter) -> List[Dict[str, Any]]:
    result = list(rows)

    if criteria.search and criteria.search.strip():
        term = criteria.search.strip().lower()
        result = [
            row for row in result
            if any(term in str(row.get(name) or "").lower() for name in ledger.search_fields)
        ]

    if criteria.date_from:
        result = [row for row in result if row.get("date") and row["date"] >= criteria.date_from]
    if criteria.date_to:
        result = [row for row in result if row.get("date") and row["date"] <= criteria.date_to]

    if criteria.project_codes:
        wanted = set(criteria.project_codes)
        result = [
            row for row in result
            if any(row.get(name) in wanted for name in ledger.project_fields)
        ]

    for name, selected in criteria.dimensions.items():
        if name not in ledger.dimensions or not selected:
            continue
        wanted = set(selected)
        result = [row for row in result if row.get(name) in wanted]

    if criteria.confirmed is not None and ledger.column("confirmed"):
        result = [row for row in result if bool(row.get("confirmed")) == criteria.confirmed]

    return result


def build_options(ledger: LedgerDefinition, rows: Sequence[Dict[str, Any]]) -> Dict[str, List[str]]:
    """Distinct, sorted, non-empty values for project codes and each dimension."""
    def distinct(names: Sequence[str]) -> List[str]:
        values = {
            str(row.get(name)).strip()
            for row in rows for name in names
            if row.get(name) and str(row.get(name)).strip()
        }
        return sorted(values)

    options = {"project_codes": distinct(ledger.project_fields)}
    for name in ledger.dimensions:
        options[name] = distinct([name])
    return options


def clean_import_row(ledger: LedgerDefinition, row: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Map a spreadsheet row onto ledger fields; None when it carries no key data."""
    cleaned = {}
    for column in ledger.columns:
        raw = get_value(row, column.names)
        if raw is None:
            continue
        value = column.convert(raw)
        if value is not None:
            cleaned[column.field] = value

    if not any(cleaned.get(name) for name in ledger.key_fields):
        return None
    return cleaned


def read_table(content: bytes, file_name: str) -> pd.DataFrame:
    """Parse CSV or Excel bytes into a frame (first sheet for workbooks)."""
    if file_name.lower().split("?")[0].endswith(".csv"):
        return pd.read_csv(io.BytesIO(content))
    return pd.read_excel(io.BytesIO(content), sheet_name=0)


def download_table(file_url: str) -> pd.DataFrame:
    """Download a CSV/XLSX file and parse it."""
    try:
        logger.info("Fetching import file from URL")
        response = requests.get(file_url, timeout=settings.REQUEST_TIMEOUT)
        response.raise_for_status()
        logger.info(f"File downloaded successfully ({len(response.content):,} bytes)")
    except requests.exceptions.RequestException as e:
        raise Exception(f"Failed to download file from URL: {str(e)}")

    try:
        return read_table(response.content, file_url)
    except Exception as e:
        raise Exception(f"Failed to read import file: {str(e)}")


def rows_to_frame(ledger: LedgerDefinition, rows: Sequence[Dict[str, Any]]) -> pd.DataFrame:
    """Rows laid out under the ledger's template headers."""
    records = []
    for row in rows:
        record = {}
        for column in ledger.columns:
            value = row.get(column.field)
            if column.kind == "bool":
                value = "Yes" if value else "No"
            elif column.kind == "date":
                value = format_date(value)
            elif column.kind == "number":
                value = _plain(value) if value is not None else None
            else:
                value = value or ""
            record[column.header] = value
        records.append(record)
    return pd.DataFrame(records, columns=ledger.headers)


def frame_to_bytes(frame: pd.DataFrame, file_format: str, sheet_name: str) -> bytes:
    if file_format == "csv":
        return frame.to_csv(index=False).encode("utf-8")

    output = io.BytesIO()
    with pd.ExcelWriter(output, engine='xlsxwriter') as writer:
        frame.to_excel(writer, sheet_name=sheet_name[:31], index=False)
        worksheet = writer.sheets[sheet_name[:31]]
        for index, header in enumerate(frame.columns):
            worksheet.set_column(index, index, max(12, len(str(header)) + 2))
    return output.getvalue()


class LedgerService:
    """CRUD, filtering, import and export for one cost-control ledger."""

    def __init__(self, ledger: LedgerDefinition):
        self.ledger = ledger
        self.repository = BaseRepository(ledger.model)

    async def list_entries(self, criteria: LedgerFilter, page: int = 1,
                           page_size: Optional[int] = None) -> Dict[str, Any]:
        page_size = page_size or settings.LEDGER_PAGE_SIZE
        rows = filter_rows(self.ledger, await self.repository.fetch_all(), criteria)
        rows.sort(key=lambda row: (row.get("date") or date.min), reverse=True)

        start = (max(page, 1) - 1) * page_size
        total = len(rows)
        return {
            'items': [to_output(row) for row in rows[start:start + page_size]],
            'total': total,
            'page': page,
            'page_size': page_size,
            'total_pages': math.ceil(total / page_size) if total else 0,
            'total_cost': sum(float(row.get("cost") or 0) for row in rows),
        }

    async def get_options(self) -> Dict[str, List[str]]:
        return build_options(self.ledger, await self.repository.fetch_all())

    def _prepare(self, data: Dict[str, Any]) -> Dict[str, Any]:
        prepared = {}
        for name, value in data.items():
            column = self.ledger.column(name)
            if column is None:
                continue
            prepared[name] = column.convert(value) if value is not None else None
        return prepared

    async def get_entry(self, entry_id: str) -> Optional[Dict[str, Any]]:
        row = await self.repository.get_by_id(entry_id)
        return to_output(row) if row else None

    async def create_entry(self, data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            row = await self.repository.insert(self._prepare(data))
            logger.info(f"Created {self.ledger.title} entry {row['id']}")
            return {'success': True, 'entry': to_output(row)}
        except Exception as e:
            logger.error(f"{self.ledger.title} creation failed: {e}", exc_info=True)
            return {'success': False, 'error': str(e)}

    async def update_entry(self, entry_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            row = await self.repository.update(entry_id, self._prepare(data))
            if row is None:
                return {'success': False, 'error': f"{self.ledger.title} entry {entry_id} not found"}
            return {'success': True, 'entry': to_output(row)}
        except Exception as e:
            logger.error(f"{self.ledger.title} update failed: {e}", exc_info=True)
            return {'success': False, 'error': str(e)}

    async def delete_entry(self, entry_id: str) -> Dict[str, Any]:
        try:
            if not await self.repository.delete(entry_id):
                return {'success': False, 'error': f"{self.ledger.title} entry {entry_id} not found"}
            return {'success': True, 'message': f"{self.ledger.title} entry deleted"}
        except Exception as e:
            logger.error(f"{self.ledger.title} deletion failed: {e}", exc_info=True)
            return {'success': False, 'error': str(e)}

    async def bulk_delete(self, entry_ids: Sequence[str]) -> Dict[str, Any]:
        """Delete in fixed-size batches; a failed batch is counted, not fatal."""
        batch_size = settings.DELETE_BATCH_SIZE
        ids = list(dict.fromkeys(entry_ids))
        deleted = 0
        failed = 0

        for start in range(0, len(ids), batch_size):
            batch = ids[start:start + batch_size]
            try:
                deleted += await self.repository.delete_many(batch)
            except Exception as e:
                failed += len(batch)
                logger.error(f"{self.ledger.title} delete batch {start // batch_size + 1} failed: {e}", exc_info=True)

        logger.info(f"{self.ledger.title} bulk delete: {deleted} deleted, {failed} failed")
        return {
            'success': failed == 0,
            'deleted': deleted,
            'failed': failed,
            'message': f"Deleted {deleted} of {len(ids)} entries",
        }

    async def import_frame(self, frame: pd.DataFrame,
                           progress: Optional[ProgressCallback] = None) -> Dict[str, Any]:
        """Insert cleaned rows in batches; failed batches are counted and skipped."""
        frame = frame.dropna(how="all")
        raw_rows = frame.to_dict(orient="records")
        rows = [cleaned for cleaned in (clean_import_row(self.ledger, row) for row in raw_rows) if cleaned]
        skipped = len(raw_rows) - len(rows)

        if not rows:
            return {
                'success': False,
                'error': f"No valid data found. Please ensure the file contains {self.ledger.title.lower()} information.",
                'total_rows': len(raw_rows),
                'imported': 0,
                'failed': 0,
                'skipped': skipped,
            }

        batch_size = settings.IMPORT_BATCH_SIZE
        imported = 0
        failed = 0
        for start in range(0, len(rows), batch_size):
            batch = rows[start:start + batch_size]
            try:
                imported += await self.repository.insert_batch(batch)
            except Exception as e:
                failed += len(batch)
                logger.error(f"{self.ledger.title} import batch {start // batch_size + 1} failed: {e}", exc_info=True)
            if progress:
                progress(start + len(batch), len(rows))

        logger.info(f"{self.ledger.title} import: {imported} imported, {failed} failed, {skipped} skipped")
        return {
            'success': imported > 0,
            'total_rows': len(raw_rows),
            'imported': imported,
            'failed': failed,
            'skipped': skipped,
            'message': f"Imported {imported} of {len(rows)} {self.ledger.title.lower()} records",
            'error': None if imported else "All import batches failed",
        }

    async def import_from_url(self, file_url: str,
                              progress: Optional[ProgressCallback] = None) -> Dict[str, Any]:
        try:
            frame = download_table(file_url)
            return await self.import_frame(frame, progress)
        except Exception as e:
            logger.error(f"{self.ledger.title} import failed: {e}", exc_info=True)
            return {'success': False, 'error': str(e), 'imported': 0, 'failed': 0}

    async def export(self, criteria: LedgerFilter, file_format: str = "excel") -> bytes:
        rows = filter_rows(self.ledger, await self.repository.fetch_all(), criteria)
        rows.sort(key=lambda row: (row.get("date") or date.min))
        return frame_to_bytes(rows_to_frame(self.ledger, rows), file_format, self.ledger.title)

    def template(self, file_format: str = "excel") -> bytes:
        return frame_to_bytes(pd.DataFrame(columns=self.ledger.headers), file_format, self.ledger.title)
