"""
Project code reconciliation.

Stored project codes are inconsistent: the full code is often missing, the
sub-code may be a bare suffix ("01") or a full repeat ("P10002-01"), and dash
placement varies. Every membership test (activity filtering, KPI matching,
zone extraction, dashboard aggregation, delete guard) goes through
matches_project so they all agree.
"""
import re
import logging
from typing import Iterable, Optional, Set, Tuple

logger = logging.getLogger(__name__)

ZONE_NUMBER_PATTERN = re.compile(r'zone\s*[-_]?\s*(\d+)', re.IGNORECASE)
TRAILING_NUMBER_PATTERN = re.compile(r'(\d+)\s*$')


def _norm(value: Optional[str]) -> str:
    return (value or "").strip().upper()


def build_full_code(project_code: Optional[str], project_sub_code: Optional[str]) -> str:
    """
    Combine a project code and sub-code.

    build_full_code("P1", "01") -> "P1-01"
    build_full_code("P1", "P1-01") -> "P1-01"
    build_full_code("P1", "-01") -> "P1-01"
    """
    code = (project_code or "").strip()
    sub_code = (project_sub_code or "").strip()
    if not sub_code:
        return code
    if not code:
        return sub_code
    if sub_code.upper().startswith(code.upper()):
        return sub_code
    if sub_code.startswith("-"):
        return f"{code}{sub_code}"
    return f"{code}-{sub_code}"


def split_full_code(full_code: Optional[str]) -> Tuple[str, str]:
    """Split on the first dash into (code, sub_code)."""
    value = (full_code or "").strip()
    if "-" not in value:
        return value, ""
    code, sub_code = value.split("-", 1)
    return code.strip(), sub_code.strip()


def matches_project(
    selected_full_code: str,
    project_code: Optional[str],
    project_sub_code: Optional[str] = None,
    project_full_code: Optional[str] = None,
    strict: bool = False,
) -> bool:
    """
    Decide whether a record belongs to the selected project.

    Checks run in order and the first hit wins:
      1. stored full code equals the selection
      2. same project code and a compatible sub-code
      3. selection has a sub-code, record has none (lenient)
      4. full code rebuilt from code + sub-code equals the selection
      5. stored full code equals the bare selected code (lenient)

    strict=True skips the lenient checks 3 and 5.
    """
    selected = _norm(selected_full_code)
    if not selected:
        return False

    record_code = _norm(project_code)
    record_sub = _norm(project_sub_code)
    record_full = _norm(project_full_code)
    code, sub_code = (part.upper() for part in split_full_code(selected))

    if record_full and record_full == selected:
        logger.debug(f"{selected}: exact full code match")
        return True

    if record_code and record_code == code:
        if not sub_code and not record_sub:
            return True
        if sub_code and record_sub:
            if (record_sub == selected or record_sub == sub_code
                    or record_sub.endswith(sub_code)
                    or sub_code in record_sub or record_sub in sub_code):
                logger.debug(f"{selected}: sub-code match on {record_sub}")
                return True

        if not strict and sub_code and not record_sub:
            logger.debug(f"{selected}: record {record_code} has no sub-code, accepting")
            return True

    if record_code and _norm(build_full_code(record_code, record_sub)) == selected:
        logger.debug(f"{selected}: rebuilt full code match")
        return True

    if not strict and record_full and record_full == code:
        logger.debug(f"{selected}: stored full code is the bare project code")
        return True

    return False


def matches_any_project(
    selected_full_codes: Iterable[str],
    project_code: Optional[str],
    project_sub_code: Optional[str] = None,
    project_full_code: Optional[str] = None,
    strict: bool = False,
) -> bool:
    return any(
        matches_project(selected, project_code, project_sub_code, project_full_code, strict=strict)
        for selected in selected_full_codes
    )


def normalize_zone(zone: Optional[str], project_code: Optional[str] = None,
                   project_full_code: Optional[str] = None) -> str:
    """
    Reduce a zone label to a comparable token.

    normalize_zone("P5066 - Zone 2", "P5066") -> "zone 2"
    """
    value = (zone or "").strip()
    if not value:
        return ""

    full_code = (project_full_code or "").strip()
    if full_code:
        value = re.sub(rf'^{re.escape(full_code)}\s*-?\s*', '', value, flags=re.IGNORECASE)

    code = (project_code or "").strip()
    if code:
        for pattern in (rf'^{re.escape(code)}\s*-\s*', rf'^{re.escape(code)}\s+', rf'^{re.escape(code)}-'):
            stripped = re.sub(pattern, '', value, flags=re.IGNORECASE)
            if stripped != value:
                value = stripped
                break

    value = value.strip().strip("-").strip()
    value = re.sub(r'\s+', ' ', value)
    return value.lower()


def zone_matches(zone: Optional[str], selected_zones: Iterable[str],
                 project_code: Optional[str] = None) -> bool:
    """Exact token equality only; "Tower-Side-C" never matches "Tower"."""
    token = normalize_zone(zone, project_code)
    if not token:
        return False
    return any(token == normalize_zone(selected, project_code) for selected in selected_zones)


def extract_zone_number(zone: Optional[str]) -> Optional[str]:
    """
    Pull the zone number out of a label.

    "Zone-3" -> "3", "P5066 - zone 2" -> "2", "Block 4" -> "4"
    """
    value = (zone or "").strip()
    if not value:
        return None
    match = ZONE_NUMBER_PATTERN.search(value) or TRAILING_NUMBER_PATTERN.search(value)
    return match.group(1) if match else None


def lookup_codes(selected_full_codes: Iterable[str]) -> Set[str]:
    """Codes worth querying for a selection: each full code and its bare project code."""
    codes = set()
    for selected in selected_full_codes:
        value = (selected or "").strip()
        if value:
            codes.add(value)
            codes.add(split_full_code(value)[0])
    return codes
