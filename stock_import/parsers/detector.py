from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from typing import Any

from stock_import.models.format_identity import DetectedFormat, FormatIdentity, Provenance
from stock_import.models.raw_matrix import RawMatrix, cell_text

from .dates import parse_date
from .extractors.base import is_size_header

"""Format auto-detection.

Rules run in a fixed order and the first hit wins:

1. vendor name tokens in ``DATA SOURCE NAME + FILE NAME`` (upper-cased)
2. content signatures in the first cell (report / invoice markers)
3. header shape over the first five rows

Name rules must win over shape rules because several vendors share nearly
identical table shapes. No match means the one-row-per-variant layout.
"""

__all__ = [
    "detect_format",
    "detect_by_name",
    "detect_by_content",
    "detect_by_header_shape",
]

logger = logging.getLogger(__name__)

HEADER_SCAN_ROWS = 5

_OTS_HEADER = re.compile(r"^ots\d+$", re.IGNORECASE)

# (required-all tokens, any-of tokens, identity)
_NAME_RULES: Sequence[tuple[tuple[str, ...], tuple[str, ...], FormatIdentity]] = (
    (("JOVANI", "SALE"), (), FormatIdentity.INTERLEAVED_PIVOT),
    ((), ("FERIANI",), FormatIdentity.GROUPED_PIVOT),
    (("GIA",), ("FRANCO", "INV"), FormatIdentity.GROUPED_PIVOT),
    ((), ("TARIK", "EDIZ", "LISTINVENTORY"), FormatIdentity.SECTIONED_REPORT),
    ((), ("SHERRI", "HILL"), FormatIdentity.ALTERNATING_PIVOT),
    ((), ("ALYCE", "INESS", "COLETTE"), FormatIdentity.GENERIC_PIVOT),
    ((), ("PR-1", "PR-2", "PRINCESA"), FormatIdentity.DATE_HEADER_PIVOT),
    ((), ("GRN", "INVOICE"), FormatIdentity.INVOICE),
    (("STORE", "INVENTORY"), (), FormatIdentity.MULTI_BRAND_ROW),
    ((), ("OTS",), FormatIdentity.QUOTA),
)


def detect_by_name(data_source_name: str | None, file_name: str | None) -> FormatIdentity | None:
    combined = f"{(data_source_name or '').upper()} {(file_name or '').upper()}"
    for required, any_of, identity in _NAME_RULES:
        if required and not all(tok in combined for tok in required):
            continue
        if any_of and not any(tok in combined for tok in any_of):
            continue
        return identity
    return None


def detect_by_content(matrix: RawMatrix) -> FormatIdentity | None:
    first = cell_text(matrix.cell(0, 0)).lower()
    if "up-to-date" in first or "inventory report" in first:
        return FormatIdentity.SECTIONED_REPORT
    if "grn" in first or "invoice" in first:
        return FormatIdentity.INVOICE
    return None


def _is_date_header(value: Any) -> bool:
    return parse_date(value) is not None


def _classify_header_row(row: Sequence[Any]) -> FormatIdentity | None:
    headers = [cell_text(c) for c in row]
    upper = [h.upper() for h in headers]
    lower = [h.lower() for h in headers]

    if any(_OTS_HEADER.match(h) for h in headers):
        return FormatIdentity.QUOTA
    if "SPECIAL DATE" in upper:
        return FormatIdentity.ALTERNATING_PIVOT
    if (
        any("DELIVERY" in h for h in upper)
        and any("STYLE" in h for h in upper)
        and any("COLOR" in h for h in upper)
    ):
        return FormatIdentity.GROUPED_PIVOT
    if sum(1 for c in row if _is_date_header(c)) >= 3:
        return FormatIdentity.DATE_HEADER_PIVOT

    size_count = sum(1 for h in headers if is_size_header(h))
    if size_count >= 5:
        if any("STYLE" in h for h in upper):
            return FormatIdentity.GENERIC_PIVOT
        first, second = (headers + ["", ""])[:2]
        # Interleaved sheets put sizes straight after an empty/size corner cell
        if (not first or is_size_header(first)) and is_size_header(second):
            return FormatIdentity.INTERLEAVED_PIVOT
        return FormatIdentity.GENERIC_PIVOT

    has_vendor = any(
        any(k in h for k in ("vendor", "brand", "designer", "manufacturer")) for h in lower
    )
    has_style = any(any(k in h for k in ("style", "item", "code")) for h in lower)
    has_color = any("color" in h or "colour" in h for h in lower)
    has_size = any("size" in h for h in lower)
    if has_vendor and has_style and has_color and has_size:
        return FormatIdentity.MULTI_BRAND_ROW
    return None


def detect_by_header_shape(matrix: RawMatrix) -> FormatIdentity | None:
    for i in range(min(HEADER_SCAN_ROWS, len(matrix))):
        identity = _classify_header_row(matrix.row(i))
        if identity is not None:
            return identity
    return None


def detect_format(
    matrix: RawMatrix,
    data_source_name: str | None = None,
    file_name: str | None = None,
    forced: str | None = None,
) -> DetectedFormat:
    """Classify ``matrix`` into a FormatIdentity.

    Args:
        matrix: Consolidated sheet (after ``skip_rows``)
        data_source_name: Display name of the data source
        file_name: Uploaded file name
        forced: Format tag configured on the data source; bypasses heuristics

    Returns:
        DetectedFormat with the identity and how it was decided
    """
    if forced:
        try:
            return DetectedFormat(FormatIdentity.parse(forced), Provenance.CONFIGURED, forced)
        except ValueError:
            logger.warning(f"unknown configured format '{forced}', falling back to detection")

    by_name = detect_by_name(data_source_name, file_name)
    if by_name is not None:
        return DetectedFormat(by_name, Provenance.NAME, f"name={data_source_name!r} file={file_name!r}")

    if len(matrix) < 2:
        return DetectedFormat(FormatIdentity.ROW, Provenance.FALLBACK, "fewer than 2 rows")

    by_content = detect_by_content(matrix)
    if by_content is not None:
        return DetectedFormat(by_content, Provenance.CONTENT, cell_text(matrix.cell(0, 0))[:40])

    by_shape = detect_by_header_shape(matrix)
    if by_shape is not None:
        return DetectedFormat(by_shape, Provenance.HEADER, "header shape")

    return DetectedFormat(FormatIdentity.ROW, Provenance.FALLBACK, "no rule matched")
