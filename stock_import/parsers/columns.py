from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from stock_import.models.raw_matrix import cell_text

"""Column resolution shared by every extractor.

A user-chosen column name (``column_mapping``) always wins when it exists
in the header; otherwise fallback patterns are tried in order, by equality
or substring containment.
"""

__all__ = [
    "NOT_FOUND",
    "lower_headers",
    "resolve_column",
    "PRICE_PATTERNS",
]

NOT_FOUND = -1

PRICE_PATTERNS = ("price", "wholesale", "cost", "msrp", "line price")


def lower_headers(row: Sequence[Any]) -> list[str]:
    return [cell_text(c).lower() for c in row]


def resolve_column(
    column_mapping: Mapping[str, str] | None,
    headers_lower: Sequence[str],
    field: str,
    patterns: Sequence[str],
) -> int:
    """Return the column index for ``field`` or ``NOT_FOUND``.

    Missing required columns are the caller's problem to handle; this never raises.
    """
    mapped = (column_mapping or {}).get(field)
    if mapped:
        target = mapped.strip().lower()
        for idx, header in enumerate(headers_lower):
            if header == target:
                return idx
    for pattern in patterns:
        for idx, header in enumerate(headers_lower):
            if header == pattern or pattern in header:
                return idx
    return NOT_FOUND
