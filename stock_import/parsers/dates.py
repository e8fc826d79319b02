from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from typing import Any

"""Ship-date helpers shared by extractors and pipeline stages.

Spreadsheet dates arrive as serial numbers (days since 1899-12-30), as
real date objects, or as text in ISO, ``M/D/YYYY``, ``M/D/YY`` or
``DD/MM/YYYY`` form. Placeholders such as "TBD" or "n/a" mean no date.
"""

__all__ = [
    "EXCEL_EPOCH",
    "NULL_DATE_TOKENS",
    "excel_serial_to_date",
    "parse_date",
    "normalize_ship_date",
    "is_valid_ship_date",
    "is_date_in_past",
]

EXCEL_EPOCH = date(1899, 12, 30)
SERIAL_MIN = 40000  # 2009-07-06
SERIAL_MAX = 55000  # 2050-07-30

NULL_DATE_TOKENS = frozenset({"n/a", "na", "tbd", "none", "null", "undefined", "-", ""})

_ISO = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})(?:[T ].*)?$")
_SLASHED = re.compile(r"^(\d{1,2})[/.-](\d{1,2})[/.-](\d{2}|\d{4})$")
_SERIAL_TEXT = re.compile(r"^\d{5}(?:\.0+)?$")


def excel_serial_to_date(value: Any, low: float = SERIAL_MIN, high: float = SERIAL_MAX) -> str | None:
    """Convert a spreadsheet serial to ISO ``YYYY-MM-DD``; out of range -> None."""
    if isinstance(value, bool):
        return None
    try:
        serial = float(value)
    except (TypeError, ValueError):
        return None
    if not low <= serial <= high:
        return None
    return (EXCEL_EPOCH + timedelta(days=int(serial))).isoformat()


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date(value: Any, day_first: bool = False) -> date | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, (int, float)):
        iso = excel_serial_to_date(value)
        return date.fromisoformat(iso) if iso else None

    text = str(value).strip()
    if text.lower() in NULL_DATE_TOKENS:
        return None
    if _SERIAL_TEXT.match(text):
        return parse_date(float(text))

    m = _ISO.match(text)
    if m:
        return _safe_date(int(m.group(1)), int(m.group(2)), int(m.group(3)))

    m = _SLASHED.match(text)
    if m:
        first, second, year_text = int(m.group(1)), int(m.group(2)), m.group(3)
        year = int(year_text)
        if len(year_text) == 2:
            year += 1900 if year >= 50 else 2000
        if day_first or first > 12:
            return _safe_date(year, second, first)
        return _safe_date(year, first, second)
    return None


def normalize_ship_date(value: Any, day_first: bool = False) -> str | None:
    parsed = parse_date(value, day_first=day_first)
    return parsed.isoformat() if parsed else None


def is_valid_ship_date(value: Any) -> bool:
    return parse_date(value) is not None


def is_date_in_past(value: Any, today: date | None = None) -> bool:
    parsed = parse_date(value)
    if parsed is None:
        return False
    return parsed < (today or date.today())
