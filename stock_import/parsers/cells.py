from __future__ import annotations

import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from stock_import.models.config_models import CellPattern, StockConfig

from .dates import normalize_ship_date

"""Cell value normalization: raw spreadsheet cells -> stock quantities.

``normalize_stock`` handles plain numbers and stock words ("Yes", "Sold
Out", dashes). ``parse_complex_cell`` handles vendors that pack several
facts into one cell ("D", "3 - 3/15/2026", "Special Order") using
configured regular expressions. Neither ever raises on bad input; an
unreadable cell is worth 0.
"""

__all__ = [
    "DEFAULT_TEXT_MAPPINGS",
    "ComplexCellResult",
    "normalize_stock",
    "parse_complex_cell",
    "read_stock",
    "parse_price",
]

DEFAULT_TEXT_MAPPINGS: dict[str, int] = {
    "yes": 1,
    "no": 0,
    "last piece": 1,
    "lastpiece": 1,
    "in stock": 1,
    "sold out": 0,
    "out of stock": 0,
    "&ndash;": 0,
    "\u2013": 0,
    "\u2014": 0,
    "-": 0,
    "n/a": 0,
    "na": 0,
    "": 0,
}

_NON_DIGITS = re.compile(r"\D")
_GROUP_REF = re.compile(r"^\$(\d+)$")


@dataclass(frozen=True)
class ComplexCellResult:
    stock: int
    ship_date: str | None = None
    discontinued: bool = False
    special_order: bool = False
    matched: bool = False
    pattern_name: str | None = None


def _lookup_mapping(text: str, mappings: Any) -> int | None:
    """Find ``text`` in caller mappings (list of {text, value} or a dict)."""
    if not mappings:
        return None
    if isinstance(mappings, Mapping):
        for key, value in mappings.items():
            if str(key).strip().lower() == text:
                return int(value)
        return None
    if isinstance(mappings, Iterable):
        for entry in mappings:
            if not isinstance(entry, Mapping):
                continue
            entry_text = entry.get("text")
            if entry_text is not None and str(entry_text).strip().lower() == text:
                return int(entry.get("value", 0))
    return None


def _parse_quantity_text(text: str) -> int:
    compact = text.replace(",", "")
    try:
        number = float(compact)
    except ValueError:
        number = None
    if number is not None:
        if not math.isfinite(number):
            return 0
        return max(0, math.floor(number))
    if compact.startswith("-"):
        return 0
    digits = _NON_DIGITS.sub("", compact)
    return int(digits) if digits else 0


def normalize_stock(raw: Any, text_mappings: Any = None) -> int:
    """Convert a raw cell into a non-negative integer quantity.

    Lookup order for text: built-in defaults, then ``text_mappings``, then
    integer parsing with non-digit characters stripped. Anything else is 0.
    """
    if raw is None:
        return 0
    if isinstance(raw, bool):
        return 1 if raw else 0
    if isinstance(raw, (int, float)):
        if isinstance(raw, float) and not math.isfinite(raw):
            return 0
        return max(0, math.floor(raw))

    text = str(raw).strip().lower()
    if text in DEFAULT_TEXT_MAPPINGS:
        return DEFAULT_TEXT_MAPPINGS[text]
    mapped = _lookup_mapping(text, text_mappings)
    if mapped is not None:
        return max(0, mapped)
    return _parse_quantity_text(text)


def _group_value(match: re.Match[str], ref: str) -> str | None:
    m = _GROUP_REF.match(ref.strip())
    if not m:
        return None
    index = int(m.group(1))
    if index > (match.re.groups or 0):
        return None
    return match.group(index)


def parse_complex_cell(
    raw: Any, patterns: Iterable[CellPattern], text_mappings: Any = None
) -> ComplexCellResult:
    """Apply the first matching CellPattern; unmatched cells fall back to normalize_stock."""
    if isinstance(raw, str):
        value = raw.strip().lower()
        for pattern in patterns:
            try:
                match = re.search(pattern.match_expression, value, re.IGNORECASE)
            except re.error:
                continue
            if not match:
                continue

            stock = 0
            if pattern.extract_stock:
                group = _group_value(match, pattern.extract_stock)
                if group is not None:
                    stock = normalize_stock(group)
                elif not _GROUP_REF.match(pattern.extract_stock.strip()):
                    stock = normalize_stock(pattern.extract_stock)

            ship_date = None
            if pattern.extract_date:
                group = _group_value(match, pattern.extract_date)
                if group:
                    ship_date = normalize_ship_date(group) or group

            return ComplexCellResult(
                stock=stock,
                ship_date=ship_date,
                discontinued=pattern.marks_discontinued,
                special_order=pattern.marks_special_order,
                matched=True,
                pattern_name=pattern.name,
            )

    return ComplexCellResult(stock=normalize_stock(raw, text_mappings))


def read_stock(raw: Any, config: StockConfig) -> ComplexCellResult:
    """Normalize a stock cell using the data source's stock configuration."""
    if config.cell_patterns:
        return parse_complex_cell(raw, config.cell_patterns, config.text_mappings)
    return ComplexCellResult(stock=normalize_stock(raw, config.text_mappings))


def parse_price(raw: Any) -> float | None:
    """Parse a price cell; currency symbols and separators are ignored, <= 0 is no price."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        text = re.sub(r"[^\d.\-]", "", str(raw).replace(",", ""))
        try:
            value = float(text)
        except ValueError:
            return None
    if not math.isfinite(value) or value <= 0:
        return None
    return value
