from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from stock_import.models.config_models import DataSourceConfig
from stock_import.models.raw_matrix import RawMatrix, cell_text
from stock_import.models.variant_item import VariantItem

from ..dates import is_valid_ship_date

"""Shared extractor contract and helpers.

Every extractor is a plain function ``(matrix, config, context) -> items``.
Row-level problems are recorded on the context and never raised.
"""

__all__ = [
    "Extractor",
    "ExtractContext",
    "RowCursor",
    "DEFAULT_DISCONTINUED_KEYWORDS",
    "cell_at",
    "text_at",
    "find_header_row",
    "SIZE_HEADER",
    "is_size_header",
    "normalize_size_label",
    "should_emit",
    "discontinued_keywords",
    "matches_discontinued",
    "file_marks_discontinued",
]

DEFAULT_DISCONTINUED_KEYWORDS = ("discontinued", "disc", "inactive", "d", "no", "n", "false", "0")

HEADER_SCAN_ROWS = 5

_LEADING_ZERO_SIZE = re.compile(r"^0+[1-9]\d*$")
# numeric sizes 000-36 plus lettered-zero and leading-zero spellings
SIZE_HEADER = re.compile(r"^(000|00|OO0|OOO|OO|0|0?[2468]|1[02468]|2[02468]|3[0246])$", re.IGNORECASE)


@dataclass
class ExtractContext:
    """Per-run information and diagnostics shared with an extractor."""
    data_source_name: str = ""
    file_name: str | None = None
    warnings: list[str] = field(default_factory=list)
    skipped_rows: list[tuple[int, str]] = field(default_factory=list)

    def skip_row(self, row_index: int, reason: str) -> None:
        self.skipped_rows.append((row_index, reason))

    def warn(self, message: str) -> None:
        self.warnings.append(message)


@dataclass
class RowCursor:
    """Carry-forward state for layouts that state a style once above its rows."""
    style: str = ""
    color: str = ""
    delivery: str = ""
    price: float | None = None

    def start_style(self, style: str, delivery: str = "", price: float | None = None) -> None:
        self.style = style
        self.delivery = delivery
        self.price = price
        self.color = ""

    @property
    def has_style(self) -> bool:
        return bool(self.style)


Extractor = Callable[[RawMatrix, DataSourceConfig, ExtractContext], list[VariantItem]]


def cell_at(row: Sequence[Any], index: int) -> Any:
    if 0 <= index < len(row):
        return row[index]
    return None


def text_at(row: Sequence[Any], index: int) -> str:
    return cell_text(cell_at(row, index))


def find_header_row(
    matrix: RawMatrix, predicate: Callable[[Sequence[Any]], bool], default: int = 0
) -> int:
    """Index of the first of the leading rows accepted by ``predicate``."""
    for i in range(min(HEADER_SCAN_ROWS, len(matrix))):
        if predicate(matrix.row(i)):
            return i
    return default


def normalize_size_label(raw: Any) -> str:
    """Fold lettered zero variants and leading-zero numerics: OO0 -> 000, OO -> 00, 06 -> 6."""
    text = cell_text(raw)
    upper = text.upper()
    if upper in ("OO0", "OOO"):
        return "000"
    if upper == "OO":
        return "00"
    if _LEADING_ZERO_SIZE.match(text):
        return text.lstrip("0")
    return text


def is_size_header(value: Any) -> bool:
    return bool(SIZE_HEADER.match(cell_text(value)))


def should_emit(stock: int, ship_date: str | None, discontinued: bool) -> bool:
    return stock > 0 or (ship_date is not None and is_valid_ship_date(ship_date)) or discontinued


def discontinued_keywords(config: DataSourceConfig, defaults: Sequence[str] = DEFAULT_DISCONTINUED_KEYWORDS) -> tuple[str, ...]:
    return config.discontinued.keywords or tuple(defaults)


def matches_discontinued(value: Any, keywords: Sequence[str]) -> bool:
    """Status cell check: exact keyword, or prefix/containment for keywords of 3+ chars."""
    text = cell_text(value).lower()
    if not text:
        return False
    for keyword in keywords:
        if text == keyword:
            return True
        if len(keyword) >= 3 and (text.startswith(keyword) or keyword in text):
            return True
    return False


def file_marks_discontinued(config: DataSourceConfig, context: ExtractContext) -> bool:
    marker = config.discontinued.file_name_marker.lower()
    return bool(marker) and marker in (context.file_name or "").lower()
