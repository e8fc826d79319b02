from __future__ import annotations

import re
from typing import Any

from stock_import.models.config_models import DataSourceConfig
from stock_import.models.raw_matrix import RawMatrix, is_blank
from stock_import.models.variant_item import VariantItem

from ..cells import parse_price, read_stock
from ..columns import NOT_FOUND, PRICE_PATTERNS, lower_headers, resolve_column
from ..dates import excel_serial_to_date, normalize_ship_date
from .base import ExtractContext, RowCursor, cell_at, text_at

"""Sectioned inventory report.

Layout: a style row announces the style (column 0) and its size labels
(column 13 onwards); the rows below it are either ``D`` rows (current
stock) or dated rows (incoming stock), with the color in column 11.
``D`` means current stock here, not discontinued.
"""

MIN_ROWS = 5
PRICE_SCAN_ROWS = 15
SIZE_COLUMN_START = 13
NAME_COLUMN = 7
COLOR_COLUMN = 11
CURRENT_STOCK_MARKER = "D"

_STYLE_CODE = re.compile(r"^\d{2}[A-Z]{2,}", re.IGNORECASE)
_LONG_NUMBER = re.compile(r"^\d{5,}$")
_DIGITS = re.compile(r"^\d+$")
_DATE_TEXT = re.compile(r"^\d{1,2}/\d{1,2}/\d{4}$|^\d{4}-\d{2}-\d{2}$|^\d{1,2}-\d{1,2}-\d{4}$")


def _is_serial_date(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and 43000 < value < 50000


def _is_style_row(row) -> bool:
    first = text_at(row, 0)
    if first.upper() == CURRENT_STOCK_MARKER or _DATE_TEXT.match(first) or _is_serial_date(cell_at(row, 0)):
        return False
    size_marker = text_at(row, SIZE_COLUMN_START)
    return bool(
        (_DIGITS.match(size_marker) and not is_blank(cell_at(row, NAME_COLUMN)))
        or _STYLE_CODE.match(first)
        or _LONG_NUMBER.match(first)
    )


def extract_sectioned_report(
    matrix: RawMatrix, config: DataSourceConfig, context: ExtractContext
) -> list[VariantItem]:
    items: list[VariantItem] = []
    if len(matrix) < MIN_ROWS:
        return items

    price_idx = NOT_FOUND
    cursor = RowCursor()
    sizes: list[tuple[int, str]] = []

    for row_idx, row in enumerate(matrix.rows):
        if not row:
            continue
        first = text_at(row, 0)

        if row_idx < PRICE_SCAN_ROWS and price_idx == NOT_FOUND and len(row) > 5:
            price_idx = resolve_column(config.column_mapping, lower_headers(row), "price", PRICE_PATTERNS)

        if _is_style_row(row):
            cursor.start_style(first)
            sizes = [
                (j, text_at(row, j))
                for j in range(SIZE_COLUMN_START, len(row))
                if not is_blank(row[j])
            ]
            continue

        is_current = first == CURRENT_STOCK_MARKER
        ship_date = None
        if _DATE_TEXT.match(first):
            ship_date = normalize_ship_date(first, day_first=True)
        elif _is_serial_date(cell_at(row, 0)):
            ship_date = excel_serial_to_date(cell_at(row, 0))
        if not (is_current or ship_date):
            continue

        color = text_at(row, COLOR_COLUMN)
        if not color or not cursor.has_style:
            context.skip_row(row_idx, "stock row without color or style")
            continue
        price = parse_price(cell_at(row, price_idx)) if price_idx != NOT_FOUND else None

        for col, size in sizes:
            stock = read_stock(cell_at(row, col), config.stock).stock
            if stock <= 0 and not ship_date:
                continue
            items.append(
                VariantItem.create(
                    cursor.style,
                    color,
                    size,
                    stock,
                    price=price,
                    ship_date=ship_date,
                    has_future_stock=bool(ship_date),
                    preserve_zero_stock=bool(ship_date) and stock == 0,
                    raw_source_row=row_idx,
                )
            )
    return items
