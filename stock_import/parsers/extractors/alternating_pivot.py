from __future__ import annotations

import re

from stock_import.models.config_models import DataSourceConfig
from stock_import.models.raw_matrix import RawMatrix, cell_text
from stock_import.models.variant_item import VariantItem

from ..cells import parse_price, read_stock
from ..columns import NOT_FOUND, PRICE_PATTERNS, lower_headers, resolve_column
from ..dates import normalize_ship_date
from .base import ExtractContext, cell_at, normalize_size_label, should_emit, text_at

"""Alternating pivot: each size column is followed by its availability-date column.

Columns 0 and 1 hold style and color; size/date pairs start at column 4.
"""

SIZE_HEADER = re.compile(
    r"^(OO0|OOO|OO|0|2|4|6|8|10|12|14|16|18|20|22|24|26|28|30)$", re.IGNORECASE
)
FIRST_SIZE_COLUMN = 4
DASH_PLACEHOLDERS = {"&ndash;", "–", "-"}


def extract_alternating_pivot(
    matrix: RawMatrix, config: DataSourceConfig, context: ExtractContext
) -> list[VariantItem]:
    items: list[VariantItem] = []
    if len(matrix) < 2:
        return items

    header_row = matrix.row(0)
    price_idx = resolve_column(config.column_mapping, lower_headers(header_row), "price", PRICE_PATTERNS)
    pairs = [
        (i, normalize_size_label(header_row[i]), i + 1)
        for i in range(FIRST_SIZE_COLUMN, len(header_row), 2)
        if SIZE_HEADER.match(cell_text(header_row[i]))
    ]
    if not pairs:
        return items

    for row_idx in range(1, len(matrix)):
        row = matrix.row(row_idx)
        if len(row) < 3:
            continue
        style = text_at(row, 0)
        color = text_at(row, 1)
        if not style or not color:
            context.skip_row(row_idx, "missing style or color")
            continue
        price = parse_price(cell_at(row, price_idx)) if price_idx != NOT_FOUND else None

        for size_col, size, date_col in pairs:
            cell = read_stock(cell_at(row, size_col), config.stock)
            raw_date = cell_at(row, date_col)
            ship_date = None
            if raw_date is not None and text_at(row, date_col) not in DASH_PLACEHOLDERS:
                ship_date = normalize_ship_date(raw_date)
            if not should_emit(cell.stock, ship_date, False):
                continue
            items.append(
                VariantItem.create(
                    style,
                    color,
                    size,
                    cell.stock,
                    price=price,
                    ship_date=ship_date,
                    raw_source_row=row_idx,
                )
            )
    return items
