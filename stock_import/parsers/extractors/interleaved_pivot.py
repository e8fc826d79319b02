from __future__ import annotations

import re

from stock_import.models.config_models import DataSourceConfig
from stock_import.models.raw_matrix import RawMatrix, cell_text, is_blank
from stock_import.models.variant_item import VariantItem

from ..cells import parse_price, read_stock
from ..columns import NOT_FOUND, lower_headers, resolve_column
from .base import ExtractContext, RowCursor, cell_at, text_at

"""Interleaved pivot: style rows (code + price) alternate with color rows (stock per size)."""

SIZE_HEADER = re.compile(r"^(00|0|2|4|6|8|10|12|14|16|18|20|22|24)$")
STYLE_CODE = re.compile(r"^#?\d{4,6}$|^#?\d{5}[A-Z]?$|^[A-Z]{2,3}\d{4,6}$", re.IGNORECASE)
NUMERIC_CODE = re.compile(r"^#?\d+$")
DEFAULT_PRICE_COLUMN = 1


def extract_interleaved_pivot(
    matrix: RawMatrix, config: DataSourceConfig, context: ExtractContext
) -> list[VariantItem]:
    items: list[VariantItem] = []
    if len(matrix) < 2:
        return items

    header_row = matrix.row(0)
    sizes = [
        (i, cell_text(header_row[i]))
        for i in range(1, len(header_row))
        if SIZE_HEADER.match(cell_text(header_row[i]))
    ]
    if not sizes:
        return items

    price_idx = DEFAULT_PRICE_COLUMN
    if config.column_mapping.get("price"):
        mapped = resolve_column(config.column_mapping, lower_headers(header_row), "price", ())
        if mapped != NOT_FOUND:
            price_idx = mapped

    cursor = RowCursor()
    for row_idx in range(1, len(matrix)):
        row = matrix.row(row_idx)
        if all(is_blank(c) for c in row):
            continue
        first = text_at(row, 0)

        if STYLE_CODE.match(first):
            cursor.start_style(first.lstrip("#"), price=parse_price(cell_at(row, price_idx)))
            continue
        if not cursor.has_style:
            continue
        if not first or NUMERIC_CODE.match(first):
            context.skip_row(row_idx, "unrecognized row in style block")
            continue

        for col, size in sizes:
            cell = read_stock(cell_at(row, col), config.stock)
            if cell.stock <= 0:
                continue
            items.append(
                VariantItem.create(
                    cursor.style,
                    first,
                    size,
                    cell.stock,
                    price=cursor.price,
                    raw_source_row=row_idx,
                )
            )
    return items
