from __future__ import annotations

import re

from stock_import.models.config_models import DataSourceConfig
from stock_import.models.raw_matrix import RawMatrix, cell_text
from stock_import.models.variant_item import VariantItem

from ..cells import parse_price, read_stock
from ..columns import NOT_FOUND, PRICE_PATTERNS, lower_headers, resolve_column
from ..dates import normalize_ship_date
from .base import ExtractContext, RowCursor, cell_at, find_header_row, text_at

"""Grouped pivot: a style (and its delivery window) is stated once, colors follow.

Every style/color/size combination is kept, including zero stock, so that
stock-triggered size expansion later has base rows to expand from.
"""

SIZE_HEADER = re.compile(r"^(0|2|4|6|8|10|12|14|16|18|20|22|24|26|28|30)$")
IMMEDIATE_DELIVERY = "NOW"


def _is_header(row) -> bool:
    joined = "|".join(cell_text(c).upper() for c in row)
    return "STYLE" in joined and "COLOR" in joined


def extract_grouped_pivot(
    matrix: RawMatrix, config: DataSourceConfig, context: ExtractContext
) -> list[VariantItem]:
    items: list[VariantItem] = []
    if len(matrix) < 2:
        return items

    header_idx = find_header_row(matrix, _is_header)
    header_row = matrix.row(header_idx)
    headers = lower_headers(header_row)
    mapping = config.column_mapping

    delivery_idx = next((i for i, h in enumerate(headers) if "delivery" in h), NOT_FOUND)
    style_idx = resolve_column(mapping, headers, "style", ("style",))
    color_idx = resolve_column(mapping, headers, "color", ("color",))
    price_idx = resolve_column(mapping, headers, "price", PRICE_PATTERNS)

    sizes = [
        (i, cell_text(header_row[i]))
        for i in range(max(color_idx + 1, 3), len(header_row))
        if SIZE_HEADER.match(cell_text(header_row[i]))
    ]
    if style_idx == NOT_FOUND or color_idx == NOT_FOUND or not sizes:
        return items

    cursor = RowCursor()
    for row_idx in range(header_idx + 1, len(matrix)):
        row = matrix.row(row_idx)
        if len(row) < 3:
            continue
        style = text_at(row, style_idx)
        color = text_at(row, color_idx)
        delivery = text_at(row, delivery_idx) if delivery_idx != NOT_FOUND else ""
        if style:
            cursor.start_style(style, delivery)
        if not color or not cursor.has_style:
            continue

        delivery = cursor.delivery or delivery
        ship_date = None
        if delivery and delivery.upper() != IMMEDIATE_DELIVERY:
            ship_date = normalize_ship_date(delivery) or delivery
        price = parse_price(cell_at(row, price_idx)) if price_idx != NOT_FOUND else None

        for col, size in sizes:
            cell = read_stock(cell_at(row, col), config.stock)
            items.append(
                VariantItem.create(
                    cursor.style,
                    color,
                    size,
                    cell.stock,
                    price=price,
                    ship_date=ship_date,
                    discontinued=cell.discontinued,
                    special_order=cell.special_order,
                    raw_source_row=row_idx,
                )
            )
    return items
