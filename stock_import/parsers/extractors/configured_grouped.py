from __future__ import annotations

import re

from stock_import.models.config_models import DataSourceConfig, GroupedPivotConfig
from stock_import.models.raw_matrix import RawMatrix, cell_text, is_blank
from stock_import.models.variant_item import VariantItem

from ..cells import parse_price, read_stock
from .base import ExtractContext, RowCursor, cell_at, text_at

"""Grouped pivot described explicitly by the data source's ``grouped_pivot`` block.

Used for section layouts the detector cannot recognize by itself: the
configuration says where the style, color and size columns are and how a
style header row can be told apart from a color row. Like the detected
grouped pivot, every style/color/size combination is kept.
"""

_STYLE_LABEL = re.compile(r"^(style|item)\s*#?\s*", re.IGNORECASE)
STYLE_ROW_EMPTY_RATIO = 0.8
STYLE_ROW_MAX_CELLS = 2


def _is_zero_or_blank(value) -> bool:
    return is_blank(value) or value == 0


def is_style_header_row(row, layout: GroupedPivotConfig, size_count: int) -> bool:
    first = text_at(row, layout.style_column)
    if not first:
        return False
    if layout.style_detection == "pattern":
        if not layout.style_pattern:
            return False
        try:
            return re.search(layout.style_pattern, first, re.IGNORECASE) is not None
        except re.error:
            return False
    if layout.style_detection == "column_count":
        return sum(1 for c in row if not _is_zero_or_blank(c)) <= STYLE_ROW_MAX_CELLS
    # single_cell: (nearly) every size cell is empty
    empty = sum(
        1 for j in range(size_count) if _is_zero_or_blank(cell_at(row, layout.size_start_column + j))
    )
    return empty >= size_count * STYLE_ROW_EMPTY_RATIO


def _size_labels(matrix: RawMatrix, layout: GroupedPivotConfig) -> list[str]:
    if layout.size_labels:
        return list(layout.size_labels)
    header = matrix.row(layout.data_start_row - 1) if layout.data_start_row > 0 else ()
    return [cell_text(c) for c in header[layout.size_start_column:] if not is_blank(c)]


def extract_configured_grouped(
    matrix: RawMatrix, config: DataSourceConfig, context: ExtractContext
) -> list[VariantItem]:
    items: list[VariantItem] = []
    layout = config.grouped_pivot
    if layout is None:
        context.warn("configured grouped pivot selected without a grouped_pivot block")
        return items

    labels = _size_labels(matrix, layout)
    if not labels:
        return items
    skip = [p.lower() for p in layout.skip_patterns]

    cursor = RowCursor()
    for row_idx in range(layout.data_start_row, len(matrix)):
        row = matrix.row(row_idx)
        if all(is_blank(c) for c in row):
            continue
        first = text_at(row, layout.style_column).lower()
        if skip and any(p in first for p in skip):
            continue

        if is_style_header_row(row, layout, len(labels)):
            cursor.start_style(_STYLE_LABEL.sub("", text_at(row, layout.style_column)).strip())
            continue
        if not cursor.has_style:
            continue
        color = text_at(row, layout.color_column)
        if not color:
            context.skip_row(row_idx, "missing color")
            continue
        price = parse_price(cell_at(row, layout.price_column)) if layout.price_column is not None else None

        for j, size in enumerate(labels):
            col = layout.size_start_column + j
            if col >= len(row):
                continue
            cell = read_stock(row[col], config.stock)
            items.append(
                VariantItem.create(
                    cursor.style,
                    color,
                    size,
                    cell.stock,
                    price=price,
                    ship_date=cell.ship_date,
                    discontinued=cell.discontinued,
                    special_order=cell.special_order,
                    raw_source_row=row_idx,
                )
            )
    return items
