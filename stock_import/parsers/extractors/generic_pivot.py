from __future__ import annotations

from stock_import.models.config_models import DataSourceConfig
from stock_import.models.raw_matrix import RawMatrix
from stock_import.models.variant_item import VariantItem

from ..cells import parse_price, read_stock
from ..columns import NOT_FOUND, PRICE_PATTERNS, lower_headers, resolve_column
from ..dates import normalize_ship_date
from .base import (
    DEFAULT_DISCONTINUED_KEYWORDS,
    ExtractContext,
    cell_at,
    discontinued_keywords,
    file_marks_discontinued,
    find_header_row,
    is_size_header,
    matches_discontinued,
    normalize_size_label,
    should_emit,
    text_at,
)

"""Generic pivot: one row per style/color, one column per size."""

MIN_SIZE_COLUMNS = 5


def size_columns(header_row) -> list[tuple[int, str]]:
    return [
        (i, normalize_size_label(c))
        for i, c in enumerate(header_row)
        if is_size_header(c)
    ]


def extract_generic_pivot(
    matrix: RawMatrix, config: DataSourceConfig, context: ExtractContext
) -> list[VariantItem]:
    items: list[VariantItem] = []
    if len(matrix) < 2:
        return items

    header_idx = find_header_row(matrix, lambda row: len(size_columns(row)) >= MIN_SIZE_COLUMNS)
    header_row = matrix.row(header_idx)
    headers = lower_headers(header_row)
    mapping = config.column_mapping

    style_idx = resolve_column(mapping, headers, "style", ("style", "code", "item"))
    color_idx = resolve_column(mapping, headers, "color", ("color", "colour"))
    date_idx = resolve_column(mapping, headers, "shipDate", ("date", "eta", "due", "available"))
    status_idx = resolve_column(mapping, headers, "discontinued", ("status", "discontinued", "active"))
    price_idx = resolve_column(mapping, headers, "price", PRICE_PATTERNS)
    sizes = size_columns(header_row)
    if style_idx == NOT_FOUND or not sizes:
        return items

    keywords = discontinued_keywords(config, DEFAULT_DISCONTINUED_KEYWORDS + ("cl",))
    whole_file_discontinued = file_marks_discontinued(config, context)

    for row_idx in range(header_idx + 1, len(matrix)):
        row = matrix.row(row_idx)
        if len(row) < 3:
            continue
        style = text_at(row, style_idx)
        if not style:
            context.skip_row(row_idx, "missing style")
            continue

        ship_date = normalize_ship_date(cell_at(row, date_idx)) if date_idx != NOT_FOUND else None
        discontinued = whole_file_discontinued
        if not discontinued and status_idx != NOT_FOUND:
            discontinued = matches_discontinued(cell_at(row, status_idx), keywords)
        price = parse_price(cell_at(row, price_idx)) if price_idx != NOT_FOUND else None
        color = text_at(row, color_idx) if color_idx != NOT_FOUND else None

        for col, size in sizes:
            cell = read_stock(cell_at(row, col), config.stock)
            item_date = ship_date or cell.ship_date
            item_discontinued = discontinued or cell.discontinued
            if not should_emit(cell.stock, item_date, item_discontinued):
                continue
            items.append(
                VariantItem.create(
                    style,
                    color,
                    size,
                    cell.stock,
                    price=price,
                    ship_date=item_date,
                    discontinued=item_discontinued,
                    special_order=cell.special_order,
                    raw_source_row=row_idx,
                )
            )
    return items
