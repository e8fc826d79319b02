from __future__ import annotations

from stock_import.models.config_models import DataSourceConfig
from stock_import.models.raw_matrix import RawMatrix
from stock_import.models.variant_item import VariantItem

from ..cells import parse_price, read_stock
from ..columns import NOT_FOUND, lower_headers, resolve_column
from ..dates import normalize_ship_date
from .base import (
    ExtractContext,
    cell_at,
    discontinued_keywords,
    file_marks_discontinued,
    find_header_row,
    matches_discontinued,
    should_emit,
    text_at,
)

"""One row per variant: style / color / size / stock columns."""

STYLE_PATTERNS = ("style", "style#", "item", "product_id", "product", "code", "sku")
COLOR_PATTERNS = ("color", "colour", "_color_name", "color_descript")
SIZE_PATTERNS = ("size", "_size", "sizename")
STOCK_PATTERNS = (
    "stock", "qty", "quantity", "available", "onhand", "ats_qty",
    "opentosale", "inventory", "_inventory_level", "immediate stock",
)
PRICE_PATTERNS = ("price", "wholesale", "cost", "line price", "msrp", "_price")
DATE_PATTERNS = ("eta", "ship", "date", "arrival", "expected", "future ship")
STATUS_PATTERNS = ("status", "discontinued", "active", "_status")


def extract_rows(matrix: RawMatrix, config: DataSourceConfig, context: ExtractContext) -> list[VariantItem]:
    items: list[VariantItem] = []
    if len(matrix) < 2:
        return items

    mapping = config.column_mapping
    header_idx = find_header_row(
        matrix,
        lambda row: resolve_column(mapping, lower_headers(row), "style", STYLE_PATTERNS) != NOT_FOUND,
    )
    headers = lower_headers(matrix.row(header_idx))

    style_idx = resolve_column(mapping, headers, "style", STYLE_PATTERNS)
    if style_idx == NOT_FOUND:
        return items
    color_idx = resolve_column(mapping, headers, "color", COLOR_PATTERNS)
    size_idx = resolve_column(mapping, headers, "size", SIZE_PATTERNS)
    stock_idx = resolve_column(mapping, headers, "stock", STOCK_PATTERNS)
    price_idx = resolve_column(mapping, headers, "price", PRICE_PATTERNS)
    date_idx = resolve_column(mapping, headers, "shipDate", DATE_PATTERNS)
    status_idx = resolve_column(mapping, headers, "discontinued", STATUS_PATTERNS)

    keywords = discontinued_keywords(config)
    whole_file_discontinued = file_marks_discontinued(config, context)

    for row_idx in range(header_idx + 1, len(matrix)):
        row = matrix.row(row_idx)
        if len(row) < 2:
            continue
        style = text_at(row, style_idx)
        if not style:
            context.skip_row(row_idx, "missing style")
            continue

        cell = read_stock(cell_at(row, stock_idx), config.stock) if stock_idx != NOT_FOUND else None
        stock = cell.stock if cell else 0

        ship_date = None
        if date_idx != NOT_FOUND:
            raw_date = cell_at(row, date_idx)
            ship_date = normalize_ship_date(raw_date) or (text_at(row, date_idx) or None)
        if ship_date is None and cell is not None:
            ship_date = cell.ship_date

        discontinued = whole_file_discontinued or (cell is not None and cell.discontinued)
        if not discontinued and status_idx != NOT_FOUND:
            discontinued = matches_discontinued(cell_at(row, status_idx), keywords)

        if not should_emit(stock, ship_date, discontinued):
            continue
        items.append(
            VariantItem.create(
                style,
                text_at(row, color_idx) if color_idx != NOT_FOUND else None,
                text_at(row, size_idx) if size_idx != NOT_FOUND else None,
                stock,
                price=parse_price(cell_at(row, price_idx)) if price_idx != NOT_FOUND else None,
                ship_date=ship_date,
                discontinued=discontinued,
                special_order=cell.special_order if cell else False,
                raw_source_row=row_idx,
            )
        )
    return items
