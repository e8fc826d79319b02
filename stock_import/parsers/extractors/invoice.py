from __future__ import annotations

import re

from stock_import.models.config_models import DataSourceConfig
from stock_import.models.raw_matrix import RawMatrix, cell_text
from stock_import.models.variant_item import VariantItem

from ..cells import parse_price, read_stock
from ..columns import NOT_FOUND, PRICE_PATTERNS, lower_headers, resolve_column
from .base import ExtractContext, cell_at, find_header_row, normalize_size_label, text_at

"""Goods-received invoice: code / color columns with two-digit size headers (02, 04 ...)."""

SIZE_HEADER = re.compile(r"^(000|00|0|02|04|06|08|10|12|14|16|18|20|22|24)$", re.IGNORECASE)


def _is_header(row) -> bool:
    joined = "|".join(cell_text(c).lower() for c in row)
    return "code" in joined and "color" in joined


def extract_invoice(matrix: RawMatrix, config: DataSourceConfig, context: ExtractContext) -> list[VariantItem]:
    items: list[VariantItem] = []
    if len(matrix) < 3:
        return items

    header_idx = find_header_row(matrix, _is_header)
    header_row = matrix.row(header_idx)
    headers = lower_headers(header_row)
    mapping = config.column_mapping
    code_idx = resolve_column(mapping, headers, "style", ("code",))
    color_idx = resolve_column(mapping, headers, "color", ("color",))
    price_idx = resolve_column(mapping, headers, "price", PRICE_PATTERNS)
    sizes = [
        (i, normalize_size_label(c)) for i, c in enumerate(header_row) if SIZE_HEADER.match(cell_text(c))
    ]
    if code_idx == NOT_FOUND or not sizes:
        return items

    for row_idx in range(header_idx + 1, len(matrix)):
        row = matrix.row(row_idx)
        if len(row) < 3:
            continue
        code = text_at(row, code_idx)
        if not code:
            context.skip_row(row_idx, "missing code")
            continue
        color = text_at(row, color_idx) if color_idx != NOT_FOUND else None
        price = parse_price(cell_at(row, price_idx)) if price_idx != NOT_FOUND else None

        for col, size in sizes:
            stock = read_stock(cell_at(row, col), config.stock).stock
            if stock > 0:
                items.append(
                    VariantItem.create(code, color, size, stock, price=price, raw_source_row=row_idx)
                )
    return items
