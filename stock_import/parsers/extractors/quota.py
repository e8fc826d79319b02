from __future__ import annotations

import re

from stock_import.models.config_models import DataSourceConfig
from stock_import.models.raw_matrix import RawMatrix
from stock_import.models.variant_item import VariantItem

from ..cells import parse_price, read_stock
from ..columns import NOT_FOUND, PRICE_PATTERNS, lower_headers, resolve_column
from .base import ExtractContext, cell_at, text_at

"""Open-to-sell quota sheets.

Stock sits in numbered ``ots1 .. otsN`` columns; the sizes they refer to are
listed per row in a size-composition cell ("2 4 6 8 10"). Without that cell
a standard 2-18 run is assumed.
"""

OTS_HEADER = re.compile(r"^ots(\d+)$")
DEFAULT_SIZE_RUN = ("2", "4", "6", "8", "10", "12", "14", "16", "18")


def extract_quota(matrix: RawMatrix, config: DataSourceConfig, context: ExtractContext) -> list[VariantItem]:
    items: list[VariantItem] = []
    if len(matrix) < 2:
        return items

    headers = lower_headers(matrix.row(0))
    mapping = config.column_mapping
    style_idx = resolve_column(mapping, headers, "style", ("style",))
    color_idx = resolve_column(mapping, headers, "color", ("color",))
    price_idx = resolve_column(mapping, headers, "price", PRICE_PATTERNS)
    size_comp_idx = next((i for i, h in enumerate(headers) if "size_whole" in h or "size" in h), NOT_FOUND)

    ots_columns = sorted(
        ((int(m.group(1)), i) for i, h in enumerate(headers) if (m := OTS_HEADER.match(h))),
    )
    if style_idx == NOT_FOUND or not ots_columns:
        return items

    for row_idx in range(1, len(matrix)):
        row = matrix.row(row_idx)
        if len(row) < 3:
            continue
        style = text_at(row, style_idx)
        if not style:
            context.skip_row(row_idx, "missing style")
            continue
        color = text_at(row, color_idx) if color_idx != NOT_FOUND else None
        price = parse_price(cell_at(row, price_idx)) if price_idx != NOT_FOUND else None

        sizes: list[str] = []
        if size_comp_idx != NOT_FOUND:
            sizes = [tok for tok in text_at(row, size_comp_idx).split() if tok.isdigit()]
        if not sizes:
            sizes = list(DEFAULT_SIZE_RUN)

        for (_, col), size in zip(ots_columns, sizes):
            stock = read_stock(cell_at(row, col), config.stock).stock
            if stock > 0:
                items.append(
                    VariantItem.create(style, color, size, stock, price=price, raw_source_row=row_idx)
                )
    return items
