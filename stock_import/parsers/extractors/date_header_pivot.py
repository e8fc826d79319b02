from __future__ import annotations

from stock_import.models.config_models import DataSourceConfig
from stock_import.models.raw_matrix import RawMatrix
from stock_import.models.variant_item import DEFAULT_COLOR, ONE_SIZE, VariantItem

from ..cells import parse_price, read_stock
from ..columns import NOT_FOUND, PRICE_PATTERNS, lower_headers, resolve_column
from ..dates import normalize_ship_date
from .base import ExtractContext, cell_at, normalize_size_label, text_at

"""Date-header pivot: one row per composite product code, one column per arrival date.

The product code packs ``STYLE-COLOR-SIZE`` (or ``STYLE-SIZE``). The
"available" column is current stock; every date column with a quantity
becomes a separate zero-stock item carrying ``incoming_stock`` and the
column's date.
"""

CODE_DELIMITER = "-"


def date_columns(header_row) -> list[tuple[int, str]]:
    columns: list[tuple[int, str]] = []
    for i, raw in enumerate(header_row):
        iso = normalize_ship_date(raw)
        if iso:
            columns.append((i, iso))
    return columns


def split_product_code(code: str) -> tuple[str, str, str]:
    """Split ``STYLE-COLOR-SIZE``; styles may themselves contain the delimiter."""
    parts = code.split(CODE_DELIMITER)
    if len(parts) >= 3:
        style = CODE_DELIMITER.join(parts[:-2])
        color, size = parts[-2], parts[-1]
    elif len(parts) == 2:
        style, color, size = parts[0], "", parts[1]
    else:
        style, color, size = code, "", ""
    return style, color or DEFAULT_COLOR, normalize_size_label(size) or ONE_SIZE


def extract_date_header_pivot(
    matrix: RawMatrix, config: DataSourceConfig, context: ExtractContext
) -> list[VariantItem]:
    items: list[VariantItem] = []
    if len(matrix) < 2:
        return items

    header_row = matrix.row(0)
    headers = lower_headers(header_row)
    mapping = config.column_mapping
    style_idx = resolve_column(mapping, headers, "style", ("product", "code"))
    available_idx = resolve_column(mapping, headers, "stock", ("available",))
    price_idx = resolve_column(mapping, headers, "price", PRICE_PATTERNS)
    dated = date_columns(header_row)
    if style_idx == NOT_FOUND:
        return items

    for row_idx in range(1, len(matrix)):
        row = matrix.row(row_idx)
        if len(row) < 2:
            continue
        code = text_at(row, style_idx)
        if not code:
            context.skip_row(row_idx, "missing product code")
            continue
        style, color, size = split_product_code(code)
        if not style:
            context.skip_row(row_idx, f"unusable product code {code!r}")
            continue
        price = parse_price(cell_at(row, price_idx)) if price_idx != NOT_FOUND else None

        current = read_stock(cell_at(row, available_idx), config.stock).stock if available_idx != NOT_FOUND else 0
        if current > 0:
            items.append(
                VariantItem.create(style, color, size, current, price=price, raw_source_row=row_idx)
            )

        for col, iso in dated:
            incoming = read_stock(cell_at(row, col), config.stock).stock
            if incoming <= 0:
                continue
            items.append(
                VariantItem.create(
                    style,
                    color,
                    size,
                    0,
                    price=price,
                    ship_date=iso,
                    incoming_stock=incoming,
                    has_future_stock=True,
                    raw_source_row=row_idx,
                )
            )
    return items
