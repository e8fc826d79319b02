from __future__ import annotations

from stock_import.models.config_models import DataSourceConfig
from stock_import.models.raw_matrix import RawMatrix
from stock_import.models.variant_item import VariantItem

from ..cells import parse_price, read_stock
from ..columns import NOT_FOUND, PRICE_PATTERNS, lower_headers, resolve_column
from .base import ExtractContext, cell_at, text_at

"""Multi-brand store export: one row per variant, several vendors in one sheet.

Each item is tagged with its brand, taken from a vendor/brand column or
found by name inside the product-name field. The brand replaces the data
source name as the style prefix. All rows are kept, zero stock included.
"""

KNOWN_BRANDS = (
    "Jovani",
    "Sherri Hill",
    "Mac Duggal",
    "MacDuggal",
    "Terani",
    "Tarik Ediz",
    "Feriani",
    "Gia Franco",
    "Alyce",
    "Portia",
    "Mon Cheri",
    "Morilee",
    "Jadore",
    "Lara",
    "Johnathan Kayne",
    "Rachel Allan",
    "Colors Dress",
    "Colette",
    "Marsoni",
    "Cameron Blake",
    "La Femme",
    "MGNY",
    "Nicoletta",
    "Montage",
    "Tony Bowls",
)

VENDOR_KEYWORDS = ("vendor", "brand", "designer", "manufacturer")


def brand_from_product_name(name: str) -> str | None:
    lowered = name.lower()
    for brand in KNOWN_BRANDS:
        if brand.lower() in lowered:
            return brand
    return None


def extract_multi_brand(
    matrix: RawMatrix, config: DataSourceConfig, context: ExtractContext
) -> list[VariantItem]:
    items: list[VariantItem] = []
    if len(matrix) < 2:
        return items

    headers = lower_headers(matrix.row(0))
    mapping = config.column_mapping
    name_idx = next((i for i, h in enumerate(headers) if "product" in h and "name" in h), NOT_FOUND)
    vendor_idx = next(
        (i for i, h in enumerate(headers) if any(k in h for k in VENDOR_KEYWORDS)), NOT_FOUND
    )
    style_idx = resolve_column(mapping, headers, "style", ("style",))
    color_idx = resolve_column(mapping, headers, "color", ("color",))
    size_idx = resolve_column(mapping, headers, "size", ("size",))
    stock_idx = resolve_column(mapping, headers, "stock", ("stock", "qty", "quantity"))
    price_idx = resolve_column(mapping, headers, "price", PRICE_PATTERNS)
    if style_idx == NOT_FOUND:
        return items

    for row_idx in range(1, len(matrix)):
        row = matrix.row(row_idx)
        if len(row) < 3:
            continue
        style = text_at(row, style_idx)
        if not style:
            context.skip_row(row_idx, "missing style")
            continue

        brand = text_at(row, vendor_idx) if vendor_idx != NOT_FOUND else ""
        if not brand and name_idx != NOT_FOUND:
            brand = brand_from_product_name(text_at(row, name_idx)) or ""

        stock = read_stock(cell_at(row, stock_idx), config.stock).stock if stock_idx != NOT_FOUND else 0
        items.append(
            VariantItem.create(
                style,
                text_at(row, color_idx) if color_idx != NOT_FOUND else None,
                text_at(row, size_idx) if size_idx != NOT_FOUND else None,
                stock,
                price=parse_price(cell_at(row, price_idx)) if price_idx != NOT_FOUND else None,
                brand=brand or None,
                raw_source_row=row_idx,
            )
        )
    return items
