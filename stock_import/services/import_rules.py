from __future__ import annotations

import logging
import re
from datetime import date

from ..models.config_models import ImportRulesConfig
from ..models.variant_item import DEFAULT_COLOR, ONE_SIZE, VariantItem
from ..parsers.dates import is_date_in_past, is_valid_ship_date

"""Per-source import rules applied right after style cleaning.

Order: value replacements, price multiplier, price floor/ceiling,
minimum stock threshold, required fields. Items removed here are counted
in ``ImportStats.import_rules_removed``.
"""

__all__ = [
    "REPLACEABLE_FIELDS",
    "apply_value_replacements",
    "carries_future_stock",
    "apply_import_rules",
]

logger = logging.getLogger(__name__)

REPLACEABLE_FIELDS = ("style", "color", "size")


def apply_value_replacements(items: list[VariantItem], replacements: dict[str, dict[str, str]]) -> int:
    """Literal, case-insensitive substring replacement on style/color/size."""
    count = 0
    for field_name, table in replacements.items():
        if field_name not in REPLACEABLE_FIELDS or not table:
            continue
        compiled = [(re.compile(re.escape(src), re.IGNORECASE), dst) for src, dst in table.items() if src]
        for item in items:
            current = getattr(item, field_name)
            value = current
            for pattern, dst in compiled:
                value = pattern.sub(dst, value)
            value = value.strip()
            if value and value != current:
                setattr(item, field_name, value)
                item.rebuild_sku()
                count += 1
    return count


def carries_future_stock(item: VariantItem) -> bool:
    return item.has_future_stock or item.preserve_zero_stock or is_valid_ship_date(item.ship_date)


def _missing(item: VariantItem, field_name: str) -> bool:
    if field_name == "price":
        return item.price is None
    if field_name == "ship_date":
        return not is_valid_ship_date(item.ship_date)
    if field_name == "color":
        return item.color == DEFAULT_COLOR
    if field_name == "size":
        return item.size == ONE_SIZE
    return not str(getattr(item, field_name, "") or "").strip()


def apply_import_rules(
    items: list[VariantItem], rules: ImportRulesConfig, today: date | None = None
) -> tuple[list[VariantItem], int]:
    """Return the surviving items and how many were removed."""
    replaced = apply_value_replacements(items, rules.value_replacements)
    if replaced:
        logger.debug(f"value replacements made: {replaced}")

    kept: list[VariantItem] = []
    for item in items:
        if rules.price_multiplier and item.price is not None:
            item.price = round(item.price * rules.price_multiplier, 2)

        if item.price is not None:
            if rules.price_floor is not None and item.price < rules.price_floor:
                continue
            if rules.price_ceiling is not None and item.price > rules.price_ceiling:
                continue

        threshold = rules.min_stock_threshold
        if threshold > 0 and item.stock < threshold:
            # dated items survive until their date has passed
            if not carries_future_stock(item) or is_date_in_past(item.ship_date, today):
                continue

        if any(_missing(item, f) for f in rules.required_fields):
            continue
        kept.append(item)

    removed = len(items) - len(kept)
    if removed:
        logger.debug(f"import rules removed {removed} items")
    return kept, removed
