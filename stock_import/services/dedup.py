from __future__ import annotations

from datetime import date, timedelta

from ..models.config_models import FutureDateConfig
from ..models.variant_item import VariantItem
from ..parsers.dates import parse_date

"""Final pipeline stage: duplicate collapse and future-stock zeroing."""

__all__ = [
    "is_future_with_offset",
    "deduplicate_and_zero_future",
]


def is_future_with_offset(ship_date: str | None, offset_days: int, today: date) -> bool:
    parsed = parse_date(ship_date)
    if parsed is None:
        return False
    return parsed + timedelta(days=offset_days) > today


def deduplicate_and_zero_future(
    items: list[VariantItem], future: FutureDateConfig, today: date | None = None
) -> tuple[list[VariantItem], int, int]:
    """Keep the first item per style/color/size (case-insensitive).

    When future dates are enabled, stock on items whose ship date plus
    ``offset_days`` is after ``today`` is forced to 0.

    Returns:
        (items, duplicates_removed, stock_zeroed)
    """
    today = today or date.today()
    seen: set[tuple[str, str, str]] = set()
    result: list[VariantItem] = []
    zeroed = 0
    for item in items:
        key = item.variant_key
        if key in seen:
            continue
        seen.add(key)
        if future.enabled and item.ship_date and is_future_with_offset(item.ship_date, future.offset_days, today):
            if item.stock > 0:
                zeroed += 1
                if item.incoming_stock is None:
                    item.incoming_stock = item.stock
                item.stock = 0
                item.has_future_stock = True
        result.append(item)
    return result, len(items) - len(result), zeroed
