from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from ..models.config_models import VariantRulesConfig
from ..models.variant_item import VariantItem
from ..parsers.dates import is_date_in_past
from .expansion import expand_by_stock
from .import_rules import carries_future_stock
from .sizes import is_size_allowed, size_rank

"""Variant rules stage: size limits, zero-stock filter, stock expansion, sort."""

__all__ = [
    "VariantRulesOutcome",
    "keep_zero_stock_item",
    "variant_sort_key",
    "apply_variant_rules",
]


@dataclass(frozen=True)
class VariantRulesOutcome:
    items: list[VariantItem]
    size_filtered: int
    zero_stock_filtered: int
    added: int

    @property
    def filtered(self) -> int:
        return self.size_filtered + self.zero_stock_filtered


def keep_zero_stock_item(item: VariantItem, rules: VariantRulesConfig, today: date | None = None) -> bool:
    """Zero-stock filter decision for one item.

    Items carrying future stock survive while their date has not passed,
    unless ``filter_zero_stock_with_future_dates`` is set.
    """
    if item.stock > 0:
        return True
    if carries_future_stock(item):
        if rules.filter_zero_stock_with_future_dates:
            return False
        return not is_date_in_past(item.ship_date, today)
    return False


def variant_sort_key(item: VariantItem) -> tuple[str, str, float, str]:
    return (item.style.lower(), item.color.lower(), size_rank(item.size), item.size)


def apply_variant_rules(
    items: list[VariantItem], rules: VariantRulesConfig, today: date | None = None
) -> VariantRulesOutcome:
    limits = rules.size_limits
    sized = [i for i in items if is_size_allowed(i.size, limits, i.style)]
    size_filtered = len(items) - len(sized)

    if rules.filter_zero_stock:
        kept = [i for i in sized if keep_zero_stock_item(i, rules, today)]
    else:
        kept = sized
    zero_filtered = len(sized) - len(kept)

    expanded, added = expand_by_stock(kept, rules.expansion_rules, limits)
    expanded.sort(key=variant_sort_key)
    return VariantRulesOutcome(
        items=expanded,
        size_filtered=size_filtered,
        zero_stock_filtered=zero_filtered,
        added=added,
    )
