from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence

from ..models.config_models import (
    PriceExpansionConfig,
    PriceExpansionTier,
    SizeLimitConfig,
    StockExpansionRule,
)
from ..models.variant_item import VariantItem
from .sizes import adjacent_sizes, is_size_allowed

"""Size expansion engine.

Two independent triggers share one adjacency walk over the canonical size
order:

- stock-triggered: a real size with stock >= ``min_trigger_stock`` adds
  ``expand_down_count`` smaller and ``expand_up_count`` larger sizes
- price-triggered: the first tier whose price range contains the style's
  price decides the counts; styles without a price (or without a matching
  tier) use the configured defaults

An adjacent size that already exists with stock is left alone. One that
exists with zero stock (and is not itself expanded) is converted in place.
Expanded items never trigger further expansion.
"""

__all__ = [
    "ExpansionPlan",
    "expand_by_stock",
    "expand_by_price",
    "select_tier",
]

logger = logging.getLogger(__name__)

# (down, up, expanded stock) for one trigger item
ExpansionPlan = tuple[int, int, int]


def _size_key(style: str, color: str, size: str) -> tuple[str, str, str]:
    return (style.lower(), color.lower(), size.strip().upper())


def _expand(
    items: list[VariantItem],
    plan_for: Callable[[VariantItem], ExpansionPlan | None],
    limits: SizeLimitConfig | None,
) -> tuple[list[VariantItem], int]:
    by_key = {_size_key(i.style, i.color, i.size): i for i in items}
    triggered: set[tuple[str, str, str]] = set()
    created: list[VariantItem] = []
    converted = 0

    for item in items:
        if item.is_expanded_size:
            continue
        plan = plan_for(item)
        if plan is None:
            continue
        down, up, expanded_stock = plan
        if down <= 0 and up <= 0:
            continue
        own_key = _size_key(item.style, item.color, item.size)
        if own_key in triggered:
            continue
        triggered.add(own_key)

        for new_size in adjacent_sizes(item.size, down, up):
            if limits is not None and limits.enabled and not is_size_allowed(new_size, limits, item.style):
                continue
            key = _size_key(item.style, item.color, new_size)
            existing = by_key.get(key)
            if existing is not None:
                if existing.stock == 0 and not existing.is_expanded_size:
                    existing.stock = expanded_stock
                    existing.ship_date = None
                    existing.is_expanded_size = True
                    existing.expanded_from_size = item.size
                    converted += 1
                continue
            expanded = item.copy(
                size=new_size,
                stock=expanded_stock,
                ship_date=None,
                incoming_stock=None,
                has_future_stock=False,
                preserve_zero_stock=False,
                is_expanded_size=True,
                expanded_from_size=item.size,
            )
            by_key[key] = expanded
            created.append(expanded)

    return items + created, len(created) + converted


def expand_by_stock(
    items: list[VariantItem],
    rules: Sequence[StockExpansionRule],
    limits: SizeLimitConfig | None = None,
) -> tuple[list[VariantItem], int]:
    """Apply stock-triggered expansion; the first rule an item qualifies for wins."""
    active = [r for r in rules if r.expand_down_count > 0 or r.expand_up_count > 0]
    if not active:
        return items, 0

    def plan_for(item: VariantItem) -> ExpansionPlan | None:
        for rule in active:
            if item.stock >= max(rule.min_trigger_stock, 1):
                return rule.expand_down_count, rule.expand_up_count, rule.expanded_stock
        return None

    return _expand(items, plan_for, limits)


def select_tier(price: float | None, tiers: Sequence[PriceExpansionTier]) -> PriceExpansionTier | None:
    if price is None:
        return None
    for tier in tiers:
        if tier.contains(price):
            return tier
    return None


def expand_by_price(
    items: list[VariantItem],
    config: PriceExpansionConfig,
    style_prices: Mapping[str, float] | None = None,
    limits: SizeLimitConfig | None = None,
) -> tuple[list[VariantItem], int]:
    """Apply price-tier expansion to in-stock, non-expanded items.

    The style price comes from ``style_prices`` first, then the item's own
    price.
    """
    if not config.enabled:
        return items, 0
    has_defaults = config.default_expand_down > 0 or config.default_expand_up > 0
    if not config.tiers and not has_defaults:
        logger.debug("price expansion enabled without tiers or defaults; skipping")
        return items, 0
    prices = style_prices or {}

    def plan_for(item: VariantItem) -> ExpansionPlan | None:
        if item.stock <= 0:
            return None
        down, up = config.default_expand_down, config.default_expand_up
        price = prices.get(item.style, item.price)
        tier = select_tier(price, config.tiers)
        if tier is not None:
            down, up = tier.expand_down_count, tier.expand_up_count
        return down, up, config.expanded_stock

    return _expand(items, plan_for, limits)
