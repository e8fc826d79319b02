from __future__ import annotations

from stock_import.models.config_models import (
    PriceExpansionConfig,
    PriceExpansionTier,
    SizeLimitConfig,
    StockExpansionRule,
)
from stock_import.models.variant_item import VariantItem
from stock_import.services.expansion import expand_by_price, expand_by_stock, select_tier

RULE = StockExpansionRule(expand_down_count=1, expand_up_count=1, min_trigger_stock=3)


def _sizes(items):
    return sorted((i.size, i.stock, i.is_expanded_size) for i in items)


def test_stock_expansion_creates_adjacent_sizes():
    items, added = expand_by_stock([VariantItem("S1", "Red", "6", stock=5)], [RULE])
    assert added == 2
    assert _sizes(items) == [("4", 0, True), ("6", 5, False), ("8", 0, True)]
    created = [i for i in items if i.is_expanded_size]
    assert all(i.expanded_from_size == "6" for i in created)
    assert {i.sku for i in created} == {"S1-Red-4", "S1-Red-8"}


def test_stock_expansion_below_trigger():
    items, added = expand_by_stock([VariantItem("S1", "Red", "6", stock=2)], [RULE])
    assert added == 0 and len(items) == 1


def test_existing_zero_stock_size_is_converted():
    base = [
        VariantItem("S1", "Red", "6", stock=5),
        VariantItem("S1", "Red", "8", stock=0, ship_date="2030-01-01"),
        VariantItem("S1", "Red", "4", stock=2),
    ]
    items, added = expand_by_stock(base, [RULE])
    assert added == 1
    assert len(items) == 3
    eight = next(i for i in items if i.size == "8")
    assert eight.is_expanded_size and eight.expanded_from_size == "6" and eight.ship_date is None
    four = next(i for i in items if i.size == "4")
    assert four.stock == 2 and not four.is_expanded_size


def test_expanded_items_never_trigger():
    seed = VariantItem("S1", "Red", "6", stock=9, is_expanded_size=True, expanded_from_size="4")
    items, added = expand_by_stock([seed], [RULE])
    assert added == 0 and items == [seed]


def test_first_qualifying_rule_wins():
    rules = [
        StockExpansionRule(expand_down_count=0, expand_up_count=2, min_trigger_stock=10),
        StockExpansionRule(expand_down_count=1, expand_up_count=0, min_trigger_stock=1),
    ]
    items, _ = expand_by_stock([VariantItem("S1", "Red", "6", stock=3)], rules)
    assert _sizes(items) == [("4", 0, True), ("6", 3, False)]


def test_expansion_respects_size_limits():
    limits = SizeLimitConfig(enabled=True, min_size="6", max_size="12")
    items, added = expand_by_stock([VariantItem("S1", "Red", "6", stock=5)], [RULE], limits)
    assert added == 1
    assert _sizes(items) == [("6", 5, False), ("8", 0, True)]


def test_unknown_size_passes_through():
    items, added = expand_by_stock([VariantItem("S1", "Red", "ONE SIZE", stock=5)], [RULE])
    assert added == 0 and len(items) == 1


TIERS = (
    PriceExpansionTier(min_price=0, max_price=300, expand_up_count=1),
    PriceExpansionTier(min_price=300, expand_down_count=1, expand_up_count=1),
)


def test_select_tier_first_containing():
    assert select_tier(100, TIERS) is TIERS[0]
    assert select_tier(300, TIERS) is TIERS[0]
    assert select_tier(301, TIERS) is TIERS[1]
    assert select_tier(None, TIERS) is None


def test_price_expansion_uses_style_prices_over_item_price():
    cfg = PriceExpansionConfig(enabled=True, tiers=TIERS)
    items = [VariantItem("P1", "Red", "6", stock=1, price=100.0)]
    expanded, added = expand_by_price(items, cfg, {"P1": 500.0})
    assert added == 2
    assert _sizes(expanded) == [("4", 0, True), ("6", 1, False), ("8", 0, True)]


def test_price_expansion_defaults_without_price():
    cfg = PriceExpansionConfig(enabled=True, default_expand_down=1)
    expanded, added = expand_by_price([VariantItem("P1", "Red", "6", stock=1)], cfg)
    assert added == 1 and _sizes(expanded)[0] == ("4", 0, True)


def test_price_expansion_skips_zero_stock_and_disabled():
    cfg = PriceExpansionConfig(enabled=True, tiers=TIERS)
    _, added = expand_by_price([VariantItem("P1", "Red", "6", stock=0, price=100.0)], cfg)
    assert added == 0
    _, added = expand_by_price([VariantItem("P1", "Red", "6", stock=1, price=100.0)], PriceExpansionConfig(tiers=TIERS))
    assert added == 0
    _, added = expand_by_price([VariantItem("P1", "Red", "6", stock=1)], PriceExpansionConfig(enabled=True))
    assert added == 0


def test_price_pass_does_not_duplicate_stock_expanded_sizes():
    items, _ = expand_by_stock([VariantItem("S1", "Red", "6", stock=5)], [RULE])
    cfg = PriceExpansionConfig(enabled=True, default_expand_down=1, default_expand_up=1)
    expanded, added = expand_by_price(items, cfg)
    assert added == 0
    assert len(expanded) == 3


def test_expanded_from_size_refers_to_real_item():
    items, _ = expand_by_stock(
        [VariantItem("S1", "Red", "6", stock=5), VariantItem("S1", "Blue", "M", stock=4)], [RULE]
    )
    real = {(i.style, i.color, i.size) for i in items if not i.is_expanded_size}
    for item in items:
        if item.is_expanded_size:
            assert item.stock == 0
            assert (item.style, item.color, item.expanded_from_size) in real
