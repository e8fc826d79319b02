from __future__ import annotations

from stock_import.models.config_models import (
    ChecksumRules,
    CountBounds,
    DeltaRules,
    DistributionRules,
    SpotCheck,
    ValidationConfig,
)
from stock_import.models.variant_item import VariantItem
from stock_import.services.validation import capture_snapshot, validate_import, within_tolerance


def _items(n, stock=1):
    return [VariantItem(f"Acme {i}", "Red", "4", stock=stock) for i in range(n)]


def _by_name(report):
    return {r.name: r for r in report.results}


def test_data_exists_when_nothing_configured():
    report = validate_import(_items(3), None, ValidationConfig())
    assert [(r.name, r.passed, r.category) for r in report.results] == [("Data Exists", True, "basic")]

    empty = validate_import([], None, ValidationConfig())
    assert not empty.passed


def test_checksum_without_baseline_fails():
    cfg = ValidationConfig(checksum=ChecksumRules(enabled=True))
    report = validate_import(_items(3), None, cfg)
    assert report.failures[0].name == "Checksum Baseline"


def test_checksum_tolerance():
    previous = capture_snapshot(_items(10))
    current_items = _items(10)
    current_items[0].stock = 2  # total stock 11 vs 10

    loose = ValidationConfig(checksum=ChecksumRules(enabled=True, tolerance_percent=15))
    report = validate_import(current_items, previous, loose)
    assert report.passed
    assert set(_by_name(report)) == {"Item Count Match", "Total Stock Match", "Style Count Match"}

    strict = ValidationConfig(checksum=ChecksumRules(enabled=True, tolerance_percent=5))
    failed = validate_import(current_items, previous, strict)
    assert [r.name for r in failed.failures] == ["Total Stock Match"]


def test_within_tolerance_zero_expected():
    assert within_tolerance(0, 0, 0)
    assert not within_tolerance(1, 0, 50)


def test_distribution_checks():
    items = _items(4, stock=0)
    items[0].stock = 1
    items[1].price = 20.0
    cfg = ValidationConfig(
        distribution=DistributionRules(enabled=True, min_percent_with_stock=50, min_percent_with_price=25)
    )
    results = _by_name(validate_import(items, None, cfg))
    assert not results["Min % with Stock"].passed
    assert results["Min % with Price"].passed


def test_bounds_checks():
    cfg = ValidationConfig(bounds=CountBounds(min_items=5, max_items=10))
    results = _by_name(validate_import(_items(4), None, cfg))
    assert not results["Minimum Items"].passed
    assert results["Maximum Items"].passed


def test_delta_checks():
    cfg = ValidationConfig(delta=DeltaRules(enabled=True, max_item_count_change_percent=50))
    baseline = capture_snapshot(_items(10))
    results = _by_name(validate_import(_items(4), baseline, cfg))
    assert not results["Item Count Change"].passed
    assert "-60.0%" in results["Item Count Change"].message

    first = validate_import(_items(4), None, cfg)
    assert first.results[0].name == "Historical Comparison" and first.passed


def test_spot_checks():
    items = [
        VariantItem("Acme ACME-1", "Red", "4", stock=2, price=100.0),
        VariantItem("Acme ACME-2", "Navy", "6", ship_date="2026-05-01"),
    ]
    cfg = ValidationConfig(
        spot_checks=(
            SpotCheck(style="acme-1", color="red", size="4", expect="has_stock"),
            SpotCheck(style="ACME-1", expect="has_price"),
            SpotCheck(style="ACME-2", expect="future_date"),
            SpotCheck(style="ACME-2", expect="discontinued"),
            SpotCheck(style="ACME-9"),
        )
    )
    results = validate_import(items, None, cfg).results
    assert [r.passed for r in results] == [True, True, True, False, False]
    assert results[0].name == "Spot: acme-1/red/4"
    assert results[2].message == "ship date 2026-05-01"


def test_snapshot_aggregates():
    items = [
        VariantItem("Acme 1", "Red", "8", stock=2, price=10.0),
        VariantItem("Acme 1", "Red", "4", stock=0, is_expanded_size=True),
        VariantItem("Acme 2", "red", "M", stock=1, discontinued=True),
    ]
    snap = capture_snapshot(items)
    assert snap.item_count == 3
    assert snap.total_stock == 3
    assert snap.unique_style_count == 2
    assert snap.unique_color_count == 1
    assert snap.items_with_stock == 2
    assert snap.items_with_price == 1
    assert snap.discontinued_count == 1
    summary = snap.style_summaries["Acme 1"]
    assert summary.sizes == ("4", "8")
    assert summary.expanded_count == 1
