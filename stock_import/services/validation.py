from __future__ import annotations

from collections.abc import Sequence

from ..models.config_models import ValidationConfig
from ..models.import_result import CheckResult, ValidationReport
from ..models.snapshot import ImportSnapshot, StyleSummary
from ..models.variant_item import VariantItem
from ..parsers.dates import is_valid_ship_date
from .sizes import size_rank

"""Checksum / delta validation against the previous import's snapshot.

Checks are reported, never enforced: a failing check does not stop an
import. The one mandatory guard (the safety net) lives in
``stock_import.services.safety_net``.
"""

__all__ = [
    "SNAPSHOT_LIST_LIMIT",
    "capture_snapshot",
    "within_tolerance",
    "validate_import",
]

SNAPSHOT_LIST_LIMIT = 500


def capture_snapshot(items: Sequence[VariantItem], list_limit: int = SNAPSHOT_LIST_LIMIT) -> ImportSnapshot:
    styles: dict[str, list[VariantItem]] = {}
    colors: dict[str, str] = {}
    for item in items:
        styles.setdefault(item.style, []).append(item)
        colors.setdefault(item.color.lower(), item.color)

    summaries = {
        style: StyleSummary(
            variant_count=len(group),
            colors=tuple(sorted({i.color for i in group})),
            sizes=tuple(sorted({i.size for i in group}, key=size_rank)),
            total_stock=sum(i.stock for i in group),
            has_discontinued=any(i.discontinued for i in group),
            has_future_date=any(is_valid_ship_date(i.ship_date) for i in group),
            expanded_count=sum(1 for i in group if i.is_expanded_size),
        )
        for style, group in styles.items()
    }
    return ImportSnapshot(
        item_count=len(items),
        total_stock=sum(i.stock for i in items),
        unique_style_count=len(styles),
        unique_color_count=len(colors),
        items_with_stock=sum(1 for i in items if i.stock > 0),
        items_with_price=sum(1 for i in items if i.price is not None and i.price > 0),
        discontinued_count=sum(1 for i in items if i.discontinued),
        unique_styles=tuple(sorted(styles))[:list_limit],
        unique_colors=tuple(sorted(colors.values()))[:list_limit],
        style_summaries=summaries,
    )


def within_tolerance(actual: float, expected: float, tolerance_percent: float) -> bool:
    if expected == 0:
        return actual == 0
    return abs(actual - expected) / expected * 100 <= tolerance_percent


def _percent(part: int, whole: int) -> float:
    return part / whole * 100 if whole else 0.0


def _change(current: int, previous: int) -> float:
    return (current - previous) / previous * 100


def _checksum_checks(current: ImportSnapshot, previous: ImportSnapshot | None, config: ValidationConfig) -> list[CheckResult]:
    rules = config.checksum
    if previous is None:
        return [
            CheckResult(
                name="Checksum Baseline",
                passed=False,
                message="no previous import snapshot; this import establishes the baseline",
                category="checksum",
            )
        ]
    tolerance = rules.tolerance_percent
    metrics = (
        (rules.verify_item_count, "Item Count Match", current.item_count, previous.item_count),
        (rules.verify_total_stock, "Total Stock Match", current.total_stock, previous.total_stock),
        (rules.verify_style_count, "Style Count Match", current.unique_style_count, previous.unique_style_count),
        (rules.verify_color_count, "Color Count Match", current.unique_color_count, previous.unique_color_count),
    )
    results = []
    for enabled, name, actual, expected in metrics:
        if not enabled:
            continue
        passed = within_tolerance(actual, expected, tolerance)
        if passed:
            message = f"{actual} = expected {expected} ({tolerance}% tolerance)"
        else:
            diff = f"{_change(actual, expected):.1f}%" if expected else "N/A"
            message = f"mismatch: {actual} vs expected {expected} ({diff} diff, tolerance {tolerance}%)"
        results.append(CheckResult(name=name, passed=passed, message=message, category="checksum"))
    return results


def _distribution_checks(current: ImportSnapshot, config: ValidationConfig) -> list[CheckResult]:
    rules = config.distribution
    total = current.item_count
    results = []
    if rules.min_percent_with_stock is not None:
        pct = _percent(current.items_with_stock, total)
        results.append(
            CheckResult(
                name="Min % with Stock",
                passed=pct >= rules.min_percent_with_stock,
                message=f"{pct:.1f}% have stock (min: {rules.min_percent_with_stock}%)",
                category="distribution",
            )
        )
    if rules.min_percent_with_price is not None:
        pct = _percent(current.items_with_price, total)
        results.append(
            CheckResult(
                name="Min % with Price",
                passed=pct >= rules.min_percent_with_price,
                message=f"{pct:.1f}% have price (min: {rules.min_percent_with_price}%)",
                category="distribution",
            )
        )
    if rules.max_percent_discontinued is not None:
        pct = _percent(current.discontinued_count, total)
        results.append(
            CheckResult(
                name="Max % Discontinued",
                passed=pct <= rules.max_percent_discontinued,
                message=f"{pct:.1f}% discontinued (max: {rules.max_percent_discontinued}%)",
                category="distribution",
            )
        )
    return results


def _bounds_checks(current: ImportSnapshot, config: ValidationConfig) -> list[CheckResult]:
    bounds = config.bounds
    results = []
    if bounds.min_items is not None:
        results.append(
            CheckResult(
                name="Minimum Items",
                passed=current.item_count >= bounds.min_items,
                message=f"{current.item_count} items (min: {bounds.min_items})",
                category="bounds",
            )
        )
    if bounds.max_items is not None:
        results.append(
            CheckResult(
                name="Maximum Items",
                passed=current.item_count <= bounds.max_items,
                message=f"{current.item_count} items (max: {bounds.max_items})",
                category="bounds",
            )
        )
    return results


def _delta_checks(current: ImportSnapshot, previous: ImportSnapshot | None, config: ValidationConfig) -> list[CheckResult]:
    rules = config.delta
    if previous is None:
        return [
            CheckResult(
                name="Historical Comparison",
                passed=True,
                message="no previous import to compare against",
                category="delta",
            )
        ]
    results = []
    pairs = (
        ("Item Count Change", rules.max_item_count_change_percent, current.item_count, previous.item_count),
        ("Total Stock Change", rules.max_stock_change_percent, current.total_stock, previous.total_stock),
    )
    for name, limit, now, before in pairs:
        if limit is None or not before:
            continue
        change = _change(now, before)
        results.append(
            CheckResult(
                name=name,
                passed=abs(change) <= limit,
                message=f"{change:+.1f}% from last import (max: ±{limit}%)",
                category="delta",
            )
        )
    return results


def _spot_checks(items: Sequence[VariantItem], config: ValidationConfig) -> list[CheckResult]:
    results = []
    for check in config.spot_checks:
        style = check.style.strip().upper()
        color = check.color.strip().upper() if check.color else None
        size = check.size.strip() if check.size else None
        matching = [
            i
            for i in items
            if style in i.style.upper()
            and (color is None or color in i.color.upper())
            and (size is None or i.size == size)
        ]
        if check.expect == "has_stock":
            passed = any(i.stock > 0 for i in matching)
            message = "has stock" if passed else "no stock found"
        elif check.expect == "has_price":
            passed = any(i.price for i in matching)
            message = "has price" if passed else "no price found"
        elif check.expect == "discontinued":
            passed = any(i.discontinued for i in matching)
            message = "is discontinued" if passed else "not discontinued"
        elif check.expect == "future_date":
            dated = next((i for i in matching if is_valid_ship_date(i.ship_date)), None)
            passed = dated is not None
            message = f"ship date {dated.ship_date}" if dated else "no ship date"
        else:
            passed = bool(matching)
            message = f"found {len(matching)} records" if passed else "not found"
        label = "/".join(p for p in (check.style, check.color, check.size) if p)
        results.append(CheckResult(name=f"Spot: {label}", passed=passed, message=message, category="spot_check"))
    return results


def validate_import(
    items: Sequence[VariantItem],
    previous: ImportSnapshot | None,
    config: ValidationConfig,
    current: ImportSnapshot | None = None,
) -> ValidationReport:
    """Run every enabled check; with none configured a basic non-empty check is reported."""
    current = current or capture_snapshot(items)
    results: list[CheckResult] = []
    if config.checksum.enabled:
        results.extend(_checksum_checks(current, previous, config))
    if config.distribution.enabled:
        results.extend(_distribution_checks(current, config))
    results.extend(_bounds_checks(current, config))
    if config.delta.enabled:
        results.extend(_delta_checks(current, previous, config))
    results.extend(_spot_checks(items, config))

    if not results:
        results.append(
            CheckResult(
                name="Data Exists",
                passed=current.item_count > 0,
                message=f"{current.item_count} items produced",
                category="basic",
            )
        )
    return ValidationReport(results=tuple(results))
