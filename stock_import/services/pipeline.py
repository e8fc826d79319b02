from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date

from ..models.config_models import DataSourceConfig
from ..models.import_result import ImportStats
from ..models.variant_item import VariantItem
from .cleaning import apply_style_prefix, canonicalize_colors, clean_styles
from .dedup import deduplicate_and_zero_future
from .discontinued import filter_discontinued_styles
from .expansion import expand_by_price
from .import_rules import apply_import_rules
from .variant_rules import apply_variant_rules, variant_sort_key

"""Import rule pipeline.

Stages run in a fixed order, each one taking the previous stage's item list:

1. style cleaning
2. import rules
3. color canonicalization
4. style prefixing
5. variant rules (size limits, zero-stock filter, stock expansion)
6. price-tier expansion, re-sorted in the stage 5 order
7. discontinued-style filtering (regular sources linked to a sale source)
8. deduplication and future-stock zeroing

The pipeline never touches a store; everything it needs from outside
(registry styles, style prices, today's date) arrives on ``PipelineContext``.
"""

__all__ = [
    "PipelineContext",
    "run_pipeline",
]

logger = logging.getLogger(__name__)


@dataclass
class PipelineContext:
    today: date | None = None
    style_prices: Mapping[str, float] | None = None
    # styles registered as discontinued by the linked sale source
    discontinued_styles: tuple[str, ...] = ()
    warnings: list[str] = field(default_factory=list)


def run_pipeline(
    items: list[VariantItem], config: DataSourceConfig, context: PipelineContext | None = None
) -> tuple[list[VariantItem], ImportStats]:
    context = context or PipelineContext()
    today = context.today or date.today()
    stats = ImportStats(total_parsed=len(items))

    items = clean_styles(items, config.cleaning)
    stats.after_clean = len(items)

    items, stats.import_rules_removed = apply_import_rules(items, config.import_rules, today)
    stats.after_import_rules = len(items)

    items, stats.colors_fixed = canonicalize_colors(items, config.color_map)
    items = apply_style_prefix(items, config)

    outcome = apply_variant_rules(items, config.variant_rules, today)
    items = outcome.items
    stats.variant_rules_filtered = outcome.filtered
    stats.variant_rules_size_filtered = outcome.size_filtered
    stats.variant_rules_added = outcome.added
    stats.after_variant_rules = len(items)

    items, stats.price_based_expansion = expand_by_price(
        items, config.price_expansion, context.style_prices, config.variant_rules.size_limits
    )
    if stats.price_based_expansion:
        items = sorted(items, key=variant_sort_key)
    stats.after_expansion = len(items)

    if not config.is_sale_source and config.linked_sale_source and context.discontinued_styles:
        filtered = filter_discontinued_styles(items, context.discontinued_styles)
        items = filtered.items
        stats.discontinued_styles_filtered = filtered.removed_count
        stats.discontinued_styles = list(filtered.discontinued_styles)
        if filtered.removed_count:
            logger.info(
                f"{config.source_id}: filtered {filtered.removed_count} items of "
                f"{len(filtered.discontinued_styles)} discontinued styles"
            )
    stats.after_discontinued_filter = len(items)

    items, stats.duplicates_removed, stats.future_stock_zeroed = deduplicate_and_zero_future(
        items, config.future_dates, today
    )
    stats.final_count = len(items)
    logger.debug(
        f"{config.source_id}: parsed={stats.total_parsed} clean={stats.after_clean} "
        f"variant={stats.after_variant_rules} expansion={stats.after_expansion} final={stats.final_count}"
    )
    return items, stats
