from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

"""Rule-family configuration dataclasses.

One frozen dataclass per rule family. Every field has a default so that a
partially specified data source is still complete once built; layering of
defaults / stored values / per-run overrides happens on plain dicts in
``stock_import.config.loader`` before these objects are built.
"""

__all__ = [
    "CellPattern",
    "StockConfig",
    "DiscontinuedConfig",
    "FutureDateConfig",
    "FindReplaceRule",
    "PrefixRule",
    "CleaningConfig",
    "SizeLimitConfig",
    "SizeLimitOverride",
    "StockExpansionRule",
    "VariantRulesConfig",
    "PriceExpansionTier",
    "PriceExpansionConfig",
    "ImportRulesConfig",
    "ChecksumRules",
    "DistributionRules",
    "CountBounds",
    "DeltaRules",
    "SpotCheck",
    "ValidationConfig",
    "GroupedPivotConfig",
    "DataSourceConfig",
    "DatabaseConfig",
    "ImportConfig",
    "SOURCE_TYPE_REGULAR",
    "SOURCE_TYPE_SALES",
]

SOURCE_TYPE_REGULAR = "regular"
SOURCE_TYPE_SALES = "sales"


@dataclass(frozen=True)
class CellPattern:
    """Regular-expression rule for cells that encode several facts.

    ``extract_stock`` is either ``"$N"`` (capture group N) or a literal
    integer string; ``extract_date`` is ``"$N"``.
    """
    name: str
    match_expression: str
    extract_stock: str | None = None
    extract_date: str | None = None
    marks_discontinued: bool = False
    marks_special_order: bool = False


@dataclass(frozen=True)
class StockConfig:
    # list[{"text": str, "value": int}] or {text: value}
    text_mappings: Any = None
    cell_patterns: tuple[CellPattern, ...] = ()


@dataclass(frozen=True)
class DiscontinuedConfig:
    keywords: tuple[str, ...] = ()  # empty -> extractor defaults
    file_name_marker: str = "discontinued"


@dataclass(frozen=True)
class FutureDateConfig:
    enabled: bool = True
    offset_days: int = 0


@dataclass(frozen=True)
class FindReplaceRule:
    find: str
    replace: str = ""


@dataclass(frozen=True)
class PrefixRule:
    pattern: str
    prefix: str


@dataclass(frozen=True)
class CleaningConfig:
    trim_whitespace: bool = True
    remove_letters: bool = False
    remove_numbers: bool = False
    remove_special_chars: bool = False
    remove_first_n: int = 0
    remove_last_n: int = 0
    find_text: str | None = None
    replace_text: str = ""
    find_replace_rules: tuple[FindReplaceRule, ...] = ()
    remove_patterns: tuple[str, ...] = ()
    use_custom_prefixes: bool = False
    style_prefix_rules: tuple[PrefixRule, ...] = ()


@dataclass(frozen=True)
class SizeLimitOverride:
    pattern: str
    min_size: str | None = None
    max_size: str | None = None
    min_w_size: str | None = None
    max_w_size: str | None = None
    min_letter_size: str | None = None
    max_letter_size: str | None = None


@dataclass(frozen=True)
class SizeLimitConfig:
    enabled: bool = False
    min_size: str | None = None
    max_size: str | None = None
    min_w_size: str | None = None
    max_w_size: str | None = None
    min_letter_size: str | None = None
    max_letter_size: str | None = None
    allowed_sizes: tuple[str, ...] = ()
    prefix_overrides: tuple[SizeLimitOverride, ...] = ()


@dataclass(frozen=True)
class StockExpansionRule:
    expand_down_count: int = 0
    expand_up_count: int = 0
    min_trigger_stock: int = 1
    expanded_stock: int = 0


@dataclass(frozen=True)
class VariantRulesConfig:
    filter_zero_stock: bool = False
    # drop zero-stock items even when they carry a valid future ship date
    filter_zero_stock_with_future_dates: bool = False
    size_limits: SizeLimitConfig = field(default_factory=SizeLimitConfig)
    expansion_rules: tuple[StockExpansionRule, ...] = ()


@dataclass(frozen=True)
class PriceExpansionTier:
    min_price: float
    max_price: float | None = None
    expand_down_count: int = 0
    expand_up_count: int = 0

    def contains(self, price: float) -> bool:
        if price < self.min_price:
            return False
        return self.max_price is None or price <= self.max_price


@dataclass(frozen=True)
class PriceExpansionConfig:
    enabled: bool = False
    tiers: tuple[PriceExpansionTier, ...] = ()
    default_expand_down: int = 0
    default_expand_up: int = 0
    expanded_stock: int = 0


@dataclass(frozen=True)
class ImportRulesConfig:
    # field -> {from: to}; field is one of style/color/size
    value_replacements: dict[str, dict[str, str]] = field(default_factory=dict)
    price_multiplier: float | None = None
    price_floor: float | None = None
    price_ceiling: float | None = None
    min_stock_threshold: int = 0
    required_fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class ChecksumRules:
    enabled: bool = False
    tolerance_percent: float = 0.0
    verify_item_count: bool = True
    verify_total_stock: bool = True
    verify_style_count: bool = True
    verify_color_count: bool = False


@dataclass(frozen=True)
class DistributionRules:
    enabled: bool = False
    min_percent_with_stock: float | None = None
    min_percent_with_price: float | None = None
    max_percent_discontinued: float | None = None


@dataclass(frozen=True)
class CountBounds:
    min_items: int | None = None
    max_items: int | None = None


@dataclass(frozen=True)
class DeltaRules:
    enabled: bool = False
    max_item_count_change_percent: float | None = None
    max_stock_change_percent: float | None = None


@dataclass(frozen=True)
class SpotCheck:
    style: str
    color: str | None = None
    size: str | None = None
    expect: str = "exists"  # exists|has_stock|has_price|discontinued|future_date


@dataclass(frozen=True)
class ValidationConfig:
    checksum: ChecksumRules = field(default_factory=ChecksumRules)
    distribution: DistributionRules = field(default_factory=DistributionRules)
    bounds: CountBounds = field(default_factory=CountBounds)
    delta: DeltaRules = field(default_factory=DeltaRules)
    spot_checks: tuple[SpotCheck, ...] = ()


@dataclass(frozen=True)
class GroupedPivotConfig:
    """Layout description for user-configured grouped pivots."""
    style_detection: str = "single_cell"  # single_cell|pattern|column_count
    style_pattern: str | None = None
    style_column: int = 0
    color_column: int = 1
    size_start_column: int = 2
    size_labels: tuple[str, ...] = ()
    data_start_row: int = 1
    price_column: int | None = None
    skip_patterns: tuple[str, ...] = ()


@dataclass(frozen=True)
class DataSourceConfig:
    """Fully resolved configuration bundle for one data source."""
    source_id: str
    name: str
    source_type: str = SOURCE_TYPE_REGULAR
    linked_sale_source: str | None = None
    format: str | None = None
    skip_rows: int = 0
    column_mapping: dict[str, str] = field(default_factory=dict)
    color_map: dict[str, str] = field(default_factory=dict)
    stock: StockConfig = field(default_factory=StockConfig)
    discontinued: DiscontinuedConfig = field(default_factory=DiscontinuedConfig)
    future_dates: FutureDateConfig = field(default_factory=FutureDateConfig)
    cleaning: CleaningConfig = field(default_factory=CleaningConfig)
    import_rules: ImportRulesConfig = field(default_factory=ImportRulesConfig)
    variant_rules: VariantRulesConfig = field(default_factory=VariantRulesConfig)
    price_expansion: PriceExpansionConfig = field(default_factory=PriceExpansionConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    grouped_pivot: GroupedPivotConfig | None = None
    files: tuple[str, ...] = ()
    sheet: str | int | None = None

    @property
    def is_sale_source(self) -> bool:
        return self.source_type == SOURCE_TYPE_SALES


@dataclass(frozen=True)
class DatabaseConfig:
    dsn: str | None = None


@dataclass(frozen=True)
class ImportConfig:
    """Loaded configuration file; data sources stay as raw layers until resolved."""
    data_sources: dict[str, dict[str, Any]]
    defaults: dict[str, Any] = field(default_factory=dict)
    color_map: dict[str, str] = field(default_factory=dict)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logs_dir: str = "logs"
