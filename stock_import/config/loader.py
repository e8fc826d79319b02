from __future__ import annotations

import copy
import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from stock_import.models.config_models import (
    CellPattern,
    ChecksumRules,
    CleaningConfig,
    CountBounds,
    DatabaseConfig,
    DataSourceConfig,
    DeltaRules,
    DiscontinuedConfig,
    DistributionRules,
    FindReplaceRule,
    FutureDateConfig,
    GroupedPivotConfig,
    ImportConfig,
    ImportRulesConfig,
    PrefixRule,
    PriceExpansionConfig,
    PriceExpansionTier,
    SizeLimitConfig,
    SizeLimitOverride,
    SpotCheck,
    StockConfig,
    StockExpansionRule,
    ValidationConfig,
    VariantRulesConfig,
)

"""Configuration loading, validation and layer merging.

Responsibilities:
- Load YAML ``config/import.yml``
- Validate against ``config_schema.json`` (jsonschema)
- Resolve one data source by merging layers with a single precedence:
  built-in defaults < file ``defaults`` < stored data source < per-run override
- Build the frozen rule-family dataclasses from the merged dict
"""

__all__ = [
    "ConfigError",
    "SCHEMA_PATH",
    "BUILTIN_DEFAULTS",
    "load_config",
    "merge_layers",
    "resolve_data_source",
    "build_data_source_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")

BUILTIN_DEFAULTS: dict[str, Any] = {
    "source_type": "regular",
    "skip_rows": 0,
    "future_dates": {"enabled": True, "offset_days": 0},
    "cleaning": {"trim_whitespace": True},
    "variant_rules": {"filter_zero_stock": False, "filter_zero_stock_with_future_dates": False},
    "price_expansion": {"enabled": False},
}


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or unreadable, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    dsn = os.getenv("DATABASE_URL") or db_raw.get("dsn")
    return ImportConfig(
        data_sources=data["data_sources"],
        defaults=data.get("defaults") or {},
        color_map=data.get("color_map") or {},
        database=DatabaseConfig(dsn=dsn),
        logs_dir=data.get("logs_dir", "logs"),
    )


def merge_layers(*layers: Mapping[str, Any] | None) -> dict[str, Any]:
    """Deep-merge dict layers left to right.

    Later layers win. ``None`` values never override, nested mappings merge
    recursively, lists and scalars replace wholesale. Inputs are not mutated.
    """
    merged: dict[str, Any] = {}
    for layer in layers:
        if not layer:
            continue
        for key, value in layer.items():
            if value is None:
                continue
            current = merged.get(key)
            if isinstance(value, Mapping) and isinstance(current, Mapping):
                merged[key] = merge_layers(current, value)
            else:
                merged[key] = copy.deepcopy(value)
    return merged


def resolve_data_source(
    config: ImportConfig, source_id: str, override: Mapping[str, Any] | None = None
) -> DataSourceConfig:
    """Build the effective DataSourceConfig for ``source_id``.

    Precedence: override > stored > file defaults > built-in defaults.
    """
    stored = config.data_sources.get(source_id)
    if stored is None:
        raise ConfigError(f"unknown data source: {source_id}")
    merged = merge_layers(BUILTIN_DEFAULTS, config.defaults, stored, override)
    merged["color_map"] = merge_layers(config.color_map, merged.get("color_map"))
    return build_data_source_config(source_id, merged)


def _tuple(values: Any) -> tuple[Any, ...]:
    if values is None:
        return ()
    if isinstance(values, (list, tuple)):
        return tuple(values)
    return (values,)


def _size_limits(raw: Mapping[str, Any] | None) -> SizeLimitConfig:
    raw = raw or {}
    overrides = tuple(
        SizeLimitOverride(
            pattern=o["pattern"],
            min_size=o.get("min_size"),
            max_size=o.get("max_size"),
            min_w_size=o.get("min_w_size"),
            max_w_size=o.get("max_w_size"),
            min_letter_size=o.get("min_letter_size"),
            max_letter_size=o.get("max_letter_size"),
        )
        for o in raw.get("prefix_overrides") or []
    )
    return SizeLimitConfig(
        enabled=bool(raw.get("enabled", False)),
        min_size=_opt_str(raw.get("min_size")),
        max_size=_opt_str(raw.get("max_size")),
        min_w_size=_opt_str(raw.get("min_w_size")),
        max_w_size=_opt_str(raw.get("max_w_size")),
        min_letter_size=_opt_str(raw.get("min_letter_size")),
        max_letter_size=_opt_str(raw.get("max_letter_size")),
        allowed_sizes=tuple(str(s) for s in raw.get("allowed_sizes") or []),
        prefix_overrides=overrides,
    )


def _opt_str(value: Any) -> str | None:
    # YAML reads `min_size: 0` as an int
    return None if value is None else str(value)


def _validation(raw: Mapping[str, Any] | None) -> ValidationConfig:
    raw = raw or {}
    checksum = raw.get("checksum") or {}
    distribution = raw.get("distribution") or {}
    bounds = raw.get("bounds") or {}
    delta = raw.get("delta") or {}
    return ValidationConfig(
        checksum=ChecksumRules(
            enabled=bool(checksum.get("enabled", False)),
            tolerance_percent=float(checksum.get("tolerance_percent", 0)),
            verify_item_count=checksum.get("verify_item_count", True) is not False,
            verify_total_stock=checksum.get("verify_total_stock", True) is not False,
            verify_style_count=checksum.get("verify_style_count", True) is not False,
            verify_color_count=bool(checksum.get("verify_color_count", False)),
        ),
        distribution=DistributionRules(
            enabled=bool(distribution.get("enabled", False)),
            min_percent_with_stock=distribution.get("min_percent_with_stock"),
            min_percent_with_price=distribution.get("min_percent_with_price"),
            max_percent_discontinued=distribution.get("max_percent_discontinued"),
        ),
        bounds=CountBounds(
            min_items=bounds.get("min_items"),
            max_items=bounds.get("max_items"),
        ),
        delta=DeltaRules(
            enabled=bool(delta.get("enabled", False)),
            max_item_count_change_percent=delta.get("max_item_count_change_percent"),
            max_stock_change_percent=delta.get("max_stock_change_percent"),
        ),
        spot_checks=tuple(
            SpotCheck(
                style=str(s["style"]),
                color=_opt_str(s.get("color")),
                size=_opt_str(s.get("size")),
                expect=s.get("expect", "exists"),
            )
            for s in raw.get("spot_checks") or []
        ),
    )


def build_data_source_config(source_id: str, data: Mapping[str, Any]) -> DataSourceConfig:
    """Build a DataSourceConfig from an already merged dict."""
    stock = data.get("stock") or {}
    discontinued = data.get("discontinued") or {}
    future = data.get("future_dates") or {}
    cleaning = data.get("cleaning") or {}
    rules = data.get("import_rules") or {}
    variant = data.get("variant_rules") or {}
    price = data.get("price_expansion") or {}
    grouped = data.get("grouped_pivot")

    return DataSourceConfig(
        source_id=source_id,
        name=data.get("name") or source_id,
        source_type=data.get("source_type", "regular"),
        linked_sale_source=data.get("linked_sale_source"),
        format=data.get("format"),
        skip_rows=int(data.get("skip_rows", 0)),
        column_mapping={k: str(v) for k, v in (data.get("column_mapping") or {}).items() if v},
        color_map={str(k): str(v) for k, v in (data.get("color_map") or {}).items()},
        stock=StockConfig(
            text_mappings=stock.get("text_mappings"),
            cell_patterns=tuple(
                CellPattern(
                    name=p.get("name", f"pattern{i}"),
                    match_expression=p["match_expression"],
                    extract_stock=_opt_str(p.get("extract_stock")),
                    extract_date=_opt_str(p.get("extract_date")),
                    marks_discontinued=bool(p.get("marks_discontinued", False)),
                    marks_special_order=bool(p.get("marks_special_order", False)),
                )
                for i, p in enumerate(stock.get("cell_patterns") or [])
            ),
        ),
        discontinued=DiscontinuedConfig(
            keywords=tuple(str(k).strip().lower() for k in _tuple(discontinued.get("keywords"))),
            file_name_marker=discontinued.get("file_name_marker", "discontinued"),
        ),
        future_dates=FutureDateConfig(
            enabled=bool(future.get("enabled", True)),
            offset_days=int(future.get("offset_days", 0)),
        ),
        cleaning=CleaningConfig(
            trim_whitespace=bool(cleaning.get("trim_whitespace", True)),
            remove_letters=bool(cleaning.get("remove_letters", False)),
            remove_numbers=bool(cleaning.get("remove_numbers", False)),
            remove_special_chars=bool(cleaning.get("remove_special_chars", False)),
            remove_first_n=int(cleaning.get("remove_first_n", 0)),
            remove_last_n=int(cleaning.get("remove_last_n", 0)),
            find_text=cleaning.get("find_text"),
            replace_text=cleaning.get("replace_text", ""),
            find_replace_rules=tuple(
                FindReplaceRule(find=r["find"], replace=r.get("replace", ""))
                for r in cleaning.get("find_replace_rules") or []
            ),
            remove_patterns=_tuple(cleaning.get("remove_patterns")),
            use_custom_prefixes=bool(cleaning.get("use_custom_prefixes", False)),
            style_prefix_rules=tuple(
                PrefixRule(pattern=r["pattern"], prefix=r["prefix"])
                for r in cleaning.get("style_prefix_rules") or []
            ),
        ),
        import_rules=ImportRulesConfig(
            value_replacements={
                f: {str(k): str(v) for k, v in m.items()}
                for f, m in (rules.get("value_replacements") or {}).items()
            },
            price_multiplier=rules.get("price_multiplier"),
            price_floor=rules.get("price_floor"),
            price_ceiling=rules.get("price_ceiling"),
            min_stock_threshold=int(rules.get("min_stock_threshold", 0)),
            required_fields=_tuple(rules.get("required_fields")),
        ),
        variant_rules=VariantRulesConfig(
            filter_zero_stock=bool(variant.get("filter_zero_stock", False)),
            filter_zero_stock_with_future_dates=bool(
                variant.get("filter_zero_stock_with_future_dates", False)
            ),
            size_limits=_size_limits(variant.get("size_limits")),
            expansion_rules=tuple(
                StockExpansionRule(
                    expand_down_count=int(r.get("expand_down_count", 0)),
                    expand_up_count=int(r.get("expand_up_count", 0)),
                    min_trigger_stock=int(r.get("min_trigger_stock", 1)),
                    expanded_stock=int(r.get("expanded_stock", 0)),
                )
                for r in variant.get("expansion_rules") or []
            ),
        ),
        price_expansion=PriceExpansionConfig(
            enabled=bool(price.get("enabled", False)),
            tiers=tuple(
                PriceExpansionTier(
                    min_price=float(t.get("min_price", 0)),
                    max_price=None if t.get("max_price") is None else float(t["max_price"]),
                    expand_down_count=int(t.get("expand_down_count", 0)),
                    expand_up_count=int(t.get("expand_up_count", 0)),
                )
                for t in price.get("tiers") or []
            ),
            default_expand_down=int(price.get("default_expand_down", 0)),
            default_expand_up=int(price.get("default_expand_up", 0)),
            expanded_stock=int(price.get("expanded_stock", 0)),
        ),
        validation=_validation(data.get("validation")),
        files=tuple(str(f) for f in _tuple(data.get("files"))),
        sheet=data.get("sheet"),
        grouped_pivot=None
        if grouped is None
        else GroupedPivotConfig(
            style_detection=grouped.get("style_detection", "single_cell"),
            style_pattern=grouped.get("style_pattern"),
            style_column=int(grouped.get("style_column", 0)),
            color_column=int(grouped.get("color_column", 1)),
            size_start_column=int(grouped.get("size_start_column", 2)),
            size_labels=tuple(str(s) for s in grouped.get("size_labels") or []),
            data_start_row=int(grouped.get("data_start_row", 1)),
            price_column=grouped.get("price_column"),
            skip_patterns=_tuple(grouped.get("skip_patterns")),
        ),
    )
