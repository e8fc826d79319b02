from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from ..models.config_models import CleaningConfig, DataSourceConfig
from ..models.variant_item import DEFAULT_COLOR, VariantItem

"""Style cleaning, color canonicalization and style prefixing stages.

Cleaning rewrites the style field only. Color canonicalization and
prefixing rebuild the SKU after changing the item.
"""

__all__ = [
    "clean_value",
    "clean_styles",
    "normalize_color_value",
    "format_color_name",
    "canonicalize_colors",
    "style_prefix_for",
    "apply_style_prefix",
]

logger = logging.getLogger(__name__)

_SALE_SUFFIX = re.compile(r"^(.+?)\s*(sale|sales)$", re.IGNORECASE)
_COLOR_PARTS = re.compile(r"(\s+|[-/])")


def _sub_ignorecase(pattern: str, replacement: str, value: str) -> str:
    try:
        return re.sub(pattern, replacement, value, flags=re.IGNORECASE)
    except re.error:
        logger.warning(f"invalid find pattern {pattern!r}; using literal match")
        return re.sub(re.escape(pattern), replacement, value, flags=re.IGNORECASE)


def clean_value(value: str, config: CleaningConfig) -> str:
    """Apply the cleaning rules to one value, in fixed order."""
    cleaned = value
    if config.trim_whitespace:
        cleaned = cleaned.strip()
    if config.remove_letters:
        cleaned = re.sub(r"[a-zA-Z]", "", cleaned)
    if config.remove_numbers:
        cleaned = re.sub(r"[0-9]", "", cleaned)
    if config.remove_special_chars:
        cleaned = re.sub(r"[^a-zA-Z0-9\s]", "", cleaned)
    if config.remove_first_n > 0:
        cleaned = cleaned[config.remove_first_n:]
    if config.remove_last_n > 0:
        cleaned = cleaned[: max(len(cleaned) - config.remove_last_n, 0)]
    if config.find_text:
        cleaned = _sub_ignorecase(config.find_text, config.replace_text, cleaned)
    for rule in config.find_replace_rules:
        if rule.find:
            cleaned = _sub_ignorecase(rule.find, rule.replace, cleaned)
    for pattern in config.remove_patterns:
        if pattern:
            cleaned = re.sub(re.escape(pattern), "", cleaned, flags=re.IGNORECASE)
    return cleaned.strip()


def clean_styles(items: list[VariantItem], config: CleaningConfig) -> list[VariantItem]:
    """Clean every style; items whose style cleans down to nothing are dropped."""
    kept: list[VariantItem] = []
    for item in items:
        style = clean_value(item.style, config)
        if not style:
            logger.debug(f"style {item.style!r} empty after cleaning; dropped")
            continue
        if style != item.style:
            item.style = style
            item.rebuild_sku()
        kept.append(item)
    return kept


def normalize_color_value(color: str) -> str:
    """Collapse whitespace and tighten spacing around ``/`` and ``-``."""
    result = re.sub(r"\s{2,}", " ", color.strip())
    result = re.sub(r"\s*/\s*", "/", result)
    result = re.sub(r"\s*-\s*", "-", result)
    result = re.sub(r"\s*&\s*", " & ", result)
    return re.sub(r"\s{2,}", " ", result).strip()


def format_color_name(color: str) -> str:
    """Capitalize each word of a color, keeping its separators: ``navy/ WHITE`` -> ``Navy/White``."""
    normalized = normalize_color_value(color)
    return "".join(
        part if _COLOR_PARTS.fullmatch(part) else part[:1].upper() + part[1:]
        for part in _COLOR_PARTS.split(normalized.lower())
    )


def canonicalize_colors(
    items: list[VariantItem], color_map: Mapping[str, str]
) -> tuple[list[VariantItem], int]:
    """Map known bad colors to their canonical names, format the rest.

    Returns the items and how many colors were corrected through the map.
    """
    lookup = {k.strip().lower(): v for k, v in color_map.items()}
    fixed = 0
    for item in items:
        mapped = lookup.get(item.color.strip().lower())
        if mapped is not None:
            new_color = mapped
            if new_color != item.color:
                fixed += 1
        elif item.color == DEFAULT_COLOR:
            new_color = item.color
        else:
            new_color = format_color_name(item.color)
        item.color = new_color
        item.rebuild_sku()
    return items, fixed


def _prefix_rule_matches(pattern: str, style: str) -> bool:
    try:
        return re.search(pattern, style, re.IGNORECASE) is not None
    except re.error:
        return style.lower().startswith(pattern.lower())


def style_prefix_for(item: VariantItem, config: DataSourceConfig) -> str:
    """Resolve the prefix: custom rule, then brand tag, then data source name."""
    cleaning = config.cleaning
    if cleaning.use_custom_prefixes:
        for rule in cleaning.style_prefix_rules:
            if rule.pattern and rule.prefix and _prefix_rule_matches(rule.pattern, item.style):
                return rule.prefix
    if item.brand:
        return item.brand
    prefix = config.name.strip()
    if config.is_sale_source:
        m = _SALE_SUFFIX.match(prefix)
        if m:
            prefix = m.group(1).strip()
    return prefix


def apply_style_prefix(items: list[VariantItem], config: DataSourceConfig) -> list[VariantItem]:
    for item in items:
        prefix = style_prefix_for(item, config)
        if not prefix:
            continue
        # files that already carry the vendor name are left as they are
        if item.style.lower().startswith(f"{prefix.lower()} "):
            continue
        item.style = f"{prefix} {item.style}"
        item.rebuild_sku()
    return items
