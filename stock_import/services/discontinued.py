from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..models.variant_item import VariantItem

if TYPE_CHECKING:
    from ..db.store import InventoryStore

"""Discontinued-style registry fed by sale sources.

A sale-type source lists styles that are being cleared out. Each successful
sale import replaces the registry entry for that source; regular sources
linked to it drop those styles from their own imports.
"""

__all__ = [
    "RegistrationResult",
    "FilterResult",
    "normalize_style",
    "extract_unique_styles",
    "register_sale_styles",
    "filter_discontinued_styles",
]

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class RegistrationResult:
    added: int
    removed: int
    total: int


@dataclass(frozen=True)
class FilterResult:
    items: list[VariantItem]
    removed_count: int
    discontinued_styles: tuple[str, ...]


def normalize_style(style: str) -> str:
    return _WHITESPACE.sub(" ", style).strip()


def extract_unique_styles(items: Iterable[VariantItem]) -> list[str]:
    """Unique styles in first-seen order, whitespace collapsed."""
    seen: dict[str, str] = {}
    for item in items:
        style = normalize_style(item.style)
        if style and style.lower() not in seen:
            seen[style.lower()] = style
    return list(seen.values())


def register_sale_styles(store: InventoryStore, sale_source_id: str, items: Iterable[VariantItem]) -> RegistrationResult:
    styles = extract_unique_styles(items)
    previous = {s.lower() for s in store.discontinued_styles(sale_source_id)}
    current = {s.lower() for s in styles}
    store.register_discontinued_styles(sale_source_id, styles)
    result = RegistrationResult(
        added=len(current - previous),
        removed=len(previous - current),
        total=len(styles),
    )
    logger.info(
        f"registered {result.total} discontinued styles for {sale_source_id} "
        f"(added={result.added} removed={result.removed})"
    )
    return result


def filter_discontinued_styles(items: list[VariantItem], styles: Iterable[str]) -> FilterResult:
    """Drop items whose style is in ``styles`` (case-insensitive, whitespace collapsed)."""
    blocked = {normalize_style(s).lower() for s in styles if s and s.strip()}
    if not blocked:
        return FilterResult(items=items, removed_count=0, discontinued_styles=())

    kept: list[VariantItem] = []
    matched: dict[str, str] = {}
    for item in items:
        key = normalize_style(item.style).lower()
        if key in blocked:
            matched.setdefault(key, normalize_style(item.style))
            continue
        kept.append(item)
    return FilterResult(
        items=kept,
        removed_count=len(items) - len(kept),
        discontinued_styles=tuple(matched.values()),
    )
