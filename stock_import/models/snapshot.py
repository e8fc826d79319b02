from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

"""ImportSnapshot model: aggregate statistics of the last successful import.

Snapshots are owned by the data source, overwritten after every successful
import and read back as the baseline for checksum/delta validation. They
serialize to plain dicts so a store can keep them as JSON.
"""

__all__ = [
    "StyleSummary",
    "ImportSnapshot",
]


@dataclass(frozen=True)
class StyleSummary:
    variant_count: int
    colors: tuple[str, ...]
    sizes: tuple[str, ...]
    total_stock: int
    has_discontinued: bool
    has_future_date: bool
    expanded_count: int


@dataclass(frozen=True)
class ImportSnapshot:
    item_count: int
    total_stock: int
    unique_style_count: int
    unique_color_count: int
    items_with_stock: int
    items_with_price: int
    discontinued_count: int
    unique_styles: tuple[str, ...] = ()  # bounded list
    unique_colors: tuple[str, ...] = ()  # bounded list
    style_summaries: dict[str, StyleSummary] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(data: dict[str, Any]) -> ImportSnapshot:
        summaries = {
            style: StyleSummary(
                variant_count=int(s.get("variant_count", 0)),
                colors=tuple(s.get("colors", ())),
                sizes=tuple(s.get("sizes", ())),
                total_stock=int(s.get("total_stock", 0)),
                has_discontinued=bool(s.get("has_discontinued", False)),
                has_future_date=bool(s.get("has_future_date", False)),
                expanded_count=int(s.get("expanded_count", 0)),
            )
            for style, s in (data.get("style_summaries") or {}).items()
        }
        return ImportSnapshot(
            item_count=int(data.get("item_count", 0)),
            total_stock=int(data.get("total_stock", 0)),
            unique_style_count=int(data.get("unique_style_count", 0)),
            unique_color_count=int(data.get("unique_color_count", 0)),
            items_with_stock=int(data.get("items_with_stock", 0)),
            items_with_price=int(data.get("items_with_price", 0)),
            discontinued_count=int(data.get("discontinued_count", 0)),
            unique_styles=tuple(data.get("unique_styles", ())),
            unique_colors=tuple(data.get("unique_colors", ())),
            style_summaries=summaries,
        )
