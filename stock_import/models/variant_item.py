from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any

"""VariantItem model: the canonical output unit of every extractor.

One style + color + size combination with its stock / price / ship date facts.
Items are created by extractors and rewritten stage by stage in the rule
pipeline; the SKU is always derivable from style, color and size.
"""

__all__ = [
    "DEFAULT_COLOR",
    "ONE_SIZE",
    "VariantItem",
    "build_sku",
]

DEFAULT_COLOR = "DEFAULT"
ONE_SIZE = "ONE SIZE"

_SKU_SEPARATORS = re.compile(r"[\s/]+")
_SKU_HYPHEN_RUNS = re.compile(r"-{2,}")


def build_sku(style: str, color: str, size: str) -> str:
    """Return ``style-color-size`` with slashes and whitespace folded to single hyphens."""
    raw = f"{style}-{color}-{size}"
    return _SKU_HYPHEN_RUNS.sub("-", _SKU_SEPARATORS.sub("-", raw.strip()))


@dataclass
class VariantItem:
    """Normalized inventory variant.

    Attributes:
        style: Non-empty style code (prefixed by the pipeline)
        color: Color name, ``DEFAULT`` when the source has none
        size: Size label, ``ONE SIZE`` when the source has none
        stock: Current on-hand quantity, never negative
        price: Unit price when the source carries one
        ship_date: ISO date (or raw date text) of incoming stock
        discontinued: Row flagged as discontinued by the source
        is_expanded_size: Synthetic size added by an expansion rule
        expanded_from_size: Real size the expansion was anchored on
        sku: ``style-color-size`` key
        brand: Vendor tag detected by the multi-brand extractor
        incoming_stock: Quantity announced for ``ship_date``
        has_future_stock: Source explicitly reported future stock
        preserve_zero_stock: Zero-stock row kept because it carries a date
        special_order: Cell pattern marked the variant as special order
        raw_source_row: 0-based row index in the consolidated matrix
    """
    style: str
    color: str
    size: str
    stock: int = 0
    price: float | None = None
    ship_date: str | None = None
    discontinued: bool = False
    is_expanded_size: bool = False
    expanded_from_size: str | None = None
    sku: str = ""
    brand: str | None = None
    incoming_stock: int | None = None
    has_future_stock: bool = False
    preserve_zero_stock: bool = False
    special_order: bool = False
    raw_source_row: int | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.style or not str(self.style).strip():
            raise ValueError("VariantItem.style must be non-empty")
        self.stock = max(0, int(self.stock))
        if not self.sku:
            self.sku = build_sku(self.style, self.color, self.size)

    @classmethod
    def create(
        cls,
        style: Any,
        color: Any = None,
        size: Any = None,
        stock: int = 0,
        **kwargs: Any,
    ) -> VariantItem:
        """Build an item from raw cell values, applying color/size defaults."""
        color_str = str(color).strip() if color is not None else ""
        size_str = str(size).strip() if size is not None else ""
        return cls(
            style=str(style).strip(),
            color=color_str or DEFAULT_COLOR,
            size=size_str or ONE_SIZE,
            stock=stock,
            **kwargs,
        )

    def rebuild_sku(self) -> None:
        self.sku = build_sku(self.style, self.color, self.size)

    def copy(self, **changes: Any) -> VariantItem:
        """Return a copy with ``changes`` applied; the SKU is rebuilt."""
        changes.setdefault("sku", "")
        changes.setdefault("extra", dict(self.extra))
        return replace(self, **changes)

    @property
    def group_key(self) -> tuple[str, str]:
        return (self.style.lower(), self.color.lower())

    @property
    def variant_key(self) -> tuple[str, str, str]:
        return (self.style.lower(), self.color.lower(), self.size.lower())
