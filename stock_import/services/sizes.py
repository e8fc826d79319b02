from __future__ import annotations

import re

from ..models.config_models import SizeLimitConfig

"""Canonical size ordering and size-limit checks.

Sizes belong to one of four families, each with its own fixed sequence:

- numeric: ``000, 00, 0, 2 .. 36`` with each ``W`` (plus) size right after its base
- letter: ``XXS .. 5XL`` (``XXL``, ``XXXL`` .. accepted as aliases)
- petite: ``0P .. 16P``
- regular: ``0R .. 16R``

Adjacency is computed inside a size's own family only. A size outside every
family has no index and cannot be expanded.
"""

__all__ = [
    "NUMERIC_SIZES",
    "LETTER_SIZES",
    "PETITE_SIZES",
    "REGULAR_SIZES",
    "SIZE_ORDER",
    "size_rank",
    "size_index",
    "adjacent_sizes",
    "is_size_allowed",
]

NUMERIC_SIZES: tuple[str, ...] = (
    "000", "00", "0", "2", "4", "6", "8", "10", "12", "14",
    "16", "16W", "18", "18W", "20", "20W", "22", "22W", "24", "24W",
    "26", "26W", "28", "28W", "30", "30W", "32", "32W", "34", "34W", "36", "36W",
)
LETTER_SIZES: tuple[str, ...] = ("XXS", "XS", "S", "M", "L", "XL", "2XL", "3XL", "4XL", "5XL")
PETITE_SIZES: tuple[str, ...] = tuple(f"{n}P" for n in range(0, 18, 2))
REGULAR_SIZES: tuple[str, ...] = tuple(f"{n}R" for n in range(0, 18, 2))

SIZE_ORDER: tuple[str, ...] = NUMERIC_SIZES + LETTER_SIZES + PETITE_SIZES + REGULAR_SIZES

LETTER_ALIASES = {"XXL": "2XL", "XXXL": "3XL", "XXXXL": "4XL", "XXXXXL": "5XL"}

_FAMILY_OFFSETS = (
    (LETTER_SIZES, 0),
    (NUMERIC_SIZES, 100),
    (PETITE_SIZES, 200),
    (REGULAR_SIZES, 300),
)

UNKNOWN_RANK = 99998
EMPTY_RANK = 99999

_LEADING_INT = re.compile(r"^(\d+)")


def _canonical(size: str) -> str:
    upper = str(size).strip().upper()
    return LETTER_ALIASES.get(upper, upper)


def size_index(size: str) -> tuple[tuple[str, ...], int] | None:
    """Return ``(family, position)`` for a known size, else ``None``."""
    canonical = _canonical(size)
    for family, _ in _FAMILY_OFFSETS:
        if canonical in family:
            return family, family.index(canonical)
    return None


def size_rank(size: str | None) -> float:
    """Sort key: letters first, then numeric, petite, regular; unknown last."""
    if size is None or not str(size).strip():
        return EMPTY_RANK
    canonical = _canonical(size)
    for family, offset in _FAMILY_OFFSETS:
        if canonical in family:
            return offset + family.index(canonical)
    m = _LEADING_INT.match(canonical)
    if m:
        # unlisted numeric sizes keep their relative order
        return 102 + int(m.group(1)) / 2
    return UNKNOWN_RANK


def adjacent_sizes(size: str, down: int, up: int) -> list[str]:
    """Sizes up to ``down`` below and ``up`` above ``size``, nearest first."""
    located = size_index(size)
    if located is None:
        return []
    family, idx = located
    below = [family[idx - i] for i in range(1, max(down, 0) + 1) if idx - i >= 0]
    above = [family[idx + i] for i in range(1, max(up, 0) + 1) if idx + i < len(family)]
    return below + above


def _matches_style(pattern: str, style: str) -> bool:
    try:
        return re.search(pattern, style, re.IGNORECASE) is not None
    except re.error:
        return style.lower().startswith(pattern.lower())


def _is_letter(size: str) -> bool:
    return _canonical(size) in LETTER_SIZES


def _is_w(size: str) -> bool:
    return size.upper().endswith("W")


def _range_rank(size: str) -> float:
    # petite/regular sizes are bounded by their numeric base
    canonical = _canonical(size)
    if canonical in PETITE_SIZES or canonical in REGULAR_SIZES:
        return size_rank(canonical[:-1])
    return size_rank(canonical)


def _in_range(size: str, low: str | None, high: str | None) -> bool:
    rank = _range_rank(size)
    if low and rank < _range_rank(low):
        return False
    if high and rank > _range_rank(high):
        return False
    return True


def is_size_allowed(size: str, limits: SizeLimitConfig | None, style: str | None = None) -> bool:
    """Check ``size`` against the configured size ranges.

    Numeric, W and letter ranges are independent; a size passes when it
    falls inside the range of its own kind. Once any range is configured,
    sizes of a kind without a range are rejected. The first prefix override
    whose pattern matches ``style`` replaces the bounds it sets.
    """
    if limits is None or not limits.enabled:
        return True
    normalized = str(size or "").strip()
    if not normalized:
        return False

    bounds = {
        "min_size": limits.min_size,
        "max_size": limits.max_size,
        "min_w_size": limits.min_w_size,
        "max_w_size": limits.max_w_size,
        "min_letter_size": limits.min_letter_size,
        "max_letter_size": limits.max_letter_size,
    }
    if style:
        for override in limits.prefix_overrides:
            if override.pattern and _matches_style(override.pattern, style):
                for key in bounds:
                    value = getattr(override, key)
                    if value is not None:
                        bounds[key] = value
                break

    if limits.allowed_sizes:
        upper = normalized.upper()
        return any(s.upper() == upper for s in limits.allowed_sizes)

    numeric_set = bool(bounds["min_size"] or bounds["max_size"])
    w_set = bool(bounds["min_w_size"] or bounds["max_w_size"])
    letter_set = bool(bounds["min_letter_size"] or bounds["max_letter_size"])
    if not (numeric_set or w_set or letter_set):
        return True

    if _is_letter(normalized):
        return letter_set and _in_range(normalized, bounds["min_letter_size"], bounds["max_letter_size"])

    if _is_w(normalized):
        if w_set:
            return _in_range(normalized, bounds["min_w_size"], bounds["max_w_size"])
        # a numeric range reaches W sizes only when one of its bounds is a W size
        low, high = bounds["min_size"], bounds["max_size"]
        if numeric_set and ((low and _is_w(low)) or (high and _is_w(high))):
            return _in_range(normalized, low, high)
        return False

    if numeric_set:
        return _in_range(normalized, bounds["min_size"], bounds["max_size"])
    return False
