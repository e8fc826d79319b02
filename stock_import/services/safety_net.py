from __future__ import annotations

from ..models.import_result import SafetyNetBlock

"""Mandatory safety net applied before anything is persisted.

Not configurable: an import that would wipe a source's inventory, or cut
an established inventory by more than half, is refused.
"""

__all__ = [
    "MAX_DROP_PERCENT",
    "MIN_EXISTING_FOR_DROP_CHECK",
    "check_safety_net",
]

MAX_DROP_PERCENT = 50.0
MIN_EXISTING_FOR_DROP_CHECK = 20


def check_safety_net(existing_count: int, new_count: int) -> SafetyNetBlock | None:
    """Return a block description when the import must be refused, else ``None``."""
    if existing_count <= 0:
        return None
    if new_count == 0:
        return SafetyNetBlock(
            existing_count=existing_count,
            new_count=0,
            drop_percent=100.0,
            reason=f"import has 0 items but the data source holds {existing_count}",
        )
    drop = (existing_count - new_count) / existing_count * 100
    if existing_count > MIN_EXISTING_FOR_DROP_CHECK and drop > MAX_DROP_PERCENT:
        return SafetyNetBlock(
            existing_count=existing_count,
            new_count=new_count,
            drop_percent=round(drop, 1),
            reason=(
                f"item count dropped {drop:.0f}% (from {existing_count} to {new_count}); "
                f"limit is {MAX_DROP_PERCENT:.0f}%"
            ),
        )
    return None
