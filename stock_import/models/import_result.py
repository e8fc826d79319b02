from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .format_identity import DetectedFormat
from .snapshot import ImportSnapshot
from .variant_item import VariantItem

"""Result models returned by ``run_import``.

``ImportStats`` carries the per-stage item counts so a caller can see where
items were gained or lost; ``ImportResult`` distinguishes a successful run,
a safety-net block and a total parse failure.
"""

__all__ = [
    "ImportOutcome",
    "ImportStats",
    "CheckResult",
    "ValidationReport",
    "SafetyNetBlock",
    "ImportResult",
]


class ImportOutcome(str, Enum):
    SUCCESS = "success"
    BLOCKED = "blocked"
    PARSE_FAILED = "parse_failed"


@dataclass
class ImportStats:
    """Mutable per-run counters, filled in stage by stage."""
    total_parsed: int = 0
    rows_skipped: int = 0
    after_clean: int = 0
    after_import_rules: int = 0
    after_variant_rules: int = 0
    after_expansion: int = 0
    after_discontinued_filter: int = 0
    final_count: int = 0
    colors_fixed: int = 0
    import_rules_removed: int = 0
    variant_rules_filtered: int = 0
    variant_rules_size_filtered: int = 0
    variant_rules_added: int = 0
    price_based_expansion: int = 0
    discontinued_styles_filtered: int = 0
    discontinued_styles: list[str] = field(default_factory=list)
    duplicates_removed: int = 0
    future_stock_zeroed: int = 0
    sale_styles_registered: int = 0


@dataclass(frozen=True)
class CheckResult:
    name: str
    passed: bool
    message: str
    category: str  # checksum|distribution|bounds|delta|spot_check|basic


@dataclass(frozen=True)
class ValidationReport:
    results: tuple[CheckResult, ...] = ()

    @property
    def passed(self) -> bool:
        return all(r.passed for r in self.results)

    @property
    def failures(self) -> list[CheckResult]:
        return [r for r in self.results if not r.passed]


@dataclass(frozen=True)
class SafetyNetBlock:
    existing_count: int
    new_count: int
    drop_percent: float
    reason: str


@dataclass(frozen=True)
class ImportResult:
    source_id: str
    outcome: ImportOutcome
    items: list[VariantItem]
    stats: ImportStats
    detected: DetectedFormat | None = None
    used_format: str | None = None
    snapshot: ImportSnapshot | None = None
    validation: ValidationReport = field(default_factory=ValidationReport)
    blocked: SafetyNetBlock | None = None
    warnings: tuple[str, ...] = ()
    message: str = ""

    @property
    def is_blocked(self) -> bool:
        return self.outcome is ImportOutcome.BLOCKED
