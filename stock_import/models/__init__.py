"""Domain models for the supplier inventory importer.

Configuration bundles, the canonical VariantItem, format identities,
import snapshots and run results.
"""

from .config_models import DataSourceConfig, ImportConfig
from .format_identity import DetectedFormat, FormatIdentity, Provenance
from .import_result import (
    CheckResult,
    ImportOutcome,
    ImportResult,
    ImportStats,
    SafetyNetBlock,
    ValidationReport,
)
from .snapshot import ImportSnapshot, StyleSummary
from .variant_item import VariantItem, build_sku

__all__ = [
    # Configuration models
    "DataSourceConfig",
    "ImportConfig",
    # Parsing models
    "DetectedFormat",
    "FormatIdentity",
    "Provenance",
    "VariantItem",
    "build_sku",
    # Results
    "CheckResult",
    "ImportOutcome",
    "ImportResult",
    "ImportStats",
    "ImportSnapshot",
    "SafetyNetBlock",
    "StyleSummary",
    "ValidationReport",
]
