"""Format extractors keyed by FormatIdentity.

The variant set is closed: ``EXTRACTORS`` is a fixed lookup table and
``extract`` simply dispatches through it.
"""

from stock_import.models.config_models import DataSourceConfig
from stock_import.models.format_identity import FormatIdentity
from stock_import.models.raw_matrix import RawMatrix
from stock_import.models.variant_item import VariantItem

from .alternating_pivot import extract_alternating_pivot
from .base import ExtractContext, Extractor, RowCursor
from .configured_grouped import extract_configured_grouped
from .date_header_pivot import extract_date_header_pivot
from .generic_pivot import extract_generic_pivot
from .grouped_pivot import extract_grouped_pivot
from .interleaved_pivot import extract_interleaved_pivot
from .invoice import extract_invoice
from .multi_brand import extract_multi_brand
from .quota import extract_quota
from .row import extract_rows
from .sectioned_report import extract_sectioned_report

EXTRACTORS: dict[FormatIdentity, Extractor] = {
    FormatIdentity.ROW: extract_rows,
    FormatIdentity.GENERIC_PIVOT: extract_generic_pivot,
    FormatIdentity.GROUPED_PIVOT: extract_grouped_pivot,
    FormatIdentity.INTERLEAVED_PIVOT: extract_interleaved_pivot,
    FormatIdentity.ALTERNATING_PIVOT: extract_alternating_pivot,
    FormatIdentity.SECTIONED_REPORT: extract_sectioned_report,
    FormatIdentity.DATE_HEADER_PIVOT: extract_date_header_pivot,
    FormatIdentity.INVOICE: extract_invoice,
    FormatIdentity.QUOTA: extract_quota,
    FormatIdentity.MULTI_BRAND_ROW: extract_multi_brand,
    FormatIdentity.CONFIGURED_GROUPED: extract_configured_grouped,
}

# tried after the detected format when it yields nothing
FALLBACK_CHAIN = (FormatIdentity.ROW, FormatIdentity.GENERIC_PIVOT)


def extract(
    identity: FormatIdentity,
    matrix: RawMatrix,
    config: DataSourceConfig,
    context: ExtractContext,
) -> list[VariantItem]:
    return EXTRACTORS[identity](matrix, config, context)


def candidate_formats(identity: FormatIdentity) -> list[FormatIdentity]:
    """Detected format first, then the fallback chain, without repeats."""
    candidates = [identity]
    for fallback in FALLBACK_CHAIN:
        if fallback not in candidates:
            candidates.append(fallback)
    return candidates


__all__ = [
    "EXTRACTORS",
    "FALLBACK_CHAIN",
    "ExtractContext",
    "Extractor",
    "RowCursor",
    "candidate_formats",
    "extract",
]
