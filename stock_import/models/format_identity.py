from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Closed set of spreadsheet layouts understood by the extractors."""

__all__ = [
    "FormatIdentity",
    "Provenance",
    "DetectedFormat",
]


class FormatIdentity(str, Enum):
    ROW = "row"
    GENERIC_PIVOT = "generic_pivot"
    GROUPED_PIVOT = "grouped_pivot"
    INTERLEAVED_PIVOT = "interleaved_pivot"
    ALTERNATING_PIVOT = "alternating_pivot"
    SECTIONED_REPORT = "sectioned_report"
    DATE_HEADER_PIVOT = "date_header_pivot"
    INVOICE = "invoice"
    QUOTA = "quota"
    MULTI_BRAND_ROW = "multi_brand_row"
    CONFIGURED_GROUPED = "configured_grouped"

    @classmethod
    def parse(cls, value: str) -> FormatIdentity:
        """Resolve a format tag, accepting legacy vendor-named aliases.

        Raises:
            ValueError: Unknown tag
        """
        key = value.strip().lower().replace("-", "_")
        if key in _ALIASES:
            return _ALIASES[key]
        return cls(key)


_ALIASES: dict[str, FormatIdentity] = {
    "pivot": FormatIdentity.GENERIC_PIVOT,
    "pivot_grouped": FormatIdentity.GROUPED_PIVOT,
    "feriani": FormatIdentity.GROUPED_PIVOT,
    "pivot_interleaved": FormatIdentity.INTERLEAVED_PIVOT,
    "jovani": FormatIdentity.INTERLEAVED_PIVOT,
    "jovani_sale": FormatIdentity.INTERLEAVED_PIVOT,
    "pivot_alternating": FormatIdentity.ALTERNATING_PIVOT,
    "sherri_hill": FormatIdentity.ALTERNATING_PIVOT,
    "tarik_ediz": FormatIdentity.SECTIONED_REPORT,
    "pr_date_headers": FormatIdentity.DATE_HEADER_PIVOT,
    "grn_invoice": FormatIdentity.INVOICE,
    "ots_format": FormatIdentity.QUOTA,
    "store_multibrand": FormatIdentity.MULTI_BRAND_ROW,
    "grouped_config": FormatIdentity.CONFIGURED_GROUPED,
}


class Provenance(str, Enum):
    CONFIGURED = "configured"
    NAME = "name"
    CONTENT = "content"
    HEADER = "header"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class DetectedFormat:
    identity: FormatIdentity
    provenance: Provenance
    note: str = ""
