from __future__ import annotations

from ..models.import_result import ImportResult

"""SUMMARY line rendering.

Format (one line per imported data source)::

    SUMMARY source=<id> outcome=<outcome> format=<format> parsed=N
    after_clean=N after_variant_rules=N after_expansion=N
    after_discontinued=N final=N blocked=<0|1> validation_failed=N

Everything after ``SUMMARY`` is ``key=value`` pairs separated by single
spaces; values never contain spaces.
"""

__all__ = [
    "render_summary_line",
]


def render_summary_line(result: ImportResult) -> str:
    """Render the SUMMARY line for one import result.

    Examples:
        >>> from stock_import.models.import_result import ImportOutcome, ImportResult, ImportStats
        >>> r = ImportResult("acme", ImportOutcome.SUCCESS, [], ImportStats(total_parsed=3, final_count=2), used_format="row")
        >>> render_summary_line(r)  # doctest: +ELLIPSIS
        'SUMMARY source=acme outcome=success format=row parsed=3 ...'
    """
    stats = result.stats
    return (
        f"SUMMARY source={result.source_id.replace(' ', '_')} "
        f"outcome={result.outcome.value} "
        f"format={result.used_format or 'none'} "
        f"parsed={stats.total_parsed} "
        f"after_clean={stats.after_clean} "
        f"after_variant_rules={stats.after_variant_rules} "
        f"after_expansion={stats.after_expansion} "
        f"after_discontinued={stats.after_discontinued_filter} "
        f"final={stats.final_count} "
        f"blocked={1 if result.is_blocked else 0} "
        f"validation_failed={len(result.validation.failures)}"
    )
