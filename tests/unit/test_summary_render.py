from __future__ import annotations

from stock_import.models.import_result import (
    CheckResult,
    ImportOutcome,
    ImportResult,
    ImportStats,
    SafetyNetBlock,
    ValidationReport,
)
from stock_import.services.summary import render_summary_line


def test_render_summary_line_success():
    stats = ImportStats(
        total_parsed=12,
        after_clean=12,
        after_variant_rules=14,
        after_expansion=16,
        after_discontinued_filter=15,
        final_count=15,
    )
    result = ImportResult("acme", ImportOutcome.SUCCESS, [], stats, used_format="row")
    assert render_summary_line(result) == (
        "SUMMARY source=acme outcome=success format=row parsed=12 after_clean=12 "
        "after_variant_rules=14 after_expansion=16 after_discontinued=15 final=15 "
        "blocked=0 validation_failed=0"
    )


def test_render_summary_line_blocked():
    block = SafetyNetBlock(existing_count=100, new_count=0, drop_percent=100.0, reason="x")
    result = ImportResult("acme sale", ImportOutcome.BLOCKED, [], ImportStats(), blocked=block)
    line = render_summary_line(result)
    assert "source=acme_sale " in line
    assert "outcome=blocked format=none" in line
    assert line.endswith("blocked=1 validation_failed=0")


def test_render_summary_line_counts_failed_checks():
    report = ValidationReport(
        results=(
            CheckResult("Minimum Items", False, "1 items (min: 5)", "bounds"),
            CheckResult("Data Exists", True, "1 items produced", "basic"),
        )
    )
    result = ImportResult("acme", ImportOutcome.SUCCESS, [], ImportStats(), validation=report)
    assert render_summary_line(result).endswith("validation_failed=1")
