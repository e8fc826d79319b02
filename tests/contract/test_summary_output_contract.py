from __future__ import annotations

import re

from stock_import.cli.__main__ import main as cli_main
from stock_import.models.import_result import ImportOutcome, ImportResult, ImportStats
from stock_import.services.summary import render_summary_line

"""SUMMARY line format contract: one line per data source, key=value pairs."""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY\s+source=(\S+)\s+outcome=(success|blocked|parse_failed)\s+format=(\S+)\s+"
    r"parsed=([0-9]+)\s+after_clean=([0-9]+)\s+after_variant_rules=([0-9]+)\s+"
    r"after_expansion=([0-9]+)\s+after_discontinued=([0-9]+)\s+final=([0-9]+)\s+"
    r"blocked=([01])\s+validation_failed=([0-9]+)$"
)


def test_summary_pattern_example_line():
    line = (
        "SUMMARY source=acme outcome=success format=row parsed=4 after_clean=4 "
        "after_variant_rules=6 after_expansion=6 after_discontinued=5 final=5 "
        "blocked=0 validation_failed=0"
    )
    assert SUMMARY_PATTERN.match(line)


def test_rendered_line_matches_contract():
    for outcome in ImportOutcome:
        result = ImportResult("acme", outcome, [], ImportStats(total_parsed=3))
        assert SUMMARY_PATTERN.match(render_summary_line(result)), outcome


def test_cli_summary_lines_match_contract(write_config, make_xlsx, clean_logging, capsys):
    header = ["Style", "Color", "Size", "Qty"]
    make_xlsx("acme.xlsx", [header, ["A100", "Red", "4", 3]])
    make_xlsx("acme-sale.xlsx", [header, ["A900", "Red", "4", 1]])

    assert cli_main(["--dry-run"]) == 0
    lines = [line for line in capsys.readouterr().out.splitlines() if line.startswith("SUMMARY")]
    assert len(lines) == 2
    for line in lines:
        assert SUMMARY_PATTERN.match(line), line
