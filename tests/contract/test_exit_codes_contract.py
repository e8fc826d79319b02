from __future__ import annotations

from stock_import.cli.__main__ import (
    EXIT_BLOCKED,
    EXIT_FATAL,
    EXIT_PARTIAL_FAILURE,
    EXIT_SUCCESS_ALL,
    _exit_code,
)
from stock_import.models.import_result import (
    CheckResult,
    ImportOutcome,
    ImportResult,
    ImportStats,
    ValidationReport,
)

"""Exit code contract: 0 success, 1 fatal, 2 validation failures, 3 blocked."""

FAILED = ValidationReport(results=(CheckResult("Minimum Items", False, "0 items (min: 1)", "bounds"),))


def _result(outcome=ImportOutcome.SUCCESS, validation=ValidationReport()):
    return ImportResult("acme", outcome, [], ImportStats(), validation=validation)


def test_exit_code_values():
    assert (EXIT_SUCCESS_ALL, EXIT_FATAL, EXIT_PARTIAL_FAILURE, EXIT_BLOCKED) == (0, 1, 2, 3)


def test_all_success():
    assert _exit_code([_result(), _result()], 0) == EXIT_SUCCESS_ALL
    assert _exit_code([], 0) == EXIT_SUCCESS_ALL


def test_validation_failure():
    assert _exit_code([_result(), _result(validation=FAILED)], 0) == EXIT_PARTIAL_FAILURE


def test_blocked_beats_validation_failure():
    assert _exit_code([_result(ImportOutcome.BLOCKED), _result(validation=FAILED)], 0) == EXIT_BLOCKED


def test_fatal_beats_everything():
    assert _exit_code([_result(ImportOutcome.BLOCKED)], 1) == EXIT_FATAL
    assert _exit_code([_result(ImportOutcome.PARSE_FAILED), _result(validation=FAILED)], 0) == EXIT_FATAL
