from __future__ import annotations

import json
import re
from pathlib import Path

from stock_import.logging.error_log import ErrorLogBuffer
from stock_import.models.error_record import (
    EXTRACTOR_EMPTY,
    IMPORT_BLOCKED,
    PARSE_FAILED,
    READ_ERROR,
    ROW_SKIPPED,
    VALIDATION_FAILED,
    ErrorRecord,
)

"""Error log contract: JSON Lines with a fixed key set, UTC timestamps."""

REQUIRED_KEYS = {"timestamp", "data_source", "file", "row", "error_type", "message"}
TIMESTAMP_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z$")
ERROR_TYPE_PATTERN = re.compile(r"^[A-Z][A-Z_]*$")


def test_error_types_are_upper_snake_case():
    for error_type in (ROW_SKIPPED, EXTRACTOR_EMPTY, PARSE_FAILED, IMPORT_BLOCKED, VALIDATION_FAILED, READ_ERROR):
        assert ERROR_TYPE_PATTERN.match(error_type)


def test_error_log_line_schema(temp_workdir: Path):
    buf = ErrorLogBuffer(temp_workdir / "logs")
    buf.append(ErrorRecord.create("acme", "acme.xlsx", 4, ROW_SKIPPED, "missing style"))
    buf.append(ErrorRecord.create("acme", "", -1, IMPORT_BLOCKED, "import has 0 items"))
    path = buf.flush()

    assert re.match(r"^errors-\d{8}-\d{6}\.log$", path.name)
    for raw in path.read_text(encoding="utf-8").splitlines():
        obj = json.loads(raw)
        assert set(obj) == REQUIRED_KEYS
        assert TIMESTAMP_PATTERN.match(obj["timestamp"])
        assert isinstance(obj["row"], int) and obj["row"] >= -1
        assert ERROR_TYPE_PATTERN.match(obj["error_type"])


def test_non_ascii_messages_are_kept():
    line = ErrorRecord.create("acme", "stock.xlsx", 1, ROW_SKIPPED, "colour ‘ivoire’ unknown").to_json_line()
    assert "‘ivoire’" in line
