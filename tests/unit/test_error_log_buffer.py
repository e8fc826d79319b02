from __future__ import annotations

import json
from pathlib import Path

from stock_import.logging.error_log import ErrorLogBuffer, ErrorRecord
from stock_import.models.error_record import IMPORT_BLOCKED, ROW_SKIPPED

FIELDS = {"timestamp", "data_source", "file", "row", "error_type", "message"}


def test_error_record_creation_and_json_line():
    rec = ErrorRecord.create(
        data_source="acme",
        file="acme.xlsx",
        row=10,
        error_type=ROW_SKIPPED,
        message="row has no style",
    )
    data = json.loads(rec.to_json_line())
    assert data["data_source"] == "acme"
    assert data["file"] == "acme.xlsx"
    assert data["row"] == 10
    assert data["error_type"] == "ROW_SKIPPED"
    assert data["timestamp"].endswith("Z")
    assert set(data) == FIELDS


def test_error_log_buffer_flush(temp_workdir: Path):
    buf = ErrorLogBuffer(temp_workdir / "logs")
    buf.append(ErrorRecord.create("acme", "acme.xlsx", 1, ROW_SKIPPED, "no style"))
    buf.record("acme", "acme.xlsx", -1, IMPORT_BLOCKED, "import has 0 items")
    path = buf.flush()
    assert path is not None and path.exists()
    assert path.name.startswith("errors-") and path.suffix == ".log"

    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    for raw in lines:
        assert set(json.loads(raw)) == FIELDS
    assert len(buf) == 0


def test_error_log_buffer_empty_flush_writes_nothing(temp_workdir: Path):
    buf = ErrorLogBuffer(temp_workdir / "logs")
    assert buf.flush() is None
    assert list((temp_workdir / "logs").iterdir()) == []


def test_error_log_buffer_multiple_flushes(temp_workdir: Path):
    buf = ErrorLogBuffer(temp_workdir / "logs")
    buf.record("acme", "acme.xlsx", 1, ROW_SKIPPED, "dup")
    path = buf.flush()
    size1 = path.stat().st_size
    buf.record("acme", "acme.xlsx", 2, ROW_SKIPPED, "dup2")
    path2 = buf.flush()
    assert path == path2
    assert path2.stat().st_size > size1


def test_records_returns_copy():
    buf = ErrorLogBuffer()
    buf.record("acme", "", -1, IMPORT_BLOCKED, "blocked")
    records = buf.records
    records.clear()
    assert len(buf) == 1
