from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for structured JSON Lines error logging.

Rows that had to be skipped, extractors that produced nothing, blocked
imports and failed validation checks are all recorded with the same fixed
schema. ``row = -1`` marks problems that are not tied to a single row.
"""

__all__ = [
    "ErrorRecord",
    "ROW_SKIPPED",
    "EXTRACTOR_EMPTY",
    "PARSE_FAILED",
    "IMPORT_BLOCKED",
    "VALIDATION_FAILED",
    "READ_ERROR",
]

ROW_SKIPPED = "ROW_SKIPPED"
EXTRACTOR_EMPTY = "EXTRACTOR_EMPTY"
PARSE_FAILED = "PARSE_FAILED"
IMPORT_BLOCKED = "IMPORT_BLOCKED"
VALIDATION_FAILED = "VALIDATION_FAILED"
READ_ERROR = "READ_ERROR"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        data_source: Data source id being imported
        file: Source file name ("" when the matrix was passed in directly)
        row: 0-based matrix row, or -1 when not row specific
        error_type: Classification in UPPER_SNAKE_CASE
        message: Human readable description
    """
    timestamp: str
    data_source: str
    file: str
    row: int
    error_type: str
    message: str

    @staticmethod
    def create(data_source: str, file: str, row: int, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            data_source=data_source,
            file=file,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
