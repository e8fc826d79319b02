from __future__ import annotations

import math
from collections.abc import Iterable, Sequence
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from stock_import.models.raw_matrix import RawMatrix, is_blank

"""Spreadsheet reading into RawMatrix.

Sheets are read with pandas without a header row (``header=None``) and
without dtype inference so the extractors see cells as users typed them.
Several uploaded files belonging to one logical import are consolidated
into one matrix before any detection runs.
"""

__all__ = [
    "ReaderError",
    "read_matrix",
    "read_files",
    "consolidate",
    "dataframe_to_matrix",
]

SUPPORTED_SUFFIXES = {".xlsx", ".xlsm", ".xls", ".csv"}


class ReaderError(Exception):
    """Raised when a file cannot be read or matrices cannot be consolidated."""


def _clean_cell(value: Any) -> Any:
    if value is None or value is pd.NaT:
        return None
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            return int(value)
        return value
    if isinstance(value, pd.Timestamp):
        if pd.isna(value):
            return None
        return value.date().isoformat()
    if isinstance(value, (datetime, date)):
        return value.isoformat()[:10]
    if isinstance(value, str):
        return value
    # numpy scalars
    if hasattr(value, "item"):
        return _clean_cell(value.item())
    return value


def dataframe_to_matrix(df: pd.DataFrame) -> RawMatrix:
    rows: list[list[Any]] = []
    for raw in df.itertuples(index=False, name=None):
        row = [_clean_cell(v) for v in raw]
        # trailing empty cells carry no information
        while row and is_blank(row[-1]):
            row.pop()
        rows.append(row)
    # drop trailing empty rows
    while rows and not rows[-1]:
        rows.pop()
    return RawMatrix.from_rows(rows)


def read_matrix(path: Path, sheet: str | int | None = None) -> RawMatrix:
    """Read one sheet (first sheet by default) of ``path`` into a RawMatrix.

    Raises:
        ReaderError: unsupported extension, missing file, or pandas failure
    """
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ReaderError(f"unsupported file type: {path.name}")
    if not path.exists():
        raise ReaderError(f"file not found: {path}")
    try:
        if suffix == ".csv":
            df = pd.read_csv(path, header=None, dtype=object, keep_default_na=False, na_values=[""])
        else:
            with pd.ExcelFile(path) as xls:
                target = sheet if sheet is not None else xls.sheet_names[0]
                df = xls.parse(target, header=None, dtype=object)
    except (OSError, ValueError) as e:
        raise ReaderError(f"failed to read {path.name}: {e}") from e
    return dataframe_to_matrix(df)


def _first_non_blank_row(matrix: RawMatrix) -> int:
    for i, row in enumerate(matrix.rows):
        if any(not is_blank(c) for c in row):
            return i
    return len(matrix)


def consolidate(matrices: Sequence[RawMatrix]) -> RawMatrix:
    """Combine several matrices into one logical import.

    The first matrix is kept whole; every later matrix contributes only the
    rows below its own header (its first non-blank row).
    """
    if not matrices:
        raise ReaderError("nothing to consolidate")
    rows: list[tuple[Any, ...]] = list(matrices[0].rows)
    for m in matrices[1:]:
        header_idx = _first_non_blank_row(m)
        rows.extend(m.rows[header_idx + 1:])
    return RawMatrix(tuple(rows))


def read_files(paths: Iterable[Path], sheet: str | int | None = None) -> RawMatrix:
    """Read every file first, then consolidate; a read failure aborts the whole set."""
    matrices = [read_matrix(p, sheet) for p in paths]
    return consolidate(matrices)
