from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

"""RawMatrix: immutable snapshot of one spreadsheet sheet (rows of cells)."""

__all__ = [
    "RawMatrix",
    "cell_text",
    "is_blank",
]


def cell_text(value: Any) -> str:
    """Stringify a cell the way users read it: ``None`` -> "", 12.0 -> "12"."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def is_blank(value: Any) -> bool:
    return cell_text(value) == ""


@dataclass(frozen=True)
class RawMatrix:
    rows: tuple[tuple[Any, ...], ...] = ()

    @staticmethod
    def from_rows(rows: Iterable[Sequence[Any]]) -> RawMatrix:
        return RawMatrix(tuple(tuple(r) for r in rows))

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self):
        return iter(self.rows)

    def row(self, index: int) -> tuple[Any, ...]:
        if 0 <= index < len(self.rows):
            return self.rows[index]
        return ()

    def cell(self, row: int, col: int) -> Any:
        r = self.row(row)
        if 0 <= col < len(r):
            return r[col]
        return None

    def skip(self, count: int) -> RawMatrix:
        if count <= 0:
            return self
        return RawMatrix(self.rows[count:])

    @property
    def is_empty(self) -> bool:
        return not any(any(not is_blank(c) for c in r) for r in self.rows)
