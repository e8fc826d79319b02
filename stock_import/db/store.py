from __future__ import annotations

import copy
from collections.abc import Iterable, Iterator, Sequence
from contextlib import AbstractContextManager, contextmanager
from typing import Any, Protocol

from ..models.snapshot import ImportSnapshot
from ..models.variant_item import VariantItem

"""Inventory store interface and the in-memory implementation.

The store owns the per-source state an import reads and writes as one
unit: persisted items, the last snapshot and the discontinued-style
registry. Writes made inside ``transaction()`` are all applied or none are.
"""

__all__ = [
    "StoreError",
    "InventoryStore",
    "InMemoryInventoryStore",
]


class StoreError(Exception):
    pass


class InventoryStore(Protocol):
    def transaction(self) -> AbstractContextManager[Any]: ...

    def count_items(self, source_id: str) -> int: ...

    def replace_items(self, source_id: str, items: Sequence[VariantItem], file_id: str | None = None) -> int: ...

    def remove_styles(self, source_id: str, styles: Iterable[str]) -> int: ...

    def load_snapshot(self, source_id: str) -> ImportSnapshot | None: ...

    def save_snapshot(self, source_id: str, snapshot: ImportSnapshot) -> None: ...

    def register_discontinued_styles(self, sale_source_id: str, styles: Sequence[str]) -> None: ...

    def discontinued_styles(self, sale_source_id: str) -> list[str]: ...


class InMemoryInventoryStore:
    """Dict-backed store used for dry runs and tests."""

    def __init__(self) -> None:
        self._items: dict[str, dict[str, VariantItem]] = {}
        self._file_ids: dict[str, str | None] = {}
        self._snapshots: dict[str, ImportSnapshot] = {}
        self._discontinued: dict[str, list[str]] = {}

    @contextmanager
    def transaction(self) -> Iterator[InMemoryInventoryStore]:
        saved = (
            copy.deepcopy(self._items),
            dict(self._file_ids),
            dict(self._snapshots),
            copy.deepcopy(self._discontinued),
        )
        try:
            yield self
        except BaseException:
            self._items, self._file_ids, self._snapshots, self._discontinued = saved
            raise

    def items(self, source_id: str) -> list[VariantItem]:
        return list(self._items.get(source_id, {}).values())

    def file_id(self, source_id: str) -> str | None:
        return self._file_ids.get(source_id)

    def count_items(self, source_id: str) -> int:
        return len(self._items.get(source_id, {}))

    def replace_items(self, source_id: str, items: Sequence[VariantItem], file_id: str | None = None) -> int:
        self._items[source_id] = {item.sku: item for item in items}
        self._file_ids[source_id] = file_id
        return len(self._items[source_id])

    def remove_styles(self, source_id: str, styles: Iterable[str]) -> int:
        wanted = {s.lower() for s in styles}
        current = self._items.get(source_id, {})
        doomed = [sku for sku, item in current.items() if item.style.lower() in wanted]
        for sku in doomed:
            del current[sku]
        return len(doomed)

    def load_snapshot(self, source_id: str) -> ImportSnapshot | None:
        return self._snapshots.get(source_id)

    def save_snapshot(self, source_id: str, snapshot: ImportSnapshot) -> None:
        self._snapshots[source_id] = snapshot

    def register_discontinued_styles(self, sale_source_id: str, styles: Sequence[str]) -> None:
        self._discontinued[sale_source_id] = list(styles)

    def discontinued_styles(self, sale_source_id: str) -> list[str]:
        return list(self._discontinued.get(sale_source_id, []))
