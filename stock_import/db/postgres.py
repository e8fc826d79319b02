from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from typing import Any

import psycopg2
from psycopg2.extras import execute_values

from ..models.snapshot import ImportSnapshot
from ..models.variant_item import VariantItem
from .store import StoreError

"""PostgreSQL-backed inventory store.

Batch inserts go through ``psycopg2.extras.execute_values``. The store
works on a caller-supplied cursor and manages transaction boundaries with
explicit BEGIN / COMMIT / ROLLBACK statements, so one import is one
transaction.

Tables::

    inventory_items(data_source_id, sku, style, color, size, stock, price,
                    ship_date, discontinued, is_expanded_size,
                    expanded_from_size, brand, file_id)
    import_snapshots(data_source_id PRIMARY KEY, snapshot TEXT)
    discontinued_styles(sale_source_id, style)
"""

__all__ = [
    "ITEM_COLUMNS",
    "PAGE_SIZE",
    "PostgresInventoryStore",
    "connect",
    "item_row",
]

logger = logging.getLogger(__name__)

PAGE_SIZE = 1000

ITEM_COLUMNS = (
    "data_source_id",
    "sku",
    "style",
    "color",
    "size",
    "stock",
    "price",
    "ship_date",
    "discontinued",
    "is_expanded_size",
    "expanded_from_size",
    "brand",
    "file_id",
)


def item_row(source_id: str, item: VariantItem, file_id: str | None) -> tuple[Any, ...]:
    return (
        source_id,
        item.sku,
        item.style,
        item.color,
        item.size,
        item.stock,
        item.price,
        item.ship_date,
        item.discontinued,
        item.is_expanded_size,
        item.expanded_from_size,
        item.brand,
        file_id,
    )


def connect(dsn: str) -> Any:
    """Open a connection with autocommit off; callers own closing it."""
    try:
        conn = psycopg2.connect(dsn)
    except psycopg2.Error as e:
        raise StoreError(f"database connection failed: {e}") from e
    conn.autocommit = False
    return conn


class PostgresInventoryStore:
    def __init__(self, cursor: Any, page_size: int = PAGE_SIZE) -> None:
        self.cursor = cursor
        self.page_size = page_size

    def _execute(self, sql: str, params: Sequence[Any] | None = None) -> None:
        try:
            self.cursor.execute(sql, params)
        except psycopg2.Error as e:
            raise StoreError(str(e)) from e

    @contextmanager
    def transaction(self) -> Iterator[PostgresInventoryStore]:
        self._execute("BEGIN")
        try:
            yield self
        except BaseException:
            try:
                self.cursor.execute("ROLLBACK")
            except psycopg2.Error as rollback_error:  # pragma: no cover
                logger.error(f"rollback failed: {rollback_error}")
            raise
        self._execute("COMMIT")

    def count_items(self, source_id: str) -> int:
        self._execute("SELECT COUNT(*) FROM inventory_items WHERE data_source_id = %s", (source_id,))
        row = self.cursor.fetchone()
        return int(row[0]) if row else 0

    def replace_items(self, source_id: str, items: Sequence[VariantItem], file_id: str | None = None) -> int:
        self._execute("DELETE FROM inventory_items WHERE data_source_id = %s", (source_id,))
        rows = [item_row(source_id, item, file_id) for item in items]
        if not rows:
            return 0
        cols_sql = ",".join(f'"{c}"' for c in ITEM_COLUMNS)
        try:
            execute_values(
                self.cursor,
                f"INSERT INTO inventory_items ({cols_sql}) VALUES %s",
                rows,
                page_size=self.page_size,
            )
        except psycopg2.Error as e:
            raise StoreError(str(e)) from e
        return len(rows)

    def remove_styles(self, source_id: str, styles: Iterable[str]) -> int:
        wanted = [s.lower() for s in styles]
        if not wanted:
            return 0
        self._execute(
            "DELETE FROM inventory_items WHERE data_source_id = %s AND lower(style) = ANY(%s)",
            (source_id, wanted),
        )
        return max(self.cursor.rowcount, 0)

    def load_snapshot(self, source_id: str) -> ImportSnapshot | None:
        self._execute("SELECT snapshot FROM import_snapshots WHERE data_source_id = %s", (source_id,))
        row = self.cursor.fetchone()
        if not row or not row[0]:
            return None
        try:
            return ImportSnapshot.from_dict(json.loads(row[0]))
        except json.JSONDecodeError as e:
            raise StoreError(f"corrupt snapshot for {source_id}: {e}") from e

    def save_snapshot(self, source_id: str, snapshot: ImportSnapshot) -> None:
        self._execute(
            "INSERT INTO import_snapshots (data_source_id, snapshot) VALUES (%s, %s) "
            "ON CONFLICT (data_source_id) DO UPDATE SET snapshot = EXCLUDED.snapshot",
            (source_id, json.dumps(snapshot.to_dict(), ensure_ascii=False)),
        )

    def register_discontinued_styles(self, sale_source_id: str, styles: Sequence[str]) -> None:
        self._execute("DELETE FROM discontinued_styles WHERE sale_source_id = %s", (sale_source_id,))
        if not styles:
            return
        try:
            execute_values(
                self.cursor,
                "INSERT INTO discontinued_styles (sale_source_id, style) VALUES %s",
                [(sale_source_id, s) for s in styles],
                page_size=self.page_size,
            )
        except psycopg2.Error as e:
            raise StoreError(str(e)) from e

    def discontinued_styles(self, sale_source_id: str) -> list[str]:
        self._execute(
            "SELECT style FROM discontinued_styles WHERE sale_source_id = %s ORDER BY style",
            (sale_source_id,),
        )
        return [r[0] for r in self.cursor.fetchall()]
