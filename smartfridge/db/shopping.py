"""Shopping list storage."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from .schema import ensure_schema


class ShoppingListDB:
    """Manages the shopping_list table."""

    def __init__(self, db_path: str | Path = "~/.config/smartfridge/fridge.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = ensure_schema(self._db_path)
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def get_items(self) -> list[dict]:
        """Return items still to buy, newest first."""
        conn = self._get_conn()
        rows = conn.execute(
            """SELECT * FROM shopping_list WHERE purchased = 0
               ORDER BY added_date DESC, id DESC"""
        ).fetchall()
        return [dict(r) for r in rows]

    def add_item(
        self,
        barcode: str,
        name: str | None = None,
        quantity: int = 1,
        *,
        auto_generated: bool = False,
    ) -> int:
        conn = self._get_conn()
        cur = conn.execute(
            """INSERT INTO shopping_list
               (barcode, name, quantity_needed, auto_generated)
               VALUES (?, ?, ?, ?)""",
            (barcode, name, quantity or 1, int(auto_generated)),
        )
        conn.commit()
        return cur.lastrowid

    def delete_item(self, item_id: int) -> bool:
        conn = self._get_conn()
        cur = conn.execute("DELETE FROM shopping_list WHERE id = ?", (item_id,))
        conn.commit()
        return cur.rowcount > 0
