"""Product inventory operations driven by scans, receipts and manual edits."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import TYPE_CHECKING

from ..errors import StorageFailure
from .schema import ensure_schema

if TYPE_CHECKING:
    from ..receipt.models import ParsedProduct


@dataclass
class RemoveResult:
    """What happened when one unit of a barcode was taken out."""

    found: bool
    finished: bool = False
    image_path: str | None = None
    added_to_shopping: bool = False


class InventoryDB:
    """Manages the products and scan_history tables."""

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

    def record_scan(
        self,
        barcode: str,
        action: str,
        device: str | None = None,
        image_path: str | None = None,
    ) -> int:
        """Append a scanner event to scan_history."""
        conn = self._get_conn()
        cur = conn.execute(
            """INSERT INTO scan_history (barcode, action, device, image_path)
               VALUES (?, ?, ?, ?)""",
            (barcode, action, device, image_path),
        )
        conn.commit()
        return cur.lastrowid

    def get_scan_history(self, limit: int = 50) -> list[dict]:
        conn = self._get_conn()
        rows = conn.execute(
            "SELECT * FROM scan_history ORDER BY id DESC LIMIT ?", (limit,)
        ).fetchall()
        return [dict(r) for r in rows]

    def _find_open(self, barcode: str) -> sqlite3.Row | None:
        return self._get_conn().execute(
            "SELECT * FROM products WHERE barcode = ? AND finished = 0",
            (barcode,),
        ).fetchone()

    def add_scanned(
        self,
        barcode: str,
        expiry_date: str | None = None,
        image_path: str | None = None,
    ) -> int:
        """Register one more unit of a scanned barcode.

        An open product with the same barcode gets its quantity bumped (and
        its photo replaced when a new one is given); otherwise a new product
        is created. The barcode is taken off the shopping list either way.

        Returns:
            The product row ID.
        """
        conn = self._get_conn()
        existing = self._find_open(barcode)
        if existing is not None:
            conn.execute(
                """UPDATE products
                   SET quantity = quantity + 1,
                       image_path = COALESCE(?, image_path)
                   WHERE id = ?""",
                (image_path, existing["id"]),
            )
            product_id = existing["id"]
        else:
            cur = conn.execute(
                """INSERT INTO products (barcode, expiry_date, image_path)
                   VALUES (?, ?, ?)""",
                (barcode, expiry_date or None, image_path),
            )
            product_id = cur.lastrowid
        conn.execute("DELETE FROM shopping_list WHERE barcode = ?", (barcode,))
        conn.commit()
        return product_id

    def remove_scanned(self, barcode: str) -> RemoveResult:
        """Take one unit of a scanned barcode out of the fridge.

        When the last unit goes the product is marked finished and the
        barcode is put on the shopping list unless it is already there.
        Unknown barcodes are ignored.
        """
        conn = self._get_conn()
        existing = self._find_open(barcode)
        if existing is None:
            return RemoveResult(found=False)

        if existing["quantity"] > 1:
            conn.execute(
                "UPDATE products SET quantity = quantity - 1 WHERE id = ?",
                (existing["id"],),
            )
            conn.commit()
            return RemoveResult(found=True)

        conn.execute(
            "UPDATE products SET finished = 1, quantity = 0 WHERE id = ?",
            (existing["id"],),
        )
        listed = conn.execute(
            "SELECT 1 FROM shopping_list WHERE barcode = ?", (barcode,)
        ).fetchone()
        if listed is None:
            conn.execute(
                """INSERT INTO shopping_list (barcode, name, auto_generated)
                   VALUES (?, ?, 1)""",
                (barcode, existing["name"] or barcode),
            )
        conn.commit()
        return RemoveResult(
            found=True,
            finished=True,
            image_path=existing["image_path"],
            added_to_shopping=listed is None,
        )

    def add_manual(
        self,
        barcode: str,
        name: str | None = None,
        brand: str | None = None,
        category: str | None = None,
        quantity: int = 1,
        expiry_date: str | None = None,
    ) -> int:
        """Insert a product typed in by hand."""
        conn = self._get_conn()
        cur = conn.execute(
            """INSERT INTO products
               (barcode, name, brand, category, quantity, expiry_date)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (barcode, name, brand, category, quantity or 1, expiry_date),
        )
        conn.commit()
        return cur.lastrowid

    def insert_product(self, record: ParsedProduct) -> int:
        """Store a product parsed from a receipt.

        Raises:
            StorageFailure: If the database rejects the insert.
        """
        conn = self._get_conn()
        try:
            cur = conn.execute(
                """INSERT INTO products
                   (barcode, name, category, quantity, weight, purchase_date,
                    expiry_date, from_receipt)
                   VALUES (?, ?, ?, 1, ?, ?, ?, ?)""",
                (
                    record.generated_code,
                    record.name,
                    record.category,
                    record.weight,
                    record.purchase_date.isoformat(),
                    record.expiry_date.isoformat(),
                    int(record.from_receipt),
                ),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise StorageFailure(f"Could not store {record.name!r}: {e}") from e
        return cur.lastrowid

    def get_product(self, product_id: int) -> dict | None:
        row = self._get_conn().execute(
            "SELECT * FROM products WHERE id = ?", (product_id,)
        ).fetchone()
        return dict(row) if row else None

    def update_product(
        self,
        product_id: int,
        *,
        name: str | None = None,
        brand: str | None = None,
        category: str | None = None,
        quantity: int | None = None,
        expiry_date: str | None = None,
    ) -> bool:
        """Overwrite the editable fields of a product.

        Returns:
            False if no product has that ID.
        """
        conn = self._get_conn()
        cur = conn.execute(
            """UPDATE products
               SET name = ?, brand = ?, category = ?,
                   quantity = COALESCE(?, quantity), expiry_date = ?
               WHERE id = ?""",
            (name, brand, category, quantity, expiry_date, product_id),
        )
        conn.commit()
        return cur.rowcount > 0

    def delete_product(self, product_id: int) -> str | None:
        """Delete a product and return its image path, if it had one."""
        conn = self._get_conn()
        row = conn.execute(
            "SELECT image_path FROM products WHERE id = ?", (product_id,)
        ).fetchone()
        conn.execute("DELETE FROM products WHERE id = ?", (product_id,))
        conn.commit()
        return row["image_path"] if row else None

    def get_inventory(self) -> list[dict]:
        """Return all products still in the fridge, soonest expiry first."""
        conn = self._get_conn()
        rows = conn.execute(
            """SELECT * FROM products WHERE finished = 0
               ORDER BY expiry_date IS NULL, expiry_date"""
        ).fetchall()
        return [dict(r) for r in rows]

    def get_expiring(self, days: int = 7, today: date | None = None) -> list[dict]:
        """Return open products expiring within the given number of days.

        Already expired products are included.
        """
        conn = self._get_conn()
        target = (today or date.today()).isoformat()
        rows = conn.execute(
            """SELECT * FROM products
               WHERE finished = 0
                 AND expiry_date IS NOT NULL
                 AND date(expiry_date) <= date(?, '+' || ? || ' days')
               ORDER BY expiry_date""",
            (target, days),
        ).fetchall()
        return [dict(r) for r in rows]

    def get_stats(self, today: date | None = None) -> dict:
        conn = self._get_conn()
        total = conn.execute(
            "SELECT COUNT(*) FROM products WHERE finished = 0"
        ).fetchone()[0]
        shopping = conn.execute(
            "SELECT COUNT(*) FROM shopping_list WHERE purchased = 0"
        ).fetchone()[0]
        return {
            "total_products": total,
            "expiring_soon": len(self.get_expiring(7, today)),
            "shopping_items": shopping,
        }
