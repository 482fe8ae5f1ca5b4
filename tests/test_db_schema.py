"""Tests for database schema creation and migration."""

from smartfridge.db.schema import _SCHEMA_VERSION, ensure_schema


def test_ensure_schema_creates_tables(tmp_path):
    """Schema creates products, shopping list and scan history tables."""
    conn = ensure_schema(tmp_path / "test.db")

    tables = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    ).fetchall()
    table_names = {row["name"] for row in tables}

    assert {"products", "shopping_list", "scan_history", "schema_version"} <= table_names

    conn.close()


def test_ensure_schema_creates_parent_dirs(tmp_path):
    db_path = tmp_path / "sub" / "dir" / "test.db"
    conn = ensure_schema(db_path)
    assert db_path.exists()
    conn.close()


def test_ensure_schema_idempotent(tmp_path):
    """Calling ensure_schema twice keeps the version."""
    db_path = tmp_path / "test.db"
    ensure_schema(db_path).close()

    conn = ensure_schema(db_path)
    row = conn.execute("SELECT version FROM schema_version").fetchone()
    assert row["version"] == _SCHEMA_VERSION
    conn.close()


def test_ensure_schema_wal_mode(tmp_path):
    conn = ensure_schema(tmp_path / "test.db")
    mode = conn.execute("PRAGMA journal_mode").fetchone()
    assert mode[0] == "wal"
    conn.close()


def test_products_columns(tmp_path):
    """products table carries the receipt fields."""
    conn = ensure_schema(tmp_path / "test.db")

    info = conn.execute("PRAGMA table_info(products)").fetchall()
    col_names = {row["name"] for row in info}

    expected = {
        "id", "barcode", "name", "brand", "category", "quantity", "weight",
        "purchase_date", "expiry_date", "image_path", "from_receipt",
        "added_date", "finished",
    }
    assert expected.issubset(col_names)

    conn.close()
