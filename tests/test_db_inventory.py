"""Tests for InventoryDB scan, manual and receipt operations."""

from datetime import date

import pytest

from smartfridge.db import InventoryDB, ShoppingListDB
from smartfridge.errors import StorageFailure
from smartfridge.receipt.models import ParsedProduct


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "test.db"


@pytest.fixture
def db(db_path):
    inventory = InventoryDB(db_path=db_path)
    yield inventory
    inventory.close()


@pytest.fixture
def shopping(db_path):
    shopping_list = ShoppingListDB(db_path=db_path)
    yield shopping_list
    shopping_list.close()


class TestScans:
    def test_add_new_barcode(self, db):
        product_id = db.add_scanned("8000500310427", expiry_date="2025-01-10")
        product = db.get_product(product_id)
        assert product["quantity"] == 1
        assert product["expiry_date"] == "2025-01-10"
        assert product["finished"] == 0

    def test_add_existing_increments(self, db):
        first = db.add_scanned("8000500310427", image_path="/images/a.jpg")
        second = db.add_scanned("8000500310427")
        assert first == second
        product = db.get_product(first)
        assert product["quantity"] == 2
        assert product["image_path"] == "/images/a.jpg"

    def test_add_replaces_image(self, db):
        product_id = db.add_scanned("123", image_path="/images/a.jpg")
        db.add_scanned("123", image_path="/images/b.jpg")
        assert db.get_product(product_id)["image_path"] == "/images/b.jpg"

    def test_add_clears_shopping_list(self, db, shopping):
        shopping.add_item("123", "Latte")
        db.add_scanned("123")
        assert shopping.get_items() == []

    def test_remove_decrements(self, db, shopping):
        product_id = db.add_scanned("123")
        db.add_scanned("123")
        result = db.remove_scanned("123")

        assert result.found is True
        assert result.finished is False
        assert db.get_product(product_id)["quantity"] == 1
        assert shopping.get_items() == []

    def test_remove_last_unit_finishes_and_lists(self, db, shopping):
        product_id = db.add_scanned("123", image_path="/images/a.jpg")
        result = db.remove_scanned("123")

        assert result.finished is True
        assert result.image_path == "/images/a.jpg"
        assert result.added_to_shopping is True
        product = db.get_product(product_id)
        assert product["finished"] == 1
        assert product["quantity"] == 0
        assert db.get_inventory() == []

        items = shopping.get_items()
        assert len(items) == 1
        assert items[0]["barcode"] == "123"
        assert items[0]["name"] == "123"
        assert items[0]["auto_generated"] == 1

    def test_remove_uses_product_name(self, db, shopping):
        db.add_manual("456", name="Yogurt greco")
        db.remove_scanned("456")
        assert shopping.get_items()[0]["name"] == "Yogurt greco"

    def test_remove_does_not_duplicate_shopping_entry(self, db, shopping):
        shopping.add_item("123", "Latte")
        db.add_manual("123", name="Latte")
        result = db.remove_scanned("123")
        assert result.added_to_shopping is False
        assert len(shopping.get_items()) == 1

    def test_remove_unknown_barcode(self, db, shopping):
        result = db.remove_scanned("999")
        assert result.found is False
        assert shopping.get_items() == []

    def test_record_scan(self, db):
        db.record_scan("123", "add", device="esp32-cam", image_path=None)
        db.record_scan("123", "remove")
        history = db.get_scan_history()
        assert [h["action"] for h in history] == ["remove", "add"]
        assert history[1]["device"] == "esp32-cam"


class TestManualEdits:
    def test_add_manual(self, db):
        product_id = db.add_manual(
            "789", name="Burro", brand="Brand", category="Dairy",
            quantity=2, expiry_date="2025-02-01",
        )
        product = db.get_product(product_id)
        assert product["name"] == "Burro"
        assert product["quantity"] == 2
        assert product["from_receipt"] == 0

    def test_update_product(self, db):
        product_id = db.add_manual("789", name="Burro")
        assert db.update_product(product_id, name="Burro salato", quantity=3) is True
        product = db.get_product(product_id)
        assert product["name"] == "Burro salato"
        assert product["quantity"] == 3

    def test_update_keeps_quantity_when_omitted(self, db):
        product_id = db.add_manual("789", name="Burro", quantity=4)
        db.update_product(product_id, name="Burro")
        assert db.get_product(product_id)["quantity"] == 4

    def test_update_missing(self, db):
        assert db.update_product(42, name="x") is False

    def test_delete_product(self, db):
        product_id = db.add_scanned("123", image_path="/images/a.jpg")
        assert db.delete_product(product_id) == "/images/a.jpg"
        assert db.get_product(product_id) is None
        assert db.delete_product(product_id) is None


class TestReceiptProducts:
    def test_insert_product(self, db):
        record = ParsedProduct(
            name="SPECK ALTO ADIGE",
            category="Cured-Meats",
            purchase_date=date(2024, 3, 1),
            expiry_date=date(2024, 3, 5),
            weight="0,150 kg",
        )
        product_id = db.insert_product(record)
        product = db.get_product(product_id)
        assert product["barcode"] == record.generated_code
        assert product["barcode"].startswith("RCPT-")
        assert product["weight"] == "0,150 kg"
        assert product["from_receipt"] == 1

    def test_insert_product_failure(self, db):
        record = ParsedProduct(
            name="SPECK",
            category="Cured-Meats",
            purchase_date=date(2024, 3, 1),
            expiry_date=date(2024, 3, 5),
            generated_code=None,
        )
        with pytest.raises(StorageFailure, match="SPECK"):
            db.insert_product(record)


class TestQueries:
    def test_inventory_ordered_by_expiry(self, db):
        db.add_manual("a", name="late", expiry_date="2025-03-01")
        db.add_manual("b", name="none")
        db.add_manual("c", name="early", expiry_date="2025-01-01")
        names = [p["name"] for p in db.get_inventory()]
        assert names == ["early", "late", "none"]

    def test_get_expiring(self, db):
        today = date(2025, 1, 10)
        db.add_manual("a", name="expired", expiry_date="2025-01-05")
        db.add_manual("b", name="soon", expiry_date="2025-01-12")
        db.add_manual("c", name="later", expiry_date="2025-02-01")
        db.add_manual("d", name="undated")

        names = [p["name"] for p in db.get_expiring(3, today=today)]
        assert names == ["expired", "soon"]

    def test_get_stats(self, db, shopping):
        today = date(2025, 1, 10)
        db.add_manual("a", name="soon", expiry_date="2025-01-12")
        db.add_manual("b", name="later", expiry_date="2025-03-01")
        shopping.add_item("x", "Pane")

        assert db.get_stats(today=today) == {
            "total_products": 2,
            "expiring_soon": 1,
            "shopping_items": 1,
        }
