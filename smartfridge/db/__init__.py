"""SQLite database module for the fridge inventory and shopping list."""

from .inventory import InventoryDB, RemoveResult
from .schema import ensure_schema
from .shopping import ShoppingListDB

__all__ = [
    "InventoryDB",
    "RemoveResult",
    "ShoppingListDB",
    "ensure_schema",
]
