"""Data models for receipt-derived products."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from uuid import uuid4


def generate_code() -> str:
    """Return a synthetic barcode for a product that has none."""
    return f"RCPT-{uuid4().hex[:12].upper()}"


@dataclass
class ProductLine:
    """A receipt line recognised as a purchasable product."""

    name: str
    weight: str | None
    keyword: str
    category: str


@dataclass
class ParsedProduct:
    """A deli product registered from a receipt."""

    name: str
    category: str
    purchase_date: date
    expiry_date: date
    weight: str | None = None
    generated_code: str = field(default_factory=generate_code)
    from_receipt: bool = True

    def projection(self) -> dict:
        return {"name": self.name, "weight": self.weight, "category": self.category}


@dataclass
class ReceiptSummary:
    """Outcome of processing one receipt."""

    purchase_date: date
    expiry_date: date
    products: list[ParsedProduct] = field(default_factory=list)

    @property
    def products_found(self) -> int:
        return len(self.products)

    def to_dict(self) -> dict:
        return {
            "success": True,
            "purchase_date": self.purchase_date.isoformat(),
            "expiry_date": self.expiry_date.isoformat(),
            "products_found": self.products_found,
            "products": [p.projection() for p in self.products],
        }
