"""Receipt OCR parsing for deli purchases."""

from .classifier import (
    CURED_MEATS,
    DAIRY,
    DEFAULT_CATEGORY,
    MEAT,
    ProductClassifier,
)
from .dates import (
    SHELF_LIFE_DAYS,
    compute_expiry_date,
    extract_purchase_date,
    find_date,
)
from .lines import LineExtractor
from .models import ParsedProduct, ProductLine, ReceiptSummary
from .parser import ReceiptParser

__all__ = [
    "ReceiptParser",
    "LineExtractor",
    "ProductClassifier",
    "ParsedProduct",
    "ProductLine",
    "ReceiptSummary",
    "find_date",
    "extract_purchase_date",
    "compute_expiry_date",
    "SHELF_LIFE_DAYS",
    "DAIRY",
    "MEAT",
    "CURED_MEATS",
    "DEFAULT_CATEGORY",
]
