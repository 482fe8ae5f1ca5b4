"""Receipt parsing pipeline: OCR text in, registered deli products out."""

from __future__ import annotations

import logging
from datetime import date
from typing import Protocol

from ..ocr import DEFAULT_LANGUAGES, OCRBackend, recognize_text
from .classifier import ProductClassifier
from .dates import compute_expiry_date, extract_purchase_date
from .lines import LineExtractor
from .models import ParsedProduct, ReceiptSummary

logger = logging.getLogger(__name__)


class ProductStore(Protocol):
    def insert_product(self, record: ParsedProduct) -> int: ...


class ReceiptParser:
    """Runs receipt images through OCR, line extraction and storage.

    The parser holds no per-receipt state, so a single instance can serve
    concurrent requests.
    """

    def __init__(
        self,
        ocr_backend: OCRBackend,
        store: ProductStore,
        *,
        classifier: ProductClassifier | None = None,
        languages: str = DEFAULT_LANGUAGES,
        ocr_timeout: float | None = 30.0,
    ) -> None:
        self._ocr = ocr_backend
        self._store = store
        self._extractor = LineExtractor(classifier)
        self._languages = languages
        self._ocr_timeout = ocr_timeout

    def parse_text(self, text: str, today: date | None = None) -> ReceiptSummary:
        """Build product records from OCR text without touching storage."""
        purchase_date = extract_purchase_date(text, today)
        expiry_date = compute_expiry_date(purchase_date)

        products: list[ParsedProduct] = []
        for line in self._extractor.extract(text):
            products.append(
                ParsedProduct(
                    name=line.name,
                    weight=line.weight,
                    category=line.category,
                    purchase_date=purchase_date,
                    expiry_date=expiry_date,
                )
            )

        return ReceiptSummary(
            purchase_date=purchase_date,
            expiry_date=expiry_date,
            products=products,
        )

    async def process_image(
        self, image_bytes: bytes, today: date | None = None
    ) -> ReceiptSummary:
        """OCR a receipt image and register every deli product found.

        Raises:
            OcrFailure: If recognition fails or times out. Nothing is stored.
            StorageFailure: If the store rejects a product. Products inserted
                before the failing one stay stored.
        """
        text = await recognize_text(
            self._ocr, image_bytes, self._languages, timeout=self._ocr_timeout
        )
        summary = self.parse_text(text, today)
        self.register(summary)
        return summary

    def register(self, summary: ReceiptSummary) -> None:
        """Hand every product of ``summary`` to the store, one insert each."""
        for product in summary.products:
            self._store.insert_product(product)

        logger.info(
            "Receipt dated %s: %d products registered (expiry %s)",
            summary.purchase_date,
            summary.products_found,
            summary.expiry_date,
        )
