"""Product line extraction from raw receipt text."""

from __future__ import annotations

import logging
import re

from .classifier import ProductClassifier
from .models import ProductLine

logger = logging.getLogger(__name__)

MIN_LINE_LENGTH = 4
MIN_NAME_LENGTH = 3
MAX_NAME_LENGTH = 100

# "0,150 kg", "200g", "1.5 hg"; "gr" must be tried before "g"
_WEIGHT_RE = re.compile(
    r"(?<![\d.,])(\d+(?:[.,]\d+)?)\s*(kg|gr|hg|g)(?![a-z])", re.IGNORECASE
)
# "€ 3,50", "EUR 4.20", "7,30", "1.234,56"
_PRICE_RE = re.compile(
    r"(?:(?:€|\bEURO?\b)\s*)?(?<![\d.,])"
    r"(?:\d{1,3}(?:\.\d{3})+,\d{2}|\d+[.,]\d{2})(?!\d)",
    re.IGNORECASE,
)
_BARCODE_RE = re.compile(r"\d{8,}")
_CURRENCY_RE = re.compile(r"[€$£]|\bEURO?\b", re.IGNORECASE)
_SPACES_RE = re.compile(r"\s+")
_EDGE_CHARS = " \t*-_:;,.|#"


class LineExtractor:
    """Turns OCR text into the product lines a receipt contains."""

    def __init__(self, classifier: ProductClassifier | None = None) -> None:
        self._classifier = classifier or ProductClassifier()

    def extract(self, text: str) -> list[ProductLine]:
        products: list[ProductLine] = []
        for raw in text.splitlines():
            line = self.parse_line(raw)
            if line is not None:
                products.append(line)
        return products

    def parse_line(self, raw: str) -> ProductLine | None:
        """Parse one receipt line, or None when it is not a usable product."""
        line = raw.strip()
        if len(line) < MIN_LINE_LENGTH:
            return None

        keyword = self._classifier.match_keyword(line)
        if keyword is None:
            return None

        weight = None
        match = _WEIGHT_RE.search(line)
        if match:
            weight = f"{match.group(1)} {match.group(2).lower()}"
            line = line[: match.start()] + " " + line[match.end():]

        name = clean_name(line)
        if len(name) < MIN_NAME_LENGTH or name.replace(" ", "").isdigit():
            logger.debug("Dropping receipt line %r: unusable name %r", raw, name)
            return None

        return ProductLine(
            name=name,
            weight=weight,
            keyword=keyword,
            category=self._classifier.categorize(keyword),
        )


def clean_name(line: str) -> str:
    """Strip prices, barcodes and currency symbols from a product line."""
    name = _PRICE_RE.sub(" ", line)
    name = _BARCODE_RE.sub(" ", name)
    name = _CURRENCY_RE.sub(" ", name)
    name = _SPACES_RE.sub(" ", name).strip(_EDGE_CHARS)
    return name[:MAX_NAME_LENGTH].rstrip()
