"""Date extraction from OCR text and shelf-life arithmetic."""

from __future__ import annotations

import re
from datetime import date, timedelta

# Deli goods carry no printed expiry; assume four days from purchase.
SHELF_LIFE_DAYS = 4

# DD/MM/YYYY then DD/MM/YY, with '/', '-' or '.' separators. Each pattern
# is searched over the whole text before the next one is tried.
_DATE_PATTERNS = (
    re.compile(r"(?<!\d)(\d{2})[/\-.](\d{2})[/\-.](\d{4})(?!\d)"),
    re.compile(r"(?<!\d)(\d{2})[/\-.](\d{2})[/\-.](\d{2})(?!\d)"),
)


def find_date(text: str) -> date | None:
    """Return the first valid calendar date written in ``text``.

    Any date with a four-digit year beats every two-digit one, wherever they
    appear. Two-digit years are expanded into the 2000s. Matches that do not
    name a real day (e.g. 31/02/2024) are skipped.
    """
    for pattern in _DATE_PATTERNS:
        for match in pattern.finditer(text):
            day, month, year = match.groups()
            if len(year) == 2:
                year = "20" + year
            try:
                return date(int(year), int(month), int(day))
            except ValueError:
                continue
    return None


def extract_purchase_date(text: str, today: date | None = None) -> date:
    """Purchase date printed on the receipt, or ``today`` when none is found."""
    found = find_date(text)
    if found is not None:
        return found
    return today or date.today()


def compute_expiry_date(purchase_date: date, days: int = SHELF_LIFE_DAYS) -> date:
    return purchase_date + timedelta(days=days)
