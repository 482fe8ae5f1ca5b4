"""Keyword lexicon and category rules for deli products."""

from __future__ import annotations

from collections.abc import Callable, Sequence

DAIRY = "Dairy"
MEAT = "Meat"
CURED_MEATS = "Cured-Meats"

# Salumi dominate the deli counter, so anything without a more specific
# family lands here.
DEFAULT_CATEGORY = CURED_MEATS

# Order matters: when a line contains several keywords the first entry
# listed here wins.
PRODUCT_KEYWORDS: tuple[str, ...] = (
    # salumi
    "prosciutto", "mortadella", "salame", "salami", "speck", "bresaola",
    "coppa", "capocollo", "pancetta", "guanciale", "lardo", "culatello",
    "finocchiona", "nduja", "soppressata", "wurstel", "cotechino",
    "porchetta",
    # formaggi
    "mozzarella", "bufala", "burrata", "stracciatella", "fior di latte",
    "ricotta", "mascarpone", "parmigiano", "grana padano", "pecorino",
    "gorgonzola", "provolone", "scamorza", "fontina", "asiago", "taleggio",
    "stracchino", "crescenza", "emmental", "caciotta", "caciocavallo",
    "formaggio",
    # carni fresche
    "pollo", "tacchino", "manzo", "vitello", "maiale", "suino", "bovino",
    "agnello", "coniglio", "salsiccia", "hamburger", "macinato", "fettine",
    "spezzatino", "carne",
    # gastronomia
    "arrosto", "polpette", "lasagne", "parmigiana", "insalata", "olive",
)

CategoryRule = tuple[Callable[[str], bool], str]


def _family(*stems: str) -> Callable[[str], bool]:
    return lambda keyword: any(stem in keyword for stem in stems)


# Evaluated top to bottom against the matched keyword; first hit wins.
CATEGORY_RULES: tuple[CategoryRule, ...] = (
    (
        _family(
            "mozzarell", "bufala", "burrata", "stracciatell", "latte",
            "ricotta", "mascarpone", "parmigiano", "grana", "pecorino",
            "gorgonzola", "provolon", "scamorza", "fontina", "asiago",
            "taleggio", "stracchino", "crescenza", "emmental", "caciott",
            "caciocavall", "formagg",
        ),
        DAIRY,
    ),
    (
        _family(
            "pollo", "tacchino", "manzo", "vitello", "maiale", "suino",
            "bovino", "agnello", "coniglio", "salsicc", "hamburger",
            "macinat", "fettin", "spezzatin", "carne",
        ),
        MEAT,
    ),
)


class ProductClassifier:
    """Decides whether a receipt line is a deli product and which category."""

    def __init__(
        self,
        keywords: Sequence[str] = PRODUCT_KEYWORDS,
        rules: Sequence[CategoryRule] = CATEGORY_RULES,
        default: str = DEFAULT_CATEGORY,
    ) -> None:
        self._keywords = tuple(k.lower() for k in keywords)
        self._rules = tuple(rules)
        self._default = default

    def match_keyword(self, line: str) -> str | None:
        """Return the first lexicon keyword contained in ``line``."""
        lowered = line.lower()
        for keyword in self._keywords:
            if keyword in lowered:
                return keyword
        return None

    def categorize(self, keyword: str) -> str:
        keyword = keyword.lower()
        for predicate, category in self._rules:
            if predicate(keyword):
                return category
        return self._default

    def classify(self, line: str) -> str | None:
        """Category for ``line``, or None when it names no known product."""
        keyword = self.match_keyword(line)
        if keyword is None:
            return None
        return self.categorize(keyword)
