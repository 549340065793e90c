"""
Text normalization for saved-search free-text matching.

Listing titles mix romanized Japanese with and without macrons (Gotō / Goto),
so both the query and the searched fields are folded to the same form before
substring comparison.
"""

import re
import unicodedata

MACRON_MAP = {
    "ā": "a", "Ā": "A",
    "ē": "e", "Ē": "E",
    "ī": "i", "Ī": "I",
    "ō": "o", "Ō": "O",
    "ū": "u", "Ū": "U",
}

# Abbreviations and romanization variants users type in searches
SEARCH_ALIASES = {
    # Certification abbreviations
    "tokuju": ["tokubetsu juyo", "tokubetsu_juyo"],
    "tokuho": ["tokubetsu hozon", "tokubetsu_hozon"],
    "tokukicho": ["tokubetsu kicho", "tokubetsu_kicho"],
    # Item type abbreviations
    "waki": ["wakizashi"],
    "nagi": ["naginata"],
    "fuchikashira": ["fuchi_kashira", "fuchi-kashira", "fuchi kashira"],
    # Common romanization variants
    "tuba": ["tsuba"],
    "tanto": ["tantou"],
}

MIN_TERM_LENGTH = 2

_MACRON_RE = re.compile("[" + "".join(MACRON_MAP) + "]")
_WHITESPACE_RE = re.compile(r"\s+")
# Characters with special meaning in the store's full-text syntax
_SPECIAL_CHARS_RE = re.compile(r"[&|!():<>*,]")
_CJK_RE = re.compile(r"[\u3000-\u9fff\uf900-\ufaff]")


def normalize_search_text(text: str | None) -> str:
    """
    Lowercase, strip macrons and other diacritics, collapse whitespace.

    >>> normalize_search_text("  Gotō Katana  ")
    'goto katana'
    """
    if not text:
        return ""
    folded = _MACRON_RE.sub(lambda m: MACRON_MAP[m.group(0)], text).lower()
    decomposed = unicodedata.normalize("NFD", folded)
    stripped = "".join(c for c in decomposed if not unicodedata.combining(c))
    return _WHITESPACE_RE.sub(" ", unicodedata.normalize("NFC", stripped)).strip()


def expand_search_aliases(term: str) -> list[str]:
    """Return the term plus any known aliases, all normalized."""
    normalized = normalize_search_text(term)
    aliases = SEARCH_ALIASES.get(normalized, [])
    return [normalized] + [normalize_search_text(alias) for alias in aliases]


def split_terms(text: str | None) -> list[str]:
    """
    Split text into normalized search terms.

    Terms shorter than the minimum length are dropped, except single CJK
    characters, which are whole words on their own.
    """
    cleaned = _SPECIAL_CHARS_RE.sub(" ", normalize_search_text(text))
    return [
        term
        for term in cleaned.split()
        if len(term) >= MIN_TERM_LENGTH or _CJK_RE.search(term)
    ]
