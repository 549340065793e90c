"""
Semantic parsing of saved-search free-text queries.

Certification, item-type and category words in a query are turned into exact
filters instead of substring matches, so "Tanto Juyo" does not match a Hozon
tanto whose description happens to mention Juyo.

    >>> parse_semantic_query("Tanto Juyo Goto")
    ParsedQuery(certifications=['Juyo'], item_types=['tanto'], remaining_terms=['goto'])
"""

from dataclasses import dataclass, field

from config.catalog import ALL_CATEGORIES, ARMOR_TYPES, NIHONTO_TYPES, TOSOGU_TYPES
from models import SavedSearchCriteria
from saved_searches.text_normalization import (
    MIN_TERM_LENGTH,
    normalize_search_text,
    split_terms,
)

# Query words mapped to certification keys (see config.catalog.CERT_VARIANTS).
# Keys are already normalized, so macron spellings need no entries.
CERTIFICATION_TERMS = {
    "juyo": "Juyo",
    "juuyou": "Juyo",
    "juyou": "Juyo",
    "重要": "Juyo",
    "tokuju": "Tokuju",
    "tokubetsu juyo": "Tokuju",
    "tokubetsujuyo": "Tokuju",
    "toku juyo": "Tokuju",
    "特別重要": "Tokuju",
    "hozon": "Hozon",
    "保存": "Hozon",
    "tokuho": "TokuHozon",
    "tokubetsu hozon": "TokuHozon",
    "tokubetsuhozon": "TokuHozon",
    "toku hozon": "TokuHozon",
    "特別保存": "TokuHozon",
    "kicho": "Kicho",
    "貴重": "Kicho",
    "tokukicho": "TokuKicho",
    "tokubetsu kicho": "TokuKicho",
    "tokubetsukicho": "TokuKicho",
    "toku kicho": "TokuKicho",
    "特別貴重": "TokuKicho",
    "nthk": "NTHK",
    "nthk kanteisho": "NTHK",
}

# Multi-word certification phrases, pulled out before the query is split
CERT_PHRASES = [
    "特別重要",
    "特別保存",
    "特別貴重",
    "tokubetsu juyo",
    "tokubetsu hozon",
    "tokubetsu kicho",
    "toku juyo",
    "toku hozon",
    "toku kicho",
    "nthk kanteisho",
]

# Query words that stand for a whole category
CATEGORY_TERMS = {
    "nihonto": NIHONTO_TYPES,
    "nihon-to": NIHONTO_TYPES,
    "sword": NIHONTO_TYPES,
    "swords": NIHONTO_TYPES,
    "blade": NIHONTO_TYPES,
    "blades": NIHONTO_TYPES,
    "japanese sword": NIHONTO_TYPES,
    "japanese swords": NIHONTO_TYPES,
    "tosogu": TOSOGU_TYPES,
    "fitting": TOSOGU_TYPES,
    "fittings": TOSOGU_TYPES,
    "sword fittings": TOSOGU_TYPES,
    "sword fitting": TOSOGU_TYPES,
    "kodogu": TOSOGU_TYPES,
    "armor": ARMOR_TYPES,
    "armour": ARMOR_TYPES,
    "yoroi": ARMOR_TYPES,
    "gusoku": ARMOR_TYPES,
    "samurai armor": ARMOR_TYPES,
    "samurai armour": ARMOR_TYPES,
    "japanese armor": ARMOR_TYPES,
    "japanese armour": ARMOR_TYPES,
    "kacchu": ARMOR_TYPES,
    "katchu": ARMOR_TYPES,
}

CATEGORY_PHRASES = [
    "japanese swords",
    "japanese sword",
    "sword fittings",
    "sword fitting",
    "samurai armor",
    "samurai armour",
    "japanese armor",
    "japanese armour",
]

# Query words mapped to item_type values
ITEM_TYPE_TERMS = {
    # Blades
    "katana": "katana",
    "wakizashi": "wakizashi",
    "waki": "wakizashi",
    "tanto": "tanto",
    "tantou": "tanto",
    "tachi": "tachi",
    "naginata": "naginata",
    "nagi": "naginata",
    "yari": "yari",
    "ken": "ken",
    "kodachi": "kodachi",
    "刀": "katana",
    "脇差": "wakizashi",
    "短刀": "tanto",
    "太刀": "tachi",
    "薙刀": "naginata",
    "槍": "yari",
    "剣": "ken",
    # Fittings
    "tsuba": "tsuba",
    "tuba": "tsuba",
    "fuchi": "fuchi",
    "kashira": "kashira",
    "fuchi-kashira": "fuchi-kashira",
    "fuchikashira": "fuchi-kashira",
    "fuchi kashira": "fuchi-kashira",
    "menuki": "menuki",
    "kozuka": "kozuka",
    "kogatana": "kogatana",
    "kogai": "kogai",
    "koshirae": "koshirae",
    "mitokoromono": "mitokoromono",
    "鍔": "tsuba",
    "小柄": "kozuka",
    "目貫": "menuki",
    "笄": "kogai",
    "縁頭": "fuchi-kashira",
    "拵": "koshirae",
    # Armor
    "kabuto": "kabuto",
    "helmet": "helmet",
    "menpo": "menpo",
    "mengu": "mengu",
    "kote": "kote",
    "suneate": "suneate",
    "do": "do",
    "兜": "kabuto",
    "甲冑": "armor",
}

ITEM_TYPE_PHRASES = [
    "縁頭",
    "小柄",
    "目貫",
    "甲冑",
    "fuchi-kashira",
    "fuchi kashira",
]


@dataclass
class ParsedQuery:
    certifications: list[str] = field(default_factory=list)
    item_types: list[str] = field(default_factory=list)
    remaining_terms: list[str] = field(default_factory=list)


def parse_semantic_query(query: str | None) -> ParsedQuery:
    """
    Split a free-text query into exact filters and leftover text terms.

    Multi-word phrases are taken out first, then each remaining word is
    looked up as a certification, category or item type. Words that are none
    of these are kept as text terms. Queries shorter than two characters
    parse to nothing.

    Args:
        query: Raw query as stored in the saved search

    Returns:
        ParsedQuery with canonical certification keys, item_type values and
        the normalized remaining terms
    """
    parsed = ParsedQuery()
    working = normalize_search_text(query)
    if len(working) < MIN_TERM_LENGTH:
        return parsed

    for phrase in CERT_PHRASES:
        if phrase in working:
            _add(parsed.certifications, [CERTIFICATION_TERMS[phrase]])
            working = working.replace(phrase, " ", 1)

    for phrase in CATEGORY_PHRASES:
        if phrase in working:
            _add(parsed.item_types, CATEGORY_TERMS[phrase])
            working = working.replace(phrase, " ", 1)

    for phrase in ITEM_TYPE_PHRASES:
        if phrase in working:
            _add(parsed.item_types, [ITEM_TYPE_TERMS[phrase]])
            working = working.replace(phrase, " ", 1)

    for word in split_terms(working):
        if word in CERTIFICATION_TERMS:
            _add(parsed.certifications, [CERTIFICATION_TERMS[word]])
        elif word in CATEGORY_TERMS:
            _add(parsed.item_types, CATEGORY_TERMS[word])
        elif word in ITEM_TYPE_TERMS:
            _add(parsed.item_types, [ITEM_TYPE_TERMS[word]])
        else:
            parsed.remaining_terms.append(word)

    return parsed


def semantic_filters(criteria: SavedSearchCriteria) -> ParsedQuery:
    """
    Parse the criteria's query, dropping extracted filters the criteria already set.

    Explicit certifications win over certifications named in the query.
    Explicit item types, or a category other than "all", win over item types
    named in the query. Remaining terms are always kept.
    """
    parsed = parse_semantic_query(criteria.query)
    if criteria.certifications:
        parsed.certifications = []
    if criteria.item_types or (
        criteria.category and criteria.category != ALL_CATEGORIES
    ):
        parsed.item_types = []
    return parsed


def _add(target: list[str], values: list[str]) -> None:
    for value in values:
        if value not in target:
            target.append(value)
