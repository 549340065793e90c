"""
Criteria matching logic for saved searches.

Decides whether a single listing satisfies a saved search's criteria and is
newer than the subscription's watermark. This is the full boolean semantics;
the listing store only pre-filters the indexed dimensions.
"""

from datetime import datetime

from config.catalog import (
    ALL_CATEGORIES,
    CATEGORY_ITEM_TYPES,
    CERT_VARIANTS,
    SOLD_STATUSES,
    STATUS_AVAILABLE,
)
from models import Listing, SavedSearchCriteria
from saved_searches.semantic_query import semantic_filters
from saved_searches.text_normalization import expand_search_aliases, normalize_search_text
from shared.utils import ensure_utc

# Listing fields searched by the free-text query
SEARCH_FIELDS = (
    "title",
    "title_en",
    "description",
    "description_en",
    "smith",
    "tosogu_maker",
    "school",
    "tosogu_school",
    "province",
    "era",
    "mei_type",
)


def listing_matches(
    criteria: SavedSearchCriteria, listing: Listing, since: datetime
) -> bool:
    """
    Check if a listing matches saved search criteria and is newer than `since`.

    All populated criteria dimensions are AND-ed together.
    Within each set-valued dimension, values are OR-ed.
    An empty criteria object matches every listing newer than `since`.

    Args:
        criteria: Saved search criteria
        listing: Listing to test
        since: Watermark; the listing must have been first seen strictly after it

    Returns:
        True if the listing matches
    """
    if ensure_utc(listing.first_seen_at) <= ensure_utc(since):
        return False

    # Availability tab
    if criteria.tab and not _matches_tab(criteria.tab, listing):
        return False

    # Item types (at least one must equal the listing's type)
    if criteria.item_types:
        wanted = {t.lower() for t in criteria.item_types}
        if _lower(listing.item_type) not in wanted:
            return False

    # Category (listing's type must belong to the category family)
    if criteria.category and criteria.category != ALL_CATEGORIES:
        family = CATEGORY_ITEM_TYPES.get(criteria.category, [])
        if _lower(listing.item_type) not in family:
            return False

    # Certifications (any spelling variant of a requested certification)
    if criteria.certifications:
        if _lower(listing.cert_type) not in certification_variants(
            criteria.certifications, lowercase=True
        ):
            return False

    # Dealers
    if criteria.dealers:
        if listing.dealer_id not in criteria.dealers:
            return False

    # Schools (either attribution field)
    if criteria.schools:
        wanted_schools = {normalize_search_text(s) for s in criteria.schools}
        listing_schools = {
            normalize_search_text(listing.school),
            normalize_search_text(listing.tosogu_school),
        }
        if not wanted_schools & listing_schools:
            return False

    # Price
    if criteria.ask_only and listing.price_value is not None:
        return False
    if criteria.min_price is not None:
        if listing.price_value is None or listing.price_value < criteria.min_price:
            return False
    if criteria.max_price is not None:
        if listing.price_value is None or listing.price_value > criteria.max_price:
            return False

    # Free-text query: certification and item-type words act as exact
    # filters, every other term must hit some field
    parsed = semantic_filters(criteria)
    if parsed.certifications:
        if _lower(listing.cert_type) not in certification_variants(
            parsed.certifications, lowercase=True
        ):
            return False
    if parsed.item_types:
        if _lower(listing.item_type) not in parsed.item_types:
            return False
    if parsed.remaining_terms and not _matches_terms(parsed.remaining_terms, listing):
        return False

    return True


def certification_variants(
    certifications: list[str], lowercase: bool = False
) -> list[str]:
    """Expand certification keys to every stored cert_type spelling."""
    variants: list[str] = []
    for cert in certifications:
        for variant in CERT_VARIANTS.get(cert, [cert]):
            value = variant.lower() if lowercase else variant
            if value not in variants:
                variants.append(value)
    return variants


def _matches_tab(tab: str, listing: Listing) -> bool:
    if tab == "sold":
        return bool(listing.is_sold) or _lower(listing.status) in SOLD_STATUSES
    return bool(listing.is_available) or _lower(listing.status) == STATUS_AVAILABLE


def _matches_terms(terms: list[str], listing: Listing) -> bool:
    haystacks = [
        normalize_search_text(getattr(listing, field)) for field in SEARCH_FIELDS
    ]
    haystacks = [h for h in haystacks if h]

    for term in terms:
        expanded = expand_search_aliases(term)
        if not any(alias in haystack for alias in expanded for haystack in haystacks):
            return False
    return True


def _lower(value: str | None) -> str | None:
    return value.lower() if value else None
