"""
Match retrieval for saved searches.

Pushes the indexed predicates (availability, first_seen_at floor, item type,
certification and dealer membership) to the listing store, then applies the
remaining criteria in process with the matcher. Every pushed predicate is at
least as broad as the matcher's test for the same dimension.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from postgrest.exceptions import APIError

from config.catalog import (
    ALL_CATEGORIES,
    CATEGORY_ITEM_TYPES,
    EXCLUDED_ITEM_TYPES,
    SOLD_STATUSES,
    STATUS_AVAILABLE,
)
from models import Listing, SavedSearchCriteria
from saved_searches.errors import RetrievalError
from saved_searches.matcher import certification_variants, listing_matches
from saved_searches.semantic_query import semantic_filters
from shared.utils import ensure_utc, postgrest_value, to_iso

LISTING_COLUMNS = """
    id,
    url,
    title,
    title_en,
    description,
    description_en,
    item_type,
    cert_type,
    dealer_id,
    smith,
    tosogu_maker,
    school,
    tosogu_school,
    province,
    era,
    mei_type,
    price_value,
    price_currency,
    first_seen_at,
    status,
    is_available,
    is_sold,
    images,
    dealers!inner(id, name, name_ja, domain)
"""


@dataclass(frozen=True)
class ListingQuery:
    """Predicate pushed down to the listing store."""

    since: datetime
    limit: int
    until: datetime | None = None
    sold: bool = False
    item_types: list[str] = field(default_factory=list)
    cert_types: list[str] = field(default_factory=list)
    dealer_ids: list[int] = field(default_factory=list)


class ListingStore(Protocol):
    """Listing store operations required by the retriever."""

    def query_listings(self, query: ListingQuery) -> list[Listing]:
        ...


class SupabaseListingStore:
    """Listing store backed by the Supabase `listings` table."""

    def __init__(self, supabase: Any) -> None:
        self._supabase = supabase

    def query_listings(self, query: ListingQuery) -> list[Listing]:
        builder = self._supabase.table("listings").select(LISTING_COLUMNS)

        if query.sold:
            sold_conditions = [f"status.eq.{s}" for s in SOLD_STATUSES]
            builder = builder.or_(",".join(sold_conditions + ["is_sold.eq.true"]))
        else:
            builder = builder.or_(f"status.eq.{STATUS_AVAILABLE},is_available.eq.true")

        for excluded in EXCLUDED_ITEM_TYPES:
            builder = builder.not_.ilike("item_type", excluded)

        builder = builder.gt("first_seen_at", to_iso(query.since))
        if query.until is not None:
            builder = builder.lte("first_seen_at", to_iso(query.until))

        if query.item_types:
            builder = builder.or_(
                ",".join(f"item_type.ilike.{postgrest_value(t)}" for t in query.item_types)
            )

        if query.cert_types:
            builder = builder.or_(
                ",".join(f"cert_type.ilike.{postgrest_value(c)}" for c in query.cert_types)
            )

        if query.dealer_ids:
            builder = builder.in_("dealer_id", query.dealer_ids)

        try:
            response = (
                builder.order("first_seen_at", desc=True).limit(query.limit).execute()
            )
        except APIError as e:
            raise RetrievalError(f"Listing query failed: {e.message}") from e

        return [Listing.model_validate(row) for row in response.data or []]


def find_matching_listings(
    store: ListingStore,
    criteria: SavedSearchCriteria,
    since: datetime,
    limit: int = 50,
    overfetch_multiplier: int = 4,
    max_fetch_rows: int = 500,
    until: datetime | None = None,
) -> list[Listing]:
    """
    Find listings matching saved search criteria first seen after `since`.

    Args:
        store: Listing store to query
        criteria: Saved search criteria
        since: Watermark timestamp (exclusive)
        limit: Maximum number of listings returned
        until: Optional upper bound on first_seen_at (inclusive); the runner
               passes its start time, which becomes the new watermark
        overfetch_multiplier: Page size multiplier when criteria need in-process filtering
        max_fetch_rows: Hard cap on rows requested from the store

    Returns:
        Matching listings, newest first, at most `limit` long

    Raises:
        RetrievalError: If the store cannot be queried
    """
    item_types = pushdown_item_types(criteria)
    if item_types is not None and not item_types:
        # Explicit item types and category family don't intersect
        return []

    fetch_limit = limit
    if needs_in_process_filtering(criteria):
        fetch_limit = min(limit * overfetch_multiplier, max_fetch_rows)
        fetch_limit = max(fetch_limit, limit)

    query = ListingQuery(
        since=since,
        limit=fetch_limit,
        until=until,
        sold=criteria.tab == "sold",
        item_types=item_types or [],
        cert_types=certification_variants(
            criteria.certifications + semantic_filters(criteria).certifications
        ),
        dealer_ids=list(criteria.dealers),
    )

    try:
        candidates = store.query_listings(query)
    except RetrievalError:
        raise
    except Exception as e:
        raise RetrievalError(f"Listing store unavailable: {e}") from e

    matches = [
        listing
        for listing in candidates
        if listing_matches(criteria, listing, since)
        and (until is None or ensure_utc(listing.first_seen_at) <= ensure_utc(until))
    ]
    matches.sort(key=lambda listing: listing.first_seen_at, reverse=True)
    return matches[:limit]


def pushdown_item_types(criteria: SavedSearchCriteria) -> list[str] | None:
    """
    Item types to push to the store, or None when unconstrained.

    Explicit item types win; a category narrows them to its family. Without
    either, item types named in the query apply. An empty list means nothing
    can match.
    """
    family = None
    if criteria.category and criteria.category != ALL_CATEGORIES:
        family = CATEGORY_ITEM_TYPES.get(criteria.category, [])

    if criteria.item_types:
        explicit = [t.lower() for t in criteria.item_types]
        if family is None:
            return explicit
        return [t for t in explicit if t in family]

    if family is not None:
        return list(family)
    return semantic_filters(criteria).item_types or None


def needs_in_process_filtering(criteria: SavedSearchCriteria) -> bool:
    """True when criteria have dimensions the store does not filter on."""
    return bool(
        semantic_filters(criteria).remaining_terms
        or criteria.schools
        or criteria.ask_only
        or criteria.min_price is not None
        or criteria.max_price is not None
    )
