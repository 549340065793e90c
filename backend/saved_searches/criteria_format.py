"""Human-readable and URL forms of saved search criteria, used in emails."""

from urllib.parse import urlencode

from config.catalog import ALL_CATEGORIES, CATEGORY_LABELS
from models import SavedSearchCriteria


def criteria_to_human_readable(criteria: SavedSearchCriteria) -> str:
    """
    Summarize criteria for display, e.g. "Katana, Juyo, ¥1,000,000+".

    Returns "All listings" for empty criteria.
    """
    parts: list[str] = []

    if criteria.category and criteria.category != ALL_CATEGORIES:
        parts.append(CATEGORY_LABELS.get(criteria.category, criteria.category))

    if criteria.item_types:
        parts.append(", ".join(t[:1].upper() + t[1:] for t in criteria.item_types))

    if criteria.certifications:
        parts.append(", ".join(criteria.certifications))

    if criteria.dealers:
        parts.append(f"{len(criteria.dealers)} dealer(s)")

    if criteria.schools:
        parts.append(f"{', '.join(criteria.schools)} school")

    if criteria.min_price is not None and criteria.max_price is not None:
        parts.append(f"¥{criteria.min_price:,.0f} - ¥{criteria.max_price:,.0f}")
    elif criteria.min_price is not None:
        parts.append(f"¥{criteria.min_price:,.0f}+")
    elif criteria.max_price is not None:
        parts.append(f"under ¥{criteria.max_price:,.0f}")

    if criteria.ask_only:
        parts.append("Price on request")

    if criteria.query and criteria.query.strip():
        parts.append(f'"{criteria.query.strip()}"')

    if criteria.tab == "sold":
        parts.append("sold archive")

    return " · ".join(parts) if parts else "All listings"


def criteria_to_url(criteria: SavedSearchCriteria) -> str:
    """Browse page path (with query string) that reproduces the criteria."""
    params: list[tuple[str, str]] = []

    if criteria.tab and criteria.tab != "available":
        params.append(("tab", criteria.tab))
    if criteria.category and criteria.category != ALL_CATEGORIES:
        params.append(("cat", criteria.category))
    if criteria.item_types:
        params.append(("type", ",".join(criteria.item_types)))
    if criteria.certifications:
        params.append(("cert", ",".join(criteria.certifications)))
    if criteria.dealers:
        params.append(("dealer", ",".join(str(d) for d in criteria.dealers)))
    if criteria.schools:
        params.append(("school", ",".join(criteria.schools)))
    if criteria.ask_only:
        params.append(("ask", "true"))
    if criteria.query and criteria.query.strip():
        params.append(("q", criteria.query.strip()))
    if criteria.min_price is not None:
        params.append(("priceMin", f"{criteria.min_price:g}"))
    if criteria.max_price is not None:
        params.append(("priceMax", f"{criteria.max_price:g}"))
    if criteria.sort:
        params.append(("sort", criteria.sort))

    if not params:
        return "/"
    return f"/?{urlencode(params)}"
