"""
Email sending via Resend API for saved-search notifications.

Renders instant alerts and daily digests for one saved search and its
matched listings, and hands them to Resend. No retries happen here.
"""

import os
from html import escape
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlencode
import resend

from models import DispatchResult, Listing, SavedSearch
from notifications.unsubscribe_tokens import generate_unsubscribe_token
from saved_searches.criteria_format import criteria_to_human_readable, criteria_to_url


# Initialize Resend with API key from environment
resend.api_key = os.getenv('RESEND_API_KEY')

DEFAULT_FRONTEND_BASE_URL = 'https://nihontowatch.com'

# Listings rendered in the email body; the rest are summarized
EMAIL_LISTING_LIMIT = 10
# Listings that fit in one quick-view carousel link
QUICKVIEW_LISTING_LIMIT = 50

CURRENCY_SYMBOLS = {'JPY': '¥', 'USD': '$', 'EUR': '€', 'GBP': '£'}


def _frontend_base_url() -> str:
    return os.getenv('FRONTEND_BASE_URL', DEFAULT_FRONTEND_BASE_URL).rstrip('/')


def get_listing_quickview_url(listing_id: int) -> str:
    """URL that opens the quick-view modal for one listing."""
    return f"{_frontend_base_url()}/?{urlencode({'listing': listing_id})}"


def get_multi_listing_quickview_url(listing_ids: List[int], search_name: Optional[str] = None) -> str:
    """URL that opens a quick-view carousel over the matched listings."""
    params = {'listings': ','.join(str(i) for i in listing_ids[:QUICKVIEW_LISTING_LIMIT])}
    if search_name:
        params['alert_search'] = search_name
    return f"{_frontend_base_url()}/?{urlencode(params)}"


def _format_price(value: Optional[float], currency: Optional[str]) -> str:
    """Format a listing price for display; listings without a price are 'Ask'."""
    if value is None:
        return 'Ask'
    code = (currency or 'JPY').upper()
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{symbol}{value:,.0f}"
    return f"{value:,.0f} {code}"


def _prepare_listing_data(listings: List[Listing]) -> List[Dict[str, Any]]:
    """
    Extract and format everything the templates need from matched listings.

    This does ALL data processing once so formatters only handle presentation.

    Args:
        listings: Matched listings, newest first

    Returns:
        List of dicts with display-ready fields
    """
    prepared = []
    for listing in listings[:EMAIL_LISTING_LIMIT]:
        item_type = listing.item_type or 'Item'
        type_label = item_type[:1].upper() + item_type[1:]
        if listing.cert_type:
            type_label += f" · {listing.cert_type}"

        prepared.append({
            'title': listing.title or 'Untitled listing',
            'type_label': type_label,
            'price': _format_price(listing.price_value, listing.price_currency),
            'dealer_name': listing.dealer.name if listing.dealer else '',
            'image_url': listing.images[0] if listing.images else None,
            'listing_url': get_listing_quickview_url(listing.id),
        })
    return prepared


def _build_unsubscribe_urls(user_id: str, saved_search_id: str) -> Tuple[Optional[str], Optional[str]]:
    """
    Build one-click unsubscribe URLs (this search, all alerts).

    Returns (None, None) when UNSUBSCRIBE_SECRET_KEY is not configured.
    """
    try:
        search_token = generate_unsubscribe_token(user_id, saved_search_id)
        all_token = generate_unsubscribe_token(user_id)
    except ValueError:
        return None, None

    base_url = _frontend_base_url()
    return (
        f"{base_url}/unsubscribe?token={search_token}",
        f"{base_url}/unsubscribe?token={all_token}",
    )


def send_saved_search_notification(
    user_id: str,
    user_email: Optional[str],
    saved_search: SavedSearch,
    listings: List[Listing],
    frequency: str,
) -> DispatchResult:
    """
    Send one saved-search notification email.

    Args:
        user_id: Owner of the saved search (used for unsubscribe links)
        user_email: Recipient email address; None when the profile has none
        saved_search: The saved search that matched
        listings: Matched listings, newest first
        frequency: 'instant' (alert) or 'daily' (digest)

    Returns:
        DispatchResult; skipped=True when there is no recipient email
    """
    if not user_email:
        return DispatchResult(success=False, skipped=True, error='No email for user')

    if not listings:
        return DispatchResult(success=False, error='No listings to send')

    from_email = os.getenv('NOTIFICATION_FROM_EMAIL', 'alerts@nihontowatch.com')

    search_name = saved_search.name or 'your saved search'
    count = len(listings)
    noun = 'listing' if count == 1 else 'listings'
    if frequency == 'instant':
        subject = f"{count} new {noun} match {search_name}"
    else:
        subject = f"Your daily digest: {count} new {noun} for {search_name}"

    context = {
        'frequency': frequency,
        'search_name': search_name,
        'match_count': count,
        'criteria_summary': criteria_to_human_readable(saved_search.criteria),
        'search_url': f"{_frontend_base_url()}{criteria_to_url(saved_search.criteria)}",
        'manage_url': f"{_frontend_base_url()}/saved",
        'quickview_url': get_multi_listing_quickview_url(
            [listing.id for listing in listings], saved_search.name
        ),
        'more_count': max(count - EMAIL_LISTING_LIMIT, 0),
        'listings': _prepare_listing_data(listings),
    }
    context['unsubscribe_search_url'], context['unsubscribe_all_url'] = _build_unsubscribe_urls(
        user_id, saved_search.id
    )

    html_body = _build_notification_html(context)
    text_body = _build_notification_text(context)

    try:
        response = resend.Emails.send({
            "from": f"Nihontowatch Alerts <{from_email}>",
            "to": user_email,
            "subject": subject,
            "html": html_body,
            "text": text_body,
        })

        return DispatchResult(success=True, email_id=response.get('id'))

    except Exception as e:
        return DispatchResult(success=False, error=str(e))


def _build_notification_html(context: Dict[str, Any]) -> str:
    """
    Build HTML email body for an alert or digest.

    Args:
        context: Display-ready values from send_saved_search_notification

    Returns:
        HTML string
    """
    heading = 'New matches found' if context['frequency'] == 'instant' else 'Your daily digest'
    noun = 'item matches' if context['match_count'] == 1 else 'items match'

    html = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{heading}</title>
    <style>
        body {{
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
            line-height: 1.5;
            color: #1a1a1a;
            max-width: 600px;
            margin: 0 auto;
            padding: 20px;
            background-color: #f5f5f0;
        }}
        .container {{
            background-color: white;
            padding: 24px;
            border-radius: 8px;
            box-shadow: 0 1px 3px rgba(0,0,0,0.1);
        }}
        h1 {{
            margin: 0 0 8px 0;
            font-size: 20px;
            font-weight: 500;
        }}
        .criteria {{
            padding: 12px;
            background-color: #faf9f6;
            border-radius: 4px;
            color: #666;
            font-size: 12px;
        }}
        .listing {{
            padding: 16px 0;
            border-bottom: 1px solid #e5e5e5;
        }}
        .listing img {{
            float: left;
            margin-right: 16px;
            border-radius: 4px;
        }}
        .listing-title {{
            color: #1a1a1a;
            text-decoration: none;
            font-weight: 500;
            font-size: 14px;
        }}
        .listing-meta {{
            margin: 4px 0 0;
            color: #666;
            font-size: 12px;
        }}
        .price {{
            margin: 8px 0 0;
            color: #b8860b;
            font-weight: 600;
            font-size: 14px;
        }}
        .button {{
            display: inline-block;
            padding: 12px 24px;
            background-color: #b8860b;
            color: #ffffff;
            text-decoration: none;
            font-size: 14px;
            border-radius: 6px;
        }}
        .footer {{
            margin-top: 24px;
            padding-top: 16px;
            border-top: 1px solid #e5e5e5;
            font-size: 12px;
            color: #666;
            text-align: center;
        }}
        .footer a {{
            color: #b8860b;
            text-decoration: none;
        }}
    </style>
</head>
<body>
    <div class="container">
        <h1>{heading}</h1>
        <p>{context['match_count']} {noun} <strong>{escape(context['search_name'])}</strong></p>
        <p class="criteria"><strong>Search criteria:</strong> {escape(context['criteria_summary'])}</p>
"""

    for listing in context['listings']:
        image_html = ''
        if listing['image_url']:
            image_html = f'<img src="{escape(listing["image_url"])}" alt="" width="80" height="80">'
        dealer_html = f" · {escape(listing['dealer_name'])}" if listing['dealer_name'] else ''
        html += f"""
        <div class="listing">
            {image_html}
            <a href="{listing['listing_url']}" class="listing-title">{escape(listing['title'])}</a>
            <p class="listing-meta">{escape(listing['type_label'])}{dealer_html}</p>
            <p class="price">{listing['price']}</p>
        </div>
"""

    if context['more_count'] > 0:
        html += f"""
        <p style="text-align: center;"><a href="{escape(context['search_url'])}">+ {context['more_count']} more</a></p>
"""

    html += f"""
        <p style="text-align: center; margin-top: 24px;">
            <a href="{escape(context['quickview_url'])}" class="button">View matches</a>
        </p>
        <p style="text-align: center; font-size: 12px;">
            <a href="{escape(context['search_url'])}">Or browse all results</a>
        </p>
        <div class="footer">
            <p>
                You received this email because you saved a search with alerts turned on.
                <br>
                <a href="{context['manage_url']}">Manage saved searches</a>
            </p>
"""

    if context['unsubscribe_search_url']:
        html += f"""
            <p>
                <a href="{context['unsubscribe_search_url']}">Unsubscribe from this alert</a>
                |
                <a href="{context['unsubscribe_all_url']}">Unsubscribe from all alerts</a>
            </p>
"""

    html += """
        </div>
    </div>
</body>
</html>
"""

    return html


def _build_notification_text(context: Dict[str, Any]) -> str:
    """
    Build plain text email body for an alert or digest.

    Args:
        context: Display-ready values from send_saved_search_notification

    Returns:
        Plain text string
    """
    heading = 'NEW MATCHES FOUND' if context['frequency'] == 'instant' else 'YOUR DAILY DIGEST'
    noun = 'item matches' if context['match_count'] == 1 else 'items match'

    text = f"""{heading}

{context['match_count']} {noun} "{context['search_name']}"

Search criteria: {context['criteria_summary']}

"""

    for i, listing in enumerate(context['listings'], 1):
        text += f"""{i}. {listing['title']}
   {listing['type_label']}
   {listing['price']}
   {listing['listing_url']}

"""

    if context['more_count'] > 0:
        text += f"...and {context['more_count']} more\n\n"

    text += "-" * 60 + "\n\n"
    text += f"""View matches: {context['quickview_url']}
Browse all results: {context['search_url']}
Manage saved searches: {context['manage_url']}
"""

    if context['unsubscribe_search_url']:
        text += f"""
Unsubscribe from this alert: {context['unsubscribe_search_url']}
Unsubscribe from all alerts: {context['unsubscribe_all_url']}
"""

    return text
