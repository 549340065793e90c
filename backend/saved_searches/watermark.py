"""
Watermark tracking for saved searches.

The watermark (last_notified_at) is the boundary above which listings count
as new for a subscription. It advances after every successful run, including
runs with no matches, and never after a failed dispatch.
"""

from datetime import datetime

from config.pipeline_settings import PipelineSettings
from models import SavedSearch
from saved_searches.subscriptions import SubscriberDirectory
from shared.utils import ensure_utc


def effective_since(
    saved_search: SavedSearch, now: datetime, settings: PipelineSettings
) -> datetime:
    """
    Timestamp after which listings are new for this saved search.

    Uses last_notified_at when set, otherwise the frequency's first-run
    lookback window.
    """
    if saved_search.last_notified_at is not None:
        return ensure_utc(saved_search.last_notified_at)
    return ensure_utc(now) - settings.lookback_for(saved_search.frequency)


def commit_watermark(
    directory: SubscriberDirectory,
    saved_search: SavedSearch,
    match_count: int,
    now: datetime,
) -> bool:
    """
    Record a completed run for a saved search.

    Returns:
        True if the watermark moved, False if a newer one was already stored
    """
    moved = directory.update_watermark(saved_search.id, ensure_utc(now), match_count)
    if not moved:
        print(
            f"  ⚠️  Watermark for {saved_search.id} already past {now.isoformat()}, left as is"
        )
    return moved
