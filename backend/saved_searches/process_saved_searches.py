"""
CLI script for running saved-search notifications.

Usage:
    # Instant alerts (scheduled every 15 minutes)
    uv run python -m saved_searches.process_saved_searches --frequency instant

    # Daily digests (scheduled once a day)
    uv run python -m saved_searches.process_saved_searches --frequency daily

    # Show recent notification history for one saved search
    uv run python -m saved_searches.process_saved_searches --history <saved_search_id> --limit 20
"""

import argparse
import asyncio
import sys
from typing import Any

from dotenv import load_dotenv

from config.pipeline_settings import FREQUENCIES, load_pipeline_settings
from models.types import SavedSearchID
from notifications.error_logger import log_notification_error
from saved_searches.audit_log import SupabaseAuditLog
from saved_searches.errors import RunInProgressError, SubscriptionLoadError
from saved_searches.retriever import SupabaseListingStore
from saved_searches.run_lock import SupabaseRunLock
from saved_searches.runner import SavedSearchRunner
from saved_searches.subscriptions import SupabaseSubscriberDirectory
from shared.db import get_supabase_client
from shared.utils import print_summary


def run_saved_search_notifications(frequency: str) -> dict[str, Any]:
    """
    Run one frequency tier against Supabase and Resend.

    Args:
        frequency: 'instant' or 'daily'

    Returns:
        {frequency, processed, notificationsSent, errors, skipped, deferred, timedOut}

    Raises:
        RunInProgressError: If another run for this frequency is active
        SubscriptionLoadError: If active saved searches cannot be loaded
    """
    settings = load_pipeline_settings()
    supabase = get_supabase_client(request_timeout=settings.retrieval_timeout_seconds)

    runner = SavedSearchRunner(
        listing_store=SupabaseListingStore(supabase),
        directory=SupabaseSubscriberDirectory(supabase),
        audit_log=SupabaseAuditLog(supabase),
        settings=settings,
        run_lock=SupabaseRunLock(supabase, ttl_seconds=settings.run_lock_ttl_seconds),
    )
    summary = asyncio.run(runner.run(frequency))

    print_summary(
        frequency,
        summary.processed,
        summary.notifications_sent,
        summary.errors,
        summary.skipped,
        summary.deferred,
    )
    return summary.as_response()


def print_history(saved_search_id: str, limit: int = 10) -> None:
    """Print the most recent notification attempts for one saved search."""
    audit_log = SupabaseAuditLog(get_supabase_client())
    records = audit_log.recent(SavedSearchID(saved_search_id), limit=limit)

    if not records:
        print(f"No notification history for saved search {saved_search_id}")
        return

    print(f"Notification history for saved search {saved_search_id}:")
    for record in records:
        marker = "✓" if record.status == "sent" else "✗"
        when = record.sent_at or record.created_at
        line = f"  {marker} {when} {record.status:<6} {len(record.matched_listing_ids)} listings"
        if record.error_message:
            line += f" ({record.error_message})"
        print(line)


def main() -> None:
    """CLI entry point."""
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Send saved-search notification emails"
    )

    parser.add_argument(
        "--frequency",
        choices=FREQUENCIES,
        help="Frequency tier to process",
    )

    parser.add_argument(
        "--history",
        metavar="SAVED_SEARCH_ID",
        help="Print recent notification history for a saved search instead of running",
    )

    parser.add_argument(
        "--limit",
        type=int,
        default=10,
        help="Number of history records to show (default: 10)",
    )

    args = parser.parse_args()

    if args.history:
        print_history(args.history, limit=args.limit)
        return

    if not args.frequency:
        parser.error("Must specify --frequency or --history")

    try:
        run_saved_search_notifications(args.frequency)
    except RunInProgressError as e:
        print(f"⚠️  {e}")
        sys.exit(2)
    except SubscriptionLoadError as e:
        print(f"✗ Could not load saved searches: {e}")
        log_notification_error(
            error_type="run",
            error_message=str(e),
            context={"frequency": args.frequency},
        )
        sys.exit(1)


if __name__ == "__main__":
    main()
