"""
Batch runner for saved-search notifications.

One run handles one frequency tier. Active saved searches are processed in
groups: saved searches within a group run concurrently, groups run one after
another, and no new group starts once the run's time budget is spent.

Per saved search:
    1. Retrieve listings first seen after its watermark
    2. No matches  -> advance the watermark
    3. Matches     -> send one email, audit it, then advance the watermark
A failed retrieval or send leaves the watermark where it was, so the same
listings are picked up again next run.
"""

import asyncio
import time
import uuid
from datetime import datetime
from typing import Callable, Optional

from config.pipeline_settings import FREQUENCIES, PipelineSettings
from models import DispatchResult, Listing, RunSummary, SavedSearch
from models.types import RunID, UserID
from notifications.email_sender import send_saved_search_notification
from notifications.error_logger import log_notification_error
from saved_searches.audit_log import AuditLog
from saved_searches.errors import RetrievalError, RunInProgressError, StoreWriteError
from saved_searches.retriever import ListingStore, find_matching_listings
from saved_searches.run_lock import RunLock
from saved_searches.state import SubscriptionRun, SubscriptionState
from saved_searches.subscriptions import SubscriberDirectory
from saved_searches.watermark import commit_watermark, effective_since
from shared.utils import chunked, ensure_utc, utc_now

SendNotification = Callable[..., DispatchResult]


class SavedSearchRunner:
    """Runs one frequency tier of saved-search notifications."""

    def __init__(
        self,
        listing_store: ListingStore,
        directory: SubscriberDirectory,
        audit_log: AuditLog,
        send_notification: SendNotification = send_saved_search_notification,
        settings: Optional[PipelineSettings] = None,
        run_lock: Optional[RunLock] = None,
        clock: Callable[[], datetime] = utc_now,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._listing_store = listing_store
        self._directory = directory
        self._audit_log = audit_log
        self._send_notification = send_notification
        self._settings = settings or PipelineSettings()
        self._run_lock = run_lock
        self._clock = clock
        self._monotonic = monotonic

    async def run(self, frequency: str) -> RunSummary:
        """
        Process every active saved search with the given frequency.

        Returns:
            RunSummary with processed/sent/error/skipped/deferred counters

        Raises:
            ValueError: If the frequency is not 'instant' or 'daily'
            RunInProgressError: If another run for this frequency holds the lock
            SubscriptionLoadError: If active saved searches cannot be loaded
        """
        if frequency not in FREQUENCIES:
            raise ValueError(f"Unsupported frequency: {frequency}")

        started = self._monotonic()
        # Watermarks commit to the run's start time, so listings that arrive
        # mid-run are seen by the next run
        now = ensure_utc(self._clock())
        run_id = RunID(uuid.uuid4().hex)

        if self._run_lock is not None:
            acquired = await asyncio.to_thread(
                self._run_lock.acquire, frequency, run_id, now
            )
            if not acquired:
                raise RunInProgressError(frequency)

        try:
            return await self._run_tier(frequency, now, started)
        finally:
            if self._run_lock is not None:
                await self._release_lock(frequency, run_id)

    async def _run_tier(
        self, frequency: str, now: datetime, started: float
    ) -> RunSummary:
        print(f"[{datetime.now()}] Processing {frequency} saved searches...")

        saved_searches = await asyncio.to_thread(
            self._directory.get_active_saved_searches, frequency
        )
        summary = RunSummary(frequency=frequency)

        if not saved_searches:
            print(f"No active {frequency} saved searches.")
            return summary

        print(f"Found {len(saved_searches)} active {frequency} saved searches")

        emails = await self._load_emails(saved_searches)
        deadline = started + self._settings.run_budget_seconds
        started_count = 0

        for group in chunked(saved_searches, self._settings.batch_size):
            if self._monotonic() >= deadline:
                summary.deferred = len(saved_searches) - started_count
                summary.timed_out = True
                print(
                    f"⚠️  Run budget of {self._settings.run_budget_seconds:.0f}s exhausted, "
                    f"deferring {summary.deferred} saved searches to the next run"
                )
                break

            started_count += len(group)
            runs = await asyncio.gather(
                *(
                    self._process(saved_search, emails.get(saved_search.user_id), now)
                    for saved_search in group
                )
            )

            for run in runs:
                if run.retrieved:
                    summary.processed += 1
                if run.dispatched:
                    summary.notifications_sent += 1
                if run.skipped:
                    summary.skipped += 1
                if run.state == SubscriptionState.ERRORED:
                    summary.errors += 1

        return summary

    async def _load_emails(self, saved_searches: list[SavedSearch]) -> dict[UserID, str]:
        """Resolve owner emails; on failure every matched saved search is skipped."""
        user_ids = sorted({saved_search.user_id for saved_search in saved_searches})
        try:
            return await asyncio.to_thread(
                self._directory.get_emails_by_user_ids, user_ids
            )
        except Exception as e:
            print(f"✗ Failed to look up user emails: {e}")
            log_notification_error(
                error_type="run",
                error_message=f"Email lookup failed: {e}",
                context={"user_count": len(user_ids)},
            )
            return {}

    async def _process(
        self, saved_search: SavedSearch, user_email: Optional[str], now: datetime
    ) -> SubscriptionRun:
        """Drive one saved search through retrieval, dispatch and commit."""
        run = SubscriptionRun(saved_search.id)
        stage = "retrieval"

        try:
            since = effective_since(saved_search, now, self._settings)
            run.advance(SubscriptionState.MATCHING)

            try:
                listings = await asyncio.wait_for(
                    asyncio.to_thread(self._retrieve, saved_search, since, now),
                    timeout=self._settings.retrieval_timeout_seconds,
                )
            except asyncio.TimeoutError:
                raise RetrievalError(
                    f"Retrieval timed out after {self._settings.retrieval_timeout_seconds:g}s"
                )

            if not listings:
                run.advance(SubscriptionState.NO_MATCH)
                stage = "commit"
                await self._write(
                    "Watermark commit", commit_watermark, self._directory, saved_search, 0, now
                )
                run.advance(SubscriptionState.DONE)
                return run

            run.matched_listing_ids = [listing.id for listing in listings]
            run.advance(SubscriptionState.MATCHED)

            if not user_email:
                print(f"  ⚠️  No email for user {saved_search.user_id}, skipping {saved_search.id}")
                run.advance(SubscriptionState.SKIPPED)
                run.advance(SubscriptionState.DONE)
                return run

            stage = "dispatch"
            result = await self._dispatch(saved_search, user_email, listings)

            if result.skipped:
                print(f"  ⚠️  {result.error or 'No recipient'}, skipping {saved_search.id}")
                run.advance(SubscriptionState.SKIPPED)
                run.advance(SubscriptionState.DONE)
                return run

            if not result.success:
                error_msg = result.error or "Unknown error"
                self._report(saved_search, "dispatch", error_msg, run.matched_listing_ids)
                stage = "audit"
                await self._write(
                    "Audit write",
                    self._audit_log.record_failed,
                    saved_search.id,
                    run.matched_listing_ids,
                    error_msg,
                )
                run.fail(error_msg)
                return run

            run.advance(SubscriptionState.DISPATCHED)
            print(
                f"  ✓ Sent {len(listings)} matches for {saved_search.id} "
                f"({result.email_id or 'no id'})"
            )

            # Audit before commit: a sent record lets the next run drop these
            # listings if the commit below fails
            stage = "audit"
            await self._write(
                "Audit write",
                self._audit_log.record_sent,
                saved_search.id,
                run.matched_listing_ids,
                ensure_utc(self._clock()),
            )
            stage = "commit"
            await self._write(
                "Watermark commit",
                commit_watermark,
                self._directory,
                saved_search,
                len(listings),
                now,
            )
            run.advance(SubscriptionState.DONE)

        except Exception as e:
            self._report(saved_search, stage, str(e), run.matched_listing_ids)
            if not run.finished:
                run.fail(str(e))

        return run

    def _retrieve(
        self, saved_search: SavedSearch, since: datetime, now: datetime
    ) -> list[Listing]:
        """Matching listings in (since, now] minus any already delivered."""
        listings = find_matching_listings(
            self._listing_store,
            saved_search.criteria,
            since,
            limit=self._settings.max_matches,
            overfetch_multiplier=self._settings.overfetch_multiplier,
            max_fetch_rows=self._settings.max_fetch_rows,
            until=now,
        )
        if not listings:
            return []

        already_sent = self._audit_log.sent_listing_ids(saved_search.id, since)
        if not already_sent:
            return listings

        remaining = [listing for listing in listings if listing.id not in already_sent]
        if len(remaining) < len(listings):
            print(
                f"  ⚠️  {len(listings) - len(remaining)} listings already sent "
                f"for {saved_search.id}, not resending"
            )
        return remaining

    async def _dispatch(
        self, saved_search: SavedSearch, user_email: str, listings: list[Listing]
    ) -> DispatchResult:
        timeout = self._settings.dispatch_timeout_seconds
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(
                    self._send_notification,
                    saved_search.user_id,
                    user_email,
                    saved_search,
                    listings,
                    saved_search.frequency,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            return DispatchResult(success=False, error=f"Dispatch timed out after {timeout:g}s")
        except Exception as e:
            return DispatchResult(success=False, error=str(e) or type(e).__name__)

    async def _write(self, label: str, func: Callable, *args) -> None:
        """Run a blocking store write in a worker thread, bounded by the write timeout."""
        timeout = self._settings.write_timeout_seconds
        try:
            await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=timeout)
        except asyncio.TimeoutError:
            raise StoreWriteError(f"{label} timed out after {timeout:g}s")

    def _report(
        self,
        saved_search: SavedSearch,
        error_type: str,
        error_message: str,
        listing_ids: list[int],
    ) -> None:
        print(f"  ✗ {error_type.capitalize()} failed for {saved_search.id}: {error_message}")
        error_file = log_notification_error(
            error_type=error_type,
            error_message=error_message,
            context={
                "saved_search_id": saved_search.id,
                "user_id": saved_search.user_id,
                "frequency": saved_search.frequency,
                "last_notified_at": saved_search.last_notified_at,
                "matched_listing_ids": listing_ids,
            },
        )
        print(f"    Error details logged to: {error_file}")

    async def _release_lock(self, frequency: str, run_id: RunID) -> None:
        try:
            await asyncio.to_thread(self._run_lock.release, frequency, run_id)
        except Exception as e:
            # Lock expiry frees the tier if release fails
            print(f"⚠️  Failed to release {frequency} run lock: {e}")
            log_notification_error(
                error_type="run",
                error_message=f"Run lock release failed: {e}",
                context={"frequency": frequency, "run_id": run_id},
            )
