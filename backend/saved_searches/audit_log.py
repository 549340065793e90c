"""
Run audit log for saved-search notifications.

Append-only history of notification attempts in `saved_search_notifications`.
Sent records also let the runner avoid re-sending listings after a crash
between dispatch and watermark commit.
"""

from datetime import datetime
from typing import Any, Protocol

from models import NotificationRecord
from models.types import ListingIDList, SavedSearchID
from shared.utils import to_iso


class AuditLog(Protocol):
    """Audit operations required by the batch runner."""

    def record_sent(
        self, saved_search_id: SavedSearchID, listing_ids: ListingIDList, sent_at: datetime
    ) -> None:
        ...

    def record_failed(
        self, saved_search_id: SavedSearchID, listing_ids: ListingIDList, error_message: str
    ) -> None:
        ...

    def sent_listing_ids(
        self, saved_search_id: SavedSearchID, since: datetime
    ) -> set[int]:
        ...

    def recent(self, saved_search_id: SavedSearchID, limit: int = 10) -> list[NotificationRecord]:
        ...


class SupabaseAuditLog:
    """Audit log backed by the Supabase `saved_search_notifications` table."""

    TABLE = "saved_search_notifications"

    def __init__(self, supabase: Any) -> None:
        self._supabase = supabase

    def record_sent(
        self, saved_search_id: SavedSearchID, listing_ids: ListingIDList, sent_at: datetime
    ) -> None:
        self._supabase.table(self.TABLE).insert(
            {
                "saved_search_id": saved_search_id,
                "matched_listing_ids": listing_ids,
                "status": "sent",
                "sent_at": to_iso(sent_at),
            },
            returning="minimal",
        ).execute()

    def record_failed(
        self, saved_search_id: SavedSearchID, listing_ids: ListingIDList, error_message: str
    ) -> None:
        self._supabase.table(self.TABLE).insert(
            {
                "saved_search_id": saved_search_id,
                "matched_listing_ids": listing_ids,
                "status": "failed",
                "error_message": error_message,
            },
            returning="minimal",
        ).execute()

    def sent_listing_ids(
        self, saved_search_id: SavedSearchID, since: datetime
    ) -> set[int]:
        """Listing ids already delivered for this saved search after `since`."""
        response = (
            self._supabase.table(self.TABLE)
            .select("matched_listing_ids")
            .eq("saved_search_id", saved_search_id)
            .eq("status", "sent")
            .gt("created_at", to_iso(since))
            .execute()
        )

        delivered: set[int] = set()
        for row in response.data or []:
            delivered.update(row.get("matched_listing_ids") or [])
        return delivered

    def recent(
        self, saved_search_id: SavedSearchID, limit: int = 10
    ) -> list[NotificationRecord]:
        """Most recent audit records for one saved search, newest first."""
        response = (
            self._supabase.table(self.TABLE)
            .select("*")
            .eq("saved_search_id", saved_search_id)
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        return [NotificationRecord.model_validate(row) for row in response.data or []]
