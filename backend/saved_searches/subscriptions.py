"""
Subscriber directory for saved-search notifications.

Loads active saved searches for a frequency tier, resolves owner emails, and
persists watermark updates on the `saved_searches` table.
"""

from datetime import datetime
from typing import Any, Protocol

from postgrest.exceptions import APIError
from pydantic import ValidationError

from models import SavedSearch, UserProfile
from models.types import SavedSearchID, UserID
from saved_searches.errors import SubscriptionLoadError
from shared.utils import postgrest_value, to_iso


class SubscriberDirectory(Protocol):
    """Saved search and profile operations required by the batch runner."""

    def get_active_saved_searches(self, frequency: str) -> list[SavedSearch]:
        ...

    def get_emails_by_user_ids(self, user_ids: list[UserID]) -> dict[UserID, str]:
        ...

    def update_watermark(
        self, saved_search_id: SavedSearchID, notified_at: datetime, match_count: int
    ) -> bool:
        ...


class SupabaseSubscriberDirectory:
    """Subscriber directory backed by `saved_searches` and `profiles`."""

    def __init__(self, supabase: Any) -> None:
        self._supabase = supabase

    def get_active_saved_searches(self, frequency: str) -> list[SavedSearch]:
        """
        Fetch active saved searches with the given notification frequency.

        Rows that fail validation are reported and left out rather than
        aborting the run.

        Raises:
            SubscriptionLoadError: If the table cannot be read
        """
        try:
            response = (
                self._supabase.table("saved_searches")
                .select("*")
                .eq("notification_frequency", frequency)
                .eq("is_active", True)
                .execute()
            )
        except APIError as e:
            raise SubscriptionLoadError(e.message or str(e)) from e

        saved_searches = []
        for row in response.data or []:
            try:
                saved_searches.append(SavedSearch.model_validate(row))
            except ValidationError as e:
                print(f"  ⚠️  Skipping malformed saved search {row.get('id')}: {e}")
        return saved_searches

    def get_emails_by_user_ids(self, user_ids: list[UserID]) -> dict[UserID, str]:
        """Map user ids to email addresses; users without an email are left out."""
        if not user_ids:
            return {}

        response = (
            self._supabase.table("profiles")
            .select("id, email")
            .in_("id", user_ids)
            .execute()
        )

        emails: dict[UserID, str] = {}
        for row in response.data or []:
            profile = UserProfile.model_validate(row)
            if profile.email:
                emails[profile.id] = profile.email
        return emails

    def update_watermark(
        self, saved_search_id: SavedSearchID, notified_at: datetime, match_count: int
    ) -> bool:
        """
        Move last_notified_at forward to `notified_at`.

        The update only applies when the stored watermark is unset or older,
        so an overlapping run can never move it backwards.

        Returns:
            True if the row was updated, False if it already had a newer watermark
        """
        notified_iso = to_iso(notified_at)
        response = (
            self._supabase.table("saved_searches")
            .update(
                {
                    "last_notified_at": notified_iso,
                    "last_match_count": match_count,
                }
            )
            .eq("id", saved_search_id)
            .or_(
                "last_notified_at.is.null,"
                f"last_notified_at.lt.{postgrest_value(notified_iso)}"
            )
            .execute()
        )
        return bool(response.data)
