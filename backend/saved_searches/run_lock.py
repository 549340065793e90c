"""
Per-frequency run lock.

A row in `saved_search_run_locks` (primary key: frequency) marks a run in
progress. Locks carry an expiry so a crashed run cannot block the tier
forever.
"""

from datetime import datetime, timedelta
from typing import Any, Protocol

from postgrest.exceptions import APIError

from models.types import RunID
from shared.utils import to_iso

UNIQUE_VIOLATION = "23505"


class RunLock(Protocol):
    """Run lock operations required by the batch runner."""

    def acquire(self, frequency: str, run_id: RunID, now: datetime) -> bool:
        ...

    def release(self, frequency: str, run_id: RunID) -> None:
        ...


class SupabaseRunLock:
    """Run lock backed by the Supabase `saved_search_run_locks` table."""

    TABLE = "saved_search_run_locks"

    def __init__(self, supabase: Any, ttl_seconds: int = 600) -> None:
        self._supabase = supabase
        self._ttl = timedelta(seconds=ttl_seconds)

    def acquire(self, frequency: str, run_id: RunID, now: datetime) -> bool:
        """
        Try to take the lock for a frequency tier.

        Returns:
            True if acquired, False if another unexpired run holds it
        """
        # Clear a lock left behind by a run that died
        self._supabase.table(self.TABLE).delete().eq("frequency", frequency).lt(
            "expires_at", to_iso(now)
        ).execute()

        try:
            self._supabase.table(self.TABLE).insert(
                {
                    "frequency": frequency,
                    "run_id": run_id,
                    "acquired_at": to_iso(now),
                    "expires_at": to_iso(now + self._ttl),
                },
                returning="minimal",
            ).execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION or "duplicate" in str(e).lower():
                return False
            raise

        return True

    def release(self, frequency: str, run_id: RunID) -> None:
        """Release the lock if this run still holds it."""
        self._supabase.table(self.TABLE).delete().eq("frequency", frequency).eq(
            "run_id", run_id
        ).execute()
