"""Pydantic models for notification delivery and run auditing."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from models.types import (
    AuditRecordID,
    AuditStatus,
    Frequency,
    ListingIDList,
    SavedSearchID,
)


class NotificationRecord(BaseModel):
    """Append-only audit record of one notification attempt."""

    id: AuditRecordID | None = None
    saved_search_id: SavedSearchID
    matched_listing_ids: ListingIDList = Field(default_factory=list)
    status: AuditStatus
    error_message: str | None = None
    created_at: datetime | None = None
    sent_at: datetime | None = None


class DispatchResult(BaseModel):
    """Outcome of handing one notification to the email transport."""

    success: bool
    email_id: str | None = None
    error: str | None = None
    skipped: bool = False


class RunSummary(BaseModel):
    """Run-level counters returned to the scheduler."""

    model_config = ConfigDict(populate_by_name=True)

    frequency: Frequency
    processed: int = 0
    notifications_sent: int = Field(0, alias="notificationsSent")
    errors: int = 0
    skipped: int = 0
    deferred: int = 0
    timed_out: bool = Field(False, alias="timedOut")

    def as_response(self) -> dict:
        """Serialize with the camelCase keys the trigger endpoint returns."""
        return self.model_dump(by_alias=True)
