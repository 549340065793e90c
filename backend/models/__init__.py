"""Pydantic models for data validation and type checking."""

from models.listing import Dealer, Listing
from models.notification import DispatchResult, NotificationRecord, RunSummary
from models.saved_search import SavedSearch, SavedSearchCriteria, UserProfile

__all__ = [
    "Dealer",
    "Listing",
    "SavedSearch",
    "SavedSearchCriteria",
    "UserProfile",
    "NotificationRecord",
    "DispatchResult",
    "RunSummary",
]
