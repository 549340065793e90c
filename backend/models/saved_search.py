"""Pydantic models for saved searches and their criteria."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from models.types import DealerID, Frequency, SavedSearchID, UserID


class SavedSearchCriteria(BaseModel):
    """
    Search criteria as stored by the browse page (camelCase JSON).

    Every field is optional; a missing or empty field places no constraint
    on that dimension.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    tab: str | None = None
    category: str | None = None
    item_types: list[str] = Field(default_factory=list, alias="itemTypes")
    certifications: list[str] = Field(default_factory=list)
    dealers: list[DealerID] = Field(default_factory=list)
    schools: list[str] = Field(default_factory=list)
    ask_only: bool = Field(False, alias="askOnly")
    query: str | None = None
    sort: str | None = None
    min_price: float | None = Field(None, alias="minPrice")
    max_price: float | None = Field(None, alias="maxPrice")


class SavedSearch(BaseModel):
    """A user's saved search plus notification state."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: SavedSearchID
    user_id: UserID
    name: str | None = None
    criteria: SavedSearchCriteria = Field(
        default_factory=SavedSearchCriteria, alias="search_criteria"
    )
    frequency: Frequency = Field(..., alias="notification_frequency")
    is_active: bool = True
    last_notified_at: datetime | None = None
    last_match_count: int = 0


class UserProfile(BaseModel):
    """Profile row used to resolve a saved search owner's email."""

    id: UserID
    email: str | None = None
