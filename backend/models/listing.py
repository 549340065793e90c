"""Pydantic models for catalog listing data (read-only for the pipeline)."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from models.types import DealerID, ListingID


class Dealer(BaseModel):
    """Dealer joined onto a listing row."""

    id: DealerID
    name: str
    name_ja: str | None = None
    domain: str | None = None


class Listing(BaseModel):
    """Snapshot of the listing fields relevant to saved-search matching."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: ListingID
    url: str | None = None
    title: str | None = None
    title_en: str | None = None
    description: str | None = None
    description_en: str | None = None
    item_type: str | None = None
    cert_type: str | None = None
    dealer_id: DealerID | None = None
    dealer: Dealer | None = Field(None, alias="dealers")
    smith: str | None = None
    tosogu_maker: str | None = None
    school: str | None = None
    tosogu_school: str | None = None
    province: str | None = None
    era: str | None = None
    mei_type: str | None = None
    price_value: float | None = None
    price_currency: str | None = None
    first_seen_at: datetime
    status: str | None = None
    is_available: bool | None = None
    is_sold: bool | None = None
    images: list[str] | None = None
