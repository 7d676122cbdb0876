"""
Pydantic models for request/response validation and the canonical event shape.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from domain.constants import UNKNOWN_VENUE, WISHLIST_NAME_MAX_LENGTH


class ApiBase(BaseModel):
    """Shared base — allows construction by Python name or alias."""
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)


# ── Canonical Event ─────────────────────────────────────────────────

class CanonicalEvent(ApiBase):
    """
    One Ticketmaster event after normalization.

    Field names match the Concert columns so a canonical event can be
    inserted as-is (see concert_values()).
    """
    event_id: Optional[str] = None
    name: Optional[str] = None
    venue: str = UNKNOWN_VENUE
    city: Optional[str] = None
    country: Optional[str] = None
    longitude: Optional[float] = None
    latitude: Optional[float] = None
    concert_date: Optional[datetime] = None
    sale_start: Optional[datetime] = None
    on_sale: bool = False
    festival: bool = False
    url: Optional[str] = None
    metadata: Optional[str] = None
    performers: list[str] = Field(default_factory=list)
    created_at: datetime

    def dedup_key(self) -> tuple:
        """(venue, calendar date) — time of day is ignored."""
        day = self.concert_date.date() if self.concert_date else None
        return (self.venue, day)

    def concert_values(self) -> dict:
        """Column values for a new Concert row."""
        return {
            "event_id": self.event_id,
            "name": self.name,
            "venue": self.venue,
            "city": self.city,
            "country": self.country,
            "longitude": self.longitude,
            "latitude": self.latitude,
            "concert_date": self.concert_date,
            "sale_start": self.sale_start,
            "on_sale": self.on_sale,
            "festival": self.festival,
            "url": self.url,
            "lineup_metadata": self.metadata,
            "created_at": self.created_at,
        }


# ── Band Models ─────────────────────────────────────────────────────

class BandLookup(ApiBase):
    """Identify a band by display name or Ticketmaster attraction id."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    ticketmaster_id: Optional[str] = Field(default=None, min_length=1, max_length=64)

    @model_validator(mode="after")
    def _require_name_or_id(self):
        self.name = self.name.strip() if self.name else None
        self.ticketmaster_id = self.ticketmaster_id.strip() if self.ticketmaster_id else None
        if not self.name and not self.ticketmaster_id:
            raise ValueError("Either 'name' or 'ticketmaster_id' must be provided")
        return self


class BandCreateRequest(BandLookup):
    """Import a band from Ticketmaster, optionally adding it to a wishlist."""
    wishlist_id: Optional[int] = Field(default=None, alias="wishlistId", gt=0)


# ── Wishlist Models ─────────────────────────────────────────────────

class WishlistNameRequest(ApiBase):
    """Create or rename a wishlist."""
    name: str = Field(..., min_length=1, max_length=WISHLIST_NAME_MAX_LENGTH)

    @model_validator(mode="after")
    def _strip_name(self):
        self.name = self.name.strip()
        if not self.name:
            raise ValueError("Wishlist name must be between 1 and 100 characters")
        return self
