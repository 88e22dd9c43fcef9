"""Pydantic schemas for Parties and attendance."""
from __future__ import annotations
from datetime import datetime, timezone
from typing import Annotated, Optional, TYPE_CHECKING
from pydantic import AfterValidator, BaseModel, Field

from lan_linkup.models.party import PartyVisibility
from lan_linkup.schemas.common import PartialUpdate
from lan_linkup.schemas.user import UserOut

if TYPE_CHECKING:
    from lan_linkup.services.party_service import PartyListing


def _as_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _future_date(value: datetime) -> datetime:
    value = _as_utc(value)
    if value <= datetime.now(timezone.utc):
        raise ValueError("date must be in the future")
    return value


FutureDate = Annotated[datetime, AfterValidator(_future_date)]


class PartyCreate(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    description: str = Field(min_length=1)
    game: str = Field(min_length=1, max_length=100)
    capacity: int = Field(ge=2)
    location: str = Field(min_length=1, max_length=100)
    address: str = Field(min_length=1)
    visibility: PartyVisibility = PartyVisibility.public
    date: FutureDate



class PartyUpdate(PartialUpdate):
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, min_length=1)
    game: Optional[str] = Field(default=None, min_length=1, max_length=100)
    capacity: Optional[int] = Field(default=None, ge=2)
    location: Optional[str] = Field(default=None, min_length=1, max_length=100)
    address: Optional[str] = Field(default=None, min_length=1)
    visibility: Optional[PartyVisibility] = None
    date: Optional[FutureDate] = None



class PartyOut(BaseModel):
    id: int
    title: str
    description: str
    game: str
    capacity: int
    location: str
    address: Optional[str] = None  # only for the host and attendees
    visibility: PartyVisibility
    date: datetime
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    host_id: int
    host: UserOut
    created_at: datetime
    attendee_count: int = 0
    is_attending: Optional[bool] = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_listing(cls, listing: PartyListing) -> PartyOut:
        out = cls.model_validate(listing.party)
        return out.model_copy(update={
            "address": listing.party.address if listing.reveal_address else None,
            "attendee_count": listing.attendee_count,
            "is_attending": listing.is_attending,
        })


class AttendeeOut(BaseModel):
    user_id: int
    joined_at: datetime
    user: UserOut

    model_config = {"from_attributes": True}
