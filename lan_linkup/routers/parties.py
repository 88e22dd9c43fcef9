"""Party API routes — hosting, discovery and attendance, backed by party_service."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status

from lan_linkup.auth.deps import CurrentUser, DBSession, OptionalUser
from lan_linkup.config import settings
from lan_linkup.errors import unwrap
from lan_linkup.schemas.common import MessageOut
from lan_linkup.schemas.party import AttendeeOut, PartyCreate, PartyOut, PartyUpdate
from lan_linkup.services import party_service
from lan_linkup.services.geocoding import Geocoder, get_geocoder

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", response_model=PartyOut, status_code=status.HTTP_201_CREATED)
def create_party(
    payload: PartyCreate,
    user: CurrentUser,
    db: DBSession,
    geocoder: Geocoder = Depends(get_geocoder),
):
    """Create a party hosted by the caller. The address is geocoded before anything is stored."""
    coordinates = geocoder.geocode(payload.address)
    listing = unwrap(party_service.create_party(db, user.id, payload.model_dump(), coordinates))
    return PartyOut.from_listing(listing)


@router.get("", response_model=list[PartyOut])
def list_parties(
    db: DBSession,
    viewer: OptionalUser,
    search: Optional[str] = Query(None),
    game: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    include_finished: bool = Query(False),
    limit: int = Query(settings.PARTY_PAGE_SIZE, ge=1, le=settings.PARTY_PAGE_SIZE_MAX),
    offset: int = Query(0, ge=0),
):
    """List discoverable parties with optional filters and free-text search."""
    listings = unwrap(party_service.list_parties(
        db,
        viewer_id=viewer.id if viewer else None,
        game=game,
        location=location,
        search=search,
        include_finished=include_finished,
        limit=limit,
        offset=offset,
    ))
    return [PartyOut.from_listing(listing) for listing in listings]


@router.get("/my", response_model=list[PartyOut])
def my_parties(user: CurrentUser, db: DBSession):
    """Parties hosted by the caller."""
    listings = unwrap(party_service.get_parties_by_host(db, user.id))
    return [PartyOut.from_listing(listing) for listing in listings]


@router.get("/upcoming", response_model=list[PartyOut])
def upcoming_parties(user: CurrentUser, db: DBSession):
    """Parties the caller has joined that are still ahead."""
    listings = unwrap(party_service.get_upcoming_parties_for_user(db, user.id))
    return [PartyOut.from_listing(listing) for listing in listings]


@router.get("/{party_id}", response_model=PartyOut)
def get_party(party_id: int, db: DBSession, viewer: OptionalUser):
    listing = unwrap(party_service.get_party(db, party_id, viewer.id if viewer else None))
    return PartyOut.from_listing(listing)


@router.put("/{party_id}", response_model=PartyOut)
def update_party(
    party_id: int,
    payload: PartyUpdate,
    user: CurrentUser,
    db: DBSession,
    geocoder: Geocoder = Depends(get_geocoder),
):
    """Partial update (host only). A new address is geocoded again."""
    party = unwrap(party_service.require_host(db, party_id, user.id))
    changes = payload.changes()

    coordinates = None
    if "address" in changes and changes["address"] != party.address:
        coordinates = geocoder.geocode(changes["address"])

    listing = unwrap(party_service.update_party(db, party_id, user.id, changes, coordinates))
    return PartyOut.from_listing(listing)


@router.delete("/{party_id}", response_model=MessageOut)
def delete_party(party_id: int, user: CurrentUser, db: DBSession):
    """Delete a party (host only) together with its attendance."""
    unwrap(party_service.delete_party(db, party_id, user.id))
    return MessageOut(message="Party deleted successfully")


@router.post("/{party_id}/join", response_model=MessageOut)
def join_party(party_id: int, user: CurrentUser, db: DBSession):
    unwrap(party_service.join_party(db, party_id, user.id))
    return MessageOut(message="Successfully joined party")


@router.post("/{party_id}/leave", response_model=MessageOut)
def leave_party(party_id: int, user: CurrentUser, db: DBSession):
    unwrap(party_service.leave_party(db, party_id, user.id))
    return MessageOut(message="Successfully left party")


@router.get("/{party_id}/attendees", response_model=list[AttendeeOut])
def list_attendees(party_id: int, db: DBSession):
    return unwrap(party_service.get_attendees(db, party_id))
