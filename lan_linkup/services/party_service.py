"""Core party service — hosting, discovery and attendance.

Responsibilities:
- Listings carry the host, attendee count and the viewer's attendance flag
- Visibility: public parties are discoverable by everyone, friends-only
  parties by the host and their accepted friends, private ones only via the host
- Host-only mutation (update / delete)
- Capacity and one-row-per-attendee hold under concurrent joins and
  capacity changes: both paths lock the party row, the write itself only
  lands while the attendees fit, and a unique constraint backs the
  duplicate check
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from sqlalchemy import and_, func, insert, literal, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lan_linkup.config import settings
from lan_linkup.models.attendee import PartyAttendee
from lan_linkup.models.party import Party, PartyVisibility
from lan_linkup.models.user import User
from lan_linkup.services import friendship_service
from lan_linkup.services.geocoding import Coordinates
from lan_linkup.services.result import Failure, Result
from lan_linkup.services.search import icontains_any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PartyListing:
    """A party as seen by one viewer (``is_attending`` is None for anonymous viewers)."""

    party: Party
    attendee_count: int
    is_attending: Optional[bool]
    reveal_address: bool


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything is stored as UTC."""
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def _attendee_counts(db: Session, party_ids: list[int]) -> dict[int, int]:
    if not party_ids:
        return {}
    rows = (
        db.query(PartyAttendee.party_id, func.count(PartyAttendee.id))
        .filter(PartyAttendee.party_id.in_(party_ids))
        .group_by(PartyAttendee.party_id)
        .all()
    )
    return {party_id: count for party_id, count in rows}


def _attending_party_ids(db: Session, party_ids: list[int], user_id: int) -> set[int]:
    if not party_ids:
        return set()
    rows = (
        db.query(PartyAttendee.party_id)
        .filter(PartyAttendee.party_id.in_(party_ids), PartyAttendee.user_id == user_id)
        .all()
    )
    return {party_id for (party_id,) in rows}


def _listings(db: Session, parties: Iterable[Party], viewer_id: Optional[int]) -> list[PartyListing]:
    parties = list(parties)
    party_ids = [p.id for p in parties]
    counts = _attendee_counts(db, party_ids)
    attending = _attending_party_ids(db, party_ids, viewer_id) if viewer_id is not None else set()

    listings = []
    for party in parties:
        is_attending = party.id in attending
        listings.append(PartyListing(
            party=party,
            attendee_count=counts.get(party.id, 0),
            is_attending=is_attending if viewer_id is not None else None,
            reveal_address=viewer_id is not None and (party.host_id == viewer_id or is_attending),
        ))
    return listings


def _attendee_count_subquery(party_id: int):
    return (
        select(func.count(PartyAttendee.id))
        .where(PartyAttendee.party_id == party_id)
        .scalar_subquery()
    )


def _lock_party(db: Session, party_id: int) -> Optional[Party]:
    """SELECT ... FOR UPDATE on the party row only (the joined host would make it an outer join)."""
    return (
        db.query(Party)
        .filter(Party.id == party_id)
        .with_for_update(of=Party)
        .populate_existing()
        .first()
    )


def _set_capacity_if_fits(db: Session, party_id: int, capacity: int) -> bool:
    """Set the capacity only if the attendees still fit, as one statement."""
    updated = (
        db.query(Party)
        .filter(Party.id == party_id, _attendee_count_subquery(party_id) <= capacity)
        .update({Party.capacity: capacity}, synchronize_session=False)
    )
    return updated == 1


def _insert_if_seat_left(db: Session, party_id: int, user_id: int) -> bool:
    """Insert the attendance row only while the party is below capacity, as one statement."""
    seat = select(Party.id, literal(user_id)).where(
        Party.id == party_id,
        Party.capacity > _attendee_count_subquery(party_id),
    )
    result = db.execute(
        insert(PartyAttendee.__table__).from_select(["party_id", "user_id"], seat)
    )
    return result.rowcount == 1


def count_attendees(db: Session, party_id: int) -> int:
    return db.query(func.count(PartyAttendee.id)).filter(PartyAttendee.party_id == party_id).scalar() or 0


def is_attending(db: Session, party_id: int, user_id: int) -> bool:
    return db.query(PartyAttendee.id).filter(
        PartyAttendee.party_id == party_id,
        PartyAttendee.user_id == user_id,
    ).first() is not None


# ── Reads ──────────────────────────────────────────────────────────


def get_party(db: Session, party_id: int, viewer_id: Optional[int] = None) -> Result[PartyListing]:
    party = db.get(Party, party_id)
    if not party:
        return Result.fail(Failure.not_found, "Party not found")
    return Result.success(_listings(db, [party], viewer_id)[0])


def list_parties(
    db: Session,
    viewer_id: Optional[int] = None,
    game: Optional[str] = None,
    location: Optional[str] = None,
    search: Optional[str] = None,
    include_finished: bool = False,
    limit: Optional[int] = None,
    offset: int = 0,
) -> Result[list[PartyListing]]:
    """Discoverable parties, newest first. No match is an empty list, not a failure."""
    visible = Party.visibility == PartyVisibility.public
    if viewer_id is not None:
        # A host sees their own friends-only parties alongside their friends'.
        circle = friendship_service.get_friend_ids(db, viewer_id) | {viewer_id}
        visible = or_(
            visible,
            and_(Party.visibility == PartyVisibility.friends, Party.host_id.in_(circle)),
        )

    query = db.query(Party).filter(visible)
    if game:
        query = query.filter(icontains_any(game, Party.game))
    if location:
        query = query.filter(icontains_any(location, Party.location))
    if search:
        query = query.filter(
            icontains_any(search, Party.title, Party.description, Party.location, Party.game)
        )
    if not include_finished:
        query = query.filter(Party.date >= _now())

    parties = (
        query.order_by(Party.created_at.desc(), Party.id.desc())
        .offset(offset)
        .limit(limit or settings.PARTY_PAGE_SIZE)
        .all()
    )
    return Result.success(_listings(db, parties, viewer_id))


def get_parties_by_host(db: Session, host_id: int) -> Result[list[PartyListing]]:
    """Every party the user hosts, whatever its visibility."""
    parties = (
        db.query(Party)
        .filter(Party.host_id == host_id)
        .order_by(Party.created_at.desc(), Party.id.desc())
        .all()
    )
    return Result.success(_listings(db, parties, host_id))


def get_upcoming_parties_for_user(db: Session, user_id: int) -> Result[list[PartyListing]]:
    """Parties the user has joined that have not started yet, soonest first."""
    parties = (
        db.query(Party)
        .join(PartyAttendee, PartyAttendee.party_id == Party.id)
        .filter(PartyAttendee.user_id == user_id, Party.date >= _now())
        .order_by(Party.date.asc())
        .all()
    )
    return Result.success(_listings(db, parties, user_id))


def get_attendees(db: Session, party_id: int) -> Result[list[PartyAttendee]]:
    if not db.get(Party, party_id):
        return Result.fail(Failure.not_found, "Party not found")
    attendees = (
        db.query(PartyAttendee)
        .filter(PartyAttendee.party_id == party_id)
        .order_by(PartyAttendee.joined_at.asc(), PartyAttendee.id.asc())
        .all()
    )
    return Result.success(attendees)


# ── Host mutations ─────────────────────────────────────────────────


def create_party(
    db: Session,
    host_id: int,
    data: dict[str, Any],
    coordinates: Coordinates,
) -> Result[PartyListing]:
    """Insert a party hosted by ``host_id``. ``data`` has already passed PartyCreate validation."""
    if not db.get(User, host_id):
        return Result.fail(Failure.not_found, "Host user not found")

    party = Party(
        **data,
        host_id=host_id,
        latitude=coordinates.latitude,
        longitude=coordinates.longitude,
    )
    db.add(party)
    db.commit()
    db.refresh(party)
    logger.info("Created party '%s' (%s) hosted by user %s", party.title, party.id, host_id)
    return Result.success(_listings(db, [party], host_id)[0])


def require_host(db: Session, party_id: int, actor_id: int) -> Result[Party]:
    """The party, provided ``actor_id`` hosts it."""
    party = db.get(Party, party_id)
    if not party:
        return Result.fail(Failure.not_found, "Party not found")
    if party.host_id != actor_id:
        return Result.fail(Failure.forbidden, "Only the host may modify this party")
    return Result.success(party)


def update_party(
    db: Session,
    party_id: int,
    actor_id: int,
    changes: dict[str, Any],
    coordinates: Optional[Coordinates] = None,
) -> Result[PartyListing]:
    """Partial update by the host. Pass ``coordinates`` when the address changed."""
    found = require_host(db, party_id, actor_id)
    if not found.ok:
        return found
    party = found.value

    capacity = changes.get("capacity")
    if capacity is not None:
        # Joins lock the same row, so the count below cannot move until commit.
        _lock_party(db, party_id)
        attendee_count = count_attendees(db, party_id)
        if capacity < attendee_count or not _set_capacity_if_fits(db, party_id, capacity):
            db.rollback()
            return Result.fail(
                Failure.conflict,
                f"Capacity cannot be lower than the current attendee count ({count_attendees(db, party_id)})",
            )

    for field, value in changes.items():
        if field not in ("id", "host_id", "created_at", "latitude", "longitude", "capacity"):
            setattr(party, field, value)
    if coordinates is not None:
        party.latitude = coordinates.latitude
        party.longitude = coordinates.longitude

    db.commit()
    db.refresh(party)
    logger.info("Updated party %s (%s)", party_id, ", ".join(sorted(changes)) or "no changes")
    return Result.success(_listings(db, [party], actor_id)[0])


def delete_party(db: Session, party_id: int, actor_id: int) -> Result[None]:
    """Remove the party's attendance rows, then the party itself."""
    found = require_host(db, party_id, actor_id)
    if not found.ok:
        return found

    removed = (
        db.query(PartyAttendee)
        .filter(PartyAttendee.party_id == party_id)
        .delete(synchronize_session=False)
    )
    db.delete(found.value)
    db.commit()
    logger.info("Deleted party %s and %d attendance rows", party_id, removed)
    return Result.success()


# ── Attendance ─────────────────────────────────────────────────────


def join_party(db: Session, party_id: int, user_id: int) -> Result[PartyAttendee]:
    """Add ``user_id`` to the party unless it is missing, finished, full or already joined."""
    try:
        party = _lock_party(db, party_id)
        if not party:
            db.rollback()
            return Result.fail(Failure.not_found, "Party not found")
        if _aware(party.date) < _now():
            db.rollback()
            return Result.fail(Failure.conflict, "This party has already taken place")
        if is_attending(db, party_id, user_id):
            db.rollback()
            return Result.fail(Failure.conflict, "You have already joined this party")
        if count_attendees(db, party_id) >= party.capacity:
            db.rollback()
            return Result.fail(Failure.party_full, "This party is full")

        if not _insert_if_seat_left(db, party_id, user_id):
            db.rollback()
            return Result.fail(Failure.party_full, "This party is full")
        db.commit()
    except IntegrityError:
        db.rollback()
        return Result.fail(Failure.conflict, "You have already joined this party")

    attendee = db.query(PartyAttendee).filter(
        PartyAttendee.party_id == party_id,
        PartyAttendee.user_id == user_id,
    ).one()
    logger.info("User %s joined party %s", user_id, party_id)
    return Result.success(attendee)


def leave_party(db: Session, party_id: int, user_id: int) -> Result[None]:
    if not db.get(Party, party_id):
        return Result.fail(Failure.not_found, "Party not found")

    removed = (
        db.query(PartyAttendee)
        .filter(PartyAttendee.party_id == party_id, PartyAttendee.user_id == user_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    if not removed:
        return Result.fail(Failure.invalid, "You are not attending this party")
    logger.info("User %s left party %s", user_id, party_id)
    return Result.success()
