"""Service-level checks: Result failure kinds, and the capacity and friend-pair
rules when a second session writes in the middle of an operation."""
from datetime import datetime, timezone, timedelta

import pytest
from sqlalchemy.orm import sessionmaker

from lan_linkup.models.attendee import PartyAttendee
from lan_linkup.models.friendship import Friendship, FriendshipStatus
from lan_linkup.models.party import Party
from lan_linkup.models.user import User
from lan_linkup.services import friendship_service, party_service
from lan_linkup.services.geocoding import Coordinates
from lan_linkup.services.result import Failure

COORDS = Coordinates(latitude=1.0, longitude=2.0)


def _user(db, name):
    user = User(username=name, email=f"{name}@example.com", password_hash="x")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _party(db, host, capacity=2):
    data = {
        "title": "Service LAN",
        "description": "d",
        "game": "Dota 2",
        "capacity": capacity,
        "location": "Poznan",
        "address": "Stary Rynek 1",
        "date": datetime.now(timezone.utc) + timedelta(days=1),
    }
    return party_service.create_party(db, host.id, data, COORDS).value.party


class TestPartyServiceResults:

    def test_create_for_unknown_host(self, db):
        result = party_service.create_party(db, 999, {}, COORDS)
        assert not result.ok
        assert result.failure == Failure.not_found

    def test_join_failure_kinds(self, db):
        host, a, b, c = (_user(db, n) for n in ("host", "a", "b", "c"))
        party = _party(db, host, capacity=2)

        assert party_service.join_party(db, party.id, a.id).ok
        assert party_service.join_party(db, party.id, a.id).failure == Failure.conflict
        assert party_service.join_party(db, party.id, b.id).ok
        assert party_service.join_party(db, party.id, c.id).failure == Failure.party_full
        assert party_service.join_party(db, 12345, c.id).failure == Failure.not_found
        assert party_service.count_attendees(db, party.id) == 2

    def test_update_capacity_floor(self, db):
        host, a, b = (_user(db, n) for n in ("host", "a", "b"))
        party = _party(db, host, capacity=4)
        party_service.join_party(db, party.id, a.id)
        party_service.join_party(db, party.id, b.id)

        result = party_service.update_party(db, party.id, host.id, {"capacity": 2})
        assert result.ok
        assert result.value.party.capacity == 2

        party_service.leave_party(db, party.id, b.id)
        party_service.join_party(db, party.id, b.id)
        assert party_service.update_party(db, party.id, a.id, {"capacity": 3}).failure == Failure.forbidden

    def test_listing_flags_per_viewer(self, db):
        host, guest, stranger = (_user(db, n) for n in ("host", "guest", "stranger"))
        party = _party(db, host, capacity=3)
        party_service.join_party(db, party.id, guest.id)

        as_guest = party_service.get_party(db, party.id, guest.id).value
        as_stranger = party_service.get_party(db, party.id, stranger.id).value
        anonymous = party_service.get_party(db, party.id).value

        assert as_guest.is_attending is True and as_guest.reveal_address
        assert as_stranger.is_attending is False and not as_stranger.reveal_address
        assert anonymous.is_attending is None and not anonymous.reveal_address
        assert as_guest.attendee_count == 1


@pytest.fixture
def other_session(db_engine):
    """A second, independent session standing in for a concurrent request."""
    session = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)()
    try:
        yield session
    finally:
        session.close()


def _run_once_after(monkeypatch, module, name, action):
    """Patch ``module.name`` so ``action`` runs right after its first call returns."""
    original = getattr(module, name)
    fired = []

    def wrapper(*args, **kwargs):
        result = original(*args, **kwargs)
        if not fired:
            fired.append(True)
            action()
        return result

    monkeypatch.setattr(module, name, wrapper)


class TestInterleavedWrites:

    def test_join_between_capacity_check_and_write(self, db, other_session, monkeypatch):
        host, a, b, c, d = (_user(db, n) for n in ("host", "a", "b", "c", "d"))
        party = _party(db, host, capacity=5)
        for guest in (a, b, c):
            party_service.join_party(db, party.id, guest.id)

        joined = []
        _run_once_after(
            monkeypatch, party_service, "count_attendees",
            lambda: joined.append(party_service.join_party(other_session, party.id, d.id)),
        )
        result = party_service.update_party(db, party.id, host.id, {"capacity": 3})

        assert joined[0].ok
        assert result.failure == Failure.conflict
        db.expire_all()
        stored = db.get(Party, party.id)
        assert stored.capacity == 5
        assert party_service.count_attendees(db, party.id) <= stored.capacity

    def test_two_joins_for_the_last_seat(self, db, other_session, monkeypatch):
        host, a, b, c = (_user(db, n) for n in ("host", "a", "b", "c"))
        party = _party(db, host, capacity=2)
        party_service.join_party(db, party.id, a.id)

        rival = []
        _run_once_after(
            monkeypatch, party_service, "count_attendees",
            lambda: rival.append(party_service.join_party(other_session, party.id, c.id)),
        )
        result = party_service.join_party(db, party.id, b.id)

        assert rival[0].ok
        assert result.failure == Failure.party_full
        assert party_service.count_attendees(db, party.id) == 2
        assert not party_service.is_attending(db, party.id, b.id)

    def test_capacity_cut_between_join_check_and_write(self, db, other_session, monkeypatch):
        host, a, b, c = (_user(db, n) for n in ("host", "a", "b", "c"))
        party = _party(db, host, capacity=3)
        party_service.join_party(db, party.id, a.id)
        party_service.join_party(db, party.id, b.id)

        cut = []
        _run_once_after(
            monkeypatch, party_service, "count_attendees",
            lambda: cut.append(party_service.update_party(other_session, party.id, host.id, {"capacity": 2})),
        )
        result = party_service.join_party(db, party.id, c.id)

        assert cut[0].ok
        assert result.failure == Failure.party_full
        db.expire_all()
        assert db.get(Party, party.id).capacity == 2
        assert db.query(PartyAttendee).filter(PartyAttendee.party_id == party.id).count() == 2

    @pytest.mark.parametrize("crossing", [True, False], ids=["opposite-direction", "same-direction"])
    def test_one_pending_request_per_pair(self, db, other_session, monkeypatch, crossing):
        alice, bob = _user(db, "alice"), _user(db, "bob")
        sender, recipient = (bob, alice) if crossing else (alice, bob)

        other = []
        _run_once_after(
            monkeypatch, friendship_service, "_pending_between",
            lambda: other.append(friendship_service.send_friend_request(other_session, sender.id, recipient.id)),
        )
        result = friendship_service.send_friend_request(db, alice.id, bob.id)

        assert other[0].ok
        assert result.failure == Failure.conflict
        pending = db.query(Friendship).filter(
            Friendship.pair_key == Friendship.pair_key_for(alice.id, bob.id),
            Friendship.status == FriendshipStatus.pending,
        ).count()
        assert pending == 1
