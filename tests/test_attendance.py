"""Tests for joining and leaving parties.

Covers:
- Join increments the attendee count and sets is_attending; leave reverts both
- Capacity is never exceeded; a full party rejects joins without writing a row
- At most one attendance row per (party, user)
- Upcoming-party list and attendee list
"""
from datetime import datetime, timezone, timedelta

from lan_linkup.models.attendee import PartyAttendee
from lan_linkup.models.party import Party
from tests.conftest import auth, create_test_party, create_test_user


def _fetch(client, party_id, user=None):
    headers = auth(user) if user else None
    return client.get(f"/api/parties/{party_id}", headers=headers).json()


class TestJoinLeave:

    def test_join_then_leave(self, client):
        host = create_test_user(client, username="host")
        guest = create_test_user(client, username="guest")
        party = create_test_party(client, host)

        before = _fetch(client, party["id"], guest)
        assert before["attendee_count"] == 0
        assert before["is_attending"] is False

        resp = client.post(f"/api/parties/{party['id']}/join", headers=auth(guest))
        assert resp.status_code == 200
        assert resp.json()["message"] == "Successfully joined party"

        joined = _fetch(client, party["id"], guest)
        assert joined["attendee_count"] == 1
        assert joined["is_attending"] is True

        resp = client.post(f"/api/parties/{party['id']}/leave", headers=auth(guest))
        assert resp.status_code == 200

        left = _fetch(client, party["id"], guest)
        assert left["attendee_count"] == 0
        assert left["is_attending"] is False

    def test_anonymous_fetch_has_no_attendance_flag(self, client):
        host = create_test_user(client)
        party = create_test_party(client, host)
        assert _fetch(client, party["id"])["is_attending"] is None

    def test_join_requires_auth(self, client):
        host = create_test_user(client)
        party = create_test_party(client, host)
        assert client.post(f"/api/parties/{party['id']}/join").status_code == 401

    def test_join_missing_party(self, client):
        guest = create_test_user(client)
        resp = client.post("/api/parties/777/join", headers=auth(guest))
        assert resp.status_code == 404

    def test_double_join_rejected_single_row(self, client, db):
        host = create_test_user(client, username="host")
        guest = create_test_user(client, username="guest")
        party = create_test_party(client, host)

        assert client.post(f"/api/parties/{party['id']}/join", headers=auth(guest)).status_code == 200
        resp = client.post(f"/api/parties/{party['id']}/join", headers=auth(guest))
        assert resp.status_code == 409
        assert "already joined" in resp.json()["message"]

        rows = db.query(PartyAttendee).filter(
            PartyAttendee.party_id == party["id"],
            PartyAttendee.user_id == guest["user"]["id"],
        ).count()
        assert rows == 1

    def test_leave_when_not_attending(self, client):
        host = create_test_user(client, username="host")
        guest = create_test_user(client, username="guest")
        party = create_test_party(client, host)

        resp = client.post(f"/api/parties/{party['id']}/leave", headers=auth(guest))
        assert resp.status_code == 400
        assert resp.json()["message"] == "You are not attending this party"

    def test_leave_missing_party(self, client):
        guest = create_test_user(client)
        assert client.post("/api/parties/777/leave", headers=auth(guest)).status_code == 404

    def test_cannot_join_finished_party(self, client, db):
        host = create_test_user(client, username="host")
        guest = create_test_user(client, username="guest")
        party = create_test_party(client, host)
        db.query(Party).filter(Party.id == party["id"]).update(
            {Party.date: datetime.now(timezone.utc) - timedelta(hours=2)}
        )
        db.commit()

        resp = client.post(f"/api/parties/{party['id']}/join", headers=auth(guest))
        assert resp.status_code == 409


class TestCapacity:

    def test_full_party_rejects_third_join(self, client, db):
        host = create_test_user(client, username="host")
        first, second, third = (create_test_user(client, username=f"guest{i}") for i in range(3))
        party = create_test_party(client, host, capacity=2)

        assert client.post(f"/api/parties/{party['id']}/join", headers=auth(first)).status_code == 200
        assert client.post(f"/api/parties/{party['id']}/join", headers=auth(second)).status_code == 200

        resp = client.post(f"/api/parties/{party['id']}/join", headers=auth(third))
        assert resp.status_code == 409
        assert resp.json()["message"] == "This party is full"
        assert db.query(PartyAttendee).filter(PartyAttendee.party_id == party["id"]).count() == 2
        assert _fetch(client, party["id"], third)["is_attending"] is False

    def test_count_never_exceeds_capacity(self, client, db):
        host = create_test_user(client, username="host")
        guests = [create_test_user(client, username=f"guest{i}") for i in range(6)]
        party = create_test_party(client, host, capacity=4)

        statuses = [
            client.post(f"/api/parties/{party['id']}/join", headers=auth(g)).status_code
            for g in guests
        ]
        assert statuses.count(200) == 4
        assert statuses.count(409) == 2
        assert _fetch(client, party["id"])["attendee_count"] == 4

    def test_spot_frees_up_after_leave(self, client):
        host = create_test_user(client, username="host")
        a, b, c = (create_test_user(client, username=f"guest{i}") for i in range(3))
        party = create_test_party(client, host, capacity=2)
        client.post(f"/api/parties/{party['id']}/join", headers=auth(a))
        client.post(f"/api/parties/{party['id']}/join", headers=auth(b))

        client.post(f"/api/parties/{party['id']}/leave", headers=auth(a))
        assert client.post(f"/api/parties/{party['id']}/join", headers=auth(c)).status_code == 200


class TestAttendeeLists:

    def test_attendees_listed_in_join_order(self, client):
        host = create_test_user(client, username="host")
        a = create_test_user(client, username="alpha")
        b = create_test_user(client, username="bravo")
        party = create_test_party(client, host)
        client.post(f"/api/parties/{party['id']}/join", headers=auth(a))
        client.post(f"/api/parties/{party['id']}/join", headers=auth(b))

        resp = client.get(f"/api/parties/{party['id']}/attendees")
        assert resp.status_code == 200
        assert [row["user"]["username"] for row in resp.json()] == ["alpha", "bravo"]
        assert all("password_hash" not in row["user"] for row in resp.json())

    def test_attendees_of_missing_party(self, client):
        assert client.get("/api/parties/31337/attendees").status_code == 404

    def test_upcoming_lists_joined_parties_soonest_first(self, client):
        host = create_test_user(client, username="host")
        guest = create_test_user(client, username="guest")
        later = create_test_party(
            client, host, title="Later",
            date=(datetime.now(timezone.utc) + timedelta(days=30)).isoformat(),
        )
        sooner = create_test_party(
            client, host, title="Sooner",
            date=(datetime.now(timezone.utc) + timedelta(days=2)).isoformat(),
        )
        create_test_party(client, host, title="Not joined")
        client.post(f"/api/parties/{later['id']}/join", headers=auth(guest))
        client.post(f"/api/parties/{sooner['id']}/join", headers=auth(guest))

        resp = client.get("/api/parties/upcoming", headers=auth(guest))
        assert resp.status_code == 200
        data = resp.json()
        assert [p["title"] for p in data] == ["Sooner", "Later"]
        assert all(p["is_attending"] for p in data)
