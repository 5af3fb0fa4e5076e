"""End-to-end tests for room management routes."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from roomsched.domain.errors import AlreadyExists
from roomsched.domain.models import Room, RoomCreate, Session
from roomsched.main import app, room_repo, session_repo
from roomsched.repos.memory import RoomRepository
from roomsched.services import rooms


@pytest.fixture(autouse=True)
def _clear_repos():
    """Reset in-memory repos before each test."""
    room_repo._store.clear()
    session_repo._store.clear()
    yield
    room_repo._store.clear()
    session_repo._store.clear()


@pytest.fixture()
def client():
    return TestClient(app)


_DAY = datetime(2026, 2, 14, tzinfo=timezone.utc)


def _add_session(room_id: str, hours: float, **fields) -> Session:
    session = Session(room_id=room_id, start=_DAY + timedelta(hours=hours), **fields)
    session_repo.add(session)
    return session


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


def test_create_room_defaults(client):
    resp = client.post("/rooms", json={"name": "  Lab A  ", "location": "   "})
    assert resp.status_code == 201

    room = resp.json()["room"]
    assert room["name"] == "Lab A"
    assert room["capacity"] == 30
    assert room["location"] is None
    assert room["is_active"] is True
    assert room_repo.get(room["room_id"]) is not None


def test_create_room_requires_name(client):
    resp = client.post("/rooms", json={"name": "   "})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Room name is required"


def test_create_room_rejects_duplicate_name(client):
    client.post("/rooms", json={"name": "Lab A"})
    resp = client.post("/rooms", json={"name": "Lab A", "capacity": 12})
    assert resp.status_code == 409
    assert len(room_repo.list_all()) == 1


def test_concurrent_creates_with_one_name():
    repo = RoomRepository()
    barrier = threading.Barrier(8)
    outcomes: list[str] = []
    lock = threading.Lock()

    def attempt():
        barrier.wait()
        try:
            rooms.create_room(RoomCreate(name="Lab A"), repo)
            result = "created"
        except AlreadyExists:
            result = "rejected"
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert outcomes.count("created") == 1
    assert len(repo.list_all()) == 1


# ---------------------------------------------------------------------------
# Read
# ---------------------------------------------------------------------------


def test_list_rooms_ordered_with_counts(client):
    hall = Room(name="Main Hall")
    lab = Room(name="Lab A", is_active=False)
    room_repo.add(hall)
    room_repo.add(lab)
    _add_session(hall.room_id, 9)
    _add_session(hall.room_id, 14)

    body = client.get("/rooms").json()
    assert [r["name"] for r in body] == ["Lab A", "Main Hall"]
    assert body[1]["session_count"] == 2
    assert body[1]["sessions"] is None

    active = client.get("/rooms", params={"active_only": "true"}).json()
    assert [r["name"] for r in active] == ["Main Hall"]


def test_list_rooms_with_recent_sessions(client):
    hall = Room(name="Main Hall")
    room_repo.add(hall)
    for hour in range(12):
        _add_session(hall.room_id, hour * 2)

    body = client.get("/rooms", params={"include_sessions": "true"}).json()
    sessions = body[0]["sessions"]
    assert len(sessions) == 10
    assert sessions[0]["session_date"] > sessions[-1]["session_date"]


def test_get_room(client):
    hall = Room(name="Main Hall")
    room_repo.add(hall)
    session = _add_session(hall.room_id, 9, topic="Intro")

    body = client.get(f"/rooms/{hall.room_id}").json()
    assert body["session_count"] == 1
    assert body["sessions"][0]["session_id"] == session.session_id
    assert body["sessions"][0]["topic"] == "Intro"


def test_get_unknown_room_is_404(client):
    assert client.get("/rooms/nope").status_code == 404


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------


def test_update_room_partial(client):
    hall = Room(name="Main Hall", location="Ground floor")
    room_repo.add(hall)

    resp = client.put(f"/rooms/{hall.room_id}", json={"capacity": 45, "is_active": False})
    assert resp.status_code == 200

    room = resp.json()["room"]
    assert room["capacity"] == 45
    assert room["is_active"] is False
    assert room["name"] == "Main Hall"
    assert room["location"] == "Ground floor"


def test_update_room_clears_location(client):
    hall = Room(name="Main Hall", location="Ground floor")
    room_repo.add(hall)

    resp = client.put(f"/rooms/{hall.room_id}", json={"location": ""})
    assert resp.json()["room"]["location"] is None


def test_update_room_rejects_taken_name(client):
    hall = Room(name="Main Hall")
    lab = Room(name="Lab A")
    room_repo.add(hall)
    room_repo.add(lab)

    resp = client.put(f"/rooms/{lab.room_id}", json={"name": "Main Hall"})
    assert resp.status_code == 409


@pytest.mark.parametrize("name", ["", "   "])
def test_update_room_rejects_blank_name(client, name):
    hall = Room(name="Main Hall")
    room_repo.add(hall)

    resp = client.put(f"/rooms/{hall.room_id}", json={"name": name})
    assert resp.status_code == 400
    assert room_repo.get(hall.room_id).name == "Main Hall"


def test_update_room_keeping_own_name(client):
    hall = Room(name="Main Hall")
    room_repo.add(hall)

    resp = client.put(f"/rooms/{hall.room_id}", json={"name": "Main Hall"})
    assert resp.status_code == 200


def test_update_unknown_room_is_404(client):
    assert client.put("/rooms/nope", json={"capacity": 3}).status_code == 404


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------


def test_delete_room_without_sessions(client):
    lab = Room(name="Lab A")
    room_repo.add(lab)

    resp = client.delete(f"/rooms/{lab.room_id}")
    assert resp.status_code == 200
    assert resp.json()["deactivated"] is False
    assert room_repo.get(lab.room_id) is None


def test_delete_room_with_sessions_deactivates(client):
    hall = Room(name="Main Hall")
    room_repo.add(hall)
    session = _add_session(hall.room_id, 9)

    resp = client.delete(f"/rooms/{hall.room_id}")
    assert resp.status_code == 200
    assert resp.json()["deactivated"] is True

    stored = room_repo.get(hall.room_id)
    assert stored is not None
    assert stored.is_active is False
    assert session_repo.get(session.session_id) is not None

    # Still reachable by direct lookup
    assert client.get(f"/rooms/{hall.room_id}").status_code == 200


# ---------------------------------------------------------------------------
# Schedule
# ---------------------------------------------------------------------------


def test_room_schedule_range(client):
    hall = Room(name="Main Hall")
    room_repo.add(hall)
    late = _add_session(hall.room_id, 30)
    early = _add_session(hall.room_id, 9)
    _add_session(hall.room_id, 24 * 20)

    resp = client.get(
        f"/rooms/{hall.room_id}/schedule",
        params={"from": "2026-02-14", "to": "2026-02-16"},
    )
    assert resp.status_code == 200
    ids = [s["session_id"] for s in resp.json()["sessions"]]
    assert ids == [early.session_id, late.session_id]


def test_room_schedule_unbounded(client):
    hall = Room(name="Main Hall")
    room_repo.add(hall)
    _add_session(hall.room_id, 9)
    _add_session(hall.room_id, 24 * 20)

    body = client.get(f"/rooms/{hall.room_id}/schedule").json()
    assert body["room"]["name"] == "Main Hall"
    assert len(body["sessions"]) == 2


def test_room_schedule_bad_bound_is_400(client):
    hall = Room(name="Main Hall")
    room_repo.add(hall)
    resp = client.get(f"/rooms/{hall.room_id}/schedule", params={"from": "soon"})
    assert resp.status_code == 400
