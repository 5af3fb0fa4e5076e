"""In-memory repositories for rooms and sessions."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta, tzinfo

from roomsched.domain.models import Room, Session
from roomsched.services.conflicts import DEFAULT_SESSION_DURATION, overlaps, session_end


class RoomRepository:
    """Dict-backed store for Room instances, keyed by room_id.

    Name checks followed by a write must run inside ``transaction()``.
    """

    def __init__(self) -> None:
        self._store: dict[str, Room] = {}
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator[RoomRepository]:
        with self._lock:
            yield self

    def _snapshot(self) -> list[Room]:
        with self._lock:
            return list(self._store.values())

    def add(self, room: Room) -> None:
        with self._lock:
            self._store[room.room_id] = room

    def get(self, room_id: str) -> Room | None:
        return self._store.get(room_id)

    def get_by_name(self, name: str) -> Room | None:
        for room in self._snapshot():
            if room.name == name:
                return room
        return None

    def list_all(self, active_only: bool = False) -> list[Room]:
        rooms = [r for r in self._snapshot() if r.is_active or not active_only]
        return sorted(rooms, key=lambda r: r.name)

    def update(self, room: Room) -> None:
        with self._lock:
            self._store[room.room_id] = room

    def delete(self, room_id: str) -> None:
        with self._lock:
            self._store.pop(room_id, None)


class SessionRepository:
    """Dict-backed store for Session instances, keyed by session_id.

    Readers filter a snapshot taken under the lock. Writes that depend on a
    prior read (check-then-book) must run inside ``transaction()``.
    """

    def __init__(self) -> None:
        self._store: dict[str, Session] = {}
        self._lock = threading.RLock()

    @contextmanager
    def transaction(self) -> Iterator[SessionRepository]:
        with self._lock:
            yield self

    def _snapshot(self) -> list[Session]:
        with self._lock:
            return list(self._store.values())

    def add(self, session: Session) -> None:
        with self._lock:
            self._store[session.session_id] = session

    def replace(self, session: Session) -> None:
        with self._lock:
            self._store[session.session_id] = session

    def get(self, session_id: str) -> Session | None:
        return self._store.get(session_id)

    def count_for_room(self, room_id: str) -> int:
        return sum(1 for s in self._snapshot() if s.room_id == room_id)

    def list_for_room(
        self,
        room_id: str,
        start_from: datetime | None = None,
        start_to: datetime | None = None,
    ) -> list[Session]:
        """Return the room's sessions with start in ``[start_from, start_to]``, ascending.

        Either bound may be omitted.
        """
        sessions = [
            s
            for s in self._snapshot()
            if s.room_id == room_id
            and (start_from is None or s.start >= start_from)
            and (start_to is None or s.start <= start_to)
        ]
        return sorted(sessions, key=lambda s: s.start)

    def list_recent(self, room_id: str, limit: int) -> list[Session]:
        sessions = [s for s in self._snapshot() if s.room_id == room_id]
        return sorted(sessions, key=lambda s: s.start, reverse=True)[:limit]

    def list_intersecting(
        self,
        room_id: str,
        window_start: datetime,
        window_end: datetime,
        default_duration: timedelta = DEFAULT_SESSION_DURATION,
    ) -> list[Session]:
        """Return the room's sessions whose occupied interval meets the window."""
        sessions = [
            s
            for s in self._snapshot()
            if s.room_id == room_id
            and overlaps(s.start, session_end(s, default_duration), window_start, window_end)
        ]
        return sorted(sessions, key=lambda s: s.start)


# ---------------------------------------------------------------------------
# Seed data – a couple of rooms with sessions today
# ---------------------------------------------------------------------------


def seed_demo_data(
    room_repo: RoomRepository, session_repo: SessionRepository, tz: tzinfo
) -> None:
    today = datetime.now(tz).replace(hour=0, minute=0, second=0, microsecond=0)

    lab = Room(name="Language Lab", capacity=20, location="First floor")
    hall = Room(name="Main Hall", capacity=60, location="Ground floor")
    annex = Room(name="Annex", capacity=12, is_active=False)
    for room in (lab, hall, annex):
        room_repo.add(room)

    session_repo.add(
        Session(
            room_id=lab.room_id,
            start=today + timedelta(hours=9),
            end=today + timedelta(hours=10, minutes=30),
            topic="Present perfect",
            group_name="EN-B1-Morning",
            course_name="English B1",
            teacher_name="Amina Haddad",
        )
    )
    # No explicit end: occupies the default duration.
    session_repo.add(
        Session(
            room_id=lab.room_id,
            start=today + timedelta(hours=14),
            topic="Listening practice",
            group_name="FR-A2-Afternoon",
            course_name="French A2",
        )
    )
    session_repo.add(
        Session(
            room_id=hall.room_id,
            start=today + timedelta(hours=18),
            end=today + timedelta(hours=20),
            topic="Mock exam",
            group_name="DE-B2-Evening",
            course_name="German B2",
            teacher_name="Karim Mansouri",
        )
    )
