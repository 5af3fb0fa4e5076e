"""Service for creating, updating and retiring rooms."""

from __future__ import annotations

from datetime import datetime

from roomsched.app_logger import get_logger
from roomsched.domain.errors import AlreadyExists, InvalidArgument, NotFound
from roomsched.domain.models import (
    Room,
    RoomCreate,
    RoomDeletion,
    RoomSchedule,
    RoomSummary,
    RoomUpdate,
    SessionView,
)
from roomsched.repos.memory import RoomRepository, SessionRepository

logger = get_logger("rooms")

DEFAULT_CAPACITY = 30
LIST_SESSIONS_LIMIT = 10
DETAIL_SESSIONS_LIMIT = 20


def _clean_location(location: str | None) -> str | None:
    if location is None:
        return None
    return location.strip() or None


def require_room(room_id: str, room_repo: RoomRepository) -> Room:
    room = room_repo.get(room_id)
    if room is None:
        raise NotFound("Room not found")
    return room


def create_room(payload: RoomCreate, room_repo: RoomRepository) -> Room:
    name = payload.name.strip()
    if not name:
        raise InvalidArgument("Room name is required")
    room = Room(
        name=name,
        capacity=payload.capacity or DEFAULT_CAPACITY,
        location=_clean_location(payload.location),
    )

    with room_repo.transaction():
        if room_repo.get_by_name(name) is not None:
            raise AlreadyExists(f"A room named {name!r} already exists")
        room_repo.add(room)
    logger.info("Created room %s (%s)", room.name, room.room_id)
    return room


def _summarize(
    room: Room, session_repo: SessionRepository, sessions_limit: int | None
) -> RoomSummary:
    sessions = None
    if sessions_limit is not None:
        sessions = [
            SessionView.from_session(s)
            for s in session_repo.list_recent(room.room_id, sessions_limit)
        ]
    return RoomSummary(
        **room.model_dump(),
        session_count=session_repo.count_for_room(room.room_id),
        sessions=sessions,
    )


def list_rooms(
    room_repo: RoomRepository,
    session_repo: SessionRepository,
    active_only: bool = False,
    include_sessions: bool = False,
) -> list[RoomSummary]:
    limit = LIST_SESSIONS_LIMIT if include_sessions else None
    return [
        _summarize(room, session_repo, limit)
        for room in room_repo.list_all(active_only=active_only)
    ]


def get_room(
    room_id: str, room_repo: RoomRepository, session_repo: SessionRepository
) -> RoomSummary:
    room = require_room(room_id, room_repo)
    return _summarize(room, session_repo, DETAIL_SESSIONS_LIMIT)


def update_room(
    room_id: str, payload: RoomUpdate, room_repo: RoomRepository
) -> Room:
    changes: dict = {}
    name = None
    if payload.name is not None:
        name = payload.name.strip()
        if not name:
            raise InvalidArgument("Room name cannot be blank")
    if payload.capacity is not None:
        changes["capacity"] = payload.capacity
    if "location" in payload.model_fields_set:
        changes["location"] = _clean_location(payload.location)
    if payload.is_active is not None:
        changes["is_active"] = payload.is_active

    with room_repo.transaction():
        existing = require_room(room_id, room_repo)
        if name is not None:
            if name != existing.name and room_repo.get_by_name(name) is not None:
                raise AlreadyExists(f"Another room is already named {name!r}")
            changes["name"] = name
        room = existing.model_copy(update=changes)
        room_repo.update(room)
    logger.info("Updated room %s: %s", room_id, sorted(changes))
    return room


def delete_room(
    room_id: str, room_repo: RoomRepository, session_repo: SessionRepository
) -> RoomDeletion:
    """Delete a room, or deactivate it when sessions still reference it."""
    room = require_room(room_id, room_repo)

    if session_repo.count_for_room(room_id) > 0:
        room_repo.update(room.model_copy(update={"is_active": False}))
        logger.info("Room %s has sessions; deactivated instead of deleted", room_id)
        return RoomDeletion(
            message="Room has sessions; it was deactivated instead of deleted",
            deactivated=True,
        )

    room_repo.delete(room_id)
    logger.info("Deleted room %s", room_id)
    return RoomDeletion(message="Room deleted")


def room_schedule(
    room_id: str,
    room_repo: RoomRepository,
    session_repo: SessionRepository,
    start_from: datetime | None = None,
    start_to: datetime | None = None,
) -> RoomSchedule:
    room = require_room(room_id, room_repo)
    sessions = session_repo.list_for_room(room_id, start_from, start_to)
    return RoomSchedule(
        room=room, sessions=[SessionView.from_session(s) for s in sessions]
    )
