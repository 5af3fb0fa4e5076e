"""Service that answers availability queries and commits bookings."""

from __future__ import annotations

from datetime import datetime

from roomsched.app_logger import get_logger
from roomsched.config import Settings
from roomsched.domain.errors import InvalidArgument, NotFound, SlotUnavailable
from roomsched.domain.models import (
    AvailabilityResponse,
    ProposedInterval,
    RoomOverview,
    ScheduleOverview,
    Session,
    SessionCreate,
    SessionReschedule,
    SessionView,
)
from roomsched.repos.memory import RoomRepository, SessionRepository
from roomsched.services.conflicts import effective_end, find_conflicts
from roomsched.services.rooms import require_room
from roomsched.services.scheduling import (
    check_availability,
    compute_occupancy,
    day_window,
    localize,
    parse_instant,
)

logger = get_logger("booking")


def _validated_interval(
    start: datetime, end: datetime | None, settings: Settings
) -> tuple[datetime, datetime | None]:
    start = localize(start, settings.zone)
    if end is not None:
        end = localize(end, settings.zone)
        if end <= start:
            raise InvalidArgument("end_time must be after the start time")
    return start, end


def availability(
    room_id: str,
    date: str | None,
    end_time: str | None,
    room_repo: RoomRepository,
    session_repo: SessionRepository,
    settings: Settings,
    exclude_session_id: str | None = None,
) -> AvailabilityResponse:
    """Check whether a room is free for ``[date, end_time)``.

    Without *end_time* the default session duration applies. Sessions are
    matched by interval intersection, so one that started the previous
    evening and runs past midnight is still reported.
    """
    tz = settings.zone
    start = parse_instant(date, "date", tz)
    end = parse_instant(end_time, "end_time", tz) if end_time else None
    start, end = _validated_interval(start, end, settings)

    room = require_room(room_id, room_repo)

    duration = settings.default_duration
    proposed = ProposedInterval(room_id=room_id, start=start, end=end)
    day_start, day_end = day_window(start, tz)
    window_end = max(day_end, effective_end(start, end, duration))
    candidates = session_repo.list_intersecting(room_id, day_start, window_end, duration)

    result = check_availability(
        proposed,
        candidates,
        default_duration=duration,
        exclude_session_id=exclude_session_id,
    )
    day_sessions = session_repo.list_for_room(room_id, day_start, day_end)

    return AvailabilityResponse(
        available=result.available,
        room=room,
        requested=result.requested,
        conflicts=[SessionView.from_session(s) for s in result.conflicts],
        all_sessions_today=len(day_sessions),
    )


def schedule_overview(
    date: str | None,
    now: datetime | None,
    room_repo: RoomRepository,
    session_repo: SessionRepository,
    settings: Settings,
) -> ScheduleOverview:
    """Summarize every active room's sessions for one day and who is in use at *now*."""
    tz = settings.zone
    target = parse_instant(date, "date", tz) if date else datetime.now(tz)
    current = localize(now, tz) if now else datetime.now(tz)
    day_start, day_end = day_window(target, tz)

    rooms: list[RoomOverview] = []
    for room in room_repo.list_all(active_only=True):
        day_sessions = session_repo.list_for_room(room.room_id, day_start, day_end)
        occupancy = compute_occupancy(
            room, day_sessions, current, default_duration=settings.default_duration
        )
        rooms.append(
            RoomOverview(
                room_id=room.room_id,
                name=room.name,
                capacity=room.capacity,
                location=room.location,
                sessions_today=occupancy.sessions_today,
                sessions=[SessionView.from_session(s) for s in occupancy.sessions],
                is_occupied=occupancy.is_occupied,
            )
        )

    return ScheduleOverview(
        date=day_start.date().isoformat(),
        total_rooms=len(rooms),
        occupied_now=sum(1 for r in rooms if r.is_occupied),
        rooms=rooms,
    )


def _ensure_free(
    room_id: str,
    start: datetime,
    end: datetime | None,
    session_repo: SessionRepository,
    settings: Settings,
    exclude_session_id: str | None = None,
) -> None:
    duration = settings.default_duration
    new_end = effective_end(start, end, duration)
    candidates = session_repo.list_intersecting(room_id, start, new_end, duration)
    conflicts = find_conflicts(
        start,
        new_end,
        candidates,
        default_duration=duration,
        exclude_session_id=exclude_session_id,
    )
    if conflicts:
        logger.warning(
            "Rejected booking in room %s at %s: overlaps %s",
            room_id,
            start.isoformat(),
            [c.session_id for c in conflicts],
        )
        raise SlotUnavailable("Room is already booked for that time", conflicts)


def book_session(
    room_id: str,
    payload: SessionCreate,
    room_repo: RoomRepository,
    session_repo: SessionRepository,
    settings: Settings,
) -> Session:
    room = require_room(room_id, room_repo)
    if not room.is_active:
        raise InvalidArgument("Room is not active")
    start, end = _validated_interval(payload.start, payload.end, settings)

    with session_repo.transaction():
        _ensure_free(room_id, start, end, session_repo, settings)
        session = Session(
            room_id=room_id,
            start=start,
            end=end,
            topic=payload.topic,
            group_name=payload.group_name,
            course_name=payload.course_name,
            teacher_name=payload.teacher_name,
        )
        session_repo.add(session)

    logger.info("Booked session %s in room %s", session.session_id, room_id)
    return session


def reschedule_session(
    session_id: str,
    payload: SessionReschedule,
    room_repo: RoomRepository,
    session_repo: SessionRepository,
    settings: Settings,
) -> Session:
    """Move a session to a new time, and optionally a new room.

    An omitted ``end`` clears any explicit end time, so the session falls
    back to the default duration.
    """
    start, end = _validated_interval(payload.start, payload.end, settings)

    with session_repo.transaction():
        existing = session_repo.get(session_id)
        if existing is None:
            raise NotFound("Session not found")

        room_id = payload.room_id or existing.room_id
        room = require_room(room_id, room_repo)
        if room_id != existing.room_id and not room.is_active:
            raise InvalidArgument("Room is not active")

        _ensure_free(
            room_id, start, end, session_repo, settings, exclude_session_id=session_id
        )
        moved = existing.model_copy(update={"room_id": room_id, "start": start, "end": end})
        session_repo.replace(moved)

    logger.info("Rescheduled session %s to room %s at %s", session_id, room_id, start.isoformat())
    return moved
