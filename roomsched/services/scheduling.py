"""Availability and occupancy queries over a room's sessions.

Everything here is a pure function of its arguments: sessions are supplied by
the caller and never mutated.

The two queries use different boundary rules:

* availability uses the half-open overlap test, so a booking may start at the
  exact instant an existing session ends;
* occupancy uses a closed interval, so a room still counts as occupied at the
  exact instant its session ends.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta, tzinfo

from dateutil.parser import isoparse

from roomsched.domain.errors import InvalidArgument
from roomsched.domain.models import (
    AvailabilityResult,
    OccupancyResult,
    ProposedInterval,
    RequestedInterval,
    Room,
    Session,
)
from roomsched.services.conflicts import (
    DEFAULT_SESSION_DURATION,
    effective_end,
    find_conflicts,
    session_end,
)


def localize(value: datetime, tz: tzinfo) -> datetime:
    """Attach *tz* to a naive datetime; aware datetimes are returned as-is."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value


def parse_instant(raw: str | None, field: str, tz: tzinfo) -> datetime:
    """Parse an ISO 8601 timestamp, reading naive values in *tz*."""
    if raw is None or not raw.strip():
        raise InvalidArgument(f"{field} is required")
    try:
        parsed = isoparse(raw.strip())
    except (ValueError, OverflowError) as exc:
        raise InvalidArgument(f"{field} is not a valid ISO 8601 timestamp: {raw!r}") from exc
    return localize(parsed, tz)


def day_window(instant: datetime, tz: tzinfo) -> tuple[datetime, datetime]:
    """Return the first and last millisecond of *instant*'s calendar day in *tz*."""
    local = localize(instant, tz).astimezone(tz)
    day_start = local.replace(hour=0, minute=0, second=0, microsecond=0)
    day_end = local.replace(hour=23, minute=59, second=59, microsecond=999000)
    return day_start, day_end


def check_availability(
    proposed: ProposedInterval,
    day_sessions: Iterable[Session],
    default_duration: timedelta = DEFAULT_SESSION_DURATION,
    exclude_session_id: str | None = None,
) -> AvailabilityResult:
    """Report every session that overlaps *proposed*.

    All conflicts are collected; callers show the full set.
    """
    proposed_end = effective_end(proposed.start, proposed.end, default_duration)
    conflicts = find_conflicts(
        proposed.start,
        proposed_end,
        day_sessions,
        default_duration=default_duration,
        exclude_session_id=exclude_session_id,
    )
    return AvailabilityResult(
        available=not conflicts,
        conflicts=conflicts,
        requested=RequestedInterval(start=proposed.start, end=proposed_end),
    )


def is_occupied_at(
    session: Session,
    now: datetime,
    default_duration: timedelta = DEFAULT_SESSION_DURATION,
) -> bool:
    return session.start <= now <= session_end(session, default_duration)


def compute_occupancy(
    room: Room,
    day_sessions: Iterable[Session],
    now: datetime,
    default_duration: timedelta = DEFAULT_SESSION_DURATION,
) -> OccupancyResult:
    sessions = list(day_sessions)
    return OccupancyResult(
        room_id=room.room_id,
        is_occupied=any(is_occupied_at(s, now, default_duration) for s in sessions),
        sessions_today=len(sessions),
        sessions=sessions,
    )
