"""Service for detecting scheduling conflicts between sessions."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta

from roomsched.domain.models import Session

DEFAULT_SESSION_MINUTES = 90
DEFAULT_SESSION_DURATION = timedelta(minutes=DEFAULT_SESSION_MINUTES)


def effective_end(
    start: datetime,
    end: datetime | None,
    default_duration: timedelta = DEFAULT_SESSION_DURATION,
) -> datetime:
    """Return *end*, or ``start + default_duration`` when no end was given."""
    return end if end is not None else start + default_duration


def session_end(
    session: Session, default_duration: timedelta = DEFAULT_SESSION_DURATION
) -> datetime:
    return effective_end(session.start, session.end, default_duration)


def overlaps(
    a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime
) -> bool:
    """Half-open overlap test on ``[a_start, a_end)`` and ``[b_start, b_end)``."""
    return a_start < b_end and b_start < a_end


def find_conflicts(
    new_start: datetime,
    new_end: datetime,
    existing_sessions: Iterable[Session],
    default_duration: timedelta = DEFAULT_SESSION_DURATION,
    exclude_session_id: str | None = None,
) -> list[Session]:
    """Return existing sessions that overlap with the given time range.

    Overlap rule: conflict if existing.start < new_end AND existing_end > new_start.
    Exact boundary touches (end == start) are NOT considered conflicts.
    A session whose id equals *exclude_session_id* is never reported, so a
    session being moved does not conflict with its own old slot.
    """
    return [
        session
        for session in existing_sessions
        if session.session_id != exclude_session_id
        and overlaps(
            session.start,
            session_end(session, default_duration),
            new_start,
            new_end,
        )
    ]
