"""Domain models for rooms, sessions and scheduling results."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field, model_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Core domain models
# ---------------------------------------------------------------------------


class Room(BaseModel):
    room_id: str = Field(default_factory=_new_id)
    name: str
    capacity: int = Field(default=30, gt=0)
    location: str | None = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=_utcnow)


class Session(BaseModel):
    """A booked session. ``end`` is optional; see ``effective_end``."""

    session_id: str = Field(default_factory=_new_id)
    room_id: str
    start: datetime
    end: datetime | None = None
    topic: str | None = None
    group_name: str | None = None
    course_name: str | None = None
    teacher_name: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)

    @model_validator(mode="after")
    def _end_after_start(self) -> Session:
        if self.end is not None and self.end <= self.start:
            raise ValueError("end must be after start")
        return self


class ProposedInterval(BaseModel):
    """A candidate booking. Never stored."""

    room_id: str
    start: datetime
    end: datetime | None = None

    @model_validator(mode="after")
    def _end_after_start(self) -> ProposedInterval:
        if self.end is not None and self.end <= self.start:
            raise ValueError("end must be after start")
        return self


class RequestedInterval(BaseModel):
    start: datetime
    end: datetime


class AvailabilityResult(BaseModel):
    available: bool
    conflicts: list[Session] = Field(default_factory=list)
    requested: RequestedInterval


class OccupancyResult(BaseModel):
    room_id: str
    is_occupied: bool
    sessions_today: int
    sessions: list[Session] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class SessionView(BaseModel):
    """Client-facing projection of a Session."""

    session_id: str
    session_date: datetime
    end_time: datetime | None = None
    topic: str | None = None
    group_name: str | None = None
    course_name: str | None = None
    teacher_name: str | None = None

    @classmethod
    def from_session(cls, session: Session) -> SessionView:
        return cls(
            session_id=session.session_id,
            session_date=session.start,
            end_time=session.end,
            topic=session.topic,
            group_name=session.group_name,
            course_name=session.course_name,
            teacher_name=session.teacher_name,
        )


class RoomCreate(BaseModel):
    name: str
    capacity: int | None = Field(default=None, gt=0)
    location: str | None = None


class RoomUpdate(BaseModel):
    name: str | None = None
    capacity: int | None = Field(default=None, gt=0)
    location: str | None = None
    is_active: bool | None = None


class RoomSummary(Room):
    session_count: int = 0
    sessions: list[SessionView] | None = None


class RoomMutation(BaseModel):
    message: str
    room: Room


class RoomDeletion(BaseModel):
    message: str
    deactivated: bool = False


class RoomSchedule(BaseModel):
    room: Room
    sessions: list[SessionView] = Field(default_factory=list)


class SessionCreate(BaseModel):
    start: datetime
    end: datetime | None = None
    topic: str | None = None
    group_name: str | None = None
    course_name: str | None = None
    teacher_name: str | None = None


class SessionReschedule(BaseModel):
    start: datetime
    end: datetime | None = None
    room_id: str | None = None


class AvailabilityResponse(BaseModel):
    available: bool
    room: Room
    requested: RequestedInterval
    conflicts: list[SessionView] = Field(default_factory=list)
    all_sessions_today: int


class RoomOverview(BaseModel):
    room_id: str
    name: str
    capacity: int
    location: str | None = None
    sessions_today: int
    sessions: list[SessionView] = Field(default_factory=list)
    is_occupied: bool


class ScheduleOverview(BaseModel):
    date: str
    total_rooms: int
    occupied_now: int
    rooms: list[RoomOverview] = Field(default_factory=list)
