"""FastAPI application: entry point for the room scheduling service."""

from __future__ import annotations

from datetime import datetime

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse

from roomsched.app_logger import get_logger, setup_logging
from roomsched.config import get_settings
from roomsched.domain.errors import InternalError, SchedulingError, SlotUnavailable
from roomsched.domain.models import (
    AvailabilityResponse,
    RoomCreate,
    RoomDeletion,
    RoomMutation,
    RoomSchedule,
    RoomSummary,
    RoomUpdate,
    ScheduleOverview,
    SessionCreate,
    SessionReschedule,
    SessionView,
)
from roomsched.repos.memory import RoomRepository, SessionRepository, seed_demo_data
from roomsched.services import booking, rooms
from roomsched.services.scheduling import parse_instant

settings = get_settings()
setup_logging(settings.log_level)
logger = get_logger("api")

app = FastAPI(title="Room Scheduling Service")

# ── Singletons (created at import time for simplicity) ────────────────
room_repo = RoomRepository()
session_repo = SessionRepository()

if settings.seed_demo_data:
    seed_demo_data(room_repo, session_repo, settings.zone)


# ── Error mapping ─────────────────────────────────────────────────────


@app.exception_handler(SchedulingError)
async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    content: dict = {"detail": exc.message}
    if isinstance(exc, SlotUnavailable):
        content["conflicts"] = [
            SessionView.from_session(s).model_dump(mode="json") for s in exc.conflicts
        ]
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return await scheduling_error_handler(request, InternalError("Internal server error"))


# ── Routes ────────────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.post("/rooms", response_model=RoomMutation, status_code=201)
def create_room(payload: RoomCreate) -> RoomMutation:
    room = rooms.create_room(payload, room_repo)
    return RoomMutation(message="Room created", room=room)


@app.get("/rooms", response_model=list[RoomSummary])
def list_rooms(active_only: bool = False, include_sessions: bool = False) -> list[RoomSummary]:
    """Return all rooms ordered by name."""
    return rooms.list_rooms(
        room_repo,
        session_repo,
        active_only=active_only,
        include_sessions=include_sessions,
    )


@app.get("/rooms/schedule/overview", response_model=ScheduleOverview)
def schedule_overview(date: str | None = None, now: datetime | None = None) -> ScheduleOverview:
    """Summarize active rooms for one day.

    Pass *now* to control the clock used for ``is_occupied``; defaults to the
    current time.
    """
    return booking.schedule_overview(date, now, room_repo, session_repo, settings)


@app.get("/rooms/{room_id}", response_model=RoomSummary)
def get_room(room_id: str) -> RoomSummary:
    return rooms.get_room(room_id, room_repo, session_repo)


@app.put("/rooms/{room_id}", response_model=RoomMutation)
def update_room(room_id: str, payload: RoomUpdate) -> RoomMutation:
    room = rooms.update_room(room_id, payload, room_repo)
    return RoomMutation(message="Room updated", room=room)


@app.delete("/rooms/{room_id}", response_model=RoomDeletion)
def delete_room(room_id: str) -> RoomDeletion:
    return rooms.delete_room(room_id, room_repo, session_repo)


@app.get("/rooms/{room_id}/schedule", response_model=RoomSchedule)
def room_schedule(
    room_id: str,
    start_from: str | None = Query(default=None, alias="from"),
    start_to: str | None = Query(default=None, alias="to"),
) -> RoomSchedule:
    """Return a room's sessions, optionally bounded by start date."""
    tz = settings.zone
    lower = parse_instant(start_from, "from", tz) if start_from else None
    upper = parse_instant(start_to, "to", tz) if start_to else None
    return rooms.room_schedule(room_id, room_repo, session_repo, lower, upper)


@app.get("/rooms/{room_id}/availability", response_model=AvailabilityResponse)
def room_availability(
    room_id: str,
    date: str | None = None,
    end_time: str | None = None,
    exclude_session_id: str | None = None,
) -> AvailabilityResponse:
    """Check whether the room is free from *date* until *end_time*."""
    return booking.availability(
        room_id,
        date,
        end_time,
        room_repo,
        session_repo,
        settings,
        exclude_session_id=exclude_session_id,
    )


@app.post("/rooms/{room_id}/sessions", response_model=SessionView, status_code=201)
def book_session(room_id: str, payload: SessionCreate) -> SessionView:
    session = booking.book_session(room_id, payload, room_repo, session_repo, settings)
    return SessionView.from_session(session)


@app.patch("/sessions/{session_id}", response_model=SessionView)
def reschedule_session(session_id: str, payload: SessionReschedule) -> SessionView:
    session = booking.reschedule_session(
        session_id, payload, room_repo, session_repo, settings
    )
    return SessionView.from_session(session)
