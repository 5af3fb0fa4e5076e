"""Typed failures raised by the scheduling services.

The HTTP layer maps each class to a status code; see ``roomsched.main``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from roomsched.domain.models import Session


class SchedulingError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidArgument(SchedulingError):
    """A required value is missing or malformed."""

    status_code = 400


class NotFound(SchedulingError):
    status_code = 404


class AlreadyExists(SchedulingError):
    status_code = 409


class SlotUnavailable(SchedulingError):
    """A booking overlaps sessions already committed for the room."""

    status_code = 409

    def __init__(self, message: str, conflicts: list[Session]) -> None:
        super().__init__(message)
        self.conflicts = conflicts


class InternalError(SchedulingError):
    """Any failure outside the typed errors; clients get a generic message."""

    status_code = 500
