"""Exceptions raised by the booking core.

A detected conflict is not an error for the detector or the recurrence
expander; it is only raised as ``BookingConflict`` when a single booking
is rejected because of it.
"""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from roombook.domain.models import RecurrenceOutcome


class BookingError(Exception):
    """Base class for all booking-domain failures."""


class BookingConflict(BookingError):
    """A single booking collides with an existing one in the same room."""

    def __init__(self, room_id: str, date: dt.date, from_time: str, to_time: str) -> None:
        self.room_id = room_id
        self.date = date
        self.from_time = from_time
        self.to_time = to_time
        super().__init__("Booking conflict detected for this room and time")


class InvalidRange(BookingError):
    """``to_date`` lies before ``from_date``."""

    def __init__(self, from_date: dt.date, to_date: dt.date) -> None:
        self.from_date = from_date
        self.to_date = to_date
        super().__init__("End date must be after start date")


class NotFound(BookingError):
    message = "Not found"

    def __init__(self, entity_id: str) -> None:
        self.entity_id = entity_id
        super().__init__(self.message)


class BookingNotFound(NotFound):
    message = "Booking not found"


class OriginalNotFound(NotFound):
    message = "Original booking not found"


class RoomNotFound(NotFound):
    message = "Room not found"


class StorageUnavailable(BookingError):
    """The persistence collaborator failed; the current operation is aborted.

    When a repeat series is aborted, ``partial_outcome`` holds the occurrences
    that were stored before the failure.
    """

    def __init__(self, message: str = "Storage unavailable") -> None:
        self.partial_outcome: RecurrenceOutcome | None = None
        super().__init__(message)


class BookingAlreadyCancelled(BookingError):
    """A cancelled booking can no longer be edited."""

    def __init__(self, booking_id: str) -> None:
        self.booking_id = booking_id
        super().__init__("Cancelled bookings cannot be edited")
