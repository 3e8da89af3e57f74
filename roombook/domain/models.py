"""Domain models for the studio booking system."""

from __future__ import annotations

import datetime as dt
import re
import uuid
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, BeforeValidator, Field, computed_field

try:
    from enum import StrEnum
except ImportError:  # pragma: no cover - fallback for older Python runtimes

    class StrEnum(str, Enum):
        pass


class BookingStatus(StrEnum):
    TENTATIVE = "Tentative"
    CONFIRMED = "Confirmed"
    PLANNING = "Planning"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class RepeatPattern(StrEnum):
    DAILY = "daily"
    WEEKDAYS = "weekdays"
    WEEKLY = "weekly"


class AuditAction(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    CANCELLED = "cancelled"
    REPEATED = "repeated"


_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d(:[0-5]\d)?$")


def normalize_time(value: str) -> str:
    """Pad an ``HH:MM`` time to ``HH:MM:SS``; anything else is returned as is."""
    if len(value) == 5:
        return f"{value}:00"
    return value


def _parse_time_of_day(value: object) -> object:
    if not isinstance(value, str):
        return value
    value = value.strip()
    if not _TIME_RE.match(value):
        raise ValueError(f"invalid time of day {value!r}, expected HH:MM or HH:MM:SS")
    return normalize_time(value)


TimeOfDay = Annotated[str, BeforeValidator(_parse_time_of_day)]


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Master data (read-only to the scheduling core)
# ---------------------------------------------------------------------------


class Room(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    short_name: str | None = None
    type: str = "studio"
    ignore_conflict: bool = False
    active: bool = True
    notes: str | None = None


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------


class BookingFields(BaseModel):
    """Fields a booking carries independently of its date.

    Single bookings and generated occurrences are both built from this
    model, so the two paths always propagate the same set of fields.
    """

    room_id: str
    booking_from_time: TimeOfDay
    booking_to_time: TimeOfDay
    actual_from_time: TimeOfDay | None = None
    actual_to_time: TimeOfDay | None = None
    break_minutes: int = Field(default=0, ge=0)
    customer_id: str | None = None
    project_id: str | None = None
    editor_id: str | None = None
    contact_person: str | None = None
    status: BookingStatus = BookingStatus.TENTATIVE
    remarks: str | None = None


class Booking(BookingFields):
    id: str = Field(default_factory=_new_id)
    date: dt.date
    is_cancelled: bool = False
    cancel_reason: str | None = None
    total_booking_minutes: int | None = None
    total_actual_minutes: int | None = None
    total_hours: str | None = None
    company_id: str | None = None
    created_at: dt.datetime = Field(default_factory=_utcnow)
    updated_at: dt.datetime = Field(default_factory=_utcnow)

    def booking_fields(self) -> BookingFields:
        """Return the date-independent part of this booking."""
        return BookingFields.model_validate(
            self.model_dump(include=set(BookingFields.model_fields))
        )


class BookingRepeat(BaseModel):
    id: str = Field(default_factory=_new_id)
    original_booking_id: str
    from_date: dt.date
    to_date: dt.date
    repeat_pattern: RepeatPattern = RepeatPattern.DAILY
    created_at: dt.datetime = Field(default_factory=_utcnow)


class AuditLogEntry(BaseModel):
    id: str = Field(default_factory=_new_id)
    table_name: str
    record_id: str
    action: AuditAction
    old_data: dict | None = None
    new_data: dict | None = None
    created_at: dt.datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# Recurrence outcome
# ---------------------------------------------------------------------------


class CreatedOccurrence(BaseModel):
    outcome: Literal["created"] = "created"
    date: dt.date
    booking: Booking


class SkippedOccurrence(BaseModel):
    outcome: Literal["skipped"] = "skipped"
    date: dt.date
    reason: Literal["conflict"] = "conflict"


Occurrence = Annotated[
    Union[CreatedOccurrence, SkippedOccurrence], Field(discriminator="outcome")
]


class RecurrenceOutcome(BaseModel):
    items: list[Occurrence] = Field(default_factory=list)
    repeat_id: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def created_count(self) -> int:
        return sum(1 for item in self.items if item.outcome == "created")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def skipped_count(self) -> int:
        return sum(1 for item in self.items if item.outcome == "skipped")

    def created_bookings(self) -> list[Booking]:
        return [item.booking for item in self.items if isinstance(item, CreatedOccurrence)]

    def skipped_dates(self) -> list[dt.date]:
        return [item.date for item in self.items if isinstance(item, SkippedOccurrence)]


# ---------------------------------------------------------------------------
# Request / Response DTOs
# ---------------------------------------------------------------------------


class BookingCreateRequest(BookingFields):
    date: dt.date
    company_id: str | None = None
    ignore_conflict: bool = False


class BookingUpdateRequest(BaseModel):
    """Partial update; only fields that are set are applied."""

    date: dt.date | None = None
    room_id: str | None = None
    booking_from_time: TimeOfDay | None = None
    booking_to_time: TimeOfDay | None = None
    actual_from_time: TimeOfDay | None = None
    actual_to_time: TimeOfDay | None = None
    break_minutes: int | None = Field(default=None, ge=0)
    customer_id: str | None = None
    project_id: str | None = None
    editor_id: str | None = None
    contact_person: str | None = None
    status: BookingStatus | None = None
    remarks: str | None = None
    ignore_conflict: bool = False


class CancelBookingRequest(BaseModel):
    cancel_reason: str = ""


class RepeatBookingRequest(BaseModel):
    from_date: dt.date
    to_date: dt.date
    repeat_pattern: RepeatPattern = RepeatPattern.DAILY


class RepeatBookingResponse(BaseModel):
    message: str
    repeat_id: str | None = None
    created_count: int
    skipped_count: int
    items: list[Occurrence]


class ConflictCheckRequest(BaseModel):
    room_id: str
    date: dt.date
    booking_from_time: TimeOfDay
    booking_to_time: TimeOfDay
    exclude_id: str | None = None


class ConflictCheckResponse(BaseModel):
    has_conflict: bool
