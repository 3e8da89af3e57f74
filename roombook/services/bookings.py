"""Service for creating, editing and cancelling single bookings."""

from __future__ import annotations

import datetime as dt
import logging

from roombook.domain.errors import (
    BookingAlreadyCancelled,
    BookingConflict,
    BookingNotFound,
    RoomNotFound,
)
from roombook.domain.models import (
    Booking,
    BookingFields,
    BookingStatus,
    BookingUpdateRequest,
)
from roombook.repos.memory import BookingRepository, RoomRepository
from roombook.services.conflicts import has_conflict
from roombook.services.durations import booking_totals

logger = logging.getLogger(__name__)


def build_booking(fields: BookingFields, date: dt.date, **extra) -> Booking:
    """Create a Booking for *date* from *fields*, with derived totals filled in."""
    totals = booking_totals(fields)
    return Booking(
        **fields.model_dump(),
        date=date,
        total_booking_minutes=totals.booking_minutes,
        total_actual_minutes=totals.actual_minutes,
        total_hours=totals.total_hours,
        **extra,
    )


def create_booking(
    fields: BookingFields,
    date: dt.date,
    *,
    rooms: RoomRepository,
    bookings: BookingRepository,
    ignore_conflict: bool = False,
    require_known_room: bool = False,
    company_id: str | None = None,
) -> Booking:
    """Persist a new booking unless it collides with an existing one.

    ``ignore_conflict`` is the caller's explicit override and skips the check.
    Raises ``BookingConflict`` or, with ``require_known_room``, ``RoomNotFound``.
    """
    if require_known_room and rooms.get(fields.room_id) is None:
        raise RoomNotFound(fields.room_id)

    with bookings.room_date_lock(fields.room_id, date):
        if not ignore_conflict and has_conflict(
            fields.room_id,
            date,
            fields.booking_from_time,
            fields.booking_to_time,
            rooms=rooms,
            bookings=bookings,
        ):
            raise BookingConflict(
                fields.room_id, date, fields.booking_from_time, fields.booking_to_time
            )
        booking = bookings.add(build_booking(fields, date, company_id=company_id))

    logger.info(
        "created booking %s in room %s on %s", booking.id, booking.room_id, booking.date
    )
    return booking


def update_booking(
    booking_id: str,
    changes: BookingUpdateRequest,
    *,
    rooms: RoomRepository,
    bookings: BookingRepository,
    require_known_room: bool = False,
) -> tuple[Booking, Booking]:
    """Apply *changes* to a stored booking and return ``(before, after)``.

    The booking's own stored window never counts as a conflict. Cancelled
    bookings are read-only and raise ``BookingAlreadyCancelled``.
    """
    stored = bookings.get(booking_id)
    if stored is None:
        raise BookingNotFound(booking_id)
    if stored.is_cancelled:
        raise BookingAlreadyCancelled(booking_id)

    updates = changes.model_dump(exclude_unset=True, exclude={"ignore_conflict"})
    merged = stored.model_dump(include=set(BookingFields.model_fields))
    merged.update({k: v for k, v in updates.items() if k in BookingFields.model_fields})
    fields = BookingFields.model_validate(merged)
    date = updates.get("date") or stored.date

    if require_known_room and rooms.get(fields.room_id) is None:
        raise RoomNotFound(fields.room_id)

    with bookings.room_date_lock(fields.room_id, date):
        if not changes.ignore_conflict and has_conflict(
            fields.room_id,
            date,
            fields.booking_from_time,
            fields.booking_to_time,
            exclude_id=booking_id,
            rooms=rooms,
            bookings=bookings,
        ):
            raise BookingConflict(
                fields.room_id, date, fields.booking_from_time, fields.booking_to_time
            )
        updated = build_booking(
            fields,
            date,
            id=stored.id,
            company_id=stored.company_id,
            created_at=stored.created_at,
            updated_at=dt.datetime.now(dt.timezone.utc),
        )
        bookings.replace(updated)

    logger.info("updated booking %s", booking_id)
    return stored, updated


def cancel_booking(
    booking_id: str, reason: str, *, bookings: BookingRepository
) -> Booking:
    """Soft-delete a booking: it stays stored but no longer blocks its slot."""
    stored = bookings.get(booking_id)
    if stored is None:
        raise BookingNotFound(booking_id)

    cancelled = stored.model_copy(
        update={
            "is_cancelled": True,
            "cancel_reason": reason,
            "status": BookingStatus.CANCELLED,
            "updated_at": dt.datetime.now(dt.timezone.utc),
        }
    )
    bookings.replace(cancelled)
    logger.info("cancelled booking %s", booking_id)
    return cancelled
