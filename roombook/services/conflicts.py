"""Service for detecting booking conflicts within a room."""

from __future__ import annotations

import datetime as dt
import logging

from roombook.domain.models import Booking, normalize_time
from roombook.repos.memory import BookingRepository, RoomRepository

logger = logging.getLogger(__name__)


def overlaps(from_time: str, to_time: str, existing: Booking) -> bool:
    """Return True if ``[from_time, to_time]`` overlaps the existing booking.

    Both windows are closed intervals, so a booking ending at 10:00 and one
    starting at 10:00 overlap. Times are compared as zero-padded strings.
    """
    existing_from = existing.booking_from_time
    existing_to = existing.booking_to_time
    return (
        # new booking starts during the existing one
        (existing_from <= from_time and existing_to >= from_time)
        # new booking ends during the existing one
        or (existing_from <= to_time and existing_to >= to_time)
        # new booking encloses the existing one
        or (existing_from >= from_time and existing_to <= to_time)
    )


def find_conflicts(
    room_id: str,
    date: dt.date,
    from_time: str,
    to_time: str,
    exclude_id: str | None = None,
    *,
    rooms: RoomRepository,
    bookings: BookingRepository,
) -> list[Booking]:
    """Return the non-cancelled bookings that collide with the candidate window.

    A room flagged ``ignore_conflict`` never reports conflicts. A room that
    cannot be found gets no override: conflicts are enforced for it.
    """
    room = rooms.get(room_id)
    if room is None:
        logger.warning("room %s not found, enforcing conflicts", room_id)
    elif room.ignore_conflict:
        logger.debug("room %s ignores conflicts", room_id)
        return []

    from_time = normalize_time(from_time)
    to_time = normalize_time(to_time)
    if to_time < from_time:
        logger.warning(
            "window %s-%s on %s wraps past midnight; compared as stored",
            from_time,
            to_time,
            date,
        )

    candidates = [
        b
        for b in bookings.find_for_room_date(room_id, date, is_cancelled=False)
        if overlaps(from_time, to_time, b)
    ]
    if exclude_id is not None:
        candidates = [b for b in candidates if b.id != exclude_id]
    return candidates


def has_conflict(
    room_id: str,
    date: dt.date,
    from_time: str,
    to_time: str,
    exclude_id: str | None = None,
    *,
    rooms: RoomRepository,
    bookings: BookingRepository,
) -> bool:
    """Return True if the candidate window collides with an existing booking."""
    conflicts = find_conflicts(
        room_id, date, from_time, to_time, exclude_id, rooms=rooms, bookings=bookings
    )
    if conflicts:
        logger.info(
            "conflict in room %s on %s %s-%s with %s",
            room_id,
            date,
            from_time,
            to_time,
            [b.id for b in conflicts],
        )
    return bool(conflicts)
