"""Tests for single-booking create/update/cancel and duration totals."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from roombook.domain.errors import (
    BookingAlreadyCancelled,
    BookingConflict,
    BookingNotFound,
    RoomNotFound,
)
from roombook.domain.models import (
    BookingFields,
    BookingStatus,
    BookingUpdateRequest,
    Room,
)
from roombook.repos.memory import BookingRepository, RoomRepository
from roombook.services.bookings import cancel_booking, create_booking, update_booking
from roombook.services.durations import booking_totals, elapsed_minutes, format_hours

DAY = date(2025, 3, 10)


@pytest.fixture()
def rooms() -> RoomRepository:
    repo = RoomRepository()
    repo.add(Room(id="studio-a", name="Studio A"))
    return repo


@pytest.fixture()
def bookings() -> BookingRepository:
    return BookingRepository()


def _fields(**overrides) -> BookingFields:
    defaults = dict(
        room_id="studio-a",
        booking_from_time="10:00",
        booking_to_time="12:00",
    )
    defaults.update(overrides)
    return BookingFields(**defaults)


# ---------------------------------------------------------------------------
# Durations
# ---------------------------------------------------------------------------


def test_elapsed_minutes_subtracts_break():
    assert elapsed_minutes("10:00:00", "12:30:00", 30) == 120


def test_elapsed_minutes_wraps_past_midnight():
    assert elapsed_minutes("22:00", "02:00") == 240


def test_format_hours_zero_pads():
    assert format_hours(125) == "02:05"
    assert format_hours(0) == "00:00"


def test_booking_totals_without_actual_times():
    totals = booking_totals(_fields(break_minutes=15))
    assert totals.booking_minutes == 105
    assert totals.actual_minutes is None
    assert totals.total_hours == "01:45"


# ---------------------------------------------------------------------------
# Field validation
# ---------------------------------------------------------------------------


def test_times_are_normalised_to_seconds():
    fields = _fields(booking_from_time="09:05")
    assert fields.booking_from_time == "09:05:00"
    assert fields.booking_to_time == "12:00:00"


@pytest.mark.parametrize("bad", ["9:00", "24:00", "10:60", "", "noon"])
def test_malformed_times_are_rejected(bad):
    with pytest.raises(ValidationError):
        _fields(booking_from_time=bad)


# ---------------------------------------------------------------------------
# create_booking
# ---------------------------------------------------------------------------


def test_create_booking_persists_with_totals(rooms, bookings):
    booking = create_booking(_fields(), DAY, rooms=rooms, bookings=bookings)

    assert bookings.get(booking.id) == booking
    assert booking.status == BookingStatus.TENTATIVE
    assert booking.total_booking_minutes == 120
    assert booking.total_hours == "02:00"


def test_create_booking_rejects_overlap(rooms, bookings):
    create_booking(_fields(), DAY, rooms=rooms, bookings=bookings)

    with pytest.raises(BookingConflict):
        create_booking(
            _fields(booking_from_time="12:00", booking_to_time="13:00"),
            DAY,
            rooms=rooms,
            bookings=bookings,
        )
    assert len(bookings.list_all()) == 1


def test_create_booking_with_explicit_override(rooms, bookings):
    create_booking(_fields(), DAY, rooms=rooms, bookings=bookings)
    create_booking(_fields(), DAY, rooms=rooms, bookings=bookings, ignore_conflict=True)
    assert len(bookings.list_all()) == 2


def test_create_booking_unknown_room_allowed_by_default(rooms, bookings):
    booking = create_booking(_fields(room_id="ghost"), DAY, rooms=rooms, bookings=bookings)
    assert booking.room_id == "ghost"


def test_create_booking_unknown_room_rejected_when_required(rooms, bookings):
    with pytest.raises(RoomNotFound):
        create_booking(
            _fields(room_id="ghost"),
            DAY,
            rooms=rooms,
            bookings=bookings,
            require_known_room=True,
        )


# ---------------------------------------------------------------------------
# update_booking
# ---------------------------------------------------------------------------


def test_update_own_window_is_not_a_conflict(rooms, bookings):
    booking = create_booking(_fields(), DAY, rooms=rooms, bookings=bookings)

    before, after = update_booking(
        booking.id,
        BookingUpdateRequest(booking_from_time="11:00", booking_to_time="13:00"),
        rooms=rooms,
        bookings=bookings,
    )

    assert before.booking_from_time == "10:00:00"
    assert after.id == booking.id
    assert after.created_at == booking.created_at
    assert after.booking_from_time == "11:00:00"
    assert bookings.get(booking.id) == after


def test_update_into_other_booking_conflicts(rooms, bookings):
    booking = create_booking(_fields(), DAY, rooms=rooms, bookings=bookings)
    create_booking(
        _fields(booking_from_time="14:00", booking_to_time="15:00"),
        DAY,
        rooms=rooms,
        bookings=bookings,
    )

    with pytest.raises(BookingConflict):
        update_booking(
            booking.id,
            BookingUpdateRequest(booking_to_time="14:00"),
            rooms=rooms,
            bookings=bookings,
        )
    assert bookings.get(booking.id).booking_to_time == "12:00:00"


def test_update_recomputes_totals_and_keeps_other_fields(rooms, bookings):
    booking = create_booking(
        _fields(remarks="keep me"), DAY, rooms=rooms, bookings=bookings
    )

    _, after = update_booking(
        booking.id,
        BookingUpdateRequest(break_minutes=60, status=BookingStatus.CONFIRMED),
        rooms=rooms,
        bookings=bookings,
    )

    assert after.total_booking_minutes == 60
    assert after.total_hours == "01:00"
    assert after.status == BookingStatus.CONFIRMED
    assert after.remarks == "keep me"


def test_update_can_move_to_another_date(rooms, bookings):
    booking = create_booking(_fields(), DAY, rooms=rooms, bookings=bookings)

    _, after = update_booking(
        booking.id,
        BookingUpdateRequest(date=date(2025, 3, 11)),
        rooms=rooms,
        bookings=bookings,
    )
    assert after.date == date(2025, 3, 11)


def test_update_missing_booking_raises(rooms, bookings):
    with pytest.raises(BookingNotFound):
        update_booking("nope", BookingUpdateRequest(), rooms=rooms, bookings=bookings)


def test_update_cancelled_booking_is_rejected(rooms, bookings):
    booking = create_booking(_fields(), DAY, rooms=rooms, bookings=bookings)
    cancelled = cancel_booking(booking.id, "Client postponed", bookings=bookings)

    with pytest.raises(BookingAlreadyCancelled):
        update_booking(
            booking.id,
            BookingUpdateRequest(status=BookingStatus.CONFIRMED),
            rooms=rooms,
            bookings=bookings,
        )

    stored = bookings.get(booking.id)
    assert stored == cancelled
    assert stored.is_cancelled is True
    assert stored.status == BookingStatus.CANCELLED


# ---------------------------------------------------------------------------
# cancel_booking
# ---------------------------------------------------------------------------


def test_cancel_is_a_soft_delete_that_frees_the_slot(rooms, bookings):
    booking = create_booking(_fields(), DAY, rooms=rooms, bookings=bookings)

    cancelled = cancel_booking(booking.id, "Client postponed", bookings=bookings)

    assert cancelled.id == booking.id
    assert cancelled.is_cancelled is True
    assert cancelled.status == BookingStatus.CANCELLED
    assert cancelled.cancel_reason == "Client postponed"
    assert bookings.get(booking.id) == cancelled

    # The same window can now be booked again
    create_booking(_fields(), DAY, rooms=rooms, bookings=bookings)


def test_cancel_missing_booking_raises(bookings):
    with pytest.raises(BookingNotFound):
        cancel_booking("nope", "", bookings=bookings)
