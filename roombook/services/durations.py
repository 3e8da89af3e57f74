"""Booked/actual duration totals for a booking."""

from __future__ import annotations

from typing import NamedTuple

from roombook.domain.models import BookingFields

MINUTES_PER_DAY = 24 * 60


class BookingTotals(NamedTuple):
    booking_minutes: int
    actual_minutes: int | None
    total_hours: str


def _minute_of_day(value: str) -> int:
    hours, minutes = value.split(":")[:2]
    return int(hours) * 60 + int(minutes)


def elapsed_minutes(from_time: str, to_time: str, break_minutes: int = 0) -> int:
    """Minutes between two times of day, less the break.

    A negative result means the window runs past midnight, so a day is added.
    """
    total = _minute_of_day(to_time) - _minute_of_day(from_time) - break_minutes
    if total < 0:
        total += MINUTES_PER_DAY
    return total


def format_hours(minutes: int) -> str:
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def booking_totals(fields: BookingFields) -> BookingTotals:
    booked = elapsed_minutes(
        fields.booking_from_time, fields.booking_to_time, fields.break_minutes
    )
    actual = None
    if fields.actual_from_time and fields.actual_to_time:
        actual = elapsed_minutes(
            fields.actual_from_time, fields.actual_to_time, fields.break_minutes
        )
    return BookingTotals(booked, actual, format_hours(booked))
