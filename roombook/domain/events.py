"""Domain events emitted during the booking lifecycle."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field


class BookingCreated(BaseModel):
    """Fired when a single booking is persisted."""

    booking_id: str


class BookingUpdated(BaseModel):
    """Fired after an existing booking has been edited."""

    booking_id: str
    old_data: dict
    new_data: dict


class BookingCancelled(BaseModel):
    """Fired when a booking is soft-deleted."""

    booking_id: str
    reason: str = ""


class RepeatBookingsCreated(BaseModel):
    """Fired once a recurrence expansion has run to completion."""

    original_booking_id: str
    repeat_id: str | None = None
    created_booking_ids: list[str] = Field(default_factory=list)
    skipped_dates: list[dt.date] = Field(default_factory=list)
