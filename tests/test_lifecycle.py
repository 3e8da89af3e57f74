"""Tests for the event bus and the audit-log handlers."""

from __future__ import annotations

from datetime import date

import pytest

from roombook.domain.bus import EventBus
from roombook.domain.events import (
    BookingCancelled,
    BookingCreated,
    BookingUpdated,
    RepeatBookingsCreated,
)
from roombook.domain.handlers import HandlerRegistry
from roombook.domain.models import AuditAction, Booking, BookingStatus
from roombook.repos.memory import AuditLogRepository, BookingRepository


@pytest.fixture()
def env():
    """Fresh bus + repos + registry for each test."""
    bus = EventBus()
    booking_repo = BookingRepository()
    audit_repo = AuditLogRepository()
    registry = HandlerRegistry(bus=bus, booking_repo=booking_repo, audit_repo=audit_repo)

    class Env:
        pass

    e = Env()
    e.bus = bus
    e.booking_repo = booking_repo
    e.audit_repo = audit_repo
    e.registry = registry
    return e


def _make_booking(**overrides) -> Booking:
    defaults = dict(
        room_id="studio-a",
        date=date(2025, 5, 5),
        booking_from_time="10:00",
        booking_to_time="11:00",
    )
    defaults.update(overrides)
    return Booking(**defaults)


def test_bus_calls_handlers_in_registration_order():
    bus = EventBus()
    calls: list[str] = []
    bus.subscribe(BookingCreated, lambda e: calls.append("first"))
    bus.subscribe(BookingCreated, lambda e: calls.append("second"))
    bus.subscribe(BookingCancelled, lambda e: calls.append("other"))

    bus.publish(BookingCreated(booking_id="x"))

    assert calls == ["first", "second"]


def test_created_event_writes_audit_entry(env):
    booking = _make_booking()
    env.booking_repo.add(booking)

    env.bus.publish(BookingCreated(booking_id=booking.id))

    entries = env.audit_repo.list_for_record(booking.id)
    assert [e.action for e in entries] == [AuditAction.CREATED]
    assert entries[0].table_name == "bookings"
    assert entries[0].new_data["booking_from_time"] == "10:00:00"


def test_created_event_for_unknown_booking_is_ignored(env):
    env.bus.publish(BookingCreated(booking_id="missing"))
    assert env.audit_repo.list_for_record("missing") == []


def test_updated_event_keeps_old_and_new_data(env):
    env.bus.publish(
        BookingUpdated(
            booking_id="b-1",
            old_data={"booking_to_time": "11:00:00"},
            new_data={"booking_to_time": "12:00:00"},
        )
    )

    (entry,) = env.audit_repo.list_for_record("b-1")
    assert entry.action == AuditAction.UPDATED
    assert entry.old_data == {"booking_to_time": "11:00:00"}
    assert entry.new_data == {"booking_to_time": "12:00:00"}


def test_cancelled_event_records_reason(env):
    booking = _make_booking(is_cancelled=True, status=BookingStatus.CANCELLED)
    env.booking_repo.add(booking)

    env.bus.publish(BookingCancelled(booking_id=booking.id, reason="Studio flooded"))

    (entry,) = env.audit_repo.list_for_record(booking.id)
    assert entry.action == AuditAction.CANCELLED
    assert entry.new_data == {"cancel_reason": "Studio flooded", "status": "Cancelled"}


def test_repeat_event_audits_template_and_each_occurrence(env):
    template = _make_booking()
    first = _make_booking(date=date(2025, 5, 6))
    second = _make_booking(date=date(2025, 5, 8))
    for b in (template, first, second):
        env.booking_repo.add(b)

    env.bus.publish(
        RepeatBookingsCreated(
            original_booking_id=template.id,
            repeat_id="r-1",
            created_booking_ids=[first.id, second.id],
            skipped_dates=[date(2025, 5, 7)],
        )
    )

    (summary,) = env.audit_repo.list_for_record(template.id)
    assert summary.action == AuditAction.REPEATED
    assert summary.new_data["skipped_dates"] == ["2025-05-07"]
    assert summary.new_data["created_booking_ids"] == [first.id, second.id]

    for occurrence in (first, second):
        actions = [e.action for e in env.audit_repo.list_for_record(occurrence.id)]
        assert actions == [AuditAction.CREATED]
