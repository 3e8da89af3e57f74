"""Domain event handlers that keep the booking audit log."""

from __future__ import annotations

from roombook.domain.bus import EventBus
from roombook.domain.events import (
    BookingCancelled,
    BookingCreated,
    BookingUpdated,
    RepeatBookingsCreated,
)
from roombook.domain.models import AuditAction, AuditLogEntry
from roombook.repos.memory import AuditLogRepository, BookingRepository

BOOKINGS_TABLE = "bookings"


class HandlerRegistry:
    """Wires domain-event handlers to the bus; each handler writes the audit log."""

    def __init__(
        self,
        bus: EventBus,
        booking_repo: BookingRepository,
        audit_repo: AuditLogRepository,
    ) -> None:
        self.bus = bus
        self.booking_repo = booking_repo
        self.audit_repo = audit_repo
        self._register()

    def _register(self) -> None:
        self.bus.subscribe(BookingCreated, self.on_booking_created)
        self.bus.subscribe(BookingUpdated, self.on_booking_updated)
        self.bus.subscribe(BookingCancelled, self.on_booking_cancelled)
        self.bus.subscribe(RepeatBookingsCreated, self.on_repeat_bookings_created)

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def on_booking_created(self, event: BookingCreated) -> None:
        stored = self.booking_repo.get(event.booking_id)
        if stored is None:
            return

        self.audit_repo.add(
            AuditLogEntry(
                table_name=BOOKINGS_TABLE,
                record_id=stored.id,
                action=AuditAction.CREATED,
                new_data=stored.model_dump(mode="json"),
            )
        )

    def on_booking_updated(self, event: BookingUpdated) -> None:
        self.audit_repo.add(
            AuditLogEntry(
                table_name=BOOKINGS_TABLE,
                record_id=event.booking_id,
                action=AuditAction.UPDATED,
                old_data=event.old_data,
                new_data=event.new_data,
            )
        )

    def on_booking_cancelled(self, event: BookingCancelled) -> None:
        stored = self.booking_repo.get(event.booking_id)
        if stored is None:
            return

        self.audit_repo.add(
            AuditLogEntry(
                table_name=BOOKINGS_TABLE,
                record_id=stored.id,
                action=AuditAction.CANCELLED,
                new_data={
                    "cancel_reason": event.reason,
                    "status": stored.status.value,
                },
            )
        )

    def on_repeat_bookings_created(self, event: RepeatBookingsCreated) -> None:
        # 1. One entry on the template describing the whole series
        self.audit_repo.add(
            AuditLogEntry(
                table_name=BOOKINGS_TABLE,
                record_id=event.original_booking_id,
                action=AuditAction.REPEATED,
                new_data={
                    "repeat_id": event.repeat_id,
                    "created_booking_ids": event.created_booking_ids,
                    "skipped_dates": [d.isoformat() for d in event.skipped_dates],
                },
            )
        )

        # 2. A created entry for every generated occurrence
        for booking_id in event.created_booking_ids:
            self.on_booking_created(BookingCreated(booking_id=booking_id))
