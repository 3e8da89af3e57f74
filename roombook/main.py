"""FastAPI application entry point for the studio booking service."""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from roombook.config import settings
from roombook.domain.bus import EventBus
from roombook.domain.errors import (
    BookingAlreadyCancelled,
    BookingConflict,
    BookingNotFound,
    InvalidRange,
    OriginalNotFound,
    RoomNotFound,
    StorageUnavailable,
)
from roombook.domain.events import (
    BookingCancelled,
    BookingCreated,
    BookingUpdated,
    RepeatBookingsCreated,
)
from roombook.domain.handlers import HandlerRegistry
from roombook.domain.models import (
    AuditLogEntry,
    Booking,
    BookingCreateRequest,
    BookingFields,
    BookingUpdateRequest,
    CancelBookingRequest,
    ConflictCheckRequest,
    ConflictCheckResponse,
    RecurrenceOutcome,
    RepeatBookingRequest,
    RepeatBookingResponse,
    Room,
)
from roombook.repos.memory import (
    AuditLogRepository,
    BookingRepeatRepository,
    BookingRepository,
    create_room_repository,
)
from roombook.services.bookings import cancel_booking, create_booking, update_booking
from roombook.services.conflicts import has_conflict
from roombook.services.recurrence import expand_repeat_bookings

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("roombook")

app = FastAPI(title=settings.app_title)

# ── Singletons (created at import time for simplicity) ────────────────
event_bus = EventBus()
room_repo = create_room_repository(seed=settings.seed_demo_data)
booking_repo = BookingRepository()
repeat_repo = BookingRepeatRepository()
audit_repo = AuditLogRepository()

handler_registry = HandlerRegistry(
    bus=event_bus,
    booking_repo=booking_repo,
    audit_repo=audit_repo,
)


@app.exception_handler(StorageUnavailable)
def _storage_unavailable(request: Request, exc: StorageUnavailable) -> JSONResponse:
    logger.error(
        "storage unavailable during %s %s: %s", request.method, request.url.path, exc
    )
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})


# ── Rooms (read only) ─────────────────────────────────────────────────


@app.get("/rooms", response_model=list[Room])
def list_rooms() -> list[Room]:
    """Return all rooms known to the booking service."""
    return room_repo.list_all()


@app.get("/rooms/{room_id}", response_model=Room)
def get_room(room_id: str) -> Room:
    """Return a single room by id."""
    room = room_repo.get(room_id)
    if room is None:
        raise HTTPException(status_code=404, detail="Room not found")
    return room


# ── Bookings ──────────────────────────────────────────────────────────


@app.get("/bookings", response_model=list[Booking])
def list_bookings() -> list[Booking]:
    """Return all stored bookings, cancelled ones included."""
    return booking_repo.list_all()


@app.post("/bookings/check-conflict", response_model=ConflictCheckResponse)
def check_conflict(payload: ConflictCheckRequest) -> ConflictCheckResponse:
    """Report whether a window would collide, without writing anything."""
    return ConflictCheckResponse(
        has_conflict=has_conflict(
            payload.room_id,
            payload.date,
            payload.booking_from_time,
            payload.booking_to_time,
            payload.exclude_id,
            rooms=room_repo,
            bookings=booking_repo,
        )
    )


@app.get("/bookings/{booking_id}", response_model=Booking)
def get_booking(booking_id: str) -> Booking:
    """Return a single booking by id."""
    booking = booking_repo.get(booking_id)
    if booking is None:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


@app.post("/bookings", response_model=Booking, status_code=201)
def create_single_booking(payload: BookingCreateRequest) -> Booking:
    """Create a booking; 409 if it collides and ``ignore_conflict`` is not set."""
    fields = BookingFields.model_validate(
        payload.model_dump(include=set(BookingFields.model_fields))
    )
    try:
        booking = create_booking(
            fields,
            payload.date,
            rooms=room_repo,
            bookings=booking_repo,
            ignore_conflict=payload.ignore_conflict,
            require_known_room=settings.require_known_room,
            company_id=payload.company_id,
        )
    except BookingConflict as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except RoomNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))

    event_bus.publish(BookingCreated(booking_id=booking.id))
    return booking


@app.put("/bookings/{booking_id}", response_model=Booking)
def edit_booking(booking_id: str, payload: BookingUpdateRequest) -> Booking:
    """Edit a booking; its own previous window never counts as a conflict."""
    try:
        before, after = update_booking(
            booking_id,
            payload,
            rooms=room_repo,
            bookings=booking_repo,
            require_known_room=settings.require_known_room,
        )
    except (BookingNotFound, RoomNotFound) as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except (BookingConflict, BookingAlreadyCancelled) as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    except ValidationError as exc:
        raise HTTPException(
            status_code=422,
            detail=exc.errors(include_url=False, include_context=False),
        )

    event_bus.publish(
        BookingUpdated(
            booking_id=booking_id,
            old_data=before.model_dump(mode="json"),
            new_data=after.model_dump(mode="json"),
        )
    )
    return after


@app.put("/bookings/{booking_id}/cancel", response_model=Booking)
def cancel_single_booking(booking_id: str, body: CancelBookingRequest) -> Booking:
    """Cancel a booking; it stays stored but no longer blocks its slot."""
    try:
        booking = cancel_booking(booking_id, body.cancel_reason, bookings=booking_repo)
    except BookingNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))

    event_bus.publish(BookingCancelled(booking_id=booking_id, reason=body.cancel_reason))
    return booking


def _publish_repeat(booking_id: str, outcome: RecurrenceOutcome) -> None:
    event_bus.publish(
        RepeatBookingsCreated(
            original_booking_id=booking_id,
            repeat_id=outcome.repeat_id,
            created_booking_ids=[b.id for b in outcome.created_bookings()],
            skipped_dates=outcome.skipped_dates(),
        )
    )


@app.post(
    "/bookings/{booking_id}/repeat",
    response_model=RepeatBookingResponse,
    status_code=201,
)
def repeat_booking(booking_id: str, body: RepeatBookingRequest) -> RepeatBookingResponse:
    """Copy a booking onto every date the pattern selects, skipping conflicts."""
    try:
        outcome = expand_repeat_bookings(
            booking_id,
            body.from_date,
            body.to_date,
            body.repeat_pattern,
            rooms=room_repo,
            bookings=booking_repo,
            repeats=repeat_repo,
        )
    except InvalidRange as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except OriginalNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except StorageUnavailable as exc:
        # Occurrences stored before the failure still get audited
        if exc.partial_outcome is not None:
            _publish_repeat(booking_id, exc.partial_outcome)
        raise

    _publish_repeat(booking_id, outcome)
    return RepeatBookingResponse(
        message=f"Created {outcome.created_count} repeat bookings",
        repeat_id=outcome.repeat_id,
        created_count=outcome.created_count,
        skipped_count=outcome.skipped_count,
        items=outcome.items,
    )


@app.get("/bookings/{booking_id}/audit", response_model=list[AuditLogEntry])
def get_booking_audit(booking_id: str) -> list[AuditLogEntry]:
    """Return the audit trail for a booking, oldest first."""
    if booking_repo.get(booking_id) is None:
        raise HTTPException(status_code=404, detail="Booking not found")
    return audit_repo.list_for_record(booking_id)
