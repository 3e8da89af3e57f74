"""In-memory repositories for rooms, bookings, repeat requests and the audit log."""

from __future__ import annotations

import datetime as dt
import threading
from contextlib import contextmanager
from typing import Iterator

from roombook.domain.models import AuditLogEntry, Booking, BookingRepeat, Room


class RoomRepository:
    """Dict-backed store for Room instances, keyed by id."""

    def __init__(self) -> None:
        self._store: dict[str, Room] = {}

    def add(self, room: Room) -> None:
        self._store[room.id] = room

    def get(self, room_id: str) -> Room | None:
        return self._store.get(room_id)

    def list_all(self) -> list[Room]:
        return list(self._store.values())


class BookingRepository:
    """Dict-backed store for Booking instances, keyed by id.

    Reads take a snapshot of the store under ``_store_lock`` so they never
    see the dict change size mid-iteration. ``room_date_lock`` serialises
    conflict-check-then-write sequences for one room and day within this
    process; a key's lock is dropped once nobody holds or waits on it.
    """

    def __init__(self) -> None:
        self._store: dict[str, Booking] = {}
        self._store_lock = threading.Lock()
        # (room_id, date) -> (lock, number of holders and waiters)
        self._locks: dict[tuple[str, dt.date], tuple[threading.Lock, int]] = {}
        self._locks_guard = threading.Lock()

    def add(self, booking: Booking) -> Booking:
        with self._store_lock:
            self._store[booking.id] = booking
        return booking

    def get(self, booking_id: str) -> Booking | None:
        with self._store_lock:
            return self._store.get(booking_id)

    def _snapshot(self) -> list[Booking]:
        with self._store_lock:
            return list(self._store.values())

    def list_all(self) -> list[Booking]:
        return sorted(self._snapshot(), key=lambda b: (b.date, b.booking_from_time))

    def find_for_room_date(
        self, room_id: str, date: dt.date, is_cancelled: bool = False
    ) -> list[Booking]:
        return [
            b
            for b in self._snapshot()
            if b.room_id == room_id and b.date == date and b.is_cancelled == is_cancelled
        ]

    def replace(self, booking: Booking) -> Booking:
        """Overwrite a stored booking, keeping its id."""
        with self._store_lock:
            self._store[booking.id] = booking
        return booking

    @contextmanager
    def room_date_lock(self, room_id: str, date: dt.date) -> Iterator[None]:
        key = (room_id, date)
        with self._locks_guard:
            lock, users = self._locks.get(key, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[key] = (lock, users + 1)
        try:
            with lock:
                yield
        finally:
            with self._locks_guard:
                lock, users = self._locks[key]
                if users == 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (lock, users - 1)


class BookingRepeatRepository:
    """List-backed store for BookingRepeat records."""

    def __init__(self) -> None:
        self._items: list[BookingRepeat] = []

    def add(self, repeat: BookingRepeat) -> None:
        self._items.append(repeat)

    def list_for_booking(self, booking_id: str) -> list[BookingRepeat]:
        return [r for r in self._items if r.original_booking_id == booking_id]


class AuditLogRepository:
    """List-backed store for AuditLogEntry instances."""

    def __init__(self) -> None:
        self._entries: list[AuditLogEntry] = []

    def add(self, entry: AuditLogEntry) -> None:
        self._entries.append(entry)

    def list_for_record(self, record_id: str) -> list[AuditLogEntry]:
        return sorted(
            [e for e in self._entries if e.record_id == record_id],
            key=lambda e: e.created_at,
        )


# ---------------------------------------------------------------------------
# Seed data – a few rooms useful for trying out the API
# ---------------------------------------------------------------------------


def _seed_rooms(repo: RoomRepository) -> None:
    repo.add(Room(id="studio-a", name="Studio A", short_name="A", type="studio"))
    repo.add(Room(id="studio-b", name="Studio B", short_name="B", type="studio"))
    repo.add(
        Room(
            id="edit-suite-1",
            name="Edit Suite 1",
            short_name="E1",
            type="edit",
        )
    )
    # Shared lounge: double bookings are fine here
    repo.add(
        Room(
            id="lounge",
            name="Client Lounge",
            type="lounge",
            ignore_conflict=True,
        )
    )


def create_room_repository(seed: bool = False) -> RoomRepository:
    """Return a RoomRepository, optionally pre-loaded with sample rooms."""
    repo = RoomRepository()
    if seed:
        _seed_rooms(repo)
    return repo
