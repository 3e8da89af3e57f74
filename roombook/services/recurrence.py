"""Service for expanding a booking into a repeating series of bookings.

Occurrence dates are selected with ``dateutil.rrule`` from a simple repeat
pattern; each generated booking goes through the conflict detector and is
either created or skipped, so one busy day never fails the whole series.
"""

from __future__ import annotations

import datetime as dt
import logging

from dateutil.rrule import DAILY, FR, MO, TH, TU, WE, WEEKLY, rrule

from roombook.domain.errors import InvalidRange, OriginalNotFound, StorageUnavailable
from roombook.domain.models import (
    BookingRepeat,
    CreatedOccurrence,
    RecurrenceOutcome,
    RepeatPattern,
    SkippedOccurrence,
)
from roombook.repos.memory import (
    BookingRepeatRepository,
    BookingRepository,
    RoomRepository,
)
from roombook.services.bookings import build_booking
from roombook.services.conflicts import has_conflict

logger = logging.getLogger(__name__)

_WEEKDAYS = (MO, TU, WE, TH, FR)


def occurrence_dates(
    from_date: dt.date, to_date: dt.date, pattern: RepeatPattern
) -> list[dt.date]:
    """Return the dates in ``[from_date, to_date]`` selected by *pattern*.

    ``weekly`` repeats on the weekday of ``from_date``, every seven days.
    Raises ``InvalidRange`` if ``to_date`` is before ``from_date``.
    """
    if to_date < from_date:
        raise InvalidRange(from_date, to_date)

    start = dt.datetime.combine(from_date, dt.time.min)
    until = dt.datetime.combine(to_date, dt.time.min)

    if pattern == RepeatPattern.DAILY:
        rule = rrule(DAILY, dtstart=start, until=until)
    elif pattern == RepeatPattern.WEEKDAYS:
        rule = rrule(DAILY, dtstart=start, until=until, byweekday=_WEEKDAYS)
    elif pattern == RepeatPattern.WEEKLY:
        rule = rrule(WEEKLY, dtstart=start, until=until)
    else:
        raise ValueError(f"unknown repeat pattern {pattern!r}")

    return [occurrence.date() for occurrence in rule]


def expand_repeat_bookings(
    template_id: str,
    from_date: dt.date,
    to_date: dt.date,
    pattern: RepeatPattern,
    *,
    rooms: RoomRepository,
    bookings: BookingRepository,
    repeats: BookingRepeatRepository | None = None,
) -> RecurrenceOutcome:
    """Create one booking per occurrence date, copying the template's fields.

    Dates whose copy would collide with an existing booking are reported as
    skipped. The template itself is left untouched. A storage failure aborts
    the rest of the series; occurrences created before it are kept and are
    attached to the raised ``StorageUnavailable`` as ``partial_outcome``.
    """
    # Validate the range before touching storage.
    dates = occurrence_dates(from_date, to_date, pattern)

    template = bookings.get(template_id)
    if template is None:
        raise OriginalNotFound(template_id)

    outcome = RecurrenceOutcome()
    if repeats is not None:
        repeat = BookingRepeat(
            original_booking_id=template.id,
            from_date=from_date,
            to_date=to_date,
            repeat_pattern=pattern,
        )
        repeats.add(repeat)
        outcome.repeat_id = repeat.id

    fields = template.booking_fields()
    try:
        for date in dates:
            with bookings.room_date_lock(fields.room_id, date):
                if has_conflict(
                    fields.room_id,
                    date,
                    fields.booking_from_time,
                    fields.booking_to_time,
                    rooms=rooms,
                    bookings=bookings,
                ):
                    logger.info("skipping %s for booking %s: conflict", date, template.id)
                    outcome.items.append(SkippedOccurrence(date=date))
                    continue
                booking = bookings.add(
                    build_booking(fields, date, company_id=template.company_id)
                )
            outcome.items.append(CreatedOccurrence(date=date, booking=booking))
    except StorageUnavailable as exc:
        exc.partial_outcome = outcome
        logger.error(
            "storage failed while repeating booking %s after %d occurrence(s)",
            template.id,
            len(outcome.items),
        )
        raise

    logger.info(
        "repeated booking %s (%s, %s..%s): %d created, %d skipped",
        template.id,
        pattern,
        from_date,
        to_date,
        outcome.created_count,
        outcome.skipped_count,
    )
    return outcome
