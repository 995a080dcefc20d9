"""
Slot resolution.

Turns an owner's recurring weekly availability into concrete bookable
intervals for one event type, removing anything already taken by a
confirmed booking or already in the past.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Iterator

from scheduler_api.core import config
from scheduler_api.core.errors import NotFoundError
from scheduler_api.scheduling.intervals import (
    as_utc,
    day_of_week,
    intervals_overlap,
    localize,
    resolve_timezone,
    utc_now,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class SlotCandidate:
    start_time: datetime
    end_time: datetime


def resolve_range(
    range_start: datetime | None,
    range_end: datetime | None,
    now: datetime,
) -> tuple[datetime, datetime]:
    """Fill in a missing range bound. The end defaults to a fixed span after the start."""
    range_start = as_utc(range_start) if range_start else now
    range_end = as_utc(range_end) if range_end else range_start + timedelta(days=config.DEFAULT_SLOT_RANGE_DAYS)
    return range_start, range_end


def iterate_days(first_day: date, last_day: date) -> Iterator[date]:
    current_day = first_day
    while current_day <= last_day:
        yield current_day
        current_day += timedelta(days=1)


def window_slot_starts(window, day: date, duration: timedelta, tiling: bool, zone) -> Iterator[datetime]:
    """Yield the local start times one availability window offers on ``day``.

    With tiling the window is cut into consecutive ``duration`` slots and a
    trailing partial slot is dropped. Without it only the window's start is
    offered, however long the event runs.

    Tiles are stepped in wall-clock time, so across a daylight-saving jump a
    tile can land inside the previous one once converted to UTC. Such tiles
    are skipped.
    """
    if not tiling:
        local_start = localize(day, window.start_time, zone)
        if local_start is not None:
            yield local_start
        return

    current = datetime.combine(day, window.start_time)
    window_end = datetime.combine(day, window.end_time)
    previous_end = None
    while current + duration <= window_end:
        local_start = localize(day, current.time(), zone)
        current += duration
        if local_start is None:
            continue
        # Same-zone datetimes compare by wall clock, so compare in UTC.
        if previous_end is not None and as_utc(local_start) < previous_end:
            continue
        previous_end = as_utc(local_start) + duration
        yield local_start


def resolve_slots(
    event_type,
    availability_windows: Iterable,
    confirmed_bookings: Iterable,
    range_start: datetime | None = None,
    range_end: datetime | None = None,
    now: datetime | None = None,
    tiling: bool | None = None,
) -> list[SlotCandidate]:
    """Compute the open slots for ``event_type`` in ascending start order.

    Every calendar day of the closed range is considered, with each window
    evaluated in its own timezone. Candidates overlapping a confirmed
    booking or not strictly after ``now`` are dropped.
    """
    now = as_utc(now or utc_now())
    tiling = config.SLOT_TILING if tiling is None else tiling
    range_start, range_end = resolve_range(range_start, range_end, now)

    windows = list(availability_windows)
    if not windows or range_end < range_start:
        return []

    duration = timedelta(minutes=event_type.duration_minutes)
    booked = [
        (as_utc(booking.start_time), as_utc(booking.end_time))
        for booking in confirmed_bookings
    ]

    candidates: set[SlotCandidate] = set()
    for window in windows:
        zone = resolve_timezone(window.timezone)
        first_day = range_start.astimezone(zone).date()
        last_day = range_end.astimezone(zone).date()

        for day in iterate_days(first_day, last_day):
            if day_of_week(day) != window.day_of_week:
                continue

            for local_start in window_slot_starts(window, day, duration, tiling, zone):
                slot_start = as_utc(local_start)
                slot_end = slot_start + duration

                if slot_start <= now:
                    continue
                if any(intervals_overlap(slot_start, slot_end, start, end) for start, end in booked):
                    continue

                candidates.add(SlotCandidate(start_time=slot_start, end_time=slot_end))

    return sorted(candidates)


def find_slots(
    store,
    event_type_id: int,
    range_start: datetime | None = None,
    range_end: datetime | None = None,
    now: datetime | None = None,
    tiling: bool | None = None,
) -> list[SlotCandidate]:
    """Load everything slot resolution needs for one event type and run it."""
    now = as_utc(now or utc_now())
    range_start, range_end = resolve_range(range_start, range_end, now)

    event_type = store.find_event_type(event_type_id)
    if event_type is None:
        raise NotFoundError('Event type not found')

    windows = store.find_availability(event_type.owner_id)
    if not windows:
        return []

    # Bookings are fetched with a day of slack on each side so that local
    # days at the edges of the range still see their neighbours.
    bookings = store.find_confirmed_bookings(
        event_type_id,
        range_start - timedelta(days=1),
        range_end + timedelta(days=2),
    )

    slots = resolve_slots(
        event_type,
        windows,
        bookings,
        range_start=range_start,
        range_end=range_end,
        now=now,
        tiling=tiling,
    )
    logger.debug('Resolved %d slots for event type %s', len(slots), event_type_id)
    return slots
