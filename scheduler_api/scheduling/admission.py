"""
Booking admission control.

Validates a booking request against the current confirmed bookings of its
event type and commits it. The event type row is locked for the duration
of the check where the database supports it, and the partial unique index
on confirmed start times rejects whatever slips past a concurrent check.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from scheduler_api.core import config
from scheduler_api.core.errors import (
    DATABASE_UNAVAILABLE_MESSAGE,
    ConflictError,
    InvalidInputError,
    NotFoundError,
    StorageUnavailableError,
    UnauthorizedError,
)
from scheduler_api.models.booking import Booking, BookingStatus
from scheduler_api.scheduling.intervals import as_utc, to_storage, utc_now
from scheduler_api.scheduling.store import SchedulingStore

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = 'This time slot is already booked'

_UNCHANGED = object()


def _commit(store: SchedulingStore) -> None:
    try:
        store.commit()
    except IntegrityError as exc:
        store.rollback()
        raise ConflictError(SLOT_TAKEN_MESSAGE) from exc
    except SQLAlchemyError as exc:
        logger.exception('Booking commit failed')
        store.rollback()
        raise StorageUnavailableError(DATABASE_UNAVAILABLE_MESSAGE) from exc


def _check_conflict(
    store: SchedulingStore,
    event_type_id: int,
    start_time: datetime,
    end_time: datetime,
    policy: str,
    exclude_booking_id: int | None = None,
) -> None:
    conflicting = store.find_conflicting_booking(
        event_type_id,
        start_time,
        end_time,
        exact_start=policy == config.CONFLICT_POLICY_EXACT_START,
        exclude_booking_id=exclude_booking_id,
    )
    if conflicting is not None:
        logger.info(
            'Rejected booking for event type %s at %s: overlaps booking %s',
            event_type_id,
            start_time.isoformat(),
            conflicting.id,
        )
        raise ConflictError(SLOT_TAKEN_MESSAGE)


def create_booking(
    store: SchedulingStore,
    event_type_id: int,
    invitee_name: str,
    invitee_email: str,
    requested_start: datetime,
    notes: str | None = None,
    now: datetime | None = None,
    policy: str | None = None,
) -> Booking:
    """Admit a booking request and return the committed confirmed booking.

    Raises:
        InvalidInputError: invitee details or start time missing, or start
            not in the future.
        NotFoundError: the event type does not exist.
        ConflictError: a confirmed booking already holds the interval.
    """
    if not event_type_id or not (invitee_name or '').strip() or not (invitee_email or '').strip() or requested_start is None:
        raise InvalidInputError('Event type, invitee details, and start time are required')

    policy = policy or config.BOOKING_CONFLICT_POLICY
    now = as_utc(now or utc_now())
    start_time = as_utc(requested_start).replace(microsecond=0)

    if start_time <= now:
        raise InvalidInputError('Bookings must be scheduled in the future.')

    event_type = store.find_event_type(event_type_id, lock=True)
    if event_type is None:
        raise NotFoundError('Event type not found')

    end_time = start_time + timedelta(minutes=event_type.duration_minutes)

    try:
        _check_conflict(store, event_type_id, start_time, end_time, policy)
    except ConflictError:
        store.rollback()
        raise

    booking = Booking(
        event_type_id=event_type_id,
        invitee_name=invitee_name.strip(),
        invitee_email=invitee_email.strip().lower(),
        start_time=to_storage(start_time),
        end_time=to_storage(end_time),
        status=BookingStatus.CONFIRMED.value,
        notes=notes,
    )

    try:
        store.insert_booking(booking)
    except IntegrityError as exc:
        store.rollback()
        logger.warning('Concurrent booking for event type %s at %s lost the race', event_type_id, start_time.isoformat())
        raise ConflictError(SLOT_TAKEN_MESSAGE) from exc
    except SQLAlchemyError as exc:
        logger.exception('Booking insert failed')
        store.rollback()
        raise StorageUnavailableError(DATABASE_UNAVAILABLE_MESSAGE) from exc

    _commit(store)
    store.refresh(booking)
    logger.info('Booked event type %s at %s (booking %s)', event_type_id, start_time.isoformat(), booking.id)
    return booking


def get_owned_booking(store: SchedulingStore, booking_id: int, owner_id: int) -> Booking:
    """Fetch a booking, checking that its event type belongs to ``owner_id``."""
    booking = store.find_booking(booking_id)
    if booking is None:
        raise NotFoundError('Booking not found')

    event_type = store.find_event_type(booking.event_type_id)
    if event_type is None or event_type.owner_id != owner_id:
        raise UnauthorizedError('Unauthorized')

    return booking


def list_owner_bookings(store: SchedulingStore, owner_id: int) -> list[Booking]:
    return store.list_bookings_for_owner(owner_id)


def parse_status(value: str) -> BookingStatus:
    try:
        return BookingStatus((value or '').strip().lower())
    except ValueError as exc:
        raise InvalidInputError('Invalid booking status') from exc


def update_booking(
    store: SchedulingStore,
    booking_id: int,
    owner_id: int,
    status: str | None = None,
    notes=_UNCHANGED,
    policy: str | None = None,
) -> Booking:
    """Change a booking's status and/or notes.

    Any status may follow any other. A booking moving into ``confirmed``
    must not overlap another confirmed booking of the same event type.
    """
    booking = get_owned_booking(store, booking_id, owner_id)
    policy = policy or config.BOOKING_CONFLICT_POLICY

    if status:
        new_status = parse_status(status)
        if new_status is BookingStatus.CONFIRMED and booking.status != BookingStatus.CONFIRMED.value:
            # Serialise with create_booking on the same event type.
            store.find_event_type(booking.event_type_id, lock=True)
            _check_conflict(
                store,
                booking.event_type_id,
                as_utc(booking.start_time),
                as_utc(booking.end_time),
                policy,
                exclude_booking_id=booking.id,
            )
        if booking.status != new_status.value:
            logger.info('Booking %s status %s -> %s', booking.id, booking.status, new_status.value)
        booking.status = new_status.value

    if notes is not _UNCHANGED:
        booking.notes = notes

    _commit(store)
    store.refresh(booking)
    return booking


def delete_booking(store: SchedulingStore, booking_id: int, owner_id: int) -> None:
    booking = get_owned_booking(store, booking_id, owner_id)
    store.delete(booking)
    _commit(store)
    logger.info('Deleted booking %s', booking_id)
