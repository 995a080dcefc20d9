"""
Persistence gateway for the scheduling services.

Wraps a SQLAlchemy session with the handful of queries slot resolution and
admission control need. Rows are looked up by explicit query on foreign
keys; nothing here walks an object graph.
"""

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scheduler_api.core.errors import DATABASE_UNAVAILABLE_MESSAGE, StorageUnavailableError
from scheduler_api.models.availability import AvailabilityWindow
from scheduler_api.models.booking import Booking, BookingStatus
from scheduler_api.models.event_type import EventType
from scheduler_api.scheduling.intervals import to_storage

logger = logging.getLogger(__name__)


class SchedulingStore:
    def __init__(self, db: Session):
        self.db = db

    def _fail(self, exc: SQLAlchemyError) -> StorageUnavailableError:
        logger.exception('Scheduling store query failed')
        self.rollback()
        return StorageUnavailableError(DATABASE_UNAVAILABLE_MESSAGE)

    def find_event_type(self, event_type_id: int, lock: bool = False) -> EventType | None:
        """Fetch an event type. ``lock`` takes a row lock on backends that support it."""
        try:
            query = self.db.query(EventType).filter(EventType.id == event_type_id)
            if lock:
                query = query.with_for_update()
            return query.first()
        except SQLAlchemyError as exc:
            raise self._fail(exc) from exc

    def find_availability(self, owner_id: int) -> list[AvailabilityWindow]:
        try:
            return self.db.query(AvailabilityWindow).filter(
                AvailabilityWindow.owner_id == owner_id,
            ).order_by(AvailabilityWindow.day_of_week.asc(), AvailabilityWindow.start_time.asc()).all()
        except SQLAlchemyError as exc:
            raise self._fail(exc) from exc

    def find_confirmed_bookings(
        self,
        event_type_id: int,
        range_start: datetime,
        range_end: datetime,
    ) -> list[Booking]:
        """Confirmed bookings of the event type overlapping [range_start, range_end)."""
        try:
            return self.db.query(Booking).filter(
                Booking.event_type_id == event_type_id,
                Booking.status == BookingStatus.CONFIRMED.value,
                Booking.start_time < to_storage(range_end),
                Booking.end_time > to_storage(range_start),
            ).order_by(Booking.start_time.asc()).all()
        except SQLAlchemyError as exc:
            raise self._fail(exc) from exc

    def find_conflicting_booking(
        self,
        event_type_id: int,
        start_time: datetime,
        end_time: datetime,
        exact_start: bool = False,
        exclude_booking_id: int | None = None,
    ) -> Booking | None:
        try:
            query = self.db.query(Booking).filter(
                Booking.event_type_id == event_type_id,
                Booking.status == BookingStatus.CONFIRMED.value,
            )
            if exact_start:
                query = query.filter(Booking.start_time == to_storage(start_time))
            else:
                query = query.filter(
                    Booking.start_time < to_storage(end_time),
                    Booking.end_time > to_storage(start_time),
                )
            if exclude_booking_id is not None:
                query = query.filter(Booking.id != exclude_booking_id)
            return query.first()
        except SQLAlchemyError as exc:
            raise self._fail(exc) from exc

    def find_booking(self, booking_id: int) -> Booking | None:
        try:
            return self.db.query(Booking).filter(Booking.id == booking_id).first()
        except SQLAlchemyError as exc:
            raise self._fail(exc) from exc

    def list_bookings_for_owner(self, owner_id: int) -> list[Booking]:
        try:
            owned_event_types = select(EventType.id).where(EventType.owner_id == owner_id)
            return self.db.query(Booking).filter(
                Booking.event_type_id.in_(owned_event_types),
            ).order_by(Booking.start_time.desc()).all()
        except SQLAlchemyError as exc:
            raise self._fail(exc) from exc

    def list_confirmed_for_event_type(self, event_type_id: int) -> list[Booking]:
        try:
            return self.db.query(Booking).filter(
                Booking.event_type_id == event_type_id,
                Booking.status == BookingStatus.CONFIRMED.value,
            ).order_by(Booking.start_time.asc()).all()
        except SQLAlchemyError as exc:
            raise self._fail(exc) from exc

    def insert_booking(self, booking: Booking) -> Booking:
        """Add and flush so that constraint violations surface here."""
        self.db.add(booking)
        self.db.flush()
        return booking

    def delete(self, row) -> None:
        try:
            self.db.delete(row)
            self.db.flush()
        except SQLAlchemyError as exc:
            raise self._fail(exc) from exc

    def commit(self) -> None:
        self.db.commit()

    def refresh(self, row) -> None:
        self.db.refresh(row)

    def rollback(self) -> None:
        self.db.rollback()
