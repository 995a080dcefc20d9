from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator

from scheduler_api.core.errors import NotFoundError
from scheduler_api.routes.booking_routes import BookingResponse, validate_booking_notes
from scheduler_api.routes.common import ensure_database_ready, get_now, get_store
from scheduler_api.routes.event_type_routes import EventTypeResponse
from scheduler_api.scheduling import admission
from scheduler_api.scheduling.intervals import as_utc
from scheduler_api.scheduling.slots import find_slots
from scheduler_api.scheduling.store import SchedulingStore

router = APIRouter(tags=['public'])


class CreateBookingRequest(BaseModel):
    event_type_id: int
    invitee_name: str
    invitee_email: str
    start_time: datetime
    notes: str | None = None

    @field_validator('invitee_name')
    @classmethod
    def validate_invitee_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Invitee name is required.')
        return normalized

    @field_validator('invitee_email')
    @classmethod
    def validate_invitee_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if '@' not in normalized:
            raise ValueError('A valid invitee email is required.')
        return normalized

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return validate_booking_notes(value)


class SlotResponse(BaseModel):
    start_time: datetime
    end_time: datetime


class BookedIntervalResponse(BaseModel):
    start_time: datetime
    end_time: datetime

    model_config = {'from_attributes': True}

    @field_validator('start_time', 'end_time')
    @classmethod
    def mark_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


@router.get('/event-type/{event_type_id}', response_model=EventTypeResponse)
def get_public_event_type(
    event_type_id: int,
    store: SchedulingStore = Depends(get_store),
):
    event_type = store.find_event_type(event_type_id)
    if event_type is None:
        raise NotFoundError('Event type not found')
    return event_type


@router.get('/event-type/{event_type_id}/slots', response_model=list[SlotResponse])
def list_available_slots(
    event_type_id: int,
    start_date: datetime | None = Query(default=None),
    end_date: datetime | None = Query(default=None),
    store: SchedulingStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    slots = find_slots(store, event_type_id, range_start=start_date, range_end=end_date, now=now)
    return [SlotResponse(start_time=slot.start_time, end_time=slot.end_time) for slot in slots]


@router.get('/event-type/{event_type_id}/bookings', response_model=list[BookedIntervalResponse])
def list_public_bookings(
    event_type_id: int,
    store: SchedulingStore = Depends(get_store),
):
    return store.list_confirmed_for_event_type(event_type_id)


@router.post('/book', response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_public_booking(
    data: CreateBookingRequest,
    store: SchedulingStore = Depends(get_store),
    now: datetime = Depends(get_now),
):
    ensure_database_ready()

    return admission.create_booking(
        store,
        event_type_id=data.event_type_id,
        invitee_name=data.invitee_name,
        invitee_email=data.invitee_email,
        requested_start=data.start_time,
        notes=data.notes,
        now=now,
    )
