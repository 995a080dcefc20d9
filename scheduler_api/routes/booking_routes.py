from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator

from scheduler_api.auth.dependencies import get_current_user
from scheduler_api.models.user import User
from scheduler_api.routes.common import ensure_database_ready, get_store
from scheduler_api.scheduling import admission
from scheduler_api.scheduling.intervals import as_utc
from scheduler_api.scheduling.store import SchedulingStore

router = APIRouter(tags=['bookings'])

MAX_BOOKING_NOTES_LENGTH = 600


def validate_booking_notes(value: str | None) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > MAX_BOOKING_NOTES_LENGTH:
        raise ValueError(f'Notes must be {MAX_BOOKING_NOTES_LENGTH} characters or fewer.')

    return normalized


class BookingResponse(BaseModel):
    id: int
    event_type_id: int
    invitee_name: str
    invitee_email: str
    start_time: datetime
    end_time: datetime
    status: str
    notes: str | None = None
    created_at: datetime | None = None

    model_config = {'from_attributes': True}

    @field_validator('start_time', 'end_time')
    @classmethod
    def mark_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class UpdateBookingRequest(BaseModel):
    status: str | None = None
    notes: str | None = None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, value: str | None) -> str | None:
        return validate_booking_notes(value)


@router.get('', response_model=list[BookingResponse])
def list_bookings(
    current_user: User = Depends(get_current_user),
    store: SchedulingStore = Depends(get_store),
):
    return admission.list_owner_bookings(store, current_user.id)


@router.get('/{booking_id}', response_model=BookingResponse)
def get_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    store: SchedulingStore = Depends(get_store),
):
    return admission.get_owned_booking(store, booking_id, current_user.id)


@router.put('/{booking_id}', response_model=BookingResponse)
def update_booking(
    booking_id: int,
    data: UpdateBookingRequest,
    current_user: User = Depends(get_current_user),
    store: SchedulingStore = Depends(get_store),
):
    ensure_database_ready()

    changes = {}
    if 'notes' in data.model_fields_set:
        changes['notes'] = data.notes

    return admission.update_booking(
        store,
        booking_id,
        current_user.id,
        status=data.status,
        **changes,
    )


@router.delete('/{booking_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    store: SchedulingStore = Depends(get_store),
):
    admission.delete_booking(store, booking_id, current_user.id)
