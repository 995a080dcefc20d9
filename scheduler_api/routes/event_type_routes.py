import logging
from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scheduler_api.auth.dependencies import get_current_user
from scheduler_api.core.errors import InvalidInputError, NotFoundError
from scheduler_api.database import get_db
from scheduler_api.models.booking import Booking
from scheduler_api.models.event_type import EventType
from scheduler_api.models.user import User
from scheduler_api.routes.common import database_unavailable

router = APIRouter(tags=['event-types'])

logger = logging.getLogger(__name__)

MAX_DURATION_MINUTES = 24 * 60


def _validate_duration(value: int | None) -> int | None:
    if value is None:
        return None
    if value <= 0 or value > MAX_DURATION_MINUTES:
        raise ValueError(f'Duration must be between 1 and {MAX_DURATION_MINUTES} minutes.')
    return value


class CreateEventTypeRequest(BaseModel):
    title: str
    duration_minutes: int
    description: str | None = None
    color: str | None = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Title and duration are required')
        return normalized

    @field_validator('duration_minutes')
    @classmethod
    def validate_duration(cls, value: int) -> int:
        return _validate_duration(value)


class UpdateEventTypeRequest(BaseModel):
    title: str | None = None
    duration_minutes: int | None = None
    description: str | None = None
    color: str | None = None

    @field_validator('duration_minutes')
    @classmethod
    def validate_duration(cls, value: int | None) -> int | None:
        return _validate_duration(value)


class EventTypeResponse(BaseModel):
    id: int
    owner_id: int
    title: str
    duration_minutes: int
    description: str | None = None
    color: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {'from_attributes': True}


def get_owned_event_type(db: Session, event_type_id: int, owner_id: int) -> EventType:
    event_type = db.query(EventType).filter(
        EventType.id == event_type_id,
        EventType.owner_id == owner_id,
    ).first()
    if event_type is None:
        raise NotFoundError('Event type not found')
    return event_type


@router.post('', response_model=EventTypeResponse, status_code=status.HTTP_201_CREATED)
def create_event_type(
    data: CreateEventTypeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        event_type = EventType(
            owner_id=current_user.id,
            title=data.title,
            description=data.description,
            duration_minutes=data.duration_minutes,
            color=data.color,
        )
        db.add(event_type)
        db.commit()
        db.refresh(event_type)
        return event_type
    except SQLAlchemyError as exc:
        raise database_unavailable(db, exc) from exc


@router.get('', response_model=list[EventTypeResponse])
def list_event_types(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return db.query(EventType).filter(
            EventType.owner_id == current_user.id,
        ).order_by(EventType.created_at.desc(), EventType.id.desc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable(db, exc) from exc


@router.get('/{event_type_id}', response_model=EventTypeResponse)
def get_event_type(
    event_type_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return get_owned_event_type(db, event_type_id, current_user.id)
    except SQLAlchemyError as exc:
        raise database_unavailable(db, exc) from exc


@router.put('/{event_type_id}', response_model=EventTypeResponse)
def update_event_type(
    event_type_id: int,
    data: UpdateEventTypeRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    fields = data.model_fields_set

    try:
        event_type = get_owned_event_type(db, event_type_id, current_user.id)

        if 'title' in fields:
            title = (data.title or '').strip()
            if not title:
                raise InvalidInputError('Title cannot be empty')
            event_type.title = title
        # Existing bookings keep the end time they were admitted with.
        if data.duration_minutes is not None:
            event_type.duration_minutes = data.duration_minutes
        if 'description' in fields:
            event_type.description = data.description
        if data.color:
            event_type.color = data.color

        db.commit()
        db.refresh(event_type)
        return event_type
    except SQLAlchemyError as exc:
        raise database_unavailable(db, exc) from exc


@router.delete('/{event_type_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_event_type(
    event_type_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        event_type = get_owned_event_type(db, event_type_id, current_user.id)
        removed = db.query(Booking).filter(
            Booking.event_type_id == event_type.id,
        ).delete(synchronize_session=False)
        db.delete(event_type)
        db.commit()
    except SQLAlchemyError as exc:
        raise database_unavailable(db, exc) from exc

    logger.info('Deleted event type %s and %d bookings', event_type_id, removed)
