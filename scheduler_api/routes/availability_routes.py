from datetime import datetime, time

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ValidationInfo, field_validator
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scheduler_api.auth.dependencies import get_current_user
from scheduler_api.core import config
from scheduler_api.core.errors import InvalidInputError, NotFoundError, SchedulingError
from scheduler_api.database import get_db
from scheduler_api.models.availability import AvailabilityWindow
from scheduler_api.models.user import User
from scheduler_api.routes.common import database_unavailable
from scheduler_api.scheduling.intervals import parse_local_time, resolve_timezone

router = APIRouter(tags=['availability'])

DAY_OF_WEEK_MESSAGE = 'Day of week must be between 0 (Sunday) and 6 (Saturday)'
TIME_ORDER_MESSAGE = 'Start time must be before end time'


def _validate_day_of_week(value: int | None) -> int | None:
    if value is not None and not 0 <= value <= 6:
        raise ValueError(DAY_OF_WEEK_MESSAGE)
    return value


def _validate_local_time(value: str | time | None) -> time | None:
    if value is None:
        return None
    if not isinstance(value, (str, time)):
        raise ValueError('Times must be given as HH:MM or HH:MM:SS.')
    try:
        return parse_local_time(value)
    except SchedulingError as exc:
        raise ValueError(exc.message) from exc


def _validate_timezone(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    try:
        resolve_timezone(normalized)
    except SchedulingError as exc:
        raise ValueError(exc.message) from exc
    return normalized


class CreateAvailabilityRequest(BaseModel):
    day_of_week: int
    start_time: time
    end_time: time
    timezone: str | None = None

    @field_validator('day_of_week')
    @classmethod
    def validate_day_of_week(cls, value: int) -> int:
        return _validate_day_of_week(value)

    @field_validator('start_time', 'end_time', mode='before')
    @classmethod
    def validate_times(cls, value):
        return _validate_local_time(value)

    @field_validator('end_time')
    @classmethod
    def validate_time_order(cls, value: time, info: ValidationInfo) -> time:
        start_time = info.data.get('start_time')
        if start_time is not None and value <= start_time:
            raise ValueError(TIME_ORDER_MESSAGE)
        return value

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, value: str | None) -> str | None:
        return _validate_timezone(value)


class UpdateAvailabilityRequest(BaseModel):
    day_of_week: int | None = None
    start_time: time | None = None
    end_time: time | None = None
    timezone: str | None = None

    @field_validator('day_of_week')
    @classmethod
    def validate_day_of_week(cls, value: int | None) -> int | None:
        return _validate_day_of_week(value)

    @field_validator('start_time', 'end_time', mode='before')
    @classmethod
    def validate_times(cls, value):
        return _validate_local_time(value)

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, value: str | None) -> str | None:
        return _validate_timezone(value)


class AvailabilityResponse(BaseModel):
    id: int
    owner_id: int
    day_of_week: int
    start_time: time
    end_time: time
    timezone: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {'from_attributes': True}


def get_owned_window(db: Session, window_id: int, owner_id: int) -> AvailabilityWindow:
    window = db.query(AvailabilityWindow).filter(
        AvailabilityWindow.id == window_id,
        AvailabilityWindow.owner_id == owner_id,
    ).first()
    if window is None:
        raise NotFoundError('Availability not found')
    return window


@router.post('', response_model=AvailabilityResponse, status_code=status.HTTP_201_CREATED)
def create_availability(
    data: CreateAvailabilityRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        window = AvailabilityWindow(
            owner_id=current_user.id,
            day_of_week=data.day_of_week,
            start_time=data.start_time,
            end_time=data.end_time,
            timezone=data.timezone or config.DEFAULT_TIMEZONE,
        )
        db.add(window)
        db.commit()
        db.refresh(window)
        return window
    except SQLAlchemyError as exc:
        raise database_unavailable(db, exc) from exc


@router.get('', response_model=list[AvailabilityResponse])
def list_availability(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        return db.query(AvailabilityWindow).filter(
            AvailabilityWindow.owner_id == current_user.id,
        ).order_by(AvailabilityWindow.day_of_week.asc(), AvailabilityWindow.start_time.asc()).all()
    except SQLAlchemyError as exc:
        raise database_unavailable(db, exc) from exc


@router.put('/{window_id}', response_model=AvailabilityResponse)
def update_availability(
    window_id: int,
    data: UpdateAvailabilityRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        window = get_owned_window(db, window_id, current_user.id)

        start_time = data.start_time or window.start_time
        end_time = data.end_time or window.end_time
        if start_time >= end_time:
            raise InvalidInputError(TIME_ORDER_MESSAGE)

        if data.day_of_week is not None:
            window.day_of_week = data.day_of_week
        window.start_time = start_time
        window.end_time = end_time
        if data.timezone:
            window.timezone = data.timezone

        db.commit()
        db.refresh(window)
        return window
    except SQLAlchemyError as exc:
        raise database_unavailable(db, exc) from exc


@router.delete('/{window_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_availability(
    window_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        window = get_owned_window(db, window_id, current_user.id)
        db.delete(window)
        db.commit()
    except SQLAlchemyError as exc:
        raise database_unavailable(db, exc) from exc
