from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scheduler_api.auth.dependencies import get_current_user
from scheduler_api.auth.passwords import hash_password
from scheduler_api.core import config
from scheduler_api.core.errors import ConflictError, InvalidInputError
from scheduler_api.database import get_db
from scheduler_api.models.user import User
from scheduler_api.routes.common import database_unavailable

router = APIRouter(tags=['settings'])


class SettingsResponse(BaseModel):
    id: int
    name: str
    email: str
    username: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {'from_attributes': True}


class UpdateSettingsRequest(BaseModel):
    name: str | None = None
    username: str | None = None
    password: str | None = None


@router.get('', response_model=SettingsResponse)
def get_settings(current_user: User = Depends(get_current_user)):
    return current_user


@router.put('', response_model=SettingsResponse)
def update_settings(
    data: UpdateSettingsRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    fields = data.model_fields_set
    changes = {}

    if 'name' in fields:
        name = (data.name or '').strip()
        if not name:
            raise InvalidInputError('Name cannot be empty')
        changes['name'] = name

    if 'password' in fields:
        if not data.password or len(data.password) < config.MIN_PASSWORD_LENGTH:
            raise InvalidInputError(f'Password must be at least {config.MIN_PASSWORD_LENGTH} characters')
        changes['hashed_password'] = hash_password(data.password)

    try:
        user = db.query(User).filter(User.id == current_user.id).first()

        if 'username' in fields:
            username = (data.username or '').strip() or None
            if username:
                taken = db.query(User).filter(User.username == username, User.id != user.id).first()
                if taken:
                    raise ConflictError('Username is already taken')
            changes['username'] = username

        for attribute, value in changes.items():
            setattr(user, attribute, value)

        db.commit()
        db.refresh(user)
        return user
    except SQLAlchemyError as exc:
        raise database_unavailable(db, exc) from exc
