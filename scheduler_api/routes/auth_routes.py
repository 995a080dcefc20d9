import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from scheduler_api.auth import jwt_handler
from scheduler_api.auth.dependencies import get_current_user
from scheduler_api.auth.passwords import hash_password, verify_password
from scheduler_api.core import config
from scheduler_api.core.errors import ConflictError, InvalidInputError
from scheduler_api.database import get_db
from scheduler_api.models.user import User
from scheduler_api.routes.common import database_unavailable

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str
    username: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        return normalized

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if '@' not in normalized:
            raise ValueError('A valid email is required.')
        return normalized

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < config.MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {config.MIN_PASSWORD_LENGTH} characters')
        return value

    @field_validator('username')
    @classmethod
    def validate_username(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserResponse(BaseModel):
    id: int
    name: str
    email: str
    username: str | None = None

    model_config = {'from_attributes': True}


class TokenResponse(BaseModel):
    user: UserResponse
    access_token: str
    token_type: str = 'bearer'


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(
        user=UserResponse.model_validate(user),
        access_token=jwt_handler.create_access_token(user.id),
    )


@router.post('/register', response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    username = data.username or data.email.split('@')[0]

    try:
        existing_user = db.query(User).filter(
            (User.email == data.email) | (User.username == username)
        ).first()
        if existing_user:
            raise ConflictError('User with this email or username already exists')

        user = User(
            name=data.name,
            email=data.email,
            hashed_password=hash_password(data.password),
            username=username,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError('User with this email or username already exists') from exc
    except SQLAlchemyError as exc:
        raise database_unavailable(db, exc) from exc

    logger.info('Registered user %s', user.id)
    return _token_response(user)


@router.post('/login', response_model=TokenResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    if not data.email or not data.password:
        raise InvalidInputError('Email and password are required')

    try:
        user = db.query(User).filter(User.email == data.email).first()
    except SQLAlchemyError as exc:
        raise database_unavailable(db, exc) from exc

    if user is None or not verify_password(data.password, user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid email or password')

    return _token_response(user)


@router.get('/me', response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user
