from datetime import datetime, timedelta, timezone

import jwt

from scheduler_api.core import config


def create_access_token(user_id: int, expires_minutes: int | None = None) -> str:
    """Sign a token whose subject is the user's primary key."""
    issued_at = datetime.now(timezone.utc)
    expires_at = issued_at + timedelta(minutes=expires_minutes or config.JWT_EXPIRES_MINUTES)
    payload = {"sub": str(user_id), "iat": issued_at, "exp": expires_at}
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_user_id(token: str) -> int:
    """Verify ``token`` and return the user id it was issued for.

    Raises ``jwt.InvalidTokenError`` for a bad signature, an expired token,
    or a subject that is not a user id.
    """
    payload = jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    subject = str(payload.get("sub") or "")
    if not subject.isdigit():
        raise jwt.InvalidTokenError("Token subject is not a user id")
    return int(subject)
