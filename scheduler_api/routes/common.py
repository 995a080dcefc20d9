import logging
from datetime import datetime

from fastapi import Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from scheduler_api.core.errors import DATABASE_UNAVAILABLE_MESSAGE, StorageUnavailableError
from scheduler_api.database import ensure_booking_schema, get_db
from scheduler_api.scheduling.intervals import utc_now
from scheduler_api.scheduling.store import SchedulingStore

logger = logging.getLogger(__name__)


def ensure_database_ready() -> None:
    try:
        ensure_booking_schema()
    except SQLAlchemyError as exc:
        logger.exception('Booking schema check failed')
        raise StorageUnavailableError(DATABASE_UNAVAILABLE_MESSAGE) from exc


def database_unavailable(db: Session, exc: SQLAlchemyError) -> StorageUnavailableError:
    logger.exception('Database operation failed')
    db.rollback()
    return StorageUnavailableError(DATABASE_UNAVAILABLE_MESSAGE)


def get_now() -> datetime:
    """Request clock. Overridden in tests through ``app.dependency_overrides``."""
    return utc_now()


def get_store(db: Session = Depends(get_db)) -> SchedulingStore:
    return SchedulingStore(db)
