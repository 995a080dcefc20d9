import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from scheduler_api.core import config
from scheduler_api.core.errors import SchedulingError, scheduling_error_handler
from scheduler_api.database import Base, engine, ensure_booking_schema
from scheduler_api.models import availability, booking, event_type, user  # noqa: F401
from scheduler_api.routes import (
    auth_routes,
    availability_routes,
    booking_routes,
    event_type_routes,
    public_routes,
    settings_routes,
)

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

config.validate_runtime_config()

app = FastAPI(title='Scheduler API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=[config.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get('msg', 'Invalid request') if errors else 'Invalid request'
    # pydantic prefixes messages raised from validators.
    message = message.removeprefix('Value error, ')
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={'detail': message, 'kind': 'validation', 'errors': jsonable_errors(errors)},
    )


def jsonable_errors(errors) -> list[dict]:
    return [
        {'loc': list(error.get('loc', ())), 'msg': error.get('msg'), 'type': error.get('type')}
        for error in errors
    ]


app.add_exception_handler(SchedulingError, scheduling_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
        ensure_booking_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/health')
def health():
    return {'status': 'ok', 'timestamp': datetime.now(timezone.utc).isoformat()}


app.include_router(auth_routes.router, prefix='/api/auth')
app.include_router(event_type_routes.router, prefix='/api/event-types')
app.include_router(availability_routes.router, prefix='/api/availability')
app.include_router(booking_routes.router, prefix='/api/bookings')
app.include_router(settings_routes.router, prefix='/api/settings')
app.include_router(public_routes.router, prefix='/api/public')
