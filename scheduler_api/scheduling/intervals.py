"""Time and interval helpers shared by slot resolution and admission control."""

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from scheduler_api.core.errors import InvalidInputError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_storage(value: datetime) -> datetime:
    """Naive UTC, the form booking timestamps are persisted in."""
    return as_utc(value).replace(tzinfo=None)


def day_of_week(value: date) -> int:
    """Day index counting from Sunday (0) to Saturday (6)."""
    return (value.weekday() + 1) % 7


def intervals_overlap(
    first_start: datetime,
    first_end: datetime,
    second_start: datetime,
    second_end: datetime,
) -> bool:
    """Half-open [start, end) intersection test."""
    return first_start < second_end and second_start < first_end


def resolve_timezone(name: str | None) -> ZoneInfo:
    try:
        return ZoneInfo((name or 'UTC').strip())
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise InvalidInputError(f'Unknown timezone: {name}') from exc


def parse_local_time(value: str | time) -> time:
    """Accept ``HH:MM`` or ``HH:MM:SS``."""
    if isinstance(value, time):
        return value.replace(microsecond=0, tzinfo=None)

    normalized = value.strip()
    for pattern in ('%H:%M:%S', '%H:%M'):
        try:
            return datetime.strptime(normalized, pattern).time()
        except ValueError:
            continue

    raise InvalidInputError(f'Invalid time: {value}. Expected HH:MM or HH:MM:SS.')


def localize(day: date, wall_clock: time, zone: ZoneInfo) -> datetime | None:
    """Attach ``zone`` to a wall-clock time on ``day``.

    Returns None when the time falls in a daylight-saving gap and so never
    occurs on that day.
    """
    local = datetime.combine(day, wall_clock, tzinfo=zone)
    round_trip = local.astimezone(timezone.utc).astimezone(zone)
    if round_trip.replace(tzinfo=None) != local.replace(tzinfo=None):
        return None
    return local
