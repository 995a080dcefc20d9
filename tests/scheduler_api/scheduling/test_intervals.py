from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from scheduler_api.core.errors import InvalidInputError
from scheduler_api.scheduling.intervals import (
    as_utc,
    day_of_week,
    intervals_overlap,
    localize,
    parse_local_time,
    resolve_timezone,
    to_storage,
)


@pytest.mark.parametrize(
    ('value', 'expected'),
    [
        (date(2026, 1, 4), 0),
        (date(2026, 1, 5), 1),
        (date(2026, 1, 10), 6),
    ],
)
def test_day_of_week_counts_from_sunday(value: date, expected: int) -> None:
    assert day_of_week(value) == expected


def test_intervals_overlap_is_half_open() -> None:
    start = datetime(2026, 1, 5, 9, 0)
    end = start + timedelta(minutes=30)

    assert intervals_overlap(start, end, start, end)
    assert intervals_overlap(start, end, start + timedelta(minutes=29), end + timedelta(hours=1))
    assert not intervals_overlap(start, end, end, end + timedelta(minutes=30))
    assert not intervals_overlap(start, end, start - timedelta(minutes=30), start)


def test_as_utc_treats_naive_values_as_utc() -> None:
    assert as_utc(datetime(2026, 1, 5, 9, 0)) == datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


def test_as_utc_converts_aware_values() -> None:
    local = datetime(2026, 1, 5, 9, 0, tzinfo=ZoneInfo('America/New_York'))

    assert as_utc(local) == datetime(2026, 1, 5, 14, 0, tzinfo=timezone.utc)
    assert to_storage(local) == datetime(2026, 1, 5, 14, 0)


@pytest.mark.parametrize(('raw', 'expected'), [('09:00', time(9, 0)), ('17:30:15', time(17, 30, 15))])
def test_parse_local_time_accepts_short_and_long_forms(raw: str, expected: time) -> None:
    assert parse_local_time(raw) == expected


def test_parse_local_time_rejects_garbage() -> None:
    with pytest.raises(InvalidInputError):
        parse_local_time('9am')


def test_resolve_timezone_rejects_unknown_name() -> None:
    with pytest.raises(InvalidInputError) as exception_info:
        resolve_timezone('Mars/Olympus_Mons')

    assert exception_info.value.kind == 'validation'


def test_localize_returns_none_inside_spring_forward_gap() -> None:
    zone = ZoneInfo('America/New_York')

    assert localize(date(2026, 3, 8), time(2, 30), zone) is None
    assert localize(date(2026, 3, 8), time(3, 0), zone) == datetime(2026, 3, 8, 3, 0, tzinfo=zone)
