from datetime import datetime

import pytest
from pydantic import ValidationError

from scheduler_api.core.errors import NotFoundError
from scheduler_api.models.booking import Booking
from scheduler_api.models.event_type import EventType
from scheduler_api.routes.event_type_routes import (
    CreateEventTypeRequest,
    EventTypeResponse,
    UpdateEventTypeRequest,
    delete_event_type,
    get_event_type,
    update_event_type,
)


@pytest.mark.parametrize('duration_minutes', [0, -15])
def test_create_event_type_request_rejects_non_positive_duration(duration_minutes: int) -> None:
    with pytest.raises(ValidationError):
        CreateEventTypeRequest(title='Intro', duration_minutes=duration_minutes)


def test_create_event_type_request_requires_title() -> None:
    with pytest.raises(ValidationError):
        CreateEventTypeRequest(title='   ', duration_minutes=30)


def test_get_event_type_hides_other_owners(db_session, make_user, make_event_type) -> None:
    event_type = make_event_type(make_user())
    stranger = make_user(email='stranger@example.com')

    with pytest.raises(NotFoundError) as exception_info:
        get_event_type(event_type.id, current_user=stranger, db=db_session)

    assert exception_info.value.message == 'Event type not found'


def test_duration_change_does_not_resize_existing_bookings(db_session, make_user, make_event_type, make_booking) -> None:
    owner = make_user()
    event_type = make_event_type(owner, duration_minutes=30)
    booking = make_booking(event_type, datetime(2026, 1, 5, 9, 0), datetime(2026, 1, 5, 9, 30))

    updated = update_event_type(
        event_type.id,
        UpdateEventTypeRequest(duration_minutes=60, description='Longer'),
        current_user=owner,
        db=db_session,
    )

    db_session.refresh(booking)
    assert updated.duration_minutes == 60
    assert updated.title == 'Intro call'
    assert updated.description == 'Longer'
    assert booking.end_time == datetime(2026, 1, 5, 9, 30)


def test_delete_event_type_removes_its_bookings(db_session, make_user, make_event_type, make_booking) -> None:
    owner = make_user()
    event_type = make_event_type(owner)
    make_booking(event_type, datetime(2026, 1, 5, 9, 0), datetime(2026, 1, 5, 9, 30))

    delete_event_type(event_type.id, current_user=owner, db=db_session)

    assert db_session.query(EventType).count() == 0
    assert db_session.query(Booking).count() == 0


def test_event_type_endpoints(client, make_user, auth_headers) -> None:
    headers = auth_headers(make_user())

    created = client.post(
        '/api/event-types',
        json={'title': 'Consultation', 'duration_minutes': 45, 'color': '#3366ff'},
        headers=headers,
    )
    assert created.status_code == 201
    event_type_id = created.json()['id']

    listed = client.get('/api/event-types', headers=headers)
    assert [item['id'] for item in listed.json()] == [event_type_id]

    updated = client.put(f'/api/event-types/{event_type_id}', json={'title': 'Deep dive'}, headers=headers)
    assert updated.json()['title'] == 'Deep dive'
    assert updated.json()['duration_minutes'] == 45

    invalid = client.post('/api/event-types', json={'title': 'Broken', 'duration_minutes': 0}, headers=headers)
    assert invalid.status_code == 400

    assert client.delete(f'/api/event-types/{event_type_id}', headers=headers).status_code == 204
    assert client.get(f'/api/event-types/{event_type_id}', headers=headers).status_code == 404


def test_event_type_response_reads_orm_attributes(make_user, make_event_type) -> None:
    event_type = make_event_type(make_user(), duration_minutes=45, title='Office hours')

    response = EventTypeResponse.model_validate(event_type)

    assert EventTypeResponse.model_config['from_attributes'] is True
    assert response.id == event_type.id
    assert response.title == 'Office hours'
    assert response.duration_minutes == 45
