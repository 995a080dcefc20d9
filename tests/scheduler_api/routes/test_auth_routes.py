import jwt
import pytest
from pydantic import ValidationError

from scheduler_api.auth import jwt_handler
from scheduler_api.core import config
from scheduler_api.routes.auth_routes import RegisterRequest


def test_register_request_normalizes_email() -> None:
    request = RegisterRequest(name=' Ada ', email=' ADA@EXAMPLE.COM ', password='secret123')

    assert request.name == 'Ada'
    assert request.email == 'ada@example.com'
    assert request.username is None


def test_register_request_rejects_short_password() -> None:
    with pytest.raises(ValidationError):
        RegisterRequest(name='Ada', email='ada@example.com', password='123')


def test_access_token_carries_user_id() -> None:
    token = jwt_handler.create_access_token(42)

    assert jwt_handler.decode_user_id(token) == 42


def test_token_with_non_numeric_subject_is_invalid() -> None:
    token = jwt.encode({'sub': 'admin'}, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)

    with pytest.raises(jwt.InvalidTokenError):
        jwt_handler.decode_user_id(token)


def test_register_login_and_me(client) -> None:
    registered = client.post(
        '/api/auth/register',
        json={'name': 'Ada', 'email': 'ada@example.com', 'password': 'secret123'},
    )
    assert registered.status_code == 201
    assert registered.json()['user']['username'] == 'ada'

    login = client.post('/api/auth/login', json={'email': 'ADA@example.com', 'password': 'secret123'})
    assert login.status_code == 200
    token = login.json()['access_token']

    me = client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})
    assert me.status_code == 200
    assert me.json()['email'] == 'ada@example.com'


def test_register_rejects_taken_email(client, make_user) -> None:
    make_user(email='ada@example.com')

    response = client.post(
        '/api/auth/register',
        json={'name': 'Ada', 'email': 'ada@example.com', 'password': 'secret123', 'username': 'someone'},
    )

    assert response.status_code == 409
    assert response.json()['kind'] == 'conflict'


def test_login_rejects_wrong_password(client, make_user) -> None:
    make_user(email='ada@example.com', password='secret123')

    response = client.post('/api/auth/login', json={'email': 'ada@example.com', 'password': 'wrong-password'})

    assert response.status_code == 401
    assert response.json()['detail'] == 'Invalid email or password'


def test_invalid_token_is_rejected(client) -> None:
    response = client.get('/api/auth/me', headers={'Authorization': 'Bearer not-a-token'})

    assert response.status_code == 401
    assert response.json()['detail'] == 'Invalid token'
