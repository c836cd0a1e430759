import jwt
import pytest
from datetime import datetime, timedelta, timezone as dt_timezone

from nevyra.utils import generate_user_token, is_token_expired, verify_token


@pytest.fixture
def registration():
    return {
        'firstName': 'Asha',
        'lastName': "D'Souza",
        'email': 'asha@example.com',
        'phone': '+919876543210',
        'password': 'Str0ng#Pass',
    }


def test_register_creates_account_without_token(fake_db, api, registration):
    response = api.post('/api/auth/register', registration)

    assert response.status_code == 201
    body = response.json()
    assert body['success'] is True
    assert 'token' not in body['data']
    stored = list(fake_db.docs('users').values())[0]
    assert stored['password'] != registration['password']
    assert stored['isAdmin'] is False


def test_duplicate_email_conflicts(api, registration):
    first = api.post('/api/auth/register', registration)
    second = api.post('/api/auth/register', {**registration, 'phone': None})

    assert second.status_code == 409
    assert second.json()['message'] == 'An account with this email already exists'
    assert 'token' not in first.json()['data']


def test_duplicate_phone_conflicts(api, registration):
    api.post('/api/auth/register', registration)
    response = api.post('/api/auth/register', {**registration, 'email': 'other@example.com'})
    assert response.status_code == 409


@pytest.mark.parametrize('field, value', [
    ('password', 'weakpass'),
    ('email', 'not-an-email'),
    ('firstName', 'A'),
    ('lastName', 'R2D2'),
    ('phone', '12ab'),
])
def test_register_validation(api, registration, field, value):
    response = api.post('/api/auth/register', {**registration, field: value})
    assert response.status_code == 400
    assert response.json()['success'] is False


def test_login_issues_token_with_claims(api, make_user):
    user_id = make_user(email='sam@example.com', password='Secret#123')

    response = api.post('/api/auth/login', {'email': 'sam@example.com', 'password': 'Secret#123'})

    assert response.status_code == 200
    claims = verify_token(response.json()['data']['token'])
    assert claims['id'] == user_id
    assert claims['email'] == 'sam@example.com'
    assert claims['isAdmin'] is False
    assert claims['type'] == 'user'


@pytest.mark.parametrize('email, password', [
    ('sam@example.com', 'Wrong#123'),
    ('nobody@example.com', 'Secret#123'),
])
def test_login_failures_share_one_message(api, make_user, email, password):
    make_user(email='sam@example.com', password='Secret#123')
    response = api.post('/api/auth/login', {'email': email, 'password': password})
    assert response.status_code == 401
    assert response.json()['message'] == 'Invalid email or password'


def test_invalid_json_body(api):
    response = api._client.post('/api/auth/login', data='{not json', content_type='application/json')
    assert response.status_code == 400
    assert response.json()['message'] == 'Invalid JSON data'


def test_wrong_method(api):
    assert api.get('/api/auth/login').status_code == 405


def test_expired_token_is_rejected(api, user_id, settings):
    past = datetime.now(dt_timezone.utc) - timedelta(days=1)
    token = jwt.encode(
        {'id': user_id, 'email': 'jane@example.com', 'isAdmin': False, 'type': 'user', 'exp': past},
        settings.JWT_SECRET,
        algorithm='HS256',
    )
    api.token = token

    response = api.get('/api/auth/profile')

    assert response.status_code == 401
    assert response.json()['message'] == 'Token has expired'
    assert is_token_expired(token)


def test_tampered_token_is_rejected(api, user_id):
    api.token = generate_user_token(user_id, 'jane@example.com') + 'x'
    response = api.get('/api/auth/profile')
    assert response.status_code == 401
    assert response.json()['message'] == 'Invalid token'


def test_profile_hides_secrets(user_api):
    profile = user_api.get('/api/auth/profile').json()['data']
    assert profile['email'] == 'jane@example.com'
    assert 'password' not in profile
    assert 'resetPasswordOTP' not in profile


def test_profile_update_and_phone_conflict(user_api, make_user):
    make_user(email='taken@example.com', phone='9999999999')

    response = user_api.patch('/api/auth/profile', {'firstName': 'Janet'})
    assert response.json()['data']['firstName'] == 'Janet'

    response = user_api.patch('/api/auth/profile', {'phone': '9999999999'})
    assert response.status_code == 409


def test_address_book(user_api, address):
    assert user_api.post('/api/auth/addresses', address).status_code == 201
    user_api.post('/api/auth/addresses', {**address, 'city': 'Mysuru'})

    updated = user_api.patch('/api/auth/addresses/1', {**address, 'city': 'Mangaluru'}).json()['data']
    assert [a['city'] for a in updated] == ['Bengaluru', 'Mangaluru']

    remaining = user_api.delete('/api/auth/addresses/0').json()['data']
    assert [a['city'] for a in remaining] == ['Mangaluru']

    assert user_api.delete('/api/auth/addresses/5').status_code == 404
    assert user_api.post('/api/auth/addresses', {**address, 'state': ''}).status_code == 400


def test_recent_searches_are_unique_and_capped(user_api):
    for term in ['phone', 'laptop', 'PHONE', 'a', 'b', 'c', 'd', 'e', 'f']:
        user_api.post('/api/users/recent-searches', {'term': term})

    searches = user_api.get('/api/users/recent-searches').json()['data']
    assert searches == ['f', 'e', 'd', 'c', 'b', 'a', 'PHONE']
    assert user_api.post('/api/users/recent-searches', {'term': ' '}).status_code == 400


def test_popular_searches_fall_back_to_defaults(api):
    assert api.get('/api/users/popular-searches').json()['data'][0] == 'laptop'


def test_popular_searches_count_across_users(api, make_user):
    make_user(email='a@example.com', recentSearches=['Shoes', 'watch'])
    make_user(email='b@example.com', recentSearches=['shoes'])
    assert api.get('/api/users/popular-searches').json()['data'][0] == 'shoes'


def test_health_and_unknown_route(api):
    assert api.get('/api/health').json()['success'] is True
    response = api.get('/api/nowhere')
    assert response.status_code == 404
    assert response.json()['success'] is False
