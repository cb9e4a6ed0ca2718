"""Tests for registration and login."""
from community.models import Profile


def register(client, **overrides):
    data = {'email': 'Maker@Example.com', 'username': 'maker', 'password': 'Plastic123', 'display_name': 'The Maker'}
    data.update(overrides)
    return client.post('/api/v1/auth/register', json=data)


def test_register_creates_user_and_profile(app, client):
    response = register(client)

    assert response.status_code == 201
    body = response.get_json()
    assert body['user']['email'] == 'maker@example.com'
    assert body['user']['profile']['display_name'] == 'The Maker'
    assert body['access_token']
    profile = Profile.query.filter_by(username='maker').one()
    assert profile.tenant_id == app.config['TENANT_ID']


def test_register_rejects_duplicates(client):
    register(client)
    assert register(client, username='other').status_code == 409
    assert register(client, email='other@example.com').status_code == 409


def test_register_validates_password(client):
    response = register(client, password='short')
    assert response.status_code == 400


def test_login_by_username_and_me(client):
    register(client)

    response = client.post('/api/v1/auth/login', json={'email': 'maker', 'password': 'Plastic123'})
    assert response.status_code == 200
    token = response.get_json()['access_token']

    me = client.get('/api/v1/auth/me', headers={'Authorization': f'Bearer {token}'})
    assert me.status_code == 200
    assert me.get_json()['user']['profile']['username'] == 'maker'


def test_login_wrong_password(client):
    register(client)
    response = client.post('/api/v1/auth/login', json={'email': 'maker@example.com', 'password': 'Wrong1234'})
    assert response.status_code == 401


def test_refresh_issues_access_token(client):
    refresh_token = register(client).get_json()['refresh_token']
    response = client.post('/api/v1/auth/refresh', headers={'Authorization': f'Bearer {refresh_token}'})
    assert response.status_code == 200
    assert response.get_json()['access_token']
