# Overview: Pytest coverage for registration, login, logout and session checks.

from datetime import timedelta

from tally.models import SessionToken
from tally.services.session_service import create_session, validate_session
from tally.time_utils import utcnow

from conftest import PASSWORD, auth_headers, get_auth_token


class TestRegistration:

    def test_register_creates_user(self, client, db_session):
        response = client.post('/api/auth/register', json={
            'email': 'New.Seller@Example.com',
            'password': 'Sup3rSecret',
            'name': 'New Seller',
        })
        assert response.status_code == 201
        user = response.json['user']
        assert user['email'] == 'new.seller@example.com'
        assert user['name'] == 'New Seller'
        assert 'password_hash' not in user

    def test_register_rejects_duplicate_email(self, client, user_a):
        response = client.post('/api/auth/register', json={
            'email': user_a.email,
            'password': 'Sup3rSecret',
        })
        assert response.status_code == 400

    def test_register_rejects_weak_password(self, client, db_session):
        response = client.post('/api/auth/register', json={
            'email': 'weak@example.com',
            'password': 'short',
        })
        assert response.status_code == 400
        assert 'at least 8' in response.json['error']

    def test_register_requires_email_and_password(self, client, db_session):
        response = client.post('/api/auth/register', json={'name': 'Nobody'})
        assert response.status_code == 400


class TestLogin:

    def test_login_returns_token(self, client, user_a):
        response = client.post('/api/auth/login', json={
            'email': user_a.email,
            'password': PASSWORD,
        })
        assert response.status_code == 200
        assert len(response.json['token']) == 64
        assert response.json['user']['id'] == user_a.id

    def test_login_wrong_password(self, client, user_a):
        response = client.post('/api/auth/login', json={
            'email': user_a.email,
            'password': 'WrongPassword1',
        })
        assert response.status_code == 401

    def test_me_and_logout(self, client, user_a):
        token = get_auth_token(client, user_a.email)
        headers = auth_headers(token)

        me = client.get('/api/auth/me', headers=headers)
        assert me.status_code == 200
        assert me.json['user']['email'] == user_a.email

        assert client.post('/api/auth/logout', headers=headers).status_code == 200
        assert client.get('/api/auth/me', headers=headers).status_code == 401

    def test_protected_route_requires_token(self, client, db_session):
        assert client.get('/api/materials').status_code == 401
        bad = client.get('/api/materials', headers=auth_headers('not-a-token'))
        assert bad.status_code == 401


class TestSessionTimeouts:

    def test_idle_session_is_revoked(self, db_session, user_a):
        session, token = create_session(user_id=user_a.id)
        session.last_used_at = utcnow() - timedelta(hours=3)
        db_session.commit()

        assert validate_session(token) is None
        assert db_session.get(SessionToken, session.id).is_revoked is True

    def test_expired_session_is_rejected(self, db_session, user_a):
        session, token = create_session(user_id=user_a.id)
        session.expires_at = utcnow() - timedelta(minutes=1)
        db_session.commit()

        assert validate_session(token) is None

    def test_inactive_user_session_is_revoked(self, db_session, user_a):
        session, token = create_session(user_id=user_a.id)
        user_a.is_active = False
        db_session.commit()

        assert validate_session(token) is None
