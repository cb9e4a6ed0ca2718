"""Shared pytest fixtures."""
from datetime import datetime, timedelta

import pytest
from flask_jwt_extended import create_access_token

from community import create_app
from community.models import Message, Profile, User
from community.models.base import db


@pytest.fixture
def app(tmp_path):
    app = create_app('testing')
    app.config['UPLOAD_FOLDER'] = tmp_path / 'uploads'
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_member(app):
    """Create a user account with a matching profile."""
    def _make(username, email='auto', auth_id=None):
        if email == 'auto':
            email = f'{username}@example.com'
        user = User(email=email, username=username, auth_id=auth_id)
        user.set_password('Secret123')
        profile = Profile(username=username, auth_id=auth_id, tenant_id=app.config['TENANT_ID'])
        db.session.add_all([user, profile])
        db.session.commit()
        return user, profile
    return _make


@pytest.fixture
def auth_headers(app):
    def _headers(user):
        token = create_access_token(identity=str(user.id))
        return {'Authorization': f'Bearer {token}'}
    return _headers


@pytest.fixture
def seed_messages(app):
    """Insert ``count`` messages from ``sender`` created ``age`` ago."""
    def _seed(sender, receiver, count, age=timedelta(hours=1)):
        created_at = datetime.utcnow() - age
        for i in range(count):
            db.session.add(Message(
                sender_id=sender.id,
                receiver_id=receiver.id,
                message=f'earlier message {i}',
                tenant_id=app.config['TENANT_ID'],
                created_at=created_at
            ))
        db.session.commit()
    return _seed
