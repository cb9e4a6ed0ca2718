"""Tests for MessageService, mostly with in-memory collaborators."""
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from community.models import Message
from community.models.base import db
from community.services.email_service import SendResult
from community.services.message_service import MessageRepository, MessageService, validate_request
from community.services.tenant_service import TenantSettingsData
from community.utils.exceptions import ExternalAPIError, RateLimitError, ResourceNotFoundError


NOW = datetime(2026, 10, 18, 12, 0, 0)


class FakeProfiles:
    def __init__(self, *profiles):
        self.by_username = {p.username: p for p in profiles}

    def get_by_username(self, username):
        return self.by_username.get(username)


class FakeMessages:
    def __init__(self, sent=0):
        self.sent = sent
        self.created = []
        self.count_calls = []

    def count_sent_since(self, sender_id, since):
        self.count_calls.append((sender_id, since))
        return self.sent

    def create(self, sender_id, receiver_id, text):
        message = SimpleNamespace(id=len(self.created) + 1, sender_id=sender_id, receiver_id=receiver_id, message=text)
        self.created.append(message)
        return message


class FakeSettings:
    def __init__(self, settings=None):
        self.settings = settings or TenantSettingsData()

    def get_settings(self):
        return self.settings


class FakeEmails:
    def __init__(self, by_auth_id=None, by_username=None):
        self.by_auth_id = by_auth_id or {}
        self.by_username = by_username or {}
        self.lookups = []

    def email_for_auth_id(self, auth_id):
        self.lookups.append(('auth_id', auth_id))
        return self.by_auth_id.get(auth_id)

    def email_for_username(self, username):
        self.lookups.append(('username', username))
        return self.by_username.get(username)


class FakeEmailService:
    def __init__(self, result=None):
        self.result = result or SendResult(id='email-1')
        self.sent = []

    def send_email(self, **kwargs):
        self.sent.append(kwargs)
        return self.result


def profile(id, username, auth_id=None):
    return SimpleNamespace(id=id, username=username, auth_id=auth_id)


@pytest.fixture
def build(app):
    def _build(sent=0, recipient_auth_id=None, emails=None, email_service=None, settings=None):
        collaborators = SimpleNamespace(
            profiles=FakeProfiles(profile(1, 'alice'), profile(2, 'bob', recipient_auth_id)),
            messages=FakeMessages(sent),
            tenant_settings=FakeSettings(settings),
            emails=emails or FakeEmails(by_username={'bob': 'bob@example.com'}),
            email_service=email_service or FakeEmailService(),
        )
        service = MessageService(
            profiles=collaborators.profiles,
            messages=collaborators.messages,
            tenant_settings=collaborators.tenant_settings,
            emails=collaborators.emails,
            email_service=collaborators.email_service,
            daily_limit=20,
            window=timedelta(hours=24),
            clock=lambda: NOW
        )
        return service, collaborators
    return _build


def send(service, **kwargs):
    params = dict(sender_username='alice', sender_email='alice@example.com', to='bob', text='hi bob')
    params.update(kwargs)
    return service.send_message(**params)


class TestValidateRequest:
    user = SimpleNamespace(email='alice@example.com')

    def test_missing_user_wins_over_everything(self):
        assert validate_request('GET', None, {}) == (401, 'unauthorized')

    def test_method_checked_before_fields(self):
        assert validate_request('GET', self.user, {}) == (405, 'method not allowed')

    def test_to_checked_before_message(self):
        assert validate_request('POST', self.user, {}) == (400, 'to is required')

    def test_message_required(self):
        assert validate_request('POST', self.user, {'to': 'bob'}) == (400, 'message is required')

    def test_sender_email_required(self):
        user = SimpleNamespace(email=None)
        data = {'to': 'bob', 'message': 'hi'}
        assert validate_request('POST', user, data) == (400, 'Unable to get messenger email address')

    def test_valid_request(self):
        assert validate_request('POST', self.user, {'to': 'bob', 'message': 'hi'}) is None


class TestSendMessage:

    def test_counts_strictly_within_window(self, app, build):
        service, fakes = build()
        send(service)
        assert fakes.messages.count_calls == [(1, NOW - timedelta(hours=24))]

    def test_nineteen_sent_allows_one_more(self, app, build):
        service, fakes = build(sent=19)
        message = send(service)
        assert message.sender_id == 1
        assert message.receiver_id == 2
        assert len(fakes.messages.created) == 1

    @pytest.mark.parametrize('sent', [20, 21, 100])
    def test_limit_reached(self, app, build, sent):
        service, fakes = build(sent=sent)
        with pytest.raises(RateLimitError):
            send(service)
        assert fakes.messages.created == []
        assert fakes.email_service.sent == []

    def test_email_uses_username_without_legacy_id(self, app, build):
        service, fakes = build()
        send(service)
        assert fakes.emails.lookups == [('username', 'bob')]
        assert fakes.email_service.sent[0]['recipients'] == ['bob@example.com']

    def test_email_uses_legacy_id_when_present(self, app, build):
        emails = FakeEmails(by_auth_id={'old-9': 'bob-old@example.com'})
        service, fakes = build(recipient_auth_id='old-9', emails=emails)
        send(service)
        assert fakes.emails.lookups == [('auth_id', 'old-9')]
        assert fakes.email_service.sent[0]['recipients'] == ['bob-old@example.com']

    def test_missing_recipient_email(self, app, build):
        service, fakes = build(emails=FakeEmails())
        with pytest.raises(ResourceNotFoundError):
            send(service)
        assert len(fakes.messages.created) == 1

    def test_missing_sender_profile(self, app, build):
        service, _ = build()
        with pytest.raises(ResourceNotFoundError):
            send(service, sender_username='ghost')

    def test_provider_error_keeps_message(self, app, build):
        service, fakes = build(email_service=FakeEmailService(SendResult(error='rejected')))
        with pytest.raises(ExternalAPIError, match='rejected'):
            send(service)
        assert len(fakes.messages.created) == 1

    def test_email_content(self, app, build):
        settings = TenantSettingsData(site_name='Fixing Factory', email_from='team@fixing.example')
        service, fakes = build(settings=settings)
        send(service, name='Ally', text='Can I borrow your extruder?')

        email = fakes.email_service.sent[0]
        assert email['subject'] == 'alice sent you a message via Fixing Factory!'
        assert email['sender'] == 'team@fixing.example'
        assert email['reply_to'] == 'alice@example.com'
        assert 'Can I borrow your extruder?' in email['body']
        assert 'Ally (alice)' in email['body']
        assert 'Fixing Factory' in email['html']


class TestMessageRepository:

    def test_window_start_is_exclusive(self, app, make_member):
        _, sender = make_member('alice')
        _, receiver = make_member('bob')
        since = datetime(2026, 10, 17, 12, 0, 0)
        for created_at in (since - timedelta(seconds=1), since, since + timedelta(seconds=1)):
            db.session.add(Message(
                sender_id=sender.id,
                receiver_id=receiver.id,
                message='hi',
                tenant_id=app.config['TENANT_ID'],
                created_at=created_at
            ))
        db.session.commit()

        repository = MessageRepository(app.config['TENANT_ID'])

        assert repository.count_sent_since(sender.id, since) == 1
        assert repository.count_sent_since(receiver.id, since) == 0

    def test_create_stores_tenant(self, app, make_member):
        _, sender = make_member('alice')
        _, receiver = make_member('bob')

        message = MessageRepository('tenant-a').create(sender.id, receiver.id, 'hello')

        assert db.session.get(Message, message.id).tenant_id == 'tenant-a'
