"""Tests for the email backends."""
import smtplib

import pytest
import requests

from community import mail
from community.services.email_service import EmailService, ResendEmailService, get_email_service


class FakeResponse:
    def __init__(self, status_code, payload=None, text=''):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError('no json')
        return self._payload


class TestFlaskMailBackend:

    def test_send_records_message(self, app):
        with mail.record_messages() as outbox:
            result = EmailService().send_email(
                subject='Hello',
                recipients=['bob@example.com'],
                body='Plain',
                html='<p>Plain</p>',
                sender='hello@onearmy.earth'
            )

        assert result.ok
        assert result.id
        assert outbox[0].subject == 'Hello'

    def test_smtp_failure_is_reported(self, app):
        class BrokenMail:
            def send(self, message):
                raise smtplib.SMTPRecipientsRefused({'bob@example.com': (550, b'no such user')})

        result = EmailService(mail=BrokenMail()).send_email(
            subject='Hello', recipients=['bob@example.com'], body='Plain', sender='a@example.com'
        )

        assert not result.ok
        assert 'bob@example.com' in result.error


class TestResendBackend:

    def test_success_returns_provider_id(self, monkeypatch):
        calls = []

        def fake_post(url, json=None, headers=None, timeout=None):
            calls.append((url, json, headers))
            return FakeResponse(200, {'id': 're_123'})

        monkeypatch.setattr(requests, 'post', fake_post)
        service = ResendEmailService(api_key='key', api_url='https://mail.example/emails')

        result = service.send_email(
            subject='Hi', recipients=['bob@example.com'], body='text', html='<p>text</p>',
            sender='hello@onearmy.earth', reply_to='alice@example.com'
        )

        assert result.id == 're_123'
        url, payload, headers = calls[0]
        assert url == 'https://mail.example/emails'
        assert payload == {
            'from': 'hello@onearmy.earth',
            'to': ['bob@example.com'],
            'subject': 'Hi',
            'text': 'text',
            'html': '<p>text</p>',
            'reply_to': 'alice@example.com',
        }
        assert headers['Authorization'] == 'Bearer key'

    def test_provider_rejection_is_reported(self, monkeypatch):
        monkeypatch.setattr(
            requests, 'post',
            lambda *args, **kwargs: FakeResponse(429, {'message': 'Too many requests, slow down'})
        )

        result = ResendEmailService(api_key='key').send_email(
            subject='Hi', recipients=['bob@example.com'], body='text', sender='a@example.com'
        )

        assert result.error == 'Too many requests, slow down'

    def test_connection_errors_are_retried(self, monkeypatch):
        attempts = []

        def flaky_post(*args, **kwargs):
            attempts.append(1)
            if len(attempts) < 3:
                raise requests.exceptions.ConnectionError('reset by peer')
            return FakeResponse(200, {'id': 're_456'})

        monkeypatch.setattr(requests, 'post', flaky_post)
        monkeypatch.setattr('time.sleep', lambda seconds: None)

        result = ResendEmailService(api_key='key').send_email(
            subject='Hi', recipients=['bob@example.com'], body='text', sender='a@example.com'
        )

        assert result.id == 're_456'
        assert len(attempts) == 3

    def test_unreachable_provider_is_reported(self, monkeypatch):
        def failing_post(*args, **kwargs):
            raise requests.exceptions.ConnectionError('down')

        monkeypatch.setattr(requests, 'post', failing_post)
        monkeypatch.setattr('time.sleep', lambda seconds: None)

        result = ResendEmailService(api_key='key').send_email(
            subject='Hi', recipients=['bob@example.com'], body='text', sender='a@example.com'
        )

        assert result.error == 'Unable to reach email provider'

    def test_missing_api_key(self):
        result = ResendEmailService(api_key=None).send_email(
            subject='Hi', recipients=['bob@example.com'], body='text', sender='a@example.com'
        )
        assert result.error == 'Email service not configured'


@pytest.mark.parametrize('backend, expected', [
    ('mail', EmailService),
    ('resend', ResendEmailService),
])
def test_backend_selection(app, backend, expected):
    app.config['EMAIL_BACKEND'] = backend
    assert type(get_email_service(app)) is expected
