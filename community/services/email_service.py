"""Email delivery through Flask-Mail or the Resend HTTP API."""
import logging
from dataclasses import dataclass
from typing import List, Optional

import requests
from flask import current_app
from flask_mail import Message
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    """Outcome reported by an email provider."""

    id: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class EmailService:
    """Send emails through the application's Flask-Mail extension."""

    def __init__(self, mail=None):
        """
        Initialize email service.

        Args:
            mail: Flask-Mail instance or state; defaults to the current app's
        """
        self.mail = mail

    def _get_mail(self):
        if self.mail is not None:
            return self.mail
        return current_app.extensions.get('mail')

    def send_email(
        self,
        subject: str,
        recipients: List[str],
        body: str,
        html: Optional[str] = None,
        sender: Optional[str] = None,
        reply_to: Optional[str] = None
    ) -> SendResult:
        """
        Send email.

        Args:
            subject: Email subject
            recipients: List of recipient emails
            body: Plain text body
            html: HTML body
            sender: Sender email
            reply_to: Address replies should go to

        Returns:
            SendResult with ``error`` set when delivery failed
        """
        mail = self._get_mail()
        if not mail:
            logger.warning("Email service not configured")
            return SendResult(error='Email service not configured')

        try:
            msg = Message(
                subject=subject,
                recipients=recipients,
                body=body,
                html=html,
                sender=sender,
                reply_to=reply_to
            )
            mail.send(msg)
            logger.info(f"Email sent to {recipients}")
            return SendResult(id=msg.msgId)
        except Exception as e:
            logger.error(f"Email sending failed: {str(e)}")
            return SendResult(error=str(e))


class ResendEmailService(EmailService):
    """Send emails through the Resend transactional email API."""

    def __init__(self, api_key: str, api_url: str = 'https://api.resend.com/emails', timeout: int = 10):
        super().__init__()
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout

    @retry(
        retry=retry_if_exception_type((requests.exceptions.ConnectionError, requests.exceptions.Timeout)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        reraise=True
    )
    def _post(self, payload: dict) -> requests.Response:
        return requests.post(
            self.api_url,
            json=payload,
            headers={
                'Authorization': f'Bearer {self.api_key}',
                'Content-Type': 'application/json'
            },
            timeout=self.timeout
        )

    def send_email(
        self,
        subject: str,
        recipients: List[str],
        body: str,
        html: Optional[str] = None,
        sender: Optional[str] = None,
        reply_to: Optional[str] = None
    ) -> SendResult:
        if not self.api_key:
            logger.warning("Resend API key missing")
            return SendResult(error='Email service not configured')

        payload = {
            'from': sender,
            'to': recipients,
            'subject': subject,
            'text': body,
        }
        if html:
            payload['html'] = html
        if reply_to:
            payload['reply_to'] = reply_to

        try:
            response = self._post(payload)
        except requests.exceptions.RequestException as e:
            logger.error(f"Resend request failed: {str(e)}")
            return SendResult(error='Unable to reach email provider')

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code >= 400:
            error = data.get('message') or data.get('error') or response.text[:200] or 'Email provider error'
            logger.error(f"Resend responded with {response.status_code}: {error}")
            return SendResult(error=error)

        logger.info(f"Email sent to {recipients}")
        return SendResult(id=data.get('id'))


def get_email_service(app=None) -> EmailService:
    """Build the email backend selected by ``EMAIL_BACKEND``."""
    app = app or current_app
    backend = (app.config.get('EMAIL_BACKEND') or 'mail').lower()

    if backend == 'resend':
        return ResendEmailService(
            api_key=app.config.get('RESEND_API_KEY'),
            api_url=app.config.get('RESEND_API_URL', 'https://api.resend.com/emails'),
            timeout=app.config.get('EMAIL_TIMEOUT', 10)
        )
    return EmailService()
