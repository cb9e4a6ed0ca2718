"""Direct messaging with a rolling per-sender cap and email notification."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional, Tuple

from flask import render_template

from community.models import Message, Profile, User
from community.models.base import db
from community.services.email_service import EmailService
from community.services.tenant_service import TenantSettingsData, TenantSettingsRepository
from community.utils.exceptions import ExternalAPIError, RateLimitError, ResourceNotFoundError

logger = logging.getLogger(__name__)

SPAM_PROTECTION_MESSAGE = (
    "You've contacted a lot of people today! "
    "So to protect the platform from spam we haven't sent this message."
)


def validate_request(method: str, user: Optional[Any], data: Mapping[str, Any]) -> Optional[Tuple[int, str]]:
    """
    Check a message submission before anything is read or written.

    Args:
        method: HTTP method of the request
        user: Authenticated user or ``None``
        data: Submitted ``to``/``message``/``name`` fields

    Returns:
        ``(status, text)`` for the first failing check, ``None`` when valid
    """
    if not user:
        return 401, 'unauthorized'

    if method != 'POST':
        return 405, 'method not allowed'

    if not data.get('to'):
        return 400, 'to is required'

    if not data.get('message'):
        return 400, 'message is required'

    if not getattr(user, 'email', None):
        return 400, 'Unable to get messenger email address'

    return None


class ProfileRepository:
    """Profile lookups by username."""

    def get_by_username(self, username: str) -> Optional[Profile]:
        return Profile.query.filter_by(username=username).first()


class MessageRepository:
    """Message persistence scoped to one tenant."""

    def __init__(self, tenant_id: str):
        self.tenant_id = tenant_id

    def count_sent_since(self, sender_id: int, since: datetime) -> int:
        """Messages from ``sender_id`` created strictly after ``since``."""
        return Message.query.filter(
            Message.sender_id == sender_id,
            Message.created_at > since
        ).count()

    def create(self, sender_id: int, receiver_id: int, text: str) -> Message:
        message = Message(
            sender_id=sender_id,
            receiver_id=receiver_id,
            message=text,
            tenant_id=self.tenant_id
        )
        db.session.add(message)
        db.session.commit()
        return message


class EmailLookup:
    """Resolve a profile's notification address from its auth account."""

    def email_for_auth_id(self, auth_id: str) -> Optional[str]:
        user = User.query.filter_by(auth_id=auth_id).first()
        return user.email if user else None

    def email_for_username(self, username: str) -> Optional[str]:
        user = User.query.filter_by(username=username).first()
        return user.email if user else None


@dataclass
class RenderedEmail:
    subject: str
    text: str
    html: str


def render_receiver_message(
    settings: TenantSettingsData,
    text: str,
    receiver_name: str,
    messenger_username: str,
    messenger_email_address: str,
    messenger_name: Optional[str] = None
) -> RenderedEmail:
    """Render the notification sent to a message's recipient."""
    context = {
        'settings': settings,
        'text': text,
        'receiver_name': receiver_name,
        'messenger_username': messenger_username,
        'messenger_email_address': messenger_email_address,
        'messenger_name': messenger_name,
    }
    return RenderedEmail(
        subject=f"{messenger_username} sent you a message via {settings.site_name}!",
        text=render_template('emails/receiver_message.txt', **context),
        html=render_template('emails/receiver_message.html', **context),
    )


class MessageService:
    """
    Send a direct message from the authenticated user to another profile.

    The message row is written before the email goes out and is kept when
    the provider rejects the email.
    """

    def __init__(
        self,
        profiles: ProfileRepository,
        messages: MessageRepository,
        tenant_settings: TenantSettingsRepository,
        emails: EmailLookup,
        email_service: EmailService,
        daily_limit: int = 20,
        window: timedelta = timedelta(hours=24),
        clock=datetime.utcnow
    ):
        self.profiles = profiles
        self.messages = messages
        self.tenant_settings = tenant_settings
        self.emails = emails
        self.email_service = email_service
        self.daily_limit = daily_limit
        self.window = window
        self.clock = clock

    def send_message(
        self,
        sender_username: str,
        sender_email: str,
        to: str,
        text: str,
        name: Optional[str] = None
    ) -> Message:
        """
        Persist a message and notify its recipient by email.

        Args:
            sender_username: Username of the authenticated sender
            sender_email: Email of the authenticated sender
            to: Recipient username
            text: Message body
            name: Optional display name the sender wants to appear as

        Returns:
            The stored message

        Raises:
            ResourceNotFoundError: A profile or the recipient email is missing
            RateLimitError: The sender reached the daily cap; nothing stored
            ExternalAPIError: The email provider rejected the notification
        """
        sender = self.profiles.get_by_username(sender_username)
        if sender is None:
            raise ResourceNotFoundError(f"No profile for sender {sender_username}")

        recipient = self.profiles.get_by_username(to)
        if recipient is None:
            raise ResourceNotFoundError(f"No profile for recipient {to}")

        since = self.clock() - self.window
        sent = self.messages.count_sent_since(sender.id, since)
        if sent >= self.daily_limit:
            logger.info(f"Daily message limit reached for {sender_username} ({sent} sent)")
            raise RateLimitError(SPAM_PROTECTION_MESSAGE)

        message = self.messages.create(sender.id, recipient.id, text)

        settings = self.tenant_settings.get_settings()

        # Profiles without an auth id predate the current identity system
        if recipient.auth_id:
            receiver_email = self.emails.email_for_auth_id(recipient.auth_id)
        else:
            receiver_email = self.emails.email_for_username(to)
        if not receiver_email:
            raise ResourceNotFoundError(f"No email address for recipient {to}")

        email = render_receiver_message(
            settings=settings,
            text=text,
            receiver_name=to,
            messenger_username=sender.username,
            messenger_email_address=sender_email,
            messenger_name=name
        )

        result = self.email_service.send_email(
            subject=email.subject,
            recipients=[receiver_email],
            body=email.text,
            html=email.html,
            sender=settings.email_from,
            reply_to=sender_email
        )
        if result.error:
            logger.warning(f"Message {message.id} stored but notification failed: {result.error}")
            raise ExternalAPIError(result.error)

        logger.info(f"Message {message.id} sent from {sender.username} to {to}")
        return message
