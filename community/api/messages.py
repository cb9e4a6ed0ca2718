"""Direct message endpoint."""
from datetime import timedelta
import logging

from flask import Blueprint, request, jsonify, current_app

from community import limiter
from community.services.email_service import get_email_service
from community.services.message_service import (
    EmailLookup,
    MessageRepository,
    MessageService,
    ProfileRepository,
    validate_request
)
from community.services.tenant_service import TenantSettingsRepository
from community.utils.exceptions import ExternalAPIError, RateLimitError
from community.utils.jwt_helpers import get_optional_user


bp = Blueprint('messages', __name__)
logger = logging.getLogger(__name__)

# Every method is routed here so the handler answers 401 before 405
ALL_METHODS = ['GET', 'POST', 'PUT', 'PATCH', 'DELETE']


def is_anonymous() -> bool:
    """Anonymous callers skip the burst limit and are answered 401 by the view."""
    return get_optional_user() is None


def build_message_service() -> MessageService:
    """Wire the message service to the current app's database, cache and mailer."""
    config = current_app.config
    return MessageService(
        profiles=ProfileRepository(),
        messages=MessageRepository(config['TENANT_ID']),
        tenant_settings=TenantSettingsRepository(
            config['TENANT_ID'],
            cache=getattr(current_app, 'cache', None),
            ttl=config.get('TENANT_SETTINGS_CACHE_TTL', 300)
        ),
        emails=EmailLookup(),
        email_service=get_email_service(),
        daily_limit=config['MESSAGE_DAILY_LIMIT'],
        window=timedelta(hours=config['MESSAGE_WINDOW_HOURS'])
    )


@bp.route('', methods=ALL_METHODS)
@limiter.limit(lambda: current_app.config['MESSAGE_BURST_LIMIT'], exempt_when=is_anonymous)
def send_message():
    """
    Send a direct message to another profile.

    Form fields:
        - to: Recipient username
        - message: Message body
        - name: Display name to show instead of the username (optional)

    Returns:
        201 with an empty body on success
    """
    try:
        data = {
            'to': request.form.get('to'),
            'message': request.form.get('message'),
            'name': request.form.get('name') if 'name' in request.form else None,
        }

        user = get_optional_user()

        failure = validate_request(request.method, user, data)
        if failure:
            status, text = failure
            return jsonify({'error': text}), status

        service = build_message_service()
        service.send_message(
            sender_username=user.username,
            sender_email=user.email,
            to=data['to'],
            text=data['message'],
            name=data['name']
        )

        return '', 201

    except RateLimitError as e:
        return jsonify({'error': str(e)}), 429
    except ExternalAPIError as e:
        return jsonify({'error': str(e)}), 429
    except Exception as e:
        logger.exception(f"Sending message failed: {str(e)}")
        return jsonify({'error': 'Error sending message'}), 500
