"""Utility helpers for working with JWT identities."""
import logging
from typing import Optional

from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

logger = logging.getLogger(__name__)


def get_current_user_id() -> Optional[int]:
    """Return the authenticated user's ID as an integer if possible."""
    identity = get_jwt_identity()
    if identity is None:
        return None

    try:
        return int(identity)
    except (TypeError, ValueError):
        logger.warning("Invalid JWT identity encountered", extra={"identity": identity})
        return None


def get_optional_user():
    """
    Resolve the authenticated user without rejecting the request.

    Missing, malformed and expired tokens all resolve to ``None`` so the
    caller decides how to answer an anonymous request.
    """
    from community.models import User

    try:
        verify_jwt_in_request(optional=True)
    except (JWTExtendedException, PyJWTError) as exc:
        logger.debug(f"Ignoring unusable JWT: {exc}")
        return None

    user_id = get_current_user_id()
    if user_id is None:
        return None

    user = User.get_by_id(user_id)
    if not user or not user.is_active:
        return None
    return user
