"""Authentication API endpoints."""
import logging

from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    jwt_required
)
from sqlalchemy import or_, func

from community import limiter
from community.models import User, Profile
from community.models.base import db
from community.utils.jwt_helpers import get_current_user_id
from community.utils.validators import validate_email, validate_password, validate_username


bp = Blueprint('auth', __name__)
logger = logging.getLogger(__name__)


def build_user_payload(user: User):
    """User fields plus the matching community profile."""
    payload = user.to_dict()
    profile = Profile.query.filter_by(username=user.username).first()
    payload['profile'] = profile.to_dict() if profile else None
    return payload


@bp.route('/register', methods=['POST'])
@limiter.limit("5 per hour")
def register():
    """
    Register a new user and their profile.

    Request JSON:
        - email: User email
        - username: Username
        - password: Password
        - display_name: Name shown on the profile (optional)

    Returns:
        User data and tokens
    """
    try:
        data = request.get_json() or {}

        email = (data.get('email') or '').strip().lower()
        username = (data.get('username') or '').strip()
        password = data.get('password') or ''

        if not email or not username or not password:
            return jsonify({'error': 'Missing required fields'}), 400

        if not validate_email(email):
            return jsonify({'error': 'Invalid email format'}), 400

        username_valid, username_message = validate_username(username)
        if not username_valid:
            return jsonify({'error': username_message}), 400

        password_valid, password_message = validate_password(password)
        if not password_valid:
            return jsonify({'error': password_message}), 400

        if User.query.filter_by(email=email).first():
            return jsonify({'error': 'Email already registered'}), 409

        if User.query.filter_by(username=username).first() or Profile.query.filter_by(username=username).first():
            return jsonify({'error': 'Username already taken'}), 409

        user = User(email=email, username=username)
        user.set_password(password)
        profile = Profile(
            username=username,
            display_name=(data.get('display_name') or '').strip() or None,
            tenant_id=current_app.config['TENANT_ID']
        )
        db.session.add_all([user, profile])
        db.session.commit()

        access_token = create_access_token(identity=str(user.id))
        refresh_token = create_refresh_token(identity=str(user.id))

        logger.info(f"New user registered: {username}")

        return jsonify({
            'message': 'Registration successful',
            'user': build_user_payload(user),
            'access_token': access_token,
            'refresh_token': refresh_token
        }), 201

    except Exception as e:
        db.session.rollback()
        logger.error(f"Registration failed: {str(e)}")
        return jsonify({'error': 'Registration failed'}), 500


@bp.route('/login', methods=['POST'])
@limiter.limit("10 per minute")
def login():
    """
    Authenticate user and return tokens.

    Request JSON:
        - email: User email or username
        - password: Password

    Returns:
        User data and tokens
    """
    try:
        data = request.get_json() or {}

        identifier = (data.get('email') or '').strip()
        password = data.get('password') or ''

        if not identifier or not password:
            return jsonify({'error': 'Missing credentials'}), 400

        user = User.query.filter(
            or_(
                User.email == identifier.lower(),
                func.lower(User.username) == identifier.lower()
            )
        ).first()

        if not user or not user.check_password(password):
            return jsonify({'error': 'Invalid credentials'}), 401

        if not user.is_active:
            return jsonify({'error': 'Account deactivated'}), 403

        return jsonify({
            'message': 'Login successful',
            'user': build_user_payload(user),
            'access_token': create_access_token(identity=str(user.id)),
            'refresh_token': create_refresh_token(identity=str(user.id))
        }), 200

    except Exception as e:
        logger.error(f"Login failed: {str(e)}")
        return jsonify({'error': 'Login failed'}), 500


@bp.route('/refresh', methods=['POST'])
@jwt_required(refresh=True)
def refresh():
    """Issue a new access token from a refresh token."""
    user_id = get_current_user_id()
    if user_id is None:
        return jsonify({'error': 'Invalid token subject'}), 401

    return jsonify({'access_token': create_access_token(identity=str(user_id))}), 200


@bp.route('/me', methods=['GET'])
@jwt_required()
def get_current_user():
    """Get current authenticated user."""
    user_id = get_current_user_id()
    if user_id is None:
        return jsonify({'error': 'Invalid token subject'}), 401

    user = User.get_by_id(user_id)
    if not user:
        return jsonify({'error': 'User not found'}), 404

    return jsonify({'user': build_user_payload(user)}), 200
