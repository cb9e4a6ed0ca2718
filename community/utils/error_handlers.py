"""Error handlers for the application."""
from flask import jsonify
from werkzeug.exceptions import HTTPException

from community.utils.exceptions import (
    CommunityException,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    ResourceNotFoundError,
    RateLimitError,
    ExternalAPIError,
    StorageError
)


def register_handlers(app):
    """Register error handlers with the Flask app."""
    def handle_error(status_code, message):
        return jsonify({'error': message}), status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return handle_error(400, str(e))

    @app.errorhandler(StorageError)
    def handle_storage_error(e):
        return handle_error(400, str(e))

    @app.errorhandler(AuthenticationError)
    def handle_authentication_error(e):
        return handle_error(401, str(e))

    @app.errorhandler(AuthorizationError)
    def handle_authorization_error(e):
        return handle_error(403, str(e))

    @app.errorhandler(ResourceNotFoundError)
    def handle_not_found_error(e):
        return handle_error(404, str(e))

    @app.errorhandler(RateLimitError)
    def handle_rate_limit_error(e):
        return handle_error(429, str(e))

    @app.errorhandler(ExternalAPIError)
    def handle_external_api_error(e):
        return handle_error(502, str(e))

    @app.errorhandler(CommunityException)
    def handle_base_exception(e):
        app.logger.error(f"Unhandled application error: {str(e)}")
        return handle_error(500, 'Application error')

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return handle_error(e.code, e.description)

    @app.errorhandler(500)
    def handle_500(e):
        app.logger.error(f"Internal server error: {str(e)}")
        return handle_error(500, 'An unexpected error occurred. Please try again later.')
