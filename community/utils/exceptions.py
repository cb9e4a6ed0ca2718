"""Exceptions raised by community services and mapped to HTTP responses."""


class CommunityException(Exception):
    """Base class; unhandled subclasses become a 500."""
    pass


class ValidationError(CommunityException):
    """Request data failed a field check (400)."""
    pass


class StorageError(CommunityException):
    """An upload could not be stored, e.g. a disallowed file type (400)."""
    pass


class AuthenticationError(CommunityException):
    """No usable identity for the request (401)."""
    pass


class AuthorizationError(CommunityException):
    """The user does not own the research item (403)."""
    pass


class ResourceNotFoundError(CommunityException):
    """Profile, research item, update or email address missing (404)."""
    pass


class RateLimitError(CommunityException):
    """The sender reached the daily message cap (429)."""
    pass


class ExternalAPIError(CommunityException):
    """The email provider or research API returned an error (502)."""
    pass
