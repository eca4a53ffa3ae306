"""
Error taxonomy for the identity kernel.

Flows raise these; the HTTP layer maps each to one status code.
Messages are deliberately coarse: callers learn the category, never the cause.
"""

from typing import Optional


class IdentityError(Exception):
    """Base class for authentication and authorization failures."""

    status_code: int = 400
    default_detail: str = "Request could not be processed"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ConflictError(IdentityError):
    """Email or username already taken within an actor kind."""

    status_code = 409
    default_detail = "Email or username already exists"


class UnauthorizedError(IdentityError):
    """Bad credentials, bad token, or a session that is no longer live."""

    status_code = 401
    default_detail = "Not authenticated"


class ForbiddenError(IdentityError):
    """A known, live actor that the operation's policy does not admit."""

    status_code = 403
    default_detail = "Insufficient permissions"


class NotFoundError(IdentityError):
    """Management target does not exist (never raised by the guard)."""

    status_code = 404
    default_detail = "Resource not found"

    def __init__(self, resource: str, identifier: object):
        super().__init__(f"{resource} {identifier} not found")
        self.resource = resource
        self.identifier = identifier


class InvalidRequestError(IdentityError):
    """Well-formed input that does not apply to this actor kind."""

    status_code = 422
    default_detail = "Invalid request"


INVALID_CREDENTIALS = "Invalid credentials"
INVALID_TOKEN = "Invalid or expired token"
INVALID_REFRESH_TOKEN = "Invalid or expired refresh token"
