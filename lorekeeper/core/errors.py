"""
Error taxonomy for the request pipeline.

Every component either returns its success value or raises exactly one
of these. The dispatcher is the only place that turns them into HTTP
responses, using ``status_code`` and ``message``.
"""

from __future__ import annotations

from typing import Any


class LorekeeperError(Exception):
    """Base class for all request-scoped failures."""
    
    status_code: int = 500
    code: str = "internal_error"
    default_message: str = "Internal server error"
    
    def __init__(self, message: Any = None):
        self.message = message if message is not None else self.default_message
        super().__init__(self.message)
    
    @property
    def headers(self) -> dict[str, str]:
        return {}


# =============================================================================
# Authentication (401, except revocation)
# =============================================================================


class AuthenticationError(LorekeeperError):
    """The request did not carry a usable credential."""
    
    status_code = 401
    code = "authentication_error"
    default_message = "Unauthorized"
    
    @property
    def headers(self) -> dict[str, str]:
        return {"WWW-Authenticate": "Bearer"}


class MissingCredentials(AuthenticationError):
    code = "missing_credentials"
    default_message = "Missing bearer token"


class MalformedCredentials(AuthenticationError):
    code = "malformed_credentials"
    default_message = "Malformed bearer token"


class InvalidCredentials(AuthenticationError):
    code = "invalid_credentials"
    default_message = "Invalid token"


class ExpiredCredentials(AuthenticationError):
    code = "expired_credentials"
    default_message = "Token has expired"


class RevokedCredentials(AuthenticationError):
    """A once-valid token that has been explicitly revoked."""
    
    status_code = 403
    code = "revoked_credentials"
    default_message = "Token has been revoked"
    
    @property
    def headers(self) -> dict[str, str]:
        return {}


# =============================================================================
# Authorization
# =============================================================================


class AuthorizationError(LorekeeperError):
    status_code = 403
    code = "authorization_error"
    default_message = "Forbidden"


class InsufficientRole(AuthorizationError):
    code = "insufficient_role"
    default_message = "Forbidden"


# =============================================================================
# Payloads and resources
# =============================================================================


class BadRequest(LorekeeperError):
    """Malformed or truncated transport payload."""
    
    status_code = 400
    code = "bad_request"
    default_message = "Invalid request body"


class RequestAborted(BadRequest):
    """The client went away before the body was fully received."""
    
    code = "request_aborted"
    default_message = "Client disconnected"


class ValidationFailed(LorekeeperError):
    """A payload violated its declared shape."""
    
    status_code = 422
    code = "validation_failed"
    
    def __init__(self, issues: list[dict[str, Any]]):
        self.issues = issues
        super().__init__(issues)


class ResourceNotFound(LorekeeperError):
    status_code = 404
    code = "resource_not_found"
    default_message = "Resource not found"


class RouteNotFound(LorekeeperError):
    status_code = 404
    code = "route_not_found"
    default_message = "Route not found"


class Conflict(LorekeeperError):
    status_code = 409
    code = "conflict"
    default_message = "Resource already exists"
