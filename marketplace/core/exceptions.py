"""
Domain exceptions shared by the three GraphQL surfaces.

Each error carries a machine-readable kind. The ``extensions`` attribute is
picked up by graphql-core when it wraps a resolver exception, so the kind
reaches the client as ``errors[].extensions.code``.
"""

from enum import Enum
from typing import Any, Dict


class ErrorKind(str, Enum):
    """Machine-readable error codes"""
    AUTHENTICATION_REQUIRED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    VALIDATION = "BAD_USER_INPUT"
    INTERNAL = "INTERNAL_SERVER_ERROR"


class MarketplaceError(Exception):
    """Base exception class for the marketplace backend"""

    kind: ErrorKind = ErrorKind.INTERNAL
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def extensions(self) -> Dict[str, Any]:
        return {"code": self.kind.value}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class AuthenticationRequired(MarketplaceError):
    """No (valid) caller identity"""
    kind = ErrorKind.AUTHENTICATION_REQUIRED
    default_message = "Authentication required"


class Forbidden(MarketplaceError):
    """Caller identified but lacks the role"""
    kind = ErrorKind.FORBIDDEN
    default_message = "Forbidden"


class NotFound(MarketplaceError):
    """Resource absent, or not owned by the caller"""
    kind = ErrorKind.NOT_FOUND
    default_message = "Not found"


class ValidationFailed(MarketplaceError):
    kind = ErrorKind.VALIDATION
    default_message = "Invalid input"


class InternalError(MarketplaceError):
    """Unexpected persistence failure"""
    kind = ErrorKind.INTERNAL
