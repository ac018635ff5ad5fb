"""
Core Module
"""
from .exceptions import (
    ErrorKind,
    MarketplaceError,
    AuthenticationRequired,
    Forbidden,
    NotFound,
    ValidationFailed,
    InternalError,
)

__all__ = [
    "ErrorKind",
    "MarketplaceError",
    "AuthenticationRequired",
    "Forbidden",
    "NotFound",
    "ValidationFailed",
    "InternalError",
]
