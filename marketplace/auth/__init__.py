"""
Authentication and authorization
"""

from marketplace.auth.guard import Verdict, authorize, enforce, ensure_owned
from marketplace.auth.tokens import (
    Identity,
    create_access_token,
    decode_access_token,
    extract_bearer_token,
)

__all__ = [
    "Identity",
    "Verdict",
    "authorize",
    "create_access_token",
    "decode_access_token",
    "enforce",
    "ensure_owned",
    "extract_bearer_token",
]
