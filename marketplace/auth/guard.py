"""
Access control gate.

One verdict function covers the role checks of all three APIs and the
ownership checks of seller and customer resources. Ownership mismatches are
reported as NOT_FOUND so callers cannot probe for other tenants' records.
"""

from enum import Enum
from typing import Any, Optional

import structlog

from marketplace.auth.tokens import Identity
from marketplace.core.exceptions import AuthenticationRequired, Forbidden, NotFound
from marketplace.database.models import UserRole

logger = structlog.get_logger(__name__)

INVALID_TOKEN_MESSAGE = "Invalid or expired token"


class Verdict(str, Enum):
    ALLOW = "allow"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"


def authorize(
    caller: Optional[Identity],
    required_role: Optional[UserRole] = None,
    owner_id: Any = None,
    scope_id: Any = None,
) -> Verdict:
    """
    Decide whether ``caller`` may act on a resource.

    Args:
        caller: Authenticated identity, or None for anonymous callers
        required_role: Role the operation demands; None for any signed-in user
        owner_id: Owning identifier of the resource; None when it does not exist
        scope_id: The caller's identifier in the same id space as ``owner_id``.
            Ownership is only checked when this is given.
    """
    if caller is None:
        return Verdict.UNAUTHENTICATED
    if required_role is not None and caller.role != required_role:
        return Verdict.FORBIDDEN
    if scope_id is not None and (owner_id is None or owner_id != scope_id):
        return Verdict.NOT_FOUND
    return Verdict.ALLOW


def enforce(
    verdict: Verdict,
    resource: str = "Resource",
    token_rejected: bool = False,
) -> None:
    """
    Raise the error matching a non-ALLOW verdict.

    ``token_rejected`` marks a request that carried a token which failed
    verification, so the UNAUTHENTICATED message says so.
    """
    if verdict == Verdict.ALLOW:
        return

    logger.info("Access denied", verdict=verdict.value, resource=resource)
    if verdict == Verdict.UNAUTHENTICATED:
        raise AuthenticationRequired(INVALID_TOKEN_MESSAGE if token_rejected else None)
    if verdict == Verdict.FORBIDDEN:
        raise Forbidden(f"{resource} access required")
    raise NotFound(f"{resource} not found")


def ensure_owned(
    caller: Optional[Identity],
    resource: Any,
    owner_attr: str,
    scope_id: Any,
    label: str,
) -> Any:
    """Return ``resource`` when ``resource.<owner_attr>`` equals ``scope_id``; NOT_FOUND otherwise."""
    owner_id = getattr(resource, owner_attr) if resource is not None else None
    enforce(
        authorize(caller, owner_id=owner_id, scope_id=scope_id),
        resource=label,
    )
    return resource
