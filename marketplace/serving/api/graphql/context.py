"""
GraphQL request context

Carries the request session and the caller identity decoded from the bearer
token. Resolvers check access through ``require`` / ``seller_profile``
before touching any data.
"""

from typing import Optional

from fastapi import Depends, Request
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from strawberry.fastapi import BaseContext

from marketplace.auth import Identity, authorize, decode_access_token, enforce, extract_bearer_token
from marketplace.core.exceptions import Forbidden
from marketplace.database import get_db_dependency
from marketplace.database.models import SellerProfile, UserRole

logger = structlog.get_logger(__name__)


class RequestContext(BaseContext):
    """Per-request GraphQL context shared by the shop, seller and admin schemas"""

    def __init__(
        self,
        session: AsyncSession,
        identity: Optional[Identity] = None,
        token_rejected: bool = False,
    ):
        super().__init__()
        self.session = session
        self.identity = identity
        self.token_rejected = token_rejected
        self._seller_profile: Optional[SellerProfile] = None

    def require(self, role: Optional[UserRole] = None, resource: str = "Resource") -> Identity:
        """Return the caller, raising UNAUTHENTICATED or FORBIDDEN first when needed."""
        enforce(
            authorize(self.identity, required_role=role),
            resource=resource,
            token_rejected=self.token_rejected,
        )
        return self.identity

    async def seller_profile(self) -> SellerProfile:
        """The calling seller's profile, looked up once per request."""
        identity = self.require(UserRole.SELLER, resource="Seller")

        if self._seller_profile is None:
            result = await self.session.execute(
                select(SellerProfile).where(SellerProfile.user_id == identity.user_id)
            )
            profile = result.scalar_one_or_none()
            if profile is None:
                logger.warning("Seller without profile", user_id=str(identity.user_id))
                raise Forbidden("Seller profile not found")
            self._seller_profile = profile

        return self._seller_profile


async def get_context(
    request: Request,
    session: AsyncSession = Depends(get_db_dependency),
) -> RequestContext:
    """FastAPI dependency building the GraphQL context for one request."""
    token = extract_bearer_token(request.headers.get("Authorization"))
    identity = decode_access_token(token) if token else None

    if identity is not None:
        structlog.contextvars.bind_contextvars(user_id=str(identity.user_id), role=identity.role.name)

    return RequestContext(
        session=session,
        identity=identity,
        token_rejected=token is not None and identity is None,
    )
