"""
Admin GraphQL API

Platform-wide analytics and moderation queries; every operation requires the
ADMIN role.
"""

from datetime import datetime
from typing import List, Optional

import strawberry
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from strawberry.fastapi import GraphQLRouter
from strawberry.types import Info

from marketplace.analytics.service import ReportingService
from marketplace.config import get_settings
from marketplace.database.models import Order, SellerProfile, UserRole
from marketplace.serving.api.graphql.context import get_context
from marketplace.serving.api.graphql.types import (
    OrderType,
    PlatformAnalytics,
    SellerProfileType,
    UserAnalytics,
    parse_id,
    reporting_window,
)


@strawberry.type
class Query:

    @strawberry.field
    async def platform_analytics(
        self,
        info: Info,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> PlatformAnalytics:
        """Platform sales, catalog and seller figures; defaults to the trailing 30 days"""
        info.context.require(UserRole.ADMIN, resource="Admin")
        settings = get_settings().analytics
        window = reporting_window(start_date, end_date, settings)

        report = await ReportingService(info.context.session, settings).platform_analytics(window)
        return PlatformAnalytics.from_report(report)

    @strawberry.field
    async def user_analytics(
        self,
        info: Info,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> UserAnalytics:
        """Sign-up and activity figures"""
        info.context.require(UserRole.ADMIN, resource="Admin")
        settings = get_settings().analytics
        window = reporting_window(start_date, end_date, settings)

        report = await ReportingService(info.context.session, settings).user_analytics(window)
        return UserAnalytics.from_report(report)

    @strawberry.field
    async def pending_sellers(self, info: Info) -> List[SellerProfileType]:
        """Seller profiles awaiting verification, newest first"""
        info.context.require(UserRole.ADMIN, resource="Admin")

        result = await info.context.session.execute(
            select(SellerProfile)
            .where(SellerProfile.is_verified.is_(False))
            .options(selectinload(SellerProfile.user))
            .order_by(SellerProfile.created_at.desc())
        )
        return [SellerProfileType.from_model(p) for p in result.scalars().all()]

    @strawberry.field
    async def order(self, info: Info, id: strawberry.ID) -> Optional[OrderType]:
        info.context.require(UserRole.ADMIN, resource="Admin")

        result = await info.context.session.execute(
            select(Order).where(Order.id == parse_id(id)).options(selectinload(Order.items))
        )
        order = result.scalar_one_or_none()
        return OrderType.from_model(order) if order else None


schema = strawberry.Schema(query=Query)


def create_router(graphiql: bool = True) -> GraphQLRouter:
    return GraphQLRouter(
        schema,
        path="",
        context_getter=get_context,
        graphql_ide="graphiql" if graphiql else None,
    )
