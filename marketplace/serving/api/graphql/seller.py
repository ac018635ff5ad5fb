"""
Seller GraphQL API

Vendor-facing queries and mutations. Every operation requires the SELLER role
and a seller profile; records of other sellers are reported as missing.
"""

from dataclasses import asdict
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
import uuid

import strawberry
import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from strawberry.fastapi import GraphQLRouter
from strawberry.types import Info

from marketplace.analytics.service import ReportingService
from marketplace.auth import ensure_owned
from marketplace.config import get_settings
from marketplace.core.exceptions import ValidationFailed
from marketplace.database.models import Order, OrderStatus, Product
from marketplace.serving.api.graphql.context import get_context
from marketplace.serving.api.graphql.types import (
    OrderType,
    ProductType,
    SalesAnalytics,
    SellerProfileType,
    TopProduct,
    UpdateOrderStatusInput,
    UpdateProductInput,
    parse_id,
    reporting_window,
    require_page,
    require_positive,
)

logger = structlog.get_logger(__name__)

_MONEY_FIELDS = ("base_price", "sale_price", "cost_price")
_COUNT_FIELDS = ("stock_quantity", "low_stock_threshold")


async def _load_product(session: AsyncSession, product_id: uuid.UUID, refresh: bool = False) -> Optional[Product]:
    query = select(Product).where(Product.id == product_id).options(selectinload(Product.category))
    if refresh:
        query = query.execution_options(populate_existing=True)
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def _load_order(session: AsyncSession, order_id: uuid.UUID, refresh: bool = False) -> Optional[Order]:
    query = select(Order).where(Order.id == order_id).options(selectinload(Order.items))
    if refresh:
        query = query.execution_options(populate_existing=True)
    result = await session.execute(query)
    return result.scalar_one_or_none()


def _validate_product_input(data: dict) -> None:
    for name in _MONEY_FIELDS + _COUNT_FIELDS:
        if data.get(name) is not None and data[name] < 0:
            raise ValidationFailed(f"{name} must not be negative")


@strawberry.type
class Query:

    @strawberry.field
    async def my_profile(self, info: Info) -> SellerProfileType:
        return SellerProfileType.from_model(await info.context.seller_profile())

    @strawberry.field
    async def my_product(self, info: Info, id: strawberry.ID) -> ProductType:
        profile = await info.context.seller_profile()
        product = ensure_owned(
            info.context.identity,
            await _load_product(info.context.session, parse_id(id)),
            owner_attr="seller_id",
            scope_id=profile.id,
            label="Product",
        )
        return ProductType.from_model(product)

    @strawberry.field
    async def my_orders(
        self,
        info: Info,
        status: Optional[OrderStatus] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[OrderType]:
        """Orders placed with the caller's store, newest first"""
        profile = await info.context.seller_profile()
        require_page(limit, offset)

        query = (
            select(Order)
            .where(Order.seller_id == profile.id)
            .options(selectinload(Order.items))
        )
        if status is not None:
            query = query.where(Order.status == status)
        query = query.order_by(Order.created_at.desc()).offset(offset).limit(limit)

        result = await info.context.session.execute(query)
        return [OrderType.from_model(o) for o in result.scalars().all()]

    @strawberry.field
    async def my_order(self, info: Info, id: strawberry.ID) -> OrderType:
        profile = await info.context.seller_profile()
        order = ensure_owned(
            info.context.identity,
            await _load_order(info.context.session, parse_id(id)),
            owner_attr="seller_id",
            scope_id=profile.id,
            label="Order",
        )
        return OrderType.from_model(order)

    @strawberry.field
    async def sales_analytics(
        self,
        info: Info,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> SalesAnalytics:
        """Sales of the caller's store; defaults to the trailing 30 days"""
        profile = await info.context.seller_profile()
        settings = get_settings().analytics
        window = reporting_window(start_date, end_date, settings)

        service = ReportingService(info.context.session, settings)
        report = await service.sales_analytics(window, seller_id=profile.id)
        return SalesAnalytics.from_report(report)

    @strawberry.field
    async def top_products(self, info: Info, limit: Optional[int] = None) -> List[TopProduct]:
        """Best selling products of the caller's store by revenue (10 by default)"""
        profile = await info.context.seller_profile()
        require_positive(limit)

        service = ReportingService(info.context.session)
        ranked = await service.top_products(profile.id, limit=limit)
        return [TopProduct.from_sales(entry) for entry in ranked]


@strawberry.type
class Mutation:

    @strawberry.mutation
    async def update_product(
        self,
        info: Info,
        id: strawberry.ID,
        input: UpdateProductInput,
    ) -> ProductType:
        profile = await info.context.seller_profile()
        session = info.context.session

        product = ensure_owned(
            info.context.identity,
            await _load_product(session, parse_id(id)),
            owner_attr="seller_id",
            scope_id=profile.id,
            label="Product",
        )

        data = {
            name: value
            for name, value in asdict(input).items()
            if value is not None
        }
        _validate_product_input(data)

        if "sku" in data and data["sku"] != product.sku:
            existing = await session.execute(select(Product.id).where(Product.sku == data["sku"]))
            if existing.scalar_one_or_none() is not None:
                raise ValidationFailed("SKU already exists")
        if "category_id" in data:
            data["category_id"] = parse_id(data["category_id"], "categoryId")
        for name in _MONEY_FIELDS:
            if name in data:
                data[name] = Decimal(str(data[name]))

        for name, value in data.items():
            setattr(product, name, value)
        await session.flush()

        logger.info(
            "Product updated",
            product_id=str(product.id),
            seller_id=str(profile.id),
            fields=sorted(data),
        )
        return ProductType.from_model(await _load_product(session, product.id, refresh=True))

    @strawberry.mutation
    async def update_order_status(self, info: Info, input: UpdateOrderStatusInput) -> OrderType:
        profile = await info.context.seller_profile()
        session = info.context.session

        order = ensure_owned(
            info.context.identity,
            await _load_order(session, parse_id(input.order_id, "orderId")),
            owner_attr="seller_id",
            scope_id=profile.id,
            label="Order",
        )
        previous = order.status
        order.status = input.status
        await session.flush()

        logger.info(
            "Order status updated",
            order_id=str(order.id),
            seller_id=str(profile.id),
            previous=previous.name,
            status=input.status.name,
        )
        return OrderType.from_model(await _load_order(session, order.id, refresh=True))


schema = strawberry.Schema(query=Query, mutation=Mutation)


def create_router(graphiql: bool = True) -> GraphQLRouter:
    return GraphQLRouter(
        schema,
        path="",
        context_getter=get_context,
        graphql_ide="graphiql" if graphiql else None,
    )
