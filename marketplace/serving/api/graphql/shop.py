"""
Shop GraphQL API

Customer-facing catalog and order queries. Catalog reads are public; the
caller's own account and orders require a signed-in user.
"""

from typing import List, Optional

import strawberry
from sqlalchemy import or_, select
from sqlalchemy.orm import selectinload
from strawberry.fastapi import GraphQLRouter
from strawberry.types import Info

from marketplace.auth import ensure_owned
from marketplace.core.exceptions import NotFound, ValidationFailed
from marketplace.database.models import Category, Order, Product, ProductStatus, User
from marketplace.serving.api.graphql.context import get_context
from marketplace.serving.api.graphql.types import (
    CategoryType,
    OrderType,
    ProductFilterInput,
    ProductType,
    UserType,
    parse_id,
    require_page,
)


@strawberry.type
class Query:

    @strawberry.field
    async def products(
        self,
        info: Info,
        filter: Optional[ProductFilterInput] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> List[ProductType]:
        """Active products, newest first"""
        require_page(limit, offset)

        query = (
            select(Product)
            .where(Product.status == ProductStatus.ACTIVE)
            .options(selectinload(Product.category))
        )
        if filter:
            if filter.category_id:
                query = query.where(Product.category_id == parse_id(filter.category_id, "categoryId"))
            if filter.min_price is not None:
                query = query.where(Product.base_price >= filter.min_price)
            if filter.max_price is not None:
                query = query.where(Product.base_price <= filter.max_price)
            if filter.search:
                pattern = f"%{filter.search}%"
                query = query.where(
                    or_(Product.name.ilike(pattern), Product.description.ilike(pattern))
                )

        query = query.order_by(Product.created_at.desc()).offset(offset).limit(limit)
        result = await info.context.session.execute(query)
        return [ProductType.from_model(p) for p in result.scalars().all()]

    @strawberry.field
    async def product(
        self,
        info: Info,
        id: Optional[strawberry.ID] = None,
        slug: Optional[str] = None,
    ) -> Optional[ProductType]:
        """Single product by id or slug"""
        if id is None and slug is None:
            raise ValidationFailed("Either id or slug is required")

        query = select(Product).options(selectinload(Product.category))
        if id is not None:
            query = query.where(Product.id == parse_id(id))
        else:
            query = query.where(Product.slug == slug)

        result = await info.context.session.execute(query.limit(1))
        product = result.scalars().first()
        return ProductType.from_model(product) if product else None

    @strawberry.field
    async def categories(self, info: Info) -> List[CategoryType]:
        """Active categories in display order"""
        result = await info.context.session.execute(
            select(Category)
            .where(Category.is_active.is_(True))
            .order_by(Category.sort_order, Category.name)
        )
        return [CategoryType.from_model(c) for c in result.scalars().all()]

    @strawberry.field
    async def me(self, info: Info) -> UserType:
        identity = info.context.require()
        user = await info.context.session.get(User, identity.user_id)
        if user is None:
            raise NotFound("User not found")
        return UserType.from_model(user)

    @strawberry.field
    async def my_orders(self, info: Info, limit: int = 10, offset: int = 0) -> List[OrderType]:
        """The caller's orders, newest first"""
        identity = info.context.require()
        require_page(limit, offset)

        result = await info.context.session.execute(
            select(Order)
            .where(Order.user_id == identity.user_id)
            .options(selectinload(Order.items))
            .order_by(Order.created_at.desc())
            .offset(offset)
            .limit(limit)
        )
        return [OrderType.from_model(o) for o in result.scalars().all()]

    @strawberry.field
    async def order(self, info: Info, id: strawberry.ID) -> OrderType:
        """One of the caller's orders; other customers' orders are reported as missing"""
        identity = info.context.require()

        result = await info.context.session.execute(
            select(Order).where(Order.id == parse_id(id)).options(selectinload(Order.items))
        )
        order = ensure_owned(
            identity,
            result.scalar_one_or_none(),
            owner_attr="user_id",
            scope_id=identity.user_id,
            label="Order",
        )
        return OrderType.from_model(order)


schema = strawberry.Schema(query=Query)


def create_router(graphiql: bool = True) -> GraphQLRouter:
    return GraphQLRouter(
        schema,
        path="",
        context_getter=get_context,
        graphql_ide="graphiql" if graphiql else None,
    )
