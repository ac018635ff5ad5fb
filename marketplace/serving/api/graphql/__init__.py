"""
GraphQL Module

One Strawberry schema per API surface: shop, seller and admin.
"""
from .context import RequestContext, get_context
from . import admin, seller, shop

__all__ = [
    "RequestContext",
    "get_context",
    "admin",
    "seller",
    "shop",
]
