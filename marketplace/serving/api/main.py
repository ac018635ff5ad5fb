"""
FastAPI Application Factory

Creates and configures the API application: middleware, health routes and
the three GraphQL surfaces.
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from marketplace.config import Settings, get_settings
from marketplace.serving.api.graphql import admin, seller, shop
from marketplace.serving.api.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from marketplace.serving.api.routes import health_router


def create_api_app(settings: Optional[Settings] = None, lifespan=None) -> FastAPI:
    """
    Create and configure FastAPI application.

    Args:
        settings: Application settings; the cached settings when omitted
        lifespan: Optional lifespan context manager

    Returns:
        Configured FastAPI app instance
    """
    settings = settings or get_settings()
    graphiql = not settings.is_production

    app = FastAPI(
        title="Marketplace API",
        description="Multi-tenant marketplace backend with shop, seller and admin GraphQL APIs",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    # Add CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add compression
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, allow_graphiql=graphiql)

    app.include_router(health_router, prefix="/api/v1", tags=["Health"])

    app.include_router(shop.create_router(graphiql), prefix="/graphql/shop", tags=["GraphQL"])
    app.include_router(seller.create_router(graphiql), prefix="/graphql/seller", tags=["GraphQL"])
    app.include_router(admin.create_router(graphiql), prefix="/graphql/admin", tags=["GraphQL"])

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": "Marketplace API",
            "version": settings.version,
            "environment": settings.app_env,
            "graphql": {
                "shop": "/graphql/shop",
                "seller": "/graphql/seller",
                "admin": "/graphql/admin",
            },
        }

    return app
