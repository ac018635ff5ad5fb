"""
Integration Tests - HTTP Application
"""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from marketplace.auth import create_access_token
from marketplace.config import Settings
from marketplace.database import get_db_dependency
from marketplace.database.models import User
from marketplace.serving.api import create_api_app
from marketplace.serving.api.routes import health

PROFILE_QUERY = "{ myProfile { businessName } }"


@pytest_asyncio.fixture
async def client(test_db):
    """HTTP client bound to the app with the test session injected"""
    app = create_api_app(Settings())

    async def override_db():
        yield test_db

    app.dependency_overrides[get_db_dependency] = override_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


class TestHealthRoutes:
    """Tests for health and info endpoints"""

    @pytest.mark.asyncio
    async def test_liveness(self, client):
        response = await client.get("/api/v1/health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}
        assert response.headers["X-Request-ID"]
        assert response.headers["X-Content-Type-Options"] == "nosniff"

    @pytest.mark.asyncio
    async def test_readiness_when_database_is_down(self, client, monkeypatch):
        async def unhealthy():
            return {"status": "unhealthy", "error": "connection refused"}

        monkeypatch.setattr(health, "check_database_health", unhealthy)

        response = await client.get("/api/v1/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"

    @pytest.mark.asyncio
    async def test_readiness_when_database_is_up(self, client, monkeypatch):
        async def healthy():
            return {"status": "healthy", "latency_ms": 0.1}

        monkeypatch.setattr(health, "check_database_health", healthy)

        response = await client.get("/api/v1/health/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ready"}

    @pytest.mark.asyncio
    async def test_info_lists_graphql_endpoints(self, client):
        response = await client.get("/api/v1/info")

        assert response.status_code == 200
        assert response.json()["graphql"] == {
            "shop": "/graphql/shop",
            "seller": "/graphql/seller",
            "admin": "/graphql/admin",
        }


class TestGraphQLOverHttp:
    """Tests for the mounted GraphQL endpoints"""

    @pytest.mark.asyncio
    async def test_graphiql_served_outside_production(self, client):
        response = await client.get("/graphql/shop", headers={"Accept": "text/html"})

        assert response.status_code == 200
        assert "graphiql" in response.text.lower()

    @pytest.mark.asyncio
    async def test_shop_products_without_token(self, client, two_sellers):
        response = await client.post("/graphql/shop", json={"query": "{ products { sku } }"})

        assert response.status_code == 200
        body = response.json()
        assert "errors" not in body
        assert len(body["data"]["products"]) == 3

    @pytest.mark.asyncio
    async def test_seller_profile_with_bearer_token(self, client, test_db, two_sellers):
        profile = two_sellers["seller_a"]
        user = await test_db.get(User, profile.user_id)
        token = create_access_token(user.id, user.email, user.role)

        response = await client.post(
            "/graphql/seller",
            json={"query": PROFILE_QUERY},
            headers={"Authorization": f"Bearer {token}"},
        )

        body = response.json()
        assert "errors" not in body
        assert body["data"]["myProfile"]["businessName"] == "Alpha Books"

    @pytest.mark.asyncio
    async def test_invalid_token_is_unauthenticated(self, client):
        response = await client.post(
            "/graphql/seller",
            json={"query": PROFILE_QUERY},
            headers={"Authorization": "Bearer not-a-jwt"},
        )

        [error] = response.json()["errors"]
        assert error["message"] == "Invalid or expired token"
        assert error["extensions"]["code"] == "UNAUTHENTICATED"

    @pytest.mark.asyncio
    async def test_customer_token_on_admin_api_is_forbidden(self, client, factory):
        customer = await factory.user()
        token = create_access_token(customer.id, customer.email, customer.role)

        response = await client.post(
            "/graphql/admin",
            json={"query": "{ pendingSellers { businessName } }"},
            headers={"Authorization": f"Bearer {token}"},
        )

        [error] = response.json()["errors"]
        assert error["extensions"]["code"] == "FORBIDDEN"
