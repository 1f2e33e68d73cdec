"""
Tests for the root endpoints and the app-wide error handling.
"""

from hermetia.database import get_database
from hermetia.main import app


async def test_root_lists_endpoints(client):
    response = await client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Hermetia Incubator Monitor API"
    assert body["endpoints"]["device"]["readings"] == "POST /api/device/readings"


async def test_health_without_database(client):
    # The lifespan doesn't run under the test transport, so no client is open
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "database": "unreachable"}


async def test_unexpected_error_becomes_500(client):
    def broken_database():
        raise RuntimeError("boom")

    app.dependency_overrides[get_database] = broken_database

    response = await client.get("/api/roles")

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}


async def test_body_validation_error_is_400(client):
    response = await client.put("/api/components", json={"id": "four"})

    assert response.status_code == 400
    body = response.json()
    assert body["detail"] == "Invalid request"
    assert any(error.startswith("id:") for error in body["errors"])
    assert any(error.startswith("active:") for error in body["errors"])


async def test_cors_preflight(client):
    response = await client.options(
        "/health",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "GET",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:5173"
