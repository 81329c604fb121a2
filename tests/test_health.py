"""Smoke tests for health, readiness and app wiring."""

from httpx import AsyncClient

from fixlify.domain.exceptions import SqlNotConfiguredException


async def test_health_returns_ok(client: AsyncClient) -> None:
    """GET /api/v1/health returns 200, status ok and the version."""
    response = await client.get("/api/v1/health")
    assert response.status_code == 200
    data = response.json()
    assert data.get("status") == "ok"
    assert data.get("version")


async def test_ready_without_database_returns_503(client: AsyncClient, monkeypatch) -> None:
    """GET /api/v1/health/ready returns 503 when no database is configured."""

    def not_configured():
        raise SqlNotConfiguredException()

    monkeypatch.setattr(
        "fixlify.api.v1.endpoints.health.get_session_factory", not_configured
    )
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 503
    assert "SQL database" in response.json()["message"]


async def test_request_and_correlation_ids_echoed(client: AsyncClient) -> None:
    response = await client.get(
        "/api/v1/health", headers={"X-Request-ID": "req-123", "X-Correlation-ID": "flow:42"}
    )
    assert response.headers["x-request-id"] == "req-123"
    assert response.headers["x-correlation-id"] == "flow:42"


async def test_unsafe_request_id_replaced(client: AsyncClient) -> None:
    response = await client.get("/api/v1/health", headers={"X-Request-ID": "bad id with spaces"})
    request_id = response.headers["x-request-id"]
    assert request_id != "bad id with spaces"
    assert len(request_id) == 36
    assert response.headers["x-correlation-id"] == request_id


async def test_unknown_route_returns_json_404(client: AsyncClient) -> None:
    response = await client.get("/api/v1/nope")
    assert response.status_code == 404
    assert response.json()["error"] == "HTTP_ERROR"


async def test_error_body_carries_request_id(client: AsyncClient) -> None:
    response = await client.get("/api/v1/nope", headers={"X-Request-ID": "req-123"})
    assert response.json()["requestId"] == "req-123"
