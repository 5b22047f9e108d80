from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from qa_service.api.deps import get_catalog, get_orchestrator, get_run_recorder
from qa_service.main import app
from qa_service.middleware.request_id import REQUEST_ID_HEADER
from qa_service.services.orchestrator import build_orchestrator


def functions_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/admin-ai-assistant"):
        return httpx.Response(403, json={"error": "Forbidden"})
    return httpx.Response(200, json={"result": "ok"})


@pytest.fixture
def orchestrator(test_settings, database):
    return build_orchestrator(
        test_settings,
        database.session_factory,
        transport=httpx.MockTransport(functions_handler),
    )


@pytest_asyncio.fixture
async def client(orchestrator) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_run_recorder] = lambda: orchestrator.recorder
    app.dependency_overrides[get_catalog] = lambda: orchestrator.catalog
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_bare_options_request_gets_cors_headers(client):
    response = await client.options("/api/v1/ai-test-runner")

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert "POST" in response.headers["access-control-allow-methods"]
    assert "content-type" in response.headers["access-control-allow-headers"]


@pytest.mark.asyncio
async def test_cors_preflight(client):
    response = await client.options(
        "/api/v1/engineering-ai-validator",
        headers={"Origin": "https://admin.example.com", "Access-Control-Request-Method": "POST"},
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


@pytest.mark.asyncio
async def test_test_runner_endpoint(client):
    response = await client.post("/api/v1/ai-test-runner", json={"feature": "calculators", "includeAI": False})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["summary"]["passRate"] == 100
    assert body["runId"]


@pytest.mark.asyncio
async def test_malformed_body_is_treated_as_empty_request(client):
    response = await client.post(
        "/api/v1/engineering-ai-validator",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 200
    assert response.json()["summary"]["calculatorsValidated"] == 5


@pytest.mark.asyncio
async def test_invalid_request_returns_400(client):
    response = await client.post("/api/v1/ai-test-runner", json={"model": "gpt-9"})

    assert response.status_code == 400
    assert response.json()["success"] is False


@pytest.mark.asyncio
async def test_run_failure_returns_500(client, orchestrator):
    async def explode(request):
        raise RuntimeError("boom")

    orchestrator.run_ux = explode
    response = await client.post("/api/v1/ai-ux-tester", json={})

    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "boom"}


@pytest.mark.asyncio
async def test_ux_tester_endpoint(client):
    response = await client.post(
        "/api/v1/ai-ux-tester",
        json={"personas": ["arabic_engineer"], "journeys": ["arabic_user_flow"]},
    )

    assert response.status_code == 200
    result = response.json()["results"][0]
    assert result["persona"] == "مهندس سعودي"
    assert result["journey"] == "Arabic User Experience"


@pytest.mark.asyncio
async def test_request_id_is_echoed(client):
    response = await client.get("/health", headers={REQUEST_ID_HEADER: "run-42"})
    assert response.headers[REQUEST_ID_HEADER] == "run-42"

    generated = await client.get("/health", headers={REQUEST_ID_HEADER: "bad id!"})
    assert generated.headers[REQUEST_ID_HEADER] != "bad id!"


@pytest.mark.asyncio
async def test_recorded_runs_are_listed(client):
    created = (await client.post("/api/v1/ai-test-runner", json={"feature": "security", "includeAI": False})).json()

    listing = await client.get("/api/v1/test-runs")
    assert listing.status_code == 200
    assert listing.json()["total"] == 1
    assert listing.json()["runs"][0]["run_name"] == "AI Test Runner: security"

    detail = await client.get(f"/api/v1/test-runs/{created['runId']}")
    assert detail.status_code == 200
    names = [r["test_name"] for r in detail.json()["results"]]
    assert names == [r["name"] for r in created["results"]]

    missing = await client.get("/api/v1/test-runs/does-not-exist")
    assert missing.status_code == 404
    assert missing.json()["detail"] == "Test run not found"


@pytest.mark.asyncio
async def test_catalog_endpoints(client):
    personas = (await client.get("/api/v1/catalog/personas")).json()
    journeys = (await client.get("/api/v1/catalog/journeys")).json()

    assert [p["id"] for p in personas][:2] == ["new_engineer", "expert_engineer"]
    assert personas[0]["deviceType"] == "desktop"
    assert len(journeys) == 5
    assert journeys[0]["steps"][7]["endpoint"] == "calculate-beam"
    assert journeys[0]["expectedTotalTimeMs"] == 30000
