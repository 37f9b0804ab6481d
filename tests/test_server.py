import pytest
from fastapi.testclient import TestClient

from negotiation.market_intelligence import MarketIntelligenceService
from server import app as server_app
from storage.memory_store import InMemoryMarketStore


@pytest.fixture()
def client(monkeypatch):
    monkeypatch.setattr(server_app, "market_service", MarketIntelligenceService(InMemoryMarketStore(), None))
    return TestClient(server_app.app)


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["market_store"] == "InMemoryMarketStore"
    assert body["semantic_analysis"] is False


def test_roadmap_endpoint_returns_camel_case_roadmap(client, roadmap_request):
    response = client.post("/api/negotiation/roadmap", json=roadmap_request)

    assert response.status_code == 200
    body = response.json()
    assert body["strategy"]["type"] == "assertive_collaborative"
    assert body["marketIntelligence"]["source"] == "datasets"
    assert 10 <= body["successProbability"]["overall"] <= 95
    assert body["guidance"]["nextBestActions"]


def test_missing_context_is_bad_request(client, roadmap_request):
    request = dict(roadmap_request)
    request.pop("situationContext")

    response = client.post("/api/negotiation/roadmap", json=request)

    assert response.status_code == 400
    assert response.json()["detail"].startswith("Missing required context data")


def test_invalid_enum_is_unprocessable(client, roadmap_request):
    request = dict(roadmap_request)
    request["marketContext"] = {**roadmap_request["marketContext"], "rentTrend": "sideways"}

    response = client.post("/api/negotiation/roadmap", json=request)

    assert response.status_code == 422


def test_latency_metrics_endpoint(client, monkeypatch):
    rows = [
        {"component": "market_lookup", "outcome": "ok", "latency_ms": "10"},
        {"component": "market_lookup", "outcome": "error", "latency_ms": "30"},
    ]
    monkeypatch.setattr(server_app, "read_metrics", lambda limit: rows)

    response = client.get("/api/metrics/latency")

    assert response.status_code == 200
    assert response.json()["average_latency_ms"] == {"market_lookup": 20.0}
    assert response.json()["failures"] == {"market_lookup": 1}
