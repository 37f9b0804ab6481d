import json

import pytest

from telemetry import metrics


def load_fixture(name: str):
    with open(f"tests/fixtures/{name}", "r", encoding="utf-8") as f:
        if name.endswith(".json"):
            return json.load(f)
        return f.read()


@pytest.fixture(autouse=True)
def no_metrics(monkeypatch):
    """Keep test runs from appending to the local latency CSV."""
    monkeypatch.setattr(metrics, "METRICS_ENABLED", False)


@pytest.fixture()
def roadmap_request():
    return load_fixture("roadmap_request.json")


@pytest.fixture()
def market_text():
    return load_fixture("market_analysis.txt")
