import threading

import pytest

from negotiation import market_intelligence as mi
from storage.memory_store import InMemoryMarketStore


def _failing_ask(prompt):
    raise RuntimeError("semantic service down")


def test_datasets_tier_merges_all_three_sources():
    service = mi.MarketIntelligenceService(InMemoryMarketStore(), _failing_ask)

    intel = service.fuse("Austin, TX", 2000)

    assert intel.source == "datasets"
    assert [prop.rent for prop in intel.comparable_properties] == [1826, 1695]
    assert intel.market_trends.avg_rent == 1695
    assert intel.market_trends.median_rent == 1695
    assert intel.market_trends.rent_growth == "-3.2%"
    assert intel.market_trends.market_condition == "tenant-favored"
    assert intel.negotiation_evidence[-1] == "Your rent ($2,000) is 18% above market average"
    assert any("Predicted market change: -2.1%" == point for point in intel.negotiation_evidence)


def test_partial_dataset_failure_still_uses_remaining_rows():
    store = InMemoryMarketStore(failing=("index", "prediction"))
    service = mi.MarketIntelligenceService(store, None)

    intel = service.fuse("Austin, TX", 2000)

    assert intel.source == "datasets"
    assert [prop.rent for prop in intel.comparable_properties] == [1826]
    assert intel.market_trends.avg_rent == 1826
    assert intel.market_trends.rent_growth is None


def test_semantic_tier_used_when_datasets_empty(market_text):
    prompts = []

    def fake_ask(prompt):
        prompts.append(prompt)
        return market_text

    service = mi.MarketIntelligenceService(InMemoryMarketStore.empty(), fake_ask)

    intel = service.fuse("Austin, TX", 2000)

    assert intel.source == "semantic"
    assert len(prompts) == 1
    assert "Austin, TX" in prompts[0]
    assert intel.market_trends.avg_rent == 1825


def test_semantic_text_without_signals_falls_through_to_synthetic():
    service = mi.MarketIntelligenceService(InMemoryMarketStore.empty(), lambda prompt: "No data.")

    intel = service.fuse("Nowhere, ZZ", 1000)

    assert intel.source == "synthetic"


def test_all_sources_failing_returns_synthetic_record():
    store = InMemoryMarketStore(failing=("prediction", "baseline", "index"))
    service = mi.MarketIntelligenceService(store, _failing_ask)

    intel = service.fuse("Austin, TX", 2000)

    assert intel is not None
    assert intel.source == "synthetic"
    assert intel.negotiation_evidence == list(mi.SYNTHETIC_EVIDENCE)


def test_no_location_synthetic_comparables():
    service = mi.MarketIntelligenceService(InMemoryMarketStore(), _failing_ask)

    intel = service.fuse(None, 2000)

    assert [prop.rent for prop in intel.comparable_properties] == [1800, 1900, 2100]
    assert len(intel.negotiation_evidence) == 2
    assert intel.market_trends.avg_rent == 1860
    assert intel.market_trends.median_rent == 1900


def test_store_missing_entirely():
    service = mi.MarketIntelligenceService(None, None)

    intel = service.fuse("Austin, TX", 1500)

    assert intel.source == "synthetic"
    assert intel.negotiation_evidence is not None


def test_slow_lookup_times_out_and_counts_as_empty():
    release = threading.Event()

    class SlowIndexStore(InMemoryMarketStore):
        def lookup_index(self, location):
            release.wait(5)
            return super().lookup_index(location)

    service = mi.MarketIntelligenceService(SlowIndexStore(), None, lookup_timeout=0.5)
    try:
        rows = service.query_datasets("Austin, TX")
    finally:
        release.set()

    assert rows["index"] == []
    assert len(rows["baseline"]) == 1
    assert len(rows["prediction"]) == 1


def test_merge_is_deterministic_and_baseline_first():
    store = InMemoryMarketStore()
    rows = {
        "prediction": store.lookup_prediction("Austin, TX"),
        "baseline": store.lookup_baseline("Austin, TX"),
        "index": store.lookup_index("Austin, TX"),
    }

    first = mi.merge_dataset_rows("Austin, TX", 2000, rows["prediction"], rows["baseline"], rows["index"])
    second = mi.merge_dataset_rows("Austin, TX", 2000, rows["prediction"], rows["baseline"], rows["index"])

    assert first == second
    assert first.comparable_properties[0].type == "2BR Fair Market Rent"


def test_merge_returns_none_for_empty_rows():
    assert mi.merge_dataset_rows("Austin, TX", 2000, [], [], []) is None


@pytest.mark.parametrize(
    "growth, expected",
    [(-1.0, "tenant-favored"), (2.0, "balanced"), (4.5, "landlord-favored")],
)
def test_market_condition_from_index_growth(growth, expected):
    index_rows = [{"metro_area": "Test Metro", "median_rent": 1500, "year_over_year_change": growth}]

    intel = mi.merge_dataset_rows("Test Metro", 1500, [], [], index_rows)

    assert intel.market_trends.market_condition == expected
