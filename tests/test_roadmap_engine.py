import json

import pytest

from negotiation import MissingContextError, generate_roadmap
from negotiation.engine import calculate_negotiation_room, enrich_market_context
from negotiation.market_intelligence import MarketIntelligenceService, synthesize_market_intelligence
from negotiation.models import LeverageFactors, LeverageScore, MarketContext
from storage.memory_store import InMemoryMarketStore


@pytest.fixture()
def offline_service():
    return MarketIntelligenceService(InMemoryMarketStore(), None)


def _generate(request, service, **overrides):
    payload = {**request, **overrides}
    return generate_roadmap(
        payload.get("userContext"),
        payload.get("marketContext"),
        payload.get("situationContext"),
        payload.get("location"),
        service=service,
    )


def test_missing_context_raises(roadmap_request, offline_service):
    with pytest.raises(MissingContextError) as excinfo:
        _generate(roadmap_request, offline_service, marketContext=None)

    assert excinfo.value.missing == ["marketContext"]
    assert str(excinfo.value).startswith("Missing required context data")
    assert isinstance(excinfo.value, ValueError)


def test_roadmap_without_location_has_no_intelligence(roadmap_request, offline_service):
    roadmap = _generate(roadmap_request, offline_service, location=None)

    assert roadmap.market_intelligence is None
    assert roadmap.strategy.type == "assertive_collaborative"
    assert roadmap.leverage_score.total >= 7
    assert roadmap.market_context.target_rent == 1850
    assert len(roadmap.adaptation_triggers) == 4


def test_roadmap_with_location_enriches_market_context(roadmap_request, offline_service):
    roadmap = _generate(roadmap_request, offline_service)

    assert roadmap.market_intelligence.source == "datasets"
    enriched = roadmap.enriched_market_context
    assert enriched.current_rent_vs_market == "significantly-above"
    assert enriched.rent_trend == "decreasing"
    assert enriched.comparable_range.min == 1695
    assert enriched.comparable_range.max == 1826
    assert enriched.comparable_range.median == 1695
    assert roadmap.market_context.comparable_range == enriched.comparable_range


def test_roadmap_is_idempotent(roadmap_request, offline_service):
    first = _generate(roadmap_request, offline_service).to_payload()
    second = _generate(roadmap_request, offline_service).to_payload()

    assert json.dumps(first, sort_keys=True) == json.dumps(second, sort_keys=True)


def test_payload_uses_camel_case(roadmap_request, offline_service):
    payload = _generate(roadmap_request, offline_service).to_payload()

    assert {"successProbability", "leverageScore", "adaptationTriggers", "marketIntelligence"} <= set(payload)
    assert "negotiationRoom" in payload["marketContext"]
    assert "nextBestActions" in payload["guidance"]
    assert "currentRentVsMarket" in payload["enrichedMarketContext"]


def test_strained_relationship_roadmap(roadmap_request, offline_service):
    request = json.loads(json.dumps(roadmap_request))
    request["userContext"]["landlordRelationship"] = "strained"

    roadmap = _generate(request, offline_service)

    assert roadmap.strategy.type == "relationship_building"
    assert "Focus on rebuilding trust before making requests" in roadmap.steps[0].tips


def test_short_decision_window_warning(roadmap_request, offline_service):
    request = json.loads(json.dumps(roadmap_request))
    request["situationContext"]["timeUntilDecision"] = 3

    roadmap = _generate(request, offline_service)

    assert any("limited time" in flag.lower() for flag in roadmap.guidance.warning_flags)
    assert roadmap.timeline.estimated_duration == "1-2 weeks"


def test_failing_sources_still_produce_roadmap(roadmap_request):
    def broken_ask(prompt):
        raise TimeoutError("semantic call timed out")

    service = MarketIntelligenceService(InMemoryMarketStore(failing=("prediction", "baseline", "index")), broken_ask)

    roadmap = _generate(roadmap_request, service)

    assert roadmap.market_intelligence.source == "synthetic"
    assert [prop.rent for prop in roadmap.market_intelligence.comparable_properties] == [1800, 1900, 2100]
    # synthetic estimates never override the caller's market position
    assert roadmap.enriched_market_context.current_rent_vs_market == "significantly-above"


def test_enrichment_does_not_mutate_input():
    market = MarketContext(current_rent_vs_market="at")
    intel = synthesize_market_intelligence(None, 2000)

    enriched = enrich_market_context(market, intel, 2000)

    assert market.comparable_range is None
    assert enriched.comparable_range.min == 1800
    assert enriched.comparable_range.max == 2100
    assert enriched is not market


def test_negotiation_room_scales_with_leverage():
    factors = LeverageFactors(market=5, financial=5, relationship=5, timing=5)
    strong = LeverageScore(total=8.0, factors=factors)

    assert calculate_negotiation_room(MarketContext(current_rent_vs_market="significantly-above"), strong) == 12
    assert calculate_negotiation_room(MarketContext(current_rent_vs_market="above"), strong) == 8
    assert calculate_negotiation_room(MarketContext(current_rent_vs_market="at"), strong) == 4
    assert calculate_negotiation_room(MarketContext(current_rent_vs_market="below"), strong) == 2


def test_negotiation_room_rounds_half_up():
    leverage = LeverageScore(total=5.0, factors=LeverageFactors(market=5, financial=5, relationship=5, timing=5))

    assert calculate_negotiation_room(MarketContext(current_rent_vs_market="at"), leverage) == 3


def test_accepts_models_and_dicts(roadmap_request, offline_service):
    from negotiation.models import SituationContext, UserContext

    user = UserContext.model_validate(roadmap_request["userContext"])
    situation = SituationContext.model_validate(roadmap_request["situationContext"])

    roadmap = generate_roadmap(user, roadmap_request["marketContext"], situation, service=offline_service)

    assert roadmap.market_context.current_rent == 2000
