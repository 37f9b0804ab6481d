"""Negotiation roadmap generator.

Pipeline: market intelligence fusion (only when a location is given) ->
market context enrichment -> leverage -> strategy -> success probability ->
timeline, steps and guidance -> one ``Roadmap``.

The generator keeps no state between calls; the same inputs against the
same data sources produce the same roadmap.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from negotiation.errors import MissingContextError
from negotiation.evidence_parser import LANDLORD_FAVORED_TERMS, TENANT_FAVORED_TERMS
from negotiation.guidance import generate_guidance
from negotiation.leverage import calculate_leverage_score
from negotiation.market_intelligence import MarketIntelligenceService
from negotiation.models import (
    AdaptationTrigger,
    ComparableRange,
    LeverageScore,
    MarketContext,
    MarketIntelligence,
    Roadmap,
    RoadmapMarketSummary,
    SituationContext,
    Strategy,
    UserContext,
)
from negotiation.plan import generate_steps, generate_timeline
from negotiation.probability import calculate_success_probability
from negotiation.rounding import round_half_up, to_decimal
from negotiation.strategy import select_strategy
from telemetry.logging_utils import get_logger

logger = get_logger(__name__)

SIGNIFICANTLY_ABOVE_PERCENT = 15
ABOVE_PERCENT = 5
BELOW_PERCENT = -5
INCREASING_GROWTH_PERCENT = 3

NEGOTIATION_ROOM_BASE = {"significantly-above": 15, "above": 10, "at": 5, "below": 2}

BASE_TRIGGERS = (
    AdaptationTrigger(
        condition="Landlord responds defensively to market data",
        suggested_adjustment="Shift to relationship-focused approach",
        impact="moderate",
    ),
    AdaptationTrigger(
        condition="New comparable properties listed at lower rents",
        suggested_adjustment="Update market research and increase target reduction",
        impact="major",
    ),
    AdaptationTrigger(
        condition="Market conditions improve significantly",
        suggested_adjustment="Accelerate timeline and increase assertiveness",
        impact="moderate",
    ),
)

STRATEGY_TRIGGERS = {
    "assertive_collaborative": AdaptationTrigger(
        condition="Landlord makes a counteroffer close to your target",
        suggested_adjustment="Accept and ask for the new rent in a written lease addendum",
        impact="minor",
    ),
    "collaborative_approach": AdaptationTrigger(
        condition="Landlord rejects rent changes but is open to other terms",
        suggested_adjustment="Negotiate amenities, repairs or a longer lease instead",
        impact="moderate",
    ),
    "relationship_building": AdaptationTrigger(
        condition="Relationship improves after open issues are resolved",
        suggested_adjustment="Move to a collaborative rent discussion",
        impact="moderate",
    ),
    "leverage_focused": AdaptationTrigger(
        condition="Landlord calls your alternatives a bluff",
        suggested_adjustment="Share concrete listings or prepare to follow through",
        impact="major",
    ),
    "strategic_patience": AdaptationTrigger(
        condition="Vacancies rise or the slow season begins",
        suggested_adjustment="Open negotiations now while leverage is highest",
        impact="major",
    ),
}

ContextInput = Union[UserContext, MarketContext, SituationContext, Dict[str, Any], None]


def _growth_percent(label: Optional[str]) -> Optional[float]:
    if not label:
        return None
    try:
        return float(label.replace("%", "").replace("−", "-").replace(" ", ""))
    except ValueError:
        return None


def _comparable_range(intelligence: MarketIntelligence) -> Optional[ComparableRange]:
    trends = intelligence.market_trends
    rents = [prop.rent for prop in intelligence.comparable_properties]
    rents += [value for value in (trends.avg_rent, trends.median_rent) if value]
    if not rents:
        return None
    median = trends.median_rent or float(round_half_up(to_decimal(sum(rents)) / len(rents)))
    return ComparableRange(min=min(rents), max=max(rents), median=median)


def _position(current_rent: float, avg_rent: float) -> str:
    percent_above = (current_rent - avg_rent) / avg_rent * 100
    if percent_above > SIGNIFICANTLY_ABOVE_PERCENT:
        return "significantly-above"
    if percent_above > ABOVE_PERCENT:
        return "above"
    if percent_above < BELOW_PERCENT:
        return "below"
    return "at"


def enrich_market_context(
    market: MarketContext, intelligence: Optional[MarketIntelligence], current_rent: float
) -> MarketContext:
    """Copy of ``market`` updated from fused market data; ``market`` itself is untouched."""
    if intelligence is None:
        return market

    update: Dict[str, Any] = {}
    comparable_range = _comparable_range(intelligence)

    # Rent-derived estimates say nothing about the market beyond the tenant's own rent.
    if intelligence.source == "synthetic":
        if market.comparable_range is None and comparable_range is not None:
            update["comparable_range"] = comparable_range
        return market.model_copy(update=update)

    if comparable_range is not None:
        update["comparable_range"] = comparable_range

    avg_rent = intelligence.market_trends.avg_rent
    if avg_rent:
        update["current_rent_vs_market"] = _position(current_rent, avg_rent)

    evidence = [point.lower() for point in intelligence.negotiation_evidence]
    if any(term in point for point in evidence for term in TENANT_FAVORED_TERMS):
        update["market_power_balance"] = "tenant-favored"
    elif any(term in point for point in evidence for term in LANDLORD_FAVORED_TERMS):
        update["market_power_balance"] = "landlord-favored"

    growth = _growth_percent(intelligence.market_trends.rent_growth)
    if growth is not None:
        if growth < 0:
            update["rent_trend"] = "decreasing"
        elif growth > INCREASING_GROWTH_PERCENT:
            update["rent_trend"] = "increasing"

    return market.model_copy(update=update)


def calculate_negotiation_room(market: MarketContext, leverage: LeverageScore) -> int:
    """Suggested reduction in percent: base room for the market position scaled by leverage."""
    return round_half_up(NEGOTIATION_ROOM_BASE[market.current_rent_vs_market] * to_decimal(leverage.total) / 10)


def adaptation_triggers(strategy: Strategy) -> List[AdaptationTrigger]:
    return [*BASE_TRIGGERS, STRATEGY_TRIGGERS[strategy.type]]


class NegotiationRoadmapGenerator:
    def __init__(self, service: Optional[MarketIntelligenceService] = None) -> None:
        self.service = service

    def _service(self) -> MarketIntelligenceService:
        if self.service is None:
            self.service = MarketIntelligenceService.from_env()
        return self.service

    @staticmethod
    def _validate(user: ContextInput, market: ContextInput, situation: ContextInput):
        missing = [
            name
            for name, value in (("userContext", user), ("marketContext", market), ("situationContext", situation))
            if value is None
        ]
        if missing:
            raise MissingContextError(missing)
        return (
            UserContext.model_validate(user),
            MarketContext.model_validate(market),
            SituationContext.model_validate(situation),
        )

    def generate(
        self,
        user: ContextInput,
        market: ContextInput,
        situation: ContextInput,
        location: Optional[str] = None,
    ) -> Roadmap:
        user, market, situation = self._validate(user, market, situation)
        location = location.strip() if location else None

        intelligence = self._service().fuse(location, user.current_rent) if location else None
        enriched = enrich_market_context(market, intelligence, user.current_rent)

        leverage = calculate_leverage_score(user, enriched, situation)
        strategy = select_strategy(leverage, user, enriched)
        probability = calculate_success_probability(leverage, strategy, enriched, user)

        roadmap = Roadmap(
            strategy=strategy,
            success_probability=probability,
            leverage_score=leverage,
            timeline=generate_timeline(strategy, situation, intelligence),
            steps=generate_steps(strategy, leverage, user, enriched, situation, intelligence),
            guidance=generate_guidance(strategy, leverage, enriched, situation, intelligence, user.current_rent),
            market_context=RoadmapMarketSummary(
                current_rent=user.current_rent,
                target_rent=user.current_rent - situation.target_reduction,
                market_position=enriched.current_rent_vs_market,
                comparable_range=enriched.comparable_range,
                negotiation_room=calculate_negotiation_room(enriched, leverage),
            ),
            enriched_market_context=enriched,
            market_intelligence=intelligence,
            adaptation_triggers=adaptation_triggers(strategy),
        )
        logger.info(
            "roadmap_generated",
            extra={
                "strategy": strategy.type,
                "leverage_total": leverage.total,
                "success_probability": probability.overall,
                "market_position": enriched.current_rent_vs_market,
                "intelligence_source": intelligence.source if intelligence else None,
            },
        )
        return roadmap


def generate_roadmap(
    user: ContextInput,
    market: ContextInput,
    situation: ContextInput,
    location: Optional[str] = None,
    *,
    service: Optional[MarketIntelligenceService] = None,
) -> Roadmap:
    return NegotiationRoadmapGenerator(service).generate(user, market, situation, location)
