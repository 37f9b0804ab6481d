from __future__ import annotations

from negotiation.models import (
    ConfidenceInterval,
    LeverageScore,
    MarketContext,
    ProbabilityBreakdown,
    Strategy,
    SuccessProbability,
    UserContext,
)
from negotiation.rounding import round_half_up, to_decimal

PROBABILITY_FLOOR, PROBABILITY_CEILING = 10, 95
LEVERAGE_SLOPE, LEVERAGE_INTERCEPT = 7, 30

STRATEGY_MODIFIERS = {
    "assertive_collaborative": 5,
    "collaborative_approach": 0,
    "relationship_building": -10,
    "leverage_focused": 10,
    "strategic_patience": -5,
}

SIGNIFICANTLY_ABOVE_BONUS = 15
TENANT_FAVORED_BONUS = 10
VETERAN_BONUS = 5
POSITIVE_RELATIONSHIP_BONUS = 10

INTERVAL_BELOW, INTERVAL_ABOVE = 15, 10
INTERVAL_FLOOR, INTERVAL_CEILING = 5, 100
STRATEGY_ALIGNMENT_SCALE = 0.8


def _bonuses(market: MarketContext, user: UserContext) -> int:
    bonus = 0
    if market.current_rent_vs_market == "significantly-above":
        bonus += SIGNIFICANTLY_ABOVE_BONUS
    if market.market_power_balance == "tenant-favored":
        bonus += TENANT_FAVORED_BONUS
    if user.tenant_history == "veteran":
        bonus += VETERAN_BONUS
    if user.landlord_relationship == "positive":
        bonus += POSITIVE_RELATIONSHIP_BONUS
    return bonus


def calculate_success_probability(
    leverage: LeverageScore, strategy: Strategy, market: MarketContext, user: UserContext
) -> SuccessProbability:
    """Bounded success estimate with a breakdown and an asymmetric interval."""
    raw = round_half_up(to_decimal(leverage.total) * LEVERAGE_SLOPE + LEVERAGE_INTERCEPT)
    raw += STRATEGY_MODIFIERS[strategy.type] + _bonuses(market, user)
    overall = max(PROBABILITY_FLOOR, min(PROBABILITY_CEILING, raw))

    return SuccessProbability(
        overall=overall,
        breakdown=ProbabilityBreakdown(
            market_conditions=round_half_up(to_decimal(leverage.factors.market) * 10),
            relationship_strength=round_half_up(to_decimal(leverage.factors.relationship) * 10),
            timing_optimality=round_half_up(to_decimal(leverage.factors.timing) * 10),
            strategy_alignment=round_half_up(overall * to_decimal(STRATEGY_ALIGNMENT_SCALE)),
        ),
        confidence_interval=ConfidenceInterval(
            min=max(INTERVAL_FLOOR, overall - INTERVAL_BELOW),
            max=min(INTERVAL_CEILING, overall + INTERVAL_ABOVE),
        ),
    )
