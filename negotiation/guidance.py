from __future__ import annotations

from typing import List, Optional

from negotiation.leverage import FACTOR_LABELS
from negotiation.models import (
    Guidance,
    LeverageScore,
    MarketContext,
    MarketIntelligence,
    SituationContext,
    Strategy,
)
from negotiation.rounding import round_half_up, to_decimal

STRONG_LEVERAGE = 7
LIMITED_TIME_DAYS = 7
ABOVE_AVERAGE_ALERT_PERCENT = 10
EVIDENCE_ACTIONS = 2

LIMITED_TIME_WARNING = "Limited time may reduce negotiation flexibility"
DEFAULT_ACTIONS = (
    "Start with market research to build your case",
    "Assess your landlord relationship quality",
)

# weakness label -> warning
WEAKNESS_WARNINGS = {
    FACTOR_LABELS["market"][1]: "Market conditions favor the landlord; keep your request modest",
    FACTOR_LABELS["financial"][1]: "Financial constraints limit how far you can push; avoid ultimatums",
    FACTOR_LABELS["relationship"][1]: "A strained relationship makes a direct request risky",
    FACTOR_LABELS["timing"][1]: "Timing is working against you; consider waiting for a better window",
}


def _money(value: float) -> str:
    return f"${value:,.0f}"


def generate_guidance(
    strategy: Strategy,
    leverage: LeverageScore,
    market: MarketContext,
    situation: SituationContext,
    intelligence: Optional[MarketIntelligence],
    current_rent: float,
) -> Guidance:
    """Recommendations, warnings, opportunities and next actions for the roadmap."""
    recommendations: List[str] = []
    warnings: List[str] = []
    opportunities: List[str] = []
    actions: List[str] = []

    if leverage.total >= STRONG_LEVERAGE:
        recommendations.append("Your strong leverage position allows for confident negotiation")
        actions.append("Prepare market research showing rent comparisons")
    if strategy.type == "relationship_building":
        recommendations.append("Build trust with your landlord before asking for concessions")

    if situation.time_until_decision < LIMITED_TIME_DAYS:
        warnings.append(LIMITED_TIME_WARNING)
    for weakness in leverage.weaknesses:
        warnings.append(WEAKNESS_WARNINGS[weakness])

    if market.current_rent_vs_market == "significantly-above":
        opportunities.append("Your rent is significantly above market - strong negotiation opportunity")
    if market.rent_trend == "decreasing":
        opportunities.append("Declining rent trend supports your negotiation position")

    avg_rent = intelligence.market_trends.avg_rent if intelligence else None
    if avg_rent:
        percent_above = round_half_up((to_decimal(current_rent) - to_decimal(avg_rent)) / to_decimal(avg_rent) * 100)
        if percent_above > ABOVE_AVERAGE_ALERT_PERCENT:
            opportunities.append(
                f"Local market data shows your rent is {percent_above}% above average ({_money(avg_rent)})"
            )
        actions.insert(0, f"Reference local average rent of {_money(avg_rent)} in your negotiation")

    if intelligence:
        for evidence in intelligence.negotiation_evidence[:EVIDENCE_ACTIONS]:
            actions.append(f"Use market evidence: {evidence}")

    if not actions:
        actions.extend(DEFAULT_ACTIONS)

    return Guidance(
        current_recommendations=recommendations,
        warning_flags=warnings,
        opportunity_alerts=opportunities,
        next_best_actions=actions,
    )
