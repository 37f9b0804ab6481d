"""Rule-based selection of a negotiation strategy archetype.

Rules form an ordered decision list; the first matching predicate wins and
the final rule always matches.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Tuple

from negotiation.models import LeverageScore, MarketContext, Strategy, StrategyType, UserContext

# type -> (name, description)
STRATEGY_PROFILES: Dict[str, Tuple[str, str]] = {
    "assertive_collaborative": (
        "Assertive Collaborative",
        "Confidently present market data while maintaining a collaborative tone",
    ),
    "collaborative_approach": (
        "Collaborative Approach",
        "Work together with the landlord to find mutually beneficial solutions",
    ),
    "relationship_building": (
        "Relationship Building",
        "Focus on strengthening the relationship before making requests",
    ),
    "leverage_focused": (
        "Leverage-Focused",
        "Use market position and alternatives to negotiate from strength",
    ),
    "strategic_patience": (
        "Strategic Patience",
        "Build position over time and wait for the optimal negotiation window",
    ),
}

Predicate = Callable[[LeverageScore, UserContext, MarketContext], bool]

STRATEGY_RULES: List[Tuple[Predicate, StrategyType, str]] = [
    (
        lambda lev, user, market: lev.total >= 7 and user.landlord_relationship != "strained",
        "assertive_collaborative",
        "High leverage with a workable relationship allows for direct negotiation",
    ),
    (
        lambda lev, user, market: lev.total >= 5
        and market.rent_trend == "decreasing"
        and user.landlord_relationship != "strained",
        "collaborative_approach",
        "Moderate leverage with falling market rents and a workable relationship supports a collaborative approach",
    ),
    (
        lambda lev, user, market: user.landlord_relationship == "strained" or lev.total < 3,
        "relationship_building",
        "Low leverage or a strained relationship requires foundation building first",
    ),
    (
        lambda lev, user, market: lev.total >= 6 and user.risk_tolerance == "aggressive",
        "leverage_focused",
        "Strong leverage with aggressive risk tolerance supports a direct approach",
    ),
    (
        lambda lev, user, market: True,
        "strategic_patience",
        "Current conditions favor building leverage before negotiating",
    ),
]


def build_strategy(strategy_type: StrategyType, reasoning: str) -> Strategy:
    name, description = STRATEGY_PROFILES[strategy_type]
    return Strategy(type=strategy_type, name=name, description=description, reasoning=reasoning)


def select_strategy(leverage: LeverageScore, user: UserContext, market: MarketContext) -> Strategy:
    for predicate, strategy_type, reasoning in STRATEGY_RULES:
        if predicate(leverage, user, market):
            return build_strategy(strategy_type, f"{reasoning} (leverage {leverage.total:.1f}/10)")
    raise AssertionError("strategy rules must end with a catch-all")
