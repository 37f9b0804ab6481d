"""Weighted leverage score across market, financial, relationship and timing factors.

Each factor starts at ``BASELINE`` and moves by fixed point deltas looked up
from the categorical inputs, then is clamped to [0, 10]. The total is the
weighted sum, computed in decimal and rounded half up to one decimal.
"""

from __future__ import annotations

from typing import Dict, List, Tuple

from negotiation.models import LeverageFactors, LeverageScore, MarketContext, SituationContext, UserContext
from negotiation.rounding import round_half_up, to_decimal

BASELINE = 5
FLOOR, CEILING = 0, 10

LEVERAGE_WEIGHTS: Dict[str, float] = {
    "market": 0.40,
    "financial": 0.25,
    "relationship": 0.20,
    "timing": 0.15,
}

STRENGTH_THRESHOLD = 7
WEAKNESS_THRESHOLD = 3

# factor -> (strength label, weakness label)
FACTOR_LABELS: Dict[str, Tuple[str, str]] = {
    "market": ("Strong market position", "Weak market position"),
    "financial": ("Financial stability", "Financial constraints"),
    "relationship": ("Good landlord relationship", "Strained relationship"),
    "timing": ("Optimal timing", "Poor timing"),
}

MARKET_POSITION_POINTS = {"significantly-above": 3, "above": 2, "at": 0, "below": -1}
RENT_TREND_POINTS = {"decreasing": 2, "stable": 0, "increasing": -1}
POWER_BALANCE_POINTS = {"tenant-favored": 2, "balanced": 0, "landlord-favored": -2}

BUDGET_POINTS = {"flexible": 2, "moderate": 0, "tight": -2}
EMPLOYMENT_POINTS = {"stable": 1, "variable": 0, "unstable": -2}
MOVING_POINTS = {"eager-to-move": 1, "willing-to-move": 0, "committed-to-stay": -1}

RELATIONSHIP_POINTS = {"positive": 3, "neutral": 1, "new": 0, "strained": -3}
HISTORY_POINTS = {"veteran": 2, "experienced": 1, "first-time": -1}

SEASON_POINTS = {"slow": 2, "normal": 0, "peak": -1}
LEASE_STATUS_POINTS = {"renewal-period": 1, "active-lease": 0, "application-pending": 0, "pre-application": -1}


def _clamp(score: float) -> float:
    return max(FLOOR, min(CEILING, score))


def _vacancy_points(rate: float) -> int:
    if rate > 7:
        return 2
    if rate > 5:
        return 1
    if rate < 3:
        return -2
    return 0


def _alternatives_points(count: int) -> int:
    if count >= 3:
        return 2
    if count == 0:
        return -2
    return 0


def _decision_window_points(days: int) -> int:
    if days > 30:
        return 1
    if days < 7:
        return -2
    return 0


def market_leverage(market: MarketContext) -> float:
    return _clamp(
        BASELINE
        + MARKET_POSITION_POINTS[market.current_rent_vs_market]
        + _vacancy_points(market.local_vacancy_rate)
        + RENT_TREND_POINTS[market.rent_trend]
        + POWER_BALANCE_POINTS[market.market_power_balance]
    )


def financial_leverage(user: UserContext) -> float:
    return _clamp(
        BASELINE
        + BUDGET_POINTS[user.budget_flexibility]
        + EMPLOYMENT_POINTS[user.employment_stability]
        + _alternatives_points(user.alternative_options)
        + MOVING_POINTS[user.moving_flexibility]
    )


def relationship_leverage(user: UserContext) -> float:
    return _clamp(BASELINE + RELATIONSHIP_POINTS[user.landlord_relationship] + HISTORY_POINTS[user.tenant_history])


def timing_leverage(situation: SituationContext, market: MarketContext) -> float:
    return _clamp(
        BASELINE
        + SEASON_POINTS[market.seasonal_factor]
        + _decision_window_points(situation.time_until_decision)
        + LEASE_STATUS_POINTS[situation.lease_status]
    )


def calculate_leverage_score(user: UserContext, market: MarketContext, situation: SituationContext) -> LeverageScore:
    factors = {
        "market": market_leverage(market),
        "financial": financial_leverage(user),
        "relationship": relationship_leverage(user),
        "timing": timing_leverage(situation, market),
    }
    weighted = sum(to_decimal(LEVERAGE_WEIGHTS[name]) * to_decimal(value) for name, value in factors.items())
    total = round_half_up(weighted, 1)

    strengths: List[str] = []
    weaknesses: List[str] = []
    for name, value in factors.items():
        strength, weakness = FACTOR_LABELS[name]
        if value >= STRENGTH_THRESHOLD:
            strengths.append(strength)
        elif value <= WEAKNESS_THRESHOLD:
            weaknesses.append(weakness)

    return LeverageScore(
        total=total,
        factors=LeverageFactors(**{name: float(value) for name, value in factors.items()}),
        strengths=strengths,
        weaknesses=weaknesses,
    )
