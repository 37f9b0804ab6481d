import itertools

import pytest

from negotiation.leverage import calculate_leverage_score
from negotiation.models import LeverageFactors, LeverageScore, MarketContext, SituationContext, UserContext
from negotiation.probability import calculate_success_probability
from negotiation.rounding import round_half_up
from negotiation.strategy import build_strategy, select_strategy


def _contexts(user=None, market=None, situation=None):
    return (
        UserContext(current_rent=2000, **(user or {})),
        MarketContext(**(market or {})),
        SituationContext(**(situation or {})),
    )


EXTREMES = [
    (
        {"landlord_relationship": rel, "budget_flexibility": budget, "tenant_history": history},
        {"current_rent_vs_market": position, "local_vacancy_rate": vacancy, "market_power_balance": balance},
        {"time_until_decision": days},
    )
    for rel, budget, history, position, vacancy, balance, days in itertools.product(
        ["positive", "strained"],
        ["flexible", "tight"],
        ["veteran", "first-time"],
        ["significantly-above", "below"],
        [0.5, 12.0],
        ["tenant-favored", "landlord-favored"],
        [1, 90],
    )
]


@pytest.mark.parametrize("user, market, situation", EXTREMES)
def test_scores_stay_in_bounds(user, market, situation):
    user_ctx, market_ctx, situation_ctx = _contexts(user, market, situation)

    leverage = calculate_leverage_score(user_ctx, market_ctx, situation_ctx)
    strategy = select_strategy(leverage, user_ctx, market_ctx)
    probability = calculate_success_probability(leverage, strategy, market_ctx, user_ctx)

    assert 0 <= leverage.total <= 10
    for value in leverage.factors.model_dump().values():
        assert 0 <= value <= 10
    assert 10 <= probability.overall <= 95
    interval = probability.confidence_interval
    assert interval.min <= probability.overall <= interval.max
    assert 0 <= probability.breakdown.strategy_alignment <= 100


def test_strong_tenant_gets_assertive_collaborative():
    user, market, situation = _contexts(
        {"landlord_relationship": "positive", "alternative_options": 1},
        {"current_rent_vs_market": "significantly-above", "local_vacancy_rate": 6},
        {"time_until_decision": 45},
    )

    leverage = calculate_leverage_score(user, market, situation)
    strategy = select_strategy(leverage, user, market)

    assert leverage.factors.market == 9
    assert leverage.factors.relationship == 9
    assert leverage.total >= 7
    assert strategy.type == "assertive_collaborative"
    assert strategy.name == "Assertive Collaborative"
    assert "Strong market position" in leverage.strengths


@pytest.mark.parametrize("position", ["significantly-above", "at", "below"])
@pytest.mark.parametrize("trend", ["decreasing", "increasing"])
def test_strained_relationship_always_relationship_building(position, trend):
    user, market, situation = _contexts(
        {"landlord_relationship": "strained", "risk_tolerance": "aggressive", "alternative_options": 5},
        {"current_rent_vs_market": position, "rent_trend": trend, "local_vacancy_rate": 10},
    )

    leverage = calculate_leverage_score(user, market, situation)

    assert select_strategy(leverage, user, market).type == "relationship_building"


def test_strategy_selection_is_pure():
    user, market, situation = _contexts({"risk_tolerance": "aggressive"}, {"rent_trend": "decreasing"})
    leverage = calculate_leverage_score(user, market, situation)

    assert select_strategy(leverage, user, market) == select_strategy(leverage, user, market)


def test_moderate_leverage_in_falling_market_is_collaborative():
    user, market, situation = _contexts(market={"rent_trend": "decreasing"})

    leverage = calculate_leverage_score(user, market, situation)

    assert 5 <= leverage.total < 7
    assert select_strategy(leverage, user, market).type == "collaborative_approach"


def test_default_inputs_fall_through_to_strategic_patience():
    user, market, situation = _contexts()

    leverage = calculate_leverage_score(user, market, situation)

    assert select_strategy(leverage, user, market).type == "strategic_patience"


def test_weaknesses_and_strengths_are_exclusive():
    user, market, situation = _contexts(
        {"budget_flexibility": "tight", "employment_stability": "unstable", "landlord_relationship": "strained"},
        {"current_rent_vs_market": "below", "local_vacancy_rate": 1, "market_power_balance": "landlord-favored"},
        {"time_until_decision": 2},
    )

    leverage = calculate_leverage_score(user, market, situation)

    assert leverage.strengths == []
    assert leverage.weaknesses == [
        "Weak market position",
        "Financial constraints",
        "Strained relationship",
        "Poor timing",
    ]


def test_probability_breakdown_and_interval():
    user, market, situation = _contexts(
        {"landlord_relationship": "positive", "alternative_options": 1},
        {"current_rent_vs_market": "significantly-above", "local_vacancy_rate": 6},
        {"time_until_decision": 45},
    )
    leverage = calculate_leverage_score(user, market, situation)
    strategy = select_strategy(leverage, user, market)

    probability = calculate_success_probability(leverage, strategy, market, user)

    assert probability.overall == 95
    assert probability.confidence_interval.min == 80
    assert probability.confidence_interval.max == 100
    assert probability.breakdown.market_conditions == 90
    assert probability.breakdown.strategy_alignment == 76


def test_total_rounds_half_up_on_decimal_value():
    user, market, situation = _contexts(
        {
            "budget_flexibility": "tight",
            "employment_stability": "stable",
            "alternative_options": 0,
            "landlord_relationship": "positive",
            "tenant_history": "experienced",
        },
        {"current_rent_vs_market": "significantly-above", "local_vacancy_rate": 6, "seasonal_factor": "slow"},
        {"time_until_decision": 20},
    )

    leverage = calculate_leverage_score(user, market, situation)

    assert leverage.factors.model_dump() == {"market": 9, "financial": 2, "relationship": 9, "timing": 7}
    assert leverage.total == 7.0
    assert select_strategy(leverage, user, market).type == "assertive_collaborative"


def test_probability_rounds_half_up():
    user, market, _ = _contexts()
    leverage = LeverageScore(total=5.5, factors=LeverageFactors(market=5, financial=5, relationship=5, timing=6))
    strategy = build_strategy("collaborative_approach", "test")

    probability = calculate_success_probability(leverage, strategy, market, user)

    assert probability.overall == 69
    assert probability.breakdown.strategy_alignment == 55


@pytest.mark.parametrize(
    "value, ndigits, expected",
    [(6.95, 1, 7.0), (2.5, 0, 3), (68.5, 0, 69), (-2.5, 0, -2), (0.125, 2, 0.13), (4.4, 0, 4)],
)
def test_round_half_up(value, ndigits, expected):
    assert round_half_up(value, ndigits) == expected


def test_collaborative_reasoning_mentions_relationship():
    user, market, situation = _contexts(market={"rent_trend": "decreasing"})
    leverage = calculate_leverage_score(user, market, situation)

    assert "workable relationship" in select_strategy(leverage, user, market).reasoning
