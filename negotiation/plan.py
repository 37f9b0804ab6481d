"""Phase timeline and step-by-step plan for a chosen strategy.

Wording is static per strategy. When market intelligence is available, the
first evidence point, the area description and the reference market rent
are substituted into descriptions and templates; otherwise generic wording
is used, so plan generation never depends on market data being present.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from negotiation.models import (
    ActionItem,
    LeverageScore,
    MarketContext,
    MarketIntelligence,
    Phase,
    SituationContext,
    Step,
    StepTemplates,
    Strategy,
    Timeline,
    UserContext,
)
from negotiation.rounding import round_half_up, to_decimal

SHORT_WINDOW_DAYS = 14
SHORT_DURATION = "1-2 weeks"
STANDARD_DURATION = "3-6 weeks"

EVIDENCE = "evidence"
AREA = "area"

# strategy -> [(name, duration, generic description, substitution)]
PHASE_TEMPLATES: Dict[str, List[Tuple[str, str, str, Optional[str]]]] = {
    "assertive_collaborative": [
        ("Foundation Setting", "2-3 days", "Gather market data and prepare a compelling case", None),
        ("Initial Approach", "1 week", "Present your request with market evidence", EVIDENCE),
        ("Collaborative Resolution", "1-2 weeks", "Work together to find a mutually beneficial solution", None),
    ],
    "collaborative_approach": [
        ("Collaborative Setup", "3-5 days", "Frame the conversation as joint problem-solving", None),
        ("Mutual Exploration", "1-2 weeks", "Explore options together using shared market facts", EVIDENCE),
        ("Win-Win Solution", "1 week", "Finalize a mutually beneficial agreement", None),
    ],
    "relationship_building": [
        ("Relationship Repair", "2-4 weeks", "Address open issues and rebuild trust", None),
        ("Value Demonstration", "2-3 weeks", "Show your worth as a reliable tenant", None),
        ("Gentle Approach", "1-2 weeks", "Make your request from a position of trust", EVIDENCE),
    ],
    "leverage_focused": [
        ("Leverage Assessment", "1-2 days", "Document every negotiation advantage you have", None),
        ("Direct Negotiation", "3-5 days", "Present your case with clear alternatives", EVIDENCE),
        ("Final Agreement", "3-7 days", "Secure commitment and formalize the new terms", None),
    ],
    "strategic_patience": [
        ("Intelligence Gathering", "2-3 weeks", "Monitor the market and build the relationship", AREA),
        ("Position Building", "3-4 weeks", "Strengthen leverage and demonstrate value", None),
        ("Strategic Timing", "1-2 weeks", "Execute when conditions are optimal", EVIDENCE),
    ],
}

TONE_OPENERS = {
    "direct": "I'd like to talk about my rent.",
    "diplomatic": "I hope you're doing well. I wanted to find a good time to talk about my lease.",
    "collaborative": "I'd love to work out a lease arrangement that works well for both of us.",
    "assertive": "I've reviewed current market rents and would like to discuss adjusting mine.",
}

TONE_CLOSERS = {
    "direct": "Please let me know a time that works this week.",
    "diplomatic": "I value our relationship and would appreciate the chance to discuss this further.",
    "collaborative": "I'm open to ideas on your side as well, such as a longer lease term.",
    "assertive": "I'd like to settle this before my renewal decision is due.",
}

CONFLICT_STYLE_TIPS = {
    "avoider": "Put your request in writing first so you have time to prepare your responses",
    "competitor": "Keep the focus on shared interests rather than winning every point",
    "compromiser": "Decide your walk-away number before you open, so early concessions stay small",
    "collaborator": "Ask what the landlord needs; a longer lease or early renewal can be traded for rent",
}

GENERIC_EMAIL = (
    "Subject: Request to Discuss Rent Adjustment\n\n"
    "Dear [Landlord Name],\n\n"
    "I hope this email finds you well. I wanted to reach out regarding my current lease and discuss "
    "the possibility of a rent adjustment based on current market conditions.\n\n"
    "[Include market research here]\n\n"
    "I value our relationship and would appreciate the opportunity to discuss this further.\n\n"
    "Best regards,\n[Your Name]"
)


def _money(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.0f}"


def _first_evidence(intelligence: Optional[MarketIntelligence]) -> Optional[str]:
    if intelligence and intelligence.negotiation_evidence:
        return intelligence.negotiation_evidence[0]
    return None


def _area_description(intelligence: Optional[MarketIntelligence]) -> Optional[str]:
    if intelligence:
        return intelligence.location_specific_data.area_description
    return None


def _status(index: int) -> str:
    return "active" if index == 0 else "pending"


def generate_timeline(
    strategy: Strategy, situation: SituationContext, intelligence: Optional[MarketIntelligence] = None
) -> Timeline:
    evidence = _first_evidence(intelligence)
    area = _area_description(intelligence)
    reference = intelligence.reference_rent if intelligence else None
    phases = []
    for index, (name, duration, description, substitution) in enumerate(PHASE_TEMPLATES[strategy.type]):
        if substitution == EVIDENCE and evidence:
            description = f"{description}. Lead with: {evidence}"
        elif substitution == AREA and area:
            description = f"Track local market conditions: {area}"
        elif index == 0 and reference:
            description = f"{description} (local average rent {_money(reference)})"
        phases.append(Phase(id=index + 1, name=name, duration=duration, description=description, status=_status(index)))
    estimated = SHORT_DURATION if situation.time_until_decision < SHORT_WINDOW_DAYS else STANDARD_DURATION
    return Timeline(estimated_duration=estimated, phases=phases)


# Templates ------------------------------------------------------------------


def market_research_email(intelligence: MarketIntelligence, current_rent: float) -> str:
    """Rent adjustment email filled with the fused market figures."""
    lines = [
        "Subject: Market-Based Rent Adjustment Request",
        "",
        "Dear [Landlord Name],",
        "",
        "I hope this email finds you well. I wanted to reach out regarding my current lease and discuss "
        "the possibility of a rent adjustment based on current market conditions.",
        "",
        "I've researched the local market and found the following:",
    ]
    reference = intelligence.reference_rent
    if reference:
        difference = current_rent - reference
        percent = round_half_up(to_decimal(difference) / to_decimal(reference) * 100)
        lines += [
            "",
            "Market analysis:",
            f"- Current rent: {_money(current_rent)}",
            f"- Market average: {_money(reference)}",
            f"- Difference: {_money(difference)} ({percent:+d}%)",
        ]
    comparables = intelligence.comparable_properties[:3]
    if comparables:
        lines += ["", "Comparable properties:"]
        for number, prop in enumerate(comparables, start=1):
            detail = f" ({prop.type})" if prop.type else ""
            where = f" - {prop.distance}" if prop.distance else ""
            lines.append(f"- Property {number}: {_money(prop.rent)}{detail}{where}")
    evidence = intelligence.negotiation_evidence[:2]
    if evidence:
        lines += ["", "Market evidence:"] + [f"- {point}" for point in evidence]
    lines += [
        "",
        "I value our relationship and believe this adjustment would align my rent with current market "
        "conditions. I'd appreciate the opportunity to discuss this at your convenience.",
        "",
        "Thank you for your time and consideration.",
        "",
        "Best regards,",
        "[Your Name]",
    ]
    return "\n".join(lines)


def initial_request_email(user: UserContext, situation: SituationContext, intelligence: Optional[MarketIntelligence]) -> str:
    target = max(user.current_rent - situation.target_reduction, 0)
    body = [
        "Subject: Lease Renewal and Rent Discussion",
        "",
        "Dear [Landlord Name],",
        "",
        TONE_OPENERS[user.preferred_tone],
        "",
        f"My current rent is {_money(user.current_rent)}. Based on my research, I'd like to propose "
        f"{_money(target)} per month.",
    ]
    reference = intelligence.reference_rent if intelligence else None
    if reference:
        body.append(f"Comparable units in the area average about {_money(reference)}.")
    body += ["", TONE_CLOSERS[user.preferred_tone], "", "Best regards,", "[Your Name]"]
    return "\n".join(body)


def phone_script(user: UserContext) -> str:
    return (
        f"Hi [Landlord Name], {TONE_OPENERS[user.preferred_tone]} "
        "I've done some market research I'd like to share. Would you have 15-20 minutes this week to discuss?"
    )


def follow_up_email(user: UserContext) -> str:
    return "\n".join(
        [
            "Subject: Following Up on My Rent Request",
            "",
            "Dear [Landlord Name],",
            "",
            "I wanted to follow up on my earlier message about my rent. "
            + TONE_CLOSERS[user.preferred_tone],
            "",
            "Best regards,",
            "[Your Name]",
        ]
    )


# Steps ----------------------------------------------------------------------


def _customize_tips(tips: List[str], user: UserContext) -> List[str]:
    customized = list(tips)
    if user.tenant_history == "first-time":
        customized.append("As a first-time renter, emphasize your stability and reliability")
    if user.landlord_relationship == "strained":
        customized.append("Focus on rebuilding trust before making requests")
    return customized


def _comparable_target(leverage: LeverageScore, market: MarketContext) -> str:
    if leverage.factors.market < 5:
        target = "Find 5-7 comparable properties (more needed due to weak market position)"
    else:
        target = "Find 3-5 comparable properties"
    if market.current_rent_vs_market in ("above", "significantly-above"):
        target += ", focusing on listings priced below your current rent"
    return target


def _research_step(
    leverage: LeverageScore, user: UserContext, market: MarketContext, intelligence: Optional[MarketIntelligence]
) -> dict:
    reference = intelligence.reference_rent if intelligence else None
    comparable_target = _comparable_target(leverage, market)
    if intelligence:
        description = (
            f"Based on local market data showing average rents of {_money(reference)}, gather additional "
            "comparable property data to strengthen your negotiation position"
            if reference
            else "Review the market data found for your area and gather additional comparable properties"
        )
        action_items = [
            ActionItem(
                type="research",
                description=f"Use the provided comparable properties ({len(intelligence.comparable_properties)} found)",
                automated=True,
                priority="high",
            ),
            ActionItem(type="research", description=comparable_target, automated=False, priority="medium"),
            ActionItem(type="document", description="Create a comparison summary with real market data", automated=False, priority="high"),
        ]
        metrics = [
            f"Market average: {_money(reference) if reference else 'N/A'}",
            f"Evidence points: {len(intelligence.negotiation_evidence)} identified",
        ]
        tips = [
            f"Current rent vs market: {_money(user.current_rent)} vs {_money(reference)}" if reference else "Current rent vs market: analysis needed",
            f"Key evidence: {_first_evidence(intelligence) or 'Market data supports negotiation'}",
        ]
        email = market_research_email(intelligence, user.current_rent)
    else:
        description = "Gather comparable property data to support your negotiation"
        action_items = [
            ActionItem(type="research", description=comparable_target, automated=True, priority="high"),
            ActionItem(type="document", description="Create a comparison summary", automated=False, priority="high"),
        ]
        metrics = ["Clear rent difference established", "Compelling evidence gathered"]
        tips = ["Focus on similar properties within 0.5 miles", "Include only active listings from the last 30 days"]
        email = GENERIC_EMAIL
    return dict(
        title="Market Research",
        description=description,
        difficulty="easy",
        estimated_time="2-3 hours",
        action_items=action_items,
        success_metrics=metrics,
        tips=tips,
        risk_factors=["Don't overwhelm the landlord with too much data"],
        templates=StepTemplates(email=email),
    )


def _planning_step(user: UserContext) -> dict:
    return dict(
        title="Approach Planning",
        description="Plan your communication strategy and timing",
        difficulty="medium",
        estimated_time="1 hour",
        action_items=[
            ActionItem(type="analyze", description="Review how your landlord prefers to communicate", automated=False, priority="medium"),
            ActionItem(type="document", description="Draft your initial request", automated=False, priority="high"),
        ],
        success_metrics=["Clear communication plan", "Appropriate tone selected"],
        tips=[
            "Consider your landlord's preferred communication method",
            "Choose a time when they're not stressed",
            CONFLICT_STYLE_TIPS[user.conflict_style],
        ],
        risk_factors=["Avoid approaching during busy periods"],
        templates=StepTemplates(phone_script=phone_script(user)),
    )


def _contact_step(strategy: Strategy, user: UserContext, situation: SituationContext, intelligence: Optional[MarketIntelligence]) -> dict:
    wait_days = "2-3" if user.urgency == "urgent" else "3-5"
    tips = ["Be confident but respectful", "Focus on mutual benefits", "Provide specific data"]
    if strategy.type == "relationship_building":
        tips = ["Open with appreciation before raising rent", "Keep the first request modest", "Listen more than you talk"]
    return dict(
        title="Initial Contact",
        description="Make your initial request with supporting evidence",
        difficulty="hard",
        estimated_time="30 minutes",
        action_items=[
            ActionItem(type="communicate", description="Send your initial request email", automated=False, priority="high"),
            ActionItem(type="wait", description=f"Allow {wait_days} business days for a response", automated=True, priority="medium"),
        ],
        success_metrics=["Request clearly communicated", "Professional tone maintained"],
        tips=tips,
        risk_factors=["Don't be too aggressive on the first approach"],
        templates=StepTemplates(email=initial_request_email(user, situation, intelligence)),
    )


CLOSING_STEPS: Dict[str, Tuple[str, str, List[str]]] = {
    "assertive_collaborative": ("Negotiate and Close", "Respond to counteroffers and confirm the new rent in writing", ["Hold near your target; concede on timing, not price"]),
    "collaborative_approach": ("Agree on Options", "Settle on a package that works for both sides", ["Offer a longer lease or early renewal in exchange for rent relief"]),
    "relationship_building": ("Revisit the Request", "Follow up once trust is re-established", ["Give the landlord time; a second conversation often goes better"]),
    "leverage_focused": ("Secure Commitment", "Press for a decision and get the agreement in writing", ["Mention alternatives only once, clearly and calmly"]),
    "strategic_patience": ("Wait for the Window", "Track market changes and act when leverage improves", ["Slow season and renewal periods are your best windows"]),
}


def _closing_step(strategy: Strategy, user: UserContext) -> dict:
    title, description, tips = CLOSING_STEPS[strategy.type]
    return dict(
        title=title,
        description=description,
        difficulty="medium",
        estimated_time="1-2 weeks",
        action_items=[
            ActionItem(type="communicate", description="Follow up if there is no response", automated=False, priority="medium"),
            ActionItem(type="document", description="Get any agreed change added to your lease", automated=False, priority="high"),
        ],
        success_metrics=["Written response received", "Agreement documented"],
        tips=tips,
        risk_factors=["Verbal agreements are easy to forget; confirm in writing"],
        templates=StepTemplates(follow_up=follow_up_email(user)),
    )


def generate_steps(
    strategy: Strategy,
    leverage: LeverageScore,
    user: UserContext,
    market: MarketContext,
    situation: SituationContext,
    intelligence: Optional[MarketIntelligence] = None,
) -> List[Step]:
    drafts = [
        (1, _research_step(leverage, user, market, intelligence)),
        (1, _planning_step(user)),
        (2, _contact_step(strategy, user, situation, intelligence)),
        (3, _closing_step(strategy, user)),
    ]
    steps = []
    for index, (phase, draft) in enumerate(drafts):
        draft["tips"] = _customize_tips(draft["tips"], user)
        steps.append(Step(id=index + 1, phase=phase, status=_status(index), **draft))
    return steps
