"""Best-effort extraction of market evidence from free-form analysis text.

The heuristics here are deliberately loose: dollar figures near the tenant's
rent become comparables, keyword hits become qualitative labels. Nothing in
this module raises on odd input; text without usable signals simply yields
an intelligence record with empty lists.
"""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

from negotiation.models import ComparableProperty, LocationData, MarketIntelligence, MarketTrends
from negotiation.rounding import round_half_up, to_decimal

CURRENCY_RE = re.compile(r"\$\s?(\d{1,3}(?:,\d{3})+|\d+)(?:\.\d{1,2})?")
PERCENT_RE = re.compile(r"[-+−]?\s?\d+(?:\.\d+)?\s?%")
SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+|\n+")

# Accepted rent band, as multiples of the tenant's current rent.
SANITY_BAND: Tuple[float, float] = (0.5, 1.3)
MAX_COMPARABLES = 5

TENANT_FAVORED_TERMS = ("vacanc", "declin", "decreas", "softening", "concession")
LANDLORD_FAVORED_TERMS = ("competitive", "high demand", "high-demand", "bidding war", "tight market")
AREA_TERMS = ("area", "market", "location", "neighborhood")

BELOW_MARKET_TERMS = ("below market", "lower than average", "below average", "below the market")
EVIDENCE_BELOW_MARKET = "Market data shows comparable properties at lower rents"
EVIDENCE_HIGH_VACANCY = "Higher vacancy rates favor tenant negotiation"
EVIDENCE_DECLINING = "Market shows declining rent trends"
DEFAULT_AREA_DESCRIPTION = "Market analysis based on available data"


def _contains_any(text: str, terms) -> bool:
    return any(term in text for term in terms)


def extract_rents(text: str, current_rent: float) -> List[float]:
    """Dollar amounts within the sanity band around ``current_rent``, in text order."""
    low, high = SANITY_BAND[0] * current_rent, SANITY_BAND[1] * current_rent
    rents: List[float] = []
    for match in CURRENCY_RE.finditer(text):
        value = float(match.group(1).replace(",", ""))
        if low <= value <= high:
            rents.append(value)
    return rents


def extract_growth_rate(text: str) -> str:
    match = PERCENT_RE.search(text)
    if not match:
        return "stable"
    return re.sub(r"\s", "", match.group(0)).replace("−", "-")


def extract_market_condition(lowered: str) -> str:
    if _contains_any(lowered, TENANT_FAVORED_TERMS):
        return "tenant-favored"
    if _contains_any(lowered, LANDLORD_FAVORED_TERMS):
        return "landlord-favored"
    return "balanced"


def extract_area_description(text: str) -> str:
    for sentence in SENTENCE_SPLIT_RE.split(text):
        cleaned = sentence.strip().lstrip("#*-• ").strip()
        if cleaned and _contains_any(cleaned.lower(), AREA_TERMS):
            return cleaned
    return DEFAULT_AREA_DESCRIPTION


def extract_evidence(lowered: str) -> List[str]:
    evidence: List[str] = []
    if _contains_any(lowered, BELOW_MARKET_TERMS):
        evidence.append(EVIDENCE_BELOW_MARKET)
    if "vacanc" in lowered and "high" in lowered:
        evidence.append(EVIDENCE_HIGH_VACANCY)
    if "declin" in lowered or "decreas" in lowered:
        evidence.append(EVIDENCE_DECLINING)
    return evidence


def parse_market_text(text: Optional[str], current_rent: float) -> MarketIntelligence:
    """Turn a free-text market analysis into a ``MarketIntelligence`` record."""
    if not text or not text.strip():
        return MarketIntelligence(source="semantic")

    lowered = text.lower()
    rents = extract_rents(text, current_rent)
    avg_rent: Optional[float] = None
    median_rent: Optional[float] = None
    if rents:
        avg_rent = float(round_half_up(to_decimal(sum(rents)) / len(rents)))
        median_rent = sorted(rents)[len(rents) // 2]

    return MarketIntelligence(
        comparable_properties=[
            ComparableProperty(rent=rent, type="Similar property", distance="Local area")
            for rent in rents[:MAX_COMPARABLES]
        ],
        market_trends=MarketTrends(
            avg_rent=avg_rent,
            median_rent=median_rent,
            rent_growth=extract_growth_rate(text),
            market_condition=extract_market_condition(lowered),
        ),
        location_specific_data=LocationData(area_description=extract_area_description(text)),
        negotiation_evidence=extract_evidence(lowered),
        source="semantic",
    )
