"""Value records exchanged between the roadmap components.

Every model is frozen: a record is built once per request and never mutated.
Python attributes are snake_case; JSON uses the camelCase aliases.
"""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

BudgetFlexibility = Literal["tight", "moderate", "flexible"]
EmploymentStability = Literal["stable", "variable", "unstable"]
PreferredTone = Literal["direct", "diplomatic", "collaborative", "assertive"]
RiskTolerance = Literal["conservative", "moderate", "aggressive"]
ConflictStyle = Literal["avoider", "compromiser", "competitor", "collaborator"]
LandlordRelationship = Literal["new", "positive", "neutral", "strained"]
TenantHistory = Literal["first-time", "experienced", "veteran"]
Urgency = Literal["flexible", "moderate", "urgent"]
MovingFlexibility = Literal["committed-to-stay", "willing-to-move", "eager-to-move"]

RentVsMarket = Literal["below", "at", "above", "significantly-above"]
RentTrend = Literal["increasing", "stable", "decreasing"]
SeasonalFactor = Literal["peak", "normal", "slow"]
PowerBalance = Literal["landlord-favored", "balanced", "tenant-favored"]

LeaseStatus = Literal["pre-application", "application-pending", "active-lease", "renewal-period"]
PrimaryGoal = Literal["rent-reduction", "amenity-addition", "lease-terms", "maintenance-issues"]

StrategyType = Literal[
    "assertive_collaborative",
    "collaborative_approach",
    "relationship_building",
    "leverage_focused",
    "strategic_patience",
]
IntelligenceSource = Literal["datasets", "semantic", "synthetic"]


class Record(BaseModel):
    model_config = {"frozen": True, "populate_by_name": True, "alias_generator": to_camel}


# Inputs ---------------------------------------------------------------------


class UserContext(Record):
    current_rent: float = Field(gt=0)
    income: Optional[float] = None
    credit_score: Optional[int] = None
    budget_flexibility: BudgetFlexibility = "moderate"
    employment_stability: EmploymentStability = "stable"
    preferred_tone: PreferredTone = "diplomatic"
    risk_tolerance: RiskTolerance = "moderate"
    conflict_style: ConflictStyle = "collaborator"
    landlord_relationship: LandlordRelationship = "neutral"
    tenant_history: TenantHistory = "experienced"
    urgency: Urgency = "moderate"
    alternative_options: int = Field(default=0, ge=0)
    moving_flexibility: MovingFlexibility = "willing-to-move"


class ComparableRange(Record):
    min: float
    max: float
    median: float


class MarketContext(Record):
    current_rent_vs_market: RentVsMarket = "at"
    local_vacancy_rate: float = Field(default=5.0, ge=0)
    rent_trend: RentTrend = "stable"
    seasonal_factor: SeasonalFactor = "normal"
    market_power_balance: PowerBalance = "balanced"
    comparable_range: Optional[ComparableRange] = None


class SituationContext(Record):
    lease_status: LeaseStatus = "active-lease"
    time_until_decision: int = Field(default=30, ge=0)
    target_reduction: float = Field(default=0, ge=0)
    primary_goal: PrimaryGoal = "rent-reduction"


# Market intelligence --------------------------------------------------------


class ComparableProperty(Record):
    rent: float
    type: Optional[str] = None
    distance: Optional[str] = None


class MarketTrends(Record):
    avg_rent: Optional[float] = None
    median_rent: Optional[float] = None
    rent_growth: Optional[str] = None
    market_condition: Optional[str] = None


class LocationData(Record):
    area_description: Optional[str] = None


class MarketIntelligence(Record):
    comparable_properties: List[ComparableProperty] = Field(default_factory=list)
    market_trends: MarketTrends = Field(default_factory=MarketTrends)
    location_specific_data: LocationData = Field(default_factory=LocationData)
    negotiation_evidence: List[str] = Field(default_factory=list)
    source: Optional[IntelligenceSource] = None

    @property
    def reference_rent(self) -> Optional[float]:
        """Most specific known market rent: the average, else the median."""
        return self.market_trends.avg_rent or self.market_trends.median_rent

    def has_evidence(self) -> bool:
        return bool(self.comparable_properties or self.negotiation_evidence or self.reference_rent)


# Scores ---------------------------------------------------------------------


class LeverageFactors(Record):
    market: float
    financial: float
    relationship: float
    timing: float


class LeverageScore(Record):
    total: float
    factors: LeverageFactors
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)


class Strategy(Record):
    type: StrategyType
    name: str
    description: str
    reasoning: str


class ProbabilityBreakdown(Record):
    market_conditions: int
    relationship_strength: int
    timing_optimality: int
    strategy_alignment: int


class ConfidenceInterval(Record):
    min: int
    max: int


class SuccessProbability(Record):
    overall: int
    breakdown: ProbabilityBreakdown
    confidence_interval: ConfidenceInterval


# Plan -----------------------------------------------------------------------


class Phase(Record):
    id: int
    name: str
    duration: str
    description: str
    status: Literal["active", "pending"]


class Timeline(Record):
    estimated_duration: str
    phases: List[Phase]


class ActionItem(Record):
    type: Literal["research", "document", "communicate", "wait", "analyze"]
    description: str
    automated: bool
    priority: Literal["high", "medium", "low"]


class StepTemplates(Record):
    email: Optional[str] = None
    phone_script: Optional[str] = None
    follow_up: Optional[str] = None


class Step(Record):
    id: int
    phase: int
    title: str
    description: str
    status: Literal["active", "pending"]
    difficulty: Literal["easy", "medium", "hard"]
    estimated_time: str
    action_items: List[ActionItem]
    success_metrics: List[str]
    tips: List[str]
    risk_factors: List[str]
    templates: Optional[StepTemplates] = None


class Guidance(Record):
    current_recommendations: List[str]
    warning_flags: List[str]
    opportunity_alerts: List[str]
    next_best_actions: List[str]


# Output ---------------------------------------------------------------------


class RoadmapMarketSummary(Record):
    current_rent: float
    target_rent: float
    market_position: RentVsMarket
    comparable_range: Optional[ComparableRange] = None
    negotiation_room: int


class AdaptationTrigger(Record):
    condition: str
    suggested_adjustment: str
    impact: Literal["minor", "moderate", "major"]


class Roadmap(Record):
    strategy: Strategy
    success_probability: SuccessProbability
    leverage_score: LeverageScore
    timeline: Timeline
    steps: List[Step]
    guidance: Guidance
    market_context: RoadmapMarketSummary
    enriched_market_context: MarketContext
    market_intelligence: Optional[MarketIntelligence] = None
    adaptation_triggers: List[AdaptationTrigger]

    def to_payload(self) -> dict:
        """JSON-ready dict using the camelCase wire names."""
        return self.model_dump(mode="json", by_alias=True)
