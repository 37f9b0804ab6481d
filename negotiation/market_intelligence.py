"""Market intelligence fusion.

Resolves a location and current rent into a ``MarketIntelligence`` record by
walking an ordered list of tiers:

1. structured datasets (predictions, HUD baselines, metro rent index),
   queried concurrently;
2. a semantic market analysis whose free text goes through the evidence
   parser;
3. a synthetic estimate derived from the current rent alone.

The first tier that returns a record wins. The synthetic tier always
returns one, so ``fuse`` never raises and never returns None.
"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, List, Optional, Tuple

from negotiation.evidence_parser import parse_market_text
from negotiation.market_analyst import ask_market_question, build_market_question, semantic_analysis_available
from negotiation.models import ComparableProperty, LocationData, MarketIntelligence, MarketTrends
from negotiation.rounding import round_half_up, to_decimal
from telemetry.logging_utils import get_logger
from telemetry.metrics import start_timer

logger = get_logger(__name__)

LOOKUP_TIMEOUT_SECONDS = float(os.getenv("MARKET_LOOKUP_TIMEOUT_SECONDS", "10"))

# Current rent more than this fraction above the market average is called out.
ABOVE_MARKET_CALLOUT = 0.10

# (multiplier, type, distance) for the rent-derived comparables.
SYNTHETIC_COMPARABLES: Tuple[Tuple[float, str, str], ...] = (
    (0.90, "Comparable unit", "0.5 miles"),
    (0.95, "Similar property", "0.3 miles"),
    (1.05, "Similar property", "0.2 miles"),
)
SYNTHETIC_AVG_FACTOR = 0.93
SYNTHETIC_MEDIAN_FACTOR = 0.95
SYNTHETIC_EVIDENCE = (
    "Local market data suggests negotiation opportunities",
    "Comparable properties are listed at or below your current rent",
)

AskFn = Callable[[str], str]
Tier = Callable[[Optional[str], float], Optional[MarketIntelligence]]


def _money(value: float) -> str:
    return f"${value:,.0f}"


def _scaled_rent(current_rent: float, factor: float) -> float:
    return float(round_half_up(to_decimal(current_rent) * to_decimal(factor)))


def _growth_label(percent: float) -> str:
    return f"{percent:.1f}%"


def _condition_from_growth(percent: Optional[float]) -> str:
    if percent is None:
        return "balanced"
    if percent < 0:
        return "tenant-favored"
    if percent > 3:
        return "landlord-favored"
    return "balanced"


def merge_dataset_rows(
    location: str,
    current_rent: float,
    predictions: List[Dict[str, Any]],
    baselines: List[Dict[str, Any]],
    index_rows: List[Dict[str, Any]],
) -> Optional[MarketIntelligence]:
    """Combine rows from the three datasets; None when nothing usable came back."""
    comparables: List[ComparableProperty] = []
    evidence: List[str] = []
    sources: List[str] = []
    avg_rent: Optional[float] = None
    median_rent: Optional[float] = None
    growth: Optional[float] = None

    baseline_rents = [row["two_br_fmr"] for row in baselines if row.get("two_br_fmr")]
    if baseline_rents:
        sources.append("HUD fair market rents")
        for row in baselines:
            if row.get("two_br_fmr"):
                region = ", ".join(part for part in (row.get("county_name"), row.get("state_code")) if part)
                comparables.append(
                    ComparableProperty(rent=row["two_br_fmr"], type="2BR Fair Market Rent", distance=region or None)
                )
        baseline_avg = float(round_half_up(to_decimal(sum(baseline_rents)) / len(baseline_rents)))
        evidence.append(f"HUD fair market rent for a two-bedroom averages {_money(baseline_avg)} in this area")
        avg_rent = baseline_avg

    index_rents = [row for row in index_rows if row.get("median_rent")]
    if index_rents:
        sources.append("metro rent index")
        for row in index_rents:
            comparables.append(
                ComparableProperty(rent=row["median_rent"], type="Metro median rent", distance=row.get("metro_area"))
            )
        latest = index_rents[0]
        avg_rent = median_rent = float(latest["median_rent"])
        gap = (to_decimal(avg_rent) - to_decimal(current_rent)) / to_decimal(current_rent) * 100
        direction = "above" if gap >= 0 else "below"
        evidence.append(
            f"Metro median rent is {_money(avg_rent)}, {round_half_up(abs(gap))}% {direction} your current rent"
        )
        if latest.get("year_over_year_change") is not None:
            growth = float(latest["year_over_year_change"])
            evidence.append(f"Year-over-year metro rent change: {growth:+.1f}%")

    if predictions:
        prediction = predictions[0]
        if prediction.get("predicted_rent"):
            sources.append("rent predictions")
            evidence.append(f"Market prediction puts rent for this area around {_money(prediction['predicted_rent'])}")
        if prediction.get("predicted_change_percent") is not None:
            if "rent predictions" not in sources:
                sources.append("rent predictions")
            evidence.append(f"Predicted market change: {prediction['predicted_change_percent']:+.1f}%")
            if growth is None:
                growth = float(prediction["predicted_change_percent"])

    if avg_rent and current_rent > avg_rent * (1 + ABOVE_MARKET_CALLOUT):
        percent = round_half_up((to_decimal(current_rent) - to_decimal(avg_rent)) / to_decimal(avg_rent) * 100)
        evidence.append(f"Your rent ({_money(current_rent)}) is {percent}% above market average")

    if not comparables and not evidence:
        return None

    return MarketIntelligence(
        comparable_properties=comparables,
        market_trends=MarketTrends(
            avg_rent=avg_rent,
            median_rent=median_rent or avg_rent,
            rent_growth=_growth_label(growth) if growth is not None else None,
            market_condition=_condition_from_growth(growth),
        ),
        location_specific_data=LocationData(
            area_description=f"Market analysis for {location} based on {', '.join(sources)}"
        ),
        negotiation_evidence=evidence,
        source="datasets",
    )


def synthesize_market_intelligence(location: Optional[str], current_rent: float) -> MarketIntelligence:
    """Rent-derived estimate used when no data source produced anything."""
    where = f" for {location}" if location else ""
    return MarketIntelligence(
        comparable_properties=[
            ComparableProperty(rent=_scaled_rent(current_rent, factor), type=kind, distance=distance)
            for factor, kind, distance in SYNTHETIC_COMPARABLES
        ],
        market_trends=MarketTrends(
            avg_rent=_scaled_rent(current_rent, SYNTHETIC_AVG_FACTOR),
            median_rent=_scaled_rent(current_rent, SYNTHETIC_MEDIAN_FACTOR),
            market_condition="balanced",
        ),
        location_specific_data=LocationData(area_description=f"Estimated market conditions{where} based on your current rent"),
        negotiation_evidence=list(SYNTHETIC_EVIDENCE),
        source="synthetic",
    )


class MarketIntelligenceService:
    """Runs the fusion tiers against a market store and a semantic analyst.

    ``store`` needs ``lookup_prediction``, ``lookup_baseline`` and
    ``lookup_index``; ``ask`` takes a prompt and returns free text. Either
    may be None, which skips the corresponding tier.
    """

    def __init__(self, store: Any = None, ask: Optional[AskFn] = None, *, lookup_timeout: float = LOOKUP_TIMEOUT_SECONDS) -> None:
        self.store = store
        self.ask = ask
        self.lookup_timeout = lookup_timeout

    @classmethod
    def from_env(cls, store: Any = None) -> "MarketIntelligenceService":
        if store is None:
            from storage import default_market_store

            store = default_market_store()
        return cls(store, ask_market_question if semantic_analysis_available() else None)

    def tiers(self) -> List[Tuple[str, Tier]]:
        return [
            ("datasets", self.from_datasets),
            ("semantic", self.from_semantic_analysis),
            ("synthetic", synthesize_market_intelligence),
        ]

    def fuse(self, location: Optional[str], current_rent: float) -> MarketIntelligence:
        logger.info("market_fusion_start", extra={"location": location, "has_store": self.store is not None})
        for name, tier in self.tiers():
            try:
                result = tier(location, current_rent)
            except Exception as exc:
                logger.warning("market_tier_failed", extra={"tier": name, "error": f"{type(exc).__name__}: {exc}"})
                continue
            if result is not None:
                logger.info(
                    "market_tier_resolved",
                    extra={
                        "tier": name,
                        "comparables": len(result.comparable_properties),
                        "evidence": len(result.negotiation_evidence),
                        "avg_rent": result.market_trends.avg_rent,
                    },
                )
                return result
        return synthesize_market_intelligence(location, current_rent)

    # Tier 1 ------------------------------------------------------------------

    def _run_lookup(self, name: str, lookup: Callable[[str], List[Dict[str, Any]]], location: str):
        timer = start_timer("market_lookup", name)
        try:
            rows = lookup(location) or []
        except Exception:
            timer.done(outcome="error")
            raise
        timer.done(rows=len(rows))
        return rows

    def query_datasets(self, location: str) -> Dict[str, List[Dict[str, Any]]]:
        """Run the three lookups concurrently; failed or slow lookups count as empty."""
        lookups = {
            "prediction": self.store.lookup_prediction,
            "baseline": self.store.lookup_baseline,
            "index": self.store.lookup_index,
        }
        results: Dict[str, List[Dict[str, Any]]] = {name: [] for name in lookups}
        executor = ThreadPoolExecutor(max_workers=len(lookups), thread_name_prefix="market-lookup")
        try:
            futures = {executor.submit(self._run_lookup, name, fn, location): name for name, fn in lookups.items()}
            done, pending = wait(futures, timeout=self.lookup_timeout)
            for future in pending:
                future.cancel()
                logger.warning("market_lookup_timeout", extra={"lookup": futures[future], "timeout_s": self.lookup_timeout})
            for future in done:
                name = futures[future]
                try:
                    results[name] = future.result()
                except Exception as exc:
                    logger.warning("market_lookup_failed", extra={"lookup": name, "error": f"{type(exc).__name__}: {exc}"})
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return results

    def from_datasets(self, location: Optional[str], current_rent: float) -> Optional[MarketIntelligence]:
        if not location or self.store is None:
            return None
        rows = self.query_datasets(location)
        return merge_dataset_rows(location, current_rent, rows["prediction"], rows["baseline"], rows["index"])

    # Tier 2 ------------------------------------------------------------------

    def from_semantic_analysis(self, location: Optional[str], current_rent: float) -> Optional[MarketIntelligence]:
        if not location or self.ask is None:
            return None
        try:
            text = self.ask(build_market_question(location, current_rent))
        except Exception as exc:
            logger.warning("semantic_market_analysis_failed", extra={"error": f"{type(exc).__name__}: {exc}"})
            return None
        parsed = parse_market_text(text, current_rent)
        return parsed if parsed.has_evidence() else None
