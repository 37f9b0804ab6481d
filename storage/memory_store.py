from __future__ import annotations

from copy import deepcopy
from typing import Any, Dict, Iterable, List, Optional

from storage.market_store import HUD_BASELINE_YEAR, MarketDataUnavailable, split_location
from storage.schemas import BaselineRow, IndexRow, PredictionRow, validate_rows

DEMO_PREDICTIONS: List[Dict[str, Any]] = [
    {"location_name": "Austin, TX", "prediction_date": "2025-01-01", "predicted_rent": 1725, "predicted_change_percent": -2.1},
    {"location_name": "Denver, CO", "prediction_date": "2025-01-01", "predicted_rent": 1890, "predicted_change_percent": 1.4},
]

DEMO_BASELINES: List[Dict[str, Any]] = [
    {"county_name": "Travis County", "state_name": "Texas", "state_code": "TX", "year": 2024, "two_br_fmr": 1826},
    {"county_name": "Denver County", "state_name": "Colorado", "state_code": "CO", "year": 2024, "two_br_fmr": 2047},
]

DEMO_INDEX: List[Dict[str, Any]] = [
    {"metro_area": "Austin-Round Rock, TX", "report_date": "2024-12-31", "median_rent": 1695, "year_over_year_change": -3.2},
    {"metro_area": "Denver-Aurora-Lakewood, CO", "report_date": "2024-12-31", "median_rent": 1980, "year_over_year_change": 0.8},
]


def _matches(value: Optional[str], term: str) -> bool:
    return bool(value) and term.lower() in str(value).lower()


class InMemoryMarketStore:
    """Demo-mode market store used when Supabase is unavailable.

    ``failing`` names lookups ("prediction", "baseline", "index") that raise,
    which lets callers exercise partial-availability paths.
    """

    def __init__(
        self,
        predictions: Optional[Iterable[Dict[str, Any]]] = None,
        baselines: Optional[Iterable[Dict[str, Any]]] = None,
        index: Optional[Iterable[Dict[str, Any]]] = None,
        *,
        failing: Iterable[str] = (),
    ) -> None:
        self.predictions = deepcopy(list(DEMO_PREDICTIONS if predictions is None else predictions))
        self.baselines = deepcopy(list(DEMO_BASELINES if baselines is None else baselines))
        self.index = deepcopy(list(DEMO_INDEX if index is None else index))
        self.failing = set(failing)

    @classmethod
    def empty(cls, *, failing: Iterable[str] = ()) -> "InMemoryMarketStore":
        return cls(predictions=[], baselines=[], index=[], failing=failing)

    def _check(self, lookup: str) -> None:
        if lookup in self.failing:
            raise MarketDataUnavailable(f"{lookup} lookup unavailable")

    def lookup_prediction(self, location: str) -> List[Dict[str, Any]]:
        self._check("prediction")
        term, _ = split_location(location)
        rows = [row for row in self.predictions if term and _matches(row.get("location_name"), term)]
        rows.sort(key=lambda row: row.get("prediction_date") or "", reverse=True)
        return validate_rows(PredictionRow, rows, source="memory_predictions", limit=1)

    def lookup_baseline(self, location: str) -> List[Dict[str, Any]]:
        self._check("baseline")
        term, region = split_location(location)
        rows = []
        for row in self.baselines:
            if row.get("year") not in (None, HUD_BASELINE_YEAR):
                continue
            hit = _matches(row.get("county_name"), term) or _matches(row.get("state_name"), term)
            if region and not hit:
                hit = (row.get("state_code") or "").upper() == region.upper() or _matches(row.get("state_name"), region)
            if term and hit:
                rows.append(row)
        return validate_rows(BaselineRow, rows, source="memory_baselines", limit=5)

    def lookup_index(self, location: str) -> List[Dict[str, Any]]:
        self._check("index")
        term, _ = split_location(location)
        rows = [row for row in self.index if term and _matches(row.get("metro_area"), term)]
        rows.sort(key=lambda row: row.get("report_date") or "", reverse=True)
        return validate_rows(IndexRow, rows, source="memory_index", limit=3)
