"""Read-only access to the market datasets kept in Supabase.

Three tables back the structured tier of market fusion:

* ``rent_predictions``: model output keyed by location name.
* ``hud_fair_market_rents``: HUD fair-market-rent baselines per county/state.
* ``zillow_rent_data``: metro-level observed rent index.

Every lookup either returns validated rows or raises ``MarketDataUnavailable``.
"""

from __future__ import annotations

import os
import re
import time
from typing import Any, Callable, Dict, List, Tuple

import httpx
from postgrest import APIError

from supabase import Client, create_client

from storage.schemas import BaselineRow, IndexRow, PredictionRow, validate_rows
from telemetry.logging_utils import get_logger

logger = get_logger(__name__)

HUD_BASELINE_YEAR = int(os.getenv("HUD_BASELINE_YEAR", "2024"))
PREDICTIONS_TABLE = "rent_predictions"
BASELINE_TABLE = "hud_fair_market_rents"
INDEX_TABLE = "zillow_rent_data"


class MarketDataUnavailable(RuntimeError):
    """A dataset lookup failed; callers treat this as 'no rows'."""


def split_location(location: str) -> Tuple[str, str]:
    """Split "Travis County, TX" into a primary term and a region term.

    Characters with meaning in PostgREST filter strings are removed.
    """
    parts = [re.sub(r"[%,().*]", "", part).strip() for part in (location or "").split(",")]
    parts = [part for part in parts if part]
    if not parts:
        return "", ""
    return parts[0], parts[-1] if len(parts) > 1 else ""


class SupabaseMarketStore:
    def __init__(self, url: str, key: str, *, client: Client = None) -> None:
        self.client: Client = client or create_client(url, key)
        self._max_retries = 3
        self._retry_backoff_seconds = 0.25

    def _table(self, name: str):
        return self.client.table(name)

    def _with_retry(self, fn: Callable[[], Any]) -> Any:
        delay = self._retry_backoff_seconds
        for attempt in range(self._max_retries):
            try:
                return fn()
            except (httpx.TransportError, APIError):
                if attempt >= self._max_retries - 1:
                    raise
                time.sleep(delay)
                delay *= 2

    def _fetch(self, table: str, build: Callable[[], Any]) -> List[Dict[str, Any]]:
        try:
            resp = self._with_retry(lambda: build().execute())
        except (httpx.HTTPError, APIError) as exc:
            raise MarketDataUnavailable(f"{table} lookup failed: {exc}") from exc
        return resp.data or []

    def lookup_prediction(self, location: str) -> List[Dict[str, Any]]:
        term, _ = split_location(location)
        if not term:
            return []
        rows = self._fetch(
            PREDICTIONS_TABLE,
            lambda: self._table(PREDICTIONS_TABLE)
            .select("*")
            .ilike("location_name", f"%{term}%")
            .order("prediction_date", desc=True)
            .limit(1),
        )
        return validate_rows(PredictionRow, rows, source=PREDICTIONS_TABLE, limit=1)

    def lookup_baseline(self, location: str) -> List[Dict[str, Any]]:
        term, region = split_location(location)
        if not term:
            return []
        clauses = [f"county_name.ilike.%{term}%", f"state_name.ilike.%{term}%"]
        if region:
            clauses.append(f"state_code.eq.{region.upper()}" if len(region) == 2 else f"state_name.ilike.%{region}%")
        rows = self._fetch(
            BASELINE_TABLE,
            lambda: self._table(BASELINE_TABLE)
            .select("*")
            .or_(",".join(clauses))
            .eq("year", HUD_BASELINE_YEAR)
            .limit(5),
        )
        return validate_rows(BaselineRow, rows, source=BASELINE_TABLE, limit=5)

    def lookup_index(self, location: str) -> List[Dict[str, Any]]:
        term, _ = split_location(location)
        if not term:
            return []
        rows = self._fetch(
            INDEX_TABLE,
            lambda: self._table(INDEX_TABLE)
            .select("*")
            .ilike("metro_area", f"%{term}%")
            .order("report_date", desc=True)
            .limit(3),
        )
        return validate_rows(IndexRow, rows, source=INDEX_TABLE, limit=3)
