from __future__ import annotations

from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError

from telemetry.logging_utils import get_logger

logger = get_logger(__name__)


class _Row(BaseModel):
    model_config = {"extra": "allow"}


class PredictionRow(_Row):
    location_name: Optional[str] = None
    prediction_date: Optional[str] = None
    predicted_rent: Optional[float] = None
    predicted_change_percent: Optional[float] = None


class BaselineRow(_Row):
    county_name: Optional[str] = None
    state_name: Optional[str] = None
    state_code: Optional[str] = None
    year: Optional[int] = None
    two_br_fmr: Optional[float] = None


class IndexRow(_Row):
    metro_area: Optional[str] = None
    report_date: Optional[str] = None
    median_rent: Optional[float] = None
    year_over_year_change: Optional[float] = None


def normalize_rows(raw: Any) -> List[Any]:
    if isinstance(raw, list):
        return raw
    if isinstance(raw, dict):
        for key in ("data", "rows", "items", "results"):
            if isinstance(raw.get(key), list):
                return raw[key]
    return []


def validate_rows(model: Type[_Row], raw: Any, *, source: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Coerce dataset rows through ``model``, logging and dropping the invalid ones."""
    cleaned: List[Dict[str, Any]] = []
    for entry in normalize_rows(raw):
        try:
            cleaned.append(model.model_validate(entry).model_dump())
        except ValidationError as exc:
            logger.warning("market_row_invalid", extra={"source": source, "error": str(exc)[:200]})
    if limit is not None:
        cleaned = cleaned[:limit]
    return cleaned
