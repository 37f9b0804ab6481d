from __future__ import annotations

from typing import Any, Dict, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from negotiation.engine import generate_roadmap
from negotiation.errors import MissingContextError
from negotiation.market_intelligence import MarketIntelligenceService
from negotiation.models import MarketContext, SituationContext, UserContext
from telemetry.logging_utils import get_logger
from telemetry.metrics import read_metrics, summarize_latency

load_dotenv()

logger = get_logger(__name__)
market_service = MarketIntelligenceService.from_env()


class RoadmapPayload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    user_context: Optional[UserContext] = None
    market_context: Optional[MarketContext] = None
    situation_context: Optional[SituationContext] = None
    location: Optional[str] = None


app = FastAPI()
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
def health() -> Dict[str, Any]:
    return {
        "status": "ok",
        "market_store": type(market_service.store).__name__,
        "semantic_analysis": market_service.ask is not None,
    }


@app.post("/api/negotiation/roadmap")
def negotiation_roadmap(payload: RoadmapPayload):
    try:
        roadmap = generate_roadmap(
            payload.user_context,
            payload.market_context,
            payload.situation_context,
            payload.location,
            service=market_service,
        )
    except MissingContextError as exc:
        logger.warning("roadmap_request_rejected", extra={"missing": exc.missing})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return roadmap.to_payload()


@app.get("/api/metrics/latency")
def latency_metrics(limit: int = 500):
    return summarize_latency(read_metrics(limit))
