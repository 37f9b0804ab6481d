"""Semantic market analysis backed by an OpenAI chat model.

Environment variables:
* OPENAI_API_KEY (required for this tier; without it the tier is skipped)
* OPENAI_MODEL (default gpt-4o-mini)
* OPENAI_TIMEOUT, OPENAI_MAX_RETRIES
"""

from __future__ import annotations

import os

from dotenv import load_dotenv
from openai import APIError, OpenAI

from telemetry.logging_utils import get_logger
from telemetry.metrics import extract_usage_tokens, start_timer
from telemetry.retry import retry_with_backoff

load_dotenv()
DEFAULT_OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
OPENAI_TIMEOUT = float(os.getenv("OPENAI_TIMEOUT", "30"))
OPENAI_MAX_RETRIES = int(os.getenv("OPENAI_MAX_RETRIES", "2"))

logger = get_logger(__name__)

MARKET_ANALYST_SYSTEM_PROMPT = (
    "You are a rental market expert analyzing data for negotiation purposes. "
    "Extract specific rental prices, comparable properties, market trends, and concrete evidence "
    "from what you know about the area. Format your response with clear sections for: "
    "COMPARABLE PROPERTIES, MARKET TRENDS, LOCATION FACTORS, and NEGOTIATION EVIDENCE. "
    "Write rents as dollar amounts (e.g. $1,850) and changes as percentages."
)


def build_market_question(location: str, current_rent: float) -> str:
    return (
        f"Analyze the rental market for {location}. Current rent: ${current_rent:,.0f}. "
        "Provide comparable properties, average rents, market trends, vacancy rates, and specific "
        "evidence for rent negotiation. Focus on data that supports or contradicts the current rent amount."
    )


def get_openai_client() -> OpenAI:
    """Create an OpenAI client, raising a helpful error when the key is missing."""
    if not os.getenv("OPENAI_API_KEY"):
        raise RuntimeError("OPENAI_API_KEY is required for semantic market analysis.")
    return OpenAI(timeout=OPENAI_TIMEOUT)


def ask_market_question(prompt: str) -> str:
    """Send one market question and return the model's raw text answer."""
    client = get_openai_client()
    timer = start_timer("semantic_market_analysis", DEFAULT_OPENAI_MODEL)
    try:
        response = retry_with_backoff(
            lambda: client.chat.completions.create(
                model=DEFAULT_OPENAI_MODEL,
                messages=[
                    {"role": "system", "content": MARKET_ANALYST_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.2,
            ),
            retries=OPENAI_MAX_RETRIES,
            retry_exceptions=(APIError,),
            on_retry=lambda attempt, exc: logger.warning(
                "semantic_market_analysis_retry", extra={"attempt": attempt, "error": type(exc).__name__}
            ),
        )
    except Exception:
        timer.done(outcome="error")
        raise
    tokens_in, tokens_out = extract_usage_tokens(response)
    timer.done(tokens_in=tokens_in, tokens_out=tokens_out)
    return response.choices[0].message.content or ""


def semantic_analysis_available() -> bool:
    return bool(os.getenv("OPENAI_API_KEY"))
