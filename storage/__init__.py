"""Market dataset stores: Supabase in production, in-memory for demo mode."""

from __future__ import annotations

import os

from dotenv import load_dotenv

from telemetry.logging_utils import get_logger

load_dotenv()
logger = get_logger(__name__)


def default_market_store():
    """Supabase-backed store when credentials are configured, else the demo store."""
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    if url and key:
        from storage.market_store import SupabaseMarketStore

        return SupabaseMarketStore(url, key)
    from storage.memory_store import InMemoryMarketStore

    logger.warning("market_store_demo_mode", extra={"reason": "SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY not set"})
    return InMemoryMarketStore()


__all__ = ["default_market_store"]
