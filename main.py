"""
Command line entry for generating a negotiation roadmap from a JSON request.

The request file uses the same shape as the HTTP endpoint:

    {"userContext": {...}, "marketContext": {...}, "situationContext": {...}, "location": "Austin, TX"}

    python main.py request.json
    python main.py request.json --offline
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Optional, Sequence

from negotiation.engine import generate_roadmap
from negotiation.errors import MissingContextError
from negotiation.market_intelligence import MarketIntelligenceService
from storage.memory_store import InMemoryMarketStore


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Tenant negotiation roadmap generator")
    parser.add_argument("request", help="Path to a JSON request file ('-' reads stdin).")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Use the bundled demo market data and skip the semantic analysis call.",
    )
    parser.add_argument("--location", "-l", help="Override the request's location.")
    return parser.parse_args(argv)


def _load_request(path: str) -> dict:
    if path == "-":
        return json.load(sys.stdin)
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    request = _load_request(args.request)
    if args.offline:
        service = MarketIntelligenceService(InMemoryMarketStore(), None)
    else:
        service = MarketIntelligenceService.from_env()
    try:
        roadmap = generate_roadmap(
            request.get("userContext"),
            request.get("marketContext"),
            request.get("situationContext"),
            args.location or request.get("location"),
            service=service,
        )
    except MissingContextError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    print(json.dumps(roadmap.to_payload(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
