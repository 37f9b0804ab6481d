from __future__ import annotations

import csv
import os
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

METRICS_DIR = Path(os.getenv("METRICS_DIR", Path(__file__).resolve().parent.parent / "metrics"))
CSV_PATH = METRICS_DIR / "latency_log.csv"
CSV_COLUMNS = [
    "timestamp",
    "component",
    "source",
    "outcome",
    "rows",
    "tokens_in",
    "tokens_out",
    "latency_ms",
]

METRICS_ENABLED = os.getenv("METRICS_ENABLED", "1").lower() not in {"0", "false", "no"}

_csv_lock = threading.Lock()


def extract_usage_tokens(obj: Any) -> Tuple[Optional[int], Optional[int]]:
    """Pull prompt/completion token counts from an OpenAI response or usage dict."""
    usage = getattr(obj, "usage", None)
    if usage is None and isinstance(obj, dict):
        usage = obj.get("usage")
    if usage is None:
        return None, None
    if isinstance(usage, dict):
        return usage.get("prompt_tokens"), usage.get("completion_tokens")
    return getattr(usage, "prompt_tokens", None), getattr(usage, "completion_tokens", None)


def log_metric(
    component: str,
    source: Optional[str],
    *,
    outcome: str = "ok",
    rows: Optional[int] = None,
    tokens_in: Optional[int] = None,
    tokens_out: Optional[int] = None,
    latency_ms: Optional[float] = None,
) -> None:
    """Append one metric row to the local CSV (best effort)."""
    if not METRICS_ENABLED:
        return
    row: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "component": component,
        "source": source or "",
        "outcome": outcome,
        "rows": rows,
        "tokens_in": tokens_in,
        "tokens_out": tokens_out,
        "latency_ms": round(latency_ms, 3) if latency_ms is not None else None,
    }
    try:
        METRICS_DIR.mkdir(parents=True, exist_ok=True)
        with _csv_lock:
            is_new = not CSV_PATH.exists()
            with CSV_PATH.open("a", newline="", encoding="utf-8") as f:
                writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
                if is_new:
                    writer.writeheader()
                writer.writerow({k: ("" if v is None else v) for k, v in row.items()})
    except OSError:
        pass  # metrics must never break a roadmap request


@dataclass
class MetricTimer:
    component: str
    source: Optional[str]
    _start: float = field(default_factory=time.perf_counter)

    def done(
        self,
        *,
        outcome: str = "ok",
        rows: Optional[int] = None,
        tokens_in: Optional[int] = None,
        tokens_out: Optional[int] = None,
    ) -> None:
        log_metric(
            self.component,
            self.source,
            outcome=outcome,
            rows=rows,
            tokens_in=tokens_in,
            tokens_out=tokens_out,
            latency_ms=(time.perf_counter() - self._start) * 1000,
        )


def start_timer(component: str, source: Optional[str] = None) -> MetricTimer:
    return MetricTimer(component=component, source=source)


def read_metrics(limit: int = 500) -> List[Dict[str, Any]]:
    """Return up to ``limit`` recorded metric rows, oldest first."""
    if not CSV_PATH.exists():
        return []
    with CSV_PATH.open("r", newline="", encoding="utf-8") as f:
        return [row for _, row in zip(range(limit), csv.DictReader(f))]


def summarize_latency(records: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Average latency and failure count per component."""
    latencies: Dict[str, List[float]] = {}
    failures: Dict[str, int] = {}
    for row in records:
        component = row.get("component") or "unknown"
        try:
            latencies.setdefault(component, []).append(float(row.get("latency_ms") or 0))
        except ValueError:
            continue
        if row.get("outcome") not in (None, "", "ok"):
            failures[component] = failures.get(component, 0) + 1
    return {
        "average_latency_ms": {k: round(sum(v) / len(v), 3) for k, v in latencies.items() if v},
        "failures": failures,
        "sample_size": len(records),
    }
