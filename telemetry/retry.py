from __future__ import annotations

import random
import time
from typing import Callable, Iterable, Optional, Type, TypeVar

T = TypeVar("T")


def backoff_delay(attempt: int, base_delay: float = 0.5, factor: float = 2.0, jitter: float = 0.1) -> float:
    """Exponential delay before retry number ``attempt`` (zero based)."""
    delay = base_delay * (factor ** attempt)
    if jitter:
        delay += random.uniform(0, jitter)
    return delay


def retry_with_backoff(
    fn: Callable[[], T],
    *,
    retries: int = 3,
    base_delay: float = 0.5,
    factor: float = 2.0,
    jitter: float = 0.1,
    retry_exceptions: Iterable[Type[BaseException]] = (Exception,),
    on_retry: Optional[Callable[[int, BaseException], None]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Call ``fn`` up to ``retries`` times; the last failure propagates."""
    attempts = max(1, retries)
    caught = tuple(retry_exceptions)
    for attempt in range(attempts):
        try:
            return fn()
        except caught as exc:
            if attempt >= attempts - 1:
                raise
            if on_retry is not None:
                on_retry(attempt + 1, exc)
            sleep(backoff_delay(attempt, base_delay, factor, jitter))
    raise AssertionError("unreachable")
