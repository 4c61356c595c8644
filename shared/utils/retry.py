import random
import time
from typing import Callable, Iterable, Optional, TypeVar

T = TypeVar("T")


def backoff_delays(
    retries: int,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    jitter: float = 0.1,
) -> list[float]:
    """Sleep durations between ``retries`` attempts (one fewer than attempts)."""
    delays = []
    delay = base_delay
    for _ in range(max(retries - 1, 0)):
        delays.append(min(delay, max_delay) + random.uniform(0, delay * jitter))
        delay = min(delay * 2, max_delay)
    return delays


def retry(
    func: Callable[[], T],
    retries: int = 5,
    base_delay: float = 0.5,
    max_delay: float = 10.0,
    jitter: float = 0.1,
    retry_on: Iterable[type[BaseException]] = (Exception,),
    on_retry: Optional[Callable[[int, BaseException, float], None]] = None,
) -> T:
    """Call ``func`` until it succeeds, re-raising the last error when exhausted."""
    if retries < 1:
        raise ValueError("retries must be >= 1")
    retry_on = tuple(retry_on)
    delays = backoff_delays(retries, base_delay, max_delay, jitter)
    for attempt in range(retries):
        try:
            return func()
        except retry_on as exc:  # type: ignore[misc]
            if attempt == retries - 1:
                raise
            sleep_for = delays[attempt]
            if on_retry:
                on_retry(attempt + 1, exc, sleep_for)
            time.sleep(sleep_for)
    # Unreachable
    raise RuntimeError("retry exhausted")
