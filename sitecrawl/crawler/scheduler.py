"""Politeness scheduling between page fetches.

The orchestrator only talks to a `Scheduler`, so moving from the sequential
fixed delay to a shared per-origin budget is a substitution, not a rewrite.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

from .config import CrawlConfig
from .url import origin_of

SleepFn = Callable[[float], None]
ClockFn = Callable[[], float]


class Scheduler:
    """Hooks called around each page fetch."""

    def before_fetch(self, url: str) -> None:
        """Block until `url` may be requested."""

    def after_page(self, url: str, position: int, total: int) -> None:
        """Called after page `position` (0-based) of `total` has been processed."""


class FixedDelayScheduler(Scheduler):
    """Sequential politeness: sleep a fixed delay after every page but the last."""

    def __init__(self, delay_seconds: float, *, sleep: SleepFn = time.sleep) -> None:
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    def after_page(self, url: str, position: int, total: int) -> None:
        if position >= total - 1 or self.delay_seconds <= 0:
            return
        self._sleep(self.delay_seconds)


class OriginRateBudget(Scheduler):
    """Shared per-origin budget: at most one request per `interval_seconds` per origin.

    Thread-safe, so several workers can share one instance without exceeding
    the rate toward any single origin.
    """

    def __init__(
        self,
        interval_seconds: float,
        *,
        sleep: SleepFn = time.sleep,
        clock: ClockFn = time.monotonic,
    ) -> None:
        if interval_seconds < 0:
            raise ValueError("interval_seconds must be >= 0")
        self.interval_seconds = interval_seconds
        self._sleep = sleep
        self._clock = clock
        self._lock = threading.Lock()
        self._next_allowed_by_origin: dict[str, float] = {}

    def before_fetch(self, url: str) -> None:
        self.acquire(url)

    def acquire(self, url: str) -> None:
        if self.interval_seconds <= 0:
            return

        origin = origin_of(url)
        while True:
            with self._lock:
                now = self._clock()
                next_allowed = self._next_allowed_by_origin.get(origin, 0.0)
                if now >= next_allowed:
                    self._next_allowed_by_origin[origin] = now + self.interval_seconds
                    return
                sleep_for = next_allowed - now

            if sleep_for > 0:
                self._sleep(sleep_for)


def build_scheduler(config: CrawlConfig, *, rate_limit_ms: int | None = None) -> Scheduler:
    """Scheduler for the configured `rate_limit_strategy`."""

    delay_seconds = (config.rate_limit_ms if rate_limit_ms is None else rate_limit_ms) / 1000.0
    if config.rate_limit_strategy == "origin_budget":
        return OriginRateBudget(delay_seconds)
    return FixedDelayScheduler(delay_seconds)


__all__ = [
    "FixedDelayScheduler",
    "OriginRateBudget",
    "Scheduler",
    "build_scheduler",
]
