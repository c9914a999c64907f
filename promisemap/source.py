"""Mock expensive profile lookup used by the driver and the tests.

Stands in for a slow network call: each invocation sleeps for a jittered
latency and then returns :data:`ACCOUNT_DATA`.  Every invocation bumps the
source's own ``calls`` counter, so a run can report exactly how many
expensive computations were started.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import random
import threading
import time

from . import config
from .types import Location, UserProfile

logger = logging.getLogger("PromiseMap")

ACCOUNT_DATA = UserProfile(
    id=1,
    username="ahmed",
    avatar="https://ahmedhashim.app/images/low_poly_avatar.png",
    bio="definitely not a bot",
    joined=1663424830,
    location=Location(
        latitude=-27.09962924203303,
        longitude=-109.34637304606693,
    ),
)


class ProfileSource:
    """Counts and serves simulated expensive profile lookups."""

    def __init__(
        self,
        *,
        record: UserProfile = ACCOUNT_DATA,
        latency_min_ms: int | None = None,
        latency_jitter_ms: int | None = None,
        fail_with: Exception | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.record = record
        self.latency_min_ms = (
            config.LATENCY_MIN_MS if latency_min_ms is None else latency_min_ms
        )
        self.latency_jitter_ms = (
            config.LATENCY_JITTER_MS if latency_jitter_ms is None else latency_jitter_ms
        )
        self.fail_with = fail_with
        self.calls = 0
        self._rng = rng or random.Random()
        self._count_lock = threading.Lock()

    def latency_seconds(self) -> float:
        """Draw one latency: ``min + uniform[0, jitter)`` milliseconds."""
        jitter = self._rng.randrange(self.latency_jitter_ms) if self.latency_jitter_ms > 0 else 0
        return (self.latency_min_ms + jitter) / 1000

    def _record_call(self) -> float:
        with self._count_lock:
            self.calls += 1
            n = self.calls
        latency = self.latency_seconds()
        logger.debug("Expensive lookup #%d started (%.0f ms)", n, latency * 1000)
        return latency

    def fetch(self) -> asyncio.Future:
        """Start one asyncio lookup and return its task.

        The counter is bumped here, synchronously, not when the task first
        runs, so a started-but-unfinished lookup is already counted.
        """
        latency = self._record_call()
        return asyncio.ensure_future(self._finish(latency))

    async def _finish(self, latency: float) -> UserProfile:
        await asyncio.sleep(latency)
        if self.fail_with is not None:
            raise self.fail_with
        return self.record

    def submit(self, executor: concurrent.futures.Executor) -> concurrent.futures.Future:
        """Start one threaded lookup on *executor* and return its future."""
        latency = self._record_call()
        return executor.submit(self._finish_blocking, latency)

    def _finish_blocking(self, latency: float) -> UserProfile:
        time.sleep(latency)
        if self.fail_with is not None:
            raise self.fail_with
        return self.record
