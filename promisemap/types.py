"""Pydantic schemas, deferred-state helpers and the failure type for promise-map."""

from __future__ import annotations

import asyncio
import concurrent.futures
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, Field, computed_field

# Either flavour of deferred value the caches hand out
Deferred = Union[asyncio.Future, concurrent.futures.Future]


# ---------------------------------------------------------------------------
# Failure raised by computations
# ---------------------------------------------------------------------------
class ComputationFailure(Exception):
    """Raised by an underlying computation (e.g. a failed network fetch).

    The caches never raise this themselves; they hand it through unchanged
    to every caller waiting on the failed key.
    """


# ---------------------------------------------------------------------------
# Deferred state
# ---------------------------------------------------------------------------
class DeferredState(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


def deferred_state(future: Deferred) -> DeferredState:
    """Classify *future* without blocking. Cancellation counts as failure."""
    if not future.done():
        return DeferredState.PENDING
    if future.cancelled() or future.exception() is not None:
        return DeferredState.FAILED
    return DeferredState.RESOLVED


# ---------------------------------------------------------------------------
# Sample records
# ---------------------------------------------------------------------------
class Location(BaseModel):
    latitude: float
    longitude: float


class UserProfile(BaseModel):
    """Account data returned by the (mock) expensive profile lookup."""

    id: int
    username: str
    avatar: str = ""
    bio: str = ""
    joined: int = Field(0, description="Unix timestamp (seconds) of sign-up.")
    location: Location


# ---------------------------------------------------------------------------
# Driver report
# ---------------------------------------------------------------------------
class RunReport(BaseModel):
    """Outcome of one driver run against a single cache instance."""

    label: str
    requests: int = 0
    invocations: int = 0
    data: Any = None
    identical: bool = True  # every request resolved to the same object

    @computed_field
    @property
    def coalesced(self) -> bool:
        """True when every request was served by a single computation."""
        return self.invocations <= 1
