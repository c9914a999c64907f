"""Shared fixtures for promise-map tests."""

from __future__ import annotations

import random
from typing import Any

import pytest

from promisemap.cache import PromiseMap
from promisemap.source import ACCOUNT_DATA, ProfileSource
from promisemap.threaded import ThreadSafePromiseMap

# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------
SAMPLE_KEY = "accountData"


def make_source(**overrides: Any) -> ProfileSource:
    """Create a ProfileSource with short, deterministic latency for testing."""
    defaults: dict[str, Any] = {
        "record": ACCOUNT_DATA,
        "latency_min_ms": 10,
        "latency_jitter_ms": 0,
        "rng": random.Random(0),
    }
    defaults.update(overrides)
    return ProfileSource(**defaults)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def source() -> ProfileSource:
    """A fast mock profile source with a fresh call counter."""
    return make_source()


@pytest.fixture
def cache() -> PromiseMap:
    """A fresh asyncio PromiseMap that keeps failed entries."""
    return PromiseMap(evict_on_failure=False)


@pytest.fixture
def threaded_cache() -> ThreadSafePromiseMap:
    """A fresh lock-guarded cache that keeps failed entries."""
    return ThreadSafePromiseMap(evict_on_failure=False)
