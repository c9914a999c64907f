"""Tests for the mock expensive profile source."""

from __future__ import annotations

import asyncio
import concurrent.futures
import random

import pytest

from promisemap.source import ACCOUNT_DATA, ProfileSource
from promisemap.types import ComputationFailure, UserProfile
from tests.conftest import make_source


class TestLatency:
    def test_default_range(self):
        """Default latency is 50 ms plus up to 100 ms of jitter."""
        source = ProfileSource(rng=random.Random(7))
        samples = [source.latency_seconds() for _ in range(200)]
        assert all(0.05 <= s < 0.15 for s in samples)

    def test_zero_jitter(self):
        source = ProfileSource(latency_min_ms=20, latency_jitter_ms=0)
        assert source.latency_seconds() == pytest.approx(0.02)

    def test_config_defaults(self, mocker):
        mocker.patch("promisemap.source.config.LATENCY_MIN_MS", 5)
        mocker.patch("promisemap.source.config.LATENCY_JITTER_MS", 0)
        source = ProfileSource()
        assert source.latency_seconds() == pytest.approx(0.005)


class TestFetch:
    @pytest.mark.asyncio
    async def test_counts_on_invocation(self, source):
        """The counter moves when the lookup starts, not when it finishes."""
        task = source.fetch()
        assert source.calls == 1
        assert not task.done()
        assert await task is ACCOUNT_DATA

    @pytest.mark.asyncio
    async def test_each_invocation_counted(self, source):
        await asyncio.gather(source.fetch(), source.fetch(), source.fetch())
        assert source.calls == 3

    @pytest.mark.asyncio
    async def test_failure(self):
        source = make_source(fail_with=ComputationFailure("503"))
        with pytest.raises(ComputationFailure, match="503"):
            await source.fetch()
        assert source.calls == 1


class TestSubmit:
    def test_submit_returns_future(self, source):
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            fut = source.submit(pool)
            assert source.calls == 1
            assert fut.result(timeout=5) is ACCOUNT_DATA

    def test_submit_failure(self):
        source = make_source(fail_with=ComputationFailure("boom"))
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            with pytest.raises(ComputationFailure):
                source.submit(pool).result(timeout=5)


def test_account_data_record():
    assert isinstance(ACCOUNT_DATA, UserProfile)
    assert ACCOUNT_DATA.id == 1
    assert ACCOUNT_DATA.username == "ahmed"
    assert ACCOUNT_DATA.bio == "definitely not a bot"
    assert ACCOUNT_DATA.joined == 1663424830
    assert ACCOUNT_DATA.location.latitude == pytest.approx(-27.09962924203303)
    assert ACCOUNT_DATA.location.longitude == pytest.approx(-109.34637304606693)
