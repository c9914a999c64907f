"""Driver that compares an ordinary map with a PromiseMap under a burst of lookups.

Each run fires ``request_count`` contiguous lookups for one key against a
fresh cache and a fresh :class:`~promisemap.source.ProfileSource`, then
reports how many expensive lookups were actually started.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
from collections.abc import Callable, Hashable
from typing import Any

from . import config
from .cache import PromiseMap
from .source import ProfileSource
from .threaded import ThreadSafePromiseMap
from .types import RunReport

logger = logging.getLogger("PromiseMap")

BANNER_RULE = "=" * 62


# ---------------------------------------------------------------------------
# Lookup strategies
# ---------------------------------------------------------------------------
def promise_map_lookup(cache: PromiseMap, key: Hashable, source: ProfileSource) -> asyncio.Future:
    """Coalesced lookup: the pending future is cached as soon as it exists."""
    return cache.get_or_compute(key, source.fetch)


async def ordinary_map_lookup(cache: dict, key: Hashable, source: ProfileSource) -> Any:
    """Naive lookup: the value is cached only after the fetch resolves.

    Every caller that arrives while the first fetch is in flight misses
    and starts its own fetch.
    """
    if key not in cache:
        cache[key] = await source.fetch()
    return cache[key]


# ---------------------------------------------------------------------------
# Runs
# ---------------------------------------------------------------------------
async def run_profile(
    lookup: Callable[[Any, Hashable, ProfileSource], Any],
    label: str,
    *,
    cache: Any,
    source: ProfileSource,
    request_count: int | None = None,
    key: Hashable | None = None,
) -> RunReport:
    """Issue *request_count* lookups back to back, then await them all."""
    request_count = config.REQUEST_COUNT if request_count is None else request_count
    key = config.DEFAULT_KEY if key is None else key
    if request_count < 1:
        raise ValueError("request_count must be at least 1")

    # No await between issues: every lookup is in flight before any resolves
    pending = [asyncio.ensure_future(lookup(cache, key, source)) for _ in range(request_count)]
    results = await asyncio.gather(*pending)

    report = RunReport(
        label=label,
        requests=request_count,
        invocations=source.calls,
        data=results[-1],
        identical=all(r is results[0] for r in results),
    )
    logger.info(
        "%s: %d requests, %d expensive lookups", label, report.requests, report.invocations
    )
    return report


def run_profile_threaded(
    *,
    source: ProfileSource,
    request_count: int | None = None,
    key: Hashable | None = None,
    workers: int | None = None,
) -> RunReport:
    """Same burst as :func:`run_profile`, issued from a pool of OS threads."""
    request_count = config.REQUEST_COUNT if request_count is None else request_count
    key = config.DEFAULT_KEY if key is None else key
    workers = config.WORKERS if workers is None else workers
    if request_count < 1:
        raise ValueError("request_count must be at least 1")

    cache = ThreadSafePromiseMap()
    # Separate pools: callers block on results, the backend does the work
    with concurrent.futures.ThreadPoolExecutor(
        max_workers=workers, thread_name_prefix="pm-caller"
    ) as callers, concurrent.futures.ThreadPoolExecutor(
        max_workers=1, thread_name_prefix="pm-backend"
    ) as backend:
        futures = [
            callers.submit(
                cache.get_or_compute_result, key, lambda: source.submit(backend)
            )
            for _ in range(request_count)
        ]
        results = [f.result() for f in futures]

    report = RunReport(
        label="a ThreadSafePromiseMap",
        requests=request_count,
        invocations=source.calls,
        data=results[-1],
        identical=all(r is results[0] for r in results),
    )
    logger.info(
        "%s: %d requests, %d expensive lookups",
        report.label,
        report.requests,
        report.invocations,
    )
    return report


async def run_all(
    *,
    request_count: int | None = None,
    key: Hashable | None = None,
    source_factory: Callable[[], ProfileSource] | None = None,
) -> list[RunReport]:
    """Run the ordinary-map profile, then the PromiseMap profile."""
    source_factory = source_factory or ProfileSource
    ordinary = await run_profile(
        ordinary_map_lookup,
        "an ordinary Map",
        cache={},
        source=source_factory(),
        request_count=request_count,
        key=key,
    )
    coalesced = await run_profile(
        promise_map_lookup,
        "a PromiseMap",
        cache=PromiseMap(),
        source=source_factory(),
        request_count=request_count,
        key=key,
    )
    return [ordinary, coalesced]


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------
def format_report(report: RunReport) -> str:
    """Render *report* as the human-readable banner printed by the CLI."""
    data = report.data
    if hasattr(data, "model_dump_json"):
        data = data.model_dump_json(indent=2)
    return "\n".join(
        [
            "",
            BANNER_RULE,
            f"Using {report.label}",
            BANNER_RULE,
            f"requests: {report.requests}",
            f"cache misses: {report.invocations}",
            f"coalesced: {'yes' if report.coalesced else 'no'}",
            f"data: {data}",
            "",
        ]
    )
