"""Request-coalescing cache for asyncio computations.

Prevents a thundering herd of duplicate expensive calls when many callers
ask for the same key before the first call has resolved (e.g. fifty
handlers all loading ``accountData`` on a cold start).

**How it works**: the cache stores the *pending* future for a key, not the
eventual value.  The first caller starts the computation and publishes its
future in the same synchronous step; every later caller, whether it
arrives while the computation is running or after it has settled, gets
that very future back.  One computation, one outcome, any number of
waiters.

Not thread-safe: relies on the event loop running one callback at a time.
Use :class:`promisemap.threaded.ThreadSafePromiseMap` across threads.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable, Hashable
from typing import Any

from . import config
from .types import DeferredState, deferred_state

logger = logging.getLogger("PromiseMap")


class PromiseMap:
    """Mapping of key to the future of its (single) computation.

    Stored futures belong to the event loop that created them: an instance
    must not be shared across separate ``asyncio.run`` calls while any entry
    is still pending.
    """

    def __init__(self, *, evict_on_failure: bool | None = None) -> None:
        self._entries: dict[Hashable, asyncio.Future] = {}
        self.evict_on_failure: bool = (
            config.EVICT_ON_FAILURE if evict_on_failure is None else evict_on_failure
        )

    def get_or_compute(
        self, key: Hashable, compute: Callable[[], Awaitable[Any]]
    ) -> asyncio.Future:
        """Return the future for *key*, invoking *compute()* only on a miss.

        A plain method: the membership check, the call to *compute* and the
        store happen with no ``await`` in between, so no other coroutine can
        observe the map half-updated.  Must never suspend.

        Args:
            key: Any hashable value.
            compute: Zero-argument callable returning a coroutine, task or
                future.  Coroutines are scheduled as tasks immediately.

        Returns:
            The shared future.  Await it directly, or through
            ``asyncio.shield`` (see :meth:`fetch`) if the waiter may be
            cancelled.

        Raises:
            Whatever *compute()* raises synchronously; nothing is cached in
            that case.  A non-awaitable return value is not raised here: the
            ``TypeError`` is stored as the entry's failure, so *compute* is
            still not invoked a second time.
        """
        entry = self._entries.get(key)
        if entry is not None:
            if entry.done():
                logger.debug("PromiseMap: hit for %s", key)
            else:
                logger.debug("PromiseMap: joining in-flight computation for %s", key)
            return entry

        started = compute()
        try:
            entry = asyncio.ensure_future(started)
        except TypeError as exc:
            entry = asyncio.get_running_loop().create_future()
            entry.set_exception(exc)
        self._entries[key] = entry
        logger.debug("PromiseMap: starting computation for %s", key)

        if self.evict_on_failure:
            entry.add_done_callback(functools.partial(self._drop_if_failed, key))
        return entry

    async def fetch(self, key: Hashable, compute: Callable[[], Awaitable[Any]]) -> Any:
        """Await the shared result for *key*.

        Cancelling the calling task abandons this caller's wait only; the
        shared computation and its other waiters carry on.
        """
        return await asyncio.shield(self.get_or_compute(key, compute))

    def _drop_if_failed(self, key: Hashable, future: asyncio.Future) -> None:
        # Only drop the exact entry that failed, never a newer replacement
        if deferred_state(future) is not DeferredState.FAILED:
            return
        if self._entries.get(key) is future:
            del self._entries[key]
            logger.debug("PromiseMap: evicted failed entry for %s", key)

    # -- Mapping-style helpers --

    def get(self, key: Hashable) -> asyncio.Future | None:
        """Return the stored future for *key*, or ``None``."""
        return self._entries.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def invalidate(self, key: Hashable) -> bool:
        """Remove *key* so the next caller recomputes it.

        Waiters already holding the old future are unaffected.
        """
        removed = self._entries.pop(key, None) is not None
        if removed:
            logger.debug("PromiseMap: invalidated %s", key)
        return removed

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()
        logger.debug("PromiseMap: cleared")

    def stats(self) -> dict[str, int]:
        """Return entry counts by state (for diagnostics)."""
        return _count_states(self._entries.values())


def _count_states(futures) -> dict[str, int]:
    counts = {state.value: 0 for state in DeferredState}
    size = 0
    for future in futures:
        counts[deferred_state(future).value] += 1
        size += 1
    return {"size": size, **counts}
