"""Thread-safe request-coalescing cache.

Same contract as :class:`promisemap.cache.PromiseMap`, for callers on
multiple OS threads.  Without a single event loop serialising callers, the
lookup-and-insert step needs real mutual exclusion: a ``threading.Lock``
guards the registry while a placeholder ``concurrent.futures.Future`` is
published for a missing key.  The computation is started, and waited on,
outside the lock, so one slow key never blocks lookups for another.
"""

from __future__ import annotations

import concurrent.futures
import functools
import logging
import threading
from collections.abc import Callable, Hashable
from typing import Any

from . import config
from .cache import _count_states
from .types import DeferredState, deferred_state

logger = logging.getLogger("PromiseMap")


class ThreadSafePromiseMap:
    """Lock-guarded mapping of key to the future of its computation."""

    def __init__(self, *, evict_on_failure: bool | None = None) -> None:
        self._lock = threading.Lock()
        self._entries: dict[Hashable, concurrent.futures.Future] = {}
        self.evict_on_failure: bool = (
            config.EVICT_ON_FAILURE if evict_on_failure is None else evict_on_failure
        )

    def get_or_compute(
        self,
        key: Hashable,
        compute: Callable[[], concurrent.futures.Future],
    ) -> concurrent.futures.Future:
        """Return the future for *key*, invoking *compute()* only on a miss.

        Under the lock only a placeholder future is published; *compute*
        then runs outside the lock on the thread that published it, and its
        outcome is copied into the placeholder.  A slow *compute* therefore
        never blocks other keys, and *compute* may itself use the cache.

        Raises:
            Whatever *compute()* raises synchronously.  The placeholder is
            failed with the same exception and dropped from the cache.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                logger.debug("PromiseMap: waiting on existing entry for %s", key)
                return entry
            entry = concurrent.futures.Future()
            self._entries[key] = entry
            logger.debug("PromiseMap: starting computation for %s", key)

        if self.evict_on_failure:
            entry.add_done_callback(functools.partial(self._drop_if_failed, key))

        try:
            started = compute()
        except Exception as exc:
            entry.set_exception(exc)
            with self._lock:
                if self._entries.get(key) is entry:
                    del self._entries[key]
            raise

        started.add_done_callback(functools.partial(_copy_outcome, entry))
        return entry

    def get_or_compute_result(
        self,
        key: Hashable,
        compute: Callable[[], concurrent.futures.Future],
        timeout: float | None = None,
    ) -> Any:
        """Block until *key*'s shared result is available and return it.

        Raises:
            Whatever the computation raised (identically for all waiters).
            ``concurrent.futures.TimeoutError`` if *timeout* elapses; the
            computation itself keeps running.
        """
        if timeout is None:
            timeout = config.WAIT_TIMEOUT_SECONDS
        return self.get_or_compute(key, compute).result(timeout=timeout)

    def _drop_if_failed(self, key: Hashable, future: concurrent.futures.Future) -> None:
        if deferred_state(future) is not DeferredState.FAILED:
            return
        with self._lock:
            if self._entries.get(key) is future:
                del self._entries[key]
                logger.debug("PromiseMap: evicted failed entry for %s", key)

    def get(self, key: Hashable) -> concurrent.futures.Future | None:
        with self._lock:
            return self._entries.get(key)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def invalidate(self, key: Hashable) -> bool:
        """Remove *key* so the next caller recomputes it."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict[str, int]:
        """Return entry counts by state (for diagnostics)."""
        with self._lock:
            futures = list(self._entries.values())
        return _count_states(futures)


def _copy_outcome(
    target: concurrent.futures.Future, source: concurrent.futures.Future
) -> None:
    # The placeholder may already be settled if a caller cancelled it
    if target.done():
        return
    if source.cancelled():
        target.cancel()
    elif source.exception() is not None:
        target.set_exception(source.exception())
    else:
        target.set_result(source.result())
