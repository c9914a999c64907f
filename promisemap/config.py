"""Environment-variable-driven configuration for promise-map.

All settings have sensible defaults and can be overridden via env vars
(e.g. ``PROMISEMAP_REQUEST_COUNT=200 promisemap``).
"""

from __future__ import annotations

import os


def _env_int(name: str, default: int) -> int:
    val = os.environ.get(name, "")
    if val.strip():
        try:
            return int(val)
        except ValueError:
            pass
    return default


def _env_float(name: str, default: float) -> float:
    val = os.environ.get(name, "")
    if val.strip():
        try:
            return float(val)
        except ValueError:
            pass
    return default


def _env_bool(name: str, default: bool) -> bool:
    val = os.environ.get(name, "").strip().lower()
    if val in ("1", "true", "yes"):
        return True
    if val in ("0", "false", "no"):
        return False
    return default


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------
REQUEST_COUNT: int = _env_int("PROMISEMAP_REQUEST_COUNT", 50)
DEFAULT_KEY: str = os.environ.get("PROMISEMAP_KEY", "accountData")

# ---------------------------------------------------------------------------
# Mock source latency (milliseconds): min + uniform jitter
# ---------------------------------------------------------------------------
LATENCY_MIN_MS: int = _env_int("PROMISEMAP_LATENCY_MIN_MS", 50)
LATENCY_JITTER_MS: int = _env_int("PROMISEMAP_LATENCY_JITTER_MS", 100)

# ---------------------------------------------------------------------------
# Cache policy
# ---------------------------------------------------------------------------
# Failed entries stay cached unless this is enabled
EVICT_ON_FAILURE: bool = _env_bool("PROMISEMAP_EVICT_ON_FAILURE", False)

# ---------------------------------------------------------------------------
# Threaded variant
# ---------------------------------------------------------------------------
WAIT_TIMEOUT_SECONDS: float = _env_float("PROMISEMAP_WAIT_TIMEOUT", 120.0)
WORKERS: int = _env_int("PROMISEMAP_WORKERS", 8)

# ---------------------------------------------------------------------------
# Debug
# ---------------------------------------------------------------------------
VERBOSE: bool = _env_bool("PROMISEMAP_VERBOSE", False)
