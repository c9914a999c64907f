"""promise-map — coalesce concurrent requests for the same key into one computation."""

from importlib.metadata import version, PackageNotFoundError

from .cache import PromiseMap
from .threaded import ThreadSafePromiseMap
from .types import ComputationFailure, DeferredState

try:
    __version__: str = version("promise-map")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

__all__ = [
    "ComputationFailure",
    "DeferredState",
    "PromiseMap",
    "ThreadSafePromiseMap",
]
