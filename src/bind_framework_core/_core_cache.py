from __future__ import annotations

import threading
from concurrent.futures import Future
from typing import Generic, Hashable, TypeVar

from ._core_readers import *  # noqa: F401,F403

log = logging.getLogger(__name__)

T = TypeVar("T")


class SingleFlightCache(Generic[T]):
    """Thread-safe memoization with at most one computation per key.

    The first caller for a key publishes a Future under the lock and computes
    outside of it; every concurrent caller for the same key waits on that
    Future. Failures are stored as well, so all callers of a key observe the
    same outcome.
    """

    def __init__(self, name: str = "cache"):
        self.name = name
        self._lock = threading.Lock()
        self._entries: dict[Hashable, Future[T]] = {}
        self._computations: dict[Hashable, int] = {}

    def get_or_compute(self, key: Hashable, compute: Callable[[], T]) -> T:
        with self._lock:
            future = self._entries.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._entries[key] = future
                self._computations[key] = self._computations.get(key, 0) + 1

        if owner:
            log.debug("%s: computing %s", self.name, key)
            try:
                value = compute()
            except BaseException as exc:
                future.set_exception(exc)
                raise
            future.set_result(value)
            return value

        return future.result()

    def computation_count(self, key: Hashable) -> int:
        with self._lock:
            return self._computations.get(key, 0)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class ResourceCache:
    """Parsed specification and typemap files shared by every pipeline run."""

    def __init__(self) -> None:
        self.profiles: SingleFlightCache[tuple[ApiProfile, ...]] = SingleFlightCache("profiles")
        self.typemaps: SingleFlightCache[Typemap] = SingleFlightCache("typemaps")

    def get_profiles(self, path: Path) -> tuple[ApiProfile, ...]:
        key = path.resolve()
        return self.profiles.get_or_compute(key, lambda: read_signatures(key))

    def get_typemap(self, path: Path) -> Typemap:
        key = path.resolve()
        return self.typemaps.get_or_compute(key, lambda: read_typemap_file(key))
