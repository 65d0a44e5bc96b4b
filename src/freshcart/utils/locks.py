"""Per-key critical sections for read-check-write operations.

Slot reservations and refund completions read a bounded counter, validate a
guard and write it back. Each such operation runs its whole unit of work
inside ``key_lock(key)`` so two callers racing on the same key are serialized,
and inside ``retry_on_conflict`` so a concurrent writer in another process is
caught by the repository's version check and the operation is re-run against
fresh state.

A key's lock lives only while some caller holds or waits for it; the entry is
dropped on the last release.
"""

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

import structlog
from protean.exceptions import ExpectedVersionError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class _KeyedLock:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.users = 0


_registry_lock = threading.Lock()
_locks: dict[str, _KeyedLock] = {}


def _acquire_entry(key: str) -> _KeyedLock:
    with _registry_lock:
        entry = _locks.get(key)
        if entry is None:
            entry = _KeyedLock()
            _locks[key] = entry
        entry.users += 1
        return entry


def _release_entry(key: str, entry: _KeyedLock) -> None:
    with _registry_lock:
        entry.users -= 1
        if entry.users == 0 and _locks.get(key) is entry:
            del _locks[key]


@contextmanager
def key_lock(key: str) -> Iterator[None]:
    entry = _acquire_entry(key)
    try:
        with entry.lock:
            yield
    finally:
        _release_entry(key, entry)


def active_lock_keys() -> list[str]:
    """Keys currently held or awaited."""
    with _registry_lock:
        return sorted(_locks)


def retry_on_conflict(operation: Callable[[], T], attempts: int, key: str) -> T:
    """Run ``operation``, re-running it when the repository reports a stale version."""
    attempt = 1
    while True:
        try:
            return operation()
        except ExpectedVersionError:
            if attempt >= attempts:
                raise
            logger.warning("Concurrent write detected, retrying", key=key, attempt=attempt)
            attempt += 1


def reset_locks() -> None:
    with _registry_lock:
        _locks.clear()
