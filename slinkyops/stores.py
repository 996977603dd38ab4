"""Thread-safe keyed stores that keep one preferred value per key."""

from __future__ import annotations

import threading
from datetime import datetime, timedelta
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


def greater(old: Any, new: Any) -> bool:
    """Prefer the new value when it is greater."""
    return new > old


def less(old: Any, new: Any) -> bool:
    """Prefer the new value when it is smaller."""
    return new < old


class _PreferenceStore(Generic[T]):
    def __init__(self, prefer: Callable[[T, T], bool]) -> None:
        self._prefer = prefer
        self._lock = threading.Lock()
        self._values: dict[str, T] = {}

    def _push(self, key: str, value: T) -> None:
        with self._lock:
            if key not in self._values or self._prefer(self._values[key], value):
                self._values[key] = value

    def _pop(self, key: str, missing: Any) -> Any:
        with self._lock:
            return self._values.pop(key, missing)

    def _peek(self, key: str, missing: Any) -> Any:
        with self._lock:
            return self._values.get(key, missing)


class DurationStore(_PreferenceStore[timedelta]):
    """Keyed durations; a missing key reads as a zero duration."""

    def push(self, key: str, value: timedelta) -> None:
        """Store ``value``, or keep the old one unless ``prefer(old, value)``."""
        self._push(key, value)

    def pop(self, key: str) -> timedelta:
        """Remove and return the duration for ``key``, zero if absent."""
        return self._pop(key, timedelta(0))

    def peek(self, key: str) -> timedelta:
        """Return the duration for ``key`` without removing it, zero if absent."""
        return self._peek(key, timedelta(0))


class TimeStore(_PreferenceStore[datetime]):
    """Keyed points in time; a missing key reads as None."""

    def push(self, key: str, value: datetime) -> None:
        """Store ``value``, or keep the old one unless ``prefer(old, value)``."""
        self._push(key, value)

    def pop(self, key: str) -> Optional[datetime]:
        """Remove and return the time for ``key``, None if absent."""
        return self._pop(key, None)

    def peek(self, key: str) -> Optional[datetime]:
        """Return the time for ``key`` without removing it, None if absent."""
        return self._peek(key, None)