"""
Response cache for collaborator lookups.

Keyed by rounded coordinates so near-identical locations share one remote
call. Safe to use from concurrent scoring tasks: each key has exactly one
producer, and other tasks asking for the same key wait for its result.
"""

import threading
import logging
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

log = logging.getLogger(__name__)


class ResponseCache:
    """In-memory, per-run cache keyed by (namespace, rounded lat, rounded lng)."""

    def __init__(self, precision: int = 4):
        # 4 decimal places is ~10m
        self.precision = precision
        self._values: Dict[Hashable, Any] = {}
        self._key_locks: Dict[Hashable, threading.Lock] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def make_key(self, namespace: str, lat: float, lng: float) -> Tuple[str, str]:
        return (namespace, f"{lat:.{self.precision}f},{lng:.{self.precision}f}")

    def get(self, namespace: str, lat: float, lng: float) -> Optional[Any]:
        key = self.make_key(namespace, lat, lng)
        with self._lock:
            return self._values.get(key)

    def get_or_compute(
        self,
        namespace: str,
        lat: float,
        lng: float,
        producer: Callable[[], Any],
    ) -> Any:
        """
        Return the cached value, or run ``producer`` once for this key.

        Exceptions from the producer propagate and nothing is cached, so a
        later caller may retry.
        """
        key = self.make_key(namespace, lat, lng)
        with self._lock:
            if key in self._values:
                self.hits += 1
                return self._values[key]
            key_lock = self._key_locks.setdefault(key, threading.Lock())

        with key_lock:
            with self._lock:
                if key in self._values:
                    self.hits += 1
                    return self._values[key]
                self.misses += 1

            value = producer()

            with self._lock:
                self._values[key] = value
            return value

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def clear(self) -> None:
        with self._lock:
            self._values.clear()
            self._key_locks.clear()
            self.hits = 0
            self.misses = 0
