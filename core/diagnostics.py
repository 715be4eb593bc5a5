"""
Run diagnostics: degraded factors, skipped collaborators and other warnings
surfaced to the caller instead of being silently hidden.
"""

import logging
import threading
from collections import Counter
from typing import List

log = logging.getLogger(__name__)


class Diagnostics:
    """Thread-safe warning collector for one optimization run."""

    def __init__(self, max_messages: int = 200):
        self.max_messages = max_messages
        self._messages: List[str] = []
        self._counts: Counter = Counter()
        self._lock = threading.Lock()

    def warn(self, category: str, message: str) -> None:
        """
        Record a warning. Repeated categories are counted; only the first
        ``max_messages`` texts are kept.
        """
        with self._lock:
            self._counts[category] += 1
            first = self._counts[category] == 1
            if len(self._messages) < self.max_messages:
                self._messages.append(f"{category}: {message}")

        if first:
            log.warning(f"{category}: {message}")
        else:
            log.debug(f"{category}: {message}")

    @property
    def messages(self) -> List[str]:
        with self._lock:
            return list(self._messages)

    def count(self, category: str) -> int:
        with self._lock:
            return self._counts[category]

    def summary(self) -> List[str]:
        """Kept messages followed by per-category totals for repeated warnings."""
        with self._lock:
            lines = list(self._messages)
            for category, total in sorted(self._counts.items()):
                if total > 1:
                    lines.append(f"{category}: {total} occurrences")
            return lines

    def __len__(self) -> int:
        with self._lock:
            return sum(self._counts.values())
