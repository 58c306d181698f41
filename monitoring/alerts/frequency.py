"""
Event Frequency Tracker.

============================================================
RESPONSIBILITY
============================================================
Counts occurrences per (event kind, vault) key in an exact
sliding window.

- record() appends and trims the key's window
- prune() drops expired timestamps and empty keys

Keys are only removed by prune(), never on the hot path.

============================================================
"""

import logging
from collections import deque
from typing import Deque, Dict


logger = logging.getLogger(__name__)


def frequency_key(event_name: str, vault: str) -> str:
    """Tracker key for an event kind on a vault."""
    return f"{event_name}_{vault}"


class FrequencyTracker:
    """
    Sliding window occurrence counter.
    """

    def __init__(self, window_ms: int = 60_000, threshold: int = 10):
        """
        Initialize tracker.

        Args:
            window_ms: Window length in milliseconds
            threshold: Count at which a key is high-frequency
        """
        self._window_ms = window_ms
        self._threshold = threshold
        self._windows: Dict[str, Deque[int]] = {}

    @property
    def window_ms(self) -> int:
        return self._window_ms

    @property
    def threshold(self) -> int:
        return self._threshold

    @property
    def key_count(self) -> int:
        """Number of tracked keys."""
        return len(self._windows)

    def record(self, key: str, timestamp_ms: int) -> int:
        """
        Record one occurrence.

        Returns:
            Occurrences of the key within the window ending at
            timestamp_ms, this one included
        """
        window = self._windows.setdefault(key, deque())
        window.append(timestamp_ms)
        self._trim(window, timestamp_ms)
        return len(window)

    def count(self, key: str) -> int:
        """Occurrences currently held for a key."""
        window = self._windows.get(key)
        return len(window) if window else 0

    def is_high_frequency(self, count: int) -> bool:
        return count >= self._threshold

    def prune(self, now_ms: int) -> int:
        """
        Drop expired timestamps and remove empty keys.

        Returns:
            Number of keys removed
        """
        removed = 0
        for key in list(self._windows):
            window = self._windows[key]
            self._trim(window, now_ms)
            if not window:
                del self._windows[key]
                removed += 1

        if removed:
            logger.debug(f"Pruned {removed} idle frequency keys")
        return removed

    def _trim(self, window: Deque[int], now_ms: int) -> None:
        cutoff = now_ms - self._window_ms
        while window and window[0] <= cutoff:
            window.popleft()


__all__ = ["frequency_key", "FrequencyTracker"]
