"""
Alert Rate Limiter.

============================================================
RESPONSIBILITY
============================================================
Suppresses an alert when an equivalent one was emitted within
its cooldown.

- Keyed by alert class (tier, type, vault)
- The emit time is recorded when an alert is admitted
- A suppressed alert leaves the stored time untouched

============================================================
"""

import logging
from typing import Dict, Optional

from core.clock import ClockProtocol, SystemClock


logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Cooldown gate per alert class.
    """

    def __init__(self, clock: Optional[ClockProtocol] = None):
        self._clock = clock or SystemClock()
        self._last_emitted: Dict[str, int] = {}

        # Metrics
        self._admitted = 0
        self._suppressed = 0

    def admit(self, class_key: str, cooldown_ms: int, now_ms: Optional[int] = None) -> bool:
        """
        Decide whether an alert of this class may be emitted.

        Admits when the class was never emitted or the last
        emission is more than cooldown_ms ago.

        Args:
            class_key: Alert class key
            cooldown_ms: Cooldown for this class
            now_ms: Current time; read from the clock if omitted

        Returns:
            True if admitted (and recorded)
        """
        if now_ms is None:
            now_ms = self._clock.now_ms()

        last = self._last_emitted.get(class_key)
        if last is not None and now_ms - last <= cooldown_ms:
            self._suppressed += 1
            return False

        self._last_emitted[class_key] = now_ms
        self._admitted += 1
        return True

    def last_emitted(self, class_key: str) -> Optional[int]:
        """Last admit time for a class, or None."""
        return self._last_emitted.get(class_key)

    def prune(self, now_ms: int, max_age_ms: int) -> int:
        """
        Remove entries older than max_age_ms.

        Returns:
            Number of entries removed
        """
        stale = [
            key for key, emitted in self._last_emitted.items()
            if now_ms - emitted > max_age_ms
        ]
        for key in stale:
            del self._last_emitted[key]

        if stale:
            logger.debug(f"Pruned {len(stale)} rate limit entries")
        return len(stale)

    def stats(self) -> dict:
        return {
            "tracked_classes": len(self._last_emitted),
            "admitted": self._admitted,
            "suppressed": self._suppressed,
        }

    def __len__(self) -> int:
        return len(self._last_emitted)


__all__ = ["RateLimiter"]
