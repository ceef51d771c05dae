"""Dispatch metrics for scheduled reporting."""
import functools
import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger("incomebot-perf")


def timed_async(func: Callable) -> Callable:
    """
    Decorator that logs execution time of an async function at DEBUG level.

    Usage::

        @timed_async
        async def compose(self, kind, manager):
            ...
    """
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return await func(*args, **kwargs)
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            logger.debug(f"{func.__qualname__} completed", extra={"duration_ms": duration_ms})
    return wrapper


class DispatchTracker:
    """
    Thread-safe in-memory counters for scheduled report firings.

    Tracks, per schedule kind:
    - Firings (one per dispatch run)
    - Reports delivered and delivery failures
    - Cumulative dispatch duration
    - Timestamp of the most recent firing
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._firings: Dict[str, int] = {}
        self._sent: Dict[str, int] = {}
        self._failed: Dict[str, int] = {}
        self._duration_ms: Dict[str, float] = {}
        self._last_fired: Dict[str, str] = {}

    def record_dispatch(
        self,
        kind: str,
        sent: int,
        failed: int,
        duration_ms: float,
        fired_at: Optional[datetime] = None,
    ) -> None:
        """Call once when a dispatch run finishes."""
        fired_at = fired_at or datetime.now(timezone.utc)
        with self._lock:
            self._firings[kind] = self._firings.get(kind, 0) + 1
            self._sent[kind] = self._sent.get(kind, 0) + sent
            self._failed[kind] = self._failed.get(kind, 0) + failed
            self._duration_ms[kind] = self._duration_ms.get(kind, 0.0) + duration_ms
            self._last_fired[kind] = fired_at.isoformat()

    def get_metrics(self) -> Dict[str, Any]:
        """
        Snapshot of all collected metrics.

        Returns
        -------
        dict with keys:
            firings             : int  (total across all kinds)
            reports_sent        : int
            delivery_failures   : int
            by_kind             : dict {kind: {firings, sent, failed, avg_duration_ms, last_fired_at}}
        """
        with self._lock:
            by_kind = {}
            for kind, firings in self._firings.items():
                by_kind[kind] = {
                    "firings": firings,
                    "sent": self._sent.get(kind, 0),
                    "failed": self._failed.get(kind, 0),
                    "avg_duration_ms": round(self._duration_ms.get(kind, 0.0) / firings, 2),
                    "last_fired_at": self._last_fired.get(kind),
                }
            return {
                "firings": sum(self._firings.values()),
                "reports_sent": sum(self._sent.values()),
                "delivery_failures": sum(self._failed.values()),
                "by_kind": by_kind,
            }

    def reset(self) -> None:
        """Reset all counters (useful in tests)."""
        with self._lock:
            self._firings.clear()
            self._sent.clear()
            self._failed.clear()
            self._duration_ms.clear()
            self._last_fired.clear()


# Module-level singleton
tracker = DispatchTracker()
