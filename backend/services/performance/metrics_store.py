"""In-memory request and provider metrics.

Shared by every request handler.  FastAPI runs sync endpoints on a thread
pool, so each mutation (including push+evict on the bounded windows) is a
single critical section under ``self._lock``.
"""
from __future__ import annotations

import logging
import math
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, List, Optional

from backend.services.performance.types import ProviderMetrics

logger = logging.getLogger("genstudio.performance.metrics_store")

# One day.  Longer samples are clamped so window sums stay finite.
MAX_DURATION_MS = 24 * 60 * 60 * 1000.0


class MetricsStore:
    """Rolling counters for requests and per-provider outcomes.

    Usage::

        store = MetricsStore()
        store.record_request_start()
        store.record_provider_call("suno-v3.5", success=True, duration_ms=840)
        store.record_request_end(860, success=True)
        store.success_rates()   # {"suno-v3.5": 1.0}
    """

    def __init__(
        self,
        response_window: int = 100,
        error_window_seconds: float = 60.0,
        clock: Callable[[], float] = time.time,
    ):
        self._clock = clock
        self._error_window = error_window_seconds
        self._lock = threading.Lock()
        self._active_requests = 0
        self._response_times: Deque[float] = deque(maxlen=response_window)
        self._errors: Deque[float] = deque()
        self._providers: Dict[str, ProviderMetrics] = {}

    # ── recording ────────────────────────────────────────────────────────────

    def record_request_start(self) -> None:
        with self._lock:
            self._active_requests += 1

    def record_request_end(self, duration_ms: float, success: bool) -> None:
        """Close out one request.

        Never drives the active count below zero, even when ends outnumber
        starts.
        """
        now = self._clock()
        with self._lock:
            self._active_requests = max(0, self._active_requests - 1)
            self._response_times.append(_clamp_duration(duration_ms))
            if not success:
                self._errors.append(now)
            self._prune_errors(now)

    def record_provider_call(self, provider: str, success: bool, duration_ms: float) -> None:
        """Record one call outcome, creating the provider entry on first sight."""
        now = self._clock()
        with self._lock:
            metrics = self._providers.get(provider)
            if metrics is None:
                metrics = ProviderMetrics(provider=provider)
                self._providers[provider] = metrics
                logger.debug("Tracking new provider '%s'", provider)
            metrics.total_calls += 1
            if success:
                metrics.success_calls += 1
            metrics.total_time_ms += _clamp_duration(duration_ms)
            metrics.last_used = now

    # ── reading ──────────────────────────────────────────────────────────────

    @property
    def active_requests(self) -> int:
        return self._active_requests

    def response_times(self) -> List[float]:
        with self._lock:
            return list(self._response_times)

    def avg_response_time_ms(self) -> float:
        with self._lock:
            if not self._response_times:
                return 0.0
            return sum(self._response_times) / len(self._response_times)

    def error_count(self) -> int:
        """Failures inside the trailing error window."""
        now = self._clock()
        with self._lock:
            self._prune_errors(now)
            return len(self._errors)

    def get_provider(self, provider: str) -> Optional[ProviderMetrics]:
        with self._lock:
            metrics = self._providers.get(provider)
            return _copy(metrics) if metrics is not None else None

    def provider_metrics(self) -> Dict[str, ProviderMetrics]:
        """Copies of every tracked provider, in first-seen order."""
        with self._lock:
            return {name: _copy(m) for name, m in self._providers.items()}

    def success_rates(self) -> Dict[str, float]:
        with self._lock:
            return {name: m.success_rate for name, m in self._providers.items()}

    # ── internal ─────────────────────────────────────────────────────────────

    def _prune_errors(self, now: float) -> None:
        # caller holds the lock; timestamps are appended in order
        cutoff = now - self._error_window
        while self._errors and self._errors[0] <= cutoff:
            self._errors.popleft()


def _copy(metrics: ProviderMetrics) -> ProviderMetrics:
    return ProviderMetrics(
        provider=metrics.provider,
        total_calls=metrics.total_calls,
        success_calls=metrics.success_calls,
        total_time_ms=metrics.total_time_ms,
        last_used=metrics.last_used,
    )


def _clamp_duration(duration_ms: float) -> float:
    """Map a duration onto [0, MAX_DURATION_MS]; NaN, inf and non-numbers become 0."""
    try:
        value = float(duration_ms)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value) or value < 0.0:
        return 0.0
    return min(value, MAX_DURATION_MS)
