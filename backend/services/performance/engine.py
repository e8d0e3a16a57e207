"""PerformanceEngine — owns the metrics store, sampler, router and alert sink.

One engine is built per process by the FastAPI lifespan handler and handed to
request handlers through ``app.state``; nothing here is a module-level
singleton.  Sampling runs on a daemon thread that wakes every
``interval_seconds`` and stops as soon as ``stop_monitoring()`` sets the stop
event.
"""
from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from backend.services.performance.alerts import AlertSink
from backend.services.performance.metrics_store import MetricsStore
from backend.services.performance.provider_router import ProviderRouter
from backend.services.performance.sampler import SnapshotSampler
from backend.services.performance.types import (
    Alert,
    PerformanceSettings,
    PerformanceSnapshot,
    ProviderMetrics,
)
from backend.services.shared.config import Config
from backend.services.shared.hardware_detector import HostUsage

logger = logging.getLogger("genstudio.performance.engine")


class PerformanceEngine:
    """Tracks request/provider health and routes to the best provider.

    Usage::

        engine = PerformanceEngine.from_config(get_config())
        engine.start_monitoring()

        provider = engine.select_provider("video")
        with engine.track_provider_call(provider):
            call_upstream(provider)

        engine.stop_monitoring()
    """

    def __init__(
        self,
        settings: Optional[PerformanceSettings] = None,
        host_sampler: Callable[[], HostUsage] = HostUsage.sample,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings or PerformanceSettings()
        self._clock = clock
        self.store = MetricsStore(
            response_window=self.settings.response_window,
            error_window_seconds=self.settings.error_window_seconds,
            clock=clock,
        )
        self.sampler = SnapshotSampler(
            self.store,
            max_snapshots=self.settings.max_snapshots,
            host_sampler=host_sampler,
            clock=clock,
        )
        self.router = ProviderRouter(
            self.store,
            providers=self.settings.providers,
            default_provider=self.settings.default_provider,
        )
        self.alerts = AlertSink(self.settings.alerts)

        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._lifecycle_lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Optional[Config], **kwargs) -> "PerformanceEngine":
        return cls(PerformanceSettings.from_config(config), **kwargs)

    # ── lifecycle ─────────────────────────────────────────────────────────────

    @property
    def is_monitoring(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start_monitoring(self) -> None:
        """Start the periodic sampler.  No-op if already running."""
        with self._lifecycle_lock:
            if self.is_monitoring:
                return
            # one stop event per thread
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._monitor_loop,
                args=(self._stop_event,),
                name="performance-monitor",
                daemon=True,
            )
            self._thread.start()
        logger.info("Performance monitoring started (interval=%.1fs, history=%d)",
                    self.settings.interval_seconds, self.settings.max_snapshots)

    def stop_monitoring(self) -> None:
        """Stop the periodic sampler.  Safe to call when not running.

        Existing history is kept.
        """
        with self._lifecycle_lock:
            thread, stop_event = self._thread, self._stop_event
            self._thread = None
            self._stop_event = None
        if stop_event is not None:
            stop_event.set()
        if thread is None:
            return
        if thread is not threading.current_thread():
            thread.join(timeout=max(5.0, self.settings.interval_seconds))
        logger.info("Performance monitoring stopped (%d snapshots kept)", len(self.sampler))

    def tick(self) -> List[Alert]:
        """One monitoring step: capture a snapshot, then evaluate alerts."""
        self.sampler.capture_snapshot()
        window = self.settings.alerts.window
        return self.alerts.evaluate(
            self.sampler.recent(window),
            self.store.provider_metrics().values(),
        )

    def _monitor_loop(self, stop_event: threading.Event) -> None:
        # wait() returns True once stop is requested
        while not stop_event.wait(self.settings.interval_seconds):
            try:
                self.tick()
            except Exception:  # noqa: BLE001
                logger.exception("Performance monitoring tick failed")

    # ── recording ─────────────────────────────────────────────────────────────

    def record_request_start(self) -> None:
        self.store.record_request_start()

    def record_request_end(self, duration_ms: float, success: bool) -> None:
        self.store.record_request_end(duration_ms, success)

    def record_provider_call(self, provider: str, success: bool, duration_ms: float) -> None:
        self.store.record_provider_call(provider, success, duration_ms)

    @contextmanager
    def track_provider_call(self, provider: str) -> Iterator[None]:
        """Time a provider call and record it as a request plus provider outcome.

        The call counts as failed if the block raises; the exception is
        re-raised unchanged.
        """
        self.record_request_start()
        started = time.perf_counter()
        success = False
        try:
            yield
            success = True
        finally:
            duration_ms = (time.perf_counter() - started) * 1000
            self.record_request_end(duration_ms, success)
            self.record_provider_call(provider, success, duration_ms)

    # ── queries ───────────────────────────────────────────────────────────────

    def select_provider(self, task_category: str) -> str:
        return self.router.select_provider(task_category)

    def get_current_metrics(self) -> PerformanceSnapshot:
        """A fresh snapshot; not added to history."""
        return self.sampler.capture_snapshot(record=False)

    def get_history(self, n: Optional[int] = None) -> Tuple[PerformanceSnapshot, ...]:
        return self.sampler.get_history(self.settings.history_default if n is None else n)

    def provider_metrics(self) -> Dict[str, ProviderMetrics]:
        return self.store.provider_metrics()
