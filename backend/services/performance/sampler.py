"""SnapshotSampler — periodic host + routing health samples."""
from __future__ import annotations

import threading
import time
from collections import deque
from types import MappingProxyType
from typing import Callable, Deque, Tuple

from backend.services.performance.metrics_store import MetricsStore
from backend.services.performance.types import PerformanceSnapshot
from backend.services.shared.hardware_detector import HostUsage


class SnapshotSampler:
    """Combines a host usage reading with MetricsStore aggregates.

    History is a fixed-capacity FIFO: once ``max_snapshots`` is reached the
    oldest snapshot is dropped for each new one.
    """

    def __init__(
        self,
        store: MetricsStore,
        max_snapshots: int = 1000,
        host_sampler: Callable[[], HostUsage] = HostUsage.sample,
        clock: Callable[[], float] = time.time,
    ):
        self._store = store
        self._sample_host = host_sampler
        self._clock = clock
        self._lock = threading.Lock()
        self._history: Deque[PerformanceSnapshot] = deque(maxlen=max_snapshots)

    @property
    def capacity(self) -> int:
        return self._history.maxlen or 0

    def __len__(self) -> int:
        return len(self._history)

    def capture_snapshot(self, record: bool = True) -> PerformanceSnapshot:
        """Take a snapshot and, if ``record``, append it to history."""
        host = self._sample_host()
        snapshot = PerformanceSnapshot(
            timestamp=self._clock(),
            cpu_percent=host.cpu_percent,
            memory_used_mb=host.memory_used_mb,
            memory_total_mb=host.memory_total_mb,
            active_requests=self._store.active_requests,
            avg_response_time_ms=round(self._store.avg_response_time_ms()),
            error_count=self._store.error_count(),
            model_success_rates=MappingProxyType(self._store.success_rates()),
        )
        if record:
            with self._lock:
                self._history.append(snapshot)
        return snapshot

    def get_history(self, n: int = 50) -> Tuple[PerformanceSnapshot, ...]:
        """Most recent ``n`` snapshots, oldest first."""
        if n <= 0:
            return ()
        with self._lock:
            items = tuple(self._history)
        return items[-n:]

    recent = get_history
