"""AlertSink — log-only threshold checks over recent snapshots."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from backend.services.performance.types import (
    Alert,
    AlertThresholds,
    PerformanceSnapshot,
    ProviderMetrics,
)

logger = logging.getLogger("genstudio.performance.alerts")


class AlertSink:
    """Inspects the latest snapshots and provider counters, emitting warnings.

    Resource checks need ``min_snapshots`` of history so a cold start does not
    alert on a single noisy sample.  Every alert is logged at WARNING and also
    returned so callers (and tests) can inspect it.
    """

    def __init__(self, thresholds: Optional[AlertThresholds] = None):
        self.thresholds = thresholds or AlertThresholds()

    def evaluate(
        self,
        snapshots: Sequence[PerformanceSnapshot],
        providers: Iterable[ProviderMetrics] = (),
    ) -> List[Alert]:
        t = self.thresholds
        alerts: List[Alert] = []
        recent = list(snapshots)[-t.window:]

        if len(recent) >= t.min_snapshots:
            avg_cpu = sum(s.cpu_percent for s in recent) / len(recent)
            avg_errors = sum(s.error_count for s in recent) / len(recent)
            mem_pct = recent[-1].memory_percent

            if avg_cpu > t.cpu_percent:
                alerts.append(Alert(
                    kind="cpu",
                    message=f"HIGH CPU: {avg_cpu:.1f}% - consider scaling",
                    value=avg_cpu,
                    threshold=t.cpu_percent,
                ))
            if mem_pct > t.memory_percent:
                alerts.append(Alert(
                    kind="memory",
                    message=f"HIGH MEMORY: {mem_pct:.1f}% used",
                    value=mem_pct,
                    threshold=t.memory_percent,
                ))
            if avg_errors > t.errors_per_minute:
                alerts.append(Alert(
                    kind="error_rate",
                    message=f"HIGH ERROR RATE: {avg_errors:.1f} errors/min",
                    value=avg_errors,
                    threshold=t.errors_per_minute,
                ))

            low = [
                m.provider for m in providers
                if m.total_calls >= t.low_performer_min_calls
                and m.success_rate < t.low_performer_threshold
            ]
            if low:
                alerts.append(Alert(
                    kind="low_performers",
                    message=f"LOW PERFORMING PROVIDERS: {', '.join(low)}",
                    threshold=t.low_performer_threshold,
                    providers=low,
                ))

        for alert in alerts:
            logger.warning(alert.message)
        return alerts
