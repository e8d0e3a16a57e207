"""Host resource usage reader.

Reads CPU and memory utilisation through psutil.  A failed read never
propagates: the affected fields fall back to zero and a warning is logged,
since losing this signal must not block request handling.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict

import psutil

logger = logging.getLogger("genstudio.hardware_detector")

_MB = 1024 * 1024


@dataclass(frozen=True)
class HostUsage:
    cpu_percent: float
    memory_used_mb: int
    memory_total_mb: int
    cpu_cores: int = 0

    # ── class method ─────────────────────────────────────────────────────────

    @classmethod
    def sample(cls) -> "HostUsage":
        """Read current host utilisation.

        CPU is the mean of the per-core percentages since the previous call
        (psutil's non-blocking mode; the very first call reports 0.0).
        """
        cpu = 0.0
        cores = 0
        try:
            per_core = psutil.cpu_percent(interval=None, percpu=True)
            cores = len(per_core)
            if per_core:
                cpu = sum(per_core) / len(per_core)
        except (OSError, RuntimeError, psutil.Error) as exc:
            logger.warning("CPU usage unavailable, reporting 0: %s", exc)

        used_mb = 0
        total_mb = 0
        try:
            mem = psutil.virtual_memory()
            total_mb = round(mem.total / _MB)
            # total - available, i.e. "free" counts reclaimable cache
            used_mb = round((mem.total - mem.available) / _MB)
        except (OSError, RuntimeError, psutil.Error) as exc:
            logger.warning("Memory usage unavailable, reporting 0: %s", exc)

        return cls(
            cpu_percent=round(cpu, 1),
            memory_used_mb=used_mb,
            memory_total_mb=total_mb,
            cpu_cores=cores,
        )

    # ── derived ──────────────────────────────────────────────────────────────

    @property
    def memory_percent(self) -> float:
        if self.memory_total_mb <= 0:
            return 0.0
        return self.memory_used_mb / self.memory_total_mb * 100

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["memory_percent"] = round(self.memory_percent, 1)
        return data
