"""Data types for the performance and provider-routing engine."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from backend.services.shared.config import Config

# Static candidate lists, best first.  Overridable via performance.providers.
DEFAULT_PROVIDERS: Dict[str, List[str]] = {
    "music": ["suno-v3.5", "eleven-music-v2", "musicgen-large"],
    "video": ["kling-3.0", "veo-3", "runway-gen3"],
    "image": ["flux-1", "sdxl", "dalle-3"],
    "voice": ["eleven-v3", "eleven-v2", "whisper"],
}


@dataclass
class ProviderMetrics:
    """Running counters for one generation provider."""
    provider: str
    total_calls: int = 0
    success_calls: int = 0
    total_time_ms: float = 0.0
    last_used: float = 0.0          # epoch seconds, 0 if never called

    @property
    def success_rate(self) -> float:
        if self.total_calls <= 0:
            return 0.0
        return self.success_calls / self.total_calls

    @property
    def avg_latency_ms(self) -> float:
        if self.total_calls <= 0:
            return 0.0
        return self.total_time_ms / self.total_calls

    def to_dict(self) -> Dict[str, Any]:
        return {
            "provider": self.provider,
            "total_calls": self.total_calls,
            "success_calls": self.success_calls,
            "success_rate": round(self.success_rate, 4),
            "avg_latency_ms": round(self.avg_latency_ms),
            "last_used": self.last_used,
        }


@dataclass(frozen=True)
class PerformanceSnapshot:
    """One timestamped sample of host and routing health."""
    timestamp: float
    cpu_percent: float
    memory_used_mb: int
    memory_total_mb: int
    active_requests: int
    avg_response_time_ms: int
    error_count: int                # failures in the trailing error window
    model_success_rates: Mapping[str, float] = field(default_factory=dict)

    @property
    def memory_percent(self) -> float:
        if self.memory_total_mb <= 0:
            return 0.0
        return self.memory_used_mb / self.memory_total_mb * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "cpu_percent": self.cpu_percent,
            "memory_used_mb": self.memory_used_mb,
            "memory_total_mb": self.memory_total_mb,
            "memory_percent": round(self.memory_percent, 1),
            "active_requests": self.active_requests,
            "avg_response_time_ms": self.avg_response_time_ms,
            "error_count": self.error_count,
            "model_success_rates": dict(self.model_success_rates),
        }


@dataclass
class Alert:
    """A threshold breach reported by the alert sink."""
    kind: str                       # "cpu" | "memory" | "error_rate" | "low_performers"
    message: str
    value: float = 0.0
    threshold: float = 0.0
    providers: List[str] = field(default_factory=list)


@dataclass
class AlertThresholds:
    min_snapshots: int = 3
    window: int = 6                 # ~one minute at the default 10 s interval
    cpu_percent: float = 85.0
    memory_percent: float = 85.0
    errors_per_minute: float = 5.0
    low_performer_threshold: float = 0.7
    low_performer_min_calls: int = 6


@dataclass
class PerformanceSettings:
    """Tunables for the engine, read from the ``performance`` config section."""
    interval_seconds: float = 10.0
    max_snapshots: int = 1000
    response_window: int = 100
    error_window_seconds: float = 60.0
    history_default: int = 50
    default_provider: str = "suno-v3.5"
    providers: Dict[str, List[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_PROVIDERS.items()}
    )
    alerts: AlertThresholds = field(default_factory=AlertThresholds)

    def __post_init__(self) -> None:
        for name in ("interval_seconds", "max_snapshots", "response_window",
                     "error_window_seconds", "history_default"):
            if getattr(self, name) <= 0:
                raise ValueError(f"performance.{name} must be positive, got {getattr(self, name)!r}")
        if self.alerts.window <= 0 or self.alerts.min_snapshots <= 0:
            raise ValueError("performance.alerts window sizes must be positive")
        if self.alerts.min_snapshots > self.alerts.window:
            raise ValueError(
                f"performance.alerts.min_snapshots ({self.alerts.min_snapshots}) "
                f"cannot exceed performance.alerts.window ({self.alerts.window})"
            )
        if not 0.0 <= self.alerts.low_performer_threshold <= 1.0:
            raise ValueError(
                "performance.alerts.low_performer_threshold must be within [0, 1], "
                f"got {self.alerts.low_performer_threshold!r}"
            )

    @classmethod
    def from_config(cls, config: Optional[Config]) -> "PerformanceSettings":
        """Build settings from ``config``; missing keys keep their defaults."""
        if config is None:
            return cls()
        section = config.section("performance")
        alert_section = section.pop("alerts", None) or {}
        providers = section.pop("providers", None)

        kwargs: Dict[str, Any] = {
            k: v for k, v in section.items() if k in cls.__dataclass_fields__
        }
        if providers:
            kwargs["providers"] = {str(cat): [str(p) for p in names]
                                   for cat, names in providers.items()}
        kwargs["alerts"] = AlertThresholds(**{
            k: v for k, v in alert_section.items()
            if k in AlertThresholds.__dataclass_fields__
        })
        return cls(**kwargs)
