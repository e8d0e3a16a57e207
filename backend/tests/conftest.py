"""Shared test fixtures for the generation backend."""
import shutil
import tempfile
from pathlib import Path
from typing import Generator

import pytest
import yaml

from backend.services.performance.engine import PerformanceEngine
from backend.services.performance.metrics_store import MetricsStore
from backend.services.performance.types import PerformanceSettings
from backend.services.shared.hardware_detector import HostUsage


@pytest.fixture(scope="session")
def project_root() -> Path:
    return Path(__file__).parent.parent.parent


@pytest.fixture
def tmp_dir() -> Generator[Path, None, None]:
    d = Path(tempfile.mkdtemp())
    yield d
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def sample_settings(tmp_dir: Path) -> Path:
    """Write a minimal settings.yaml to a temp dir and return its path."""
    settings = {
        "logging": {"level": "DEBUG", "file": str(tmp_dir / "test.log")},
        "performance": {
            "interval_seconds": 10,
            "max_snapshots": 20,
            "response_window": 5,
            "error_window_seconds": 60,
            "history_default": 10,
            "default_provider": "suno-v3.5",
            "alerts": {
                "min_snapshots": 3,
                "window": 6,
                "cpu_percent": 85.0,
                "memory_percent": 85.0,
                "errors_per_minute": 5.0,
                "low_performer_threshold": 0.7,
                "low_performer_min_calls": 6,
            },
            "providers": {
                "music": ["suno-v3.5", "eleven-music-v2"],
                "video": ["kling-3.0", "veo-3", "runway-gen3"],
                "test": ["y", "x"],
            },
        },
    }
    cfg_path = tmp_dir / "settings.yaml"
    cfg_path.write_text(yaml.dump(settings))
    return cfg_path


# ─────────────────────────────────────────────────────────────────────────────
# Time / host fakes
# ─────────────────────────────────────────────────────────────────────────────


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeHost:
    """Host sampler returning a fixed, mutable HostUsage."""

    def __init__(self, cpu: float = 12.5, used_mb: int = 4096, total_mb: int = 16384):
        self.usage = HostUsage(cpu_percent=cpu, memory_used_mb=used_mb,
                               memory_total_mb=total_mb, cpu_cores=8)
        self.calls = 0

    def set(self, cpu: float, used_mb: int, total_mb: int = 16384) -> None:
        self.usage = HostUsage(cpu_percent=cpu, memory_used_mb=used_mb,
                               memory_total_mb=total_mb, cpu_cores=8)

    def __call__(self) -> HostUsage:
        self.calls += 1
        return self.usage


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def store(clock: FakeClock) -> MetricsStore:
    return MetricsStore(response_window=5, error_window_seconds=60.0, clock=clock)


@pytest.fixture
def engine(clock: FakeClock, fake_host: FakeHost) -> Generator[PerformanceEngine, None, None]:
    """Engine with a fake clock/host and a small history; always stopped after."""
    settings = PerformanceSettings(
        interval_seconds=0.05,
        max_snapshots=20,
        response_window=5,
        providers={
            "music": ["suno-v3.5", "eleven-music-v2", "musicgen-large"],
            "test": ["y", "x"],
        },
    )
    eng = PerformanceEngine(settings, host_sampler=fake_host, clock=clock)
    yield eng
    eng.stop_monitoring()


# ─────────────────────────────────────────────────────────────────────────────
# FastAPI TestClient
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def api_settings(sample_settings: Path, monkeypatch) -> Path:
    """Point the app at the temp settings file and reset the shared config."""
    from backend.services.shared.config import reset_config

    monkeypatch.setenv("GENSTUDIO_SETTINGS", str(sample_settings))
    reset_config()
    yield sample_settings
    reset_config()
