"""Tests for SnapshotSampler."""
import dataclasses

import pytest

from backend.services.performance.sampler import SnapshotSampler
from backend.services.performance.types import PerformanceSnapshot


@pytest.fixture
def sampler(store, fake_host, clock):
    return SnapshotSampler(store, max_snapshots=4, host_sampler=fake_host, clock=clock)


class TestCaptureSnapshot:
    def test_combines_host_and_store(self, sampler, store, fake_host, clock):
        store.record_request_start()
        store.record_request_end(300, success=False)
        store.record_request_end(101, success=True)
        store.record_request_start()
        store.record_provider_call("suno-v3.5", True, 300)
        store.record_provider_call("udio", False, 100)

        snap = sampler.capture_snapshot()

        assert snap.timestamp == clock.now
        assert snap.cpu_percent == fake_host.usage.cpu_percent
        assert snap.memory_used_mb == 4096
        assert snap.memory_total_mb == 16384
        assert snap.active_requests == 1
        assert snap.avg_response_time_ms == 200
        assert snap.error_count == 1
        assert snap.model_success_rates == {"suno-v3.5": 1.0, "udio": 0.0}

    def test_snapshot_is_immutable(self, sampler):
        snap = sampler.capture_snapshot()
        with pytest.raises(dataclasses.FrozenInstanceError):
            snap.cpu_percent = 99.0

    def test_success_rate_map_is_read_only(self, sampler, store):
        store.record_provider_call("x", True, 200)
        snap = sampler.capture_snapshot()
        with pytest.raises(TypeError):
            snap.model_success_rates["x"] = 0.0
        with pytest.raises(TypeError):
            del snap.model_success_rates["x"]
        assert sampler.get_history(1)[0].model_success_rates["x"] == 1.0

    def test_to_dict_returns_plain_copy(self, sampler, store):
        store.record_provider_call("x", True, 200)
        snap = sampler.capture_snapshot()
        data = snap.to_dict()
        data["model_success_rates"]["x"] = 0.0
        assert snap.model_success_rates["x"] == 1.0

    def test_later_calls_do_not_change_old_snapshot(self, sampler, store):
        store.record_provider_call("a", True, 1)
        snap = sampler.capture_snapshot()
        store.record_provider_call("a", False, 1)
        assert snap.model_success_rates["a"] == 1.0

    def test_record_false_skips_history(self, sampler):
        sampler.capture_snapshot(record=False)
        assert len(sampler) == 0

    def test_zeroed_host_reading_still_captures(self, store, clock, fake_host):
        fake_host.set(cpu=0.0, used_mb=0, total_mb=0)
        snap = SnapshotSampler(store, host_sampler=fake_host, clock=clock).capture_snapshot()
        assert snap.memory_percent == 0.0


class TestHistory:
    def test_history_capped(self, sampler, clock):
        for _ in range(25):
            clock.advance(10)
            sampler.capture_snapshot()
            assert len(sampler) <= sampler.capacity
        assert len(sampler) == 4

    def test_oldest_evicted_first(self, sampler, clock):
        stamps = []
        for _ in range(6):
            clock.advance(10)
            stamps.append(sampler.capture_snapshot().timestamp)
        assert [s.timestamp for s in sampler.get_history(10)] == stamps[-4:]

    def test_get_history_most_recent_chronological(self, sampler, clock):
        for _ in range(3):
            clock.advance(10)
            sampler.capture_snapshot()
        history = sampler.get_history(2)
        assert len(history) == 2
        assert history[0].timestamp < history[1].timestamp
        assert history[1].timestamp == clock.now

    def test_get_history_is_read_only(self, sampler):
        sampler.capture_snapshot()
        history = sampler.get_history(5)
        assert isinstance(history, tuple)
        assert all(isinstance(s, PerformanceSnapshot) for s in history)

    def test_get_history_non_positive(self, sampler):
        sampler.capture_snapshot()
        assert sampler.get_history(0) == ()
