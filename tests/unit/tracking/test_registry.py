"""Tests for TrackingRegistry: one cancellable handle per match."""

import threading
from unittest.mock import MagicMock

from matchfolio.tracking.registry import TrackingRegistry


class TestRegister:
    def test_register_new(self):
        registry = TrackingRegistry()
        handle = MagicMock()

        assert registry.register("M1", handle) is True
        assert registry.has("M1")
        assert registry.get("M1") is handle
        assert registry.size() == 1

    def test_register_duplicate_is_noop(self):
        registry = TrackingRegistry()
        first, second = MagicMock(), MagicMock()
        registry.register("M1", first)

        assert registry.register("M1", second) is False
        assert registry.get("M1") is first
        assert registry.size() == 1
        first.cancel.assert_not_called()
        second.cancel.assert_not_called()

    def test_keys_is_snapshot(self):
        registry = TrackingRegistry()
        registry.register("M1", MagicMock())
        registry.register("M2", MagicMock())

        keys = registry.keys()
        registry.unregister("M1")

        assert keys == ["M1", "M2"]
        assert registry.keys() == ["M2"]

    def test_dunder_helpers(self):
        registry = TrackingRegistry()
        registry.register("M1", MagicMock())

        assert "M1" in registry
        assert "M2" not in registry
        assert len(registry) == 1


class TestUnregister:
    def test_unregister_cancels_and_removes(self):
        registry = TrackingRegistry()
        handle = MagicMock()
        registry.register("M1", handle)

        assert registry.unregister("M1") is True
        assert not registry.has("M1")
        handle.cancel.assert_called_once()

    def test_unregister_missing_is_noop(self):
        registry = TrackingRegistry()
        assert registry.unregister("M1") is False

    def test_unregister_with_matching_handle(self):
        registry = TrackingRegistry()
        handle = MagicMock()
        registry.register("M1", handle)

        assert registry.unregister("M1", handle=handle) is True
        handle.cancel.assert_called_once()

    def test_unregister_with_stale_handle_keeps_current(self):
        registry = TrackingRegistry()
        current, stale = MagicMock(), MagicMock()
        registry.register("M1", current)

        assert registry.unregister("M1", handle=stale) is False
        assert registry.get("M1") is current
        current.cancel.assert_not_called()
        stale.cancel.assert_not_called()


class TestClear:
    def test_clear_cancels_everything(self):
        registry = TrackingRegistry()
        handles = [MagicMock() for _ in range(3)]
        for i, h in enumerate(handles):
            registry.register(f"M{i}", h)

        assert registry.clear() == 3
        assert registry.size() == 0
        for h in handles:
            h.cancel.assert_called_once()

    def test_clear_empty(self):
        assert TrackingRegistry().clear() == 0

    def test_cancel_may_reenter_registry(self):
        """A handle whose cancel touches the registry must not deadlock."""
        registry = TrackingRegistry()
        handle = MagicMock()
        handle.cancel.side_effect = lambda: registry.unregister("M1")
        registry.register("M1", handle)

        assert registry.clear() == 1
        assert registry.size() == 0


class TestConcurrency:
    def test_concurrent_register_keeps_one_entry(self):
        registry = TrackingRegistry()
        results: list[bool] = []
        lock = threading.Lock()
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            ok = registry.register("M1", MagicMock())
            with lock:
                results.append(ok)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert registry.size() == 1

    def test_concurrent_unregister_cancels_once(self):
        registry = TrackingRegistry()
        handle = MagicMock()
        registry.register("M1", handle)
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            registry.unregister("M1")

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        handle.cancel.assert_called_once()
        assert registry.size() == 0
