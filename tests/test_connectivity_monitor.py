"""Unit tests for ConnectivityMonitor."""
import threading
from unittest.mock import MagicMock

import pytest

from netbridge.core.errors import OSQueryUnavailable
from netbridge.core.types import MonitorState, Transport
from netbridge.services.monitoring import (
    ConnectivityMonitor,
    ImmediateDispatcher,
    PollingChangeSource,
    SerialDispatcher,
)
from tests.fakes import ETHERNET_UP, FIXED_MILLIS, LINK_DOWN, WIFI_UP, FakeChangeSource, FakeSampler, wait_for


def _statuses(events):
    return [(e.reachable, e.transport) for e in events]


class TestQuery:
    def test_query_normalizes_sample(self, monitor, sampler):
        """Test query returns the normalized current state."""
        state = monitor.query()
        assert state.reachable is True
        assert state.transport == Transport.WIFI
        assert state.observed_at_millis == FIXED_MILLIS
        assert sampler.calls == 1

    def test_query_works_while_stopped(self, monitor):
        """Test query does not require monitoring."""
        assert monitor.state == MonitorState.STOPPED
        assert monitor.query().network_type == "wifi"
        assert monitor.state == MonitorState.STOPPED

    def test_query_os_unavailable_reads_unreachable(self, monitor, sampler):
        """Test an unavailable OS service yields the NONE snapshot."""
        sampler.error = OSQueryUnavailable("no service")
        state = monitor.query()
        assert state.to_payload() == {
            "isConnected": False,
            "isWifiOrEthernet": False,
            "networkType": "none",
            "timestamp": FIXED_MILLIS,
        }

    def test_query_unexpected_error_reads_unreachable(self, monitor, sampler):
        sampler.error = RuntimeError("boom")
        assert monitor.query().reachable is False


class TestStart:
    def test_baseline_equals_query(self, monitor):
        """Test the first event is the baseline state."""
        events = []
        monitor.start(events.append)

        assert len(events) == 1
        assert events[0] == monitor.query()
        assert monitor.is_monitoring
        assert monitor.degraded is False

    def test_link_down_emits_two_events(self, monitor, sampler, source):
        """Test WIFI baseline then link loss yields exactly two events."""
        events = []
        monitor.start(events.append)

        sampler.raw = LINK_DOWN
        source.fire()

        assert _statuses(events) == [(True, Transport.WIFI), (False, Transport.NONE)]
        assert monitor.last_state.transport == Transport.NONE

    def test_restart_keeps_single_registration(self, sampler, source):
        """Test start twice leaves one live registration and no doubled events."""
        monitor = ConnectivityMonitor(
            sampler=sampler, change_source=source, dispatcher=ImmediateDispatcher(), dedupe=False
        )
        first, second = [], []
        monitor.start(first.append)
        monitor.start(second.append)

        assert len(source.active) == 1
        assert len(source.history) == 2
        assert source.history[0].revoked is True

        # Late callback from the first registration plus one from the live one
        sampler.raw = ETHERNET_UP
        source.fire_all()

        assert len(first) == 1
        assert _statuses(second) == [(True, Transport.WIFI), (True, Transport.ETHERNET)]
        monitor.dispose()

    def test_restart_resets_dedupe_baseline(self, monitor, source):
        """Test each session starts with its own baseline event."""
        events = []
        monitor.start(events.append)
        monitor.start(events.append)
        assert len(events) == 2

    def test_registration_failure_runs_degraded(self, sampler):
        """Test a refused registration still delivers the baseline."""
        source = FakeChangeSource(fail=True)
        monitor = ConnectivityMonitor(sampler=sampler, change_source=source, dispatcher=ImmediateDispatcher())
        events = []
        monitor.start(events.append)

        assert len(events) == 1
        assert monitor.degraded is True
        assert monitor.is_monitoring
        monitor.dispose()
        assert monitor.degraded is False

    def test_no_change_source_runs_degraded(self, sampler):
        monitor = ConnectivityMonitor(sampler=sampler, change_source=None, dispatcher=ImmediateDispatcher())
        events = []
        monitor.start(events.append)
        assert len(events) == 1
        assert monitor.degraded is True
        monitor.dispose()

    def test_sampler_failure_baseline_is_none(self, monitor, sampler):
        """Test a failing sampler yields a NONE baseline instead of raising."""
        sampler.error = OSQueryUnavailable("down")
        events = []
        monitor.start(events.append)
        assert _statuses(events) == [(False, Transport.NONE)]

    def test_crashing_change_source_runs_degraded(self, sampler):
        """Test an unexpected register() error still delivers the baseline."""
        source = MagicMock()
        source.register.side_effect = RuntimeError("platform API unsupported")
        monitor = ConnectivityMonitor(sampler=sampler, change_source=source, dispatcher=ImmediateDispatcher())
        events = []

        monitor.start(events.append)

        assert _statuses(events) == [(True, Transport.WIFI)]
        assert monitor.degraded is True
        assert monitor.is_monitoring
        monitor.stop()
        assert monitor.state == MonitorState.STOPPED

    def test_polling_source_over_crashing_sampler(self, sampler):
        """Test a polling source whose sampler crashes yields a NONE baseline."""
        sampler.error = RuntimeError("adapter crashed")
        monitor = ConnectivityMonitor(
            sampler=sampler,
            change_source=PollingChangeSource(sampler, interval=0.05),
            dispatcher=ImmediateDispatcher(),
        )
        events = []
        try:
            monitor.start(events.append)
            assert _statuses(events) == [(False, Transport.NONE)]
            assert monitor.degraded is False
        finally:
            monitor.dispose()

    def test_baseline_precedes_callback_fired_during_register(self, sampler):
        """Test a source that reports a change while registering cannot overtake the baseline."""
        source = FakeChangeSource()
        original_register = source.register

        def _register_and_fire(callback):
            registration = original_register(callback)
            sampler.raw = LINK_DOWN
            callback()
            return registration

        source.register = _register_and_fire
        monitor = ConnectivityMonitor(sampler=sampler, change_source=source, dispatcher=ImmediateDispatcher())
        events = []

        monitor.start(events.append)

        assert _statuses(events) == [(True, Transport.WIFI), (False, Transport.NONE)]
        monitor.dispose()

    def test_observer_error_does_not_break_stream(self, monitor, sampler, source):
        """Test an observer exception is contained by the dispatcher."""
        observer = MagicMock(side_effect=[ValueError("bad observer"), None])
        monitor.start(observer)
        sampler.raw = LINK_DOWN
        source.fire()
        assert observer.call_count == 2


class TestDedupe:
    def test_duplicate_change_suppressed(self, monitor, source):
        """Test an OS change that leaves the status unchanged emits nothing."""
        events = []
        monitor.start(events.append)
        source.fire()
        source.fire()
        assert len(events) == 1

    def test_duplicates_delivered_when_disabled(self, sampler, source):
        monitor = ConnectivityMonitor(
            sampler=sampler, change_source=source, dispatcher=ImmediateDispatcher(), dedupe=False
        )
        events = []
        monitor.start(events.append)
        source.fire()
        assert len(events) == 2
        monitor.dispose()

    def test_change_after_duplicate_still_emitted(self, monitor, sampler, source):
        events = []
        monitor.start(events.append)
        source.fire()
        sampler.raw = ETHERNET_UP
        source.fire()
        assert _statuses(events) == [(True, Transport.WIFI), (True, Transport.ETHERNET)]


class TestStop:
    def test_late_callback_after_stop_suppressed(self, monitor, sampler, source):
        """Test callbacks arriving after stop never reach the observer."""
        events = []
        monitor.start(events.append)
        monitor.stop()

        sampler.raw = LINK_DOWN
        source.fire_all()

        assert len(events) == 1
        assert source.active == []
        assert monitor.state == MonitorState.STOPPED

    def test_stop_is_idempotent(self, monitor):
        """Test stop twice and stop before start are safe."""
        monitor.stop()
        monitor.start(lambda s: None)
        monitor.stop()
        monitor.stop()
        assert monitor.state == MonitorState.STOPPED

    def test_stop_invalidates_queued_delivery(self, sampler, source):
        """Test a delivery queued before stop is dropped at delivery time."""
        pending = []
        dispatcher = MagicMock()
        dispatcher.submit.side_effect = pending.append
        monitor = ConnectivityMonitor(sampler=sampler, change_source=source, dispatcher=dispatcher)

        events = []
        monitor.start(events.append)
        monitor.stop()
        for fn in pending:
            fn()

        assert events == []

    def test_subscription_cancel(self, monitor):
        events = []
        subscription = monitor.start(events.append)
        assert subscription.active
        subscription.cancel()
        assert not subscription.active
        assert monitor.state == MonitorState.STOPPED

    def test_cancel_replaced_subscription_is_noop(self, monitor):
        """Test cancelling an old handle does not stop the newer session."""
        old = monitor.start(lambda s: None)
        new = monitor.start(lambda s: None)
        old.cancel()
        assert new.active
        assert monitor.is_monitoring

    def test_observer_may_stop_from_callback(self, monitor, sampler, source):
        """Test stopping inside the observer does not deadlock."""
        events = []

        def _observer(state):
            events.append(state)
            if not state.reachable:
                monitor.stop()

        monitor.start(_observer)
        sampler.raw = LINK_DOWN
        source.fire()
        sampler.raw = WIFI_UP
        source.fire_all()

        assert len(events) == 2
        assert monitor.state == MonitorState.STOPPED

    def test_context_manager_disposes(self, sampler, source):
        with ConnectivityMonitor(sampler=sampler, change_source=source, dispatcher=ImmediateDispatcher()) as mon:
            mon.start(lambda s: None)
            assert len(source.active) == 1
        assert source.active == []
        assert mon.state == MonitorState.STOPPED


class TestDelivery:
    def test_fallback_polling_reports_changes(self):
        """Test degraded mode with polling still reports a change."""
        sampler = FakeSampler()
        monitor = ConnectivityMonitor(
            sampler=sampler,
            change_source=FakeChangeSource(fail=True),
            dispatcher=ImmediateDispatcher(),
            fallback_poll_interval=0.05,
        )
        events = []
        try:
            monitor.start(events.append)
            assert monitor.degraded is True
            sampler.raw = LINK_DOWN
            assert wait_for(lambda: len(events) == 2)
            assert events[1].reachable is False
        finally:
            monitor.dispose()

    def test_default_dispatcher_serializes_on_one_thread(self, sampler, source):
        """Test emissions from many threads reach the observer on one worker thread, in order."""
        monitor = ConnectivityMonitor(sampler=sampler, change_source=source, dedupe=False)
        events = []
        threads_seen = set()

        def _observer(state):
            threads_seen.add(threading.current_thread().name)
            events.append(state)

        try:
            monitor.start(_observer)
            workers = [threading.Thread(target=source.fire) for _ in range(5)]
            for worker in workers:
                worker.start()
            for worker in workers:
                worker.join()

            assert wait_for(lambda: len(events) == 6)
            assert threads_seen == {"NetBridgeDispatcher"}
        finally:
            monitor.dispose()

    def test_explicit_serial_dispatcher_not_closed_by_dispose(self, sampler, source):
        dispatcher = SerialDispatcher()
        dispatcher.close = MagicMock(wraps=dispatcher.close)
        monitor = ConnectivityMonitor(sampler=sampler, change_source=source, dispatcher=dispatcher)
        monitor.start(lambda s: None)
        monitor.dispose()
        dispatcher.close.assert_not_called()
        SerialDispatcher.close(dispatcher)

    @pytest.mark.parametrize("fires", [1, 3])
    def test_last_state_tracks_latest_emission(self, monitor, sampler, source, fires):
        monitor.start(lambda s: None)
        sampler.raw = ETHERNET_UP
        for _ in range(fires):
            source.fire()
        assert monitor.last_state.transport == Transport.ETHERNET
