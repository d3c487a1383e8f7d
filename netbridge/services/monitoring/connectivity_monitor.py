"""
Connectivity Monitor - Single-observer connectivity state stream.

Architecture:
- Samplers read the OS; the normalizer turns raw signals into states
- Change sources only say "something changed"; the monitor recomputes
  the whole snapshot on each notification
- Every start() opens a new session; callbacks and queued deliveries from
  an older session are dropped, so nothing leaks past stop()
- At most one OS registration exists; restart revokes before reacquiring
"""
import threading
from typing import Callable, Optional

from loguru import logger

from netbridge.core.constants import DEDUPE_EVENTS, FALLBACK_POLL_INTERVAL
from netbridge.core.errors import OSQueryUnavailable, RegistrationFailure
from netbridge.core.protocols import ChangeSource, Dispatcher, NetworkSampler, Registration
from netbridge.core.types import ConnectivityState, MonitorState, now_millis
from netbridge.services.monitoring.change_sources import PollingChangeSource, create_change_source
from netbridge.services.monitoring.dispatchers import SerialDispatcher
from netbridge.services.monitoring.normalizer import normalize
from netbridge.services.samplers import create_sampler

Observer = Callable[[ConnectivityState], None]

# Marker for "pick the platform's change source"
AUTO = object()


class Subscription:
    """Handle for one monitoring session. Cancelling a replaced session is a no-op."""

    def __init__(self, monitor: "ConnectivityMonitor", session_id: int):
        self._monitor = monitor
        self.session_id = session_id

    @property
    def active(self) -> bool:
        return self._monitor.is_monitoring and self._monitor.session_id == self.session_id

    def cancel(self) -> None:
        self._monitor._stop_session(self.session_id)


class ConnectivityMonitor:
    """
    Owns the OS change registration and emits connectivity states to one observer.

    Usage:
        monitor = ConnectivityMonitor()
        state = monitor.query()
        subscription = monitor.start(lambda s: print(s.to_payload()))
        ...
        monitor.stop()
    """

    def __init__(
        self,
        sampler: Optional[NetworkSampler] = None,
        change_source=AUTO,
        dispatcher: Optional[Dispatcher] = None,
        dedupe: bool = DEDUPE_EVENTS,
        fallback_poll_interval: float = FALLBACK_POLL_INTERVAL,
        clock: Callable[[], int] = now_millis,
    ):
        """
        Initialize the monitor.

        Args:
            sampler: OS sampler; the current platform's when omitted
            change_source: OS change source; AUTO picks the platform's, None disables
            dispatcher: Delivery context; a private SerialDispatcher when omitted
            dedupe: Suppress change events whose status equals the last emitted one
            fallback_poll_interval: Poll interval used when registration fails (0 = baseline only)
            clock: Wall-clock source in milliseconds
        """
        self._sampler = sampler or create_sampler()
        self._change_source: Optional[ChangeSource] = (
            create_change_source(sampler=self._sampler) if change_source is AUTO else change_source
        )
        self._dispatcher = dispatcher
        self._owns_dispatcher = dispatcher is None
        self._dedupe = dedupe
        self._fallback_poll_interval = fallback_poll_interval
        self._clock = clock

        # _lock guards session fields; _emit_lock orders computed emissions
        self._lock = threading.RLock()
        self._emit_lock = threading.RLock()

        self._state = MonitorState.STOPPED
        self._session_id = 0
        self._observer: Optional[Observer] = None
        self._registration: Optional[Registration] = None
        self._last_emitted: Optional[ConnectivityState] = None
        self._degraded = False

    def query(self) -> ConnectivityState:
        """Sample the OS now. Never raises; unknown state reads as unreachable."""
        try:
            raw = self._sampler.sample_raw_network_state()
        except OSQueryUnavailable as e:
            logger.warning(f"[ConnectivityMonitor] OS network state unavailable: {e}")
            return ConnectivityState.unreachable(self._clock())
        except Exception as e:
            logger.error(f"[ConnectivityMonitor] Sampler {self._sampler_name} failed: {e}")
            return ConnectivityState.unreachable(self._clock())

        return normalize(raw, self._clock())

    def start(self, observer: Observer) -> Subscription:
        """
        Begin monitoring for ``observer``, replacing any current observer.

        The observer first receives a baseline state equal to query() at call
        time, then one state per OS-reported change.
        """
        self._release_registration()

        with self._lock:
            self._session_id += 1
            session_id = self._session_id
            self._observer = observer
            self._state = MonitorState.MONITORING
            self._last_emitted = None
            self._degraded = False

        with self._emit_lock:
            # Baseline first: some sources call back synchronously from register()
            baseline = self.query()
            self._submit(session_id, baseline)

            registration = self._acquire_registration(session_id)
            with self._lock:
                if session_id == self._session_id:
                    self._registration = registration
                    registration = None
            # Stopped while registering
            if registration is not None:
                self._revoke(registration)

        logger.info(
            f"[ConnectivityMonitor] Started (session {session_id}, baseline={baseline.network_type}"
            f"{', degraded' if self.degraded else ''})"
        )
        return Subscription(self, session_id)

    def stop(self) -> None:
        """Stop monitoring. Idempotent, never raises."""
        with self._lock:
            if self._state == MonitorState.STOPPED and self._registration is None:
                return
            session_id = self._session_id
            self._session_id += 1
            self._observer = None
            self._state = MonitorState.STOPPED
            self._degraded = False

        self._release_registration()
        logger.info(f"[ConnectivityMonitor] Stopped (session {session_id})")

    def dispose(self) -> None:
        """Tear down: stop monitoring and close the private dispatcher."""
        self.stop()
        with self._lock:
            dispatcher = self._dispatcher if self._owns_dispatcher else None
            if self._owns_dispatcher:
                self._dispatcher = None
        if dispatcher is not None:
            dispatcher.close()

    def __enter__(self) -> "ConnectivityMonitor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    @property
    def state(self) -> MonitorState:
        with self._lock:
            return self._state

    @property
    def is_monitoring(self) -> bool:
        return self.state == MonitorState.MONITORING

    @property
    def degraded(self) -> bool:
        """True while monitoring without an OS change registration."""
        with self._lock:
            return self._degraded

    @property
    def session_id(self) -> int:
        with self._lock:
            return self._session_id

    @property
    def last_state(self) -> Optional[ConnectivityState]:
        """Last state emitted in the current session."""
        with self._lock:
            return self._last_emitted

    @property
    def _sampler_name(self) -> str:
        return getattr(self._sampler, "name", type(self._sampler).__name__)

    def _is_current(self, session_id: int) -> bool:
        with self._lock:
            return self._state == MonitorState.MONITORING and session_id == self._session_id

    def _stop_session(self, session_id: int) -> None:
        if self._is_current(session_id):
            self.stop()

    def _acquire_registration(self, session_id: int) -> Optional[Registration]:
        def _callback():
            self._on_os_change(session_id)

        if self._change_source is not None:
            try:
                return self._change_source.register(_callback)
            except (RegistrationFailure, OSError) as e:
                logger.warning(f"[ConnectivityMonitor] Change registration failed, running degraded: {e}")
            except Exception as e:
                logger.error(
                    f"[ConnectivityMonitor] Change source {getattr(self._change_source, 'name', '?')} crashed, running degraded: {e}"
                )
        else:
            logger.warning("[ConnectivityMonitor] No change source, running degraded")

        with self._lock:
            self._degraded = True

        if self._fallback_poll_interval > 0:
            fallback = PollingChangeSource(self._sampler, self._fallback_poll_interval, name="FallbackPolling")
            try:
                return fallback.register(_callback)
            except Exception as e:
                logger.error(f"[ConnectivityMonitor] Fallback polling failed: {e}")
        return None

    def _release_registration(self) -> None:
        with self._lock:
            registration, self._registration = self._registration, None
        if registration is not None:
            self._revoke(registration)

    def _revoke(self, registration: Registration) -> None:
        try:
            registration.revoke()
        except Exception as e:
            logger.error(f"[ConnectivityMonitor] Revoking registration failed: {e}")

    def _on_os_change(self, session_id: int) -> None:
        with self._emit_lock:
            if not self._is_current(session_id):
                logger.debug(f"[ConnectivityMonitor] Change for stale session {session_id} ignored")
                return

            state = self.query()
            with self._lock:
                duplicate = self._dedupe and state.same_status(self._last_emitted)
            if duplicate:
                logger.debug(f"[ConnectivityMonitor] Unchanged state ({state.network_type}) suppressed")
                return

            self._submit(session_id, state)

    def _submit(self, session_id: int, state: ConnectivityState) -> None:
        with self._lock:
            if session_id != self._session_id:
                return
            self._last_emitted = state
            if self._dispatcher is None:
                self._dispatcher = SerialDispatcher()
            dispatcher = self._dispatcher

        def _deliver():
            with self._lock:
                observer = self._observer if self._is_current(session_id) else None
            if observer is None:
                logger.debug(f"[ConnectivityMonitor] Dropping late delivery for session {session_id}")
                return
            observer(state)

        dispatcher.submit(_deliver)
