"""
Change Sources - OS network-change notification registrations.

A change source only reports THAT something changed. The monitor recomputes
the full snapshot itself, so sources never carry state deltas.
"""
import subprocess
import threading
from typing import Callable, List, Optional

from loguru import logger

from netbridge.core.constants import POLL_INTERVAL, SETTLE_SECONDS, THREAD_JOIN_TIMEOUT
from netbridge.core.errors import OSQueryUnavailable, RegistrationFailure
from netbridge.core.protocols import ChangeSource, NetworkSampler
from netbridge.core.types import RawSignal
from netbridge.utils.platform_utils import Platform, PlatformUtils
from netbridge.utils.process_utils import ProcessUtils

LINUX_MONITOR_COMMAND = ["ip", "-o", "monitor", "link", "address", "route"]
MACOS_MONITOR_COMMAND = ["route", "-n", "monitor"]


class Debouncer:
    """Collapses a burst of triggers into one call once the burst settles."""

    def __init__(self, fn: Callable[[], None], settle_seconds: float):
        self._fn = fn
        self._settle = settle_seconds
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._cancelled = False

    def trigger(self) -> None:
        if self._settle <= 0:
            if not self._cancelled:
                self._fn()
            return

        with self._lock:
            if self._cancelled:
                return
            if self._timer:
                self._timer.cancel()
            self._timer = threading.Timer(self._settle, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
            if self._timer:
                self._timer.cancel()
                self._timer = None

    def _fire(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._timer = None
        self._fn()


class ThreadRegistration:
    """Registration backed by a daemon thread and a stop event."""

    def __init__(self, name: str, on_revoke: Optional[Callable[[], None]] = None):
        self.name = name
        self._on_revoke = on_revoke
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()
        self._revoked = False

    @property
    def stop_event(self) -> threading.Event:
        return self._stop_event

    @property
    def active(self) -> bool:
        return not self._revoked

    def start(self, target: Callable[[], None]) -> None:
        self._thread = threading.Thread(target=target, daemon=True, name=self.name)
        self._thread.start()

    def revoke(self) -> None:
        with self._lock:
            if self._revoked:
                return
            self._revoked = True

        self._stop_event.set()
        if self._on_revoke:
            self._on_revoke()

        if self._thread and self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout=THREAD_JOIN_TIMEOUT)
            if self._thread.is_alive():
                logger.warning(f"[{self.name}] Thread did not stop cleanly")
        logger.debug(f"[{self.name}] Registration revoked")


class CommandChangeSource:
    """
    Change notifications from a long-running OS monitor command.

    Every output line is a kernel/routing event; bursts within
    ``settle_seconds`` are coalesced into a single callback.
    """

    def __init__(self, command: List[str], name: str, settle_seconds: float = SETTLE_SECONDS):
        self.command = command
        self.name = name
        self.settle_seconds = settle_seconds

    def register(self, callback: Callable[[], None]) -> ThreadRegistration:
        try:
            proc = ProcessUtils.spawn_reader(self.command)
        except (OSError, ValueError, subprocess.SubprocessError) as e:
            raise RegistrationFailure(f"{self.name}: cannot start {' '.join(self.command)}: {e}") from e

        debouncer = Debouncer(lambda: _notify(self.name, callback), self.settle_seconds)

        def _revoke():
            debouncer.cancel()
            ProcessUtils.terminate(proc)

        registration = ThreadRegistration(self.name, on_revoke=_revoke)
        registration.start(lambda: self._read_loop(proc, debouncer, registration.stop_event))
        logger.info(f"[{self.name}] Listening for network changes ({' '.join(self.command)})")
        return registration

    def _read_loop(self, proc: subprocess.Popen, debouncer: Debouncer, stop_event: threading.Event) -> None:
        try:
            for line in proc.stdout:
                if stop_event.is_set():
                    return
                if line.strip():
                    debouncer.trigger()
        except (OSError, ValueError) as e:
            # stdout closed by revoke()
            if stop_event.is_set():
                return
            logger.error(f"[{self.name}] Reading monitor output failed: {e}")
            return

        if not stop_event.is_set():
            logger.warning(f"[{self.name}] Monitor command exited with {proc.poll()}; no further change events")


class PollingChangeSource:
    """Samples periodically and reports a change whenever the raw signal differs."""

    def __init__(self, sampler: NetworkSampler, interval: float = POLL_INTERVAL, name: str = "PollingChangeSource"):
        if interval <= 0:
            raise ValueError("Polling interval must be positive")
        self.sampler = sampler
        self.interval = interval
        self.name = name

    def register(self, callback: Callable[[], None]) -> ThreadRegistration:
        registration = ThreadRegistration(self.name)
        last = self._sample()

        def _poll_loop():
            nonlocal last
            while not registration.stop_event.wait(self.interval):
                current = self._sample()
                if current != last:
                    last = current
                    _notify(self.name, callback)

        registration.start(_poll_loop)
        logger.info(f"[{self.name}] Polling every {self.interval}s")
        return registration

    def _sample(self) -> RawSignal:
        try:
            return self.sampler.sample_raw_network_state()
        except OSQueryUnavailable as e:
            logger.debug(f"[{self.name}] Sample unavailable: {e}")
        except Exception as e:
            logger.error(f"[{self.name}] Sampler failed: {e}")
        return RawSignal.unavailable(getattr(self.sampler, "name", "unknown"))


def create_change_source(
    platform: Optional[Platform] = None,
    sampler: Optional[NetworkSampler] = None,
) -> Optional[ChangeSource]:
    """
    Factory: pick the change-notification facility for a platform.

    Returns:
        Change source, or None when the platform has none and no sampler was given
    """
    platform = platform or PlatformUtils.get_platform()

    if platform == Platform.LINUX:
        return CommandChangeSource(LINUX_MONITOR_COMMAND, name="IpMonitor")
    if platform == Platform.MACOS:
        return CommandChangeSource(MACOS_MONITOR_COMMAND, name="RouteMonitor")
    if sampler is not None:
        return PollingChangeSource(sampler)

    logger.warning(f"[ChangeSources] No change source for platform {platform.value}")
    return None


def _notify(source_name: str, callback: Callable[[], None]) -> None:
    try:
        callback()
    except Exception as e:
        logger.error(f"[{source_name}] Change callback failed: {e}")
