"""
Network Service Bridge - Host-facing call and event surface.

Maps the host's method channel and event channel onto a ConnectivityMonitor.
The event channel has exactly one listener; a new listen replaces the old
sink, and with no sink attached emissions are dropped.
"""
import threading
from typing import Any, Callable, Dict, Optional

from loguru import logger

from netbridge.core.constants import EVENT_CHANNEL, METHOD_CHANNEL
from netbridge.core.errors import UnsupportedOperation
from netbridge.core.types import ConnectivityState
from netbridge.services.monitoring import ConnectivityMonitor

EventSink = Callable[[Dict[str, Any]], None]


class NetworkServiceBridge:
    """
    Dispatches host calls by method name.

    Supported methods:
        query, isConnected, getNetworkType, isConnectedToWifiOrEthernet,
        startNetworkMonitoring, stopNetworkMonitoring
    """

    method_channel = METHOD_CHANNEL
    event_channel = EVENT_CHANNEL

    def __init__(self, monitor: Optional[ConnectivityMonitor] = None):
        self._monitor = monitor or ConnectivityMonitor()
        self._lock = threading.Lock()
        self._sink: Optional[EventSink] = None

        self._handlers: Dict[str, Callable[[], Any]] = {
            "query": self._query,
            "isConnected": lambda: self._monitor.query().reachable,
            "getNetworkType": lambda: self._monitor.query().network_type,
            "isConnectedToWifiOrEthernet": lambda: self._monitor.query().is_wifi_or_ethernet,
            "startNetworkMonitoring": self._start_monitoring,
            "stopNetworkMonitoring": self._stop_monitoring,
        }

    @property
    def monitor(self) -> ConnectivityMonitor:
        return self._monitor

    @property
    def methods(self):
        return sorted(self._handlers)

    def handle_call(self, method: str, arguments: Optional[Dict[str, Any]] = None) -> Any:
        """
        Handle one method-channel call.

        Raises:
            UnsupportedOperation: Unknown method name
        """
        handler = self._handlers.get(method)
        if handler is None:
            logger.warning(f"[NetworkService] Unsupported call: {method}")
            raise UnsupportedOperation(method)
        return handler()

    def on_listen(self, sink: EventSink) -> None:
        """Attach the event sink, detaching any previous listener."""
        with self._lock:
            replaced = self._sink is not None
            self._sink = sink
        if replaced:
            logger.debug("[NetworkService] Event listener replaced")

    def on_cancel(self) -> None:
        """Detach the event sink."""
        with self._lock:
            self._sink = None

    def dispose(self) -> None:
        """Host component teardown: stop monitoring and drop the sink."""
        self.on_cancel()
        self._monitor.dispose()

    def _query(self) -> Dict[str, Any]:
        return self._monitor.query().to_payload()

    def _start_monitoring(self) -> None:
        self._monitor.start(self._forward)

    def _stop_monitoring(self) -> None:
        self._monitor.stop()

    def _forward(self, state: ConnectivityState) -> None:
        with self._lock:
            sink = self._sink
        if sink is None:
            logger.debug(f"[NetworkService] No listener, dropping {state.network_type} event")
            return
        sink(state.to_payload())
