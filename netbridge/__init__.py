"""netbridge - Cross-platform connectivity-state bridge for application shells."""

__version__ = "0.1.0"
__description__ = "Normalizes OS reachability signals into one connectivity state stream"

from netbridge.core.types import ConnectivityState, Transport
from netbridge.services.monitoring import ConnectivityMonitor

__all__ = ["ConnectivityMonitor", "ConnectivityState", "Transport", "__version__"]
