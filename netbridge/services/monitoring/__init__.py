"""
Monitoring subpackage - Connectivity state monitoring.

This package consolidates:
- ConnectivityMonitor: Query + single-observer change stream
- normalize: Raw platform signal -> ConnectivityState
- Change sources: OS change registrations (command monitors, polling)
- Dispatchers: Delivery onto the host's callback context
"""

from netbridge.services.monitoring.change_sources import (
    CommandChangeSource,
    PollingChangeSource,
    create_change_source,
)
from netbridge.services.monitoring.connectivity_monitor import ConnectivityMonitor, Subscription
from netbridge.services.monitoring.dispatchers import ImmediateDispatcher, LoopDispatcher, SerialDispatcher
from netbridge.services.monitoring.normalizer import normalize

__all__ = [
    "ConnectivityMonitor",
    "Subscription",
    "CommandChangeSource",
    "PollingChangeSource",
    "create_change_source",
    "ImmediateDispatcher",
    "LoopDispatcher",
    "SerialDispatcher",
    "normalize",
]
