"""Core types and enums."""
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional


class Transport(Enum):
    """Physical or logical medium of the active connection."""

    WIFI = "wifi"
    ETHERNET = "ethernet"
    CELLULAR = "mobile"
    NONE = "none"

    def __str__(self):
        return self.value

    @property
    def is_wifi_or_ethernet(self) -> bool:
        return self in (Transport.WIFI, Transport.ETHERNET)


# Classification priority: wired first, cellular last
TRANSPORT_PRIORITY = (Transport.ETHERNET, Transport.WIFI, Transport.CELLULAR)


class MonitorState(Enum):
    """Lifecycle states of a connectivity monitor."""

    STOPPED = "stopped"
    MONITORING = "monitoring"

    def __str__(self):
        return self.value


def now_millis() -> int:
    """Wall-clock time in milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ConnectivityState:
    """Immutable snapshot of the normalized connectivity status."""

    reachable: bool
    transport: Transport
    observed_at_millis: int = field(default_factory=now_millis)

    def __post_init__(self):
        # An unreachable network never carries a transport
        if not self.reachable and self.transport != Transport.NONE:
            object.__setattr__(self, "transport", Transport.NONE)

    @property
    def is_wifi_or_ethernet(self) -> bool:
        return self.transport.is_wifi_or_ethernet

    @property
    def network_type(self) -> str:
        return self.transport.value

    @classmethod
    def unreachable(cls, observed_at_millis: Optional[int] = None) -> "ConnectivityState":
        if observed_at_millis is None:
            observed_at_millis = now_millis()
        return cls(reachable=False, transport=Transport.NONE, observed_at_millis=observed_at_millis)

    def same_status(self, other: Optional["ConnectivityState"]) -> bool:
        """Compare everything except the capture time."""
        if other is None:
            return False
        return self.reachable == other.reachable and self.transport == other.transport

    def to_payload(self) -> dict:
        """Host-facing representation shared by the query call and the event stream."""
        return {
            "isConnected": self.reachable,
            "isWifiOrEthernet": self.is_wifi_or_ethernet,
            "networkType": self.network_type,
            "timestamp": self.observed_at_millis,
        }


@dataclass(frozen=True)
class RawSignal:
    """
    Platform-neutral reachability sample produced by a sampler.

    Attributes:
        capability_supported: A capability-based API answered the query
        has_internet_capability: Capability-level reachability (None if unknown)
        legacy_connected: Legacy "connected" flag (None if unknown)
        transports: Every transport the OS reports as active
        non_cellular_reachable: OS only knows the route is not cellular
        source: Name of the sampler that produced the signal
    """

    capability_supported: bool = False
    has_internet_capability: Optional[bool] = None
    legacy_connected: Optional[bool] = None
    transports: FrozenSet[Transport] = frozenset()
    non_cellular_reachable: bool = False
    source: str = "unknown"

    @classmethod
    def unavailable(cls, source: str = "unknown") -> "RawSignal":
        """Signal for an OS that cannot report network state."""
        return cls(source=source)
