"""
Normalizer - Turns heterogeneous platform signals into one ConnectivityState.

Rules:
- Capability-level reachability wins over legacy connected flags
- Undetermined reachability counts as unreachable
- Simultaneous transports resolve ETHERNET > WIFI > CELLULAR
- "Reachable, not cellular" without a transport is reported as WIFI
"""
from typing import Optional

from netbridge.core.types import TRANSPORT_PRIORITY, ConnectivityState, RawSignal, Transport, now_millis


def resolve_reachability(raw: RawSignal) -> Optional[bool]:
    """Return reachability, or None when the signal cannot determine it."""
    if raw.capability_supported and raw.has_internet_capability is not None:
        return raw.has_internet_capability
    return raw.legacy_connected


def classify_transport(raw: RawSignal) -> Transport:
    """Pick the single transport of a reachable signal."""
    for transport in TRANSPORT_PRIORITY:
        if transport in raw.transports:
            return transport
    if raw.non_cellular_reachable:
        # Known precision limit: some APIs cannot tell wifi from ethernet
        return Transport.WIFI
    return Transport.NONE


def normalize(raw: RawSignal, observed_at_millis: Optional[int] = None) -> ConnectivityState:
    if observed_at_millis is None:
        observed_at_millis = now_millis()

    if not resolve_reachability(raw):
        return ConnectivityState.unreachable(observed_at_millis)

    return ConnectivityState(
        reachable=True,
        transport=classify_transport(raw),
        observed_at_millis=observed_at_millis,
    )
