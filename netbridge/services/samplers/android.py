"""Android sampler - ConnectivityManager capabilities with a legacy fallback.

The host embedding (Chaquopy, pyjnius, ...) passes in its own proxy of
``android.net.ConnectivityManager``; this module only calls methods on it.
"""
from loguru import logger

from netbridge.core.errors import OSQueryUnavailable
from netbridge.core.types import RawSignal, Transport

# android.os.Build.VERSION_CODES.M - first release with getActiveNetwork()
CAPABILITY_API_LEVEL = 23

# android.net.NetworkCapabilities
NET_CAPABILITY_INTERNET = 12
TRANSPORT_CELLULAR = 0
TRANSPORT_WIFI = 1
TRANSPORT_ETHERNET = 3

# android.net.ConnectivityManager legacy TYPE_* constants
TYPE_MOBILE = 0
TYPE_WIFI = 1
TYPE_ETHERNET = 9

_CAPABILITY_TRANSPORTS = (
    (TRANSPORT_ETHERNET, Transport.ETHERNET),
    (TRANSPORT_WIFI, Transport.WIFI),
    (TRANSPORT_CELLULAR, Transport.CELLULAR),
)
_LEGACY_TYPES = {
    TYPE_ETHERNET: Transport.ETHERNET,
    TYPE_WIFI: Transport.WIFI,
    TYPE_MOBILE: Transport.CELLULAR,
}


class AndroidSampler:
    """Samples an Android ConnectivityManager proxy."""

    name = "android"

    def __init__(self, connectivity_manager, api_level: int):
        self._manager = connectivity_manager
        self._api_level = api_level

    def sample_raw_network_state(self) -> RawSignal:
        try:
            if self._api_level >= CAPABILITY_API_LEVEL:
                return self._sample_capabilities()
            return self._sample_legacy()
        except Exception as e:
            # Java exceptions surface as arbitrary Python types through the bridge
            raise OSQueryUnavailable(f"ConnectivityManager query failed: {e}") from e

    def _sample_capabilities(self) -> RawSignal:
        network = self._manager.getActiveNetwork()
        capabilities = self._manager.getNetworkCapabilities(network) if network is not None else None
        if capabilities is None:
            return RawSignal(capability_supported=True, has_internet_capability=False, source=self.name)

        transports = frozenset(
            transport for flag, transport in _CAPABILITY_TRANSPORTS if capabilities.hasTransport(flag)
        )
        return RawSignal(
            capability_supported=True,
            has_internet_capability=bool(capabilities.hasCapability(NET_CAPABILITY_INTERNET)),
            transports=transports,
            source=self.name,
        )

    def _sample_legacy(self) -> RawSignal:
        info = self._manager.getActiveNetworkInfo()
        if info is None or not info.isConnected():
            return RawSignal(legacy_connected=False, source=self.name)

        transport = _LEGACY_TYPES.get(info.getType())
        if transport is None:
            logger.debug(f"[AndroidSampler] Unclassified legacy network type {info.getType()}")
        return RawSignal(
            legacy_connected=True,
            transports=frozenset({transport}) if transport else frozenset(),
            source=self.name,
        )
