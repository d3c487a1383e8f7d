"""
Samplers subpackage - Per-platform adapters that read OS network state.

Every sampler implements ``sample_raw_network_state() -> RawSignal`` and is
the only place OS-specific reachability APIs are touched.
"""
from typing import Optional

from loguru import logger

from netbridge.core.protocols import NetworkSampler
from netbridge.core.types import RawSignal
from netbridge.utils.platform_utils import Platform, PlatformUtils


class UnavailableSampler:
    """Sampler for platforms without a supported reachability API."""

    name = "unavailable"

    def sample_raw_network_state(self) -> RawSignal:
        return RawSignal.unavailable(self.name)


def create_sampler(
    platform: Optional[Platform] = None,
    connectivity_manager=None,
    api_level: Optional[int] = None,
) -> NetworkSampler:
    """
    Factory: instantiate the sampler for the given (or current) platform.

    Args:
        platform: Target platform, detected when omitted
        connectivity_manager: Android ConnectivityManager proxy supplied by the host
        api_level: Android API level, detected when omitted
    """
    platform = platform or PlatformUtils.get_platform()

    if platform == Platform.LINUX:
        from netbridge.services.samplers.linux import LinuxSampler

        return LinuxSampler()
    if platform == Platform.MACOS:
        from netbridge.services.samplers.macos import MacOSSampler

        return MacOSSampler()
    if platform == Platform.WINDOWS:
        from netbridge.services.samplers.windows import WindowsSampler

        return WindowsSampler()
    if platform == Platform.ANDROID:
        from netbridge.services.samplers.android import AndroidSampler

        if connectivity_manager is None:
            logger.warning("[Samplers] Android selected but no ConnectivityManager supplied")
            return UnavailableSampler()
        level = api_level if api_level is not None else PlatformUtils.get_android_api_level()
        return AndroidSampler(connectivity_manager, api_level=level or 0)

    logger.warning(f"[Samplers] No reachability sampler for platform {platform.value}")
    return UnavailableSampler()


__all__ = ["UnavailableSampler", "create_sampler"]
