"""Linux sampler - NetworkManager connectivity plus the kernel interface table."""
from typing import Optional

from loguru import logger

from netbridge.core.errors import OSQueryUnavailable
from netbridge.core.types import RawSignal
from netbridge.utils.network_interface import SYS_CLASS_NET, classify_linux_interface, get_active_interfaces
from netbridge.utils.process_utils import ProcessUtils

# States reported by `nmcli networking connectivity` without probing
NM_CONNECTIVITY_STATES = {"full", "limited", "portal", "none"}


class LinuxSampler:
    """
    Samples reachability on Linux.

    NetworkManager's last known connectivity state is the capability-level
    signal when available. The legacy signal is "some non-loopback interface is
    up with an IPv4 address". Transports come from sysfs and interface names.
    """

    name = "linux"

    def __init__(self, sys_class_net: str = SYS_CLASS_NET, use_network_manager: bool = True):
        self._sys_class_net = sys_class_net
        self._use_network_manager = use_network_manager

    def sample_raw_network_state(self) -> RawSignal:
        try:
            interfaces = get_active_interfaces()
        except (OSError, RuntimeError) as e:
            raise OSQueryUnavailable(f"interface table unavailable: {e}") from e

        transports = frozenset(classify_linux_interface(name, self._sys_class_net) for name in interfaces)
        nm_state = self._query_network_manager() if self._use_network_manager else None

        return RawSignal(
            capability_supported=nm_state is not None,
            has_internet_capability=(nm_state == "full") if nm_state is not None else None,
            legacy_connected=bool(interfaces),
            transports=transports,
            source=self.name,
        )

    def _query_network_manager(self) -> Optional[str]:
        """Read NetworkManager's cached connectivity state; None when it cannot answer."""
        result = ProcessUtils.run_command_sync(["nmcli", "-t", "networking", "connectivity"])
        if result is None:
            return None

        returncode, output = result
        state = output.strip().lower()
        if returncode != 0 or state not in NM_CONNECTIVITY_STATES:
            logger.debug(f"[LinuxSampler] NetworkManager connectivity unknown ({returncode}: {state!r})")
            return None
        return state
