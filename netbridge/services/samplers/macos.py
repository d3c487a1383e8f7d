"""macOS sampler - SystemConfiguration reachability flags and hardware ports."""
from typing import Dict, FrozenSet, Optional, Set

from loguru import logger

from netbridge.core.errors import OSQueryUnavailable
from netbridge.core.types import RawSignal, Transport
from netbridge.utils.network_interface import classify_macos_hardware_port, get_active_interfaces
from netbridge.utils.process_utils import ProcessUtils

# Default route reachability, same target the native API checks
REACHABILITY_TARGET = "0.0.0.0"
CELLULAR_INTERFACE_PREFIXES = ("pdp_ip",)


class MacOSSampler:
    """
    Samples reachability on macOS.

    Reachability comes from the legacy SCNetworkReachability flags (via scutil).
    Active interfaces are mapped to hardware ports to tell wifi from ethernet;
    when that fails the route is reported as "reachable, not cellular".
    """

    name = "macos"

    def sample_raw_network_state(self) -> RawSignal:
        flags = self._read_reachability_flags()
        if flags is None:
            raise OSQueryUnavailable("scutil reachability query failed")

        reachable = "Reachable" in flags and "Connection Required" not in flags
        is_wwan = "Is WWAN" in flags

        transports: FrozenSet[Transport] = frozenset()
        if reachable:
            transports = self._active_transports()
        if is_wwan:
            transports = transports | {Transport.CELLULAR}

        return RawSignal(
            legacy_connected=reachable,
            transports=transports,
            non_cellular_reachable=reachable and not is_wwan,
            source=self.name,
        )

    @staticmethod
    def parse_reachability_flags(output: str) -> Optional[Set[str]]:
        """
        Parse `scutil -r` output like 'Reachable,Directly Reachable Address'.

        Returns:
            Set of flag names, empty for 'Not Reachable', None if unparseable
        """
        text = output.strip()
        if not text:
            return None
        if text.startswith("Not Reachable"):
            return set()
        return {flag.strip() for flag in text.splitlines()[0].split(",") if flag.strip()}

    @staticmethod
    def parse_hardware_ports(output: str) -> Dict[str, str]:
        """Parse `networksetup -listallhardwareports` into {device: port name}."""
        ports: Dict[str, str] = {}
        port_name = None
        for line in output.splitlines():
            line = line.strip()
            if line.startswith("Hardware Port:"):
                port_name = line.split(":", 1)[1].strip()
            elif line.startswith("Device:") and port_name:
                ports[line.split(":", 1)[1].strip()] = port_name
                port_name = None
        return ports

    def _read_reachability_flags(self) -> Optional[Set[str]]:
        result = ProcessUtils.run_command_sync(["scutil", "-r", REACHABILITY_TARGET])
        if result is None:
            return None
        returncode, output = result
        if returncode != 0:
            logger.warning(f"[MacOSSampler] scutil exited with {returncode}")
            return None
        return self.parse_reachability_flags(output)

    def _active_transports(self) -> FrozenSet[Transport]:
        ports: Dict[str, str] = {}
        result = ProcessUtils.run_command_sync(["networksetup", "-listallhardwareports"])
        if result is not None and result[0] == 0:
            ports = self.parse_hardware_ports(result[1])

        transports = set()
        for name in get_active_interfaces():
            if name.startswith(CELLULAR_INTERFACE_PREFIXES):
                transports.add(Transport.CELLULAR)
                continue
            port = ports.get(name)
            transport = classify_macos_hardware_port(port) if port else None
            if transport is not None:
                transports.add(transport)

        return frozenset(transports)
