"""Windows sampler - WinINet connected state and the ipconfig adapter table."""
import re
from typing import FrozenSet, Optional

from loguru import logger

from netbridge.core.errors import OSQueryUnavailable
from netbridge.core.types import RawSignal, Transport
from netbridge.utils.network_interface import classify_windows_adapter_header, is_tunnel
from netbridge.utils.process_utils import ProcessUtils

_HEADER_RE = re.compile(r"^(\S.*adapter\s+(.+?)):\s*$", re.IGNORECASE)
_IPV4_RE = re.compile(r"IPv4 Address[.\s]*:\s*([0-9.]+)", re.IGNORECASE)


class WindowsSampler:
    """
    Samples reachability on Windows.

    InternetGetConnectedState provides the legacy connected flag; adapter
    types come from ipconfig section headers of adapters that hold an IPv4
    address. Header matching assumes an English ipconfig locale.
    """

    name = "windows"

    def sample_raw_network_state(self) -> RawSignal:
        connected = self._internet_connected_state()
        transports = self._active_transports()

        if connected is None and transports is None:
            raise OSQueryUnavailable("neither WinINet nor ipconfig answered")

        return RawSignal(
            legacy_connected=connected if connected is not None else bool(transports),
            transports=transports or frozenset(),
            source=self.name,
        )

    @staticmethod
    def parse_ipconfig(output: str) -> FrozenSet[Transport]:
        """Collect transports of ipconfig sections that list a non-zero IPv4 address."""
        transports = set()
        current: Optional[Transport] = None
        current_name = ""

        for line in output.splitlines():
            header = _HEADER_RE.match(line)
            if header:
                current_name = header.group(2)
                current = classify_windows_adapter_header(header.group(1))
                continue

            match = _IPV4_RE.search(line)
            if not match or current is None:
                continue
            if match.group(1) == "0.0.0.0" or is_tunnel(current_name):
                continue
            transports.add(current)

        return frozenset(transports)

    def _internet_connected_state(self) -> Optional[bool]:
        try:
            import ctypes
            from ctypes import wintypes

            flags = wintypes.DWORD(0)
            return bool(ctypes.windll.wininet.InternetGetConnectedState(ctypes.byref(flags), 0))
        except (AttributeError, OSError) as e:
            logger.debug(f"[WindowsSampler] InternetGetConnectedState unavailable: {e}")
            return None

    def _active_transports(self) -> Optional[FrozenSet[Transport]]:
        result = ProcessUtils.run_command_sync(["ipconfig"])
        if result is None or result[0] != 0:
            return None
        return self.parse_ipconfig(result[1])
