"""Network interface utilities - Cross-platform interface enumeration and classification."""
import os
import socket
from typing import List, Optional

import psutil
from loguru import logger

from netbridge.core.types import Transport

SYS_CLASS_NET = "/sys/class/net"
TUN_INTERFACE_KEYWORDS = {"SING", "TUN", "TAP", "tun", "utun", "tap", "wg"}
LOOPBACK_NAMES = {"lo", "lo0"}

# ARPHRD_PPP, ARPHRD_RAWIP (modem data interfaces)
SYSFS_CELLULAR_TYPES = {512, 519}

# Interface name prefixes. Best-effort only: device vendors and udev rules
# rename interfaces freely, so these are a fallback behind sysfs and OS tables.
# TODO: revalidate against systemd predictable names (ww*, wl*, en*) and
# Android rmnet_data*/ccmni* naming before adding more prefixes.
WIFI_PREFIXES = ("wl", "wifi", "ath")
CELLULAR_PREFIXES = ("ww", "ppp", "rmnet", "ccmni", "pdp_ip", "usb")
ETHERNET_PREFIXES = ("eth", "en", "em")

# macOS hardware port names (networksetup -listallhardwareports)
MACOS_WIFI_PORTS = ("wi-fi", "airport")
MACOS_CELLULAR_PORTS = ("iphone usb", "ipad usb", "cellular", "modem")
MACOS_ETHERNET_PORTS = ("ethernet", "lan", "thunderbolt ethernet", "usb 10/100", "usb gigabit")

# Windows ipconfig adapter section headers
WINDOWS_ADAPTER_HEADERS = (
    ("wireless lan adapter", Transport.WIFI),
    ("mobile broadband adapter", Transport.CELLULAR),
    ("ppp adapter", Transport.CELLULAR),
    ("ethernet adapter", Transport.ETHERNET),
)


def is_tunnel(interface_name: str) -> bool:
    """Check if an interface is a VPN/TUN device that should be ignored."""
    return any(keyword in interface_name for keyword in TUN_INTERFACE_KEYWORDS)


def classify_by_name(interface_name: str) -> Optional[Transport]:
    """Classify an interface from its OS-assigned name."""
    name = interface_name.lower()
    if name.startswith(WIFI_PREFIXES):
        return Transport.WIFI
    if name.startswith(CELLULAR_PREFIXES):
        return Transport.CELLULAR
    if name.startswith(ETHERNET_PREFIXES):
        return Transport.ETHERNET
    return None


def classify_linux_interface(interface_name: str, sys_class_net: str = SYS_CLASS_NET) -> Transport:
    """
    Classify a Linux interface using sysfs, falling back to the name heuristic.

    Args:
        interface_name: Kernel interface name (e.g. "wlp3s0")
        sys_class_net: sysfs net class directory

    Returns:
        Transport; unknown interfaces default to ETHERNET
    """
    base = os.path.join(sys_class_net, interface_name)

    if os.path.exists(os.path.join(base, "wireless")) or os.path.exists(os.path.join(base, "phy80211")):
        return Transport.WIFI

    if_type = _read_sysfs_int(os.path.join(base, "type"))
    if if_type in SYSFS_CELLULAR_TYPES:
        return Transport.CELLULAR

    return classify_by_name(interface_name) or Transport.ETHERNET


def classify_macos_hardware_port(port_name: str) -> Optional[Transport]:
    """Classify a macOS hardware port name."""
    port = port_name.strip().lower()
    if any(key in port for key in MACOS_WIFI_PORTS):
        return Transport.WIFI
    if any(key in port for key in MACOS_CELLULAR_PORTS):
        return Transport.CELLULAR
    if any(key in port for key in MACOS_ETHERNET_PORTS):
        return Transport.ETHERNET
    return None


def classify_windows_adapter_header(header: str) -> Optional[Transport]:
    """Classify an ipconfig section header like 'Wireless LAN adapter Wi-Fi:'."""
    line = header.strip().lower()
    for prefix, transport in WINDOWS_ADAPTER_HEADERS:
        if line.startswith(prefix):
            return transport
    return None


def get_active_interfaces() -> List[str]:
    """
    List interfaces that are up and carry a non-zero IPv4 address.

    Loopback and tunnel interfaces are excluded.

    Returns:
        Interface names in the order psutil reports them
    """
    stats = psutil.net_if_stats()
    addresses = psutil.net_if_addrs()

    active = []
    for name, addrs in addresses.items():
        if name in LOOPBACK_NAMES or is_tunnel(name):
            continue
        nic = stats.get(name)
        if nic is None or not nic.isup:
            continue
        if any(_is_usable_ipv4(addr.family, addr.address) for addr in addrs):
            active.append(name)

    logger.debug(f"[NetworkInterface] Active interfaces: {active}")
    return active


def _is_usable_ipv4(family, address: str) -> bool:
    return family == socket.AF_INET and bool(address) and address != "0.0.0.0" and not address.startswith("127.")


def _read_sysfs_int(path: str) -> Optional[int]:
    try:
        with open(path, "r") as f:
            return int(f.read().strip())
    except (OSError, ValueError):
        return None
