"""Interface Detector Module for SharkScope.

Lists the host's network interfaces and picks one when a caller asks for
interface "auto".
"""

from __future__ import annotations

import logging
import socket
from dataclasses import dataclass
from enum import Enum
from typing import Any

import psutil

from sharkscope.models.errors import CaptureError, CAPTURE_INTERFACE_NOT_FOUND

logger = logging.getLogger(__name__)

AUTO_INTERFACE = "auto"

ETHERNET_PREFIXES = ("eth", "enp", "eno", "ens", "en")
WIFI_PREFIXES = ("wlan", "wlp", "wl")
LOOPBACK_NAMES = {"lo", "lo0", "Loopback"}
VIRTUAL_PREFIXES = ("docker", "br-", "veth", "virbr", "vmnet", "utun", "tun", "tap")


class InterfaceType(Enum):
    """Network interface categories."""

    ETHERNET = "ethernet"
    WIFI = "wifi"
    LOOPBACK = "loopback"
    VIRTUAL = "virtual"
    UNKNOWN = "unknown"


@dataclass
class NetworkInterface:
    """Represents a network interface with its properties.

    Attributes:
        name: Interface name as tshark expects it (e.g., 'eth0', 'lo')
        type: InterfaceType enum value
        ip_address: IPv4 address or None if not assigned
        is_up: Whether the interface is up
        mac_address: MAC address of the interface
    """

    name: str
    type: InterfaceType
    ip_address: str | None
    is_up: bool
    mac_address: str

    @property
    def is_connected(self) -> bool:
        """Up and holding an IPv4 address."""
        return self.is_up and self.ip_address is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "type": self.type.value,
            "ip_address": self.ip_address,
            "is_up": self.is_up,
            "is_connected": self.is_connected,
            "mac_address": self.mac_address,
        }


def _get_interface_type(name: str) -> InterfaceType:
    """Determine the interface type from its name."""
    if name in LOOPBACK_NAMES or name.startswith("lo"):
        return InterfaceType.LOOPBACK
    if name.startswith(VIRTUAL_PREFIXES):
        return InterfaceType.VIRTUAL
    if name.startswith(WIFI_PREFIXES):
        return InterfaceType.WIFI
    if name.startswith(ETHERNET_PREFIXES):
        return InterfaceType.ETHERNET
    return InterfaceType.UNKNOWN


def _link_families() -> set:
    # AF_PACKET on Linux, psutil.AF_LINK on macOS/Windows
    families = {getattr(socket, "AF_PACKET", None), getattr(psutil, "AF_LINK", None)}
    families.discard(None)
    return families


def _addresses(addr_list, link_families: set) -> tuple[str | None, str]:
    """Return (IPv4 address, MAC address) from one psutil address list."""
    ip_address = None
    mac_address = ""
    for addr in addr_list:
        if addr.family == socket.AF_INET and ip_address is None:
            ip_address = addr.address
        elif addr.family in link_families:
            mac_address = addr.address
    return ip_address, mac_address


def detect_interfaces() -> list[NetworkInterface]:
    """Detect all network interfaces on the host, loopback included.

    Returns:
        List of NetworkInterface objects (empty if detection fails)
    """
    try:
        addrs = psutil.net_if_addrs()
        stats = psutil.net_if_stats()
    except Exception as e:
        logger.error(f"Error detecting interfaces (error={str(e)})")
        return []

    link_families = _link_families()
    interfaces = []
    for name, addr_list in addrs.items():
        ip_address, mac_address = _addresses(addr_list, link_families)
        if_stats = stats.get(name)
        interfaces.append(NetworkInterface(
            name=name,
            type=_get_interface_type(name),
            ip_address=ip_address,
            is_up=bool(if_stats and if_stats.isup),
            mac_address=mac_address,
        ))

    logger.debug(f"Interfaces detected (count={len(interfaces)})")
    return interfaces


def get_recommended_interface(
    interfaces: list[NetworkInterface],
) -> NetworkInterface | None:
    """Pick the interface used for interface="auto".

    Priority: connected ethernet, then connected wifi, then any other
    connected non-virtual interface, then loopback.

    Args:
        interfaces: List of NetworkInterface objects

    Returns:
        Recommended NetworkInterface or None if none available
    """
    connected = [i for i in interfaces if i.is_connected]

    for wanted in (InterfaceType.ETHERNET, InterfaceType.WIFI, InterfaceType.UNKNOWN):
        for interface in connected:
            if interface.type == wanted:
                return interface

    for interface in interfaces:
        if interface.type == InterfaceType.LOOPBACK and interface.is_up:
            return interface

    logger.warning("No usable interface found")
    return None


def resolve_interface(interface: str) -> str:
    """Resolve "auto" to a concrete interface name.

    Explicit names pass through unchanged; tshark reports unknown ones.

    Args:
        interface: Interface name or "auto"

    Returns:
        Interface name

    Raises:
        CaptureError: If "auto" was requested and nothing is usable
    """
    if interface != AUTO_INTERFACE:
        return interface

    recommended = get_recommended_interface(detect_interfaces())
    if recommended is None:
        raise CaptureError(
            code=CAPTURE_INTERFACE_NOT_FOUND,
            message=(
                "No network interface available for interface='auto'. "
                "Pass an explicit interface name (see /api/network/interfaces)"
            ),
        )

    logger.info(f"Auto-selected interface (interface={recommended.name})")
    return recommended.name
