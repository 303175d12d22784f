"""
Network Interface Enumeration

Snapshots of the host's network interfaces, taken with psutil, reduced to
what multicast group membership needs: a multicast flag, the interface index
and the addresses of each IP family.
"""

import logging
import socket
from dataclasses import dataclass, field
from typing import List, Optional

import psutil

from .message import IPProtocol

logger = logging.getLogger(__name__)


@dataclass
class NetworkInterface:
    """A network interface and its addresses"""

    name: str
    index: int
    can_multicast: bool
    ipv4_addresses: List[str] = field(default_factory=list)
    ipv6_addresses: List[str] = field(default_factory=list)

    def has_family(self, protocol: IPProtocol) -> bool:
        """Check whether the interface carries an address of this family"""
        if protocol is IPProtocol.IPV4:
            return bool(self.ipv4_addresses)
        return bool(self.ipv6_addresses)

    @property
    def primary_ipv4(self) -> Optional[str]:
        return self.ipv4_addresses[0] if self.ipv4_addresses else None


def _interface_index(name: str) -> int:
    try:
        return socket.if_nametoindex(name)
    except OSError:
        return 0


def _supports_multicast(stats) -> bool:
    """Read the multicast flag from psutil interface stats.

    Platforms where psutil reports no flags (e.g. Windows) fall back to
    treating every interface that is up as multicast capable.
    """
    if stats is None:
        return False
    flags = getattr(stats, "flags", "")
    if flags:
        return "multicast" in flags.split(",")
    return bool(stats.isup)


def list_interfaces() -> List[NetworkInterface]:
    """Enumerate all local network interfaces"""
    addresses = psutil.net_if_addrs()
    stats = psutil.net_if_stats()

    interfaces = []
    for name, addrs in addresses.items():
        ipv4 = []
        ipv6 = []
        for addr in addrs:
            if addr.family == socket.AF_INET:
                ipv4.append(addr.address)
            elif addr.family == socket.AF_INET6:
                # Drop the zone suffix psutil reports on link-local addresses
                ipv6.append(addr.address.split("%", 1)[0])

        interfaces.append(
            NetworkInterface(
                name=name,
                index=_interface_index(name),
                can_multicast=_supports_multicast(stats.get(name)),
                ipv4_addresses=ipv4,
                ipv6_addresses=ipv6,
            )
        )

    logger.debug(f"Enumerated {len(interfaces)} network interfaces")
    return interfaces
