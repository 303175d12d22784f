"""Shared fakes for endpoint and interface tests."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from mdns_responder.core.interfaces import NetworkInterface
from mdns_responder.core.message import IPProtocol


class FakeEndpoint:
    """Stands in for MulticastEndpoint without touching real sockets"""

    def __init__(self, protocol, bind_results=None):
        self.protocol = protocol
        self.is_bound = False
        self.bind_results = list(bind_results or [])
        self.bind_calls = 0
        self.joins = []
        self.sent = []
        self.memberships = set()
        self.closed = False
        self.on_datagram = None
        self.on_error = None

    async def bind(self):
        self.bind_calls += 1
        ok = self.bind_results.pop(0) if self.bind_results else True
        self.is_bound = ok
        if not ok and self.on_error:
            self.on_error(f"Failed to bind {self.protocol.value} mDNS socket")
        return ok

    def join(self, interface):
        self.joins.append(interface.name)
        return True

    def send(self, data, address, port):
        if not self.is_bound:
            return False
        self.sent.append((data, address, port))
        return True

    def close(self):
        self.closed = True
        self.is_bound = False


@pytest.fixture
def make_endpoints():
    """Build a FakeEndpoint per family with scripted bind results"""

    def factory(ipv4=None, ipv6=None):
        return {
            IPProtocol.IPV4: FakeEndpoint(IPProtocol.IPV4, ipv4),
            IPProtocol.IPV6: FakeEndpoint(IPProtocol.IPV6, ipv6),
        }

    return factory


@pytest.fixture
def interfaces():
    """A typical host: loopback, dual-stack LAN, IPv4-only VPN, downed NIC"""
    return [
        NetworkInterface("lo", 1, False, ["127.0.0.1"], ["::1"]),
        NetworkInterface("eth0", 2, True, ["192.168.1.10"], ["fe80::10"]),
        NetworkInterface("tun0", 3, True, ["10.8.0.2"], []),
        NetworkInterface("wlan0", 4, True, [], []),
    ]
