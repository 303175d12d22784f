"""
mDNS Responder Core Module

This module exports the hostname prober, the multicast socket pair and the
components that keep them running.
"""

from .interfaces import NetworkInterface, list_interfaces
from .maintainer import MembershipMaintainer
from .message import (
    DNSClass,
    DNSHeader,
    DNSMessage,
    DNSQuestion,
    DNSRecordType,
    DNSResourceRecord,
    IPProtocol,
    create_a_record,
    create_aaaa_record,
    create_query,
    decode,
    encode,
)
from .prober import HostnameProber, ProberState
from .responder import MdnsResponder
from .router import MessageRouter
from .sockets import MulticastEndpoint

__all__ = [
    # Main responder
    "MdnsResponder",
    # Components
    "HostnameProber",
    "ProberState",
    "MembershipMaintainer",
    "MessageRouter",
    "MulticastEndpoint",
    "NetworkInterface",
    "list_interfaces",
    # Message components
    "DNSMessage",
    "DNSQuestion",
    "DNSResourceRecord",
    "DNSHeader",
    # Enums
    "DNSRecordType",
    "DNSClass",
    "IPProtocol",
    # Codec and helper functions
    "encode",
    "decode",
    "create_query",
    "create_a_record",
    "create_aaaa_record",
]
