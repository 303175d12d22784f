"""
Multicast Socket Endpoints

One UDP endpoint per IP family, bound to the mDNS port on the wildcard
address and joined to the family's multicast group interface by interface.
Datagrams are delivered through an asyncio.DatagramProtocol.
"""

import asyncio
import errno
import logging
import socket
import struct
from typing import Callable, Optional, Set, Tuple

from .interfaces import NetworkInterface
from .message import IPProtocol

logger = logging.getLogger(__name__)

DatagramHandler = Callable[[bytes, Tuple, IPProtocol], None]
ErrorHandler = Callable[[str], None]

WILDCARD_ADDRESSES = {IPProtocol.IPV4: "0.0.0.0", IPProtocol.IPV6: "::"}


class MdnsDatagramProtocol(asyncio.DatagramProtocol):
    """Async UDP protocol handler feeding one endpoint"""

    def __init__(self, endpoint: "MulticastEndpoint"):
        self.endpoint = endpoint
        self.transport = None

    def connection_made(self, transport):
        """Called when UDP socket is ready"""
        self.transport = transport
        logger.info(
            f"mDNS {self.endpoint.protocol.value} socket listening on "
            f"{transport.get_extra_info('sockname')}"
        )

    def datagram_received(self, data: bytes, addr: Tuple):
        """Hand each datagram to the endpoint's handler"""
        self.endpoint.deliver(data, addr)

    def error_received(self, exc):
        """Handle UDP errors"""
        logger.warning(f"mDNS {self.endpoint.protocol.value} socket error: {exc}")

    def connection_lost(self, exc):
        if exc is not None:
            logger.warning(
                f"mDNS {self.endpoint.protocol.value} socket closed: {exc}"
            )
        self.endpoint.connection_lost()


class MulticastEndpoint:
    """A UDP socket for one IP family, bound to the mDNS port"""

    def __init__(
        self,
        protocol: IPProtocol,
        group: str,
        port: int,
        ttl: int = 255,
        on_datagram: Optional[DatagramHandler] = None,
        on_error: Optional[ErrorHandler] = None,
        socket_factory: Callable[..., socket.socket] = socket.socket,
    ):
        self.protocol = protocol
        self.group = group
        self.port = port
        self.ttl = ttl
        self.on_datagram = on_datagram
        self.on_error = on_error
        self._socket_factory = socket_factory

        self._sock: Optional[socket.socket] = None
        self._transport: Optional[asyncio.DatagramTransport] = None

        # Interface names joined during the most recent maintenance pass
        self.memberships: Set[str] = set()

    @property
    def is_bound(self) -> bool:
        return self._transport is not None

    async def bind(self) -> bool:
        """Bind the endpoint and attach it to the running event loop.

        Returns True on success. Failures are reported through on_error and
        leave the endpoint unbound.
        """
        if self.is_bound:
            return True

        sock = self._bind_socket()
        if sock is None:
            return False

        loop = asyncio.get_running_loop()
        try:
            transport, _ = await loop.create_datagram_endpoint(
                lambda: MdnsDatagramProtocol(self), sock=sock
            )
        except OSError as e:
            sock.close()
            self._report(f"Failed to attach {self.protocol.value} mDNS socket: {e}")
            return False

        self._sock = sock
        self._transport = transport
        self.memberships = set()
        return True

    def _bind_socket(self) -> Optional[socket.socket]:
        """Create and bind the socket, falling back to SO_REUSEPORT once"""
        address = (WILDCARD_ADDRESSES[self.protocol], self.port)

        try:
            sock = self._socket_factory(self.protocol.family, socket.SOCK_DGRAM)
        except OSError as e:
            self._report(f"Failed to create {self.protocol.value} mDNS socket: {e}")
            return None

        try:
            self._configure_socket(sock)
        except OSError as e:
            sock.close()
            self._report(
                f"Failed to configure {self.protocol.value} mDNS socket: {e}"
            )
            return None

        try:
            sock.bind(address)
            return sock
        except OSError as e:
            logger.debug(
                f"Shared bind of {self.protocol.value} mDNS socket failed ({e}), "
                "retrying with SO_REUSEPORT"
            )

        reuse_port = getattr(socket, "SO_REUSEPORT", None)
        if reuse_port is None:
            self._report("SO_REUSEPORT is not available on this platform")
        else:
            try:
                sock.setsockopt(socket.SOL_SOCKET, reuse_port, 1)
            except OSError as e:
                self._report(f"Failed to set SO_REUSEPORT: {e}")

        try:
            sock.bind(address)
            return sock
        except OSError as e:
            sock.close()
            self._report(f"Failed to bind {self.protocol.value} mDNS socket: {e}")
            return None

    def _configure_socket(self, sock: socket.socket) -> None:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        if self.protocol is IPProtocol.IPV4:
            sock.setsockopt(
                socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, struct.pack("B", self.ttl)
            )
            sock.setsockopt(
                socket.IPPROTO_IP, socket.IP_MULTICAST_LOOP, struct.pack("B", 1)
            )
        else:
            # Keep the IPv6 socket from claiming the IPv4 port as well
            sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_V6ONLY, 1)
            sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_MULTICAST_HOPS, self.ttl)
            sock.setsockopt(socket.IPPROTO_IPV6, socket.IPV6_MULTICAST_LOOP, 1)
        sock.setblocking(False)

    def join(self, interface: NetworkInterface) -> bool:
        """Join the multicast group on the given interface.

        Joining a group the socket is already a member of counts as success.
        """
        if self._sock is None:
            return False

        try:
            if self.protocol is IPProtocol.IPV4:
                mreq = socket.inet_aton(self.group) + socket.inet_aton(
                    interface.primary_ipv4
                )
                self._sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, mreq)
            else:
                mreq = socket.inet_pton(socket.AF_INET6, self.group) + struct.pack(
                    "@I", interface.index
                )
                self._sock.setsockopt(
                    socket.IPPROTO_IPV6, socket.IPV6_JOIN_GROUP, mreq
                )
        except OSError as e:
            if e.errno == errno.EADDRINUSE:
                logger.debug(f"Already a member of {self.group} on {interface.name}")
            else:
                self._report(
                    f"Failed to join {self.group} on {interface.name}: {e}"
                )
                return False

        logger.debug(f"Joined {self.group} on {interface.name}")
        return True

    def send(self, data: bytes, address: str, port: int) -> bool:
        """Send a datagram; silently dropped while the endpoint is unbound"""
        if self._transport is None:
            logger.debug(
                f"Dropping datagram to {address}:{port}, "
                f"{self.protocol.value} endpoint is not bound"
            )
            return False

        self._transport.sendto(data, (address, port))
        return True

    def deliver(self, data: bytes, addr: Tuple) -> None:
        if self.on_datagram:
            self.on_datagram(data, addr, self.protocol)

    def connection_lost(self) -> None:
        """Forget the transport so the next maintenance pass rebinds"""
        self._transport = None
        self._sock = None
        self.memberships = set()

    def close(self) -> None:
        if self._transport is not None:
            self._transport.close()
        self.connection_lost()

    def _report(self, message: str) -> None:
        logger.error(message)
        if self.on_error:
            self.on_error(message)
