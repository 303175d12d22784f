"""
mDNS Responder

Wires the multicast endpoints, membership maintainer, message router and
hostname prober together and exposes the hostname-confirmed and error events.
"""

import logging
import socket
import time
from typing import Any, Callable, Dict, List, Optional

from ..config.schema import ResponderConfig
from .interfaces import list_interfaces
from .maintainer import InterfaceProvider, MembershipMaintainer
from .message import IPProtocol
from .prober import HostnameProber
from .router import MessageRouter
from .sockets import MulticastEndpoint

logger = logging.getLogger(__name__)

HostnameCallback = Callable[[str], None]
ErrorCallback = Callable[[str], None]


def local_hostname() -> str:
    """Short name of the local machine, without any domain part"""
    return socket.gethostname().split(".", 1)[0] or "localhost"


class MdnsResponder:
    """Claims and keeps a unique .local. hostname"""

    def __init__(
        self,
        config: ResponderConfig,
        interface_provider: InterfaceProvider = list_interfaces,
        endpoints: Optional[Dict[IPProtocol, MulticastEndpoint]] = None,
    ):
        self.config = config
        self.base_name = config.hostname or local_hostname()

        self._hostname_callbacks: List[HostnameCallback] = []
        self._error_callbacks: List[ErrorCallback] = []

        if endpoints is None:
            endpoints = self._create_endpoints()
        self.endpoints = endpoints

        self.router = MessageRouter(self.endpoints)
        self.prober = HostnameProber(
            send=self.router.send_message,
            groups={
                IPProtocol.IPV4: config.ipv4_group,
                IPProtocol.IPV6: config.ipv6_group,
            },
            port=config.port,
            confirmation_timeout=config.confirmation_timeout,
            on_confirmed=self._emit_hostname_confirmed,
            protocols=list(self.endpoints),
        )
        self.router.prober = self.prober

        for endpoint in self.endpoints.values():
            endpoint.on_datagram = self.router.handle_datagram
            endpoint.on_error = self._emit_error

        self.maintainer = MembershipMaintainer(
            self.endpoints,
            self.prober,
            self.base_name,
            interval=config.membership_interval,
            interface_provider=interface_provider,
            on_error=self._emit_error,
        )

        self._start_time = 0.0
        self._is_running = False
        self._error_count = 0

    def _create_endpoints(self) -> Dict[IPProtocol, MulticastEndpoint]:
        endpoints = {}
        if self.config.enable_ipv4:
            endpoints[IPProtocol.IPV4] = MulticastEndpoint(
                IPProtocol.IPV4,
                self.config.ipv4_group,
                self.config.port,
                ttl=self.config.multicast_ttl,
            )
        if self.config.enable_ipv6:
            endpoints[IPProtocol.IPV6] = MulticastEndpoint(
                IPProtocol.IPV6,
                self.config.ipv6_group,
                self.config.port,
                ttl=self.config.multicast_ttl,
            )
        return endpoints

    def on_hostname_confirmed(self, callback: HostnameCallback) -> None:
        """Register a callback for the confirmed hostname."""
        self._hostname_callbacks.append(callback)

    def on_error(self, callback: ErrorCallback) -> None:
        """Register a callback for non-fatal errors."""
        self._error_callbacks.append(callback)

    @property
    def hostname(self) -> Optional[str]:
        """The confirmed hostname, or None while still probing"""
        return self.prober.hostname if self.prober.confirmed else None

    async def start(self) -> None:
        """Bind, join and begin probing"""
        if self._is_running:
            logger.warning("Responder is already running")
            return

        self._start_time = time.time()
        self._is_running = True
        logger.info(f"Starting mDNS responder for {self.base_name}")
        await self.maintainer.start()

    async def stop(self) -> None:
        """Stop maintenance, disarm the probe timer and close the sockets"""
        if not self._is_running:
            return

        await self.maintainer.stop()
        self.prober.cancel()
        for endpoint in self.endpoints.values():
            endpoint.close()

        self._is_running = False
        logger.info("mDNS responder stopped")

    def _emit_hostname_confirmed(self, name: str) -> None:
        for callback in self._hostname_callbacks:
            try:
                callback(name)
            except Exception as e:
                logger.error(f"Hostname callback error: {e}")

    def _emit_error(self, message: str) -> None:
        self._error_count += 1
        for callback in self._error_callbacks:
            try:
                callback(message)
            except Exception as e:
                logger.error(f"Error callback error: {e}")

    def get_stats(self) -> Dict[str, Any]:
        """Get responder statistics"""
        uptime = time.time() - self._start_time if self._start_time else 0

        stats = {
            "uptime_seconds": round(uptime, 2),
            "is_running": self._is_running,
            "state": self.prober.state.value,
            "candidate": self.prober.hostname,
            "hostname": self.hostname,
            "probes_sent": self.prober.probes_sent,
            "conflicts": self.prober.conflicts,
            "maintenance_passes": self.maintainer.passes,
            "errors": self._error_count,
            "endpoints": {
                protocol.value: {
                    "bound": endpoint.is_bound,
                    "memberships": sorted(endpoint.memberships),
                }
                for protocol, endpoint in self.endpoints.items()
            },
        }
        stats.update(self.router.get_stats())
        return stats

    async def health_check(self) -> Dict[str, Any]:
        """Health summary: healthy once confirmed with a bound endpoint"""
        stats = self.get_stats()
        any_bound = any(e.is_bound for e in self.endpoints.values())

        if not self._is_running or not any_bound:
            status = "unhealthy"
        elif not self.prober.confirmed:
            status = "degraded"
        else:
            status = "healthy"

        return {"status": status, "responder": stats}
