"""
Membership Maintainer

Periodically (re)binds the multicast endpoints and (re)joins the mDNS groups
on every multicast-capable interface. The whole sequence runs again on each
pass instead of tracking interface changes; repeated joins are harmless.
"""

import asyncio
import logging
from typing import Callable, Dict, List, Optional

from .interfaces import NetworkInterface, list_interfaces
from .message import IPProtocol
from .prober import HostnameProber, ProberState
from .sockets import MulticastEndpoint

logger = logging.getLogger(__name__)

InterfaceProvider = Callable[[], List[NetworkInterface]]


class MembershipMaintainer:
    """Keeps the endpoints bound and joined"""

    def __init__(
        self,
        endpoints: Dict[IPProtocol, MulticastEndpoint],
        prober: HostnameProber,
        base_name: str,
        interval: float = 60.0,
        interface_provider: InterfaceProvider = list_interfaces,
        on_error: Optional[Callable[[str], None]] = None,
    ):
        self.endpoints = endpoints
        self.prober = prober
        self.base_name = base_name
        self.interval = interval
        self._interface_provider = interface_provider
        self._on_error = on_error

        self._task: Optional[asyncio.Task] = None
        self.passes = 0

    async def start(self) -> None:
        """Run one pass now, then keep running on the interval"""
        if self._task is not None:
            return

        await self.run_once()
        self._task = asyncio.create_task(self._maintenance_loop())

    async def stop(self) -> None:
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _maintenance_loop(self) -> None:
        """Background loop re-running the bind and join pass"""
        while True:
            try:
                await asyncio.sleep(self.interval)
                await self.run_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.exception(f"Error in membership maintenance: {e}")

    async def run_once(self) -> None:
        """Bind unbound endpoints, join groups, and start probing if needed"""
        self.passes += 1

        for endpoint in self.endpoints.values():
            if not endpoint.is_bound:
                await endpoint.bind()

        bound = [e for e in self.endpoints.values() if e.is_bound]
        if not bound:
            logger.warning("No mDNS endpoint is bound, retrying next pass")
            return

        self._join_groups(bound)

        if self.prober.state is ProberState.IDLE:
            self.prober.start(self.base_name)

    def _join_groups(self, bound: List[MulticastEndpoint]) -> None:
        try:
            interfaces = self._interface_provider()
        except OSError as e:
            self._report(f"Failed to enumerate network interfaces: {e}")
            return

        memberships = {endpoint.protocol: set() for endpoint in bound}
        for interface in interfaces:
            if not interface.can_multicast:
                continue
            for endpoint in bound:
                if interface.has_family(endpoint.protocol) and endpoint.join(
                    interface
                ):
                    memberships[endpoint.protocol].add(interface.name)

        for endpoint in bound:
            endpoint.memberships = memberships[endpoint.protocol]
            logger.debug(
                f"{endpoint.protocol.value} memberships: "
                f"{sorted(endpoint.memberships) or 'none'}"
            )

    def _report(self, message: str) -> None:
        logger.error(message)
        if self._on_error:
            self._on_error(message)
