"""
Hostname Prober

Claims a unique ".local." hostname. A candidate is probed with an A query on
both IP families; a response that claims the candidate moves on to the next
numbered candidate, and silence for the confirmation timeout commits it.

    Idle --start()--> Probing --timeout--> Confirmed
                        ^   |
                        +---+ conflicting response
"""

import asyncio
import logging
from enum import Enum
from typing import Callable, Iterable, Optional

from .message import (
    DNSMessage,
    DNSRecordType,
    IPProtocol,
    create_query,
)

logger = logging.getLogger(__name__)

LOCAL_DOMAIN = ".local."

SendFunction = Callable[[DNSMessage], None]
ConfirmedFunction = Callable[[str], None]


class ProberState(Enum):
    """Hostname prober states"""

    IDLE = "idle"
    PROBING = "probing"
    CONFIRMED = "confirmed"


class HostnameProber:
    """Single hostname state machine shared by both IP families"""

    def __init__(
        self,
        send: SendFunction,
        groups: dict,
        port: int,
        confirmation_timeout: float,
        on_confirmed: Optional[ConfirmedFunction] = None,
        protocols: Iterable[IPProtocol] = (IPProtocol.IPV4, IPProtocol.IPV6),
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        """
        Args:
            send: Send path for outgoing probe messages
            groups: Multicast group address per IPProtocol
            port: Destination port for probes
            confirmation_timeout: Seconds of silence before a candidate is kept
            on_confirmed: Called once with the confirmed hostname
            protocols: Families a probe is sent on
            loop: Event loop for the confirmation timer (defaults to the
                running loop)
        """
        self._send = send
        self._groups = groups
        self._port = port
        self.confirmation_timeout = confirmation_timeout
        self._on_confirmed = on_confirmed
        self._protocols = tuple(protocols)
        self._loop = loop

        self.state = ProberState.IDLE
        self.base_name: Optional[str] = None
        self.hostname: Optional[str] = None
        self.suffix = 1
        self._timer: Optional[asyncio.TimerHandle] = None

        self.probes_sent = 0
        self.conflicts = 0

    @property
    def confirmed(self) -> bool:
        return self.state is ProberState.CONFIRMED

    def start(self, base_name: str) -> None:
        """Pick the first candidate and begin probing; ignored unless idle"""
        if self.state is not ProberState.IDLE:
            return

        self.base_name = base_name
        self.suffix = 1
        self.hostname = f"{base_name}{LOCAL_DOMAIN}"
        self.state = ProberState.PROBING
        logger.info(f"Probing for hostname {self.hostname}")
        self._probe()

    def handle_response(self, message: DNSMessage) -> bool:
        """Check a response for a claim on the current candidate.

        Returns True if the message caused a new candidate to be probed.
        """
        if self.state is not ProberState.PROBING or not message.is_response():
            return False

        for record in message.records():
            if (
                record.rtype in (DNSRecordType.A, DNSRecordType.AAAA)
                and record.name == self.hostname
                and record.ttl
            ):
                self._retry(message)
                return True
        return False

    def _retry(self, message: DNSMessage) -> None:
        self.conflicts += 1
        previous = self.hostname
        self.hostname = f"{self.base_name}-{self.suffix}{LOCAL_DOMAIN}"
        self.suffix += 1
        logger.info(
            f"Hostname {previous} is claimed by {message.address}, "
            f"probing {self.hostname}"
        )
        self._probe()

    def _probe(self) -> None:
        """Send probe queries on every family and (re)arm the timer"""
        self._cancel_timer()
        for protocol in self._protocols:
            query = create_query(
                self.hostname,
                DNSRecordType.A,
                self._groups[protocol],
                protocol,
                self._port,
            )
            self._send(query)
            self.probes_sent += 1

        loop = self._loop or asyncio.get_running_loop()
        self._timer = loop.call_later(self.confirmation_timeout, self._on_timeout)

    def _on_timeout(self) -> None:
        self._timer = None
        if self.state is not ProberState.PROBING:
            return

        self.state = ProberState.CONFIRMED
        logger.info(f"Hostname confirmed: {self.hostname}")
        if self._on_confirmed:
            self._on_confirmed(self.hostname)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def cancel(self) -> None:
        """Disarm the confirmation timer without changing state"""
        self._cancel_timer()
