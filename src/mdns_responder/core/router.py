"""
Message Router

Decodes datagrams arriving on either endpoint and hands responses to the
hostname prober. Also owns the send path: encode, then write through the
endpoint matching the message's IP family.
"""

import logging
from typing import Any, Dict, Tuple

from .message import DNSMessage, IPProtocol, decode, encode
from .prober import HostnameProber
from .sockets import MulticastEndpoint

logger = logging.getLogger(__name__)


class MessageRouter:
    """Routes inbound mDNS traffic and sends outbound messages"""

    def __init__(
        self,
        endpoints: Dict[IPProtocol, MulticastEndpoint],
        prober: HostnameProber = None,
    ):
        self.endpoints = endpoints
        self.prober = prober

        self._stats = {
            "datagrams_received": 0,
            "decode_failures": 0,
            "responses_routed": 0,
            "messages_sent": 0,
            "messages_dropped": 0,
        }

    def handle_datagram(self, data: bytes, addr: Tuple, protocol: IPProtocol) -> None:
        """Decode one datagram and dispatch it"""
        self._stats["datagrams_received"] += 1

        message = decode(data)
        if message is None:
            # Shared multicast groups carry plenty of traffic we cannot parse
            self._stats["decode_failures"] += 1
            return

        message.address = addr[0]
        message.protocol = protocol
        message.port = addr[1]

        if message.is_response() and self.prober is not None:
            self._stats["responses_routed"] += 1
            self.prober.handle_response(message)

    def send_message(self, message: DNSMessage) -> None:
        """Encode a message and send it on the endpoint for its family"""
        endpoint = self.endpoints.get(message.protocol)
        if endpoint is None or not endpoint.is_bound:
            self._stats["messages_dropped"] += 1
            return

        if endpoint.send(encode(message), message.address, message.port):
            self._stats["messages_sent"] += 1
        else:
            self._stats["messages_dropped"] += 1

    def get_stats(self) -> Dict[str, Any]:
        return dict(self._stats)
