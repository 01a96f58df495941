"""UDP multicast channel: query scheduling and datagram intake."""

from __future__ import annotations

import ipaddress
import logging
import socket
import struct
import time
from typing import Optional, Tuple

from ..utils.netinfo import IPAddress
from .question import Question
from .wire import Packet, PacketParseError, parse_packet

logger = logging.getLogger(__name__)

ADDR_ANY = "0.0.0.0"
MULTICAST_ADDR = "224.0.0.251"
MULTICAST_PORT = 5353

# RFC 6762 section 17: mDNS messages may be up to 9000 bytes.
RECV_BUFFER_SIZE = 9000


class ChannelError(OSError):
    """Brief: Raised when the multicast socket cannot be set up.

    Inputs:
      - message: description including the failing step.

    Outputs:
      - Exception instance; ``__cause__`` holds the socket error.
    """


def _create_socket(receive_timeout: Optional[float]) -> socket.socket:
    """Brief: Open a UDP socket joined to the mDNS IPv4 group.

    Inputs:
      - receive_timeout: Seconds recvfrom() may block, or None to block
        indefinitely.

    Outputs:
      - socket.socket bound to 0.0.0.0:5353 with address (and, where the
        platform has it, port) reuse, multicast loopback disabled, and group
        membership on the any-interface.

    Raises:
      - ChannelError: when any setup step fails; the socket is closed first.
    """

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    step = "configure"
    try:
        step = "set SO_REUSEADDR"
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        if hasattr(socket, "SO_REUSEPORT"):
            step = "set SO_REUSEPORT"
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
        step = "bind"
        sock.bind((ADDR_ANY, MULTICAST_PORT))
        step = "disable multicast loopback"
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_LOOP, 0)
        step = "join multicast group"
        mreq = struct.pack(
            "4s4s", socket.inet_aton(MULTICAST_ADDR), socket.inet_aton(ADDR_ANY)
        )
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, mreq)
        sock.settimeout(receive_timeout)
    except OSError as exc:
        sock.close()
        raise ChannelError(f"could not {step} on mDNS socket: {exc}") from exc
    return sock


class Channel:
    """
    Owns the multicast socket, the query schedule and the Question.

    Inputs (constructor):
      - query_interval: Seconds between active queries.
      - passive: When True no query is ever sent.
      - receive_timeout: Seconds receive() waits for a datagram before
        returning None (None blocks indefinitely).

    Outputs:
      - Channel instance; construction raises ChannelError on socket setup
        failure.
    """

    def __init__(
        self,
        query_interval: float,
        passive: bool,
        receive_timeout: Optional[float] = 1.0,
    ) -> None:
        self.passive = bool(passive)
        self.address: Tuple[str, int] = (MULTICAST_ADDR, MULTICAST_PORT)
        self.query_interval = float(query_interval)
        self.last_query: Optional[float] = None
        self.question = Question()
        self.query_data: bytes = self.question.query()
        self.socket = _create_socket(receive_timeout)

    def send_query_if_due(self) -> bool:
        """Brief: Send the current query when the interval has elapsed.

        Inputs:
          - None.

        Outputs:
          - bool: True when a query was sent. Passive channels never send.
            A failed send is logged and leaves the schedule untouched, so the
            next call retries straight away.
        """

        if self.passive:
            return False
        if (
            self.last_query is not None
            and time.monotonic() - self.last_query < self.query_interval
        ):
            return False

        try:
            self.socket.sendto(self.query_data, self.address)
        except OSError as exc:
            logger.warning("error sending multicast query: %s", exc)
            return False

        self.last_query = time.monotonic()
        logger.debug(
            "sent query for %d service type(s)", len(self.question.services)
        )
        return True

    def receive(
        self,
    ) -> Optional[Tuple[IPAddress, Packet]]:
        """Brief: Read and decode one datagram.

        Inputs:
          - None.

        Outputs:
          - (source_ip, packet) for a well-formed response; None on timeout,
            on a parse failure (logged), or when the datagram is a query.
            Every decoded datagram, responses and queries alike, feeds the
            Question; when that yields new service types the stored query
            is replaced and the schedule reset so it goes out next.

        Raises:
          - OSError: any socket error other than a timeout / would-block.
        """

        try:
            data, source = self.socket.recvfrom(RECV_BUFFER_SIZE)
        except (socket.timeout, BlockingIOError):
            return None
        if not data:
            return None

        try:
            packet = parse_packet(data)
        except PacketParseError as exc:
            logger.warning("error parsing packet from %s: %s", source[0], exc)
            return None

        new_query = self.question.observe(packet.records())
        if new_query is not None:
            self.query_data = new_query
            self.last_query = None

        if not packet.is_response:
            return None
        return ipaddress.ip_address(source[0]), packet

    def close(self) -> None:
        self.socket.close()

    def __enter__(self) -> "Channel":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
