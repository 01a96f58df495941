"""DNS message decoding and query encoding for multicast DNS traffic.

Brief:
  Thin layer over dnspython's wire primitives. Multicast DNS reuses the top
  bit of the class field (cache-flush on records, unicast-response on
  questions), which dnspython's message parser treats as an unknown class
  and therefore decodes A/AAAA/SRV rdata as opaque generic data. This module
  walks the message sections itself so the class can be masked before the
  rdata is decoded.

Inputs:
  - Raw datagram bytes received on the mDNS group.

Outputs:
  - Packet / ResourceRecord instances and wire-format PTR queries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List

import dns.exception
import dns.flags
import dns.message
import dns.name
import dns.rdata
import dns.rdataclass
import dns.rdatatype
import dns.wire

logger = logging.getLogger(__name__)

# Cache-flush (records) / unicast-response (questions) bit, RFC 6762 10.2 / 5.4.
MDNS_CLASS_FLAG = 0x8000
MDNS_CLASS_MASK = 0x7FFF


class PacketParseError(ValueError):
    """Brief: Raised when a datagram cannot be decoded as a DNS message.

    Inputs:
      - message: description of the failure.

    Outputs:
      - Exception instance; ``__cause__`` holds the dnspython error.
    """


def name_to_text(name: dns.name.Name) -> str:
    """Brief: Render a DNS name as plain dotted text without the root dot.

    Inputs:
      - name: dnspython Name (absolute or relative).

    Outputs:
      - str: Labels decoded as UTF-8 (undecodable bytes replaced) and joined
        with dots, e.g. ``Living Room._googlecast._tcp.local``. The root name
        renders as an empty string.
    """

    return ".".join(
        label.decode("utf-8", errors="replace") for label in name.labels if label
    )


@dataclass
class Question:
    name: str
    rdtype: int
    rdclass: int

    @property
    def unicast_response(self) -> bool:
        return bool(self.rdclass & MDNS_CLASS_FLAG)


@dataclass
class ResourceRecord:
    """Brief: One decoded resource record.

    Inputs (constructor fields):
      - name: Owner name as plain text (no trailing dot).
      - rdtype: Numeric record type.
      - rdclass: Raw class field as found on the wire (flag bit included).
      - ttl: Time to live in seconds.
      - rdata: dnspython Rdata decoded against the masked class.

    Outputs:
      - ResourceRecord instance.
    """

    name: str
    rdtype: int
    rdclass: int
    ttl: int
    rdata: dns.rdata.Rdata

    @property
    def cache_flush(self) -> bool:
        return bool(self.rdclass & MDNS_CLASS_FLAG)

    @property
    def type_name(self) -> str:
        return dns.rdatatype.to_text(self.rdtype)


@dataclass
class Packet:
    """Brief: Decoded DNS message with sections kept in wire order."""

    id: int
    flags: int
    questions: List[Question] = field(default_factory=list)
    answers: List[ResourceRecord] = field(default_factory=list)
    authorities: List[ResourceRecord] = field(default_factory=list)
    additional: List[ResourceRecord] = field(default_factory=list)
    # EDNS OPT pseudo-records, kept out of the additional section.
    opt: List[ResourceRecord] = field(default_factory=list)

    @property
    def is_response(self) -> bool:
        return bool(self.flags & dns.flags.QR)

    def records(self) -> Iterator[ResourceRecord]:
        """Brief: Iterate answer records followed by additional records.

        Inputs:
          - None.

        Outputs:
          - Iterator over ResourceRecord; authority records are not included.
        """

        yield from self.answers
        yield from self.additional


def _read_question(parser: dns.wire.Parser) -> Question:
    qname = parser.get_name()
    rdtype, rdclass = parser.get_struct("!HH")
    return Question(name=name_to_text(qname), rdtype=rdtype, rdclass=rdclass)


def _read_record(parser: dns.wire.Parser) -> ResourceRecord:
    owner = parser.get_name()
    rdtype, rdclass, ttl, rdlen = parser.get_struct("!HHIH")
    with parser.restrict_to(rdlen):
        rdata = dns.rdata.from_wire_parser(
            rdclass & MDNS_CLASS_MASK, rdtype, parser, None
        )
    return ResourceRecord(
        name=name_to_text(owner),
        rdtype=rdtype,
        rdclass=rdclass,
        ttl=ttl,
        rdata=rdata,
    )


def parse_packet(wire: bytes) -> Packet:
    """Brief: Decode one DNS message from raw datagram bytes.

    Inputs:
      - wire: Datagram payload.

    Outputs:
      - Packet with questions, answers, authorities and additional records.
        OPT pseudo-records are stored on ``Packet.opt`` instead of
        ``additional``.

    Raises:
      - PacketParseError: when the header, a name, or any rdata is malformed,
        or when the message is truncated.

    Example:
      >>> pkt = parse_packet(build_ptr_query(["_http._tcp.local"]))
      >>> pkt.is_response, pkt.questions[0].name
      (False, '_http._tcp.local')
    """

    parser = dns.wire.Parser(bytes(wire))
    try:
        msg_id, flags, qdcount, ancount, nscount, arcount = parser.get_struct(
            "!HHHHHH"
        )
        packet = Packet(id=msg_id, flags=flags)
        packet.questions = [_read_question(parser) for _ in range(qdcount)]
        packet.answers = [_read_record(parser) for _ in range(ancount)]
        packet.authorities = [_read_record(parser) for _ in range(nscount)]
        for _ in range(arcount):
            rec = _read_record(parser)
            if rec.rdtype == dns.rdatatype.OPT:
                packet.opt.append(rec)
            else:
                packet.additional.append(rec)
    except dns.exception.DNSException as exc:
        raise PacketParseError(f"malformed DNS message: {exc!r}") from exc
    except (ValueError, UnicodeError) as exc:
        raise PacketParseError(f"malformed DNS message: {exc!r}") from exc
    return packet


def build_ptr_query(service_types: Iterable[str]) -> bytes:
    """Brief: Encode one PTR question per service type into a DNS query.

    Inputs:
      - service_types: Service type names such as ``_services._dns-sd._udp.local``.

    Outputs:
      - bytes: Wire-format query with ID 0, no flags set (not recursive) and
        one IN/PTR question per service type, in iteration order.
    """

    msg = dns.message.Message(id=0)
    msg.flags = 0
    for svc in service_types:
        msg.find_rrset(
            msg.question,
            dns.name.from_text(svc),
            dns.rdataclass.IN,
            dns.rdatatype.PTR,
            create=True,
            force_unique=True,
        )
    return msg.to_wire()
