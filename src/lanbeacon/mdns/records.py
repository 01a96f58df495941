"""Record interpretation and the per-service property store."""

from __future__ import annotations

import ipaddress
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import dns.rdatatype

from .wire import ResourceRecord, name_to_text

PropertyValues = List[str]


class Properties:
    """
    Ordered multi-value mapping of property key to unique string values.

    Keys keep first-insertion order and each key's values keep their
    first-insertion order; adding a value already present for a key is a
    no-op.

    Example:
        >>> props = Properties()
        >>> props.add("text", "md=Chromecast")
        >>> props.add("text", "md=Chromecast")
        >>> props.get("text")
        ['md=Chromecast']
    """

    def __init__(self, values: Optional[Dict[str, Iterable[str]]] = None) -> None:
        self._values: Dict[str, PropertyValues] = {}
        for key, vals in (values or {}).items():
            for value in vals:
                self.add(key, value)

    def add(self, key: str, value: str) -> None:
        existing = self._values.get(key)
        if existing is None:
            self._values[key] = [value]
        elif value not in existing:
            existing.append(value)

    def merge(self, other: "Properties") -> None:
        """Brief: Apply every (key, value) of ``other`` through add().

        Inputs:
          - other: Properties to merge in (not mutated).

        Outputs:
          - None; merging the same store twice is equivalent to merging once.
        """

        for key, values in other.items():
            for value in values:
                self.add(key, value)

    def get(self, key: str) -> Optional[PropertyValues]:
        return self._values.get(key)

    def has_ip(self) -> bool:
        return "ipv4" in self._values or "ipv6" in self._values

    def items(self) -> Iterator[Tuple[str, PropertyValues]]:
        return iter(self._values.items())

    def to_dict(self) -> Dict[str, PropertyValues]:
        return {key: list(values) for key, values in self._values.items()}

    def copy(self) -> "Properties":
        return Properties(self.to_dict())

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Properties):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"Properties({self._values!r})"


def _add_ip_property(properties: Properties, text: str) -> None:
    addr = ipaddress.ip_address(text)
    key = "ipv6" if addr.version == 6 else "ipv4"
    properties.add(key, str(addr))


def _render_raw_chunk(chunk: bytes) -> str:
    return str(list(chunk))


def parse_properties(record: ResourceRecord) -> Properties:
    """Brief: Convert one resource record into structured properties.

    Inputs:
      - record: Decoded ResourceRecord.

    Outputs:
      - Properties with a single key, by record type:
          A -> ipv4, AAAA -> ipv6, PTR -> name, SRV -> server ("target:port"),
          TXT -> text (one value per non-empty chunk; UTF-8 chunks as text,
          others as a list-of-byte-values rendering), any other type -> its
          type mnemonic with the rdata's presentation text.
    """

    properties = Properties()
    rdata = record.rdata
    rdtype = record.rdtype

    if rdtype in (dns.rdatatype.A, dns.rdatatype.AAAA):
        _add_ip_property(properties, rdata.address)
    elif rdtype == dns.rdatatype.PTR:
        properties.add("name", name_to_text(rdata.target))
    elif rdtype == dns.rdatatype.SRV:
        properties.add("server", f"{name_to_text(rdata.target)}:{rdata.port}")
    elif rdtype == dns.rdatatype.TXT:
        for chunk in rdata.strings:
            if not chunk:
                continue
            try:
                properties.add("text", chunk.decode("utf-8"))
            except UnicodeDecodeError:
                properties.add("text", _render_raw_chunk(chunk))
    else:
        properties.add(record.type_name, rdata.to_text())

    return properties
