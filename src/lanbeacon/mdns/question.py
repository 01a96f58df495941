"""Two-phase DNS-SD enumeration: service types first, then instances."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

import dns.rdatatype

from .catalog import DNS_ENUMERATION_SERVICE_NAME
from .wire import ResourceRecord, build_ptr_query, name_to_text

logger = logging.getLogger(__name__)


class Question:
    """
    Growing set of service types being queried.

    Starts with the meta-enumeration name only. Every PTR answer published
    under that name announces a service type; new types are appended so the
    next query asks for their instances too. The set never shrinks.

    Example:
        >>> q = Question()
        >>> q.services
        ['_services._dns-sd._udp.local']
    """

    def __init__(self) -> None:
        self._services: List[str] = [DNS_ENUMERATION_SERVICE_NAME]

    @property
    def services(self) -> List[str]:
        return list(self._services)

    def query(self) -> bytes:
        """Brief: Build the PTR query for every known service type.

        Inputs:
          - None.

        Outputs:
          - bytes: Wire-format DNS query (ID 0, non-recursive, IN/PTR).
        """

        return build_ptr_query(self._services)

    def observe(self, records: Iterable[ResourceRecord]) -> Optional[bytes]:
        """Brief: Learn service types from meta-enumeration PTR records.

        Inputs:
          - records: Records from a received datagram (any section order).

        Outputs:
          - Optional[bytes]: A freshly built query when at least one new
            service type was added, otherwise None.
        """

        changed = False
        for rec in records:
            if rec.name != DNS_ENUMERATION_SERVICE_NAME:
                continue
            if rec.rdtype != dns.rdatatype.PTR:
                continue
            svc = name_to_text(rec.rdata.target)
            if svc and svc not in self._services:
                logger.info("discovered service type %s", svc)
                self._services.append(svc)
                changed = True

        if changed:
            return self.query()
        return None
