"""Endpoint / Service aggregation built incrementally from mDNS records."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from ..utils import netinfo
from ..utils.netinfo import IPAddress
from . import fingerprint as _fingerprint
from .catalog import DNS_ENUMERATION_SERVICE_NAME, get_service_description
from .fingerprint import Fingerprint
from .records import Properties, parse_properties
from .wire import ResourceRecord

logger = logging.getLogger(__name__)


@dataclass
class Service:
    """
    One advertised capability of an endpoint.

    Inputs (constructor fields):
      - name: DNS-SD owner name the records were published under.
      - description: Catalog description, fixed when the service is created.
      - properties: Properties accumulated from every record for this name.
    """

    name: str
    description: Optional[str] = None
    properties: Properties = field(default_factory=Properties)


@dataclass
class Endpoint:
    """
    A discovered network node, identified by its source address.

    Inputs (constructor fields):
      - address: Source IP of the datagrams (identity key).
      - name: Resolved or adopted display name; set at most once.
      - local: Whether the address belongs to this host.
      - services: Mapping of service name -> Service, in discovery order.
      - fingerprint: Vendor/kind guess; frozen once found.

    Example:
        >>> import ipaddress
        >>> ep = Endpoint(address=ipaddress.ip_address("10.0.0.5"))
        >>> ep.add_services([])
        >>> ep.services
        {}
    """

    address: IPAddress
    name: Optional[str] = None
    local: bool = False
    services: Dict[str, Service] = field(default_factory=dict)
    fingerprint: Optional[Fingerprint] = None

    @classmethod
    def with_services(
        cls, address: IPAddress, records: Iterable[ResourceRecord]
    ) -> "Endpoint":
        """Brief: Create an endpoint for a newly seen address and apply records.

        Inputs:
          - address: Source IP of the datagram.
          - records: Answer + additional records of the datagram.

        Outputs:
          - Endpoint with reverse-resolved name (when available), locality
            flag, and the records applied via add_services().

        Raises:
          - InterfaceLookupError: when local interfaces cannot be enumerated.
        """

        name = netinfo.reverse_lookup(str(address))
        local = netinfo.is_local_address(address)
        endpoint = cls(address=address, name=name, local=local)
        endpoint.add_services(records)
        return endpoint

    def add_services(self, records: Iterable[ResourceRecord]) -> None:
        """Brief: Fold records into this endpoint's services.

        Inputs:
          - records: Resource records; those owned by the meta-enumeration
            name are skipped (they feed the query set, not the inventory).

        Outputs:
          - None; mutates services, and possibly name and fingerprint.
        """

        for rec in records:
            svc_name = rec.name
            if svc_name == DNS_ENUMERATION_SERVICE_NAME:
                continue

            properties = parse_properties(rec)
            # First address-bearing record names the endpoint.
            if self.name is None and properties.has_ip():
                self.name = svc_name

            service = self.services.get(svc_name)
            if service is not None:
                service.properties.merge(properties)
            else:
                self.services[svc_name] = Service(
                    name=svc_name,
                    description=get_service_description(svc_name),
                    properties=properties,
                )

            if self.fingerprint is None:
                self.fingerprint = _fingerprint.match(self)
                if self.fingerprint is not None:
                    logger.debug(
                        "fingerprinted %s as %s/%s",
                        self.address,
                        self.fingerprint.vendor,
                        self.fingerprint.kind,
                    )
