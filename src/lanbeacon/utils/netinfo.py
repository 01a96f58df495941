"""Host-side lookups used when a new endpoint is first seen."""

from __future__ import annotations

import ipaddress
import logging
import socket
from typing import Optional, Set, Union

import psutil

logger = logging.getLogger(__name__)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


class InterfaceLookupError(RuntimeError):
    """Brief: Raised when local network interfaces cannot be enumerated."""


def reverse_lookup(address: str) -> Optional[str]:
    """Brief: Best-effort reverse name resolution of an IP address.

    Inputs:
      - address: IP address text.

    Outputs:
      - Optional[str]: Resolved host name, or None when resolution fails or
        only yields the address literal back.
    """

    try:
        host, _ = socket.getnameinfo((address, 0), 0)
    except (OSError, UnicodeError) as exc:
        logger.debug("reverse lookup for %s failed: %s", address, exc)
        return None
    if not host or host == address:
        return None
    return host


def local_addresses() -> Set[IPAddress]:
    """Brief: Collect every IP address bound to a local network interface.

    Inputs:
      - None.

    Outputs:
      - set of ipaddress objects (IPv6 zone suffixes such as ``%eth0`` are
        dropped).

    Raises:
      - InterfaceLookupError: when psutil cannot enumerate interfaces.
    """

    try:
        table = psutil.net_if_addrs()
    except (OSError, psutil.Error) as exc:
        raise InterfaceLookupError(f"could not get network interfaces: {exc}") from exc

    found: Set[IPAddress] = set()
    for addrs in table.values():
        for snic in addrs:
            if snic.family not in (socket.AF_INET, socket.AF_INET6):
                continue
            text = str(snic.address).split("%", 1)[0]
            try:
                found.add(ipaddress.ip_address(text))
            except ValueError:
                continue
    return found


def is_local_address(address: IPAddress) -> bool:
    return address in local_addresses()
