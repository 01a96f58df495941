"""Plain-text rendering of the endpoint inventory for terminals."""

from __future__ import annotations

import sys
from typing import IO, Iterable, List, Optional

from .mdns.models import Endpoint

_CLEAR_SCREEN = "\x1b[2J\x1b[H"


def _header(endpoint: Endpoint) -> str:
    line = f"<{endpoint.address}>"
    if endpoint.name is not None:
        line += f" ({endpoint.name})"
    fp = endpoint.fingerprint
    if fp is not None:
        line += f" [{fp.vendor}/{fp.kind}]" if fp.vendor else f" [{fp.kind}]"
    if endpoint.local:
        line += " local"
    return line


def render_endpoint(endpoint: Endpoint) -> str:
    """Brief: Render one endpoint as indented text.

    Inputs:
      - endpoint: Endpoint to render.

    Outputs:
      - str: Header line, then one line per service (name and description)
        and one ``key: value`` line per property value.

    Example:
      >>> import ipaddress
      >>> ep = Endpoint(address=ipaddress.ip_address("10.0.0.5"))
      >>> render_endpoint(ep)
      '<10.0.0.5>'
    """

    lines: List[str] = [_header(endpoint)]
    for service in endpoint.services.values():
        if service.description:
            lines.append(f"  {service.name} {service.description}")
        else:
            lines.append(f"  {service.name}")
        for key, values in service.properties.items():
            for value in values:
                lines.append(f"    {key}: {value}")
    return "\n".join(lines)


def _sort_key(endpoint: Endpoint):
    return (endpoint.address.version, int(endpoint.address))


def render_endpoints(endpoints: Iterable[Endpoint]) -> str:
    """Brief: Render endpoints sorted by address, separated by blank lines."""

    return "\n\n".join(
        render_endpoint(ep) for ep in sorted(endpoints, key=_sort_key)
    )


def clear_screen(stream: Optional[IO[str]] = None) -> None:
    out = stream or sys.stdout
    if out.isatty():
        out.write(_CLEAR_SCREEN)
        out.flush()
