"""Heuristic vendor/kind fingerprinting from advertised service names."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Tuple

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .models import Endpoint


@dataclass(frozen=True)
class Fingerprint:
    vendor: str
    kind: str


# Order matters: the first rule whose fragment appears in a service name wins.
CHECKS: Tuple[Tuple[str, Fingerprint], ...] = (
    ("_googlecast.", Fingerprint(vendor="google", kind="chromecast")),
    ("_adisk.", Fingerprint(vendor="", kind="disk")),
    ("_hue.", Fingerprint(vendor="philips", kind="light")),
    ("_device-info.", Fingerprint(vendor="apple", kind="osx")),
    ("_apple", Fingerprint(vendor="apple", kind="apple")),
)


def match(endpoint: "Endpoint") -> Optional[Fingerprint]:
    """Brief: Find the fingerprint for an endpoint's current services.

    Inputs:
      - endpoint: Endpoint whose ``services`` mapping is scanned in stored
        order.

    Outputs:
      - Optional[Fingerprint]: For the first service (in stored order) that
        matches any rule, the first matching rule's fingerprint; None when
        nothing matches. Case-sensitive substring test.
    """

    for service in endpoint.services.values():
        for fragment, finger in CHECKS:
            if fragment in service.name:
                return finger
    return None
