"""JSON snapshot documents for discovered endpoints (one file per endpoint)."""

from __future__ import annotations

import ipaddress
import json
import logging
import os
from typing import Any, Dict, Iterable, List, Optional

from .mdns.fingerprint import Fingerprint
from .mdns.models import Endpoint, Service
from .mdns.records import Properties
from .utils.netinfo import IPAddress

logger = logging.getLogger(__name__)


def endpoint_to_dict(endpoint: Endpoint) -> Dict[str, Any]:
    """Brief: Convert an Endpoint into its JSON document form.

    Inputs:
      - endpoint: Endpoint to serialize.

    Outputs:
      - dict with keys name, address, local, services, fingerprint. Service
        and property ordering is preserved.
    """

    fp = endpoint.fingerprint
    return {
        "name": endpoint.name,
        "address": str(endpoint.address),
        "local": endpoint.local,
        "services": {
            key: {
                "name": svc.name,
                "description": svc.description,
                "properties": svc.properties.to_dict(),
            }
            for key, svc in endpoint.services.items()
        },
        "fingerprint": (
            {"vendor": fp.vendor, "kind": fp.kind} if fp is not None else None
        ),
    }


def endpoint_from_dict(doc: Dict[str, Any]) -> Endpoint:
    """Brief: Rebuild an Endpoint from its JSON document form.

    Inputs:
      - doc: Mapping as produced by endpoint_to_dict().

    Outputs:
      - Endpoint equal field-for-field to the serialized one.

    Raises:
      - ValueError: when the address is missing or not an IP address, or a
        field has the wrong shape.
    """

    if not isinstance(doc, dict):
        raise ValueError("endpoint document must be a mapping")
    try:
        address = ipaddress.ip_address(str(doc["address"]))
    except KeyError as exc:
        raise ValueError("endpoint document has no address") from exc

    services: Dict[str, Service] = {}
    for key, raw in (doc.get("services") or {}).items():
        if not isinstance(raw, dict):
            raise ValueError(f"service {key!r} must be a mapping")
        props = raw.get("properties") or {}
        if not isinstance(props, dict):
            raise ValueError(f"service {key!r} properties must be a mapping")
        services[key] = Service(
            name=str(raw.get("name", key)),
            description=raw.get("description"),
            properties=Properties(
                {str(k): [str(v) for v in vals] for k, vals in props.items()}
            ),
        )

    fp_raw = doc.get("fingerprint")
    fingerprint: Optional[Fingerprint] = None
    if fp_raw is not None:
        if not isinstance(fp_raw, dict):
            raise ValueError("fingerprint must be a mapping or null")
        fingerprint = Fingerprint(
            vendor=str(fp_raw.get("vendor", "")), kind=str(fp_raw.get("kind", ""))
        )

    name = doc.get("name")
    return Endpoint(
        address=address,
        name=str(name) if name is not None else None,
        local=bool(doc.get("local", False)),
        services=services,
        fingerprint=fingerprint,
    )


def endpoint_path(path: str, endpoint: Endpoint) -> str:
    return os.path.join(path, f"{endpoint.address}.json")


def save_endpoints(path: str, endpoints: Iterable[Endpoint]) -> List[str]:
    """Brief: Write one pretty-printed JSON document per endpoint.

    Inputs:
      - path: Target directory (created with parents when missing).
      - endpoints: Endpoints to persist.

    Outputs:
      - list[str]: Paths written, each named ``<address>.json``.

    Notes:
      - Each file is written to ``<file>.tmp`` and moved into place with
        os.replace() so readers never observe a partial document.
    """

    os.makedirs(path, exist_ok=True)
    written: List[str] = []
    for endpoint in endpoints:
        file_path = endpoint_path(path, endpoint)
        tmp_path = file_path + ".tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(endpoint_to_dict(endpoint), f, indent=2)
            os.replace(tmp_path, file_path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        written.append(file_path)
    logger.debug("saved %d endpoint(s) to %s", len(written), path)
    return written


def load_endpoint(file_path: str) -> Endpoint:
    with open(file_path, "r", encoding="utf-8") as f:
        return endpoint_from_dict(json.load(f))


def load_endpoints(path: str) -> Dict[IPAddress, Endpoint]:
    """Brief: Load every ``*.json`` endpoint document in a directory.

    Inputs:
      - path: Directory previously written by save_endpoints().

    Outputs:
      - dict of address -> Endpoint. Unreadable or invalid documents are
        logged and skipped.
    """

    loaded: Dict[IPAddress, Endpoint] = {}
    if not os.path.isdir(path):
        return loaded
    for entry in sorted(os.listdir(path)):
        if not entry.endswith(".json"):
            continue
        file_path = os.path.join(path, entry)
        try:
            endpoint = load_endpoint(file_path)
        except (OSError, ValueError) as exc:
            logger.warning("skipping endpoint document %s: %s", file_path, exc)
            continue
        loaded[endpoint.address] = endpoint
    return loaded
