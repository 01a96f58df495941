"""
Brief: Global pytest configuration: src on sys.path, per-test 10s timeout,
and helpers for building raw mDNS datagrams.

Inputs:
  - None

Outputs:
  - None
"""

import ipaddress
import os
import signal
import struct
import sys
from types import SimpleNamespace

import pytest

# Ensure 'src' is on sys.path so 'lanbeacon' package is importable in tests
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
SRC_DIR = os.path.join(ROOT, "src")
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)

import dns.name  # noqa: E402

TYPE_A = 1
TYPE_PTR = 12
TYPE_HINFO = 13
TYPE_TXT = 16
TYPE_AAAA = 28
TYPE_SRV = 33
TYPE_OPT = 41
CLASS_IN = 1
CACHE_FLUSH = 0x8000
FLAGS_RESPONSE = 0x8400


def _alarm_handler(signum, frame):
    """
    Brief: Signal handler that raises TimeoutError when alarm triggers.

    Inputs:
      - signum: signal number (int)
      - frame: current frame (ignored)

    Outputs:
      - None: Raises TimeoutError to fail the test
    """
    raise TimeoutError("Test exceeded 10 seconds")


# Install handler if supported on this platform
if hasattr(signal, "SIGALRM"):
    signal.signal(signal.SIGALRM, _alarm_handler)


def _name(text):
    return dns.name.from_text(text).to_wire()


def record(name, rdtype, rdata, rdclass=CLASS_IN, ttl=120):
    """Encode one uncompressed resource record."""
    return (
        _name(name) + struct.pack("!HHIH", rdtype, rdclass, ttl, len(rdata)) + rdata
    )


def a_record(name, address, rdclass=CLASS_IN):
    return record(name, TYPE_A, ipaddress.IPv4Address(address).packed, rdclass)


def aaaa_record(name, address, rdclass=CLASS_IN):
    return record(name, TYPE_AAAA, ipaddress.IPv6Address(address).packed, rdclass)


def ptr_record(name, target, rdclass=CLASS_IN):
    return record(name, TYPE_PTR, _name(target), rdclass)


def srv_record(name, target, port, rdclass=CLASS_IN):
    return record(name, TYPE_SRV, struct.pack("!HHH", 0, 0, port) + _name(target), rdclass)


def txt_record(name, chunks, rdclass=CLASS_IN):
    data = b"".join(bytes([len(c)]) + c for c in chunks)
    return record(name, TYPE_TXT, data, rdclass)


def opt_record(options=b"", payload_size=1440):
    """Encode an EDNS OPT pseudo-record (root owner, class = UDP payload size)."""
    return record(".", TYPE_OPT, options, rdclass=payload_size, ttl=0)


def question(name, rdtype=TYPE_PTR, rdclass=CLASS_IN):
    return _name(name) + struct.pack("!HH", rdtype, rdclass)


def packet(answers=(), additional=(), questions=(), authorities=(), flags=FLAGS_RESPONSE):
    """Encode a DNS message from already-encoded sections."""
    header = struct.pack(
        "!HHHHHH",
        0,
        flags,
        len(questions),
        len(answers),
        len(authorities),
        len(additional),
    )
    return header + b"".join(
        list(questions) + list(answers) + list(authorities) + list(additional)
    )


@pytest.fixture
def wire():
    """
    Brief: Builders for raw mDNS datagrams.

    Inputs:
      - None

    Outputs:
      - SimpleNamespace exposing record/packet builders and type constants.
    """
    return SimpleNamespace(
        record=record,
        a=a_record,
        aaaa=aaaa_record,
        ptr=ptr_record,
        srv=srv_record,
        txt=txt_record,
        opt=opt_record,
        question=question,
        packet=packet,
        TYPE_A=TYPE_A,
        TYPE_PTR=TYPE_PTR,
        TYPE_HINFO=TYPE_HINFO,
        TYPE_TXT=TYPE_TXT,
        TYPE_AAAA=TYPE_AAAA,
        TYPE_SRV=TYPE_SRV,
        TYPE_OPT=TYPE_OPT,
        CACHE_FLUSH=CACHE_FLUSH,
    )


@pytest.fixture
def no_host_lookups(monkeypatch):
    """
    Brief: Replace reverse DNS and interface lookups with deterministic fakes.

    Inputs:
      - monkeypatch: pytest fixture

    Outputs:
      - dict: mutable settings ({'names': {addr: name}, 'local': set()})
    """
    from lanbeacon.utils import netinfo

    state = {"names": {}, "local": set()}
    monkeypatch.setattr(
        netinfo, "reverse_lookup", lambda address: state["names"].get(address)
    )
    monkeypatch.setattr(
        netinfo, "is_local_address", lambda address: str(address) in state["local"]
    )
    return state


@pytest.fixture(autouse=True)
def enforce_test_timeout():
    """
    Brief: Enforce a hard 10-second timeout for each test.

    Inputs:
      - None

    Outputs:
      - None: Cancels alarm after test
    """
    if hasattr(signal, "SIGALRM"):
        signal.alarm(10)
        try:
            yield
        finally:
            signal.alarm(0)
    else:
        # Fallback: no-op on platforms without SIGALRM
        yield
