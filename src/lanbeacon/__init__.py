"""lanbeacon: mDNS / DNS-SD discovery of devices and services on the LAN."""

__version__ = "0.1.0"
