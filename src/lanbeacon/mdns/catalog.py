"""Static catalog of well-known DNS-SD service types.

Keys are name fragments (``_airplay.``) matched by substring containment
against the lower-cased service name; the first entry in declaration order
wins.
"""

from __future__ import annotations

from typing import Optional, Tuple

# https://datatracker.ietf.org/doc/html/rfc6763#section-9
DNS_ENUMERATION_SERVICE_NAME = "_services._dns-sd._udp.local"

KNOWN_SERVICES: Tuple[Tuple[str, str], ...] = (
    ("_services._dns-sd.", "mDNS Enumeration Service"),
    ("_osc.", "MIDI OSC Bridge"),
    ("_apple-midi.", "Apple MIDI Network Driver"),
    ("_adisk.", "Time Capsule Backups"),
    ("_afpovertcp.", "AppleTalk Filing Protocol (AFP)"),
    ("_airdroid.", "AirDroid App"),
    ("_airdrop.", "OSX AirDrop"),
    ("_airplay.", "Apple TV"),
    ("_airport.", "AirPort Base Station"),
    ("_amzn-wplay.", "Amazon Devices"),
    ("_sub._apple-mobdev2.", "OSX Wi-Fi Sync"),
    ("_apple-mobdev2.", "OSX Wi-Fi Sync"),
    ("_apple-sasl.", "Apple Password Server"),
    ("_appletv-v2.", "Apple TV Home Sharing"),
    ("_atc.", "Apple Shared iTunes Library"),
    ("_sketchmirror.", "Sketch App"),
    ("_bcbonjour.", "Sketch App"),
    ("_companion-link.", "Airplay 2"),
    ("_cloud.", "Cloud by Dapile"),
    ("_daap.", "Digital Audio Access Protocol (DAAP)"),
    ("_device-info.", "OSX Device Info"),
    ("_distcc.", "Distributed Compiler"),
    ("_dpap.", "Digital Photo Access Protocol (DPAP)"),
    ("_eppc.", "Remote AppleEvents"),
    ("_esdevice.", "ES File Share App"),
    ("_esfileshare.", "ES File Share App"),
    ("_ftp.", "File Transfer Protocol (FTP)"),
    ("_googlecast.", "Google Cast (Chromecast)"),
    ("_googlezone.", "Google Zone (Chromecast)"),
    ("_hap.", "Apple HomeKit - HomeKit Accessory Protocol"),
    ("_homekit.", "Apple HomeKit"),
    ("_home-sharing.", "iTunes Home Sharing"),
    ("_http.", "Hypertext Transfer Protocol (HTTP)"),
    ("_hudson.", "Jenkins App"),
    ("_hue.", "Philips Hue Smart Bulbs"),
    ("_ica-networking.", "Image Capture Sharing"),
    ("_ichat.", "iChat Instant Messaging Protocol"),
    ("_print._sub._ipp.", "Printers (AirPrint)"),
    ("_cups._sub._ipps.", "Printers"),
    ("_print._sub._ipps.", "Printers"),
    ("_jenkins.", "Jenkins App"),
    ("_apple-lgremote.", "Apple Logic Remote"),
    ("_KeynoteControl.", "OSX Keynote"),
    ("_keynotepair.", "OSX Keynote"),
    ("_mediaremotetv.", "Apple TV Media Remote"),
    ("_nfs.", "Network File System (NFS)"),
    ("_nvstream.", "NVIDIA Shield Game Streaming"),
    ("_androidtvremote.", "Nvidia Shield / Android TV"),
    ("_omnistate.", "OmniGroup (OmniGraffle and other apps)"),
    ("_pdl-datastream.", "PDL Data Stream (Port 9100)"),
    ("_photoshopserver.", "Adobe Photoshop Nav"),
    ("_printer.", "Printers - Line Printer Daemon (LPD/LPR)"),
    ("_raop.", "AirPlay - Remote Audio Output Protocol"),
    ("_readynas.", "Netgear ReadyNAS"),
    ("_rfb.", "OSX Screen Sharing"),
    ("_physicalweb.", "Physical Web"),
    ("_riousbprint.", "Remote I/O USB Printer Protocol"),
    ("_rsp.", "Roku Server Protocol"),
    ("_scanner.", "Scanners"),
    ("_servermgr.", "Server Admin"),
    ("_sftp-ssh.", "Protocol - SFTP"),
    ("_sleep-proxy.", "Wake-on-Network / Bonjour Sleep Proxy"),
    ("_smb.", "Protocol - SMB"),
    ("_spotify-connect.", "Spotify Connect"),
    ("_ssh.", "Protocol - SSH"),
    ("_teamviewer.", "TeamViewer"),
    ("_telnet.", "Remote Login (TELNET)"),
    ("_touch-able.", "Apple TV Remote App (iOS devices)"),
    ("_tunnel.", "Tunnel"),
    ("_udisks-ssh.", "Ubuntu / Raspberry Pi Advertisement"),
    ("_webdav.", "WebDAV File System (WEBDAV)"),
    ("_workstation.", "Workgroup Manager"),
    ("_xserveraid.", "Xserve RAID"),
)

# Keys are compared lower-cased; precompute once.
_LOWERED_SERVICES: Tuple[Tuple[str, str], ...] = tuple(
    (key.lower(), desc) for key, desc in KNOWN_SERVICES
)


def get_service_description(svc_name: str) -> Optional[str]:
    """Brief: Look up a human description for a DNS-SD service name.

    Inputs:
      - svc_name: Service type or instance name, any case.

    Outputs:
      - Optional[str]: Description of the first catalog entry whose key is
        contained in the lower-cased name, or None.

    Example:
      >>> get_service_description("Kitchen._googlecast._tcp.local")
      'Google Cast (Chromecast)'
    """

    lowered = svc_name.lower()
    for key, desc in _LOWERED_SERVICES:
        if key in lowered:
            return desc
    return None
