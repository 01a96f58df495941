"""Typed settings models for the discovery engine and its output sinks."""

from __future__ import annotations

import ipaddress
import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator


class DiscoveryConfig(BaseModel):
    """Brief: Typed configuration for the discovery agent.

    Inputs:
      - query_interval: int seconds between active queries (default 5).
      - passive: bool; when true no queries are sent, only announcements
        are collected.
      - address: Optional source address; responses from any other source
        are not applied to the registry. IP literals are normalized.
      - receive_timeout: float seconds a receive may block before the loop
        checks for shutdown.

    Outputs:
      - DiscoveryConfig instance.
    """

    query_interval: int = Field(default=5, ge=1)
    passive: bool = False
    address: Optional[str] = None
    receive_timeout: float = Field(default=1.0, gt=0)

    @field_validator("address", mode="before")
    @classmethod
    def _normalize_address(cls, v: Any) -> Optional[str]:
        """Brief: Strip blanks and canonicalize IP literals.

        Inputs:
          - v: Raw address value (str, None, or anything str()-able).

        Outputs:
          - Optional[str]: None for empty input, canonical IP text when the
            value parses as an address, the stripped text otherwise.

        Example:
          - ``" 10.0.0.5 "`` -> ``10.0.0.5``
          - ``FE80::1`` -> ``fe80::1``
        """

        if v is None:
            return None
        s = str(v).strip()
        if not s:
            return None
        try:
            return str(ipaddress.ip_address(s))
        except ValueError:
            return s


class OutputConfig(BaseModel):
    save_path: Optional[str] = None
    display: bool = True

    @field_validator("save_path", mode="before")
    @classmethod
    def _blank_is_none(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        s = str(v).strip()
        return os.path.expanduser(s) if s else None


class Settings(BaseModel):
    """Brief: Fully resolved runtime settings.

    Inputs:
      - discovery: DiscoveryConfig.
      - output: OutputConfig.
      - logging: Raw mapping handed to init_logging().

    Outputs:
      - Settings instance.
    """

    discovery: DiscoveryConfig = Field(default_factory=DiscoveryConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    logging: Dict[str, Any] = Field(default_factory=dict)
