from __future__ import annotations

import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "crit": logging.CRITICAL,
    "critical": logging.CRITICAL,
}

_TAGS = {
    logging.DEBUG: "[debug]",
    logging.INFO: "[info]",
    logging.WARNING: "[warn]",
    logging.ERROR: "[error]",
    logging.CRITICAL: "[crit]",
}


def _level_tag(levelno: int) -> str:
    return _TAGS.get(levelno, f"[lvl{levelno}]")


def resolve_level(value: Any, default: int = logging.INFO) -> int:
    """Brief: Map a config/CLI level name to a logging constant.

    Inputs:
      - value: Level name such as "debug" or "warn" (case-insensitive).
      - default: Level used for unknown or missing names.

    Outputs:
      - int: logging level constant.
    """

    if value is None:
        return default
    return _LEVELS.get(str(value).strip().lower(), default)


class SyslogFormatter(logging.Formatter):
    """Formatter for syslog output: program tag, level tag, logger, message.

    Syslog adds its own timestamp so none is emitted here.
    """

    def __init__(self, tag: str = "lanbeacon") -> None:
        super().__init__()
        self.tag = tag

    def format(self, record):
        record.level_tag = _level_tag(record.levelno)
        return f"{self.tag}: {record.level_tag} {record.name}: {record.getMessage()}"


class BracketLevelFormatter(logging.Formatter):
    """Formatter with bracketed lowercase level tags and UTC timestamps."""

    def formatTime(self, record, datefmt=None):
        """Format the record's creation time as UTC ISO-8601 with Z suffix."""
        return datetime.fromtimestamp(record.created, timezone.utc).strftime(
            "%Y-%m-%dT%H:%M:%SZ"
        )

    def format(self, record):
        record.level_tag = _level_tag(record.levelno)
        return super().format(record)


def _syslog_handler(syslog_cfg: Any) -> logging.Handler:
    if isinstance(syslog_cfg, dict):
        address = syslog_cfg.get("address", "/dev/log")
        if isinstance(address, list):
            address = tuple(address)
        facility = getattr(
            logging.handlers.SysLogHandler,
            f"LOG_{str(syslog_cfg.get('facility', 'USER')).upper()}",
            logging.handlers.SysLogHandler.LOG_USER,
        )
        tag = str(syslog_cfg.get("tag", "lanbeacon"))
    else:
        address = "/dev/log"
        facility = logging.handlers.SysLogHandler.LOG_USER
        tag = "lanbeacon"

    handler = logging.handlers.SysLogHandler(address=address, facility=facility)
    handler.setFormatter(SyslogFormatter(tag=tag))
    return handler


def init_logging(cfg: Optional[Dict[str, Any]]) -> None:
    """
    Initialize root logging from the ``logging`` config section.

    Args:
        cfg: Mapping with optional keys:
            - level: debug, info, warn, error, crit (default: info)
            - stderr: log to stderr (default: True)
            - file: path of a log file to append to (optional)
            - syslog: True, or a mapping with address, facility and tag

    Example config:
        {
            "level": "debug",
            "file": "~/.cache/lanbeacon/lanbeacon.log",
            "syslog": {"address": "/dev/log", "tag": "lanbeacon"}
        }

    Notes:
        Existing root handlers are removed first so repeated calls do not
        duplicate output. When the discovery display is active, logging to
        stderr still works but is overwritten by the next screen refresh;
        a file handler keeps the history.
    """
    cfg = cfg or {}

    level = resolve_level(cfg.get("level"))
    formatter = BracketLevelFormatter(
        fmt="%(asctime)s %(level_tag)s %(name)s: %(message)s"
    )

    root = logging.getLogger()
    root.setLevel(level)
    for h in list(root.handlers):
        root.removeHandler(h)

    if cfg.get("stderr", True):
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(formatter)
        root.addHandler(stderr_handler)

    file_path = cfg.get("file")
    if isinstance(file_path, str) and file_path.strip():
        path = os.path.abspath(os.path.expanduser(file_path.strip()))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        file_handler = logging.FileHandler(path, mode="a", encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    syslog_cfg = cfg.get("syslog")
    if syslog_cfg:
        try:
            root.addHandler(_syslog_handler(syslog_cfg))
        except (OSError, ValueError) as e:  # pragma: no cover - host dependent
            root.warning("Failed to configure syslog: %s", e)

    logging.captureWarnings(True)
