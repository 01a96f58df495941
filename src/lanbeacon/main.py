from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from typing import List, Optional

from .config.config_parser import (
    apply_cli_overrides,
    build_settings,
    parse_config_file,
)
from .config.logging_config import init_logging
from .display import clear_screen, render_endpoints
from .mdns.agent import Agent, SharedEndpoints
from .mdns.channel import ChannelError
from .persistence import save_endpoints
from .utils.netinfo import InterfaceLookupError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lanbeacon",
        description="Discover devices and services on the local network via mDNS",
    )
    parser.add_argument("--config", default=None, help="Path to YAML config")
    parser.add_argument(
        "-v",
        "--var",
        dest="vars",
        action="append",
        default=[],
        metavar="KEY=YAML",
        help="Set a config variable (overrides environment and file values)",
    )
    parser.add_argument(
        "--query-interval",
        type=int,
        default=None,
        help="Seconds between active queries (default 5)",
    )
    parser.add_argument(
        "--passive",
        action="store_true",
        default=None,
        help="Only listen for announcements; never send queries",
    )
    parser.add_argument(
        "--address",
        default=None,
        help="Only record responses from this source address",
    )
    parser.add_argument(
        "--save-path",
        default=None,
        help="Directory to write one JSON document per endpoint",
    )
    parser.add_argument(
        "--no-display",
        dest="display",
        action="store_false",
        default=None,
        help="Do not redraw the endpoint list on the terminal",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["debug", "info", "warn", "error", "crit"],
        help="Override logging.level",
    )
    parser.add_argument(
        "--unknown-keys",
        default="warn",
        choices=["ignore", "warn", "error"],
        help="How to treat config keys the schema does not describe",
    )
    return parser


def make_observer(display: bool, save_path: Optional[str], stream=None):
    """
    Build the callback the agent invokes after every registry update.

    Inputs:
      - display: Clear the terminal and print the inventory on each update.
      - save_path: Directory for JSON snapshots, or None to skip saving.
      - stream: Output stream for the display (default: sys.stdout).

    Outputs:
      - Callable[[SharedEndpoints], None].

    The registry lock is only held while the snapshot is taken; rendering
    and file writes work on the private copy.
    """
    logger = logging.getLogger("lanbeacon.main")

    def _observer(shared: SharedEndpoints) -> None:
        endpoints = shared.snapshot()
        if display:
            out = stream or sys.stdout
            clear_screen(out)
            out.write(render_endpoints(endpoints.values()) + "\n")
            out.flush()
        if save_path:
            try:
                save_endpoints(save_path, endpoints.values())
            except OSError as exc:
                logger.error("Failed to save endpoints to %s: %s", save_path, exc)

    return _observer


def main(argv: List[str] | None = None) -> int:
    """
    Main entry point for the discovery tool.
    Parses arguments, loads configuration, starts the agent and runs until
    interrupted.

    Args:
        argv: Command-line arguments.

    Returns:
        An exit code: 0 after a signal-driven shutdown, 1 when the
        configuration is invalid or the multicast socket cannot be set up.

    Example use:
        CLI:
            PYTHONPATH=src python -m lanbeacon.main --passive --save-path ./eps
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        cfg = parse_config_file(
            args.config, cli_vars=args.vars, unknown_keys=args.unknown_keys
        )
        apply_cli_overrides(cfg, args)
        settings = build_settings(cfg)
    except (OSError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        return 1

    # Initialize logging before any other operations
    try:
        init_logging(settings.logging)
    except OSError as exc:
        print(f"Could not initialize logging: {exc}", file=sys.stderr)
        return 1
    logger = logging.getLogger("lanbeacon.main")
    if args.config:
        logger.info("Loaded config from %s", args.config)

    discovery = settings.discovery
    try:
        agent = Agent(
            query_interval=discovery.query_interval,
            passive=discovery.passive,
            filter_for=discovery.address,
            receive_timeout=discovery.receive_timeout,
        )
    except ChannelError as exc:
        logger.error("Could not open mDNS channel: %s", exc)
        return 1

    shutdown_event = threading.Event()

    def _request_shutdown(signum, _frame):
        if shutdown_event.is_set():
            return
        logger.info(
            "Received %s, shutting down", signal.Signals(signum).name
        )
        shutdown_event.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            signal.signal(sig, _request_shutdown)
        except (ValueError, OSError):  # pragma: no cover - platform dependent
            logger.warning("Could not install %s handler", sig.name)

    observer = make_observer(settings.output.display, settings.output.save_path)
    try:
        agent.start(observer, stop_event=shutdown_event)
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    except InterfaceLookupError as exc:
        logger.error("Could not enumerate local interfaces: %s", exc)
        return 1
    except OSError as exc:
        logger.error("Fatal socket error: %s", exc)
        return 1
    finally:
        agent.close()

    return 0


if __name__ == "__main__":
    raise SystemExit(main())  # pragma: no cover
