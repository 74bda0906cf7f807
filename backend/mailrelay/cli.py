"""
Command-line entry point for the mail relay server.

Usage
-----
  mail-relay                          # listen on localhost:8080
  mail-relay -addr :8080              # all IPv4 interfaces
  mail-relay -addr [::]:8080          # IPv6 (dual-stack where supported)
  mail-relay -addr 0.0.0.0:9000 -log-level debug

Both single-dash (-addr) and double-dash (--addr) spellings are accepted.
GMAIL_FROM and GMAIL_PASSWORD must be set (environment or .env); the server
refuses to start otherwise.
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

import uvicorn

from mailrelay.config import MissingCredentialsError, load_settings
from mailrelay.main import create_app

logger = logging.getLogger(__name__)

DEFAULT_ADDR = "localhost:8080"

# CLI level name -> (logging level, uvicorn level name)
_LOG_LEVELS = {
    "debug": (logging.DEBUG, "debug"),
    "info": (logging.INFO, "info"),
    "warn": (logging.WARNING, "warning"),
    "warning": (logging.WARNING, "warning"),
    "error": (logging.ERROR, "error"),
    "fatal": (logging.CRITICAL, "critical"),
}


def parse_addr(value: str) -> tuple[str, int]:
    """
    Split a ``host:port`` listen address.

    An empty host (``:8080``) binds 0.0.0.0, every IPv4 interface. Pass
    ``[::]:8080`` explicitly for IPv6 (dual-stack where the OS allows it);
    hosts without IPv6 would fail to bind ``::``. Raises
    argparse.ArgumentTypeError on anything else that is not host:port.
    """
    host, sep, port = value.rpartition(":")
    if not sep:
        raise argparse.ArgumentTypeError(f"address {value!r} must be host:port")
    try:
        port_number = int(port)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid port in address {value!r}")
    if not 0 < port_number < 65536:
        raise argparse.ArgumentTypeError(f"port out of range in address {value!r}")

    # IPv6 literals arrive bracketed, e.g. [::1]:8080
    host = host.strip("[]") or "0.0.0.0"
    return host, port_number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mail-relay",
        description="Relay JSON email requests (POST /send) to an SMTP server.",
    )
    parser.add_argument(
        "-addr",
        "--addr",
        dest="addr",
        default=DEFAULT_ADDR,
        type=parse_addr,
        help=f"http service address; an empty host means all IPv4 interfaces (default: {DEFAULT_ADDR})",
    )
    parser.add_argument(
        "-log-level",
        "--log-level",
        dest="log_level",
        default="info",
        choices=list(_LOG_LEVELS),
        help="log level (default: info)",
    )
    return parser


def configure_logging(level: int) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    log_level, uvicorn_level = _LOG_LEVELS[args.log_level]
    configure_logging(log_level)

    try:
        settings = load_settings()
    except MissingCredentialsError as exc:
        logger.critical("GMAIL_FROM or GMAIL_PASSWORD is empty (%s)", exc)
        return 1
    except ValueError as exc:
        logger.critical("Invalid SMTP configuration: %s", exc)
        return 1

    host, port = args.addr
    logger.info(
        "Mail relay listening on http://%s:%s (SMTP %s:%s)",
        host,
        port,
        settings.smtp_host,
        settings.smtp_port,
    )
    uvicorn.run(create_app(settings), host=host, port=port, log_level=uvicorn_level)
    return 0


if __name__ == "__main__":
    sys.exit(main())
