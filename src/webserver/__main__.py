"""
=============================================================================
WEBSERVER CLI ENTRY POINT
=============================================================================

    # Serve the current directory on localhost:8080
    python -m webserver

    # Serve ./public on all interfaces, port 3000
    python -m webserver --root ./public --host 0.0.0.0 --port 3000

    # Handle up to 4 connections at once
    python -m webserver --root ./public --workers 4

Events are appended to ./myOwnWebServer.log unless --log-file says
otherwise (pass --log-file "" to log to the console only).

=============================================================================
"""

import argparse
import logging
import sys

from . import __version__
from .config import ServerConfig
from .server import serve


DEFAULT_LOG_FILE = "./myOwnWebServer.log"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webserver",
        description="Serve the files of one directory over HTTP/1.1",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m webserver --root ./public             # Serve ./public on 127.0.0.1:8080
  python -m webserver --host 0.0.0.0 --port 3000  # Listen on all interfaces
  python -m webserver --workers 4                 # 4 connections in parallel
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT / NETWORK
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--root", "-r",
        default=".",
        help="Document root to serve files from (default: .)"
    )

    parser.add_argument(
        "--host", "-H",
        default="127.0.0.1",
        help="Address to bind to (default: 127.0.0.1)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=8080,
        help="Port to listen on (default: 8080)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # REQUEST HANDLING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=0,
        help="Worker threads; 0 handles one connection at a time (default: 0)"
    )

    parser.add_argument(
        "--buffer-size",
        type=int,
        default=1024,
        help="Receive buffer in bytes, the request size ceiling (default: 1024)"
    )

    parser.add_argument(
        "--read-full-headers",
        action="store_true",
        help="Read until the end of the headers instead of a single recv()"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-file",
        default=DEFAULT_LOG_FILE,
        help=f"Event log file (default: {DEFAULT_LOG_FILE})"
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"webserver {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Translate parsed CLI arguments to a ServerConfig."""
    return ServerConfig(
        root=args.root,
        host=args.host,
        port=args.port,
        workers=args.workers,
        buffer_size=args.buffer_size,
        read_full_headers=args.read_full_headers,
        log_file=args.log_file or None,
        log_level=args.log_level,
    )


def main(argv=None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    config = config_from_args(args)

    try:
        serve(config)
    except (ValueError, OSError) as e:
        logging.getLogger("webserver").error(f"Could not start server: {e}")
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
