"""
=============================================================================
FILESERVER CLI ENTRY POINT
=============================================================================

    # Serve the current directory on 0.0.0.0:8080
    python -m fileserver

    # Another directory and port
    python -m fileserver --root ./public --port 3000

    # Hardened: Content-Length, no paths outside the root, client deadline
    python -m fileserver --content-length --confine --timeout 30

Settings come from the environment first (see ServerConfig.from_env) and
are overridden by any flag given on the command line.

=============================================================================
"""

import argparse
import sys
from dataclasses import replace
from typing import Optional, Sequence

from . import __version__
from .config import ServerConfig
from .server import FileServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fileserver",
        description="Minimal HTTP/1.x file server built on raw sockets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m fileserver                       # Serve . on port 8080
  python -m fileserver --root ./public       # Serve another directory
  python -m fileserver --port 3000           # Custom port
  python -m fileserver --workers 64          # More concurrent clients
  python -m fileserver --confine             # Refuse paths outside root
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--host", "-H", help="Host to bind to (default: 0.0.0.0)")
    parser.add_argument("--port", "-p", type=int, help="Port to listen on (default: 8080)")
    parser.add_argument("--backlog", type=int, help="Listen backlog (default: 10)")
    parser.add_argument(
        "--timeout", "-t",
        type=float,
        help="Per-connection read/write deadline in seconds (default: none)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # CONCURRENCY ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--workers", "-w", type=int, help="Worker threads (default: 16)")
    parser.add_argument("--queue-size", type=int, help="Connections waiting for a worker (default: 64)")

    # ─────────────────────────────────────────────────────────────────────
    # FILE SERVING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument("--root", "-r", help="Directory to serve (default: current directory)")
    parser.add_argument(
        "--content-length",
        action="store_true",
        default=None,
        help="Send a Content-Length header",
    )
    parser.add_argument(
        "--confine",
        action="store_true",
        default=None,
        help="Answer 404 for paths resolving outside the root directory",
    )
    parser.add_argument(
        "--case-insensitive", "-i",
        action="store_true",
        default=None,
        help="Match file names ignoring case when the exact name is missing",
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        help="Access log format (default: text)",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"fileserver {__version__}",
    )

    return parser


def config_from_args(args: argparse.Namespace, base: Optional[ServerConfig] = None) -> ServerConfig:
    """Overlay the flags that were given onto ``base`` (env config by default)."""
    base = base or ServerConfig.from_env()

    overrides = {
        "host": args.host,
        "port": args.port,
        "backlog": args.backlog,
        "timeout": args.timeout,
        "max_workers": args.workers,
        "queue_size": args.queue_size,
        "root_dir": args.root,
        "send_content_length": args.content_length,
        "confine_to_root": args.confine,
        "case_insensitive": args.case_insensitive,
        "log_level": args.log_level,
        "log_format": args.log_format,
    }
    return replace(base, **{k: v for k, v in overrides.items() if v is not None})


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    CLI entry point.

    Returns:
        Process exit status: 0 after a clean shutdown, 1 if the
        configuration is invalid or the socket cannot be opened.
    """
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        server = FileServer(config)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
