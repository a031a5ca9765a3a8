"""
=============================================================================
FILE SERVER CLI ENTRY POINT
=============================================================================

    # Serve the current directory on port 5104
    python -m fileshare

    # Serve ./public to the network, store uploads in ./public/incoming
    python -m fileshare --root ./public --host 0.0.0.0 --upload-dir incoming

    # Bigger streaming chunks, JSON access logs
    python -m fileshare --chunk-size 65536 --log-format json

Environment variables (FILESHARE_*, see config.py) provide the defaults;
command-line flags override them.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .server import FileServer
from .config import ServerConfig


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fileshare-server",
        description="Hybrid file-transfer / HTTP server",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m fileshare                          # Serve . on 127.0.0.1:5104
  python -m fileshare --root ./public          # Serve another directory
  python -m fileshare --host 0.0.0.0           # Listen on all interfaces
  python -m fileshare --log-format json        # JSON access logs
        """,
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})",
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=defaults.timeout,
        help="Per-connection socket timeout in seconds (default: none, wait forever)",
    )

    # ─────────────────────────────────────────────────────────────────────
    # FILESYSTEM ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--root", "-r",
        default=defaults.root_dir,
        help=f"Directory to serve (default: {defaults.root_dir})",
    )
    parser.add_argument(
        "--upload-dir", "-u",
        default=defaults.upload_dir,
        help=f"Upload directory, relative to the root unless absolute (default: {defaults.upload_dir})",
    )
    parser.add_argument(
        "--chunk-size", "-c",
        type=int,
        default=defaults.chunk_size,
        help=f"Streaming chunk size in bytes (default: {defaults.chunk_size})",
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=defaults.log_level.upper(),
        help=f"Logging level (default: {defaults.log_level})",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=defaults.log_format,
        help=f"Access log format (default: {defaults.log_format})",
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"fileshare {__version__}",
    )

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    try:
        defaults = ServerConfig.from_env()
    except ValueError as e:
        print(f"Error: invalid FILESHARE_* environment value: {e}", file=sys.stderr)
        return 2

    args = build_parser(defaults).parse_args(argv)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        timeout=args.timeout,
        root_dir=args.root,
        upload_dir=args.upload_dir,
        chunk_size=args.chunk_size,
        log_level=args.log_level,
        log_format=args.log_format,
    )

    try:
        server = FileServer(config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
