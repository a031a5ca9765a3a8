"""
=============================================================================
SERVER AND CLIENT CONFIGURATION
=============================================================================

Centralized configuration for the file server and the upload client.

=============================================================================
CONFIGURATION SOURCES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   Priority (highest to lowest):                                     │
    │                                                                      │
    │   1. Command-line arguments                                         │
    │      └── python -m fileshare --port 6000                           │
    │                                                                      │
    │   2. Environment variables                                          │
    │      └── FILESHARE_PORT=6000 python -m fileshare                   │
    │                                                                      │
    │   3. Default values (in these dataclasses)                         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
FILESYSTEM LAYOUT
=============================================================================

    root_dir/                 ← GET requests resolve inside here
    ├── notes.txt
    ├── images/
    │   └── cat.png
    └── uploaded/             ← upload_dir, created on first UPLOAD
        └── note.txt

The upload directory is a child of the server root, so anything uploaded
is immediately downloadable via GET /uploaded/<name>.

=============================================================================
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


DEFAULT_PORT = 5104


def _optional_float(value: Optional[str]) -> Optional[float]:
    """Parse an optional float from an environment variable."""
    if value is None or value.strip() == "":
        return None
    return float(value)


@dataclass
class ServerConfig:
    """
    Configuration for the file server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size, timeout

    FILESYSTEM
    - root_dir, upload_dir

    TRANSFER
    - chunk_size

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "127.0.0.1"
    """
    The IP address to bind to.
    - "127.0.0.1" - Localhost only (development)
    - "0.0.0.0" - All network interfaces
    """

    port: int = DEFAULT_PORT
    """
    The port number to listen on. 0 lets the OS pick a free port
    (useful in tests).
    """

    backlog: int = 128
    """Maximum number of queued connections."""

    buffer_size: int = 8192
    """Size of each recv() call in bytes."""

    timeout: Optional[float] = None
    """
    Per-connection socket timeout in seconds.

    None = block forever. A stalled client (half-sent request line or a
    stalled upload) then holds its handler thread indefinitely. Set a value
    to have such connections aborted instead.
    """

    # ─────────────────────────────────────────────────────────────────────
    # FILESYSTEM
    # ─────────────────────────────────────────────────────────────────────

    root_dir: str = "."
    """Directory GET requests are resolved against. Never escaped."""

    upload_dir: str = "uploaded"
    """
    Where UPLOADed files are stored. Relative values are taken relative
    to root_dir. Created lazily on the first upload.
    """

    # ─────────────────────────────────────────────────────────────────────
    # TRANSFER
    # ─────────────────────────────────────────────────────────────────────

    chunk_size: int = 32
    """
    Chunk size for streaming binary downloads and storing uploads.

    Deliberately tiny by default so streaming paths are exercised even for
    small files. Larger values change throughput, not observable output.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """Access log format: 'text' or 'json'."""

    server_name: str = "FileShare/1.0"
    """Value of the Server header on attachment downloads."""

    @property
    def root_path(self) -> Path:
        """Absolute, resolved server root."""
        return Path(self.root_dir).resolve()

    @property
    def upload_path(self) -> Path:
        """Absolute upload directory (may not exist yet)."""
        upload = Path(self.upload_dir)
        if not upload.is_absolute():
            upload = self.root_path / upload
        return upload.resolve()

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        FILESHARE_HOST        Server host (default: 127.0.0.1)
        FILESHARE_PORT        Server port (default: 5104)
        FILESHARE_ROOT        Server root directory (default: .)
        FILESHARE_UPLOAD_DIR  Upload directory (default: uploaded)
        FILESHARE_CHUNK_SIZE  Streaming chunk size (default: 32)
        FILESHARE_TIMEOUT     Socket timeout in seconds (default: none)
        FILESHARE_LOG_LEVEL   Logging level (default: INFO)
        FILESHARE_LOG_FORMAT  Access log format (default: text)

        =====================================================================
        """
        return cls(
            host=os.getenv("FILESHARE_HOST", "127.0.0.1"),
            port=int(os.getenv("FILESHARE_PORT", str(DEFAULT_PORT))),
            root_dir=os.getenv("FILESHARE_ROOT", "."),
            upload_dir=os.getenv("FILESHARE_UPLOAD_DIR", "uploaded"),
            chunk_size=int(os.getenv("FILESHARE_CHUNK_SIZE", "32")),
            timeout=_optional_float(os.getenv("FILESHARE_TIMEOUT")),
            log_level=os.getenv("FILESHARE_LOG_LEVEL", "INFO"),
            log_format=os.getenv("FILESHARE_LOG_FORMAT", "text"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once at startup so bad values fail fast instead of
        surfacing on the first request.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.backlog < 1:
            raise ValueError("backlog must be >= 1")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"Invalid log_format: {self.log_format}. Use 'text' or 'json'.")

        if not self.root_path.is_dir():
            raise ValueError(f"Server root is not a directory: {self.root_dir}")


@dataclass
class ClientConfig:
    """Configuration for the upload client."""

    host: str = "localhost"
    port: int = DEFAULT_PORT
    chunk_size: int = 128
    max_workers: int = 8
    connect_timeout: Optional[float] = 10.0

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """
        Create client configuration from environment variables.

        FILESHARE_HOST, FILESHARE_PORT and FILESHARE_CLIENT_CHUNK_SIZE.
        """
        return cls(
            host=os.getenv("FILESHARE_HOST", "localhost"),
            port=int(os.getenv("FILESHARE_PORT", str(DEFAULT_PORT))),
            chunk_size=int(os.getenv("FILESHARE_CLIENT_CHUNK_SIZE", "128")),
        )

    def validate(self) -> None:
        if not 0 < self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 1-65535.")
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")
