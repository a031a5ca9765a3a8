"""
=============================================================================
FILE SERVER
=============================================================================

The orchestrator: ties the socket server, the per-connection threads and
the request dispatcher together.

=============================================================================
ARCHITECTURE OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          FileServer                                  │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   main thread                                                        │
    │   ───────────                                                        │
    │   SocketServer.start()                                               │
    │      └── accept() ──► _handle_connection(conn)                       │
    │                            │                                         │
    │                            └── threading.Thread(                     │
    │                                    target=_process_connection)       │
    │                                                                      │
    │   connection thread (one per connection)                             │
    │   ─────────────────                                                  │
    │   with conn:                                                         │
    │       RequestDispatcher.dispatch(conn)                               │
    │   ◄── connection always closed here, success or failure             │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
WHY A THREAD PER CONNECTION (AND NOT A POOL)?
=============================================================================

An upload holds its connection for as long as the client keeps sending,
which can be minutes. With a bounded pool, a handful of slow uploads would
starve every download queued behind them. One thread per connection means
a connection never waits for another one.

Nothing mutable is shared between connection threads. The dispatcher and
its handlers only hold configuration. The one exception is the server's
own set of live threads, used to wait for them at shutdown.

There are no read/write timeouts by default (ServerConfig.timeout=None):
a client that stalls mid-request keeps its thread busy indefinitely.

=============================================================================
"""

import logging
import threading
import time
from typing import Optional, Set

from .config import ServerConfig
from .core import SocketServer, Connection
from .dispatcher import RequestDispatcher


logger = logging.getLogger(__name__)


class FileServer:
    """
    Hybrid file-transfer / HTTP server.

    Usage:
        server = FileServer(ServerConfig(root_dir="/srv/files", port=5104))
        server.run()  # Blocks until Ctrl+C / SIGTERM
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        """
        Initialize the server.

        Args:
            config: Server configuration. Uses defaults if not provided.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()  # Fail fast on invalid config

        self._socket_server = SocketServer(self.config)
        self._dispatcher = RequestDispatcher(self.config)

        self._threads: Set[threading.Thread] = set()
        self._threads_lock = threading.Lock()

    @property
    def dispatcher(self) -> RequestDispatcher:
        return self._dispatcher

    @property
    def address(self):
        """Bound (host, port); the real port once listening."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        """True while the accept loop is running."""
        return self._socket_server.is_running

    @property
    def active_connections(self) -> int:
        with self._threads_lock:
            return len(self._threads)

    # =========================================================================
    # SERVER LIFECYCLE
    # =========================================================================

    def run(self, host: Optional[str] = None, port: Optional[int] = None, setup_logging: bool = True):
        """
        Start the server (blocking).

        Args:
            host: Override config host.
            port: Override config port.
            setup_logging: Configure the root logger from the config.
                           Embedders with their own logging pass False.
        """
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        if setup_logging:
            self._setup_logging()

        logger.info(
            f"Serving {self.config.root_path} on {self.config.host}:{self.config.port}, "
            f"uploads to {self.config.upload_path}"
        )

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        """Block until the listening socket is up (for tests / embedding)."""
        return self._socket_server.wait_until_ready(timeout)

    def stop(self):
        """Ask the accept loop to stop. Safe from any thread."""
        self._socket_server.shutdown()

    def _setup_logging(self):
        """Configure logging based on config."""
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        logging.getLogger("fileshare").setLevel(level)

    def _shutdown(self, timeout: float = 30.0):
        """
        Graceful shutdown.

        The accept loop has already stopped. Give in-flight connections up
        to `timeout` seconds (in total) to finish; threads still running
        after that are daemons and die with the process.
        """
        logger.info("Shutting down server...")

        with self._threads_lock:
            threads = list(self._threads)

        if threads:
            logger.info(f"Waiting for {len(threads)} active connection(s)")

        deadline = time.monotonic() + timeout
        for thread in threads:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                logger.warning("Shutdown timeout reached, abandoning open connections")
                break
            thread.join(remaining)

        logger.info("Server stopped")

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """
        Start a dedicated thread for a freshly accepted connection.

        Runs in the accept loop, so it must not block.
        """
        thread = threading.Thread(
            target=self._process_connection,
            args=(conn,),
            name=f"conn-{conn.id}",
            daemon=True,
        )

        with self._threads_lock:
            self._threads.add(thread)

        try:
            thread.start()
        except RuntimeError as e:
            # Can't start new thread (resource exhaustion)
            logger.error(f"[{conn.id}] Could not start handler thread: {e}")
            with self._threads_lock:
                self._threads.discard(thread)
            conn.close()

    def _process_connection(self, conn: Connection):
        """
        Handle one connection from start to finish (connection thread).

        Every failure stays inside this connection: it is logged and the
        connection is closed. Nothing propagates to the accept loop or to
        other connections.
        """
        try:
            with conn:  # Context manager ensures connection is closed
                self._dispatcher.dispatch(conn)
        except Exception as e:
            logger.exception(f"[{conn.id}] Connection error: {e}")
        finally:
            with self._threads_lock:
                self._threads.discard(threading.current_thread())


def create_server(config: Optional[ServerConfig] = None) -> FileServer:
    """
    Create a file server.

    Example:
        server = create_server(ServerConfig(root_dir="./public"))
        server.run()
    """
    return FileServer(config)
