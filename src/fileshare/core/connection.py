"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

This module wraps a single accepted client socket with the two reading
modes the file server needs, plus writing and a proper close.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

TCP does NOT preserve message boundaries. An upload client does:

    send(b"UPLOAD note.txt\r\n")
    send(<100 bytes of file>)

and the server might receive:

    recv() → b"UPLOAD note.txt\r\nHello, th"   (line + start of file!)
    recv() → b"is is the rest of the file..."

So reading the request line can pull in bytes that belong to the upload
body. Those bytes MUST NOT be lost: they stay in _buffer and are the first
thing iter_chunks() hands out.

=============================================================================
TWO READING MODES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────┐
    │  read_line()                                                     │
    │  ─────────────────────────────────────────────────────────────  │
    │  recv() until b"\n" is buffered, return up to and including it. │
    │  Leftover bytes stay buffered.                                   │
    │  Returns None if the peer closed before sending anything.        │
    ├─────────────────────────────────────────────────────────────────┤
    │  iter_chunks()                                                   │
    │  ─────────────────────────────────────────────────────────────  │
    │  Yield buffered leftovers, then recv() chunks until EOF.         │
    │  EOF = the peer half-closed its write side.                      │
    └─────────────────────────────────────────────────────────────────┘

=============================================================================
"NO DATA YET" VS "PEER IS DONE"
=============================================================================

Uploads carry no length field; the end of the file IS the peer's FIN.

On a blocking socket, recv() never returns b"" just because nothing has
arrived yet - it waits. It returns b"" ONLY when the peer has shut down
its write side. That makes b"" an unambiguous end-of-data marker.

Everything else is an error and propagates as an exception:

    socket.timeout         (only if a timeout was configured)
    ConnectionResetError   (peer vanished mid-upload)
    other OSError

A reset must never be mistaken for a clean end of file, otherwise a
truncated upload would be stored as if it were complete.

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    NEW ──► READING ──► PROCESSING ──┬──► WRITING ────┐
                                      │                │
                                      └──► RECEIVING ──┤
                                                       ▼
                                                    CLOSING ──► CLOSED

=============================================================================
"""

import socket
import time
import logging
from enum import Enum
from dataclasses import dataclass, field
from typing import Iterator, Optional
import uuid


logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection lifecycle states, mostly for logging and debugging."""

    NEW = "new"                # Just accepted
    READING = "reading"        # Reading the request line
    PROCESSING = "processing"  # Line parsed, dispatching
    WRITING = "writing"        # Sending a response
    RECEIVING = "receiving"    # Streaming an upload body
    CLOSING = "closing"
    CLOSED = "closed"


class RequestLineTooLong(ValueError):
    """The peer sent more than max_line_size bytes without a newline."""


@dataclass
class Connection:
    """
    Represents one client connection.

    A Connection is owned by exactly one handler thread for its whole
    life. Nothing in here is shared with other connections, so there is
    no locking.

    Attributes:
        socket: The client socket.
        address: Client's (ip, port) tuple.
        id: Short unique identifier used in log lines.
        state: Current connection state.
        bytes_received: Total bytes read off the socket.
        bytes_sent: Total bytes written to the socket.
    """

    # Required parameters
    socket: socket.socket
    address: tuple

    # Generated/default parameters
    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    last_activity: float = field(default_factory=time.time)
    bytes_received: int = 0
    bytes_sent: int = 0

    # Configuration (passed from ServerConfig)
    buffer_size: int = 8192
    timeout: Optional[float] = None      # None = block forever
    max_line_size: int = 64 * 1024

    _buffer: bytes = field(default=b"", repr=False)

    def __post_init__(self):
        self.socket.setblocking(True)
        # settimeout(None) keeps the socket fully blocking
        self.socket.settimeout(self.timeout)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def client_ip(self) -> str:
        return self.address[0] if self.address else "-"

    @property
    def age(self) -> float:
        """Connection age in seconds."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_line(self) -> Optional[bytes]:
        """
        Read one line from the connection.

        Returns:
            The line including its b"\\n" terminator. If the peer closes
            after sending a partial line, that partial line (without a
            terminator). None if the peer closed before sending anything.

        Raises:
            RequestLineTooLong: If no newline shows up within
                                max_line_size bytes.
            OSError: On socket errors, including timeouts.
        """
        self.state = ConnectionState.READING

        while b"\n" not in self._buffer:
            if len(self._buffer) > self.max_line_size:
                raise RequestLineTooLong(
                    f"No line terminator within {self.max_line_size} bytes"
                )

            chunk = self._recv(self.buffer_size)
            if not chunk:
                # Peer closed its write side
                line, self._buffer = self._buffer, b""
                return line or None

            self._buffer += chunk

        end = self._buffer.index(b"\n") + 1
        line, self._buffer = self._buffer[:end], self._buffer[end:]
        return line

    def iter_chunks(self, chunk_size: int) -> Iterator[bytes]:
        """
        Yield the rest of the inbound stream until the peer half-closes.

        Bytes already buffered by read_line() come out first, then fresh
        recv() results of at most chunk_size bytes each.

        Raises:
            OSError: Any socket error, including a timeout or reset. The
                     stream is incomplete in that case, never "done".
        """
        self.state = ConnectionState.RECEIVING

        while self._buffer:
            chunk, self._buffer = self._buffer[:chunk_size], self._buffer[chunk_size:]
            yield chunk

        while True:
            chunk = self._recv(chunk_size)
            if not chunk:
                return  # EOF: the peer is done sending
            yield chunk

    def _recv(self, size: int) -> bytes:
        data = self.socket.recv(size)
        self.bytes_received += len(data)
        self.last_activity = time.time()
        return data

    # =========================================================================
    # WRITING
    # =========================================================================

    def send(self, data: bytes) -> None:
        """
        Send all of data.

        sendall() blocks until every byte is handed to the kernel. Errors
        propagate: a streaming writer needs to know it must stop.
        """
        self.state = ConnectionState.WRITING
        self.socket.sendall(data)
        self.bytes_sent += len(data)
        self.last_activity = time.time()

    def send_response(self, data: bytes) -> bool:
        """
        Send a complete response, reporting failure instead of raising.

        Returns:
            True if send succeeded, False if the connection was lost.
        """
        try:
            self.send(data)
            return True
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): send FIN so the client sees end-of-response
        2. Drain anything the client still sends, briefly
        3. close(): release the file descriptor

        Safe to call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass  # Timeout or reset while draining; closing anyway

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(
            f"[{self.id}] Connection closed "
            f"(in={self.bytes_received}B out={self.bytes_sent}B age={self.age:.3f}s)"
        )

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self):
        """
        Allows using Connection with 'with' so it is closed no matter how
        the handler exits:

            with conn:
                line = conn.read_line()
                ...
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False  # Don't suppress exceptions
