"""
=============================================================================
REQUEST DISPATCHER
=============================================================================

Turns one connection's request line into exactly one action.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      dispatch(conn) Flow                             │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   read_line()                                                        │
    │      │   I/O error ─────────────────────────► close, no response     │
    │      ▼                                                               │
    │   parse_request_line()                                               │
    │      │   missing / malformed / unknown ─────► 404                    │
    │      │                                                               │
    │      ├── UPLOAD name ──► UploadReceiver ────► no response            │
    │      │                                                               │
    │      └── GET target                                                  │
    │            │                                                         │
    │            ├── outside root ────────────────► 404                    │
    │            ├── does not exist ──────────────► 404                    │
    │            ├── directory ──► DirectoryLister ► 200 listing           │
    │            └── file ──────► FileResponder ──► 200 content            │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The dispatcher writes only the 404 bytes itself; every 200 is written by a
handler. Exactly one response goes out per GET connection.

=============================================================================
PATH CONTAINMENT
=============================================================================

A GET target is resolved against the server root and the RESOLVED path
(".." collapsed, symlinks followed) must still be inside the root:

    root = /srv/files
    GET /docs/a.txt           → /srv/files/docs/a.txt       ✓
    GET /../../etc/passwd     → /etc/passwd                 ✗ 404
    GET /link-to-etc/passwd   → /etc/passwd (via symlink)   ✗ 404

Escapes are answered with the same 404 as a missing file, so a client
can't tell "forbidden" from "absent".

=============================================================================
"""

import logging
import time
from pathlib import Path
from typing import Optional, Tuple

from . import access_log
from .config import ServerConfig
from .core.connection import Connection, ConnectionState, RequestLineTooLong
from .handlers import DirectoryLister, FileResponder, UploadReceiver, UploadRejected
from .http.request import RequestLine, RequestParseError, decode_line, parse_request_line
from .http.response import not_found_response
from .http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


# Access-log status for requests that never get a response (uploads,
# connections that died before sending a line)
NO_RESPONSE = 0


class RequestDispatcher:
    """
    Reads the request line from a connection and routes it.

    Holds configuration and stateless handlers only, so a single
    dispatcher serves all connection threads concurrently.

    Usage:
        dispatcher = RequestDispatcher(config)

        with conn:
            dispatcher.dispatch(conn)
    """

    def __init__(self, config: ServerConfig):
        self.root: Path = config.root_path
        self.log_format = config.log_format

        self.lister = DirectoryLister()
        self.responder = FileResponder(
            chunk_size=config.chunk_size,
            server_name=config.server_name,
        )
        self.receiver = UploadReceiver(
            upload_dir=config.upload_path,
            chunk_size=config.chunk_size,
        )

    def dispatch(self, conn: Connection) -> int:
        """
        Handle the single request carried by conn.

        Does not close the connection; the caller owns it.

        Returns:
            The HTTP status sent, or 0 if no response was sent.
        """
        start_time = time.time()
        request: Optional[RequestLine] = None
        status = NO_RESPONSE

        try:
            request, status = self._dispatch(conn)
            return status
        finally:
            duration_ms = (time.time() - start_time) * 1000
            access_log.emit(
                access_log.AccessLog(
                    request_id=conn.id,
                    method=request.method.value if request else "-",
                    target=request.target if request else "-",
                    client_ip=conn.client_ip,
                    status_code=int(status),
                    bytes_sent=conn.bytes_sent,
                    bytes_received=conn.bytes_received,
                    duration_ms=duration_ms,
                    timestamp=access_log.now_timestamp(),
                ),
                log_format=self.log_format,
            )

    def _dispatch(self, conn: Connection) -> Tuple[Optional[RequestLine], int]:
        # ─────────────────────────────────────────────────────────────────
        # READ THE REQUEST LINE
        # ─────────────────────────────────────────────────────────────────
        try:
            raw_line = conn.read_line()
        except RequestLineTooLong as e:
            logger.warning(f"[{conn.id}] {e}")
            return None, self._send_not_found(conn)
        except OSError as e:
            # Best effort only: the connection is closed right after
            logger.warning(f"[{conn.id}] Failed to read request line: {e}")
            return None, NO_RESPONSE

        # ─────────────────────────────────────────────────────────────────
        # PARSE
        # ─────────────────────────────────────────────────────────────────
        try:
            request = parse_request_line(decode_line(raw_line))
        except RequestParseError as e:
            logger.debug(f"[{conn.id}] Malformed request: {e}")
            return None, self._send_not_found(conn)

        conn.state = ConnectionState.PROCESSING

        if request.is_upload:
            return request, self._handle_upload(conn, request)

        return request, self._handle_get(conn, request)

    # =========================================================================
    # GET
    # =========================================================================

    def resolve(self, target: str) -> Optional[Path]:
        """
        Resolve a request path inside the server root.

        Returns:
            The resolved path (which may not exist), or None if it would
            escape the root or is not a valid path at all.
        """
        try:
            full_path = (self.root / target.lstrip("/")).resolve()
        except (OSError, ValueError) as e:
            # ValueError: embedded NUL byte
            logger.debug(f"Unresolvable path {target!r}: {e}")
            return None

        try:
            full_path.relative_to(self.root)
        except ValueError:
            logger.warning(f"Path traversal attempt: {target}")
            return None

        return full_path

    def _handle_get(self, conn: Connection, request: RequestLine) -> int:
        path = self.resolve(request.target)

        if path is None or not path.exists():
            return self._send_not_found(conn)

        try:
            if path.is_dir():
                return self.lister.respond(conn, path, request.target)
            return self.responder.respond(conn, path)

        except OSError as e:
            if conn.bytes_sent == 0:
                # Nothing on the wire yet (e.g. permission denied on open)
                logger.warning(f"[{conn.id}] Cannot serve {request.target}: {e}")
                return self._send_not_found(conn)

            logger.error(
                f"[{conn.id}] Transfer of {request.target} aborted after "
                f"{conn.bytes_sent} bytes: {e}"
            )
            return HTTPStatus.OK

    # =========================================================================
    # UPLOAD
    # =========================================================================

    def _handle_upload(self, conn: Connection, request: RequestLine) -> int:
        try:
            self.receiver.receive(conn, request.target)
        except UploadRejected as e:
            logger.warning(f"[{conn.id}] Upload rejected: {e}")
        except OSError as e:
            logger.error(
                f"[{conn.id}] Upload of {request.target} aborted after "
                f"{conn.bytes_received} bytes received: {e}"
            )
        return NO_RESPONSE

    # =========================================================================
    # 404
    # =========================================================================

    def _send_not_found(self, conn: Connection) -> int:
        conn.send_response(not_found_response().to_bytes())
        return HTTPStatus.NOT_FOUND
