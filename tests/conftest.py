"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Dict, Generator, Tuple
import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fileshare import FileServer, ServerConfig
from fileshare.core import Connection


PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDRfake-image-payload"


# =============================================================================
# RAW SOCKET HELPERS
# =============================================================================

def recv_all(sock: socket.socket) -> bytes:
    """Read until the peer closes."""
    chunks = []
    while True:
        chunk = sock.recv(4096)
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)


def split_response(data: bytes) -> Tuple[str, Dict[str, str], bytes]:
    """Split raw response bytes into (status line, headers, body)."""
    head, _, body = data.partition(b"\r\n\r\n")
    lines = head.decode("utf-8").split("\r\n")
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip()] = value.strip()
    return lines[0], headers, body


def send_request(port: int, request: bytes, timeout: float = 5.0) -> bytes:
    """Send raw request bytes to a live server, half-close, read the reply."""
    with socket.create_connection(("127.0.0.1", port), timeout=timeout) as sock:
        sock.sendall(request)
        sock.shutdown(socket.SHUT_WR)
        return recv_all(sock)


def get(port: int, path: str) -> bytes:
    return send_request(port, f"GET {path} HTTP/1.1\r\n".encode("utf-8"))


def raw_upload(port: int, name: str, data: bytes, timeout: float = 5.0) -> bytes:
    """Speak UPLOAD by hand and wait for the server to close."""
    return send_request(port, f"UPLOAD {name}\r\n".encode("utf-8") + data, timeout)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def server_root(tmp_path: Path) -> Path:
    """
    A server root with one file per rendering branch:

        root/
        ├── archive.zip       binary (known type)
        ├── blob              binary (unknown type)
        ├── images/
        │   └── pixel.png     image
        └── notes.txt         text
    """
    root = tmp_path / "root"
    root.mkdir()
    (root / "notes.txt").write_text("first line\nsecond <line>\n")
    (root / "images").mkdir()
    (root / "images" / "pixel.png").write_bytes(PNG_BYTES)
    (root / "archive.zip").write_bytes(bytes(range(256)) * 2)
    (root / "blob").write_bytes(b"\x00\x01\x02")
    return root


@pytest.fixture
def conn_pair() -> Generator[Tuple[Connection, socket.socket], None, None]:
    """
    A server-side Connection and the client socket talking to it.

    Backed by socket.socketpair(), so no network is involved.
    """
    server_sock, client_sock = socket.socketpair()
    conn = Connection(socket=server_sock, address=("local", 0))
    client_sock.settimeout(5.0)

    yield conn, client_sock

    conn.close()
    client_sock.close()


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False  # Not a test class, despite the name

    def __init__(self, server: FileServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    @property
    def root(self) -> Path:
        return self.server.config.root_path

    def start(self):
        """Start server in background thread and wait until it listens."""
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"setup_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.stop()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def server_config(server_root: Path) -> ServerConfig:
    """Test server configuration on an OS-assigned port."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,
        root_dir=str(server_root),
        log_level="WARNING",
    )


@pytest.fixture
def live_server(server_config: ServerConfig) -> Generator[TestServer, None, None]:
    """A running FileServer serving server_root."""
    test_srv = TestServer(FileServer(server_config))
    test_srv.start()

    yield test_srv

    test_srv.stop()
