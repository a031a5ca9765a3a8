"""
=============================================================================
UPLOAD CLIENT
=============================================================================

Pushes local files to a running file server with the UPLOAD verb.

=============================================================================
ONE FILE, ONE CONNECTION
=============================================================================

    client                                             server
      │  connect()                                        │
      │ ────────────────────────────────────────────────► │
      │  UPLOAD note.txt\r\n                              │
      │  <raw file bytes, chunk_size at a time>           │
      │ ────────────────────────────────────────────────► │
      │  shutdown(SHUT_WR)   FIN = "that was the file"    │
      │ ────────────────────────────────────────────────► │
      │                                     stores file   │
      │                                     closes        │
      │ ◄──────────────────────────────────────────────── │
      │  recv() == b""  → upload complete                 │

The half-close is the ONLY end-of-file marker, so the client must
shutdown(SHUT_WR) rather than simply stop sending. Waiting for the
server's close afterwards means upload() returns only once the server has
finished with the file.

Independent files are uploaded concurrently, each on its own connection,
by a ThreadPoolExecutor.

=============================================================================
INTERACTIVE USE
=============================================================================

    $ python -m fileshare.client --port 5104
    > upload notes.txt
    > upload cat.png
    File notes.txt uploaded successfully.
    File cat.png uploaded successfully.
    > upload Makefile
    Invalid file format: Makefile (content type cannot be determined)
    > quit

Files can also be given on the command line, in which case they are
uploaded concurrently and the client exits:

    $ python -m fileshare.client notes.txt cat.png

=============================================================================
"""

import argparse
import logging
import socket
import sys
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Dict, Iterable, Optional, TextIO

from . import __version__
from .config import ClientConfig
from .http.mime_types import get_mime_type


logger = logging.getLogger(__name__)


class UploadClient:
    """
    Uploads files to a file server, one connection per file.

    Usage:
        client = UploadClient(ClientConfig(host="localhost", port=5104))
        client.upload("notes.txt")

        # Several at once, each on its own connection
        results = client.upload_many(["a.txt", "b.png"])
    """

    def __init__(self, config: Optional[ClientConfig] = None):
        self.config = config or ClientConfig()
        self.config.validate()

    @staticmethod
    def preamble(file_name: str) -> bytes:
        """
        The request line announcing an upload.

        Raises:
            ValueError: If the name is empty or contains whitespace; the
                        server takes exactly one token after the verb.
        """
        if not file_name or any(c.isspace() for c in file_name):
            raise ValueError(f"File name can't be sent on a request line: {file_name!r}")
        return f"UPLOAD {file_name}\r\n".encode("utf-8")

    def upload(self, path: str | Path, remote_name: Optional[str] = None) -> int:
        """
        Upload one file on a fresh connection.

        Args:
            path: Local file to send.
            remote_name: Name to store it under. Defaults to the file's
                         base name.

        Returns:
            Number of file bytes sent.

        Raises:
            OSError: If the file can't be read or the connection fails.
            ValueError: If the name contains whitespace.
        """
        path = Path(path)
        preamble = self.preamble(remote_name or path.name)

        sent = 0
        with open(path, "rb") as f:
            with socket.create_connection(
                (self.config.host, self.config.port),
                timeout=self.config.connect_timeout,
            ) as sock:
                # The timeout only bounds connect(); the transfer itself may
                # legitimately take as long as it takes
                sock.settimeout(None)

                sock.sendall(preamble)
                for chunk in iter(lambda: f.read(self.config.chunk_size), b""):
                    sock.sendall(chunk)
                    sent += len(chunk)

                sock.shutdown(socket.SHUT_WR)

                # Server sends nothing back; EOF means it has stored the file
                while sock.recv(1024):
                    pass

        logger.info(f"Uploaded {path} ({sent} bytes)")
        return sent

    def upload_many(self, paths: Iterable[str | Path]) -> Dict[str, Future]:
        """
        Upload several files concurrently, one connection each.

        Returns:
            Mapping of path → completed Future (result: bytes sent, or
            the exception the upload raised).
        """
        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = {str(p): executor.submit(self.upload, p) for p in paths}
        return futures


def check_uploadable(path: Path) -> Optional[str]:
    """
    Return a reason the file can't be uploaded, or None if it can.

    Files must exist and have a determinable content type.
    """
    if not path.is_file():
        return f"No such file: {path}"
    if get_mime_type(path) is None:
        return f"Invalid file format: {path.name} (content type cannot be determined)"
    return None


class UploadShell:
    """
    Line-oriented command loop: reads `upload <fileName>` commands and
    dispatches each accepted file to a background upload.

    Args:
        client: Client used for the uploads.
        executor: Runs uploads concurrently.
        stdin / stdout: Streams for commands and messages.
        base_dir: Directory file names are resolved against.
    """

    VERB = "upload"
    QUIT = ("quit", "exit")

    def __init__(
        self,
        client: UploadClient,
        executor: ThreadPoolExecutor,
        stdin: TextIO = sys.stdin,
        stdout: TextIO = sys.stdout,
        base_dir: str | Path = ".",
    ):
        self.client = client
        self.executor = executor
        self.stdin = stdin
        self.stdout = stdout
        self.base_dir = Path(base_dir)

    def _say(self, message: str) -> None:
        print(message, file=self.stdout, flush=True)

    def handle_command(self, line: str) -> Optional[Future]:
        """
        Handle one command line.

        Returns:
            The upload's Future if an upload was started, else None.
        """
        parts = line.split()
        if not parts:
            return None

        if len(parts) != 2 or parts[0].lower() != self.VERB:
            self._say(f"Invalid command: {line.strip()!r} (expected: {self.VERB} <fileName>)")
            return None

        path = self.base_dir / parts[1]
        reason = check_uploadable(path)
        if reason:
            self._say(reason)
            return None

        future = self.executor.submit(self.client.upload, path)
        future.add_done_callback(lambda f, name=path.name: self._report(name, f))
        return future

    def _report(self, name: str, future: Future) -> None:
        error = future.exception()
        if error is None:
            self._say(f"File {name} uploaded successfully.")
        else:
            self._say(f"Error during file upload of {name}: {error}")

    def run(self) -> None:
        """Read commands until EOF or quit."""
        for line in self.stdin:
            if line.strip().lower() in self.QUIT:
                break
            self.handle_command(line)


def main(argv: Optional[list] = None) -> int:
    """Command-line entry point for the upload client."""
    try:
        defaults = ClientConfig.from_env()
    except ValueError as e:
        print(f"Error: invalid FILESHARE_* environment value: {e}", file=sys.stderr)
        return 2

    parser = argparse.ArgumentParser(
        prog="fileshare-upload",
        description="Upload files to a fileshare server",
    )
    parser.add_argument("files", nargs="*", help="Files to upload; omit for interactive mode")
    parser.add_argument("--host", "-H", default=defaults.host, help=f"Server host (default: {defaults.host})")
    parser.add_argument("--port", "-p", type=int, default=defaults.port, help=f"Server port (default: {defaults.port})")
    parser.add_argument(
        "--chunk-size", type=int, default=defaults.chunk_size,
        help=f"Bytes per send (default: {defaults.chunk_size})",
    )
    parser.add_argument(
        "--workers", "-w", type=int, default=defaults.max_workers,
        help=f"Concurrent uploads (default: {defaults.max_workers})",
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    parser.add_argument("--version", "-v", action="version", version=f"fileshare {__version__}")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    config = ClientConfig(
        host=args.host,
        port=args.port,
        chunk_size=args.chunk_size,
        max_workers=args.workers,
    )

    try:
        client = UploadClient(config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.files:
        failed = 0
        accepted = []
        for name in args.files:
            reason = check_uploadable(Path(name))
            if reason:
                print(reason, file=sys.stderr)
                failed += 1
            else:
                accepted.append(name)

        for name, future in client.upload_many(accepted).items():
            error = future.exception()
            if error is None:
                print(f"File {Path(name).name} uploaded successfully.")
            else:
                print(f"Error during file upload of {name}: {error}", file=sys.stderr)
                failed += 1
        return 1 if failed else 0

    with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
        UploadShell(client, executor).run()
    return 0


if __name__ == "__main__":
    sys.exit(main())
