"""
=============================================================================
UPLOAD RECEIVER
=============================================================================

Stores a file pushed to the server with the non-standard UPLOAD verb:

    UPLOAD note.txt\r\n
    <raw file bytes ...>
    <client half-closes: FIN>

There is NO length field. The end of the file is the moment the client
shuts down its write side, which recv() reports as b"" (see
core/connection.py for why b"" can't mean anything else on a blocking
socket). No acknowledgement is sent back; the server just closes.

=============================================================================
WHERE THE BYTES GO
=============================================================================

    upload_dir/                     created on demand
    ├── note.txt.k3j9x0ab.part      ← while receiving (unique per upload)
    └── note.txt                    ← os.replace() once the stream ends

Writing to a private temporary file and renaming it at the end gives two
guarantees for concurrent uploads of the SAME name:

    1. Their bytes never interleave inside one file.
    2. Whichever upload finishes last wins; readers only ever see a
       complete file under the final name.

Uploads of different names are completely independent.

=============================================================================
FILE NAME CONTAINMENT
=============================================================================

The name comes straight off the wire. It is only accepted if it names a
plain file directly inside upload_dir:

    note.txt          ✓
    .hidden           ✓
    ../../etc/passwd  ✗  UploadRejected
    sub/dir.txt       ✗  UploadRejected
    ..                ✗  UploadRejected

A rejected upload stores nothing. The client is not told (the protocol has
no response for UPLOAD); the rejection is logged.

=============================================================================
FAILURES
=============================================================================

An I/O error mid-stream (reset, timeout, disk full) aborts the upload. The
partially written .part file is LEFT ON DISK; there is no cleanup and no
rollback. The final name is untouched.

=============================================================================
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from ..core.connection import Connection


logger = logging.getLogger(__name__)


DEFAULT_CHUNK_SIZE = 32

PART_SUFFIX = ".part"


class UploadRejected(ValueError):
    """The requested upload name would escape the upload directory."""


@dataclass(frozen=True)
class UploadTarget:
    """Where an upload ends up."""

    file_name: str
    destination_directory: Path

    @property
    def path(self) -> Path:
        return self.destination_directory / self.file_name


def resolve_upload_target(file_name: str, upload_dir: Path) -> UploadTarget:
    """
    Validate an upload name and pair it with the upload directory.

    Raises:
        UploadRejected: If file_name is empty, "." or "..", contains a
                        path separator or a control character (NUL,
                        CR, ...), or otherwise resolves to anything but
                        a direct child of upload_dir.
    """
    if not file_name or file_name in (".", ".."):
        raise UploadRejected(f"Invalid upload name: {file_name!r}")

    if "/" in file_name or "\\" in file_name:
        raise UploadRejected(f"Upload name must not contain path separators: {file_name!r}")

    if any(ord(c) < 0x20 or ord(c) == 0x7F for c in file_name):
        raise UploadRejected(f"Upload name must not contain control characters: {file_name!r}")

    upload_dir = upload_dir.resolve()
    if (upload_dir / file_name).resolve().parent != upload_dir:
        raise UploadRejected(f"Upload name escapes the upload directory: {file_name!r}")

    return UploadTarget(file_name=file_name, destination_directory=upload_dir)


class UploadReceiver:
    """
    Copies the rest of a connection's input stream into a file.

    Args:
        upload_dir: Directory uploads are stored in. Created lazily.
        chunk_size: Maximum bytes per recv() while streaming.
    """

    def __init__(self, upload_dir: Path, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")
        self.upload_dir = Path(upload_dir)
        self.chunk_size = chunk_size

    def receive(self, conn: Connection, file_name: str) -> int:
        """
        Store everything the peer sends until it half-closes.

        Returns:
            Number of bytes stored.

        Raises:
            UploadRejected: If file_name fails containment. Nothing is
                            read or written.
            OSError: On any I/O error. The partial .part file is left
                     behind.
        """
        target = resolve_upload_target(file_name, self.upload_dir)
        target.destination_directory.mkdir(parents=True, exist_ok=True)

        fd, part_name = tempfile.mkstemp(
            prefix=f"{target.file_name}.",
            suffix=PART_SUFFIX,
            dir=target.destination_directory,
        )

        received = 0
        with os.fdopen(fd, "wb") as part:
            for chunk in conn.iter_chunks(self.chunk_size):
                part.write(chunk)
                received += len(chunk)

        # Atomic on POSIX and Windows; last finished upload wins
        os.replace(part_name, target.path)

        logger.info(f"[{conn.id}] File {target.file_name} uploaded successfully ({received} bytes)")
        return received
