"""
Unit tests for upload storage.
"""

import socket

import pytest

from fileshare.handlers.upload import (
    PART_SUFFIX,
    UploadReceiver,
    UploadRejected,
    resolve_upload_target,
)


class BrokenConnection:
    """Stands in for a Connection whose peer resets mid-upload."""

    id = "broken"

    def __init__(self, before_reset: bytes):
        self.before_reset = before_reset

    def iter_chunks(self, chunk_size):
        yield self.before_reset
        raise ConnectionResetError("peer reset")


class TestResolveUploadTarget:
    """Tests for upload name containment."""

    def test_plain_name(self, tmp_path):
        target = resolve_upload_target("notes.txt", tmp_path)

        assert target.file_name == "notes.txt"
        assert target.destination_directory == tmp_path.resolve()
        assert target.path == tmp_path.resolve() / "notes.txt"

    @pytest.mark.parametrize("name", [
        "",
        ".",
        "..",
        "../escape.txt",
        "sub/file.txt",
        "/etc/passwd",
        "..\\escape.txt",
        "nul\x00.txt",
        "bad\rname.txt",
        "line\nbreak.txt",
        "esc\x1b.txt",
        "del\x7f.txt",
    ])
    def test_rejected_names(self, tmp_path, name):
        with pytest.raises(UploadRejected):
            resolve_upload_target(name, tmp_path)

    def test_rejected_is_value_error(self):
        assert issubclass(UploadRejected, ValueError)


class TestUploadReceiver:
    """Tests for streaming an upload body to disk."""

    def test_stores_body(self, conn_pair, tmp_path):
        conn, client = conn_pair
        payload = b"0123456789" * 10
        client.sendall(payload)
        client.shutdown(socket.SHUT_WR)

        upload_dir = tmp_path / "uploaded"
        received = UploadReceiver(upload_dir).receive(conn, "note.txt")

        assert received == 100
        assert (upload_dir / "note.txt").read_bytes() == payload

    def test_creates_directory_lazily(self, conn_pair, tmp_path):
        conn, client = conn_pair
        client.shutdown(socket.SHUT_WR)

        upload_dir = tmp_path / "a" / "b"
        assert not upload_dir.exists()

        UploadReceiver(upload_dir).receive(conn, "empty.bin")

        assert (upload_dir / "empty.bin").read_bytes() == b""

    def test_leftover_from_request_line_is_stored(self, conn_pair, tmp_path):
        """Body bytes read together with the request line are kept."""
        conn, client = conn_pair
        client.sendall(b"UPLOAD x.bin\r\nfirst-bytes-")
        client.sendall(b"rest")
        client.shutdown(socket.SHUT_WR)

        conn.read_line()
        UploadReceiver(tmp_path).receive(conn, "x.bin")

        assert (tmp_path / "x.bin").read_bytes() == b"first-bytes-rest"

    def test_overwrites_existing(self, conn_pair, tmp_path):
        conn, client = conn_pair
        (tmp_path / "note.txt").write_bytes(b"old")
        client.sendall(b"new")
        client.shutdown(socket.SHUT_WR)

        UploadReceiver(tmp_path).receive(conn, "note.txt")

        assert (tmp_path / "note.txt").read_bytes() == b"new"
        assert not list(tmp_path.glob("*" + PART_SUFFIX))

    def test_rejected_name_reads_nothing(self, conn_pair, tmp_path):
        conn, client = conn_pair
        client.sendall(b"payload")

        with pytest.raises(UploadRejected):
            UploadReceiver(tmp_path).receive(conn, "../evil.txt")

        assert conn.bytes_received == 0
        assert list(tmp_path.iterdir()) == []

    def test_reset_leaves_part_file(self, tmp_path):
        """An aborted upload never replaces the final file."""
        (tmp_path / "note.txt").write_bytes(b"previous")

        with pytest.raises(ConnectionResetError):
            UploadReceiver(tmp_path).receive(BrokenConnection(b"half"), "note.txt")

        assert (tmp_path / "note.txt").read_bytes() == b"previous"
        parts = list(tmp_path.glob("note.txt.*" + PART_SUFFIX))
        assert len(parts) == 1
        assert parts[0].read_bytes() == b"half"

    def test_invalid_chunk_size(self, tmp_path):
        with pytest.raises(ValueError):
            UploadReceiver(tmp_path, chunk_size=0)
