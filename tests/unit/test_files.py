"""
Unit tests for the FileResponder rendering branches.
"""

import base64
import socket

import pytest

from fileshare.handlers.files import FileResponder
from fileshare.http.status_codes import HTTPStatus

from conftest import PNG_BYTES, recv_all, split_response


def serve(conn_pair, path, responder=None):
    """Run the responder on path and return what the client received."""
    conn, client = conn_pair
    status = (responder or FileResponder()).respond(conn, path)
    conn.socket.shutdown(socket.SHUT_WR)
    client.shutdown(socket.SHUT_WR)
    assert status == HTTPStatus.OK
    return split_response(recv_all(client))


class TestTextFiles:
    """Text files are shown inside a <pre> block."""

    def test_page_layout(self, conn_pair, server_root):
        status_line, headers, body = serve(conn_pair, server_root / "notes.txt")

        assert status_line == "HTTP/1.0 200 OK"
        assert headers == {"Content-Type": "text/html"}
        assert body == (
            b"<html><h1>File Content</h1><body>\r\n"
            b"<pre><b>\r\n"
            b"first line\n"
            b"second &lt;line&gt;\n"
            b"</b></pre>\r\n"
            b"</body></html>\r\n"
        )

    def test_missing_final_newline_added(self, conn_pair, tmp_path):
        path = tmp_path / "short.txt"
        path.write_bytes(b"no newline")

        _, _, body = serve(conn_pair, path)
        assert b"<pre><b>\r\nno newline\n</b></pre>\r\n" in body

    def test_crlf_lines_preserved(self, conn_pair, tmp_path):
        path = tmp_path / "dos.txt"
        path.write_bytes(b"one\r\ntwo\r\n")

        _, _, body = serve(conn_pair, path)
        assert b"<pre><b>\r\none\r\ntwo\r\n</b></pre>" in body

    def test_empty_text_file(self, conn_pair, tmp_path):
        path = tmp_path / "empty.txt"
        path.write_bytes(b"")

        _, _, body = serve(conn_pair, path)
        assert b"<pre><b>\r\n</b></pre>\r\n" in body


class TestImageFiles:
    """Images are inlined as base64 data URIs."""

    def test_data_uri(self, conn_pair, server_root):
        _, headers, body = serve(conn_pair, server_root / "images" / "pixel.png")

        encoded = base64.b64encode(PNG_BYTES)
        assert headers == {"Content-Type": "text/html"}
        assert body == (
            b"<html><h1>File Content</h1><body>\r\n"
            b'<img src="data:image/png;base64,' + encoded + b'" alt="Image" />\r\n'
            b"</body></html>\r\n"
        )


class TestAttachments:
    """Everything else downloads as an attachment."""

    @pytest.mark.parametrize("size", [0, 1, 31, 32, 33, 1000])
    def test_content_length_matches_body(self, conn_pair, tmp_path, size):
        path = tmp_path / "data.zip"
        payload = bytes(i % 251 for i in range(size))
        path.write_bytes(payload)

        _, headers, body = serve(conn_pair, path)

        assert headers["Content-Length"] == str(size)
        assert body == payload

    def test_headers(self, conn_pair, server_root):
        _, headers, _ = serve(conn_pair, server_root / "archive.zip", FileResponder(server_name="Test/9"))

        assert headers["Server"] == "Test/9"
        assert headers["Content-Type"] == "application/zip"
        assert headers["Content-Disposition"] == 'attachment; filename="archive.zip"'
        assert headers["Date"].endswith("GMT")

    def test_unknown_type_is_octet_stream(self, conn_pair, server_root):
        _, headers, body = serve(conn_pair, server_root / "blob")

        assert headers["Content-Type"] == "application/octet-stream"
        assert body == b"\x00\x01\x02"

    def test_json_is_downloaded(self, conn_pair, tmp_path):
        """application/* is not inlined, even when it is human readable."""
        path = tmp_path / "data.json"
        path.write_text('{"a": 1}')

        _, headers, body = serve(conn_pair, path)
        assert headers["Content-Type"] == "application/json"
        assert body == b'{"a": 1}'

    def test_large_chunk_size_same_output(self, conn_pair, server_root):
        _, _, body = serve(conn_pair, server_root / "archive.zip", FileResponder(chunk_size=65536))
        assert body == (server_root / "archive.zip").read_bytes()


class TestErrors:
    """Failures before anything is written leave the connection clean."""

    def test_missing_file_raises_before_writing(self, conn_pair, tmp_path):
        conn, _ = conn_pair

        with pytest.raises(OSError):
            FileResponder().respond(conn, tmp_path / "gone.txt")
        assert conn.bytes_sent == 0

    def test_invalid_chunk_size(self):
        with pytest.raises(ValueError):
            FileResponder(chunk_size=0)
