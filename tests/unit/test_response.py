"""
Unit tests for response serialization.
"""

from datetime import datetime, timezone

from fileshare.http.response import (
    NOT_FOUND_BODY,
    HTTPResponse,
    attachment_head,
    format_http_date,
    html_head,
    not_found_response,
)
from fileshare.http.status_codes import HTTPStatus


class TestHTTPStatus:
    """Tests for the status code enum."""

    def test_phrases(self):
        assert HTTPStatus.OK.phrase == "OK"
        assert HTTPStatus.NOT_FOUND.phrase == "Not Found"

    def test_compares_as_int(self):
        assert HTTPStatus.NOT_FOUND == 404
        assert int(HTTPStatus.OK) == 200


class TestHTTPResponse:
    """Tests for HTTPResponse."""

    def test_status_line(self):
        """Responses are HTTP/1.0."""
        response = HTTPResponse(status=HTTPStatus.NOT_FOUND)
        assert response.status_line == "HTTP/1.0 404 Not Found"

    def test_head_bytes_keeps_header_order(self):
        response = HTTPResponse(headers={"B": "2", "A": "1"})

        assert response.head_bytes() == b"HTTP/1.0 200 OK\r\nB: 2\r\nA: 1\r\n\r\n"

    def test_no_automatic_content_length(self):
        """Bodies are delimited by close, not by length."""
        response = html_head().set_body("<html></html>")
        assert b"Content-Length" not in response.to_bytes()

    def test_set_body_encodes_str(self):
        response = HTTPResponse().set_body("héllo")
        assert response.body == "héllo".encode("utf-8")

    def test_to_bytes_appends_body(self):
        response = HTTPResponse().set_body(b"xyz")
        assert response.to_bytes() == response.head_bytes() + b"xyz"


class TestNotFound:
    """Tests for the fixed 404 page."""

    def test_exact_bytes(self):
        expected = (
            b"HTTP/1.0 404 Not Found\r\n"
            b"Content-Type: text/html\r\n"
            b"\r\n"
            b"<html><body><h1>404: Page Not Found</h1></body></html>\r\n"
        )
        assert not_found_response().to_bytes() == expected

    def test_body_constant(self):
        assert not_found_response().body == (NOT_FOUND_BODY + "\r\n").encode()


class TestAttachmentHead:
    """Tests for binary download heads."""

    def test_headers(self):
        head = attachment_head("application/zip", 512, "archive.zip", "Test/1.0")

        assert head.status == HTTPStatus.OK
        assert list(head.headers) == [
            "Server", "Date", "Content-Type", "Content-Length", "Content-Disposition",
        ]
        assert head.headers["Server"] == "Test/1.0"
        assert head.headers["Content-Type"] == "application/zip"
        assert head.headers["Content-Length"] == "512"
        assert head.headers["Content-Disposition"] == 'attachment; filename="archive.zip"'

    def test_zero_length(self):
        head = attachment_head("application/octet-stream", 0, "empty")
        assert head.headers["Content-Length"] == "0"

    def test_quotes_in_filename_escaped(self):
        head = attachment_head("application/zip", 1, 'a"b\\c.zip')
        assert head.headers["Content-Disposition"] == 'attachment; filename="a\\"b\\\\c.zip"'


class TestHTTPDate:
    """Tests for HTTP-date formatting."""

    def test_format(self):
        dt = datetime(2024, 6, 15, 10, 0, 5, tzinfo=timezone.utc)
        assert format_http_date(dt) == "Sat, 15 Jun 2024 10:00:05 GMT"
