"""
Unit tests for directory listings.
"""

import socket

import pytest

from fileshare.handlers.listing import DirectoryEntry, DirectoryLister, build_href
from fileshare.http.status_codes import HTTPStatus

from conftest import recv_all, split_response


class TestBuildHref:
    """Tests for joining request paths and child names."""

    @pytest.mark.parametrize("parent,name,expected", [
        ("/", "a.txt", "/a.txt"),
        ("/docs", "a.txt", "/docs/a.txt"),
        ("/docs/", "a.txt", "/docs/a.txt"),
        ("/a/b", "c", "/a/b/c"),
    ])
    def test_exactly_one_separator(self, parent, name, expected):
        assert build_href(parent, name) == expected


class TestDirectoryEntry:
    """Tests for rendering one entry."""

    def test_file_entry(self):
        entry = DirectoryEntry("a.txt", "/docs/a.txt")
        assert entry.to_html() == '<li><a href="/docs/a.txt">a.txt</a></li>'

    def test_directory_entry_is_bold_italic(self):
        entry = DirectoryEntry("images", "/images", is_dir=True)
        assert entry.to_html() == '<li><a href="/images"><b><i>images</i></b></a></li>'

    def test_special_characters(self):
        """Hrefs are percent-encoded and labels HTML-escaped."""
        entry = DirectoryEntry("a <b> #1.txt", "/a <b> #1.txt")
        assert entry.to_html() == (
            '<li><a href="/a%20%3Cb%3E%20%231.txt">a &lt;b&gt; #1.txt</a></li>'
        )


class TestDirectoryLister:
    """Tests for listing a whole directory."""

    def test_entries_sorted_with_kinds(self, server_root):
        entries = DirectoryLister().list_entries(server_root, "/")

        assert [e.display_name for e in entries] == ["archive.zip", "blob", "images", "notes.txt"]
        assert [e.is_dir for e in entries] == [False, False, True, False]
        assert entries[2].href == "/images"

    def test_nested_hrefs(self, server_root):
        entries = DirectoryLister().list_entries(server_root / "images", "/images")
        assert entries == [DirectoryEntry("pixel.png", "/images/pixel.png", False)]

    def test_render(self):
        page = DirectoryLister().render([
            DirectoryEntry("sub", "/sub", True),
            DirectoryEntry("a.txt", "/a.txt"),
        ])

        assert page == (
            "<html><body><h1>Directory Listing</h1><ul>\r\n"
            '<li><a href="/sub"><b><i>sub</i></b></a></li>\r\n'
            '<li><a href="/a.txt">a.txt</a></li>\r\n'
            "</ul></body></html>\r\n"
        )

    def test_render_empty_directory(self):
        page = DirectoryLister().render([])
        assert page == "<html><body><h1>Directory Listing</h1><ul>\r\n</ul></body></html>\r\n"

    def test_respond(self, conn_pair, server_root):
        conn, client = conn_pair

        status = DirectoryLister().respond(conn, server_root / "images", "/images/")
        conn.socket.shutdown(socket.SHUT_WR)

        status_line, headers, body = split_response(recv_all(client))
        assert status == HTTPStatus.OK
        assert status_line == "HTTP/1.0 200 OK"
        assert headers == {"Content-Type": "text/html"}
        assert b'<a href="/images/pixel.png">pixel.png</a>' in body

    def test_unreadable_directory_writes_nothing(self, conn_pair, tmp_path):
        conn, _ = conn_pair

        with pytest.raises(OSError):
            DirectoryLister().respond(conn, tmp_path / "missing", "/missing")
        assert conn.bytes_sent == 0
