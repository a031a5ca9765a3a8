"""
=============================================================================
DIRECTORY LISTING
=============================================================================

Renders a directory's immediate children as a navigable HTML list:

    HTTP/1.0 200 OK
    Content-Type: text/html

    <html><body><h1>Directory Listing</h1><ul>
    <li><a href="/docs/images"><b><i>images</i></b></a></li>
    <li><a href="/docs/readme.txt">readme.txt</a></li>
    </ul></body></html>

Every href points straight back into the dispatcher, so clicking through
subdirectories keeps producing listings (the tree is navigable
recursively). Subdirectories get a bold-italic label; files a plain one.

=============================================================================
HREF CONSTRUCTION
=============================================================================

    parent path    child      href
    ───────────    ───────    ─────────────────
    /              a.txt      /a.txt            (no doubled "/")
    /docs          a.txt      /docs/a.txt       (exactly one "/")
    /docs/         a.txt      /docs/a.txt       (trailing "/" reused)

Hrefs are percent-encoded so names with spaces or "#" survive the round
trip; the request parser decodes them again.

=============================================================================
"""

import html
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List
from urllib.parse import quote

from ..core.connection import Connection
from ..http.response import html_head
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)


PATH_SEPARATOR = "/"


def build_href(parent_path: str, name: str) -> str:
    """
    Join a request path and a child name with exactly one separator.

    Examples:
        >>> build_href("/", "a.txt")
        '/a.txt'
        >>> build_href("/docs", "a.txt")
        '/docs/a.txt'
    """
    if parent_path.endswith(PATH_SEPARATOR):
        return parent_path + name
    return parent_path + PATH_SEPARATOR + name


@dataclass(frozen=True)
class DirectoryEntry:
    """One child of a listed directory."""

    display_name: str
    href: str
    is_dir: bool = False

    def to_html(self) -> str:
        label = html.escape(self.display_name)
        if self.is_dir:
            label = f"<b><i>{label}</i></b>"
        href = quote(self.href, safe="/")
        return f'<li><a href="{href}">{label}</a></li>'


class DirectoryLister:
    """
    Writes a directory listing to a connection.

    Stateless; one instance serves every connection.
    """

    TITLE = "Directory Listing"

    def list_entries(self, directory: Path, request_path: str) -> List[DirectoryEntry]:
        """
        Build the entries for a directory's children, sorted by name.

        Raises:
            OSError: If the directory can't be read.
        """
        return [
            DirectoryEntry(
                display_name=child.name,
                href=build_href(request_path, child.name),
                is_dir=child.is_dir(),
            )
            for child in sorted(directory.iterdir(), key=lambda p: p.name)
        ]

    def render(self, entries: List[DirectoryEntry]) -> str:
        lines = [f"<html><body><h1>{self.TITLE}</h1><ul>"]
        lines.extend(entry.to_html() for entry in entries)
        lines.append("</ul></body></html>")
        return "\r\n".join(lines) + "\r\n"

    def respond(self, conn: Connection, directory: Path, request_path: str) -> HTTPStatus:
        """
        Send a 200 listing for directory.

        The children are read before anything is written, so an unreadable
        directory raises OSError with the connection still untouched.
        """
        entries = self.list_entries(directory, request_path)

        conn.send(html_head(HTTPStatus.OK).head_bytes())
        conn.send(self.render(entries).encode("utf-8"))

        logger.debug(f"[{conn.id}] Listed {len(entries)} entries of {request_path}")
        return HTTPStatus.OK
