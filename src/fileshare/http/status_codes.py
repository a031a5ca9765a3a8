"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The file server speaks a deliberately tiny subset of HTTP. Only two status
codes ever go on the wire:

    HTTP/1.0 200 OK          ← file content, directory listing, attachment
    HTTP/1.0 404 Not Found   ← everything that failed to match

There is no 400, 403 or 500: malformed requests, paths outside the root and
unknown methods all collapse to 404 so clients see one failure shape.

Using an IntEnum (rather than bare ints) gives us:
- status == 200 comparisons still work
- a .phrase for the status line
- readable logs ("HTTPStatus.NOT_FOUND" instead of 404)

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """Status codes emitted by the file server."""

    OK = 200
    NOT_FOUND = 404

    @property
    def phrase(self) -> str:
        """
        Reason phrase for the status line.

            HTTP/1.0 404 Not Found
                         ─────────
        """
        return _STATUS_PHRASES.get(self, "Unknown")


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.NOT_FOUND: "Not Found",
}
