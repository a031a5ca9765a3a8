"""
=============================================================================
FILESHARE - Hybrid File-Transfer / HTTP Server
=============================================================================

A small server built on raw Python sockets that does three things over
one TCP port:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   GET /some/dir  HTTP/1.1   →  HTML directory listing               │
    │   GET /notes.txt HTTP/1.1   →  text shown in a <pre> block          │
    │   GET /cat.png   HTTP/1.1   →  image inlined as a base64 data URI   │
    │   GET /report.pdf HTTP/1.1  →  attachment download                  │
    │   UPLOAD notes.txt + bytes  →  file stored under uploaded/          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Browsers can use the GET side directly. UPLOAD is not HTTP; it is spoken by
the bundled client (fileshare.client).

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    fileshare/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m fileshare)
    ├── server.py            # FileServer: thread per connection
    ├── dispatcher.py        # Request line → handler
    ├── config.py            # ServerConfig / ClientConfig
    ├── access_log.py        # One access-log line per request
    ├── client.py            # Upload client + interactive shell
    ├── core/
    │   ├── socket_server.py # Listening socket, accept loop
    │   └── connection.py    # Buffered line reads, streaming, close
    ├── http/
    │   ├── request.py       # Request line parsing
    │   ├── response.py      # Response heads, 404 page
    │   ├── status_codes.py  # 200 / 404
    │   └── mime_types.py    # MIME detection and classification
    └── handlers/
        ├── listing.py       # Directory listings
        ├── files.py         # File rendering (text / image / attachment)
        └── upload.py        # Upload storage

=============================================================================
QUICK START
=============================================================================

    from fileshare import FileServer, ServerConfig

    server = FileServer(ServerConfig(root_dir="./public", port=5104))
    server.run()

    # elsewhere
    from fileshare.client import UploadClient
    from fileshare.config import ClientConfig

    UploadClient(ClientConfig(port=5104)).upload("notes.txt")
    # → ./public/uploaded/notes.txt, viewable at /uploaded/notes.txt

=============================================================================
"""

__version__ = "1.0.0"

from .server import FileServer, create_server
from .config import ServerConfig, ClientConfig

__all__ = ["FileServer", "create_server", "ServerConfig", "ClientConfig", "__version__"]
