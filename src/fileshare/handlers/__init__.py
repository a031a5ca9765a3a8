"""
=============================================================================
HANDLERS MODULE
=============================================================================

The three things a request can turn into once the dispatcher has parsed
its request line and resolved its target:

    ┌─────────────────────────────────────────────────────────────────────┐
    │ Request                      │ Handler                              │
    ├─────────────────────────────────────────────────────────────────────┤
    │ GET <directory>              │ DirectoryLister  (listing.py)        │
    │ GET <file>                   │ FileResponder    (files.py)          │
    │ UPLOAD <name> + bytes        │ UploadReceiver   (upload.py)         │
    └─────────────────────────────────────────────────────────────────────┘

Handlers hold configuration only (chunk size, upload directory). They keep
no per-request state, so one instance is shared by every connection
thread without locking. Each writes directly to the Connection it is given
(or, for uploads, to a new file).

=============================================================================
"""

from .listing import DirectoryLister, DirectoryEntry, build_href
from .files import FileResponder
from .upload import UploadReceiver, UploadTarget, UploadRejected, resolve_upload_target

__all__ = [
    "DirectoryLister",
    "DirectoryEntry",
    "build_href",
    "FileResponder",
    "UploadReceiver",
    "UploadTarget",
    "UploadRejected",
    "resolve_upload_target",
]
