"""
=============================================================================
ACCESS LOGGING
=============================================================================

One log line per connection, written to the "fileshare.access" logger
after the request has been handled (or has failed).

    TEXT FORMAT (default):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ 127.0.0.1 - - [10/Jun/2024:10:55:36 +0000] "GET /notes.txt" 200     │
    │ 1234 5.21ms                                                         │
    └─────────────────────────────────────────────────────────────────────┘

    JSON FORMAT (log_format="json"):
    ┌─────────────────────────────────────────────────────────────────────┐
    │ {"request_id": "a1b2c3d4", "method": "UPLOAD", "target": "a.png",  │
    │  "client_ip": "127.0.0.1", "status_code": 0, "bytes_sent": 0,      │
    │  "bytes_received": 20480, "duration_ms": 12.4, "timestamp": ...}    │
    └─────────────────────────────────────────────────────────────────────┘

UPLOAD requests get no response, so their status_code is 0; the
interesting number for them is bytes_received.

The logger is namespaced so it can be routed separately:

    logging.getLogger("fileshare.access").addHandler(file_handler)

=============================================================================
"""

import json
import logging
import time
from dataclasses import dataclass, asdict


logger = logging.getLogger("fileshare.access")


@dataclass
class AccessLog:
    """Structured log entry for one connection's request."""

    request_id: str
    method: str
    target: str
    client_ip: str
    status_code: int
    bytes_sent: int
    bytes_received: int
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        entry = asdict(self)
        entry["duration_ms"] = round(self.duration_ms, 2)
        return entry

    def to_text(self) -> str:
        """Apache-style access line."""
        status = self.status_code or "-"
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.target}" {status} '
            f'{self.bytes_sent} {self.duration_ms:.2f}ms'
        )


def now_timestamp() -> str:
    return time.strftime("%d/%b/%Y:%H:%M:%S %z")


def emit(entry: AccessLog, log_format: str = "text", level: int = logging.INFO) -> None:
    """Write an entry to the access logger in the configured format."""
    if log_format == "json":
        logger.log(level, json.dumps(entry.to_dict()))
    else:
        logger.log(level, entry.to_text())
