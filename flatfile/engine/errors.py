"""
FlatFile Error Hierarchy — Structured exceptions mapped to HTTP status codes.

Every error carries the resource name and kind it concerns, plus any
extra context, and serializes to JSON for the structured log files.
The API layer turns them into ``{"mensaje": ...}`` responses using
``status_code``.

Hierarchy:
    FlatFileError
    ├── ValidationError          — Missing / malformed input (422)
    ├── AlreadyExistsError       — Resource name already taken (409)
    ├── NotFoundError            — Resource not present in the store (404)
    ├── UnsupportedContentError  — Content fails kind validation (415)
    ├── StorageError             — Backing store I/O failure (500)
    └── ConfigError              — Invalid flatfile.yaml
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class FlatFileError(Exception):
    """
    Base error for all FlatFile failures.
    All context is serializable to JSON.
    """

    status_code: int = 500

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.resource: Optional[str] = context.get("resource")
        self.kind: Optional[str] = context.get("kind")
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to JSON-compatible dict for logging."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "status_code": self.status_code,
            "resource": self.resource,
            "kind": self.kind,
            "timestamp": self.timestamp,
            "context": {
                k: str(v) for k, v in self.context.items()
                if k not in ("resource", "kind")
            },
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        if self.kind:
            parts.append(f"kind={self.kind}")
        if self.resource:
            parts.append(f"resource={self.resource}")
        return " | ".join(parts)


class ValidationError(FlatFileError):
    """
    Required input missing or malformed (filename, content, unsafe names).
    Includes the offending field names when known.
    """

    status_code = 422

    def __init__(self, message: str, **context: Any):
        self.fields: Optional[list] = context.get("fields")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["fields"] = self.fields
        return d


class AlreadyExistsError(FlatFileError):
    """A create targeted a name that is already present in the store."""

    status_code = 409


class NotFoundError(FlatFileError):
    """The named resource is not present in the store."""

    status_code = 404


class UnsupportedContentError(FlatFileError):
    """Content is not valid for the resource kind (bad JSON, bad CSV)."""

    status_code = 415

    def __init__(self, message: str, **context: Any):
        self.reason: Optional[str] = context.get("reason")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["reason"] = self.reason
        return d


class StorageError(FlatFileError):
    """The backing store failed to read, write, list or delete."""

    status_code = 500

    def __init__(self, message: str, **context: Any):
        self.operation: Optional[str] = context.get("operation")
        super().__init__(message, **context)


class ConfigError(FlatFileError):
    """Configuration error — invalid flatfile.yaml."""
    pass
