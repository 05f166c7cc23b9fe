"""
FlatFile Resource Service — list/create/read/update/delete over a BlobStore.

Handles:
- Required-field and file-name validation
- Existence checks (409 on create, 404 on read/update/delete)
- Kind-specific content validation and read shaping (raw / json / csv)
- Structured audit logging of every operation

Every call re-queries the store; existence is never cached.

Validation order:
    create  fields (422) → exists (409) → content (415) → exclusive write
    update  fields (422) → missing (404) → content (415) → overwrite
"""

from __future__ import annotations

import logging
import os
from typing import Any, List, Optional, Union

from flatfile.engine.errors import (
    FlatFileError,
    AlreadyExistsError,
    NotFoundError,
    ValidationError,
)
from flatfile.engine.logging import file_operation_record, log
from flatfile.resources import messages
from flatfile.resources.kinds import KindHandler, ResourceKind, get_handler
from flatfile.resources.models import StoredFile
from flatfile.storage.base import BlobStore

logger = logging.getLogger("flatfile.resources.service")

KindLike = Union[ResourceKind, str]


class FileResourceService:
    """
    CRUD over flat files for the raw, json and csv kinds.

    The store is injected so tests can swap the local directory for an
    in-memory one.
    """

    def __init__(self, store: BlobStore, encoding: str = "utf-8"):
        self._store = store
        self._encoding = encoding

    @property
    def store(self) -> BlobStore:
        return self._store

    # -------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------

    def list(self, kind: KindLike) -> List[str]:
        """Names visible to *kind*, in store enumeration order."""
        handler = self._handler(kind)
        names = []
        for name in self._store.list():
            try:
                if handler.lists(name, lambda: self._load(handler, name)):
                    names.append(name)
            except NotFoundError:
                # Deleted between enumeration and read
                continue
        self._record("list", handler)
        return names

    def create(
        self,
        name: Optional[str],
        content: Optional[str],
        kind: KindLike,
    ) -> StoredFile:
        """
        Create a new file.

        Raises:
            ValidationError: name or content missing, or name unsafe.
            AlreadyExistsError: a file with that name exists.
            UnsupportedContentError: content invalid for the kind.
        """
        handler = self._handler(kind)
        try:
            self._require(handler, filename=name, content=content)
            self._check_name(handler, name)
            if self._store.exists(name):
                raise AlreadyExistsError(
                    messages.ALREADY_EXISTS, resource=name, kind=handler.kind.value
                )
            handler.check_create(name, content)
            size = self._store.write(
                name, handler.encode(name, content, self._encoding), exclusive=True
            )
        except FlatFileError as e:
            self._record("create", handler, name, error=e)
            raise

        logger.info(f"Created {handler.kind.value} file '{name}' ({size} bytes)")
        self._record("create", handler, name, size=size)
        return StoredFile(name=name, kind=handler.kind.value, size_bytes=size)

    def read(self, name: Optional[str], kind: KindLike) -> Any:
        """
        Read a file shaped for *kind*.

        raw returns the text, json the parsed value, csv a list of row
        mappings keyed by the header fields.

        Raises:
            NotFoundError: no file with that name.
            UnsupportedContentError: stored content invalid for the kind.
        """
        handler = self._handler(kind)
        try:
            self._require(handler, filename=name)
            self._check_name(handler, name)
            self._require_existing(handler, name)
            result = handler.shape(name, self._load(handler, name))
        except FlatFileError as e:
            self._record("read", handler, name, error=e)
            raise

        self._record("read", handler, name)
        return result

    def update(
        self,
        name: Optional[str],
        content: Optional[str],
        kind: KindLike,
    ) -> StoredFile:
        """
        Replace the whole content of an existing file. Never creates.

        Raises:
            ValidationError: content missing.
            NotFoundError: no file with that name.
            UnsupportedContentError: content invalid for the kind.
        """
        handler = self._handler(kind)
        try:
            self._require(handler, filename=name, content=content)
            self._check_name(handler, name)
            self._require_existing(handler, name)
            handler.check_update(name, content)
            size = self._store.write(name, handler.encode(name, content, self._encoding))
        except FlatFileError as e:
            self._record("update", handler, name, error=e)
            raise

        logger.info(f"Updated {handler.kind.value} file '{name}' ({size} bytes)")
        self._record("update", handler, name, size=size)
        return StoredFile(name=name, kind=handler.kind.value, size_bytes=size)

    def delete(self, name: Optional[str], kind: KindLike) -> None:
        """
        Remove a file.

        Raises:
            NotFoundError: no file with that name.
        """
        handler = self._handler(kind)
        try:
            self._require(handler, filename=name)
            self._check_name(handler, name)
            self._require_existing(handler, name)
            self._store.delete(name)
        except FlatFileError as e:
            self._record("delete", handler, name, error=e)
            raise

        logger.info(f"Deleted {handler.kind.value} file '{name}'")
        self._record("delete", handler, name)

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------

    @staticmethod
    def _handler(kind: KindLike) -> KindHandler:
        try:
            return get_handler(kind)
        except ValueError as e:
            raise ValidationError(
                f"Unknown resource kind: {kind!r}", kind=str(kind), fields=["kind"]
            ) from e

    @staticmethod
    def _require(handler: KindHandler, **fields: Optional[str]) -> None:
        missing = [field for field, value in fields.items() if not value]
        if missing:
            raise ValidationError(
                messages.MISSING_PARAMS,
                resource=fields.get("filename") or None,
                kind=handler.kind.value,
                fields=missing,
            )

    def _check_name(self, handler: KindHandler, name: str) -> None:
        """Names are bare file names inside the storage root."""
        if name in (".", "..") or os.path.basename(name) != name or "\\" in name or "\x00" in name:
            logger.warning(f"Rejected unsafe file name {name!r}")
            log(file_operation_record(
                "name_check", handler.kind.value, name,
                success=False, error_type="ValidationError", security=True,
            ))
            raise ValidationError(
                messages.INVALID_NAME,
                resource=name,
                kind=handler.kind.value,
                fields=["filename"],
            )

    def _require_existing(self, handler: KindHandler, name: str) -> None:
        if not self._store.exists(name):
            raise NotFoundError(messages.NOT_FOUND, resource=name, kind=handler.kind.value)

    def _load(self, handler: KindHandler, name: str) -> str:
        return handler.decode(name, self._store.read(name), self._encoding)

    @staticmethod
    def _record(
        operation: str,
        handler: KindHandler,
        name: Optional[str] = None,
        error: Optional[FlatFileError] = None,
        size: Optional[int] = None,
    ) -> None:
        log(file_operation_record(
            operation,
            handler.kind.value,
            name,
            success=error is None,
            error_type=error.error_type if error else None,
            size_bytes=size,
        ))

    def __repr__(self) -> str:
        return f"<FileResourceService store={self._store!r}>"
