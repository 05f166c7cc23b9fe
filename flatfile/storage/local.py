"""
Local directory BlobStore.

Physical storage:
    {storage.root}/{name}

Every call goes to the filesystem; nothing is cached.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Union

from flatfile.engine.errors import AlreadyExistsError, NotFoundError, StorageError

logger = logging.getLogger("flatfile.storage.local")


class LocalBlobStore:
    """Stores each resource as one file directly under ``root``."""

    def __init__(self, root: Union[str, Path], create_root: bool = True):
        self._root = Path(root)
        if create_root:
            self._root.mkdir(parents=True, exist_ok=True)
            logger.info(f"Ensured storage root exists: {self._root}")

    @property
    def root(self) -> Path:
        return self._root

    def _path(self, name: str) -> Path:
        if not name or name in (".", "..") or os.path.basename(name) != name or "\x00" in name:
            raise StorageError(f"Invalid file name: {name!r}", resource=name)
        return self._root / name

    def exists(self, name: str) -> bool:
        return self._path(name).is_file()

    def read(self, name: str) -> bytes:
        path = self._path(name)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise NotFoundError(f"File not found: {name}", resource=name) from e
        except OSError as e:
            raise StorageError(
                f"Failed to read {path}: {e}", resource=name, operation="read"
            ) from e

    def write(self, name: str, data: bytes, *, exclusive: bool = False) -> int:
        path = self._path(name)
        mode = "xb" if exclusive else "wb"
        try:
            with open(path, mode) as f:
                written = f.write(data)
        except FileExistsError as e:
            raise AlreadyExistsError(f"File already exists: {name}", resource=name) from e
        except OSError as e:
            raise StorageError(
                f"Failed to write {path}: {e}", resource=name, operation="write"
            ) from e
        logger.debug(f"Wrote {path} ({written} bytes)")
        return written

    def delete(self, name: str) -> None:
        path = self._path(name)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise NotFoundError(f"File not found: {name}", resource=name) from e
        except OSError as e:
            raise StorageError(
                f"Failed to delete {path}: {e}", resource=name, operation="delete"
            ) from e
        logger.debug(f"Deleted file: {path}")

    def list(self) -> List[str]:
        # os.scandir order is the directory's enumeration order
        try:
            with os.scandir(self._root) as entries:
                return [entry.name for entry in entries if entry.is_file()]
        except FileNotFoundError:
            return []
        except OSError as e:
            raise StorageError(
                f"Failed to list {self._root}: {e}", operation="list"
            ) from e

    def __repr__(self) -> str:
        return f"<LocalBlobStore root='{self._root}'>"
