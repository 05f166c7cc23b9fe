"""In-memory BlobStore for tests and throwaway runs."""

from __future__ import annotations

from typing import Dict, List, Optional

from flatfile.engine.errors import AlreadyExistsError, NotFoundError


class InMemoryBlobStore:
    """Dict-backed store; enumeration order is insertion order."""

    def __init__(self, files: Optional[Dict[str, bytes]] = None):
        self._files: Dict[str, bytes] = dict(files or {})

    def exists(self, name: str) -> bool:
        return name in self._files

    def read(self, name: str) -> bytes:
        try:
            return self._files[name]
        except KeyError:
            raise NotFoundError(f"File not found: {name}", resource=name) from None

    def write(self, name: str, data: bytes, *, exclusive: bool = False) -> int:
        if exclusive and name in self._files:
            raise AlreadyExistsError(f"File already exists: {name}", resource=name)
        self._files[name] = bytes(data)
        return len(data)

    def delete(self, name: str) -> None:
        if self._files.pop(name, None) is None:
            raise NotFoundError(f"File not found: {name}", resource=name)

    def list(self) -> List[str]:
        return list(self._files)

    def __repr__(self) -> str:
        return f"<InMemoryBlobStore files={len(self._files)}>"
