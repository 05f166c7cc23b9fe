"""BlobStore protocol — the file persistence capability used by the service."""

from __future__ import annotations

from typing import List, Protocol, runtime_checkable


@runtime_checkable
class BlobStore(Protocol):
    """
    Flat name → bytes store (local directory, in-memory).

    Names are plain file names inside a single root; no nesting.
    """

    def exists(self, name: str) -> bool:
        """True if a file called *name* is present."""
        ...

    def read(self, name: str) -> bytes:
        """Return the content of *name*. Raises NotFoundError if absent."""
        ...

    def write(self, name: str, data: bytes, *, exclusive: bool = False) -> int:
        """
        Store *data* under *name*, replacing any previous content.

        With ``exclusive=True`` the write fails with AlreadyExistsError if the
        name is already taken. Returns the number of bytes written.
        """
        ...

    def delete(self, name: str) -> None:
        """Remove *name*. Raises NotFoundError if absent."""
        ...

    def list(self) -> List[str]:
        """Names of every stored file, in store enumeration order."""
        ...
