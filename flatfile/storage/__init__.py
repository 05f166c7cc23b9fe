"""
FlatFile storage backends.

BlobStore is the capability the resource service depends on; LocalBlobStore
keeps files in the configured root directory, InMemoryBlobStore in a dict.
"""

from flatfile.storage.base import BlobStore
from flatfile.storage.local import LocalBlobStore
from flatfile.storage.memory import InMemoryBlobStore

__all__ = [
    "BlobStore",
    "LocalBlobStore",
    "InMemoryBlobStore",
]
