"""
FlatFile resources — the raw, json and csv kinds over a BlobStore.

Physical storage: {storage.root}/{name}
"""

from flatfile.resources.kinds import ResourceKind
from flatfile.resources.models import CsvDocument, StoredFile
from flatfile.resources.service import FileResourceService

__all__ = [
    "ResourceKind",
    "CsvDocument",
    "StoredFile",
    "FileResourceService",
]
