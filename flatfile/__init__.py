"""
FlatFile — HTTP CRUD API over flat files in a local directory.

Three resource kinds share one contract and differ in content handling:

    /hello  raw files, stored and returned unchanged
    /json   JSON documents, validated on write, parsed on read
    /csv    CSV tables, parsed into header-keyed rows on read
"""

__version__ = "1.0.0"
__all__ = ["engine", "storage", "resources", "api"]
