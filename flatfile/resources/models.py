"""
FlatFile Resource Models — Pydantic definitions for stored and derived documents.

StoredFile: A named blob in the backing store (create/update confirmation).
CsvDocument: Header + rows view derived from stored CSV text.
"""

from __future__ import annotations

import csv
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class StoredFile(BaseModel):
    """A file as persisted in the backing store."""

    name: str = Field(description="File name, unique within the storage root")
    kind: str = Field(description="Resource kind the file was written through")
    size_bytes: int = Field(ge=0, description="Bytes written")


class CsvDocument(BaseModel):
    """
    Structured view of CSV text.

    ``header`` comes from the first line; ``rows`` holds one mapping per
    later non-empty line whose field count matches the header. Rows that
    do not match are dropped when parsing.
    """

    header: List[str] = Field(default_factory=list)
    rows: List[Dict[str, str]] = Field(default_factory=list)

    @classmethod
    def parse(cls, text: str) -> "CsvDocument":
        """
        Parse CSV text line by line.

        Lines are split on any line break (LF, CRLF or a lone CR) and
        trimmed; the first line is the header, empty later lines are
        skipped. Fields follow CSV quoting (embedded commas inside quotes,
        quotes doubled). Duplicate header names keep the last value of the
        row.
        """
        lines = [line.strip() for line in text.strip().splitlines()]
        if not lines or not lines[0]:
            return cls()

        header = split_csv_line(lines[0])
        rows: List[Dict[str, str]] = []
        for line in lines[1:]:
            if not line:
                continue
            values = split_csv_line(line)
            if len(values) != len(header):
                continue
            rows.append(dict(zip(header, values)))
        return cls(header=header, rows=rows)


def split_csv_line(line: str) -> List[str]:
    """Split one CSV line into its field values."""
    return next(csv.reader([line]), [])


def first_line(text: str) -> Optional[str]:
    """First line of the stripped text, or None for blank text."""
    stripped = text.strip()
    if not stripped:
        return None
    return stripped.splitlines()[0]
