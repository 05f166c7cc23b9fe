"""
Resource kinds — per-kind content validation and read shaping.

    raw   served under /hello, content stored and returned as-is
    json  content must parse as JSON, read returns the parsed value
    csv   content must look like CSV, read returns the parsed rows
"""

from __future__ import annotations

import csv
import json
from enum import Enum
from typing import Any, Callable, Dict, Optional

from flatfile.engine.errors import UnsupportedContentError
from flatfile.resources import messages
from flatfile.resources.models import CsvDocument, first_line


class ResourceKind(str, Enum):
    RAW = "raw"
    JSON = "json"
    CSV = "csv"

    @property
    def route(self) -> str:
        """URL path segment the kind is mounted on."""
        return "hello" if self is ResourceKind.RAW else self.value


class KindHandler:
    """Raw kind: any content is accepted and returned unchanged."""

    kind = ResourceKind.RAW
    # None: undecodable bytes are replaced rather than rejected
    invalid_message: Optional[str] = None

    def lists(self, name: str, load: Callable[[], str]) -> bool:
        """Whether *name* shows up in this kind's listing."""
        return True

    def decode(self, name: str, data: bytes, encoding: str) -> str:
        if self.invalid_message is None:
            return data.decode(encoding, errors="replace")
        try:
            return data.decode(encoding)
        except UnicodeDecodeError as e:
            raise self._reject(name, self.invalid_message, "encoding") from e

    def encode(self, name: str, content: str, encoding: str) -> bytes:
        try:
            return content.encode(encoding)
        except UnicodeEncodeError as e:
            message = self.invalid_message or messages.INVALID_TEXT
            raise self._reject(name, message, "encoding") from e

    def check_create(self, name: str, content: str) -> None:
        pass

    def check_update(self, name: str, content: str) -> None:
        pass

    def shape(self, name: str, content: str) -> Any:
        return content

    def _reject(self, name: str, message: str, reason: str) -> UnsupportedContentError:
        return UnsupportedContentError(
            message, resource=name, kind=self.kind.value, reason=reason
        )


class JsonHandler(KindHandler):
    kind = ResourceKind.JSON
    invalid_message = messages.INVALID_JSON

    def lists(self, name: str, load: Callable[[], str]) -> bool:
        try:
            content = load()
        except UnsupportedContentError:
            return False
        return is_valid_json(content)

    def check_create(self, name: str, content: str) -> None:
        if not is_valid_json(content):
            raise self._reject(name, messages.INVALID_JSON, "json_decode")

    check_update = check_create

    def shape(self, name: str, content: str) -> Any:
        try:
            return parse_json(content)
        except ValueError as e:
            raise self._reject(name, messages.INVALID_JSON, "json_decode") from e


class CsvHandler(KindHandler):
    kind = ResourceKind.CSV
    invalid_message = messages.INVALID_CSV

    def lists(self, name: str, load: Callable[[], str]) -> bool:
        return name.endswith(".csv")

    def check_create(self, name: str, content: str) -> None:
        header = first_line(content)
        if header is None or "," not in header:
            raise self._reject(name, messages.INVALID_CSV, "header_without_comma")

    def check_update(self, name: str, content: str) -> None:
        if not any("," in line for line in content.splitlines()):
            raise self._reject(name, messages.INVALID_CSV, "no_comma")

    def shape(self, name: str, content: str) -> Any:
        try:
            document = CsvDocument.parse(content)
        except csv.Error as e:
            raise self._reject(name, messages.INVALID_CSV, "csv_error") from e
        if not document.header:
            raise self._reject(name, messages.INVALID_CSV, "empty_header")
        if not document.rows:
            raise self._reject(name, messages.INVALID_CSV, "no_rows")
        return document.rows


def _reject_constant(token: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {token}")


def parse_json(content: str) -> Any:
    """json.loads without the NaN/Infinity extensions."""
    return json.loads(content, parse_constant=_reject_constant)


def is_valid_json(content: str) -> bool:
    try:
        parse_json(content)
    except ValueError:
        return False
    return True


HANDLERS: Dict[ResourceKind, KindHandler] = {
    ResourceKind.RAW: KindHandler(),
    ResourceKind.JSON: JsonHandler(),
    ResourceKind.CSV: CsvHandler(),
}


def get_handler(kind: Any) -> KindHandler:
    """Resolve a ResourceKind (or its value) to its handler."""
    return HANDLERS[ResourceKind(kind)]
