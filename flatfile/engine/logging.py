"""
FlatFile Audit Log — JSONL records of file operations, HTTP requests and
service lifecycle, written off the request path by a background writer.

Layout: {log_dir}/{stream}/{category}/{YYYY-MM-DD}.jsonl

    files     execution   every service operation, success or failure
              security    file names rejected for escaping the storage root
    web_apis  execution   requests answered with 1xx-3xx
              rejected    requests answered with 4xx
              errors      requests answered with 5xx
    system    execution   startup / shutdown
"""

from __future__ import annotations

import json
import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from queue import Empty, Full, Queue
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

logger = logging.getLogger("flatfile.engine.logging")

AUDIT_STREAMS: Dict[str, Tuple[str, ...]] = {
    "files": ("execution", "security"),
    "web_apis": ("execution", "rejected", "errors"),
    "system": ("execution",),
}


@dataclass(frozen=True)
class AuditRecord:
    """One line of an audit file."""

    stream: str
    category: str
    fields: Dict[str, Any]

    def __post_init__(self) -> None:
        if self.category not in AUDIT_STREAMS.get(self.stream, ()):
            raise ValueError(f"Unknown audit stream: {self.stream}/{self.category}")

    def to_json(self) -> str:
        return json.dumps(self.fields, default=str, separators=(",", ":"))


def _day_of(path: Path) -> Optional[date]:
    try:
        return date.fromisoformat(path.stem)
    except ValueError:
        return None


class AuditLog:
    """
    Append-only JSONL files, one per stream, category and day.

    Directories appear on first write. One lock serialises appends coming
    from request threads and from the background writer.
    """

    def __init__(self, log_dir: Union[str, Path]):
        self._log_dir = Path(log_dir)
        self._lock = threading.Lock()

    @property
    def log_dir(self) -> Path:
        return self._log_dir

    def path_for(self, stream: str, category: str, day: Optional[date] = None) -> Path:
        day = day or date.today()
        return self._log_dir / stream / category / f"{day.isoformat()}.jsonl"

    def append(self, records: Iterable[AuditRecord]) -> int:
        """Append records to today's files. Returns the number written."""
        lines_by_path: Dict[Path, List[str]] = defaultdict(list)
        for record in records:
            path = self.path_for(record.stream, record.category)
            lines_by_path[path].append(record.to_json())

        with self._lock:
            for path, lines in lines_by_path.items():
                path.parent.mkdir(parents=True, exist_ok=True)
                with open(path, "a", encoding="utf-8") as f:
                    f.write("\n".join(lines) + "\n")
        return sum(len(lines) for lines in lines_by_path.values())

    def query(
        self,
        stream: str,
        category: str,
        *,
        days: int = 7,
        filters: Optional[Dict[str, Any]] = None,
        limit: int = 500,
    ) -> List[Dict[str, Any]]:
        """
        Recorded entries, newest first.

        Args:
            stream: "files", "web_apis" or "system".
            category: Folder under the stream, e.g. "execution".
            days: Daily files to look back through, today included.
            filters: Keep only entries whose fields equal every given value.
            limit: Max number of entries to return.
        """
        folder = self._log_dir / stream / category
        if not folder.is_dir():
            return []

        oldest = date.today() - timedelta(days=days - 1)
        day_files = sorted(
            (p for p in folder.glob("*.jsonl") if (_day_of(p) or date.min) >= oldest),
            key=_day_of,
            reverse=True,
        )

        results: List[Dict[str, Any]] = []
        for path in day_files:
            for entry in reversed(self._read_day(path)):
                if filters and any(entry.get(k) != v for k, v in filters.items()):
                    continue
                results.append(entry)
                if len(results) >= limit:
                    return results
        return results

    @staticmethod
    def _read_day(path: Path) -> List[Dict[str, Any]]:
        entries: List[Dict[str, Any]] = []
        try:
            with open(path, "r", encoding="utf-8") as f:
                for line in f:
                    try:
                        entry = json.loads(line)
                    except json.JSONDecodeError:
                        continue
                    if isinstance(entry, dict):
                        entries.append(entry)
        except OSError as e:
            logger.warning(f"Could not read audit file {path}: {e}")
        return entries


class AuditWriter:
    """
    Background thread moving queued records into an AuditLog.

    push() never blocks: when the queue is full the record is counted as
    dropped. The thread wakes every flush_interval_ms, or as soon as
    flush_batch_size records are waiting, and writes in batches of that size.
    """

    def __init__(
        self,
        audit_log: AuditLog,
        flush_interval_ms: int = 100,
        flush_batch_size: int = 50,
        max_queue_size: int = 10000,
    ):
        self._audit_log = audit_log
        self._interval = flush_interval_ms / 1000.0
        self._batch_size = flush_batch_size
        self._queue: Queue[AuditRecord] = Queue(maxsize=max_queue_size)
        self._wake = threading.Event()
        self._stopping = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._dropped = 0

    @property
    def audit_log(self) -> AuditLog:
        return self._audit_log

    @property
    def pending_count(self) -> int:
        return self._queue.qsize()

    @property
    def dropped_count(self) -> int:
        return self._dropped

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stopping.clear()
        self._thread = threading.Thread(
            target=self._run, name="flatfile-audit-writer", daemon=True
        )
        self._thread.start()
        logger.debug(f"Audit writer started ({self._audit_log.log_dir})")

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the thread, then write whatever is still queued."""
        self._stopping.set()
        self._wake.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        self._flush()
        if self._dropped:
            logger.warning(f"Audit writer stopped, {self._dropped} records dropped")

    def push(self, record: AuditRecord) -> bool:
        try:
            self._queue.put_nowait(record)
        except Full:
            self._dropped += 1
            return False
        if self._queue.qsize() >= self._batch_size:
            self._wake.set()
        return True

    def _run(self) -> None:
        while not self._stopping.is_set():
            self._wake.wait(self._interval)
            self._wake.clear()
            self._flush()

    def _flush(self) -> None:
        while True:
            batch = self._take(self._batch_size)
            if not batch:
                return
            try:
                self._audit_log.append(batch)
            except OSError as e:
                logger.error(f"Audit write failed, {len(batch)} records lost: {e}")

    def _take(self, count: int) -> List[AuditRecord]:
        batch: List[AuditRecord] = []
        while len(batch) < count:
            try:
                batch.append(self._queue.get_nowait())
            except Empty:
                break
        return batch


# ---------------------------------------------------------------------------
# Record builders
# ---------------------------------------------------------------------------

def _fields(event: str, level: str, **extra: Any) -> Dict[str, Any]:
    fields: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "event": event,
    }
    fields.update({k: v for k, v in extra.items() if v is not None})
    return fields


def file_operation_record(
    operation: str,
    kind: str,
    name: Optional[str] = None,
    success: bool = True,
    error_type: Optional[str] = None,
    size_bytes: Optional[int] = None,
    security: bool = False,
) -> AuditRecord:
    """
    A service operation (list/create/read/update/delete/name_check).

    *security* routes names rejected for escaping the storage root to
    files/security.
    """
    fields = _fields(
        f"file_{operation}",
        "INFO" if success else "WARNING",
        operation=operation,
        kind=kind,
        name=name,
        success=success,
        error_type=error_type,
        size_bytes=size_bytes,
    )
    return AuditRecord("files", "security" if security else "execution", fields)


def request_category(status_code: int) -> str:
    if status_code >= 500:
        return "errors"
    if status_code >= 400:
        return "rejected"
    return "execution"


def http_request_record(
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    client_ip: Optional[str] = None,
) -> AuditRecord:
    category = request_category(status_code)
    level = {"execution": "INFO", "rejected": "WARNING", "errors": "ERROR"}[category]
    fields = _fields(
        "http_request",
        level,
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=duration_ms,
        client_ip=client_ip,
    )
    return AuditRecord("web_apis", category, fields)


def system_event_record(
    event: str,
    level: str = "INFO",
    details: Optional[Dict[str, Any]] = None,
) -> AuditRecord:
    return AuditRecord("system", "execution", _fields(event, level, details=details or None))


# ---------------------------------------------------------------------------
# Process-wide writer
# ---------------------------------------------------------------------------

_writer: Optional[AuditWriter] = None


def init_logging(
    log_dir: Union[str, Path] = "logs",
    level: str = "INFO",
    flush_interval_ms: int = 100,
    flush_batch_size: int = 50,
    max_queue_size: int = 10000,
) -> AuditWriter:
    """Set the ``flatfile`` logger level and start the audit writer on *log_dir*."""
    global _writer
    logging.getLogger("flatfile").setLevel(level)
    if _writer is not None:
        _writer.stop()
    _writer = AuditWriter(
        AuditLog(log_dir),
        flush_interval_ms=flush_interval_ms,
        flush_batch_size=flush_batch_size,
        max_queue_size=max_queue_size,
    )
    _writer.start()
    return _writer


def log(record: AuditRecord) -> bool:
    """Queue *record*. False when no writer is running or the queue is full."""
    if _writer is None:
        return False
    return _writer.push(record)


def shutdown_logging() -> None:
    global _writer
    if _writer is not None:
        _writer.stop()
        _writer = None
