"""
FlatFile CLI — Server and inspection commands.

Commands:
- flatfile run    — Start the HTTP API with uvicorn
- flatfile ls     — List the files visible to a resource kind
- flatfile show   — Print a file shaped for a resource kind (as JSON)
- flatfile logs   — Query the JSONL audit log
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from flatfile.engine.config import CONFIG_PATH_ENV
from flatfile.engine.errors import ConfigError, FlatFileError
from flatfile.engine.logging import AUDIT_STREAMS, AuditLog

logger = logging.getLogger("flatfile.cli")

KIND_CHOICES = ["raw", "json", "csv"]


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="flatfile",
        description="FlatFile — HTTP CRUD API over flat files",
    )
    parser.add_argument(
        "--config", default=None, help="Path to flatfile.yaml (default: auto-discover)"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # flatfile run
    run_parser = subparsers.add_parser("run", help="Start the HTTP API server")
    run_parser.add_argument("--host", help="Host to bind (default: server.host)")
    run_parser.add_argument("--port", type=int, help="Port to bind (default: server.port)")
    run_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    # flatfile ls
    ls_parser = subparsers.add_parser("ls", help="List files of a resource kind")
    ls_parser.add_argument("kind", choices=KIND_CHOICES, help="Resource kind")

    # flatfile show
    show_parser = subparsers.add_parser("show", help="Print a file shaped for a kind")
    show_parser.add_argument("kind", choices=KIND_CHOICES, help="Resource kind")
    show_parser.add_argument("name", help="File name")

    # flatfile logs
    logs_parser = subparsers.add_parser("logs", help="Query structured logs")
    logs_parser.add_argument(
        "--stream", "--type", dest="stream", default="files",
        choices=sorted(AUDIT_STREAMS), help="Audit stream (default: files)",
    )
    logs_parser.add_argument(
        "--category", default="execution",
        help="Category within the stream, e.g. execution, security, rejected, errors",
    )
    logs_parser.add_argument("--days", type=int, default=7, help="Days to look back (default: 7)")
    logs_parser.add_argument("--limit", type=int, default=50, help="Max entries (default: 50)")

    args = parser.parse_args(argv)

    if args.command == "run":
        return cmd_run(args)
    elif args.command == "ls":
        return cmd_ls(args)
    elif args.command == "show":
        return cmd_show(args)
    elif args.command == "logs":
        return cmd_logs(args)
    else:
        parser.print_help()
        return 0


def _load_config(args: argparse.Namespace):
    from flatfile.engine.config import load_config

    return load_config(args.config)


def _build_service(args: argparse.Namespace):
    from flatfile.resources.service import FileResourceService
    from flatfile.storage.local import LocalBlobStore

    config = _load_config(args)
    store = LocalBlobStore(config.resolve_storage_root(), create_root=config.storage.create_root)
    return FileResourceService(store, encoding=config.storage.encoding)


def cmd_run(args: argparse.Namespace) -> int:
    """Start uvicorn on the configured host/port."""
    try:
        config = _load_config(args)
    except ConfigError as e:
        print(f"[ERROR] {e.message}")
        return 1

    try:
        import uvicorn
    except ImportError:
        print("[ERROR] uvicorn is not installed. Install: pip install uvicorn")
        return 1

    from flatfile.api.app import create_app

    host = args.host or config.server.host
    port = args.port or config.server.port
    print(f"Starting {config.app.name} on http://{host}:{port}{config.server.api_prefix}")
    print(f"Storage root: {config.resolve_storage_root()}")

    logging.basicConfig(level=config.logging.level)
    if args.reload:
        # The reloader imports the app factory in a fresh process
        if args.config:
            os.environ[CONFIG_PATH_ENV] = str(Path(args.config).resolve())
        uvicorn.run("flatfile.api.app:create_app", factory=True, host=host, port=port, reload=True)
    else:
        uvicorn.run(create_app(config), host=host, port=port)
    return 0


def cmd_ls(args: argparse.Namespace) -> int:
    """Print one name per line."""
    try:
        service = _build_service(args)
        names = service.list(args.kind)
    except FlatFileError as e:
        print(f"[ERROR] {e.message}")
        return 1

    for name in names:
        print(name)
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    """Print the shaped content; raw files print as-is."""
    try:
        service = _build_service(args)
        content = service.read(args.name, args.kind)
    except FlatFileError as e:
        print(f"[ERROR] {e.message} ({e.error_type})")
        return 1

    if args.kind == "raw":
        sys.stdout.write(content)
        if not content.endswith("\n"):
            sys.stdout.write("\n")
    else:
        print(json.dumps(content, indent=2, ensure_ascii=False))
    return 0


def cmd_logs(args: argparse.Namespace) -> int:
    """Print matching audit entries as JSON lines, newest first."""
    try:
        config = _load_config(args)
    except ConfigError as e:
        print(f"[ERROR] {e.message}")
        return 1

    audit_log = AuditLog(config.resolve_log_dir())
    entries = audit_log.query(
        args.stream, args.category, days=args.days, limit=args.limit
    )
    for entry in entries:
        print(json.dumps(entry, ensure_ascii=False))
    if not entries:
        print("No log entries found.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
