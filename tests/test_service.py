"""Unit tests for flatfile.resources.service — FileResourceService CRUD."""

import json

import pytest

from flatfile.engine.errors import (
    AlreadyExistsError,
    NotFoundError,
    UnsupportedContentError,
    ValidationError,
)
from flatfile.engine.logging import AuditLog, init_logging, shutdown_logging
from flatfile.resources import messages
from flatfile.resources.kinds import ResourceKind
from flatfile.resources.models import StoredFile
from flatfile.resources.service import FileResourceService
from flatfile.storage.memory import InMemoryBlobStore

KINDS = ["raw", "json", "csv"]


class TestList:

    def test_empty_store(self, service):
        for kind in KINDS:
            assert service.list(kind) == []

    def test_raw_lists_everything_in_store_order(self, memory_store, service):
        for name in ("z.txt", "a.csv", "m.json"):
            memory_store.write(name, b"x")
        assert service.list("raw") == ["z.txt", "a.csv", "m.json"]

    def test_json_lists_only_parseable(self, memory_store, service):
        memory_store.write("good.json", b'{"a": 1}')
        memory_store.write("bad.json", b"not json")
        memory_store.write("array.txt", b"[1, 2]")
        memory_store.write("binary", b"\xff\xfe")
        assert service.list(ResourceKind.JSON) == ["good.json", "array.txt"]

    def test_csv_lists_by_extension(self, memory_store, service):
        memory_store.write("valid.csv", b"header1,header2\nvalue1,value2")
        memory_store.write("broken.csv", b"no commas")
        memory_store.write("invalid.txt", b"a,b\n1,2")
        assert service.list("csv") == ["valid.csv", "broken.csv"]

    def test_json_list_includes_files_written_by_other_kinds(self, service):
        service.create("notes.txt", '{"written": "raw"}', "raw")
        service.create("plain.txt", "hello", "raw")
        assert service.list("json") == ["notes.txt"]


class TestCreate:

    @pytest.mark.parametrize("kind, content", [
        ("raw", "hello world"),
        ("json", '{"a": [1, 2, 3]}'),
        ("csv", "h1,h2\nv1,v2"),
    ])
    def test_create_writes_once(self, memory_store, service, kind, content):
        stored = service.create("f", content, kind)
        assert isinstance(stored, StoredFile)
        assert stored.name == "f"
        assert stored.kind == kind
        assert stored.size_bytes == len(content.encode("utf-8"))
        assert memory_store.read("f") == content.encode("utf-8")

    @pytest.mark.parametrize("name, content, missing", [
        (None, "x", ["filename"]),
        ("", "x", ["filename"]),
        ("a", None, ["content"]),
        ("a", "", ["content"]),
        (None, None, ["filename", "content"]),
    ])
    def test_missing_params(self, memory_store, service, name, content, missing):
        with pytest.raises(ValidationError) as exc:
            service.create(name, content, "raw")
        assert exc.value.message == messages.MISSING_PARAMS
        assert exc.value.fields == missing
        assert exc.value.status_code == 422
        assert memory_store.list() == []

    def test_missing_params_checked_before_existence(self, memory_store, service):
        memory_store.write("taken", b"x")
        with pytest.raises(ValidationError):
            service.create("taken", "", "raw")

    @pytest.mark.parametrize("kind", KINDS)
    def test_duplicate_rejected(self, service, kind):
        content = '{"a": 1}' if kind == "json" else "a,b\n1,2"
        service.create("dup", content, kind)
        with pytest.raises(AlreadyExistsError) as exc:
            service.create("dup", content, kind)
        assert exc.value.message == messages.ALREADY_EXISTS

    def test_existence_checked_before_content(self, memory_store, service):
        memory_store.write("taken.json", b"{}")
        with pytest.raises(AlreadyExistsError):
            service.create("taken.json", "not json", "json")

    def test_duplicate_after_delete_allowed(self, service):
        service.create("again", "one", "raw")
        service.delete("again", "raw")
        service.create("again", "two", "raw")
        assert service.read("again", "raw") == "two"

    def test_invalid_json_not_written(self, service):
        with pytest.raises(UnsupportedContentError) as exc:
            service.create("doc.json", "not json", "json")
        assert exc.value.message == messages.INVALID_JSON
        with pytest.raises(NotFoundError):
            service.read("doc.json", "json")

    def test_csv_header_needs_comma(self, memory_store, service):
        with pytest.raises(UnsupportedContentError) as exc:
            service.create("t.csv", "single column\n1", "csv")
        assert exc.value.message == messages.INVALID_CSV
        assert not memory_store.exists("t.csv")

    @pytest.mark.parametrize("name", [".", "..", "../up.txt", "dir/file.txt", "back\\slash"])
    def test_unsafe_names(self, memory_store, service, name):
        with pytest.raises(ValidationError) as exc:
            service.create(name, "x", "raw")
        assert exc.value.message == messages.INVALID_NAME
        assert memory_store.list() == []

    def test_unencodable_content_not_written(self, memory_store, service):
        with pytest.raises(UnsupportedContentError) as exc:
            service.create("s.txt", "lone \ud800", "raw")
        assert exc.value.status_code == 415
        assert memory_store.list() == []

    def test_unknown_kind(self, service):
        with pytest.raises(ValidationError, match="Unknown resource kind"):
            service.create("a", "b", "xml")


class TestRead:

    def test_missing(self, service):
        for kind in KINDS:
            with pytest.raises(NotFoundError) as exc:
                service.read("ghost", kind)
            assert exc.value.message == messages.NOT_FOUND

    def test_raw_is_unchanged(self, service):
        content = "line one\n  line two  \n\tñandú ✓"
        service.create("r.txt", content, "raw")
        assert service.read("r.txt", "raw") == content

    def test_json_parsed(self, service):
        value = {"name": "x", "tags": ["a", "b"], "n": 1.5, "ok": True, "none": None}
        service.create("v.json", json.dumps(value), "json")
        assert service.read("v.json", "json") == value

    def test_json_scalar_null(self, service):
        service.create("null.json", "null", "json")
        assert service.read("null.json", "json") is None

    def test_json_read_of_corrupt_file(self, service):
        service.create("oops.json", "plain text", "raw")
        with pytest.raises(UnsupportedContentError):
            service.read("oops.json", "json")

    def test_csv_rows(self, service):
        service.create("t.csv", "h1,h2\nv1,v2", "csv")
        assert service.read("t.csv", "csv") == [{"h1": "v1", "h2": "v2"}]

    def test_csv_header_only(self, service):
        service.create("h.csv", "h1,h2", "csv")
        with pytest.raises(UnsupportedContentError):
            service.read("h.csv", "csv")

    def test_csv_all_rows_mismatched(self, service):
        service.create("m.csv", "a,b\n1\n1,2,3", "csv")
        with pytest.raises(UnsupportedContentError):
            service.read("m.csv", "csv")

    def test_csv_of_raw_file(self, service):
        service.create("people", "name,age\nAna,30\nLuis,41\n", "raw")
        assert service.read("people", "csv") == [
            {"name": "Ana", "age": "30"},
            {"name": "Luis", "age": "41"},
        ]

    def test_csv_with_carriage_return_line_breaks(self, service):
        service.create("cr.csv", "h1,h2\rv1,v2", "csv")
        assert service.read("cr.csv", "csv") == [{"h1": "v1", "h2": "v2"}]

    def test_reread_reflects_store(self, memory_store, service):
        service.create("live.txt", "v1", "raw")
        memory_store.write("live.txt", b"changed outside")
        assert service.read("live.txt", "raw") == "changed outside"


class TestUpdate:

    def test_replaces_content(self, service):
        service.create("existingfile.csv", "header1,header2\nvalue1,value2", "csv")
        stored = service.update(
            "existingfile.csv", "header1,header2\nnew_value1,new_value2", "csv"
        )
        assert stored.size_bytes == len("header1,header2\nnew_value1,new_value2")
        assert service.read("existingfile.csv", "csv") == [
            {"header1": "new_value1", "header2": "new_value2"}
        ]

    def test_missing_never_creates(self, memory_store, service):
        for kind in KINDS:
            with pytest.raises(NotFoundError):
                service.update("ghost", "a,b\n1,2", kind)
        assert memory_store.list() == []

    def test_content_required(self, service):
        service.create("f", "x", "raw")
        with pytest.raises(ValidationError) as exc:
            service.update("f", "", "raw")
        assert exc.value.fields == ["content"]

    def test_invalid_json_keeps_old_content(self, service):
        service.create("d.json", '{"v": 1}', "json")
        with pytest.raises(UnsupportedContentError):
            service.update("d.json", "{nope", "json")
        assert service.read("d.json", "json") == {"v": 1}

    def test_csv_any_line_with_comma(self, service):
        service.create("t.csv", "a,b\n1,2", "csv")
        service.update("t.csv", "title\na,b", "csv")
        with pytest.raises(UnsupportedContentError):
            service.update("t.csv", "no\ncommas", "csv")

    def test_raw_accepts_anything(self, service):
        service.create("r", "one", "raw")
        service.update("r", "two", "raw")
        assert service.read("r", "raw") == "two"


class TestDelete:

    @pytest.mark.parametrize("kind", KINDS)
    def test_delete_then_read(self, service, kind):
        service.create("gone", '{"a": 1}' if kind == "json" else "a,b\n1,2", kind)
        service.delete("gone", kind)
        with pytest.raises(NotFoundError):
            service.read("gone", kind)

    def test_missing(self, service):
        with pytest.raises(NotFoundError):
            service.delete("ghost", "csv")


class TestAuditLogging:

    def test_operations_are_logged(self, tmp_path):
        init_logging(log_dir=str(tmp_path), flush_interval_ms=10)
        service = FileResourceService(InMemoryBlobStore())
        service.create("a.csv", "a,b\n1,2", "csv")
        with pytest.raises(NotFoundError):
            service.read("b.csv", "csv")
        with pytest.raises(ValidationError):
            service.read("..", "csv")
        shutdown_logging()

        audit_log = AuditLog(tmp_path)
        entries = audit_log.query("files", "execution")
        events = [(e["event"], e["success"]) for e in entries]
        assert ("file_create", True) in events
        assert ("file_read", False) in events
        failed = audit_log.query("files", "execution", filters={"success": False})
        assert {e.get("error_type") for e in failed} == {"NotFoundError", "ValidationError"}
        security = audit_log.query("files", "security")
        assert security[0]["name"] == ".."


class TestLocalStoreIntegration:

    def test_round_trip_on_disk(self, local_store, storage_root):
        service = FileResourceService(local_store)
        service.create("valid.csv", "header1,header2\nvalue1,value2", "csv")
        (storage_root / "invalid.txt").write_text("Este no es un CSV", encoding="utf-8")
        assert service.list("csv") == ["valid.csv"]
        assert sorted(service.list("raw")) == ["invalid.txt", "valid.csv"]
        assert service.read("valid.csv", "csv") == [{"header1": "value1", "header2": "value2"}]

    def test_existing_file_on_disk_conflicts(self, local_store, storage_root):
        (storage_root / "pre.txt").write_text("x", encoding="utf-8")
        service = FileResourceService(local_store)
        with pytest.raises(AlreadyExistsError):
            service.create("pre.txt", "y", "raw")
        assert (storage_root / "pre.txt").read_text(encoding="utf-8") == "x"
