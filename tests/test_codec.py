"""
Import/export codec tests - document shape, rejection rules and all-or-nothing import.
"""

import asyncio
import json
from datetime import date

import pytest

from casefile.core.codec import (
    export_file,
    export_filename,
    export_records,
    import_document,
    import_file,
    parse_document,
)
from casefile.core.errors import FormatError
from casefile.core.query import SORT_OPTIONS, apply_query


class TestExport:

    def test_export_is_pretty_printed_array(self, make_record):
        records = [make_record(id="a"), make_record(id="b")]
        document = export_records(records)

        assert document.startswith("[\n  {")
        assert json.loads(document) == [r.to_dict() for r in records]

    def test_export_keeps_every_field(self, make_record):
        record = make_record(image="data:image/png;base64,QUJD", tags=["gang", "repeat"], category="Fraud")
        exported = json.loads(export_records([record]))[0]

        assert exported["image"] == "data:image/png;base64,QUJD"
        assert exported["tags"] == ["gang", "repeat"]
        assert exported["caseDetails"] == record.case_details
        assert exported["createdAt"] == record.created_at

    def test_export_keeps_non_ascii(self, make_record):
        assert "Zoë" in export_records([make_record(name="Zoë")])

    def test_export_filename_uses_date(self):
        assert export_filename(date(2024, 5, 1)) == "convict-records-2024-05-01.json"

    def test_export_file_writes_document(self, store, make_record, tmp_path):
        store.add(make_record(id="x"))
        path = export_file(store, tmp_path / "exports", day=date(2023, 12, 31))

        assert path.name == "convict-records-2023-12-31.json"
        assert [item["id"] for item in json.loads(path.read_text(encoding="utf-8"))] == ["x"]


class TestParseDocument:

    def test_invalid_json(self):
        with pytest.raises(FormatError, match="Invalid JSON"):
            parse_document("[{oops")

    def test_top_level_must_be_array(self):
        with pytest.raises(FormatError, match="Expected an array"):
            parse_document('{"id": "1"}')

    def test_missing_fields_names_index(self):
        with pytest.raises(FormatError) as exc_info:
            parse_document('[{"id":"1","name":"X"}]')
        assert exc_info.value.index == 0
        assert "index 0" in str(exc_info.value)

    def test_reports_first_bad_index(self):
        document = json.dumps([
            {"id": "1", "name": "A", "phone": "1", "caseDetails": "c"},
            {"id": "2", "name": "B", "phone": "", "caseDetails": "c"},
        ])
        with pytest.raises(FormatError) as exc_info:
            parse_document(document)
        assert exc_info.value.index == 1

    def test_non_object_element(self):
        with pytest.raises(FormatError) as exc_info:
            parse_document('[{"id":"1","name":"A","phone":"1","caseDetails":"c"}, 7]')
        assert exc_info.value.index == 1

    @pytest.mark.parametrize("overrides", [
        {"tags": 5},
        {"tags": "abc"},
        {"tags": ["ok", 3]},
        {"name": 5},
        {"id": 17},
        {"phone": ["1"]},
        {"caseDetails": {"text": "c"}},
        {"createdAt": "x"},
        {"category": 2},
    ])
    def test_wrongly_typed_field_names_index(self, overrides):
        """Test that a field of the wrong type is rejected with the element's index."""
        element = {"id": "2", "name": "B", "phone": "1", "caseDetails": "c", **overrides}
        document = json.dumps([{"id": "1", "name": "A", "phone": "1", "caseDetails": "c"}, element])

        with pytest.raises(FormatError) as exc_info:
            parse_document(document)
        assert exc_info.value.index == 1
        assert "index 1" in str(exc_info.value)

    def test_integer_created_at_accepted(self):
        records = parse_document('[{"id":"1","name":"A","phone":"1","caseDetails":"c","createdAt":5}]')
        assert records[0].created_at == 5

    def test_empty_array_is_valid(self):
        assert parse_document("[]") == []

    def test_accepts_bytes(self):
        records = parse_document(b'[{"id":"1","name":"A","phone":"1","caseDetails":"c"}]')
        assert records[0].id == "1"


class TestImport:

    def test_round_trip_reproduces_store(self, store, make_record):
        """Test that importing an export reproduces the same records in the same order."""
        records = [
            make_record(id="z", tags=["a"]),
            make_record(id="a", image="data:x", category=None),
            make_record(id="m", created_at=None),
        ]
        document = export_records(records)

        store.add(make_record(id="pre-existing"))
        import_document(store, document)

        assert store.get_all() == records

    def test_import_is_destructive_replace(self, store, make_record):
        store.add(make_record(id="old"))
        import_document(store, export_records([make_record(id="new")]))
        assert [r.id for r in store.get_all()] == ["new"]

    def test_rejected_import_leaves_store_untouched(self, store, make_record):
        store.add(make_record(id="keep"))
        before = store.get_all()

        with pytest.raises(FormatError) as exc_info:
            import_document(store, '[{"id":"1","name":"X"}]')

        assert exc_info.value.index == 0
        assert store.get_all() == before

    def test_wrongly_typed_import_leaves_store_queryable(self, store, make_record):
        """Test that rejected wrongly typed documents never reach the query pipeline."""
        store.add(make_record(id="keep"))
        document = json.dumps([
            {"id": "1", "name": 5, "phone": "1", "caseDetails": "c"},
            {"id": "2", "name": "B", "phone": "1", "caseDetails": "c", "createdAt": "x"},
        ])

        with pytest.raises(FormatError) as exc_info:
            import_document(store, document)

        assert exc_info.value.index == 0
        for sort_key in SORT_OPTIONS:
            assert [r.id for r in apply_query(store.get_all(), "", sort_key, "all")] == ["keep"]

    def test_string_tags_not_split(self, store):
        with pytest.raises(FormatError):
            import_document(store, '[{"id":"1","name":"A","phone":"1","caseDetails":"c","tags":"abc"}]')
        assert store.get_all() == []

    def test_import_signals_notifier(self, store, notifier, make_record):
        calls = []
        notifier.subscribe(lambda: calls.append(1))
        import_document(store, export_records([make_record()]))
        assert calls == [1]

    def test_rejected_import_does_not_signal(self, store, notifier):
        calls = []
        notifier.subscribe(lambda: calls.append(1))
        with pytest.raises(FormatError):
            import_document(store, "not json")
        assert calls == []

    def test_import_preserves_unknown_keys(self, store):
        document = '[{"id":"1","name":"A","phone":"1","caseDetails":"c","source":"legacy"}]'
        import_document(store, document)
        assert json.loads(export_records(store.get_all())) == json.loads(document)


class TestImportFile:

    def test_import_file(self, store, make_record, tmp_path):
        path = tmp_path / "records.json"
        path.write_text(export_records([make_record(id="f1")]), encoding="utf-8")

        result = asyncio.run(import_file(store, path))

        assert result.count == 1
        assert store.get_by_id("f1") is not None

    def test_unreadable_file(self, store, tmp_path):
        with pytest.raises(FormatError, match="Error reading file"):
            asyncio.run(import_file(store, tmp_path / "missing.json"))
