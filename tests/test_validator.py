"""
Record form validation tests - collected violations, timestamps and tag entry.
"""

from unittest.mock import patch

import pytest

from casefile.api.schemas import RecordForm
from casefile.core.errors import ValidationError
from casefile.core.schema import Record
from casefile.core.validator import add_tag, prepare_edit, prepare_new, remove_tag, validate_form


def form(**overrides):
    data = {"name": "Jane Roe", "phone": "+1-555-0199", "caseDetails": "Shoplifting at mall"}
    data.update(overrides)
    return data


class TestRequiredFields:

    def test_valid_form_passes(self):
        cleaned = validate_form(form(category="Fraud", tags=["a"]))
        assert cleaned["name"] == "Jane Roe"
        assert cleaned["category"] == "Fraud"
        assert cleaned["tags"] == ["a"]

    def test_all_missing_fields_collected(self):
        """Test that every missing field is reported, not just the first."""
        with pytest.raises(ValidationError) as exc_info:
            validate_form({})
        assert exc_info.value.fields == ["name", "phone", "caseDetails"]
        assert str(exc_info.value) == "Missing required fields: name, phone, case details"

    def test_whitespace_only_counts_as_missing(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_form(form(name="   "))
        assert exc_info.value.errors == [("name", "missing")]

    @pytest.mark.parametrize("phone", ["555 0100", "(555)0100", "call me", "555.0100"])
    def test_invalid_phone_rejected(self, phone):
        with pytest.raises(ValidationError) as exc_info:
            validate_form(form(phone=phone))
        assert exc_info.value.errors == [("phone", "Please enter a valid phone number")]

    @pytest.mark.parametrize("phone", ["5550100", "+44-20-7946-0000", "911", "--+"])
    def test_permissive_phone_pattern(self, phone):
        assert validate_form(form(phone=phone))["phone"] == phone

    def test_missing_and_invalid_reported_together(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_form(form(name="", phone="abc"))
        message = str(exc_info.value)
        assert "Missing required fields: name" in message
        assert "Please enter a valid phone number" in message
        assert exc_info.value.fields == ["name", "phone"]

    def test_unknown_category_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_form(form(category="Jaywalking"))
        assert exc_info.value.fields == ["category"]

    @pytest.mark.parametrize("category", ["", None])
    def test_unset_category_allowed(self, category):
        assert validate_form(form(category=category))["category"] == ""

    def test_schema_field_alias(self):
        model = RecordForm(name="A", phone="1", case_details="c")
        assert model.case_details == "c"


class TestCreatedAt:

    def test_first_submission_stamps_created_at(self):
        with patch("casefile.core.validator.time.time", return_value=1700000000.5):
            cleaned = validate_form(form())
        assert cleaned["createdAt"] == 1700000000500

    def test_first_submission_keeps_given_created_at(self):
        assert validate_form(form(createdAt=42))["createdAt"] == 42

    def test_edit_leaves_created_at_alone(self, make_record):
        cleaned = validate_form(form(), existing=make_record())
        assert "createdAt" not in cleaned


class TestTags:

    def test_duplicate_tag_ignored(self):
        tags = add_tag([], "theft")
        tags = add_tag(tags, "theft")
        assert tags == ["theft"]

    def test_tag_trimmed_and_blank_ignored(self):
        tags = add_tag(["a"], "  b  ")
        assert add_tag(tags, "   ") == ["a", "b"]

    def test_add_tag_does_not_mutate_input(self):
        tags = ["a"]
        add_tag(tags, "b")
        assert tags == ["a"]

    def test_remove_tag(self):
        assert remove_tag(["a", "b", "c"], "b") == ["a", "c"]

    def test_form_tags_deduplicated_in_order(self):
        cleaned = validate_form(form(tags=["x", "y", "x", " y ", "z"]))
        assert cleaned["tags"] == ["x", "y", "z"]


class TestPrepare:

    def test_prepare_new_assigns_id_and_created_at(self):
        first = prepare_new(form())
        second = prepare_new(form())

        assert isinstance(first, Record)
        assert first.id and second.id and first.id != second.id
        assert first.created_at is not None

        supplied = prepare_new(form(createdAt=123))
        assert supplied.created_at == 123

    def test_prepare_edit_keeps_identity(self, make_record):
        existing = make_record(id="orig", created_at=123)
        edited = prepare_edit(existing, form(name="Renamed", createdAt=999))

        assert edited.id == "orig"
        assert edited.created_at == 123
        assert edited.name == "Renamed"

    def test_prepare_edit_rejects_invalid(self, make_record):
        with pytest.raises(ValidationError):
            prepare_edit(make_record(), form(caseDetails=""))
