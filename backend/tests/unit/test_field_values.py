"""Unit tests for custom field value coercion."""

from datetime import date

import pytest

from taskboard.exceptions import ValidationError
from taskboard.field_values import (
    CheckboxValue,
    DateValue,
    MultiSelectValue,
    NumberValue,
    TextValue,
    UrlValue,
    coerce_field_value,
    coerce_field_values,
    missing_required,
)
from taskboard.schemas import CustomField


def make_field(field_type, **extra):
    return CustomField(id=f"f-{field_type}", project_id="p1", name=field_type.title(), type=field_type, **extra)


class TestCoerceFieldValue:
    """Test cases for coerce_field_value."""

    @pytest.mark.parametrize(
        "field_type, raw, expected",
        [
            ("text", "hello", TextValue(value="hello")),
            ("number", 3, NumberValue(value=3)),
            ("date", "2026-05-01", DateValue(value=date(2026, 5, 1))),
            ("checkbox", False, CheckboxValue(value=False)),
            ("url", "https://example.com", UrlValue(value="https://example.com")),
        ],
    )
    def test_valid_values(self, field_type, raw, expected):
        assert coerce_field_value(make_field(field_type), raw) == expected

    @pytest.mark.parametrize(
        "field_type, raw",
        [
            ("text", 5),
            ("number", "5"),
            ("number", True),
            ("date", "01/05/2026"),
            ("checkbox", "yes"),
            ("url", "example.com"),
        ],
    )
    def test_invalid_values(self, field_type, raw):
        with pytest.raises(ValidationError):
            coerce_field_value(make_field(field_type), raw)

    def test_select_must_be_an_option(self):
        field = make_field("select", options=["UI", "API"])
        assert coerce_field_value(field, "UI").value == "UI"
        with pytest.raises(ValidationError, match="one of"):
            coerce_field_value(field, "DB")

    def test_multiselect_from_select_with_is_multi(self):
        field = make_field("select", options=["Web", "iOS"], is_multi=True)
        assert coerce_field_value(field, ["iOS", "Web", "iOS"]) == MultiSelectValue(value=["iOS", "Web"])
        with pytest.raises(ValidationError, match="Android"):
            coerce_field_value(field, ["Android"])

    def test_tagged_value_is_accepted(self):
        field = make_field("number")
        assert coerce_field_value(field, {"type": "number", "value": 2.5}) == NumberValue(value=2.5)

    def test_tag_mismatch_rejected(self):
        with pytest.raises(ValidationError, match="expects number"):
            coerce_field_value(make_field("number"), {"type": "text", "value": "2"})


class TestCoerceFieldValues:
    """Test cases for mapping-level coercion."""

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError, match="Unknown custom field"):
            coerce_field_values([make_field("text")], {"missing": "x"})

    def test_empty_values_dropped(self):
        fields = [make_field("text"), make_field("number")]
        values = coerce_field_values(fields, {"f-text": "", "f-number": 1})
        assert list(values) == ["f-number"]


def test_missing_required():
    fields = [make_field("text", is_required=True), make_field("number", is_required=True), make_field("url")]
    values = {"f-text": {"type": "text", "value": ""}, "f-number": NumberValue(value=0)}
    assert missing_required(fields, values) == ["Text"]
