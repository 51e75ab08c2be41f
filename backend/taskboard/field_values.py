"""Typed custom field values.

A task's custom field values are a tagged union over the declared field type.
Raw values (from forms, imports or older clients) are converted with
``coerce_field_value`` at the point where the field definition is known.
"""

from datetime import date
from typing import TYPE_CHECKING, Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from taskboard.exceptions import ValidationError

if TYPE_CHECKING:
    from taskboard.schemas import CustomField


class _FieldValue(BaseModel):
    model_config = ConfigDict(frozen=True)


class TextValue(_FieldValue):
    type: Literal["text"] = "text"
    value: str


class NumberValue(_FieldValue):
    type: Literal["number"] = "number"
    value: float


class DateValue(_FieldValue):
    type: Literal["date"] = "date"
    value: date


class SelectValue(_FieldValue):
    type: Literal["select"] = "select"
    value: str


class MultiSelectValue(_FieldValue):
    type: Literal["multiselect"] = "multiselect"
    value: list[str]


class CheckboxValue(_FieldValue):
    type: Literal["checkbox"] = "checkbox"
    value: bool


class UrlValue(_FieldValue):
    type: Literal["url"] = "url"
    value: str


CustomFieldValue = Annotated[
    Union[
        TextValue,
        NumberValue,
        DateValue,
        SelectValue,
        MultiSelectValue,
        CheckboxValue,
        UrlValue,
    ],
    Field(discriminator="type"),
]


def is_empty(raw: Any) -> bool:
    """Return True for values a form would treat as 'not filled in'."""
    return raw is None or raw == "" or raw == []


def coerce_field_value(field: "CustomField", raw: Any) -> CustomFieldValue:
    """Convert a raw value into the typed value for ``field``.

    Accepts either a bare value or an already tagged ``{"type", "value"}``
    mapping (or model). Raises ``ValidationError`` on any mismatch.
    """
    field_type = field.effective_type

    if isinstance(raw, _FieldValue):
        raw = raw.model_dump()
    if isinstance(raw, dict) and "value" in raw:
        tagged_type = raw.get("type", field_type)
        if tagged_type != field_type:
            raise ValidationError(
                f"Field '{field.name}' expects {field_type}, got {tagged_type}"
            )
        raw = raw["value"]

    if raw is None:
        raise ValidationError(f"Field '{field.name}' has no value")

    if field_type == "text":
        if not isinstance(raw, str):
            raise ValidationError("Value must be a string")
        return TextValue(value=raw)

    if field_type == "number":
        if isinstance(raw, bool) or not isinstance(raw, (int, float)):
            raise ValidationError("Value must be a number")
        return NumberValue(value=raw)

    if field_type == "date":
        if isinstance(raw, date):
            return DateValue(value=raw)
        if not isinstance(raw, str):
            raise ValidationError("Value must be a date string (YYYY-MM-DD)")
        try:
            return DateValue(value=date.fromisoformat(raw))
        except ValueError:
            raise ValidationError("Value must be a date string (YYYY-MM-DD)") from None

    if field_type == "select":
        if raw not in field.options:
            raise ValidationError(f"Value must be one of: {', '.join(field.options)}")
        return SelectValue(value=raw)

    if field_type == "multiselect":
        if not isinstance(raw, (list, tuple)):
            raise ValidationError("Value must be a list")
        invalid = [v for v in raw if v not in field.options]
        if invalid:
            raise ValidationError(f"Invalid options: {', '.join(map(str, invalid))}")
        return MultiSelectValue(value=list(dict.fromkeys(raw)))

    if field_type == "checkbox":
        if not isinstance(raw, bool):
            raise ValidationError("Value must be a boolean")
        return CheckboxValue(value=raw)

    if field_type == "url":
        if not isinstance(raw, str):
            raise ValidationError("Value must be a string")
        if not raw.startswith(("http://", "https://")):
            raise ValidationError("Value must be a valid URL")
        return UrlValue(value=raw)

    raise ValidationError(f"Unsupported field type: {field_type}")


def coerce_field_values(
    fields: list["CustomField"],
    raw_values: dict[str, Any],
) -> dict[str, CustomFieldValue]:
    """Coerce a whole ``field_id -> raw`` mapping against a project's fields.

    Unknown field ids are rejected; empty values are dropped.
    """
    by_id = {f.id: f for f in fields}
    result: dict[str, CustomFieldValue] = {}
    for field_id, raw in raw_values.items():
        field = by_id.get(field_id)
        if field is None:
            raise ValidationError(f"Unknown custom field: {field_id}")
        if is_empty(raw):
            continue
        result[field_id] = coerce_field_value(field, raw)
    return result


def missing_required(
    fields: list["CustomField"],
    values: dict[str, Any],
) -> list[str]:
    """Names of required fields that have no value."""
    missing = []
    for field in fields:
        if not field.is_required:
            continue
        value = values.get(field.id)
        if isinstance(value, _FieldValue):
            value = value.value
        elif isinstance(value, dict):
            value = value.get("value")
        if is_empty(value):
            missing.append(field.name)
    return missing
