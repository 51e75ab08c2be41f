"""Unit tests for the domain schemas."""

import pydantic
import pytest

from taskboard.schemas import Assignee, CustomField, CustomFieldCreate, Task, TaskUpdate


class TestTask:
    """Test cases for Task."""

    def test_wire_format_is_camel_case(self, task_factory):
        wire = task_factory("t1", 0, due_date="2026-04-01").to_wire()
        assert wire["projectId"] == "p1"
        assert wire["dueDate"] == "2026-04-01"
        assert "customFields" in wire

    def test_accepts_camel_case_input(self):
        task = Task.model_validate(
            {"id": "t1", "projectId": "p1", "title": "T", "customFields": {"f1": {"type": "text", "value": "x"}}}
        )
        assert task.project_id == "p1"
        assert task.custom_fields["f1"].value == "x"

    def test_tags_are_deduplicated(self, task_factory):
        assert task_factory("t1", 0, tags=["a", " a ", "b", ""]).tags == ["a", "b"]

    def test_sort_key_breaks_ties_by_id(self, task_factory):
        assert task_factory("b", 5).sort_key > task_factory("a", 5).sort_key


class TestAssignee:
    """Test cases for Assignee."""

    def test_initials_derived_from_name(self):
        assert Assignee(name="Grace Brewster Hopper").initials == "GBH"
        assert Assignee.from_name("ada").initials == "A"

    def test_explicit_initials_kept(self):
        assert Assignee(name="Ada Lovelace", initials="AdL").initials == "AdL"


class TestCustomFieldSchemas:
    """Test cases for custom field schemas."""

    def test_select_requires_options(self):
        with pytest.raises(pydantic.ValidationError):
            CustomFieldCreate(project_id="p1", name="Component", type="select")

    def test_options_are_cleaned(self):
        field = CustomFieldCreate(project_id="p1", name="C", type="multiselect", options=["a", "a", " ", "b"])
        assert field.options == ["a", "b"]

    def test_effective_type(self):
        field = CustomField(id="f1", project_id="p1", name="P", type="select", is_multi=True)
        assert field.effective_type == "multiselect"
        assert field.model_copy(update={"is_multi": False}).effective_type == "select"


def test_task_update_tracks_set_fields():
    update = TaskUpdate(assignee=None, order=10)
    assert update.model_dump(exclude_unset=True) == {"assignee": None, "order": 10}
