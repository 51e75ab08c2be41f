"""Domain schemas shared by the API and the board client.

Python attribute names are snake_case; the wire format is camelCase.
"""

from datetime import date, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from taskboard.field_values import CustomFieldValue

TaskStatus = Literal["todo", "in-progress", "review", "done"]
TaskPriority = Literal["low", "medium", "high"]
ProjectStatus = Literal["planning", "active", "completed", "archived"]
CustomFieldType = Literal["text", "number", "date", "select", "multiselect", "checkbox", "url"]

TASK_STATUSES: tuple[str, ...] = ("todo", "in-progress", "review", "done")
COLUMN_TITLES: dict[str, str] = {
    "todo": "To Do",
    "in-progress": "In Progress",
    "review": "Review",
    "done": "Done",
}


class CamelModel(BaseModel):
    """Base schema with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    def to_wire(self, **kwargs: Any) -> dict[str, Any]:
        """Dump to a JSON-ready camelCase dict."""
        return self.model_dump(mode="json", by_alias=True, **kwargs)


def _orm_to_dict(data: Any) -> Any:
    """Flatten an ORM row (anything with ``to_dict``) for validation."""
    if hasattr(data, "__table__") and hasattr(data, "to_dict"):
        return data.to_dict()
    return data


def _dedupe(values: list[str] | None) -> list[str] | None:
    if values is None:
        return None
    return list(dict.fromkeys(v.strip() for v in values if v and v.strip()))


# =========================================================================
# Projects
# =========================================================================


class Project(CamelModel):
    """Project response model. ``task_count`` is always derived."""

    id: str
    title: str
    description: str = ""
    status: ProjectStatus = "planning"
    task_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def from_row(cls, data: Any) -> Any:
        return _orm_to_dict(data)


class ProjectCreate(CamelModel):
    """Create a new project."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    status: ProjectStatus = "planning"


class ProjectUpdate(CamelModel):
    """Update a project."""

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    status: ProjectStatus | None = None


# =========================================================================
# Custom fields
# =========================================================================


class CustomField(CamelModel):
    """Project-defined custom field.

    A multiselect is stored as ``type="select"`` with ``is_multi=True``;
    ``effective_type`` folds the two back together.
    """

    id: str
    project_id: str
    name: str
    type: CustomFieldType
    options: list[str] = Field(default_factory=list)
    is_required: bool = False
    is_multi: bool = False
    created_at: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def from_row(cls, data: Any) -> Any:
        data = _orm_to_dict(data)
        if isinstance(data, dict) and data.get("options") is None:
            data = {**data, "options": []}
        return data

    @property
    def effective_type(self) -> str:
        if self.type == "select" and self.is_multi:
            return "multiselect"
        return self.type


class CustomFieldCreate(CamelModel):
    """Create a custom field definition."""

    project_id: str
    name: str = Field(..., min_length=1, max_length=100)
    type: CustomFieldType
    options: list[str] = Field(default_factory=list)
    is_required: bool = False
    is_multi: bool = False

    @field_validator("options")
    @classmethod
    def clean_options(cls, v: list[str]) -> list[str]:
        return _dedupe(v) or []

    @model_validator(mode="after")
    def require_options(self) -> "CustomFieldCreate":
        if self.type in ("select", "multiselect") and not self.options:
            raise ValueError(f"Options are required for {self.type} fields")
        return self


class CustomFieldUpdate(CamelModel):
    """Update a custom field definition."""

    name: str | None = Field(None, min_length=1, max_length=100)
    options: list[str] | None = None
    is_required: bool | None = None
    is_multi: bool | None = None

    @field_validator("options")
    @classmethod
    def clean_options(cls, v: list[str] | None) -> list[str] | None:
        return _dedupe(v)


# =========================================================================
# Tasks
# =========================================================================


class Assignee(CamelModel):
    """Task assignee: display name plus initials."""

    name: str = Field(..., min_length=1)
    initials: str = ""

    @model_validator(mode="after")
    def fill_initials(self) -> "Assignee":
        if not self.initials:
            self.initials = initials_for(self.name)
        return self

    @classmethod
    def from_name(cls, name: str) -> "Assignee":
        return cls(name=name, initials=initials_for(name))


def initials_for(name: str) -> str:
    """'Ada Lovelace' -> 'AL'."""
    return "".join(part[0] for part in name.split() if part).upper()


class Task(CamelModel):
    """Task response model."""

    id: str
    project_id: str
    title: str
    description: str = ""
    status: TaskStatus = "todo"
    priority: TaskPriority = "medium"
    assignee: Assignee | None = None
    due_date: date | None = None
    tags: list[str] = Field(default_factory=list)
    custom_fields: dict[str, CustomFieldValue] = Field(default_factory=dict)
    order: float = 0
    comments: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @model_validator(mode="before")
    @classmethod
    def extract_assignee(cls, data: Any) -> Any:
        """Fold the flat assignee columns of an ORM row into ``assignee``."""
        if hasattr(data, "__table__"):
            d = _orm_to_dict(data)
            name = d.pop("assignee_name", None)
            initials = d.pop("assignee_initials", None)
            d["assignee"] = {"name": name, "initials": initials or ""} if name else None
            d["tags"] = d.get("tags") or []
            d["custom_fields"] = d.get("custom_fields") or {}
            return d
        return data

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: list[str]) -> list[str]:
        return _dedupe(v) or []

    @property
    def sort_key(self) -> tuple[float, str]:
        return (self.order, self.id)

    def editable_fields(self) -> "TaskUpdate":
        """Everything a client may write back for this task."""
        return TaskUpdate(
            title=self.title,
            description=self.description,
            status=self.status,
            priority=self.priority,
            assignee=self.assignee,
            due_date=self.due_date,
            tags=list(self.tags),
            custom_fields={k: v.model_dump(mode="json") for k, v in self.custom_fields.items()},
            order=self.order,
        )


class TaskCreate(CamelModel):
    """Create a new task. ``order`` is assigned by the server."""

    project_id: str
    title: str = Field(..., min_length=1, max_length=500)
    description: str = ""
    status: TaskStatus = "todo"
    priority: TaskPriority = "medium"
    assignee: Assignee | None = None
    due_date: date | None = None
    tags: list[str] = Field(default_factory=list)
    custom_fields: dict[str, Any] = Field(default_factory=dict)

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: list[str]) -> list[str]:
        return _dedupe(v) or []


class TaskUpdate(CamelModel):
    """Partial task update; only fields that were set are applied."""

    title: str | None = Field(None, min_length=1, max_length=500)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    assignee: Assignee | None = None
    due_date: date | None = None
    tags: list[str] | None = None
    custom_fields: dict[str, Any] | None = None
    order: float | None = None
    comments: int | None = None

    @field_validator("tags")
    @classmethod
    def dedupe_tags(cls, v: list[str] | None) -> list[str] | None:
        return _dedupe(v)


class TaskReorder(CamelModel):
    """Batch of (id, order) pairs. Lengths are checked by the handler."""

    task_ids: list[str]
    new_orders: list[float]


# =========================================================================
# Export / import
# =========================================================================


class ProjectExport(CamelModel):
    """A project with everything needed to recreate it elsewhere."""

    project: Project
    tasks: list[Task]
    custom_fields: list[CustomField]
    export_date: datetime
