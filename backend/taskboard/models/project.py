"""Project, Task and CustomField models."""

from datetime import date
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from taskboard.db.base import BaseModel


class Project(BaseModel):
    """A project groups tasks and custom field definitions.

    The task count is not stored; it is computed on read.
    """

    __tablename__ = "projects"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default="planning"
    )  # planning, active, completed, archived

    def __repr__(self) -> str:
        return f"<Project {self.title[:30]}>"


class Task(BaseModel):
    """Task within a project."""

    __tablename__ = "tasks"

    project_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Basic info
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Status and priority
    status: Mapped[str] = mapped_column(
        String(50), nullable=False, default="todo"
    )  # todo, in-progress, review, done
    priority: Mapped[str] = mapped_column(
        String(20), nullable=False, default="medium"
    )  # low, medium, high

    # Assignee is a display name, not a user reference
    assignee_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    assignee_initials: Mapped[str | None] = mapped_column(String(10), nullable=True)

    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Ordering within the project; ties broken by id
    order: Mapped[float] = mapped_column(Float, nullable=False, default=0, index=True)

    comments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    # field_id -> {"type": ..., "value": ...}
    custom_fields: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=dict
    )

    def __repr__(self) -> str:
        return f"<Task {self.title[:30]}>"


class CustomField(BaseModel):
    """User-defined custom field for a project's tasks.

    Multiselect fields are stored as type "select" with is_multi set.
    """

    __tablename__ = "custom_fields"
    __table_args__ = (
        UniqueConstraint("project_id", "name", name="uq_custom_field_name"),
    )

    project_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str] = mapped_column(
        String(50), nullable=False
    )  # text, number, date, select, checkbox, url
    options: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_multi: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<CustomField {self.name} project={self.project_id}>"
