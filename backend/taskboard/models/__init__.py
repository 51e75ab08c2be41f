"""SQLAlchemy models."""

from taskboard.models.project import CustomField, Project, Task

__all__ = ["CustomField", "Project", "Task"]
