"""Services package."""

from taskboard.services.custom_field import CustomFieldService
from taskboard.services.project import ProjectService
from taskboard.services.task import TaskService

__all__ = ["CustomFieldService", "ProjectService", "TaskService"]
