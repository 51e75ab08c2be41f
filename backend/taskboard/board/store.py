"""The persistence collaborator the board talks to."""

from typing import Protocol

from taskboard.schemas import (
    CustomField,
    CustomFieldCreate,
    CustomFieldUpdate,
    Project,
    ProjectCreate,
    ProjectUpdate,
    Task,
    TaskCreate,
    TaskUpdate,
)


class TaskStore(Protocol):
    """Remote store for projects, tasks and custom fields.

    Every call may raise ``TransportError``, ``RateLimitError``,
    ``ValidationError`` or ``NotFoundError``.
    """

    async def list_projects(self) -> list[Project]: ...

    async def get_project(self, project_id: str) -> Project: ...

    async def create_project(self, data: ProjectCreate) -> Project: ...

    async def update_project(self, project_id: str, data: ProjectUpdate) -> Project: ...

    async def delete_project(self, project_id: str) -> None: ...

    async def list_tasks(self, project_id: str) -> list[Task]: ...

    async def get_task(self, task_id: str) -> Task: ...

    async def create_task(self, data: TaskCreate) -> Task: ...

    async def update_task(self, task_id: str, data: TaskUpdate) -> Task: ...

    async def delete_task(self, task_id: str) -> None: ...

    async def reorder_tasks(self, task_ids: list[str], orders: list[float]) -> None: ...

    async def list_custom_fields(self, project_id: str) -> list[CustomField]: ...

    async def create_custom_field(self, data: CustomFieldCreate) -> CustomField: ...

    async def update_custom_field(self, field_id: str, data: CustomFieldUpdate) -> CustomField: ...

    async def delete_custom_field(self, field_id: str) -> None: ...
