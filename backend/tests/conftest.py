"""Shared fixtures: an in-memory task store, the API app over SQLite, clocks."""

import asyncio
import itertools
from collections.abc import AsyncGenerator
from typing import Any, Callable, Optional

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.board.client import StoreClient
from taskboard.board.mirror import MemoryMirror
from taskboard.board.notifications import RecordingNotifier
from taskboard.config import Settings
from taskboard.db.session import build_engine, build_session_factory, create_tables, get_db_session
from taskboard.exceptions import NotFoundError, TaskboardError
from taskboard.main import create_app
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


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeStore:
    """In-memory ``TaskStore`` with scripted failures and delays.

    ``fail(method, error)`` makes the next call to ``method`` raise;
    ``hold(method)`` blocks calls to ``method`` until ``release(method)``.
    ``on_update`` may rewrite a task before it is returned (the server's
    authoritative version).
    """

    def __init__(self) -> None:
        self.projects: dict[str, Project] = {}
        self.tasks: dict[str, Task] = {}
        self.fields: dict[str, CustomField] = {}
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.reorder_batches: list[tuple[list[str], list[float]]] = []
        self.on_update: Optional[Callable[[Task], Task]] = None
        self._failures: dict[str, list[TaskboardError]] = {}
        self._gates: dict[str, asyncio.Event] = {}
        self._ids = itertools.count(1)

    # Scripting

    def fail(self, method: str, error: TaskboardError, times: int = 1) -> None:
        self._failures.setdefault(method, []).extend([error] * times)

    def hold(self, method: str) -> None:
        self._gates[method] = asyncio.Event()

    def release(self, method: str) -> None:
        gate = self._gates.pop(method, None)
        if gate is not None:
            gate.set()

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    async def _enter(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        gate = self._gates.get(method)
        if gate is not None:
            await gate.wait()
        failures = self._failures.get(method)
        if failures:
            raise failures.pop(0)

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"

    def _with_count(self, project: Project) -> Project:
        count = sum(1 for t in self.tasks.values() if t.project_id == project.id)
        return project.model_copy(update={"task_count": count})

    # Seeding helpers

    def add_project(self, title: str = "Project") -> Project:
        project = Project(id=self._next_id("project"), title=title, status="active")
        self.projects[project.id] = project
        return project

    def add_task(self, project_id: str, title: str, status: str = "todo", order: float = 0, **extra: Any) -> Task:
        task = Task(
            id=extra.pop("id", None) or self._next_id("task"),
            project_id=project_id,
            title=title,
            status=status,
            order=order,
            **extra,
        )
        self.tasks[task.id] = task
        return task

    def add_field(self, project_id: str, name: str, type: str, **extra: Any) -> CustomField:
        field = CustomField(id=self._next_id("field"), project_id=project_id, name=name, type=type, **extra)
        self.fields[field.id] = field
        return field

    # TaskStore

    async def list_projects(self) -> list[Project]:
        await self._enter("list_projects")
        return [self._with_count(p) for p in self.projects.values()]

    async def get_project(self, project_id: str) -> Project:
        await self._enter("get_project", project_id)
        if project_id not in self.projects:
            raise NotFoundError("Project", project_id)
        return self._with_count(self.projects[project_id])

    async def create_project(self, data: ProjectCreate) -> Project:
        await self._enter("create_project", data)
        project = Project(id=self._next_id("project"), **data.model_dump())
        self.projects[project.id] = project
        return project

    async def update_project(self, project_id: str, data: ProjectUpdate) -> Project:
        await self._enter("update_project", project_id, data)
        if project_id not in self.projects:
            raise NotFoundError("Project", project_id)
        project = self.projects[project_id].model_copy(update=data.model_dump(exclude_unset=True))
        self.projects[project_id] = project
        return self._with_count(project)

    async def delete_project(self, project_id: str) -> None:
        await self._enter("delete_project", project_id)
        if self.projects.pop(project_id, None) is None:
            raise NotFoundError("Project", project_id)
        self.tasks = {k: t for k, t in self.tasks.items() if t.project_id != project_id}
        self.fields = {k: f for k, f in self.fields.items() if f.project_id != project_id}

    async def list_tasks(self, project_id: str) -> list[Task]:
        await self._enter("list_tasks", project_id)
        if project_id not in self.projects:
            raise NotFoundError("Project", project_id)
        tasks = [t for t in self.tasks.values() if t.project_id == project_id]
        return [t.model_copy(deep=True) for t in sorted(tasks, key=lambda t: t.sort_key)]

    async def get_task(self, task_id: str) -> Task:
        await self._enter("get_task", task_id)
        if task_id not in self.tasks:
            raise NotFoundError("Task", task_id)
        return self.tasks[task_id].model_copy(deep=True)

    async def create_task(self, data: TaskCreate) -> Task:
        await self._enter("create_task", data)
        orders = [t.order for t in self.tasks.values() if t.project_id == data.project_id]
        task = Task.model_validate(
            {
                **data.model_dump(),
                "id": self._next_id("task"),
                "order": max(orders) + 1 if orders else 0,
            }
        )
        self.tasks[task.id] = task
        return task.model_copy(deep=True)

    async def update_task(self, task_id: str, data: TaskUpdate) -> Task:
        await self._enter("update_task", task_id, data)
        if task_id not in self.tasks:
            raise NotFoundError("Task", task_id)
        task = Task.model_validate(
            {**self.tasks[task_id].model_dump(), **data.model_dump(exclude_unset=True)}
        )
        if self.on_update is not None:
            task = self.on_update(task)
        self.tasks[task_id] = task
        return task.model_copy(deep=True)

    async def delete_task(self, task_id: str) -> None:
        await self._enter("delete_task", task_id)
        if self.tasks.pop(task_id, None) is None:
            raise NotFoundError("Task", task_id)

    async def reorder_tasks(self, task_ids: list[str], orders: list[float]) -> None:
        await self._enter("reorder_tasks", task_ids, orders)
        self.reorder_batches.append((list(task_ids), list(orders)))
        for task_id, order in zip(task_ids, orders):
            self.tasks[task_id] = self.tasks[task_id].model_copy(update={"order": order})

    async def list_custom_fields(self, project_id: str) -> list[CustomField]:
        await self._enter("list_custom_fields", project_id)
        return [f for f in self.fields.values() if f.project_id == project_id]

    async def create_custom_field(self, data: CustomFieldCreate) -> CustomField:
        await self._enter("create_custom_field", data)
        values = data.model_dump()
        if values["type"] == "multiselect":
            values.update(type="select", is_multi=True)
        field = CustomField(id=self._next_id("field"), **values)
        self.fields[field.id] = field
        return field

    async def update_custom_field(self, field_id: str, data: CustomFieldUpdate) -> CustomField:
        await self._enter("update_custom_field", field_id, data)
        if field_id not in self.fields:
            raise NotFoundError("CustomField", field_id)
        field = self.fields[field_id].model_copy(update=data.model_dump(exclude_unset=True))
        self.fields[field_id] = field
        return field

    async def delete_custom_field(self, field_id: str) -> None:
        await self._enter("delete_custom_field", field_id)
        if self.fields.pop(field_id, None) is None:
            raise NotFoundError("CustomField", field_id)
        for task_id, task in self.tasks.items():
            if field_id in task.custom_fields:
                values = {k: v for k, v in task.custom_fields.items() if k != field_id}
                self.tasks[task_id] = task.model_copy(update={"custom_fields": values})


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def mirror() -> MemoryMirror:
    return MemoryMirror()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url="sqlite+aiosqlite:///:memory:",
        mirror_dir=tmp_path / "mirror",
        request_timeout=1.0,
        log_level="WARNING",
    )


def make_task(task_id: str, order: float, status: str = "todo", **extra: Any) -> Task:
    values: dict[str, Any] = {
        "id": task_id,
        "project_id": "p1",
        "title": task_id,
        "status": status,
        "order": order,
    }
    values.update(extra)
    return Task(**values)


@pytest.fixture
def task_factory() -> Callable[..., Task]:
    return make_task


# =========================================================================
# API over in-memory SQLite
# =========================================================================


@pytest.fixture
async def db_engine(settings):
    engine = build_engine(settings)
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def app(settings, session_factory):
    app = create_app(settings)

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db_session] = override_session
    return app


@pytest.fixture
async def api(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Raw HTTP client for the API."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://test/api/v1"
    ) as client:
        yield client


@pytest.fixture
async def store_client(app) -> AsyncGenerator[StoreClient, None]:
    """``StoreClient`` talking to the in-process API."""
    async with StoreClient("http://test/api/v1", transport=httpx.ASGITransport(app=app)) as client:
        yield client

