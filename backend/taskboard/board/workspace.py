"""Composition root for the board client.

A ``Workspace`` owns the store connection, the caches and their sweeper, the
durable mirror, the optimistic engine and one ``TaskBoard`` per open project.
Use it as an async context manager so background work is torn down::

    async with Workspace.connect() as workspace:
        board = await workspace.open_board(project_id)
        board.drag()...
"""

import time
from typing import Any, Optional, Union

import structlog

from taskboard.board.board import TaskBoard
from taskboard.board.cache import Clock, LocalCache
from taskboard.board.client import StoreClient
from taskboard.board.filters import filter_tasks
from taskboard.board.mirror import FileMirror, Mirror, custom_fields_key, tasks_key
from taskboard.board.notifications import LogNotifier, Notifier
from taskboard.board.optimistic import OptimisticEngine
from taskboard.board.store import TaskStore
from taskboard.board.transfer import export_project, import_project
from taskboard.config import Settings, get_settings
from taskboard.exceptions import NotFoundError, TransportError
from taskboard.schemas import (
    CustomField,
    CustomFieldCreate,
    CustomFieldUpdate,
    Project,
    ProjectCreate,
    ProjectExport,
    ProjectUpdate,
    Task,
)

logger = structlog.get_logger()


def _copies(models: list) -> list:
    """Deep copies, so callers never share an instance with the cache."""
    return [m.model_copy(deep=True) for m in models]


class Workspace:
    """Cached, optimistic access to projects, tasks and custom fields."""

    def __init__(
        self,
        store: TaskStore,
        settings: Optional[Settings] = None,
        notifier: Optional[Notifier] = None,
        mirror: Optional[Mirror] = None,
        clock: Clock = time.monotonic,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.notifier = notifier or LogNotifier()
        self.mirror = mirror if mirror is not None else FileMirror(self.settings.mirror_dir)
        self.cache = LocalCache(
            ttl=self.settings.cache_ttl_seconds,
            capacity=self.settings.cache_max_entries,
            sweep_interval=self.settings.cache_sweep_interval_seconds,
            clock=clock,
        )
        self.engine = OptimisticEngine(self.notifier, timeout=self.settings.request_timeout)
        self._boards: dict[str, TaskBoard] = {}
        self._owned_client: Optional[StoreClient] = None

    @classmethod
    def connect(cls, settings: Optional[Settings] = None, **kwargs: Any) -> "Workspace":
        """Workspace talking to the HTTP API at ``settings.api_base_url``."""
        settings = settings or get_settings()
        client = StoreClient(settings.api_base_url, timeout=settings.request_timeout)
        workspace = cls(client, settings=settings, **kwargs)
        workspace._owned_client = client
        return workspace

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        self.cache.start()

    async def aclose(self) -> None:
        """Cancel pending commits, stop the sweeper and close the client."""
        await self.engine.aclose()
        await self.cache.aclose()
        self._boards.clear()
        if self._owned_client is not None:
            await self._owned_client.aclose()
            self._owned_client = None

    async def __aenter__(self) -> "Workspace":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    async def list_projects(self, force: bool = False) -> list[Project]:
        if not force:
            cached = self.cache.entities.get(self.cache.PROJECTS_KEY)
            if cached is not None:
                return _copies(cached)

        projects = await self.store.list_projects()
        self.cache.entities.put(self.cache.PROJECTS_KEY, _copies(projects))
        for project in projects:
            key = self.cache.project_key(project.id)
            self.cache.entities.put(key, project.model_copy(deep=True))
        return projects

    async def get_project(self, project_id: str, force: bool = False) -> Project:
        key = self.cache.project_key(project_id)
        if not force:
            cached = self.cache.entities.get(key)
            if cached is not None:
                return cached.model_copy(deep=True)

        try:
            project = await self.store.get_project(project_id)
        except NotFoundError:
            self.cache.invalidate_project(project_id)
            raise
        self.cache.entities.put(key, project.model_copy(deep=True))
        return project

    async def create_project(self, data: Union[ProjectCreate, dict[str, Any]]) -> Project:
        if isinstance(data, dict):
            data = ProjectCreate.model_validate(data)
        project = await self.store.create_project(data)
        self.cache.entities.delete(self.cache.PROJECTS_KEY)
        self.cache.entities.put(self.cache.project_key(project.id), project.model_copy(deep=True))
        logger.info("project_created", project_id=project.id)
        return project

    async def update_project(
        self, project_id: str, data: Union[ProjectUpdate, dict[str, Any]]
    ) -> Project:
        if isinstance(data, dict):
            data = ProjectUpdate.model_validate(data)
        project = await self.store.update_project(project_id, data)
        self.cache.entities.delete(self.cache.PROJECTS_KEY)
        self.cache.entities.put(self.cache.project_key(project.id), project.model_copy(deep=True))
        return project

    async def delete_project(self, project_id: str) -> None:
        await self.store.delete_project(project_id)
        self.cache.invalidate_project(project_id)
        self.mirror.remove(tasks_key(project_id))
        self.mirror.remove(custom_fields_key(project_id))
        self._boards.pop(project_id, None)
        logger.info("project_deleted", project_id=project_id)

    # ------------------------------------------------------------------
    # Custom fields
    # ------------------------------------------------------------------

    async def get_custom_fields(self, project_id: str, force: bool = False) -> list[CustomField]:
        """Project fields from the cache, then the store, then the mirror."""
        key = self.cache.fields_key(project_id)
        if not force:
            cached = self.cache.entities.get(key)
            if cached is not None:
                return _copies(cached)

        try:
            fields = await self.store.list_custom_fields(project_id)
        except TransportError as e:
            mirrored = self.mirror.load(custom_fields_key(project_id))
            if mirrored is None:
                raise
            logger.warning("custom_fields_loaded_from_mirror", project_id=project_id, code=e.code)
            return [CustomField.model_validate(f) for f in mirrored]

        self.cache.entities.put(key, _copies(fields))
        self.mirror.save(custom_fields_key(project_id), [f.to_wire() for f in fields])
        return fields

    async def _refresh_fields(self, project_id: str, reload_tasks: bool = False) -> None:
        self.cache.entities.delete(self.cache.fields_key(project_id))
        board = self._boards.get(project_id)
        if board is None:
            if reload_tasks:
                self.cache.task_lists.delete(project_id)
            return
        board.set_fields(await self.get_custom_fields(project_id, force=True))
        if reload_tasks:
            await board.load(force=True)

    async def create_custom_field(
        self, data: Union[CustomFieldCreate, dict[str, Any]]
    ) -> CustomField:
        if isinstance(data, dict):
            data = CustomFieldCreate.model_validate(data)
        field = await self.store.create_custom_field(data)
        await self._refresh_fields(field.project_id)
        return field

    async def update_custom_field(
        self, field_id: str, data: Union[CustomFieldUpdate, dict[str, Any]]
    ) -> CustomField:
        if isinstance(data, dict):
            data = CustomFieldUpdate.model_validate(data)
        field = await self.store.update_custom_field(field_id, data)
        await self._refresh_fields(field.project_id)
        return field

    async def delete_custom_field(self, project_id: str, field_id: str) -> None:
        """Delete a field; the store also strips its values from every task."""
        await self.store.delete_custom_field(field_id)
        await self._refresh_fields(project_id, reload_tasks=True)

    # ------------------------------------------------------------------
    # Boards
    # ------------------------------------------------------------------

    def board(self, project_id: str) -> Optional[TaskBoard]:
        """An already opened board."""
        return self._boards.get(project_id)

    async def open_board(self, project_id: str, force: bool = False) -> TaskBoard:
        """Board for ``project_id`` with its fields and tasks loaded."""
        board = self._boards.get(project_id)
        if board is None:
            board = TaskBoard(
                project_id,
                self.store,
                self.engine,
                self.cache,
                self.mirror,
                order_gap=self.settings.order_gap,
                order_default=self.settings.order_default,
                reorder_chunk_size=self.settings.reorder_chunk_size,
            )
        board.set_fields(await self.get_custom_fields(project_id, force=force))
        await board.load(force=force)
        self._boards[project_id] = board
        return board

    async def search_tasks(self, project_id: str, query: str) -> list[Task]:
        """Tasks whose title or description contains ``query``."""
        board = await self.open_board(project_id)
        return filter_tasks(board.tasks, query=query)

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    async def export_project(self, project_id: str) -> ProjectExport:
        return await export_project(self.store, project_id)

    async def import_project(self, data: Union[ProjectExport, dict[str, Any]]) -> Project:
        project = await import_project(self.store, data)
        self.cache.entities.delete(self.cache.PROJECTS_KEY)
        return project
