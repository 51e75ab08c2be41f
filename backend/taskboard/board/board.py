"""Per-project board state.

``TaskBoard`` owns the local copy of one project's tasks. Every change is
applied here first and mirrored into the cache and the durable mirror, then
committed through the optimistic engine.
"""

import asyncio
from typing import Any, Iterable, Optional, Union

import structlog

from taskboard.board.cache import LocalCache
from taskboard.board.drag import DragController
from taskboard.board.mirror import Mirror, tasks_key
from taskboard.board.optimistic import MutationOutcome, OptimisticEngine
from taskboard.board.ordering import DEFAULT_ORDER, ORDER_GAP, sort_tasks, spread_orders
from taskboard.board.reorder import DEFAULT_CHUNK_SIZE, ReorderSubmitter
from taskboard.board.store import TaskStore
from taskboard.exceptions import NotFoundError, TransportError, ValidationError
from taskboard.field_values import coerce_field_value, coerce_field_values, is_empty, missing_required
from taskboard.schemas import CustomField, Task, TaskCreate, TaskStatus, TaskUpdate

logger = structlog.get_logger()

CommitTask = Optional["asyncio.Task[MutationOutcome]"]

# Fields that may be cleared with an explicit null
NULLABLE_FIELDS = frozenset({"assignee", "due_date"})


class TaskBoard:
    """Local, optimistic view of a project's tasks."""

    def __init__(
        self,
        project_id: str,
        store: TaskStore,
        engine: OptimisticEngine,
        cache: LocalCache,
        mirror: Mirror,
        *,
        fields: Iterable[CustomField] = (),
        order_gap: float = ORDER_GAP,
        order_default: float = DEFAULT_ORDER,
        reorder_chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self.project_id = project_id
        self.store = store
        self.engine = engine
        self.cache = cache
        self.mirror = mirror
        self.order_gap = order_gap
        self.order_default = order_default
        self.submitter = ReorderSubmitter(store, chunk_size=reorder_chunk_size)
        self.fields: list[CustomField] = list(fields)
        # True when the tasks came from the mirror because the store was unreachable
        self.stale = False
        self._tasks: dict[str, Task] = {}

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def load(self, force: bool = False) -> list[Task]:
        """Load tasks from the cache, then the store, then the mirror."""
        if not force:
            cached = self.cache.task_lists.get(self.project_id)
            if cached is not None:
                self._replace([t.model_copy(deep=True) for t in cached])
                self.stale = False
                return self.tasks

        try:
            tasks = await self.store.list_tasks(self.project_id)
        except TransportError as e:
            mirrored = self.mirror.load(tasks_key(self.project_id))
            if mirrored is None:
                raise
            logger.warning(
                "tasks_loaded_from_mirror",
                project_id=self.project_id,
                code=e.code,
                error=e.message,
            )
            self._replace([Task.model_validate(t) for t in mirrored])
            self.stale = True
            return self.tasks

        self._replace(tasks)
        self.stale = False
        self._persist()
        return self.tasks

    @property
    def tasks(self) -> list[Task]:
        """All tasks in render order."""
        return sort_tasks(self._tasks.values())

    def column(self, status: str) -> list[Task]:
        return sort_tasks(t for t in self._tasks.values() if t.status == status)

    def get_task(self, task_id: str) -> Optional[Task]:
        return self._tasks.get(task_id)

    def require_task(self, task_id: str) -> Task:
        task = self._tasks.get(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    def field(self, field_id: str) -> Optional[CustomField]:
        return next((f for f in self.fields if f.id == field_id), None)

    def set_fields(self, fields: Iterable[CustomField]) -> None:
        self.fields = list(fields)

    @property
    def reorder_key(self) -> tuple[str, str]:
        return ("reorder", self.project_id)

    def is_busy(self, task_id: str) -> bool:
        """True while a commit for ``task_id`` or a reorder of this board is in flight."""
        return self.engine.is_in_flight(task_id) or self.engine.is_in_flight(self.reorder_key)

    def _skip_if_busy(self, task_id: str, label: str) -> bool:
        if not self.is_busy(task_id):
            return False
        logger.debug("concurrent_mutation_skipped", key=task_id, label=label)
        return True

    # ------------------------------------------------------------------
    # Local state
    # ------------------------------------------------------------------

    def _replace(self, tasks: Iterable[Task]) -> None:
        self._tasks = {t.id: t for t in tasks}

    def _persist(self) -> None:
        tasks = self.tasks
        self.cache.task_lists.put(self.project_id, [t.model_copy(deep=True) for t in tasks])
        self.mirror.save(tasks_key(self.project_id), [t.to_wire() for t in tasks])

    def _apply(self, task: Task) -> None:
        self._tasks[task.id] = task
        self._persist()

    def _apply_many(self, tasks: Iterable[Task]) -> None:
        for task in tasks:
            self._tasks[task.id] = task
        self._persist()

    def _remove(self, task_id: str) -> None:
        self._tasks.pop(task_id, None)
        self._persist()

    def _touch_project(self) -> None:
        """Task counts changed: drop cached project summaries."""
        self.cache.entities.delete(self.cache.project_key(self.project_id))
        self.cache.entities.delete(self.cache.PROJECTS_KEY)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _coerce_custom_fields(self, raw: dict[str, Any]) -> dict[str, Any]:
        values = coerce_field_values(self.fields, raw)
        return {field_id: value.model_dump(mode="json") for field_id, value in values.items()}

    def update_task(
        self,
        task_id: str,
        changes: Union[TaskUpdate, dict[str, Any]],
        *,
        label: str = "update task",
    ) -> CommitTask:
        """Apply a partial update now and commit it in the background.

        Returns the commit task, or ``None`` when the task (or a reorder of
        this board) already has a commit in flight.
        """
        current = self.require_task(task_id)
        if self._skip_if_busy(task_id, label):
            return None
        if isinstance(changes, dict):
            changes = TaskUpdate.model_validate(changes)
        patch = {
            k: v
            for k, v in changes.model_dump(exclude_unset=True).items()
            if v is not None or k in NULLABLE_FIELDS
        }
        if not patch:
            return None
        if "title" in patch:
            patch["title"] = patch["title"].strip()
            if not patch["title"]:
                raise ValidationError("Title is required")
        if "custom_fields" in patch:
            patch["custom_fields"] = self._coerce_custom_fields(patch["custom_fields"])

        snapshot = current.model_copy(deep=True)
        proposed = Task.model_validate({**current.model_dump(), **patch})
        request = TaskUpdate.model_validate(patch)

        return self.engine.submit(
            task_id,
            proposed,
            snapshot,
            apply_locally=self._apply,
            commit_remote=lambda task: self.store.update_task(task.id, request),
            label=label,
        )

    def save_task(self, task_id: str, changes: Union[TaskUpdate, dict[str, Any]]) -> CommitTask:
        """Edit-form save: like ``update_task`` but required fields must be filled."""
        current = self.require_task(task_id)
        if isinstance(changes, dict):
            changes = TaskUpdate.model_validate(changes)
        values: dict[str, Any] = dict(current.custom_fields)
        if changes.custom_fields is not None:
            values = changes.custom_fields
        missing = missing_required(self.fields, values)
        if missing:
            raise ValidationError(f"Required fields are missing: {', '.join(missing)}")
        return self.update_task(task_id, changes, label="save task")

    def set_custom_field(self, task_id: str, field_id: str, raw: Any) -> CommitTask:
        """Set (or clear, for an empty value) one custom field on a task."""
        task = self.require_task(task_id)
        field = self.field(field_id)
        if field is None:
            raise ValidationError(f"Unknown custom field: {field_id}")

        values = {k: v.model_dump(mode="json") for k, v in task.custom_fields.items()}
        if is_empty(raw):
            values.pop(field_id, None)
        else:
            values[field_id] = coerce_field_value(field, raw).model_dump(mode="json")
        return self.update_task(
            task_id, TaskUpdate(custom_fields=values), label=f"update {field.name}"
        )

    def move_task(self, task_id: str, status: TaskStatus, order: float) -> CommitTask:
        """Change a task's column and position."""
        return self.update_task(task_id, TaskUpdate(status=status, order=order), label="move task")

    def delete_task(self, task_id: str) -> CommitTask:
        """Remove a task now; it comes back if the store refuses."""
        snapshot = self.require_task(task_id).model_copy(deep=True)
        if self._skip_if_busy(task_id, "delete task"):
            return None

        async def commit(_: str) -> None:
            await self.store.delete_task(task_id)
            self._touch_project()

        return self.engine.submit(
            task_id,
            task_id,
            snapshot,
            apply_locally=self._remove,
            commit_remote=commit,
            revert_locally=self._apply,
            label="delete task",
        )

    async def create_task(self, data: Union[TaskCreate, dict[str, Any]]) -> Task:
        """Create a task in the store and append it locally.

        Not optimistic: the store assigns the id and the order value.
        """
        if isinstance(data, dict):
            data = TaskCreate.model_validate({"project_id": self.project_id, **data})
        elif data.project_id != self.project_id:
            raise ValidationError("Task belongs to a different project")
        if data.custom_fields:
            data = data.model_copy(update={"custom_fields": self._coerce_custom_fields(data.custom_fields)})

        created = await self.store.create_task(data)
        self._apply(created)
        self._touch_project()
        logger.info("task_created", project_id=self.project_id, task_id=created.id)
        return created

    def reorder(self, ordered_ids: list[str]) -> CommitTask:
        """Renumber tasks to follow ``ordered_ids`` (table view reorder).

        Returns ``None`` when a listed task has a commit in flight. While the
        reorder is pending every task on the board counts as busy.
        """
        if len(set(ordered_ids)) != len(ordered_ids):
            raise ValidationError("Reorder ids must be unique")
        current = [self.require_task(task_id) for task_id in ordered_ids]
        busy = [task_id for task_id in ordered_ids if self.engine.is_in_flight(task_id)]
        if busy:
            logger.debug("concurrent_mutation_skipped", key=self.reorder_key, busy=busy)
            return None
        orders = spread_orders(len(ordered_ids), self.order_gap)

        snapshot = [t.model_copy(deep=True) for t in current]
        proposed = [t.model_copy(update={"order": order}) for t, order in zip(current, orders)]

        async def commit(_: list[Task]) -> None:
            result = await self.submitter.submit_reorder(ordered_ids, orders)
            if not result.ok and result.error is not None:
                raise result.error

        return self.engine.submit(
            self.reorder_key,
            proposed,
            snapshot,
            apply_locally=self._apply_many,
            commit_remote=commit,
            label="reorder tasks",
        )

    def drag(self) -> DragController:
        return DragController(self)
