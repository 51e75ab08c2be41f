"""Task service: CRUD and batch reordering."""

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.exceptions import NotFoundError, ValidationError
from taskboard.models.project import Task
from taskboard.schemas import Task as TaskSchema
from taskboard.schemas import TaskCreate, TaskUpdate
from taskboard.services.custom_field import CustomFieldService
from taskboard.services.project import ProjectService

logger = structlog.get_logger()

REORDER_BATCH_SIZE = 50


class TaskService:
    """Service for managing tasks."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.fields = CustomFieldService(db)

    async def get_row(self, task_id: str) -> Task:
        result = await self.db.execute(select(Task).where(Task.id == task_id))
        task = result.scalar_one_or_none()
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    async def list_tasks(self, project_id: str) -> list[TaskSchema]:
        """All tasks of a project in render order."""
        await ProjectService(self.db).get_row(project_id)
        result = await self.db.execute(
            select(Task)
            .where(Task.project_id == project_id)
            .order_by(Task.order.asc(), Task.id.asc())
        )
        return [TaskSchema.model_validate(t) for t in result.scalars().all()]

    async def get_task(self, task_id: str) -> TaskSchema:
        return TaskSchema.model_validate(await self.get_row(task_id))

    async def create_task(self, data: TaskCreate) -> TaskSchema:
        """Create a task appended after the project's current maximum order."""
        await ProjectService(self.db).get_row(data.project_id)

        title = data.title.strip()
        if not title:
            raise ValidationError("Title is required")

        custom_fields = await self.fields.coerce_task_values(data.project_id, data.custom_fields)

        max_order_result = await self.db.execute(
            select(func.max(Task.order)).where(Task.project_id == data.project_id)
        )
        max_order = max_order_result.scalar()
        next_order = max_order + 1 if max_order is not None else 0

        task = Task(
            project_id=data.project_id,
            title=title,
            description=data.description or "",
            status=data.status,
            priority=data.priority,
            assignee_name=data.assignee.name if data.assignee else None,
            assignee_initials=data.assignee.initials if data.assignee else None,
            due_date=data.due_date,
            tags=data.tags,
            custom_fields=custom_fields,
            order=next_order,
        )
        self.db.add(task)
        await self.db.commit()
        await self.db.refresh(task)

        logger.info(
            "task_created",
            task_id=task.id,
            project_id=data.project_id,
            order=next_order,
        )
        return TaskSchema.model_validate(task)

    async def update_task(self, task_id: str, data: TaskUpdate) -> TaskSchema:
        """Apply a partial update. Only fields present in the payload change."""
        task = await self.get_row(task_id)
        changes = data.model_dump(exclude_unset=True)

        if "title" in changes:
            title = (changes["title"] or "").strip()
            if not title:
                raise ValidationError("Title is required")
            task.title = title
        if "description" in changes:
            task.description = changes["description"] or ""
        if changes.get("status") is not None:
            task.status = changes["status"]
        if changes.get("priority") is not None:
            task.priority = changes["priority"]
        if "assignee" in changes:
            assignee = data.assignee
            task.assignee_name = assignee.name if assignee else None
            task.assignee_initials = assignee.initials if assignee else None
        if "due_date" in changes:
            task.due_date = changes["due_date"]
        if "tags" in changes:
            task.tags = changes["tags"] or []
        if "custom_fields" in changes:
            task.custom_fields = await self.fields.coerce_task_values(
                task.project_id, changes["custom_fields"] or {}
            )
        if changes.get("order") is not None:
            task.order = changes["order"]
        if changes.get("comments") is not None:
            task.comments = changes["comments"]

        await self.db.commit()
        await self.db.refresh(task)

        logger.info("task_updated", task_id=task_id, fields=sorted(changes))
        return TaskSchema.model_validate(task)

    async def delete_task(self, task_id: str) -> None:
        task = await self.get_row(task_id)
        project_id = task.project_id
        await self.db.delete(task)
        await self.db.commit()

        logger.info("task_deleted", task_id=task_id, project_id=project_id)

    async def reorder_tasks(self, task_ids: list[str], new_orders: list[float]) -> int:
        """Write a batch of (id, order) pairs. All ids must exist."""
        if len(task_ids) != len(new_orders):
            raise ValidationError("taskIds and newOrders must have the same length")
        if not task_ids:
            return 0

        result = await self.db.execute(select(Task.id).where(Task.id.in_(task_ids)))
        found = set(result.scalars().all())
        missing = [task_id for task_id in task_ids if task_id not in found]
        if missing:
            raise NotFoundError("Task", missing[0])

        for start in range(0, len(task_ids), REORDER_BATCH_SIZE):
            batch = zip(
                task_ids[start:start + REORDER_BATCH_SIZE],
                new_orders[start:start + REORDER_BATCH_SIZE],
            )
            for task_id, order in batch:
                await self.db.execute(
                    update(Task).where(Task.id == task_id).values(order=order)
                )
        await self.db.commit()

        logger.info("tasks_reordered", count=len(task_ids))
        return len(task_ids)
