"""Tasks API endpoints."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskboard.db.session import get_db_session
from taskboard.schemas import Task, TaskCreate, TaskReorder, TaskUpdate
from taskboard.services.task import TaskService

router = APIRouter()
logger = structlog.get_logger()


@router.get("/", response_model=list[Task])
async def list_tasks(
    project_id: str = Query(..., alias="projectId"),
    db: AsyncSession = Depends(get_db_session),
) -> list[Task]:
    """List a project's tasks ordered by (order, id)."""
    return await TaskService(db).list_tasks(project_id)


@router.post("/", response_model=Task, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate,
    db: AsyncSession = Depends(get_db_session),
) -> Task:
    """Create a new task at the end of its project."""
    return await TaskService(db).create_task(task_data)


@router.post("/reorder")
async def reorder_tasks(
    reorder_data: TaskReorder,
    db: AsyncSession = Depends(get_db_session),
) -> dict[str, int | bool]:
    """Persist new order values for a batch of tasks."""
    if len(reorder_data.task_ids) != len(reorder_data.new_orders):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="taskIds and newOrders must have the same length",
        )
    updated = await TaskService(db).reorder_tasks(
        reorder_data.task_ids, reorder_data.new_orders
    )
    return {"success": True, "updated": updated}


@router.get("/{task_id}", response_model=Task)
async def get_task(
    task_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> Task:
    """Get a specific task."""
    return await TaskService(db).get_task(task_id)


@router.patch("/{task_id}", response_model=Task)
async def update_task(
    task_id: str,
    task_data: TaskUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> Task:
    """Partially update a task. The response is authoritative."""
    return await TaskService(db).update_task(task_id, task_data)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: str,
    db: AsyncSession = Depends(get_db_session),
) -> None:
    """Delete a task."""
    await TaskService(db).delete_task(task_id)
