"""Task filtering for the board and table views."""

from datetime import date
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from taskboard.schemas import Task, TaskPriority

UNASSIGNED = "unassigned"


class TaskFilter(BaseModel):
    """Filter options; unset options match everything."""

    title: str = ""
    assignee: str = ""
    priority: Optional[TaskPriority] = None
    due_date_from: Optional[date] = None
    due_date_to: Optional[date] = None
    tags: list[str] = Field(default_factory=list)

    @property
    def active_count(self) -> int:
        return sum(
            bool(v)
            for v in (
                self.title,
                self.assignee,
                self.priority,
                self.due_date_from or self.due_date_to,
                self.tags,
            )
        )


def matches_query(task: Task, query: str) -> bool:
    """Case-insensitive substring match over title and description."""
    needle = query.lower()
    return needle in task.title.lower() or needle in task.description.lower()


def _matches(task: Task, filters: TaskFilter) -> bool:
    if filters.title and filters.title.lower() not in task.title.lower():
        return False

    if filters.assignee:
        if filters.assignee == UNASSIGNED:
            if task.assignee is not None:
                return False
        elif task.assignee is None or task.assignee.name != filters.assignee:
            return False

    if filters.priority and task.priority != filters.priority:
        return False

    # Tasks without a due date never match a date range
    if filters.due_date_from and (task.due_date is None or task.due_date < filters.due_date_from):
        return False
    if filters.due_date_to and (task.due_date is None or task.due_date > filters.due_date_to):
        return False

    if filters.tags and not set(filters.tags) & set(task.tags):
        return False

    return True


def filter_tasks(
    tasks: Iterable[Task],
    filters: Optional[TaskFilter] = None,
    query: str = "",
) -> list[Task]:
    """Tasks matching the search query and every active filter, order kept."""
    filters = filters or TaskFilter()
    return [
        task
        for task in tasks
        if (not query or matches_query(task, query)) and _matches(task, filters)
    ]


def available_tags(tasks: Iterable[Task]) -> list[str]:
    """Every tag in use, in first-seen order."""
    seen: dict[str, None] = {}
    for task in tasks:
        for tag in task.tags:
            seen.setdefault(tag, None)
    return list(seen)
