"""Fractional ordering for drag-and-drop inserts.

A task moved between two neighbours gets an order value between theirs, so a
move costs one write instead of renumbering the whole column. Values are
floats; ties are broken by task id.

Repeated inserts at the same spot halve the gap each time. Once the integer
half reaches zero the exact midpoint is used, which keeps ordering correct
until float precision runs out. Nothing renumbers automatically;
``spread_orders`` is what a full-list reorder uses to restore wide gaps.
"""

import math
from enum import Enum
from typing import Iterable, Sequence

import structlog

from taskboard.exceptions import ValidationError
from taskboard.schemas import Task

logger = structlog.get_logger()

ORDER_GAP = 1000
DEFAULT_ORDER = 1000


class Position(str, Enum):
    """Where a dropped task lands relative to the hovered one."""

    BEFORE = "before"
    AFTER = "after"


def sort_tasks(tasks: Iterable[Task]) -> list[Task]:
    """Render order: ascending order value, then id."""
    return sorted(tasks, key=lambda t: t.sort_key)


def neighbour_indexes(index: int, position: Position) -> tuple[int, int]:
    """(previous, next) indexes around an insertion relative to ``index``."""
    if position == Position.BEFORE:
        return index - 1, index
    return index, index + 1


def compute_order(
    tasks: Sequence[Task],
    index: int,
    position: Position,
    *,
    gap: float = ORDER_GAP,
    default: float = DEFAULT_ORDER,
) -> float:
    """Order value for a task inserted before/after ``tasks[index]``.

    ``tasks`` is the target list already sorted by order and without the
    task being moved.
    """
    if not tasks:
        return default
    if not 0 <= index < len(tasks):
        raise ValidationError(f"Insertion index {index} out of range for {len(tasks)} tasks")

    prev_index, next_index = neighbour_indexes(index, Position(position))

    if prev_index < 0:
        first = tasks[0].order
        candidate = first - gap
        if candidate < 0 < first:
            # Stay non-negative while there is room above zero
            candidate = 0
        return candidate

    if next_index >= len(tasks):
        return tasks[-1].order + gap

    prev_order = tasks[prev_index].order
    next_order = tasks[next_index].order
    half = math.floor((next_order - prev_order) / 2)
    if half > 0:
        return prev_order + half

    logger.warning(
        "order_gap_exhausted",
        prev_task_id=tasks[prev_index].id,
        next_task_id=tasks[next_index].id,
        prev_order=prev_order,
        next_order=next_order,
    )
    return prev_order + (next_order - prev_order) / 2


def append_order(tasks: Sequence[Task], *, gap: float = ORDER_GAP, default: float = DEFAULT_ORDER) -> float:
    """Order value for the end of ``tasks`` (a drop on an empty column area)."""
    if not tasks:
        return default
    return compute_order(tasks, len(tasks) - 1, Position.AFTER, gap=gap, default=default)


def spread_orders(count: int, gap: float = ORDER_GAP) -> list[float]:
    """Evenly spaced order values for a renumbered list."""
    return [i * gap for i in range(count)]
