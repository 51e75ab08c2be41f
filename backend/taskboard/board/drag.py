"""Drag and drop between board columns.

The controller turns a stream of pointer events into at most one move per
gesture::

    IDLE -> drag_start -> DRAGGING -> drag_over -> HOVERING -> drop -> COMMITTING -> IDLE

Enter/leave events are counted per drop zone because nested elements fire
them in pairs; a zone stays active until its counter falls back to zero.
"""

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

import structlog

from taskboard.board.ordering import Position, append_order, compute_order
from taskboard.schemas import TASK_STATUSES, Task

if TYPE_CHECKING:
    from taskboard.board.board import CommitTask, TaskBoard

logger = structlog.get_logger()


class DragPhase(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    HOVERING = "hovering"
    COMMITTING = "committing"


@dataclass(frozen=True)
class Bounds:
    """Vertical extent of the hovered card."""

    top: float
    height: float

    @property
    def midpoint(self) -> float:
        return self.top + self.height / 2


def resolve_position(pointer_y: float, bounds: Bounds) -> Position:
    """Upper half of a card inserts before it, lower half after."""
    if pointer_y < bounds.midpoint:
        return Position.BEFORE
    return Position.AFTER


@dataclass(frozen=True)
class HoverRecord:
    zone: str
    task_id: Optional[str]
    position: Position
    index: Optional[int]


@dataclass(frozen=True)
class DragSession:
    task_id: str
    source_status: str
    source_index: int
    snapshot: Task


class DragController:
    """State machine for one drag gesture at a time on a ``TaskBoard``."""

    def __init__(self, board: "TaskBoard"):
        self.board = board
        self.phase = DragPhase.IDLE
        self.session: Optional[DragSession] = None
        self.hover: Optional[HoverRecord] = None
        self.active_zone: Optional[str] = None
        self._counters: dict[str, int] = {}

    @property
    def dragged_task_id(self) -> Optional[str]:
        return self.session.task_id if self.session else None

    def drag_start(self, task_id: str) -> Optional[DragSession]:
        task = self.board.get_task(task_id)
        if task is None:
            logger.debug("drag_start_unknown_task", task_id=task_id)
            return None
        self._reset()
        column = self.board.column(task.status)
        self.session = DragSession(
            task_id=task_id,
            source_status=task.status,
            source_index=next(i for i, t in enumerate(column) if t.id == task_id),
            snapshot=task.model_copy(deep=True),
        )
        self.phase = DragPhase.DRAGGING
        return self.session

    def drag_enter(self, zone: str) -> None:
        if self.session is None:
            return
        self._counters[zone] = self._counters.get(zone, 0) + 1
        self.active_zone = zone

    def drag_leave(self, zone: str) -> None:
        if self.session is None:
            return
        count = self._counters.get(zone, 0) - 1
        if count <= 0:
            count = 0
            if self.active_zone == zone:
                self.active_zone = None
        self._counters[zone] = count

    def zone_count(self, zone: str) -> int:
        return self._counters.get(zone, 0)

    def _targets(self, zone: str) -> list[Task]:
        """The zone's tasks in render order, without the dragged one."""
        return [t for t in self.board.column(zone) if t.id != self.dragged_task_id]

    def drag_over(
        self,
        zone: str,
        target_task_id: Optional[str] = None,
        pointer_y: Optional[float] = None,
        bounds: Optional[Bounds] = None,
    ) -> Optional[HoverRecord]:
        if self.session is None:
            return None
        self.active_zone = zone

        position = Position.BEFORE
        if pointer_y is not None and bounds is not None:
            position = resolve_position(pointer_y, bounds)

        index = None
        if target_task_id is not None:
            targets = self._targets(zone)
            index = next((i for i, t in enumerate(targets) if t.id == target_task_id), None)

        self.hover = HoverRecord(zone=zone, task_id=target_task_id, position=position, index=index)
        self.phase = DragPhase.HOVERING
        return self.hover

    def drop(self, zone: str) -> "CommitTask":
        """Finish the gesture over ``zone``; returns the commit task if a move was made."""
        session, hover = self.session, self.hover
        try:
            if session is None or zone not in TASK_STATUSES:
                return None
            self.phase = DragPhase.COMMITTING
            return self._commit(session, zone, hover if hover and hover.zone == zone else None)
        finally:
            self._reset()

    def _commit(self, session: DragSession, zone: str, hover: Optional[HoverRecord]) -> "CommitTask":
        task = self.board.get_task(session.task_id)
        if task is None:
            logger.debug("drop_unknown_task", task_id=session.task_id)
            return None
        if hover is not None and hover.task_id == task.id:
            return None
        if task.status == zone and (hover is None or hover.index is None):
            return None
        if self.board.is_busy(task.id):
            logger.debug("drop_ignored_busy", task_id=task.id)
            return None

        targets = self._targets(zone)
        # The column may have changed since the hover; find the target again
        index = None
        if hover is not None and hover.task_id is not None:
            index = next((i for i, t in enumerate(targets) if t.id == hover.task_id), None)

        gap, default = self.board.order_gap, self.board.order_default
        if index is not None:
            order = compute_order(targets, index, hover.position, gap=gap, default=default)
        else:
            order = append_order(targets, gap=gap, default=default)

        if task.status == zone and order == task.order:
            return None

        logger.info(
            "task_dropped",
            task_id=task.id,
            from_status=session.source_status,
            to_status=zone,
            order=order,
        )
        return self.board.move_task(task.id, zone, order)

    def drag_end(self) -> None:
        self._reset()

    def cancel(self) -> None:
        self._reset()

    def _reset(self) -> None:
        self.phase = DragPhase.IDLE
        self.session = None
        self.hover = None
        self.active_zone = None
        self._counters.clear()
