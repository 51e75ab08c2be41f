"""Board client: ordering, caching and optimistic reconciliation."""

from taskboard.board.board import TaskBoard
from taskboard.board.cache import LocalCache, LRUCache, TTLCache
from taskboard.board.client import StoreClient
from taskboard.board.drag import Bounds, DragController, DragPhase, resolve_position
from taskboard.board.filters import TaskFilter, available_tags, filter_tasks
from taskboard.board.mirror import FileMirror, MemoryMirror, Mirror
from taskboard.board.notifications import LogNotifier, Notification, Notifier, RecordingNotifier
from taskboard.board.optimistic import MutationOutcome, OptimisticEngine
from taskboard.board.ordering import Position, compute_order, sort_tasks, spread_orders
from taskboard.board.reorder import ReorderResult, ReorderSubmitter
from taskboard.board.store import TaskStore
from taskboard.board.workspace import Workspace

__all__ = [
    "Bounds",
    "DragController",
    "DragPhase",
    "FileMirror",
    "LocalCache",
    "LogNotifier",
    "LRUCache",
    "MemoryMirror",
    "Mirror",
    "MutationOutcome",
    "Notification",
    "Notifier",
    "OptimisticEngine",
    "Position",
    "RecordingNotifier",
    "ReorderResult",
    "ReorderSubmitter",
    "StoreClient",
    "TaskBoard",
    "TaskFilter",
    "TaskStore",
    "TTLCache",
    "Workspace",
    "available_tags",
    "compute_order",
    "filter_tasks",
    "resolve_position",
    "sort_tasks",
    "spread_orders",
]
