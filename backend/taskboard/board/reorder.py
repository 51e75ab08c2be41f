"""Batched submission of renumbered task orders."""

from dataclasses import dataclass
from typing import Optional, Sequence

import structlog

from taskboard.board.store import TaskStore
from taskboard.exceptions import TaskboardError, ValidationError

logger = structlog.get_logger()

DEFAULT_CHUNK_SIZE = 50


@dataclass(frozen=True)
class ReorderResult:
    ok: bool
    error: Optional[TaskboardError] = None
    batches: int = 0


class ReorderSubmitter:
    """Sends ``(id, order)`` pairs to the store in fixed-size chunks.

    Chunks go out one after another. The first failing chunk fails the whole
    submission; earlier chunks are not rolled back remotely, the caller
    reverts its local state instead.
    """

    def __init__(self, store: TaskStore, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self.store = store
        self.chunk_size = chunk_size

    async def submit_reorder(self, ids: Sequence[str], orders: Sequence[float]) -> ReorderResult:
        if len(ids) != len(orders):
            raise ValidationError(
                f"Reorder needs one order per task: got {len(ids)} ids and {len(orders)} orders"
            )

        batches = 0
        for start in range(0, len(ids), self.chunk_size):
            chunk_ids = list(ids[start : start + self.chunk_size])
            chunk_orders = list(orders[start : start + self.chunk_size])
            try:
                await self.store.reorder_tasks(chunk_ids, chunk_orders)
            except TaskboardError as e:
                logger.warning(
                    "reorder_batch_failed",
                    batch=batches,
                    size=len(chunk_ids),
                    code=e.code,
                    error=e.message,
                )
                return ReorderResult(ok=False, error=e, batches=batches)
            batches += 1

        logger.info("reorder_submitted", tasks=len(ids), batches=batches)
        return ReorderResult(ok=True, batches=batches)
