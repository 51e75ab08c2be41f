"""Optimistic update engine.

A mutation is applied to local state immediately, then committed to the
store in the background. The store's answer wins when it succeeds; on any
failure the caller's snapshot is restored and the user is notified. Nothing
is retried.

At most one commit per key is pending at a time. A second mutation for a
key that is still committing is dropped rather than queued.
"""

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Hashable, Optional, TypeVar

import structlog

from taskboard.board.notifications import Notifier, failure_notification
from taskboard.exceptions import TaskboardError, TransportError

logger = structlog.get_logger()

T = TypeVar("T")

DEFAULT_TIMEOUT_SECONDS = 10.0


class MutationOutcome(str, Enum):
    COMMITTED = "committed"
    REVERTED = "reverted"


class OptimisticEngine:
    """Applies mutations locally, commits them remotely, reverts on failure."""

    def __init__(self, notifier: Notifier, timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS):
        self.notifier = notifier
        self.timeout = timeout
        self._pending: dict[Hashable, asyncio.Task[MutationOutcome]] = {}

    def is_in_flight(self, key: Hashable) -> bool:
        task = self._pending.get(key)
        return task is not None and not task.done()

    @property
    def pending_keys(self) -> list[Hashable]:
        return [key for key, task in self._pending.items() if not task.done()]

    def submit(
        self,
        key: Hashable,
        proposed: T,
        snapshot: Any,
        *,
        apply_locally: Callable[[T], None],
        commit_remote: Callable[[T], Awaitable[Optional[T]]],
        revert_locally: Optional[Callable[[Any], None]] = None,
        label: str = "update",
    ) -> Optional["asyncio.Task[MutationOutcome]"]:
        """Apply ``proposed`` now and commit it in the background.

        ``snapshot`` must be a copy of the state before the mutation; it is
        handed to ``revert_locally`` (``apply_locally`` when omitted) if the
        commit fails. Returns the commit task, or ``None`` when a commit for
        ``key`` is already in flight and the mutation was dropped.
        """
        if self.is_in_flight(key):
            logger.debug("concurrent_mutation_skipped", key=key, label=label)
            return None

        apply_locally(proposed)

        task = asyncio.get_running_loop().create_task(
            self._commit(
                key,
                proposed,
                snapshot,
                apply_locally=apply_locally,
                commit_remote=commit_remote,
                revert_locally=revert_locally or apply_locally,
                label=label,
            )
        )
        self._pending[key] = task
        task.add_done_callback(lambda done: self._forget(key, done))
        return task

    def _forget(self, key: Hashable, task: "asyncio.Task[MutationOutcome]") -> None:
        if self._pending.get(key) is task:
            del self._pending[key]

    async def _commit(
        self,
        key: Hashable,
        proposed: T,
        snapshot: Any,
        *,
        apply_locally: Callable[[T], None],
        commit_remote: Callable[[T], Awaitable[Optional[T]]],
        revert_locally: Callable[[Any], None],
        label: str,
    ) -> MutationOutcome:
        try:
            result = await asyncio.wait_for(commit_remote(proposed), self.timeout)
        except asyncio.TimeoutError:
            error: TaskboardError = TransportError(
                f"Request timed out after {self.timeout}s", code="TIMEOUT"
            )
        except asyncio.CancelledError:
            cancelled = TransportError("Request cancelled", code="CANCELLED")
            self._revert(key, snapshot, revert_locally, label, cancelled)
            raise
        except TaskboardError as e:
            error = e
        except Exception as e:
            logger.exception("mutation_commit_crashed", key=key, label=label)
            error = TaskboardError(str(e) or type(e).__name__, code="UNEXPECTED_ERROR")
        else:
            if result is not None:
                apply_locally(result)
            logger.debug("mutation_committed", key=key, label=label)
            return MutationOutcome.COMMITTED

        self._revert(key, snapshot, revert_locally, label, error)
        return MutationOutcome.REVERTED

    def _revert(
        self,
        key: Hashable,
        snapshot: Any,
        revert_locally: Callable[[Any], None],
        label: str,
        error: TaskboardError,
    ) -> None:
        logger.warning("mutation_reverted", key=key, label=label, code=error.code, error=error.message)
        revert_locally(snapshot)
        self.notifier.notify(failure_notification(label, error))

    async def wait_idle(self) -> None:
        """Wait until every pending commit has finished."""
        while True:
            pending = [task for task in self._pending.values() if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel pending commits; each one reverts its local change."""
        # Let freshly submitted commits reach their first await so they can revert
        await asyncio.sleep(0)
        pending = [task for task in self._pending.values() if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._pending.clear()
