"""Taskboard exceptions.

Structured errors shared by the persistence service and the board client.
Every error carries a human readable message and a stable machine code.
"""

from typing import Optional


class TaskboardError(Exception):
    """Base exception for taskboard errors."""

    def __init__(self, message: str, code: str = "TASKBOARD_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(TaskboardError):
    """Malformed input.

    Raised locally for bad arguments (mismatched reorder arrays, invalid
    custom field values) and for 4xx validation responses from the store.
    Fatal to the call and never retried.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message=message, code="VALIDATION_ERROR")


class NotFoundError(TaskboardError):
    """Requested entity does not exist in the store."""

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            message=f"{entity} '{entity_id}' not found",
            code="NOT_FOUND",
        )


class TransportError(TaskboardError):
    """Network failure, timeout, cancellation or unexpected status.

    Recovered locally by reverting the optimistic mutation.
    """

    def __init__(
        self,
        message: str,
        code: str = "TRANSPORT_ERROR",
        status_code: Optional[int] = None,
    ):
        self.status_code = status_code
        super().__init__(message=message, code=code)


class RateLimitError(TransportError):
    """The store answered 429 Too Many Requests.

    Handled like any transport failure (revert and notify) but surfaced with
    its own message. ``retry_after`` is informational only; nothing retries.
    """

    def __init__(self, message: str = "Too many requests", retry_after: Optional[int] = None):
        self.retry_after = retry_after
        super().__init__(message=message, code="RATE_LIMITED", status_code=429)
