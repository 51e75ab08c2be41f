"""Middleware package."""

from taskboard.middleware.logging import LoggingMiddleware
from taskboard.middleware.request_id import REQUEST_ID_HEADER, RequestIDMiddleware

__all__ = ["LoggingMiddleware", "REQUEST_ID_HEADER", "RequestIDMiddleware"]
