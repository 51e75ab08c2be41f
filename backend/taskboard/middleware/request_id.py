"""Request ID middleware so client and server logs can be correlated."""

import re
import uuid
from typing import Callable, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"

_VALID_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def accepted_request_id(value: Optional[str]) -> str:
    """The caller's id when it is short and header-safe, else a fresh uuid4."""
    if value and _VALID_REQUEST_ID.match(value):
        return value
    return str(uuid.uuid4())


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Reuse the board client's ``X-Request-ID`` or mint one, and echo it back."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = accepted_request_id(request.headers.get(REQUEST_ID_HEADER))
        request.state.request_id = request_id

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
