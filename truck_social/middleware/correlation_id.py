# Correlation-ID middleware: reuse X-Correlation-ID from the request or mint one; bind it to log context and echo it back.
import uuid
from typing import Callable

import structlog.contextvars
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

HEADER_CORRELATION_ID = "X-Correlation-ID"
HEADER_TRUCK_ID = "X-Truck-ID"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Bind correlation_id (and truck_id when sent) to structlog context; set the response header."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(HEADER_CORRELATION_ID, "").strip()
        if not correlation_id:
            correlation_id = str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        context = {"correlation_id": correlation_id, "path": request.url.path}
        truck_id = request.headers.get(HEADER_TRUCK_ID, "").strip()
        if truck_id:
            context["truck_id"] = truck_id
        structlog.contextvars.bind_contextvars(**context)

        response = await call_next(request)
        response.headers[HEADER_CORRELATION_ID] = correlation_id
        return response
