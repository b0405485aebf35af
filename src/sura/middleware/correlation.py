"""Correlation id propagation and request logging."""

from __future__ import annotations

import re
import time
from uuid import uuid4

from sura.http.request import Request
from sura.http.response import Response
from sura.logging_utils import bind_request_context, create_service_logger
from sura.protocols import NextHandler

logger = create_service_logger("sura.http")

CORRELATION_HEADER = "X-Correlation-ID"
_VALID_ID = re.compile(r"^[A-Za-z0-9._-]{1,128}$")


class CorrelationIdMiddleware:
    """Tag the request with a correlation id and log its outcome.

    An incoming ``X-Correlation-ID`` is reused when well formed, otherwise a
    UUID4 is generated. The id is bound into the structlog context for every
    log line of the request and echoed on the response.
    """

    async def handle(self, request: Request, next: NextHandler) -> Response:
        incoming = request.header(CORRELATION_HEADER)
        correlation_id = incoming if incoming and _VALID_ID.match(incoming) else str(uuid4())

        request.state["correlation_id"] = correlation_id
        bind_request_context(correlation_id, request.method, request.path)

        started = time.perf_counter()
        response = await next(request)
        duration_ms = (time.perf_counter() - started) * 1000

        response.set_header(CORRELATION_HEADER, correlation_id)
        logger.info(
            "Request handled",
            status_code=response.status,
            duration_ms=round(duration_ms, 2),
        )
        return response
