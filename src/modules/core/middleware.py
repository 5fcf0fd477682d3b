import time
import uuid
from contextvars import ContextVar
from typing import Callable

import structlog
from django.http import HttpRequest, HttpResponse

REQUEST_ID_HEADER = "X-Request-ID"

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

logger = structlog.get_logger(__name__)


class CorrelationIdMiddleware:
    """Tags each request with a correlation ID taken from ``X-Request-ID``.

    A UUID4 is generated when the header is absent. The ID is bound to the
    structlog context for the lifetime of the request, so cart mutations,
    submissions and ledger debits logged while serving it all carry the
    same ``correlation_id``, and it is echoed in the response header.
    """

    def __init__(self, get_response: Callable[[HttpRequest], HttpResponse]) -> None:
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        cid = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        correlation_id_var.set(cid)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            correlation_id=cid, method=request.method, path=request.path
        )

        started = time.perf_counter()
        logger.info("request_started")
        response = self.get_response(request)
        logger.info(
            "request_finished",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )

        response[REQUEST_ID_HEADER] = cid
        return response
