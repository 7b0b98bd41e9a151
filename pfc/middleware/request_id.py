"""Request ID tracing middleware — adds X-Request-ID to every response."""
from __future__ import annotations

import logging
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from pfc.errors import INTERNAL_ERROR_BODY

logger = logging.getLogger(__name__)

# Context var accessible from anywhere during a request lifecycle
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDLogFilter(logging.Filter):
    """Stamp the current request ID onto every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        return True


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a request ID to every request/response.

    A client-supplied X-Request-ID is honored, otherwise a UUID4 is generated.
    Unhandled errors are rendered here as a 500 so they carry the ID too;
    Starlette's own catch-all sits outside every user middleware.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        rid = request.headers.get("x-request-id") or str(uuid.uuid4())
        token = request_id_var.set(rid)
        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            response = JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)
        finally:
            request_id_var.reset(token)
        response.headers["X-Request-ID"] = rid
        return response
