import logging
import re
import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware

from dudelang.core.logging import latency_bucket_ms, request_id_ctx_var

logger = logging.getLogger("dudelang")

# Client-supplied ids are echoed into headers and logs; keep them tame.
_ACCEPTABLE_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a request id for the duration of the request and log one line when done."""

    def __init__(self, app, header_name: str = "x-request-id"):
        super().__init__(app)
        self.header_name = header_name

    def _resolve(self, request) -> str:
        supplied = request.headers.get(self.header_name)
        if supplied and _ACCEPTABLE_ID.match(supplied):
            return supplied
        return str(uuid4())

    async def dispatch(self, request, call_next):
        rid = self._resolve(request)
        request.state.request_id = rid
        token = request_id_ctx_var.set(rid)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_ctx_var.reset(token)

        response.headers[self.header_name] = rid
        logger.info(
            "request.complete",
            extra={
                "request_id": rid,
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "latency_bucket": latency_bucket_ms((time.perf_counter() - started) * 1000),
            },
        )
        return response
