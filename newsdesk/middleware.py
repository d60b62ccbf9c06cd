# newsdesk/middleware.py
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .logging_setup import correlation_id_var, get_logger

logger = get_logger("newsdesk.http")

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS = {"/health"}


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tags every log line of a request with one correlation id.

    A client-supplied X-Request-ID is reused so a chat turn can be followed across the
    caller's logs and ours; otherwise a fresh id is minted. The id is echoed back.
    """

    async def dispatch(self, request: Request, call_next):
        cid = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        token = correlation_id_var.set(cid)
        log = logger.debug if request.url.path in QUIET_PATHS else logger.info
        route = f"{request.method} {request.url.path}"

        t0 = time.perf_counter()
        status = 500
        try:
            log("HTTP_START", extra={"route": route})
            response = await call_next(request)
            status = response.status_code
            response.headers[REQUEST_ID_HEADER] = cid
            return response
        except Exception:
            logger.exception("HTTP_FAILED", extra={"route": route})
            raise
        finally:
            log("HTTP_END", extra={"route": route, "status": status, "elapsed_ms": round((time.perf_counter() - t0) * 1000, 1)})
            correlation_id_var.reset(token)
