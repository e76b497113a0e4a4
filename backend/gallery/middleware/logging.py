import time
import uuid
import json
import logging
from fastapi import Request, HTTPException
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class LoggingMiddleware(BaseHTTPMiddleware):
    """One JSON log line per request, correlated by X-Request-ID."""

    async def dispatch(self, request: Request, call_next):
        # Accept an inbound request id from the frontend, otherwise mint one
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()
        try:
            response = await call_next(request)
        except HTTPException as exc:
            duration_ms = (time.time() - start_time) * 1000
            logger.warning(
                "HTTPException on %s %s: %s (status=%s) after %sms",
                request.method,
                request.url.path,
                exc.detail,
                exc.status_code,
                round(duration_ms, 2)
            )
            raise
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.exception(
                "Unhandled error on %s %s after %sms: %s",
                request.method,
                request.url.path,
                round(duration_ms, 2),
                str(e)
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(json.dumps({
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(duration_ms, 2),
            "user_id": getattr(request.state, "user_id", None),
        }))

        response.headers["X-Request-ID"] = request_id
        return response
