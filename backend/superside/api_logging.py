from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from superside.logging_setup import log_event

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class ApiRequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        error_text = None
        status_code = None

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        except Exception as e:
            error_text = str(e)
            status_code = 500
            raise
        finally:
            duration_ms = int((time.perf_counter() - start) * 1000)
            log_event(
                logger,
                f"{request.method} {request.url.path} {status_code}",
                plane="control",
                request_id=request_id,
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "query": request.url.query,
                    "status_code": status_code,
                    "duration_ms": duration_ms,
                    "client_ip": request.client.host if request.client else None,
                    "user_agent": request.headers.get("user-agent"),
                    "error": error_text,
                },
                level=logging.ERROR if error_text else logging.INFO,
            )
