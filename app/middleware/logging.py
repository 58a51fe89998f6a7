"""
Request logging middleware for FastAPI using Loguru.

Every request gets an ``X-Request-ID`` header and one access record at the
custom REQUEST level, with the id bound into the Loguru context so records
emitted while handling the request carry it too.
"""

import time
import uuid

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware


class LoggingMiddleware(BaseHTTPMiddleware):
    """Access logging with per-request correlation ids."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        start_time = time.time()

        with logger.contextualize(request_id=request_id):
            response = await call_next(request)

            response.headers["X-Request-ID"] = request_id
            process_time_ms = round((time.time() - start_time) * 1000, 2)

            client_ip = request.client.host if request.client else "unknown"
            if "X-Forwarded-For" in request.headers:
                forwarded_ips = request.headers["X-Forwarded-For"].split(",")
                if forwarded_ips:
                    client_ip = forwarded_ips[0].strip()

            logger.log(
                "REQUEST",
                "{method} {path} {status_code} {process_time_ms}ms",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                process_time_ms=process_time_ms,
                client_ip=client_ip,
            )
            return response
