import logging
import time
from typing import Callable

from fastapi import Request

logger = logging.getLogger("latency_monitor.access")

def request_logging_middleware(app):
    @app.middleware("http")
    async def log_request(request: Request, call_next: Callable):
        # no registrar /health
        if request.url.path == "/health":
            return await call_next(request)

        started = time.monotonic()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            logger.info(
                "%s %s -> %s (%d ms)",
                request.method,
                request.url.path,
                status_code,
                int((time.monotonic() - started) * 1000),
            )
        return response
