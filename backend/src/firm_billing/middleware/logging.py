"""Structured logging setup and per-request logging context."""
import logging
import re
import sys
import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from firm_billing.config import settings

_FIRM_PATH = re.compile(r"/firms/(?P<firm_id>[0-9a-fA-F-]{36})")


def setup_logging() -> None:
    """Configure structlog for JSON output in production and console output elsewhere."""
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.app_env == "production":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=log_level,
    )


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Bind request_id (and firm_id for firm-scoped routes) into the structlog
    context so every engine log line can be correlated with its request.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Log request start and completion with timing."""
        request_id = request.headers.get("x-request-id") or f"req_{uuid.uuid4().hex[:12]}"

        structlog.contextvars.clear_contextvars()
        context = {
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
        }
        match = _FIRM_PATH.search(request.url.path)
        if match:
            context["firm_id"] = match.group("firm_id")
        structlog.contextvars.bind_contextvars(**context)

        logger = structlog.get_logger(__name__)
        started = time.perf_counter()
        logger.info("request_started")

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.exception("request_failed", exc_info=exc)
            raise

        logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        response.headers["X-Request-ID"] = request_id
        return response
