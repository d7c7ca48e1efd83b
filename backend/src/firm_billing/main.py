"""FastAPI application entry point."""
import traceback
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from sqlalchemy.exc import SQLAlchemyError

from firm_billing.config import settings
from firm_billing.exceptions import BillingPolicyError
from firm_billing.middleware.logging import LoggingMiddleware, setup_logging
from firm_billing.middleware.metrics import MetricsMiddleware
from firm_billing.schemas.error import ERROR_STATUS_CODES, REMEDIATION_HINTS, ErrorCode, ErrorDetail, ErrorResponse

# Setup structured logging
setup_logging()
logger = structlog.get_logger(__name__)


def _request_id(request: Request) -> str:
    return request.headers.get("x-request-id", f"req_{uuid.uuid4().hex[:12]}")


def _timestamp() -> str:
    return datetime.utcnow().isoformat() + "Z"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager for startup and shutdown events."""
    logger.info("application_starting", env=settings.app_env)
    yield
    logger.info("application_shutting_down")


app = FastAPI(
    title="Firm Billing Policy Engine",
    description="Usage alerts, split billing and growth-charge approval for multi-tenant firms",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(MetricsMiddleware)
app.add_middleware(LoggingMiddleware)

# Mount Prometheus metrics endpoint
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)


# Exception handlers with structured error responses
@app.exception_handler(BillingPolicyError)
async def billing_policy_exception_handler(request: Request, exc: BillingPolicyError) -> JSONResponse:
    """
    Handle billing engine errors.

    Returns 422 for invalid input, 409 for rejected transitions and
    concurrency violations, 404 for unknown entities.
    """
    request_id = _request_id(request)
    status_code = ERROR_STATUS_CODES.get(exc.code, status.HTTP_400_BAD_REQUEST)

    logger.warning(
        "billing_policy_error",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        error_code=exc.code,
        error_message=exc.message,
    )

    error = ErrorResponse(
        error=type(exc).__name__,
        message=exc.message,
        details=[ErrorDetail(code=exc.code, message=exc.message)],
        remediation=REMEDIATION_HINTS.get(exc.code),
        request_id=request_id,
    )
    return JSONResponse(status_code=status_code, content=error.model_dump(mode="json"))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle Pydantic validation errors with structured response.

    Returns 422 with detailed field-level validation errors.
    """
    request_id = _request_id(request)

    details = []
    for error in exc.errors():
        field_path = ".".join(str(loc) for loc in error["loc"])
        code = ErrorCode.INVALID_CATEGORY if error["type"] == "enum" else ErrorCode.VALIDATION_ERROR
        details.append(
            ErrorDetail(
                code=code,
                message=error["msg"],
                field=field_path,
                value=error.get("input"),
            ).model_dump(mode="json")
        )

    logger.warning(
        "validation_error",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        error_count=len(details),
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "ValidationError",
            "message": "Request validation failed",
            "details": details,
            "remediation": "Check the API documentation for correct request format at /docs",
            "request_id": request_id,
            "timestamp": _timestamp(),
            "documentation_url": f"{request.base_url}docs",
        },
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """
    Handle database errors.

    Returns 503 Service Unavailable for database connection issues.
    """
    request_id = _request_id(request)

    logger.error(
        "database_error",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        error_type=type(exc).__name__,
        error_message=str(exc),
    )

    # Don't expose internal database details in production
    error_message = "Database temporarily unavailable" if settings.app_env == "production" else str(exc)

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "error": "DatabaseError",
            "message": "A database error occurred",
            "details": [{"code": ErrorCode.DATABASE_ERROR, "message": error_message}],
            "remediation": REMEDIATION_HINTS.get(ErrorCode.DATABASE_ERROR),
            "request_id": request_id,
            "timestamp": _timestamp(),
        },
        headers={"Retry-After": "30"},
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle all other uncaught exceptions.

    Logs the full stack trace but returns a safe error message to the client.
    """
    request_id = _request_id(request)

    logger.exception(
        "unhandled_exception",
        path=request.url.path,
        method=request.method,
        request_id=request_id,
        exception_type=type(exc).__name__,
        exception_message=str(exc),
        stack_trace=traceback.format_exc(),
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "InternalServerError",
            "message": "An unexpected error occurred",
            "details": [
                {
                    "code": ErrorCode.INTERNAL_ERROR,
                    "message": str(exc) if settings.debug else "Internal server error",
                }
            ],
            "remediation": "Please contact support with the request ID",
            "request_id": request_id,
            "timestamp": _timestamp(),
        },
    )


@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "service": "Firm Billing Policy Engine",
        "version": "0.1.0",
        "status": "operational",
        "docs": "/docs",
    }


# Include routers
from firm_billing.api.v1 import billing_rules, charges, firms, health, invoices, split_billing, summary, usage  # noqa: E402

app.include_router(health.router, tags=["Health"])
app.include_router(firms.router, prefix="/v1")
app.include_router(usage.router, prefix="/v1")
app.include_router(split_billing.router, prefix="/v1")
app.include_router(billing_rules.router, prefix="/v1")
app.include_router(charges.router, prefix="/v1")
app.include_router(invoices.router, prefix="/v1")
app.include_router(summary.router, prefix="/v1")
