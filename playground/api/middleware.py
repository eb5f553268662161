"""FastAPI middleware and exception handlers."""

import time
import uuid
from typing_extensions import override

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from playground.core.exceptions import AppError, InternalFault, Unauthenticated

logger = structlog.get_logger()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one start and one finish event per request, tagged with a request id.

    The id is taken from an incoming ``X-Request-ID`` header when present and
    echoed back on the response.
    """

    QUIET_PATHS = frozenset({"/api/health", "/docs", "/redoc", "/openapi.json"})

    @override
    async def dispatch(self, request: Request, call_next) -> Response:
        if request.url.path in self.QUIET_PATHS:
            return await call_next(request)

        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id, method=request.method, path=request.url.path
        )
        logger.info("request_started", query=str(request.query_params) or None)

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            logger.error("request_failed", error=str(e), duration_ms=_elapsed_ms(started))
            raise

        duration_ms = _elapsed_ms(started)
        logger.info("request_completed", status_code=response.status_code, duration_ms=duration_ms)
        response.headers["X-Process-Time-Ms"] = f"{duration_ms:.2f}"
        response.headers["X-Request-ID"] = request_id
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class ExceptionHandlerMiddleware(BaseHTTPMiddleware):
    """Last-resort handler: unexpected faults become a generic 500 envelope."""

    @override
    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception("unhandled_exception", path=request.url.path, error=str(e))
            return JSONResponse(status_code=500, content=InternalFault().to_dict())


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Translate an ``AppError`` into its envelope and status code."""
    if isinstance(exc, InternalFault) or exc.status_code >= 500:
        logger.error("app_error", path=request.url.path, code=exc.code, error=exc.message)
        # Generic message only; internals stay in the log
        content = InternalFault(exc.message if isinstance(exc, InternalFault) else "Internal server error").to_dict()
    else:
        content = exc.to_dict()

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies and query parameters are reported per field with a 400."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")),
            "message": err.get("msg", "Invalid value"),
        }
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Validation failed", "errors": errors},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Routing-level errors (unknown path, wrong method) in envelope form."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Install the envelope exception handlers on ``app``."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
