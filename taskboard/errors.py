from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class TaskboardError(Exception):
    """Base error carrying an HTTP status and a machine-stable code."""

    status_code = 500
    code = "internal_error"

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.details = details or {}


class ValidationFailed(TaskboardError):
    status_code = 400
    code = "validation_failed"


class Unauthenticated(TaskboardError):
    status_code = 401
    code = "unauthenticated"


class Forbidden(TaskboardError):
    status_code = 403
    code = "forbidden"


class NotFound(TaskboardError):
    status_code = 404
    code = "not_found"


class Conflict(TaskboardError):
    status_code = 409
    code = "conflict"


def error_body(code: str, message: str, details: Optional[dict[str, Any]] = None) -> dict:
    return {"error": {"code": code, "message": message, "details": details or {}}}


def _field_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"field": ".".join(loc), "message": err.get("msg", "invalid value")})
    return errors


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(TaskboardError)
    async def handle_taskboard_error(request: Request, exc: TaskboardError) -> JSONResponse:
        if exc.status_code in (401, 403):
            logger.warning("%s %s denied: %s", request.method, request.url.path, exc.code)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.code, exc.message, exc.details))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=400,
            content=error_body("validation_failed", "request validation failed", {"errors": _field_errors(exc)}),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("unexpected failure on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content=error_body("internal_error", "server error"))
