"""
Error taxonomy and the JSON failure envelope.

Every failure leaves the API as ``{"success": false, "message": ..., "code": ...}``.
``code`` is stable and meant for clients to branch on; ``message`` is for humans.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class AppError(Exception):
    status: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    message: str = "Something went wrong. Please try again."

    def __init__(self, code: str | None = None, message: str | None = None) -> None:
        if code is not None:
            self.code = code
        if message is not None:
            self.message = message
        super().__init__(self.code)

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "message": self.message, "code": self.code}


class ValidationError(AppError):
    status = HTTPStatus.BAD_REQUEST
    code = "VALIDATION_ERROR"
    message = "Invalid request."


class AuthError(AppError):
    status = HTTPStatus.UNAUTHORIZED
    code = "UNAUTHORIZED"
    message = "Authentication required."


class ConflictError(AppError):
    status = HTTPStatus.CONFLICT
    code = "CONFLICT"
    message = "Resource already exists."


class NotFoundError(AppError):
    status = HTTPStatus.NOT_FOUND
    code = "NOT_FOUND"
    message = "Not found."


class InternalError(AppError):
    pass


def _envelope(status: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"success": False, "message": message, "code": code},
    )


_HTTP_CODES = {
    HTTPStatus.NOT_FOUND: ("NOT_FOUND", "Route not found."),
    HTTPStatus.METHOD_NOT_ALLOWED: ("METHOD_NOT_ALLOWED", "Method not allowed."),
}


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error path through the failure envelope."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        if exc.status >= HTTPStatus.INTERNAL_SERVER_ERROR:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.code)
        return JSONResponse(status_code=exc.status, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        fields = sorted({
            err["loc"][-1]
            for err in exc.errors()
            if err.get("loc") and isinstance(err["loc"][-1], str) and err["loc"][-1] != "body"
        })
        logger.debug("Rejected body for %s: %s", request.url.path, fields)
        message = "Invalid request body."
        if fields:
            message = f"Invalid or missing fields: {', '.join(fields)}."
        return _envelope(HTTPStatus.BAD_REQUEST, "VALIDATION_ERROR", message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        code, message = _HTTP_CODES.get(exc.status_code, ("HTTP_ERROR", str(exc.detail)))
        response = _envelope(exc.status_code, code, message)
        if exc.headers:
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _envelope(
            HTTPStatus.INTERNAL_SERVER_ERROR,
            InternalError.code,
            InternalError.message,
        )
