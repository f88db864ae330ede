"""
API error taxonomy and the exception handlers that render it.

Every response, success or failure, uses the envelope
``{"success": bool, "message": str, ...}``. Errors may carry boolean flags
(``pendingApproval``, ``accountDisabled``, ``require_gps``) that clients
branch on.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


class APIError(HTTPException):
    status_code = 500

    def __init__(self, message: str, **flags: Any):
        super().__init__(status_code=self.status_code, detail=message)
        self.message = message
        self.flags = flags


class ValidationFailed(APIError):
    status_code = 400


class Unauthorized(APIError):
    status_code = 401


class Forbidden(APIError):
    status_code = 403


class NotFound(APIError):
    status_code = 404


class Conflict(APIError):
    status_code = 409


def envelope(message: str, status_code: int, flags: Optional[Dict[str, Any]] = None) -> JSONResponse:
    body = {"success": False, "message": message}
    if flags:
        body.update(flags)
    return JSONResponse(status_code=status_code, content=body)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if isinstance(exc, APIError):
        return envelope(exc.message, exc.status_code, exc.flags)
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return envelope(message, exc.status_code)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else first.get("msg", "Invalid request")
    else:
        message = "Invalid request"
    return envelope(message, 400)


async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return envelope("Resource conflicts with an existing record", 409)


class ErrorEnvelopeMiddleware(BaseHTTPMiddleware):
    """Last line of defence: unexpected errors become a generic 500 envelope."""

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return envelope(INTERNAL_ERROR_MESSAGE, 500)


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_middleware(ErrorEnvelopeMiddleware)
