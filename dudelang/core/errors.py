"""
Domain errors and the app-wide error contract.

Every error response that is not a billing route's own minimal body looks
like {"error": {"code", "message", "request_id"}, "detail": message} and
carries the x-request-id header.
"""

import logging
from typing import Optional
from uuid import uuid4

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.requests import Request

from dudelang.core.logging import get_request_id

logger = logging.getLogger("dudelang")


class AppError(Exception):
    """Base for errors that map onto an HTTP status and a stable code."""

    code = "app_error"
    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        request_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.code
        self.status_code = status_code or self.status_code
        self.request_id = request_id


class BadRequestError(AppError, ValueError):
    """Missing or malformed parameter."""
    code = "bad_request"
    status_code = 400


class PaymentIncompleteError(AppError):
    """Provider reports the checkout session as not paid or not complete."""
    code = "payment_incomplete"
    status_code = 400


class ProviderError(AppError):
    """Payment provider failed, timed out, or is not configured."""
    code = "provider_error"
    status_code = 500


class StorageError(AppError):
    """Entitlement store could not be read or written."""
    code = "storage_error"
    status_code = 500


def _request_id_for(request: Request) -> str:
    return getattr(request.state, "request_id", None) or get_request_id() or str(uuid4())


def error_response(status_code: int, code: str, message: str, request_id: str) -> JSONResponse:
    response = JSONResponse(
        status_code=status_code,
        content={
            "error": {"code": code, "message": message, "request_id": request_id},
            "detail": message,
        },
    )
    response.headers["x-request-id"] = request_id
    return response


async def app_error_handler(request: Request, exc: AppError):
    rid = exc.request_id or _request_id_for(request)
    logger.log(
        logging.ERROR if exc.status_code >= 500 else logging.WARNING,
        "app.error",
        extra={"request_id": rid, "error_code": exc.code, "status": exc.status_code},
    )
    return error_response(exc.status_code, exc.code, exc.message, rid)


async def http_error_handler(request: Request, exc: HTTPException):
    rid = _request_id_for(request)
    code = {404: "not_found", 405: "method_not_allowed"}.get(exc.status_code, "http_error")
    logger.warning("http.error", extra={"request_id": rid, "error_code": code, "status": exc.status_code})
    return error_response(exc.status_code, code, str(exc.detail or "HTTP error"), rid)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and parameters are plain 400s, not FastAPI's 422.

    Under the app's minimal-error prefix the body is just {"error": message},
    matching what those routes answer for their own failures.
    """
    rid = _request_id_for(request)
    logger.warning("request.invalid", extra={"request_id": rid, "error_code": "bad_request", "status": 400})
    prefix = getattr(request.app.state, "minimal_error_prefix", None)
    if prefix and request.url.path.startswith(prefix):
        response = JSONResponse(status_code=400, content={"error": "Malformed request."})
        response.headers["x-request-id"] = rid
        return response
    return error_response(400, "bad_request", "Malformed request.", rid)


async def unhandled_exception_handler(request: Request, exc: Exception):
    rid = _request_id_for(request)
    logger.error("unhandled.exception", exc_info=exc, extra={"request_id": rid, "error_code": "internal_error"})
    return error_response(500, "internal_error", "Unexpected error", rid)


def install_error_handlers(app: FastAPI, minimal_error_prefix: Optional[str] = None) -> None:
    app.state.minimal_error_prefix = minimal_error_prefix
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
