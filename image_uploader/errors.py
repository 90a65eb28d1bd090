"""JSON error bodies for requests that never produce an ``UploadResult``.

Unknown routes, wrong methods, missing static files and crashes all answer
with ``{code, message, details, request_id}``. Rejected uploads are normal
``UploadResult`` responses and do not pass through here.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from image_uploader.services.errors import UploadError

logger = logging.getLogger(__name__)

STATUS_CODES = {
    404: "not_found",
    405: "method_not_allowed",
    413: "payload_too_large",
}


def _envelope(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: object = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "code": code,
            "message": message,
            "details": details,
            "request_id": getattr(request.state, "request_id", "unknown"),
        },
        headers=headers,
    )


async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = STATUS_CODES.get(exc.status_code, f"http_{exc.status_code}")
    message, details = "Request failed", None
    if isinstance(exc.detail, dict):
        code = exc.detail.get("code", code)
        message = exc.detail.get("message", message)
        details = exc.detail.get("details")
    elif isinstance(exc.detail, str):
        message = exc.detail
    elif exc.detail is not None:
        details = exc.detail
    return _envelope(
        request, exc.status_code, code, message, details, getattr(exc, "headers", None)
    )


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(
        "Validation error on %s %s",
        request.method,
        request.url.path,
        extra={"request_id": getattr(request.state, "request_id", None)},
    )
    return _envelope(request, 422, "validation_error", "Validation error", exc.errors())


async def _upload_error(request: Request, exc: UploadError) -> JSONResponse:
    # Raised by a custom sink or source outside the orchestrator's checks.
    logger.warning("Upload error outside the pipeline: %s", exc)
    return _envelope(request, 400, "upload_error", str(exc))


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled exception on %s %s",
        request.method,
        request.url.path,
        extra={"request_id": getattr(request.state, "request_id", None)},
    )
    return _envelope(request, 500, "internal_error", "Internal server error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(UploadError, _upload_error)
    app.add_exception_handler(Exception, _unhandled_error)
