"""
FastAPI exception handlers for structured error responses.

Maps domain exceptions to appropriate HTTP status codes and formats.
"""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tryon_gateway.api.models import ErrorResponse
from tryon_gateway.api.validation import UploadValidationError
from tryon_gateway.gate.exceptions import RejectionError
from tryon_gateway.inference.exceptions import (
    DownloadError,
    ExhaustedRetries,
    InferenceError,
    ResultShapeError,
)

logger = logging.getLogger(__name__)


def _error_body(error: str, message: str, details: dict | None = None) -> dict:
    return ErrorResponse(error=error, message=message, details=details or None).model_dump(mode="json")


async def rejection_error_handler(request: Request, exc: RejectionError) -> JSONResponse:
    """
    Handle request gate rejections.

    Maps to 429 Too Many Requests with a Retry-After hint.
    """
    retry_after = exc.details.get("retry_after")
    headers = {"Retry-After": str(max(1, int(round(retry_after))))} if retry_after is not None else None

    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=_error_body(exc.reason.name.lower(), exc.message, exc.details),
        headers=headers,
    )


async def upload_validation_error_handler(request: Request, exc: UploadValidationError) -> JSONResponse:
    """
    Handle invalid or missing uploads.

    Maps to 400 Bad Request (client error).
    """
    logger.warning("Invalid upload", extra={"details": exc.details})

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body("invalid_upload", exc.message, exc.details),
    )


async def download_error_handler(request: Request, exc: DownloadError) -> JSONResponse:
    """
    Handle failures to fetch a source image supplied by URL.

    Maps to 400 Bad Request; the URL came from the caller.
    """
    logger.warning("Source image download failed", extra={"details": exc.details})

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(exc.kind, "Could not fetch source image", exc.details),
    )


async def exhausted_retries_handler(request: Request, exc: ExhaustedRetries) -> JSONResponse:
    """
    Handle exhausted inference retries.

    Maps to 503 Service Unavailable (temporary failure).
    """
    logger.error(
        "Inference retries exhausted",
        extra={"attempts": exc.attempts, "last_error": str(exc.last_error)},
    )

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=_error_body(
            exc.kind,
            "Image processing failed, please try again later",
            {"attempts": exc.attempts},
        ),
    )


async def result_shape_error_handler(request: Request, exc: ResultShapeError) -> JSONResponse:
    """
    Handle unusable remote results.

    Maps to 502 Bad Gateway (upstream answered with garbage).
    """
    logger.error("Unusable result from remote service", extra={"kind": exc.kind, "details": exc.details})

    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=_error_body(exc.kind, "Invalid image data received from model"),
    )


async def inference_error_handler(request: Request, exc: InferenceError) -> JSONResponse:
    """
    Handle any other inference failure.

    Maps to 502 Bad Gateway.
    """
    logger.error("Inference error", extra={"kind": exc.kind, "error": str(exc)}, exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=_error_body(exc.kind, "Image processing failed"),
    )


HTTP_ERROR_CODES = {
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
    status.HTTP_503_SERVICE_UNAVAILABLE: "service_unavailable",
}


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Handle HTTPException raised by dependencies (identity, admin, service).

    Keeps the status code and headers, rewrites the body to the standard
    error format.
    """
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(HTTP_ERROR_CODES.get(exc.status_code, "http_error"), str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected errors.

    Maps to 500 Internal Server Error.
    """
    logger.exception(
        "Unexpected error",
        extra={"error_type": type(exc).__name__},
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body("internal_error", "An unexpected error occurred"),
    )


# Exception handler mapping for FastAPI app.add_exception_handler()
EXCEPTION_HANDLERS = {
    RejectionError: rejection_error_handler,
    UploadValidationError: upload_validation_error_handler,
    DownloadError: download_error_handler,
    ExhaustedRetries: exhausted_retries_handler,
    ResultShapeError: result_shape_error_handler,
    InferenceError: inference_error_handler,
    StarletteHTTPException: http_exception_handler,
    Exception: generic_error_handler,
}
