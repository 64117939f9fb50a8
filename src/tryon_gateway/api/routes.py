"""
API routes for try-on submissions, admin actions and health.

Identity comes from the auth layer (X-Caller-ID). Validation runs before the
request gate; the gate and the inference client run inside TryOnService.
"""

import logging
import time
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import JSONResponse
from prometheus_client import Counter, Histogram

from tryon_gateway import __version__
from tryon_gateway.api.dependencies import get_caller_id, get_service, get_settings, require_admin
from tryon_gateway.api.models import ClearRequestsResponse, ErrorResponse, HealthResponse, TryOnResponse
from tryon_gateway.api.validation import UploadValidationError, check_size, validate_image
from tryon_gateway.config import Settings
from tryon_gateway.inference.client import InferenceClient
from tryon_gateway.models.enums import InputRole
from tryon_gateway.models.inputs import InferenceParams, InputImage
from tryon_gateway.service import TryOnService

logger = logging.getLogger(__name__)

# Prometheus metrics
tryon_requests_total = Counter(
    "tryon_requests_total",
    "Total try-on requests",
    ["status"]
)

tryon_duration_seconds = Histogram(
    "tryon_duration_seconds",
    "Try-on request duration in seconds",
    buckets=[1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 240.0, 480.0],
)

router = APIRouter()


async def _resolve_input(
    role: InputRole,
    upload: Optional[UploadFile],
    url: Optional[str],
    service: TryOnService,
    settings: Settings,
) -> InputImage:
    if upload is not None:
        # Refuse on the declared size before buffering the body
        check_size(upload.filename, upload.size, settings)
        return InputImage(
            data=await upload.read(),
            mime_type=upload.content_type or "application/octet-stream",
            filename=upload.filename,
        )
    if url:
        return await service.fetch_source(url, filename=f"{role.value}_{url.rsplit('/', 1)[-1]}")
    raise UploadValidationError(
        "Missing files. Please upload both front view and garment images.",
        details={"missing": role.value},
    )


@router.post(
    "/tryon",
    response_model=TryOnResponse,
    status_code=status.HTTP_200_OK,
    summary="Generate a virtual try-on image (synchronous)",
    description="""
    Submit a front view of the subject and a garment image, either as
    multipart uploads or as URLs. Returns the generated image inline.

    A caller may only have one submission in flight; identical payloads are
    refused while they are being processed.
    """,
    responses={
        200: {"description": "Image generated"},
        400: {"model": ErrorResponse, "description": "Missing or invalid upload"},
        401: {"model": ErrorResponse, "description": "Missing caller identity"},
        429: {"model": ErrorResponse, "description": "Duplicate or too-rapid submission"},
        502: {"model": ErrorResponse, "description": "Remote service returned an unusable result"},
        503: {"model": ErrorResponse, "description": "Remote service failed after all retries"},
    },
)
async def try_on(
    front: Optional[UploadFile] = File(default=None),
    garment: Optional[UploadFile] = File(default=None),
    front_url: Optional[str] = Form(default=None),
    garment_url: Optional[str] = Form(default=None),
    garment_description: str = Form(default=""),
    caller_id: str = Depends(get_caller_id),
    service: TryOnService = Depends(get_service),
    settings: Settings = Depends(get_settings),
) -> TryOnResponse:
    start_time = time.time()

    try:
        inputs: dict[str, InputImage] = {}
        for role, upload, url in (
            (InputRole.FRONT, front, front_url),
            (InputRole.GARMENT, garment, garment_url),
        ):
            image = await _resolve_input(role, upload, url, service, settings)
            validate_image(image, settings)
            inputs[role.value] = image

        result = await service.generate(
            caller_id,
            inputs,
            InferenceParams(garment_description=garment_description),
        )
    except Exception as exc:
        tryon_requests_total.labels(status="error").inc()
        logger.error(
            "Try-on failed",
            extra={"caller_id": caller_id, "error_type": type(exc).__name__},
        )
        # Re-raise for exception handlers
        raise

    tryon_requests_total.labels(status="success").inc()
    tryon_duration_seconds.observe(time.time() - start_time)

    logger.info(
        "Try-on completed",
        extra={
            "caller_id": caller_id,
            "attempts": result.attempts,
            "duration_ms": int((time.time() - start_time) * 1000),
        },
    )

    return TryOnResponse(
        success=True,
        image_data=result.as_data_url(),
        content_type=result.content_type,
        generated_at=result.generated_at,
        attempts=result.attempts,
    )


@router.post(
    "/admin/clear-requests",
    response_model=ClearRequestsResponse,
    summary="Drop every tracked in-flight submission",
    responses={403: {"model": ErrorResponse, "description": "Admin token missing or wrong"}},
    dependencies=[Depends(require_admin)],
)
async def clear_requests(
    service: TryOnService = Depends(get_service),
) -> ClearRequestsResponse:
    cleared = service.clear_pending()
    logger.warning("Admin cleared pending submissions", extra={"cleared": cleared})
    return ClearRequestsResponse(
        message=f"Successfully cleared {cleared} ongoing requests",
        cleared=cleared,
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
    description="""
    Reports gate occupancy and the cached remote session age. With
    `deep=true` it also opens (or reuses) a remote session.
    """,
    responses={
        200: {"description": "Service healthy"},
        503: {"description": "Remote service unreachable (deep check only)"},
    },
)
async def health_check(
    deep: bool = False,
    service: TryOnService = Depends(get_service),
):
    session_age = None
    if isinstance(service.client, InferenceClient):
        session_age = service.client.sessions.age()

    remote = "not_checked"
    status_code = status.HTTP_200_OK
    if deep:
        if await service.client.health_check():
            remote = "ok"
        else:
            remote = "unreachable"
            status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    response = HealthResponse(
        status="healthy" if status_code == status.HTTP_200_OK else "degraded",
        version=__version__,
        pending_submissions=len(service.gate),
        session_age_seconds=round(session_age, 2) if session_age is not None else None,
        remote=remote,
    )

    return JSONResponse(
        status_code=status_code,
        content=response.model_dump(mode="json"),
    )
