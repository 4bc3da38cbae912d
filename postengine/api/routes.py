"""
API Routes - FastAPI endpoints for caption generation.

NO DICTIONARIES - All requests/responses use Pydantic models.
"""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from postengine.api.dependencies import (
    get_anonymous_token,
    get_generation_service,
    get_location,
)
from postengine.config import Settings, get_settings
from postengine.db.session import get_db
from postengine.models.api import (
    ErrorResponse,
    GenerateRequest,
    GenerateResponse,
    HealthResponse,
)
from postengine.services.pipeline import GenerationService
from postengine.services.request_builder import build_generation_request

logger = get_logger(__name__)

router = APIRouter()


@router.post(
    "/api/generate",
    response_model=GenerateResponse,
    responses={
        400: {"model": ErrorResponse},
        402: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
async def generate(
    body: GenerateRequest,
    anonymous_token: str = Depends(get_anonymous_token),
    location: str | None = Depends(get_location),
    service: GenerationService = Depends(get_generation_service),
    settings: Settings = Depends(get_settings),
) -> GenerateResponse:
    """
    Generate platform captions and hashtags for an anonymous visitor.

    Flow:
    1. Visitor identified by the anonymous cookie (400 if absent)
    2. Body validated and normalized (400/413)
    3. Account found or created with the trial allotment
    4. Admission checked against the balance (402 when exhausted)
    5. Caption call, then hashtag call (fallbacks on model failure)
    6. One credit debited for free accounts
    """
    request = build_generation_request(body, settings)
    return await service.generate(anonymous_token, request, location)


@router.get("/health", response_model=HealthResponse)
async def health_check(db: AsyncSession = Depends(get_db)) -> HealthResponse | JSONResponse:
    """
    Health check for load balancer.

    Verifies database connectivity.
    """
    try:
        await db.execute(text("SELECT 1"))
    except Exception as exc:
        logger.error("health_check_failed", error=str(exc))
        unhealthy = HealthResponse(
            status="unhealthy",
            database="disconnected",
            timestamp=datetime.now(UTC).isoformat(),
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=unhealthy.model_dump(),
        )

    return HealthResponse(
        status="healthy",
        database="connected",
        timestamp=datetime.now(UTC).isoformat(),
    )
