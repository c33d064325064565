"""
Corrections Router - Voice Personalization API

Endpoints for syncing user-confirmed corrections and reading back the
learned personalization context.

Endpoints:
    POST /corrections - Learn from a batch of corrections
    GET /personalization/me - Compact personalization context
    POST /personalization/opt-out - Stop serving personalization
    POST /personalization/opt-in - Resume serving personalization

Usage:
    All endpoints require authentication via Bearer token.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from core import database, models, schemas
from core.dependencies import get_ingestion_service, get_profile_repository
from services.personalization import (
    CorrectionIngestionService,
    VoiceProfileRepository,
    build_personalization_context,
)
import auth
from utils.logging import get_logger
from utils.rate_limit import limit_corrections

logger = get_logger(__name__)

router = APIRouter(tags=["Voice Personalization"])


# =============================================================================
# Corrections
# =============================================================================

@router.post(
    "/corrections",
    response_model=schemas.RecordCorrectionsResponse,
    summary="Record voice corrections",
    responses={
        200: {"description": "Corrections recorded"},
        400: {"description": "Corrections array missing or empty"},
        401: {"description": "Not authenticated"},
        429: {"description": "Correction quota exceeded"},
        500: {"description": "Profile storage unavailable"},
    }
)
@limit_corrections
async def record_corrections(
    request: Request,
    response: Response,
    body: Optional[schemas.RecordCorrectionsRequest] = None,
    current_user: models.User = Depends(auth.get_current_user),
    db: AsyncSession = Depends(database.get_db),
    service: CorrectionIngestionService = Depends(get_ingestion_service)
):
    """
    Learn from a batch of user-confirmed corrections.

    Each entry is `{taskId, fieldName, originalValue?, correctedValue?, category?}`.
    Entries without `taskId` or `fieldName` are skipped. One batch produces
    one profile update.
    """
    corrections = body.corrections if body else None
    await service.record_corrections(db, current_user.id, corrections)

    limiter = service.rate_limiter
    response.headers["X-RateLimit-Limit"] = str(limiter.limit)
    response.headers["X-RateLimit-Remaining"] = str(limiter.remaining(str(current_user.id)))

    return schemas.RecordCorrectionsResponse(ok=True)


# =============================================================================
# Personalization Context
# =============================================================================

@router.get(
    "/personalization/me",
    response_model=schemas.VoicePersonalization,
    response_model_by_alias=True,
    summary="Get personalization context",
)
async def get_personalization(
    current_user: models.User = Depends(auth.get_current_user),
    db: AsyncSession = Depends(database.get_db),
    repository: VoiceProfileRepository = Depends(get_profile_repository)
):
    """
    Top learned rules for the parsing pipeline.

    Returns up to 10 vocabulary aliases, 10 category mappings, 5 store
    aliases and 5 time habits. All lists are null when nothing has been
    learned or personalization is turned off.
    """
    profile = await repository.get_profile(db, current_user.id)
    return build_personalization_context(profile)


@router.post(
    "/personalization/opt-out",
    response_model=schemas.PersonalizationStatusResponse,
    summary="Disable personalization",
)
async def opt_out(
    current_user: models.User = Depends(auth.get_current_user),
    db: AsyncSession = Depends(database.get_db),
    repository: VoiceProfileRepository = Depends(get_profile_repository)
):
    """
    Stop serving personalization context.

    Corrections are still learned; only the context read is suppressed.
    """
    await repository.set_personalization_enabled(db, current_user.id, False)
    logger.info(f"User {current_user.id} opted out of personalization")
    return schemas.PersonalizationStatusResponse(
        personalization_enabled=False,
        message="Personalization disabled"
    )


@router.post(
    "/personalization/opt-in",
    response_model=schemas.PersonalizationStatusResponse,
    summary="Enable personalization",
)
async def opt_in(
    current_user: models.User = Depends(auth.get_current_user),
    db: AsyncSession = Depends(database.get_db),
    repository: VoiceProfileRepository = Depends(get_profile_repository)
):
    """Resume serving personalization context."""
    await repository.set_personalization_enabled(db, current_user.id, True)
    logger.info(f"User {current_user.id} opted in to personalization")
    return schemas.PersonalizationStatusResponse(
        personalization_enabled=True,
        message="Personalization enabled"
    )
