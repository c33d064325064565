"""
FastAPI Dependencies Module

Provides dependency injection for services owned by the application.

Service instances are created once when the app is built and stored on
`app.state`; these providers hand them to request handlers.

Usage:
    from core.dependencies import get_ingestion_service

    @router.post("/corrections")
    async def record(
        service: CorrectionIngestionService = Depends(get_ingestion_service)
    ):
        ...
"""

from fastapi import Request

from config.settings import settings
from services.personalization import (
    CorrectionIngestionService,
    CorrectionRateLimiter,
    VoiceProfileRepository,
)
from utils.logging import get_logger

logger = get_logger(__name__)


# =============================================================================
# Service Construction
# =============================================================================

def build_ingestion_service() -> CorrectionIngestionService:
    """
    Build the correction ingestion service with a fresh rate limiter.

    Called once per application instance.
    """
    rate_limiter = CorrectionRateLimiter.from_settings()
    logger.info(
        f"Correction quota: {settings.CORRECTIONS_RATE_LIMIT} batches per "
        f"{settings.CORRECTIONS_RATE_WINDOW_MINUTES} minutes per user"
    )
    return CorrectionIngestionService(rate_limiter, VoiceProfileRepository())


# =============================================================================
# Service Providers
# =============================================================================

def get_ingestion_service(request: Request) -> CorrectionIngestionService:
    """
    Get the app's CorrectionIngestionService.

    Returns:
        CorrectionIngestionService: Service holding the process rate limiter
    """
    return request.app.state.ingestion_service


def get_profile_repository(request: Request) -> VoiceProfileRepository:
    """
    Get the repository used by the app's ingestion service.

    Returns:
        VoiceProfileRepository: Voice profile storage
    """
    return request.app.state.ingestion_service.repository
