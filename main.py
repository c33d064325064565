"""
Voice Personalization - Backend Application

FastAPI application that learns per-user voice-to-text corrections.
Clients sync user-confirmed task edits; the service turns them into
vocabulary aliases, category mappings and time habits that the parsing
pipeline reads back.

Features:
    - Correction sync with per-user quota
    - Ranked, capped learned mapping lists per user
    - Correction audit log
    - Personalization context read with opt-in/opt-out

Run:
    python main.py
    # or
    uvicorn main:app --reload
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
import uvicorn

from config.settings import settings
from core import models, database
from core.dependencies import build_ingestion_service
from utils.logging import setup_logging, get_logger
from utils.exceptions import VoicePersonalizationError, RateLimitedError, InvalidInputError
from utils.rate_limit import limiter, rate_limit_exceeded_handler

# Import Routers
from routers import auth, corrections

# Initialize logging
setup_logging()
logger = get_logger(__name__)


# =============================================================================
# Application Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events:
        - Startup: Initialize database tables
        - Shutdown: Dispose of the engine
    """
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    async with database.engine.begin() as conn:
        await conn.run_sync(models.Base.metadata.create_all)
        logger.info("Database tables initialized")

    yield

    logger.info("Shutting down application")
    await database.engine.dispose()


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title=settings.APP_NAME,
    description="Per-user voice correction learning API",
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Attach request throttling to app state
app.state.limiter = limiter

# One ingestion service (and its per-user rate limiter) per process
app.state.ingestion_service = build_ingestion_service()


# =============================================================================
# Middleware
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.CORS_ORIGINS != "*",
    allow_methods=["POST", "GET", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


# =============================================================================
# Exception Handlers
# =============================================================================

@app.exception_handler(VoicePersonalizationError)
async def personalization_exception_handler(request: Request, exc: VoicePersonalizationError):
    """
    Handle application exceptions.

    Returns standardized error response with appropriate status code.
    """
    if exc.status_code >= 500:
        logger.error(f"{exc.error_code}: {exc.message}", extra={"details": exc.details})
    else:
        logger.warning(f"{exc.error_code}: {exc.message}")

    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(max(1, exc.retry_after_seconds))}

    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=headers
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report unparseable or mistyped request bodies as InvalidInput (400)."""
    errors = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]
    return await personalization_exception_handler(
        request,
        InvalidInputError("Invalid request body", details={"errors": errors})
    )


app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


# =============================================================================
# Routers
# =============================================================================

app.include_router(auth.router)
app.include_router(corrections.router)


# =============================================================================
# Health Check Endpoints
# =============================================================================

@app.get("/", tags=["Health"])
async def root():
    """
    Root endpoint - basic health check.

    Returns:
        dict: Simple status message
    """
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Detailed health check endpoint.

    Checks:
        - Database connectivity

    Returns:
        dict: Health status with component details
    """
    db_healthy = await database.check_database_health()

    return {
        "status": "healthy" if db_healthy else "degraded",
        "components": {
            "database": db_healthy,
        },
        "version": settings.APP_VERSION
    }


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
