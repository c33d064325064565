"""
Core Module

Provides database, models and schemas for the application.
"""

from .database import Base, engine, get_db, check_database_health
from .models import User
from .voice_profile_model import UserVoiceProfile
from .audit_models import VoiceCorrection
from .schemas import (
    UserCreate,
    UserResponse,
    Token,
    TokenData,
    CorrectionEntry,
    RecordCorrectionsRequest,
    RecordCorrectionsResponse,
    VoicePersonalization,
    PersonalizationStatusResponse,
)

__all__ = [
    # Database
    "Base",
    "engine",
    "get_db",
    "check_database_health",
    # Models
    "User",
    "UserVoiceProfile",
    "VoiceCorrection",
    # Schemas
    "UserCreate",
    "UserResponse",
    "Token",
    "TokenData",
    "CorrectionEntry",
    "RecordCorrectionsRequest",
    "RecordCorrectionsResponse",
    "VoicePersonalization",
    "PersonalizationStatusResponse",
]
