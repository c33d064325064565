import json
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Any, Dict, List, Optional
from datetime import datetime


class UserCreate(BaseModel):
    email: EmailStr
    password: str


class UserResponse(BaseModel):
    id: int
    email: EmailStr
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str


class TokenData(BaseModel):
    email: Optional[str] = None


# =============================================================================
# Corrections
# =============================================================================

def as_text(value: Any) -> Optional[str]:
    """Text form of a JSON value as clients send it: strings as-is, anything else JSON-encoded."""
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value, default=str)


class CorrectionEntry(BaseModel):
    """
    One user-confirmed edit of a voice-derived task field.

    Values are kept as received (any JSON type); field handlers only learn
    from string values.
    """
    task_id: Optional[str] = Field(None, alias="taskId")
    field_name: Optional[str] = Field(None, alias="fieldName")
    original_value: Any = Field(None, alias="originalValue")
    corrected_value: Any = Field(None, alias="correctedValue")
    category: Optional[str] = Field(None, description="Task category, context for hasTime corrections")

    class Config:
        populate_by_name = True

    @field_validator("task_id", "field_name", "category", mode="before")
    @classmethod
    def coerce_to_text(cls, value: Any) -> Optional[str]:
        return as_text(value)


class RecordCorrectionsRequest(BaseModel):
    # Left untyped so a missing or non-list batch surfaces as InvalidInput
    corrections: Any = None


class RecordCorrectionsResponse(BaseModel):
    ok: bool = True


# =============================================================================
# Personalization
# =============================================================================

class VoicePersonalization(BaseModel):
    """Compact personalization context handed to the parsing pipeline."""
    vocabulary_aliases: Optional[List[Dict[str, Optional[str]]]] = Field(None, alias="vocabularyAliases")
    category_mappings: Optional[List[Dict[str, Optional[str]]]] = Field(None, alias="categoryMappings")
    store_aliases: Optional[List[Dict[str, Optional[str]]]] = Field(None, alias="storeAliases")
    time_habits: Optional[List[Dict[str, Optional[str]]]] = Field(None, alias="timeHabits")

    class Config:
        populate_by_name = True


class PersonalizationStatusResponse(BaseModel):
    personalization_enabled: bool
    message: str
