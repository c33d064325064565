"""
Voice Personalization Module

Learns per-user correction rules from confirmed task edits:
- Vocabulary aliases from single-word title fixes
- Category mappings from category fixes
- Time habits from hasTime fixes
"""

from .alias_extractor import VocabularyAlias, extract_alias
from .ranked_mapping import (
    MappingKind,
    upsert_mapping,
    VOCABULARY_ALIASES,
    CATEGORY_MAPPINGS,
    TIME_HABITS,
    STORE_ALIASES,
)
from .rate_limiter import CorrectionRateLimiter
from .profile import VoiceProfileSnapshot
from .repository import VoiceProfileRepository
from .ingestion import (
    CorrectionIngestionService,
    IngestionResult,
    FIELD_HANDLERS,
    field_handler,
    parse_corrections,
)
from .context import build_personalization_context

__all__ = [
    "VocabularyAlias",
    "extract_alias",
    "MappingKind",
    "upsert_mapping",
    "VOCABULARY_ALIASES",
    "CATEGORY_MAPPINGS",
    "TIME_HABITS",
    "STORE_ALIASES",
    "CorrectionRateLimiter",
    "VoiceProfileSnapshot",
    "VoiceProfileRepository",
    "CorrectionIngestionService",
    "IngestionResult",
    "FIELD_HANDLERS",
    "field_handler",
    "parse_corrections",
    "build_personalization_context",
]
