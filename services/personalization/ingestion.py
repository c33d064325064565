"""
Correction Ingestion Service

Turns a batch of user-confirmed corrections into learned rules and merges
them into the user's voice profile.

Flow for one batch:
    1. Per-user rate limit (RateLimitedError, nothing touched)
    2. Batch validation (InvalidInputError when missing, not a list, or empty)
    3. Malformed entries (no taskId/fieldName) are dropped
    4. Each accepted correction is dispatched by fieldName to a handler that
       may derive one learned rule, which is upserted into its mapping list
    5. One audit row per accepted correction, one profile upsert per batch

Handlers are registered per field name. Adding a new kind of correction
means writing one handler; unknown field names are accepted and ignored.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from config.constants import (
    BOOLEAN_FALSE,
    BOOLEAN_TRUE,
    DEFAULT_TIME_HABIT_CATEGORY,
    FIELD_CATEGORY,
    FIELD_HAS_TIME,
    FIELD_TITLE,
    MAX_MAPPINGS,
    PATTERN_USUALLY_DATE_ONLY,
    PATTERN_USUALLY_HAS_TIME,
)
from core.schemas import CorrectionEntry
from services.personalization.alias_extractor import extract_alias
from services.personalization.profile import VoiceProfileSnapshot
from services.personalization.ranked_mapping import (
    CATEGORY_MAPPINGS,
    TIME_HABITS,
    VOCABULARY_ALIASES,
    MappingKind,
    utc_today,
)
from services.personalization.rate_limiter import CorrectionRateLimiter
from services.personalization.repository import VoiceProfileRepository
from utils.exceptions import InvalidInputError, RateLimitedError
from utils.logging import get_logger, log_learning_outcome

logger = get_logger(__name__)


# =============================================================================
# Field Handlers
# =============================================================================

@dataclass(frozen=True)
class LearnedRule:
    """One observation to upsert: which list, and the rule's identity values."""
    kind: MappingKind
    values: Tuple[str, ...]


FieldHandler = Callable[[CorrectionEntry], Optional[LearnedRule]]

FIELD_HANDLERS: Dict[str, FieldHandler] = {}


def field_handler(field_name: str) -> Callable[[FieldHandler], FieldHandler]:
    """Register the learning handler for one correction field."""
    def register(func: FieldHandler) -> FieldHandler:
        FIELD_HANDLERS[field_name] = func
        return func
    return register


@field_handler(FIELD_TITLE)
def learn_vocabulary_alias(correction: CorrectionEntry) -> Optional[LearnedRule]:
    alias = extract_alias(correction.original_value, correction.corrected_value)
    if alias is None:
        return None
    return LearnedRule(VOCABULARY_ALIASES, (alias.spoken, alias.canonical))


@field_handler(FIELD_CATEGORY)
def learn_category_mapping(correction: CorrectionEntry) -> Optional[LearnedRule]:
    original, corrected = correction.original_value, correction.corrected_value
    if not isinstance(original, str) or not isinstance(corrected, str):
        return None
    if not original or not corrected:
        return None
    return LearnedRule(CATEGORY_MAPPINGS, (original, corrected))


@field_handler(FIELD_HAS_TIME)
def learn_time_habit(correction: CorrectionEntry) -> Optional[LearnedRule]:
    if correction.original_value not in (BOOLEAN_TRUE, BOOLEAN_FALSE):
        return None
    if correction.corrected_value == BOOLEAN_TRUE:
        pattern = PATTERN_USUALLY_HAS_TIME
    else:
        pattern = PATTERN_USUALLY_DATE_ONLY
    category = correction.category if correction.category is not None else DEFAULT_TIME_HABIT_CATEGORY
    return LearnedRule(TIME_HABITS, (category, pattern))


def derive_rule(correction: CorrectionEntry) -> Optional[LearnedRule]:
    """Learned rule for a correction, or None if its field teaches nothing."""
    handler = FIELD_HANDLERS.get(correction.field_name)
    if handler is None:
        return None
    return handler(correction)


# =============================================================================
# Batch Parsing
# =============================================================================

def parse_corrections(raw: Any) -> Tuple[List[CorrectionEntry], int]:
    """
    Validate a raw batch.

    Returns:
        (accepted corrections in input order, number of skipped entries)

    Raises:
        InvalidInputError: batch missing, not a list, or empty
    """
    if raw is None or not isinstance(raw, (list, tuple)) or len(raw) == 0:
        raise InvalidInputError(details={"received": type(raw).__name__})

    accepted: List[CorrectionEntry] = []
    skipped = 0
    for item in raw:
        if isinstance(item, CorrectionEntry):
            correction = item
        elif isinstance(item, dict):
            try:
                correction = CorrectionEntry.model_validate(item)
            except ValidationError:
                logger.debug(f"Skipping unparseable correction: {item!r}")
                skipped += 1
                continue
        else:
            skipped += 1
            continue

        if not correction.task_id or not correction.field_name:
            logger.debug("Skipping correction without taskId/fieldName")
            skipped += 1
            continue
        accepted.append(correction)

    return accepted, skipped


# =============================================================================
# Results
# =============================================================================

@dataclass
class IngestionResult:
    profile: VoiceProfileSnapshot
    accepted: List[CorrectionEntry] = field(default_factory=list)
    skipped: int = 0
    learned: Dict[str, int] = field(default_factory=dict)
    audit_rows_written: int = 0


# =============================================================================
# Service
# =============================================================================

class CorrectionIngestionService:
    """
    Learns voice personalization rules from correction batches.

    `ingest` is the storage-free core; `record_corrections` wraps it with
    profile load, audit logging and profile upsert.

    Usage:
        service = CorrectionIngestionService(CorrectionRateLimiter.from_settings())
        result = await service.record_corrections(db, user.id, body.corrections)
    """

    def __init__(
        self,
        rate_limiter: CorrectionRateLimiter,
        repository: Optional[VoiceProfileRepository] = None,
        max_mappings: int = MAX_MAPPINGS
    ):
        self.rate_limiter = rate_limiter
        self.repository = repository or VoiceProfileRepository()
        self.max_mappings = max_mappings

    def admit(self, user_id: Any, corrections: Any) -> Tuple[List[CorrectionEntry], int]:
        """Apply the rate limit, then validate the batch."""
        key = str(user_id)
        if not self.rate_limiter.allow(key):
            retry_after = self.rate_limiter.retry_after(key)
            logger.warning(f"Correction batch rate limited for user {user_id}")
            raise RateLimitedError(user_id=key, retry_after_seconds=retry_after)

        return parse_corrections(corrections)

    def merge(
        self,
        user_id: Any,
        corrections: List[CorrectionEntry],
        profile: Optional[VoiceProfileSnapshot] = None,
        today: Optional[str] = None
    ) -> IngestionResult:
        """Fold accepted corrections into the profile; returns a new snapshot."""
        today = today or utc_today()
        current = profile or VoiceProfileSnapshot(user_id=user_id)

        lists: Dict[str, List[Dict[str, Any]]] = {
            VOCABULARY_ALIASES.name: current.vocabulary_aliases,
            CATEGORY_MAPPINGS.name: current.category_mappings,
            TIME_HABITS.name: current.time_habits,
        }
        learned: Dict[str, int] = {}

        for correction in corrections:
            rule = derive_rule(correction)
            if rule is None:
                continue
            lists[rule.kind.name] = rule.kind.upsert(
                lists[rule.kind.name],
                *rule.values,
                today=today,
                max_entries=self.max_mappings,
            )
            learned[rule.kind.name] = learned.get(rule.kind.name, 0) + 1

        snapshot = VoiceProfileSnapshot(
            user_id=user_id,
            vocabulary_aliases=lists[VOCABULARY_ALIASES.name],
            category_mappings=lists[CATEGORY_MAPPINGS.name],
            store_aliases=current.store_aliases,
            time_habits=lists[TIME_HABITS.name],
            personalization_enabled=current.personalization_enabled,
            updated_at=datetime.now(timezone.utc),
        )
        return IngestionResult(profile=snapshot, accepted=list(corrections), learned=learned)

    def ingest(
        self,
        user_id: Any,
        corrections: Any,
        profile: Optional[VoiceProfileSnapshot] = None,
        today: Optional[str] = None
    ) -> IngestionResult:
        """Rate-limit, validate and merge a batch without touching storage."""
        accepted, skipped = self.admit(user_id, corrections)
        result = self.merge(user_id, accepted, profile=profile, today=today)
        result.skipped = skipped
        return result

    async def record_corrections(
        self,
        db: AsyncSession,
        user_id: int,
        corrections: Any
    ) -> IngestionResult:
        """
        Learn from a batch and persist the outcome.

        Audit rows are committed before the profile upsert and stay written
        if the upsert fails.

        Raises:
            RateLimitedError, InvalidInputError, StorageUnavailableError
        """
        accepted, skipped = self.admit(user_id, corrections)

        profile = await self.repository.get_profile(db, user_id)
        result = self.merge(user_id, accepted, profile=profile)
        result.skipped = skipped

        result.audit_rows_written = await self.repository.log_corrections(db, user_id, result.accepted)
        await self.repository.save_profile(db, result.profile)

        log_learning_outcome(str(user_id), len(accepted), skipped, result.learned)
        return result
