"""
Tests for Correction Ingestion

Pure learning (no storage) and the persisted flow against in-memory SQLite.
"""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from core.audit_models import VoiceCorrection
from core.models import User
from core.schemas import CorrectionEntry
from services.personalization import (
    FIELD_HANDLERS,
    CorrectionIngestionService,
    CorrectionRateLimiter,
    VoiceProfileRepository,
    VoiceProfileSnapshot,
    field_handler,
    parse_corrections,
)
from services.personalization.ingestion import LearnedRule, derive_rule
from services.personalization.ranked_mapping import VOCABULARY_ALIASES
from utils.exceptions import InvalidInputError, RateLimitedError, StorageUnavailableError

TODAY = "2026-03-15"


def _identities(entries, *fields):
    return [tuple(e[f] for f in fields) + (e["count"],) for e in entries]


# =============================================================================
# Batch Parsing
# =============================================================================

class TestParseCorrections:

    @pytest.mark.parametrize("raw", [None, [], (), "corrections", {"taskId": "t1"}, 42])
    def test_invalid_batches(self, raw):
        with pytest.raises(InvalidInputError) as exc_info:
            parse_corrections(raw)
        assert exc_info.value.error_code == "InvalidInput"
        assert exc_info.value.status_code == 400

    def test_malformed_entries_are_skipped(self):
        accepted, skipped = parse_corrections([
            {"taskId": "t1", "fieldName": "title", "originalValue": "a", "correctedValue": "b"},
            {"fieldName": "title", "originalValue": "a", "correctedValue": "b"},
            {"taskId": "t3", "originalValue": "a", "correctedValue": "b"},
            {"taskId": "", "fieldName": "title"},
            "not an object",
        ])

        assert [c.task_id for c in accepted] == ["t1"]
        assert skipped == 4

    def test_non_string_values_are_kept(self):
        accepted, skipped = parse_corrections([
            {"taskId": "t1", "fieldName": "hasTime", "originalValue": True, "correctedValue": False},
            {"taskId": 42, "fieldName": "category", "originalValue": "Errand", "correctedValue": "Groceries"},
            {"taskId": "t3", "fieldName": "title", "originalValue": ["not", "text"], "correctedValue": "text"},
        ])

        assert skipped == 0
        assert [c.task_id for c in accepted] == ["t1", "42", "t3"]
        assert accepted[0].original_value is True

    @pytest.mark.parametrize("original,corrected", [(True, False), (1, 0), (["a"], "a"), ({"v": 1}, "b")])
    def test_non_string_values_learn_nothing(self, original, corrected):
        for field_name in ("title", "category", "hasTime"):
            correction = CorrectionEntry(task_id="t", field_name=field_name, original_value=original,
                                         corrected_value=corrected)
            assert derive_rule(correction) is None

    def test_accepts_schema_instances(self):
        entry = CorrectionEntry(task_id="t1", field_name="category", original_value="A", corrected_value="B")
        accepted, skipped = parse_corrections([entry])
        assert accepted == [entry]
        assert skipped == 0


# =============================================================================
# Field Handlers
# =============================================================================

class TestFieldHandlers:

    def test_registered_fields(self):
        assert set(FIELD_HANDLERS) >= {"title", "category", "hasTime"}

    @pytest.mark.parametrize("original,corrected,expected", [
        ("true", "false", ("Work", "usually_date_only")),
        ("false", "true", ("Work", "usually_has_time")),
        ("true", "true", ("Work", "usually_has_time")),
        ("false", None, ("Work", "usually_date_only")),
    ])
    def test_has_time_patterns(self, original, corrected, expected):
        correction = CorrectionEntry(task_id="t", field_name="hasTime", original_value=original,
                                     corrected_value=corrected, category="Work")
        assert derive_rule(correction).values == expected

    @pytest.mark.parametrize("original", [None, "", "yes", "True", "1"])
    def test_has_time_requires_boolean_text(self, original):
        correction = CorrectionEntry(task_id="t", field_name="hasTime", original_value=original, corrected_value="true")
        assert derive_rule(correction) is None

    def test_has_time_default_category(self):
        correction = CorrectionEntry(task_id="t", field_name="hasTime", original_value="true", corrected_value="false")
        assert derive_rule(correction).values == ("General", "usually_date_only")

    @pytest.mark.parametrize("original,corrected", [("", "Groceries"), ("Errand", ""), (None, "Groceries"), ("Errand", None)])
    def test_category_requires_both_values(self, original, corrected):
        correction = CorrectionEntry(task_id="t", field_name="category", original_value=original, corrected_value=corrected)
        assert derive_rule(correction) is None

    def test_unknown_field_is_noop(self):
        correction = CorrectionEntry(task_id="t", field_name="priority", original_value="low", corrected_value="high")
        assert derive_rule(correction) is None

    def test_new_field_kind_by_registration(self):
        @field_handler("storeName")
        def learn_store(correction):
            return LearnedRule(VOCABULARY_ALIASES, (correction.original_value, correction.corrected_value))

        try:
            correction = CorrectionEntry(task_id="t", field_name="storeName", original_value="TJs",
                                         corrected_value="Trader Joe's")
            assert derive_rule(correction).values == ("TJs", "Trader Joe's")
        finally:
            FIELD_HANDLERS.pop("storeName")


# =============================================================================
# Pure Ingestion
# =============================================================================

class TestIngest:

    def test_end_to_end_scenario(self, ingestion_service, sample_corrections):
        result = ingestion_service.ingest("user-1", sample_corrections, today=TODAY)
        profile = result.profile

        assert profile.vocabulary_aliases == [{"spoken": "Krogers", "canonical": "Kroger", "count": 1, "last_used": TODAY}]
        assert profile.category_mappings == [{"from": "Errand", "to": "Groceries", "count": 1, "last_used": TODAY}]
        assert profile.time_habits == [{"category": "Reminders", "pattern": "usually_date_only", "count": 1, "last_used": TODAY}]
        assert len(result.accepted) == 3
        assert result.skipped == 0
        assert result.learned == {"vocabulary_aliases": 1, "category_mappings": 1, "time_habits": 1}
        assert profile.updated_at is not None

    def test_merges_into_existing_profile(self, ingestion_service):
        existing = VoiceProfileSnapshot(
            user_id="user-1",
            vocabulary_aliases=[{"spoken": "Krogers", "canonical": "Kroger", "count": 2, "last_used": "2026-01-01"}],
            store_aliases=[{"spoken": "TJs", "canonical": "Trader Joe's", "count": 9, "last_used": "2026-01-01"}],
        )
        batch = [
            {"taskId": "t1", "fieldName": "title", "originalValue": "Krogers run", "correctedValue": "Kroger run"},
            {"taskId": "t2", "fieldName": "title", "originalValue": "call mum", "correctedValue": "call mom"},
        ]

        result = ingestion_service.ingest("user-1", batch, profile=existing, today=TODAY)

        assert _identities(result.profile.vocabulary_aliases, "spoken", "canonical") == [
            ("Krogers", "Kroger", 3),
            ("mum", "mom", 1),
        ]
        assert result.profile.store_aliases == existing.store_aliases
        assert existing.vocabulary_aliases[0]["count"] == 2

    def test_order_independent_final_state(self, rate_limiter):
        batch = [
            {"taskId": "t1", "fieldName": "category", "originalValue": "A", "correctedValue": "B"},
            {"taskId": "t2", "fieldName": "category", "originalValue": "C", "correctedValue": "D"},
            {"taskId": "t3", "fieldName": "category", "originalValue": "A", "correctedValue": "B"},
        ]
        forward = CorrectionIngestionService(rate_limiter).ingest("u", batch, today=TODAY)
        backward = CorrectionIngestionService(rate_limiter).ingest("u", list(reversed(batch)), today=TODAY)

        assert forward.profile.category_mappings == backward.profile.category_mappings

    def test_malformed_entry_changes_nothing(self, ingestion_service):
        batch = [{"fieldName": "title", "originalValue": "Krogers run", "correctedValue": "Kroger run"}]

        result = ingestion_service.ingest("user-1", batch, today=TODAY)

        assert result.accepted == []
        assert result.skipped == 1
        assert result.profile.vocabulary_aliases == []

    def test_keeps_personalization_flag(self, ingestion_service, sample_corrections):
        existing = VoiceProfileSnapshot(user_id="user-1", personalization_enabled=False)
        result = ingestion_service.ingest("user-1", sample_corrections, profile=existing, today=TODAY)
        assert result.profile.personalization_enabled is False

    def test_rate_limited_before_validation(self, sample_corrections):
        service = CorrectionIngestionService(CorrectionRateLimiter(limit=2, window_seconds=3600))
        service.ingest("user-1", sample_corrections)
        with pytest.raises(InvalidInputError):
            service.ingest("user-1", [])

        with pytest.raises(RateLimitedError) as exc_info:
            service.ingest("user-1", [])
        assert exc_info.value.status_code == 429
        assert exc_info.value.retry_after_seconds > 0

    def test_invalid_batch_counts_against_quota(self):
        service = CorrectionIngestionService(CorrectionRateLimiter(limit=1, window_seconds=3600))
        with pytest.raises(InvalidInputError):
            service.ingest("user-1", None)
        with pytest.raises(RateLimitedError):
            service.ingest("user-1", None)


# =============================================================================
# Persisted Ingestion
# =============================================================================

@pytest_asyncio.fixture
async def user(test_db):
    db_user = User(email="learner@example.com", password_hash="x")
    test_db.add(db_user)
    await test_db.commit()
    await test_db.refresh(db_user)
    return db_user


async def _audit_rows(db, user_id):
    result = await db.execute(
        select(VoiceCorrection).filter(VoiceCorrection.user_id == user_id).order_by(VoiceCorrection.id)
    )
    return result.scalars().all()


class TestRecordCorrections:

    @pytest.mark.asyncio
    async def test_creates_profile_and_audit_rows(self, test_db, user, ingestion_service, sample_corrections):
        result = await ingestion_service.record_corrections(test_db, user.id, sample_corrections)

        stored = await VoiceProfileRepository().get_profile(test_db, user.id)
        assert _identities(stored.vocabulary_aliases, "spoken", "canonical") == [("Krogers", "Kroger", 1)]
        assert _identities(stored.category_mappings, "from", "to") == [("Errand", "Groceries", 1)]
        assert _identities(stored.time_habits, "category", "pattern") == [("Reminders", "usually_date_only", 1)]
        assert stored.store_aliases == []

        rows = await _audit_rows(test_db, user.id)
        assert [(r.task_id, r.field_name, r.original_value, r.corrected_value) for r in rows] == [
            ("t1", "title", "Krogers run", "Kroger run"),
            ("t2", "category", "Errand", "Groceries"),
            ("t3", "hasTime", "true", "false"),
        ]
        assert result.audit_rows_written == 3

    @pytest.mark.asyncio
    async def test_second_batch_accumulates(self, test_db, user, ingestion_service, sample_corrections):
        await ingestion_service.record_corrections(test_db, user.id, sample_corrections)
        await ingestion_service.record_corrections(test_db, user.id, sample_corrections[:1])

        stored = await VoiceProfileRepository().get_profile(test_db, user.id)
        assert _identities(stored.vocabulary_aliases, "spoken", "canonical") == [("Krogers", "Kroger", 2)]
        assert len(await _audit_rows(test_db, user.id)) == 4

    @pytest.mark.asyncio
    async def test_audit_rows_for_non_learning_corrections(self, test_db, user, ingestion_service):
        batch = [
            {"taskId": "t1", "fieldName": "title", "originalValue": "buy milk eggs", "correctedValue": "get milk bread"},
            {"taskId": "t2", "fieldName": "notes", "originalValue": "x", "correctedValue": "y"},
            {"fieldName": "title", "originalValue": "a", "correctedValue": "b"},
        ]

        result = await ingestion_service.record_corrections(test_db, user.id, batch)

        assert result.learned == {}
        assert result.skipped == 1
        assert [r.task_id for r in await _audit_rows(test_db, user.id)] == ["t1", "t2"]

        stored = await VoiceProfileRepository().get_profile(test_db, user.id)
        assert stored is not None
        assert stored.vocabulary_aliases == []

    @pytest.mark.asyncio
    async def test_store_aliases_pass_through(self, test_db, user, ingestion_service, sample_corrections):
        repository = VoiceProfileRepository()
        seeded = VoiceProfileSnapshot(
            user_id=user.id,
            store_aliases=[{"spoken": "TJs", "canonical": "Trader Joe's", "count": 3, "last_used": "2026-01-01"}],
        )
        await repository.save_profile(test_db, seeded)

        await ingestion_service.record_corrections(test_db, user.id, sample_corrections)

        stored = await repository.get_profile(test_db, user.id)
        assert stored.store_aliases == seeded.store_aliases

    @pytest.mark.asyncio
    async def test_rate_limited_batch_writes_nothing(self, test_db, user, sample_corrections):
        service = CorrectionIngestionService(CorrectionRateLimiter(limit=0, window_seconds=3600))
        service.rate_limiter.allow(str(user.id))

        with pytest.raises(RateLimitedError):
            await service.record_corrections(test_db, user.id, sample_corrections)

        assert await VoiceProfileRepository().get_profile(test_db, user.id) is None
        assert await _audit_rows(test_db, user.id) == []

    @pytest.mark.asyncio
    async def test_profile_read_failure(self, ingestion_service, sample_corrections):
        db = AsyncMock()
        db.execute.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))

        with pytest.raises(StorageUnavailableError) as exc_info:
            await ingestion_service.record_corrections(db, 1, sample_corrections)

        assert exc_info.value.error_code == "StorageUnavailable"
        assert exc_info.value.details["operation"] == "read"

    @pytest.mark.asyncio
    async def test_profile_write_failure_keeps_audit_rows(self, test_db, user, sample_corrections):
        repository = VoiceProfileRepository()
        repository.save_profile = AsyncMock(side_effect=StorageUnavailableError("Failed to save profile", operation="write"))
        service = CorrectionIngestionService(CorrectionRateLimiter(limit=30, window_seconds=3600), repository)

        with pytest.raises(StorageUnavailableError):
            await service.record_corrections(test_db, user.id, sample_corrections)

        assert len(await _audit_rows(test_db, user.id)) == 3

    @pytest.mark.asyncio
    async def test_audit_failure_does_not_block_learning(self, test_db, user, sample_corrections):
        repository = VoiceProfileRepository()
        repository.log_corrections = AsyncMock(return_value=0)
        service = CorrectionIngestionService(CorrectionRateLimiter(limit=30, window_seconds=3600), repository)

        result = await service.record_corrections(test_db, user.id, sample_corrections)

        assert result.audit_rows_written == 0
        stored = await repository.get_profile(test_db, user.id)
        assert len(stored.vocabulary_aliases) == 1

    @pytest.mark.asyncio
    async def test_non_string_values_are_audited(self, test_db, user, ingestion_service):
        batch = [
            {"taskId": "t1", "fieldName": "hasTime", "originalValue": True, "correctedValue": False},
            {"taskId": 42, "fieldName": "category", "originalValue": 3, "correctedValue": None},
        ]

        result = await ingestion_service.record_corrections(test_db, user.id, batch)

        assert result.learned == {}
        assert result.audit_rows_written == 2
        rows = await _audit_rows(test_db, user.id)
        assert [(r.task_id, r.original_value, r.corrected_value) for r in rows] == [
            ("t1", "true", "false"),
            ("42", "3", None),
        ]
