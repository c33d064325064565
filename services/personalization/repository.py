"""
Voice Profile Repository

Async persistence for learned voice profiles and the correction audit log.
Profile reads and writes raise StorageUnavailableError on database failure.
Audit writes are best-effort: failures are logged and swallowed so they
never block learning.
"""

from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from core.audit_models import VoiceCorrection
from core.schemas import CorrectionEntry, as_text
from core.voice_profile_model import UserVoiceProfile
from services.personalization.profile import VoiceProfileSnapshot
from utils.exceptions import StorageUnavailableError
from utils.logging import get_logger

logger = get_logger(__name__)


class VoiceProfileRepository:
    """Reads and upserts user_voice_profiles rows; appends voice_corrections rows."""

    async def _get_row(self, db: AsyncSession, user_id: int) -> Optional[UserVoiceProfile]:
        result = await db.execute(
            select(UserVoiceProfile).filter(UserVoiceProfile.user_id == user_id)
        )
        return result.scalars().first()

    async def get_profile(self, db: AsyncSession, user_id: int) -> Optional[VoiceProfileSnapshot]:
        """Fetch the user's profile, or None if they have never been profiled."""
        try:
            row = await self._get_row(db, user_id)
        except SQLAlchemyError as e:
            logger.error(f"Profile fetch failed for user {user_id}: {e}", extra={"user_id": user_id, "operation": "read"})
            raise StorageUnavailableError("Failed to load profile", operation="read") from e

        return VoiceProfileSnapshot.from_row(row) if row else None

    async def save_profile(self, db: AsyncSession, snapshot: VoiceProfileSnapshot) -> VoiceProfileSnapshot:
        """Upsert by user_id, replacing all four mapping lists and updated_at."""
        try:
            row = await self._get_row(db, snapshot.user_id)
            if row is None:
                row = UserVoiceProfile(
                    user_id=snapshot.user_id,
                    personalization_enabled=snapshot.personalization_enabled,
                )
                db.add(row)

            row.vocabulary_aliases = list(snapshot.vocabulary_aliases)
            row.category_mappings = list(snapshot.category_mappings)
            row.store_aliases = list(snapshot.store_aliases)
            row.time_habits = list(snapshot.time_habits)
            row.updated_at = snapshot.updated_at

            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Profile upsert failed for user {snapshot.user_id}: {e}", extra={"user_id": snapshot.user_id, "operation": "write"})
            raise StorageUnavailableError("Failed to save profile", operation="write") from e

        return snapshot

    async def set_personalization_enabled(self, db: AsyncSession, user_id: int, enabled: bool) -> None:
        """Toggle the opt-in flag, creating an empty profile row if needed."""
        try:
            row = await self._get_row(db, user_id)
            if row is None:
                row = UserVoiceProfile(
                    user_id=user_id,
                    vocabulary_aliases=[],
                    category_mappings=[],
                    store_aliases=[],
                    time_habits=[],
                )
                db.add(row)
            row.personalization_enabled = enabled
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Personalization toggle failed for user {user_id}: {e}")
            raise StorageUnavailableError("Failed to update profile", operation="write") from e

    async def log_corrections(
        self,
        db: AsyncSession,
        user_id: int,
        corrections: Iterable[CorrectionEntry]
    ) -> int:
        """Append one audit row per correction. Returns rows written (0 on failure)."""
        rows = [
            VoiceCorrection(
                user_id=user_id,
                task_id=c.task_id,
                field_name=c.field_name,
                original_value=as_text(c.original_value),
                corrected_value=as_text(c.corrected_value),
            )
            for c in corrections
        ]
        if not rows:
            return 0

        try:
            db.add_all(rows)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.warning(f"Audit log write failed for user {user_id} ({len(rows)} rows): {e}")
            return 0

        return len(rows)
