"""
Voice Profile Model

Database model for the learned per-user voice personalization profile
"""

from sqlalchemy import Column, Integer, DateTime, Boolean, ForeignKey, JSON
from sqlalchemy.sql import func

from core.database import Base


class UserVoiceProfile(Base):
    """Learned corrections for one user, consulted by the parsing pipeline"""
    __tablename__ = "user_voice_profiles"

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True
    )
    vocabulary_aliases = Column(JSON, nullable=False, default=list)
    category_mappings = Column(JSON, nullable=False, default=list)
    store_aliases = Column(JSON, nullable=False, default=list)
    time_habits = Column(JSON, nullable=False, default=list)
    personalization_enabled = Column(Boolean, nullable=False, default=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return (
            f"<UserVoiceProfile(user_id={self.user_id}, "
            f"aliases={len(self.vocabulary_aliases or [])}, "
            f"categories={len(self.category_mappings or [])}, "
            f"time_habits={len(self.time_habits or [])})>"
        )
