"""
Correction Audit Log Models

SQLAlchemy models for the voice correction audit trail.
Every accepted correction is appended here, whether or not it produced a
learned mapping. The table is write-only history; nothing reads it back
during learning.

Indexed for querying by user and time range.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, Index
from sqlalchemy.sql import func

from core.database import Base


class VoiceCorrection(Base):
    """
    Audit row for one user-confirmed correction.

    Design:
    - Raw values stored as received
    - No foreign keys (logs survive account deletion)
    - Composite index for user + time range queries
    """

    __tablename__ = "voice_corrections"
    __table_args__ = (
        Index("ix_voice_corrections_user_time", "user_id", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, nullable=False)
    task_id = Column(String(255), nullable=False)
    field_name = Column(String(50), nullable=False)
    original_value = Column(Text, nullable=True)
    corrected_value = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self) -> str:
        return f"<VoiceCorrection(id={self.id}, field='{self.field_name}', user={self.user_id})>"
