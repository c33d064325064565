"""
In-memory view of a user's voice profile.

The snapshot is what learning reads and produces; the repository maps it
to and from the user_voice_profiles row.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List, Optional

from services.personalization.ranked_mapping import MappingEntry


@dataclass
class VoiceProfileSnapshot:
    user_id: Any
    vocabulary_aliases: List[MappingEntry] = field(default_factory=list)
    category_mappings: List[MappingEntry] = field(default_factory=list)
    store_aliases: List[Any] = field(default_factory=list)
    time_habits: List[MappingEntry] = field(default_factory=list)
    personalization_enabled: bool = True
    updated_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, row) -> "VoiceProfileSnapshot":
        """Build from a UserVoiceProfile row; NULL columns read as empty lists."""
        return cls(
            user_id=row.user_id,
            vocabulary_aliases=list(row.vocabulary_aliases or []),
            category_mappings=list(row.category_mappings or []),
            store_aliases=list(row.store_aliases or []),
            time_habits=list(row.time_habits or []),
            personalization_enabled=row.personalization_enabled is not False,
            updated_at=row.updated_at,
        )

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "vocabulary_aliases": self.vocabulary_aliases,
            "category_mappings": self.category_mappings,
            "store_aliases": self.store_aliases,
            "time_habits": self.time_habits,
            "personalization_enabled": self.personalization_enabled,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
