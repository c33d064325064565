"""
Compact personalization context for the parsing pipeline.

Only the top-ranked entries of each list are handed over, stripped to their
identity fields. Empty lists become None so the prompt builder can omit them.
"""

from typing import Optional

from config.constants import (
    SNAPSHOT_TOP_CATEGORY_MAPPINGS,
    SNAPSHOT_TOP_STORE_ALIASES,
    SNAPSHOT_TOP_TIME_HABITS,
    SNAPSHOT_TOP_VOCABULARY,
)
from core.schemas import VoicePersonalization
from services.personalization.profile import VoiceProfileSnapshot
from services.personalization.ranked_mapping import (
    CATEGORY_MAPPINGS,
    STORE_ALIASES,
    TIME_HABITS,
    VOCABULARY_ALIASES,
)


def build_personalization_context(profile: Optional[VoiceProfileSnapshot]) -> VoicePersonalization:
    if profile is None or not profile.personalization_enabled:
        return VoicePersonalization()

    # store aliases are opaque; keep only well-formed dict entries
    stores = [s for s in profile.store_aliases if isinstance(s, dict)]

    return VoicePersonalization(
        vocabulary_aliases=VOCABULARY_ALIASES.identities(profile.vocabulary_aliases, SNAPSHOT_TOP_VOCABULARY) or None,
        category_mappings=CATEGORY_MAPPINGS.identities(profile.category_mappings, SNAPSHOT_TOP_CATEGORY_MAPPINGS) or None,
        store_aliases=STORE_ALIASES.identities(stores, SNAPSHOT_TOP_STORE_ALIASES) or None,
        time_habits=TIME_HABITS.identities(profile.time_habits, SNAPSHOT_TOP_TIME_HABITS) or None,
    )
