"""
Application Constants

Centralizes wire-level literals and sizing values for correction learning.
Avoids hardcoded values scattered throughout the codebase.

Usage:
    from config.constants import FIELD_TITLE, DEFAULT_TIME_HABIT_CATEGORY
"""

# =============================================================================
# Correction Field Names
# =============================================================================

FIELD_TITLE = "title"
FIELD_CATEGORY = "category"
FIELD_HAS_TIME = "hasTime"


# =============================================================================
# Time Habits
# =============================================================================

PATTERN_USUALLY_HAS_TIME = "usually_has_time"
PATTERN_USUALLY_DATE_ONLY = "usually_date_only"

# hasTime values travel as text
BOOLEAN_TRUE = "true"
BOOLEAN_FALSE = "false"

# Used when a hasTime correction carries no task category
DEFAULT_TIME_HABIT_CATEGORY = "General"


# =============================================================================
# Mapping Lists
# =============================================================================

# Upper bound on entries per learned mapping list
MAX_MAPPINGS = 50


# =============================================================================
# Personalization Snapshot
# =============================================================================

# How many entries of each list are handed to the parsing pipeline
SNAPSHOT_TOP_VOCABULARY = 10
SNAPSHOT_TOP_CATEGORY_MAPPINGS = 10
SNAPSHOT_TOP_STORE_ALIASES = 5
SNAPSHOT_TOP_TIME_HABITS = 5
