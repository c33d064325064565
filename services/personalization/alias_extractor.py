"""
Vocabulary alias extraction from title corrections.

Only single-word substitutions are learned: the original and corrected
titles must have the same number of words and differ in exactly one
position. Insertions, deletions and reorderings are not actionable and
yield no alias.
"""

from typing import Any, NamedTuple, Optional


class VocabularyAlias(NamedTuple):
    spoken: str
    canonical: str


def extract_alias(original: Any, corrected: Any) -> Optional[VocabularyAlias]:
    """
    Find the one word the user changed in a title.

    Example:
        >>> extract_alias("Krogers list", "Kroger list")
        VocabularyAlias(spoken='Krogers', canonical='Kroger')
        >>> extract_alias("buy milk eggs", "get milk bread") is None
        True
    """
    if not isinstance(original, str) or not isinstance(corrected, str):
        return None

    original_words = original.split()
    corrected_words = corrected.split()
    if len(original_words) != len(corrected_words):
        return None

    changed: Optional[VocabularyAlias] = None
    for spoken, canonical in zip(original_words, corrected_words):
        if spoken == canonical:
            continue
        if changed is not None:
            return None
        changed = VocabularyAlias(spoken, canonical)

    return changed
