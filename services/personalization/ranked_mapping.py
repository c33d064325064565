"""
Ranked Mapping Lists

Generic bookkeeping shared by every kind of learned rule. A mapping list is
a JSON-friendly list of dicts; each entry holds its identity fields plus a
`count` of observations and the `last_used` UTC date (YYYY-MM-DD).

Invariants after every upsert:
    - at most one entry per identity
    - sorted by count desc, then last_used desc
    - at most `max_entries` entries (lowest ranked are evicted)

Lists are treated as values: upserts return a new list and never touch
the input list or its entries.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Hashable, List, Optional, Sequence, Tuple

from config.constants import MAX_MAPPINGS

MappingEntry = Dict[str, Any]


def utc_today() -> str:
    """Current UTC calendar date in ISO form."""
    return datetime.now(timezone.utc).date().isoformat()


def _rank(entries: List[MappingEntry]) -> List[MappingEntry]:
    # Two stable passes: recency first, then count, so equal counts keep
    # most-recent-first and full ties keep their existing order.
    by_recency = sorted(entries, key=lambda e: e.get("last_used") or "", reverse=True)
    return sorted(by_recency, key=lambda e: e.get("count") or 0, reverse=True)


def upsert_mapping(
    entries: Sequence[MappingEntry],
    key: Callable[[MappingEntry], Hashable],
    new_entry: MappingEntry,
    today: Optional[str] = None,
    max_entries: int = MAX_MAPPINGS,
) -> List[MappingEntry]:
    """
    Record one more observation of `new_entry` in a ranked mapping list.

    Args:
        entries: Current list (not modified)
        key: Identity function; two entries with equal keys are the same rule
        new_entry: Identity fields of the observed rule
        today: Date stamp to use, defaults to the current UTC date
        max_entries: Cap applied after ranking

    Returns:
        New ranked, capped list
    """
    today = today or utc_today()
    identity = key(new_entry)

    updated: List[MappingEntry] = []
    found = False
    for entry in entries:
        if not found and key(entry) == identity:
            entry = {**entry, "count": (entry.get("count") or 0) + 1, "last_used": today}
            found = True
        updated.append(entry)

    if not found:
        updated.append({**new_entry, "count": 1, "last_used": today})

    return _rank(updated)[:max_entries]


@dataclass(frozen=True)
class MappingKind:
    """
    One kind of learned rule: a named list whose entries are identified by
    a fixed set of fields.
    """
    name: str
    identity_fields: Tuple[str, ...]

    def key(self, entry: MappingEntry) -> Tuple[Any, ...]:
        return tuple(entry.get(field) for field in self.identity_fields)

    def entry(self, *values: str) -> MappingEntry:
        """Build a bare entry from identity values, in field order."""
        if len(values) != len(self.identity_fields):
            raise ValueError(
                f"{self.name} expects {len(self.identity_fields)} identity values, got {len(values)}"
            )
        return dict(zip(self.identity_fields, values))

    def upsert(
        self,
        entries: Sequence[MappingEntry],
        *values: str,
        today: Optional[str] = None,
        max_entries: int = MAX_MAPPINGS,
    ) -> List[MappingEntry]:
        return upsert_mapping(entries, self.key, self.entry(*values), today=today, max_entries=max_entries)

    def identities(self, entries: Sequence[MappingEntry], limit: Optional[int] = None) -> List[Dict[str, str]]:
        """Identity fields only, bookkeeping stripped; used for compact snapshots."""
        selected = entries if limit is None else entries[:limit]
        return [{field: entry.get(field) for field in self.identity_fields} for entry in selected]


VOCABULARY_ALIASES = MappingKind("vocabulary_aliases", ("spoken", "canonical"))
CATEGORY_MAPPINGS = MappingKind("category_mappings", ("from", "to"))
TIME_HABITS = MappingKind("time_habits", ("category", "pattern"))

# Store aliases are learned elsewhere; only their shape is known here
STORE_ALIASES = MappingKind("store_aliases", ("spoken", "canonical"))
