"""
Tag set algebra used by set and delete operations.
"""

from typing import AbstractSet, FrozenSet


def union(existing: AbstractSet[str], incoming: AbstractSet[str]) -> FrozenSet[str]:
    """Merge incoming tags into existing ones. Idempotent."""
    return frozenset(existing) | frozenset(incoming)


def difference(existing: AbstractSet[str], to_remove: AbstractSet[str]) -> FrozenSet[str]:
    """Remove tags; tags that are not present are ignored."""
    return frozenset(existing) - frozenset(to_remove)


def needs_removal(result: AbstractSet[str]) -> bool:
    """
    Whether a mutation result must be persisted as attribute absence.

    An empty stored value is indistinguishable from "no tags", so an empty
    result always removes the attribute instead of writing b"".
    """
    return not result
