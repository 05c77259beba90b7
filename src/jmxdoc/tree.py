"""Ordered upsert-by-name over immutable tuples.

Every named collection of the document (channel configs, perturbations, target
sets, targets, trial sets, trials) is an ordered tuple. Upserting replaces the
item with the same name in place, keeping its position, or appends it.
"""

from typing import Any, Callable, NamedTuple, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")


class UpsertResult(NamedTuple):
    """Outcome of an upsert.

    Attributes:
        items: New collection
        index: Position of the upserted item in ``items``
        replaced: True if an item with the same name was replaced
    """

    items: Tuple[Any, ...]
    index: int
    replaced: bool


def _name_of(item) -> str:
    return item.name


def find_index(items: Sequence[T], name: str, key: Callable[[T], str] = _name_of) -> Optional[int]:
    """Position of the item called ``name``, or None."""
    for i, item in enumerate(items):
        if key(item) == name:
            return i
    return None


def upsert_by_name(items: Sequence[T], item: T, key: Callable[[T], str] = _name_of) -> UpsertResult:
    """Replace the item sharing ``item``'s name or append ``item``."""
    index = find_index(items, key(item), key)
    if index is None:
        return UpsertResult(tuple(items) + (item,), len(items), False)
    updated = list(items)
    updated[index] = item
    return UpsertResult(tuple(updated), index, True)


def replace_at(items: Sequence[T], index: int, item: T) -> Tuple[T, ...]:
    """Copy of ``items`` with position ``index`` replaced."""
    updated = list(items)
    updated[index] = item
    return tuple(updated)


def duplicate_names(names: Sequence[str]) -> Tuple[str, ...]:
    """Names occurring more than once, in order of their second occurrence."""
    seen = set()
    dups = []
    for name in names:
        if name in seen and name not in dups:
            dups.append(name)
        seen.add(name)
    return tuple(dups)
