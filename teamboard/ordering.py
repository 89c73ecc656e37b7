"""
Splice-and-renumber ordering.

Both task priorities (scoped per assignee) and team member order (global)
are kept dense: after a move, positions are exactly 0..N-1 in list order.
"""
from datetime import datetime
from typing import List, Sequence, TypeVar

T = TypeVar("T")


def clamp_index(index: int, length: int) -> int:
    """Clamp a target index into [0, length]; out-of-range moves go to the start or end."""
    return max(0, min(index, length))


def splice(items: Sequence[T], moved: T, index: int) -> List[T]:
    """Return items without `moved`, with `moved` inserted at the clamped index."""
    remaining = [item for item in items if item is not moved]
    remaining.insert(clamp_index(index, len(remaining)), moved)
    return remaining


def renumber(items: Sequence[T], attr: str, now: datetime) -> List[T]:
    """
    Assign 0..N-1 to `attr` in list order.

    Only items whose value actually changes get `updated_at` stamped.
    Returns the changed items.
    """
    changed = []
    for position, item in enumerate(items):
        if getattr(item, attr) != position:
            setattr(item, attr, position)
            item.updated_at = now
            changed.append(item)
    return changed
