"""Dense integer ordering for sibling sets (lists of a board, cards of a list).

Items only need ``id``, ``order`` and ``created_at`` attributes. Nothing here
touches the database; callers load the sibling set and persist the result.
"""

from __future__ import annotations

from typing import Iterable, Protocol, Sequence, TypeVar


class Ordered(Protocol):
    id: str
    order: int


T = TypeVar("T", bound=Ordered)


def sort_key(item) -> tuple:
    # Ties are allowed; fall back to creation time, then id.
    created = getattr(item, "created_at", None)
    return (item.order, created.timestamp() if created is not None else 0.0, item.id)


def sorted_siblings(siblings: Iterable[T]) -> list[T]:
    return sorted(siblings, key=sort_key)


def append_position(siblings: Sequence[Ordered]) -> int:
    """New items go to the end: order equals the current sibling count."""
    return len(siblings)


def apply_order(siblings: Iterable[T], ordered_ids: Sequence[str]) -> list[T]:
    """Set ``order`` to each named sibling's index within ``ordered_ids``.

    Siblings not named keep their value and ids outside the set are ignored, so
    a partial list can leave duplicates behind. Returns the touched items.
    """
    by_id = {item.id: item for item in siblings}
    touched: list[T] = []
    for index, item_id in enumerate(ordered_ids):
        item = by_id.get(item_id)
        if item is None:
            continue
        item.order = index
        touched.append(item)
    return touched


def close_gaps(siblings: Iterable[T]) -> list[T]:
    """Renumber ``siblings`` to 0..N-1 keeping their current relative order."""
    ordered = sorted_siblings(siblings)
    for index, item in enumerate(ordered):
        if item.order != index:
            item.order = index
    return ordered


def move_position(destination: Sequence[Ordered], item: Ordered) -> int:
    """Position for ``item`` appended to ``destination`` (excluding itself)."""
    return len([sibling for sibling in destination if sibling.id != item.id])
