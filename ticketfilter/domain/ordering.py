"""
Sort order handling shared by rule groups and filter rules.
"""

from typing import Any, List, Sequence, TypeVar

T = TypeVar("T")


class OrderingError(Exception):
    """Raised when an item cannot be moved."""


def swap_position(items: Sequence[T], item_id: Any, offset: int) -> List[T]:
    """
    Swap an item with the sibling `offset` places away.

    `items` must already be in sort order; each item needs an `id`.
    Returns the reordered list, which the caller renumbers 1..N.

    Raises:
        OrderingError: If the item is missing or would leave the list
    """
    ordered = list(items)
    positions = [index for index, item in enumerate(ordered) if item.id == item_id]
    if not positions:
        raise OrderingError("Failed to find current position")

    current = positions[0]
    target = current + offset
    if target < 0:
        raise OrderingError("Can not move up. It's already at the top")
    if target >= len(ordered):
        raise OrderingError("Can not move down. It's already at the bottom")

    ordered[current], ordered[target] = ordered[target], ordered[current]
    return ordered


def next_sort_order(current_orders: Sequence[int]) -> int:
    """Sort order that places a new item after all existing siblings."""
    return max(current_orders, default=0) + 1
