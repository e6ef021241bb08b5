"""
State transition validation for queue items.

Item lifecycle: PENDING → PROCESSING → COMPLETED | FAILED
No retry, no requeue. A failed file is re-ingested by dropping it into
the watch folder again.

INVARIANT: Terminal item states (COMPLETED, FAILED) are immutable.
"""

from typing import FrozenSet, Set, Tuple

from .errors import InvalidStateTransitionError
from .models import ItemStatus


TERMINAL_ITEM_STATES: FrozenSet[ItemStatus] = frozenset({
    ItemStatus.COMPLETED,
    ItemStatus.FAILED,
})


_ITEM_TRANSITIONS: Set[Tuple[ItemStatus, ItemStatus]] = {
    (ItemStatus.PENDING, ItemStatus.PROCESSING),
    (ItemStatus.PROCESSING, ItemStatus.COMPLETED),
    (ItemStatus.PROCESSING, ItemStatus.FAILED),
}


def is_item_terminal(status: ItemStatus) -> bool:
    """
    Check if an item status is terminal (immutable).

    Args:
        status: The item status to check

    Returns:
        True if the status is terminal, False otherwise
    """
    return status in TERMINAL_ITEM_STATES


def can_transition_item(from_status: ItemStatus, to_status: ItemStatus) -> bool:
    """
    Check if an item state transition is legal.

    Args:
        from_status: Current item status
        to_status: Target item status

    Returns:
        True if the transition is allowed, False otherwise
    """
    # Allow staying in same state (idempotent operations)
    if from_status == to_status:
        return True

    if is_item_terminal(from_status):
        return False

    return (from_status, to_status) in _ITEM_TRANSITIONS


def validate_item_transition(from_status: ItemStatus, to_status: ItemStatus) -> None:
    """
    Validate an item state transition, raising an exception if illegal.

    Raises:
        InvalidStateTransitionError: If the transition is not allowed
    """
    if not can_transition_item(from_status, to_status):
        raise InvalidStateTransitionError("item", from_status.value, to_status.value)
