"""Backlog queue: ordering, drag-and-drop reindexing and per-game visibility.

The queue is the list of pending games ordered by ``play_order``. A drop
renumbers the displayed list to ``0..N-1``. What happens to pending games
that are hidden and therefore not displayed is a policy choice, see
``HiddenPolicy``.
"""
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Sequence, TypeVar

from mygames.core.records import GameRecord
from mygames.exceptions import QueueError, ReorderInProgressError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class HiddenPolicy(str, Enum):
    """How a reorder of the displayed list treats hidden pending games."""

    # Hidden games keep whatever play_order they had
    PRESERVE = "preserve"
    # Hidden games not on screen are renumbered after the displayed ones, keeping their relative order
    APPEND = "append"


def _play_order_key(record: GameRecord) -> tuple[bool, int]:
    # Games never placed in the queue go last
    return record.play_order is None, record.play_order or 0


def working_list(records: Iterable[GameRecord], show_hidden: bool = False) -> list[GameRecord]:
    """Pending games in queue order, hidden ones only when ``show_hidden``."""
    pending = [r for r in records if r.is_pending]
    if not show_hidden:
        pending = [r for r in pending if not r.is_hidden_in_queue]
    return sorted(pending, key=_play_order_key)


def array_move(items: Sequence[T], old_index: int, new_index: int) -> list[T]:
    """Remove the item at ``old_index`` and reinsert it at ``new_index``."""
    moved = list(items)
    item = moved.pop(old_index)
    moved.insert(new_index, item)
    return moved


def plan_reorder(
    displayed: Sequence[GameRecord],
    moved_id: int,
    target_index: int,
    *,
    all_records: Optional[Iterable[GameRecord]] = None,
    hidden_policy: HiddenPolicy = HiddenPolicy.PRESERVE,
) -> Optional[dict[int, int]]:
    """Compute the ``play_order`` writes for one drop.

    Returns ``None`` when the drop lands where it started. Otherwise maps
    every displayed game id to its new index in the displayed list (and,
    under ``HiddenPolicy.APPEND``, the remaining hidden pending games to the
    indexes after it).
    """
    ids = [r.id for r in displayed]
    if moved_id not in ids:
        raise QueueError(f"Game {moved_id} is not in the displayed queue")
    if not 0 <= target_index < len(ids):
        raise QueueError(f"Target index {target_index} is outside the queue (0..{len(ids) - 1})")

    old_index = ids.index(moved_id)
    if old_index == target_index:
        return None

    new_order = array_move(displayed, old_index, target_index)
    plan = {record.id: index for index, record in enumerate(new_order)}

    if hidden_policy == HiddenPolicy.APPEND and all_records is not None:
        offstage = [r for r in working_list(all_records, show_hidden=True) if r.id not in plan]
        for offset, record in enumerate(offstage):
            plan[record.id] = len(new_order) + offset

    return plan


def toggle_hidden(record: GameRecord) -> dict[str, bool]:
    """The single-field update that flips a pending game's visibility."""
    if not record.is_pending:
        raise QueueError(f"Game {record.id} is not pending and has no place in the queue")
    return {"is_hidden_in_queue": not record.is_hidden_in_queue}


@dataclass
class QueueState:
    """What the queue screen shows."""

    items: list[GameRecord]
    show_hidden: bool
    hidden_count: int
    # "items", "empty" (nothing pending) or "all_hidden" (only hidden games pending)
    state: str


def queue_state(records: Iterable[GameRecord], show_hidden: bool = False) -> QueueState:
    records = list(records)
    items = working_list(records, show_hidden=show_hidden)
    hidden_count = sum(1 for r in records if r.is_pending and r.is_hidden_in_queue)

    if items:
        state = "items"
    elif hidden_count:
        state = "all_hidden"
    else:
        state = "empty"
    return QueueState(items=items, show_hidden=show_hidden, hidden_count=hidden_count, state=state)


class QueueCoordinator:
    """Tracks queues with a reorder batch in flight.

    A second reorder for the same user while a batch is being written is
    rejected instead of interleaved.
    """

    def __init__(self):
        self._saving: set[str] = set()

    def is_saving(self, user_id: str) -> bool:
        return user_id in self._saving

    @asynccontextmanager
    async def saving(self, user_id: str):
        if user_id in self._saving:
            raise ReorderInProgressError("The previous reorder is still being saved")
        self._saving.add(user_id)
        try:
            yield
        finally:
            self._saving.discard(user_id)
