"""Pure collection logic: view model, backlog queue and statistics."""
from mygames.core.records import GameRecord
from mygames.core.view_model import CollectionViewState, FilterState, SortKey, build_view
from mygames.core.queue import HiddenPolicy, QueueCoordinator, plan_reorder, queue_state
from mygames.core.stats import compute_stats

__all__ = [
    "GameRecord",
    "CollectionViewState",
    "FilterState",
    "SortKey",
    "build_view",
    "HiddenPolicy",
    "QueueCoordinator",
    "plan_reorder",
    "queue_state",
    "compute_stats",
]
