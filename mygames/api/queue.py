"""Backlog queue endpoints."""
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from mygames.api.deps import get_queue_coordinator, get_store
from mygames.config import get_settings
from mygames.core.queue import HiddenPolicy, QueueCoordinator, QueueState, queue_state
from mygames.core.records import GameRecord
from mygames.store import CollectionStore

settings = get_settings()

router = APIRouter(prefix="/queue", tags=["queue"])


class QueueResponse(BaseModel):
    items: list[GameRecord]
    show_hidden: bool
    hidden_count: int
    state: str
    saving: bool


class ReorderRequest(BaseModel):
    """A drop in the displayed list: which game, and the index it landed on."""
    moved_id: int
    target_index: int
    show_hidden: bool = False


def _response(state: QueueState, saving: bool) -> QueueResponse:
    return QueueResponse(
        items=state.items,
        show_hidden=state.show_hidden,
        hidden_count=state.hidden_count,
        state=state.state,
        saving=saving,
    )


@router.get("", response_model=QueueResponse)
async def get_queue(
    show_hidden: bool = False,
    store: CollectionStore = Depends(get_store),
    coordinator: QueueCoordinator = Depends(get_queue_coordinator),
):
    """Pending games in play order."""
    state = queue_state(store.records, show_hidden=show_hidden)
    return _response(state, coordinator.is_saving(store.user_id))


@router.post("/reorder", response_model=QueueResponse)
async def reorder_queue(
    request: ReorderRequest,
    store: CollectionStore = Depends(get_store),
    coordinator: QueueCoordinator = Depends(get_queue_coordinator),
):
    """Move a game and renumber the displayed queue."""
    state = await store.reorder_queue(
        request.moved_id,
        request.target_index,
        coordinator,
        show_hidden=request.show_hidden,
        hidden_policy=HiddenPolicy(settings.queue_hidden_policy),
    )
    return _response(state, coordinator.is_saving(store.user_id))


@router.post("/{game_id}/toggle-hidden", response_model=GameRecord)
async def toggle_hidden(
    game_id: int,
    store: CollectionStore = Depends(get_store),
):
    """Hide a pending game from the queue, or show it again."""
    return await store.toggle_hidden(game_id)
