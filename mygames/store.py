"""In-memory copy of a user's collection with optimistic mutations."""
import logging
from typing import Any, Optional

from mygames.core.queue import (
    HiddenPolicy,
    QueueCoordinator,
    QueueState,
    plan_reorder,
    queue_state,
    toggle_hidden,
    working_list,
)
from mygames.core.records import GameRecord, validate_game_fields, validate_new_game
from mygames.exceptions import MyGamesError, NotFoundError
from mygames.gateways.games import GamesGateway

logger = logging.getLogger(__name__)


class CollectionStore:
    """Holds the fetched records of one user.

    ``refresh()`` is the only way records are reloaded from the gateway.
    Edits are applied locally first; if the gateway rejects them the
    previous records are restored and the error is re-raised.
    """

    def __init__(self, gateway: GamesGateway):
        self.gateway = gateway
        self.records: list[GameRecord] = []

    @property
    def user_id(self) -> str:
        return self.gateway.user_id

    async def refresh(self) -> list[GameRecord]:
        self.records = await self.gateway.list_games()
        return self.records

    def find(self, game_id: int) -> GameRecord:
        for record in self.records:
            if record.id == game_id:
                return record
        raise NotFoundError(f"Game {game_id} not found")

    def _index(self, game_id: int) -> int:
        for index, record in enumerate(self.records):
            if record.id == game_id:
                return index
        raise NotFoundError(f"Game {game_id} not found")

    async def _apply(self, game_id: int, changes: dict[str, Any]) -> GameRecord:
        index = self._index(game_id)
        previous = self.records[index]
        self.records[index] = previous.model_copy(update=changes)
        try:
            saved = await self.gateway.update_game(game_id, changes)
        except MyGamesError:
            self.records[index] = previous
            logger.warning(f"Rolled back local change to game {game_id}")
            raise
        self.records[index] = saved
        return saved

    async def add_game(self, fields: dict[str, Any]) -> GameRecord:
        record = await self.gateway.insert_game(validate_new_game(fields))
        await self.refresh()
        return record

    async def add_games(self, rows: list[dict[str, Any]]) -> list[GameRecord]:
        records = await self.gateway.insert_games([validate_new_game(row) for row in rows])
        await self.refresh()
        return records

    async def update_game(self, game_id: int, fields: dict[str, Any]) -> GameRecord:
        return await self._apply(game_id, validate_game_fields(fields))

    async def save_notes(self, game_id: int, notes: Optional[str]) -> GameRecord:
        return await self._apply(game_id, {"notes": notes})

    async def delete_game(self, game_id: int):
        self.find(game_id)
        snapshot = list(self.records)
        self.records = [r for r in self.records if r.id != game_id and r.parent_id != game_id]
        try:
            await self.gateway.delete_game(game_id)
        except MyGamesError:
            self.records = snapshot
            logger.warning(f"Rolled back local delete of game {game_id}")
            raise

    async def toggle_hidden(self, game_id: int) -> GameRecord:
        return await self._apply(game_id, toggle_hidden(self.find(game_id)))

    async def reorder_queue(
        self,
        moved_id: int,
        target_index: int,
        coordinator: QueueCoordinator,
        show_hidden: bool = False,
        hidden_policy: HiddenPolicy = HiddenPolicy.PRESERVE,
    ) -> QueueState:
        """Move one game within the displayed queue and persist the new order."""
        async with coordinator.saving(self.user_id):
            # Reload under the guard so the plan starts from the last saved order
            await self.refresh()
            displayed = working_list(self.records, show_hidden=show_hidden)
            plan = plan_reorder(
                displayed,
                moved_id,
                target_index,
                all_records=self.records,
                hidden_policy=hidden_policy,
            )
            if plan is None:
                return queue_state(self.records, show_hidden=show_hidden)

            snapshot = list(self.records)
            self.records = [
                r.model_copy(update={"play_order": plan[r.id]}) if r.id in plan else r
                for r in self.records
            ]
            try:
                await self.gateway.update_play_orders(plan)
            except MyGamesError:
                self.records = snapshot
                logger.warning(f"Rolled back queue reorder for user {self.user_id}")
                raise

        return queue_state(self.records, show_hidden=show_hidden)
