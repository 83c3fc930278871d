"""Per-user access to the games table."""
import logging
from typing import Any, Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mygames.core.records import GameRecord
from mygames.exceptions import GatewayError, NotFoundError, ValidationError
from mygames.models import Game
from mygames.models.game import utcnow

logger = logging.getLogger(__name__)


class GamesGateway:
    """CRUD on the games table. Every query is scoped to ``user_id``.

    Each write commits on its own so a failure surfaces at the call site.
    """

    def __init__(self, session: AsyncSession, user_id: str):
        self.db = session
        self.user_id = user_id

    async def _commit(self, action: str):
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to {action} for user {self.user_id}: {e}")
            raise GatewayError(f"Could not {action}") from e

    async def _execute(self, stmt, action: str):
        try:
            return await self.db.execute(stmt)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Failed to {action} for user {self.user_id}: {e}")
            raise GatewayError(f"Could not {action}") from e

    async def _get_row(self, game_id: int) -> Game:
        result = await self._execute(
            select(Game).where(Game.id == game_id, Game.user_id == self.user_id),
            "load game",
        )
        game = result.scalar_one_or_none()
        if not game:
            raise NotFoundError(f"Game {game_id} not found")
        return game

    async def _check_parent(self, parent_id: Optional[int], game_id: Optional[int] = None):
        """A DLC must point at an existing base game of the same user."""
        if parent_id is None:
            return
        if parent_id == game_id:
            raise ValidationError("A game cannot be its own DLC")
        try:
            parent = await self._get_row(parent_id)
        except NotFoundError:
            raise ValidationError(f"Base game {parent_id} does not exist")
        if parent.parent_id is not None:
            raise ValidationError("DLCs cannot have DLCs of their own")

        if game_id is not None:
            children = await self._execute(
                select(Game.id).where(Game.parent_id == game_id, Game.user_id == self.user_id).limit(1),
                "check DLCs",
            )
            if children.first():
                raise ValidationError("A game with DLCs cannot become a DLC")

    async def list_games(self) -> list[GameRecord]:
        """All of the user's games, newest first."""
        result = await self._execute(
            select(Game)
            .where(Game.user_id == self.user_id)
            .order_by(Game.created_at.desc(), Game.id.desc())
            # Overwrite rows already in the session with what is stored now
            .execution_options(populate_existing=True),
            "list games",
        )
        return [GameRecord.model_validate(game) for game in result.scalars().all()]

    async def list_base_games(self, query: str = "") -> list[GameRecord]:
        """Base games whose title contains ``query``, for picking a DLC's parent."""
        stmt = select(Game).where(Game.user_id == self.user_id, Game.parent_id.is_(None))
        if query.strip():
            stmt = stmt.where(Game.title.ilike(f"%{query.strip()}%"))
        result = await self._execute(stmt.order_by(Game.title.asc()), "list base games")
        return [GameRecord.model_validate(game) for game in result.scalars().all()]

    async def get_game(self, game_id: int) -> GameRecord:
        return GameRecord.model_validate(await self._get_row(game_id))

    def _new_row(self, fields: dict[str, Any]) -> Game:
        values = {
            "critic_score": 0,
            "is_hidden_in_queue": False,
            **fields,
            "user_id": self.user_id,
            "created_at": utcnow(),
        }
        return Game(**values)

    async def insert_game(self, fields: dict[str, Any]) -> GameRecord:
        await self._check_parent(fields.get("parent_id"))
        game = self._new_row(fields)
        self.db.add(game)
        await self._commit("add game")
        logger.info(f"Added game {game.id} '{game.title}' for user {self.user_id}")
        return GameRecord.model_validate(game)

    async def insert_games(self, rows: list[dict[str, Any]]) -> list[GameRecord]:
        """Insert several games in one transaction."""
        for fields in rows:
            await self._check_parent(fields.get("parent_id"))
        games = [self._new_row(fields) for fields in rows]
        self.db.add_all(games)
        await self._commit("import games")
        logger.info(f"Inserted {len(games)} games for user {self.user_id}")
        return [GameRecord.model_validate(game) for game in games]

    async def update_game(self, game_id: int, fields: dict[str, Any]) -> GameRecord:
        game = await self._get_row(game_id)
        if "parent_id" in fields:
            await self._check_parent(fields["parent_id"], game_id)
        for key, value in fields.items():
            setattr(game, key, value)
        await self._commit("update game")
        return GameRecord.model_validate(game)

    async def update_play_orders(self, orders: dict[int, int]):
        """Write a whole queue renumbering in one transaction."""
        if not orders:
            return
        result = await self._execute(
            select(Game).where(Game.id.in_(list(orders)), Game.user_id == self.user_id),
            "load queue",
        )
        games = result.scalars().all()
        missing = set(orders) - {game.id for game in games}
        if missing:
            raise NotFoundError(f"Games not found: {', '.join(str(i) for i in sorted(missing))}")

        for game in games:
            game.play_order = orders[game.id]
        await self._commit("save queue order")
        logger.info(f"Saved queue order for {len(games)} games of user {self.user_id}")

    async def delete_game(self, game_id: int):
        """Delete a game and, for a base game, all of its DLCs."""
        await self._get_row(game_id)
        await self._execute(
            delete(Game).where(
                Game.user_id == self.user_id,
                or_(Game.id == game_id, Game.parent_id == game_id),
            ),
            "delete game",
        )
        await self._commit("delete game")
        logger.info(f"Deleted game {game_id} and its DLCs for user {self.user_id}")
