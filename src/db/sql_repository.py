"""GameRepository backed by SQLAlchemy (one row per game in the `games` table)"""

import logging
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.core.models import GameModel
from src.db.schema import DBGame

logger = logging.getLogger(__name__)


class SQLGameRepository:
    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_game(self, game_id: UUID) -> GameModel | None:
        row = self._fetch_game(game_id)
        return self._to_model(row) if row else None

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Insert a row under a fresh id. Returns what was stored and the id."""
        new_id = uuid4()
        row = DBGame(id=new_id)
        _copy_fields(game, row)
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        logger.info("Stored new game %s", new_id)
        return self._to_model(row), new_id

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        """Overwrite every field of an existing row. None if there is no such game."""
        row = self._fetch_game(game_id)
        if row is None:
            return None
        _copy_fields(game, row)
        self.db.commit()
        self.db.refresh(row)
        return self._to_model(row)

    def delete_game(self, game_id: UUID) -> GameModel | None:
        row = self._fetch_game(game_id)
        if row is None:
            return None
        deleted = self._to_model(row)
        self.db.delete(row)
        self.db.commit()
        logger.info("Deleted game %s", game_id)
        return deleted

    def _fetch_game(self, game_id: UUID) -> DBGame | None:
        return self.db.scalar(select(DBGame).where(DBGame.id == game_id))

    def _to_model(self, row: DBGame) -> GameModel:
        return GameModel(
            snapshot=row.snapshot,
            position_history=list(row.position_history),
            castling_rights=row.castling_rights,
            castling_rules=row.castling_rules,
            status=row.status,
            winner=row.winner,
        )


def _copy_fields(game: GameModel, row: DBGame) -> None:
    row.snapshot = game.snapshot
    # a new list: SQLAlchemy does not notice in-place changes of a JSON column
    row.position_history = list(game.position_history)
    row.castling_rights = game.castling_rights
    row.castling_rules = game.castling_rules
    row.status = game.status
    row.winner = game.winner
