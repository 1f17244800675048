"""
What the service needs from storage. SQLGameRepository is the real one.
The service tests use a dictionary-backed stand-in.
"""

from typing import Protocol
from uuid import UUID

from src.core.models import GameModel


class GameRepository(Protocol):
    """Stored games, addressed by the id handed out on creation"""

    def get_game(self, game_id: UUID) -> GameModel | None: ...

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Returns the stored record and its new id."""
        ...

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        """Replaces the record. None for an unknown id."""
        ...

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Returns the removed record. None for an unknown id."""
        ...
