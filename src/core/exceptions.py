"""
Exceptions shared by all layers.

NOTE: None of these subclass ValueError. Pydantic would otherwise wrap them into a ValidationError when raised from a validator.
Rejected move attempts are NOT exceptions: the engine reports them as a MoveResult with accepted=False.
"""


class ChessError(Exception):
    """Base class. Catch this one to catch anything the application raises on purpose."""


class GameStateError(ChessError):
    """Operation does not make sense for the game in its current state."""


class InvalidPromotionError(ChessError):
    """A pawn can only promote into a queen, rook, bishop or knight."""


class InvalidSnapshotError(ChessError):
    """Snapshot text could not be parsed."""


class InvalidRequestError(ChessError):
    """Request data that did not pass validation at the boundary."""


class RepositoryError(ChessError):
    """Record not found / could not be persisted."""


class ConfigurationError(ChessError):
    """Settings read from the environment are not usable."""
