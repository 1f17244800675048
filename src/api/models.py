"""Requests and Response models"""

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, field_validator

from src.core.exceptions import InvalidRequestError
from src.core.shared_types import CastlingRulesName, Color, PieceType, Status

PieceToken = str  # ex. "WhiteKnight"
SquareName = str  # ex. "e4"

PROMOTION_TYPES = {PieceType.QUEEN, PieceType.ROOK, PieceType.BISHOP, PieceType.KNIGHT}


def _is_algebraic_notation(value: str) -> bool:
    """'a1' up to 'h8'"""
    if len(value) != 2:
        return False
    file_char, rank_char = value[0], value[1]
    return file_char in "abcdefgh" and rank_char in "12345678"


def _validate_square(value: str) -> str:
    if not _is_algebraic_notation(value):
        raise InvalidRequestError(f"Cannot interpret {value!r} as a valid square name.")
    return value


def _validate_seconds(value: Optional[int]) -> Optional[int]:
    if value is not None and value < 0:
        raise InvalidRequestError(f"Clock seconds cannot be negative, got {value}.")
    return value


# --- REQUEST MODELS ---
class CreateGameRequest(BaseModel):
    castling_rules: Optional[CastlingRulesName] = None
    clock_seconds: Optional[int] = None

    @field_validator("clock_seconds")
    @classmethod
    def validate_clock_seconds(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value <= 0:
            raise InvalidRequestError(f"A game needs a positive amount of time on the clock, got {value}.")
        return value


class GetGameRequest(BaseModel):
    game_id: UUID


class DeleteGameRequest(BaseModel):
    game_id: UUID


class LegalDestinationsRequest(BaseModel):
    game_id: UUID
    square: SquareName

    @field_validator("square")
    @classmethod
    def validate_square(cls, value: str) -> str:
        return _validate_square(value)


class MoveRequest(BaseModel):
    game_id: UUID
    from_square: SquareName
    to_square: SquareName
    promote_to: Optional[PieceType] = None

    @field_validator(*["from_square", "to_square"])
    @classmethod
    def validate_square(cls, value: str) -> str:
        return _validate_square(value)

    @field_validator("promote_to")
    @classmethod
    def validate_promotion(cls, value: Optional[PieceType]) -> Optional[PieceType]:
        if value is not None and value not in PROMOTION_TYPES:
            raise InvalidRequestError(
                f"Cannot promote into {value}. Pick one from {','.join(sorted(PROMOTION_TYPES))}"
            )
        return value


class ResignRequest(BaseModel):
    game_id: UUID
    color: Color


class ClockRequest(BaseModel):
    """The external clock reports the seconds left for both sides."""

    game_id: UUID
    white_seconds: int
    black_seconds: int

    @field_validator(*["white_seconds", "black_seconds"])
    @classmethod
    def validate_seconds(cls, value: int) -> int:
        return _validate_seconds(value)


# --- RESPONSE MODELS ---
class GameResponse(BaseModel):
    game_id: UUID
    current_player: Color
    board: list[list[Optional[PieceToken]]]  # row 0 (black's back rank) first
    status: Status
    winner: Optional[Color]
    in_check: bool
    captured: dict[Color, list[PieceToken]]  # keyed by the player who captured them
    white_seconds: int
    black_seconds: int
    white_log: str
    black_log: str


class LegalDestinationsResponse(BaseModel):
    game_id: UUID
    square: SquareName
    destinations: list[SquareName]


class MoveResponse(BaseModel):
    accepted: bool
    captured: Optional[PieceToken] = None
    castling: bool = False
    promotion: Optional[PieceType] = None
    game: GameResponse
