"""Defines the types of chess pieces"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from src.core.exceptions import InvalidPromotionError


class PieceKind(Enum):
    PAWN = "Pawn"
    KNIGHT = "Knight"
    BISHOP = "Bishop"
    ROOK = "Rook"
    QUEEN = "Queen"
    KING = "King"


class Color(Enum):
    WHITE = "White"
    BLACK = "Black"

    @property
    def opponent(self) -> Color:
        return Color.BLACK if self == Color.WHITE else Color.WHITE


# Back rank from the a-file to the h-file (same for both colors)
BACK_RANK: tuple[PieceKind, ...] = (
    PieceKind.ROOK,
    PieceKind.KNIGHT,
    PieceKind.BISHOP,
    PieceKind.QUEEN,
    PieceKind.KING,
    PieceKind.BISHOP,
    PieceKind.KNIGHT,
    PieceKind.ROOK,
)

PROMOTION_OPTIONS: tuple[PieceKind, ...] = (
    PieceKind.QUEEN,
    PieceKind.ROOK,
    PieceKind.BISHOP,
    PieceKind.KNIGHT,
)

# Chess figurines, as shown in the move logs
SYMBOLS: dict[Color, dict[PieceKind, str]] = {
    Color.WHITE: {
        PieceKind.KING: "♔",
        PieceKind.QUEEN: "♕",
        PieceKind.ROOK: "♖",
        PieceKind.BISHOP: "♗",
        PieceKind.KNIGHT: "♘",
        PieceKind.PAWN: "♙",
    },
    Color.BLACK: {
        PieceKind.KING: "♚",
        PieceKind.QUEEN: "♛",
        PieceKind.ROOK: "♜",
        PieceKind.BISHOP: "♝",
        PieceKind.KNIGHT: "♞",
        PieceKind.PAWN: "♟",
    },
}


@dataclass(frozen=True)
class Piece:
    """A piece does not know where it stands. Its location is whichever square of the Board holds it."""

    color: Color
    kind: PieceKind

    @classmethod
    def from_token(cls, token: str) -> Piece:
        """'WhiteKnight' -> Piece(Color.WHITE, PieceKind.KNIGHT). Raises ValueError on anything else."""
        for color in Color:
            if token.startswith(color.value):
                return cls(color, PieceKind(token[len(color.value) :]))
        raise ValueError(f"Not a piece token: {token!r}")

    def to_token(self) -> str:
        return f"{self.color.value}{self.kind.value}"

    @property
    def symbol(self) -> str:
        return SYMBOLS[self.color][self.kind]

    def promoted_to(self, kind: PieceKind) -> Piece:
        """Pieces are immutable: promotion hands back a new piece of the same color."""
        if kind not in PROMOTION_OPTIONS:
            raise InvalidPromotionError(
                f"Cannot promote into {kind.name.lower()}. Pick one from {','.join(k.name.lower() for k in PROMOTION_OPTIONS)}"
            )
        return Piece(self.color, kind)


def starting_material(color: Color) -> list[Piece]:
    """The 16 pieces a player starts with: back rank first (a- to h-file), then the pawns."""
    return [Piece(color, kind) for kind in BACK_RANK] + [Piece(color, PieceKind.PAWN)] * 8
