"""Helpers for implementing Castling rules. Need to be imported by multiple sources"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from src.chess.moves import Board, Move, is_castling_displacement
from src.chess.pieces import Color, Piece, PieceKind
from src.chess.square import Square


class CastlingSide(Enum):
    """Values double as the index of the rook in the 'rook has moved' pair."""

    QUEENSIDE = 0
    KINGSIDE = 1


class CastlingRules(Enum):
    """
    How strictly a castling attempt gets checked.

    * LENIENT: any two-file sideways king move is allowed. The rook just gets relocated afterwards (if it is there).
    * STRICT: the classical rules. King and rook unmoved, rook present, nothing in between,
        and the king is not in check / does not cross or land on an attacked square.
    """

    LENIENT = "lenient"
    STRICT = "strict"


HOME_ROW: dict[Color, int] = {Color.WHITE: 7, Color.BLACK: 0}
KING_HOME_COL = 4


@dataclass(frozen=True)
class CastlingSquares:
    """
    Store the squares where king/rook start from/end up in by castling.
    """

    king_from: Square
    king_to: Square
    rook_from: Square
    rook_to: Square

    @classmethod
    def on_row(cls, row: int, king_to_col: int, rook_from_col: int, rook_to_col: int) -> CastlingSquares:
        """Convenience method: to make mapping shown below more readable"""
        return cls(
            king_from=Square(row, KING_HOME_COL),
            king_to=Square(row, king_to_col),
            rook_from=Square(row, rook_from_col),
            rook_to=Square(row, rook_to_col),
        )

    def squares_between(self) -> list[Square]:
        """Squares strictly between the king and the rook. These must all be empty."""
        row = self.king_from.row
        low, high = sorted((self.king_from.col, self.rook_from.col))
        return [Square(row, col) for col in range(low + 1, high)]

    def king_path(self) -> list[Square]:
        """Squares the king stands on, crosses, or lands on. None of them may be under attack."""
        row = self.king_from.row
        step = 1 if self.king_to.col > self.king_from.col else -1
        return [Square(row, col) for col in range(self.king_from.col, self.king_to.col + step, step)]


# The moves (in classical chess) made when castling
CASTLING_RULES: dict[tuple[Color, CastlingSide], CastlingSquares] = {
    (Color.WHITE, CastlingSide.KINGSIDE): CastlingSquares.on_row(7, 6, 7, 5),
    (Color.WHITE, CastlingSide.QUEENSIDE): CastlingSquares.on_row(7, 2, 0, 3),
    (Color.BLACK, CastlingSide.KINGSIDE): CastlingSquares.on_row(0, 6, 7, 5),
    (Color.BLACK, CastlingSide.QUEENSIDE): CastlingSquares.on_row(0, 2, 0, 3),
}

# Which rook (if any) starts out on a given corner
ROOK_HOME_SQUARES: dict[Square, tuple[Color, CastlingSide]] = {
    squares.rook_from: key for key, squares in CASTLING_RULES.items()
}


def castling_side(move: Move) -> Optional[CastlingSide]:
    """If the move is a king's two-file displacement: towards which side?"""
    if not is_castling_displacement(move):
        return None
    _, d_col = move.delta
    return CastlingSide.KINGSIDE if d_col > 0 else CastlingSide.QUEENSIDE


def rook_relocation(move: Move) -> Optional[Move]:
    """
    The rook move that accompanies a castling king move: on the king's destination row,
    column 7 -> 5 (kingside) or column 0 -> 3 (queenside).
    """
    side = castling_side(move)
    if side is None:
        return None
    row = move.to_square.row
    if side == CastlingSide.KINGSIDE:
        return Move(Square(row, 7), Square(row, 5))
    return Move(Square(row, 0), Square(row, 3))


def _flag(value: bool) -> str:
    return "1" if value else "0"


@dataclass
class CastlingRights:
    """
    Has the king / either rook ever moved?

    Flags only ever go from False to True (until the game is initialized again).
    """

    king_moved: dict[Color, bool] = field(default_factory=lambda: {color: False for color in Color})
    rook_moved: dict[Color, dict[CastlingSide, bool]] = field(
        default_factory=lambda: {color: {side: False for side in CastlingSide} for color in Color}
    )

    def mark_king_moved(self, color: Color) -> None:
        self.king_moved[color] = True

    def mark_rook_moved(self, color: Color, side: CastlingSide) -> None:
        self.rook_moved[color][side] = True

    def can_castle(self, color: Color, side: CastlingSide) -> bool:
        return not (self.king_moved[color] or self.rook_moved[color][side])

    def to_flags(self) -> str:
        """
        Six 0/1 characters in fixed order:
        white king, black king, white queenside rook, white kingside rook, black queenside rook, black kingside rook
        """
        flags = [self.king_moved[Color.WHITE], self.king_moved[Color.BLACK]]
        for color in (Color.WHITE, Color.BLACK):
            flags.extend(self.rook_moved[color][side] for side in CastlingSide)
        return "".join(_flag(value) for value in flags)

    @classmethod
    def from_flags(cls, flags: str) -> CastlingRights:
        if len(flags) != 6 or any(char not in "01" for char in flags):
            raise ValueError(f"Cannot interpret {flags!r} as castling rights.")
        values = [char == "1" for char in flags]
        rights = cls()
        rights.king_moved = {Color.WHITE: values[0], Color.BLACK: values[1]}
        rights.rook_moved = {
            Color.WHITE: {CastlingSide.QUEENSIDE: values[2], CastlingSide.KINGSIDE: values[3]},
            Color.BLACK: {CastlingSide.QUEENSIDE: values[4], CastlingSide.KINGSIDE: values[5]},
        }
        return rights

    @classmethod
    def inferred_from(cls, board: Board) -> CastlingRights:
        """
        A loaded position does not say what moved. Best guess: anything that is not on its starting square has moved.
        (A piece that left and came back is counted as unmoved.)
        """
        rights = cls()
        for color in Color:
            king_home = Square(HOME_ROW[color], KING_HOME_COL)
            if board.piece(king_home) != Piece(color, PieceKind.KING):
                rights.mark_king_moved(color)
        for rook_home, (color, side) in ROOK_HOME_SQUARES.items():
            if board.piece(rook_home) != Piece(color, PieceKind.ROOK):
                rights.mark_rook_moved(color, side)
        return rights
