"""The Game board owns the `position` (in chess: the configuration of pieces on the board)"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional

from src.chess.castling import CastlingRights
from src.chess.moves import ATTACK_RULES, AttackRuleFn, Move, attacks
from src.chess.pieces import BACK_RANK, Color, Piece, PieceKind
from src.chess.square import BOARD_SIZE, Square, all_squares

EMPTY_MARKER = "-"


def _empty_position() -> dict[Square, Optional[Piece]]:
    return {square: None for square in all_squares()}


@dataclass
class Board:
    """8x8 grid. Every square is present as a key; an empty square maps to None."""

    position: dict[Square, Optional[Piece]] = field(default_factory=_empty_position)

    @classmethod
    def starting_position(cls) -> Board:
        board = cls()
        board.set_starting_position()
        return board

    def set_starting_position(self) -> None:
        """
        Standard layout:
        * row 0: black back rank, row 1: black pawns
        * rows 2 - 5 empty
        * row 6: white pawns, row 7: white back rank
        """
        self.position = _empty_position()
        for col, kind in enumerate(BACK_RANK):
            self.position[Square(0, col)] = Piece(Color.BLACK, kind)
            self.position[Square(7, col)] = Piece(Color.WHITE, kind)
        for col in range(BOARD_SIZE):
            self.position[Square(1, col)] = Piece(Color.BLACK, PieceKind.PAWN)
            self.position[Square(6, col)] = Piece(Color.WHITE, PieceKind.PAWN)

    def copy(self) -> Board:
        """Pieces are immutable, so a shallow copy of the grid is a fully independent board."""
        return Board(dict(self.position))

    def piece(self, square: Square) -> Optional[Piece]:
        return self.position[square]

    def place_piece(self, piece: Optional[Piece], square: Square) -> None:
        """Whatever stood on the square before is gone."""
        if not square.is_within_bounds():
            raise IndexError(f"Square {square} is not on the board.")
        self.position[square] = piece

    def remove_piece(self, square: Square) -> Optional[Piece]:
        removed = self.position[square]
        self.position[square] = None
        return removed

    def move_piece(self, move: Move) -> Optional[Piece]:
        """Update the position on the board. Returns the piece that got captured (if any)."""
        piece_that_moved = self.position[move.from_square]
        captured = self.position[move.to_square]
        self.position[move.from_square] = None
        self.position[move.to_square] = piece_that_moved
        return captured

    def occupied(self) -> Iterator[tuple[Square, Piece]]:
        """Occupied squares in row-major order"""
        for square in all_squares():
            piece = self.position[square]
            if piece is not None:
                yield square, piece

    def pieces(self) -> list[Piece]:
        return [piece for _, piece in self.occupied()]

    def locate_pieces(self, kind: PieceKind, color: Color) -> list[Square]:
        target = Piece(color, kind)
        return [square for square, piece in self.occupied() if piece == target]

    def locate_color(self, color: Color) -> list[Square]:
        return [square for square, piece in self.occupied() if piece.color == color]

    def is_attacked(
        self, square: Square, by_color: Color, rules: dict[PieceKind, AttackRuleFn] = ATTACK_RULES
    ) -> bool:
        """Is any piece of `by_color` hitting the square (ignoring whose turn it is and pins)?"""
        return any(
            attacks(Move(from_square, square), piece, self, rules)
            for from_square, piece in self.occupied()
            if piece.color == by_color
        )

    def fingerprint(self, color_to_move: Color, castling_rights: CastlingRights) -> str:
        """
        Deterministic encoding of the position, used to detect repetitions.

        <64 cells in row-major order, '-' or a piece token, comma separated>|<color to move>|<castling flags>
        ex. "BlackRook,BlackKnight,...,WhiteRook|White|000000"
        """
        cells = ",".join(
            EMPTY_MARKER if piece is None else piece.to_token()
            for piece in (self.position[square] for square in all_squares())
        )
        return f"{cells}|{color_to_move.value}|{castling_rights.to_flags()}"
