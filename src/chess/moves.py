"""
Geometry/Base movement and capturing/attacking rules

Key idea: Use strategy pattern to define the movement pattern of each piece kind.

A movement rule answers: "does moving this piece from A to B match its pattern?"
* It ignores whether the move leaves your own king in check.
* It ignores whether the destination holds one of your own pieces.

Both are filtered later by GameState.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from src.chess.pieces import Color, Piece, PieceKind
from src.chess.square import Square


class Board(Protocol):
    """Just the parts the movement strategies need"""

    def piece(self, square: Square) -> Optional[Piece]: ...


Vector = tuple[int, int]

# White pawns walk UP the board (towards row 0), black pawns walk DOWN.
PAWN_DIRECTION: dict[Color, int] = {Color.WHITE: -1, Color.BLACK: 1}
PAWN_START_ROW: dict[Color, int] = {Color.WHITE: 6, Color.BLACK: 1}
PROMOTION_ROW: dict[Color, int] = {Color.WHITE: 0, Color.BLACK: 7}


@dataclass(frozen=True)
class Move:
    """basic definition of a move to be made"""

    from_square: Square
    to_square: Square

    @classmethod
    def from_algebraic(cls, from_sq: str, to_sq: str) -> Move:
        """ex. Move.from_algebraic("e2", "e4")"""
        return cls(Square.from_algebraic(from_sq), Square.from_algebraic(to_sq))

    @property
    def delta(self) -> Vector:
        return (
            self.to_square.row - self.from_square.row,
            self.to_square.col - self.from_square.col,
        )

    def __str__(self) -> str:
        return f"{self.from_square.to_algebraic()} -> {self.to_square.to_algebraic()}"


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


def path_is_clear(move: Move, board: Board) -> bool:
    """
    Walk from the square right after the start up to (not including) the destination.
    Any occupied square on the way blocks the move.

    NOTE: Only meaningful for straight or diagonal lines (the caller checks the geometry first).
    """
    d_row, d_col = move.delta
    step_row, step_col = _sign(d_row), _sign(d_col)
    square = move.from_square.offset(step_row, step_col)
    while square != move.to_square:
        if board.piece(square) is not None:
            return False
        square = square.offset(step_row, step_col)
    return True


def is_straight(move: Move) -> bool:
    d_row, d_col = move.delta
    return (d_row == 0) != (d_col == 0)


def is_diagonal(move: Move) -> bool:
    d_row, d_col = move.delta
    return d_row != 0 and abs(d_row) == abs(d_col)


def is_castling_displacement(move: Move) -> bool:
    """The king steps two files sideways along its own row."""
    d_row, d_col = move.delta
    return d_row == 0 and abs(d_col) == 2


# --- MOVEMENT RULES ---
def pawn_rule(move: Move, color: Color, board: Board) -> bool:
    """
    A pawn:
    - moves by a single square forward onto an empty square.
    - can move by two from its starting row, if both squares in front of it are empty.
    - takes diagonally (one file, one row forward), but only if an opponent's piece is standing there.

    No en passant.
    """
    direction = PAWN_DIRECTION[color]
    d_row, d_col = move.delta
    target = board.piece(move.to_square)

    if d_col == 0 and d_row == direction:
        return target is None

    if d_col == 0 and d_row == 2 * direction:
        if move.from_square.row != PAWN_START_ROW[color]:
            return False
        in_between = move.from_square.offset(direction, 0)
        return target is None and board.piece(in_between) is None

    if abs(d_col) == 1 and d_row == direction:
        return target is not None and target.color != color

    return False


def knight_rule(move: Move, color: Color, board: Board) -> bool:
    """Knights jump: (|delta_row|, |delta_col|) is (2, 1) or (1, 2). Nothing can block them."""
    d_row, d_col = move.delta
    return {abs(d_row), abs(d_col)} == {1, 2}


def bishop_rule(move: Move, color: Color, board: Board) -> bool:
    """Bishops move diagonally: |delta_row| = |delta_col|"""
    return is_diagonal(move) and path_is_clear(move, board)


def rook_rule(move: Move, color: Color, board: Board) -> bool:
    """Rooks move either horizontally or vertically"""
    return is_straight(move) and path_is_clear(move, board)


def queen_rule(move: Move, color: Color, board: Board) -> bool:
    """
    The Queen combines the rook moves (horizontal + vertical movements) and bishop moves (diagonal movement)
    """
    return (is_straight(move) or is_diagonal(move)) and path_is_clear(move, board)


def king_step(move: Move, color: Color, board: Board) -> bool:
    """The king moves by a single square at the time, in any direction."""
    d_row, d_col = move.delta
    return abs(d_row) <= 1 and abs(d_col) <= 1 and (d_row, d_col) != (0, 0)


def king_rule(move: Move, color: Color, board: Board) -> bool:
    """
    Single step, OR the two-file sideways displacement of castling.

    NOTE: The castling displacement is only a candidate here. Whether the rook is there, the path is empty, etc.
    is checked by GameState (depending on the CastlingRules in use).
    """
    return king_step(move, color, board) or is_castling_displacement(move)


# -- STRATEGY PATTERN: MOVEMENT RULES ---
MovementRuleFn = Callable[[Move, Color, Board], bool]
MOVEMENT_RULES: dict[PieceKind, MovementRuleFn] = {
    PieceKind.PAWN: pawn_rule,
    PieceKind.KNIGHT: knight_rule,
    PieceKind.BISHOP: bishop_rule,
    PieceKind.ROOK: rook_rule,
    PieceKind.QUEEN: queen_rule,
    PieceKind.KING: king_rule,
}


def matches_movement_rule(move: Move, piece: Piece, board: Board) -> bool:
    """Dispatch on the kind of the piece that moves."""
    movement_rule = MOVEMENT_RULES[piece.kind]
    return movement_rule(move, piece.color, board)


# --- ATTACKING RULES ---
def pawn_attack(move: Move, color: Color, board: Board) -> bool:
    """
    Pawns attack the two squares diagonally in front of them, whether or not something stands there.
    (The movement rule only allows the diagonal step onto an opponent's piece, which is not enough to tell
    if an empty square is covered.)
    """
    d_row, d_col = move.delta
    return d_row == PAWN_DIRECTION[color] and abs(d_col) == 1


# A castling king cannot capture, so only its single step counts as an attack.
AttackRuleFn = Callable[[Move, Color, Board], bool]
ATTACK_RULES: dict[PieceKind, AttackRuleFn] = {
    PieceKind.PAWN: pawn_attack,
    PieceKind.KNIGHT: knight_rule,
    PieceKind.BISHOP: bishop_rule,
    PieceKind.ROOK: rook_rule,
    PieceKind.QUEEN: queen_rule,
    PieceKind.KING: king_step,
}

# LENIENT castling: the king hits everything its movement rule reaches, the two-file displacement included.
LENIENT_ATTACK_RULES: dict[PieceKind, AttackRuleFn] = {**ATTACK_RULES, PieceKind.KING: king_rule}


def attacks(move: Move, piece: Piece, board: Board, rules: dict[PieceKind, AttackRuleFn] = ATTACK_RULES) -> bool:
    """Would the piece on move.from_square hit move.to_square?"""
    if move.from_square == move.to_square:
        return False
    attack_rule = rules[piece.kind]
    return attack_rule(move, piece.color, board)
