"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    IN_PROGRESS = "in progress"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW_REPETITION = "draw by repetition"
    DRAW_INSUFFICIENT_MATERIAL = "draw by insufficient material"
    RESIGNATION = "resignation"
    TIMEOUT = "timeout"


# --- Boundary versions of Color and PieceType. The domain layer has its own (src/chess/pieces.py)
# --- NOTE Same member names on both sides, so converting is just a lookup by name: PieceKind[piece_type.name]


class Color(StrEnum):
    WHITE = "white"
    BLACK = "black"


class PieceType(StrEnum):
    PAWN = "pawn"
    KNIGHT = "knight"
    BISHOP = "bishop"
    ROOK = "rook"
    QUEEN = "queen"
    KING = "king"


class CastlingRulesName(StrEnum):
    """How strictly castling is checked. See src/chess/castling.py"""

    STRICT = "strict"
    LENIENT = "lenient"
