"""
The GameState class will be the entrypoint into the domain layer for the service layer.
It is responsible for orchestrating all the rules required to play a turn:
legality, king safety, castling, promotion, and detecting the end of the game.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from src.chess.board import Board
from src.chess.castling import (
    CASTLING_RULES,
    ROOK_HOME_SQUARES,
    CastlingRights,
    CastlingRules,
    CastlingSide,
    castling_side,
    rook_relocation,
)
from src.chess.moves import ATTACK_RULES, LENIENT_ATTACK_RULES, PROMOTION_ROW, Move, matches_movement_rule
from src.chess.pieces import PROMOTION_OPTIONS, Color, Piece, PieceKind
from src.chess.square import Square, all_squares
from src.core.exceptions import GameStateError, InvalidPromotionError

logger = logging.getLogger(__name__)

# A lone king next to one of these can never be mated
MINOR_PIECES = {PieceKind.BISHOP, PieceKind.KNIGHT}


class Status(Enum):
    IN_PROGRESS = auto()
    CHECKMATE = auto()
    STALEMATE = auto()
    DRAW_REPETITION = auto()
    DRAW_INSUFFICIENT_MATERIAL = auto()
    RESIGNATION = auto()
    TIMEOUT = auto()


DRAWS = {Status.STALEMATE, Status.DRAW_REPETITION, Status.DRAW_INSUFFICIENT_MATERIAL}


@dataclass(frozen=True)
class GameOverStatus:
    """The "game over" signal. Winner is only set for checkmate, resignation and timeout."""

    status: Status = Status.IN_PROGRESS
    winner: Optional[Color] = None

    @property
    def is_over(self) -> bool:
        return self.status != Status.IN_PROGRESS

    @property
    def is_draw(self) -> bool:
        return self.status in DRAWS


@dataclass(frozen=True)
class MoveResult:
    """What happened when a move was attempted. Nothing changed on the board if accepted is False."""

    accepted: bool
    captured: Optional[Piece] = None
    castling: Optional[CastlingSide] = None
    promotion: Optional[PieceKind] = None
    outcome: GameOverStatus = GameOverStatus()

    @classmethod
    def rejected(cls) -> MoveResult:
        return cls(accepted=False)


@dataclass
class GameState:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    board: Board = field(default_factory=Board)
    castling_rights: CastlingRights = field(default_factory=CastlingRights)
    history: list[str] = field(default_factory=list)  # position fingerprints
    current_player: Color = Color.WHITE
    castling_rules: CastlingRules = CastlingRules.STRICT
    outcome: GameOverStatus = field(default_factory=GameOverStatus)

    @classmethod
    def new_game(cls, castling_rules: CastlingRules = CastlingRules.STRICT) -> GameState:
        game = cls(castling_rules=castling_rules)
        game.initialize()
        return game

    def initialize(self) -> None:
        """(Re)start: standard position, white to move, nothing has moved, history holds the starting position only."""
        self.board.set_starting_position()
        self.current_player = Color.WHITE
        self.castling_rights = CastlingRights()
        self.history.clear()
        self.outcome = GameOverStatus()
        self._record_position(self.current_player)

    # -- QUERIES --
    def piece_at(self, square: Square) -> Optional[Piece]:
        return self.board.piece(square)

    def game_over_status(self) -> GameOverStatus:
        return self.outcome

    def is_in_check(self, color: Color) -> bool:
        return self.is_king_in_check(color)

    def legal_destinations(self, square: Square) -> set[Square]:
        """Every square the piece standing on `square` may legally move to. Empty if there is no piece."""
        if self.board.piece(square) is None:
            return set()
        return {
            to_square
            for to_square in all_squares()
            if self._is_legal(Move(square, to_square))
        }

    # -- RULES --
    def check_rules(self, move: Move) -> bool:
        """
        Does the move follow the movement rules of the piece that stands on the starting square?
        ----

        * Rejects standing still, and taking one of your own pieces.
        * Then delegates to the movement rule of the piece.
        * Castling (king moving two files) is additionally checked when playing with STRICT castling rules.

        NOTE: Does NOT check king safety. That's simulate_move_and_check_safety()
        """
        if move.from_square == move.to_square:
            return False
        if not (move.from_square.is_within_bounds() and move.to_square.is_within_bounds()):
            return False

        piece = self.board.piece(move.from_square)
        if piece is None:
            return False

        target = self.board.piece(move.to_square)
        if target is not None and target.color == piece.color:
            return False

        if not matches_movement_rule(move, piece, self.board):
            return False

        side = castling_side(move) if piece.kind == PieceKind.KING else None
        if side is not None and self.castling_rules == CastlingRules.STRICT:
            return self._may_castle(piece.color, side, move)
        return True

    def simulate_move_and_check_safety(self, move: Move) -> bool:
        """
        Return True if, after the move, the mover's own king is NOT in check.

        plan:
        1. Copy the board
        2. make the candidate move on the copy (the castling rook comes along)
        3. determine if king is in check on the new board

        The live board is never touched, so there is nothing to restore afterwards.
        """
        piece = self.board.piece(move.from_square)
        if piece is None:
            return False

        hypothetical = self.board.copy()
        if piece.kind == PieceKind.KING:
            self._relocate_castling_rook(hypothetical, move)
        hypothetical.move_piece(move)
        return not self._is_king_attacked(hypothetical, piece.color)

    def is_king_in_check(self, color: Color) -> bool:
        return self._is_king_attacked(self.board, color)

    def has_legal_moves(self, color: Color) -> bool:
        """Brute force over every (from, to) pair. Only ever runs once per completed move."""
        return any(
            self._is_legal(Move(from_square, to_square))
            for from_square in self.board.locate_color(color)
            for to_square in all_squares()
        )

    def check_threefold_repetition(self) -> bool:
        """Did the latest position now occur (at least) 3 times?"""
        if not self.history:
            return False
        return self.history.count(self.history[-1]) >= 3

    def check_insufficient_material(self) -> bool:
        """
        Coarse heuristic:
        * kings only -> True
        * kings + one bishop or knight -> True
        * anything else -> False
        """
        kinds = Counter(piece.kind for piece in self.board.pieces())
        total = sum(kinds.values())
        if total <= 2:
            return True
        if total == 3:
            return sum(kinds[kind] for kind in MINOR_PIECES) == 1
        return False

    # -- MUTATIONS --
    def attempt_move(self, move: Move, promote_to: PieceKind = PieceKind.QUEEN) -> MoveResult:
        """
        Attempt to make a move for the player whose turn it is.
        -----

        1. validate: game still going, own piece, movement rules, king safety
        2. move the castling rook (if the king moves two files)
        3. move the piece, update castling rights
        4. promote (if a pawn reached the last row)
        5. record the new position, switch turn
        6. check if the game has ended

        Steps 2 - 5 happen together: nobody sees the king moved without its rook, or a board without its fingerprint.
        An illegal move changes nothing and returns MoveResult(accepted=False).
        """
        if promote_to not in PROMOTION_OPTIONS:
            raise InvalidPromotionError(f"Cannot promote into {promote_to.name.lower()}.")

        if self.outcome.is_over:
            logger.debug("Rejected %s: game is over (%s)", move, self.outcome.status.name)
            return MoveResult.rejected()

        piece = self.board.piece(move.from_square) if move.from_square.is_within_bounds() else None
        if piece is None or piece.color != self.current_player:
            logger.debug("Rejected %s: no %s piece on the starting square", move, self.current_player.name)
            return MoveResult.rejected()

        if not self._is_legal(move):
            logger.debug("Rejected %s: illegal for %s", move, piece.to_token())
            return MoveResult.rejected()

        side = self.handle_castling(move) if piece.kind == PieceKind.KING else None
        captured = self._apply_move(move)

        promotion: Optional[PieceKind] = None
        if self._is_promotion(piece, move):
            self.promote_pawn(move.to_square, piece.promoted_to(promote_to))
            promotion = promote_to

        self._record_position(piece.color.opponent)
        self.switch_turn()
        self.update_game_over_status()

        logger.debug("Committed %s (%s)", move, piece.to_token())
        return MoveResult(
            accepted=True,
            captured=captured,
            castling=side,
            promotion=promotion,
            outcome=self.outcome,
        )

    def execute_move(self, move: Move) -> Optional[Piece]:
        """
        Commit an already validated move (no legality re-check!) and record the resulting position.
        -----

        The caller drives castling (handle_castling, before this), promotion and the turn switch (after this) itself.
        attempt_move() does all of that in one go.
        """
        piece = self.board.piece(move.from_square)
        if piece is None:
            raise GameStateError(f"No piece to move on {move.from_square.to_algebraic()}")
        captured = self._apply_move(move)
        self._record_position(piece.color.opponent)
        return captured

    def handle_castling(self, move: Move) -> Optional[CastlingSide]:
        """
        If the king moves two files: bring the rook from its corner to the other side of the king.
        (kingside: column 7 -> 5, queenside: column 0 -> 3, on the king's row)
        """
        side = castling_side(move)
        if side is None:
            return None
        self._relocate_castling_rook(self.board, move)
        return side

    def promote_pawn(self, square: Square, new_piece: Piece) -> None:
        """Replace whatever stands on the square. The caller decides when a pawn promotes and into what."""
        if new_piece.kind not in PROMOTION_OPTIONS:
            raise InvalidPromotionError(f"Cannot promote into {new_piece.kind.name.lower()}.")
        self.board.place_piece(new_piece, square)

    def switch_turn(self) -> None:
        self.current_player = self.current_player.opponent

    def update_game_over_status(self) -> GameOverStatus:
        """
        Performs checks to see if game has ended and changes status accordingly.

        NOTE the turn has already been switched. The player to move is the opponent of the player who just moved.
        """
        if self.outcome.is_over:
            return self.outcome

        to_move = self.current_player
        if self.check_insufficient_material():
            self.outcome = GameOverStatus(Status.DRAW_INSUFFICIENT_MATERIAL)
        elif self.check_threefold_repetition():
            self.outcome = GameOverStatus(Status.DRAW_REPETITION)
        elif not self.has_legal_moves(to_move):
            if self.is_king_in_check(to_move):
                self.outcome = GameOverStatus(Status.CHECKMATE, winner=to_move.opponent)
            else:
                self.outcome = GameOverStatus(Status.STALEMATE)

        if self.outcome.is_over:
            logger.info("Game over: %s (winner: %s)", self.outcome.status.name, self.outcome.winner)
        return self.outcome

    def resign(self, color: Color) -> GameOverStatus:
        return self._end_externally(Status.RESIGNATION, loser=color)

    def declare_timeout(self, color: Color) -> GameOverStatus:
        """The (external) clock of `color` ran out."""
        return self._end_externally(Status.TIMEOUT, loser=color)

    # -- PRIVATE HELPERS ---
    def _end_externally(self, status: Status, loser: Color) -> GameOverStatus:
        if self.outcome.is_over:
            raise GameStateError(f"Game is already over. status: {self.outcome.status.name}")
        self.outcome = GameOverStatus(status, winner=loser.opponent)
        logger.info("Game over: %s (winner: %s)", status.name, loser.opponent)
        return self.outcome

    def _is_legal(self, move: Move) -> bool:
        return self.check_rules(move) and self.simulate_move_and_check_safety(move)

    def _is_promotion(self, piece: Piece, move: Move) -> bool:
        return piece.kind == PieceKind.PAWN and move.to_square.row == PROMOTION_ROW[piece.color]

    def _record_position(self, color_to_move: Color) -> None:
        self.history.append(self.board.fingerprint(color_to_move, self.castling_rights))

    def _apply_move(self, move: Move) -> Optional[Piece]:
        """Move the piece and keep the castling rights up to date."""
        piece = self.board.piece(move.from_square)
        captured = self.board.move_piece(move)
        if piece is not None:
            self._revoke_castling_rights_if_needed(piece, move, captured)
        return captured

    def _revoke_castling_rights_if_needed(self, piece: Piece, move: Move, captured: Optional[Piece]) -> None:
        """
        1. If you move your king --> no more castling for you
        2. If you move a rook away from its starting corner --> no castling to that side
        3. If you take your opponent's rook on its starting corner --> no castling to that side for your opponent
        """
        if piece.kind == PieceKind.KING:
            self.castling_rights.mark_king_moved(piece.color)

        if piece.kind == PieceKind.ROOK and move.from_square in ROOK_HOME_SQUARES:
            color, side = ROOK_HOME_SQUARES[move.from_square]
            if color == piece.color:
                self.castling_rights.mark_rook_moved(color, side)

        if captured is not None and captured.kind == PieceKind.ROOK and move.to_square in ROOK_HOME_SQUARES:
            color, side = ROOK_HOME_SQUARES[move.to_square]
            if color == captured.color:
                self.castling_rights.mark_rook_moved(color, side)

    def _relocate_castling_rook(self, board: Board, move: Move) -> None:
        """Must run while the king still stands on move.from_square."""
        rook_move = rook_relocation(move)
        king = board.piece(move.from_square)
        if rook_move is None or king is None:
            return

        # only reachable with LENIENT castling rules: no own rook in the corner, or its square is taken
        if board.piece(rook_move.from_square) != Piece(king.color, PieceKind.ROOK):
            logger.warning("Castling %s without a rook on %s", move, rook_move.from_square.to_algebraic())
            return
        if board.piece(rook_move.to_square) is not None:
            logger.warning("Castling %s: rook cannot land on occupied %s", move, rook_move.to_square.to_algebraic())
            return

        board.move_piece(rook_move)
        if board is self.board and rook_move.from_square in ROOK_HOME_SQUARES:
            color, side = ROOK_HOME_SQUARES[rook_move.from_square]
            if color == king.color:
                self.castling_rights.mark_rook_moved(color, side)

    def _may_castle(self, color: Color, side: CastlingSide, move: Move) -> bool:
        """
        **you are allowed to castle if**

        * The king is on its starting square and neither it nor the rook has moved.
        * The rook is still there.
        * There is no piece in between the king and the rook.
        * You are not currently in check, and the king does not cross or land on an attacked square.
        """
        squares = CASTLING_RULES[(color, side)]
        if move != Move(squares.king_from, squares.king_to):
            return False

        if not self.castling_rights.can_castle(color, side):
            return False

        if self.board.piece(squares.rook_from) != Piece(color, PieceKind.ROOK):
            return False

        if any(self.board.piece(square) is not None for square in squares.squares_between()):
            return False

        opponent = color.opponent
        return not any(self.board.is_attacked(square, opponent) for square in squares.king_path())

    def _is_king_attacked(self, board: Board, color: Color) -> bool:
        """
        No king on the board (not reachable in a real game) means no check.

        With LENIENT castling the enemy king's two-file displacement gives check as well.
        """
        king_squares = board.locate_pieces(PieceKind.KING, color)
        if not king_squares:
            return False
        rules = LENIENT_ATTACK_RULES if self.castling_rules == CastlingRules.LENIENT else ATTACK_RULES
        return board.is_attacked(king_squares[0], color.opponent, rules)
