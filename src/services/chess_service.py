"""Orchestration of communication from API models to business logic and persistence layers (and the reverse direction)."""

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import sessionmaker

from src.api.models import (
    ClockRequest,
    CreateGameRequest,
    DeleteGameRequest,
    GameResponse,
    GetGameRequest,
    LegalDestinationsRequest,
    LegalDestinationsResponse,
    MoveRequest,
    MoveResponse,
    ResignRequest,
)
from src.chess.castling import CastlingRules
from src.chess.game import GameState, MoveResult, Status
from src.chess.moves import Move
from src.chess.pieces import Color as PieceColor
from src.chess.pieces import Piece, PieceKind
from src.chess.snapshot import (
    GameSnapshot,
    captured_pieces,
    game_from_model,
    game_to_model,
    load_game_or_new,
)
from src.chess.square import BOARD_SIZE, Square
from src.core.config import Settings, configure_logging, get_settings
from src.core.exceptions import RepositoryError
from src.core.models import GameModel
from src.core.shared_types import Color, PieceType
from src.core.shared_types import Status as StatusName
from src.db.database import create_db_engine
from src.db.repository import GameRepository
from src.db.save_file import SaveFile
from src.db.sql_repository import SQLGameRepository

logger = logging.getLogger(__name__)

# Lines written to the move logs when the game reaches one of these
STATUS_LOG_LINES: dict[Status, str] = {
    Status.STALEMATE: "Draw (Stalemate)",
    Status.DRAW_REPETITION: "Draw (3-fold Repetition)",
    Status.DRAW_INSUFFICIENT_MATERIAL: "Draw (Insufficient Material)",
}
CHECK_LOG_LINE = "CHECK!"


class ChessService:
    """Orchestration of layers for chess game."""

    def __init__(
        self,
        repository: GameRepository,
        save_file: Optional[SaveFile] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.repo = repository
        self.settings = settings or get_settings()
        self.save_file = save_file or SaveFile(self.settings.save_file)

    # -- API routes logic ---
    def create_new_game(self, request: CreateGameRequest) -> GameResponse:
        """Start a fresh game in the standard position."""
        rules_name = request.castling_rules or self.settings.castling_rules
        clock_seconds = request.clock_seconds or self.settings.clock_seconds

        game = GameState.new_game(CastlingRules(rules_name.value))
        snapshot = GameSnapshot.from_game(game, white_seconds=clock_seconds, black_seconds=clock_seconds)

        stored_game, game_id = self.repo.create_game(game_to_model(game, snapshot))
        logger.info("Created game %s (%s castling)", game_id, rules_name)
        return self._create_game_response(game_id, stored_game)

    def get_game_state(self, request: GetGameRequest) -> GameResponse:
        """
        Retrieve current game state.
        ----
        Used in "polling" loop by a frontend to redraw the board for instance.
        """
        game_model = self._fetch_game(request.game_id)
        return self._create_game_response(request.game_id, game_model)

    def legal_destinations(self, request: LegalDestinationsRequest) -> LegalDestinationsResponse:
        """Where can the piece on the requested square go? (to highlight squares on the board)"""
        game, _ = game_from_model(self._fetch_game(request.game_id))
        square = Square.from_algebraic(request.square)
        destinations = game.legal_destinations(square) if not game.outcome.is_over else set()
        return LegalDestinationsResponse(
            game_id=request.game_id,
            square=request.square,
            destinations=sorted(destination.to_algebraic() for destination in destinations),
        )

    def make_move(self, request: MoveRequest) -> MoveResponse:
        """
        Make a move attempt.
        ----

        An illegal move is not an error: the response says accepted=False and nothing gets stored.
        """
        stored_model = self._fetch_game(request.game_id)
        game, snapshot = game_from_model(stored_model)

        move = Move.from_algebraic(request.from_square, request.to_square)
        moving_piece = game.piece_at(move.from_square)
        promote_to = PieceKind[request.promote_to.name] if request.promote_to else PieceKind.QUEEN

        result = game.attempt_move(move, promote_to=promote_to)
        if moving_piece is None or not result.accepted:
            return MoveResponse(
                accepted=False,
                game=self._create_game_response(request.game_id, stored_model),
            )

        self._log_move(snapshot, moving_piece, move, result)
        self._log_game_state(snapshot, game, result)

        after_move = game_to_model(game, snapshot)
        self.repo.update_game(request.game_id, after_move)
        return MoveResponse(
            accepted=True,
            captured=result.captured.to_token() if result.captured else None,
            castling=result.castling is not None,
            promotion=PieceType[result.promotion.name] if result.promotion else None,
            game=self._create_game_response(request.game_id, after_move),
        )

    def resign(self, request: ResignRequest) -> GameResponse:
        """The requesting color gives up."""
        game, snapshot = game_from_model(self._fetch_game(request.game_id))
        game.resign(PieceColor[request.color.name])
        return self._store(request.game_id, game, snapshot)

    def update_clock(self, request: ClockRequest) -> GameResponse:
        """
        The external clock reports how much time is left.
        ---

        Seconds are stored as-is. A side whose clock hit zero loses on time (unless the game already ended).
        """
        game, snapshot = game_from_model(self._fetch_game(request.game_id))
        snapshot.white_seconds = request.white_seconds
        snapshot.black_seconds = request.black_seconds

        if not game.outcome.is_over:
            if request.white_seconds == 0:
                game.declare_timeout(PieceColor.WHITE)
            elif request.black_seconds == 0:
                game.declare_timeout(PieceColor.BLACK)
        return self._store(request.game_id, game, snapshot)

    def export_snapshot(self, request: GetGameRequest) -> str:
        """The save-file text of a game."""
        return self._fetch_game(request.game_id).snapshot

    def import_snapshot(self, snapshot_text: Optional[str]) -> GameResponse:
        """Store a game from save-file text as a new record. Unreadable text gives a fresh game."""
        rules = CastlingRules(self.settings.castling_rules.value)
        game, snapshot = load_game_or_new(snapshot_text, rules)
        stored_game, game_id = self.repo.create_game(game_to_model(game, snapshot))
        return self._create_game_response(game_id, stored_game)

    def save_to_file(self, request: GetGameRequest) -> None:
        """Overwrite the save file with this game."""
        self.save_file.write(self.export_snapshot(request))

    def load_from_file(self) -> GameResponse:
        """Continue the game in the save file (or a new game when there is nothing usable in it)."""
        return self.import_snapshot(self.save_file.read())

    def delete_game(self, request: DeleteGameRequest) -> None:
        """Handle a request to delete a Game record."""
        self.repo.delete_game(request.game_id)

    # -- Internal helpers --
    def _store(self, game_id: UUID, game: GameState, snapshot: GameSnapshot) -> GameResponse:
        model = game_to_model(game, snapshot)
        if self.repo.update_game(game_id, model) is None:
            raise RepositoryError(f"Game with {game_id=} could not be updated.")
        return self._create_game_response(game_id, model)

    def _log_move(self, snapshot: GameSnapshot, mover: Piece, move: Move, result: MoveResult) -> None:
        """Log line of the moving piece: figurine, then the move (ex. "♘ g1 -> f3")"""
        line = f"{mover.symbol} {move}"
        if result.castling:
            line += " (Castling)"
        if result.promotion:
            line += " (Promoted)"
        _append_log(snapshot, mover.color, line)

    def _log_game_state(self, snapshot: GameSnapshot, game: GameState, result: MoveResult) -> None:
        """Check / draw messages go into the log of the player that is now to move."""
        to_move = game.current_player
        line = STATUS_LOG_LINES.get(result.outcome.status)
        if line is None and not result.outcome.is_over and game.is_in_check(to_move):
            line = CHECK_LOG_LINE
        if line is not None:
            _append_log(snapshot, to_move, line)

    def _create_game_response(self, game_id: UUID, model: GameModel) -> GameResponse:
        """Convert info in GameModel to a GameResponse (for game with given ID.)"""
        game, snapshot = game_from_model(model)
        board = [
            [_token(game.piece_at(Square(row, col))) for col in range(BOARD_SIZE)]
            for row in range(BOARD_SIZE)
        ]
        outcome = game.game_over_status()
        return GameResponse(
            game_id=game_id,
            current_player=Color[game.current_player.name],
            board=board,
            status=StatusName[outcome.status.name],
            winner=Color[outcome.winner.name] if outcome.winner else None,
            in_check=game.is_in_check(game.current_player),
            captured={
                Color[color.name]: [piece.to_token() for piece in pieces]
                for color, pieces in captured_pieces(game.board).items()
            },
            white_seconds=snapshot.white_seconds,
            black_seconds=snapshot.black_seconds,
            white_log=snapshot.white_log,
            black_log=snapshot.black_log,
        )

    def _fetch_game(self, game_id: UUID) -> GameModel:
        """Attempt to find the game in the repository and raise error if it fails."""
        game_model = self.repo.get_game(game_id)
        if game_model is None:
            raise RepositoryError(f"Game with {game_id=} not found.")
        return game_model


def _token(piece: Optional[Piece]) -> Optional[str]:
    return piece.to_token() if piece else None


def _append_log(snapshot: GameSnapshot, color: PieceColor, line: str) -> None:
    if color == PieceColor.WHITE:
        snapshot.white_log += line + "\n"
    else:
        snapshot.black_log += line + "\n"


def build_chess_service(settings: Optional[Settings] = None) -> ChessService:
    """Wire up logging, the database and the save file from the settings."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    engine = create_db_engine(settings.database_url)
    session = sessionmaker(bind=engine)()
    return ChessService(SQLGameRepository(session), SaveFile(settings.save_file), settings)
