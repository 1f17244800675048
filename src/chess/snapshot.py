"""
Save-file representation of a game. The part that can be written to / read from a text record.

<current player>
<seconds left on white's clock>
<seconds left on black's clock>
<8 lines: one per board row (row 0 first), 8 comma-separated tokens each: 'null' or ex. 'WhiteKnight'>
<white's move log>
<black's move log>

* The current player is written as "WHITE" or "BLACK"
* Clock seconds are owned by the (external) clock. They're just passed through.
* Newlines inside a move log are escaped as '%%%'. An empty log is written as 'EMPTY'.

ex) a fresh game with 15 minutes on both clocks
WHITE
900
900
BlackRook,BlackKnight,BlackBishop,BlackQueen,BlackKing,BlackBishop,BlackKnight,BlackRook
BlackPawn,BlackPawn,BlackPawn,BlackPawn,BlackPawn,BlackPawn,BlackPawn,BlackPawn
null,null,null,null,null,null,null,null
(... 3 more empty rows ...)
WhitePawn,WhitePawn,WhitePawn,WhitePawn,WhitePawn,WhitePawn,WhitePawn,WhitePawn
WhiteRook,WhiteKnight,WhiteBishop,WhiteQueen,WhiteKing,WhiteBishop,WhiteKnight,WhiteRook
EMPTY
EMPTY

Castling rights and the position history are NOT part of the record. See GameSnapshot.to_game().
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Optional

from src.chess.board import Board
from src.chess.castling import CastlingRights, CastlingRules
from src.chess.game import GameOverStatus, GameState, Status
from src.chess.pieces import Color, Piece, starting_material
from src.chess.square import BOARD_SIZE, Square
from src.core.exceptions import InvalidSnapshotError
from src.core.models import GameModel
from src.core.shared_types import Status as StatusName

logger = logging.getLogger(__name__)

NULL_TOKEN = "null"
EMPTY_LOG = "EMPTY"
NEWLINE_ESCAPE = "%%%"
DEFAULT_CLOCK_SECONDS = 900

# turn + 2 clocks + board rows + 2 logs
NUM_LINES = 3 + BOARD_SIZE + 2


def escape_log(log: str) -> str:
    return log.replace("\n", NEWLINE_ESCAPE) if log else EMPTY_LOG


def unescape_log(line: str) -> str:
    return "" if line == EMPTY_LOG else line.replace(NEWLINE_ESCAPE, "\n")


def split_row(line: str) -> list[str]:
    """Older save files end every row with a comma. Tolerate that."""
    tokens = line.split(",")
    if len(tokens) == BOARD_SIZE + 1 and tokens[-1] == "":
        tokens = tokens[:-1]
    return tokens


def is_valid_snapshot(text: str) -> bool:
    """
    Check if given string follows the snapshot layout.
    """
    lines = text.split("\n")
    # a final newline is written after the last log
    if lines and lines[-1] == "":
        lines = lines[:-1]
    if len(lines) != NUM_LINES:
        return False

    if not is_valid_player_token(lines[0]):
        return False

    if not (is_valid_seconds(lines[1]) and is_valid_seconds(lines[2])):
        return False

    return all(is_valid_row(line) for line in lines[3 : 3 + BOARD_SIZE])


def is_valid_player_token(token: str) -> bool:
    return token in {color.name for color in Color}


def is_valid_seconds(seconds: str) -> bool:
    return seconds.isdecimal() and seconds.isascii()


def is_valid_row(line: str) -> bool:
    tokens = split_row(line)
    if len(tokens) != BOARD_SIZE:
        return False
    return all(is_valid_piece_token(token) for token in tokens)


def is_valid_piece_token(token: str) -> bool:
    if token == NULL_TOKEN:
        return True
    try:
        Piece.from_token(token)
    except ValueError:
        return False
    return True


@dataclass
class GameSnapshot:
    current_player: Color
    white_seconds: int
    black_seconds: int
    board: Board
    white_log: str = ""
    black_log: str = ""

    @classmethod
    def from_text(cls, text: str) -> GameSnapshot:
        """Parse the record into data"""

        # raise an exception if invalid:
        if not is_valid_snapshot(text):
            raise InvalidSnapshotError("Cannot interpret supplied text as a saved game.")

        lines = text.split("\n")
        current_player = Color[lines[0]]
        white_seconds = int(lines[1])
        black_seconds = int(lines[2])

        board = Board()
        for row, line in enumerate(lines[3 : 3 + BOARD_SIZE]):
            for col, token in enumerate(split_row(line)):
                piece = None if token == NULL_TOKEN else Piece.from_token(token)
                board.place_piece(piece, Square(row, col))

        white_log = unescape_log(lines[3 + BOARD_SIZE])
        black_log = unescape_log(lines[4 + BOARD_SIZE])
        return cls(current_player, white_seconds, black_seconds, board, white_log, black_log)

    def to_text(self) -> str:
        """reverse operation: write the record from the given data"""
        lines = [self.current_player.name, str(self.white_seconds), str(self.black_seconds)]
        for row in range(BOARD_SIZE):
            tokens = []
            for col in range(BOARD_SIZE):
                piece = self.board.piece(Square(row, col))
                tokens.append(NULL_TOKEN if piece is None else piece.to_token())
            lines.append(",".join(tokens))
        lines.append(escape_log(self.white_log))
        lines.append(escape_log(self.black_log))
        return "\n".join(lines) + "\n"

    @classmethod
    def from_game(
        cls,
        game: GameState,
        white_seconds: int = DEFAULT_CLOCK_SECONDS,
        black_seconds: int = DEFAULT_CLOCK_SECONDS,
        white_log: str = "",
        black_log: str = "",
    ) -> GameSnapshot:
        return cls(game.current_player, white_seconds, black_seconds, game.board.copy(), white_log, black_log)

    def to_game(self, castling_rules: CastlingRules = CastlingRules.STRICT) -> GameState:
        """
        Rebuild a playable game.
        ---

        * castling rights: anything that is not on its starting square has moved
        * history: starts over from the loaded position
        * status: evaluated right away (a saved game may already be over)
        """
        board = self.board.copy()
        game = GameState(
            board=board,
            castling_rights=CastlingRights.inferred_from(board),
            history=[],
            current_player=self.current_player,
            castling_rules=castling_rules,
        )
        game.history.append(board.fingerprint(game.current_player, game.castling_rights))
        game.update_game_over_status()
        return game

    def captured_pieces(self) -> dict[Color, list[Piece]]:
        return captured_pieces(self.board)


def captured_pieces(board: Board) -> dict[Color, list[Piece]]:
    """
    Which pieces has each player captured?
    ----

    Not stored anywhere: compare a player's 16 starting pieces with what is left of them on the board.
    Whatever is missing was taken by the opponent. Keyed by the player who did the capturing.

    NOTE: a promoted piece is not in the starting material, so it cannot show up as captured (the pawn it came from does).
    """
    on_board = Counter(board.pieces())
    captured: dict[Color, list[Piece]] = {}
    for color in Color:
        remaining = Counter({piece: count for piece, count in on_board.items() if piece.color == color})
        missing: list[Piece] = []
        for piece in starting_material(color):
            if remaining[piece] > 0:
                remaining[piece] -= 1
            else:
                missing.append(piece)
        captured[color.opponent] = missing
    return captured


def load_game_or_new(
    text: Optional[str], castling_rules: CastlingRules = CastlingRules.STRICT
) -> tuple[GameState, GameSnapshot]:
    """Malformed or missing save data: start a fresh game instead of failing."""
    if text is not None:
        try:
            snapshot = GameSnapshot.from_text(text)
            return snapshot.to_game(castling_rules), snapshot
        except InvalidSnapshotError:
            logger.warning("Could not load saved game, starting a new one instead")
    else:
        logger.warning("No saved game found, starting a new one instead")

    game = GameState.new_game(castling_rules)
    return game, GameSnapshot.from_game(game)


# --- TRANSPORT (GameModel) ---
def game_to_model(game: GameState, snapshot: GameSnapshot) -> GameModel:
    """Encode back into a format the Service layer uses. The snapshot carries clocks and logs, the game the rest."""
    record = GameSnapshot(
        current_player=game.current_player,
        white_seconds=snapshot.white_seconds,
        black_seconds=snapshot.black_seconds,
        board=game.board,
        white_log=snapshot.white_log,
        black_log=snapshot.black_log,
    )
    outcome = game.game_over_status()
    return GameModel(
        snapshot=record.to_text(),
        position_history=list(game.history),
        castling_rights=game.castling_rights.to_flags(),
        castling_rules=game.castling_rules.value,
        status=StatusName[outcome.status.name].value,
        winner=outcome.winner.name.lower() if outcome.winner else None,
    )


def game_from_model(model: GameModel) -> tuple[GameState, GameSnapshot]:
    """
    Define how to construct a GameState from the information the Service layer actually has.

    Unlike load_game_or_new(), a broken record here is a bug (we wrote it ourselves): raise.
    """
    snapshot = GameSnapshot.from_text(model.snapshot)
    if model.status not in {status.value for status in StatusName}:
        raise InvalidSnapshotError(
            f"Invalid status code: {model.status!r}. \nPick one from {','.join(StatusName)}"
        )
    status_name = StatusName(model.status).name

    try:
        castling_rights = CastlingRights.from_flags(model.castling_rights)
        castling_rules = CastlingRules(model.castling_rules)
        winner = Color[model.winner.upper()] if model.winner else None
    except (ValueError, KeyError) as exc:
        raise InvalidSnapshotError(f"Corrupt game record: {exc}") from exc

    history = list(model.position_history) or [
        snapshot.board.fingerprint(snapshot.current_player, castling_rights)
    ]
    game = GameState(
        board=snapshot.board.copy(),
        castling_rights=castling_rights,
        history=history,
        current_player=snapshot.current_player,
        castling_rules=castling_rules,
        outcome=GameOverStatus(Status[status_name], winner),
    )
    return game, snapshot
