"""Unit tests for /src/chess/snapshot.py"""

import logging
from typing import Callable

import pytest

from src.chess.board import Board
from src.chess.castling import CastlingRules, CastlingSide
from src.chess.game import GameOverStatus, GameState, Status
from src.chess.moves import Move
from src.chess.pieces import Color, Piece, PieceKind
from src.chess.snapshot import (
    GameSnapshot,
    captured_pieces,
    escape_log,
    game_from_model,
    game_to_model,
    is_valid_snapshot,
    load_game_or_new,
    unescape_log,
)
from src.chess.square import Square
from src.core.exceptions import InvalidSnapshotError
from src.core.models import GameModel

BoardFactory = Callable[[dict[str, str]], Board]

EMPTY_ROW = ",".join(["null"] * 8)
STARTING_ROWS = [
    "BlackRook,BlackKnight,BlackBishop,BlackQueen,BlackKing,BlackBishop,BlackKnight,BlackRook",
    ",".join(["BlackPawn"] * 8),
    EMPTY_ROW,
    EMPTY_ROW,
    EMPTY_ROW,
    EMPTY_ROW,
    ",".join(["WhitePawn"] * 8),
    "WhiteRook,WhiteKnight,WhiteBishop,WhiteQueen,WhiteKing,WhiteBishop,WhiteKnight,WhiteRook",
]


def snapshot_text(
    player: str = "WHITE",
    white_seconds: str = "900",
    black_seconds: str = "900",
    rows: list[str] = STARTING_ROWS,
    white_log: str = "EMPTY",
    black_log: str = "EMPTY",
) -> str:
    return "\n".join([player, white_seconds, black_seconds, *rows, white_log, black_log]) + "\n"


# -- TEXT FORMAT --
def test_new_game_to_text() -> None:
    snapshot = GameSnapshot.from_game(GameState.new_game())
    assert snapshot.to_text() == snapshot_text()


def test_from_text() -> None:
    snapshot = GameSnapshot.from_text(snapshot_text(player="BLACK", white_seconds="412", black_seconds="0"))
    assert snapshot.current_player == Color.BLACK
    assert snapshot.white_seconds == 412
    assert snapshot.black_seconds == 0
    assert snapshot.board == Board.starting_position()
    assert snapshot.white_log == ""
    assert snapshot.black_log == ""


def test_text_roundtrip_with_logs(board_with: BoardFactory) -> None:
    snapshot = GameSnapshot(
        current_player=Color.BLACK,
        white_seconds=301,
        black_seconds=17,
        board=board_with({"g1": "WhiteKing", "a8": "WhiteRook", "h8": "BlackKing", "g7": "BlackPawn"}),
        white_log="e2 -> e4\na1 -> a8\n",
        black_log="CHECK!\n",
    )
    text = snapshot.to_text()
    assert "e2 -> e4%%%a1 -> a8%%%" in text.split("\n")
    assert GameSnapshot.from_text(text) == snapshot


def test_rows_with_trailing_comma_are_accepted() -> None:
    rows = [row + "," for row in STARTING_ROWS]
    snapshot = GameSnapshot.from_text(snapshot_text(rows=rows))
    assert snapshot.board == Board.starting_position()


def test_missing_final_newline_is_accepted() -> None:
    text = snapshot_text().rstrip("\n")
    assert is_valid_snapshot(text)
    assert GameSnapshot.from_text(text).board == Board.starting_position()


@pytest.mark.parametrize(
    "log, escaped",
    [
        ("", "EMPTY"),
        ("e2 -> e4\n", "e2 -> e4%%%"),
        ("e2 -> e4\nCHECK!\n", "e2 -> e4%%%CHECK!%%%"),
    ],
)
def test_log_escaping(log: str, escaped: str) -> None:
    assert escape_log(log) == escaped
    assert unescape_log(escaped) == log


@pytest.mark.parametrize(
    "text",
    [
        "",
        "WHITE\n900\n900\n",
        snapshot_text(player="GREEN"),
        snapshot_text(player="White"),
        snapshot_text(white_seconds="-5"),
        snapshot_text(black_seconds="fifteen"),
        snapshot_text(white_seconds="²"),
        snapshot_text(black_seconds="٣00"),
        snapshot_text(rows=STARTING_ROWS[:7]),
        snapshot_text(rows=STARTING_ROWS[:7] + ["WhiteRook,WhiteKnight"]),
        snapshot_text(rows=STARTING_ROWS[:7] + [EMPTY_ROW + ",null"]),
        snapshot_text(rows=["WhiteDragon" + EMPTY_ROW[4:]] + STARTING_ROWS[1:]),
        snapshot_text() + "one line too many\n",
    ],
)
def test_invalid_snapshots(text: str) -> None:
    assert not is_valid_snapshot(text)
    with pytest.raises(InvalidSnapshotError):
        GameSnapshot.from_text(text)


# -- LOADING --
def test_to_game_infers_castling_rights(board_with: BoardFactory) -> None:
    board = board_with({"e1": "WhiteKing", "h1": "WhiteRook", "a1": "WhiteRook", "e7": "BlackKing", "h8": "BlackRook"})
    snapshot = GameSnapshot(Color.WHITE, 900, 900, board)
    game = snapshot.to_game()

    assert game.castling_rights.can_castle(Color.WHITE, CastlingSide.KINGSIDE)
    assert game.castling_rights.can_castle(Color.WHITE, CastlingSide.QUEENSIDE)
    assert not game.castling_rights.can_castle(Color.BLACK, CastlingSide.KINGSIDE)
    assert game.history == [board.fingerprint(Color.WHITE, game.castling_rights)]
    assert game.castling_rules == CastlingRules.STRICT
    assert game.attempt_move(Move.from_algebraic("e1", "g1")).accepted


def test_to_game_copies_the_board() -> None:
    snapshot = GameSnapshot.from_game(GameState.new_game())
    game = snapshot.to_game(CastlingRules.LENIENT)
    game.attempt_move(Move.from_algebraic("e2", "e4"))
    assert snapshot.board == Board.starting_position()
    assert game.castling_rules == CastlingRules.LENIENT


def test_to_game_evaluates_finished_positions(board_with: BoardFactory) -> None:
    board = board_with({"g1": "WhiteKing", "a8": "WhiteRook", "h8": "BlackKing", "g7": "BlackPawn", "h7": "BlackPawn"})
    game = GameSnapshot(Color.BLACK, 10, 10, board).to_game()
    assert game.game_over_status() == GameOverStatus(Status.CHECKMATE, winner=Color.WHITE)


def test_load_game_or_new_with_valid_text() -> None:
    game, snapshot = load_game_or_new(snapshot_text(player="BLACK", white_log="e2 -> e4%%%"))
    assert game.current_player == Color.BLACK
    assert snapshot.white_log == "e2 -> e4\n"


@pytest.mark.parametrize("text", [None, "", "not a saved game", snapshot_text(white_seconds="²")])
def test_load_game_or_new_falls_back(text: str | None, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING):
        game, snapshot = load_game_or_new(text, CastlingRules.LENIENT)

    assert game.board == Board.starting_position()
    assert game.current_player == Color.WHITE
    assert game.castling_rules == CastlingRules.LENIENT
    assert (snapshot.white_seconds, snapshot.black_seconds) == (900, 900)
    assert snapshot.white_log == snapshot.black_log == ""
    assert "starting a new one" in caplog.text


# -- CAPTURED PIECES --
def test_nothing_captured_at_start() -> None:
    assert captured_pieces(Board.starting_position()) == {Color.WHITE: [], Color.BLACK: []}


def test_captured_pieces_keyed_by_capturer() -> None:
    board = Board.starting_position()
    board.remove_piece(Square.from_algebraic("d8"))  # black queen
    board.remove_piece(Square.from_algebraic("a8"))  # black rook
    board.remove_piece(Square.from_algebraic("e2"))  # white pawn

    captured = captured_pieces(board)
    # identical pieces are matched front to back, so the missing rook is the last one of the starting material
    assert captured[Color.WHITE] == [Piece(Color.BLACK, PieceKind.QUEEN), Piece(Color.BLACK, PieceKind.ROOK)]
    assert captured[Color.BLACK] == [Piece(Color.WHITE, PieceKind.PAWN)]


def test_promoted_piece_is_not_captured_material() -> None:
    """A pawn became a second queen: the pawn shows up as missing, the extra queen is ignored."""
    board = Board.starting_position()
    board.remove_piece(Square.from_algebraic("a2"))
    board.place_piece(Piece(Color.WHITE, PieceKind.QUEEN), Square.from_algebraic("e4"))

    snapshot = GameSnapshot(Color.WHITE, 900, 900, board)
    assert snapshot.captured_pieces()[Color.BLACK] == [Piece(Color.WHITE, PieceKind.PAWN)]
    assert snapshot.captured_pieces()[Color.WHITE] == []


# -- TRANSPORT (GameModel) --
def test_model_roundtrip_keeps_history_and_rights() -> None:
    game = GameState.new_game()
    for from_sq, to_sq in [("g1", "f3"), ("g8", "f6"), ("h1", "g1"), ("f6", "g8")]:
        assert game.attempt_move(Move.from_algebraic(from_sq, to_sq)).accepted
    snapshot = GameSnapshot.from_game(game, white_seconds=120, black_seconds=95, white_log="x\n")

    model = game_to_model(game, snapshot)
    assert model.status == "in progress"
    assert model.winner is None
    assert model.castling_rights == "000100"
    assert model.castling_rules == "strict"
    assert model.position_history == game.history

    restored, restored_snapshot = game_from_model(model)
    assert restored.board == game.board
    assert restored.history == game.history
    assert restored.castling_rights == game.castling_rights
    assert restored.current_player == Color.WHITE
    assert restored_snapshot.white_seconds == 120
    assert restored_snapshot.black_seconds == 95
    assert restored_snapshot.white_log == "x\n"


def test_model_keeps_final_status() -> None:
    game = GameState.new_game()
    game.resign(Color.WHITE)
    model = game_to_model(game, GameSnapshot.from_game(game))
    assert (model.status, model.winner) == ("resignation", "black")

    restored, _ = game_from_model(model)
    assert restored.game_over_status() == GameOverStatus(Status.RESIGNATION, winner=Color.BLACK)


def test_model_without_history() -> None:
    model = GameModel(snapshot=snapshot_text(), position_history=[], status="in progress")
    game, _ = game_from_model(model)
    assert game.game_over_status() == GameOverStatus()
    assert game.history == [Board.starting_position().fingerprint(Color.WHITE, game.castling_rights)]


@pytest.mark.parametrize(
    "overrides",
    [
        {"status": "abandoned"},
        {"castling_rights": "01"},
        {"castling_rules": "relaxed"},
        {"winner": "green"},
        {"snapshot": "garbage"},
    ],
)
def test_corrupt_model_raises(overrides: dict[str, str]) -> None:
    fields = {"snapshot": snapshot_text(), "position_history": []} | overrides
    with pytest.raises(InvalidSnapshotError):
        game_from_model(GameModel(**fields))  # type: ignore[arg-type]
