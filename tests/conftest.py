"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Callable, Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.chess.board import Board
from src.chess.castling import CastlingRights, CastlingRules
from src.chess.game import GameState
from src.chess.pieces import Color, Piece
from src.chess.square import Square
from src.db.schema import Base

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)

# square name -> piece token, ex. {"e1": "WhiteKing", "e8": "BlackKing"}
Placement = dict[str, str]


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        Base.metadata.drop_all(bind=engine)
        db.close()


@pytest.fixture
def board_with() -> Callable[[Placement], Board]:
    """Call the inner function with the pieces to place. Every other square is empty."""

    def _create_board(placement: Placement) -> Board:
        board = Board()
        for square_name, token in placement.items():
            board.place_piece(Piece.from_token(token), Square.from_algebraic(square_name))
        return board

    return _create_board


@pytest.fixture
def game_with(
    board_with: Callable[[Placement], Board],
) -> Callable[..., GameState]:
    """
    A game in a custom position.
    Castling rights are inferred from the placement (so: kings and rooks on their starting squares can castle).
    """

    def _create_game(
        placement: Placement,
        to_move: Color = Color.WHITE,
        castling_rules: CastlingRules = CastlingRules.STRICT,
    ) -> GameState:
        board = board_with(placement)
        rights = CastlingRights.inferred_from(board)
        return GameState(
            board=board,
            castling_rights=rights,
            history=[board.fingerprint(to_move, rights)],
            current_player=to_move,
            castling_rules=castling_rules,
        )

    return _create_game
