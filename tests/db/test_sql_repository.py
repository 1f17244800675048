"""Unit tests for src/db/sql_repository.py"""

from uuid import uuid4

from sqlalchemy.orm import Session

from src.core.shared_types import Status
from src.db.sql_repository import GameModel, SQLGameRepository


def make_model(**overrides: object) -> GameModel:
    """Mock game data. Nothing in here has to be a valid chess game: the repository only stores it."""
    fields: dict[str, object] = {
        "snapshot": "WHITE\n900\n900\n(board)\nEMPTY\nEMPTY\n",
        "position_history": ["position 1", "position 2", "position 1"],
        "castling_rights": "000000",
        "castling_rules": "strict",
        "status": Status.IN_PROGRESS.value,
        "winner": None,
    }
    fields.update(overrides)
    return GameModel(**fields)  # type: ignore[arg-type]


def test_create_game(db_session_repo: Session) -> None:
    """Conversion from a GameModel to DBGame for a new entry to the database."""
    model = make_model()

    repo = SQLGameRepository(db_session_repo)
    record_in_db, _ = repo.create_game(model)
    assert isinstance(record_in_db, GameModel)
    assert record_in_db == model


def test_get_game_by_id(db_session_repo: Session) -> None:
    """Create a game, then fetch it from db."""
    model = make_model(status=Status.CHECKMATE.value, winner="black")

    repo = SQLGameRepository(db_session_repo)
    expected_game, game_id = repo.create_game(model)
    game_found = repo.get_game(game_id)
    assert isinstance(game_found, GameModel)
    assert game_found == expected_game


def test_get_unknown_game(db_session_repo: Session) -> None:
    """
    Should return None if ID does not match anything in database.

    NOTE with an empty database, any id is a valid test case.
    """
    repo = SQLGameRepository(db_session_repo)
    assert repo.get_game(uuid4()) is None

    # Now do it with creating a game, but retrieving from the wrong ID
    repo.create_game(make_model())
    assert repo.get_game(uuid4()) is None


def test_every_game_gets_its_own_id(db_session_repo: Session) -> None:
    repo = SQLGameRepository(db_session_repo)
    _, first_id = repo.create_game(make_model())
    _, second_id = repo.create_game(make_model(castling_rules="lenient"))
    assert first_id != second_id
    first, second = repo.get_game(first_id), repo.get_game(second_id)
    assert first is not None and first.castling_rules == "strict"
    assert second is not None and second.castling_rules == "lenient"


def test_update_game(db_session_repo: Session) -> None:
    """
    Update an earlier created record.
    """
    repo = SQLGameRepository(db_session_repo)
    _, game_id = repo.create_game(make_model(position_history=["start"]))

    # Update data and check if recorded data matches the data after the update
    after = make_model(
        snapshot="BLACK\n900\n871\n(board)\ne2 -> e4%%%\nEMPTY\n",
        position_history=["start", "after e4"],
        castling_rights="100000",
    )
    updated_game = repo.update_game(game_id, after)
    assert updated_game is not None
    assert updated_game == after


def test_consecutive_game_updates(db_session_repo: Session) -> None:
    """Tests that we can successfully make multiple updates to the same game."""
    repo = SQLGameRepository(db_session_repo)
    _, game_id = repo.create_game(make_model(position_history=["start"]))

    # make some updates "loosely simulate real scenario"
    history = ["start"]
    for position in ["position 1", "position 2", "position 3"]:
        history.append(position)
        repo.update_game(game_id, make_model(position_history=list(history)))

    final = make_model(position_history=history + ["position 1"], status=Status.RESIGNATION.value, winner="white")
    repo.update_game(game_id, final)

    # now fetch it from db and assert (a little more explicit here, just for good measure)
    after_all_updates = repo.get_game(game_id)
    assert after_all_updates is not None
    assert after_all_updates == final
    assert after_all_updates.position_history == ["start", "position 1", "position 2", "position 3", "position 1"]


def test_attempt_updating_unknown_game(db_session_repo: Session) -> None:
    """the update_game() method should break early and return None"""
    repo = SQLGameRepository(db_session_repo)
    updated_game = repo.update_game(uuid4(), make_model())
    assert updated_game is None


def test_delete_game(db_session_repo: Session) -> None:
    """Record of the game should no longer exist after deletion"""
    repo = SQLGameRepository(db_session_repo)
    created_game, game_id = repo.create_game(make_model())
    deleted_game = repo.delete_game(game_id)

    # the correct game should be deleted
    assert deleted_game == created_game

    # The game should no longer be available in db
    assert repo.get_game(game_id) is None


def test_attempt_deleting_unknown_game(db_session_repo: Session) -> None:
    """
    the delete_game() method should break early and return None

    NOTE here simply attempt to delete a game from an empty DB. Already confirmed with the above that this is equivalent to fetching from the wrong ID.
    """
    repo = SQLGameRepository(db_session_repo)
    deleted_game = repo.delete_game(uuid4())
    assert deleted_game is None
