"""
Boundary layer data model(s).

These objects can be used to communicate with the Service.
Hence, both the API layer (higher) and domain/db layers (lower) will use model(s) defined here to send to/receive from the Service
(Decouples the data model specific to the DB layer, API layer, or domain layer from the information needed to send across boundaries)
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class GameModel:
    """Transport-safe representation of a chess game used between API, Service, DB, and Game layers.

    * snapshot: the save-file text record (turn, clocks, board, move logs)
    * position_history: fingerprints of every position reached so far (needed for the repetition rule)
    * castling_rights: six 0/1 flags, see CastlingRights.to_flags()
    """

    snapshot: str
    position_history: list[str] = field(default_factory=list)
    castling_rights: str = "000000"
    castling_rules: str = "strict"
    status: str = "in progress"
    winner: Optional[str] = None
