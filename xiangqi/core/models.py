"""
Data exchanged across layer boundaries.

The API, service, domain and db layers all speak GameModel, so none of them needs to know the others' own representation
(the Game object, the pydantic request/response models, the SQLAlchemy rows).
"""

from dataclasses import dataclass
from typing import Any, Optional

# Type aliases to make GameModel easier to read
PieceColor = str
PlayerName = str
MoveRecord = dict[str, Any]


@dataclass
class GameModel:
    """Transport-safe representation of a xiangqi game used between API, Service, DB, and Game layers.

    * `starting_fen`: game FEN the game started from (replaying `moves` on it gives `current_fen`)
    * `moves`: history entries as plain dicts: {"pieceId", "from", "to", "captured"}
    """

    starting_fen: str
    current_fen: str
    moves: list[MoveRecord]
    registered_players: dict[PieceColor, PlayerName]
    status: str
    winner: Optional[PieceColor] = None
