"""Requests and Response models"""

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, field_validator

from xiangqi.core.exceptions import InvalidRequestError
from xiangqi.core.shared_types import Color, Status
from xiangqi.engine.coordinate import is_valid_iccs
from xiangqi.engine.fen import is_valid_fen

PieceColor = str
PlayerName = str


# --- REQUEST MODELS ---
class CreateGameRequest(BaseModel):
    player_name: str
    color: Color
    starting_fen: Optional[str] = None

    @field_validator("starting_fen")
    @classmethod
    def validate_starting_fen(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value

        value = value.strip()
        if not is_valid_fen(value):
            raise InvalidRequestError(
                f"Cannot interpret {value!r} as a game FEN: '<board> w|b' or '<board> w|b - - <half moves> <turn>'."
            )
        return value


class JoinGameRequest(BaseModel):
    game_id: UUID
    player_name: str


class LegalMovesRequest(BaseModel):
    game_id: UUID
    player_name: str


class MoveRequest(BaseModel):
    game_id: UUID
    player_name: str
    from_square: str
    to_square: str

    @field_validator(*["from_square", "to_square"])
    @classmethod
    def validate_square(cls, value: str) -> str:
        value = value.strip().lower()
        if not is_valid_iccs(value):
            raise InvalidRequestError(
                f"Cannot interpret {value!r} as an intersection. Use a file a-i and a rank 0-9, e.g. 'h2'."
            )
        return value

    @property
    def move_iccs(self) -> str:
        return f"{self.from_square}{self.to_square}"


class UndoRequest(BaseModel):
    game_id: UUID
    player_name: str


class ResignRequest(BaseModel):
    game_id: UUID
    player_name: str


class TimeForfeitRequest(BaseModel):
    """Reported by the client whose clock ran out (the clocks run on the client side)."""

    game_id: UUID
    color: Color


class GetGameRequest(BaseModel):
    game_id: UUID


class DeleteGameRequest(BaseModel):
    game_id: UUID


# --- RESPONSE MODELS ---
class GameResponse(BaseModel):
    game_id: UUID
    players: dict[PieceColor, PlayerName]
    fen_state: str
    starting_state: str
    move_history: list[dict[str, Any]]
    status: Status
    winner: Optional[PlayerName] = None


class LegalMovesResponse(BaseModel):
    game_id: UUID
    player_name: str
    color: Color
    legal_moves: list[str]
