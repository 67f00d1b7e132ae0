"""Defines the xiangqi pieces and their FEN letters / material values"""

from __future__ import annotations

from dataclasses import dataclass, field

from xiangqi.core.exceptions import MalformedBoardEncodingError
from xiangqi.core.shared_types import Color, PieceType
from xiangqi.engine.coordinate import Coordinate

FEN_TO_PIECE: dict[str, PieceType] = {
    "k": PieceType.KING,
    "a": PieceType.ADVISOR,
    "b": PieceType.BISHOP,
    "n": PieceType.KNIGHT,
    "r": PieceType.ROOK,
    "c": PieceType.CANNON,
    "p": PieceType.PAWN,
}

PIECE_TO_FEN: dict[PieceType, str] = {value: key for key, value in FEN_TO_PIECE.items()}


# Static material weights, exposed for any evaluation / search component built on top of the engine.
PIECE_VALUES: dict[PieceType, int] = {
    PieceType.KING: 10000,
    PieceType.ROOK: 900,
    PieceType.CANNON: 450,
    PieceType.KNIGHT: 400,
    PieceType.ADVISOR: 200,
    PieceType.BISHOP: 200,
    PieceType.PAWN: 100,
}


def piece_value(piece_type: PieceType, color: Color) -> int:
    """Both colors share the same weights"""
    return PIECE_VALUES[piece_type]


@dataclass
class Piece:
    """
    A piece keeps its identity (id, type, color) for the lifetime of the game; only its position changes.

    NOTE: `points` is derived from the type and left out of comparisons.
    """

    id: str
    type: PieceType
    color: Color
    position: Coordinate
    points: int = field(init=False, compare=False)

    def __post_init__(self) -> None:
        self.points = piece_value(self.type, self.color)

    @classmethod
    def from_fen(cls, character: str, piece_id: str, position: Coordinate) -> Piece:
        # upper case: Red pieces, lower case: Black pieces
        if character.lower() not in FEN_TO_PIECE:
            raise MalformedBoardEncodingError(
                f"Unrecognized piece character: {character!r}"
            )
        color = Color.RED if character.isupper() else Color.BLACK
        piece_type = FEN_TO_PIECE[character.lower()]
        return cls(piece_id, piece_type, color, position)

    def to_fen(self) -> str:
        return (
            PIECE_TO_FEN[self.type].upper()
            if self.color == Color.RED
            else PIECE_TO_FEN[self.type].lower()
        )

    def move(self, row: int, col: int) -> None:
        self.position = Coordinate(row, col)

    def clone(self) -> Piece:
        """Coordinate is frozen, so a shallow field copy shares no mutable state."""
        return Piece(self.id, self.type, self.color, self.position)
