"""
Type definitions used across layers
"""

from enum import StrEnum


class Status(StrEnum):
    WAITING_FOR_PLAYERS = "waiting for players"
    IN_PROGRESS = "in progress"
    CHECK = "check"
    CHECKMATE = "checkmate"
    STALEMATE = "stalemate"
    DRAW = "draw"
    TIME_FORFEIT = "time forfeit"
    RESIGNED = "resigned"


# A game in one of these states accepts no further moves.
TERMINAL_STATUSES: frozenset[Status] = frozenset(
    {
        Status.CHECKMATE,
        Status.STALEMATE,
        Status.DRAW,
        Status.TIME_FORFEIT,
        Status.RESIGNED,
    }
)


class Color(StrEnum):
    RED = "red"
    BLACK = "black"

    @property
    def opponent(self) -> "Color":
        return Color.BLACK if self == Color.RED else Color.RED


class PieceType(StrEnum):
    KING = "king"
    ADVISOR = "advisor"
    BISHOP = "bishop"
    KNIGHT = "knight"
    ROOK = "rook"
    CANNON = "cannon"
    PAWN = "pawn"
