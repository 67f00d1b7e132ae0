"""
Game FEN: the board encoding plus the information needed to continue the game from that position.
"""

from dataclasses import dataclass
from typing import Self

from xiangqi.core.exceptions import MalformedBoardEncodingError
from xiangqi.core.shared_types import Color
from xiangqi.engine.board import STARTING_POSITION, is_valid_position

STARTING_FEN = f"{STARTING_POSITION} w - - 0 1"

# Red is written as "w" (the convention xiangqi engines inherited from chess). "r" is accepted when reading.
COLOR_CODES: dict[str, Color] = {"w": Color.RED, "r": Color.RED, "b": Color.BLACK}


def is_valid_fen(fen: str) -> bool:
    """
    Check if given string follows the game FEN notation.

    Two forms are accepted:
    * "<board> <color>"                              (short form)
    * "<board> <color> - - <half moves> <turn number>" (full form)
    """
    parts = fen.split(" ")
    if len(parts) not in (2, 6):
        return False

    if not is_valid_position(parts[0]):
        return False

    if not is_valid_color_code(parts[1]):
        return False

    if len(parts) == 6:
        # castling / en passant do not exist in xiangqi: always a "-"
        if parts[2] != "-" or parts[3] != "-":
            return False
        if not (is_valid_move_counter(parts[4]) and is_valid_move_counter(parts[5])):
            return False
    return True


def is_valid_color_code(color: str) -> bool:
    return color in COLOR_CODES


def is_valid_move_counter(counter: str) -> bool:
    return counter.isascii() and counter.isdigit()


@dataclass
class FENState:
    """
    Data that can be constructed from a FEN string.
    ----

    <board position string> <active color> - - <# half move clock> <number turns played>

    * The string to describe the board position is described in the Board class
    * The active color is either "w" (Red) or "b" (Black)
    * The two "-" are placeholders kept for compatibility with chess FEN (no castling or en passant in xiangqi)
    * The half move clock counts the moves made since the last capture (used by the move count draw policy)
    * The number of turns starts at 1 and increments after every move black makes.

    ex) The standard starting position has a FEN
    rnbakabnr/9/1c5c1/p1p1p1p1p/9/9/P1P1P1P1P/1C5C1/9/RNBAKABNR w - - 0 1
    """

    position: str
    color_to_move: Color
    half_move_clock: int = 0
    num_turns: int = 1

    @classmethod
    def from_fen(cls, fen: str) -> Self:
        """Parse the FEN into data"""

        # raise an exception if invalid FEN:
        if not is_valid_fen(fen):
            raise MalformedBoardEncodingError(
                f"Cannot interpret supplied string as FEN: {fen}"
            )

        parts = fen.split(" ")
        position, active_color = parts[0], parts[1]
        color_to_move = COLOR_CODES[active_color]
        if len(parts) == 2:
            return cls(position, color_to_move)

        return cls(position, color_to_move, int(parts[4]), int(parts[5]))

    def to_fen(self) -> str:
        """reverse operation: write a (full form) FEN from the given data"""
        active_color = "w" if self.color_to_move == Color.RED else "b"
        return f"{self.position} {active_color} - - {self.half_move_clock} {self.num_turns}"

    def repetition_key(self) -> str:
        """Board + side to move: what has to match for a position to count as repeated"""
        return " ".join(self.to_fen().split(" ")[:2])

    @classmethod
    def starting_position(cls) -> Self:
        return cls.from_fen(STARTING_FEN)
