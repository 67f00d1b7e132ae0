"""
A single intersection on the xiangqi board

(placed in its own module as multiple other modules need to import it)
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from xiangqi.core.shared_types import Color

# (rows, columns). Row 0 is Black's back rank, row 9 is Red's back rank.
BOARD_DIMENSIONS = (10, 9)

# The river runs between row 4 and row 5: Black's half is rows 0-4, Red's half rows 5-9.
RIVER_ROWS: dict[Color, range] = {
    Color.BLACK: range(0, 5),
    Color.RED: range(5, 10),
}

PALACE_ROWS: dict[Color, range] = {
    Color.BLACK: range(0, 3),
    Color.RED: range(7, 10),
}
PALACE_COLS = range(3, 6)

FILE_NAMES = "abcdefghi"
ICCS_SQUARE = re.compile(r"[a-i][0-9]")


def is_valid_iccs(name: str) -> bool:
    """file letter a-i followed by a rank digit 0-9"""
    return ICCS_SQUARE.fullmatch(name) is not None


@dataclass(frozen=True)
class Coordinate:
    row: int
    col: int

    @classmethod
    def from_iccs(cls, name: str) -> Coordinate:
        """
        ICCS notation: 'a0' - 'i9'.

        The letter is the column (file a = column 0), the digit counts ranks from Red's side.
        So 'a0' is the bottom-left corner as seen by Red, i.e. (row 9, col 0).
        """
        col = FILE_NAMES.index(name[0])
        row = BOARD_DIMENSIONS[0] - 1 - int(name[1])
        return cls(row, col)

    def to_iccs(self) -> str:
        return f"{FILE_NAMES[self.col]}{BOARD_DIMENSIONS[0] - 1 - self.row}"

    def offset(self, d_row: int, d_col: int) -> Coordinate:
        return Coordinate(self.row + d_row, self.col + d_col)

    def is_within_bounds(self) -> bool:
        return (0 <= self.row < BOARD_DIMENSIONS[0]) and (
            0 <= self.col < BOARD_DIMENSIONS[1]
        )

    def in_palace(self, color: Color) -> bool:
        return self.row in PALACE_ROWS[color] and self.col in PALACE_COLS

    def on_own_side(self, color: Color) -> bool:
        """Has not crossed the river (from the perspective of the given color)"""
        return self.row in RIVER_ROWS[color]

    def to_dict(self) -> dict[str, int]:
        return {"row": self.row, "col": self.col}

    @classmethod
    def from_dict(cls, data: dict[str, int]) -> Coordinate:
        return cls(int(data["row"]), int(data["col"]))


def all_coordinates() -> list[Coordinate]:
    """Every intersection of the board, in row-major order."""
    num_rows, num_cols = BOARD_DIMENSIONS
    return [Coordinate(row, col) for row in range(num_rows) for col in range(num_cols)]
