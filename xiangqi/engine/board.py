"""The Board owns the 10x9 grid and the set of live pieces. It implements all rules that only depend on the `position` (which piece stands where)"""

from __future__ import annotations

import logging
from collections import Counter
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Iterator, Optional, Self

from xiangqi.core.exceptions import MalformedBoardEncodingError, OccupiedCellError
from xiangqi.core.shared_types import Color, PieceType
from xiangqi.engine.coordinate import BOARD_DIMENSIONS, Coordinate
from xiangqi.engine.moves import candidate_moves
from xiangqi.engine.pieces import FEN_TO_PIECE, Piece

logger = logging.getLogger(__name__)

STARTING_POSITION = "rnbakabnr/9/1c5c1/p1p1p1p1p/9/9/P1P1P1P1P/1C5C1/9/RNBAKABNR"
EMPTY_POSITION = "/".join(["9"] * BOARD_DIMENSIONS[0])
# run lengths of empty intersections (ASCII only: str.isdigit() also accepts e.g. "²")
EMPTY_RUN_DIGITS = "123456789"


def is_valid_position(position: str) -> bool:
    """Only check the part of the FEN encoding for the board position."""
    try:
        validate_position(position)
    except MalformedBoardEncodingError:
        return False
    return True


def validate_position(position: str) -> None:
    """Raise for the first violated rule: rank count, column count per rank, unknown character."""
    num_rows, num_cols = BOARD_DIMENSIONS
    rank_fens = position.split("/")
    if len(rank_fens) != num_rows:
        raise MalformedBoardEncodingError(
            f"Expected {num_rows} ranks, found {len(rank_fens)} in {position!r}"
        )

    for row, rank_fen in enumerate(rank_fens):
        col_count = 0
        for character in rank_fen:
            if character in EMPTY_RUN_DIGITS:
                col_count += int(character)
            elif character.lower() in FEN_TO_PIECE:
                col_count += 1
            else:
                raise MalformedBoardEncodingError(
                    f"Unrecognized character {character!r} in rank {row}: {rank_fen!r}"
                )

        if col_count != num_cols:
            raise MalformedBoardEncodingError(
                f"Rank {row} ({rank_fen!r}) covers {col_count} columns instead of {num_cols}"
            )


@dataclass(eq=False)
class Board:
    """
    Invariant: every live piece's `position` is the key of exactly one grid entry holding that same piece, and vice versa.

    Pieces are stored by reference in both `grid` (by coordinate) and `live` (by id).
    """

    grid: dict[Coordinate, Piece] = field(default_factory=dict)
    live: dict[str, Piece] = field(default_factory=dict)

    @classmethod
    def from_pieces(cls, pieces: list[Piece]) -> Self:
        board = cls()
        for piece in pieces:
            board.place(piece, expect_empty=True)
        return board

    @classmethod
    def from_fen(cls, fen_str: str) -> Self:
        """Construct a board using the board part of a FEN string.

        ex. standard starting position:
        rnbakabnr/9/1c5c1/p1p1p1p1p/9/9/P1P1P1P1P/1C5C1/9/RNBAKABNR
        means:
        * ranks are listed from row 0 (Black's back rank) down to row 9 (Red's back rank)
        * lower case letters are Black pieces, capital letters Red pieces
        * a digit is the amount of consecutive empty intersections

        Piece ids are handed out in reading order: "<color>-<type>-<n>", e.g. red-cannon-2.
        Hence the same encoding always gives the same ids.
        """
        validate_position(fen_str)

        counters: Counter[tuple[Color, PieceType]] = Counter()
        board = cls()
        for row, fen_one_rank in enumerate(fen_str.split("/")):
            col = 0
            for character in fen_one_rank:
                if character in EMPTY_RUN_DIGITS:
                    col += int(character)
                    continue
                # simple case: a letter directly denotes the piece that should be created
                color = Color.RED if character.isupper() else Color.BLACK
                piece_type = FEN_TO_PIECE[character.lower()]
                counters[(color, piece_type)] += 1
                piece_id = f"{color}-{piece_type}-{counters[(color, piece_type)]}"
                board.place(Piece.from_fen(character, piece_id, Coordinate(row, col)))
                col += 1
        return board

    @classmethod
    def initial(cls) -> Self:
        return cls.from_fen(STARTING_POSITION)

    def to_fen(self) -> str:
        """Ranks are separated by slashes in FEN string."""
        return "/".join(self._rank_to_fen(row) for row in range(BOARD_DIMENSIONS[0]))

    def _rank_to_fen(self, row: int) -> str:
        """FEN string of a single rank"""
        fen_characters: list[str] = []
        empty_count = 0
        for col in range(BOARD_DIMENSIONS[1]):
            piece = self.at(Coordinate(row, col))
            if piece is None:
                empty_count += 1
                continue

            if empty_count > 0:
                fen_characters.append(str(empty_count))
                empty_count = 0
            fen_characters.append(piece.to_fen())

        # if the entire rank is empty, then we still place this number in the string
        if empty_count > 0:
            fen_characters.append(str(empty_count))
        return "".join(fen_characters)

    # --- OCCUPANCY QUERIES ---
    def at(self, coord: Coordinate) -> Optional[Piece]:
        """Never fails: off-board coordinates are simply empty."""
        return self.grid.get(coord)

    def is_empty(self, coord: Coordinate) -> bool:
        return coord not in self.grid

    def piece_by_id(self, piece_id: str) -> Optional[Piece]:
        return self.live.get(piece_id)

    def pieces(self, color: Optional[Color] = None) -> list[Piece]:
        """Live pieces (of one color, if given) in reading order"""
        found = [
            piece
            for piece in self.live.values()
            if color is None or piece.color == color
        ]
        return sorted(found, key=lambda piece: (piece.position.row, piece.position.col))

    def __iter__(self) -> Iterator[Piece]:
        return iter(self.pieces())

    def king(self, color: Color) -> Optional[Piece]:
        return next(
            (
                piece
                for piece in self.live.values()
                if piece.color == color and piece.type == PieceType.KING
            ),
            None,
        )

    # --- MUTATION ---
    def place(self, piece: Piece, expect_empty: bool = False) -> Optional[Piece]:
        """
        Put the piece on the board at its `position`. Returns whatever piece got overwritten.

        NOTE: Callers that need capture semantics should use `move_and_capture()`.
        """
        target = piece.position
        if not target.is_within_bounds():
            raise ValueError(f"Cannot place {piece.id} outside of the board: {target}")

        occupant = self.at(target)
        if occupant is not None and occupant.id != piece.id and expect_empty:
            raise OccupiedCellError(
                f"Cannot place {piece.id} on {target.to_iccs()}: occupied by {occupant.id}"
            )

        # Re-placing a live piece: vacate its previous cell first.
        # NOTE: look the cell up in the grid, `piece.position` may already hold the new coordinate.
        if piece.id in self.live:
            previous_cell = next(
                (coord for coord, other in self.grid.items() if other.id == piece.id), None
            )
            if previous_cell is not None:
                del self.grid[previous_cell]

        if occupant is not None and occupant.id != piece.id:
            self.live.pop(occupant.id, None)

        self.grid[target] = piece
        self.live[piece.id] = piece
        return occupant if occupant is not None and occupant.id != piece.id else None

    def remove(self, coord: Coordinate) -> Optional[Piece]:
        """Take the piece off the board (if any), and hand it to the caller."""
        piece = self.grid.pop(coord, None)
        if piece is not None:
            self.live.pop(piece.id, None)
        return piece

    def restore(self, piece: Piece) -> None:
        """Put a previously removed piece back (undo)."""
        self.place(piece, expect_empty=True)

    def move_and_capture(self, piece: Piece, destination: Coordinate) -> Optional[Piece]:
        """
        Vacate the origin, take off whatever stands on the destination, and move the piece there.

        NOTE: Legality is NOT checked here.
        """
        if self.live.get(piece.id) is not piece:
            raise ValueError(f"{piece.id} is not a live piece on this board")
        if not destination.is_within_bounds():
            raise ValueError(f"Cannot move {piece.id} outside of the board: {destination}")

        captured = self.remove(destination)
        self.grid.pop(piece.position, None)
        piece.move(destination.row, destination.col)
        self.grid[destination] = piece
        if captured is not None:
            logger.debug("%s captured %s on %s", piece.id, captured.id, destination.to_iccs())
        return captured

    def copy(self) -> Board:
        """Fully independent copy (the pieces get copied as well)"""
        return deepcopy(self)

    # --- CHECK DETECTION ---
    def kings_facing(self) -> bool:
        """
        Flying general: both generals on the same file without anything in between.
        """
        red_king = self.king(Color.RED)
        black_king = self.king(Color.BLACK)
        if red_king is None or black_king is None:
            return False
        if red_king.position.col != black_king.position.col:
            return False

        col = red_king.position.col
        low, high = sorted([red_king.position.row, black_king.position.row])
        return all(self.is_empty(Coordinate(row, col)) for row in range(low + 1, high))

    def is_under_attack(self, coord: Coordinate, by_color: Color) -> bool:
        """Can any piece of `by_color` move onto `coord` (ignoring whether that would expose its own general)?"""
        for attacker in self.pieces(by_color):
            if any(move.destination == coord for move in candidate_moves(attacker, self)):
                return True
        return False

    def is_check(self, color: Color) -> bool:
        """Is the general of the given color under attack?"""
        king = self.king(color)
        if king is None:
            return False
        if self.kings_facing():
            return True
        return self.is_under_attack(king.position, color.opponent)

    # --- MATERIAL ---
    def count_material(self) -> dict[Color, int]:
        """Tally the points of material each player has on the board"""
        return {color: self._count_material_player(color) for color in Color}

    def _count_material_player(self, color: Color) -> int:
        return sum(piece.points for piece in self.pieces(color))

    # --- DUNDER HELPERS ---
    def __eq__(self, other: object) -> bool:
        """Boards are equal when they hold the same kind of piece on every intersection (ids are not compared)."""
        if not isinstance(other, Board):
            return NotImplemented
        return self.to_fen() == other.to_fen()

    def __repr__(self) -> str:
        rows: list[str] = []
        for row in range(BOARD_DIMENSIONS[0]):
            cells = []
            for col in range(BOARD_DIMENSIONS[1]):
                piece = self.at(Coordinate(row, col))
                cells.append(piece.to_fen() if piece else ".")
            rows.append(f"{BOARD_DIMENSIONS[0] - 1 - row} {' '.join(cells)}")
        rows.append("  a b c d e f g h i")
        return "\n".join(rows)
