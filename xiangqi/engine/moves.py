"""
Geometry/Base movement and capturing rules of the seven xiangqi piece types

Key idea: Use strategy pattern to define candidate move sets for each piece type.


Whether a candidate leaves your own general in check is decided later (see move_generator.py)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional, Protocol

from xiangqi.core.shared_types import Color, PieceType
from xiangqi.engine.coordinate import Coordinate, is_valid_iccs
from xiangqi.engine.pieces import Piece


class Board(Protocol):
    """Just the parts the movement strategies need"""

    def at(self, coord: Coordinate) -> Optional[Piece]: ...


Vector = tuple[int, int]

ORTHOGONAL: list[Vector] = [(1, 0), (-1, 0), (0, 1), (0, -1)]
DIAGONAL: list[Vector] = [(1, 1), (1, -1), (-1, 1), (-1, -1)]


def is_valid_iccs_move(iccs: str) -> bool:
    return len(iccs) == 4 and is_valid_iccs(iccs[:2]) and is_valid_iccs(iccs[2:])


@dataclass(frozen=True)
class Move:
    """basic definition of a move to be made"""

    origin: Coordinate
    destination: Coordinate

    @classmethod
    def from_iccs(cls, iccs: str) -> Move:
        """
        ICCS notation: <origin><destination>, both as a file letter + rank digit

        example:
        * "h2e2": the (red) cannon on h2 moves to the central file
        * "h9g7": the (black) knight on h9 jumps to g7
        """
        return cls(Coordinate.from_iccs(iccs[:2]), Coordinate.from_iccs(iccs[2:4]))

    def to_iccs(self) -> str:
        return f"{self.origin.to_iccs()}{self.destination.to_iccs()}"


@dataclass(frozen=True)
class HistoryEntry:
    """
    Snapshot of an applied move: enough to undo or replay it.

    NOTE: `captured` is a copy of the piece taken off the board, never the live object.
    """

    piece_id: str
    origin: Coordinate
    destination: Coordinate
    captured: Optional[Piece] = None

    @property
    def move(self) -> Move:
        return Move(self.origin, self.destination)

    def to_record(self) -> dict[str, Any]:
        """Persistence/replay format"""
        return {
            "pieceId": self.piece_id,
            "from": self.origin.to_dict(),
            "to": self.destination.to_dict(),
            "captured": self.captured.id if self.captured else None,
        }


# --- MOVEMENT RULES ---
def _is_available(target: Coordinate, color: Color, board: Board) -> bool:
    """On the board and not occupied by a piece of your own."""
    if not target.is_within_bounds():
        return False
    occupant = board.at(target)
    return occupant is None or occupant.color != color


def raycasting_move(square: Coordinate, board: Board, directions: list[Vector]) -> list[Move]:
    """
    Raycasting algorithm
    -----

    ---
    Walk along every direction until we hit another piece or the edge of the board.
    The first occupied intersection is included only if it holds an opponent's piece (capture).
    """
    mover = board.at(square)
    assert mover is not None

    moves: list[Move] = []
    for d_row, d_col in directions:
        target = square.offset(d_row, d_col)
        while target.is_within_bounds():
            occupant = board.at(target)
            if occupant is not None:
                if occupant.color != mover.color:
                    moves.append(Move(square, target))
                break
            moves.append(Move(square, target))
            target = target.offset(d_row, d_col)
    return moves


def single_step_move(square: Coordinate, board: Board, deltas: list[Vector]) -> list[Move]:
    """Raycasting is for sliding pieces. This is the equivalent for pieces that make one (fixed-size) step"""
    mover = board.at(square)
    assert mover is not None

    moves: list[Move] = []
    for d_row, d_col in deltas:
        target = square.offset(d_row, d_col)
        if _is_available(target, mover.color, board):
            moves.append(Move(square, target))
    return moves


def candidate_king_moves(square: Coordinate, board: Board) -> list[Move]:
    """
    The general moves one step orthogonally and never leaves its palace.

    NOTE: "Flying general" (two generals facing each other on an open file) is not a move; it is part of check detection.
    """
    king = board.at(square)
    assert king is not None
    return [
        move
        for move in single_step_move(square, board, ORTHOGONAL)
        if move.destination.in_palace(king.color)
    ]


def candidate_advisor_moves(square: Coordinate, board: Board) -> list[Move]:
    """Advisors move one step diagonally, within the palace"""
    advisor = board.at(square)
    assert advisor is not None
    return [
        move
        for move in single_step_move(square, board, DIAGONAL)
        if move.destination.in_palace(advisor.color)
    ]


def candidate_bishop_moves(square: Coordinate, board: Board) -> list[Move]:
    """
    Bishops (elephants) move exactly two steps diagonally:
    - blocked when the midpoint (the elephant's "eye") is occupied
    - never cross the river
    """
    bishop = board.at(square)
    assert bishop is not None

    moves: list[Move] = []
    for d_row, d_col in DIAGONAL:
        eye = square.offset(d_row, d_col)
        target = square.offset(2 * d_row, 2 * d_col)
        if not _is_available(target, bishop.color, board):
            continue
        if not target.on_own_side(bishop.color):
            continue
        if board.at(eye) is not None:
            continue
        moves.append(Move(square, target))
    return moves


# (leg, jump): the leg is the orthogonal neighbour along the longer axis of the jump
KNIGHT_JUMPS: list[tuple[Vector, Vector]] = [
    ((1, 0), (2, 1)),
    ((1, 0), (2, -1)),
    ((-1, 0), (-2, 1)),
    ((-1, 0), (-2, -1)),
    ((0, 1), (1, 2)),
    ((0, 1), (-1, 2)),
    ((0, -1), (1, -2)),
    ((0, -1), (-1, -2)),
]


def candidate_knight_moves(square: Coordinate, board: Board) -> list[Move]:
    """Knights (horses) jump |delta_row| + |delta_col| = 3, but get 'hobbled' by a piece on the leg square"""
    knight = board.at(square)
    assert knight is not None

    moves: list[Move] = []
    for leg, jump in KNIGHT_JUMPS:
        target = square.offset(*jump)
        if not _is_available(target, knight.color, board):
            continue
        if board.at(square.offset(*leg)) is not None:
            continue
        moves.append(Move(square, target))
    return moves


def candidate_rook_moves(square: Coordinate, board: Board) -> list[Move]:
    """Rooks (chariots) move either along the rank or the file"""
    return raycasting_move(square, board, ORTHOGONAL)


def candidate_cannon_moves(square: Coordinate, board: Board) -> list[Move]:
    """
    Cannons move like a rook, but capture by jumping over exactly one piece (the 'screen', of either color).

    ---
    Per direction:
    1. empty intersections up to the first piece are plain moves
    2. the first piece found is the screen
    3. the next piece behind the screen can be taken, if it is an opponent's piece
    """
    cannon = board.at(square)
    assert cannon is not None

    moves: list[Move] = []
    for d_row, d_col in ORTHOGONAL:
        target = square.offset(d_row, d_col)
        screen_found = False
        while target.is_within_bounds():
            occupant = board.at(target)
            if not screen_found:
                if occupant is None:
                    moves.append(Move(square, target))
                else:
                    screen_found = True
            elif occupant is not None:
                if occupant.color != cannon.color:
                    moves.append(Move(square, target))
                break
            target = target.offset(d_row, d_col)
    return moves


def pawn_direction(color: Color) -> int:
    """Red advances up the board (towards row 0), Black advances down."""
    return -1 if color == Color.RED else 1


def candidate_pawn_moves(square: Coordinate, board: Board) -> list[Move]:
    """
    A pawn (soldier):
    - moves one step forward
    - once it crossed the river, may also step sideways
    - never moves backward
    """
    pawn = board.at(square)
    assert pawn is not None

    deltas: list[Vector] = [(pawn_direction(pawn.color), 0)]
    if not square.on_own_side(pawn.color):
        deltas.extend([(0, 1), (0, -1)])
    return single_step_move(square, board, deltas)


# -- STRATEGY PATTERN: MOVEMENT RULES ---
CandidateMovesFn = Callable[[Coordinate, Board], list[Move]]
MOVEMENT_RULES: dict[PieceType, CandidateMovesFn] = {
    PieceType.KING: candidate_king_moves,
    PieceType.ADVISOR: candidate_advisor_moves,
    PieceType.BISHOP: candidate_bishop_moves,
    PieceType.KNIGHT: candidate_knight_moves,
    PieceType.ROOK: candidate_rook_moves,
    PieceType.CANNON: candidate_cannon_moves,
    PieceType.PAWN: candidate_pawn_moves,
}


def candidate_moves(piece: Piece, board: Board) -> list[Move]:
    """Movement geometry only: legal w.r.t. the piece rules, possibly leaving your own general in check."""
    return MOVEMENT_RULES[piece.type](piece.position, board)
