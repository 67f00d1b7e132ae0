"""
Legal move generation
----

Combines the movement rules (moves.py) with the one rule that needs a look ahead:
a move may never leave (or put) your own general in check. This includes moving a piece off the file
between both generals ("flying general").

Turn order is NOT checked here, that is the Game's job.
"""

from xiangqi.core.shared_types import Color
from xiangqi.engine.board import Board
from xiangqi.engine.coordinate import Coordinate
from xiangqi.engine.moves import Move, candidate_moves
from xiangqi.engine.pieces import Piece


def leaves_king_in_check(board: Board, move: Move) -> bool:
    """Return True if the move exposes the mover's general

    plan:
    1. Copy the board
    2. make the candidate move
    3. determine if the general is in check on the new board
    """
    mover = board.at(move.origin)
    assert mover is not None

    hypothetical = board.copy()
    moving_copy = hypothetical.at(move.origin)
    assert moving_copy is not None
    hypothetical.move_and_capture(moving_copy, move.destination)
    return hypothetical.is_check(mover.color)


def legal_moves_for_piece(board: Board, piece: Piece) -> list[Move]:
    return [
        move
        for move in candidate_moves(piece, board)
        if not leaves_king_in_check(board, move)
    ]


def legal_destinations(board: Board, piece: Piece) -> set[Coordinate]:
    """The set of intersections the piece may legally move to. Empty when there are none."""
    return {move.destination for move in legal_moves_for_piece(board, piece)}


def legal_moves(board: Board, color: Color) -> list[Move]:
    """
    List of legal moves for the player with the 'color' pieces
    ----

    1. generate candidate moves, using the basic movement rules for all pieces
    2. remove illegal options --> a move that would put you in check or you are in check and the move does not get you out of it.
    """
    moves: list[Move] = []
    for piece in board.pieces(color):
        moves.extend(legal_moves_for_piece(board, piece))
    return moves


def has_legal_move(board: Board, color: Color) -> bool:
    """Same as `bool(legal_moves(...))`, but stops at the first legal move found."""
    for piece in board.pieces(color):
        for move in candidate_moves(piece, board):
            if not leaves_king_in_check(board, move):
                return True
    return False


def is_under_attack(board: Board, coord: Coordinate, by_color: Color) -> bool:
    return board.is_under_attack(coord, by_color)
