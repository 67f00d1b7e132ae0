"""Unit tests for xiangqi/engine/board.py"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from xiangqi.core.exceptions import MalformedBoardEncodingError, OccupiedCellError
from xiangqi.core.shared_types import Color, PieceType
from xiangqi.engine.board import (
    EMPTY_POSITION,
    STARTING_POSITION,
    Board,
    is_valid_position,
)
from xiangqi.engine.coordinate import Coordinate
from xiangqi.engine.pieces import Piece

if TYPE_CHECKING:
    from conftest import BoardFactory

KINGS_FACING = "4k4/9/9/9/9/9/9/9/9/4K4"


# -- ENCODING / DECODING ---
def test_starting_position_round_trip() -> None:
    board = Board.initial()
    assert board.to_fen() == STARTING_POSITION
    assert len(board.pieces()) == 32
    assert len(board.pieces(Color.RED)) == len(board.pieces(Color.BLACK)) == 16


@pytest.mark.parametrize(
    "position",
    [
        STARTING_POSITION,
        EMPTY_POSITION,
        KINGS_FACING,
        "3ak4/4a4/9/9/2b6/9/6C2/9/4A4/3AK4",
    ],
)
def test_decode_encode_is_identity(position: str) -> None:
    assert Board.from_fen(position).to_fen() == position


def test_piece_ids_are_deterministic() -> None:
    """ids are handed out in reading order: the first red rook is the one on a0"""
    board = Board.initial()
    assert board.at(Coordinate(9, 0)).id == "red-rook-1"
    assert board.at(Coordinate(9, 8)).id == "red-rook-2"
    assert board.at(Coordinate(2, 1)).id == "black-cannon-1"
    assert board.at(Coordinate(6, 8)).id == "red-pawn-5"
    assert board.piece_by_id("black-king-1").position == Coordinate(0, 4)

    # same encoding, same ids
    other = Board.initial()
    assert {piece.id for piece in board} == {piece.id for piece in other}


@pytest.mark.parametrize(
    "position",
    [
        "rnbakabnr/9/1c5c1/p1p1p1p1p/9/P1P1P1P1P/1C5C1/9/RNBAKABNR",  # 9 ranks
        "rnbakabnr/9/1c5c1/p1p1p1p1p/9/9/P1P1P1P1P/1C5C1/9/RNBAKABNR/9",  # 11 ranks
        "rnbakabnrr/9/1c5c1/p1p1p1p1p/9/9/P1P1P1P1P/1C5C1/9/RNBAKABNR",  # 10 columns
        "rnbakabn/9/1c5c1/p1p1p1p1p/9/9/P1P1P1P1P/1C5C1/9/RNBAKABNR",  # 8 columns
        "rnbqkbanr/9/1c5c1/p1p1p1p1p/9/9/P1P1P1P1P/1C5C1/9/RNBAKABNR",  # queen?
        "rnbakabnr/9/1c5c1/p1p1p1p1p/90/9/P1P1P1P1P/1C5C1/9/RNBAKABNR",  # digit zero
        "rnbakabnr/9/1c5c1/p1p1p1p1p/9/9/P1P1P1P1P/1C5C1/²²²²¹/RNBAKABNR",  # superscript digits
        "rnbakabnr/9/1c5c1/p1p1p1p1p/٩/9/P1P1P1P1P/1C5C1/9/RNBAKABNR",  # arabic-indic nine
        "",
    ],
)
def test_malformed_positions_are_rejected(position: str) -> None:
    assert not is_valid_position(position)
    with pytest.raises(MalformedBoardEncodingError):
        _ = Board.from_fen(position)


# -- OCCUPANCY ---
def test_at_is_never_out_of_range() -> None:
    board = Board.initial()
    assert board.at(Coordinate(-1, 4)) is None
    assert board.at(Coordinate(10, 4)) is None
    assert board.is_empty(Coordinate(4, 4))


def test_kings() -> None:
    board = Board.initial()
    assert board.king(Color.RED).position == Coordinate(9, 4)
    assert board.king(Color.BLACK).position == Coordinate(0, 4)
    assert Board.from_fen(EMPTY_POSITION).king(Color.RED) is None


def test_place_on_occupied_cell(make_board: BoardFactory) -> None:
    board = make_board({(9, 4): "K"})
    intruder = Piece.from_fen("R", "intruder", Coordinate(9, 4))
    with pytest.raises(OccupiedCellError):
        board.place(intruder, expect_empty=True)

    # without the guard the occupant is overwritten and handed back
    replaced = board.place(intruder)
    assert replaced is not None and replaced.id == "K-0"
    assert board.piece_by_id("K-0") is None
    assert board.at(Coordinate(9, 4)) is intruder


def test_place_outside_of_board() -> None:
    board = Board()
    with pytest.raises(ValueError):
        board.place(Piece.from_fen("P", "lost", Coordinate(10, 0)))


def test_replace_moved_piece(make_board: BoardFactory) -> None:
    """A live piece whose position was changed directly occupies only its new cell once placed again"""
    board = make_board({(9, 4): "K", (0, 4): "k"})
    king = board.piece_by_id("K-0")
    king.move(8, 4)

    assert board.place(king) is None
    assert [coord for coord, piece in board.grid.items() if piece is king] == [Coordinate(8, 4)]
    assert board.is_empty(Coordinate(9, 4))
    assert board.at(Coordinate(8, 4)) is king
    assert len(board.grid) == len(board.live) == 2


def test_move_and_capture(make_board: BoardFactory) -> None:
    board = make_board({(9, 0): "R", (0, 0): "r"})
    rook = board.piece_by_id("R-0")

    captured = board.move_and_capture(rook, Coordinate(0, 0))

    assert captured is not None and captured.id == "r-1"
    assert board.piece_by_id("r-1") is None
    assert board.at(Coordinate(0, 0)) is rook
    assert board.is_empty(Coordinate(9, 0))
    assert rook.position == Coordinate(0, 0)


def test_move_and_capture_to_empty_cell(make_board: BoardFactory) -> None:
    board = make_board({(9, 0): "R"})
    rook = board.piece_by_id("R-0")
    assert board.move_and_capture(rook, Coordinate(5, 0)) is None
    assert board.to_fen() == "9/9/9/9/9/R8/9/9/9/9"


def test_move_requires_live_piece(make_board: BoardFactory) -> None:
    board = make_board({(9, 0): "R"})
    stranger = Piece.from_fen("R", "R-0", Coordinate(9, 0))
    with pytest.raises(ValueError):
        board.move_and_capture(stranger, Coordinate(5, 0))
    with pytest.raises(ValueError):
        board.move_and_capture(board.piece_by_id("R-0"), Coordinate(5, 9))


def test_remove_and_restore(make_board: BoardFactory) -> None:
    board = make_board({(3, 3): "n"})
    knight = board.remove(Coordinate(3, 3))
    assert knight is not None
    assert board.piece_by_id("n-0") is None
    assert board.remove(Coordinate(3, 3)) is None

    board.restore(knight)
    assert board.at(Coordinate(3, 3)) is knight


def test_copy_is_independent() -> None:
    board = Board.initial()
    copied = board.copy()
    rook = copied.piece_by_id("red-rook-1")
    copied.move_and_capture(rook, Coordinate(7, 0))

    assert board.to_fen() == STARTING_POSITION
    assert board.piece_by_id("red-rook-1").position == Coordinate(9, 0)
    assert copied != board


def test_boards_compare_by_occupancy(make_board: BoardFactory) -> None:
    """The same pieces on the same intersections: ids do not matter"""
    assert make_board({(9, 4): "K", (0, 4): "k"}) == Board.from_fen(KINGS_FACING)


# -- CHECK DETECTION ---
def test_flying_general() -> None:
    board = Board.from_fen(KINGS_FACING)
    assert board.kings_facing()
    assert board.is_check(Color.RED)
    assert board.is_check(Color.BLACK)


def test_screened_generals_are_not_in_check() -> None:
    board = Board.from_fen("4k4/9/9/9/4p4/9/9/9/9/4K4")
    assert not board.kings_facing()
    assert not board.is_check(Color.RED)


def test_rook_gives_check(make_board: BoardFactory) -> None:
    board = make_board({(9, 4): "K", (0, 3): "k", (5, 4): "r"})
    assert board.is_check(Color.RED)
    assert not board.is_check(Color.BLACK)
    assert board.is_under_attack(Coordinate(9, 4), Color.BLACK)


def test_cannon_needs_a_screen_to_give_check(make_board: BoardFactory) -> None:
    board = make_board({(9, 4): "K", (0, 3): "k", (2, 4): "c"})
    assert not board.is_check(Color.RED)

    board.place(Piece.from_fen("P", "screen", Coordinate(6, 4)))
    assert board.is_check(Color.RED)


def test_starting_position_no_check() -> None:
    board = Board.initial()
    assert not board.is_check(Color.RED)
    assert not board.is_check(Color.BLACK)


# -- MATERIAL ---
def test_count_material() -> None:
    material = Board.initial().count_material()
    # king + 2 x (rook, cannon, knight, advisor, bishop) + 5 pawns
    expected = 10000 + 2 * (900 + 450 + 400 + 200 + 200) + 5 * 100
    assert material == {Color.RED: expected, Color.BLACK: expected}


def test_pieces_in_reading_order() -> None:
    types = [piece.type for piece in Board.initial().pieces(Color.BLACK)][:9]
    assert types == [
        PieceType.ROOK,
        PieceType.KNIGHT,
        PieceType.BISHOP,
        PieceType.ADVISOR,
        PieceType.KING,
        PieceType.ADVISOR,
        PieceType.BISHOP,
        PieceType.KNIGHT,
        PieceType.ROOK,
    ]
