"""Unit tests for xiangqi/engine/pieces.py"""

import pytest

from xiangqi.core.exceptions import MalformedBoardEncodingError
from xiangqi.core.shared_types import Color, PieceType
from xiangqi.engine.coordinate import Coordinate
from xiangqi.engine.pieces import PIECE_TO_FEN, PIECE_VALUES, Piece, piece_value


@pytest.mark.parametrize(
    "character, piece_type, color",
    [
        ("K", PieceType.KING, Color.RED),
        ("a", PieceType.ADVISOR, Color.BLACK),
        ("B", PieceType.BISHOP, Color.RED),
        ("n", PieceType.KNIGHT, Color.BLACK),
        ("R", PieceType.ROOK, Color.RED),
        ("c", PieceType.CANNON, Color.BLACK),
        ("P", PieceType.PAWN, Color.RED),
    ],
)
def test_piece_from_fen(character: str, piece_type: PieceType, color: Color) -> None:
    """Upper case letters are Red, lower case letters Black"""
    piece = Piece.from_fen(character, "some-id", Coordinate(4, 4))
    assert piece.type == piece_type
    assert piece.color == color
    assert piece.id == "some-id"
    assert piece.position == Coordinate(4, 4)
    assert piece.to_fen() == character


@pytest.mark.parametrize("character", ["q", "x", "1", "H"])
def test_unknown_piece_letter(character: str) -> None:
    with pytest.raises(MalformedBoardEncodingError):
        _ = Piece.from_fen(character, "bad", Coordinate(0, 0))


def test_value_table_covers_every_type() -> None:
    assert set(PIECE_VALUES) == set(PieceType) == set(PIECE_TO_FEN)


@pytest.mark.parametrize(
    "piece_type, value",
    [
        (PieceType.KING, 10000),
        (PieceType.ROOK, 900),
        (PieceType.CANNON, 450),
        (PieceType.KNIGHT, 400),
        (PieceType.ADVISOR, 200),
        (PieceType.BISHOP, 200),
        (PieceType.PAWN, 100),
    ],
)
def test_piece_values(piece_type: PieceType, value: int) -> None:
    """Same weights for both colors"""
    assert piece_value(piece_type, Color.RED) == value
    assert piece_value(piece_type, Color.BLACK) == value


def test_points_follow_type() -> None:
    rook = Piece("red-rook-1", PieceType.ROOK, Color.RED, Coordinate(9, 0))
    assert rook.points == 900


def test_clone_is_independent() -> None:
    cannon = Piece.from_fen("C", "red-cannon-1", Coordinate(7, 1))
    snapshot = cannon.clone()
    assert snapshot == cannon
    assert snapshot is not cannon

    cannon.move(7, 4)
    assert cannon.position == Coordinate(7, 4)
    assert snapshot.position == Coordinate(7, 1)
