"""
Pytest will auto-discover / import this file called 'conftest.py'.
This file defines fixtures/variables required for testing multiple layers.
"""

from typing import Callable, Generator

import pytest
from sqlalchemy import StaticPool, create_engine
from sqlalchemy.orm import Session, sessionmaker

from xiangqi.db.schema import Base
from xiangqi.engine.board import Board
from xiangqi.engine.coordinate import Coordinate
from xiangqi.engine.pieces import Piece

# Setup an in-memory SQLite database for testing
DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autoflush=False, bind=engine)


@pytest.fixture
def db_session_repo() -> Generator[Session, None, None]:
    """Connection to a test database. Tables are removed at teardown to make unit tests of repository independent of each other."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        Base.metadata.drop_all(bind=engine)
        db.close()


class FakeClock:
    """Monotonic clock under control of the test: time only moves on `advance()`."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


BoardFactory = Callable[[dict[tuple[int, int], str]], Board]


@pytest.fixture
def make_board() -> BoardFactory:
    """
    Build a board from {(row, col): FEN letter}.

    Ids are "<letter>-<n>" (in insertion order), e.g. {(9, 4): "K"} gives a red king with id "K-0".
    """

    def _make_board(pieces: dict[tuple[int, int], str]) -> Board:
        board = Board()
        for n, ((row, col), character) in enumerate(pieces.items()):
            board.place(
                Piece.from_fen(character, f"{character}-{n}", Coordinate(row, col)),
                expect_empty=True,
            )
        return board

    return _make_board
