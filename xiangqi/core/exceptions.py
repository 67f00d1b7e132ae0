"""
Custom exceptions shared by all layers.

Every error raised on purpose by the domain layer derives from `GameError`,
so the service (or whoever calls it) can catch a single type.
"""


class GameError(Exception):
    """Top-level error for anything that goes wrong while playing a game."""


class IllegalMoveError(GameError):
    """The destination is not in the set of legal moves for that piece."""


class NotYourTurnError(GameError):
    """A player (or a piece of a color) tried to move while it is the opponent's turn."""


class GameStateError(GameError):
    """The requested operation does not fit the current state of the game."""


class GameAlreadyOverError(GameStateError):
    """No more moves can be made: the game reached a terminal status."""


class NoMoveToUndoError(GameStateError):
    """Undo requested on a game without any move history."""


class MalformedBoardEncodingError(GameError):
    """A FEN-style encoding violates the rank/column/character rules. Rejected outright, never partially loaded."""


class OccupiedCellError(GameError):
    """Internal invariant guard: a piece was placed on a cell that was expected to be empty."""


class RepositoryError(GameError):
    """Record could not be found / stored by the persistence layer."""


class InvalidRequestError(GameError, ValueError):
    """
    Request data does not make sense.

    NOTE: also a ValueError, so pydantic turns it into a ValidationError when raised inside a validator.
    """
