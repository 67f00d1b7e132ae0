"""
Storage contract of the service layer.

The service only talks to this Protocol; `SQLGameRepository` is the SQLAlchemy implementation and the tests use an in-memory dict.
Missing records are reported as `None`, deciding whether that is an error is up to the service.
"""

from typing import Protocol
from uuid import UUID

from xiangqi.core.models import GameModel


class GameRepository(Protocol):
    def get_game(self, game_id: UUID) -> GameModel | None:
        """The stored game (starting FEN + move records are enough to rebuild it), if there is a record."""
        ...

    def create_game(self, game: GameModel) -> tuple[GameModel, UUID]:
        """Persist a freshly created game, the repository hands out the id."""
        ...

    def update_game(self, game_id: UUID, game: GameModel) -> GameModel | None:
        """Replace the stored state after a join / move / undo / resignation."""
        ...

    def delete_game(self, game_id: UUID) -> GameModel | None:
        """Drop the record and return what was stored."""
        ...
