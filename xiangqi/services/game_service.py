"""Orchestration of communication from API router to business logic and persistence layers (and the reverse direction)."""

import logging
from typing import Optional
from uuid import UUID

from xiangqi.api.models import (
    CreateGameRequest,
    DeleteGameRequest,
    GameResponse,
    GetGameRequest,
    JoinGameRequest,
    LegalMovesRequest,
    LegalMovesResponse,
    MoveRequest,
    ResignRequest,
    TimeForfeitRequest,
    UndoRequest,
)
from xiangqi.core.config import get_settings
from xiangqi.core.exceptions import GameStateError, RepositoryError
from xiangqi.core.models import GameModel
from xiangqi.db.repository import GameRepository
from xiangqi.engine.draw_rules import DrawPolicy, NoDrawPolicy, RepetitionDrawPolicy
from xiangqi.engine.game import Game

logger = logging.getLogger(__name__)


def default_draw_policy() -> DrawPolicy:
    """Draw by repetition only when XIANGQI_REPETITION_LIMIT is set"""
    limit = get_settings().repetition_limit
    if limit > 0:
        return RepetitionDrawPolicy(max_repetitions=limit)
    return NoDrawPolicy()


class XiangqiService:
    """Orchestration of layers for a xiangqi game."""

    def __init__(
        self, repository: GameRepository, draw_policy: Optional[DrawPolicy] = None
    ) -> None:
        self.repo = repository
        self.draw_policy = draw_policy or default_draw_policy()

    # -- API routes logic ---
    def create_new_game(self, request: CreateGameRequest) -> GameResponse:
        """First player requested to create a new game."""

        # Use info in CreateGameRequest to create a new Game, and convert into GameModel
        new_game = Game.new_game(
            player=request.player_name,
            color=request.color,
            starting_fen=request.starting_fen,
            draw_policy=self.draw_policy,
        )
        created_game_data = new_game.to_model()

        # Store the GameModel in the repository
        stored_game, game_id = self.repo.create_game(created_game_data)
        logger.info("%s created game %s playing %s", request.player_name, game_id, request.color)

        return self._create_game_response(game_id, stored_game)

    def join_game(self, request: JoinGameRequest) -> GameResponse:
        """Second player requested to join a game."""
        game = self._load_game(request.game_id)
        game.register_player(request.player_name)
        return self._store(request.game_id, game)

    def get_game_state(self, request: GetGameRequest) -> GameResponse:
        """
        Retrieve current game state.
        ----
        Used in "polling" loop by frontend to check when it is the player's turn for instance.
        """
        game_model = self._fetch_game(request.game_id)
        return self._create_game_response(request.game_id, game_model)

    def legal_moves(self, request: LegalMovesRequest) -> LegalMovesResponse:
        """retrieve set of legal moves."""
        game = self._load_game(request.game_id)

        legal_moves = game.legal_moves(request.player_name)
        return LegalMovesResponse(
            game_id=request.game_id,
            player_name=request.player_name,
            color=game.color_to_move,
            legal_moves=legal_moves,
        )

    def make_move(self, request: MoveRequest) -> GameResponse:
        """Make a move attempt."""
        game = self._load_game(request.game_id)
        game.make_move(request.move_iccs, request.player_name)
        return self._store(request.game_id, game)

    def undo_move(self, request: UndoRequest) -> GameResponse:
        """The player who made the last move takes it back."""
        game = self._load_game(request.game_id)
        entry = game.take_back(request.player_name)
        logger.info("%s took back %s in game %s", request.player_name, entry.move.to_iccs(), request.game_id)
        return self._store(request.game_id, game)

    def resign(self, request: ResignRequest) -> GameResponse:
        game = self._load_game(request.game_id)
        game.resign(request.player_name)
        return self._store(request.game_id, game)

    def report_time_forfeit(self, request: TimeForfeitRequest) -> GameResponse:
        """The clock of `request.color` ran out."""
        game = self._load_game(request.game_id)
        if request.color not in game.players:
            raise GameStateError(f"Nobody plays {request.color} in game {request.game_id}")
        game.declare_time_forfeit(request.color)
        return self._store(request.game_id, game)

    def delete_game(self, request: DeleteGameRequest) -> None:
        """Handle a request to delete a Game record."""
        deleted = self.repo.delete_game(request.game_id)
        if deleted is None:
            raise RepositoryError(f"Game with game_id={request.game_id} not found.")

    # -- Internal helpers --
    def _create_game_response(self, game_id: UUID, model: GameModel) -> GameResponse:
        """Convert info in GameModel to a GameResponse (for game with given ID.)"""
        return GameResponse(
            game_id=game_id,
            players=model.registered_players,
            fen_state=model.current_fen,
            starting_state=model.starting_fen,
            move_history=model.moves,
            status=model.status,
            winner=model.registered_players.get(model.winner) if model.winner else None,
        )

    def _fetch_game(self, game_id: UUID) -> GameModel:
        """Attempt to find the game in the repository and raise error if it fails."""
        game_model = self.repo.get_game(game_id)
        if game_model is None:
            raise RepositoryError(f"Game with {game_id=} not found.")
        return game_model

    def _load_game(self, game_id: UUID) -> Game:
        """Retrieve the persisted GameModel and rebuild the Game from it"""
        return Game.from_model(self._fetch_game(game_id), draw_policy=self.draw_policy)

    def _store(self, game_id: UUID, game: Game) -> GameResponse:
        """Capture the updated state in a GameModel, store it and answer with the new state"""
        updated = game.to_model()
        if self.repo.update_game(game_id, updated) is None:
            raise RepositoryError(f"Game with {game_id=} not found.")
        if game.is_over:
            logger.info("Game %s ended: %s", game_id, game.status)
        return self._create_game_response(game_id, updated)
