"""
The Game class is the entrypoint into the domain layer for the service layer.
It orchestrates everything needed to play a turn: whose turn it is, which moves are legal, the history needed to undo a move,
and whether the game has ended --> the service layer persists the result and passes it on to the API layer.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional, Self

from xiangqi.core.exceptions import (
    GameAlreadyOverError,
    GameStateError,
    IllegalMoveError,
    NoMoveToUndoError,
    NotYourTurnError,
)
from xiangqi.core.models import GameModel, MoveRecord
from xiangqi.core.shared_types import TERMINAL_STATUSES, Color, Status
from xiangqi.engine.board import Board
from xiangqi.engine.coordinate import Coordinate
from xiangqi.engine.draw_rules import DrawPolicy, NoDrawPolicy
from xiangqi.engine.fen import FENState
from xiangqi.engine.match_clock import MatchClock
from xiangqi.engine.move_generator import has_legal_move
from xiangqi.engine.move_generator import legal_destinations as piece_destinations
from xiangqi.engine.move_generator import legal_moves_for_piece
from xiangqi.engine.moves import HistoryEntry, Move, is_valid_iccs_move

logger = logging.getLogger(__name__)

# Statuses in which the side to move may still move
PLAYABLE_STATUSES: frozenset[Status] = frozenset({Status.IN_PROGRESS, Status.CHECK})

# After these endings a move can still be taken back. Resigning or losing on time cannot be undone.
UNDOABLE_STATUSES: frozenset[Status] = PLAYABLE_STATUSES | {
    Status.CHECKMATE,
    Status.STALEMATE,
    Status.DRAW,
}


@dataclass
class Game:
    # --- DOMAIN LAYER API CALLED BY SERVICE---

    board: Board
    state: FENState
    starting_fen: str
    history: list[HistoryEntry] = field(default_factory=list)
    fen_history: list[str] = field(default_factory=list)  # FEN before every move in `history`
    players: dict[Color, str] = field(default_factory=dict)
    status: Status = Status.IN_PROGRESS
    winner_color: Optional[Color] = None
    draw_policy: DrawPolicy = field(default_factory=NoDrawPolicy)
    clock: Optional[MatchClock] = None

    @classmethod
    def from_fen(
        cls,
        fen: Optional[str] = None,
        draw_policy: Optional[DrawPolicy] = None,
        clock: Optional[MatchClock] = None,
    ) -> Self:
        """
        A game without registered players, ready to be played from the given position (default: the standard opening).

        The status is computed right away, so a position that is already mate is reported as such.
        """
        state = FENState.from_fen(fen) if fen else FENState.starting_position()
        game = cls(
            board=Board.from_fen(state.position),
            state=state,
            starting_fen=state.to_fen(),
            draw_policy=draw_policy or NoDrawPolicy(),
        )
        game._update_game_status()
        if clock is not None:
            game.attach_clock(clock)
        return game

    @classmethod
    def new_game(
        cls,
        player: str,
        color: str,
        starting_fen: Optional[str] = None,
        draw_policy: Optional[DrawPolicy] = None,
    ) -> Self:
        """To start a new game with the player using the pieces with the indicated color."""
        if color.lower() not in Color.__members__.values():
            raise GameStateError(
                f"Cannot create new game. Color {color} not in {','.join(Color)}."
            )

        game = cls.from_fen(starting_fen, draw_policy=draw_policy)
        game.players = {Color(color.lower()): player}
        game.status = Status.WAITING_FOR_PLAYERS
        return game

    @classmethod
    def from_model(cls, model: GameModel, draw_policy: Optional[DrawPolicy] = None) -> Self:
        """
        Define how to construct a Game from the information the Service layer actually has
        ----

        The board is rebuilt by replaying the move records on the starting position (so the piece ids and the
        captured pieces needed for undo come back as well). The replayed position must match `current_fen`.
        """

        # Validation
        if model.status not in Status.__members__.values():
            raise GameStateError(
                f"Invalid status code: {model.status!r}. \nPick one from {','.join(Status)}"
            )
        if model.winner is not None and model.winner not in Color.__members__.values():
            raise GameStateError(f"Invalid winner: {model.winner!r}")

        # replay
        game = cls.from_fen(model.starting_fen, draw_policy=draw_policy)
        for record in model.moves:
            game._replay(record)

        current_state = FENState.from_fen(model.current_fen)
        if game.state.repetition_key() != current_state.repetition_key():
            raise GameStateError(
                f"Move records lead to {game.state.to_fen()!r}, but the stored position is {model.current_fen!r}"
            )

        game.players = {
            Color(color): name for color, name in model.registered_players.items()
        }
        game.status = Status(model.status)
        game.winner_color = Color(model.winner) if model.winner else None
        return game

    def to_model(self) -> GameModel:
        """Encode back into a format the Service layer uses"""

        return GameModel(
            starting_fen=self.starting_fen,
            current_fen=self.state.to_fen(),
            moves=self.move_records(),
            registered_players={str(color): name for color, name in self.players.items()},
            status=str(self.status),
            winner=str(self.winner_color) if self.winner_color else None,
        )

    def attach_clock(self, clock: MatchClock) -> None:
        """Play with a clock. It starts running for the side to move, unless the game is not (yet) being played."""
        self.clock = clock
        clock.start_new_game(self.state.color_to_move)
        if self.status not in PLAYABLE_STATUSES:
            clock.pause_all()

    @property
    def winner(self) -> Optional[str]:
        """Name of the player who won (None while playing, on a draw, or when nobody registered for that color)"""
        if self.winner_color is None:
            return None
        return self.players.get(self.winner_color)

    @property
    def color_to_move(self) -> Color:
        return self.state.color_to_move

    @property
    def is_over(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def register_player(self, player: str) -> None:
        """Registering the 2nd player to an open game"""
        if self.status != Status.WAITING_FOR_PLAYERS:
            raise GameStateError(
                f"Cannot join this game. Game is not accepting new players. status: {self.status}"
            )

        opponent_color = next(iter(self.players))
        self.players[opponent_color.opponent] = player
        self._update_game_status()
        logger.info("%s joined as %s, %s to move", player, opponent_color.opponent, self.color_to_move)

        if self.clock is not None:
            self.clock.start_new_game(self.color_to_move)

    def legal_moves(self, player: str) -> list[str]:
        """
        Service will request the set of legal moves.
        ----

        These can be used to display to the user (ICCS strings, e.g. "h2e2").

        ----
        1. Check if the game is being played and if it is your turn
        2. Yes? Generate legal moves and return a list of moves.
        """
        self._assert_playable()
        self._assert_your_turn(player)
        return [move.to_iccs() for move in self._generate_legal_moves(self.color_to_move)]

    def legal_destinations(self, piece_id: str) -> set[Coordinate]:
        """Where may this piece go (empty set for an unknown or captured piece)"""
        piece = self.board.piece_by_id(piece_id)
        if piece is None:
            return set()
        return piece_destinations(self.board, piece)

    def make_move(self, move_iccs: str, player: str) -> None:
        """
        Attempt to make a move on behalf of a registered player
        -----

        1. the game must be in progress and it must be your turn
        2. find your piece on the origin
        3. the rest is done by apply_move
        """
        self._assert_playable()
        self._assert_your_turn(player)

        if not is_valid_iccs_move(move_iccs):
            raise IllegalMoveError(f"Cannot interpret {move_iccs!r} as a move")

        move = Move.from_iccs(move_iccs)
        piece = self.board.at(move.origin)
        if piece is None:
            raise IllegalMoveError(f"There is no piece on {move.origin.to_iccs()}")

        self.apply_move(piece.id, move.destination)

    def apply_move(self, piece_id: str, destination: Coordinate) -> HistoryEntry:
        """
        Apply a move of the piece with the given id
        -----

        1. the game must still be in progress (and no flag may have fallen)
        2. the piece must belong to the side to move
        3. the destination must be one of its legal destinations
        4. update the FEN history (with the FEN before the move)
        5. update the board and the (history of) moves
        6. update the FEN state, game status and clock
        """
        self._assert_playable()

        piece = self.board.piece_by_id(piece_id)
        if piece is None:
            raise IllegalMoveError(f"No live piece with id {piece_id!r}")

        if piece.color != self.color_to_move:
            raise NotYourTurnError(
                f"It is not {piece.color}'s turn. Waiting for {self.color_to_move} to make a move first."
            )

        if destination not in piece_destinations(self.board, piece):
            raise IllegalMoveError(
                f"Move not allowed: {piece_id} to {destination.to_iccs() if destination.is_within_bounds() else destination}"
            )

        self.fen_history.append(self.state.to_fen())

        origin = piece.position
        captured = self.board.move_and_capture(piece, destination)
        entry = HistoryEntry(
            piece_id=piece.id,
            origin=origin,
            destination=destination,
            captured=captured.clone() if captured else None,
        )
        self.history.append(entry)

        self._update_fen_state(captured_piece=captured is not None)
        self._update_game_status()
        self._update_clock()

        logger.debug("%s: %s (%s)", piece.color, entry.move.to_iccs(), self.status)
        if self.is_over:
            logger.info("Game over after %d moves: %s", len(self.history), self.status)
        return entry

    def undo(self) -> HistoryEntry:
        """
        Take back the last move
        ----

        The moved piece goes back to its origin and a captured piece is put back on the board.
        Side to move, move counters and status are those from before the move.
        """
        if not self.history:
            raise NoMoveToUndoError("There is no move to undo")
        if self.status not in UNDOABLE_STATUSES:
            raise GameAlreadyOverError(f"Cannot undo a move once the game ended by {self.status}")

        entry = self.history.pop()
        piece = self.board.piece_by_id(entry.piece_id)
        assert piece is not None
        self.board.move_and_capture(piece, entry.origin)
        if entry.captured is not None:
            self.board.restore(entry.captured.clone())

        self.state = FENState.from_fen(self.fen_history.pop())
        self.winner_color = None
        self._update_game_status()

        if self.clock is not None:
            self.clock.hand_over(self.color_to_move)

        logger.debug("Took back %s", entry.move.to_iccs())
        return entry

    def take_back(self, player: str) -> HistoryEntry:
        """A player takes back their own last move (not the opponent's)"""
        color = self._get_player_color(player)
        if self.history and color == self.color_to_move:
            raise NotYourTurnError(
                f"The last move was made by {color.opponent}. Only that player can take it back."
            )
        return self.undo()

    def resign(self, player: str) -> None:
        """The player gives up: the opponent wins"""
        self._assert_not_over()
        color = self._get_player_color(player)
        self._end_game(Status.RESIGNED, winner=color.opponent)

    def declare_time_forfeit(self, color: Color) -> None:
        """The flag of `color` fell: the opponent wins"""
        self._assert_not_over()
        self._end_game(Status.TIME_FORFEIT, winner=color.opponent)

    def check_clock(self) -> bool:
        """Poll the attached clock. Returns True when a flag fell (the game is then lost on time)."""
        if self.clock is None or self.is_over:
            return False
        expired = self.clock.expired_color()
        if expired is None:
            return False
        self.declare_time_forfeit(expired)
        return True

    def move_records(self) -> list[MoveRecord]:
        """The history in the format used for persistence/replay"""
        return [entry.to_record() for entry in self.history]

    def positions(self) -> list[str]:
        """Repetition keys of every position reached so far, the current one last"""
        keys = [FENState.from_fen(fen).repetition_key() for fen in self.fen_history]
        keys.append(self.state.repetition_key())
        return keys

    # -- PRIVATE HELPERS ---
    def _get_turn_player(self) -> Optional[str]:
        return self.players.get(self.color_to_move)

    def _get_player_color(self, player: str) -> Color:
        color = next((color for color, name in self.players.items() if name == player), None)
        if color is None:
            raise GameStateError(f"{player} is not playing in this game")
        return color

    def _assert_your_turn(self, player: str) -> None:
        """You must wait for your turn before calculating legal moves / making a move."""
        player_to_move = self._get_turn_player()
        if player != player_to_move:
            raise NotYourTurnError(
                f"It is not your turn. Waiting for player {player_to_move} to make a move first."
            )

    def _assert_not_over(self) -> None:
        if self.is_over:
            raise GameAlreadyOverError(f"The game is over. status: {self.status}")

    def _assert_playable(self) -> None:
        """No moves once the game ended, nor before both players joined. A fallen flag ends the game first."""
        if self.check_clock():
            raise GameAlreadyOverError(f"Lost on time, {self.winner_color} wins")
        self._assert_not_over()
        if self.status == Status.WAITING_FOR_PLAYERS:
            raise GameStateError(f"Game is not in progress. status: {self.status}")

    def _generate_legal_moves(self, color: Color) -> list[Move]:
        moves: list[Move] = []
        for piece in self.board.pieces(color):
            moves.extend(legal_moves_for_piece(self.board, piece))
        return moves

    def _replay(self, record: MoveRecord) -> None:
        """Apply one stored move record. The record has to be consistent with the replayed position."""
        try:
            origin = Coordinate.from_dict(record["from"])
            destination = Coordinate.from_dict(record["to"])
            piece_id = record["pieceId"]
        except (KeyError, TypeError, ValueError) as exc:
            raise GameStateError(f"Malformed move record: {record!r}") from exc

        piece = self.board.piece_by_id(piece_id)
        if piece is None or piece.position != origin:
            raise GameStateError(f"Move record does not fit the position: {record!r}")

        # replaying ignores how the game ended, e.g. a resignation after the last move
        try:
            entry = self.apply_move(piece_id, destination)
        except (IllegalMoveError, NotYourTurnError, GameStateError) as exc:
            raise GameStateError(f"Cannot replay move record {record!r}: {exc}") from exc

        captured_id = entry.captured.id if entry.captured else None
        if captured_id != record.get("captured"):
            raise GameStateError(f"Move record does not fit the position: {record!r}")

    def _update_fen_state(self, captured_piece: bool) -> None:
        """Create/update the FEN state to reflect the state after the move.
        NOTE the board has already been updated
        """
        mover = self.color_to_move
        self.state.position = self.board.to_fen()

        # move counters
        if captured_piece:
            self.state.half_move_clock = 0
        else:
            self.state.half_move_clock += 1

        if mover == Color.BLACK:
            self.state.num_turns += 1

        self.state.color_to_move = mover.opponent

    def _update_game_status(self) -> None:
        """Performs checks to see if game has ended and changes status accordingly.

        NOTE the FEN state has already been updated. The side to move is the one that has to answer the last move.
        """
        color = self.color_to_move
        in_check = self.board.is_check(color)

        if not has_legal_move(self.board, color):
            # in xiangqi a stalemated side loses as well
            self._change_status(Status.CHECKMATE if in_check else Status.STALEMATE)
            self.winner_color = color.opponent
            return

        self.winner_color = None
        if self.draw_policy.is_draw(self.positions(), self.state):
            self._change_status(Status.DRAW)
        elif in_check:
            self._change_status(Status.CHECK)
        else:
            self._change_status(Status.IN_PROGRESS)

    def _update_clock(self) -> None:
        if self.clock is None:
            return
        if self.is_over:
            self.clock.pause_all()
        else:
            self.clock.switch_player(self.color_to_move)

    def _end_game(self, status: Status, winner: Optional[Color]) -> None:
        self._change_status(status)
        self.winner_color = winner
        if self.clock is not None:
            self.clock.pause_all()
        logger.info("Game over: %s, %s wins", status, winner)

    def _change_status(self, new_status: Status) -> None:
        self.status = new_status

