"""
Draw rules are a policy plugged into the Game, not a fixed part of the rules.

(Xiangqi tournaments use very different repetition / move-count rules, so the Game only asks
"is this a draw?" and the chosen policy answers.)
"""

from dataclasses import dataclass
from typing import Protocol

from xiangqi.engine.fen import FENState


class DrawPolicy(Protocol):
    """Decides, after every move, whether the game ended in a draw."""

    def is_draw(self, positions: list[str], state: FENState) -> bool:
        """
        `positions`: repetition keys of every position reached so far (oldest first, the current one last)
        `state`: the FEN state after the move
        """
        ...


class NoDrawPolicy:
    """Default: the game only ends by checkmate, stalemate, flag fall or resignation."""

    def is_draw(self, positions: list[str], state: FENState) -> bool:
        return False


@dataclass
class RepetitionDrawPolicy:
    """Draw as soon as the current position occurred `max_repetitions` times (same board and same side to move)"""

    max_repetitions: int = 3

    def is_draw(self, positions: list[str], state: FENState) -> bool:
        if not positions:
            return False
        return positions.count(positions[-1]) >= self.max_repetitions


@dataclass
class MoveCountDrawPolicy:
    """Draw when `limit` consecutive half-moves were played without a capture"""

    limit: int = 120

    def is_draw(self, positions: list[str], state: FENState) -> bool:
        return state.half_move_clock >= self.limit


@dataclass
class CombinedDrawPolicy:
    """A draw if any of the given policies says so"""

    policies: list[DrawPolicy]

    def is_draw(self, positions: list[str], state: FENState) -> bool:
        return any(policy.is_draw(positions, state) for policy in self.policies)
