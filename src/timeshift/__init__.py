"""timeshift package.

Tic-tac-toe with three twists: a minimax opponent that plays around a
randomly blocked square, a once-per-player time-shift rewind, and random
bonus turns.

Convenience imports are exposed for common workflows.
"""

from .config import GameConfig
from .game_state import GameState, GameStatus, Snapshot
from .session import GameSession
from .solver import score_moves, select_move

__all__ = [
    "GameConfig",
    "GameState",
    "GameStatus",
    "Snapshot",
    "GameSession",
    "select_move",
    "score_moves",
]
