"""
Batch self-play under the full rule set (bonus turns and the mystery square).

The automated token always plays `select_move`. The other side plays either
the same search ("minimax") or uniformly random playable cells ("random").
A single seeded numpy Generator drives bonus rolls, disabled-cell draws and
random moves, so a seed reproduces a whole batch.

A game can end "blocked": the disabled cell is the only empty one left, so
nobody can move and the board never becomes a draw by the usual rule.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import numpy as np

from .config import GameConfig
from .game_basics import X, O, legal_moves, opponent, token_label
from .game_state import WON, GameState
from .solver import select_move

STRATEGIES = ("minimax", "random")

# outcome codes for np.bincount
_X_WIN, _O_WIN, _DRAW, _BLOCKED = 0, 1, 2, 3


@dataclass
class SimulationSummary:
    games: int
    x_wins: int
    o_wins: int
    draws: int
    blocked: int
    bonus_turns: int
    mean_length: float

    def as_dict(self) -> Dict[str, float]:
        return {
            'games': self.games,
            'x_wins': self.x_wins,
            'o_wins': self.o_wins,
            'draws': self.draws,
            'blocked': self.blocked,
            'bonus_turns': self.bonus_turns,
            'mean_length': self.mean_length,
        }


def play_one_game(state: GameState, automated_token: int, opponent_strategy: str,
                  rng: np.random.Generator) -> Tuple[int, int, int]:
    """Play from a fresh reset to the end. Returns (outcome_code, plies, bonus_turns)."""
    state.reset()
    bonus_turns = 0
    while True:
        status = state.status()
        if status.is_over:
            if status.kind == WON:
                return (_X_WIN if status.token == X else _O_WIN), state.pointer, bonus_turns
            return _DRAW, state.pointer, bonus_turns
        token = status.token
        board = state.board
        moves = legal_moves(board, state.disabled_cell)
        if not moves:
            return _BLOCKED, state.pointer, bonus_turns
        if token == automated_token or opponent_strategy == "minimax":
            mv = select_move(board, state.disabled_cell, token)
        else:
            mv = int(rng.choice(moves))
        snap = state.play(mv, token=token)
        if snap is not None and snap.bonus_active is not None:
            bonus_turns += 1


def simulate_games(
    games: int,
    seed: Optional[int] = None,
    config: Optional[GameConfig] = None,
    opponent_strategy: str = "random",
) -> SimulationSummary:
    if games < 0:
        raise ValueError(f"games must be >= 0, got {games}")
    if opponent_strategy not in STRATEGIES:
        raise ValueError(f"Unknown strategy {opponent_strategy!r}; choose from {STRATEGIES}")
    cfg = config if config is not None else GameConfig()
    rng = np.random.default_rng(seed)
    state = GameState(
        rng=rng,
        bonus_probability=cfg.bonus_probability,
        disabled_cell_enabled=cfg.disabled_cell_enabled,
    )
    outcomes = np.zeros(games, dtype=np.int64)
    lengths = np.zeros(games, dtype=np.int64)
    bonus = np.zeros(games, dtype=np.int64)
    for g in range(games):
        outcomes[g], lengths[g], bonus[g] = play_one_game(
            state, cfg.automated_token, opponent_strategy, rng
        )
    counts = np.bincount(outcomes, minlength=4)
    summary = SimulationSummary(
        games=games,
        x_wins=int(counts[_X_WIN]),
        o_wins=int(counts[_O_WIN]),
        draws=int(counts[_DRAW]),
        blocked=int(counts[_BLOCKED]),
        bonus_turns=int(bonus.sum()),
        mean_length=float(lengths.mean()) if games else 0.0,
    )
    logging.info(
        "Simulated %d games (automated=%s vs %s): %s",
        games, token_label(cfg.automated_token), opponent_strategy, summary.as_dict(),
    )
    return summary


def automated_loss_rate(summary: SimulationSummary, automated_token: int = O) -> float:
    if summary.games == 0:
        return 0.0
    lost = summary.x_wins if opponent(automated_token) == X else summary.o_wins
    return lost / summary.games
