"""
Game state for Time-Shift Tic-Tac-Toe.

GameState owns the append-only history of boards, the pointer to the position
in play, the one-rewind-per-player flags, the bonus-turn override and the
disabled cell. Illegal commands are rejected by returning None; they never
raise and never change state.

Turn order:
- The token due to move is the bonus override when one is active, otherwise
  the opponent of whoever produced the current position (X at the start).
- After a successful move the bonus roll is made with the injected random
  source. If it hits and the game is still open, the same token moves again.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from .game_basics import (
    EMPTY,
    EMPTY_BOARD,
    X,
    O,
    Board,
    apply_move,
    erased_cells,
    get_winner,
    is_draw,
    is_terminal,
    opponent,
    token_label,
)

IN_PROGRESS = "in_progress"
WON = "won"
DRAW = "draw"


@dataclass(frozen=True)
class GameStatus:
    kind: str
    token: int = EMPTY  # winner when WON, next mover when IN_PROGRESS

    @property
    def is_over(self) -> bool:
        return self.kind != IN_PROGRESS

    def describe(self) -> str:
        if self.kind == WON:
            return f"Winner: {token_label(self.token)}"
        if self.kind == DRAW:
            return "Draw!"
        return f"Next player: {token_label(self.token)}"


@dataclass(frozen=True)
class Snapshot:
    """Everything a front-end needs to draw one frame."""
    board: Board
    status: GameStatus
    disabled_cell: Optional[int]
    time_shift_available: Dict[int, bool]
    bonus_active: Optional[int]
    pointer: int
    history_length: int
    erased_cells: Tuple[int, ...] = field(default_factory=tuple)


class GameState:
    def __init__(
        self,
        rng: Optional[np.random.Generator] = None,
        bonus_probability: float = 0.1,
        disabled_cell_enabled: bool = True,
    ):
        self._rng = rng if rng is not None else np.random.default_rng()
        self.bonus_probability = bonus_probability
        self.disabled_cell_enabled = disabled_cell_enabled
        self._history: List[Board] = []
        self._movers: List[int] = []
        self._pointer = 0
        self._time_shift_used: Dict[int, bool] = {}
        self._bonus_override: Optional[int] = None
        self._disabled_cell: Optional[int] = None
        self.reset()

    # ---- read-only views ----

    @property
    def history(self) -> Tuple[Board, ...]:
        return tuple(self._history)

    @property
    def pointer(self) -> int:
        return self._pointer

    @property
    def board(self) -> Board:
        return self._history[self._pointer]

    @property
    def bonus_override(self) -> Optional[int]:
        return self._bonus_override

    @property
    def disabled_cell(self) -> Optional[int]:
        return self._disabled_cell

    @property
    def time_shift_used(self) -> Dict[int, bool]:
        return dict(self._time_shift_used)

    # ---- queries ----

    def current_token(self) -> int:
        if self._bonus_override is not None:
            return self._bonus_override
        last = self._movers[self._pointer]
        return X if last == EMPTY else opponent(last)

    def winner(self, board: Optional[Board] = None) -> int:
        return get_winner(self.board if board is None else board)

    def is_draw(self, board: Optional[Board] = None) -> bool:
        return is_draw(self.board if board is None else board)

    def status(self) -> GameStatus:
        w = self.winner()
        if w != EMPTY:
            return GameStatus(WON, w)
        if self.is_draw():
            return GameStatus(DRAW)
        return GameStatus(IN_PROGRESS, self.current_token())

    def snapshot(self, erased: Tuple[int, ...] = ()) -> Snapshot:
        return Snapshot(
            board=self.board,
            status=self.status(),
            disabled_cell=self._disabled_cell,
            time_shift_available={t: not used for t, used in self._time_shift_used.items()},
            bonus_active=self._bonus_override,
            pointer=self._pointer,
            history_length=len(self._history),
            erased_cells=tuple(erased),
        )

    # ---- transitions ----

    def play(self, cell: int, token: Optional[int] = None) -> Optional[Snapshot]:
        board = self.board
        if not 0 <= cell < 9:
            logging.debug("play rejected: cell %r out of range", cell)
            return None
        if is_terminal(board):
            logging.debug("play rejected: game is over")
            return None
        if cell == self._disabled_cell:
            logging.debug("play rejected: cell %d is disabled", cell)
            return None
        if board[cell] != EMPTY:
            logging.debug("play rejected: cell %d is occupied", cell)
            return None
        mover = self.current_token()
        if token is not None and token != mover:
            logging.debug("play rejected: %s is not due to move", token_label(token))
            return None

        nxt = apply_move(board, cell, mover)
        del self._history[self._pointer + 1:]
        del self._movers[self._pointer + 1:]
        self._history.append(nxt)
        self._movers.append(mover)
        self._pointer = len(self._history) - 1

        roll = self._rng.random()
        if roll < self.bonus_probability and not is_terminal(nxt):
            self._bonus_override = mover
            logging.info("Bonus turn for %s", token_label(mover))
        else:
            self._bonus_override = None
        return self.snapshot()

    def time_shift(self, steps_back: int) -> Optional[Snapshot]:
        if steps_back < 1:
            logging.debug("time_shift rejected: steps_back=%r", steps_back)
            return None
        if is_terminal(self.board):
            logging.debug("time_shift rejected: game is over")
            return None
        actor = self.current_token()
        if self._time_shift_used[actor]:
            logging.debug("time_shift rejected: %s already rewound this game", token_label(actor))
            return None

        target = max(0, self._pointer - steps_back)
        erased = erased_cells(self._history[self._pointer], self._history[target])
        del self._history[target + 1:]
        del self._movers[target + 1:]
        self._pointer = target
        self._time_shift_used[actor] = True
        self._bonus_override = None
        logging.info(
            "%s rewound %d step(s) to position %d, erased %s",
            token_label(actor), steps_back, target, erased,
        )
        return self.snapshot(erased=tuple(erased))

    def reset(self) -> Snapshot:
        self._history = [EMPTY_BOARD]
        self._movers = [EMPTY]
        self._pointer = 0
        self._time_shift_used = {X: False, O: False}
        self._bonus_override = None
        if self.disabled_cell_enabled:
            self._disabled_cell = int(self._rng.integers(0, 9))
        else:
            self._disabled_cell = None
        logging.debug("reset: disabled cell=%s", self._disabled_cell)
        return self.snapshot()
