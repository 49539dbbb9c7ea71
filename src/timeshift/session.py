"""
Session orchestration: the glue between a front-end and the engine.

A front-end forwards commands (cell activated, rewind requested, reset) and
draws whatever Snapshot comes back. The session decides when the automated
opponent is due, schedules its move after a short delay, and throws that move
away if anything else changes the game first.

The session is single-threaded. Nothing runs by itself: the front-end calls
`tick()` from its event loop (or `run_automated_moves()` when it does not care
about thinking time) and a due move is applied then.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

import numpy as np

from .config import GameConfig
from .game_state import GameState, Snapshot
from .game_basics import token_label
from .solver import select_move


@dataclass(frozen=True)
class PendingMove:
    due_at: float
    generation: int


class GameSession:
    def __init__(
        self,
        config: Optional[GameConfig] = None,
        rng: Optional[np.random.Generator] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config if config is not None else GameConfig()
        self._clock = clock
        # toggles; both take effect at the next reset
        self.automated_opponent_enabled = self.config.automated_opponent_enabled
        self.disabled_cell_feature_enabled = self.config.disabled_cell_enabled
        self._automated_active = self.automated_opponent_enabled
        self.state = GameState(
            rng=rng,
            bonus_probability=self.config.bonus_probability,
            disabled_cell_enabled=self.disabled_cell_feature_enabled,
        )
        self._generation = 0
        self._pending: Optional[PendingMove] = None
        self._erased: Tuple[int, ...] = ()
        self._erased_until = 0.0
        self._schedule_if_due()

    @property
    def automated_token(self) -> int:
        return self.config.automated_token

    @property
    def pending(self) -> Optional[PendingMove]:
        return self._pending

    # ---- commands ----

    def on_cell_activated(self, index: int) -> Snapshot:
        if self.state.play(index) is not None:
            self._after_transition()
        return self.view()

    def on_time_shift_requested(self, steps_back: int) -> Snapshot:
        result = self.state.time_shift(steps_back)
        if result is not None:
            self._erased = result.erased_cells
            self._erased_until = self._clock() + self.config.erased_display_window
            self._after_transition()
        return self.view()

    def on_reset(self) -> Snapshot:
        self._automated_active = self.automated_opponent_enabled
        self.state.disabled_cell_enabled = self.disabled_cell_feature_enabled
        self.state.reset()
        self._erased = ()
        self._erased_until = 0.0
        self._after_transition()
        return self.view()

    # ---- automated opponent ----

    def automated_move_due(self) -> bool:
        if not self._automated_active:
            return False
        status = self.state.status()
        return not status.is_over and status.token == self.automated_token

    def tick(self, force: bool = False) -> Snapshot:
        pending = self._pending
        if pending is None:
            return self.view()
        if not force and self._clock() < pending.due_at:
            return self.view()
        return self.fire(pending)

    def fire(self, ticket: PendingMove) -> Snapshot:
        """Apply the automated move scheduled as `ticket`.

        Front-ends with their own timers (`after()`, `call_later()`) hold on to
        `pending` and call this when the timer expires. A ticket from an older
        generation is stale and is dropped.
        """
        if ticket != self._pending or ticket.generation != self._generation:
            logging.debug("Dropping stale automated move (generation %d)", ticket.generation)
            return self.view()

        self._pending = None
        move = select_move(self.state.board, self.state.disabled_cell, self.automated_token)
        if move is None:
            logging.warning("Automated %s has no playable cell", token_label(self.automated_token))
            return self.view()
        logging.debug("Automated %s plays %d", token_label(self.automated_token), move)
        if self.state.play(move, token=self.automated_token) is not None:
            self._after_transition()
        return self.view()

    def run_automated_moves(self) -> Snapshot:
        """Apply pending automated moves now, including chained bonus turns."""
        while self._pending is not None:
            self.tick(force=True)
        return self.view()

    # ---- view ----

    def view(self) -> Snapshot:
        erased = self._erased
        if erased and self._clock() >= self._erased_until:
            self._erased = erased = ()
        return self.state.snapshot(erased=erased)

    # ---- internals ----

    def _after_transition(self) -> None:
        self._cancel_pending()
        self._schedule_if_due()

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            logging.debug("Discarding pending automated move (generation %d)", self._pending.generation)
        self._pending = None
        self._generation += 1

    def _schedule_if_due(self) -> None:
        if self.automated_move_due():
            self._pending = PendingMove(
                due_at=self._clock() + self.config.automated_move_delay,
                generation=self._generation,
            )
