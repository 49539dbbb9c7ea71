from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
import time
from typing import Iterable, TextIO

from .config import GameConfig
from .game_basics import deserialize_board, legal_moves, parse_token, render_board, token_label
from .game_state import Snapshot
from .session import GameSession
from .simulate import STRATEGIES, automated_loss_rate, simulate_games
from .solver import score_moves, select_move

PLAY_HELP = "Commands: 1-9 play a cell, r1/r2 rewind, reset, quit"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="timeshift", description="Time-Shift Tic-Tac-Toe CLI")
    sub = p.add_subparsers(dest="cmd")
    p.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument("--seed", type=int, default=None, help="Seed for bonus turns and the mystery square")

    p_play = sub.add_parser("play", help="Play in the terminal (settings default to TTT_* env vars)")
    p_play.add_argument("--no-ai", action="store_true", help="Two humans share the keyboard")
    p_play.add_argument("--no-mystery", action="store_true", help="Do not block a random square")
    p_play.add_argument("--ai-token", default=None, help="Token the computer plays: X or O")
    p_play.add_argument("--no-delay", action="store_true", help="Skip the computer's thinking time")

    p_sol = sub.add_parser("solve", help="Pick the best move for a board via exhaustive search")
    p_sol.add_argument("--board", required=True, help="Board string, e.g., 100020000")
    p_sol.add_argument("--disabled", type=int, default=None, help="Blocked cell index 0-8")
    p_sol.add_argument("--token", default="O", help="Token to move: X or O (default: O)")

    p_sim = sub.add_parser("simulate", help="Self-play many games with all twists enabled")
    p_sim.add_argument("--games", type=int, default=100, help="Number of games (default: 100)")
    p_sim.add_argument(
        "--opponent",
        choices=list(STRATEGIES),
        default="random",
        help="Strategy of the side the computer plays against (default: random)",
    )
    return p


def _print_snapshot(snap: Snapshot, out: TextIO) -> None:
    print(render_board(snap.board, snap.disabled_cell, snap.erased_cells), file=out)
    print(snap.status.describe(), file=out)
    if snap.bonus_active is not None:
        print(f"Bonus Turn for {token_label(snap.bonus_active)}!", file=out)
    if snap.disabled_cell is not None:
        print(f"Mystery Square: {snap.disabled_cell + 1} is blocked!", file=out)


def _changed(before: Snapshot, after: Snapshot) -> bool:
    return (before.board, before.pointer, before.history_length, before.time_shift_available) != (
        after.board, after.pointer, after.history_length, after.time_shift_available)


def _settle(session: GameSession, no_delay: bool) -> Snapshot:
    while session.pending is not None:
        if not no_delay:
            wait = session.pending.due_at - time.monotonic()
            if wait > 0:
                time.sleep(wait)
        session.tick(force=no_delay)
    return session.view()


def play_loop(session: GameSession, lines: Iterable[str], out: TextIO, no_delay: bool = False) -> int:
    print(PLAY_HELP, file=out)
    _print_snapshot(_settle(session, no_delay), out)
    for line in lines:
        cmd = line.strip().lower()
        if not cmd:
            continue
        if cmd in ("q", "quit", "exit"):
            break
        before = session.view()
        if cmd == "reset":
            snap = session.on_reset()
        elif cmd in ("r1", "r2"):
            snap = session.on_time_shift_requested(int(cmd[1]))
            if not _changed(before, snap):
                print("Time-shift not available.", file=out)
        elif cmd.isdigit() and 1 <= int(cmd) <= 9:
            snap = session.on_cell_activated(int(cmd) - 1)
            if not _changed(before, snap):
                print("That square cannot be played.", file=out)
        else:
            print(PLAY_HELP, file=out)
            continue
        if session.pending is not None:
            _print_snapshot(snap, out)
        _print_snapshot(_settle(session, no_delay), out)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if getattr(ns, "verbose", False) else logging.INFO,
                        format="[%(levelname)s] %(message)s")

    if getattr(ns, "version", False):
        try:
            from importlib.metadata import version as _ver

            print(_ver("timeshift-tictactoe"))
        except Exception:
            print("unknown")
        return 0

    if ns.cmd == "play":
        import numpy as np

        try:
            cfg = GameConfig.from_env()
            overrides = {}
            if ns.no_ai:
                overrides["automated_opponent_enabled"] = False
            if ns.no_mystery:
                overrides["disabled_cell_enabled"] = False
            if ns.ai_token is not None:
                overrides["automated_token"] = parse_token(ns.ai_token)
            cfg = dataclasses.replace(cfg, **overrides)
        except ValueError as e:
            logging.error("%s", e)
            return 2
        session = GameSession(cfg, rng=np.random.default_rng(ns.seed))
        return play_loop(session, sys.stdin, sys.stdout, no_delay=ns.no_delay)

    if ns.cmd == "solve":
        try:
            board = deserialize_board(ns.board)
            token = parse_token(ns.token)
        except ValueError as e:
            logging.error("%s", e)
            return 2
        if ns.disabled is not None and not 0 <= ns.disabled <= 8:
            logging.error("Disabled cell must be in 0-8, got %d", ns.disabled)
            return 2
        move = select_move(board, ns.disabled, token)
        scores = score_moves(board, ns.disabled, token)
        logging.info(
            "token=%s move=%s legal=%s scores=%s",
            token_label(token),
            move,
            legal_moves(board, ns.disabled),
            scores,
        )
        return 0

    if ns.cmd == "simulate":
        try:
            cfg = GameConfig.from_env()
            summary = simulate_games(ns.games, seed=ns.seed, config=cfg, opponent_strategy=ns.opponent)
        except ValueError as e:
            logging.error("%s", e)
            return 2
        logging.info(
            "games=%d x_wins=%d o_wins=%d draws=%d blocked=%d bonus_turns=%d mean_length=%.2f",
            summary.games, summary.x_wins, summary.o_wins, summary.draws,
            summary.blocked, summary.bonus_turns, summary.mean_length,
        )
        logging.info("automated_loss_rate=%.3f", automated_loss_rate(summary, cfg.automated_token))
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
