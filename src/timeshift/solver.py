"""
Exact minimax move selection with a disabled cell, from the searching token's perspective.
Scoring policy:
- A win for the searching token scores 10 - depth, a loss scores depth - 10.
- A draw, or a position where no playable cell is left, scores 0.
- Depth 0 is the board right after the searching token's candidate move, so
  faster wins and slower losses score higher.
Tie-break policy:
- Candidates are scanned in increasing index order and only a strictly
  better score replaces the current pick, so ties go to the lowest index.
"""
import logging
from functools import lru_cache
from typing import List, Optional

from .game_basics import EMPTY, Board, apply_move, get_winner, legal_moves, opponent

WIN_SCORE = 10


@lru_cache(maxsize=None)
def minimax_score(
    board: Board,
    disabled_cell: Optional[int],
    token: int,
    depth: int,
    maximizing: bool,
) -> int:
    w = get_winner(board)
    if w == token:
        return WIN_SCORE - depth
    if w != EMPTY:
        return depth - WIN_SCORE
    moves = legal_moves(board, disabled_cell)
    if not moves:
        return 0
    mover = token if maximizing else opponent(token)
    scores = [
        minimax_score(apply_move(board, mv, mover), disabled_cell, token, depth + 1, not maximizing)
        for mv in moves
    ]
    return max(scores) if maximizing else min(scores)


def score_moves(board: Board, disabled_cell: Optional[int], token: int) -> List[Optional[int]]:
    """Root evaluation: one score per cell, None where the cell is not playable."""
    board = tuple(board)
    scores: List[Optional[int]] = [None] * 9
    for mv in legal_moves(board, disabled_cell):
        child = apply_move(board, mv, token)
        scores[mv] = minimax_score(child, disabled_cell, token, 0, False)
    return scores


def select_move(board: Board, disabled_cell: Optional[int], token: int) -> Optional[int]:
    best_move: Optional[int] = None
    best_score: Optional[int] = None
    for mv, score in enumerate(score_moves(board, disabled_cell, token)):
        if score is None:
            continue
        if best_score is None or score > best_score:
            best_score = score
            best_move = mv
    logging.debug(
        "select_move token=%d disabled=%s -> %s (score=%s)",
        token, disabled_cell, best_move, best_score,
    )
    return best_move


def clear_cache() -> None:
    minimax_score.cache_clear()
