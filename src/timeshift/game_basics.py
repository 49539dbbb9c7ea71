"""
Game basics: cell values, board helpers, winner/draw checks, text rendering.
Teaching notes:
- A board is a tuple of 9 cells: 0=empty, 1=X, 2=O. X always starts.
- Boards are never mutated; a move builds a new tuple, so every position kept
  in a game history stays valid on its own.
- The disabled ("mystery") cell is not part of the board. Helpers that list
  playable cells take it as an extra argument.
"""
from typing import Iterable, List, Optional, Tuple

EMPTY = 0
X = 1
O = 2
TOKENS = (X, O)

Board = Tuple[int, ...]

EMPTY_BOARD: Board = (EMPTY,) * 9

WIN_PATTERNS = (
    (0, 1, 2), (3, 4, 5), (6, 7, 8),
    (0, 3, 6), (1, 4, 7), (2, 5, 8),
    (0, 4, 8), (2, 4, 6),
)

_LABELS = {EMPTY: ".", X: "X", O: "O"}


def opponent(token: int) -> int:
    if token == X:
        return O
    if token == O:
        return X
    raise ValueError(f"Not a player token: {token!r}")


def token_label(token: int) -> str:
    return _LABELS[token]


def parse_token(text: str) -> int:
    """Accept "X"/"O" (any case) or "1"/"2"."""
    raw = text.strip().upper()
    if raw in ("X", "1"):
        return X
    if raw in ("O", "2"):
        return O
    raise ValueError(f"Unknown token: {text!r}. Use X or O.")


def serialize_board(board: Iterable[int]) -> str:
    return ''.join(str(cell) for cell in board)


def deserialize_board(board_str: str) -> Board:
    raw = board_str.strip()
    if len(raw) != 9 or any(c not in "012" for c in raw):
        raise ValueError("Invalid board string. Must be 9 chars of 0/1/2.")
    return tuple(int(c) for c in raw)


def get_winner(board: Board) -> int:
    for a, b, c in WIN_PATTERNS:
        v = board[a]
        if v != EMPTY and v == board[b] and v == board[c]:
            return v
    return EMPTY


def is_draw(board: Board) -> bool:
    return EMPTY not in board and get_winner(board) == EMPTY


def is_terminal(board: Board) -> bool:
    return get_winner(board) != EMPTY or EMPTY not in board


def legal_moves(board: Board, disabled_cell: Optional[int] = None) -> List[int]:
    return [i for i, v in enumerate(board) if v == EMPTY and i != disabled_cell]


def apply_move(board: Board, cell: int, token: int) -> Board:
    lst = list(board)
    lst[cell] = token
    return tuple(lst)


def erased_cells(before: Board, after: Board) -> List[int]:
    """Cells occupied in `before` that no longer hold the same mark in `after`."""
    return [i for i, v in enumerate(before) if v != EMPTY and v != after[i]]


def render_board(
    board: Board,
    disabled_cell: Optional[int] = None,
    erased: Iterable[int] = (),
) -> str:
    """Text grid for terminals. Empty cells show their 1-based number,
    the blocked cell shows '#', freshly erased cells show '~'."""
    erased_set = set(erased)
    cells = []
    for i, v in enumerate(board):
        if v != EMPTY:
            cells.append(token_label(v))
        elif i == disabled_cell:
            cells.append("#")
        elif i in erased_set:
            cells.append("~")
        else:
            cells.append(str(i + 1))
    rows = [" | ".join(cells[r * 3:r * 3 + 3]) for r in range(3)]
    return "\n---------\n".join(rows)
