import numpy as np
import pytest

from timeshift.game_basics import EMPTY, EMPTY_BOARD, O, X
from timeshift.game_state import DRAW, IN_PROGRESS, WON, GameState, GameStatus


def _check_history(state):
    h = state.history
    assert len(h) == state.pointer + 1
    assert h[0] == EMPTY_BOARD
    for prev, cur in zip(h, h[1:]):
        diff = [i for i in range(9) if prev[i] != cur[i]]
        assert len(diff) == 1
        assert prev[diff[0]] == EMPTY
        assert cur[diff[0]] in (X, O)


@pytest.fixture
def state(fake_rng):
    return GameState(rng=fake_rng(), disabled_cell_enabled=False)


def _play_all(state, cells):
    for c in cells:
        assert state.play(c) is not None, c


def test_initial_state(state):
    assert state.history == (EMPTY_BOARD,)
    assert state.pointer == 0
    assert state.current_token() == X
    assert state.status() == GameStatus(IN_PROGRESS, X)
    assert state.time_shift_used == {X: False, O: False}
    assert state.bonus_override is None
    assert state.disabled_cell is None


def test_play_alternates_and_keeps_history(state):
    _play_all(state, [0, 4, 8])
    assert state.board == (1, 0, 0, 0, 2, 0, 0, 0, 1)
    assert state.current_token() == O
    _check_history(state)


def test_play_returns_snapshot(state):
    snap = state.play(4)
    assert snap.board[4] == X
    assert snap.status.describe() == "Next player: O"
    assert snap.pointer == 1
    assert snap.history_length == 2
    assert snap.erased_cells == ()


@pytest.mark.parametrize("cell", [-1, 9, 42])
def test_out_of_range_rejected(state, cell):
    assert state.play(cell) is None
    assert state.pointer == 0


def test_occupied_cell_rejected(state):
    state.play(0)
    before = state.history
    assert state.play(0) is None
    assert state.history == before
    assert state.current_token() == O


def test_disabled_cell_rejected(fake_rng):
    s = GameState(rng=fake_rng(cells=[4]))
    assert s.disabled_cell == 4
    assert s.play(4) is None
    assert s.pointer == 0
    assert s.play(3) is not None


def test_no_play_after_win(state):
    _play_all(state, [0, 3, 1, 4, 2])
    assert state.status() == GameStatus(WON, X)
    assert state.status().describe() == "Winner: X"
    assert state.play(8) is None
    assert len(state.history) == 6


def test_draw_status(state):
    # X O X / X O O / O X X
    _play_all(state, [0, 1, 2, 4, 3, 5, 7, 6, 8])
    assert state.is_draw()
    assert state.winner() == EMPTY
    assert state.status() == GameStatus(DRAW)
    assert state.status().describe() == "Draw!"
    assert state.play(0) is None


def test_wrong_token_rejected(state):
    assert state.play(0, token=O) is None
    assert state.play(0, token=X) is not None
    assert state.play(1, token=X) is None


def test_queries_accept_any_board(state):
    assert state.winner((2, 2, 2, 0, 0, 0, 0, 0, 0)) == O
    assert state.is_draw((1, 2, 1, 1, 2, 2, 2, 1, 1))


def test_time_shift_truncates_history(state):
    _play_all(state, [0, 4, 8, 2])
    assert state.pointer == 4
    assert len(state.history) == 5
    snap = state.time_shift(2)
    assert snap is not None
    assert state.pointer == 2
    assert len(state.history) == 3
    assert snap.erased_cells == (2, 8)
    assert state.board == (1, 0, 0, 0, 2, 0, 0, 0, 0)
    assert state.time_shift_used == {X: True, O: False}
    assert snap.time_shift_available == {X: False, O: True}
    _check_history(state)


def test_time_shift_restores_turn_of_target_position(state):
    _play_all(state, [0, 4, 8])
    # O rewinds X's last move, so X is due again on the two-mark board
    assert state.current_token() == O
    state.time_shift(1)
    assert state.pointer == 2
    assert state.current_token() == X


def test_time_shift_once_per_token(state):
    _play_all(state, [0, 4, 8, 2])
    assert state.time_shift(2) is not None
    before = (state.history, state.pointer, state.time_shift_used)
    assert state.current_token() == X
    assert state.time_shift(1) is None
    assert (state.history, state.pointer, state.time_shift_used) == before
    # O still has its rewind
    state.play(6)
    assert state.current_token() == O
    assert state.time_shift(1) is not None
    assert state.time_shift_used == {X: True, O: True}


def test_time_shift_clamps_to_start(state):
    _play_all(state, [0, 4])
    snap = state.time_shift(5)
    assert state.pointer == 0
    assert state.history == (EMPTY_BOARD,)
    assert snap.erased_cells == (0, 4)
    assert state.current_token() == X


def test_play_after_time_shift_overwrites_future(state):
    _play_all(state, [0, 4, 8])
    state.time_shift(2)
    assert state.play(2) is not None
    assert state.history[-1] == (1, 0, 2, 0, 0, 0, 0, 0, 0)
    assert len(state.history) == 3
    _check_history(state)


@pytest.mark.parametrize("steps", [0, -1])
def test_time_shift_needs_positive_steps(state, steps):
    state.play(0)
    assert state.time_shift(steps) is None
    assert state.time_shift_used == {X: False, O: False}


def test_time_shift_rejected_after_game_over(state):
    _play_all(state, [0, 3, 1, 4, 2])
    assert state.time_shift(1) is None
    assert state.status().kind == WON


def test_bonus_turn_keeps_same_token(fake_rng):
    s = GameState(rng=fake_rng(rolls=[0.05]), disabled_cell_enabled=False)
    snap = s.play(0)
    assert snap.bonus_active == X
    assert s.bonus_override == X
    assert s.current_token() == X
    assert s.status().describe() == "Next player: X"
    # O may not move during X's bonus turn
    assert s.play(1, token=O) is None
    s.play(1)
    assert s.bonus_override is None
    assert s.current_token() == O
    _check_history(s)


def test_bonus_turn_can_chain(fake_rng):
    s = GameState(rng=fake_rng(rolls=[0.99, 0.0, 0.0]), disabled_cell_enabled=False)
    s.play(0)
    s.play(4)
    assert s.current_token() == O
    s.play(8)
    assert s.current_token() == O
    assert s.board == (1, 0, 0, 0, 2, 0, 0, 0, 2)


def test_no_bonus_on_finished_game(fake_rng):
    s = GameState(rng=fake_rng(rolls=[0.99, 0.99, 0.99, 0.99, 0.0]), disabled_cell_enabled=False)
    _play_all(s, [0, 3, 1, 4, 2])
    assert s.bonus_override is None
    assert s.status().kind == WON


def test_bonus_probability_zero_never_grants(fake_rng):
    s = GameState(rng=fake_rng(rolls=[0.0, 0.0]), bonus_probability=0.0, disabled_cell_enabled=False)
    s.play(0)
    assert s.bonus_override is None
    assert s.current_token() == O


def test_time_shift_clears_bonus(fake_rng):
    s = GameState(rng=fake_rng(rolls=[0.99, 0.05]), disabled_cell_enabled=False)
    s.play(0)
    s.play(4)
    assert s.bonus_override == O
    assert s.time_shift(1) is not None
    assert s.time_shift_used[O] is True
    assert s.bonus_override is None
    assert s.current_token() == O


def test_reset_is_atomic(fake_rng):
    s = GameState(rng=fake_rng(rolls=[0.99, 0.05], cells=[2, 7]))
    assert s.disabled_cell == 2
    s.play(0)
    s.play(4)
    s.time_shift(1)
    snap = s.reset()
    assert len(s.history) == 1
    assert s.pointer == 0
    assert s.time_shift_used == {X: False, O: False}
    assert s.bonus_override is None
    assert s.current_token() == X
    assert s.disabled_cell == 7
    assert snap.disabled_cell == 7


def test_reset_without_disabled_cell(fake_rng):
    s = GameState(rng=fake_rng(cells=[3]))
    assert s.disabled_cell == 3
    s.disabled_cell_enabled = False
    s.reset()
    assert s.disabled_cell is None


def test_default_rng_draws_valid_disabled_cell():
    s = GameState()
    assert s.disabled_cell in range(9)
    seeded = [GameState(rng=np.random.default_rng(7)).disabled_cell for _ in range(2)]
    assert seeded[0] == seeded[1]
