from typing import Iterable, List

import pytest


class FakeRng:
    """Scripted stand-in for numpy's Generator.

    `random()` pops from `rolls` (0.99 when exhausted, i.e. no bonus turn);
    `integers()` pops from `cells` (the low bound when exhausted).
    """

    def __init__(self, rolls: Iterable[float] = (), cells: Iterable[int] = ()):
        self.rolls: List[float] = list(rolls)
        self.cells: List[int] = list(cells)

    def random(self) -> float:
        return self.rolls.pop(0) if self.rolls else 0.99

    def integers(self, low: int, high: int) -> int:
        if self.cells:
            v = self.cells.pop(0)
            assert low <= v < high
            return v
        return low


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, dt: float) -> None:
        self.now += dt


@pytest.fixture
def fake_rng():
    return FakeRng


@pytest.fixture
def clock():
    return FakeClock()
