"""Game configuration with environment-first loading.

Every field has a default matching the classic rules, so `GameConfig()` is
always usable. `GameConfig.from_env()` lets a deployment flip the feature
toggles or tune the twists without code changes.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .game_basics import O, TOKENS, parse_token

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    val = raw.strip().lower()
    if val in _TRUE:
        return True
    if val in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class GameConfig:
    automated_opponent_enabled: bool = True
    disabled_cell_enabled: bool = True
    automated_token: int = O
    bonus_probability: float = 0.1
    automated_move_delay: float = 0.6  # seconds of "thinking time"
    erased_display_window: float = 1.0  # seconds erased cells stay visible

    def __post_init__(self) -> None:
        if self.automated_token not in TOKENS:
            raise ValueError(f"automated_token must be X or O, got {self.automated_token!r}")
        if not 0.0 <= self.bonus_probability <= 1.0:
            raise ValueError(f"bonus_probability out of range [0,1]: {self.bonus_probability}")
        if self.automated_move_delay < 0:
            raise ValueError("automated_move_delay must be >= 0")
        if self.erased_display_window < 0:
            raise ValueError("erased_display_window must be >= 0")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GameConfig":
        """Read TTT_* variables, falling back to defaults for anything unset.

        TTT_AI, TTT_MYSTERY: booleans (1/0, true/false, yes/no, on/off)
        TTT_AI_TOKEN: X or O
        TTT_BONUS_P, TTT_AI_DELAY, TTT_GHOST_WINDOW: floats
        """
        env = os.environ if environ is None else environ
        default = cls()
        token_raw = env.get("TTT_AI_TOKEN")
        return cls(
            automated_opponent_enabled=_env_bool(env, "TTT_AI", default.automated_opponent_enabled),
            disabled_cell_enabled=_env_bool(env, "TTT_MYSTERY", default.disabled_cell_enabled),
            automated_token=parse_token(token_raw) if token_raw else default.automated_token,
            bonus_probability=_env_float(env, "TTT_BONUS_P", default.bonus_probability),
            automated_move_delay=_env_float(env, "TTT_AI_DELAY", default.automated_move_delay),
            erased_display_window=_env_float(env, "TTT_GHOST_WINDOW", default.erased_display_window),
        )
