# core/state/round_state.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List
import math

TOTAL_ROUNDS = 3
ROUND_DURATION = 15.0        # seconds per round
TARGET_GAIN_DB = -6.0
PENALTY_PER_DB = 5.0
PEAK_THRESHOLD = 0.9
OVER_PENALTY = 50.0
MAX_ROUND_SCORE = 100


def display_seconds(time_remaining: float) -> int:
    """Countdown as shown to the player: whole seconds, rounded up."""
    return int(math.ceil(max(0.0, time_remaining)))


@dataclass(frozen=True)
class GameConfig:
    """Round count, duration and scoring calibration."""
    total_rounds: int = TOTAL_ROUNDS
    round_duration: float = ROUND_DURATION
    target_gain_db: float = TARGET_GAIN_DB
    penalty_per_db: float = PENALTY_PER_DB
    peak_threshold: float = PEAK_THRESHOLD
    over_penalty: float = OVER_PENALTY

    def __post_init__(self) -> None:
        if self.total_rounds < 1:
            raise ValueError("GameConfig needs at least one round.")
        if not self.round_duration > 0:
            raise ValueError("round_duration must be positive.")


def score_round(gain_db: float, peak: float, config: GameConfig = GameConfig()) -> int:
    """100 minus gain distance and peak overshoot penalties; >= 0, rounded half-up."""
    score = MAX_ROUND_SCORE - abs(gain_db - config.target_gain_db) * config.penalty_per_db
    score -= max(0.0, peak - config.peak_threshold) * config.over_penalty
    if not math.isfinite(score):
        return 0
    return max(0, int(math.floor(score + 0.5)))


@dataclass
class RoundState:
    """Round bookkeeping; mutated only by MeterEngine."""
    config: GameConfig = field(default_factory=GameConfig)
    round_index: int = 1
    time_remaining: float = field(init=False)
    scores: List[int] = field(default_factory=list)
    game_over: bool = False
    running: bool = True

    def __post_init__(self) -> None:
        self.time_remaining = self.config.round_duration

    @property
    def total_score(self) -> int:
        return sum(self.scores)

    @property
    def max_total_score(self) -> int:
        return self.config.total_rounds * MAX_ROUND_SCORE

    @property
    def display_time_remaining(self) -> int:
        return display_seconds(self.time_remaining)

    @property
    def active(self) -> bool:
        return self.running and not self.game_over

    def countdown(self, dt: float) -> bool:
        """Decrement the round timer; True once it has run out."""
        self.time_remaining = max(0.0, self.time_remaining - dt)
        return self.time_remaining <= 0

    def record(self, score: int) -> bool:
        """
        Append a score and advance. Returns True if another round follows,
        False if this was the last round (game over, stopped).
        """
        self.scores.append(score)
        if self.round_index < self.config.total_rounds:
            self.round_index += 1
            self.time_remaining = self.config.round_duration
            return True
        self.game_over = True
        self.running = False
        return False
