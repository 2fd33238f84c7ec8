# core/meter_engine.py
# Per-frame metering simulation: generator -> meters + loudness -> round machine.
from __future__ import annotations
from dataclasses import dataclass
from collections import deque
from typing import Callable, Deque, List, Optional, Tuple
import logging
import numpy as np

from core.signal_generator import RandomState, generate_sample
from core.meters import MIN_DT, MeterBank, floor_dt
from core.loudness import LOUDNESS_WINDOW, LoudnessWindow
from core.state.round_state import GameConfig, RoundState, display_seconds, score_round

_LOG = logging.getLogger(__name__)

HISTORY_SIZE = 200


@dataclass(frozen=True)
class MeterSnapshot:
    ts: float                # wall timestamp of the step (s)
    dt: float                # floored frame delta (s)
    vu: float                # meter values, ~0..1 (not clamped)
    ppm: float
    ppm_hold: float
    peak: float
    lufs: float              # windowed RMS, not BS.1770 loudness
    waveform: np.ndarray     # last HISTORY_SIZE samples, newest last
    round_index: int
    time_remaining: float
    scores: Tuple[int, ...]
    game_over: bool
    running: bool

    @property
    def display_time_remaining(self) -> int:
        return display_seconds(self.time_remaining)


Subscriber = Callable[[MeterSnapshot], None]


class SimulationClock:
    """Last timestamp and floored delta. A first or backwards tick yields MIN_DT."""

    def __init__(self, start: Optional[float] = None):
        self.last: Optional[float] = start
        self.dt: float = MIN_DT

    def tick(self, now: float) -> float:
        if self.last is None:
            self.dt = MIN_DT
        else:
            self.dt = floor_dt(now - self.last)
        self.last = now
        return self.dt


class MeterEngine:
    """
    Single-threaded metering game core.
    - One step() per display frame, driven by the host's timestamps.
    - Paused / game-over steps only advance the clock.
    - Meter states are immutable values swapped in whole each step.
    """

    def __init__(
        self,
        seed: int = 1,
        gain_db: float = -6.0,
        dynamics: float = 0.6,
        config: Optional[GameConfig] = None,
        history_size: int = HISTORY_SIZE,
        loudness_window: float = LOUDNESS_WINDOW,
        start_time: Optional[float] = None,
    ):
        if history_size < 1:
            raise ValueError("history_size must be at least 1.")

        self.gain_db = float(gain_db)
        self.dynamics = float(dynamics)
        self.history_size = history_size

        self.clock = SimulationClock(start_time)
        self.round = RoundState(config=config or GameConfig())
        self.loudness = LoudnessWindow(loudness_window)

        self._subs: List[Subscriber] = []
        self._history: Deque[float] = deque(maxlen=history_size)
        self._last: Optional[MeterSnapshot] = None

        self.reset_round(seed)

    # ---------- Public API ----------

    @property
    def seed(self) -> int:
        return self._seed

    @property
    def running(self) -> bool:
        return self.round.running

    def subscribe(self, fn: Subscriber) -> None:
        self._subs.append(fn)

    def set_gain(self, gain_db: float) -> None:
        self.gain_db = float(gain_db)

    def set_dynamics(self, dynamics: float) -> None:
        self.dynamics = float(dynamics)

    def set_running(self, running: bool) -> None:
        # game over stays stopped
        self.round.running = bool(running) and not self.round.game_over

    def toggle_running(self) -> bool:
        self.set_running(not self.round.running)
        return self.round.running

    def history(self) -> np.ndarray:
        """Waveform history, oldest first."""
        return np.fromiter(self._history, dtype=float, count=len(self._history))

    def snapshot(self) -> MeterSnapshot:
        return MeterSnapshot(
            ts=self.clock.last if self.clock.last is not None else 0.0,
            dt=self.clock.dt,
            vu=self.meters.vu.value,
            ppm=self.meters.ppm.core,
            ppm_hold=self.meters.ppm.hold,
            peak=self.meters.peak.value,
            lufs=self.loudness.value,
            waveform=self.history(),
            round_index=self.round.round_index,
            time_remaining=self.round.time_remaining,
            scores=tuple(self.round.scores),
            game_over=self.round.game_over,
            running=self.round.running,
        )

    def last_snapshot(self) -> Optional[MeterSnapshot]:
        return self._last

    def step(self, now: float) -> MeterSnapshot:
        dt = self.clock.tick(now)

        if self.round.active:
            sample, self._rng = generate_sample(
                self._rng, self._seed, self.gain_db, self.dynamics, now
            )
            self._history.append(sample)
            self.meters = self.meters.step(sample, dt)
            self.loudness.push(sample, dt)

            if self.round.countdown(dt):
                self.submit_round()

        snap = self.snapshot()
        self._last = snap
        self._publish(snap)
        return snap

    def submit_round(self) -> Optional[int]:
        """Score the current round. Returns the score, or None after game over."""
        if self.round.game_over:
            return None

        score = score_round(self.gain_db, self.meters.peak.value, self.round.config)
        round_no = self.round.round_index
        more = self.round.record(score)
        _LOG.info("Round %d scored %d (gain=%.1f dB, peak=%.3f)",
                  round_no, score, self.gain_db, self.meters.peak.value)

        if more:
            self.reset_round(self._seed + 1)
        else:
            _LOG.info("Game over: %d / %d", self.round.total_score, self.round.max_total_score)
        return score

    def reset_round(self, seed: int) -> None:
        """Reseed and clear meters, loudness and waveform for a fresh round."""
        self._seed = int(seed)
        self._rng = RandomState.from_seed(self._seed)
        self.meters = MeterBank()
        self.loudness.reset()
        self._history.clear()
        self._history.extend([0.0] * self.history_size)
        _LOG.debug("Round %d reset with seed %d", self.round.round_index, self._seed)

    # ---------- Internal ----------

    def _publish(self, snap: MeterSnapshot) -> None:
        for fn in self._subs:
            try:
                fn(snap)
            except Exception:
                # Keep the frame loop alive
                _LOG.exception("Meter subscriber %r failed", fn)
