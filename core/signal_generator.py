# core/signal_generator.py
# Deterministic synthetic programme signal (no audio I/O, one sample per frame)
from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple
import math

# LCG parameters (Numerical Recipes)
LCG_MULTIPLIER = 1664525
LCG_INCREMENT = 1013904223
LCG_MODULUS = 2 ** 32

SPIKE_PROBABILITY = 0.08     # scaled by dynamics
SPIKE_FLOOR = 0.6
SPIKE_RANGE = 0.4
TONE_FREQ_HZ = 2.0
TONE_DEPTH = 0.25
TONE_SEED_OFFSET = 0.1       # seconds of phase per seed step
SIGNAL_FLOOR = 0.2
NOISE_DEPTH = 0.1


def db_to_linear(db: float) -> float:
    try:
        return 10 ** (db / 20)
    except OverflowError:
        return math.inf


@dataclass(frozen=True)
class RandomState:
    """Single 32-bit LCG state. Immutable; every draw returns the next state."""
    value: int = 1

    @classmethod
    def from_seed(cls, seed: int) -> "RandomState":
        return cls(int(seed) % LCG_MODULUS)

    def draw(self) -> Tuple[float, "RandomState"]:
        """Advance once; returns (value in [0, 1), next state)."""
        nxt = (self.value * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        return nxt / LCG_MODULUS, RandomState(nxt)


def generate_sample(
    rng: RandomState,
    seed: int,
    gain_db: float,
    dynamics: float,
    wall_time: float,
) -> Tuple[float, RandomState]:
    """
    Produce one instantaneous sample.

    Layers a 2 Hz tone (phase shifted by the round seed), a probabilistic
    spike scaled by `dynamics` and low-level noise, all scaled by the linear
    gain. Draw order is fixed: spike gate, spike size (only on a spike), noise.
    Returns (sample <= 1, advanced random state).
    """
    base = db_to_linear(gain_db)

    r, rng = rng.draw()
    spike = 0.0
    if r < SPIKE_PROBABILITY * dynamics:
        s, rng = rng.draw()
        spike = (SPIKE_FLOOR + SPIKE_RANGE * s) * dynamics

    t = wall_time + seed * TONE_SEED_OFFSET
    tone = TONE_DEPTH * (0.5 + 0.5 * math.sin(2 * math.pi * TONE_FREQ_HZ * t))

    noise, rng = rng.draw()
    sample = min(1.0, base * (SIGNAL_FLOOR + tone + spike + NOISE_DEPTH * noise))
    if not math.isfinite(sample):
        sample = 0.0
    return sample, rng
