# core/loudness.py
# Sliding-window RMS ("LUFS" on the panel). Windowed RMS only, not BS.1770.
from __future__ import annotations
from collections import deque
from typing import Deque, Tuple
import math

from core.meters import floor_dt

LOUDNESS_WINDOW = 3.0        # seconds
ENERGY_EPS = 1e-6


class LoudnessWindow:
    """
    Rolling (energy, dt) buffer over the trailing window.

    Trimming walks back from the newest entry; the entry where the summed
    duration first exceeds the window is dropped together with everything
    older. The newest entry always stays.
    """

    def __init__(self, window: float = LOUDNESS_WINDOW):
        if not window > 0:
            raise ValueError("Loudness window must be positive.")
        self.window = float(window)
        self._buf: Deque[Tuple[float, float]] = deque()
        self._value: float = 0.0

    @property
    def value(self) -> float:
        return self._value

    def duration(self) -> float:
        return sum(dt for _, dt in self._buf)

    def __len__(self) -> int:
        return len(self._buf)

    def reset(self) -> None:
        self._buf.clear()
        self._value = 0.0

    def push(self, sample: float, dt: float) -> float:
        dt = floor_dt(dt)
        self._buf.append((sample * sample, dt))
        self._trim()

        total_t = 0.0
        total_e = 0.0
        for energy, d in self._buf:
            total_e += energy * d
            total_t += d
        value = math.sqrt(max(0.0, total_e) / max(ENERGY_EPS, total_t))
        self._value = value if math.isfinite(value) else 0.0
        return self._value

    def _trim(self) -> None:
        total = 0.0
        keep = 0
        for _, d in reversed(self._buf):
            total += d
            if total > self.window:
                break
            keep += 1
        keep = max(1, keep)
        while len(self._buf) > keep:
            self._buf.popleft()
