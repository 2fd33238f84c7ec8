# core/meters.py
# Envelope followers for VU / Peak / PPM. Pure transitions: (state, input, dt) -> state.
from __future__ import annotations
from dataclasses import dataclass
import math

MIN_DT = 0.001               # s; stalled frame clocks never yield dt <= 0

VU_TAU = 0.3
PEAK_ATTACK = 0.0005
PEAK_RELEASE = 0.05
PPM_ATTACK = 0.01
PPM_RELEASE = 0.08
PPM_HOLD_TIME = 0.08

# Fixed blend applied once per step after the hold timer expires.
# Not scaled by dt, so hold decay speed depends on the frame rate.
PPM_HOLD_DECAY_PER_STEP = 0.3


def floor_dt(dt: float) -> float:
    if not math.isfinite(dt) or dt < MIN_DT:
        return MIN_DT
    return dt


def smoothing_coefficient(dt: float, tau: float) -> float:
    """alpha = 1 - exp(-dt/tau); a degenerate tau means instant follow."""
    if not tau > 0:
        return 1.0
    return 1.0 - math.exp(-floor_dt(dt) / tau)


def follow(prev: float, target: float, dt: float, tau: float) -> float:
    """One first-order lag step; lands between prev and target, never past it."""
    alpha = smoothing_coefficient(dt, tau)
    if alpha >= 1.0:
        return target if math.isfinite(target) else 0.0
    nxt = prev + alpha * (target - prev)
    if not math.isfinite(nxt):
        return 0.0
    return min(max(nxt, min(prev, target)), max(prev, target))


def follow_asymmetric(prev: float, target: float, dt: float, attack: float, release: float) -> float:
    return follow(prev, target, dt, attack if target > prev else release)


def meter_percent(value: float) -> int:
    """Display helper: clamp to 0..1 and return an integer percentage."""
    if not math.isfinite(value):
        return 0
    return int(math.floor(100 * max(0.0, min(1.0, value)) + 0.5))


@dataclass(frozen=True)
class FollowerState:
    value: float = 0.0


@dataclass(frozen=True)
class PpmState:
    core: float = 0.0
    hold: float = 0.0
    hold_timer: float = 0.0


def step_vu(state: FollowerState, sample: float, dt: float) -> FollowerState:
    return FollowerState(follow(state.value, sample, dt, VU_TAU))


def step_peak(state: FollowerState, sample: float, dt: float) -> FollowerState:
    return FollowerState(follow_asymmetric(state.value, sample, dt, PEAK_ATTACK, PEAK_RELEASE))


def step_ppm(state: PpmState, sample: float, dt: float) -> PpmState:
    """
    PPM core plus hold ceiling.
    - core rises above hold -> hold snaps to core, timer restarts at PPM_HOLD_TIME
    - timer counts down by dt (floored at 0)
    - timer at 0 -> hold blends toward core by PPM_HOLD_DECAY_PER_STEP
    """
    dt = floor_dt(dt)
    core = follow_asymmetric(state.core, sample, dt, PPM_ATTACK, PPM_RELEASE)

    hold, timer = state.hold, state.hold_timer
    if core > hold:
        hold = core
        timer = PPM_HOLD_TIME
    timer = max(0.0, timer - dt)
    if timer <= 0:
        hold += (core - hold) * PPM_HOLD_DECAY_PER_STEP
    return PpmState(core=core, hold=hold, hold_timer=timer)


@dataclass(frozen=True)
class MeterBank:
    """All four meter states for one step; LUFS lives in LoudnessWindow."""
    vu: FollowerState = FollowerState()
    peak: FollowerState = FollowerState()
    ppm: PpmState = PpmState()

    def step(self, sample: float, dt: float) -> "MeterBank":
        return MeterBank(
            vu=step_vu(self.vu, sample, dt),
            peak=step_peak(self.peak, sample, dt),
            ppm=step_ppm(self.ppm, sample, dt),
        )
