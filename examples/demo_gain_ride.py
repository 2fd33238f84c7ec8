"""
examples/demo_gain_ride.py

Plays one headless game with a scripted "engineer" riding the gain toward
the -6 dB target while the Peak meter is watched for overs. Uses simulated
timestamps (no sleeping), so a full 3-round game finishes instantly and the
result is the same on every run for the same seed.
"""

import logging

from core.meter_engine import MeterEngine
from services.game_orchestrator import format_meters


def main():
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # --------------------------------------------------------------------
    # 1) Engine setup: start deliberately hot, with lively dynamics
    # --------------------------------------------------------------------
    engine = MeterEngine(seed=1, gain_db=0.0, dynamics=0.8, start_time=0.0)

    now = 0.0
    frame = 1.0 / 60.0
    last_print = 0.0

    # --------------------------------------------------------------------
    # 2) Frame loop: step, then nudge gain 0.5 dB per 250 ms like a fader
    # --------------------------------------------------------------------
    nudge_at = 0.0
    while not engine.round.game_over:
        now += frame
        snap = engine.step(now)

        if now >= nudge_at:
            nudge_at = now + 0.25
            if snap.peak > 0.9 or engine.gain_db > -6.0:
                engine.set_gain(engine.gain_db - 0.5)
            elif engine.gain_db < -6.0:
                engine.set_gain(engine.gain_db + 0.5)

        if now - last_print >= 1.0:
            last_print = now
            print(f"→ {format_meters(snap)}  gain={engine.gain_db:+.1f} dB")

    # --------------------------------------------------------------------
    # 3) Summary
    # --------------------------------------------------------------------
    for i, score in enumerate(engine.round.scores, start=1):
        print(f"Round {i}: {score} / 100")
    print(f"Total: {engine.round.total_score} / {engine.round.max_total_score}")


if __name__ == "__main__":
    main()
