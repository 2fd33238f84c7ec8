# app.py
# Lean entrypoint: run the headless meter game until game over (Ctrl-C to quit).
import argparse
import logging

from services.game_orchestrator import GameOrchestrator

GAIN_RANGE = (-24.0, 12.0)       # dB, fader travel
DYNAMICS_RANGE = (0.0, 1.0)


def _bounded(lo: float, hi: float):
    def parse(text: str) -> float:
        try:
            value = float(text)
        except ValueError:
            raise argparse.ArgumentTypeError(f"not a number: {text!r}")
        if not lo <= value <= hi:
            raise argparse.ArgumentTypeError(f"{value:g} is outside {lo:g}..{hi:g}")
        return value
    return parse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Meter Madness headless metering game")
    parser.add_argument("--seed", type=int, default=1, help="Signal seed for round 1, default 1")
    parser.add_argument("--gain", type=_bounded(*GAIN_RANGE), default=-6.0,
                        help="Gain in dB (-24..+12), default -6")
    parser.add_argument("--dynamics", type=_bounded(*DYNAMICS_RANGE), default=0.6,
                        help="Dynamics 0..1, default 0.6")
    parser.add_argument("--fps", type=float, default=60.0, help="Frame rate of the step loop, default 60")
    parser.add_argument("--log-every", type=float, default=0.5, help="Seconds between meter lines")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def main() -> None:
    args = build_parser().parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    orch = GameOrchestrator(
        fps=args.fps,
        log_every=args.log_every,
        seed=args.seed,
        gain_db=args.gain,
        dynamics=args.dynamics,
    )
    orch.run()


if __name__ == "__main__":
    main()
