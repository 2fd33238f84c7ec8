# services/game_orchestrator.py
# Headless host: paces MeterEngine.step() on a worker thread and logs the meters.
from __future__ import annotations
import logging
import threading
import time
from typing import Optional

from core.meter_engine import MeterEngine, MeterSnapshot
from core.meters import meter_percent

_LOG = logging.getLogger(__name__)


def format_meters(snap: MeterSnapshot) -> str:
    return (
        f"R{snap.round_index} t={snap.display_time_remaining}s "
        f"VU={meter_percent(snap.vu):3d}% PPM={meter_percent(snap.ppm):3d}% "
        f"Peak={meter_percent(snap.peak):3d}% LUFS={meter_percent(snap.lufs):3d}%"
    )


class GameOrchestrator:
    """
    Stands in for the display refresh: one engine step per tick at ~fps.
    Control calls (gain, dynamics, pause, submit) take the same lock as the
    step, so a round reset is never seen half-done.
    """

    def __init__(self, engine: Optional[MeterEngine] = None, fps: float = 60.0, log_every: float = 0.5,
                 **engine_kwargs):
        if engine is not None and engine_kwargs:
            raise ValueError("Pass either an engine or engine keyword arguments, not both.")
        self.engine = engine if engine is not None else MeterEngine(**engine_kwargs)
        self._tick = 1.0 / float(max(1.0, fps))
        self._log_every = float(log_every)
        self._last_log = 0.0
        self._subscribed = False

        self._lock = threading.Lock()
        self._run_event = threading.Event()
        self._done = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._last_err: Optional[str] = None

    # ---------- Public API ----------

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        if not self._subscribed:
            self.engine.subscribe(self._on_snapshot)
            self._subscribed = True
        self._run_event.set()
        self._done.clear()
        self._last_err = None
        self._thread = threading.Thread(target=self._run, name="MeterEngine", daemon=True)
        _LOG.debug("Frame loop started at %.0f fps", 1.0 / self._tick)
        self._thread.start()

    def stop(self, join: bool = True) -> None:
        self._run_event.clear()
        self._done.set()
        if join and self._thread:
            self._thread.join(timeout=2.0)

    def tick(self, now: Optional[float] = None) -> MeterSnapshot:
        """Run exactly one engine step (worker loop, or manual driving in tests)."""
        with self._lock:
            return self.engine.step(time.monotonic() if now is None else now)

    def set_gain(self, gain_db: float) -> None:
        with self._lock:
            self.engine.set_gain(gain_db)

    def set_dynamics(self, dynamics: float) -> None:
        with self._lock:
            self.engine.set_dynamics(dynamics)

    def toggle_running(self) -> bool:
        with self._lock:
            return self.engine.toggle_running()

    def submit_round(self) -> Optional[int]:
        with self._lock:
            return self.engine.submit_round()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the loop ends (game over, stop or failure); True if within timeout."""
        return self._done.wait(timeout)

    def last_error(self) -> Optional[str]:
        return self._last_err

    def run(self) -> None:
        try:
            self.start()
            while not self._done.wait(0.2):
                pass
        except KeyboardInterrupt:
            pass
        finally:
            self.stop()
            if self._last_err:
                print(f"[GAME] {self._last_err}")
            self._print_summary()

    # ---------- Internal ----------

    def _run(self) -> None:
        try:
            while self._run_event.is_set():
                t0 = time.monotonic()
                snap = self.tick(t0)
                if snap.game_over:
                    _LOG.debug("Frame loop finished: game over")
                    break
                dt = time.monotonic() - t0
                time.sleep(max(0.0, self._tick - dt))
        except Exception as e:
            self._last_err = f"Frame loop failed: {e}"
            _LOG.exception("Frame loop failed")
            self._run_event.clear()
        finally:
            self._done.set()

    def _on_snapshot(self, snap: MeterSnapshot) -> None:
        if not snap.running:
            return
        if snap.ts - self._last_log >= self._log_every:
            self._last_log = snap.ts
            print(f"[METER] {format_meters(snap)}")

    def _print_summary(self) -> None:
        rnd = self.engine.round
        for i, s in enumerate(rnd.scores, start=1):
            print(f"[GAME] Round {i}: {s} / 100")
        print(f"[GAME] Total score: {rnd.total_score} / {rnd.max_total_score}")
