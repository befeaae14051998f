"""
Fixed-period tick scheduling and neutral calibration.

TickScheduler drives the detection loop: it calls a tick function once per
period until stopped. Stopping is cooperative; a tick in progress always
completes. Calibrator runs a short, time-boxed sampling loop of its own.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional

import numpy as np

logger = logging.getLogger(__name__)


class TickScheduler:
    """
    Calls ``tick_fn`` every ``period`` seconds.

    A tick that raises is logged and the loop keeps going, so one bad
    frame never stops detection.
    """

    def __init__(
        self,
        tick_fn: Callable[[], None],
        period: float = 0.1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if period <= 0:
            raise ValueError(f"period must be > 0, got {period}")
        self.tick_fn = tick_fn
        self.period = period
        self._clock = clock
        self._sleep = sleep
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._running = False
        self.tick_count = 0
        self.error_count = 0

    @property
    def is_running(self) -> bool:
        return self._running

    def run(self, max_ticks: Optional[int] = None) -> None:
        """
        Run the loop on the calling thread until stop() or ``max_ticks``.
        """
        self._stop.clear()
        self._running = True
        logger.info(f"Tick loop started (period {self.period * 1000:.0f} ms)")
        try:
            next_tick = self._clock()
            while not self._stop.is_set():
                if max_ticks is not None and self.tick_count >= max_ticks:
                    break
                try:
                    self.tick_fn()
                except Exception:
                    self.error_count += 1
                    logger.exception("Tick failed")
                self.tick_count += 1

                next_tick += self.period
                delay = next_tick - self._clock()
                if delay > 0:
                    self._sleep(delay)
                else:
                    # Behind schedule: resync rather than burst
                    next_tick = self._clock()
        finally:
            self._running = False
            logger.info(f"Tick loop stopped after {self.tick_count} ticks")

    def start(self) -> threading.Thread:
        """Run the loop on a background daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            raise RuntimeError("Tick loop already running")
        self._running = True
        self._thread = threading.Thread(target=self.run, name="tick-loop", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, timeout: Optional[float] = None) -> None:
        """Ask the loop to finish after the current tick."""
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
            self._thread = None


@dataclass
class CalibrationResult:
    """Neutral-face baseline collected by the Calibrator.

    Attributes:
        sample_count: Ticks on which a face was seen
        baseline: Mean confidence per expression key over those samples
    """
    sample_count: int = 0
    baseline: Dict[str, float] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.sample_count > 0


class Calibrator:
    """
    Samples basic expression scores while the user holds a neutral face.

    ``sample_fn`` returns the current basic scores, or None when no face is
    visible. Must not run while the detection loop is running.
    """

    def __init__(
        self,
        sample_fn: Callable[[], Optional[Mapping[str, float]]],
        window: float = 3.0,
        period: float = 0.2,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if window <= 0 or period <= 0:
            raise ValueError(f"window and period must be > 0, got {window}, {period}")
        self.sample_fn = sample_fn
        self.window = window
        self.period = period
        self._clock = clock
        self._sleep = sleep

    def run(self) -> CalibrationResult:
        samples: List[Mapping[str, float]] = []
        start = self._clock()
        logger.info(f"Calibrating for {self.window:.1f}s, hold a neutral expression")

        while True:
            try:
                scores = self.sample_fn()
            except Exception as e:
                logger.warning(f"Calibration sample failed: {e}")
                scores = None
            if scores:
                samples.append(scores)
            if self._clock() - start >= self.window:
                break
            self._sleep(self.period)

        result = CalibrationResult(sample_count=len(samples), baseline=_mean_scores(samples))
        logger.info(f"Calibration complete with {result.sample_count} samples")
        return result


def _mean_scores(samples: List[Mapping[str, float]]) -> Dict[str, float]:
    """Per-key mean; keys missing from a sample count as 0."""
    if not samples:
        return {}
    keys: List[str] = []
    for sample in samples:
        keys.extend(k for k in sample if k not in keys)
    matrix = np.array([[float(s.get(k, 0.0)) for k in keys] for s in samples])
    means = matrix.mean(axis=0)
    return {k: float(v) for k, v in zip(keys, means)}
