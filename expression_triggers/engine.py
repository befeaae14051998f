"""
Expression trigger engine that coordinates all components.

This is the main entry point. Per tick:

    ExpressionReading -> ExpressionScorer -> (key, confidence)
        -> resolve_config (ConfigurationStore) -> TriggerStateMachine
        -> TriggerEvent -> CommandDispatcher (when triggered)

The engine also owns cross-component edits: removing, renaming or
resetting trigger configs keeps the timing state consistent. Edits may
come from any thread; they are serialised with ticks under one lock.
"""

import logging
import threading
import time
from typing import Any, Callable, List, Mapping, Optional

from expression_triggers.config import EngineSettings
from expression_triggers.dispatch import CommandDispatcher
from expression_triggers.readings import ExpressionReading
from expression_triggers.scheduler import CalibrationResult, Calibrator, TickScheduler
from expression_triggers.scorer import ExpressionScorer
from expression_triggers.state_machine import TriggerEvent, TriggerStateMachine, resolve_config
from expression_triggers.storage import JsonFileStorage
from expression_triggers.store import DEFAULT_HOLD_TIME, ConfigurationStore, TriggerConfig

logger = logging.getLogger(__name__)


class ExpressionTriggerEngine:
    """
    Turns a stream of expression readings into debounced command triggers.

    Usage:
        engine = ExpressionTriggerEngine(dispatcher=CommandDispatcher(SimulatedAssistant()))
        event = engine.process(ExpressionReading({"happy": 0.9}))

        # Or drive it from a feed at the tick period
        engine.start(camera_feed)
        ...
        engine.stop()
    """

    def __init__(
        self,
        store: Optional[ConfigurationStore] = None,
        scorer: Optional[ExpressionScorer] = None,
        state_machine: Optional[TriggerStateMachine] = None,
        dispatcher: Optional[CommandDispatcher] = None,
        settings: Optional[EngineSettings] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Build an engine; components not given are created from ``settings``.

        Parameters:
            store: Trigger mappings. Defaults to JSON storage at
                ``settings.storage_path``, or memory when that is None.
            scorer: Expression scorer
            state_machine: Hold/cooldown tracker
            dispatcher: Receives triggered commands; None disables dispatch
            settings: Thresholds and timing
            clock: Monotonic clock in seconds, used when a reading has no timestamp
        """
        self.settings = settings or EngineSettings()
        if store is None:
            storage = (
                JsonFileStorage(self.settings.storage_path)
                if self.settings.storage_path else None
            )
            store = ConfigurationStore(storage)
        self.store = store
        self.scorer = scorer or ExpressionScorer(
            noise_floor=self.settings.noise_floor,
            geometric_floor=self.settings.geometric_floor,
        )
        self.state_machine = state_machine or TriggerStateMachine(
            confidence_threshold=self.settings.confidence_threshold,
            cooldown_seconds=self.settings.cooldown_seconds,
        )
        self.dispatcher = dispatcher
        self._clock = clock

        self._listeners: List[Callable[[TriggerEvent], None]] = []
        self._scheduler: Optional[TickScheduler] = None
        self.last_event: Optional[TriggerEvent] = None
        self.calibration: Optional[CalibrationResult] = None
        # Serialises ticks with config edits made from other threads
        self._lock = threading.Lock()

    def add_listener(self, listener: Callable[[TriggerEvent], None]) -> None:
        """Register a callback receiving every tick's TriggerEvent."""
        self._listeners.append(listener)

    def process(self, reading: ExpressionReading, now: Optional[float] = None) -> TriggerEvent:
        """
        Run one tick.

        Args:
            reading: Classifier scores and landmarks for the tick
            now: Tick time in seconds; defaults to the reading's timestamp,
                then the engine clock

        Returns:
            TriggerEvent for the tick
        """
        if now is None:
            now = reading.timestamp if reading.timestamp is not None else self._clock()

        best = self.scorer.score(reading)
        with self._lock:
            key, config = resolve_config(best.key, self.store)
            event = self.state_machine.advance(key, best.confidence, config, now)

        if event.triggered and self.dispatcher is not None:
            self.dispatcher.dispatch(event.config.command)

        self.last_event = event
        for listener in self._listeners:
            listener(event)
        return event

    def display_name(self, key: str) -> str:
        with self._lock:
            return self.store.display_name(key)

    def update_expression(self, key: str, updates: Mapping[str, Any]) -> TriggerConfig:
        """Create or update a trigger config."""
        with self._lock:
            return self.store.upsert(key, updates)

    def add_custom_expression(
        self, display_name: str, command: str, hold_time_seconds: float = DEFAULT_HOLD_TIME
    ) -> str:
        with self._lock:
            return self.store.add_custom(display_name, command, hold_time_seconds)

    def remove_expression(self, key: str) -> bool:
        """Remove a trigger config and any hold in progress for it."""
        with self._lock:
            removed = self.store.remove(key)
            self.state_machine.clear(key)
        return removed

    def rename_expression(self, old_key: str, new_key: str) -> bool:
        """Move a trigger to another expression; both keys restart their hold."""
        with self._lock:
            moved = self.store.rename(old_key, new_key)
            if moved:
                self.state_machine.clear(old_key)
                self.state_machine.clear(new_key)
        return moved

    def reset_to_defaults(self) -> None:
        """Restore the built-in triggers and forget all timing state."""
        with self._lock:
            self.store.reset_to_defaults()
            self.state_machine.clear()

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.is_running

    def start(self, feed: Callable[[], Optional[ExpressionReading]]):
        """
        Start ticking on a background thread.

        Args:
            feed: Returns the current reading, or None when no face is
                visible (the tick is skipped)

        Returns:
            The scheduler thread
        """
        if self.is_running:
            raise RuntimeError("Detection already running")

        def tick() -> None:
            reading = feed()
            if reading is not None:
                self.process(reading)

        self._scheduler = TickScheduler(tick, period=self.settings.tick_period)
        return self._scheduler.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """Stop ticking after the current tick."""
        if self._scheduler is not None:
            self._scheduler.stop(timeout)
            self._scheduler = None

    def calibrate(
        self,
        sample_fn: Callable[[], Optional[Mapping[str, float]]],
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> CalibrationResult:
        """
        Collect a neutral baseline over the calibration window.

        Raises:
            RuntimeError: If detection is running
        """
        if self.is_running:
            raise RuntimeError("Stop detection before calibrating")
        calibrator = Calibrator(
            sample_fn,
            window=self.settings.calibration_window,
            period=self.settings.calibration_period,
            clock=clock,
            sleep=sleep,
        )
        self.calibration = calibrator.run()
        return self.calibration
