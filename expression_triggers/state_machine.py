"""
Hold-time and cooldown tracking that turns sustained expressions into triggers.

Each expression key moves through three implicit states:

    Idle     no timing entry
    Holding  start_time set, held for less than the configured hold time
    Cooling  fired recently; further fires wait out the cooldown

Timestamps are seconds from a monotonic clock.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from expression_triggers.store import DEFAULT_TRIGGERS, ConfigurationStore, TriggerConfig

logger = logging.getLogger(__name__)


@dataclass
class ExpressionTimingState:
    """Per-key timing. ``last_trigger_time`` starts in the far past."""

    start_time: Optional[float] = None
    last_trigger_time: float = float('-inf')


@dataclass(frozen=True)
class TriggerEvent:
    """Outcome of one tick.

    Attributes:
        triggered: True only on the tick the command should be dispatched
        expression_key: Resolved key the timing state is tracked under
        config: Resolved trigger config, None if the key is unconfigured
        confidence: Best-expression confidence for this tick
        progress: Hold progress in percent [0, 100]
    """

    triggered: bool
    expression_key: str
    config: Optional[TriggerConfig]
    confidence: float
    progress: float

    def describe(self, display_name: Optional[str] = None) -> str:
        """Status line: hold progress while holding, confidence otherwise."""
        name = display_name or (self.config.display_name if self.config else self.expression_key)
        if self.progress > 0 and self.config is not None:
            return f"{name} ({round(self.progress)}% - {self.config.hold_time_seconds}s)"
        return f"{name} ({round(self.confidence * 100)}%)"


def resolve_config(
    key: str, store: ConfigurationStore
) -> Tuple[str, Optional[TriggerConfig]]:
    """
    Find the trigger config for a detected expression key.

    Precedence:
      1. a config stored directly under ``key``
      2. if ``key`` is a built-in expression, the first config (store order)
         carrying that built-in's display name; this covers a user who moved
         a built-in's trigger to a new key
      3. unconfigured: ``(key, None)``

    Returns:
        (resolved_key, config)
    """
    config = store.get(key)
    if config is not None:
        return key, config

    default = DEFAULT_TRIGGERS.get(key)
    if default is not None:
        match = store.find_by_display_name(default.display_name)
        if match is not None:
            return match

    return key, None


class TriggerStateMachine:
    """
    Debounces expressions into trigger events.

    Attributes:
        confidence_threshold: Confidence must be strictly above this.
        cooldown_seconds: Minimum gap between two fires of the same key.
    """

    CONFIDENCE_THRESHOLD = 0.6
    COOLDOWN_SECONDS = 3.0

    def __init__(
        self,
        confidence_threshold: float = CONFIDENCE_THRESHOLD,
        cooldown_seconds: float = COOLDOWN_SECONDS,
    ):
        if cooldown_seconds < 0:
            raise ValueError(f"cooldown_seconds must be >= 0, got {cooldown_seconds}")
        self.confidence_threshold = confidence_threshold
        self.cooldown_seconds = cooldown_seconds
        self._states: Dict[str, ExpressionTimingState] = {}
        # Key that was the best candidate on the previous tick
        self._candidate: Optional[str] = None

    def is_eligible(self, confidence: float, config: Optional[TriggerConfig]) -> bool:
        return (
            confidence > self.confidence_threshold
            and config is not None
            and config.enabled
        )

    def advance(
        self,
        key: str,
        confidence: float,
        config: Optional[TriggerConfig],
        now: float,
    ) -> TriggerEvent:
        """
        Advance the timing state of ``key`` by one tick.

        An ineligible tick ends only this key's hold; the entry is dropped
        unless the key has fired, in which case its cooldown is kept. When
        the candidate changes, the previous key's hold ends the same way, so
        switching away and back always needs a full new hold. A fully held
        expression still inside the cooldown reports 100% without restarting
        its hold.

        Args:
            key: Resolved expression key
            confidence: Best-expression confidence
            config: Resolved config for ``key`` or None
            now: Current time in seconds

        Returns:
            TriggerEvent for this tick
        """
        if self._candidate is not None and self._candidate != key:
            previous = self._states.get(self._candidate)
            if previous is not None and previous.start_time is not None:
                previous.start_time = None
                logger.debug(f"Hold on {self._candidate} ended, {key} took over")
        self._candidate = key

        if not self.is_eligible(confidence, config):
            state = self._states.get(key)
            if state is not None:
                if state.last_trigger_time == float('-inf'):
                    del self._states[key]
                else:
                    # Keep the cooldown of a key that already fired
                    state.start_time = None
                logger.debug(f"Hold on {key} dropped")
            return TriggerEvent(False, key, config, confidence, 0.0)

        state = self._states.setdefault(key, ExpressionTimingState())
        if state.start_time is None:
            state.start_time = now
            logger.debug(f"Hold on {key} started")

        held = now - state.start_time
        hold_time = config.hold_time_seconds

        if held < hold_time:
            progress = min(100.0, 100.0 * held / hold_time)
            return TriggerEvent(False, key, config, confidence, progress)

        if now - state.last_trigger_time > self.cooldown_seconds:
            state.last_trigger_time = now
            state.start_time = None
            logger.info(f"Triggered {key} after {held:.2f}s hold")
            return TriggerEvent(True, key, config, confidence, 100.0)

        return TriggerEvent(False, key, config, confidence, 100.0)

    def progress_for(self, key: str, now: float, hold_time_seconds: float) -> float:
        """Current hold progress of ``key`` in percent, 0 when idle."""
        state = self._states.get(key)
        if state is None or state.start_time is None:
            return 0.0
        return min(100.0, 100.0 * (now - state.start_time) / hold_time_seconds)

    def timing_for(self, key: str) -> Optional[ExpressionTimingState]:
        return self._states.get(key)

    def clear(self, key: Optional[str] = None) -> None:
        """Forget the timing of ``key``, or of every key when None."""
        if key is None:
            self._states.clear()
            self._candidate = None
        else:
            self._states.pop(key, None)

    @property
    def tracked_keys(self):
        return list(self._states)
