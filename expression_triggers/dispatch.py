"""
Fire-and-forget dispatch of triggered commands to a voice assistant.

Dispatch never blocks the tick loop and never feeds back into trigger
timing: the state machine's cooldown already rate-limits firing, so
overlapping dispatches are allowed. Failures become a status message and
are not retried.
"""

import logging
import random
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)


class DispatchError(Exception):
    """Raised by an assistant when a command could not be delivered."""


class Assistant(ABC):
    """Sink for command strings."""

    @abstractmethod
    def send(self, command: str) -> None:
        """
        Deliver ``command``. Blocks until done.

        Raises:
            DispatchError: If delivery failed
        """
        pass


class SimulatedAssistant(Assistant):
    """
    Stand-in assistant with random latency and occasional failure.

    Latency is ``min_latency + random() * latency_jitter`` seconds.
    """

    def __init__(
        self,
        min_latency: float = 0.5,
        latency_jitter: float = 1.0,
        failure_rate: float = 0.05,
        rng: Optional[random.Random] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if not (0 <= failure_rate <= 1):
            raise ValueError(f"failure_rate must be in range [0, 1], got {failure_rate}")
        self.min_latency = min_latency
        self.latency_jitter = latency_jitter
        self.failure_rate = failure_rate
        self._rng = rng or random.Random()
        self._sleep = sleep
        self.sent: List[str] = []

    def send(self, command: str) -> None:
        self._sleep(self.min_latency + self._rng.random() * self.latency_jitter)
        if self._rng.random() < self.failure_rate:
            raise DispatchError("Connection to assistant failed")
        self.sent.append(command)
        logger.info(f"Simulated command sent to assistant: {command}")


class CommandDispatcher:
    """
    Sends commands on background threads and reports the outcome.

    Usage:
        dispatcher = CommandDispatcher(SimulatedAssistant(), on_status=print)
        dispatcher.dispatch("Alexa, play music")
    """

    def __init__(
        self,
        assistant: Assistant,
        on_status: Optional[Callable[[str], None]] = None,
        background: bool = True,
    ):
        """
        Args:
            assistant: Where commands go
            on_status: Receives user-facing status lines
            background: Run each dispatch on its own daemon thread; when
                False, dispatch runs inline (useful for replay and tests)
        """
        self.assistant = assistant
        self.on_status = on_status
        self.background = background
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()
        self.sent_count = 0
        self.failed_count = 0

    def _status(self, text: str) -> None:
        if self.on_status is not None:
            self.on_status(text)

    def _deliver(self, command: str) -> bool:
        self._status(f'Sending command: "{command}"')
        try:
            self.assistant.send(command)
        except Exception as e:
            with self._lock:
                self.failed_count += 1
            logger.error(f"Failed to send command {command!r}: {e}")
            self._status(f"Error sending command: {e}")
            return False
        with self._lock:
            self.sent_count += 1
        self._status(f'Command sent: "{command}"')
        return True

    def dispatch(self, command: str) -> Optional[threading.Thread]:
        """
        Start delivering ``command`` and return immediately.

        Returns:
            The worker thread, or None when dispatching inline or when the
            command is empty.
        """
        if not command:
            logger.warning("Ignoring trigger with empty command")
            return None

        if not self.background:
            self._deliver(command)
            return None

        thread = threading.Thread(
            target=self._deliver, args=(command,), name="command-dispatch", daemon=True
        )
        thread.start()
        with self._lock:
            self._threads = [t for t in self._threads if t.is_alive()]
            self._threads.append(thread)
        return thread

    def wait(self, timeout: Optional[float] = None) -> None:
        """Join outstanding dispatch threads (used on shutdown)."""
        with self._lock:
            threads = list(self._threads)
        for thread in threads:
            thread.join(timeout)
