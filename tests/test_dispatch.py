"""
Tests for CommandDispatcher and SimulatedAssistant.
"""

import random
import threading

import pytest

from expression_triggers.dispatch import (
    Assistant,
    CommandDispatcher,
    DispatchError,
    SimulatedAssistant,
)


def instant_assistant(failure_rate=0.0, seed=0):
    return SimulatedAssistant(failure_rate=failure_rate, rng=random.Random(seed),
                              sleep=lambda s: None)


class TestSimulatedAssistant:

    def test_latency_within_bounds(self):
        slept = []
        assistant = SimulatedAssistant(min_latency=0.5, latency_jitter=1.0, failure_rate=0.0,
                                       rng=random.Random(1), sleep=slept.append)
        for _ in range(20):
            assistant.send("Alexa, play music")
        assert all(0.5 <= s <= 1.5 for s in slept)
        assert len(assistant.sent) == 20

    def test_always_failing(self):
        assistant = instant_assistant(failure_rate=1.0)
        with pytest.raises(DispatchError):
            assistant.send("Alexa, stop")
        assert assistant.sent == []

    @pytest.mark.parametrize("rate", [-0.1, 1.5])
    def test_invalid_failure_rate(self, rate):
        with pytest.raises(ValueError):
            SimulatedAssistant(failure_rate=rate)


class TestCommandDispatcher:

    def test_inline_success_reports_status(self):
        statuses = []
        dispatcher = CommandDispatcher(instant_assistant(), on_status=statuses.append,
                                       background=False)

        assert dispatcher.dispatch("Alexa, play music") is None

        assert statuses == ['Sending command: "Alexa, play music"',
                            'Command sent: "Alexa, play music"']
        assert dispatcher.sent_count == 1
        assert dispatcher.failed_count == 0

    def test_inline_failure_reports_error(self):
        statuses = []
        dispatcher = CommandDispatcher(instant_assistant(failure_rate=1.0),
                                       on_status=statuses.append, background=False)

        dispatcher.dispatch("Alexa, stop")

        assert statuses[-1] == "Error sending command: Connection to assistant failed"
        assert dispatcher.failed_count == 1
        assert dispatcher.sent_count == 0

    def test_unexpected_assistant_error_is_contained(self):
        class Broken(Assistant):
            def send(self, command):
                raise OSError("socket closed")

        statuses = []
        dispatcher = CommandDispatcher(Broken(), on_status=statuses.append, background=False)
        dispatcher.dispatch("Alexa, stop")

        assert statuses[-1] == "Error sending command: socket closed"

    def test_empty_command_is_ignored(self):
        assistant = instant_assistant()
        dispatcher = CommandDispatcher(assistant)
        assert dispatcher.dispatch("") is None
        assert assistant.sent == []

    def test_background_dispatch_does_not_block(self):
        release = threading.Event()

        class Blocking(Assistant):
            def __init__(self):
                self.sent = []

            def send(self, command):
                release.wait(2.0)
                self.sent.append(command)

        assistant = Blocking()
        dispatcher = CommandDispatcher(assistant)

        thread = dispatcher.dispatch("Alexa, play music")
        assert thread is not None and thread.daemon
        assert assistant.sent == []

        release.set()
        dispatcher.wait(timeout=2.0)
        assert assistant.sent == ["Alexa, play music"]
        assert dispatcher.sent_count == 1

    def test_overlapping_dispatches_allowed(self):
        assistant = instant_assistant()
        dispatcher = CommandDispatcher(assistant)

        for i in range(5):
            dispatcher.dispatch(f"command {i}")
        dispatcher.wait(timeout=2.0)

        assert sorted(assistant.sent) == [f"command {i}" for i in range(5)]
