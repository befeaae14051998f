#!/usr/bin/env python3
"""
Replay a recorded expression feed through the trigger engine.

The feed is a JSON-lines file, one tick per line:

    {"expressions": {"happy": 0.92, "neutral": 0.05}, "landmarks": [[x, y], ...]}
    {"face": false}

Lines with ``"face": false`` are ticks where no face was detected and are
skipped, as the live loop would. Triggered commands go to the simulated
assistant.

Usage:
    python -m expression_triggers.cli.run recording.jsonl \
        --storage triggers.json \
        --no-wait
"""

import argparse
import json
import logging
import random
import signal
import sys
from pathlib import Path
from typing import Iterator, List, Optional

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Replay an expression feed and fire command triggers",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "feed",
        type=str,
        nargs="?",
        default=None,
        help="JSON-lines feed of per-tick readings",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to settings file (YAML or JSON)",
    )
    parser.add_argument(
        "--storage",
        type=str,
        default=None,
        help="JSON file with expression -> command mappings",
    )

    # Timing arguments
    parser.add_argument(
        "--no-wait",
        action="store_true",
        help="Replay as fast as possible instead of at the tick period",
    )
    parser.add_argument(
        "--failure-rate",
        type=float,
        default=None,
        help="Override the simulated assistant failure rate",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for the simulated assistant",
    )

    # Output arguments
    parser.add_argument(
        "--show-progress",
        action="store_true",
        help="Log the status line of every tick",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    parser.add_argument(
        "--create-config",
        type=str,
        default=None,
        metavar="PATH",
        help="Create a default settings file and exit",
    )

    return parser.parse_args(argv)


def read_feed(path: Path) -> Iterator[Optional[dict]]:
    """Yield decoded records; None for no-face ticks and unreadable lines."""
    with open(path, 'r', encoding='utf-8') as f:
        for line_no, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning(f"{path}:{line_no}: skipping bad record: {e}")
                yield None
                continue
            if not isinstance(record, dict) or record.get('face') is False:
                yield None
                continue
            yield record


class ReplayRunner:
    """Feeds recorded ticks to the engine and counts outcomes."""

    def __init__(self, args: argparse.Namespace):
        self.args = args
        self.engine = None
        self.scheduler = None
        self.triggers = 0
        self._records: Optional[Iterator[Optional[dict]]] = None
        self._tick_index = 0

    def setup(self) -> bool:
        """Build the engine from settings and arguments."""
        from expression_triggers.config import EngineSettings, load_settings
        from expression_triggers.dispatch import CommandDispatcher, SimulatedAssistant
        from expression_triggers.engine import ExpressionTriggerEngine

        settings = load_settings(self.args.config) if self.args.config else EngineSettings()
        if self.args.storage:
            settings.storage_path = self.args.storage
        if self.args.failure_rate is not None:
            settings.dispatch_failure_rate = self.args.failure_rate

        assistant_kwargs = dict(
            min_latency=settings.dispatch_min_latency,
            latency_jitter=settings.dispatch_latency_jitter,
            failure_rate=settings.dispatch_failure_rate,
            rng=random.Random(self.args.seed),
        )
        if self.args.no_wait:
            # Inline dispatch, so skip the simulated latency too
            assistant_kwargs['sleep'] = lambda seconds: None
        assistant = SimulatedAssistant(**assistant_kwargs)
        dispatcher = CommandDispatcher(
            assistant,
            on_status=lambda text: logger.info(text),
            background=not self.args.no_wait,
        )
        self.engine = ExpressionTriggerEngine(settings=settings, dispatcher=dispatcher)
        self.engine.add_listener(self._on_event)

        feed_path = Path(self.args.feed)
        if not feed_path.exists():
            logger.error(f"Feed not found: {feed_path}")
            return False
        self._records = read_feed(feed_path)
        return True

    def _on_event(self, event) -> None:
        if event.triggered:
            self.triggers += 1
            logger.info(
                f"TRIGGER {self.engine.display_name(event.expression_key)} -> "
                f"{event.config.command!r}"
            )
        elif self.args.show_progress:
            logger.info(event.describe(self.engine.display_name(event.expression_key)))

    def tick(self) -> None:
        """Process the next record; stop the scheduler when the feed ends."""
        from expression_triggers.readings import ExpressionReading

        record = next(self._records, StopIteration)
        if record is StopIteration:
            if self.scheduler is not None:
                self.scheduler.stop()
            return

        now = self._tick_index * self.engine.settings.tick_period
        self._tick_index += 1
        if record is None:
            return

        try:
            reading = ExpressionReading.from_dict(record)
        except (TypeError, ValueError, IndexError, KeyError, AttributeError) as e:
            logger.warning(f"Skipping malformed reading at tick {self._tick_index - 1}: {e}")
            return
        self.engine.process(reading, now=reading.timestamp if reading.timestamp is not None else now)

    def run(self) -> int:
        """Replay the whole feed."""
        from expression_triggers.scheduler import TickScheduler

        if self.engine is None:
            return 1

        if self.args.no_wait:
            before = -1
            while before != self._tick_index:
                before = self._tick_index
                self.tick()
        else:
            self.scheduler = TickScheduler(self.tick, period=self.engine.settings.tick_period)
            self.scheduler.run()
            self.engine.dispatcher.wait()

        logger.info(f"Replayed {self._tick_index} ticks, {self.triggers} triggers")
        return 0

    def stop(self) -> None:
        if self.scheduler is not None:
            self.scheduler.stop()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the replay CLI."""
    args = parse_args(argv)

    # Set log level
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.WARNING)

    if args.create_config:
        from expression_triggers.config import create_default_settings
        create_default_settings(args.create_config)
        print(f"Created default settings at: {args.create_config}")
        return 0

    if args.feed is None:
        logger.error("No feed given")
        return 2

    runner = ReplayRunner(args)

    def signal_handler(signum, frame):
        logger.info("Received shutdown signal")
        runner.stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    if not runner.setup():
        return 1
    return runner.run()


if __name__ == "__main__":
    sys.exit(main())
