#!/usr/bin/env python3
"""
Edit the expression -> command trigger mappings from the command line.

Usage:
    python -m expression_triggers.cli.manage --storage triggers.json list
    python -m expression_triggers.cli.manage --storage triggers.json set happy \
        --command "Alexa, play jazz" --hold 1.5
    python -m expression_triggers.cli.manage --storage triggers.json add \
        "🤨 Raised Brow" "Alexa, stop" --hold 2
    python -m expression_triggers.cli.manage --storage triggers.json rename happy surprised
    python -m expression_triggers.cli.manage --storage triggers.json remove custom_1700000000000
    python -m expression_triggers.cli.manage --storage triggers.json reset
"""

import argparse
import logging
import sys
from typing import List, Optional

from expression_triggers.storage import JsonFileStorage
from expression_triggers.store import ConfigurationStore

logging.basicConfig(
    level=logging.WARNING,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

DEFAULT_STORAGE = "expression_triggers.json"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Manage expression trigger mappings",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--storage",
        type=str,
        default=DEFAULT_STORAGE,
        help="JSON file with expression -> command mappings",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    sub = parser.add_subparsers(dest="action", required=True)

    list_parser = sub.add_parser("list", help="Show all mappings")
    list_parser.add_argument("--active", action="store_true", help="Only enabled mappings")

    set_parser = sub.add_parser("set", help="Create or update a mapping")
    set_parser.add_argument("key", help="Expression key")
    set_parser.add_argument("--name", dest="display_name", default=None, help="Display name")
    set_parser.add_argument("--command", default=None, help="Assistant command")
    set_parser.add_argument("--hold", type=float, default=None, help="Hold time in seconds")
    toggle = set_parser.add_mutually_exclusive_group()
    toggle.add_argument("--enable", dest="enabled", action="store_true", default=None)
    toggle.add_argument("--disable", dest="enabled", action="store_false")

    add_parser = sub.add_parser("add", help="Add a custom expression")
    add_parser.add_argument("display_name", help="Display name")
    add_parser.add_argument("command", help="Assistant command")
    add_parser.add_argument("--hold", type=float, default=2.0, help="Hold time in seconds")

    rename_parser = sub.add_parser("rename", help="Move a mapping to another expression")
    rename_parser.add_argument("old_key")
    rename_parser.add_argument("new_key")

    remove_parser = sub.add_parser("remove", help="Remove a mapping")
    remove_parser.add_argument("key")

    sub.add_parser("reset", help="Restore the built-in mappings")

    return parser.parse_args(argv)


def format_entry(key: str, config, is_default: bool) -> str:
    state = "on " if config.enabled else "off"
    origin = "default" if is_default else "custom "
    return (
        f"[{state}] {origin} {key:<16} {config.display_name:<24} "
        f"{config.hold_time_seconds:>4.1f}s  {config.command}"
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the manage CLI."""
    args = parse_args(argv)
    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)

    store = ConfigurationStore(JsonFileStorage(args.storage))

    if args.action == "list":
        entries = store.active() if args.active else store.list()
        for key, config in entries:
            print(format_entry(key, config, store.is_default(key)))
        return 0

    if args.action == "set":
        updates = {
            'display_name': args.display_name,
            'command': args.command,
            'hold_time_seconds': args.hold,
            'enabled': args.enabled,
        }
        config = store.upsert(args.key, {k: v for k, v in updates.items() if v is not None})
        print(format_entry(args.key, config, store.is_default(args.key)))
        return 0

    if args.action == "add":
        try:
            key = store.add_custom(args.display_name, args.command, args.hold)
        except ValueError as e:
            logger.error(str(e))
            return 2
        print(key)
        return 0

    if args.action == "rename":
        if not store.rename(args.old_key, args.new_key):
            logger.error(f"Cannot move {args.old_key!r} to {args.new_key!r}")
            return 1
        return 0

    if args.action == "remove":
        if not store.remove(args.key):
            logger.error(f"No mapping for {args.key!r}")
            return 1
        return 0

    if args.action == "reset":
        store.reset_to_defaults()
        return 0

    return 2


if __name__ == "__main__":
    sys.exit(main())
