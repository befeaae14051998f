"""
CLI subpackage for command-line interface tools.

Available CLI scripts:
- run: Replay a recorded expression feed through the trigger engine
- manage: List and edit expression -> command mappings

Usage:
    python -m expression_triggers.cli.run --help
    python -m expression_triggers.cli.manage --help
"""

__all__ = ["run", "manage"]
