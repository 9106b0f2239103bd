"""
CLI command handlers for autorefactor.

Each handler receives the parsed argparse namespace (and, for the
refactoring commands, an AutoRefactor instance).
"""

from autorefactor.cli.commands.config import cmd_config
from autorefactor.cli.commands.refactoring import (
    cmd_analyze,
    cmd_init,
    cmd_run,
    cmd_scan,
    format_refactor_results,
)

__all__ = [
    "cmd_config",
    "cmd_init",
    "cmd_scan",
    "cmd_run",
    "cmd_analyze",
    "format_refactor_results",
]
