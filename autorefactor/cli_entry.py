"""
Command-line interface for autorefactor

Splits oversized TypeScript/JavaScript source files into per-category
modules from the command line, with rich terminal output.
"""

import argparse
import logging
import sys
from pathlib import Path

from autorefactor import __version__
from autorefactor.api import AutoRefactor
from autorefactor.cli.commands import cmd_analyze, cmd_config, cmd_init, cmd_run, cmd_scan
from autorefactor.cli.rich_output import set_rich_enabled
from autorefactor.config import load_config
from autorefactor.discovery import FRAMEWORK_DEPENDENCIES
from autorefactor.errors import RollbackFailure

logger = logging.getLogger(__name__)

REFACTOR_COMMANDS = {
    "init": cmd_init,
    "scan": cmd_scan,
    "run": cmd_run,
    "analyze": cmd_analyze,
}


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _add_format_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="text for people, json for scripts (default: text)",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="autorefactor",
        description="autorefactor - split oversized TS/JS files into per-category modules",
        epilog='Use "autorefactor <command> --help" for detailed command help.',
    )

    # Global options
    parser.add_argument("--config", "-c", type=str, help="Path to configuration file")
    parser.add_argument(
        "--project-root",
        "-p",
        type=str,
        default=".",
        help="Project directory (default: current directory)",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output and debug logging",
    )
    parser.add_argument(
        "--no-rich",
        action="store_true",
        help="Disable rich terminal output (use plain text)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Init command
    init_parser = subparsers.add_parser(
        "init", help="Write configuration, backup directory and .gitignore entry"
    )
    init_parser.add_argument(
        "--framework",
        choices=[name for name, _ in FRAMEWORK_DEPENDENCIES] + ["unknown"],
        help="Framework to record (auto-detected from package.json if not specified)",
    )

    # Scan command
    scan_parser = subparsers.add_parser("scan", help="List files exceeding the line threshold")
    _add_format_option(scan_parser)

    # Run command
    run_parser = subparsers.add_parser("run", help="Split every file exceeding the line threshold")
    run_parser.add_argument(
        "--dry",
        action="store_true",
        help="Analyze only; show what would be written without changing files",
    )
    _add_format_option(run_parser)

    # Analyze command
    analyze_parser = subparsers.add_parser(
        "analyze", help="Show how a single file would be split, without writing"
    )
    analyze_parser.add_argument("file", help="Source file to analyze")
    _add_format_option(analyze_parser)

    # Config command
    config_parser = subparsers.add_parser("config", help="Configuration management")
    config_subparsers = config_parser.add_subparsers(dest="config_action", required=True)

    config_subparsers.add_parser("show", help="Show the effective configuration")

    create_parser_ = config_subparsers.add_parser("create", help="Write a default configuration")
    create_parser_.add_argument(
        "--path", default=".auto-refactor.json", help="Output path (default: .auto-refactor.json)"
    )
    create_parser_.add_argument(
        "--format", choices=["json", "yaml"], default="json", help="File format (default: json)"
    )

    validate_parser = config_subparsers.add_parser("validate", help="Validate a configuration file")
    validate_parser.add_argument("path", help="Configuration file to validate")

    return parser


def main(argv=None) -> None:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    setup_logging(getattr(args, "verbose", False))
    set_rich_enabled(not getattr(args, "no_rich", False))

    try:
        if args.command == "config":
            cmd_config(args)
            return

        project_root = Path(args.project_root).resolve()
        config = load_config(getattr(args, "config", None), base_dir=str(project_root))
        refactor = AutoRefactor(config, project_root=project_root)
        REFACTOR_COMMANDS[args.command](args, refactor)

    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        sys.exit(1)
    except RollbackFailure as e:
        print(f"FATAL: {e}", file=sys.stderr)
        print(
            "The original file may be damaged. Restore it manually from the backup.",
            file=sys.stderr,
        )
        sys.exit(2)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if getattr(args, "verbose", False):
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
