"""
Configuration commands for the autorefactor CLI.

This module contains the handler for showing, creating and validating
configuration files.
"""

import sys

from autorefactor.config import AutoRefactorConfig, ConfigurationError, load_config
from autorefactor.cli.rich_output import get_rich_output


def cmd_config(args) -> None:
    """Handle config command."""
    rich_output = get_rich_output()

    if args.config_action == "show":
        config = load_config(getattr(args, "config", None), base_dir=args.project_root)
        print(config.get_config_summary())

    elif args.config_action == "create":
        config = AutoRefactorConfig.default()
        config.to_file(args.path, args.format)
        rich_output.print_success(f"Default configuration created at {args.path}")

    elif args.config_action == "validate":
        try:
            AutoRefactorConfig.from_file(args.path)
        except ConfigurationError as e:
            rich_output.print_error(f"Configuration is invalid: {e}")
            sys.exit(1)
        rich_output.print_success(f"Configuration file {args.path} is valid")
