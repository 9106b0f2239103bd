"""Command-line support for autorefactor: output helpers and command handlers."""
