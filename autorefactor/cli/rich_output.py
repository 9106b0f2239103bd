"""
Terminal output for the autorefactor CLI.

Renders split results, dry-run analyses and file tables with rich. The same
manager prints plain, uncoloured text when ``--no-rich`` is given, so the
command handlers never branch on the output mode themselves.
"""

from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from autorefactor.api import RefactorResult
from autorefactor.discovery import FileToRefactor
from autorefactor.refactoring.analyzer import SplitAnalysis


class RichOutputManager:
    """Prints CLI output either through rich markup or as plain lines."""

    def __init__(self, use_rich: bool = True, console: Optional[Console] = None):
        self.use_rich = use_rich
        self.console = console or Console(highlight=use_rich, no_color=not use_rich)

    def _plain(self, text: str = "") -> None:
        self.console.print(text, markup=False, highlight=False, soft_wrap=True)

    def _status(self, symbol: str, colour: str, message: str) -> None:
        if self.use_rich:
            self.console.print(f"[{colour}]{symbol}[/{colour}] {escape(message)}", soft_wrap=True)
        else:
            self._plain(f"{symbol} {message}")

    def print_header(self, title: str, subtitle: Optional[str] = None) -> None:
        if not self.use_rich:
            self._plain(f"\n=== {title} ===")
            if subtitle:
                self._plain(subtitle)
            return
        body = f"[bold blue]{escape(title)}[/bold blue]"
        if subtitle:
            body += f"\n[dim]{escape(subtitle)}[/dim]"
        self.console.print(Panel(body, border_style="blue", padding=(0, 2)))

    def print_section(self, title: str) -> None:
        if self.use_rich:
            self.console.rule(f"[bold]{escape(title)}[/bold]", style="blue")
        else:
            self._plain(f"\n--- {title} ---")

    def print_success(self, message: str) -> None:
        self._status("✓", "green", message)

    def print_warning(self, message: str) -> None:
        self._status("⚠", "yellow", message)

    def print_error(self, message: str) -> None:
        self._status("✗", "red", message)

    def print_info(self, message: str) -> None:
        self._status("ℹ", "blue", message)

    def print_detail(self, text: str) -> None:
        """An indented line under the last status line."""
        if self.use_rich:
            self.console.print(f"  [dim]{escape(text)}[/dim]", soft_wrap=True)
        else:
            self._plain(f"  {text}")

    def print_file_table(self, title: str, files: List[FileToRefactor], shown: List[str]) -> None:
        """Oversized files; ``shown`` holds the display path of each entry."""
        if not self.use_rich:
            self._plain(f"\n{title}")
            self._plain("-" * len(title))
            for label, file in zip(shown, files):
                self._plain(f"{label} | {file.lines} | {file.framework}")
            return
        table = Table(title=title, show_header=True, header_style="bold blue")
        table.add_column("File")
        table.add_column("Lines", justify="right")
        table.add_column("Framework")
        for label, file in zip(shown, files):
            table.add_row(escape(label), str(file.lines), file.framework)
        self.console.print(table)

    def print_refactor_result(self, result: RefactorResult) -> None:
        """One file of a run: written files, backup, warnings or the error."""
        prefix = "[DRY RUN] " if result.dry_run else ""
        if not result.success:
            self.print_error(f"{prefix}{result.original_file}: FAILED")
            self.print_detail(f"Error: {result.error}")
        elif result.new_files:
            self.print_success(f"{prefix}{result.original_file}")
            for new_file in result.new_files:
                self.print_detail(f"-> {new_file}")
            self.print_detail(f"Lines reduced: {result.lines_reduced}")
            if result.backup_path:
                self.print_detail(f"Backup: {result.backup_path}")
        else:
            self.print_info(f"{prefix}{result.original_file}: nothing to split")
        for warning in result.warnings:
            self.print_warning(warning)

    def print_analysis(self, analysis: SplitAnalysis) -> None:
        """Dry-run summary of one file."""
        self.print_section(f"Analysis of {analysis.path.name}")
        for line in analysis.summary_lines():
            if self.use_rich:
                self.console.print(escape(line), highlight=False, soft_wrap=True)
            else:
                self._plain(line)


rich_output = RichOutputManager()


def set_rich_enabled(enabled: bool) -> None:
    """Replace the shared manager; ``--no-rich`` switches to plain text."""
    global rich_output
    rich_output = RichOutputManager(use_rich=enabled)


def get_rich_output() -> RichOutputManager:
    return rich_output
