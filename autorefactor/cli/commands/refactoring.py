"""
Refactoring commands for the autorefactor CLI.

This module contains command handlers for:
- Preparing a project (init)
- Listing oversized files (scan)
- Splitting every oversized file (run, with --dry for analysis only)
- Analyzing a single file without writing anything (analyze)
"""

import json
import sys
from typing import List

from autorefactor.api import AutoRefactor, RefactorResult
from autorefactor.cli.rich_output import get_rich_output


def format_refactor_results(results: List[RefactorResult]) -> str:
    """Machine-readable report of a run."""
    return json.dumps(
        {
            "success": all(r.success for r in results),
            "files_processed": len(results),
            "results": [r.to_dict() for r in results],
        },
        indent=2,
    )


def cmd_init(args, refactor: AutoRefactor) -> None:
    """Handle init command."""
    rich_output = get_rich_output()
    results = refactor.init(getattr(args, "framework", None))

    rich_output.print_header("autorefactor initialized", str(refactor.project_root))
    rich_output.print_info(f"Framework: {results['framework']}")
    rich_output.print_success(f"Configuration written to {results['config_file']}")
    rich_output.print_success(f"Backup directory: {results['backup_dir']}")
    if results["gitignore_updated"]:
        rich_output.print_success("Added backup directory to .gitignore")
    if results["package_json_updated"]:
        rich_output.print_success("Added refactor scripts to package.json")


def cmd_scan(args, refactor: AutoRefactor) -> None:
    """Handle scan command."""
    rich_output = get_rich_output()
    files = refactor.scan()

    if getattr(args, "format", "text") == "json":
        print(json.dumps([f.to_dict() for f in files], indent=2))
        return

    max_lines = refactor.config.split_settings.max_lines
    if not files:
        rich_output.print_success(f"No files exceed {max_lines} lines")
        return

    shown = []
    for file in files:
        try:
            shown.append(str(file.path.relative_to(refactor.project_root)))
        except ValueError:
            shown.append(str(file.path))
    rich_output.print_file_table(f"Files over {max_lines} lines", files, shown)
    rich_output.print_info(f"{len(files)} file(s) need refactoring")


def cmd_run(args, refactor: AutoRefactor) -> None:
    """Handle run command."""
    rich_output = get_rich_output()
    dry_run = getattr(args, "dry", False)
    results = refactor.run(dry_run=dry_run)

    if args.format == "json":
        print(format_refactor_results(results))
    elif not results:
        rich_output.print_success("No files need refactoring")
    else:
        rich_output.print_header("Dry run" if dry_run else "Refactoring results")
        for result in results:
            rich_output.print_refactor_result(result)
        succeeded = sum(1 for r in results if r.success)
        rich_output.print_info(f"{succeeded}/{len(results)} files processed successfully")

    if any(not r.success for r in results):
        sys.exit(1)


def cmd_analyze(args, refactor: AutoRefactor) -> None:
    """Handle analyze command."""
    analysis = refactor.analyze_file(args.file)

    if args.format == "json":
        print(json.dumps(analysis.to_dict(), indent=2))
    else:
        get_rich_output().print_analysis(analysis)

    if not analysis.is_valid:
        sys.exit(1)
