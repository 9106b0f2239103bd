"""
Tests for the command-line interface.
"""

import json
from io import StringIO
from pathlib import Path
from unittest.mock import patch

import pytest
from rich.console import Console

from autorefactor.api import AutoRefactor, RefactorResult
from autorefactor.cli.rich_output import RichOutputManager
from autorefactor.cli_entry import create_parser, main
from autorefactor.discovery import FileToRefactor
from autorefactor.errors import RollbackFailure

BIG_MODULE = (
    "interface Foo { a: string }\n"
    "\n"
    "const X = 5;\n"
    "\n"
    "export default function Main() { return null; }\n"
)


@pytest.fixture
def project(tmp_path, monkeypatch):
    monkeypatch.delenv("AUTOREFACTOR_MAX_LINES", raising=False)
    source = tmp_path / "src" / "widget.ts"
    source.parent.mkdir()
    source.write_text(BIG_MODULE)
    (tmp_path / ".auto-refactor.json").write_text(json.dumps({"split": {"max_lines": 3}}))
    return tmp_path


def run_cli(project, *args):
    main(["--no-rich", "-p", str(project), *args])


class TestParser:
    """Argument parsing."""

    def test_run_options(self):
        args = create_parser().parse_args(["run", "--dry", "--format", "json"])
        assert args.command == "run"
        assert args.dry
        assert args.format == "json"

    def test_global_options(self):
        args = create_parser().parse_args(["-v", "--no-rich", "-c", "x.json", "scan"])
        assert args.verbose
        assert args.no_rich
        assert args.config == "x.json"
        assert args.project_root == "."

    def test_no_command_prints_help(self, capsys):
        main([])
        assert "usage: autorefactor" in capsys.readouterr().out


class TestCommands:
    """Commands run against a temporary project."""

    def test_scan_json(self, project, capsys):
        run_cli(project, "scan", "--format", "json")
        files = json.loads(capsys.readouterr().out)
        assert [Path(f["path"]).name for f in files] == ["widget.ts"]
        assert files[0]["lines"] == 5

    def test_scan_text(self, project, capsys):
        run_cli(project, "scan")
        out = capsys.readouterr().out
        assert "widget.ts" in out
        assert "1 file(s) need refactoring" in out

    def test_dry_run_json(self, project, capsys):
        run_cli(project, "run", "--dry", "--format", "json")
        report = json.loads(capsys.readouterr().out)
        assert report["success"]
        assert report["files_processed"] == 1
        assert report["results"][0]["dry_run"]
        assert (project / "src" / "widget.ts").read_text() == BIG_MODULE

    def test_run_text(self, project, capsys):
        run_cli(project, "run")
        out = capsys.readouterr().out
        assert "widget-index.ts" in out
        assert "1/1 files processed successfully" in out
        assert (project / "src" / "widget-main.ts").exists()

    def test_analyze_text(self, project, capsys):
        run_cli(project, "analyze", "src/widget.ts")
        out = capsys.readouterr().out
        assert "would write:" in out
        assert "widget-types.ts" in out

    def test_init(self, project, capsys):
        run_cli(project, "init", "--framework", "react")
        assert "Framework: react" in capsys.readouterr().out
        assert (project / ".refactor-backups").is_dir()
        assert "# Auto-refactor backups" in (project / ".gitignore").read_text()

    def test_missing_file_exits_with_error(self, project, capsys):
        with pytest.raises(SystemExit) as excinfo:
            run_cli(project, "analyze", "src/missing.ts")
        assert excinfo.value.code == 1
        assert "Error:" in capsys.readouterr().err

    def test_rollback_failure_exits_with_code_2(self, project, capsys):
        error = RollbackFailure(Path("a.ts"), None, "disk gone")
        with patch.object(AutoRefactor, "run", side_effect=error):
            with pytest.raises(SystemExit) as excinfo:
                run_cli(project, "run")
        assert excinfo.value.code == 2
        err = capsys.readouterr().err
        assert "FATAL: Rollback failed for a.ts: disk gone" in err
        assert "Restore it manually" in err


class TestConfigCommand:
    """The config subcommands."""

    def test_create_and_validate(self, tmp_path, capsys):
        path = tmp_path / "generated.yaml"
        main(["--no-rich", "config", "create", "--path", str(path), "--format", "yaml"])
        assert path.exists()
        main(["--no-rich", "config", "validate", str(path)])
        assert "is valid" in capsys.readouterr().out

    def test_validate_invalid_file(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"split": {"max_lines": -1}}))
        with pytest.raises(SystemExit) as excinfo:
            main(["--no-rich", "config", "validate", str(path)])
        assert excinfo.value.code == 1

    def test_show(self, project, capsys):
        run_cli(project, "config", "show")
        assert "Max lines: 3" in capsys.readouterr().out


class TestRichOutput:
    """Plain and rich rendering."""

    def make(self, use_rich):
        stream = StringIO()
        console = Console(file=stream, width=120, no_color=True)
        return RichOutputManager(use_rich=use_rich, console=console), stream

    @pytest.mark.parametrize("use_rich", [True, False])
    def test_file_table(self, use_rich):
        output, stream = self.make(use_rich)
        files = [FileToRefactor(Path("/p/src/a.ts"), 300, "react")]
        output.print_file_table("Files over 200 lines", files, ["src/a.ts"])
        text = stream.getvalue()
        assert "src/a.ts" in text
        assert "300" in text

    def test_plain_table_row(self):
        output, stream = self.make(False)
        files = [FileToRefactor(Path("/p/src/a.ts"), 300, "react")]
        output.print_file_table("Files", files, ["src/a.ts"])
        assert "src/a.ts | 300 | react" in stream.getvalue()

    @pytest.mark.parametrize("use_rich", [True, False])
    def test_failed_result(self, use_rich):
        output, stream = self.make(use_rich)
        result = RefactorResult(original_file="src/[id].ts", error="disk full")
        output.print_refactor_result(result)
        text = stream.getvalue()
        assert "src/[id].ts: FAILED" in text
        assert "Error: disk full" in text

    def test_successful_result(self):
        output, stream = self.make(False)
        result = RefactorResult(
            original_file="a.ts",
            new_files=["a-types.ts", "a-index.ts"],
            lines_reduced=120,
            success=True,
            warnings=["line 3: unterminated block"],
        )
        output.print_refactor_result(result)
        text = stream.getvalue()
        assert "✓ a.ts" in text
        assert "  -> a-index.ts" in text
        assert "Lines reduced: 120" in text
        assert "⚠ line 3: unterminated block" in text
