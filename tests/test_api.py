"""
End-to-end tests for the AutoRefactor facade.
"""

from unittest.mock import patch

import pytest

from autorefactor.api import AutoRefactor
from autorefactor.config import AutoRefactorConfig
from autorefactor.errors import BackupError, RollbackFailure

WIDGET_BODY = (
    "interface Foo { a: string }\n"
    "\n"
    "const X = 5;\n"
    "\n"
    "export default function Main() { return null; }\n"
)


def widget_source():
    """A 40-line module: three declarations padded with comments."""
    padding = "".join(f"// note {i}\n" for i in range(35))
    text = padding + WIDGET_BODY
    assert text.count("\n") == 40
    return text


@pytest.fixture
def widget(tmp_path):
    path = tmp_path / "src" / "widget.ts"
    path.parent.mkdir()
    path.write_text(widget_source())
    return path


@pytest.fixture
def refactor(tmp_path):
    return AutoRefactor(AutoRefactorConfig.default(), project_root=tmp_path)


class TestRefactorFile:
    """Splitting a single file."""

    def test_three_categories_and_aggregator(self, refactor, widget):
        result = refactor.refactor_file(widget)
        assert result.success
        assert [p.rsplit("/", 1)[-1] for p in result.new_files] == [
            "widget-types.ts",
            "widget-constants.ts",
            "widget-main.ts",
            "widget-index.ts",
        ]
        src = widget.parent
        assert (src / "widget-types.ts").read_text() == "export interface Foo { a: string }\n"
        assert (src / "widget-constants.ts").read_text() == "export const X = 5;\n"
        assert (src / "widget-main.ts").read_text().endswith(
            "export default function Main() { return null; }\n"
        )
        assert (src / "widget-index.ts").read_text() == (
            "import Main from './widget-main';\n"
            "export * from './widget-types';\n"
            "export * from './widget-constants';\n"
            "export * from './widget-main';\n"
            "export { Main };\n"
            "export default Main;\n"
        )

    def test_original_becomes_forwarding_module(self, refactor, widget):
        result = refactor.refactor_file(widget)
        assert widget.read_text() == (
            "export * from './widget-index';\n"
            "export { default } from './widget-index';\n"
        )
        assert result.lines_reduced > 0
        assert result.analysis.block_counts

    def test_backup_holds_original(self, refactor, widget, tmp_path):
        result = refactor.refactor_file(widget)
        assert result.backup_path.startswith(str(tmp_path / ".refactor-backups"))
        with open(result.backup_path, encoding="utf-8") as f:
            assert f.read() == widget_source()

    def test_second_run_is_noop(self, refactor, widget):
        refactor.refactor_file(widget)
        forwarding = widget.read_text()
        second = refactor.refactor_file(widget)
        assert second.success
        assert second.new_files == []
        assert second.backup_path is None
        assert widget.read_text() == forwarding

    def test_relative_paths_resolve_against_project_root(self, refactor, widget):
        result = refactor.refactor_file("src/widget.ts")
        assert result.original_file == str(widget)

    def test_rollback_failure_propagates(self, refactor, widget):
        error = RollbackFailure(widget, None, "disk gone")
        with patch.object(refactor.transactions, "apply", side_effect=error):
            with pytest.raises(RollbackFailure):
                refactor.refactor_file(widget)


class TestAnalyze:
    """Dry-run analysis."""

    def test_analyze_writes_nothing(self, refactor, widget):
        analysis = refactor.analyze_file(widget)
        assert analysis.is_valid
        assert analysis.total_lines == 40
        assert [p.name for p in analysis.files] == [
            "widget-types.ts",
            "widget-constants.ts",
            "widget-main.ts",
            "widget-index.ts",
            "widget.ts",
        ]
        assert sorted(p.name for p in widget.parent.iterdir()) == ["widget.ts"]
        assert any("nothing to split" not in line for line in analysis.summary_lines())


class TestRun:
    """Project-wide runs."""

    def test_nothing_qualifies(self, refactor, widget):
        assert refactor.run() == []
        assert widget.read_text() == widget_source()

    def test_dry_run_reports_without_writing(self, tmp_path, widget):
        config = AutoRefactorConfig.default()
        config.split_settings.max_lines = 10
        results = AutoRefactor(config, project_root=tmp_path).run(dry_run=True)
        assert len(results) == 1
        assert results[0].dry_run
        assert results[0].success
        assert len(results[0].new_files) == 4
        assert widget.read_text() == widget_source()
        assert not (tmp_path / ".refactor-backups").exists()

    def test_run_splits_large_files(self, tmp_path, widget):
        config = AutoRefactorConfig.default()
        config.split_settings.max_lines = 10
        results = AutoRefactor(config, project_root=tmp_path).run()
        assert [r.success for r in results] == [True]
        assert (widget.parent / "widget-index.ts").exists()

    def test_backup_error_is_reported_and_run_continues(self, tmp_path, widget):
        config = AutoRefactorConfig.default()
        config.split_settings.max_lines = 10
        other = widget.parent / "other.ts"
        other.write_text(widget_source())
        refactor = AutoRefactor(config, project_root=tmp_path)
        real_apply = refactor.transactions.apply

        def apply(synthesis, buffer, warnings=()):
            if buffer.path == other:
                raise BackupError(other, "permission denied")
            return real_apply(synthesis, buffer, warnings)

        with patch.object(refactor.transactions, "apply", side_effect=apply):
            results = refactor.run()
        by_name = {r.original_file.rsplit("/", 1)[-1]: r for r in results}
        assert not by_name["other.ts"].success
        assert "permission denied" in by_name["other.ts"].error
        assert by_name["widget.ts"].success
        assert other.read_text() == widget_source()

    def test_result_to_dict(self, tmp_path, widget):
        config = AutoRefactorConfig.default()
        config.split_settings.max_lines = 10
        data = AutoRefactor(config, project_root=tmp_path).run(dry_run=True)[0].to_dict()
        assert data["dry_run"] is True
        assert data["analysis"]["block_counts"] == {"types": 1, "constants": 1, "main": 1}
