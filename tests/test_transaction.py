"""
Tests for the backup → write → verify → rollback transaction.
"""

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import patch

import pytest

from autorefactor.config import AutoRefactorConfig
from autorefactor.errors import BackupError, RollbackFailure
from autorefactor.refactoring.executor import (
    FailureKind,
    TransactionManager,
    TransactionState,
    backup_file_name,
    format_backup_timestamp,
)
from autorefactor.refactoring.filesystem import LocalFileSystem

ORIGINAL = b"export const a = 1;\nexport function f() {\n  return a;\n}\n"


class FailingWriteFileSystem(LocalFileSystem):
    """Rejects writes to one path."""

    def __init__(self, failing_path: Path):
        self.failing_path = failing_path

    def write_bytes(self, path, data):
        if Path(path) == self.failing_path:
            raise OSError("disk full")
        super().write_bytes(path, data)


class FailingRestoreFileSystem(FailingWriteFileSystem):
    """Rejects writes to one path and refuses to restore the original."""

    def __init__(self, failing_path: Path, original: Path):
        super().__init__(failing_path)
        self.original = original

    def copy(self, source, destination):
        if Path(destination) == self.original:
            raise OSError("read-only file system")
        super().copy(source, destination)


@pytest.fixture
def original(tmp_path):
    path = tmp_path / "src" / "mod.ts"
    path.parent.mkdir()
    path.write_bytes(ORIGINAL)
    return path


def manager_for(tmp_path, filesystem=None):
    return TransactionManager(AutoRefactorConfig.default(), tmp_path, filesystem)


def file_set(original, middle="export const b = 2;\n"):
    return [
        (original.parent / "mod-constants.ts", "export const a = 1;\n"),
        (original.parent / "mod-utils.ts", middle),
        (original.parent / "mod-index.ts", "export * from './mod-constants';\n"),
        (original, "export * from './mod-index';\n"),
    ]


class TestBackupNaming:
    """Backup file names."""

    def test_timestamp_format(self):
        moment = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
        assert format_backup_timestamp(moment) == "2024-01-02T03-04-05-678Z"

    def test_backup_file_name(self):
        moment = datetime(2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
        assert backup_file_name(Path("/x/Page.tsx"), moment) == (
            "Page.tsx-2024-01-02T03-04-05-678Z.backup"
        )


class TestBackupRoundTrip:
    """restore(backup(file)) gives back the original bytes."""

    @pytest.mark.parametrize("content", [ORIGINAL, b"", b"// only a comment\r\n"])
    def test_round_trip(self, tmp_path, original, content):
        original.write_bytes(content)
        manager = manager_for(tmp_path)
        record = manager.backup(original)
        original.write_bytes(b"clobbered")
        manager.restore(record)
        assert original.read_bytes() == content
        assert record.backup_path.read_bytes() == content
        assert record.backup_path.parent == tmp_path / ".refactor-backups"

    def test_backups_never_overwrite_each_other(self, tmp_path, original):
        manager = manager_for(tmp_path)
        moment = datetime(2024, 1, 2, tzinfo=timezone.utc)
        with patch("autorefactor.refactoring.executor.datetime") as fake_datetime:
            fake_datetime.now.return_value = moment
            first = manager.backup(original)
            second = manager.backup(original)
        assert first.backup_path != second.backup_path
        assert second.backup_path.name.endswith("-1.backup")

    def test_missing_file_raises_backup_error(self, tmp_path):
        with pytest.raises(BackupError):
            manager_for(tmp_path).backup(tmp_path / "missing.ts")


class TestCommit:
    """Tests for a full transaction."""

    def test_successful_commit(self, tmp_path, original):
        files = file_set(original)
        result = manager_for(tmp_path).commit(original, files)
        assert result.success
        assert result.state is TransactionState.VERIFIED
        assert result.written_files == [p for p, _ in files]
        assert original.read_text() == "export * from './mod-index';\n"
        assert result.backup.backup_path.read_bytes() == ORIGINAL

    def test_empty_file_set_is_noop(self, tmp_path, original):
        result = manager_for(tmp_path).commit(original, [])
        assert result.success
        assert result.is_noop
        assert result.backup is None
        assert not (tmp_path / ".refactor-backups").exists()
        assert original.read_bytes() == ORIGINAL

    def test_corrupted_file_rolls_back(self, tmp_path, original):
        files = file_set(original, middle="export function g() {\n  return 1;\n")
        result = manager_for(tmp_path).commit(original, files)
        assert not result.success
        assert result.state is TransactionState.ROLLED_BACK
        assert result.failure_kind is FailureKind.VERIFICATION
        assert "mod-utils.ts" in result.error
        assert "unbalanced braces" in result.error
        assert original.read_bytes() == ORIGINAL
        for path, _ in files[:-1]:
            assert not path.exists()
        assert result.backup.backup_path.exists()

    def test_empty_output_fails_verification(self, tmp_path, original):
        result = manager_for(tmp_path).commit(original, file_set(original, middle="  \n"))
        assert result.failure_kind is FailureKind.VERIFICATION
        assert "file is empty" in result.error
        assert original.read_bytes() == ORIGINAL

    def test_write_failure_rolls_back(self, tmp_path, original):
        files = file_set(original)
        filesystem = FailingWriteFileSystem(files[2][0])
        result = manager_for(tmp_path, filesystem).commit(original, files)
        assert not result.success
        assert result.failure_kind is FailureKind.WRITE
        assert "disk full" in result.error
        assert result.state is TransactionState.ROLLED_BACK
        assert original.read_bytes() == ORIGINAL
        assert not files[0][0].exists()
        assert not files[1][0].exists()

    def test_failed_restore_raises_rollback_failure(self, tmp_path, original):
        files = file_set(original)
        filesystem = FailingRestoreFileSystem(original, original)
        with pytest.raises(RollbackFailure) as excinfo:
            manager_for(tmp_path, filesystem).commit(original, files)
        assert excinfo.value.original_path == original
        assert excinfo.value.backup_path is not None
        assert excinfo.value.backup_path.read_bytes() == ORIGINAL
        assert "disk full" in str(excinfo.value)

    def test_existing_output_is_refused(self, tmp_path, original):
        files = file_set(original)
        files[0][0].write_text("// someone else's file\n")
        result = manager_for(tmp_path).commit(original, files)
        assert not result.success
        assert result.failure_kind is FailureKind.COLLISION
        assert result.backup is None
        assert original.read_bytes() == ORIGINAL
        assert files[0][0].read_text() == "// someone else's file\n"
        assert not files[1][0].exists()

    def test_overwrite_existing_restores_previous_content(self, tmp_path, original):
        config = AutoRefactorConfig.default()
        config.split_settings.overwrite_existing = True
        files = file_set(original, middle="export function g() {\n")
        files[0][0].write_text("previous\n")
        result = TransactionManager(config, tmp_path).commit(original, files)
        assert result.failure_kind is FailureKind.VERIFICATION
        assert files[0][0].read_text() == "previous\n"

    def test_directory_outputs_are_removed_on_rollback(self, tmp_path, original):
        out_dir = original.parent / "mod"
        files = [
            (out_dir / "mod-utils.ts", "export function g() {\n"),
            (out_dir / "index.ts", "export * from './mod-utils';\n"),
            (original, "export * from './mod/index';\n"),
        ]
        result = manager_for(tmp_path).commit(original, files)
        assert result.state is TransactionState.ROLLED_BACK
        assert not out_dir.exists()
        assert original.read_bytes() == ORIGINAL

    def test_crlf_newlines_are_preserved(self, tmp_path, original):
        files = file_set(original)
        manager_for(tmp_path).commit(original, files, newline="\r\n")
        assert files[0][0].read_bytes() == b"export const a = 1;\r\n"
