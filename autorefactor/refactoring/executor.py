"""
Transactional writing of split files.

This module provides the TransactionManager that commits a synthesized file
set to disk as one all-or-nothing operation:

- Pre-flight check that no unrelated file would be overwritten
- Byte-for-byte backup of the original before any mutation
- Writes of every generated file, then the replacement original
- Verification of every written file
- Rollback (remove what was created, restore the original) on failure

States move IDLE → BACKED_UP → WRITTEN → VERIFIED, or to ROLLED_BACK on a
write or verification failure. A failure while rolling back raises
RollbackFailure, since the original can no longer be guaranteed intact.
Backups are never deleted.

Classes:
    SplitTransaction: One backup → write → verify run
    TransactionManager: Creates transactions from configuration

Example:
    >>> manager = TransactionManager(config, project_root=Path('.'))
    >>> result = manager.apply(synthesis, buffer)
    >>> if not result.success:
    ...     print(result.error)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..analysis.models import ScanWarning, SourceBuffer
from ..config import AutoRefactorConfig
from ..errors import BackupError, RollbackFailure, VerificationFailure, WriteFailure
from .filesystem import LocalFileSystem
from .synthesizer import SynthesisResult
from .validator import OutputValidator

logger = logging.getLogger(__name__)


class TransactionState(Enum):
    IDLE = "idle"
    BACKED_UP = "backed_up"
    WRITTEN = "written"
    VERIFIED = "verified"
    ROLLED_BACK = "rolled_back"


class FailureKind(Enum):
    """Why a transaction ended without committing."""

    COLLISION = "collision"  # refused before any mutation
    WRITE = "write"
    VERIFICATION = "verification"


@dataclass(frozen=True)
class BackupRecord:
    """Where the original bytes of a file were saved."""

    original_path: Path
    backup_path: Path
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original_path": str(self.original_path),
            "backup_path": str(self.backup_path),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class TransactionResult:
    """Outcome of committing one file set."""

    success: bool
    written_files: List[Path] = field(default_factory=list)
    error: Optional[str] = None
    failure_kind: Optional[FailureKind] = None
    state: TransactionState = TransactionState.IDLE
    backup: Optional[BackupRecord] = None
    warnings: List[ScanWarning] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return self.success and not self.written_files

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "written_files": [str(p) for p in self.written_files],
            "error": self.error,
            "failure_kind": self.failure_kind.value if self.failure_kind else None,
            "state": self.state.value,
            "backup": self.backup.to_dict() if self.backup else None,
            "warnings": [str(w) for w in self.warnings],
        }


def format_backup_timestamp(moment: datetime) -> str:
    """ISO 8601 in UTC with ``:`` and ``.`` replaced by ``-``."""
    iso = moment.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    iso = iso.replace("+00:00", "Z")
    return iso.replace(":", "-").replace(".", "-")


def backup_file_name(original: Path, moment: datetime) -> str:
    """``<originalFileName>-<timestamp>.backup``."""
    return f"{Path(original).name}-{format_backup_timestamp(moment)}.backup"


class SplitTransaction:
    """
    One all-or-nothing write of a file set.

    Attributes:
        source_path: The original file; it is backed up and then replaced
        file_set: Ordered (path, text) pairs; the original comes last
        state: Current TransactionState

    State Attributes:
        _written: Paths written so far, in order
        _created_files: Paths that did not exist before this transaction
        _created_dirs: Directories created by this transaction
        _previous: Prior bytes of overwritten files other than the original
    """

    def __init__(
        self,
        source_path: Path,
        file_set: Sequence[Tuple[Path, str]],
        backup_dir: Path,
        filesystem: LocalFileSystem,
        validator: OutputValidator,
        encoding: str = "utf-8",
        newline: str = "\n",
        overwrite_existing: bool = False,
    ):
        self.source_path = Path(source_path)
        self.file_set = [(Path(p), text) for p, text in file_set]
        self.backup_dir = Path(backup_dir)
        self.filesystem = filesystem
        self.validator = validator
        self.encoding = encoding
        self.newline = newline
        self.overwrite_existing = overwrite_existing

        self.state = TransactionState.IDLE
        self.backup_record: Optional[BackupRecord] = None
        self._written: List[Path] = []
        self._created_files: List[Path] = []
        self._created_dirs: List[Path] = []
        self._previous: Dict[Path, bytes] = {}

    def preflight(self) -> Optional[str]:
        """Reason the file set cannot be written, or None."""
        if self.overwrite_existing:
            return None
        for path, _ in self.file_set:
            if path != self.source_path and self.filesystem.exists(path):
                return f"refusing to overwrite existing file {path}"
        return None

    def _backup_target(self, moment: datetime) -> Path:
        name = backup_file_name(self.source_path, moment)
        candidate = self.backup_dir / name
        counter = 1
        while self.filesystem.exists(candidate):
            stem = name[: -len(".backup")]
            candidate = self.backup_dir / f"{stem}-{counter}.backup"
            counter += 1
        return candidate

    def backup(self) -> BackupRecord:
        """IDLE → BACKED_UP. Raises BackupError before any mutation of the project."""
        if not self.filesystem.is_file(self.source_path):
            raise BackupError(self.source_path, "file does not exist")
        moment = datetime.now(timezone.utc)
        try:
            self.filesystem.make_dirs(self.backup_dir)
            backup_path = self._backup_target(moment)
            self.filesystem.copy(self.source_path, backup_path)
        except OSError as e:
            raise BackupError(self.source_path, str(e)) from e

        self.backup_record = BackupRecord(self.source_path, backup_path, moment)
        self.state = TransactionState.BACKED_UP
        logger.info("Backup created: %s", backup_path)
        return self.backup_record

    def _encode(self, text: str) -> bytes:
        if self.newline != "\n":
            text = text.replace("\n", self.newline)
        return text.encode(self.encoding)

    def write(self) -> List[Path]:
        """BACKED_UP → WRITTEN. Raises WriteFailure on the first rejected write."""
        for path, text in self.file_set:
            try:
                if path != self.source_path:
                    self._created_dirs.extend(self.filesystem.make_dirs(path.parent))
                    if self.filesystem.exists(path):
                        self._previous[path] = self.filesystem.read_bytes(path)
                    else:
                        self._created_files.append(path)
                self.filesystem.write_bytes(path, self._encode(text))
            except OSError as e:
                raise WriteFailure(path, str(e)) from e
            self._written.append(path)
            logger.debug("Wrote %s", path)
        self.state = TransactionState.WRITTEN
        return list(self._written)

    def verify(self) -> None:
        """WRITTEN → VERIFIED. Raises VerificationFailure naming the first bad file."""
        for path in self._written:
            reason = self.validator.check_file(path, self.encoding)
            if reason:
                raise VerificationFailure(path, reason)
        self.state = TransactionState.VERIFIED

    def rollback(self, cause: Optional[str] = None) -> None:
        """Remove everything this transaction created and restore the original.

        Raises:
            RollbackFailure: if anything cannot be undone
        """
        logger.warning("Rolling back changes to %s...", self.source_path)
        backup_path = self.backup_record.backup_path if self.backup_record else None
        try:
            for path in reversed(self._created_files):
                if path != self.source_path and self.filesystem.exists(path):
                    self.filesystem.remove(path)
            for path, data in self._previous.items():
                self.filesystem.write_bytes(path, data)
            for directory in reversed(self._created_dirs):
                if self.filesystem.exists(directory):
                    self.filesystem.remove_dir(directory)
            if backup_path is not None:
                self.filesystem.copy(backup_path, self.source_path)
        except OSError as e:
            logger.error("Rollback failed for %s: %s", self.source_path, e)
            raise RollbackFailure(self.source_path, backup_path, str(e), cause) from e

        self.state = TransactionState.ROLLED_BACK
        logger.info("Restored from backup: %s", self.source_path)

    def _failed(self, error: Exception, kind: FailureKind) -> TransactionResult:
        self.rollback(cause=str(error))
        return TransactionResult(
            success=False,
            written_files=list(self._written),
            error=str(error),
            failure_kind=kind,
            state=self.state,
            backup=self.backup_record,
        )

    def run(self) -> TransactionResult:
        """Run the whole transaction.

        Raises:
            BackupError: the original could not be backed up (nothing changed)
            RollbackFailure: a failed transaction could not be undone
        """
        if not self.file_set:
            return TransactionResult(success=True, state=self.state)

        reason = self.preflight()
        if reason:
            logger.warning("%s", reason)
            return TransactionResult(
                success=False, error=reason, failure_kind=FailureKind.COLLISION, state=self.state
            )

        self.backup()
        try:
            self.write()
        except WriteFailure as e:
            logger.warning("%s", e)
            return self._failed(e, FailureKind.WRITE)

        try:
            self.verify()
        except VerificationFailure as e:
            logger.warning("%s", e)
            return self._failed(e, FailureKind.VERIFICATION)

        return TransactionResult(
            success=True,
            written_files=list(self._written),
            state=self.state,
            backup=self.backup_record,
        )


class TransactionManager:
    """
    Commits synthesized file sets using the configured backup directory.

    Attributes:
        config: AutoRefactorConfig supplying backup and write settings
        project_root: Directory a relative backup directory is resolved against
        filesystem: File-system provider (replaceable in tests)
    """

    def __init__(
        self,
        config: Optional[AutoRefactorConfig] = None,
        project_root: Optional[Path] = None,
        filesystem: Optional[LocalFileSystem] = None,
    ):
        self.config = config or AutoRefactorConfig.default()
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self.filesystem = filesystem or LocalFileSystem()
        self.validator = OutputValidator(
            self.config.split_settings.delimiter_mode, self.filesystem
        )

    @property
    def backup_dir(self) -> Path:
        backup_dir = Path(self.config.split_settings.backup_directory)
        if not backup_dir.is_absolute():
            backup_dir = self.project_root / backup_dir
        return backup_dir

    def transaction(
        self,
        source_path: Path,
        file_set: Sequence[Tuple[Path, str]],
        encoding: Optional[str] = None,
        newline: str = "\n",
    ) -> SplitTransaction:
        return SplitTransaction(
            source_path,
            file_set,
            self.backup_dir,
            self.filesystem,
            self.validator,
            encoding=encoding or self.config.split_settings.encoding,
            newline=newline,
            overwrite_existing=self.config.split_settings.overwrite_existing,
        )

    def commit(
        self,
        source_path: Path,
        file_set: Sequence[Tuple[Path, str]],
        encoding: Optional[str] = None,
        newline: str = "\n",
    ) -> TransactionResult:
        """Write ``file_set`` (ordered (path, text) pairs) as one transaction."""
        return self.transaction(source_path, file_set, encoding, newline).run()

    def apply(
        self,
        synthesis: SynthesisResult,
        buffer: SourceBuffer,
        warnings: Sequence[ScanWarning] = (),
    ) -> TransactionResult:
        """Commit a synthesis result for ``buffer``; the original is written last."""
        file_set: List[Tuple[Path, str]] = []
        if not synthesis.is_empty:
            file_set = list(synthesis.files.items())
            file_set.append((buffer.path, synthesis.replacement_text))
        result = self.commit(buffer.path, file_set, buffer.encoding, buffer.newline)
        result.warnings = list(warnings)
        return result

    def backup(self, source_path: Path) -> BackupRecord:
        """Back up one file outside of any transaction."""
        return self.transaction(source_path, []).backup()

    def restore(self, record: BackupRecord) -> None:
        """Copy a backup's bytes over its original."""
        self.filesystem.copy(record.backup_path, record.original_path)
        logger.info("Restored %s from %s", record.original_path, record.backup_path)
