"""
Error taxonomy for autorefactor.

Recoverable conditions (unterminated blocks, unclassified blocks) are not
exceptions: they travel as ScanWarning values inside results. The classes
below cover the write path:

- BackupError: the backup could not be taken; nothing was mutated.
- WriteFailure: storage rejected a write; the transaction rolls back.
- VerificationFailure: a written file is missing, empty or unbalanced;
  the transaction rolls back.
- RollbackFailure: restoring the original failed. No safe state can be
  guaranteed, so this always propagates to the caller.
"""

from pathlib import Path
from typing import Optional


class AutoRefactorError(Exception):
    """Base class for autorefactor errors."""

    pass


class BackupError(AutoRefactorError):
    """Raised when the original file cannot be backed up."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to back up {path}: {reason}")


class WriteFailure(AutoRefactorError):
    """Raised when an output file cannot be written."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to write {path}: {reason}")


class VerificationFailure(AutoRefactorError):
    """Raised when a written file does not pass verification."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Verification failed for {path}: {reason}")


class RollbackFailure(AutoRefactorError):
    """Raised when a failed transaction cannot restore the original file."""

    def __init__(
        self,
        original_path: Path,
        backup_path: Optional[Path],
        reason: str,
        cause: Optional[str] = None,
    ):
        self.original_path = original_path
        self.backup_path = backup_path
        self.reason = reason
        self.cause = cause
        message = f"Rollback failed for {original_path}: {reason}"
        if backup_path is not None:
            message += f" (backup kept at {backup_path})"
        if cause:
            message += f"; rollback was triggered by: {cause}"
        super().__init__(message)
