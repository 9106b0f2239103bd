"""
Main API interface for autorefactor

Provides a unified facade over discovery, planning, synthesis and the
write transaction. Files are processed strictly one after another.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .analysis.models import SourceBuffer
from .analysis.patterns import CompiledPatterns
from .config import AutoRefactorConfig
from .discovery import FileToRefactor, find_files_to_refactor, initialize_project
from .errors import BackupError
from .refactoring.analyzer import SplitAnalysis, analyze_plan
from .refactoring.executor import TransactionManager, TransactionResult
from .refactoring.filesystem import LocalFileSystem
from .refactoring.planner import FileContext, ModulePlan, build_module_plan
from .refactoring.synthesizer import synthesize

logger = logging.getLogger(__name__)


@dataclass
class RefactorResult:
    """Standardized result of splitting (or analyzing) one file."""

    original_file: str
    new_files: List[str] = field(default_factory=list)
    lines_reduced: int = 0
    success: bool = False
    error: Optional[str] = None
    analysis: Optional[SplitAnalysis] = None
    warnings: List[str] = field(default_factory=list)
    backup_path: Optional[str] = None
    dry_run: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "original_file": self.original_file,
            "new_files": list(self.new_files),
            "lines_reduced": self.lines_reduced,
            "success": self.success,
            "error": self.error,
            "analysis": self.analysis.to_dict() if self.analysis else None,
            "warnings": list(self.warnings),
            "backup_path": self.backup_path,
            "dry_run": self.dry_run,
        }


class AutoRefactor:
    """
    Main API class for autorefactor.

    Example:
        >>> refactor = AutoRefactor(project_root=Path("."))
        >>> for result in refactor.run(dry_run=True):
        ...     print(result.original_file, result.new_files)
    """

    def __init__(
        self,
        config: Optional[AutoRefactorConfig] = None,
        project_root: Optional[Union[str, Path]] = None,
        filesystem: Optional[LocalFileSystem] = None,
    ):
        """
        Initialize AutoRefactor with optional configuration.

        Args:
            config: Optional configuration object. If None, uses default configuration.
            project_root: Project directory (current directory when omitted)
            filesystem: File-system provider for the write transaction
        """
        self.config = config or AutoRefactorConfig.default()
        self.project_root = Path(project_root) if project_root else Path.cwd()
        self.patterns = CompiledPatterns(self.config.classification_patterns)
        self.transactions = TransactionManager(self.config, self.project_root, filesystem)
        logger.debug("AutoRefactor initialized for %s", self.project_root)

    def _resolve(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        if not path.is_absolute():
            path = self.project_root / path
        return path

    def init(self, framework: Optional[str] = None) -> Dict[str, Any]:
        """Write the configuration file, backup directory and .gitignore entry."""
        return initialize_project(self.project_root, self.config, framework)

    def scan(self) -> List[FileToRefactor]:
        """Files under the target directories that exceed ``max_lines``."""
        return find_files_to_refactor(self.project_root, self.config)

    def load(self, path: Union[str, Path]) -> SourceBuffer:
        return SourceBuffer.from_path(self._resolve(path), self.config.split_settings.encoding)

    def plan_file(self, path: Union[str, Path]) -> ModulePlan:
        """Scan, classify and filter one file without synthesizing it."""
        return build_module_plan(FileContext.create(self.load(path), self.config, self.patterns))

    def analyze_file(self, path: Union[str, Path]) -> SplitAnalysis:
        """Dry run: report what splitting ``path`` would write."""
        plan = self.plan_file(path)
        return analyze_plan(plan, synthesize(plan))

    def refactor_file(self, path: Union[str, Path]) -> RefactorResult:
        """
        Split one file regardless of its length.

        Returns:
            RefactorResult; a failed transaction is reported, not raised

        Raises:
            BackupError: the original could not be backed up (nothing changed)
            RollbackFailure: a failed write could not be undone
        """
        plan = self.plan_file(path)
        synthesis = synthesize(plan)
        analysis = analyze_plan(plan, synthesis)
        transaction = self.transactions.apply(synthesis, plan.source, plan.warnings)
        return self._to_result(plan, analysis, transaction)

    def _to_result(
        self, plan: ModulePlan, analysis: SplitAnalysis, transaction: TransactionResult
    ) -> RefactorResult:
        result = RefactorResult(
            original_file=str(plan.source.path),
            success=transaction.success,
            error=transaction.error,
            analysis=analysis,
            warnings=[str(w) for w in transaction.warnings],
            backup_path=str(transaction.backup.backup_path) if transaction.backup else None,
        )
        if transaction.success and not transaction.is_noop:
            result.new_files = [
                str(p) for p in transaction.written_files if p != plan.source.path
            ]
            result.lines_reduced = analysis.estimated_reduction
            logger.info(
                "Split %s into %d files", plan.source.path, len(result.new_files)
            )
        elif transaction.is_noop:
            logger.info("Nothing to split in %s", plan.source.path)
        else:
            logger.warning("Refactoring %s failed: %s", plan.source.path, transaction.error)
        return result

    def _dry_run_result(self, path: Path) -> RefactorResult:
        analysis = self.analyze_file(path)
        return RefactorResult(
            original_file=str(path),
            new_files=[str(p) for p in analysis.files if p != path],
            lines_reduced=analysis.estimated_reduction,
            success=analysis.is_valid,
            error="; ".join(analysis.errors) or None,
            analysis=analysis,
            warnings=[str(w) for w in analysis.warnings],
            dry_run=True,
        )

    def run(self, dry_run: bool = False) -> List[RefactorResult]:
        """
        Split every file that exceeds ``max_lines``, one at a time.

        A file that cannot be read or backed up is reported as failed and
        the run continues. RollbackFailure always propagates.

        Args:
            dry_run: Analyze only; nothing is written

        Returns:
            One RefactorResult per file found by ``scan``
        """
        files = self.scan()
        if not files:
            logger.info("No files need refactoring")
            return []

        results: List[RefactorResult] = []
        for file in files:
            try:
                if dry_run:
                    logger.info(f"[DRY RUN] Analyzing: {file.path}")
                    results.append(self._dry_run_result(file.path))
                else:
                    logger.info(f"Refactoring: {file.path}")
                    results.append(self.refactor_file(file.path))
            except (BackupError, OSError, UnicodeDecodeError) as e:
                logger.error(f"Failed to refactor {file.path}: {e}")
                results.append(
                    RefactorResult(original_file=str(file.path), success=False, error=str(e))
                )
        return results
