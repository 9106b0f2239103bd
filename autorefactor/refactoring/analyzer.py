"""Dry-run analysis of a split.

Plans and synthesizes a file exactly as a real run would, validates the
generated texts in memory, and reports what would be written. Nothing
touches the file system except reading the source.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..analysis.models import Category, ScanWarning, SourceBuffer
from ..config import AutoRefactorConfig
from .planner import FileContext, ModulePlan, build_module_plan
from .synthesizer import SynthesisResult, synthesize
from .validator import OutputValidator

logger = logging.getLogger(__name__)


@dataclass
class SplitAnalysis:
    """What splitting one file would produce."""

    path: Path
    total_lines: int
    import_count: int = 0
    block_counts: Dict[Category, int] = field(default_factory=dict)
    files: List[Path] = field(default_factory=list)
    file_lines: Dict[Path, int] = field(default_factory=dict)
    estimated_reduction: int = 0
    warnings: List[ScanWarning] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def would_split(self) -> bool:
        return bool(self.files)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def summary_lines(self) -> List[str]:
        """Human-readable description, one line per fact."""
        lines = [f"{self.path}: {self.total_lines} lines, {self.import_count} imports"]
        if not self.would_split:
            lines.append("  nothing to split")
            return lines
        for category, count in self.block_counts.items():
            lines.append(f"  {category.value}: {count} block(s)")
        lines.append("  would write:")
        for path in self.files:
            lines.append(f"    {path.name} ({self.file_lines.get(path, 0)} lines)")
        lines.append(f"  estimated reduction: {self.estimated_reduction} lines")
        for warning in self.warnings:
            lines.append(f"  warning: {warning}")
        for error in self.errors:
            lines.append(f"  error: {error}")
        return lines

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": str(self.path),
            "total_lines": self.total_lines,
            "import_count": self.import_count,
            "block_counts": {c.value: n for c, n in self.block_counts.items()},
            "files": [str(p) for p in self.files],
            "estimated_reduction": self.estimated_reduction,
            "warnings": [str(w) for w in self.warnings],
            "errors": list(self.errors),
        }


def analyze_plan(plan: ModulePlan, synthesis: SynthesisResult) -> SplitAnalysis:
    """Summarize an already planned and synthesized file."""
    buffer = plan.source
    analysis = SplitAnalysis(
        path=buffer.path,
        total_lines=buffer.line_count,
        import_count=len(plan.import_table) + len(plan.side_effect_imports) + len(plan.reexports),
        block_counts={c: len(g.blocks) for c, g in plan.groups.items()},
        warnings=list(plan.warnings),
    )
    if synthesis.is_empty:
        return analysis

    validator = OutputValidator(plan.context.delimiter_mode)
    results: Dict[str, Any] = {"errors": []}
    for path, text in synthesis.files.items():
        validator.validate_text(text, path, results)
    analysis.errors = results["errors"]

    analysis.files = list(synthesis.files) + [buffer.path]
    analysis.file_lines = synthesis.line_counts()
    analysis.file_lines[buffer.path] = synthesis.replacement_text.count("\n")
    largest = max(analysis.file_lines.values())
    analysis.estimated_reduction = max(buffer.line_count - largest, 0)
    return analysis


def analyze_file(
    path: Path, config: Optional[AutoRefactorConfig] = None
) -> SplitAnalysis:
    """Dry run for one file: plan, synthesize and validate without writing."""
    config = config or AutoRefactorConfig.default()
    buffer = SourceBuffer.from_path(Path(path), config.split_settings.encoding)
    plan = build_module_plan(FileContext.create(buffer, config))
    analysis = analyze_plan(plan, synthesize(plan))
    logger.debug("Analyzed %s: %d file(s) would be written", path, len(analysis.files))
    return analysis
