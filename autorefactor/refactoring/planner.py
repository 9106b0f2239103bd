"""Per-file module planning.

Runs scanner → classifier → import filter over one source file and
collects everything the synthesizer needs into a ``ModulePlan``. A
``FileContext`` carries the configuration and compiled patterns through
those steps so that none of them hold state of their own.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..analysis.classifier import classify_blocks, find_default_export, has_default_export
from ..analysis.imports import (
    ExportAlias,
    ReExport,
    filter_imports,
    parse_export_list,
    parse_import,
    parse_reexport,
)
from ..analysis.lexer import DelimiterMode, code_text
from ..analysis.models import (
    Block,
    BlockKind,
    Category,
    CategoryGroup,
    ImportStatement,
    ScanWarning,
    SourceBuffer,
    WarningKind,
)
from ..analysis.patterns import CompiledPatterns
from ..analysis.scanner import scan_blocks
from ..config import AutoRefactorConfig

logger = logging.getLogger(__name__)

_EXPORT_LIST_START_RE = re.compile(r"^export\s+(?:type\s+)?\{")
_AS_DEFAULT_RE = re.compile(r"\bas\s+default\b")

# Bindings that JSX compiled with the classic runtime needs in scope.
JSX_RUNTIME_NAMES = ("React",)


@dataclass
class FileContext:
    """Configuration and compiled patterns for processing one file."""

    buffer: SourceBuffer
    config: AutoRefactorConfig
    patterns: CompiledPatterns

    @classmethod
    def create(
        cls,
        buffer: SourceBuffer,
        config: Optional[AutoRefactorConfig] = None,
        patterns: Optional[CompiledPatterns] = None,
    ) -> "FileContext":
        config = config or AutoRefactorConfig.default()
        if patterns is None:
            patterns = CompiledPatterns(config.classification_patterns)
        return cls(buffer=buffer, config=config, patterns=patterns)

    @property
    def delimiter_mode(self) -> DelimiterMode:
        return self.config.split_settings.delimiter_mode


@dataclass
class ModulePlan:
    """Category groups of one file plus the file-level export facts."""

    context: FileContext
    groups: Dict[Category, CategoryGroup] = field(default_factory=dict)
    blocks: List[Block] = field(default_factory=list)
    import_table: List[ImportStatement] = field(default_factory=list)
    side_effect_imports: List[ImportStatement] = field(default_factory=list)
    reexports: List[ReExport] = field(default_factory=list)
    export_aliases: List[ExportAlias] = field(default_factory=list)
    default_name: Optional[str] = None
    has_default_export: bool = False
    warnings: List[ScanWarning] = field(default_factory=list)
    quote: str = "'"
    semicolons: bool = True

    @property
    def source(self) -> SourceBuffer:
        return self.context.buffer

    @property
    def is_empty(self) -> bool:
        """Nothing but imports and re-exports: there is nothing to split."""
        return not self.groups

    @property
    def categories(self) -> List[Category]:
        return list(self.groups)

    @property
    def declared_names(self) -> List[str]:
        names: List[str] = []
        for group in self.groups.values():
            names.extend(n for n in group.declared_names if n not in names)
        return names

    def group(self, category: Category) -> Optional[CategoryGroup]:
        return self.groups.get(category)

    def block_count(self, category: Category) -> int:
        group = self.groups.get(category)
        return len(group.blocks) if group else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": str(self.source.path),
            "groups": [group.to_dict() for group in self.groups.values()],
            "default_export": self.default_name,
            "side_effect_imports": [imp.source_module for imp in self.side_effect_imports],
            "reexports": [r.source_module for r in self.reexports],
            "warnings": [str(w) for w in self.warnings],
        }


def _dominant_style(statements) -> tuple:
    if not statements:
        return "'", True
    quotes = Counter(s.quote for s in statements)
    semis = sum(1 for s in statements if getattr(s, "semicolon", True))
    return quotes.most_common(1)[0][0], semis * 2 >= len(statements)


def build_module_plan(context: FileContext) -> ModulePlan:
    """Scan, classify and filter one file into a ModulePlan."""
    buffer = context.buffer
    patterns = context.patterns
    scan = scan_blocks(buffer, context.config, patterns)

    plan = ModulePlan(context=context, blocks=scan.blocks, warnings=list(scan.warnings))
    plan.default_name = find_default_export(buffer.text, patterns)
    plan.has_default_export = has_default_export(buffer.text)

    body: List[Block] = []
    alias_lines: List[tuple] = []
    for block in scan.blocks:
        if block.kind is BlockKind.IMPORT:
            statement = parse_import(block.text)
            if statement is not None:
                if statement.is_side_effect:
                    plan.side_effect_imports.append(statement)
                elif statement not in plan.import_table:
                    plan.import_table.append(statement)
                continue
            reexport = parse_reexport(block.text)
            if reexport is not None:
                plan.reexports.append(reexport)
                continue
            # e.g. `import x = require('y')`: keep it as an ordinary statement.
            body.append(
                Block(block.start, block.end, BlockKind.STATEMENT, block.text, block.names)
            )
            continue

        if (
            block.kind is BlockKind.STATEMENT
            and _EXPORT_LIST_START_RE.match(block.first_line)
            and not _AS_DEFAULT_RE.search(block.text)
        ):
            aliases = parse_export_list(block.text)
            if aliases is not None:
                alias_lines.extend((alias, block.start + 1) for alias in aliases)
                continue
        body.append(block)

    plan.quote, plan.semicolons = _dominant_style(plan.import_table + plan.reexports)

    classified, warnings = classify_blocks(
        body, plan.default_name, patterns, context.delimiter_mode
    )
    plan.warnings.extend(warnings)

    by_category: Dict[Category, List[Block]] = {}
    for block, category in classified:
        by_category.setdefault(category, []).append(block)

    # Enum order is emission order.
    for category in Category:
        blocks = by_category.get(category)
        if not blocks:
            continue
        group = CategoryGroup(category=category, blocks=blocks)
        markup = patterns.contains_markup(code_text(group.text, context.delimiter_mode))
        retain = JSX_RUNTIME_NAMES if markup else ()
        group.imports = filter_imports(plan.import_table, group.text, retain=retain)
        plan.groups[category] = group

    declared = set(plan.declared_names)
    imported = {name for imp in plan.import_table for name in imp.imported_names}
    resolved: List[ExportAlias] = []
    for alias, line in alias_lines:
        if alias.local == alias.exported and alias.local in declared:
            continue  # covered by export promotion
        if alias.local not in declared and alias.local not in imported:
            plan.warnings.append(
                ScanWarning(
                    WarningKind.CLASSIFICATION_MISS,
                    line,
                    f"export of unknown name '{alias.local}' dropped",
                )
            )
            continue
        resolved.append(alias)
    plan.export_aliases = resolved

    logger.debug(
        "Planned %s: %s",
        buffer.path,
        ", ".join(f"{c.value}={len(g.blocks)}" for c, g in plan.groups.items()) or "empty",
    )
    return plan


def plan_file(buffer: SourceBuffer, config: Optional[AutoRefactorConfig] = None) -> ModulePlan:
    """Convenience wrapper: build a context for ``buffer`` and plan it."""
    return build_module_plan(FileContext.create(buffer, config))
