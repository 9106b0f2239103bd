"""File synthesis for split modules.

Turns a ModulePlan into the text of every output file:

- one file per non-empty category, named ``<base>-<suffix>.<ext>``;
- an aggregator (``<base>-index.<ext>``, or ``index.<ext>`` inside a
  per-file directory) that re-exports all of them;
- a replacement for the original file that forwards to the aggregator,
  so existing importers keep working.

Nothing here touches the file system; the transaction manager writes the
result.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from ..analysis.imports import ExportAlias, rebase_import, rebase_specifier, references
from ..analysis.models import Block, BlockKind, Category, CategoryGroup
from ..config import OutputMode
from .planner import ModulePlan

logger = logging.getLogger(__name__)

_PROMOTABLE_RE = re.compile(
    r"^(?P<indent>\s*)(?=(?:declare\s+)?"
    r"(?:const|let|var|function|async\s+function|class|abstract\s+class"
    r"|interface|type\s+[\w$]+|enum|const\s+enum|namespace)\b)"
)
_DEFAULT_BLOCK_RE = re.compile(r"^export\s+default\b|^export\s*\{[^}]*\bas\s+default\b")
_DECLARATION_KINDS = (
    BlockKind.TYPEDEF,
    BlockKind.CONSTANT,
    BlockKind.FUNCTION,
    BlockKind.COMPONENT,
)


def category_file_name(base_name: str, category: Category, extension: str) -> str:
    """``<base>-<suffix><ext>`` for a category file."""
    return f"{base_name}-{category.file_suffix}{extension}"


def to_export_identifier(base_name: str) -> str:
    """``user-profile`` → ``UserProfile``; used when the main unit is anonymous."""
    segments = [s for s in base_name.split("-") if s]
    identifier = "".join(s[0].upper() + s[1:] for s in segments)
    identifier = re.sub(r"[^\w$]", "_", identifier)
    if not identifier or identifier[0].isdigit():
        identifier = "_" + identifier
    return identifier


class OutputLayout:
    """Where every output file of one source file goes.

    Derived purely from the source path and the output mode.
    """

    def __init__(self, source_path: Path, output_mode: OutputMode = OutputMode.SIBLING):
        self.source_path = Path(source_path)
        self.output_mode = output_mode
        self.base_name = self.source_path.stem
        self.extension = self.source_path.suffix

    @property
    def source_dir(self) -> Path:
        return self.source_path.parent

    @property
    def output_dir(self) -> Path:
        if self.output_mode is OutputMode.DIRECTORY:
            return self.source_dir / self.base_name
        return self.source_dir

    @property
    def import_depth(self) -> int:
        """How many directories below the original the split files live."""
        return 1 if self.output_mode is OutputMode.DIRECTORY else 0

    @property
    def index_name(self) -> str:
        if self.output_mode is OutputMode.DIRECTORY:
            return f"index{self.extension}"
        return f"{self.base_name}-index{self.extension}"

    @property
    def index_path(self) -> Path:
        return self.output_dir / self.index_name

    def category_path(self, category: Category) -> Path:
        return self.output_dir / category_file_name(self.base_name, category, self.extension)

    def sibling_specifier(self, category: Category) -> str:
        """Module specifier of a category file, seen from the output directory."""
        return f"./{self.base_name}-{category.file_suffix}"

    @property
    def index_specifier(self) -> str:
        """Module specifier of the aggregator, seen from the original file."""
        if self.output_mode is OutputMode.DIRECTORY:
            return f"./{self.base_name}/index"
        return f"./{self.base_name}-index"


@dataclass
class SynthesisResult:
    """Texts of every file to write, in write order."""

    layout: OutputLayout
    files: Dict[Path, str] = field(default_factory=dict)
    replacement_text: str = ""
    named_exports: Dict[Path, List[str]] = field(default_factory=dict)
    main_identifier: Optional[str] = None
    has_default_export: bool = False

    @property
    def index_path(self) -> Path:
        return self.layout.index_path

    @property
    def file_names(self) -> List[str]:
        return [p.name for p in self.files]

    @property
    def is_empty(self) -> bool:
        return not self.files

    def line_counts(self) -> Dict[Path, int]:
        return {path: text.count("\n") for path, text in self.files.items()}


class _FileDraft:
    """One category file while it is being assembled."""

    def __init__(self, category: Category, group: CategoryGroup):
        self.category = category
        self.group = group
        self.blocks = [_promote(block) for block in group.blocks]
        self.body = "\n\n".join(self.blocks)
        self.named: List[str] = []
        self.holds_default = False
        for block in group.blocks:
            if _DEFAULT_BLOCK_RE.match(block.first_line):
                self.holds_default = True
                continue
            if block.kind in _DECLARATION_KINDS:
                self.named.extend(n for n in block.names if n not in self.named)
        self.declared = set(group.declared_names)


def _promote(block: Block) -> str:
    """Prefix ``export`` on a top-level declaration that lacks it."""
    if block.kind not in _DECLARATION_KINDS:
        return block.text
    first, _, rest = block.text.partition("\n")
    if first.lstrip().startswith("export"):
        return block.text
    match = _PROMOTABLE_RE.match(first)
    if not match:
        return block.text
    indent = match.group("indent")
    promoted = f"{indent}export {first[len(indent):]}"
    return promoted + ("\n" + rest if rest else "")


class FileSynthesizer:
    """Builds the output file texts for one ModulePlan."""

    def __init__(self, plan: ModulePlan, layout: OutputLayout):
        self.plan = plan
        self.layout = layout
        self.quote = plan.quote
        self.end = ";" if plan.semicolons else ""

    def _from(self, specifier: str) -> str:
        return f"from {self.quote}{specifier}{self.quote}{self.end}"

    def _import_line(self, category: Category, names: List[str], default: Optional[str]) -> str:
        specifier = self.layout.sibling_specifier(category)
        if not names and not default:
            return f"import {self.quote}{specifier}{self.quote}{self.end}"
        parts = []
        if default:
            parts.append(default)
        if names:
            parts.append("{ " + ", ".join(names) + " }")
        return f"import {', '.join(parts)} {self._from(specifier)}"

    def _sibling_imports(self, draft: _FileDraft, drafts: Dict[Category, _FileDraft]) -> List[str]:
        lines: List[str] = []
        seen = set(draft.declared)
        # Sub-components may render Main and vice versa; the ESM cycle is fine.
        for category, other in drafts.items():
            if category is draft.category:
                continue
            names = [n for n in other.named if n not in seen and references(n, draft.body)]
            seen.update(names)
            default = None
            name = self.plan.default_name
            if other.holds_default and name and name not in seen and references(name, draft.body):
                default = name
                seen.add(name)
            if names or default:
                lines.append(self._import_line(category, names, default))
            elif draft.category is Category.MAIN:
                lines.append(self._import_line(category, [], None))
        return lines

    def _render_file(self, draft: _FileDraft, drafts: Dict[Category, _FileDraft]) -> str:
        depth = self.layout.import_depth
        imports = [rebase_import(imp, depth).raw for imp in draft.group.imports]
        imports.extend(self._sibling_imports(draft, drafts))
        if not imports:
            return draft.body + "\n"
        return "\n".join(imports) + "\n\n" + draft.body + "\n"

    def _main_identifier(self, drafts: Dict[Category, _FileDraft]) -> Optional[str]:
        main = drafts.get(Category.MAIN)
        if main is None:
            return None
        if main.holds_default:
            return self.plan.default_name or to_export_identifier(self.layout.base_name)
        for block in main.group.blocks:
            if block.name:
                return block.name
        return None

    def _alias_line(self, alias: ExportAlias, drafts: Dict[Category, _FileDraft]) -> Optional[str]:
        keyword = "export type" if alias.type_only else "export"
        for category, draft in drafts.items():
            if alias.local in draft.declared:
                return f"{keyword} {{ {alias.render()} }} {self._from(self.layout.sibling_specifier(category))}"

        for statement in self.plan.import_table:
            if alias.local not in statement.imported_names:
                continue
            source = rebase_import(statement, self.layout.import_depth).source_module
            if alias.local == statement.namespace_name:
                return f"export * as {alias.exported} {self._from(source)}"
            if alias.local == statement.default_name:
                imported = "default"
            else:
                imported = next(s.imported for s in statement.specifiers if s.local == alias.local)
            entry = imported if imported == alias.exported else f"{imported} as {alias.exported}"
            return f"{keyword} {{ {entry} }} {self._from(source)}"
        return None

    def _render_index(self, drafts: Dict[Category, _FileDraft], result: SynthesisResult) -> str:
        depth = self.layout.import_depth
        lines: List[str] = [rebase_import(imp, depth).raw for imp in self.plan.side_effect_imports]

        main = drafts.get(Category.MAIN)
        main_id = self._main_identifier(drafts)
        main_specifier = self.layout.sibling_specifier(Category.MAIN)
        if main is not None and main_id:
            if main.holds_default:
                lines.append(f"import {main_id} {self._from(main_specifier)}")
            else:
                lines.append(f"import {{ {main_id} }} {self._from(main_specifier)}")

        for reexport in self.plan.reexports:
            lines.append(reexport.with_source(rebase_specifier(reexport.source_module, depth)).raw)

        ordered = [c for c in drafts if c is not Category.MAIN]
        if main is not None:
            ordered.append(Category.MAIN)
        for category in ordered:
            lines.append(f"export * {self._from(self.layout.sibling_specifier(category))}")

        named_everywhere = {n for d in drafts.values() for n in d.named}
        default_elsewhere = next(
            (c for c, d in drafts.items() if d.holds_default and c is not Category.MAIN), None
        )
        if main is not None and main_id:
            if main_id not in named_everywhere:
                lines.append(f"export {{ {main_id} }}{self.end}")
            if default_elsewhere is None:
                lines.append(f"export default {main_id}{self.end}")
                result.has_default_export = True
        if default_elsewhere is not None:
            specifier = self.layout.sibling_specifier(default_elsewhere)
            lines.append(f"export {{ default }} {self._from(specifier)}")
            result.has_default_export = True

        for alias in self.plan.export_aliases:
            line = self._alias_line(alias, drafts)
            if line:
                lines.append(line)

        result.main_identifier = main_id
        return "\n".join(lines) + "\n"

    def _render_replacement(self, result: SynthesisResult) -> str:
        specifier = self.layout.index_specifier
        lines = [f"export * {self._from(specifier)}"]
        if result.has_default_export:
            lines.append(f"export {{ default }} {self._from(specifier)}")
        return "\n".join(lines) + "\n"

    def synthesize(self) -> SynthesisResult:
        result = SynthesisResult(layout=self.layout)
        if self.plan.is_empty:
            return result

        drafts = {
            category: _FileDraft(category, group) for category, group in self.plan.groups.items()
        }
        for category, draft in drafts.items():
            path = self.layout.category_path(category)
            result.files[path] = self._render_file(draft, drafts)
            result.named_exports[path] = list(draft.named)

        result.files[self.layout.index_path] = self._render_index(drafts, result)
        result.replacement_text = self._render_replacement(result)
        logger.debug(
            "Synthesized %d files for %s", len(result.files), self.layout.source_path
        )
        return result


def synthesize(plan: ModulePlan, layout: Optional[OutputLayout] = None) -> SynthesisResult:
    """Render every output file of ``plan``.

    Args:
        plan: Module plan of one source file
        layout: Output locations; derived from the plan's configuration
            when omitted

    Returns:
        SynthesisResult with category files and the aggregator in write
        order, plus the replacement text for the original file. Empty
        when the plan has nothing to split.
    """
    if layout is None:
        layout = OutputLayout(plan.source.path, plan.context.config.split_settings.output_mode)
    return FileSynthesizer(plan, layout).synthesize()
