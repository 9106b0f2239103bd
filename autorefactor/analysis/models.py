"""
Core data models for autorefactor analysis.

This module defines the dataclasses shared by the scanner, classifier,
import filter and synthesizer:

1. SourceBuffer - the immutable text of one file, loaded once per run
2. Block - a contiguous, heuristically balanced line range
3. Category - the semantic bucket a block is sorted into
4. ImportStatement - one parsed import, identified by its content
5. ScanWarning - a recoverable scan or classification problem
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple


class BlockKind(Enum):
    """Syntactic kind assigned to a block by the scanner."""

    IMPORT = "import"
    TYPEDEF = "typedef"
    CONSTANT = "constant"
    FUNCTION = "function"
    COMPONENT = "component"
    STATEMENT = "statement"


class Category(Enum):
    """Semantic categories, in emission order.

    The value doubles as the output file suffix, so every category has
    exactly one file name.
    """

    TYPES = "types"
    CONSTANTS = "constants"
    UTILITIES = "utils"
    SUB_COMPONENTS = "components"
    MAIN = "main"
    OTHER = "other"

    @property
    def file_suffix(self) -> str:
        return self.value


class WarningKind(Enum):
    """Kinds of recoverable problems reported alongside results."""

    UNTERMINATED_BLOCK = "unterminated_block"
    UNBALANCED_CLOSER = "unbalanced_closer"
    CLASSIFICATION_MISS = "classification_miss"


@dataclass(frozen=True)
class ScanWarning:
    """A scan artifact or classification miss (never fatal)."""

    kind: WarningKind
    line: int  # 1-based
    message: str

    def __str__(self) -> str:
        return f"line {self.line}: {self.message}"


@dataclass(frozen=True)
class SourceBuffer:
    """Immutable ordered lines of one source file."""

    path: Path
    lines: Tuple[str, ...]
    encoding: str = "utf-8"
    newline: str = "\n"
    trailing_newline: bool = True

    @classmethod
    def from_text(
        cls, text: str, path: Optional[Path] = None, encoding: str = "utf-8"
    ) -> "SourceBuffer":
        newline = "\r\n" if "\r\n" in text else "\n"
        normalized = text.replace("\r\n", "\n")
        trailing = normalized.endswith("\n")
        if trailing:
            normalized = normalized[:-1]
        lines = tuple(normalized.split("\n")) if normalized else ()
        return cls(
            path=Path(path) if path is not None else Path("<memory>"),
            lines=lines,
            encoding=encoding,
            newline=newline,
            trailing_newline=trailing,
        )

    @classmethod
    def from_path(cls, path: Path, encoding: str = "utf-8") -> "SourceBuffer":
        path = Path(path)
        with open(path, "r", encoding=encoding, newline="") as f:
            text = f.read()
        return cls.from_text(text, path=path, encoding=encoding)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    @property
    def line_count(self) -> int:
        return len(self.lines)

    @property
    def base_name(self) -> str:
        return self.path.stem

    @property
    def extension(self) -> str:
        return self.path.suffix


@dataclass(frozen=True)
class Block:
    """A contiguous half-open line range ``[start, end)`` of a SourceBuffer."""

    start: int
    end: int
    kind: BlockKind
    text: str
    names: Tuple[str, ...] = ()
    unterminated: bool = False

    @property
    def name(self) -> Optional[str]:
        """Primary declared identifier, if any."""
        return self.names[0] if self.names else None

    @property
    def first_line(self) -> str:
        return self.text.split("\n", 1)[0].strip()

    @property
    def line_count(self) -> int:
        return self.end - self.start

    def __str__(self) -> str:
        label = self.name or self.kind.value
        return f"{label}[{self.start + 1}-{self.end}]"


@dataclass(frozen=True)
class ImportSpecifier:
    """One ``imported as local`` entry of a named import."""

    imported: str
    local: str
    type_only: bool = False

    def render(self) -> str:
        prefix = "type " if self.type_only else ""
        if self.imported == self.local:
            return f"{prefix}{self.imported}"
        return f"{prefix}{self.imported} as {self.local}"


@dataclass(frozen=True)
class ImportStatement:
    """A parsed import statement.

    Identity is the content tuple, not the position in the file: two
    statements importing the same bindings from the same module compare
    equal.
    """

    source_module: str
    specifiers: Tuple[ImportSpecifier, ...] = ()
    default_name: Optional[str] = None
    namespace_name: Optional[str] = None
    type_only: bool = False
    raw: str = field(default="", compare=False)
    quote: str = field(default="'", compare=False)
    semicolon: bool = field(default=True, compare=False)

    @property
    def imported_names(self) -> Tuple[str, ...]:
        """Bound local names in declaration order."""
        names: List[str] = []
        if self.default_name:
            names.append(self.default_name)
        if self.namespace_name:
            names.append(self.namespace_name)
        names.extend(spec.local for spec in self.specifiers)
        return tuple(names)

    @property
    def is_side_effect(self) -> bool:
        return not self.imported_names

    @property
    def is_relative(self) -> bool:
        return self.source_module.startswith(".")


@dataclass
class CategoryGroup:
    """Blocks of one category together with the imports they need."""

    category: Category
    blocks: List[Block] = field(default_factory=list)
    imports: List[ImportStatement] = field(default_factory=list)

    @property
    def declared_names(self) -> List[str]:
        names: List[str] = []
        for block in self.blocks:
            for name in block.names:
                if name not in names:
                    names.append(name)
        return names

    @property
    def text(self) -> str:
        return "\n\n".join(block.text for block in self.blocks)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "blocks": [str(block) for block in self.blocks],
            "imports": [imp.source_module for imp in self.imports],
        }
