"""
Block classifier.

Maps each scanned block to a Category. Rules are applied top-down and the
first match wins:

1. Imports are not classified; the planner redistributes them per group.
2. Type, interface, enum and namespace declarations are TYPES.
3. Constants are CONSTANTS, unless their value renders markup, in which
   case they follow the function rules below.
4. Functions and classes are components when the component signature
   heuristic matches, or when an anonymous default export renders markup.
   Markup is looked for in code only, never in string contents. A component is MAIN when it is the file's default
   export, is declared with an explicit ``export function`` form, or its
   name ends with a configured role suffix; otherwise SUB_COMPONENTS.
   Non-components are UTILITIES.
5. A statement that is the file's default export is MAIN.
6. Anything else is OTHER (reported, never dropped).

The result depends only on the block text and the file's default-export
name.
"""

import logging
import re
from typing import List, Optional, Tuple

from .lexer import DelimiterMode, LineTokens, tokenize_lines
from .models import Block, BlockKind, Category, ScanWarning, WarningKind
from .patterns import (
    IDENT,
    CompiledPatterns,
    Declaration,
    describe_declaration,
    is_component_declaration,
)

logger = logging.getLogger(__name__)

_DEFAULT_DECL_RE = re.compile(
    rf"^export\s+default\s+(?:async\s+)?(?:function\b\s*\*?|(?:abstract\s+)?class)\s*(?P<name>{IDENT})",
    re.MULTILINE,
)
_DEFAULT_IDENT_RE = re.compile(rf"^export\s+default\s+(?P<name>{IDENT})\s*;?\s*$", re.MULTILINE)
_DEFAULT_SPECIFIER_RE = re.compile(
    rf"^export\s*\{{[^}}]*?(?<![\w$])(?P<name>{IDENT})\s+as\s+default\b", re.MULTILINE
)
_ANY_DEFAULT_RE = re.compile(r"^export\s+default\b|\bas\s+default\b", re.MULTILINE)
_EXPORT_DEFAULT_STATEMENT_RE = re.compile(r"^export\s+default\b|^export\s*\{[^}]*\bas\s+default\b")
_EXPLICIT_EXPORT_FUNCTION_RE = re.compile(r"^export\s+(?:default\s+)?(?:async\s+)?function\b")

_RESERVED = {
    "function", "class", "async", "abstract", "interface", "enum", "type", "extends", "implements",
}


def find_default_export(text: str, patterns: Optional[CompiledPatterns] = None) -> Optional[str]:
    """Name bound to the file's default export, if it has one."""
    for regex in (_DEFAULT_DECL_RE, _DEFAULT_IDENT_RE, _DEFAULT_SPECIFIER_RE):
        match = regex.search(text)
        if match and match.group("name") not in _RESERVED:
            return match.group("name")

    if patterns is not None and patterns.wrapped_ident_re is not None:
        for line in text.split("\n"):
            match = re.match(r"^export\s+default\s+(?P<rest>.*)$", line)
            if not match:
                continue
            rest = match.group("rest").strip()
            for regex in (patterns.wrapped_ident_re, patterns.wrapped_function_re):
                wrapped = regex.match(rest)
                if wrapped and wrapped.group("name"):
                    return wrapped.group("name")
    return None


def has_default_export(text: str) -> bool:
    """True when the text exports a default binding, named or not."""
    return bool(_ANY_DEFAULT_RE.search(text))


def _head_code(tokens: List[LineTokens]) -> Tuple[str, str]:
    """Code rendering of the first two code lines of a block."""
    lines = [tok.code.strip() for tok in tokens if not tok.is_blank_code]
    first = lines[0] if lines else ""
    second = lines[1] if len(lines) > 1 else ""
    return first, second


def _is_default_export_block(block: Block, decl: Declaration, default_export: Optional[str]) -> bool:
    if decl.default:
        return True
    return bool(default_export) and default_export in block.names


def _component_category(
    block: Block,
    decl: Declaration,
    default_export: Optional[str],
    patterns: CompiledPatterns,
    markup: bool,
) -> Category:
    # A default export that renders markup is a component even without a name.
    if not is_component_declaration(decl, patterns) and not (decl.default and markup):
        return Category.UTILITIES
    if _is_default_export_block(block, decl, default_export):
        return Category.MAIN
    if _EXPLICIT_EXPORT_FUNCTION_RE.match(block.first_line):
        return Category.MAIN
    if patterns.has_role_suffix(block.name):
        return Category.MAIN
    return Category.SUB_COMPONENTS


def classify_block(
    block: Block,
    default_export: Optional[str],
    patterns: CompiledPatterns,
    mode: DelimiterMode = DelimiterMode.LITERAL_AWARE,
) -> Optional[Category]:
    """Category of ``block``; None for imports.

    ``mode`` must be the delimiter mode the block was scanned with, so that
    declaration and markup detection see the same code as the scanner.
    """
    if block.kind is BlockKind.IMPORT:
        return None
    if block.kind is BlockKind.TYPEDEF:
        return Category.TYPES

    tokens = tokenize_lines(block.text.split("\n"), mode)
    first, second = _head_code(tokens)
    decl = describe_declaration(first, second, patterns)
    markup = patterns.contains_markup("\n".join(tok.code for tok in tokens))

    if block.kind is BlockKind.CONSTANT:
        if markup:
            return _component_category(block, decl, default_export, patterns, markup)
        return Category.CONSTANTS

    if block.kind in (BlockKind.FUNCTION, BlockKind.COMPONENT):
        return _component_category(block, decl, default_export, patterns, markup)

    if _EXPORT_DEFAULT_STATEMENT_RE.match(block.first_line):
        return Category.MAIN
    return Category.OTHER


def classify_blocks(
    blocks: List[Block],
    default_export: Optional[str],
    patterns: CompiledPatterns,
    mode: DelimiterMode = DelimiterMode.LITERAL_AWARE,
) -> Tuple[List[Tuple[Block, Category]], List[ScanWarning]]:
    """Classify every non-import block, reporting the ones that fell through."""
    classified: List[Tuple[Block, Category]] = []
    warnings: List[ScanWarning] = []
    for block in blocks:
        category = classify_block(block, default_export, patterns, mode)
        if category is None:
            continue
        if category is Category.OTHER:
            warnings.append(
                ScanWarning(
                    WarningKind.CLASSIFICATION_MISS,
                    block.start + 1,
                    f"unrecognised statement kept in the '{Category.OTHER.file_suffix}' file: "
                    f"{block.first_line[:60]}",
                )
            )
        logger.debug("%s -> %s", block, category.value)
        classified.append((block, category))
    return classified, warnings
