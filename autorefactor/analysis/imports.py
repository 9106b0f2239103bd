"""
Import parsing and dependency filtering.

An import block is parsed once into an ``ImportStatement``. Each category
group then keeps only the statements (narrowed to only the specifiers)
whose bound names occur in the group's text. Occurrence is tested with an
identifier-boundary match, so ``Item`` is not found inside ``ItemList``.
Occurrences inside comments or strings still count.
"""

import posixpath
import re
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Sequence, Tuple

from .models import ImportSpecifier, ImportStatement

_BLOCK_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT_RE = re.compile(r"(^|\s)//[^\n]*", re.MULTILINE)

_IMPORT_FROM_RE = re.compile(
    r"^import\s+(?P<type>type\s+)?(?P<clause>.+?)\s*\bfrom\s*"
    r"(?P<quote>['\"])(?P<source>[^'\"]+)(?P=quote)\s*(?P<semi>;)?\s*$",
    re.DOTALL,
)
_SIDE_EFFECT_RE = re.compile(
    r"^import\s*(?P<quote>['\"])(?P<source>[^'\"]+)(?P=quote)\s*(?P<semi>;)?\s*$"
)
_REEXPORT_RE = re.compile(
    r"^export\s+(?:type\s+)?(?:\*|\{).*?\bfrom\s*(?P<quote>['\"])(?P<source>[^'\"]+)(?P=quote)",
    re.DOTALL,
)
_EXPORT_LIST_RE = re.compile(
    r"^export\s+(?P<type>type\s+)?\{(?P<body>[^}]*)\}\s*(?P<semi>;)?\s*$", re.DOTALL
)
_SPECIFIER_RE = re.compile(
    r"^(?P<type>type\s+)?(?P<imported>[\w$]+|default)(?:\s+as\s+(?P<local>[\w$]+))?$"
)


def _strip_comments(raw: str) -> str:
    text = _BLOCK_COMMENT_RE.sub(" ", raw)
    text = _LINE_COMMENT_RE.sub(r"\1", text)
    return " ".join(text.split())


def _parse_specifiers(body: str) -> Tuple[ImportSpecifier, ...]:
    specifiers = []
    for part in body.split(","):
        part = part.strip()
        if not part:
            continue
        match = _SPECIFIER_RE.match(part)
        if not match:
            continue
        imported = match.group("imported")
        specifiers.append(
            ImportSpecifier(
                imported=imported,
                local=match.group("local") or imported,
                type_only=bool(match.group("type")),
            )
        )
    return tuple(specifiers)


def parse_import(raw: str) -> Optional[ImportStatement]:
    """Parse an ``import`` statement. Returns None for anything else."""
    text = _strip_comments(raw)

    match = _SIDE_EFFECT_RE.match(text)
    if match:
        return ImportStatement(
            source_module=match.group("source"),
            raw=raw,
            quote=match.group("quote"),
            semicolon=bool(match.group("semi")),
        )

    match = _IMPORT_FROM_RE.match(text)
    if not match:
        return None

    clause = match.group("clause")
    specifiers: Tuple[ImportSpecifier, ...] = ()
    braces = re.search(r"\{(?P<body>.*)\}", clause)
    if braces:
        specifiers = _parse_specifiers(braces.group("body"))
        clause = clause[: braces.start()] + clause[braces.end():]

    default_name = namespace_name = None
    for part in clause.split(","):
        part = part.strip()
        if not part:
            continue
        namespace = re.match(r"^\*\s*as\s+(?P<name>[\w$]+)$", part)
        if namespace:
            namespace_name = namespace.group("name")
        elif re.fullmatch(r"[\w$]+", part):
            default_name = part

    return ImportStatement(
        source_module=match.group("source"),
        specifiers=specifiers,
        default_name=default_name,
        namespace_name=namespace_name,
        type_only=bool(match.group("type")),
        raw=raw,
        quote=match.group("quote"),
        semicolon=bool(match.group("semi")),
    )


@dataclass(frozen=True)
class ReExport:
    """An ``export * from`` or ``export { ... } from`` statement, kept verbatim."""

    source_module: str
    raw: str
    quote: str = "'"

    def with_source(self, source_module: str) -> "ReExport":
        if source_module == self.source_module:
            return self
        old = f"{self.quote}{self.source_module}{self.quote}"
        new = f"{self.quote}{source_module}{self.quote}"
        return ReExport(source_module, self.raw.replace(old, new, 1), self.quote)


def parse_reexport(raw: str) -> Optional[ReExport]:
    match = _REEXPORT_RE.match(_strip_comments(raw))
    if not match:
        return None
    return ReExport(match.group("source"), raw, match.group("quote"))


@dataclass(frozen=True)
class ExportAlias:
    """One entry of a local ``export { local as exported }`` list."""

    local: str
    exported: str
    type_only: bool = False

    def render(self) -> str:
        prefix = "type " if self.type_only else ""
        if self.local == self.exported:
            return f"{prefix}{self.local}"
        return f"{prefix}{self.local} as {self.exported}"


def parse_export_list(raw: str) -> Optional[List[ExportAlias]]:
    """Parse ``export { a, b as c }`` (no source module). None if not one."""
    match = _EXPORT_LIST_RE.match(_strip_comments(raw))
    if not match:
        return None
    type_only = bool(match.group("type"))
    return [
        ExportAlias(spec.imported, spec.local, type_only or spec.type_only)
        for spec in _parse_specifiers(match.group("body"))
    ]


def _boundary_re(name: str):
    return re.compile(rf"(?<![\w$]){re.escape(name)}(?![\w$])")


def references(name: str, text: str) -> bool:
    """True if ``name`` occurs in ``text`` as a whole identifier."""
    return bool(_boundary_re(name).search(text))


def render_import(statement: ImportStatement) -> str:
    """Render a statement, reusing quote style, ``type`` modifiers and semicolon."""
    q = statement.quote
    end = ";" if statement.semicolon else ""
    if statement.is_side_effect:
        return f"import {q}{statement.source_module}{q}{end}"

    parts = []
    if statement.default_name:
        parts.append(statement.default_name)
    if statement.namespace_name:
        parts.append(f"* as {statement.namespace_name}")
    if statement.specifiers:
        parts.append("{ " + ", ".join(s.render() for s in statement.specifiers) + " }")
    prefix = "import type " if statement.type_only else "import "
    return f"{prefix}{', '.join(parts)} from {q}{statement.source_module}{q}{end}"


def narrow_import(statement: ImportStatement, used: Iterable[str]) -> Optional[ImportStatement]:
    """Keep only the bindings in ``used``; None when nothing survives."""
    used = set(used)
    default_name = statement.default_name if statement.default_name in used else None
    namespace_name = statement.namespace_name if statement.namespace_name in used else None
    specifiers = tuple(s for s in statement.specifiers if s.local in used)
    if not (default_name or namespace_name or specifiers):
        return None

    narrowed = replace(
        statement,
        default_name=default_name,
        namespace_name=namespace_name,
        specifiers=specifiers,
    )
    if narrowed.imported_names == statement.imported_names:
        return statement
    return replace(narrowed, raw=render_import(narrowed))


def filter_imports(
    import_table: Sequence[ImportStatement],
    group_text: str,
    retain: Iterable[str] = (),
) -> List[ImportStatement]:
    """Imports needed by ``group_text``, narrowed, in original order.

    Side-effect imports are never returned; they belong to the aggregator.
    Names in ``retain`` are kept whether or not they occur.
    """
    retain = set(retain)
    kept: List[ImportStatement] = []
    for statement in import_table:
        if statement.is_side_effect:
            continue
        used = [
            name
            for name in statement.imported_names
            if name in retain or references(name, group_text)
        ]
        narrowed = narrow_import(statement, used)
        if narrowed is not None and narrowed not in kept:
            kept.append(narrowed)
    return kept


def rebase_specifier(source_module: str, depth: int = 1) -> str:
    """Rewrite a relative module specifier for a file ``depth`` directories deeper."""
    if depth <= 0 or not source_module.startswith("."):
        return source_module
    prefix = "/".join([".."] * depth)
    return posixpath.normpath(posixpath.join(prefix, source_module))


def rebase_import(statement: ImportStatement, depth: int = 1) -> ImportStatement:
    """Same import as seen from a file ``depth`` directories deeper."""
    source = rebase_specifier(statement.source_module, depth)
    if source == statement.source_module:
        return statement
    q = statement.quote
    raw = statement.raw.replace(
        f"{q}{statement.source_module}{q}", f"{q}{source}{q}", 1
    )
    return replace(statement, source_module=source, raw=raw)
