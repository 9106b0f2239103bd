"""
Declaration patterns shared by the scanner and the classifier.

Everything here works on the *code rendering* of a line (see lexer.py), so
string contents and comments never trigger a match. ``describe_declaration``
is the single place that decides what kind of declaration a line opens;
both the scanner (to choose a closing rule) and the classifier (to choose a
category) go through it, which keeps the two in agreement.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .models import BlockKind

IDENT = r"[A-Za-z_$][\w$]*"

IMPORT_RE = re.compile(r"^import\b(?!\s*\()")
EXPORT_STAR_RE = re.compile(r"^export\s+\*")
EXPORT_LIST_RE = re.compile(r"^export\s+(?:type\s+)?\{")
FROM_CLAUSE_RE = re.compile(r"\bfrom\s*(['\"])([^'\"]+)\1")

TYPEDEF_RE = re.compile(
    r"^(?:export\s+)?(?:default\s+)?(?:declare\s+)?"
    r"(?:"
    rf"interface\s+(?P<interface>{IDENT})"
    rf"|(?:const\s+)?enum\s+(?P<enum>{IDENT})"
    rf"|type\s+(?P<alias>{IDENT})\s*(?:=|<|$)"
    rf"|namespace\s+(?P<namespace>{IDENT})"
    rf"|module\s+(?P<module>{IDENT}|['\"])"
    r")"
)
DECLARE_BLOCK_RE = re.compile(r"^(?:export\s+)?declare\s+(?:module|global|namespace)\b")
AMBIENT_RE = re.compile(r"^(?:export\s+)?(?:default\s+)?declare\b")

DECLARATOR_RE = re.compile(
    r"^(?P<export>export\s+)?(?:declare\s+)?(?P<keyword>const|let|var)\s+"
    rf"(?P<target>{IDENT}|\{{[^}}]*\}}?|\[[^\]]*\]?)"
    r"\s*(?::\s*(?P<annotation>[^=;]*(?:=>[^=;]*)*))?"
    r"(?:=(?![=>])\s*(?P<init>.*)|\s*;?\s*)$"
)
FUNCTION_DECL_RE = re.compile(
    r"^(?P<export>export\s+)?(?P<default>default\s+)?(?:declare\s+)?"
    rf"(?:async\s+)?function\b\s*\*?\s*(?P<name>{IDENT})?"
)
CLASS_DECL_RE = re.compile(
    r"^(?P<export>export\s+)?(?P<default>default\s+)?(?:declare\s+)?"
    rf"(?:abstract\s+)?class\b(?:\s+(?!extends\b|implements\b)(?P<name>{IDENT}))?"
)
EXTENDS_RE = re.compile(r"\bextends\s+(?P<base>[\w$.]+)")
EXPORT_DEFAULT_RE = re.compile(r"^export\s+default\s+(?P<rest>.*)$")

FUNCTION_START_RE = re.compile(r"^(?:async\s+)?function\b")
ARROW_IDENT_RE = re.compile(rf"^(?:async\s+)?{IDENT}\s*=>")
PAREN_START_RE = re.compile(r"^(?:async\s*)?(?:<[^()]*>\s*)?\(")
CLASS_EXPR_RE = re.compile(r"^class\b")
GENERIC_PROPS_RE = re.compile(
    rf"<[^()]*>\s*\(\s*(?:\{{[^)]*\}}|{IDENT})\s*:\s*[\w$.]*Props\b"
)
PASCAL_CASE_RE = re.compile(r"^[A-Z][A-Za-z0-9$]*$")
COMPONENT_BASE_RE = re.compile(r"^(?:React\.)?(?:Pure)?Component$")

# Trailing tokens after which a statement cannot be complete.
CONTINUATION_SUFFIXES = (
    "=>", "&&", "||", "??",
    "=", ",", "(", "[", "{", ".", "?", ":", "|", "&", "+", "-", "*", "/", "<",
)
# Leading tokens that attach a line to the statement above it.
CONTINUATION_PREFIXES = (
    "?.", "=>", "&&", "||", "??",
    ".", "|", "&", "?", ":", ")", "]", "}", ",", "+", ">",
)
CONTINUATION_KEYWORDS = re.compile(r"^(?:extends|implements)\b")


class CompiledPatterns:
    """Regexes built once from a ``ClassificationPatterns`` configuration."""

    def __init__(self, patterns) -> None:
        self.main_role_suffixes: Tuple[str, ...] = tuple(patterns.main_role_suffixes)
        self.component_wrappers: Tuple[str, ...] = tuple(patterns.component_wrappers)

        annotations = "|".join(f"(?:{p})" for p in patterns.component_type_annotations)
        self.annotation_re = re.compile(rf"^\s*(?:{annotations})") if annotations else None

        wrappers = "|".join(
            re.escape(w) for w in sorted(self.component_wrappers, key=len, reverse=True)
        )
        if wrappers:
            self.wrapper_call_re = re.compile(rf"^(?:{wrappers})\s*(?:<[^(]*>)?\s*\(")
            self.wrapped_ident_re = re.compile(
                rf"^(?:{wrappers})\s*(?:<[^(]*>)?\s*\(\s*(?P<name>{IDENT})\s*\)"
            )
            self.wrapped_function_re = re.compile(
                rf"^(?:{wrappers})\s*(?:<[^(]*>)?\s*\(\s*(?:async\s+)?function\b\s*"
                rf"(?P<name>{IDENT})?"
            )
        else:
            self.wrapper_call_re = self.wrapped_ident_re = self.wrapped_function_re = None

        self.markup_res = [re.compile(p, re.MULTILINE) for p in patterns.markup_patterns]

    def is_wrapper_call(self, text: str) -> bool:
        return bool(self.wrapper_call_re and self.wrapper_call_re.match(text))

    def has_component_annotation(self, annotation: str) -> bool:
        return bool(annotation and self.annotation_re and self.annotation_re.match(annotation))

    def has_role_suffix(self, name: Optional[str]) -> bool:
        return bool(name) and any(name.endswith(s) for s in self.main_role_suffixes)

    def contains_markup(self, code: str) -> bool:
        """``code`` is a code rendering (see ``lexer.code_text``), not raw text."""
        return any(regex.search(code) for regex in self.markup_res)


@dataclass(frozen=True)
class Declaration:
    """What a block's opening line declares."""

    kind: BlockKind
    names: Tuple[str, ...] = ()
    exported: bool = False
    default: bool = False
    ambient: bool = False
    function_keyword: bool = False  # `function` declaration
    class_keyword: bool = False
    body_keyword: bool = False  # interface, enum, namespace or module body
    annotation: str = ""
    initializer: str = ""
    base_class: Optional[str] = None
    wrapper: bool = False
    export_list: bool = False  # `export { ... }` without a source module

    @property
    def awaits_body(self) -> bool:
        """Declarations whose body may start on a later line."""
        if self.body_keyword:
            return True
        return (self.function_keyword or self.class_keyword) and not self.ambient


def is_pascal_case(name: Optional[str]) -> bool:
    return bool(name) and bool(PASCAL_CASE_RE.match(name)) and any(c.islower() for c in name)


def destructured_names(target: str) -> Tuple[str, ...]:
    """Bound identifiers of a ``{ a, b: c }`` or ``[a, b]`` pattern."""
    inner = target.strip("{}[] ")
    names: List[str] = []
    for part in inner.split(","):
        part = part.strip().lstrip(".")
        if ":" in part:
            part = part.split(":", 1)[1]
        part = part.split("=", 1)[0].strip()
        if re.fullmatch(IDENT, part):
            names.append(part)
    return tuple(names)


def is_function_initializer(init: str, compiled: CompiledPatterns) -> bool:
    """True when a binding's initializer is a function, class or component wrapper."""
    init = init.strip()
    if not init:
        return False
    if FUNCTION_START_RE.match(init) or CLASS_EXPR_RE.match(init) or ARROW_IDENT_RE.match(init):
        return True
    if PAREN_START_RE.match(init):
        return "=>" in init or init.count("(") > init.count(")")
    return compiled.is_wrapper_call(init)


def is_import_start(code: str) -> bool:
    """Import statements and re-exports (``export * from``, ``export { } from``)."""
    return bool(IMPORT_RE.match(code) or EXPORT_STAR_RE.match(code))


def is_export_list(code: str) -> bool:
    return bool(EXPORT_LIST_RE.match(code))


def describe_declaration(
    code: str, next_code: str, compiled: CompiledPatterns
) -> Declaration:
    """Classify the opening line of a block.

    ``code`` is the stripped code rendering of the line and ``next_code``
    the following code line, used when an initializer starts on the next
    line (``const handler =``).
    """
    if is_import_start(code):
        return Declaration(BlockKind.IMPORT)
    if is_export_list(code):
        # Settled by the scanner once the whole statement is known.
        return Declaration(BlockKind.STATEMENT, exported=True, export_list=True)

    match = TYPEDEF_RE.match(code)
    if match or DECLARE_BLOCK_RE.match(code):
        groups = ("interface", "enum", "alias", "namespace", "module")
        name = None
        if match:
            name = next((match.group(g) for g in groups if match.group(g)), None)
        if name and name[0] in "'\"":
            name = None
        return Declaration(
            BlockKind.TYPEDEF,
            names=(name,) if name else (),
            body_keyword=not (match and match.group("alias")),
            exported=code.startswith("export"),
            default=bool(re.match(r"^export\s+default\b", code)),
            ambient=bool(AMBIENT_RE.match(code)),
        )

    match = DECLARATOR_RE.match(code)
    if match:
        target = match.group("target")
        if target[0] in "{[":
            names = destructured_names(target)
        else:
            names = (target,)
        init = match.group("init")
        if init is not None and not init.strip():
            init = next_code
        init = (init or "").strip()
        annotation = (match.group("annotation") or "").strip()
        exported = bool(match.group("export"))
        if is_function_initializer(init, compiled):
            return Declaration(
                BlockKind.FUNCTION,
                names=names,
                exported=exported,
                annotation=annotation,
                initializer=init,
                wrapper=compiled.is_wrapper_call(init),
                class_keyword=bool(CLASS_EXPR_RE.match(init)),
            )
        return Declaration(
            BlockKind.CONSTANT,
            names=names,
            exported=exported,
            ambient=bool(AMBIENT_RE.match(code)),
            annotation=annotation,
            initializer=init,
        )

    match = FUNCTION_DECL_RE.match(code)
    if match:
        name = match.group("name")
        return Declaration(
            BlockKind.FUNCTION,
            names=(name,) if name else (),
            exported=bool(match.group("export")),
            default=bool(match.group("default")),
            ambient=bool(AMBIENT_RE.match(code)),
            function_keyword=True,
            initializer=code,
        )

    match = CLASS_DECL_RE.match(code)
    if match:
        name = match.group("name")
        base = EXTENDS_RE.search(code) or EXTENDS_RE.match(next_code)
        return Declaration(
            BlockKind.FUNCTION,
            names=(name,) if name else (),
            exported=bool(match.group("export")),
            default=bool(match.group("default")),
            ambient=bool(AMBIENT_RE.match(code)),
            class_keyword=True,
            base_class=base.group("base") if base else None,
            initializer=code,
        )

    match = EXPORT_DEFAULT_RE.match(code)
    if match:
        rest = match.group("rest").strip()
        if compiled.wrapped_function_re is not None:
            wrapped = compiled.wrapped_function_re.match(rest)
            if wrapped:
                name = wrapped.group("name")
                return Declaration(
                    BlockKind.FUNCTION,
                    names=(name,) if name else (),
                    exported=True,
                    default=True,
                    wrapper=True,
                    initializer=rest,
                )
        wrapped_ident = compiled.wrapped_ident_re and compiled.wrapped_ident_re.match(rest)
        if not wrapped_ident and is_function_initializer(rest, compiled):
            return Declaration(
                BlockKind.FUNCTION,
                exported=True,
                default=True,
                wrapper=compiled.is_wrapper_call(rest),
                initializer=rest,
            )
        return Declaration(BlockKind.STATEMENT, exported=True, default=True)

    return Declaration(BlockKind.STATEMENT)


def is_component_declaration(decl: Declaration, compiled: CompiledPatterns) -> bool:
    """Component signature heuristic for function-like declarations."""
    if decl.class_keyword:
        return bool(decl.base_class and COMPONENT_BASE_RE.match(decl.base_class))
    if decl.names and is_pascal_case(decl.names[0]):
        return True
    if compiled.has_component_annotation(decl.annotation):
        return True
    if decl.wrapper:
        return True
    return bool(GENERIC_PROPS_RE.search(decl.initializer))


def ends_with_continuation(code: str) -> bool:
    code = code.rstrip()
    if not code:
        return False
    if code.endswith(("++", "--")):
        return False
    return code.endswith(CONTINUATION_SUFFIXES)


def starts_with_continuation(code: str) -> bool:
    code = code.lstrip()
    if not code:
        return False
    if code.startswith(("++", "--")):
        return False
    return code.startswith(CONTINUATION_PREFIXES) or bool(CONTINUATION_KEYWORDS.match(code))
