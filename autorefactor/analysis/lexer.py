"""
Line-oriented delimiter lexer.

The scanner recovers declaration boundaries by counting delimiters, so it
needs to know which ``{``, ``(``, ``[`` and ``;`` characters are structural.
``DelimiterLexer`` is a small state machine that tracks quote, template
literal and comment state across lines and only counts delimiters found in
plain code. ``RawDelimiterLexer`` counts every character, which reproduces
the behaviour of plain brace counting (delimiters inside strings are
miscounted).

Both lexers are fed one line at a time and return a ``LineTokens`` summary.
Regular-expression literals are not recognised by either lexer.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Union

OPENERS = "([{"
CLOSERS = ")]}"


class DelimiterMode(Enum):
    """How delimiters inside literals and comments are treated."""

    RAW = "raw"
    LITERAL_AWARE = "literal_aware"


class LexState(Enum):
    """Lexer states. Only CODE contributes structural delimiters."""

    CODE = "code"
    SINGLE_QUOTE = "single_quote"
    DOUBLE_QUOTE = "double_quote"
    TEMPLATE = "template"
    LINE_COMMENT = "line_comment"
    BLOCK_COMMENT = "block_comment"


@dataclass(frozen=True)
class LineTokens:
    """Delimiter summary of one source line."""

    text: str
    code: str  # literal contents and comments blanked out
    brace_delta: int
    bracket_delta: int  # parens and square brackets
    opened_brace: bool
    has_terminator: bool
    starts_in_code: bool
    min_depth: int  # lowest running combined depth reached within the line
    ends_in_literal: bool = False  # line ends inside a template literal

    @property
    def depth_delta(self) -> int:
        return self.brace_delta + self.bracket_delta

    @property
    def is_blank_code(self) -> bool:
        """True when nothing but whitespace, comments or literal text remains."""
        return not self.code.strip()


class DelimiterLexer:
    """String-, template- and comment-aware delimiter counter."""

    def __init__(self) -> None:
        self.state = LexState.CODE
        # One entry per open ``${ ... }`` expression: its own brace depth.
        self._expr_depths: List[int] = []

    @property
    def in_structural_code(self) -> bool:
        return self.state is LexState.CODE and not self._expr_depths

    def feed(self, line: str) -> LineTokens:
        # Plain strings and line comments never continue onto the next line.
        if self.state in (LexState.SINGLE_QUOTE, LexState.DOUBLE_QUOTE, LexState.LINE_COMMENT):
            self.state = LexState.CODE
        starts_in_code = self.in_structural_code

        code: List[str] = []
        braces = brackets = 0
        depth = min_depth = 0
        opened_brace = False
        terminator = False

        i = 0
        n = len(line)
        while i < n:
            ch = line[i]
            nxt = line[i + 1] if i + 1 < n else ""
            state = self.state

            if state is LexState.LINE_COMMENT:
                code.append(" " * (n - i))
                break

            if state is LexState.BLOCK_COMMENT:
                if ch == "*" and nxt == "/":
                    self.state = LexState.CODE
                    code.append("  ")
                    i += 2
                    continue
                code.append(" ")
                i += 1
                continue

            if state in (LexState.SINGLE_QUOTE, LexState.DOUBLE_QUOTE):
                quote = "'" if state is LexState.SINGLE_QUOTE else '"'
                if ch == "\\":
                    code.append("  " if nxt else " ")
                    i += 2
                    continue
                if ch == quote:
                    self.state = LexState.CODE
                    code.append(" " if self._expr_depths else ch)
                else:
                    code.append(" ")
                i += 1
                continue

            if state is LexState.TEMPLATE:
                if ch == "\\":
                    code.append("  " if nxt else " ")
                    i += 2
                    continue
                if ch == "`":
                    self.state = LexState.CODE
                    code.append(" " if self._expr_depths else ch)
                    i += 1
                    continue
                if ch == "$" and nxt == "{":
                    self._expr_depths.append(0)
                    self.state = LexState.CODE
                    code.append("  ")
                    i += 2
                    continue
                code.append(" ")
                i += 1
                continue

            # LexState.CODE
            structural = not self._expr_depths
            if ch == "/" and nxt == "/":
                self.state = LexState.LINE_COMMENT
                code.append(" " * (n - i))
                break
            if ch == "/" and nxt == "*":
                self.state = LexState.BLOCK_COMMENT
                code.append("  ")
                i += 2
                continue
            if ch == "'":
                self.state = LexState.SINGLE_QUOTE
                code.append(ch if structural else " ")
                i += 1
                continue
            if ch == '"':
                self.state = LexState.DOUBLE_QUOTE
                code.append(ch if structural else " ")
                i += 1
                continue
            if ch == "`":
                self.state = LexState.TEMPLATE
                code.append(ch if structural else " ")
                i += 1
                continue

            if not structural:
                # Inside a template expression: track its own nesting only.
                if ch == "{":
                    self._expr_depths[-1] += 1
                elif ch == "}":
                    if self._expr_depths[-1] == 0:
                        self._expr_depths.pop()
                        self.state = LexState.TEMPLATE
                    else:
                        self._expr_depths[-1] -= 1
                code.append(" ")
                i += 1
                continue

            if ch == "{":
                braces += 1
                depth += 1
                opened_brace = True
            elif ch == "}":
                braces -= 1
                depth -= 1
            elif ch in "([":
                brackets += 1
                depth += 1
            elif ch in ")]":
                brackets -= 1
                depth -= 1
            elif ch == ";":
                terminator = True
            min_depth = min(min_depth, depth)
            code.append(ch)
            i += 1

        if self.state is LexState.LINE_COMMENT:
            self.state = LexState.CODE

        return LineTokens(
            text=line,
            code="".join(code),
            brace_delta=braces,
            bracket_delta=brackets,
            opened_brace=opened_brace,
            has_terminator=terminator,
            starts_in_code=starts_in_code,
            min_depth=min_depth,
            ends_in_literal=self.state is LexState.TEMPLATE or bool(self._expr_depths),
        )


class RawDelimiterLexer:
    """Counts every delimiter character, including those inside literals.

    Block comments are still tracked at line granularity so that comment-only
    lines can be skipped by the scanner.
    """

    def __init__(self) -> None:
        self._in_block_comment = False

    def feed(self, line: str) -> LineTokens:
        stripped = line.strip()
        starts_in_code = not self._in_block_comment
        if self._in_block_comment:
            if "*/" in line:
                self._in_block_comment = False
        elif stripped.startswith("/*") and "*/" not in stripped[2:]:
            self._in_block_comment = True

        braces = brackets = depth = min_depth = 0
        for ch in line:
            if ch in OPENERS:
                depth += 1
                if ch == "{":
                    braces += 1
                else:
                    brackets += 1
            elif ch in CLOSERS:
                depth -= 1
                if ch == "}":
                    braces -= 1
                else:
                    brackets -= 1
            min_depth = min(min_depth, depth)

        code = line
        if not starts_in_code or stripped.startswith(("//", "/*", "*")):
            code = ""

        return LineTokens(
            text=line,
            code=code,
            brace_delta=braces,
            bracket_delta=brackets,
            opened_brace="{" in line,
            has_terminator=";" in line,
            starts_in_code=starts_in_code,
            min_depth=min_depth,
        )


Lexer = Union[DelimiterLexer, RawDelimiterLexer]


def create_lexer(mode: DelimiterMode = DelimiterMode.LITERAL_AWARE) -> Lexer:
    """Return a fresh lexer for the given delimiter mode."""
    if mode is DelimiterMode.RAW:
        return RawDelimiterLexer()
    return DelimiterLexer()


def tokenize_lines(lines, mode: DelimiterMode = DelimiterMode.LITERAL_AWARE) -> List[LineTokens]:
    """Feed every line through one lexer so that state carries across lines."""
    lexer = create_lexer(mode)
    return [lexer.feed(line) for line in lines]


def brace_balance(text: str, mode: DelimiterMode = DelimiterMode.LITERAL_AWARE) -> int:
    """Net ``{`` minus ``}`` count of a whole text (0 means balanced)."""
    return sum(tok.brace_delta for tok in tokenize_lines(text.split("\n"), mode))


def code_text(text: str, mode: DelimiterMode = DelimiterMode.LITERAL_AWARE) -> str:
    """``text`` with literal contents and comments blanked, line for line."""
    return "\n".join(tok.code for tok in tokenize_lines(text.split("\n"), mode))
