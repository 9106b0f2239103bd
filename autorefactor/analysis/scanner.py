"""
Balanced-block scanner.

Partitions a SourceBuffer into contiguous blocks without a grammar. A block
starts at the first code line seen while idle; what the line declares
(see ``describe_declaration``) picks the scan state, and the state decides
when the block closes:

- imports close when the brace depth is back to zero and the statement is
  complete;
- everything else counts ``{``, ``(`` and ``[`` together and closes when the
  depth is back to zero and the statement is complete, except that a
  function, class, interface, enum or namespace declaration keeps going
  until its body has opened.

A statement is complete when its last code line ends with ``;``, or when
that line does not end with a continuation token and the next code line
does not start with one. This makes semicolon-free sources scan the same
way as terminated ones.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .lexer import DelimiterMode, LineTokens, tokenize_lines
from .models import Block, BlockKind, ScanWarning, SourceBuffer, WarningKind
from .patterns import (
    FROM_CLAUSE_RE,
    CompiledPatterns,
    Declaration,
    describe_declaration,
    ends_with_continuation,
    is_component_declaration,
    starts_with_continuation,
)

logger = logging.getLogger(__name__)


class ScanState(Enum):
    IDLE = "idle"
    IN_IMPORT = "in_import"
    IN_TYPE = "in_type"
    IN_CONSTANT = "in_constant"
    IN_FUNCTION = "in_function"
    IN_STATEMENT = "in_statement"


STATE_FOR_KIND = {
    BlockKind.IMPORT: ScanState.IN_IMPORT,
    BlockKind.TYPEDEF: ScanState.IN_TYPE,
    BlockKind.CONSTANT: ScanState.IN_CONSTANT,
    BlockKind.FUNCTION: ScanState.IN_FUNCTION,
    BlockKind.COMPONENT: ScanState.IN_FUNCTION,
    BlockKind.STATEMENT: ScanState.IN_STATEMENT,
}


@dataclass
class ScanResult:
    """Blocks in source order plus recoverable scan problems."""

    blocks: List[Block] = field(default_factory=list)
    warnings: List[ScanWarning] = field(default_factory=list)

    @property
    def import_blocks(self) -> List[Block]:
        return [b for b in self.blocks if b.kind is BlockKind.IMPORT]

    @property
    def body_blocks(self) -> List[Block]:
        return [b for b in self.blocks if b.kind is not BlockKind.IMPORT]


class BlockScanner:
    """Single forward pass over the lines of one buffer."""

    def __init__(
        self,
        buffer: SourceBuffer,
        patterns: CompiledPatterns,
        mode: DelimiterMode = DelimiterMode.LITERAL_AWARE,
    ):
        self.buffer = buffer
        self.patterns = patterns
        self.tokens: List[LineTokens] = tokenize_lines(buffer.lines, mode)
        self._next_code = self._index_next_code_lines()

    def _index_next_code_lines(self) -> List[Optional[int]]:
        following: List[Optional[int]] = [None] * len(self.tokens)
        upcoming = None
        for i in range(len(self.tokens) - 1, -1, -1):
            following[i] = upcoming
            if not self.tokens[i].is_blank_code:
                upcoming = i
        return following

    def _code(self, index: Optional[int]) -> str:
        if index is None:
            return ""
        return self.tokens[index].code.strip()

    def statement_complete(self, index: int) -> bool:
        code = self.tokens[index].code.rstrip()
        if code.endswith(";"):
            return True
        if ends_with_continuation(code):
            return False
        return not starts_with_continuation(self._code(self._next_code[index]))

    def scan(self) -> ScanResult:
        result = ScanResult()
        i = 0
        while i < len(self.tokens):
            if self.tokens[i].is_blank_code:
                i += 1
                continue
            decl = describe_declaration(
                self._code(i), self._code(self._next_code[i]), self.patterns
            )
            block, warning = self._consume(i, decl)
            result.blocks.append(block)
            if warning is not None:
                logger.debug("%s: %s", self.buffer.path, warning)
                result.warnings.append(warning)
            i = block.end
        return result

    def _consume(self, start: int, decl: Declaration) -> Tuple[Block, Optional[ScanWarning]]:
        state = STATE_FOR_KIND[decl.kind]
        if decl.export_list:
            state = ScanState.IN_IMPORT
        braces_only = state is ScanState.IN_IMPORT

        depth = 0
        opened = terminated = False
        last_code = start
        for j in range(start, len(self.tokens)):
            tok = self.tokens[j]
            if braces_only:
                low = depth + min(tok.brace_delta, 0)
                depth += tok.brace_delta
            else:
                low = depth + tok.min_depth
                depth += tok.depth_delta
            opened = opened or tok.opened_brace
            terminated = terminated or tok.has_terminator

            if low < 0:
                warning = ScanWarning(
                    WarningKind.UNBALANCED_CLOSER,
                    j + 1,
                    "closing delimiter without a matching opener",
                )
                return self._make_block(start, j + 1, decl), warning

            if tok.is_blank_code:
                continue
            last_code = j
            if depth > 0 or tok.ends_in_literal:
                continue
            if decl.awaits_body and not opened and not terminated:
                continue
            if self.statement_complete(j):
                return self._make_block(start, j + 1, decl), None

        warning = ScanWarning(
            WarningKind.UNTERMINATED_BLOCK,
            start + 1,
            f"{state.value} block starting here never closes; kept up to end of file",
        )
        return self._make_block(start, last_code + 1, decl, unterminated=True), warning

    def _make_block(
        self, start: int, end: int, decl: Declaration, unterminated: bool = False
    ) -> Block:
        text = "\n".join(self.buffer.lines[start:end])
        kind = decl.kind
        if decl.export_list:
            code = " ".join(tok.code for tok in self.tokens[start:end])
            kind = BlockKind.IMPORT if FROM_CLAUSE_RE.search(code) else BlockKind.STATEMENT
        elif kind is BlockKind.FUNCTION and is_component_declaration(decl, self.patterns):
            kind = BlockKind.COMPONENT
        return Block(
            start=start,
            end=end,
            kind=kind,
            text=text,
            names=tuple(n for n in decl.names if n),
            unterminated=unterminated,
        )


def scan_blocks(buffer: SourceBuffer, config=None, patterns: CompiledPatterns = None) -> ScanResult:
    """Partition ``buffer`` into blocks.

    Args:
        buffer: Source to scan
        config: AutoRefactorConfig supplying the delimiter mode and the
            classification patterns (defaults when omitted)
        patterns: Pre-compiled patterns, to avoid recompiling per file

    Returns:
        ScanResult with non-overlapping blocks covering every code line
    """
    if config is None:
        from ..config import AutoRefactorConfig

        config = AutoRefactorConfig.default()
    if patterns is None:
        patterns = CompiledPatterns(config.classification_patterns)
    scanner = BlockScanner(buffer, patterns, config.split_settings.delimiter_mode)
    return scanner.scan()
