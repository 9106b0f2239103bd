"""
Verification of generated files.

This module provides the OutputValidator class used by the transaction
manager after every write, and by the dry-run analyzer before anything is
written. A generated file passes when:

- it exists,
- it is non-empty after trimming whitespace,
- its ``{`` and ``}`` counts balance (with the same delimiter mode the
  scanner used, so string contents are ignored unless raw mode is set).

Classes:
    OutputValidator: Checks generated texts and written files

Example:
    >>> validator = OutputValidator()
    >>> results = {'errors': []}
    >>> if validator.validate_text(code, Path('page-types.ts'), results):
    ...     print("Looks balanced")
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from ..analysis.lexer import DelimiterMode, brace_balance
from .filesystem import LocalFileSystem

logger = logging.getLogger(__name__)


class OutputValidator:
    """
    Checks generated files for emptiness and brace balance.

    Attributes:
        delimiter_mode: How delimiters inside literals are counted
        filesystem: Provider used to read written files
    """

    def __init__(
        self,
        delimiter_mode: DelimiterMode = DelimiterMode.LITERAL_AWARE,
        filesystem: Optional[LocalFileSystem] = None,
    ):
        self.delimiter_mode = delimiter_mode
        self.filesystem = filesystem or LocalFileSystem()

    def check_text(self, text: str) -> Optional[str]:
        """Reason the text fails verification, or None when it passes."""
        if not text.strip():
            return "file is empty"
        balance = brace_balance(text, self.delimiter_mode)
        if balance > 0:
            return f"unbalanced braces ({balance} unclosed '{{')"
        if balance < 0:
            return f"unbalanced braces ({-balance} unmatched '}}')"
        return None

    def check_file(self, path: Path, encoding: str = "utf-8") -> Optional[str]:
        """Reason a written file fails verification, or None when it passes."""
        if not self.filesystem.is_file(path):
            return "file does not exist"
        try:
            text = self.filesystem.read_bytes(path).decode(encoding)
        except (OSError, UnicodeDecodeError) as e:
            return f"file cannot be read back: {e}"
        return self.check_text(text)

    def validate_text(self, text: str, path: Path, results: Dict[str, Any]) -> bool:
        """
        Validate generated text before it is written.

        Args:
            text: Generated file content
            path: Path for error reporting
            results: Results dictionary to update with errors

        Returns:
            True if the text passes, False otherwise
        """
        reason = self.check_text(text)
        if reason:
            results["errors"].append(f"{path.name}: {reason}")
            return False
        return True
