"""
Analysis module for autorefactor

Turns raw source text into classified blocks:
- Delimiter lexing (string, template and comment aware)
- Balanced-block scanning
- Block classification into semantic categories
- Import parsing and per-group filtering
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List

# Submodules are loaded on first attribute access; config.py imports the
# lexer, so an eager import here would be cyclic.

__all__ = [
    "SourceBuffer",
    "Block",
    "BlockKind",
    "Category",
    "scan_blocks",
    "classify_block",
    "find_default_export",
    "parse_import",
    "filter_imports",
]

_LAZY_EXPORTS: Dict[str, str] = {
    "SourceBuffer": "autorefactor.analysis.models",
    "Block": "autorefactor.analysis.models",
    "BlockKind": "autorefactor.analysis.models",
    "Category": "autorefactor.analysis.models",
    "scan_blocks": "autorefactor.analysis.scanner",
    "classify_block": "autorefactor.analysis.classifier",
    "find_default_export": "autorefactor.analysis.classifier",
    "parse_import": "autorefactor.analysis.imports",
    "filter_imports": "autorefactor.analysis.imports",
}

if TYPE_CHECKING:
    from autorefactor.analysis.models import SourceBuffer as SourceBuffer
    from autorefactor.analysis.models import Block as Block
    from autorefactor.analysis.models import BlockKind as BlockKind
    from autorefactor.analysis.models import Category as Category
    from autorefactor.analysis.scanner import scan_blocks as scan_blocks
    from autorefactor.analysis.classifier import classify_block as classify_block
    from autorefactor.analysis.classifier import find_default_export as find_default_export
    from autorefactor.analysis.imports import parse_import as parse_import
    from autorefactor.analysis.imports import filter_imports as filter_imports


def __getattr__(name: str) -> Any:
    """
    Lazy attribute loading (PEP 562).
    Allows `from autorefactor.analysis import scan_blocks` without eager imports.
    """
    mod_path = _LAZY_EXPORTS.get(name)
    if not mod_path:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    import importlib

    mod = importlib.import_module(mod_path)
    try:
        return getattr(mod, name)
    except AttributeError as e:
        raise AttributeError(
            f"module {mod_path!r} does not define {name!r} (lazy export from {__name__!r})"
        ) from e


def __dir__() -> List[str]:
    return sorted(set(globals().keys()) | set(_LAZY_EXPORTS.keys()))
