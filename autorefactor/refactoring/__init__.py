"""
Refactoring module for autorefactor

Turns classified blocks into written files:
- Per-file planning (ModulePlan)
- Synthesis of category files, aggregator and replacement original
- Output verification
- Transactional write with backup and rollback
- Dry-run analysis
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List

__all__ = [
    "FileContext",
    "ModulePlan",
    "build_module_plan",
    "OutputLayout",
    "SynthesisResult",
    "synthesize",
    "OutputValidator",
    "TransactionManager",
    "TransactionResult",
    "BackupRecord",
    "SplitAnalysis",
    "analyze_file",
]

_LAZY_EXPORTS: Dict[str, str] = {
    "FileContext": "autorefactor.refactoring.planner",
    "ModulePlan": "autorefactor.refactoring.planner",
    "build_module_plan": "autorefactor.refactoring.planner",
    "OutputLayout": "autorefactor.refactoring.synthesizer",
    "SynthesisResult": "autorefactor.refactoring.synthesizer",
    "synthesize": "autorefactor.refactoring.synthesizer",
    "OutputValidator": "autorefactor.refactoring.validator",
    "TransactionManager": "autorefactor.refactoring.executor",
    "TransactionResult": "autorefactor.refactoring.executor",
    "BackupRecord": "autorefactor.refactoring.executor",
    "SplitAnalysis": "autorefactor.refactoring.analyzer",
    "analyze_file": "autorefactor.refactoring.analyzer",
}

if TYPE_CHECKING:
    from autorefactor.refactoring.planner import FileContext as FileContext
    from autorefactor.refactoring.planner import ModulePlan as ModulePlan
    from autorefactor.refactoring.planner import build_module_plan as build_module_plan
    from autorefactor.refactoring.synthesizer import OutputLayout as OutputLayout
    from autorefactor.refactoring.synthesizer import SynthesisResult as SynthesisResult
    from autorefactor.refactoring.synthesizer import synthesize as synthesize
    from autorefactor.refactoring.validator import OutputValidator as OutputValidator
    from autorefactor.refactoring.executor import TransactionManager as TransactionManager
    from autorefactor.refactoring.executor import TransactionResult as TransactionResult
    from autorefactor.refactoring.executor import BackupRecord as BackupRecord
    from autorefactor.refactoring.analyzer import SplitAnalysis as SplitAnalysis
    from autorefactor.refactoring.analyzer import analyze_file as analyze_file


def __getattr__(name: str) -> Any:
    """
    Lazy attribute loading (PEP 562).
    Allows `from autorefactor.refactoring import synthesize` without eager imports.
    """
    mod_path = _LAZY_EXPORTS.get(name)
    if not mod_path:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    import importlib

    mod = importlib.import_module(mod_path)
    return getattr(mod, name)


def __dir__() -> List[str]:
    return sorted(set(globals().keys()) | set(_LAZY_EXPORTS.keys()))
