"""
autorefactor - Structural splitter for oversized TypeScript/JavaScript files

Partitions a large source file into balanced top-level blocks, classifies
them (types, constants, utilities, sub-components, main unit), and rewrites
the file as a set of per-category modules plus an aggregator, inside a
backed-up, verified, all-or-nothing transaction.
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Main API
    "AutoRefactor",
    "RefactorResult",
    "AutoRefactorConfig",
    "load_config",
    # Lower-level building blocks
    "scan_blocks",
    "classify_block",
    "filter_imports",
    "synthesize",
    "TransactionManager",
]


def __getattr__(name):
    """Lazy loading of API classes to keep ``import autorefactor`` light."""
    if name in {"AutoRefactor", "RefactorResult"}:
        from .api import AutoRefactor, RefactorResult

        return {"AutoRefactor": AutoRefactor, "RefactorResult": RefactorResult}[name]

    if name in {"AutoRefactorConfig", "load_config"}:
        from .config import AutoRefactorConfig, load_config

        return {"AutoRefactorConfig": AutoRefactorConfig, "load_config": load_config}[name]

    if name in {"scan_blocks", "classify_block", "filter_imports"}:
        from . import analysis

        return getattr(analysis, name)

    if name in {"synthesize", "TransactionManager"}:
        from . import refactoring

        return getattr(refactoring, name)

    raise AttributeError(f"module 'autorefactor' has no attribute '{name}'")
