"""File-system provider used by the transaction manager.

All mutations of the project tree go through one of these objects, so
tests can swap in a provider that fails on demand.
"""

import logging
import shutil
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)


class LocalFileSystem:
    """Thin wrapper over pathlib and shutil."""

    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    def is_file(self, path: Path) -> bool:
        return Path(path).is_file()

    def read_bytes(self, path: Path) -> bytes:
        return Path(path).read_bytes()

    def write_bytes(self, path: Path, data: bytes) -> None:
        Path(path).write_bytes(data)

    def copy(self, source: Path, destination: Path) -> None:
        """Byte-for-byte copy, keeping file metadata."""
        shutil.copy2(source, destination)

    def remove(self, path: Path) -> None:
        Path(path).unlink()

    def make_dirs(self, path: Path) -> List[Path]:
        """Create ``path`` and missing parents; return the directories created, outermost first."""
        path = Path(path)
        missing: List[Path] = []
        current = path
        while not current.exists():
            missing.append(current)
            if current.parent == current:
                break
            current = current.parent
        path.mkdir(parents=True, exist_ok=True)
        return list(reversed(missing))

    def remove_dir(self, path: Path) -> None:
        """Remove an empty directory."""
        Path(path).rmdir()
