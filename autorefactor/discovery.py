"""
Project discovery for autorefactor.

Finds files above the line threshold, detects the front-end framework of a
project, and prepares a project for use (configuration file, backup
directory, .gitignore entry, package.json scripts).
"""

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from fnmatch import fnmatch
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from .config import AutoRefactorConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".auto-refactor.json"
GITIGNORE_MARKER = "# Auto-refactor backups"

# First match wins, so meta-frameworks come before the libraries they build on.
FRAMEWORK_DEPENDENCIES = [
    ("nextjs", "next"),
    ("react", "react"),
    ("vue", "vue"),
    ("svelte", "svelte"),
]

NPM_SCRIPTS = {
    "refactor": "autorefactor run",
    "refactor:scan": "autorefactor scan",
    "refactor:dry": "autorefactor run --dry",
}


@dataclass
class FileToRefactor:
    """A source file above the configured line threshold."""

    path: Path
    lines: int
    framework: str

    def to_dict(self) -> Dict[str, Any]:
        return {"path": str(self.path), "lines": self.lines, "framework": self.framework}


def _read_package_json(project_root: Path) -> Optional[Dict[str, Any]]:
    package_json = project_root / "package.json"
    if not package_json.exists():
        return None
    try:
        with open(package_json, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.debug(f"Failed to read package.json: {e}")
        return None
    return data if isinstance(data, dict) else None


def detect_framework(project_root: Union[str, Path]) -> str:
    """Return ``nextjs``, ``react``, ``vue``, ``svelte`` or ``unknown``."""
    package = _read_package_json(Path(project_root))
    if not package:
        return "unknown"
    dependencies = {
        **(package.get("dependencies") or {}),
        **(package.get("devDependencies") or {}),
    }
    for framework, dependency in FRAMEWORK_DEPENDENCIES:
        if dependency in dependencies:
            return framework
    return "unknown"


def count_lines(path: Path, encoding: str = "utf-8") -> int:
    with open(path, "r", encoding=encoding, errors="replace") as f:
        return len(f.read().splitlines())


def is_excluded(path: Path, project_root: Path, patterns: Iterable[str]) -> bool:
    """True when any component of the project-relative path matches a pattern."""
    try:
        parts = path.relative_to(project_root).parts
    except ValueError:
        parts = path.parts
    return any(fnmatch(part, pattern) for pattern in patterns for part in parts)


def iter_source_files(project_root: Path, config: AutoRefactorConfig) -> List[Path]:
    """Source files under the configured target directories, sorted."""
    discovery = config.discovery_settings
    extensions = tuple(discovery.file_extensions)
    found = set()

    for target in discovery.target_directories:
        target_dir = project_root / target
        if not target_dir.is_dir():
            continue
        for root, dirs, files in os.walk(target_dir):
            root_path = Path(root)
            dirs[:] = sorted(
                d
                for d in dirs
                if not is_excluded(root_path / d, project_root, discovery.exclude_patterns)
            )
            for name in files:
                path = root_path / name
                if name.endswith(extensions) and not is_excluded(
                    path, project_root, discovery.exclude_patterns
                ):
                    found.add(path)

    return sorted(found)


def find_files_to_refactor(
    project_root: Union[str, Path], config: Optional[AutoRefactorConfig] = None
) -> List[FileToRefactor]:
    """
    Find files longer than ``max_lines``.

    Args:
        project_root: Project directory; target directories are relative to it
        config: Configuration (defaults when omitted)

    Returns:
        Files above the threshold, sorted by path
    """
    project_root = Path(project_root)
    config = config or AutoRefactorConfig.default()
    max_lines = config.split_settings.max_lines
    framework = detect_framework(project_root)

    results = []
    for path in iter_source_files(project_root, config):
        try:
            lines = count_lines(path, config.split_settings.encoding)
        except OSError as e:
            logger.warning(f"Skipping unreadable file {path}: {e}")
            continue
        if lines > max_lines:
            results.append(FileToRefactor(path=path, lines=lines, framework=framework))

    logger.info(f"Found {len(results)} files that need refactoring")
    return results


def _update_gitignore(project_root: Path, backup_directory: str) -> bool:
    gitignore = project_root / ".gitignore"
    content = gitignore.read_text(encoding="utf-8") if gitignore.exists() else ""
    entry = backup_directory.rstrip("/")
    if entry in content:
        return False
    if content and not content.endswith("\n"):
        content += "\n"
    content += f"\n{GITIGNORE_MARKER}\n{entry}/\n"
    gitignore.write_text(content, encoding="utf-8")
    return True


def _add_npm_scripts(project_root: Path) -> bool:
    package = _read_package_json(project_root)
    if package is None:
        return False
    scripts = dict(package.get("scripts") or {})
    missing = {k: v for k, v in NPM_SCRIPTS.items() if k not in scripts}
    if not missing:
        return False
    scripts.update(missing)
    package["scripts"] = scripts
    with open(project_root / "package.json", "w", encoding="utf-8") as f:
        json.dump(package, f, indent=2)
        f.write("\n")
    return True


def initialize_project(
    project_root: Union[str, Path],
    config: Optional[AutoRefactorConfig] = None,
    framework: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Prepare a project for autorefactor.

    Writes the configuration file, creates the backup directory, adds the
    backup directory to .gitignore once, and adds npm scripts when a
    package.json exists.

    Returns:
        Dictionary describing what was done
    """
    project_root = Path(project_root)
    config = config or AutoRefactorConfig.default()
    framework = framework or detect_framework(project_root)
    logger.info(f"Detected framework: {framework}")

    config_path = project_root / CONFIG_FILE_NAME
    config.to_file(str(config_path))

    backup_dir = Path(config.split_settings.backup_directory)
    if not backup_dir.is_absolute():
        backup_dir = project_root / backup_dir
    backup_dir.mkdir(parents=True, exist_ok=True)

    results = {
        "project_path": str(project_root),
        "timestamp": datetime.now().isoformat(),
        "framework": framework,
        "config_file": str(config_path),
        "backup_dir": str(backup_dir),
        "gitignore_updated": _update_gitignore(
            project_root, config.split_settings.backup_directory
        ),
        "package_json_updated": _add_npm_scripts(project_root),
    }
    logger.info(f"Initialized autorefactor in {project_root}")
    return results
