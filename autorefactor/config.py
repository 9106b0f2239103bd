"""
Configuration system for autorefactor

Settings for splitting, classification and discovery, loaded from
.auto-refactor.json/.yaml and overridden by AUTOREFACTOR_* environment
variables. Invalid values raise ConfigurationError.
"""

import os
import json
import yaml
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Any
from enum import Enum
import logging

from .analysis.lexer import DelimiterMode

logger = logging.getLogger(__name__)


class OutputMode(Enum):
    """Where split files are written."""

    SIBLING = "sibling"  # <base>-<category>.<ext> next to the original
    DIRECTORY = "directory"  # <dir>/<base>/ with index.<ext>


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


# Environment variable -> (section, key, value kind)
ENV_VARIABLES = {
    "AUTOREFACTOR_MAX_LINES": ("split", "max_lines", int),
    "AUTOREFACTOR_OUTPUT_MODE": ("split", "output_mode", OutputMode),
    "AUTOREFACTOR_DELIMITER_MODE": ("split", "delimiter_mode", DelimiterMode),
    "AUTOREFACTOR_BACKUP_DIR": ("split", "backup_directory", str),
    "AUTOREFACTOR_TARGET_DIRECTORIES": ("discovery", "target_directories", list),
    "AUTOREFACTOR_FILE_EXTENSIONS": ("discovery", "file_extensions", list),
    "AUTOREFACTOR_EXCLUDE_PATTERNS": ("discovery", "exclude_patterns", list),
}


class ConfigurationManager:
    """Manages configuration loading, validation, and merging."""

    DEFAULT_CONFIG_PATHS = [
        ".auto-refactor.json",
        ".auto-refactor.yaml",
        ".auto-refactor.yml",
        "auto-refactor.json",
    ]

    @staticmethod
    def find_config_file(
        search_paths: Optional[List[str]] = None, base_dir: Optional[str] = None
    ) -> Optional[str]:
        """Find the first existing configuration file."""
        paths = search_paths or ConfigurationManager.DEFAULT_CONFIG_PATHS

        for path in paths:
            candidate = os.path.join(base_dir, path) if base_dir else path
            if os.path.exists(candidate):
                return candidate
        return None

    @staticmethod
    def load_config_file(config_path: str) -> Dict[str, Any]:
        """Load configuration from file (JSON or YAML)."""
        if not os.path.exists(config_path):
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                if config_path.endswith((".yaml", ".yml")):
                    data = yaml.safe_load(f) or {}
                else:
                    data = json.load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Invalid configuration file format: {e}")
        except OSError as e:
            raise ConfigurationError(f"Error reading configuration file: {e}")

        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Configuration file must contain a mapping: {config_path}"
            )
        return data

    @staticmethod
    def _parse_env_value(name: str, raw: str, kind: Any) -> Any:
        if kind is int:
            try:
                return int(raw)
            except ValueError:
                logger.warning(f"Invalid {name} value, using default")
                return None
        if kind is list:
            return [part.strip() for part in raw.split(",") if part.strip()]
        if isinstance(kind, type) and issubclass(kind, Enum):
            value = raw.strip().lower()
            if value in [m.value for m in kind]:
                return value
            logger.warning(f"Invalid {name} value, using default")
            return None
        return raw

    @staticmethod
    def load_env_config() -> Dict[str, Any]:
        """Load configuration from ``AUTOREFACTOR_*`` environment variables."""
        config: Dict[str, Dict[str, Any]] = {}
        for name, (section, key, kind) in ENV_VARIABLES.items():
            raw = os.getenv(name)
            if not raw:
                continue
            value = ConfigurationManager._parse_env_value(name, raw, kind)
            if value is not None:
                config.setdefault(section, {})[key] = value
        return config

    @staticmethod
    def merge_configs(*configs: Dict[str, Any]) -> Dict[str, Any]:
        """Merge multiple configuration dictionaries, with later ones taking precedence."""
        result = {}

        for config in configs:
            if not config:
                continue

            for key, value in config.items():
                if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                    result[key] = ConfigurationManager.merge_configs(result[key], value)
                else:
                    result[key] = value

        return result

    @staticmethod
    def validate_config(config_data: Dict[str, Any]) -> None:
        """Validate configuration data."""
        if "split" in config_data:
            split = config_data["split"]

            if "max_lines" in split:
                max_lines = split["max_lines"]
                if not isinstance(max_lines, int) or max_lines <= 0:
                    raise ConfigurationError("max_lines must be a positive integer")

            if "output_mode" in split:
                valid_modes = [m.value for m in OutputMode]
                if split["output_mode"] not in valid_modes:
                    raise ConfigurationError(f"output_mode must be one of: {valid_modes}")

            if "delimiter_mode" in split:
                valid_modes = [m.value for m in DelimiterMode]
                if split["delimiter_mode"] not in valid_modes:
                    raise ConfigurationError(f"delimiter_mode must be one of: {valid_modes}")

            if "backup_directory" in split and not split["backup_directory"]:
                raise ConfigurationError("backup_directory must not be empty")

        if "discovery" in config_data:
            discovery = config_data["discovery"]

            for key in ("target_directories", "file_extensions", "exclude_patterns"):
                if key in discovery and not isinstance(discovery[key], list):
                    raise ConfigurationError(f"{key} must be a list")

            for ext in discovery.get("file_extensions", []):
                if not str(ext).startswith("."):
                    raise ConfigurationError(f"file extension must start with '.': {ext}")

        if "classification" in config_data:
            classification = config_data["classification"]

            for key, value in classification.items():
                if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                    raise ConfigurationError(f"classification.{key} must be a list of strings")


@dataclass
class SplitConfig:
    """Configuration for splitting and writing files."""

    max_lines: int = 200
    output_mode: OutputMode = OutputMode.SIBLING
    delimiter_mode: DelimiterMode = DelimiterMode.LITERAL_AWARE
    backup_directory: str = ".refactor-backups"
    overwrite_existing: bool = False
    encoding: str = "utf-8"


@dataclass
class ClassificationPatterns:
    """Regex patterns and names that drive block classification."""

    # Identifier suffixes that mark a component as the file's root view.
    main_role_suffixes: List[str] = field(
        default_factory=lambda: ["Page", "Screen", "View", "Layout", "App", "Root", "Container"]
    )
    # Type annotations that mark a binding as a component.
    component_type_annotations: List[str] = field(
        default_factory=lambda: [
            r"(?:React\.)?FC\b",
            r"(?:React\.)?VFC\b",
            r"(?:React\.)?FunctionComponent\b",
            r"(?:React\.)?ComponentType\b",
            r"NextPage\b",
        ]
    )
    # Higher-order wrappers whose argument is a component body.
    component_wrappers: List[str] = field(
        default_factory=lambda: [
            "React.memo",
            "memo",
            "React.forwardRef",
            "forwardRef",
            "observer",
        ]
    )
    # Patterns whose presence means a block renders markup.
    markup_patterns: List[str] = field(
        default_factory=lambda: [
            r"return\s*\(\s*(?:<|$)",
            r"return\s+<[A-Za-z>]",
            r"=>\s*\(?\s*<[A-Za-z>]",
            r"</[A-Za-z][\w.]*\s*>",
            r"<[A-Za-z][\w.]*(?:\s[^<>]*)?/>",
            r"<>|</>",
        ]
    )


@dataclass
class DiscoveryConfig:
    """Configuration for finding oversized files in a project."""

    target_directories: List[str] = field(
        default_factory=lambda: ["src", "components", "lib", "utils"]
    )
    file_extensions: List[str] = field(default_factory=lambda: [".tsx", ".ts", ".jsx", ".js"])
    exclude_patterns: List[str] = field(
        default_factory=lambda: ["node_modules", ".next", "*.test.*", "dist", "build"]
    )


@dataclass
class AutoRefactorConfig:
    """Main configuration class for autorefactor."""

    split_settings: SplitConfig = field(default_factory=SplitConfig)
    classification_patterns: ClassificationPatterns = field(
        default_factory=ClassificationPatterns
    )
    discovery_settings: DiscoveryConfig = field(default_factory=DiscoveryConfig)

    @classmethod
    def default(cls) -> "AutoRefactorConfig":
        """Create default configuration."""
        return cls()

    @classmethod
    def load(
        cls,
        config_path: Optional[str] = None,
        use_env: bool = True,
        validate: bool = True,
        base_dir: Optional[str] = None,
    ) -> "AutoRefactorConfig":
        """
        Load configuration from multiple sources with precedence:
        1. Default values
        2. Configuration file
        3. Environment variables (if use_env=True)

        Args:
            config_path: Path to configuration file. If None, searches for default files.
            use_env: Whether to load environment variables
            validate: Whether to validate the configuration
            base_dir: Directory searched for default configuration files
        """
        configs_to_merge = []

        file_config = {}
        if config_path:
            if not os.path.exists(config_path):
                raise ConfigurationError(f"Configuration file not found: {config_path}")
            file_config = ConfigurationManager.load_config_file(config_path)
        else:
            found_config = ConfigurationManager.find_config_file(base_dir=base_dir)
            if found_config:
                file_config = ConfigurationManager.load_config_file(found_config)
                logger.info(f"Loaded configuration from: {found_config}")

        configs_to_merge.append(file_config)

        if use_env:
            configs_to_merge.append(ConfigurationManager.load_env_config())

        merged_config = ConfigurationManager.merge_configs(*configs_to_merge)

        if validate:
            ConfigurationManager.validate_config(merged_config)

        return cls.from_dict(merged_config)

    @classmethod
    def from_dict(cls, config_data: Dict[str, Any]) -> "AutoRefactorConfig":
        """Build a configuration from a (merged) dictionary."""
        split_config = SplitConfig()
        for key, value in config_data.get("split", {}).items():
            if not hasattr(split_config, key):
                logger.warning(f"Ignoring unknown split setting: {key}")
                continue
            if key == "output_mode" and isinstance(value, str):
                value = OutputMode(value)
            elif key == "delimiter_mode" and isinstance(value, str):
                value = DelimiterMode(value)
            setattr(split_config, key, value)

        patterns = ClassificationPatterns()
        for key, value in config_data.get("classification", {}).items():
            if hasattr(patterns, key):
                setattr(patterns, key, list(value))
            else:
                logger.warning(f"Ignoring unknown classification setting: {key}")

        discovery_config = DiscoveryConfig()
        for key, value in config_data.get("discovery", {}).items():
            if hasattr(discovery_config, key):
                setattr(discovery_config, key, list(value))
            else:
                logger.warning(f"Ignoring unknown discovery setting: {key}")

        return cls(
            split_settings=split_config,
            classification_patterns=patterns,
            discovery_settings=discovery_config,
        )

    @classmethod
    def from_file(cls, config_path: str) -> "AutoRefactorConfig":
        """Load configuration from a JSON or YAML file."""
        return cls.load(config_path=config_path, use_env=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "split": {
                **asdict(self.split_settings),
                "output_mode": self.split_settings.output_mode.value,
                "delimiter_mode": self.split_settings.delimiter_mode.value,
            },
            "classification": asdict(self.classification_patterns),
            "discovery": asdict(self.discovery_settings),
        }

    def to_file(self, config_path: str, format: str = "json") -> None:
        """
        Save configuration to file.

        Args:
            config_path: Path to save configuration
            format: File format ('json' or 'yaml')
        """
        config_data = self.to_dict()

        try:
            with open(config_path, "w", encoding="utf-8") as f:
                if format.lower() == "yaml":
                    yaml.dump(config_data, f, default_flow_style=False, indent=2)
                else:
                    json.dump(config_data, f, indent=2)
        except OSError as e:
            raise ConfigurationError(f"Error saving configuration file: {e}")

    def validate(self) -> None:
        """Validate the current configuration."""
        ConfigurationManager.validate_config(self.to_dict())

    def get_config_summary(self) -> str:
        """Get a human-readable summary of the configuration."""
        return f"""autorefactor Configuration Summary:
Split:
  - Max lines: {self.split_settings.max_lines}
  - Output mode: {self.split_settings.output_mode.value}
  - Delimiter mode: {self.split_settings.delimiter_mode.value}
  - Backup directory: {self.split_settings.backup_directory}

Classification:
  - Main role suffixes: {", ".join(self.classification_patterns.main_role_suffixes)}
  - Component wrappers: {", ".join(self.classification_patterns.component_wrappers)}

Discovery:
  - Target directories: {self.discovery_settings.target_directories}
  - File extensions: {self.discovery_settings.file_extensions}
  - Exclude patterns: {len(self.discovery_settings.exclude_patterns)} patterns
"""


def load_config(
    config_path: Optional[str] = None, use_env: bool = True, base_dir: Optional[str] = None
) -> AutoRefactorConfig:
    """
    Load configuration from file and/or environment variables.

    Args:
        config_path: Path to configuration file
        use_env: Whether to load environment variables
        base_dir: Directory searched for default configuration files

    Returns:
        AutoRefactorConfig: Loaded configuration
    """
    return AutoRefactorConfig.load(config_path=config_path, use_env=use_env, base_dir=base_dir)
