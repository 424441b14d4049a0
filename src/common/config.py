"""Shared configuration utilities."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Generic, TypeVar

import yaml
from dotenv import load_dotenv

from common.errors import MissingConfigError
from common.models import SECTION_TYPES, ModelConfig

T = TypeVar('T')

CONFIG_DIR = Path(__file__).parent.parent / "configs"
CONFIG_ENV_VAR = "ENRICH_CONFIG"
STEP_NAME = "load-config"


def find_config_path(
    config_name: str | None,
    config_dir: Path,
    default_name: str = "default",
    env_var: str | None = None,
) -> Path:
    """Find config file path, checking env var and defaults.

    Args:
        config_name: Name of config (without .yaml), a path to a YAML file,
            or None for default
        config_dir: Directory containing config files
        default_name: Default config name if config_name is None
        env_var: Environment variable to check for config name

    Returns:
        Path to the config file

    Raises:
        FileNotFoundError: If config file doesn't exist
    """
    if config_name is None:
        config_name = os.environ.get(env_var, default_name) if env_var else default_name

    if "/" in config_name or config_name.endswith((".yaml", ".yml")):
        config_path = Path(config_name)
    else:
        config_path = config_dir / f"{config_name}.yaml"
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    return config_path


def load_yaml(path: Path) -> dict:
    """Load YAML file and return dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


class ConfigSingleton(Generic[T]):
    """Generic config singleton manager.

    Provides get/set/reset pattern for managing a global config instance.

    Example:
        >>> _manager = ConfigSingleton(load_config)
        >>> get_config = _manager.get
        >>> set_config = _manager.set
        >>> reset_config = _manager.reset
    """

    def __init__(self, loader: Callable[[], T] | None = None):
        self._config: T | None = None
        self._loader = loader

    def get(self) -> T:
        """Get the config, loading it lazily if needed."""
        if self._config is None:
            if self._loader is None:
                raise RuntimeError("No config loaded and no loader set")
            self._config = self._loader()
        return self._config

    def set(self, config: T) -> None:
        """Set the config directly."""
        self._config = config

    def reset(self) -> None:
        """Reset the config, forcing reload on next get()."""
        self._config = None


@dataclass
class SourceDetectionConfig:
    """Distance budget between an entity mention and a candidate source."""

    max_sentences: int = 2
    max_words: int = 250

    def __post_init__(self) -> None:
        if self.max_sentences < 0 or self.max_words < 0:
            raise MissingConfigError(
                f"Source detection limits must be non-negative, got "
                f"max_sentences={self.max_sentences}, max_words={self.max_words}",
                STEP_NAME,
            )


@dataclass
class LinkTypeConfig:
    """A link category and the patterns that place a URL in it.

    Patterns with regex metacharacters are regular expressions, patterns
    starting with ``*`` or ``.`` match the end of the hostname, and any other
    pattern is a substring match.
    """

    code: str
    name: str
    description: str = ""
    patterns: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.code:
            raise MissingConfigError(f"Link type '{self.name}' has no code", STEP_NAME)


@dataclass
class EnrichConfig:
    models: list[ModelConfig]
    source_detection: SourceDetectionConfig = field(default_factory=SourceDetectionConfig)
    sections: list[str] = field(default_factory=lambda: list(SECTION_TYPES))
    link_types: list[LinkTypeConfig] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.models:
            raise MissingConfigError("Config must list at least one model", STEP_NAME)

        ids = [model.id for model in self.models]
        if len(set(ids)) != len(ids):
            raise MissingConfigError(f"Duplicate model ids in config: {ids}", STEP_NAME)

        unknown = [name for name in self.sections if name not in SECTION_TYPES]
        if unknown:
            raise MissingConfigError(
                f"Invalid sections: {unknown}. Must be among {list(SECTION_TYPES)}",
                STEP_NAME,
            )

        codes = [link_type.code for link_type in self.link_types]
        if len(set(codes)) != len(codes):
            raise MissingConfigError(f"Duplicate link type codes in config: {codes}", STEP_NAME)


def _parse_config(data: dict) -> EnrichConfig:
    """Parse config dictionary into EnrichConfig object."""
    models = [
        ModelConfig(
            id=str(item["id"]),
            display_name=item.get("display_name", ""),
            estimated_mau=item.get("estimated_mau"),
        )
        for item in data.get("models") or []
    ]

    detection = data.get("source_detection") or {}
    source_detection = SourceDetectionConfig(
        max_sentences=detection.get("max_sentences", 2),
        max_words=detection.get("max_words", 250),
    )

    link_types = [
        LinkTypeConfig(
            code=str(item["code"]),
            name=item.get("name", item["code"]),
            description=item.get("description", ""),
            patterns=[str(pattern) for pattern in item.get("patterns") or []],
        )
        for item in data.get("link_types") or []
    ]

    sections = data.get("sections") or list(SECTION_TYPES)
    return EnrichConfig(
        models=models,
        source_detection=source_detection,
        sections=sections,
        link_types=link_types,
    )


def load_config(config_name: str | None = None) -> EnrichConfig:
    """Load enrichment config by name (e.g. 'default') or path.

    Args:
        config_name: Config name without extension, path to a YAML file,
            or None to use the ENRICH_CONFIG env var (falling back to 'default')

    Returns:
        EnrichConfig instance
    """
    load_dotenv()
    config_path = find_config_path(config_name, CONFIG_DIR, env_var=CONFIG_ENV_VAR)
    return _parse_config(load_yaml(config_path))


_manager: ConfigSingleton[EnrichConfig] = ConfigSingleton(load_config)
get_config = _manager.get
set_config = _manager.set
reset_config = _manager.reset
