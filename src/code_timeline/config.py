"""Configuration loading and management for Code Timeline.

Configuration sources are merged in priority order:
    1. Defaults (defined in EngineConfig)
    2. Global config (~/.code-timeline.toml)
    3. Project config (./code-timeline.toml)
    4. Explicit config file
    5. Environment variables (CODE_TIMELINE_* prefix)
    6. Direct overrides (passed as kwargs, typically from the CLI)

Example:
    >>> config = load_config(verbose=True, version_retention=50)
    >>> config.verbosity
    'verbose'
    >>> config.version_retention
    50
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError, InvalidConfigError

Verbosity = Literal["quiet", "normal", "verbose"]

ENV_PREFIX = "CODE_TIMELINE_"
CONFIG_FILENAME = "code-timeline.toml"


@dataclass(frozen=True)
class EngineConfig:
    """Tuning knobs for the evolution engine.

    Attributes:
        Retention:
            history_limit: Snapshots kept in the snapshot store (FIFO eviction)
            version_retention: Code version records kept by the engine (FIFO eviction)
            prior_window: Earlier same-language snapshots consulted by the classifier
            pattern_table_limit: LRU cap for learned pattern tables (0 = unbounded)

        Sessions:
            heartbeat_interval: Seconds between session heartbeats

        Trends:
            quality_margin: Window delta needed to call quality improving/declining
            performance_margin: Window delta needed to call performance improving/declining

        Suggestions:
            complexity_warning: Snapshot complexity above which refactoring is suggested
            relevant_history_days: Look-back window used by next-step prediction

        Storage and output:
            data_dir: Directory (relative to the project root) holding history.db
            verbosity: Logging verbosity level
    """

    history_limit: int = 1000
    version_retention: int = 100
    prior_window: int = 5
    pattern_table_limit: int = 0

    heartbeat_interval: float = 60.0

    quality_margin: float = 0.05
    performance_margin: float = 0.1

    complexity_warning: float = 0.8
    relevant_history_days: int = 7

    data_dir: str = ".code-timeline"
    verbosity: Verbosity = "normal"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.history_limit < 1:
            raise ValueError("history_limit must be at least 1")
        if self.version_retention < 1:
            raise ValueError("version_retention must be at least 1")
        if self.prior_window < 1:
            raise ValueError("prior_window must be at least 1")
        if self.pattern_table_limit < 0:
            raise ValueError("pattern_table_limit must be non-negative")

        if self.heartbeat_interval <= 0:
            raise ValueError("heartbeat_interval must be positive")

        for field_name in ("quality_margin", "performance_margin", "complexity_warning"):
            value = getattr(self, field_name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{field_name} must be between 0.0 and 1.0")

        if self.relevant_history_days < 1:
            raise ValueError("relevant_history_days must be at least 1")
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise ValueError("verbosity must be one of quiet, normal, verbose")

    @property
    def pattern_limit(self) -> Optional[int]:
        """LRU cap for pattern tables, or None when unbounded."""
        return self.pattern_table_limit or None


DEFAULT_CONFIG = EngineConfig()


def load_config(config_file: Optional[Path] = None, **overrides) -> EngineConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags)

    Returns:
        Validated EngineConfig instance

    Raises:
        ConfigurationError: If a config file is invalid or missing, or the
            merged values fail validation
        InvalidConfigError: If an environment variable cannot be parsed
    """
    merged: dict[str, Any] = {}

    global_config = Path.home() / f".{CONFIG_FILENAME}"
    if global_config.exists():
        merged.update(_read_config_file(global_config, "global config"))

    project_config = Path.cwd() / CONFIG_FILENAME
    if project_config.exists():
        merged.update(_read_config_file(project_config, "project config"))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(
                f"Config file not found: {config_file}", details={"path": str(config_file)}
            )
        merged.update(_read_config_file(config_file, "config file"))

    merged.update(_load_env_vars())

    # Boolean CLI flags collapse into the verbosity string
    if "verbose" in overrides:
        if overrides["verbose"]:
            overrides["verbosity"] = "verbose"
        del overrides["verbose"]
    if "quiet" in overrides:
        if overrides["quiet"]:
            overrides["verbosity"] = "quiet"
        del overrides["quiet"]

    merged.update({k: v for k, v in overrides.items() if v is not None})

    unknown = sorted(set(merged) - set(EngineConfig.__dataclass_fields__))
    if unknown:
        raise InvalidConfigError(unknown[0], merged[unknown[0]], "unknown configuration key")

    try:
        return EngineConfig(**merged)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def _read_config_file(path: Path, label: str) -> dict[str, Any]:
    """Read one TOML source, accepting either top-level keys or an [engine] table."""
    try:
        data = _load_toml_file(path)
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Invalid {label} '{path}': {e}", details={"path": str(path)})

    engine_table = data.pop("engine", None)
    if isinstance(engine_table, dict):
        data.update(engine_table)
    return data


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from CODE_TIMELINE_* environment variables.

    Every EngineConfig field maps to ``CODE_TIMELINE_<FIELD>``, for example
    ``CODE_TIMELINE_VERSION_RETENTION=50`` or ``CODE_TIMELINE_VERBOSITY=quiet``.

    Returns:
        Dict of field_name -> parsed_value for any variables found.
    """
    type_hints = get_type_hints(EngineConfig)

    result: dict[str, Any] = {}

    for field_name in EngineConfig.__dataclass_fields__:
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)

        if env_value is None:
            continue

        type_hint = type_hints.get(field_name)
        if type_hint is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hint)
        except ValueError as e:
            raise InvalidConfigError(env_key, env_value, str(e))
        if parsed is not None:
            result[field_name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's type.

    Raises:
        ValueError: If value can't be parsed to expected type
    """
    origin = getattr(type_hint, "__origin__", None)

    args = getattr(type_hint, "__args__", ())
    if type(None) in args:
        non_none_types = [t for t in args if t is not type(None)]
        if non_none_types:
            type_hint = non_none_types[0]

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        elif lower in ("false", "0", "no", "off"):
            return False
        else:
            raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is float:
        return float(value)

    if type_hint is str or origin is Literal:
        return value

    return None


def _load_toml_file(path: Path) -> dict:
    """Load TOML file and return parsed dict.

    Raises:
        ConfigurationError: If no TOML parser is available
        Exception: If TOML parsing fails
    """
    try:
        import tomllib
    except ModuleNotFoundError:
        try:
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigurationError(
                "TOML support requires Python 3.11+ or the 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        return tomllib.load(f)
