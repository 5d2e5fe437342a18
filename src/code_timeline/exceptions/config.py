"""Configuration exceptions: config files, environment variables, overrides."""

from pathlib import Path
from typing import Any, Optional

from .base import CodeTimelineError


class ConfigurationError(CodeTimelineError):
    """Base class for configuration-related errors."""

    pass


class InvalidConfigError(ConfigurationError):
    """Raised when a configuration source holds an unusable value."""

    def __init__(self, key: str, value: Any, reason: str, source: Optional[Path] = None):
        details = {"key": key, "value": str(value), "reason": reason}
        if source is not None:
            details["source"] = str(source)

        super().__init__(f"Invalid configuration for {key}: {value}", details=details)
        self.key = key
        self.value = value
        self.reason = reason
        self.source = source
