"""Exception hierarchy for Code Timeline."""

from .base import CodeTimelineError
from .config import ConfigurationError, InvalidConfigError
from .persistence import PersistenceError, SchemaMigrationError
from .session import SessionAlreadyActiveError, SessionError

__all__ = [
    "CodeTimelineError",
    "ConfigurationError",
    "InvalidConfigError",
    "SessionError",
    "SessionAlreadyActiveError",
    "PersistenceError",
    "SchemaMigrationError",
]
