"""
Code Timeline - temporal intelligence for code written in conversations

Tracks successive code snapshots, classifies how each one evolved from the
last, keeps a semantic version history, learns recurring development, bug
and style patterns, and forecasts issues from the accumulated history.
"""

__version__ = "0.1.0"

from .analysis.languages import Language
from .config import EngineConfig, load_config
from .engine import CodeTimelineEngine
from .evolution.models import (
    CodeEvolution,
    CodeSnapshot,
    ConversationContext,
    EvolutionType,
    WorkspaceType,
)
from .results import EvolutionResult, PatternAnalysis, Prediction, TimeFrame
from .session import SessionSummary
from .timeline import EvolutionTimeline
from .versioning.models import SemanticVersion, VersionType

__all__ = [
    "CodeTimelineEngine",  # Main entry point
    "EvolutionTimeline",  # Version history and forecasts for one project
    "EngineConfig",
    "load_config",
    "Language",
    "WorkspaceType",
    "ConversationContext",
    "CodeSnapshot",
    "CodeEvolution",
    "EvolutionType",
    "EvolutionResult",
    "PatternAnalysis",
    "Prediction",
    "TimeFrame",
    "SessionSummary",
    "SemanticVersion",
    "VersionType",
]
