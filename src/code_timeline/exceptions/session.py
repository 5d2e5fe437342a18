"""Coding-session lifecycle exceptions."""

from .base import CodeTimelineError


class SessionError(CodeTimelineError):
    """Base class for session lifecycle errors."""

    pass


class SessionAlreadyActiveError(SessionError):
    """Raised when a session is started while another one is still active."""

    def __init__(self, session_id: str, language: str):
        super().__init__(
            "A coding session is already active",
            details={"session_id": session_id, "language": language},
        )
        self.session_id = session_id
        self.language = language
