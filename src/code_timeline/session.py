"""Coding-session tracking for Code Timeline.

A session is a bounded stretch of activity in one language. At most one
session is live at a time; while it is live a background heartbeat keeps
``last_activity`` fresh so idle detection has something to compare against.

Example:
    >>> tracker = SessionTracker(heartbeat_interval=60)
    >>> session = tracker.start(Language.PYTHON, WorkspaceType.CODE)
    >>> tracker.record(snapshot)
    >>> summary = tracker.end()
    >>> summary.snapshot_count
    1
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional

from .analysis.heuristics import complexity, line_count
from .analysis.languages import Language
from .clock import Clock, utcnow
from .evolution.models import CodeSnapshot, WorkspaceType
from .exceptions import SessionAlreadyActiveError

logger = logging.getLogger(__name__)

DEFAULT_HEARTBEAT_SECONDS = 60.0


class SessionState(Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    ENDED = "ended"


@dataclass
class CodingSession:
    language: Language
    workspace_type: WorkspaceType
    start_time: datetime
    last_activity: datetime
    snapshots: list[CodeSnapshot] = field(default_factory=list)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)


@dataclass(frozen=True)
class SessionSummary:
    session_id: str
    language: Language
    workspace_type: WorkspaceType
    duration: timedelta
    snapshot_count: int
    lines_written: int
    average_complexity: float


class Heartbeat:
    """Calls ``beat`` every ``interval`` seconds on a daemon thread until stopped."""

    def __init__(self, interval: float, beat: Callable[[], None]) -> None:
        self.interval = interval
        self._beat = beat
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        self._thread = threading.Thread(
            target=self._loop,
            name="code-timeline-heartbeat",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=5)
            if self._thread.is_alive():
                logger.warning("Heartbeat thread did not exit within 5 seconds")
            self._thread = None

    def _loop(self) -> None:
        while not self._stop_event.wait(self.interval):
            self._beat()


class SessionTracker:
    """Owns the single live :class:`CodingSession` and its heartbeat."""

    def __init__(
        self,
        heartbeat_interval: float = DEFAULT_HEARTBEAT_SECONDS,
        clock: Clock = utcnow,
    ) -> None:
        self.heartbeat_interval = heartbeat_interval
        self._clock = clock
        self._lock = threading.RLock()
        self._session: Optional[CodingSession] = None
        self._heartbeat: Optional[Heartbeat] = None
        self._state = SessionState.NOT_STARTED

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def current(self) -> Optional[CodingSession]:
        return self._session

    @property
    def heartbeat_running(self) -> bool:
        return self._heartbeat is not None and self._heartbeat.running

    def start(self, language: Language, workspace_type: WorkspaceType) -> CodingSession:
        """Begin a session.

        Raises:
            SessionAlreadyActiveError: If a session is already live. The live
                session and its heartbeat are left untouched.
        """
        with self._lock:
            if self._session is not None:
                raise SessionAlreadyActiveError(self._session.id, self._session.language.value)

            now = self._clock()
            self._session = CodingSession(
                language=language,
                workspace_type=workspace_type,
                start_time=now,
                last_activity=now,
            )
            self._heartbeat = Heartbeat(self.heartbeat_interval, self.heartbeat)
            self._heartbeat.start()
            self._state = SessionState.ACTIVE
            logger.info("Started %s session %s", language.value, self._session.id)
            return self._session

    def heartbeat(self) -> None:
        """Refresh ``last_activity`` of the live session, if any."""
        with self._lock:
            if self._session is not None:
                self._session.last_activity = self._clock()

    def record(self, snapshot: CodeSnapshot) -> bool:
        """Attach ``snapshot`` to the live session. Returns False when none is live."""
        with self._lock:
            if self._session is None:
                return False
            self._session.snapshots.append(snapshot)
            self._session.last_activity = snapshot.timestamp
            return True

    def end(self) -> Optional[SessionSummary]:
        """Close the live session and summarize it, or return None if there is none."""
        with self._lock:
            session = self._session
            if session is None:
                return None
            heartbeat = self._detach_heartbeat()
            self._session = None
            self._state = SessionState.ENDED

        # Joined outside the lock: a beat in flight needs the lock to finish.
        if heartbeat is not None:
            heartbeat.stop()

        snapshots = session.snapshots
        summary = SessionSummary(
            session_id=session.id,
            language=session.language,
            workspace_type=session.workspace_type,
            duration=self._clock() - session.start_time,
            snapshot_count=len(snapshots),
            lines_written=sum(line_count(s.code) for s in snapshots),
            average_complexity=(
                sum(complexity(s.code, s.language) for s in snapshots) / len(snapshots)
                if snapshots
                else 0.0
            ),
        )
        logger.info(
            "Ended session %s after %s (%d snapshots)",
            session.id,
            summary.duration,
            summary.snapshot_count,
        )
        return summary

    def close(self) -> None:
        """Stop the heartbeat and drop any live session without summarizing.

        The tracker ends up ENDED if a session was live. Safe to call repeatedly.
        """
        with self._lock:
            heartbeat = self._detach_heartbeat()
            if self._session is not None:
                logger.debug("Discarded session %s on close", self._session.id)
                self._session = None
                self._state = SessionState.ENDED
        if heartbeat is not None:
            heartbeat.stop()

    def _detach_heartbeat(self) -> Optional[Heartbeat]:
        heartbeat, self._heartbeat = self._heartbeat, None
        return heartbeat
