"""Shared test fixtures for Code Timeline tests."""

from datetime import datetime, timedelta, timezone

import pytest

from code_timeline.analysis.languages import Language
from code_timeline.evolution.models import CodeSnapshot, ConversationContext, WorkspaceType


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


START = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Deterministic clock: returns ``now`` and moves only when told to."""

    def __init__(self, start: datetime = START):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def context():
    """A code-workspace conversation."""
    return ConversationContext("thread-1", WorkspaceType.CODE)


def swift_source(lines: int, functions: int) -> str:
    """Swift text with exactly ``lines`` lines and ``functions`` func declarations."""
    body = [f"func step{i}() {{" for i in range(functions)]
    body += [f"    let value{i} = {i}" for i in range(lines - functions)]
    return "\n".join(body)


def make_snapshot(
    code: str,
    language: Language = Language.SWIFT,
    at: datetime = START,
    workspace_type: WorkspaceType = WorkspaceType.CODE,
    conversation_id: str = "thread-1",
) -> CodeSnapshot:
    return CodeSnapshot(
        code=code,
        language=language,
        timestamp=at,
        conversation_id=conversation_id,
        workspace_type=workspace_type,
    )


@pytest.fixture(name="swift_source")
def swift_source_fixture():
    return swift_source


@pytest.fixture(name="make_snapshot")
def make_snapshot_fixture():
    return make_snapshot
