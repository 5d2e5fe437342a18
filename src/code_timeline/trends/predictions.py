"""Issue forecasts derived from bug-pattern statistics.

Both functions build their result from scratch on every call; callers
replace, never extend, whatever list they held before.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from ..patterns.models import BugPattern, BugSeverity
from .models import FutureIssue, IssueTimeline, IssueType, PredictedIssue

PROBABILITY_CAP = 0.8

# Occurrence counts a pattern must exceed before it is forecast.
PREDICTION_THRESHOLD = 1
FUTURE_THRESHOLD = 2

COMPLEXITY_OVERLOAD_PROBABILITY = 0.6


def recurrence_timeline(last_seen: datetime, now: datetime) -> IssueTimeline:
    """Recently seen bugs are expected back sooner."""
    days_since = (now - last_seen).days
    if days_since < 7:
        return IssueTimeline.days(3)
    if days_since < 30:
        return IssueTimeline.weeks(2)
    return IssueTimeline.months(1)


def predict_issues(patterns: Iterable[BugPattern], now: datetime) -> list[PredictedIssue]:
    return [
        PredictedIssue(
            type=IssueType.BUG_RECURRENCE,
            description=f"Potential recurrence of: {pattern.description}",
            probability=min(PROBABILITY_CAP, pattern.occurrence_count / 5.0),
            timeline=recurrence_timeline(pattern.last_seen, now),
            severity=pattern.severity,
            suggested_action=f"Review and strengthen: {pattern.fix}",
        )
        for pattern in patterns
        if pattern.occurrence_count > PREDICTION_THRESHOLD
    ]


def forecast_future_issues(
    patterns: Iterable[BugPattern], complexity_increasing: bool
) -> list[FutureIssue]:
    issues = [
        FutureIssue(
            type=IssueType.BUG_RECURRENCE,
            description=f"Similar to: {pattern.description}",
            probability=min(PROBABILITY_CAP, pattern.occurrence_count / 10.0),
            timeline=IssueTimeline.weeks(2),
            severity=pattern.severity,
            prevention_strategy=pattern.fix,
        )
        for pattern in patterns
        if pattern.occurrence_count > FUTURE_THRESHOLD
    ]
    if complexity_increasing:
        issues.append(
            FutureIssue(
                type=IssueType.COMPLEXITY_OVERLOAD,
                description="Code complexity is rising across recent versions",
                probability=COMPLEXITY_OVERLOAD_PROBABILITY,
                timeline=IssueTimeline.months(1),
                severity=BugSeverity.MEDIUM,
                prevention_strategy="Schedule refactoring to break up complex units",
            )
        )
    return issues
