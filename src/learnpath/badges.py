"""Badge unlock evaluation.

The evaluator only decides which badges qualify. Routing a badge's XP
reward into the ledger is the caller's job, which keeps ``evaluate`` free
to run any number of times against the same statistics.
"""
from dataclasses import replace
from datetime import datetime
from typing import Callable, Optional

from learnpath.errors import ValidationError
from learnpath.models import (
    AggregateStats, AverageScore, Badge, Custom, ExercisesCompleted, LevelReached,
    PomodoroSessions, StreakDays, SubjectCompletion, TotalHours, UnlockCondition,
)

CustomPredicate = Callable[[str, AggregateStats], bool]

CONDITION_TYPES = {
    "exercises": (ExercisesCompleted, "count"),
    "streak": (StreakDays, "days"),
    "level": (LevelReached, "level"),
    "score": (AverageScore, "average"),
    "time": (TotalHours, "hours"),
    "pomodoro": (PomodoroSessions, "count"),
    "custom": (Custom, "id"),
}


def is_satisfied(
    condition: UnlockCondition,
    stats: AggregateStats,
    custom: Optional[CustomPredicate] = None,
) -> bool:
    match condition:
        case ExercisesCompleted(count=count):
            return stats.exercises_completed >= count
        case StreakDays(days=days):
            return stats.current_streak >= days
        case LevelReached(level=level):
            return stats.level >= level
        case AverageScore(average=average):
            return stats.average_score >= average
        case SubjectCompletion(subject=subject, completion=completion):
            return stats.subject_completion.get(subject, 0.0) >= completion
        case TotalHours(hours=hours):
            return stats.total_hours >= hours
        case PomodoroSessions(count=count):
            return stats.pomodoro_sessions >= count
        case Custom(id=condition_id):
            # No predicate, or one that does not know the id: stays locked
            return bool(custom and custom(condition_id, stats))
    return False


def evaluate(
    badges: list[Badge],
    stats: AggregateStats,
    now: datetime,
    custom: Optional[CustomPredicate] = None,
) -> list[Badge]:
    """Return unlocked copies of every locked badge whose condition now holds."""
    return [
        replace(badge, unlocked=True, unlocked_at=now)
        for badge in badges
        if not badge.unlocked and is_satisfied(badge.condition, stats, custom)
    ]


def merge_unlocked(badges: list[Badge], unlocked: list[Badge]) -> list[Badge]:
    by_id = {badge.id: badge for badge in unlocked}
    return [by_id.get(badge.id, badge) if not badge.unlocked else badge for badge in badges]


def visible_badges(badges: list[Badge]) -> list[Badge]:
    """Badges a learner may see: hidden ones only once earned."""
    return sorted((b for b in badges if b.unlocked or not b.hidden), key=lambda b: b.order)


def condition_to_dict(condition: UnlockCondition) -> dict:
    if isinstance(condition, SubjectCompletion):
        return {"type": "subject", "subject": condition.subject, "completion": condition.completion}
    cls, attr = CONDITION_TYPES[condition.kind]
    return {"type": condition.kind, attr: getattr(condition, attr)}


def condition_from_dict(data: dict) -> UnlockCondition:
    kind = data.get("type")
    if kind != "subject" and kind not in CONDITION_TYPES:
        raise ValidationError(f"Unknown unlock condition type {kind!r}")
    try:
        if kind == "subject":
            return SubjectCompletion(subject=data["subject"], completion=float(data["completion"]))
        cls, attr = CONDITION_TYPES[kind]
        return cls(data[attr])
    except KeyError as exc:
        raise ValidationError(f"Malformed unlock condition {data!r}: missing {exc}") from exc
