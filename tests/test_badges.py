from datetime import datetime

import pytest

from learnpath.badges import (
    condition_from_dict, condition_to_dict, evaluate, is_satisfied, merge_unlocked, visible_badges,
)
from learnpath.errors import ValidationError
from learnpath.models import (
    AggregateStats, AverageScore, Badge, Custom, ExercisesCompleted, LevelReached,
    PomodoroSessions, StreakDays, SubjectCompletion, TotalHours,
)

NOW = datetime(2026, 3, 2, 10, 0)


def _stats(**kwargs):
    return AggregateStats(**kwargs)


@pytest.mark.parametrize("condition,stats,expected", [
    (ExercisesCompleted(3), _stats(exercises_completed=3), True),
    (ExercisesCompleted(3), _stats(exercises_completed=2), False),
    (StreakDays(7), _stats(current_streak=7), True),
    (LevelReached(5), _stats(level=4), False),
    (AverageScore(90), _stats(average_score=90.0), True),
    (SubjectCompletion("java", 100), _stats(subject_completion={"java": 100.0}), True),
    (SubjectCompletion("java", 100), _stats(), False),
    (TotalHours(20), _stats(total_hours=19.99), False),
    (PomodoroSessions(10), _stats(pomodoro_sessions=12), True),
])
def test_is_satisfied(condition, stats, expected):
    assert is_satisfied(condition, stats) is expected


def test_custom_condition_needs_a_predicate():
    condition = Custom("study_after_midnight")
    assert not is_satisfied(condition, _stats())
    assert is_satisfied(condition, _stats(), lambda cid, stats: cid == "study_after_midnight")
    assert not is_satisfied(condition, _stats(), lambda cid, stats: cid == "something_else")


def test_evaluate_unlocks_once():
    badges = [
        Badge("first-step", "First Step", ExercisesCompleted(1), xp_reward=50),
        Badge("decathlon", "Decathlon", ExercisesCompleted(10), xp_reward=100),
    ]
    stats = _stats(exercises_completed=1)
    unlocked = evaluate(badges, stats, NOW)
    assert [b.id for b in unlocked] == ["first-step"]
    assert unlocked[0].unlocked_at == NOW
    assert not badges[0].unlocked

    merged = merge_unlocked(badges, unlocked)
    assert merged[0].unlocked and not merged[1].unlocked
    assert evaluate(merged, stats, NOW) == []


def test_visible_badges_hide_locked_secrets():
    badges = [
        Badge("b", "B", ExercisesCompleted(1), order=2),
        Badge("secret", "Secret", Custom("x"), hidden=True, order=1),
        Badge("found", "Found", Custom("y"), hidden=True, order=3, unlocked=True),
    ]
    assert [b.id for b in visible_badges(badges)] == ["b", "found"]


def test_condition_dict_conversion():
    assert condition_to_dict(StreakDays(7)) == {"type": "streak", "days": 7}
    assert condition_to_dict(SubjectCompletion("java", 100.0)) == {
        "type": "subject", "subject": "java", "completion": 100.0,
    }
    assert condition_from_dict({"type": "pomodoro", "count": 10}) == PomodoroSessions(10)
    assert condition_from_dict({"type": "custom", "id": "night"}).kind == "custom"


def test_condition_from_dict_rejects_unknown_type():
    with pytest.raises(ValidationError):
        condition_from_dict({"type": "karma", "count": 1})


def test_condition_from_dict_rejects_missing_field():
    with pytest.raises(ValidationError):
        condition_from_dict({"type": "streak"})
