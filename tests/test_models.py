"""Tests for data model classes."""
import pytest

from learnpath.models import (
    Badge, Custom, ExercisesCompleted, LearningItem, Objective, ProgressLedger, Quest, ReviewState,
)


def test_review_state_defaults():
    state = ReviewState()
    assert state.repetitions == 0
    assert state.ease_factor == 2.5
    assert state.interval_days == 1
    assert state.next_review_at is None


def test_learning_item_defaults():
    item = LearningItem(id="algo-max", title="Max of three", subject="algorithms")
    assert item.difficulty == "medium"
    assert not item.completed
    assert item.review == ReviewState()


def test_items_do_not_share_review_state():
    a = LearningItem("a", "A", "java")
    b = LearningItem("b", "B", "java")
    assert a.review is not b.review


def test_ledger_defaults():
    ledger = ProgressLedger()
    assert ledger.total_xp == 0
    assert ledger.level == 1
    assert ledger.last_activity_date is None


def test_condition_kind_is_fixed():
    condition = ExercisesCompleted(5)
    assert condition.kind == "exercises"
    with pytest.raises(TypeError):
        ExercisesCompleted(5, kind="streak")


def test_conditions_are_frozen():
    with pytest.raises(AttributeError):
        Custom("x").id = "y"


def test_badge_and_quest_defaults():
    badge = Badge("first-step", "First Step", ExercisesCompleted(1))
    assert not badge.unlocked and badge.tier == "bronze"
    quest = Quest("q", "Q", "daily", Objective("exercises", 3))
    assert quest.status == "available"
    assert quest.prerequisites == []
    assert quest.claimed_at is None
