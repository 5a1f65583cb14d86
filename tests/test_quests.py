from datetime import date, datetime, time

import pytest

from learnpath.errors import InvalidAmountError, InvalidTransitionError, NotCompletedError
from learnpath.models import AggregateStats, Objective, Quest
from learnpath.quests import (
    abandon, advance, claim_reward, period_deadline, quest_progress, quest_summary,
    roll_over, start, sync_with_stats, unlock_ready,
)

MONDAY = datetime(2026, 3, 2, 10, 0)


def _quest(quest_id="q", kind="daily", type="exercises", target=3, **kwargs):
    return Quest(quest_id, quest_id.title(), kind, Objective(type, target), **kwargs)


def test_advance_moves_to_in_progress():
    quest = advance(_quest(), "exercises", 1, MONDAY)
    assert quest.status == "in-progress"
    assert quest.objective.current == 1
    assert quest.started_at == MONDAY


def test_advance_clamps_and_completes():
    quest = advance(_quest(), "exercises", 5, MONDAY)
    assert quest.objective.current == 3
    assert quest.status == "completed"
    assert quest.completed_at == MONDAY


def test_advance_ignores_other_event_types():
    quest = _quest()
    assert advance(quest, "pomodoros", 2, MONDAY) == quest


@pytest.mark.parametrize("status", ["locked", "completed"])
def test_advance_ignores_inactive_quests(status):
    quest = _quest(status=status)
    assert advance(quest, "exercises", 1, MONDAY) == quest


@pytest.mark.parametrize("amount", [0, -2, 1.5])
def test_advance_rejects_bad_amount(amount):
    with pytest.raises(InvalidAmountError):
        advance(_quest(), "exercises", amount, MONDAY)


def test_advance_ignores_statistic_objectives():
    quest = _quest(kind="weekly", type="streak", target=7)
    assert advance(quest, "streak", 7, MONDAY) == quest


def test_start_and_abandon():
    started = start(_quest(), MONDAY)
    assert started.status == "in-progress"
    with pytest.raises(InvalidTransitionError):
        start(started, MONDAY)
    back = abandon(started, MONDAY)
    assert back.status == "available"
    with pytest.raises(InvalidTransitionError):
        abandon(back, MONDAY)


def test_start_locked_quest_fails():
    with pytest.raises(InvalidTransitionError):
        start(_quest(status="locked"), MONDAY)


def test_claim_reward_once():
    done = advance(_quest(reward_xp=50), "exercises", 3, MONDAY)
    claimed, xp = claim_reward(done, MONDAY)
    assert xp == 50
    assert claimed.claimed_at == MONDAY
    again, xp = claim_reward(claimed, MONDAY)
    assert xp == 0
    assert again == claimed


def test_claim_before_completion_fails():
    with pytest.raises(NotCompletedError):
        claim_reward(advance(_quest(), "exercises", 1, MONDAY), MONDAY)


def test_sync_with_stats_tracks_streak():
    quest = _quest(kind="weekly", type="streak", target=7)
    synced = sync_with_stats([quest], AggregateStats(current_streak=4), MONDAY)
    assert synced[0].objective.current == 4
    synced = sync_with_stats(synced, AggregateStats(current_streak=8), MONDAY)
    assert synced[0].status == "completed"
    assert synced[0].objective.current == 7


def test_sync_leaves_event_quests_alone():
    quest = _quest()
    assert sync_with_stats([quest], AggregateStats(exercises_completed=9), MONDAY) == [quest]


def test_unlock_ready_follows_prerequisites_and_level():
    first = _quest("first", kind="main", status="completed")
    second = _quest("second", kind="main", status="locked", prerequisites=["first"])
    gated = _quest("gated", kind="side", status="locked", minimum_level=2)
    unlocked = unlock_ready([first, second, gated], level=1)
    assert [q.status for q in unlocked] == ["completed", "available", "locked"]
    assert unlock_ready(unlocked, level=2)[2].status == "available"


def test_unlock_ready_opens_the_next_quest_in_a_chain():
    first = _quest("first", kind="main", status="completed", next_quest="second")
    second = _quest("second", kind="main", status="locked")
    third = _quest("third", kind="main", status="locked")
    unlocked = unlock_ready([first, second, third], level=1)
    assert [q.status for q in unlocked] == ["completed", "available", "locked"]


def test_period_deadline():
    assert period_deadline("daily", MONDAY) == datetime.combine(date(2026, 3, 2), time.max)
    assert period_deadline("weekly", MONDAY) == datetime.combine(date(2026, 3, 8), time.max)
    assert period_deadline("main", MONDAY) is None


def test_roll_over_renews_daily_quests_on_a_new_day():
    daily = advance(_quest(), "exercises", 3, MONDAY)
    weekly = advance(_quest("w", kind="weekly", type="evaluation"), "evaluation", 1, MONDAY)
    tuesday = datetime(2026, 3, 3, 9, 0)
    renewed = roll_over([daily, weekly], date(2026, 3, 2), tuesday)
    assert renewed[0].status == "available"
    assert renewed[0].objective.current == 0
    assert renewed[0].deadline == datetime.combine(date(2026, 3, 3), time.max)
    assert renewed[1] == weekly


def test_roll_over_renews_weekly_quests_on_a_new_week():
    weekly = advance(_quest("w", kind="weekly", type="evaluation"), "evaluation", 1, MONDAY)
    renewed = roll_over([weekly], date(2026, 3, 8), datetime(2026, 3, 9, 8, 0))
    assert renewed[0].objective.current == 0


def test_roll_over_same_day_is_a_no_op():
    daily = advance(_quest(), "exercises", 1, MONDAY)
    assert roll_over([daily], date(2026, 3, 2), MONDAY) == [daily]


def test_progress_and_summary():
    quests = [
        advance(_quest("a"), "exercises", 1, MONDAY),
        advance(_quest("b", kind="weekly"), "exercises", 3, MONDAY),
        _quest("c", kind="main", status="locked"),
    ]
    assert quest_progress(quests[0]) == 33.3
    summary = quest_summary(quests)
    assert summary["total"] == 3
    assert summary["in-progress"] == 1
    assert summary["completed"] == 1
    assert summary["locked"] == 1
    assert summary["by_kind"]["weekly"] == {"completed": 1, "total": 1}
