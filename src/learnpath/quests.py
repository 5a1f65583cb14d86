"""Quest state machine.

    locked -> available -> in-progress -> completed

Unlocking is driven from outside (prerequisites, level, period renewal);
everything after that happens here. A completed quest is terminal; daily
and weekly quests are replaced by a fresh instance each period.
"""
from dataclasses import replace
from datetime import date, datetime, time, timedelta

from learnpath.errors import InvalidAmountError, InvalidTransitionError, NotCompletedError
from learnpath.models import AggregateStats, Quest

ACTIVE_STATUSES = ("available", "in-progress")

# Objectives that mirror a statistic instead of counting events
STAT_OBJECTIVES = ("streak", "score", "subject", "time")


def _with_progress(quest: Quest, current: int, now: datetime) -> Quest:
    target = quest.objective.target
    current = max(0, min(target, current))
    objective = replace(quest.objective, current=current)
    if current >= target:
        return replace(
            quest,
            objective=objective,
            status="completed",
            started_at=quest.started_at or now,
            completed_at=now,
        )
    if current > 0 and quest.status == "available":
        return replace(quest, objective=objective, status="in-progress", started_at=now)
    return replace(quest, objective=objective)


def start(quest: Quest, now: datetime) -> Quest:
    if quest.status != "available":
        raise InvalidTransitionError(quest.id, quest.status, "start")
    return replace(quest, status="in-progress", started_at=now)


def advance(quest: Quest, event_type: str, amount: int, now: datetime) -> Quest:
    """Count ``amount`` occurrences of ``event_type`` toward the objective.

    Statistic-backed objectives ignore events; they only move through
    ``observe``.
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmountError(amount, minimum=1)
    if quest.objective.type in STAT_OBJECTIVES or event_type != quest.objective.type:
        return quest
    if quest.status not in ACTIVE_STATUSES:
        return quest
    return _with_progress(quest, quest.objective.current + amount, now)


def observe(quest: Quest, value: float, now: datetime) -> Quest:
    """Set a statistic-backed objective to the latest observed value."""
    if quest.status not in ACTIVE_STATUSES:
        return quest
    current = int(value)
    if current == quest.objective.current:
        return quest
    return _with_progress(quest, current, now)


def stat_value(quest: Quest, stats: AggregateStats) -> float | None:
    objective = quest.objective
    if objective.type == "streak":
        return stats.current_streak
    if objective.type == "score":
        return stats.average_score
    if objective.type == "subject":
        return stats.subject_completion.get(objective.subject or "", 0.0)
    if objective.type == "time":
        return stats.total_hours
    return None


def sync_with_stats(quests: list[Quest], stats: AggregateStats, now: datetime) -> list[Quest]:
    synced = []
    for quest in quests:
        value = stat_value(quest, stats)
        synced.append(quest if value is None else observe(quest, value, now))
    return synced


def claim_reward(quest: Quest, now: datetime) -> tuple[Quest, int]:
    """Return the quest marked as claimed and the XP to grant (0 if already claimed)."""
    if quest.status != "completed":
        raise NotCompletedError(quest.id, quest.status)
    if quest.claimed_at is not None:
        return quest, 0
    return replace(quest, claimed_at=now), quest.reward_xp


def abandon(quest: Quest, now: datetime) -> Quest:
    """Put an in-progress quest back on the board, keeping its progress."""
    if quest.status != "in-progress":
        raise InvalidTransitionError(quest.id, quest.status, "abandon")
    return replace(quest, status="available", started_at=None)


def can_unlock(quest: Quest, completed_ids: set[str], level: int, chained: bool = False) -> bool:
    if quest.minimum_level is not None and level < quest.minimum_level:
        return False
    return chained or all(prereq in completed_ids for prereq in quest.prerequisites)


def unlock(quest: Quest) -> Quest:
    if quest.status != "locked":
        return quest
    return replace(quest, status="available")


def unlock_ready(quests: list[Quest], level: int) -> list[Quest]:
    """Open locked quests whose prerequisites are met or that a completed quest names as next."""
    completed = {q.id for q in quests if q.status == "completed"}
    chained = {q.next_quest for q in quests if q.status == "completed" and q.next_quest}
    return [
        unlock(q) if q.status == "locked" and can_unlock(q, completed, level, q.id in chained) else q
        for q in quests
    ]


def period_deadline(kind: str, now: datetime) -> datetime | None:
    """End of today for daily quests, end of Sunday for weekly ones."""
    end_of_day = datetime.combine(now.date(), time.max)
    if kind == "daily":
        return end_of_day
    if kind == "weekly":
        return end_of_day + timedelta(days=6 - now.weekday())
    return None


def renew(quest: Quest, now: datetime) -> Quest:
    """Issue the next period's instance of a daily or weekly quest."""
    return replace(
        quest,
        status="available",
        objective=replace(quest.objective, current=0),
        deadline=period_deadline(quest.kind, now),
        started_at=None,
        completed_at=None,
        claimed_at=None,
    )


def roll_over(quests: list[Quest], last: date | None, now: datetime) -> list[Quest]:
    """Renew daily quests on a new day and weekly quests on a new ISO week.

    ``last`` is the day of the previous roll-over; with none, periodic
    quests only get their deadlines.
    """
    if last is None:
        return [
            replace(q, deadline=period_deadline(q.kind, now)) if q.kind in ("daily", "weekly") else q
            for q in quests
        ]
    if isinstance(last, datetime):
        last = last.date()
    new_day = now.date() != last
    new_week = now.isocalendar()[:2] != last.isocalendar()[:2]
    renewed = []
    for quest in quests:
        if (quest.kind == "daily" and new_day) or (quest.kind == "weekly" and new_week):
            renewed.append(renew(quest, now))
        else:
            renewed.append(quest)
    return renewed


def quest_progress(quest: Quest) -> float:
    target = quest.objective.target
    if target <= 0:
        return 0.0
    return min(100.0, round(quest.objective.current / target * 100, 1))


def quest_summary(quests: list[Quest]) -> dict:
    summary = {
        "total": len(quests),
        "locked": 0,
        "available": 0,
        "in-progress": 0,
        "completed": 0,
        "by_kind": {},
    }
    for quest in quests:
        summary[quest.status] += 1
        kind = summary["by_kind"].setdefault(quest.kind, {"completed": 0, "total": 0})
        kind["total"] += 1
        if quest.status == "completed":
            kind["completed"] += 1
    return summary
