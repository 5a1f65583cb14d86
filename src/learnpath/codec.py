"""Conversion between snapshots and JSON-compatible dicts.

Timestamps are stored as ISO strings, the same way the SQLite tables keep
them.
"""
from datetime import date, datetime

from learnpath.badges import condition_from_dict, condition_to_dict
from learnpath.models import (
    ActivityCounters, Badge, ContentUnit, LearningItem, Objective, ProgressLedger,
    ProgressSnapshot, Quest, ReviewState, XPTransaction,
)


def _ts(value: datetime | date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _d(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


def review_to_dict(state: ReviewState) -> dict:
    return {
        "repetitions": state.repetitions,
        "ease_factor": state.ease_factor,
        "interval_days": state.interval_days,
        "last_reviewed_at": _ts(state.last_reviewed_at),
        "next_review_at": _ts(state.next_review_at),
        "last_quality": state.last_quality,
    }


def review_from_dict(data: dict) -> ReviewState:
    return ReviewState(
        repetitions=data.get("repetitions", 0),
        ease_factor=data.get("ease_factor", 2.5),
        interval_days=data.get("interval_days", 1),
        last_reviewed_at=_dt(data.get("last_reviewed_at")),
        next_review_at=_dt(data.get("next_review_at")),
        last_quality=data.get("last_quality"),
    )


def item_to_dict(item: LearningItem) -> dict:
    return {
        "id": item.id,
        "title": item.title,
        "subject": item.subject,
        "difficulty": item.difficulty,
        "completed": item.completed,
        "score": item.score,
        "attempts": item.attempts,
        "completed_at": _ts(item.completed_at),
        "review": review_to_dict(item.review),
    }


def item_from_dict(data: dict) -> LearningItem:
    return LearningItem(
        id=data["id"],
        title=data.get("title", ""),
        subject=data.get("subject", ""),
        difficulty=data.get("difficulty", "medium"),
        completed=data.get("completed", False),
        score=data.get("score"),
        attempts=data.get("attempts", 0),
        completed_at=_dt(data.get("completed_at")),
        review=review_from_dict(data.get("review", {})),
    )


def ledger_to_dict(ledger: ProgressLedger) -> dict:
    return {
        "total_xp": ledger.total_xp,
        "level": ledger.level,
        "current_streak": ledger.current_streak,
        "best_streak": ledger.best_streak,
        "last_activity_date": _ts(ledger.last_activity_date),
    }


def ledger_from_dict(data: dict) -> ProgressLedger:
    return ProgressLedger(
        total_xp=data.get("total_xp", 0),
        level=data.get("level", 1),
        current_streak=data.get("current_streak", 0),
        best_streak=data.get("best_streak", 0),
        last_activity_date=_d(data.get("last_activity_date")),
    )


def badge_to_dict(badge: Badge) -> dict:
    return {
        "id": badge.id,
        "name": badge.name,
        "description": badge.description,
        "condition": condition_to_dict(badge.condition),
        "xp_reward": badge.xp_reward,
        "tier": badge.tier,
        "hidden": badge.hidden,
        "order": badge.order,
        "unlocked": badge.unlocked,
        "unlocked_at": _ts(badge.unlocked_at),
    }


def badge_from_dict(data: dict) -> Badge:
    return Badge(
        id=data["id"],
        name=data.get("name", data["id"]),
        description=data.get("description", ""),
        condition=condition_from_dict(data["condition"]),
        xp_reward=data.get("xp_reward", 0),
        tier=data.get("tier", "bronze"),
        hidden=data.get("hidden", False),
        order=data.get("order", 0),
        unlocked=data.get("unlocked", False),
        unlocked_at=_dt(data.get("unlocked_at")),
    )


def quest_to_dict(quest: Quest) -> dict:
    return {
        "id": quest.id,
        "title": quest.title,
        "kind": quest.kind,
        "description": quest.description,
        "objective": {
            "type": quest.objective.type,
            "target": quest.objective.target,
            "current": quest.objective.current,
            "subject": quest.objective.subject,
        },
        "status": quest.status,
        "reward_xp": quest.reward_xp,
        "deadline": _ts(quest.deadline),
        "started_at": _ts(quest.started_at),
        "completed_at": _ts(quest.completed_at),
        "claimed_at": _ts(quest.claimed_at),
        "prerequisites": list(quest.prerequisites),
        "minimum_level": quest.minimum_level,
        "next_quest": quest.next_quest,
    }


def quest_from_dict(data: dict) -> Quest:
    objective = data["objective"]
    return Quest(
        id=data["id"],
        title=data.get("title", data["id"]),
        kind=data["kind"],
        description=data.get("description", ""),
        objective=Objective(
            type=objective["type"],
            target=objective["target"],
            current=objective.get("current", 0),
            subject=objective.get("subject"),
        ),
        status=data.get("status", "available"),
        reward_xp=data.get("reward_xp", 0),
        deadline=_dt(data.get("deadline")),
        started_at=_dt(data.get("started_at")),
        completed_at=_dt(data.get("completed_at")),
        claimed_at=_dt(data.get("claimed_at")),
        prerequisites=list(data.get("prerequisites", [])),
        minimum_level=data.get("minimum_level"),
        next_quest=data.get("next_quest"),
    )


def unit_to_dict(unit: ContentUnit) -> dict:
    return {
        "sequence_number": unit.sequence_number,
        "title": unit.title,
        "completion_ratio": unit.completion_ratio,
        "completed": unit.completed,
    }


def unit_from_dict(data: dict) -> ContentUnit:
    return ContentUnit(
        sequence_number=data["sequence_number"],
        title=data.get("title", ""),
        completion_ratio=data.get("completion_ratio", 0.0),
        completed=data.get("completed", False),
    )


def transaction_to_dict(tx: XPTransaction) -> dict:
    return {
        "amount": tx.amount,
        "reason": tx.reason,
        "source": tx.source,
        "earned_at": _ts(tx.earned_at),
        "level_before": tx.level_before,
        "level_after": tx.level_after,
    }


def transaction_from_dict(data: dict) -> XPTransaction:
    return XPTransaction(
        amount=data["amount"],
        reason=data.get("reason", ""),
        source=data.get("source", "bonus"),
        earned_at=_dt(data["earned_at"]),
        level_before=data.get("level_before", 1),
        level_after=data.get("level_after", 1),
    )


def snapshot_to_dict(snapshot: ProgressSnapshot) -> dict:
    counters = snapshot.counters
    return {
        "ledger": ledger_to_dict(snapshot.ledger),
        "items": [item_to_dict(item) for item in snapshot.items.values()],
        "badges": [badge_to_dict(b) for b in snapshot.badges],
        "quests": [quest_to_dict(q) for q in snapshot.quests],
        "units": [unit_to_dict(u) for u in snapshot.units],
        "counters": {
            "pomodoro_sessions": counters.pomodoro_sessions,
            "study_minutes": counters.study_minutes,
            "evaluations_completed": counters.evaluations_completed,
            "revisions_completed": counters.revisions_completed,
        },
        "xp_history": [transaction_to_dict(tx) for tx in snapshot.xp_history],
        "last_rollover": _ts(snapshot.last_rollover),
    }


def snapshot_from_dict(data: dict) -> ProgressSnapshot:
    items = [item_from_dict(d) for d in data.get("items", [])]
    return ProgressSnapshot(
        ledger=ledger_from_dict(data.get("ledger", {})),
        items={item.id: item for item in items},
        badges=[badge_from_dict(d) for d in data.get("badges", [])],
        quests=[quest_from_dict(d) for d in data.get("quests", [])],
        units=[unit_from_dict(d) for d in data.get("units", [])],
        counters=ActivityCounters(**data.get("counters", {})),
        xp_history=[transaction_from_dict(d) for d in data.get("xp_history", [])],
        last_rollover=_d(data.get("last_rollover")),
    )
