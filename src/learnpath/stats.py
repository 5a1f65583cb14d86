"""Aggregate learner statistics read by badges and quests."""
from learnpath.models import AggregateStats, ProgressSnapshot


def subject_completion(items) -> dict[str, float]:
    totals: dict[str, int] = {}
    done: dict[str, int] = {}
    for item in items:
        totals[item.subject] = totals.get(item.subject, 0) + 1
        if item.completed:
            done[item.subject] = done.get(item.subject, 0) + 1
    return {
        subject: round(done.get(subject, 0) / total * 100, 1)
        for subject, total in totals.items()
    }


def average_score(items) -> float:
    scores = [item.score for item in items if item.completed and item.score is not None]
    if not scores:
        return 0.0
    return round(sum(scores) / len(scores), 1)


def aggregate_stats(snapshot: ProgressSnapshot) -> AggregateStats:
    items = list(snapshot.items.values())
    counters = snapshot.counters
    return AggregateStats(
        exercises_completed=sum(1 for item in items if item.completed),
        current_streak=snapshot.ledger.current_streak,
        level=snapshot.ledger.level,
        total_xp=snapshot.ledger.total_xp,
        average_score=average_score(items),
        subject_completion=subject_completion(items),
        total_hours=round(counters.study_minutes / 60, 2),
        pomodoro_sessions=counters.pomodoro_sessions,
        evaluations_completed=counters.evaluations_completed,
        revisions_completed=counters.revisions_completed,
    )
