"""Review scheduling for learning items."""
from dataclasses import replace
from datetime import datetime, timedelta

from learnpath.errors import InvalidQualityError
from learnpath.logging import srs_logger
from learnpath.models import LearningItem, ReviewState
from learnpath.sm2 import sm2_update

log = srs_logger()


def validate_quality(quality) -> int:
    if isinstance(quality, bool) or not isinstance(quality, int) or not 0 <= quality <= 5:
        raise InvalidQualityError(quality)
    return quality


def record_review(state: ReviewState, quality: int, now: datetime) -> ReviewState:
    """Apply one graded review and return the new schedule."""
    validate_quality(quality)
    updated = sm2_update(
        quality=quality,
        repetitions=state.repetitions,
        ease_factor=state.ease_factor,
        interval=state.interval_days,
    )
    log.debug(
        "review_scheduled",
        quality=quality,
        repetitions=updated["repetitions"],
        interval=updated["interval"],
        ease_factor=round(updated["ease_factor"], 2),
    )
    return replace(
        state,
        repetitions=updated["repetitions"],
        ease_factor=updated["ease_factor"],
        interval_days=updated["interval"],
        last_reviewed_at=now,
        next_review_at=now + timedelta(days=updated["interval"]),
        last_quality=quality,
    )


def due_for_review(state: ReviewState, now: datetime) -> bool:
    """True when the item was never scheduled or its review day has come."""
    if state.next_review_at is None:
        return True
    return state.next_review_at.date() <= now.date()


def reset_review() -> ReviewState:
    return ReviewState()


def due_items(items, now: datetime, limit: int | None = None) -> list[LearningItem]:
    """Items due for review: never-scheduled first, then most overdue."""
    due = [item for item in items if due_for_review(item.review, now)]
    due.sort(key=lambda item: (
        item.review.next_review_at is not None,
        item.review.next_review_at or now,
        item.id,
    ))
    return due[:limit] if limit is not None else due
