"""Experience, level and daily streak bookkeeping."""
import math
from dataclasses import replace
from datetime import date, datetime, timedelta

from learnpath.errors import InvalidAmountError
from learnpath.models import ProgressLedger

BASE_EXERCISE_XP = {"easy": 10, "medium": 25, "hard": 40, "expert": 60}

# Checked in order, first match wins
REASON_SOURCES = [
    ("exercise", "exercise"),
    ("pomodoro", "pomodoro"),
    ("quest", "quest"),
    ("badge", "badge"),
    ("streak", "streak"),
    ("review", "review"),
    ("day", "unit"),
    ("unit", "unit"),
]


def as_date(moment: date | datetime) -> date:
    return moment.date() if isinstance(moment, datetime) else moment


def level_for_xp(xp: int) -> int:
    """floor(sqrt(xp / 100)) + 1, computed on integers."""
    return math.isqrt(xp // 100) + 1


def xp_for_level(level: int) -> int:
    """Total XP at which ``level`` starts."""
    return (level - 1) ** 2 * 100


def add_xp(ledger: ProgressLedger, amount: int, now: date | datetime | None = None) -> ProgressLedger:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise InvalidAmountError(amount)
    total = ledger.total_xp + amount
    return replace(ledger, total_xp=total, level=level_for_xp(total))


def touch_activity(ledger: ProgressLedger, now: date | datetime) -> ProgressLedger:
    """Count today toward the streak. Calling it again the same day changes nothing."""
    today = as_date(now)
    last = ledger.last_activity_date
    if last == today:
        return ledger
    if last is not None and last == today - timedelta(days=1):
        streak = ledger.current_streak + 1
    else:
        streak = 1
    return replace(
        ledger,
        current_streak=streak,
        best_streak=max(ledger.best_streak, streak),
        last_activity_date=today,
    )


def expire_streak(ledger: ProgressLedger, now: date | datetime) -> ProgressLedger:
    """Drop a streak that was broken while the learner was away."""
    last = ledger.last_activity_date
    if last is None or ledger.current_streak == 0:
        return ledger
    if (as_date(now) - last).days > 1:
        return replace(ledger, current_streak=0, best_streak=max(ledger.best_streak, ledger.current_streak))
    return ledger


def streak_bonus(before: ProgressLedger, after: ProgressLedger, bonuses: dict[int, int]) -> int:
    """Bonus XP earned when a touch moved the streak onto a milestone."""
    if after.current_streak == before.current_streak:
        return 0
    return bonuses.get(after.current_streak, 0)


def level_progress(ledger: ProgressLedger) -> float:
    """Percent of the way from the current level to the next."""
    start = xp_for_level(ledger.level)
    span = xp_for_level(ledger.level + 1) - start
    return round((ledger.total_xp - start) / span * 100, 1)


def xp_to_next_level(ledger: ProgressLedger) -> int:
    return xp_for_level(ledger.level + 1) - ledger.total_xp


def exercise_xp(difficulty: str, score: float | None = None, first_attempt: bool = True) -> int:
    """XP for finishing an exercise.

    Scores above 50 add a proportional bonus and a first attempt adds 20%.
    """
    base = BASE_EXERCISE_XP.get(difficulty, BASE_EXERCISE_XP["medium"])
    score_bonus = max(0.0, ((score if score is not None else 50) - 50) / 100)
    first_bonus = 0.2 if first_attempt else 0.0
    return math.floor(base * (1 + score_bonus + first_bonus) + 0.5)


def classify_reason(reason: str) -> str:
    lowered = reason.lower()
    for keyword, source in REASON_SOURCES:
        if keyword in lowered:
            return source
    return "bonus"
