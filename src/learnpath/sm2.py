"""SM-2 spaced repetition algorithm."""
import math

from learnpath.models import MIN_EASE_FACTOR

PASSING_QUALITY = 3


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def next_ease_factor(ease_factor: float, quality: int) -> float:
    new_ef = ease_factor + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02))
    return max(MIN_EASE_FACTOR, new_ef)


def sm2_update(
    quality: int,
    repetitions: int,
    ease_factor: float,
    interval: int,
) -> dict:
    """Calculate next review parameters using SM-2.

    Args:
        quality: Rating 0-5 (0=complete blackout, 5=perfect)
        repetitions: Number of consecutive correct reviews
        ease_factor: Current ease factor (minimum 1.3)
        interval: Current interval in days

    Returns:
        Dict with updated interval, repetitions, ease_factor.
    """
    if quality < PASSING_QUALITY:
        # Incorrect: start over, ease is left alone
        return {"interval": 1, "repetitions": 0, "ease_factor": ease_factor}

    new_repetitions = repetitions + 1
    new_ef = next_ease_factor(ease_factor, quality)
    if new_repetitions == 1:
        new_interval = 1
    elif new_repetitions == 2:
        new_interval = 3
    else:
        new_interval = max(1, round_half_up(interval * new_ef))

    return {
        "interval": new_interval,
        "repetitions": new_repetitions,
        "ease_factor": new_ef,
    }
