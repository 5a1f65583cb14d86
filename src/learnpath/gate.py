"""Sequential access to curriculum days."""
import re

from learnpath.config import DEFAULT_GATE_THRESHOLD
from learnpath.models import ContentUnit

UNIT_ID_PATTERN = re.compile(r"^(?:day-)?(\d+)$")


def find_unit(units: list[ContentUnit], sequence_number: int) -> ContentUnit | None:
    for unit in units:
        if unit.sequence_number == sequence_number:
            return unit
    return None


def is_accessible(
    units: list[ContentUnit],
    sequence_number: int,
    threshold: float = DEFAULT_GATE_THRESHOLD,
) -> bool:
    """Whether a day may be opened.

    Day 1 is always open. Any later day opens once the day before it is
    completed or has reached ``threshold`` percent. A day that cannot be
    found before it does not block access.
    """
    if sequence_number == 1:
        return True
    if sequence_number < 1 or sequence_number > len(units):
        return False
    previous = find_unit(units, sequence_number - 1)
    if previous is None:
        return True
    return previous.completed or previous.completion_ratio >= threshold


def accessible_units(units: list[ContentUnit], threshold: float = DEFAULT_GATE_THRESHOLD) -> list[int]:
    return [
        unit.sequence_number
        for unit in sorted(units, key=lambda u: u.sequence_number)
        if is_accessible(units, unit.sequence_number, threshold)
    ]


def unit_completion(
    sessions_done: int,
    sessions_total: int,
    exercises_done: int = 0,
    exercises_total: int = 0,
    completed: bool = False,
    started: bool = False,
) -> float:
    """Completion percentage of a day from its sessions and exercises."""
    if completed:
        return 100.0
    total = sessions_total + exercises_total
    if total == 0:
        return 25.0 if started else 0.0
    done = min(sessions_done, sessions_total) + min(exercises_done, exercises_total)
    return round(done / total * 100, 1)


def parse_unit_id(unit_id: str) -> int | None:
    """Accepts ``"day-3"`` or ``"3"``; anything else is None."""
    match = UNIT_ID_PATTERN.match(unit_id.strip())
    if not match:
        return None
    number = int(match.group(1))
    return number if number >= 1 else None
