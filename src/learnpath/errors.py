"""Errors raised by the progression engine.

Every error is scoped to a single call. Operations validate before they
build a new state, so a raised error never leaves a half-applied change.
"""


class ProgressionError(Exception):
    """Base class for all engine errors."""


class ValidationError(ProgressionError):
    """Input rejected before any state was touched."""


class InvalidQualityError(ValidationError):
    def __init__(self, quality):
        super().__init__(f"Review quality must be an integer from 0 to 5, got {quality!r}")
        self.quality = quality


class InvalidAmountError(ValidationError):
    def __init__(self, amount, minimum: int = 0):
        super().__init__(f"Amount must be an integer >= {minimum}, got {amount!r}")
        self.amount = amount


class InvalidTransitionError(ValidationError):
    def __init__(self, quest_id: str, status: str, action: str):
        super().__init__(f"Cannot {action} quest {quest_id!r} while it is {status}")
        self.quest_id = quest_id
        self.status = status


class NotFoundError(ProgressionError):
    def __init__(self, kind: str, key):
        super().__init__(f"Unknown {kind}: {key!r}")
        self.kind = kind
        self.key = key


class NotCompletedError(ProgressionError):
    def __init__(self, quest_id: str, status: str):
        super().__init__(f"Quest {quest_id!r} is {status}, reward can only be claimed once completed")
        self.quest_id = quest_id
        self.status = status
