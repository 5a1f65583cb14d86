"""Data classes for the progression domain model."""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal, Optional, Union

Difficulty = Literal["easy", "medium", "hard", "expert"]
QuestKind = Literal["daily", "weekly", "main", "side"]
QuestStatus = Literal["locked", "available", "in-progress", "completed"]
ObjectiveType = Literal[
    "exercises", "pomodoros", "streak", "score", "time", "subject", "evaluation", "revision",
]
BadgeTier = Literal["bronze", "silver", "gold", "platinum", "special"]

DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3


@dataclass
class ReviewState:
    repetitions: int = 0
    ease_factor: float = DEFAULT_EASE_FACTOR
    interval_days: int = 1
    last_reviewed_at: Optional[datetime] = None
    next_review_at: Optional[datetime] = None
    last_quality: Optional[int] = None


@dataclass
class LearningItem:
    """An exercise or flashcard the learner works through and later reviews."""
    id: str
    title: str
    subject: str
    difficulty: Difficulty = "medium"
    completed: bool = False
    score: Optional[float] = None
    attempts: int = 0
    completed_at: Optional[datetime] = None
    review: ReviewState = field(default_factory=ReviewState)


@dataclass
class ProgressLedger:
    total_xp: int = 0
    level: int = 1
    current_streak: int = 0
    best_streak: int = 0
    last_activity_date: Optional[date] = None


@dataclass
class XPTransaction:
    amount: int
    reason: str
    source: str
    earned_at: datetime
    level_before: int
    level_after: int


# Badge unlock conditions. One class per condition kind; ``kind`` is the
# persisted tag.

@dataclass(frozen=True)
class ExercisesCompleted:
    count: int
    kind: str = field(default="exercises", init=False)


@dataclass(frozen=True)
class StreakDays:
    days: int
    kind: str = field(default="streak", init=False)


@dataclass(frozen=True)
class LevelReached:
    level: int
    kind: str = field(default="level", init=False)


@dataclass(frozen=True)
class AverageScore:
    average: float
    kind: str = field(default="score", init=False)


@dataclass(frozen=True)
class SubjectCompletion:
    subject: str
    completion: float
    kind: str = field(default="subject", init=False)


@dataclass(frozen=True)
class TotalHours:
    hours: float
    kind: str = field(default="time", init=False)


@dataclass(frozen=True)
class PomodoroSessions:
    count: int
    kind: str = field(default="pomodoro", init=False)


@dataclass(frozen=True)
class Custom:
    id: str
    kind: str = field(default="custom", init=False)


UnlockCondition = Union[
    ExercisesCompleted, StreakDays, LevelReached, AverageScore,
    SubjectCompletion, TotalHours, PomodoroSessions, Custom,
]


@dataclass
class Badge:
    id: str
    name: str
    condition: UnlockCondition
    xp_reward: int = 0
    description: str = ""
    tier: BadgeTier = "bronze"
    hidden: bool = False
    order: int = 0
    unlocked: bool = False
    unlocked_at: Optional[datetime] = None


@dataclass
class Objective:
    type: ObjectiveType
    target: int
    current: int = 0
    subject: Optional[str] = None


@dataclass
class Quest:
    id: str
    title: str
    kind: QuestKind
    objective: Objective
    status: QuestStatus = "available"
    reward_xp: int = 0
    description: str = ""
    deadline: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    claimed_at: Optional[datetime] = None
    prerequisites: list[str] = field(default_factory=list)
    minimum_level: Optional[int] = None
    next_quest: Optional[str] = None


@dataclass
class ContentUnit:
    """One day of the curriculum."""
    sequence_number: int
    title: str = ""
    completion_ratio: float = 0.0
    completed: bool = False


@dataclass
class ActivityCounters:
    pomodoro_sessions: int = 0
    study_minutes: int = 0
    evaluations_completed: int = 0
    revisions_completed: int = 0


@dataclass
class AggregateStats:
    exercises_completed: int = 0
    current_streak: int = 0
    level: int = 1
    total_xp: int = 0
    average_score: float = 0.0
    subject_completion: dict[str, float] = field(default_factory=dict)
    total_hours: float = 0.0
    pomodoro_sessions: int = 0
    evaluations_completed: int = 0
    revisions_completed: int = 0


@dataclass
class ProgressSnapshot:
    """Everything persisted for one learner, saved and loaded as a single unit."""
    ledger: ProgressLedger = field(default_factory=ProgressLedger)
    items: dict[str, LearningItem] = field(default_factory=dict)
    badges: list[Badge] = field(default_factory=list)
    quests: list[Quest] = field(default_factory=list)
    units: list[ContentUnit] = field(default_factory=list)
    counters: ActivityCounters = field(default_factory=ActivityCounters)
    xp_history: list[XPTransaction] = field(default_factory=list)
    last_rollover: Optional[date] = None
