"""Progression engine: the learner-facing entry point.

Holds one ``ProgressSnapshot`` and applies learner actions to it. Each
public method builds the complete next snapshot first and only then swaps
it in and notifies subscribers, so a raised error leaves the engine exactly
as it was. Loading and saving are the only coroutines; everything else is
plain synchronous computation.
"""
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Optional

from learnpath import badges as badge_rules
from learnpath import quests as quest_rules
from learnpath.clock import Clock
from learnpath.codec import snapshot_from_dict, snapshot_to_dict
from learnpath.config import EngineConfig, load_config
from learnpath.errors import InvalidAmountError, NotCompletedError, NotFoundError, ValidationError
from learnpath.gate import accessible_units, find_unit, is_accessible, unit_completion
from learnpath.ledger import (
    add_xp, classify_reason, exercise_xp, expire_streak, streak_bonus, touch_activity,
)
from learnpath.logging import engine_logger
from learnpath.models import (
    AggregateStats, Badge, ContentUnit, LearningItem, ProgressLedger, ProgressSnapshot, Quest, XPTransaction,
)
from learnpath.scheduler import due_items, record_review, reset_review, validate_quality
from learnpath.seed import PROGRESS_KEY, default_snapshot
from learnpath.stats import aggregate_stats
from learnpath.storage import Store

log = engine_logger()


@dataclass
class ProgressEvent:
    kind: str
    payload: dict = field(default_factory=dict)


Listener = Callable[[ProgressEvent], None]


def _positive_int(value, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise InvalidAmountError(value, minimum=minimum)
    return value


class ProgressionEngine:
    def __init__(
        self,
        snapshot: ProgressSnapshot,
        clock: Clock,
        config: EngineConfig | None = None,
        custom_badges: Optional[badge_rules.CustomPredicate] = None,
    ):
        self.snapshot = snapshot
        self.clock = clock
        self.config = config or EngineConfig()
        self.custom_badges = custom_badges
        self._listeners: list[Listener] = []

    # --- persistence -------------------------------------------------

    @classmethod
    async def load(
        cls,
        store: Store,
        clock: Clock,
        config: EngineConfig | None = None,
        custom_badges: Optional[badge_rules.CustomPredicate] = None,
    ) -> "ProgressionEngine":
        """Read the snapshot and settings from ``store``; start fresh if there is none."""
        data = await store.get(PROGRESS_KEY)
        snapshot = snapshot_from_dict(data) if data else default_snapshot()
        engine = cls(snapshot, clock, await load_config(store, config), custom_badges)
        engine.snapshot = replace(
            engine.snapshot,
            ledger=expire_streak(engine.snapshot.ledger, clock.now()),
        )
        engine.roll_over_quests()
        log.info("progress_loaded", level=engine.ledger.level, total_xp=engine.ledger.total_xp)
        return engine

    async def save(self, store: Store) -> None:
        await store.set(PROGRESS_KEY, snapshot_to_dict(self.snapshot))

    # --- notifications -----------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback for progress events. Returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _commit(self, snapshot: ProgressSnapshot, events: list[ProgressEvent]) -> None:
        self.snapshot = snapshot
        for event in events:
            for listener in list(self._listeners):
                listener(event)

    # --- read access -------------------------------------------------

    @property
    def ledger(self) -> ProgressLedger:
        return self.snapshot.ledger

    def stats(self) -> AggregateStats:
        return aggregate_stats(self.snapshot)

    def item(self, item_id: str) -> LearningItem:
        item = self.snapshot.items.get(item_id)
        if item is None:
            log.warning("item_not_found", item_id=item_id)
            raise NotFoundError("item", item_id)
        return item

    def quest(self, quest_id: str) -> Quest:
        for quest in self.snapshot.quests:
            if quest.id == quest_id:
                return quest
        log.warning("quest_not_found", quest_id=quest_id)
        raise NotFoundError("quest", quest_id)

    def due_reviews(self, limit: int | None = None) -> list[LearningItem]:
        return due_items(self.snapshot.items.values(), self.clock.now(), limit)

    def is_day_accessible(self, sequence_number: int) -> bool:
        return is_accessible(self.snapshot.units, sequence_number, self.config.gate_threshold)

    def accessible_days(self) -> list[int]:
        return accessible_units(self.snapshot.units, self.config.gate_threshold)

    # --- snapshot transforms -----------------------------------------

    def _grant(
        self,
        snap: ProgressSnapshot,
        amount: int,
        reason: str,
        now: datetime,
        events: list[ProgressEvent],
    ) -> ProgressSnapshot:
        """Add XP and count today toward the streak, paying any streak milestone."""
        before = snap.ledger
        ledger = touch_activity(add_xp(before, amount, now), now)
        history = list(snap.xp_history)
        if amount:
            history.append(XPTransaction(amount, reason, classify_reason(reason), now, before.level, ledger.level))
            events.append(ProgressEvent("xp_gained", {"amount": amount, "reason": reason}))
        bonus = streak_bonus(before, ledger, self.config.streak_bonuses)
        if ledger.current_streak > before.current_streak:
            events.append(ProgressEvent("streak_extended", {"streak": ledger.current_streak}))
        if bonus:
            level_before = ledger.level
            ledger = add_xp(ledger, bonus, now)
            reason_text = f"Streak bonus: {ledger.current_streak} days"
            history.append(XPTransaction(bonus, reason_text, "streak", now, level_before, ledger.level))
            events.append(ProgressEvent("xp_gained", {"amount": bonus, "reason": reason_text}))
        if ledger.level > before.level:
            log.info("level_up", level_before=before.level, level_after=ledger.level)
            events.append(ProgressEvent("level_up", {"level": ledger.level, "previous": before.level}))
        log.info("xp_granted", amount=amount, reason=reason, total_xp=ledger.total_xp)
        limit = self.config.xp_history_limit
        return replace(snap, ledger=ledger, xp_history=history[-limit:] if limit else [])

    def _update_quests(
        self,
        snap: ProgressSnapshot,
        quests: list[Quest],
        events: list[ProgressEvent],
    ) -> ProgressSnapshot:
        before = {q.id: q.status for q in snap.quests}
        quests = quest_rules.unlock_ready(quests, snap.ledger.level)
        for quest in quests:
            previous = before.get(quest.id)
            if quest.status == "completed" and previous != "completed":
                log.info("quest_completed", quest_id=quest.id)
                events.append(ProgressEvent("quest_completed", {"quest_id": quest.id, "reward_xp": quest.reward_xp}))
            elif previous == "locked" and quest.status == "available":
                log.info("quest_unlocked", quest_id=quest.id)
                events.append(ProgressEvent("quest_unlocked", {"quest_id": quest.id}))
        return replace(snap, quests=quests)

    def _unlock_badges(
        self,
        snap: ProgressSnapshot,
        now: datetime,
        events: list[ProgressEvent],
    ) -> tuple[ProgressSnapshot, list[Badge]]:
        stats = aggregate_stats(snap)
        unlocked = badge_rules.evaluate(snap.badges, stats, now, self.custom_badges)
        if not unlocked:
            return snap, []
        snap = replace(snap, badges=badge_rules.merge_unlocked(snap.badges, unlocked))
        for badge in unlocked:
            log.info("badge_unlocked", badge_id=badge.id, xp_reward=badge.xp_reward)
            events.append(ProgressEvent("badge_unlocked", {"badge_id": badge.id, "xp_reward": badge.xp_reward}))
            # Badge XP is not fed back into this evaluation pass
            snap = self._grant(snap, badge.xp_reward, f"Badge: {badge.name}", now, events)
        return snap, unlocked

    def _settle(
        self,
        snap: ProgressSnapshot,
        now: datetime,
        events: list[ProgressEvent],
        quests: list[Quest] | None = None,
    ) -> ProgressSnapshot:
        """Bring statistic-backed quests and badges up to date after an action."""
        stats = aggregate_stats(snap)
        synced = quest_rules.sync_with_stats(quests if quests is not None else snap.quests, stats, now)
        snap = self._update_quests(snap, synced, events)
        snap, _ = self._unlock_badges(snap, now, events)
        return snap

    # --- operations --------------------------------------------------

    def record_review(self, item_id: str, quality: int) -> LearningItem:
        """Grade a review of ``item_id`` and reschedule it."""
        item = self.item(item_id)
        try:
            validate_quality(quality)
        except ValidationError:
            log.warning("invalid_review_quality", item_id=item_id, quality=quality)
            raise
        now = self.clock.now()
        events: list[ProgressEvent] = []
        updated = replace(item, review=record_review(item.review, quality, now))
        snap = replace(
            self.snapshot,
            items={**self.snapshot.items, item_id: updated},
            counters=replace(
                self.snapshot.counters,
                revisions_completed=self.snapshot.counters.revisions_completed + 1,
            ),
        )
        snap = self._grant(snap, self.config.review_xp, f"Review: {item.title}", now, events)
        quests = [quest_rules.advance(q, "revision", 1, now) for q in snap.quests]
        snap = self._settle(snap, now, events, quests)
        self._commit(snap, events)
        return updated

    def add_xp(self, amount: int, reason: str) -> ProgressLedger:
        """Grant XP for ``reason``. Zero is allowed and still counts toward the streak."""
        try:
            _positive_int(amount, 0)
        except ValidationError:
            log.warning("invalid_xp_amount", amount=amount, reason=reason)
            raise
        events: list[ProgressEvent] = []
        snap = self._grant(self.snapshot, amount, reason, self.clock.now(), events)
        self._commit(snap, events)
        return snap.ledger

    def evaluate_badges(self) -> list[Badge]:
        """Unlock every badge whose condition holds and pay out its XP."""
        events: list[ProgressEvent] = []
        snap, unlocked = self._unlock_badges(self.snapshot, self.clock.now(), events)
        self._commit(snap, events)
        return unlocked

    def advance_quest(self, event_type: str, amount: int = 1) -> list[Quest]:
        """Count an activity toward matching quests. Returns the quests that changed."""
        try:
            _positive_int(amount, 1)
        except ValidationError:
            log.warning("invalid_quest_amount", event_type=event_type, amount=amount)
            raise
        now = self.clock.now()
        events: list[ProgressEvent] = []
        before = {q.id: q for q in self.snapshot.quests}
        advanced = [quest_rules.advance(q, event_type, amount, now) for q in self.snapshot.quests]
        snap = self._update_quests(self.snapshot, advanced, events)
        self._commit(snap, events)
        return [q for q in snap.quests if q != before.get(q.id)]

    def complete_exercise(self, item_id: str, score: float | None = None) -> LearningItem:
        """Mark an exercise finished, pay its XP and count it toward quests and badges."""
        item = self.item(item_id)
        if score is not None and not 0 <= score <= 100:
            log.warning("invalid_score", item_id=item_id, score=score)
            raise ValidationError(f"Score must be between 0 and 100, got {score!r}")
        now = self.clock.now()
        events: list[ProgressEvent] = []
        first_completion = not item.completed
        updated = replace(
            item,
            completed=True,
            score=score if score is not None else item.score,
            attempts=item.attempts + 1,
            completed_at=item.completed_at or now,
        )
        snap = replace(self.snapshot, items={**self.snapshot.items, item_id: updated})
        xp = exercise_xp(item.difficulty, score, first_attempt=item.attempts == 0)
        snap = self._grant(snap, xp, f"Exercise: {item.title}", now, events)
        quests = snap.quests
        if first_completion:
            quests = [quest_rules.advance(q, "exercises", 1, now) for q in quests]
        snap = self._settle(snap, now, events, quests)
        self._commit(snap, events)
        return updated

    def log_pomodoro(self, minutes: int = 25) -> AggregateStats:
        """Record a finished focus session."""
        try:
            _positive_int(minutes, 1)
        except ValidationError:
            log.warning("invalid_pomodoro_minutes", minutes=minutes)
            raise
        now = self.clock.now()
        events: list[ProgressEvent] = []
        counters = self.snapshot.counters
        snap = replace(
            self.snapshot,
            counters=replace(
                counters,
                pomodoro_sessions=counters.pomodoro_sessions + 1,
                study_minutes=counters.study_minutes + minutes,
            ),
        )
        snap = self._grant(snap, 0, "Pomodoro session", now, events)
        quests = [quest_rules.advance(q, "pomodoros", 1, now) for q in snap.quests]
        snap = self._settle(snap, now, events, quests)
        self._commit(snap, events)
        return aggregate_stats(snap)

    def log_evaluation(self) -> AggregateStats:
        """Record a finished self evaluation."""
        now = self.clock.now()
        events: list[ProgressEvent] = []
        counters = self.snapshot.counters
        snap = replace(
            self.snapshot,
            counters=replace(counters, evaluations_completed=counters.evaluations_completed + 1),
        )
        snap = self._grant(snap, 0, "Self evaluation", now, events)
        quests = [quest_rules.advance(q, "evaluation", 1, now) for q in snap.quests]
        snap = self._settle(snap, now, events, quests)
        self._commit(snap, events)
        return aggregate_stats(snap)

    def unit(self, sequence_number: int) -> ContentUnit:
        unit = find_unit(self.snapshot.units, sequence_number)
        if unit is None:
            log.warning("unit_not_found", sequence_number=sequence_number)
            raise NotFoundError("unit", sequence_number)
        return unit

    def _replace_unit(self, sequence_number: int, **changes) -> ProgressSnapshot:
        updated = replace(self.unit(sequence_number), **changes)
        units = [updated if u.sequence_number == sequence_number else u for u in self.snapshot.units]
        return replace(self.snapshot, units=units)

    def update_unit_progress(
        self,
        sequence_number: int,
        sessions_done: int,
        sessions_total: int,
        exercises_done: int = 0,
        exercises_total: int = 0,
    ) -> float:
        """Recompute a day's completion ratio. Returns the new ratio."""
        ratio = unit_completion(
            sessions_done, sessions_total, exercises_done, exercises_total,
            completed=self.unit(sequence_number).completed,
            started=sessions_done > 0 or exercises_done > 0,
        )
        snap = self._replace_unit(sequence_number, completion_ratio=ratio)
        self._commit(snap, [])
        return ratio

    def complete_unit(self, sequence_number: int, xp: int | None = None) -> ProgressLedger:
        """Mark a day complete. With no XP attached it still counts toward the streak."""
        amount = self.config.unit_completion_xp if xp is None else _positive_int(xp, 0)
        snap = self._replace_unit(sequence_number, completed=True, completion_ratio=100.0)
        now = self.clock.now()
        events: list[ProgressEvent] = []
        snap = self._grant(snap, amount, f"Day {sequence_number} completed", now, events)
        snap = self._settle(snap, now, events)
        self._commit(snap, events)
        return snap.ledger

    def _replace_quest(self, updated: Quest) -> ProgressSnapshot:
        quests = [updated if q.id == updated.id else q for q in self.snapshot.quests]
        return replace(self.snapshot, quests=quests)

    def start_quest(self, quest_id: str) -> Quest:
        updated = quest_rules.start(self.quest(quest_id), self.clock.now())
        self._commit(self._replace_quest(updated), [])
        return updated

    def abandon_quest(self, quest_id: str) -> Quest:
        updated = quest_rules.abandon(self.quest(quest_id), self.clock.now())
        self._commit(self._replace_quest(updated), [])
        return updated

    def claim_quest_reward(self, quest_id: str) -> int:
        """Pay a completed quest's XP once. Returns the XP granted by this call."""
        quest = self.quest(quest_id)
        now = self.clock.now()
        try:
            claimed, xp = quest_rules.claim_reward(quest, now)
        except NotCompletedError:
            log.warning("quest_claim_rejected", quest_id=quest_id, status=quest.status)
            raise
        if quest.claimed_at is not None:
            return 0
        events: list[ProgressEvent] = []
        snap = self._replace_quest(claimed)
        if xp > 0:
            snap = self._grant(snap, xp, f"Quest: {quest.title}", now, events)
            snap = self._settle(snap, now, events)
        self._commit(snap, events)
        return xp

    def reset_item(self, item_id: str) -> LearningItem:
        item = self.item(item_id)
        updated = replace(item, review=reset_review())
        self._commit(replace(self.snapshot, items={**self.snapshot.items, item_id: updated}), [])
        return updated

    def roll_over_quests(self) -> list[Quest]:
        """Reissue daily and weekly quests when a new period has started."""
        now = self.clock.now()
        quests = quest_rules.roll_over(self.snapshot.quests, self.snapshot.last_rollover, now)
        snap = replace(self.snapshot, quests=quests, last_rollover=now.date())
        self._commit(snap, [])
        return quests
