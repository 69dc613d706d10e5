"""Profile Lifecycle - Recomputes derived fields on every write.

The coordinator is the write path for profiles and daily health logs. It
merges a partial update into the current record, recomputes every derived
field, and hands the result back to the store inside the store's
transaction, so derived values are never persisted stale.

Stores own concurrency: each update_* call must run read-mutate-write as
one transaction (or serialize writes per key). The coordinator holds no
locks of its own.
"""

from datetime import date, datetime
from typing import Callable, Optional, Protocol

from .metrics import compute_derived_metrics, profile_state
from .models import (
    DailyLog,
    MetricsDelta,
    ProfileDelta,
    ProfileSnapshot,
    UserProfile,
)
from .scores import score_daily_log


ProfileMutation = Callable[[Optional[UserProfile]], UserProfile]
DailyLogMutation = Callable[[Optional[DailyLog]], DailyLog]


class ProfileStore(Protocol):
    def update_profile(self, user_id: str, mutate: ProfileMutation) -> UserProfile:
        """Apply mutate to the stored profile (None if absent) and persist atomically."""
        ...


class DailyLogStore(Protocol):
    def update_daily_log(self, user_id: str, log_date: date, mutate: DailyLogMutation) -> DailyLog:
        """Apply mutate to the day's record (None if absent) and persist atomically."""
        ...


class NutritionScoreProvider(Protocol):
    def get_nutrition_score(self, user_id: str, log_date: date) -> Optional[float]:
        """Return the day's nutrition score (0-100), or None if there is none.

        Called from inside update_daily_log's mutation. A store that is also
        the provider must make this read part of that transaction.
        """
        ...


def apply_profile_delta(current: Optional[UserProfile], delta: ProfileDelta) -> UserProfile:
    """Merge a profile delta and recompute derived metrics.

    Fields left as None in the delta keep their current value. The merged
    snapshot is validated against the profile ranges.
    """
    record = current or UserProfile()
    merged = {
        **record.profile.model_dump(),
        **delta.model_dump(exclude_none=True),
    }
    snapshot = ProfileSnapshot.model_validate(merged)

    return record.model_copy(
        update={
            "profile": snapshot,
            "derived": compute_derived_metrics(snapshot),
            "state": profile_state(snapshot),
            "updated_at": datetime.utcnow(),
        }
    )


def apply_metrics_delta(
    current: Optional[DailyLog],
    log_date: date,
    delta: MetricsDelta,
    nutrition_score: Optional[float] = None,
) -> DailyLog:
    """Merge a metrics delta into a day's record and re-score it."""
    log = current.model_copy(deep=True) if current is not None else DailyLog(log_date=log_date)

    if delta.water_consumed is not None:
        log.water.consumed = delta.water_consumed
    if delta.water_added is not None:
        log.water.consumed = (log.water.consumed or 0) + delta.water_added
    if delta.water_goal is not None:
        log.water.goal = delta.water_goal

    if delta.steps_count is not None:
        log.steps.count = delta.steps_count
    if delta.steps_goal is not None:
        log.steps.goal = delta.steps_goal
    if delta.steps_distance is not None:
        log.steps.distance = delta.steps_distance
    if delta.active_minutes is not None:
        log.steps.active_minutes = delta.active_minutes

    if delta.sleep_duration is not None:
        log.sleep.duration = delta.sleep_duration
    if delta.sleep_quality is not None:
        log.sleep.quality = delta.sleep_quality

    if delta.mood_rating is not None:
        log.mood.rating = delta.mood_rating
    if delta.stress_level is not None:
        log.mood.stress_level = delta.stress_level
    if delta.mood_notes is not None:
        log.mood.notes = delta.mood_notes

    log.exercises.extend(delta.add_exercises)

    if delta.weight is not None:
        log.weight = delta.weight
    if delta.body_temperature is not None:
        log.body_temperature = delta.body_temperature
    if delta.data_source is not None:
        log.data_source = delta.data_source

    # Re-validate ranges on the record-level fields set above
    log = DailyLog.model_validate(log.model_dump())
    log.scores = score_daily_log(log, nutrition_score)
    log.updated_at = datetime.utcnow()
    return log


class ProfileLifecycleCoordinator:
    """Write path that keeps derived profile and score fields consistent.

    Args:
        profiles: Store for user profiles
        daily_logs: Store for per-day health records
        nutrition: Source of nutrition scores, None if nutrition is not scored
    """

    def __init__(
        self,
        profiles: ProfileStore,
        daily_logs: DailyLogStore,
        nutrition: Optional[NutritionScoreProvider] = None,
    ) -> None:
        self._profiles = profiles
        self._daily_logs = daily_logs
        self._nutrition = nutrition

    def on_profile_write(self, user_id: str, delta: ProfileDelta) -> UserProfile:
        """Apply a profile update and recompute BMI, BMR and calorie goal."""
        return self._profiles.update_profile(
            user_id, lambda current: apply_profile_delta(current, delta)
        )

    def on_daily_log_write(self, user_id: str, log_date: date, delta: MetricsDelta) -> DailyLog:
        """Apply a metrics update to a day and recompute its scores.

        The nutrition score is read inside the mutation, so it is part of
        the same transaction as the day's record.
        """

        def mutate(current: Optional[DailyLog]) -> DailyLog:
            nutrition_score = None
            if self._nutrition is not None:
                nutrition_score = self._nutrition.get_nutrition_score(user_id, log_date)
            return apply_metrics_delta(current, log_date, delta, nutrition_score)

        return self._daily_logs.update_daily_log(user_id, log_date, mutate)

    def rescore_day(self, user_id: str, log_date: date) -> DailyLog:
        """Recompute a day's scores without changing its metrics."""
        return self.on_daily_log_write(user_id, log_date, MetricsDelta())
