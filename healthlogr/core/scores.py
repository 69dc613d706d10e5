"""Daily Scores - Pure functions turning a day's metrics into wellness scores.

Each sub-score is 0-100 and is None when its inputs were not logged. A
missing category is left out of the overall score entirely; a computed
zero still counts.
"""

from typing import Optional

from .metrics import round_half_up
from .models import DailyLog, Scores


SCORE_WEIGHTS: dict[str, float] = {
    "nutrition": 0.30,
    "activity": 0.25,
    "sleep": 0.20,
    "hydration": 0.15,
    "mental": 0.10,
}

IDEAL_SLEEP_HOURS = 8
SLEEP_PENALTY_PER_HOUR = 12.5
EXERCISE_BONUS = 10


def hydration_score(consumed: Optional[float], goal: Optional[float]) -> Optional[float]:
    """Water consumed as a percentage of goal, capped at 100."""
    if consumed is None or goal is None or goal <= 0:
        return None
    return min(100.0, consumed * 100 / goal)


def activity_score(
    steps: Optional[int], steps_goal: Optional[int], exercise_count: int = 0
) -> Optional[float]:
    """Step goal percentage plus a bonus per exercise, capped at 100.

    Without a positive step goal only the exercise bonus counts. None if
    neither steps nor exercises were logged.
    """
    if steps is None and exercise_count == 0:
        return None
    step_part = 0.0
    if steps is not None and steps_goal is not None and steps_goal > 0:
        step_part = steps * 100 / steps_goal
    return min(100.0, step_part + EXERCISE_BONUS * exercise_count)


def sleep_score(duration: Optional[float]) -> Optional[float]:
    """Symmetric penalty around the ideal sleep duration, floored at 0."""
    if duration is None:
        return None
    return max(0.0, 100 - abs(duration - IDEAL_SLEEP_HOURS) * SLEEP_PENALTY_PER_HOUR)


def mental_score(mood_rating: Optional[int]) -> Optional[float]:
    if mood_rating is None:
        return None
    return float(mood_rating * 10)


def compute_sub_scores(log: DailyLog, nutrition_score: Optional[float] = None) -> Scores:
    """Compute the per-category scores for a day. Overall is left unset.

    Args:
        log: The day's health metrics
        nutrition_score: Precomputed nutrition score (0-100), None if absent

    Returns:
        Scores with every computable category filled in
    """
    return Scores(
        nutrition=nutrition_score,
        activity=activity_score(log.steps.count, log.steps.goal, len(log.exercises)),
        sleep=sleep_score(log.sleep.duration),
        hydration=hydration_score(log.water.consumed, log.water.goal),
        mental=mental_score(log.mood.rating),
    )


def compute_overall_score(scores: Scores) -> Optional[int]:
    """Weighted mean of the present sub-scores.

    The weighted sum is divided by the total weight of the categories that
    are present, not by 1.

    Returns:
        Overall score rounded to the nearest integer, or None if no sub-score is present
    """
    weighted_sum = 0.0
    total_weight = 0.0
    for category, weight in SCORE_WEIGHTS.items():
        value = getattr(scores, category)
        if value is None:
            continue
        weighted_sum += value * weight
        total_weight += weight

    if total_weight == 0:
        return None
    return round_half_up(weighted_sum / total_weight)


def score_daily_log(log: DailyLog, nutrition_score: Optional[float] = None) -> Scores:
    """Compute sub-scores and the overall score for a day."""
    scores = compute_sub_scores(log, nutrition_score)
    return scores.model_copy(update={"overall": compute_overall_score(scores)})
