"""Derived Metrics - Pure functions for BMI, BMR and calorie targets.

All functions are pure: same input always produces same output, no side effects.
A missing prerequisite yields None ("not computable"), never an exception.
"""

import math
from typing import Optional

from .models import (
    DEFAULT_DAILY_CALORIE_GOAL,
    ActivityLevel,
    DerivedMetrics,
    Gender,
    Goal,
    ProfileSnapshot,
    ProfileState,
)


ACTIVITY_MULTIPLIERS: dict[ActivityLevel, float] = {
    ActivityLevel.SEDENTARY: 1.2,
    ActivityLevel.LIGHTLY_ACTIVE: 1.375,
    ActivityLevel.MODERATELY_ACTIVE: 1.55,
    ActivityLevel.VERY_ACTIVE: 1.725,
    ActivityLevel.EXTRA_ACTIVE: 1.9,
}

GOAL_ADJUSTMENTS: dict[Goal, int] = {
    Goal.LOSE_WEIGHT: -500,
    Goal.GAIN_WEIGHT: 500,
}

# Fields counted towards the profile completion percentage
COMPLETION_FIELDS = ("age", "gender", "height", "weight", "goal")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values."""
    return math.floor(value + 0.5)


def compute_bmi(height_cm: Optional[float], weight_kg: Optional[float]) -> Optional[float]:
    """Calculate Body Mass Index.

    Args:
        height_cm: Height in centimeters
        weight_kg: Weight in kilograms

    Returns:
        BMI rounded to 2 decimals, or None if height or weight is missing or not positive
    """
    if height_cm is None or weight_kg is None or height_cm <= 0 or weight_kg <= 0:
        return None
    height_m = height_cm / 100
    return round(weight_kg / (height_m * height_m), 2)


def compute_bmr(
    weight_kg: Optional[float],
    height_cm: Optional[float],
    age: Optional[int],
    sex: Optional[Gender],
) -> Optional[int]:
    """Calculate Basal Metabolic Rate with the Mifflin-St Jeor equation.

    Male: 10w + 6.25h - 5a + 5. Everyone else: 10w + 6.25h - 5a - 161.

    Returns:
        BMR in calories/day rounded to the nearest integer, or None if any input is missing
    """
    if weight_kg is None or height_cm is None or age is None or sex is None:
        return None
    base = 10 * weight_kg + 6.25 * height_cm - 5 * age
    offset = 5 if Gender.parse(sex) == Gender.MALE else -161
    return round_half_up(base + offset)


def activity_multiplier(activity_level) -> float:
    """Look up the TDEE multiplier for an activity level.

    Raises:
        UnknownActivityLevelError: If the level is not one of the five tiers
    """
    return ACTIVITY_MULTIPLIERS[ActivityLevel.parse(activity_level)]


def compute_tdee(bmr: Optional[int], activity_level) -> Optional[float]:
    """Total Daily Energy Expenditure: BMR times the activity multiplier."""
    if bmr is None:
        return None
    return bmr * activity_multiplier(activity_level)


def compute_daily_calorie_goal(bmr: Optional[int], activity_level, goal=None) -> int:
    """Calculate the daily calorie target for a goal.

    Lose Weight subtracts 500 from TDEE, Gain Weight adds 500, every other
    goal (or no goal) keeps TDEE.

    Args:
        bmr: Basal metabolic rate, None if not computable
        activity_level: One of the five activity tiers
        goal: User goal, or None

    Returns:
        Calories/day rounded to the nearest integer. DEFAULT_DAILY_CALORIE_GOAL
        when bmr is None.

    Raises:
        UnknownActivityLevelError: If activity_level is invalid
        UnknownGoalError: If goal is invalid
    """
    if bmr is None:
        return DEFAULT_DAILY_CALORIE_GOAL
    adjustment = 0
    if goal is not None:
        adjustment = GOAL_ADJUSTMENTS.get(Goal.parse(goal), 0)
    return round_half_up(compute_tdee(bmr, activity_level) + adjustment)


def is_complete(snapshot: ProfileSnapshot) -> bool:
    """A profile is complete once height, weight, age and gender are all set."""
    return None not in (snapshot.height, snapshot.weight, snapshot.age, snapshot.gender)


def profile_state(snapshot: ProfileSnapshot) -> ProfileState:
    return ProfileState.COMPLETE if is_complete(snapshot) else ProfileState.INCOMPLETE


def profile_completion(snapshot: ProfileSnapshot) -> int:
    """Percentage of COMPLETION_FIELDS that are filled in."""
    filled = sum(1 for name in COMPLETION_FIELDS if getattr(snapshot, name) is not None)
    return round_half_up(filled / len(COMPLETION_FIELDS) * 100)


def compute_derived_metrics(snapshot: ProfileSnapshot) -> DerivedMetrics:
    """Compute every derived profile field from a snapshot.

    BMI needs only height and weight. BMR and the calorie goal are computed
    only for complete profiles; otherwise the calorie goal is the default.
    """
    bmi = compute_bmi(snapshot.height, snapshot.weight)
    bmr = None
    if is_complete(snapshot):
        bmr = compute_bmr(snapshot.weight, snapshot.height, snapshot.age, snapshot.gender)

    return DerivedMetrics(
        bmi=bmi,
        bmr=bmr,
        daily_calorie_goal=compute_daily_calorie_goal(bmr, snapshot.activity_level, snapshot.goal),
        profile_completion=profile_completion(snapshot),
    )
