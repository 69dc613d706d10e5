"""Core Data Models - Pydantic models for type safety.

Records are value objects with no behavior beyond validation and a few
read-only derived properties. Optional fields use None to mean "not logged";
zero is always a real measurement.
"""

from datetime import datetime
from datetime import date as DateType
from enum import Enum
from typing import Optional
import uuid

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .errors import (
    UnknownActivityLevelError,
    UnknownGenderError,
    UnknownGoalError,
    UnknownMealTypeError,
)


DEFAULT_DAILY_CALORIE_GOAL = 2000
DEFAULT_WATER_GOAL_ML = 2000
DEFAULT_STEPS_GOAL = 10000


class _ParsableEnum(str, Enum):
    """String enum with a single boundary check for raw input."""

    @classmethod
    def parse(cls, value):
        """Convert raw input to a member, raising the category's error if unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            allowed = ", ".join(member.value for member in cls)
            error_cls = _PARSE_ERRORS.get(cls, ValueError)
            raise error_cls(f"Unknown {cls.__name__} {value!r}. Expected one of: {allowed}") from None


class Gender(_ParsableEnum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class ActivityLevel(_ParsableEnum):
    SEDENTARY = "Sedentary"
    LIGHTLY_ACTIVE = "Lightly Active"
    MODERATELY_ACTIVE = "Moderately Active"
    VERY_ACTIVE = "Very Active"
    EXTRA_ACTIVE = "Extra Active"


class Goal(_ParsableEnum):
    LOSE_WEIGHT = "Lose Weight"
    MAINTAIN_WEIGHT = "Maintain Weight"
    GAIN_WEIGHT = "Gain Weight"
    BUILD_MUSCLE = "Build Muscle"
    IMPROVE_HEALTH = "Improve Health"


class MealType(_ParsableEnum):
    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"
    SNACK = "Snack"
    DRINK = "Drink"


_PARSE_ERRORS: dict[type, type[ValueError]] = {
    Gender: UnknownGenderError,
    ActivityLevel: UnknownActivityLevelError,
    Goal: UnknownGoalError,
    MealType: UnknownMealTypeError,
}


class SleepQuality(str, Enum):
    POOR = "Poor"
    FAIR = "Fair"
    GOOD = "Good"
    EXCELLENT = "Excellent"


class ExerciseType(str, Enum):
    CARDIO = "Cardio"
    STRENGTH = "Strength"
    FLEXIBILITY = "Flexibility"
    SPORTS = "Sports"
    YOGA = "Yoga"
    OTHER = "Other"


class Intensity(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"


class DataSource(str, Enum):
    MANUAL = "manual"
    APPLE_HEALTH = "apple_health"
    GOOGLE_FIT = "google_fit"
    FITBIT = "fitbit"
    GARMIN = "garmin"
    SAMSUNG_HEALTH = "samsung_health"


class ProfileState(str, Enum):
    INCOMPLETE = "incomplete"
    COMPLETE = "complete"


# ==================== Profile ====================


class ProfileSnapshot(BaseModel):
    """Physical attributes used for derived metrics, in canonical units."""

    age: Optional[int] = Field(default=None, ge=13, le=120, description="Age in years")
    gender: Optional[Gender] = Field(default=None, description="Selects the BMR formula branch")
    height: Optional[float] = Field(default=None, ge=50, le=300, description="Height in cm")
    weight: Optional[float] = Field(default=None, ge=20, le=500, description="Weight in kg")
    activity_level: ActivityLevel = ActivityLevel.MODERATELY_ACTIVE
    goal: Goal = Goal.IMPROVE_HEALTH


class ProfileDelta(BaseModel):
    """Fields a caller may change on a profile. Derived metrics are not accepted."""

    model_config = ConfigDict(extra="forbid")

    age: Optional[int] = None
    gender: Optional[Gender] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    activity_level: Optional[ActivityLevel] = None
    goal: Optional[Goal] = None


class DerivedMetrics(BaseModel):
    """Values computed from a ProfileSnapshot. None means not computable."""

    bmi: Optional[float] = None
    bmr: Optional[int] = None
    daily_calorie_goal: int = DEFAULT_DAILY_CALORIE_GOAL
    profile_completion: int = Field(default=0, ge=0, le=100)


class UserProfile(BaseModel):
    """Profile record stored per user."""

    profile: ProfileSnapshot = Field(default_factory=ProfileSnapshot)
    derived: DerivedMetrics = Field(default_factory=DerivedMetrics)
    state: ProfileState = ProfileState.INCOMPLETE
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


# ==================== Daily Health Log ====================


class WaterIntake(BaseModel):
    consumed: Optional[float] = Field(default=None, ge=0, description="Water consumed in ml")
    goal: float = Field(default=DEFAULT_WATER_GOAL_ML, ge=0, description="Daily target in ml")


class Steps(BaseModel):
    count: Optional[int] = Field(default=None, ge=0)
    goal: int = Field(default=DEFAULT_STEPS_GOAL, ge=0)
    distance: Optional[float] = Field(default=None, ge=0, description="Distance in km")
    active_minutes: Optional[int] = Field(default=None, ge=0)
    calories_burned: Optional[float] = Field(default=None, ge=0)


class Sleep(BaseModel):
    duration: Optional[float] = Field(default=None, ge=0, le=24, description="Hours slept")
    quality: Optional[SleepQuality] = None


class Mood(BaseModel):
    rating: Optional[int] = Field(default=None, ge=1, le=10)
    stress_level: Optional[int] = Field(default=None, ge=1, le=10)
    notes: Optional[str] = None


class Exercise(BaseModel):
    """A single workout logged on a day."""

    type: ExerciseType = ExerciseType.OTHER
    name: Optional[str] = None
    duration: float = Field(ge=0, description="Duration in minutes")
    calories_burned: float = Field(default=0, ge=0)
    intensity: Optional[Intensity] = None


class Scores(BaseModel):
    """Per-category wellness scores for a day. None means not computable."""

    nutrition: Optional[float] = Field(default=None, ge=0, le=100)
    activity: Optional[float] = Field(default=None, ge=0, le=100)
    sleep: Optional[float] = Field(default=None, ge=0, le=100)
    hydration: Optional[float] = Field(default=None, ge=0, le=100)
    mental: Optional[float] = Field(default=None, ge=0, le=100)
    overall: Optional[int] = Field(default=None, ge=0, le=100)


class DailyLog(BaseModel):
    """A user's health metrics for one calendar day."""

    log_date: DateType = Field(description="Date of this record (YYYY-MM-DD)")
    water: WaterIntake = Field(default_factory=WaterIntake)
    steps: Steps = Field(default_factory=Steps)
    sleep: Sleep = Field(default_factory=Sleep)
    mood: Mood = Field(default_factory=Mood)
    exercises: list[Exercise] = Field(default_factory=list)
    weight: Optional[float] = Field(default=None, ge=20, le=500, description="Weight in kg")
    body_temperature: Optional[float] = Field(default=None, ge=25, le=45, description="Temperature in °C")
    data_source: DataSource = DataSource.MANUAL
    scores: Scores = Field(default_factory=Scores)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class MetricsDelta(BaseModel):
    """A partial write to one day's metrics. Unset fields are left untouched."""

    model_config = ConfigDict(extra="forbid")

    water_consumed: Optional[float] = Field(default=None, ge=0)
    water_added: Optional[float] = Field(default=None, ge=0, description="Added to consumed")
    water_goal: Optional[float] = Field(default=None, ge=0)
    steps_count: Optional[int] = Field(default=None, ge=0)
    steps_goal: Optional[int] = Field(default=None, ge=0)
    steps_distance: Optional[float] = Field(default=None, ge=0)
    active_minutes: Optional[int] = Field(default=None, ge=0)
    sleep_duration: Optional[float] = Field(default=None, ge=0, le=24)
    sleep_quality: Optional[SleepQuality] = None
    mood_rating: Optional[int] = Field(default=None, ge=1, le=10)
    stress_level: Optional[int] = Field(default=None, ge=1, le=10)
    mood_notes: Optional[str] = None
    add_exercises: list[Exercise] = Field(default_factory=list)
    weight: Optional[float] = None
    body_temperature: Optional[float] = None
    data_source: Optional[DataSource] = None


# ==================== Food ====================


class NutritionFacts(BaseModel):
    """Nutrition per serving."""

    calories: float = Field(ge=0)
    protein: float = Field(default=0, ge=0, description="Grams")
    carbs: float = Field(default=0, ge=0, description="Grams")
    fat: float = Field(default=0, ge=0, description="Grams")
    fiber: float = Field(default=0, ge=0, description="Grams")
    sugar: float = Field(default=0, ge=0, description="Grams")
    sodium: float = Field(default=0, ge=0, description="Milligrams")
    cholesterol: float = Field(default=0, ge=0, description="Milligrams")


class FoodEntry(BaseModel):
    """A single food item logged by the user."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    food_name: str = Field(min_length=1)
    brand: Optional[str] = None
    meal_type: MealType
    quantity: float = Field(default=1, gt=0, description="Number of servings")
    unit: str = "serving"
    nutrition: NutritionFacts
    log_date: DateType = Field(default_factory=DateType.today)
    logged_at: datetime = Field(default_factory=datetime.utcnow)
    notes: Optional[str] = None

    @computed_field
    @property
    def total_calories(self) -> float:
        return self.quantity * self.nutrition.calories

    @property
    def totals(self) -> NutritionFacts:
        """Nutrition for the whole quantity eaten."""
        per_serving = self.nutrition.model_dump()
        return NutritionFacts(**{k: v * self.quantity for k, v in per_serving.items()})

    def with_updates(self, updates: dict) -> "FoodEntry":
        """Copy of this entry with fields replaced. A "nutrition" dict is merged per nutrient."""
        data = self.model_dump()
        nutrition = updates.get("nutrition")
        data.update({k: v for k, v in updates.items() if k != "nutrition"})
        if nutrition:
            data["nutrition"] = {**data["nutrition"], **nutrition}
        return FoodEntry(**data)


class FoodLog(BaseModel):
    """A day's food entries."""

    log_date: DateType
    entries: list[FoodEntry] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


# ==================== Summaries ====================


class MealBreakdown(BaseModel):
    calories: float = 0
    count: int = 0


def _empty_breakdown() -> dict[MealType, MealBreakdown]:
    return {meal: MealBreakdown() for meal in MealType}


class DailySummary(BaseModel):
    """Intake totals for a day calculated from food entries."""

    log_date: Optional[DateType] = None
    total_calories: float = Field(default=0, ge=0)
    total_protein: float = Field(default=0, ge=0)
    total_carbs: float = Field(default=0, ge=0)
    total_fat: float = Field(default=0, ge=0)
    total_fiber: float = Field(default=0, ge=0)
    total_sugar: float = Field(default=0, ge=0)
    total_sodium: float = Field(default=0, ge=0)
    total_cholesterol: float = Field(default=0, ge=0)
    entry_count: int = 0
    meal_breakdown: dict[MealType, MealBreakdown] = Field(default_factory=_empty_breakdown)
    calorie_goal: Optional[int] = None
    calories_remaining: Optional[float] = Field(default=None, description="Negative if over goal")


class DayScore(BaseModel):
    log_date: DateType
    overall: Optional[int] = None


class WeeklyAverages(BaseModel):
    steps: Optional[float] = None
    water: Optional[float] = None
    sleep: Optional[float] = None
    overall_score: Optional[float] = None


class WeeklySummary(BaseModel):
    """Averages over the days logged within a seven-day window."""

    week_start: DateType
    week_end: DateType
    days_logged: int
    averages: WeeklyAverages
    daily_scores: list[DayScore]


class User(BaseModel):
    """Account record stored per user."""

    email: str
    name: Optional[str] = None
    api_key_hash: str = Field(description="SHA256 hash of API key - never store plaintext")
    created_at: datetime = Field(default_factory=datetime.utcnow)
