"""Unit tests for data models - validation and defaults."""

import pytest
from datetime import date
from pydantic import ValidationError

from healthlogr.core.errors import (
    UnknownActivityLevelError,
    UnknownGenderError,
    UnknownGoalError,
    UnknownMealTypeError,
)
from healthlogr.core.models import (
    ActivityLevel,
    DailyLog,
    FoodEntry,
    Gender,
    Goal,
    MealType,
    MetricsDelta,
    NutritionFacts,
    ProfileDelta,
    ProfileSnapshot,
    UserProfile,
)


class TestEnumParsing:
    """Tests for the closed enum boundary checks."""

    def test_parse_valid_values(self):
        """Exact string values parse to members."""
        assert Gender.parse("Female") is Gender.FEMALE
        assert ActivityLevel.parse("Very Active") is ActivityLevel.VERY_ACTIVE
        assert Goal.parse("Build Muscle") is Goal.BUILD_MUSCLE
        assert MealType.parse("Drink") is MealType.DRINK

    def test_parse_member_passthrough(self):
        """Members pass through unchanged."""
        assert Goal.parse(Goal.LOSE_WEIGHT) is Goal.LOSE_WEIGHT

    def test_each_category_has_its_own_error(self):
        """Unknown values raise the error for their category."""
        with pytest.raises(UnknownGenderError):
            Gender.parse("Robot")
        with pytest.raises(UnknownActivityLevelError):
            ActivityLevel.parse("Lazy")
        with pytest.raises(UnknownGoalError):
            Goal.parse("Win")
        with pytest.raises(UnknownMealTypeError):
            MealType.parse("Brunch")

    def test_errors_are_value_errors(self):
        """Enum errors can be handled as ValueError."""
        with pytest.raises(ValueError):
            MealType.parse("Second Breakfast")


class TestProfileSnapshot:
    """Tests for ProfileSnapshot model."""

    def test_defaults(self):
        """Empty profile has default activity level and goal."""
        snapshot = ProfileSnapshot()
        assert snapshot.age is None
        assert snapshot.activity_level == ActivityLevel.MODERATELY_ACTIVE
        assert snapshot.goal == Goal.IMPROVE_HEALTH

    @pytest.mark.parametrize(
        "field,value",
        [("age", 12), ("age", 121), ("height", 49), ("height", 301), ("weight", 19), ("weight", 501)],
    )
    def test_out_of_range_rejected(self, field, value):
        """Physical attributes outside their ranges are rejected."""
        with pytest.raises(ValidationError):
            ProfileSnapshot(**{field: value})

    def test_user_profile_defaults(self):
        """A new profile record starts incomplete with the default calorie goal."""
        record = UserProfile()
        assert record.state.value == "incomplete"
        assert record.derived.daily_calorie_goal == 2000
        assert record.derived.bmi is None


class TestProfileDelta:
    """Tests for ProfileDelta model."""

    def test_derived_fields_not_accepted(self):
        """Callers cannot set BMI or calorie goal directly."""
        with pytest.raises(ValidationError):
            ProfileDelta(bmi=22.5)
        with pytest.raises(ValidationError):
            ProfileDelta(daily_calorie_goal=1500)


class TestFoodEntry:
    """Tests for FoodEntry model."""

    def test_valid_entry(self):
        """Valid entry is created with defaults."""
        entry = FoodEntry(
            food_name="Oatmeal",
            meal_type=MealType.BREAKFAST,
            nutrition=NutritionFacts(calories=150),
        )
        assert entry.quantity == 1
        assert entry.unit == "serving"
        assert entry.nutrition.protein == 0
        assert entry.id is not None

    def test_total_calories(self):
        """Total calories is quantity times calories per serving."""
        entry = FoodEntry(
            food_name="Eggs",
            meal_type=MealType.BREAKFAST,
            quantity=3,
            nutrition=NutritionFacts(calories=70, protein=6),
        )
        assert entry.total_calories == 210
        assert entry.totals.protein == 18

    def test_total_calories_serialized(self):
        """The derived total is part of the dumped record."""
        entry = FoodEntry(food_name="Tea", meal_type=MealType.DRINK, nutrition=NutritionFacts(calories=2))
        assert entry.model_dump()["total_calories"] == 2

    def test_round_trips_through_dump(self):
        """A dumped entry (including derived fields) loads back."""
        entry = FoodEntry(food_name="Tea", meal_type=MealType.DRINK, nutrition=NutritionFacts(calories=2))
        assert FoodEntry(**entry.model_dump(mode="json")) == entry

    def test_zero_quantity_rejected(self):
        """Quantity must be positive."""
        with pytest.raises(ValidationError):
            FoodEntry(food_name="Air", meal_type=MealType.SNACK, quantity=0, nutrition=NutritionFacts(calories=0))

    def test_negative_nutrition_rejected(self):
        """Negative nutrition values are rejected."""
        with pytest.raises(ValidationError):
            NutritionFacts(calories=-100)
        with pytest.raises(ValidationError):
            NutritionFacts(calories=100, fat=-1)

    def test_with_updates_merges_nutrition(self):
        """Partial nutrition updates keep the other nutrients."""
        entry = FoodEntry(
            food_name="Rice",
            meal_type=MealType.LUNCH,
            nutrition=NutritionFacts(calories=200, carbs=45, protein=4),
        )
        updated = entry.with_updates({"quantity": 2, "nutrition": {"calories": 210}})

        assert updated.id == entry.id
        assert updated.quantity == 2
        assert updated.nutrition.calories == 210
        assert updated.nutrition.carbs == 45


class TestDailyLog:
    """Tests for DailyLog model."""

    def test_empty_log(self):
        """A new record has nothing logged and no scores."""
        log = DailyLog(log_date=date(2024, 12, 28))
        assert log.water.consumed is None
        assert log.water.goal == 2000
        assert log.steps.count is None
        assert log.steps.goal == 10000
        assert log.exercises == []
        assert log.scores.overall is None

    def test_mood_out_of_range_rejected(self):
        """Mood rating is 1-10."""
        with pytest.raises(ValidationError):
            MetricsDelta(mood_rating=11)

    def test_sleep_over_24_hours_rejected(self):
        """Sleep duration is at most 24 hours."""
        with pytest.raises(ValidationError):
            MetricsDelta(sleep_duration=25)
