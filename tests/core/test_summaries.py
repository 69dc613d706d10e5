"""Unit tests for summary generation - pure functions, no mocks needed."""

from datetime import date

from healthlogr.core.models import (
    DailyLog,
    FoodEntry,
    MealType,
    Mood,
    NutritionFacts,
    Scores,
    Sleep,
    Steps,
    WaterIntake,
)
from healthlogr.core.summaries import daily_summary, weekly_summary


def _entry(meal_type: MealType, quantity: float, calories: float, **nutrients) -> FoodEntry:
    return FoodEntry(
        food_name="Food",
        meal_type=meal_type,
        quantity=quantity,
        nutrition=NutritionFacts(calories=calories, **nutrients),
    )


def _log(day: int, steps=None, water=None, sleep=None, overall=None) -> DailyLog:
    return DailyLog(
        log_date=date(2024, 12, day),
        steps=Steps(count=steps),
        water=WaterIntake(consumed=water),
        sleep=Sleep(duration=sleep),
        scores=Scores(overall=overall),
    )


class TestDailySummary:
    """Tests for daily_summary."""

    def test_empty_entries(self):
        """No entries gives zero totals and five empty meal buckets."""
        summary = daily_summary([])

        assert summary.total_calories == 0
        assert summary.entry_count == 0
        assert set(summary.meal_breakdown) == set(MealType)
        for bucket in summary.meal_breakdown.values():
            assert bucket.calories == 0
            assert bucket.count == 0

    def test_quantity_scales_calories_and_buckets(self):
        """Totals multiply by quantity and every bucket is reported."""
        entries = [
            _entry(MealType.BREAKFAST, 2, 100),
            _entry(MealType.DINNER, 1, 300),
        ]
        summary = daily_summary(entries)

        assert summary.total_calories == 500
        assert summary.meal_breakdown[MealType.BREAKFAST].calories == 200
        assert summary.meal_breakdown[MealType.BREAKFAST].count == 1
        assert summary.meal_breakdown[MealType.DINNER].calories == 300
        assert summary.meal_breakdown[MealType.LUNCH].calories == 0
        assert summary.meal_breakdown[MealType.LUNCH].count == 0

    def test_macros_scaled_by_quantity(self):
        """Every nutrient is multiplied by quantity before summing."""
        entries = [
            _entry(MealType.LUNCH, 1.5, 200, protein=10, carbs=20, fat=4, fiber=2, sodium=300),
            _entry(MealType.SNACK, 1, 100, protein=5, sugar=12),
        ]
        summary = daily_summary(entries)

        assert summary.total_calories == 400
        assert summary.total_protein == 20
        assert summary.total_carbs == 30
        assert summary.total_fat == 6
        assert summary.total_fiber == 3
        assert summary.total_sugar == 12
        assert summary.total_sodium == 450
        assert summary.entry_count == 2

    def test_calories_remaining_against_goal(self):
        """Remaining calories reported when a goal is given, negative if over."""
        entries = [_entry(MealType.DINNER, 1, 2500)]

        assert daily_summary(entries, calorie_goal=2000).calories_remaining == -500
        assert daily_summary(entries).calories_remaining is None

    def test_multiple_entries_same_meal(self):
        """Entries in the same meal accumulate."""
        entries = [_entry(MealType.SNACK, 1, 100), _entry(MealType.SNACK, 3, 50)]
        bucket = daily_summary(entries).meal_breakdown[MealType.SNACK]

        assert bucket.calories == 250
        assert bucket.count == 2


class TestWeeklySummary:
    """Tests for weekly_summary."""

    def test_empty_week(self):
        """No records: all averages unset, no division error."""
        summary = weekly_summary([], date(2024, 12, 22))

        assert summary.week_start == date(2024, 12, 22)
        assert summary.week_end == date(2024, 12, 28)
        assert summary.days_logged == 0
        assert summary.averages.steps is None
        assert summary.averages.water is None
        assert summary.averages.sleep is None
        assert summary.averages.overall_score is None
        assert summary.daily_scores == []

    def test_averages_over_logged_days_not_seven(self):
        """Averages divide by the number of records, not by 7."""
        logs = [
            _log(22, steps=8000, water=2000, sleep=7, overall=70),
            _log(24, steps=6000, water=1000, sleep=9, overall=80),
        ]
        summary = weekly_summary(logs, date(2024, 12, 22))

        assert summary.days_logged == 2
        assert summary.averages.steps == 7000
        assert summary.averages.water == 1500
        assert summary.averages.sleep == 8
        assert summary.averages.overall_score == 75

    def test_window_is_half_open(self):
        """The start date is included, start + 7 days is not."""
        logs = [
            _log(21, steps=99999),
            _log(22, steps=1000),
            _log(28, steps=3000),
            _log(29, steps=99999),
        ]
        summary = weekly_summary(logs, date(2024, 12, 22))

        assert summary.days_logged == 2
        assert summary.averages.steps == 2000

    def test_divides_by_record_count(self):
        """Every average divides by the records in the window, even those missing the metric."""
        logs = [
            _log(23, steps=10000, sleep=8),
            _log(24),
        ]
        summary = weekly_summary(logs, date(2024, 12, 22))

        assert summary.days_logged == 2
        assert summary.averages.steps == 5000
        assert summary.averages.sleep == 4
        assert summary.averages.water == 0

    def test_daily_scores_sorted_by_date(self):
        """Per-day overall scores are sorted by date."""
        logs = [
            _log(27, overall=60),
            _log(25, overall=80),
            DailyLog(log_date=date(2024, 12, 26), mood=Mood(rating=5)),
        ]
        summary = weekly_summary(logs, date(2024, 12, 22))

        assert [s.log_date for s in summary.daily_scores] == [
            date(2024, 12, 25),
            date(2024, 12, 26),
            date(2024, 12, 27),
        ]
        assert [s.overall for s in summary.daily_scores] == [80, None, 60]
        # (80 + 0 + 60) / 3
        assert summary.averages.overall_score == 46.7
