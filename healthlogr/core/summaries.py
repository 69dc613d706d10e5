"""Summary Generation - Pure functions for daily and weekly rollups.

All functions are pure: same input always produces same output, no side effects.
"""

from datetime import date, timedelta
from typing import Callable, Optional

from .models import (
    DailyLog,
    DailySummary,
    DayScore,
    FoodEntry,
    MealBreakdown,
    MealType,
    WeeklyAverages,
    WeeklySummary,
)


WEEK_DAYS = 7


def daily_summary(
    entries: list[FoodEntry],
    log_date: Optional[date] = None,
    calorie_goal: Optional[int] = None,
) -> DailySummary:
    """Sum a day's food entries into totals and a per-meal breakdown.

    Every meal bucket is present; empty buckets report zero calories and a
    zero count.

    Args:
        entries: Food entries for the day
        log_date: Date being summarized (informational)
        calorie_goal: Daily calorie target, enables calories_remaining

    Returns:
        DailySummary with quantity-scaled totals
    """
    breakdown = {meal: MealBreakdown() for meal in MealType}
    totals = {
        "calories": 0.0,
        "protein": 0.0,
        "carbs": 0.0,
        "fat": 0.0,
        "fiber": 0.0,
        "sugar": 0.0,
        "sodium": 0.0,
        "cholesterol": 0.0,
    }

    for entry in entries:
        scaled = entry.totals
        for nutrient in totals:
            totals[nutrient] += getattr(scaled, nutrient)
        bucket = breakdown[entry.meal_type]
        bucket.calories += entry.total_calories
        bucket.count += 1

    calories_remaining = None
    if calorie_goal is not None:
        calories_remaining = round(calorie_goal - totals["calories"], 1)

    return DailySummary(
        log_date=log_date,
        total_calories=round(totals["calories"], 1),
        total_protein=round(totals["protein"], 1),
        total_carbs=round(totals["carbs"], 1),
        total_fat=round(totals["fat"], 1),
        total_fiber=round(totals["fiber"], 1),
        total_sugar=round(totals["sugar"], 1),
        total_sodium=round(totals["sodium"], 1),
        total_cholesterol=round(totals["cholesterol"], 1),
        entry_count=len(entries),
        meal_breakdown=breakdown,
        calorie_goal=calorie_goal,
        calories_remaining=calories_remaining,
    )


def _average(records: list[DailyLog], value_of: Callable[[DailyLog], Optional[float]]) -> Optional[float]:
    """Sum over the records divided by their count. A record without the metric adds 0.

    None when there are no records.
    """
    if not records:
        return None
    values = (value_of(r) for r in records)
    total = sum(v for v in values if v is not None)
    return round(total / len(records), 1)


def day_score(log: DailyLog) -> DayScore:
    return DayScore(log_date=log.log_date, overall=log.scores.overall)


def weekly_summary(records: list[DailyLog], start_date: date) -> WeeklySummary:
    """Average a week of daily records.

    The window is [start_date, start_date + 7 days). Every average divides by
    the number of records that exist in the window, not by 7.

    Args:
        records: Daily logs (may be empty, partial, or extend past the window)
        start_date: First day of the window

    Returns:
        WeeklySummary; every average is None for an empty window
    """
    end_date = start_date + timedelta(days=WEEK_DAYS)

    week_logs = sorted(
        (r for r in records if start_date <= r.log_date < end_date),
        key=lambda r: r.log_date,
    )

    averages = WeeklyAverages(
        steps=_average(week_logs, lambda r: r.steps.count),
        water=_average(week_logs, lambda r: r.water.consumed),
        sleep=_average(week_logs, lambda r: r.sleep.duration),
        overall_score=_average(week_logs, lambda r: r.scores.overall),
    )

    return WeeklySummary(
        week_start=start_date,
        week_end=end_date - timedelta(days=1),
        days_logged=len(week_logs),
        averages=averages,
        daily_scores=[day_score(log) for log in week_logs],
    )
