"""MCP Server - Tool definitions for health tracking.

Defines the MCP tools Claude can invoke to maintain a user's profile, log
food and daily health metrics, and read back scores and summaries. Tools
are methods on HealthTools so they share an explicitly injected
HealthServices instead of module-level clients.
"""

import logging
from contextvars import ContextVar
from datetime import date, timedelta

from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings

from ..core.models import (
    ActivityLevel,
    DataSource,
    Exercise,
    ExerciseType,
    FoodEntry,
    Gender,
    Goal,
    Intensity,
    MealType,
    MetricsDelta,
    NutritionFacts,
    ProfileDelta,
    SleepQuality,
)
from ..core.summaries import daily_summary, weekly_summary
from ..core.units import CANONICAL_UNITS, to_canonical
from .services import HealthServices


logger = logging.getLogger(__name__)

# Context variable to store current user_id per request
current_user_id: ContextVar[str | None] = ContextVar("current_user_id", default=None)

INSTRUCTIONS = """HealthLogr - Personal health tracking assistant.

Use these tools to keep the user's profile up to date, log meals and daily
health metrics (water, steps, sleep, mood, exercise), and report daily
scores and weekly trends.

On first use, call update_profile with height, weight, age and gender so the
calorie goal can be calculated. After logging, show the updated scores."""


def get_user_id() -> str:
    """Get current authenticated user ID.

    Raises:
        RuntimeError: If no user is authenticated
    """
    user_id = current_user_id.get()
    if user_id is None:
        raise RuntimeError("No authenticated user. Ensure API key is provided.")
    return user_id


def _parse_date(date_str: str | None) -> date:
    """YYYY-MM-DD to date; today when omitted."""
    if date_str is None:
        return date.today()
    try:
        return date.fromisoformat(date_str)
    except ValueError:
        raise ValueError("Invalid date format. Use YYYY-MM-DD.") from None


def _error(exc: ValueError) -> dict:
    logger.info("Rejected tool input: %s", exc)
    return {"error": str(exc)}


class HealthTools:
    """Tool implementations bound to one HealthServices instance."""

    def __init__(self, services: HealthServices) -> None:
        self._services = services

    @property
    def _store(self):
        return self._services.store

    @property
    def _coordinator(self):
        return self._services.coordinator

    # ==================== Profile Tools ====================

    def update_profile(
        self,
        age: int | None = None,
        gender: str | None = None,
        height: float | None = None,
        height_unit: str = "cm",
        weight: float | None = None,
        weight_unit: str = "kg",
        activity_level: str | None = None,
        goal: str | None = None,
    ) -> dict:
        """Create or update the user's profile and recalculate BMI, BMR and calorie goal.

        Only provided fields are changed.

        Args:
            age: Age in years (13-120)
            gender: "Male", "Female" or "Other"
            height: Height value in height_unit
            height_unit: "cm", "ft" or "in"
            weight: Weight value in weight_unit
            weight_unit: "kg" or "lbs"
            activity_level: Sedentary, Lightly Active, Moderately Active, Very Active or Extra Active
            goal: Lose Weight, Maintain Weight, Gain Weight, Build Muscle or Improve Health

        Returns:
            The stored profile with derived metrics
        """
        user_id = get_user_id()
        try:
            delta = ProfileDelta(
                age=age,
                gender=Gender.parse(gender) if gender is not None else None,
                height=to_canonical(height, height_unit, "height") if height is not None else None,
                weight=to_canonical(weight, weight_unit, "weight") if weight is not None else None,
                activity_level=ActivityLevel.parse(activity_level) if activity_level is not None else None,
                goal=Goal.parse(goal) if goal is not None else None,
            )
            record = self._coordinator.on_profile_write(user_id, delta)
        except ValueError as e:
            return _error(e)

        return record.model_dump(mode="json")

    def get_profile(self) -> dict:
        """Retrieve the user's profile with BMI, BMR and daily calorie goal.

        Returns:
            Profile dictionary, or error message if not set up
        """
        record = self._store.get_profile(get_user_id())
        if record is None:
            return {"error": "No profile found. Please use update_profile first."}
        return record.model_dump(mode="json")

    # ==================== Food Tools ====================

    def log_food(
        self,
        food_name: str,
        meal_type: str,
        calories: float,
        protein: float = 0,
        carbs: float = 0,
        fat: float = 0,
        fiber: float = 0,
        sugar: float = 0,
        sodium: float = 0,
        cholesterol: float = 0,
        quantity: float = 1,
        unit: str = "serving",
        brand: str | None = None,
        notes: str | None = None,
        date_str: str | None = None,
    ) -> dict:
        """Add a food entry to a day's log.

        Nutrition values are per serving; totals are multiplied by quantity.

        Args:
            food_name: Name of the food (e.g., "Oatmeal")
            meal_type: Breakfast, Lunch, Dinner, Snack or Drink
            calories: Calories per serving
            protein: Protein grams per serving
            carbs: Carbohydrate grams per serving
            fat: Fat grams per serving
            fiber: Fiber grams per serving
            sugar: Sugar grams per serving
            sodium: Sodium milligrams per serving
            cholesterol: Cholesterol milligrams per serving
            quantity: Number of servings
            unit: Serving unit label
            brand: Optional brand
            notes: Optional notes
            date_str: Date in YYYY-MM-DD format (defaults to today)

        Returns:
            The created entry and the updated daily summary
        """
        user_id = get_user_id()
        try:
            entry = FoodEntry(
                food_name=food_name,
                brand=brand,
                meal_type=MealType.parse(meal_type),
                quantity=quantity,
                unit=unit,
                nutrition=NutritionFacts(
                    calories=calories,
                    protein=protein,
                    carbs=carbs,
                    fat=fat,
                    fiber=fiber,
                    sugar=sugar,
                    sodium=sodium,
                    cholesterol=cholesterol,
                ),
                log_date=_parse_date(date_str),
                notes=notes,
            )
        except ValueError as e:
            return _error(e)

        log = self._store.add_food_entry(user_id, entry)
        return {
            "entry": entry.model_dump(mode="json"),
            "daily_summary": self._summarize_food(user_id, log.log_date, log.entries),
        }

    def update_food(
        self,
        entry_id: str,
        date_str: str | None = None,
        food_name: str | None = None,
        meal_type: str | None = None,
        quantity: float | None = None,
        calories: float | None = None,
        protein: float | None = None,
        carbs: float | None = None,
        fat: float | None = None,
        notes: str | None = None,
    ) -> dict:
        """Update an existing food entry. Only provided fields are updated.

        Args:
            entry_id: The ID of the entry to update
            date_str: Date of the entry in YYYY-MM-DD format (defaults to today)
            food_name: New name
            meal_type: New meal type
            quantity: New number of servings
            calories: New calories per serving
            protein: New protein grams per serving
            carbs: New carbohydrate grams per serving
            fat: New fat grams per serving
            notes: New notes

        Returns:
            Updated entry and new daily summary
        """
        user_id = get_user_id()
        try:
            log_date = _parse_date(date_str)
            updates: dict = {}
            if food_name is not None:
                updates["food_name"] = food_name
            if meal_type is not None:
                updates["meal_type"] = MealType.parse(meal_type)
            if quantity is not None:
                updates["quantity"] = quantity
            if notes is not None:
                updates["notes"] = notes
            nutrition = {
                k: v
                for k, v in {"calories": calories, "protein": protein, "carbs": carbs, "fat": fat}.items()
                if v is not None
            }
            if nutrition:
                updates["nutrition"] = nutrition

            if not updates:
                return {"error": "No updates provided."}

            log = self._store.update_food_entry(user_id, entry_id, updates, log_date)
        except ValueError as e:
            return _error(e)

        if log is None:
            return {"error": "Entry not found."}

        updated_entry = next((e for e in log.entries if e.id == entry_id), None)
        return {
            "entry": updated_entry.model_dump(mode="json") if updated_entry else None,
            "daily_summary": self._summarize_food(user_id, log_date, log.entries),
        }

    def delete_food(self, entry_id: str, date_str: str | None = None) -> dict:
        """Delete a food entry.

        Args:
            entry_id: The ID of the entry to delete
            date_str: Date of the entry in YYYY-MM-DD format (defaults to today)

        Returns:
            Confirmation and updated daily summary
        """
        user_id = get_user_id()
        try:
            log_date = _parse_date(date_str)
        except ValueError as e:
            return _error(e)

        log = self._store.delete_food_entry(user_id, entry_id, log_date)
        if log is None:
            return {"error": "Entry not found."}

        return {
            "success": True,
            "entries_remaining": len(log.entries),
            "daily_summary": self._summarize_food(user_id, log_date, log.entries),
        }

    # ==================== Health Metric Tools ====================

    def log_metrics(
        self,
        date_str: str | None = None,
        water_added: float | None = None,
        water_goal: float | None = None,
        water_unit: str = "ml",
        steps: int | None = None,
        steps_goal: int | None = None,
        distance: float | None = None,
        distance_unit: str = "km",
        active_minutes: int | None = None,
        sleep_hours: float | None = None,
        sleep_quality: str | None = None,
        mood_rating: int | None = None,
        stress_level: int | None = None,
        mood_notes: str | None = None,
        weight: float | None = None,
        weight_unit: str = "kg",
        body_temperature: float | None = None,
        temperature_unit: str = "C",
        data_source: str | None = None,
    ) -> dict:
        """Record health metrics for a day and recalculate the day's scores.

        Only provided fields are changed. Water is added to what was already logged.

        Args:
            date_str: Date in YYYY-MM-DD format (defaults to today)
            water_added: Amount of water drunk, in water_unit
            water_goal: Daily water target, in water_unit
            water_unit: "ml", "oz" or "glasses"
            steps: Total step count for the day
            steps_goal: Daily step target
            distance: Distance walked, in distance_unit
            distance_unit: "km" or "miles"
            active_minutes: Active minutes
            sleep_hours: Hours slept (0-24)
            sleep_quality: Poor, Fair, Good or Excellent
            mood_rating: Mood from 1 to 10
            stress_level: Stress from 1 to 10
            mood_notes: Free-text mood notes
            weight: Body weight, in weight_unit
            weight_unit: "kg" or "lbs"
            body_temperature: Temperature, in temperature_unit
            temperature_unit: "C" or "F"
            data_source: manual, apple_health, google_fit, fitbit, garmin or samsung_health

        Returns:
            The day's record with updated scores
        """
        user_id = get_user_id()
        try:
            log_date = _parse_date(date_str)
            delta = MetricsDelta(
                water_added=_convert(water_added, water_unit, "water"),
                water_goal=_convert(water_goal, water_unit, "water"),
                steps_count=steps,
                steps_goal=steps_goal,
                steps_distance=_convert(distance, distance_unit, "distance"),
                active_minutes=active_minutes,
                sleep_duration=sleep_hours,
                sleep_quality=SleepQuality(sleep_quality) if sleep_quality is not None else None,
                mood_rating=mood_rating,
                stress_level=stress_level,
                mood_notes=mood_notes,
                weight=_convert(weight, weight_unit, "weight"),
                body_temperature=_convert(body_temperature, temperature_unit, "temperature"),
                data_source=DataSource(data_source) if data_source is not None else None,
            )
            log = self._coordinator.on_daily_log_write(user_id, log_date, delta)
        except ValueError as e:
            return _error(e)

        return log.model_dump(mode="json")

    def add_exercise(
        self,
        exercise_type: str,
        duration_minutes: float,
        calories_burned: float = 0,
        name: str | None = None,
        intensity: str | None = None,
        date_str: str | None = None,
    ) -> dict:
        """Log a workout for a day. Each exercise adds to the activity score.

        Args:
            exercise_type: Cardio, Strength, Flexibility, Sports, Yoga or Other
            duration_minutes: Duration in minutes
            calories_burned: Estimated calories burned
            name: Optional name (e.g., "Morning run")
            intensity: Low, Moderate or High
            date_str: Date in YYYY-MM-DD format (defaults to today)

        Returns:
            The day's record with updated scores
        """
        user_id = get_user_id()
        try:
            exercise = Exercise(
                type=ExerciseType(exercise_type),
                name=name,
                duration=duration_minutes,
                calories_burned=calories_burned,
                intensity=Intensity(intensity) if intensity is not None else None,
            )
            log = self._coordinator.on_daily_log_write(
                user_id, _parse_date(date_str), MetricsDelta(add_exercises=[exercise])
            )
        except ValueError as e:
            return _error(e)

        return log.model_dump(mode="json")

    def record_nutrition_score(self, score: float, date_str: str | None = None) -> dict:
        """Store the day's nutrition score (0-100) from food-log analysis and rescore the day.

        Args:
            score: Nutrition score between 0 and 100
            date_str: Date in YYYY-MM-DD format (defaults to today)

        Returns:
            The day's updated scores
        """
        user_id = get_user_id()
        if not 0 <= score <= 100:
            return {"error": "Nutrition score must be between 0 and 100."}
        try:
            log_date = _parse_date(date_str)
        except ValueError as e:
            return _error(e)

        self._store.save_nutrition_score(user_id, log_date, score)
        log = self._coordinator.rescore_day(user_id, log_date)
        return {"date": log_date.isoformat(), "scores": log.scores.model_dump()}

    # ==================== Query Tools ====================

    def get_daily_summary(self, date_str: str | None = None) -> dict:
        """Get a day's food totals, meal breakdown, calorie goal and health scores.

        Args:
            date_str: Date in YYYY-MM-DD format (defaults to today)

        Returns:
            Dictionary with food summary, entries and scores
        """
        user_id = get_user_id()
        try:
            log_date = _parse_date(date_str)
        except ValueError as e:
            return _error(e)

        food_log = self._store.get_food_log(user_id, log_date)
        entries = food_log.entries if food_log else []
        health_log = self._store.get_daily_log(user_id, log_date)

        return {
            "date": log_date.isoformat(),
            "entries": [e.model_dump(mode="json") for e in entries],
            "summary": self._summarize_food(user_id, log_date, entries),
            "scores": health_log.scores.model_dump() if health_log else None,
        }

    def get_daily_scores(self, date_str: str | None = None) -> dict:
        """Get a day's wellness scores. Categories without data are null.

        Args:
            date_str: Date in YYYY-MM-DD format (defaults to today)
        """
        user_id = get_user_id()
        try:
            log_date = _parse_date(date_str)
        except ValueError as e:
            return _error(e)

        log = self._store.get_daily_log(user_id, log_date)
        if log is None:
            return {"date": log_date.isoformat(), "scores": None, "message": "Nothing logged for this day."}
        return {"date": log_date.isoformat(), "scores": log.scores.model_dump()}

    def get_weekly_summary(self, start_date_str: str | None = None) -> dict:
        """Average steps, water, sleep and overall score over a 7-day window.

        Averages only count days that were logged.

        Args:
            start_date_str: First day in YYYY-MM-DD format (defaults to 6 days ago)

        Returns:
            Weekly averages and each logged day's overall score
        """
        user_id = get_user_id()
        try:
            if start_date_str is None:
                start_date = date.today() - timedelta(days=6)
            else:
                start_date = _parse_date(start_date_str)
        except ValueError as e:
            return _error(e)

        logs = self._store.get_daily_logs_range(user_id, start_date, start_date + timedelta(days=6))
        return weekly_summary(logs, start_date).model_dump(mode="json")

    def convert_units(self, value: float, from_unit: str, kind: str) -> dict:
        """Convert a measurement to the unit HealthLogr stores.

        Args:
            value: Value to convert
            from_unit: Unit of the value (e.g., "lbs", "ft", "oz", "F", "miles")
            kind: weight, height, water, temperature or distance
        """
        try:
            converted = to_canonical(value, from_unit, kind)
        except ValueError as e:
            return _error(e)
        return {"value": round(converted, 2), "unit": CANONICAL_UNITS[kind]}

    # ==================== Helpers ====================

    def _summarize_food(self, user_id: str, log_date: date, entries: list[FoodEntry]) -> dict:
        """Daily food summary against the profile's calorie goal, if a profile exists."""
        profile = self._store.get_profile(user_id)
        calorie_goal = profile.derived.daily_calorie_goal if profile else None
        return daily_summary(entries, log_date, calorie_goal).model_dump(mode="json")


def _convert(value: float | None, unit: str, kind: str) -> float | None:
    if value is None:
        return None
    return to_canonical(value, unit, kind)


TOOL_NAMES = (
    "update_profile",
    "get_profile",
    "log_food",
    "update_food",
    "delete_food",
    "log_metrics",
    "add_exercise",
    "record_nutrition_score",
    "get_daily_summary",
    "get_daily_scores",
    "get_weekly_summary",
    "convert_units",
)


def create_mcp(services: HealthServices, allowed_hosts: list[str] | None = None) -> FastMCP:
    """Create a FastMCP server with every health tool registered.

    Args:
        services: Collaborators the tools operate on
        allowed_hosts: Host headers accepted by DNS rebinding protection

    Returns:
        FastMCP instance using stateless HTTP for cloud deployments
    """
    transport_security = TransportSecuritySettings(
        enable_dns_rebinding_protection=True,
        allowed_hosts=allowed_hosts or ["localhost:*", "127.0.0.1:*", "*.run.app:*", "*.run.app"],
    )

    mcp = FastMCP(
        "healthlogr",
        instructions=INSTRUCTIONS,
        stateless_http=True,
        transport_security=transport_security,
    )

    tools = HealthTools(services)
    for name in TOOL_NAMES:
        mcp.tool()(getattr(tools, name))

    return mcp
