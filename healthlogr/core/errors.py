"""Core Errors - Caller mistakes detected by the pure functions.

Missing inputs are not errors: functions that cannot compute a value return
None. These exceptions are only raised for values outside a closed set.
"""


class HealthLogError(ValueError):
    """Base class for invalid input detected by the core."""


class InvalidUnitError(HealthLogError):
    """Unit string is not declared for the measurement kind."""

    def __init__(self, unit: str, kind: str) -> None:
        super().__init__(f"Invalid unit {unit!r} for {kind}")
        self.unit = unit
        self.kind = kind


class UnknownActivityLevelError(HealthLogError):
    """Activity level is not one of the five tiers."""


class UnknownGoalError(HealthLogError):
    """Goal is not one of the supported goals."""


class UnknownGenderError(HealthLogError):
    """Gender is not one of the supported categories."""


class UnknownMealTypeError(HealthLogError):
    """Meal type is not one of the five meal buckets."""
