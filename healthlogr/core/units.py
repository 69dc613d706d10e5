"""Unit Conversion - Pure functions mapping user units to canonical units.

Canonical units: weight kg, height cm, water ml, temperature °C, distance km.
"""

from .errors import InvalidUnitError


KG_PER_LB = 0.45359237
CM_PER_FOOT = 30.48
CM_PER_INCH = 2.54
ML_PER_OZ = 29.5735
ML_PER_GLASS = 250.0
KM_PER_MILE = 1.609344

# Linear conversions: unit -> factor to canonical
_FACTORS: dict[str, dict[str, float]] = {
    "weight": {"kg": 1.0, "lbs": KG_PER_LB},
    "height": {"cm": 1.0, "ft": CM_PER_FOOT, "in": CM_PER_INCH},
    "water": {"ml": 1.0, "oz": ML_PER_OZ, "glasses": ML_PER_GLASS},
    "distance": {"km": 1.0, "miles": KM_PER_MILE},
}

TEMPERATURE_UNITS = ("C", "F")

CANONICAL_UNITS = {
    "weight": "kg",
    "height": "cm",
    "water": "ml",
    "temperature": "C",
    "distance": "km",
}


def units_for(kind: str) -> tuple[str, ...]:
    """List the declared units for a measurement kind.

    Raises:
        InvalidUnitError: If the kind itself is unknown
    """
    if kind == "temperature":
        return TEMPERATURE_UNITS
    if kind not in _FACTORS:
        raise InvalidUnitError(kind, "measurement kind")
    return tuple(_FACTORS[kind])


def _factor(unit: str, kind: str) -> float:
    if unit not in units_for(kind):
        raise InvalidUnitError(unit, kind)
    return _FACTORS[kind][unit]


def to_canonical(value: float, from_unit: str, kind: str) -> float:
    """Convert a value in a user unit to the canonical unit for its kind.

    Args:
        value: Measured value
        from_unit: Unit the value is expressed in (e.g. "lbs")
        kind: One of weight, height, water, temperature, distance

    Returns:
        Value in the canonical unit

    Raises:
        InvalidUnitError: If the unit is not declared for the kind
    """
    if kind == "temperature":
        if from_unit not in TEMPERATURE_UNITS:
            raise InvalidUnitError(from_unit, kind)
        return (value - 32) * 5 / 9 if from_unit == "F" else value
    return value * _factor(from_unit, kind)


def from_canonical(value: float, to_unit: str, kind: str) -> float:
    """Convert a canonical value back to a user unit. Inverse of to_canonical."""
    if kind == "temperature":
        if to_unit not in TEMPERATURE_UNITS:
            raise InvalidUnitError(to_unit, kind)
        return value * 9 / 5 + 32 if to_unit == "F" else value
    return value / _factor(to_unit, kind)
