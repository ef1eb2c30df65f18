"""Measurement units for materials and ingredients."""

from enum import StrEnum

BASE_FACTOR = 1000


class Unit(StrEnum):
    """Mass and volume units stored on materials and ingredients."""

    GRAM = "g"
    KILOGRAM = "kg"
    MILLILITER = "ml"
    LITER = "l"


_SCALED_UNITS = {Unit.KILOGRAM, Unit.LITER}
_MASS_UNITS = {Unit.GRAM, Unit.KILOGRAM}


def to_base(quantity: float, unit: Unit) -> float:
    """Convert a quantity to grams (mass) or milliliters (volume)."""
    if unit in _SCALED_UNITS:
        return quantity * BASE_FACTOR
    return quantity


def is_mass(unit: Unit) -> bool:
    """Return True for mass units, False for volume units."""
    return unit in _MASS_UNITS
