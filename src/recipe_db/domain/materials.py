"""Domain models for priced materials."""

from dataclasses import dataclass, fields
from datetime import datetime

from recipe_db.domain.units import Unit

NUTRITION_SCHEMA_VERSION = 2
MATERIAL_NAME_MAX_LENGTH = 50

LEGACY_NUTRITION_FIELDS = ("calories", "protein", "fat", "carbohydrates")
EXTENDED_NUTRITION_FIELDS = (
    "saturated_fat",
    "trans_fat",
    "sugar",
    "sodium",
    "fiber",
    "cholesterol",
)


@dataclass(frozen=True)
class Nutrition:
    """Nutrition values for the full quantity of a material.

    ``None`` means the value is unknown, which is distinct from a measured
    zero. ``schema_version`` is 1 for records written before the six extended
    fields existed and 2 for records in the current shape.

    The version is an explicit marker, not derived from which values are
    set: a record built in code defaults to the current schema even when
    only the four legacy values are filled in, and only counts as legacy
    (``is_legacy``) when created with ``schema_version=1``. Records read
    from stored documents get their version from the keys present.
    """

    calories: float | None = None
    protein: float | None = None
    fat: float | None = None
    saturated_fat: float | None = None
    trans_fat: float | None = None
    carbohydrates: float | None = None
    sugar: float | None = None
    sodium: float | None = None
    fiber: float | None = None
    cholesterol: float | None = None
    schema_version: int = NUTRITION_SCHEMA_VERSION

    def has_legacy_fields(self) -> bool:
        """Return True when any of the four legacy fields is set."""
        return any(getattr(self, name) is not None for name in LEGACY_NUTRITION_FIELDS)

    def has_extended_fields(self) -> bool:
        """Return True when any of the six extended fields is set."""
        return any(
            getattr(self, name) is not None for name in EXTENDED_NUTRITION_FIELDS
        )

    def is_legacy(self) -> bool:
        """Return True for a record still in the four-field shape."""
        return (
            self.schema_version < NUTRITION_SCHEMA_VERSION
            and self.has_legacy_fields()
            and not self.has_extended_fields()
        )

    def values(self) -> dict[str, float | None]:
        """Return the nutrient values keyed by field name."""
        return {
            field.name: getattr(self, field.name)
            for field in fields(self)
            if field.name != "schema_version"
        }


@dataclass(frozen=True)
class Material:
    """A priced ingredient: ``price`` buys ``weight`` ``unit`` of it."""

    id: str
    name: str
    price: float
    weight: float
    unit: Unit
    created_at: datetime
    updated_at: datetime
    description: str | None = None
    nutrition: Nutrition | None = None
