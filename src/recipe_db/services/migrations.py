"""Upgrades of stored material records to the current nutrition schema."""

from collections.abc import Iterable
from dataclasses import replace

from recipe_db.domain.materials import NUTRITION_SCHEMA_VERSION, Material


def needs_migration(materials: Iterable[Material]) -> bool:
    """Return True if any material still has legacy four-field nutrition."""
    return any(
        material.nutrition is not None and material.nutrition.is_legacy()
        for material in materials
    )


def migrate_material_data(materials: Iterable[Material]) -> list[Material]:
    """Move legacy nutrition records to the ten-field schema.

    The four legacy values are preserved and the six extended fields are
    left unknown rather than zero. Already migrated records are unchanged.
    """
    migrated: list[Material] = []
    for material in materials:
        nutrition = material.nutrition
        if nutrition is None or not nutrition.is_legacy():
            migrated.append(material)
            continue
        migrated.append(
            replace(
                material,
                nutrition=replace(
                    nutrition,
                    saturated_fat=None,
                    trans_fat=None,
                    sugar=None,
                    sodium=None,
                    fiber=None,
                    cholesterol=None,
                    schema_version=NUTRITION_SCHEMA_VERSION,
                ),
            )
        )
    return migrated
