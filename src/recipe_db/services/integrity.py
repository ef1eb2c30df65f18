"""Referential integrity between recipes and the materials they use."""

import logging
from collections.abc import Iterable
from dataclasses import replace

from recipe_db.domain.integrity import OrphanedReference
from recipe_db.domain.materials import Material
from recipe_db.domain.recipes import Recipe
from recipe_db.services.identity import Clock, utc_now

_logger = logging.getLogger(__name__)


def find_material_usage(material_id: str, recipes: Iterable[Recipe]) -> list[Recipe]:
    """Return the recipes with at least one ingredient using the material."""
    return [
        recipe
        for recipe in recipes
        if any(
            ingredient.material_id == material_id for ingredient in recipe.ingredients
        )
    ]


def get_material_usage_count(material_id: str, recipes: Iterable[Recipe]) -> int:
    return len(find_material_usage(material_id, recipes))


def find_orphaned_references(
    recipes: Iterable[Recipe], materials: Iterable[Material]
) -> list[OrphanedReference]:
    """Return every recipe that references missing materials."""
    material_ids = {material.id for material in materials}
    orphaned: list[OrphanedReference] = []
    for recipe in recipes:
        missing = tuple(
            ingredient.material_id
            for ingredient in recipe.ingredients
            if ingredient.material_id not in material_ids
        )
        if missing:
            orphaned.append(
                OrphanedReference(
                    recipe_id=recipe.id,
                    recipe_name=recipe.name,
                    missing_material_ids=missing,
                )
            )
    return orphaned


def clean_orphaned_references(
    recipes: Iterable[Recipe],
    materials: Iterable[Material],
    clock: Clock = utc_now,
) -> list[Recipe]:
    """Drop ingredients that reference missing materials.

    Recipes without orphaned ingredients are returned as the same objects.
    """
    material_ids = {material.id for material in materials}
    cleaned: list[Recipe] = []
    for recipe in recipes:
        kept = tuple(
            ingredient
            for ingredient in recipe.ingredients
            if ingredient.material_id in material_ids
        )
        if len(kept) == len(recipe.ingredients):
            cleaned.append(recipe)
            continue
        cleaned.append(replace(recipe, ingredients=kept, updated_at=clock()))
    return cleaned


def replace_material_in_recipes(
    recipes: Iterable[Recipe],
    old_id: str,
    new_id: str,
    clock: Clock = utc_now,
) -> list[Recipe]:
    """Point every ingredient using ``old_id`` at ``new_id``.

    Quantities and units are kept. Ingredients that end up referencing the
    same material stay separate entries.
    """
    updated: list[Recipe] = []
    touched = 0
    for recipe in recipes:
        if not any(
            ingredient.material_id == old_id for ingredient in recipe.ingredients
        ):
            updated.append(recipe)
            continue
        ingredients = tuple(
            replace(ingredient, material_id=new_id)
            if ingredient.material_id == old_id
            else ingredient
            for ingredient in recipe.ingredients
        )
        updated.append(replace(recipe, ingredients=ingredients, updated_at=clock()))
        touched += 1
    if touched:
        _logger.info(
            "Replaced material %s with %s in %s recipes", old_id, new_id, touched
        )
    return updated
