"""Cost and nutrition calculations for recipes."""

from collections.abc import Iterable
from dataclasses import fields

from recipe_db.domain.materials import Material
from recipe_db.domain.recipes import Ingredient, NutritionTotal, RecipeCalculation
from recipe_db.domain.units import Unit, to_base

_TOTAL_FIELDS = tuple(field.name for field in fields(NutritionTotal))


def ingredient_unit_cost(material: Material, used_qty: float, used_unit: Unit) -> float:
    """Return the cost of using ``used_qty`` of a material."""
    unit_cost = material.price / to_base(material.weight, material.unit)
    return unit_cost * to_base(used_qty, used_unit)


def ingredient_nutrition(
    material: Material, used_qty: float, used_unit: Unit
) -> NutritionTotal:
    """Scale a material's nutrition to the quantity used."""
    if material.nutrition is None:
        return NutritionTotal()
    ratio = to_base(used_qty, used_unit) / to_base(material.weight, material.unit)
    values = material.nutrition.values()
    return NutritionTotal(
        **{name: (values[name] or 0.0) * ratio for name in _TOTAL_FIELDS}
    )


def add_nutrition(left: NutritionTotal, right: NutritionTotal) -> NutritionTotal:
    return NutritionTotal(
        **{name: getattr(left, name) + getattr(right, name) for name in _TOTAL_FIELDS}
    )


def per_serving(total: NutritionTotal, servings: int | float) -> NutritionTotal:
    """Divide every nutrition value by ``servings``; non-positive returns total."""
    if servings <= 0:
        return total
    return NutritionTotal(
        **{name: getattr(total, name) / servings for name in _TOTAL_FIELDS}
    )


def calculate_recipe(
    ingredients: Iterable[Ingredient],
    materials: Iterable[Material],
    servings: int | None = None,
    fuel_cost: float | None = 0.0,
    labor_cost: float | None = 0.0,
) -> RecipeCalculation:
    """Compute total and per-serving cost and nutrition for a recipe.

    Ingredients whose material cannot be found contribute nothing, so the
    calculation also works on recipes with broken references.
    """
    by_id: dict[str, Material] = {}
    for material in materials:
        by_id.setdefault(material.id, material)

    material_cost = 0.0
    nutrition = NutritionTotal()
    for ingredient in ingredients:
        material = by_id.get(ingredient.material_id)
        if material is None:
            continue
        material_cost += ingredient_unit_cost(
            material, ingredient.weight, ingredient.unit
        )
        nutrition = add_nutrition(
            nutrition,
            ingredient_nutrition(material, ingredient.weight, ingredient.unit),
        )

    fuel = fuel_cost or 0.0
    labor = labor_cost or 0.0
    total_cost = material_cost + fuel + labor
    if not servings or servings <= 0:
        return RecipeCalculation(
            material_cost=material_cost,
            fuel_cost=fuel,
            labor_cost=labor,
            total_cost=total_cost,
            total_nutrition=nutrition,
        )
    return RecipeCalculation(
        material_cost=material_cost,
        fuel_cost=fuel,
        labor_cost=labor,
        total_cost=total_cost,
        total_nutrition=nutrition,
        cost_per_serving=total_cost / servings,
        nutrition_per_serving=per_serving(nutrition, servings),
    )
