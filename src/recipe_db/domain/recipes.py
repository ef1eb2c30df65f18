"""Domain models for recipes and their derived figures."""

from dataclasses import dataclass
from datetime import datetime

from recipe_db.domain.units import Unit

RECIPE_NAME_MAX_LENGTH = 100


@dataclass(frozen=True)
class Ingredient:
    """A quantity of a referenced material used by a recipe."""

    material_id: str
    weight: float
    unit: Unit


@dataclass(frozen=True)
class Recipe:
    """A named composition of ingredients plus auxiliary costs."""

    id: str
    name: str
    ingredients: tuple[Ingredient, ...]
    created_at: datetime
    updated_at: datetime
    description: str | None = None
    servings: int | None = None
    fuel_cost: float | None = None
    labor_cost: float | None = None

    def material_ids(self) -> set[str]:
        """Return the distinct material ids referenced by the recipe."""
        return {ingredient.material_id for ingredient in self.ingredients}


@dataclass(frozen=True)
class NutritionTotal:
    """Summed nutrition values, with unknown values counted as zero."""

    calories: float = 0.0
    protein: float = 0.0
    fat: float = 0.0
    saturated_fat: float = 0.0
    trans_fat: float = 0.0
    carbohydrates: float = 0.0
    sugar: float = 0.0
    sodium: float = 0.0
    fiber: float = 0.0
    cholesterol: float = 0.0


@dataclass(frozen=True)
class RecipeCalculation:
    """Cost and nutrition figures for a recipe."""

    material_cost: float
    fuel_cost: float
    labor_cost: float
    total_cost: float
    total_nutrition: NutritionTotal
    cost_per_serving: float | None = None
    nutrition_per_serving: NutritionTotal | None = None
