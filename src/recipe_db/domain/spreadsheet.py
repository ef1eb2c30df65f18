"""Domain models for rows decoded from spreadsheet imports."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ParsedMaterialRow:
    """A material row with its validation errors."""

    row_number: int
    name: str
    price: float
    weight: float
    unit: str
    description: str | None = None
    nutrition: dict[str, float] | None = None
    errors: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class ParsedRecipeRow:
    """A single ingredient row of a recipe sheet."""

    row_number: int
    recipe_name: str
    material_name: str
    ingredient_weight: float
    ingredient_unit: str
    description: str | None = None
    servings: int | None = None
    fuel_cost: float | None = None
    labor_cost: float | None = None
    errors: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class ParsedIngredient:
    """An ingredient that still references its material by name."""

    material_name: str
    weight: float
    unit: str


@dataclass(frozen=True)
class ParsedRecipe:
    """Recipe rows grouped under one recipe name."""

    name: str
    ingredients: tuple[ParsedIngredient, ...]
    description: str | None = None
    servings: int | None = None
    fuel_cost: float | None = None
    labor_cost: float | None = None
    errors: tuple[str, ...] = field(default=())

    @property
    def is_valid(self) -> bool:
        return not self.errors and bool(self.ingredients)
