"""Spreadsheet rows: validation, name-based import, export and templates.

Rows arrive already decoded from the workbook as mappings keyed by the
column header. Spreadsheet rows carry no identity, so duplicates are
detected by name and every accepted record gets a fresh id. Exported and
template rows use the same headers, so they can be read back by the
parsers here.
"""

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, replace

from recipe_db.domain.materials import MATERIAL_NAME_MAX_LENGTH, Material, Nutrition
from recipe_db.domain.recipes import RECIPE_NAME_MAX_LENGTH, Ingredient, Recipe
from recipe_db.domain.spreadsheet import (
    ParsedIngredient,
    ParsedMaterialRow,
    ParsedRecipe,
    ParsedRecipeRow,
)
from recipe_db.domain.transfer import ConflictStrategy, ImportResult
from recipe_db.domain.units import Unit
from recipe_db.services.costing import calculate_recipe
from recipe_db.services.identity import Clock, IdFactory, new_id, utc_now
from recipe_db.services.transfer import DEFAULT_RENAME_SUFFIX, index_of

_logger = logging.getLogger(__name__)

FIRST_DATA_ROW = 2
VALID_UNITS = tuple(unit.value for unit in Unit)

MATERIAL_COLUMNS = {
    "name": "Name",
    "price": "Price",
    "weight": "Weight",
    "unit": "Unit",
    "description": "Description",
}

NUTRITION_COLUMNS = {
    "Calories (kcal)": "calories",
    "Protein (g)": "protein",
    "Fat (g)": "fat",
    "Saturated fat (g)": "saturated_fat",
    "Trans fat (g)": "trans_fat",
    "Carbohydrates (g)": "carbohydrates",
    "Sugar (g)": "sugar",
    "Sodium (mg)": "sodium",
    "Fiber (g)": "fiber",
    "Cholesterol (mg)": "cholesterol",
}

RECIPE_COLUMNS = {
    "recipe_name": "Recipe name",
    "description": "Description",
    "servings": "Servings",
    "fuel_cost": "Fuel cost",
    "labor_cost": "Labor cost",
    "material_name": "Material name",
    "weight": "Amount",
    "unit": "Amount unit",
}

TOTAL_COST_COLUMN = "Total cost"
COST_PER_SERVING_COLUMN = "Cost per serving"
UNKNOWN_MATERIAL_NAME = "(unknown material)"


def parse_material_rows(
    rows: Iterable[Mapping[str, object]],
) -> list[ParsedMaterialRow]:
    """Validate material rows, collecting every problem per row."""
    parsed: list[ParsedMaterialRow] = []
    for offset, row in enumerate(rows):
        errors: list[str] = []

        name = _text(row.get(MATERIAL_COLUMNS["name"]))
        if not name:
            errors.append("Name is required")
        elif len(name) > MATERIAL_NAME_MAX_LENGTH:
            errors.append(f"Name must be at most {MATERIAL_NAME_MAX_LENGTH} characters")

        price = _number(row.get(MATERIAL_COLUMNS["price"]))
        if price is None or price < 0:
            errors.append("Price must be a number greater than or equal to 0")

        weight = _number(row.get(MATERIAL_COLUMNS["weight"]))
        if weight is None or weight <= 0:
            errors.append("Weight must be a number greater than 0")

        unit = _text(row.get(MATERIAL_COLUMNS["unit"])).lower()
        if unit not in VALID_UNITS:
            errors.append(f"Unit must be one of {', '.join(VALID_UNITS)}")

        nutrition: dict[str, float] = {}
        for column, field_name in NUTRITION_COLUMNS.items():
            raw = row.get(column)
            if _is_blank(raw):
                continue
            value = _number(raw)
            if value is None or value < 0:
                errors.append(f"{column} must be a number greater than or equal to 0")
            else:
                nutrition[field_name] = value

        parsed.append(
            ParsedMaterialRow(
                row_number=offset + FIRST_DATA_ROW,
                name=name,
                price=price or 0.0,
                weight=weight or 0.0,
                unit=unit,
                description=_text(row.get(MATERIAL_COLUMNS["description"])) or None,
                nutrition=nutrition or None,
                errors=tuple(errors),
            )
        )
    return parsed


def parse_recipe_rows(rows: Iterable[Mapping[str, object]]) -> list[ParsedRecipeRow]:
    """Validate recipe sheet rows; each row holds one ingredient."""
    parsed: list[ParsedRecipeRow] = []
    for offset, row in enumerate(rows):
        errors: list[str] = []

        recipe_name = _text(row.get(RECIPE_COLUMNS["recipe_name"]))
        if not recipe_name:
            errors.append("Recipe name is required")
        elif len(recipe_name) > RECIPE_NAME_MAX_LENGTH:
            errors.append(
                f"Recipe name must be at most {RECIPE_NAME_MAX_LENGTH} characters"
            )

        servings: int | None = None
        raw_servings = row.get(RECIPE_COLUMNS["servings"])
        if not _is_blank(raw_servings):
            value = _number(raw_servings)
            if value is None or value < 1 or not value.is_integer():
                errors.append("Servings must be a whole number of at least 1")
            else:
                servings = int(value)

        fuel_cost = _optional_cost(row, RECIPE_COLUMNS["fuel_cost"], errors)
        labor_cost = _optional_cost(row, RECIPE_COLUMNS["labor_cost"], errors)

        material_name = _text(row.get(RECIPE_COLUMNS["material_name"]))
        if not material_name:
            errors.append("Material name is required")

        weight = _number(row.get(RECIPE_COLUMNS["weight"]))
        if weight is None or weight <= 0:
            errors.append("Amount must be a number greater than 0")

        unit = _text(row.get(RECIPE_COLUMNS["unit"])).lower()
        if unit not in VALID_UNITS:
            errors.append(f"Amount unit must be one of {', '.join(VALID_UNITS)}")

        parsed.append(
            ParsedRecipeRow(
                row_number=offset + FIRST_DATA_ROW,
                recipe_name=recipe_name,
                material_name=material_name,
                ingredient_weight=weight or 0.0,
                ingredient_unit=unit,
                description=_text(row.get(RECIPE_COLUMNS["description"])) or None,
                servings=servings,
                fuel_cost=fuel_cost,
                labor_cost=labor_cost,
                errors=tuple(errors),
            )
        )
    return parsed


def group_recipe_rows(
    rows: Iterable[ParsedRecipeRow], materials: Sequence[Material]
) -> list[ParsedRecipe]:
    """Group ingredient rows by recipe name.

    Recipe-level fields come from the first row of each group. Unknown
    material names are reported as errors on the recipe.
    """
    groups: dict[str, list[ParsedRecipeRow]] = {}
    for row in rows:
        if row.recipe_name:
            groups.setdefault(row.recipe_name, []).append(row)

    material_names = {material.name for material in materials}
    recipes: list[ParsedRecipe] = []
    for name, group in groups.items():
        first = group[0]
        errors: list[str] = []
        ingredients: list[ParsedIngredient] = []
        for row in group:
            errors.extend(f"Row {row.row_number}: {error}" for error in row.errors)
            if not row.material_name:
                continue
            if row.material_name not in material_names:
                errors.append(_missing_material_message(row.material_name))
            if _ingredient_fields_valid(row):
                ingredients.append(
                    ParsedIngredient(
                        material_name=row.material_name,
                        weight=row.ingredient_weight,
                        unit=row.ingredient_unit,
                    )
                )
        recipes.append(
            ParsedRecipe(
                name=name,
                ingredients=tuple(ingredients),
                description=first.description,
                servings=first.servings,
                fuel_cost=first.fuel_cost,
                labor_cost=first.labor_cost,
                errors=tuple(dict.fromkeys(errors)),
            )
        )
    return recipes


def has_duplicate_names(
    names: Iterable[str], records: Iterable[Material | Recipe]
) -> bool:
    """Return True if any incoming name already exists among ``records``."""
    existing = {record.name for record in records}
    return any(name in existing for name in names)


def material_rows(materials: Iterable[Material]) -> list[dict[str, object]]:
    """Build one sheet row per material; unknown values are left blank."""
    rows: list[dict[str, object]] = []
    for material in materials:
        values = material.nutrition.values() if material.nutrition else {}
        row: dict[str, object] = {
            MATERIAL_COLUMNS["name"]: material.name,
            MATERIAL_COLUMNS["price"]: material.price,
            MATERIAL_COLUMNS["weight"]: material.weight,
            MATERIAL_COLUMNS["unit"]: material.unit.value,
            MATERIAL_COLUMNS["description"]: material.description or "",
        }
        for column, field_name in NUTRITION_COLUMNS.items():
            row[column] = _cell(values.get(field_name))
        rows.append(row)
    return rows


def recipe_rows(
    recipes: Iterable[Recipe], materials: Sequence[Material]
) -> list[dict[str, object]]:
    """Build one sheet row per ingredient.

    Every row repeats the recipe name. Recipe fields and the computed
    ``Total cost`` and ``Cost per serving`` columns are filled on the first
    row of a recipe only. A recipe without ingredients still gets one row
    with blank ingredient cells, and ingredients whose material is missing
    are named ``(unknown material)``.
    """
    names: dict[str, str] = {}
    for material in materials:
        names.setdefault(material.id, material.name)

    rows: list[dict[str, object]] = []
    for recipe in recipes:
        calculation = calculate_recipe(
            recipe.ingredients,
            materials,
            servings=recipe.servings,
            fuel_cost=recipe.fuel_cost,
            labor_cost=recipe.labor_cost,
        )
        first: dict[str, object] = {
            RECIPE_COLUMNS["description"]: recipe.description or "",
            RECIPE_COLUMNS["servings"]: _cell(recipe.servings),
            RECIPE_COLUMNS["fuel_cost"]: _cell(recipe.fuel_cost),
            RECIPE_COLUMNS["labor_cost"]: _cell(recipe.labor_cost),
            TOTAL_COST_COLUMN: calculation.total_cost,
            COST_PER_SERVING_COLUMN: _cell(calculation.cost_per_serving),
        }
        if not recipe.ingredients:
            rows.append(
                {
                    RECIPE_COLUMNS["recipe_name"]: recipe.name,
                    **first,
                    RECIPE_COLUMNS["material_name"]: "",
                    RECIPE_COLUMNS["weight"]: "",
                    RECIPE_COLUMNS["unit"]: "",
                }
            )
            continue
        for position, item in enumerate(recipe.ingredients):
            recipe_cells = first if position == 0 else dict.fromkeys(first, "")
            rows.append(
                {
                    RECIPE_COLUMNS["recipe_name"]: recipe.name,
                    **recipe_cells,
                    RECIPE_COLUMNS["material_name"]: names.get(
                        item.material_id, UNKNOWN_MATERIAL_NAME
                    ),
                    RECIPE_COLUMNS["weight"]: item.weight,
                    RECIPE_COLUMNS["unit"]: item.unit.value,
                }
            )
    return rows


def material_template_rows() -> list[dict[str, object]]:
    """Example rows showing the material sheet layout."""
    flour = Nutrition(
        calories=364,
        protein=12.7,
        fat=1.3,
        saturated_fat=0.2,
        trans_fat=0,
        carbohydrates=72.5,
        sugar=0.3,
        sodium=2,
        fiber=2.7,
        cholesterol=0,
    )
    butter = Nutrition(
        calories=717,
        protein=0.85,
        fat=81,
        saturated_fat=51,
        trans_fat=3.3,
        carbohydrates=0.06,
        sugar=0.06,
        sodium=11,
        fiber=0,
        cholesterol=215,
    )
    examples = (
        ("(Example) Bread flour", 45, 1000, "Higher-protein flour", flour),
        ("(Example) Unsalted butter", 120, 500, "", butter),
    )
    rows: list[dict[str, object]] = []
    for name, price, weight, description, nutrition in examples:
        row: dict[str, object] = {
            MATERIAL_COLUMNS["name"]: name,
            MATERIAL_COLUMNS["price"]: price,
            MATERIAL_COLUMNS["weight"]: weight,
            MATERIAL_COLUMNS["unit"]: Unit.GRAM.value,
            MATERIAL_COLUMNS["description"]: description,
        }
        values = nutrition.values()
        row.update(
            {column: values[field] for column, field in NUTRITION_COLUMNS.items()}
        )
        rows.append(row)
    return rows


def recipe_template_rows() -> list[dict[str, object]]:
    """Example rows showing the recipe sheet layout.

    The second toast row shows how further ingredients leave the recipe
    fields blank.
    """
    columns = [
        RECIPE_COLUMNS[key]
        for key in (
            "recipe_name",
            "description",
            "servings",
            "fuel_cost",
            "labor_cost",
            "material_name",
            "weight",
        )
    ]
    examples = (
        ("(Example) Basic toast", "Classic white loaf", 2, 15, 50, "Bread flour", 500),
        ("(Example) Basic toast", "", "", "", "", "Unsalted butter", 30),
        (
            "(Example) Chocolate cake",
            "Rich chocolate cake",
            8,
            20,
            80,
            "Bread flour",
            200,
        ),
    )
    return [
        {**dict(zip(columns, values, strict=True)), RECIPE_COLUMNS["unit"]: "g"}
        for values in examples
    ]


@dataclass
class SpreadsheetImporter:
    """Name-based reconciliation of spreadsheet rows."""

    id_factory: IdFactory = new_id
    clock: Clock = utc_now
    rename_suffix: str = DEFAULT_RENAME_SUFFIX

    def import_materials(
        self,
        rows: Iterable[ParsedMaterialRow],
        existing: Sequence[Material],
        strategy: ConflictStrategy,
    ) -> ImportResult:
        """Add valid material rows to ``existing``, resolving name collisions."""
        result = ImportResult()
        final = list(existing)
        for row in rows:
            if not row.is_valid:
                result.skipped += 1
                result.errors.append(f"Row {row.row_number}: {'; '.join(row.errors)}")
                continue
            now = self.clock()
            material = Material(
                id=self.id_factory(),
                name=row.name,
                price=row.price,
                weight=row.weight,
                unit=Unit(row.unit),
                created_at=now,
                updated_at=now,
                description=row.description,
                nutrition=Nutrition(**row.nutrition) if row.nutrition else None,
            )
            if self._place(final, material, strategy):
                result.materials_imported += 1
            else:
                result.skipped += 1
        result.success = True
        result.materials = final
        _logger.info(
            "Imported %s material rows (%s skipped)",
            result.materials_imported,
            result.skipped,
        )
        return result

    def import_recipes(
        self,
        parsed: Iterable[ParsedRecipe],
        materials: Sequence[Material],
        existing: Sequence[Recipe],
        strategy: ConflictStrategy,
    ) -> ImportResult:
        """Add valid grouped recipes, resolving material names to ids."""
        result = ImportResult()
        final = list(existing)
        ids_by_name: dict[str, str] = {}
        for material in materials:
            ids_by_name.setdefault(material.name, material.id)

        for item in parsed:
            reasons = list(item.errors)
            reasons.extend(
                _missing_material_message(ingredient.material_name)
                for ingredient in item.ingredients
                if ingredient.material_name not in ids_by_name
            )
            if not item.ingredients:
                reasons.append("Recipe has no ingredients")
            if reasons:
                result.skipped += 1
                joined = "; ".join(dict.fromkeys(reasons))
                result.errors.append(f'Recipe "{item.name}": {joined}')
                continue
            now = self.clock()
            recipe = Recipe(
                id=self.id_factory(),
                name=item.name,
                ingredients=tuple(
                    Ingredient(
                        material_id=ids_by_name[ingredient.material_name],
                        weight=ingredient.weight,
                        unit=Unit(ingredient.unit),
                    )
                    for ingredient in item.ingredients
                ),
                created_at=now,
                updated_at=now,
                description=item.description,
                servings=item.servings,
                fuel_cost=item.fuel_cost,
                labor_cost=item.labor_cost,
            )
            if self._place(final, recipe, strategy):
                result.recipes_imported += 1
            else:
                result.skipped += 1
        result.success = True
        result.recipes = final
        _logger.info(
            "Imported %s spreadsheet recipes (%s skipped)",
            result.recipes_imported,
            result.skipped,
        )
        return result

    def _place(
        self,
        target: list[Material] | list[Recipe],
        record: Material | Recipe,
        strategy: ConflictStrategy,
    ) -> bool:
        """Insert ``record`` into ``target``; return False when skipped."""
        index = index_of(target, lambda existing: existing.name == record.name)
        if index is None:
            target.append(record)
            return True
        if strategy is ConflictStrategy.OVERWRITE:
            current = target[index]
            target[index] = replace(
                record, id=current.id, created_at=current.created_at
            )
            return True
        if strategy is ConflictStrategy.RENAME:
            target.append(replace(record, name=f"{record.name}{self.rename_suffix}"))
            return True
        return False


def _missing_material_message(material_name: str) -> str:
    return f'Material "{material_name}" not found; add it before importing'


def _ingredient_fields_valid(row: ParsedRecipeRow) -> bool:
    return row.material_name != "" and row.ingredient_weight > 0 and (
        row.ingredient_unit in VALID_UNITS
    )


def _optional_cost(
    row: Mapping[str, object], column: str, errors: list[str]
) -> float | None:
    raw = row.get(column)
    if _is_blank(raw):
        return None
    value = _number(raw)
    if value is None or value < 0:
        errors.append(f"{column} must be a number greater than or equal to 0")
        return None
    return value


def _is_blank(value: object) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _number(value: object) -> float | None:
    if isinstance(value, bool) or _is_blank(value):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if not math.isfinite(number):
        return None
    return number


def _cell(value: object) -> object:
    return "" if value is None else value
