"""Pydantic models for persisted and exported record documents."""

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Annotated, Any, Self

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from recipe_db.domain.materials import (
    EXTENDED_NUTRITION_FIELDS,
    MATERIAL_NAME_MAX_LENGTH,
    NUTRITION_SCHEMA_VERSION,
    Material,
    Nutrition,
)
from recipe_db.domain.recipes import RECIPE_NAME_MAX_LENGTH, Ingredient, Recipe
from recipe_db.domain.transfer import EXPORT_FORMAT_VERSION
from recipe_db.domain.units import Unit
from recipe_db.errors import InvalidDocumentError, InvalidRecordError

NonNegative = Annotated[float, Field(ge=0, strict=True)]
Positive = Annotated[float, Field(gt=0, strict=True)]


def _parse_timestamp(value: Any) -> Any:
    """Accept only ISO-8601 date-time strings; datetimes pass through."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or "T" not in value:
        raise ValueError("must be an ISO-8601 date-time string")
    return datetime.fromisoformat(value)


Timestamp = Annotated[datetime, BeforeValidator(_parse_timestamp)]


class WireModel(BaseModel):
    """Base model using the camelCase keys of the stored documents."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        allow_inf_nan=False,
        extra="ignore",
    )


class NutritionModel(WireModel):
    """Nutrition payload; every field is optional and non-negative."""

    calories: NonNegative | None = None
    protein: NonNegative | None = None
    fat: NonNegative | None = None
    saturated_fat: NonNegative | None = None
    trans_fat: NonNegative | None = None
    carbohydrates: NonNegative | None = None
    sugar: NonNegative | None = None
    sodium: NonNegative | None = None
    fiber: NonNegative | None = None
    cholesterol: NonNegative | None = None


class RecordModel(WireModel):
    """Identity and timestamps shared by stored records."""

    id: str = Field(min_length=1)
    created_at: Timestamp
    updated_at: Timestamp

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @model_validator(mode="after")
    def _timestamps_ordered(self) -> Self:
        if self.updated_at < self.created_at:
            raise ValueError("updatedAt must not precede createdAt")
        return self


class MaterialDraft(WireModel):
    """Editable material fields."""

    name: str = Field(max_length=MATERIAL_NAME_MAX_LENGTH)
    price: NonNegative
    weight: Positive
    unit: Unit
    description: str | None = None
    nutrition: NutritionModel | None = None

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be empty")
        return value


class MaterialModel(MaterialDraft, RecordModel):
    """Stored material."""

    # Import and copy suffixes may take stored names past the entry limit.
    name: str


class IngredientModel(WireModel):
    """Ingredient reference inside a recipe."""

    material_id: str = Field(min_length=1)
    weight: Positive
    unit: Unit


class RecipeDraft(WireModel):
    """Editable recipe fields."""

    name: str = Field(max_length=RECIPE_NAME_MAX_LENGTH)
    description: str | None = None
    servings: int | None = Field(default=None, ge=1, strict=True)
    fuel_cost: NonNegative | None = None
    labor_cost: NonNegative | None = None
    ingredients: list[IngredientModel]

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be empty")
        return value


class RecipeModel(RecipeDraft, RecordModel):
    """Stored recipe."""

    name: str


class MetadataModel(WireModel):
    """Informational metadata written alongside exported data."""

    app_name: str
    app_version: str
    materials_count: int
    recipes_count: int


class DocumentDataModel(WireModel):
    """The two collections carried by a document."""

    materials: list[MaterialModel]
    recipes: list[RecipeModel]

    @model_validator(mode="after")
    def _unique_ids(self) -> Self:
        for label, records in (("material", self.materials), ("recipe", self.recipes)):
            seen: set[str] = set()
            for record in records:
                if record.id in seen:
                    raise ValueError(f"duplicate {label} id {record.id!r}")
                seen.add(record.id)
        return self


class ExportDocumentModel(WireModel):
    """A whole exported document."""

    version: int = Field(ge=1, le=EXPORT_FORMAT_VERSION, strict=True)
    export_date: Timestamp | None = None
    metadata: MetadataModel | None = None
    data: DocumentDataModel

    @model_validator(mode="before")
    @classmethod
    def _wrap_flat_collections(cls, value: Any) -> Any:
        """Accept ``{version, materials, recipes}`` without a ``data`` key."""
        if isinstance(value, Mapping) and "data" not in value and (
            "materials" in value or "recipes" in value
        ):
            flat = dict(value)
            flat["data"] = {
                "materials": flat.pop("materials", []),
                "recipes": flat.pop("recipes", []),
            }
            return flat
        return value


_MATERIAL_LIST = TypeAdapter(list[MaterialModel])
_RECIPE_LIST = TypeAdapter(list[RecipeModel])


def parse_document(raw: object) -> tuple[list[Material], list[Recipe]]:
    """Validate a whole document and return its records.

    Any invalid record rejects the document.
    """
    try:
        document = ExportDocumentModel.model_validate(raw)
    except ValidationError as exc:
        raise InvalidDocumentError(_format_errors(exc)) from exc
    materials = [material_from_model(model) for model in document.data.materials]
    recipes = [recipe_from_model(model) for model in document.data.recipes]
    return materials, recipes


def parse_materials(raw: object) -> list[Material]:
    """Validate a stored material collection."""
    try:
        models = _MATERIAL_LIST.validate_python(raw)
    except ValidationError as exc:
        raise InvalidDocumentError(_format_errors(exc)) from exc
    return [material_from_model(model) for model in models]


def parse_recipes(raw: object) -> list[Recipe]:
    """Validate a stored recipe collection."""
    try:
        models = _RECIPE_LIST.validate_python(raw)
    except ValidationError as exc:
        raise InvalidDocumentError(_format_errors(exc)) from exc
    return [recipe_from_model(model) for model in models]


def parse_material_draft(raw: object) -> MaterialDraft:
    """Validate editable material fields."""
    try:
        return MaterialDraft.model_validate(raw)
    except ValidationError as exc:
        raise InvalidRecordError(_format_errors(exc)) from exc


def parse_recipe_draft(raw: object) -> RecipeDraft:
    """Validate editable recipe fields."""
    try:
        return RecipeDraft.model_validate(raw)
    except ValidationError as exc:
        raise InvalidRecordError(_format_errors(exc)) from exc


def nutrition_from_model(model: NutritionModel) -> Nutrition:
    """Build nutrition, detecting the legacy shape from the keys present."""
    has_extended_keys = bool(model.model_fields_set & set(EXTENDED_NUTRITION_FIELDS))
    return Nutrition(
        calories=model.calories,
        protein=model.protein,
        fat=model.fat,
        saturated_fat=model.saturated_fat,
        trans_fat=model.trans_fat,
        carbohydrates=model.carbohydrates,
        sugar=model.sugar,
        sodium=model.sodium,
        fiber=model.fiber,
        cholesterol=model.cholesterol,
        schema_version=NUTRITION_SCHEMA_VERSION if has_extended_keys else 1,
    )


def material_from_draft(
    draft: MaterialDraft,
    *,
    material_id: str,
    created_at: datetime,
    updated_at: datetime,
) -> Material:
    return Material(
        id=material_id,
        name=draft.name,
        price=draft.price,
        weight=draft.weight,
        unit=draft.unit,
        created_at=created_at,
        updated_at=updated_at,
        description=draft.description,
        nutrition=nutrition_from_model(draft.nutrition) if draft.nutrition else None,
    )


def material_from_model(model: MaterialModel) -> Material:
    return material_from_draft(
        model,
        material_id=model.id,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def ingredients_from_models(models: list[IngredientModel]) -> tuple[Ingredient, ...]:
    return tuple(
        Ingredient(material_id=model.material_id, weight=model.weight, unit=model.unit)
        for model in models
    )


def recipe_from_draft(
    draft: RecipeDraft,
    *,
    recipe_id: str,
    created_at: datetime,
    updated_at: datetime,
) -> Recipe:
    return Recipe(
        id=recipe_id,
        name=draft.name,
        ingredients=ingredients_from_models(draft.ingredients),
        created_at=created_at,
        updated_at=updated_at,
        description=draft.description,
        servings=draft.servings,
        fuel_cost=draft.fuel_cost,
        labor_cost=draft.labor_cost,
    )


def recipe_from_model(model: RecipeModel) -> Recipe:
    return recipe_from_draft(
        model,
        recipe_id=model.id,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def format_timestamp(value: datetime) -> str:
    """Format a timestamp as UTC ISO-8601 with a ``Z`` suffix."""
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def nutrition_to_payload(nutrition: Nutrition) -> dict[str, float | None]:
    """Serialize nutrition; current-schema records carry all ten keys."""
    values = nutrition.values()
    if nutrition.schema_version < NUTRITION_SCHEMA_VERSION:
        values = {key: value for key, value in values.items() if value is not None}
    return {to_camel(key): value for key, value in values.items()}


def material_to_payload(material: Material) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": material.id,
        "name": material.name,
        "price": material.price,
        "weight": material.weight,
        "unit": material.unit.value,
        "createdAt": format_timestamp(material.created_at),
        "updatedAt": format_timestamp(material.updated_at),
    }
    if material.description is not None:
        payload["description"] = material.description
    if material.nutrition is not None:
        payload["nutrition"] = nutrition_to_payload(material.nutrition)
    return payload


def recipe_to_payload(recipe: Recipe) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": recipe.id,
        "name": recipe.name,
        "ingredients": [
            {
                "materialId": ingredient.material_id,
                "weight": ingredient.weight,
                "unit": ingredient.unit.value,
            }
            for ingredient in recipe.ingredients
        ],
        "createdAt": format_timestamp(recipe.created_at),
        "updatedAt": format_timestamp(recipe.updated_at),
    }
    optional = {
        "description": recipe.description,
        "servings": recipe.servings,
        "fuelCost": recipe.fuel_cost,
        "laborCost": recipe.labor_cost,
    }
    payload.update({key: value for key, value in optional.items() if value is not None})
    return payload


def _format_errors(exc: ValidationError) -> list[str]:
    return [
        f"{'.'.join(str(part) for part in error['loc']) or 'document'}: {error['msg']}"
        for error in exc.errors()
    ]
