"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from recipe_db.config import Settings
from recipe_db.containers import AppContainer, build_container
from recipe_db.document_models import material_to_payload, recipe_to_payload
from recipe_db.domain.materials import Material, Nutrition
from recipe_db.domain.recipes import Ingredient, Recipe
from recipe_db.domain.units import Unit
from recipe_db.services.catalog import CatalogService
from recipe_db.services.spreadsheet import SpreadsheetImporter
from recipe_db.services.store import InMemoryCollectionStore
from recipe_db.services.transfer import ImportReconciler

START = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


@dataclass
class FixedClock:
    """Clock that only moves when told to."""

    now: datetime = START

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@dataclass
class SequentialIds:
    """Id factory returning ``new-1``, ``new-2`` and so on."""

    prefix: str = "new"
    issued: list[str] = field(default_factory=list)

    def __call__(self) -> str:
        value = f"{self.prefix}-{len(self.issued) + 1}"
        self.issued.append(value)
        return value


def make_material(  # noqa: PLR0913
    material_id: str,
    name: str | None = None,
    price: float = 10.0,
    weight: float = 1000.0,
    unit: Unit = Unit.GRAM,
    nutrition: Nutrition | None = None,
    description: str | None = None,
) -> Material:
    return Material(
        id=material_id,
        name=name or f"Material {material_id}",
        price=price,
        weight=weight,
        unit=unit,
        created_at=START,
        updated_at=START,
        description=description,
        nutrition=nutrition,
    )


def ingredient(
    material_id: str, weight: float = 100.0, unit: Unit = Unit.GRAM
) -> Ingredient:
    return Ingredient(material_id=material_id, weight=weight, unit=unit)


def make_recipe(
    recipe_id: str,
    *ingredients: Ingredient,
    name: str | None = None,
    servings: int | None = None,
    fuel_cost: float | None = None,
    labor_cost: float | None = None,
) -> Recipe:
    return Recipe(
        id=recipe_id,
        name=name or f"Recipe {recipe_id}",
        ingredients=tuple(ingredients),
        created_at=START,
        updated_at=START,
        servings=servings,
        fuel_cost=fuel_cost,
        labor_cost=labor_cost,
    )


def document(
    materials: list[Material], recipes: list[Recipe], version: int = 1
) -> dict[str, object]:
    """Build an export document for the given records."""
    return {
        "version": version,
        "exportDate": "2024-02-01T00:00:00Z",
        "data": {
            "materials": [material_to_payload(item) for item in materials],
            "recipes": [recipe_to_payload(item) for item in recipes],
        },
    }


def seed(
    store: InMemoryCollectionStore,
    materials: list[Material],
    recipes: list[Recipe] | None = None,
) -> None:
    store.save("materials", [material_to_payload(item) for item in materials])
    store.save("recipes", [recipe_to_payload(item) for item in recipes or []])


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def ids() -> SequentialIds:
    return SequentialIds()


@pytest.fixture
def store() -> InMemoryCollectionStore:
    return InMemoryCollectionStore()


@pytest.fixture
def catalog(
    store: InMemoryCollectionStore, clock: FixedClock, ids: SequentialIds
) -> CatalogService:
    return CatalogService(
        store=store,
        id_factory=ids,
        clock=clock,
        reconciler=ImportReconciler(id_factory=ids, clock=clock),
        spreadsheet_importer=SpreadsheetImporter(id_factory=ids, clock=clock),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(api_token="api-token", storage_backend="memory")


@pytest.fixture
def container(settings: Settings, store: InMemoryCollectionStore) -> AppContainer:
    return build_container(settings, store=store)
