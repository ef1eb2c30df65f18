"""Tests for the catalog service."""

import pytest

from recipe_db.domain.integrity import DeletionState
from recipe_db.domain.materials import Nutrition
from recipe_db.domain.transfer import ConflictStrategy, ImportMode, ImportOptions
from recipe_db.errors import (
    InvalidDocumentError,
    InvalidRecordError,
    InvalidSubstitutionError,
    MaterialNotFoundError,
    RecipeNotFoundError,
)
from recipe_db.services.catalog import CatalogService
from recipe_db.services.store import InMemoryCollectionStore
from tests.conftest import (
    FixedClock,
    document,
    ingredient,
    make_material,
    make_recipe,
    seed,
)

FLOUR = {"name": "Flour", "price": 45, "weight": 1, "unit": "kg"}


def test_create_material_assigns_identity(
    catalog: CatalogService, clock: FixedClock
) -> None:
    material = catalog.create_material({**FLOUR, "nutrition": {"calories": 364}})

    assert material.id == "new-1"
    assert material.created_at == clock.now
    assert material.nutrition is not None
    assert material.nutrition.schema_version == 2
    assert catalog.load_materials() == [material]


def test_create_material_rejects_invalid_payload(catalog: CatalogService) -> None:
    with pytest.raises(InvalidRecordError):
        catalog.create_material({**FLOUR, "price": -5})

    assert catalog.load_materials() == []


def test_update_material_keeps_created_at(
    catalog: CatalogService, clock: FixedClock
) -> None:
    created = catalog.create_material(FLOUR)
    clock.advance(hours=2)

    updated = catalog.update_material(created.id, {**FLOUR, "price": 50})

    assert updated.price == 50
    assert updated.created_at == created.created_at
    assert updated.updated_at == clock.now
    with pytest.raises(MaterialNotFoundError):
        catalog.update_material("missing", FLOUR)


def test_update_material_never_moves_updated_at_backwards(
    catalog: CatalogService, clock: FixedClock
) -> None:
    created = catalog.create_material(FLOUR)
    clock.advance(hours=-1)

    updated = catalog.update_material(created.id, FLOUR)

    assert updated.updated_at == created.updated_at


def test_load_materials_migrates_and_persists(
    catalog: CatalogService, store: InMemoryCollectionStore
) -> None:
    store.save(
        "materials",
        [
            {
                "id": "oats",
                "name": "Oats",
                "price": 4,
                "weight": 500,
                "unit": "g",
                "nutrition": {"calories": 389},
                "createdAt": "2024-01-01T00:00:00Z",
                "updatedAt": "2024-01-01T00:00:00Z",
            }
        ],
    )

    materials = catalog.load_materials()

    assert materials[0].nutrition is not None
    assert materials[0].nutrition.schema_version == 2
    stored = store.collections["materials"][0]["nutrition"]
    assert len(stored) == 10
    assert stored["fiber"] is None


def test_load_rejects_corrupt_collection(
    catalog: CatalogService, store: InMemoryCollectionStore
) -> None:
    store.save("recipes", [{"id": "r1"}])

    with pytest.raises(InvalidDocumentError):
        catalog.load_recipes()


def test_deletion_of_unused_material(
    catalog: CatalogService, store: InMemoryCollectionStore
) -> None:
    seed(store, [make_material("a"), make_material("b")])

    outcome = catalog.request_material_deletion("a")

    assert outcome.state is DeletionState.DELETED
    assert [item.id for item in catalog.load_materials()] == ["b"]
    with pytest.raises(MaterialNotFoundError):
        catalog.request_material_deletion("a")


def test_blocked_deletion_then_substitution(
    catalog: CatalogService, store: InMemoryCollectionStore, clock: FixedClock
) -> None:
    seed(
        store,
        [make_material("a"), make_material("b")],
        [make_recipe("r1", ingredient("a", 250)), make_recipe("r2", ingredient("b"))],
    )

    blocked = catalog.request_material_deletion("a")

    assert blocked.is_blocked
    assert [recipe.id for recipe in blocked.blocking_recipes] == ["r1"]
    assert len(catalog.load_materials()) == 2
    assert catalog.cancel_material_deletion(blocked).state is DeletionState.CANCELLED

    clock.advance(minutes=5)
    outcome = catalog.resolve_deletion_by_substitution("a", "b")

    assert outcome.state is DeletionState.DELETED
    assert [item.id for item in catalog.load_materials()] == ["b"]
    recipe = catalog.get_recipe("r1")
    assert recipe.ingredients == (ingredient("b", 250),)
    assert recipe.updated_at == clock.now
    assert catalog.check_health() == []


def test_cancel_leaves_non_blocked_requests_alone(
    catalog: CatalogService, store: InMemoryCollectionStore
) -> None:
    seed(store, [make_material("a")])
    deleted = catalog.request_material_deletion("a")

    assert catalog.cancel_material_deletion(deleted) is deleted


def test_substitution_rejects_invalid_replacements(
    catalog: CatalogService, store: InMemoryCollectionStore
) -> None:
    seed(store, [make_material("a")], [make_recipe("r1", ingredient("a"))])

    with pytest.raises(InvalidSubstitutionError):
        catalog.resolve_deletion_by_substitution("a", "a")
    with pytest.raises(InvalidSubstitutionError):
        catalog.resolve_deletion_by_substitution("a", "missing")
    with pytest.raises(MaterialNotFoundError):
        catalog.resolve_deletion_by_substitution("missing", "a")
    assert catalog.get_recipe("r1").ingredients == (ingredient("a"),)


def test_create_recipe_requires_known_materials(
    catalog: CatalogService, store: InMemoryCollectionStore
) -> None:
    seed(store, [make_material("a")])
    payload = {
        "name": "Bread",
        "servings": 2,
        "ingredients": [{"materialId": "a", "weight": 500, "unit": "g"}],
    }

    recipe = catalog.create_recipe(payload)

    assert recipe.id == "new-1"
    assert catalog.load_recipes() == [recipe]
    with pytest.raises(InvalidRecordError) as excinfo:
        catalog.create_recipe(
            {
                "name": "Ghost",
                "ingredients": [{"materialId": "x", "weight": 1, "unit": "g"}],
            }
        )
    assert excinfo.value.messages == ["ingredients: unknown material x"]


def test_update_and_delete_recipe(
    catalog: CatalogService, store: InMemoryCollectionStore, clock: FixedClock
) -> None:
    seed(store, [make_material("a")], [make_recipe("r1", ingredient("a"))])
    clock.advance(days=1)

    updated = catalog.update_recipe(
        "r1",
        {
            "name": "Renamed",
            "laborCost": 3,
            "ingredients": [{"materialId": "a", "weight": 2, "unit": "kg"}],
        },
    )

    assert updated.name == "Renamed"
    assert updated.labor_cost == 3
    assert updated.updated_at == clock.now
    assert catalog.get_recipe("r1") == updated

    catalog.delete_recipe("r1")

    assert catalog.load_recipes() == []
    with pytest.raises(RecipeNotFoundError):
        catalog.delete_recipe("r1")


def test_copy_recipe(
    catalog: CatalogService, store: InMemoryCollectionStore, clock: FixedClock
) -> None:
    seed(store, [make_material("a")], [make_recipe("r1", ingredient("a"), name="Pie")])
    clock.advance(days=2)

    copied = catalog.copy_recipe("r1")

    assert copied.id == "new-1"
    assert copied.name == "Pie (copy)"
    assert copied.created_at == clock.now
    assert copied.ingredients == (ingredient("a"),)
    assert len(catalog.load_recipes()) == 2


def test_calculate_uses_stored_figures(
    catalog: CatalogService, store: InMemoryCollectionStore
) -> None:
    seed(
        store,
        [make_material("a", price=45, weight=1000, nutrition=Nutrition(protein=100))],
        [make_recipe("r1", ingredient("a", 500), servings=2, fuel_cost=1.0)],
    )

    calculation = catalog.calculate("r1")

    assert calculation.total_cost == pytest.approx(23.5)
    assert calculation.cost_per_serving == pytest.approx(11.75)
    assert calculation.total_nutrition.protein == pytest.approx(50.0)
    with pytest.raises(RecipeNotFoundError):
        catalog.calculate("missing")


def test_check_health_and_clean_orphans(
    catalog: CatalogService, store: InMemoryCollectionStore
) -> None:
    seed(
        store,
        [make_material("a")],
        [
            make_recipe("r1", ingredient("a"), ingredient("gone")),
            make_recipe("r2", ingredient("a")),
        ],
    )

    orphaned = catalog.check_health()

    assert [item.recipe_id for item in orphaned] == ["r1"]
    assert catalog.clean_orphans() == 1
    assert catalog.check_health() == []
    assert catalog.clean_orphans() == 0


def test_export_reports_metadata(
    catalog: CatalogService, store: InMemoryCollectionStore
) -> None:
    seed(store, [make_material("a")], [make_recipe("r1", ingredient("a"))])

    exported = catalog.export()

    assert exported["metadata"]["materialsCount"] == 1
    assert exported["metadata"]["appName"] == "Recipe Database"


def test_import_document_persists_on_success(
    catalog: CatalogService, store: InMemoryCollectionStore
) -> None:
    seed(store, [make_material("a")])
    incoming = document([make_material("b")], [make_recipe("r1", ingredient("b"))])

    result = catalog.import_document(incoming, ImportOptions())

    assert result.success
    assert [item.id for item in catalog.load_materials()] == ["a", "b"]
    assert [item.id for item in catalog.load_recipes()] == ["r1"]


def test_import_document_writes_nothing_on_failure(
    catalog: CatalogService, store: InMemoryCollectionStore
) -> None:
    seed(store, [make_material("a")], [make_recipe("r1", ingredient("a"))])
    before = {key: list(value) for key, value in store.collections.items()}
    incoming = document([make_material("x")], [make_recipe("rx", ingredient("y"))])

    result = catalog.import_document(incoming, ImportOptions(mode=ImportMode.REPLACE))

    assert not result.success
    assert store.collections == before


def test_import_rows_round_through_store(
    catalog: CatalogService, clock: FixedClock
) -> None:
    materials = catalog.import_material_rows(
        [{"Name": "Flour", "Price": 45, "Weight": 1, "Unit": "kg"}],
        ConflictStrategy.SKIP,
    )
    clock.advance(seconds=1)
    recipes = catalog.import_recipe_rows(
        [
            {
                "Recipe name": "Bread",
                "Material name": "Flour",
                "Amount": 500,
                "Amount unit": "g",
            }
        ],
        ConflictStrategy.SKIP,
    )

    assert materials.materials_imported == 1
    assert recipes.recipes_imported == 1
    bread = catalog.load_recipes()[0]
    flour = catalog.load_materials()[0]
    assert bread.ingredients[0].material_id == flour.id
    assert catalog.calculate(bread.id).material_cost == pytest.approx(22.5)
