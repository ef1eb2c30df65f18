"""Application service for the material and recipe collections."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime

from recipe_db.document_models import (
    material_from_draft,
    material_to_payload,
    parse_material_draft,
    parse_materials,
    parse_recipe_draft,
    parse_recipes,
    recipe_from_draft,
    recipe_to_payload,
)
from recipe_db.domain.integrity import DeletionRequest, DeletionState, OrphanedReference
from recipe_db.domain.materials import NUTRITION_SCHEMA_VERSION, Material
from recipe_db.domain.recipes import Recipe, RecipeCalculation
from recipe_db.domain.transfer import ConflictStrategy, ImportOptions, ImportResult
from recipe_db.errors import (
    InvalidRecordError,
    InvalidSubstitutionError,
    MaterialNotFoundError,
    RecipeNotFoundError,
)
from recipe_db.services.costing import calculate_recipe
from recipe_db.services.identity import Clock, IdFactory, new_id, utc_now
from recipe_db.services.integrity import (
    clean_orphaned_references,
    find_material_usage,
    find_orphaned_references,
    replace_material_in_recipes,
)
from recipe_db.services.migrations import migrate_material_data, needs_migration
from recipe_db.services.spreadsheet import (
    SpreadsheetImporter,
    group_recipe_rows,
    material_rows,
    parse_material_rows,
    parse_recipe_rows,
    recipe_rows,
)
from recipe_db.services.store import (
    MATERIALS_NAMESPACE,
    RECIPES_NAMESPACE,
    CollectionStore,
)
from recipe_db.services.transfer import ImportReconciler, export_document, index_of

_logger = logging.getLogger(__name__)

DEFAULT_COPY_SUFFIX = " (copy)"


@dataclass
class CatalogService:
    """Reads and writes both collections while keeping references intact.

    Every write goes through this service or through the import paths it
    wraps, so recipes only ever reference materials that exist.
    """

    store: CollectionStore
    id_factory: IdFactory = new_id
    clock: Clock = utc_now
    reconciler: ImportReconciler = field(default_factory=ImportReconciler)
    spreadsheet_importer: SpreadsheetImporter = field(
        default_factory=SpreadsheetImporter
    )
    app_name: str = "Recipe Database"
    app_version: str = "0.2.0"
    copy_suffix: str = DEFAULT_COPY_SUFFIX

    def load_materials(self) -> list[Material]:
        """Load materials, migrating legacy nutrition records on the way."""
        materials = parse_materials(self.store.load(MATERIALS_NAMESPACE))
        if needs_migration(materials):
            materials = migrate_material_data(materials)
            self._save_materials(materials)
            _logger.info(
                "Migrated %s materials to current nutrition schema", len(materials)
            )
        return materials

    def load_recipes(self) -> list[Recipe]:
        return parse_recipes(self.store.load(RECIPES_NAMESPACE))

    def get_material(self, material_id: str) -> Material:
        for material in self.load_materials():
            if material.id == material_id:
                return material
        raise MaterialNotFoundError(material_id)

    def get_recipe(self, recipe_id: str) -> Recipe:
        for recipe in self.load_recipes():
            if recipe.id == recipe_id:
                return recipe
        raise RecipeNotFoundError(recipe_id)

    def create_material(self, payload: Mapping[str, object]) -> Material:
        """Validate and append a new material."""
        draft = parse_material_draft(payload)
        now = self.clock()
        material = _current_schema(
            material_from_draft(
                draft, material_id=self.id_factory(), created_at=now, updated_at=now
            )
        )
        self._save_materials([*self.load_materials(), material])
        return material

    def update_material(
        self, material_id: str, payload: Mapping[str, object]
    ) -> Material:
        """Replace the editable fields of a material."""
        draft = parse_material_draft(payload)
        materials = self.load_materials()
        index = _position(materials, material_id)
        if index is None:
            raise MaterialNotFoundError(material_id)
        current = materials[index]
        updated = _current_schema(
            material_from_draft(
                draft,
                material_id=current.id,
                created_at=current.created_at,
                updated_at=self._touch(current.updated_at),
            )
        )
        materials[index] = updated
        self._save_materials(materials)
        return updated

    def request_material_deletion(self, material_id: str) -> DeletionRequest:
        """Delete a material unless a recipe still uses it.

        A material in use is never removed; the request comes back blocked
        with the recipes that reference it.
        """
        materials = self.load_materials()
        if _position(materials, material_id) is None:
            raise MaterialNotFoundError(material_id)
        usage = find_material_usage(material_id, self.load_recipes())
        if usage:
            _logger.info(
                "Blocked deletion of material %s used by %s recipes",
                material_id,
                len(usage),
            )
            return DeletionRequest(
                material_id=material_id,
                state=DeletionState.BLOCKED,
                blocking_recipes=tuple(usage),
            )
        self._save_materials([item for item in materials if item.id != material_id])
        return DeletionRequest(material_id=material_id, state=DeletionState.DELETED)

    def cancel_material_deletion(self, request: DeletionRequest) -> DeletionRequest:
        """Abandon a blocked deletion without changing any data."""
        if request.state is not DeletionState.BLOCKED:
            return request
        return replace(request, state=DeletionState.CANCELLED)

    def resolve_deletion_by_substitution(
        self, material_id: str, replacement_id: str
    ) -> DeletionRequest:
        """Move every reference to ``replacement_id``, then delete the material."""
        if material_id == replacement_id:
            raise InvalidSubstitutionError("A material cannot replace itself")
        materials = self.load_materials()
        if _position(materials, material_id) is None:
            raise MaterialNotFoundError(material_id)
        if _position(materials, replacement_id) is None:
            raise InvalidSubstitutionError(
                f"Replacement material does not exist: {replacement_id}"
            )
        recipes = self.load_recipes()
        updated = replace_material_in_recipes(
            recipes, material_id, replacement_id, clock=self.clock
        )
        if _changed(recipes, updated):
            self._save_recipes(updated)
        return self.request_material_deletion(material_id)

    def create_recipe(self, payload: Mapping[str, object]) -> Recipe:
        """Validate and append a new recipe."""
        draft = parse_recipe_draft(payload)
        now = self.clock()
        recipe = recipe_from_draft(
            draft, recipe_id=self.id_factory(), created_at=now, updated_at=now
        )
        self._require_materials(recipe)
        self._save_recipes([*self.load_recipes(), recipe])
        return recipe

    def update_recipe(self, recipe_id: str, payload: Mapping[str, object]) -> Recipe:
        """Replace a recipe's fields; ingredients are replaced wholesale."""
        draft = parse_recipe_draft(payload)
        recipes = self.load_recipes()
        index = _position(recipes, recipe_id)
        if index is None:
            raise RecipeNotFoundError(recipe_id)
        current = recipes[index]
        updated = recipe_from_draft(
            draft,
            recipe_id=current.id,
            created_at=current.created_at,
            updated_at=self._touch(current.updated_at),
        )
        self._require_materials(updated)
        recipes[index] = updated
        self._save_recipes(recipes)
        return updated

    def delete_recipe(self, recipe_id: str) -> None:
        recipes = self.load_recipes()
        if _position(recipes, recipe_id) is None:
            raise RecipeNotFoundError(recipe_id)
        self._save_recipes([recipe for recipe in recipes if recipe.id != recipe_id])

    def copy_recipe(self, recipe_id: str) -> Recipe:
        """Duplicate a recipe under a new id and a suffixed name."""
        recipes = self.load_recipes()
        index = _position(recipes, recipe_id)
        if index is None:
            raise RecipeNotFoundError(recipe_id)
        now = self.clock()
        source = recipes[index]
        copied = replace(
            source,
            id=self.id_factory(),
            name=f"{source.name}{self.copy_suffix}",
            created_at=now,
            updated_at=now,
        )
        self._save_recipes([*recipes, copied])
        return copied

    def calculate(self, recipe_id: str) -> RecipeCalculation:
        recipe = self.get_recipe(recipe_id)
        return calculate_recipe(
            recipe.ingredients,
            self.load_materials(),
            servings=recipe.servings,
            fuel_cost=recipe.fuel_cost,
            labor_cost=recipe.labor_cost,
        )

    def check_health(self) -> list[OrphanedReference]:
        """Return recipes that reference missing materials."""
        return find_orphaned_references(self.load_recipes(), self.load_materials())

    def clean_orphans(self) -> int:
        """Remove orphaned ingredients and return how many recipes changed."""
        recipes = self.load_recipes()
        cleaned = clean_orphaned_references(
            recipes, self.load_materials(), clock=self.clock
        )
        changed = sum(
            1
            for before, after in zip(recipes, cleaned, strict=True)
            if before is not after
        )
        if changed:
            self._save_recipes(cleaned)
            _logger.info("Cleaned orphaned ingredients from %s recipes", changed)
        return changed

    def export(self) -> dict[str, object]:
        """Return the export document for both collections."""
        return export_document(
            self.load_materials(),
            self.load_recipes(),
            app_name=self.app_name,
            app_version=self.app_version,
            clock=self.clock,
        )

    def import_document(self, document: object, options: ImportOptions) -> ImportResult:
        """Reconcile an exported document and persist what it produced."""
        result = self.reconciler.import_document(
            document, self.load_materials(), self.load_recipes(), options
        )
        if not result.success:
            return result
        if options.include_materials and result.materials is not None:
            self._save_materials(result.materials)
        if options.include_recipes and result.recipes is not None:
            self._save_recipes(result.recipes)
        return result

    def import_material_rows(
        self, rows: Iterable[Mapping[str, object]], strategy: ConflictStrategy
    ) -> ImportResult:
        """Import decoded spreadsheet rows as materials, matched by name."""
        result = self.spreadsheet_importer.import_materials(
            parse_material_rows(rows), self.load_materials(), strategy
        )
        if result.materials is not None:
            self._save_materials(result.materials)
        return result

    def import_recipe_rows(
        self, rows: Iterable[Mapping[str, object]], strategy: ConflictStrategy
    ) -> ImportResult:
        """Import decoded spreadsheet rows as recipes, matched by name."""
        materials = self.load_materials()
        grouped = group_recipe_rows(parse_recipe_rows(rows), materials)
        result = self.spreadsheet_importer.import_recipes(
            grouped, materials, self.load_recipes(), strategy
        )
        if result.recipes is not None:
            self._save_recipes(result.recipes)
        return result

    def export_material_rows(self) -> list[dict[str, object]]:
        """Return the materials as spreadsheet rows."""
        return material_rows(self.load_materials())

    def export_recipe_rows(self) -> list[dict[str, object]]:
        """Return the recipes as spreadsheet rows, one per ingredient."""
        return recipe_rows(self.load_recipes(), self.load_materials())

    def _require_materials(self, recipe: Recipe) -> None:
        known = {material.id for material in self.load_materials()}
        missing = sorted(recipe.material_ids() - known)
        if missing:
            raise InvalidRecordError(
                [f"ingredients: unknown material {item}" for item in missing]
            )

    def _touch(self, previous: datetime) -> datetime:
        return max(self.clock(), previous)

    def _save_materials(self, materials: list[Material]) -> None:
        self.store.save(
            MATERIALS_NAMESPACE, [material_to_payload(item) for item in materials]
        )

    def _save_recipes(self, recipes: list[Recipe]) -> None:
        self.store.save(
            RECIPES_NAMESPACE, [recipe_to_payload(item) for item in recipes]
        )


def _position(records: list[Material] | list[Recipe], record_id: str) -> int | None:
    return index_of(records, lambda record: record.id == record_id)


def _changed(before: list[Recipe], after: list[Recipe]) -> bool:
    return any(old is not new for old, new in zip(before, after, strict=True))


def _current_schema(material: Material) -> Material:
    if material.nutrition is None:
        return material
    return replace(
        material,
        nutrition=replace(material.nutrition, schema_version=NUTRITION_SCHEMA_VERSION),
    )
