"""Export of collections and id-based reconciliation of imported documents."""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace
from typing import TypeVar

from recipe_db.document_models import (
    format_timestamp,
    material_to_payload,
    parse_document,
    recipe_to_payload,
)
from recipe_db.domain.materials import Material
from recipe_db.domain.recipes import Recipe
from recipe_db.domain.transfer import (
    EXPORT_FORMAT_VERSION,
    ConflictStrategy,
    ImportMode,
    ImportOptions,
    ImportResult,
)
from recipe_db.errors import InvalidDocumentError
from recipe_db.services.identity import Clock, IdFactory, new_id, utc_now
from recipe_db.services.integrity import find_orphaned_references
from recipe_db.services.migrations import migrate_material_data

_logger = logging.getLogger(__name__)

DEFAULT_RENAME_SUFFIX = " (imported)"

RecordT = TypeVar("RecordT", Material, Recipe)


def export_document(
    materials: Sequence[Material],
    recipes: Sequence[Recipe],
    *,
    app_name: str,
    app_version: str,
    clock: Clock = utc_now,
) -> dict[str, object]:
    """Build the persisted document for both collections.

    Materials are migrated first so exported nutrition is in the current shape.
    """
    current_materials = migrate_material_data(materials)
    return {
        "version": EXPORT_FORMAT_VERSION,
        "exportDate": format_timestamp(clock()),
        "metadata": {
            "appName": app_name,
            "appVersion": app_version,
            "materialsCount": len(current_materials),
            "recipesCount": len(recipes),
        },
        "data": {
            "materials": [material_to_payload(item) for item in current_materials],
            "recipes": [recipe_to_payload(item) for item in recipes],
        },
    }


@dataclass
class ImportReconciler:
    """Merges an external document into the live collections."""

    id_factory: IdFactory = new_id
    clock: Clock = utc_now
    rename_suffix: str = DEFAULT_RENAME_SUFFIX

    def import_document(
        self,
        document: object,
        materials: Sequence[Material],
        recipes: Sequence[Recipe],
        options: ImportOptions,
    ) -> ImportResult:
        """Validate ``document`` and reconcile it under ``options``.

        Never raises: failures are reported with ``success=False``.
        """
        result = ImportResult()
        try:
            incoming_materials, incoming_recipes = parse_document(document)
        except InvalidDocumentError as exc:
            result.errors.extend(
                f"Invalid import document: {message}" for message in exc.messages
            )
            _logger.warning("Rejected import document: %s", exc)
            return result

        try:
            return self._reconcile(
                migrate_material_data(incoming_materials),
                incoming_recipes,
                list(materials),
                list(recipes),
                options,
                result,
            )
        except Exception as exc:
            _logger.exception("Import failed")
            result.success = False
            result.materials = None
            result.recipes = None
            result.errors.append(f"Import failed: {exc}")
            return result

    def _reconcile(  # noqa: PLR0913
        self,
        incoming_materials: list[Material],
        incoming_recipes: list[Recipe],
        final_materials: list[Material],
        final_recipes: list[Recipe],
        options: ImportOptions,
        result: ImportResult,
    ) -> ImportResult:
        if options.include_materials:
            if options.mode is ImportMode.REPLACE:
                final_materials = list(incoming_materials)
                result.materials_imported = len(final_materials)
                if not options.include_recipes:
                    _report_orphans_left_behind(final_recipes, final_materials, result)
            else:
                for material in incoming_materials:
                    self._merge_record(final_materials, material, options, result)

        if options.include_recipes:
            if options.mode is ImportMode.REPLACE:
                orphaned = find_orphaned_references(incoming_recipes, final_materials)
                if orphaned:
                    result.errors.append(
                        f"{len(orphaned)} imported recipes reference materials "
                        "that do not exist; no recipes were imported"
                    )
                    _logger.warning(
                        "Rejected replace import: %s recipes with orphaned references",
                        len(orphaned),
                    )
                    return result
                final_recipes = list(incoming_recipes)
                result.recipes_imported = len(final_recipes)
            else:
                material_ids = {material.id for material in final_materials}
                for recipe in incoming_recipes:
                    if not recipe.material_ids() <= material_ids:
                        result.errors.append(
                            f'Recipe "{recipe.name}" references materials that '
                            "do not exist and was skipped"
                        )
                        result.skipped += 1
                        continue
                    self._merge_record(final_recipes, recipe, options, result)

        result.success = True
        result.materials = final_materials
        result.recipes = final_recipes
        _logger.info(
            "Imported %s materials and %s recipes (%s skipped)",
            result.materials_imported,
            result.recipes_imported,
            result.skipped,
        )
        return result

    def _merge_record(
        self,
        target: list[RecordT],
        incoming: RecordT,
        options: ImportOptions,
        result: ImportResult,
    ) -> None:
        index = index_of(target, lambda record: record.id == incoming.id)
        if index is None:
            target.append(incoming)
            _count_imported(incoming, result)
            return
        if options.handle_conflicts is ConflictStrategy.OVERWRITE:
            target[index] = incoming
            _count_imported(incoming, result)
        elif options.handle_conflicts is ConflictStrategy.RENAME:
            now = self.clock()
            target.append(
                replace(
                    incoming,
                    id=self.id_factory(),
                    name=f"{incoming.name}{self.rename_suffix}",
                    created_at=now,
                    updated_at=now,
                )
            )
            _count_imported(incoming, result)
        else:
            result.skipped += 1


def index_of(
    records: list[RecordT], predicate: Callable[[RecordT], bool]
) -> int | None:
    for index, record in enumerate(records):
        if predicate(record):
            return index
    return None


def _count_imported(record: Material | Recipe, result: ImportResult) -> None:
    if isinstance(record, Material):
        result.materials_imported += 1
    else:
        result.recipes_imported += 1


def _report_orphans_left_behind(
    recipes: list[Recipe], materials: list[Material], result: ImportResult
) -> None:
    orphaned = find_orphaned_references(recipes, materials)
    if orphaned:
        result.errors.append(
            f"{len(orphaned)} existing recipes now reference materials "
            "that were not imported"
        )
