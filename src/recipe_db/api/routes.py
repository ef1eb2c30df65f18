"""Collection endpoints with simple token auth."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic.alias_generators import to_camel

from recipe_db.api.schemas import ImportRequest, RowImportRequest, SubstitutionRequest
from recipe_db.document_models import material_to_payload, recipe_to_payload
from recipe_db.domain.integrity import DeletionRequest
from recipe_db.domain.transfer import ImportResult
from recipe_db.services.spreadsheet import material_template_rows, recipe_template_rows

if TYPE_CHECKING:
    from recipe_db.containers import AppContainer
    from recipe_db.services.catalog import CatalogService

router = APIRouter()


def _get_api_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.api_token


async def require_token(
    x_api_token: str | None = Header(default=None),
    api_token: str = Depends(_get_api_token),
) -> None:
    """Ensure requests include a valid API token."""
    if not x_api_token or x_api_token != api_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


def _catalog(request: Request) -> CatalogService:
    container: AppContainer = request.app.state.container
    return container.catalog_service


@router.get("/materials", dependencies=[Depends(require_token)])
async def list_materials(request: Request) -> dict[str, object]:
    """Return every material."""
    materials = _catalog(request).load_materials()
    return {"materials": [material_to_payload(item) for item in materials]}


@router.post(
    "/materials",
    dependencies=[Depends(require_token)],
    status_code=status.HTTP_201_CREATED,
)
async def create_material(
    payload: dict[str, object], request: Request
) -> dict[str, object]:
    """Create a material."""
    return material_to_payload(_catalog(request).create_material(payload))


@router.put("/materials/{material_id}", dependencies=[Depends(require_token)])
async def update_material(
    material_id: str, payload: dict[str, object], request: Request
) -> dict[str, object]:
    """Update a material."""
    return material_to_payload(_catalog(request).update_material(material_id, payload))


@router.delete("/materials/{material_id}", dependencies=[Depends(require_token)])
async def delete_material(material_id: str, request: Request) -> JSONResponse:
    """Delete a material, or report the recipes that block it."""
    outcome = _catalog(request).request_material_deletion(material_id)
    code = status.HTTP_409_CONFLICT if outcome.is_blocked else status.HTTP_200_OK
    return JSONResponse(status_code=code, content=_serialize_deletion(outcome))


@router.post(
    "/materials/{material_id}/substitute", dependencies=[Depends(require_token)]
)
async def substitute_material(
    material_id: str, body: SubstitutionRequest, request: Request
) -> dict[str, object]:
    """Move every reference to another material and delete this one."""
    outcome = _catalog(request).resolve_deletion_by_substitution(
        material_id, body.replacement_id
    )
    return _serialize_deletion(outcome)


@router.post("/materials/import-rows", dependencies=[Depends(require_token)])
async def import_material_rows(
    body: RowImportRequest, request: Request
) -> dict[str, object]:
    """Import decoded spreadsheet rows as materials."""
    result = _catalog(request).import_material_rows(body.rows, body.strategy)
    return _serialize_import(result)


@router.get("/materials/export-rows", dependencies=[Depends(require_token)])
async def export_material_rows(request: Request) -> dict[str, object]:
    """Return the materials as spreadsheet rows."""
    return {"rows": _catalog(request).export_material_rows()}


@router.get("/materials/template-rows", dependencies=[Depends(require_token)])
async def material_template(request: Request) -> dict[str, object]:
    """Return example material rows."""
    return {"rows": material_template_rows()}


@router.get("/recipes", dependencies=[Depends(require_token)])
async def list_recipes(request: Request) -> dict[str, object]:
    """Return every recipe."""
    recipes = _catalog(request).load_recipes()
    return {"recipes": [recipe_to_payload(item) for item in recipes]}


@router.post(
    "/recipes",
    dependencies=[Depends(require_token)],
    status_code=status.HTTP_201_CREATED,
)
async def create_recipe(
    payload: dict[str, object], request: Request
) -> dict[str, object]:
    """Create a recipe."""
    return recipe_to_payload(_catalog(request).create_recipe(payload))


@router.put("/recipes/{recipe_id}", dependencies=[Depends(require_token)])
async def update_recipe(
    recipe_id: str, payload: dict[str, object], request: Request
) -> dict[str, object]:
    """Update a recipe."""
    return recipe_to_payload(_catalog(request).update_recipe(recipe_id, payload))


@router.delete(
    "/recipes/{recipe_id}",
    dependencies=[Depends(require_token)],
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_recipe(recipe_id: str, request: Request) -> None:
    """Delete a recipe."""
    _catalog(request).delete_recipe(recipe_id)


@router.post(
    "/recipes/{recipe_id}/copy",
    dependencies=[Depends(require_token)],
    status_code=status.HTTP_201_CREATED,
)
async def copy_recipe(recipe_id: str, request: Request) -> dict[str, object]:
    """Duplicate a recipe."""
    return recipe_to_payload(_catalog(request).copy_recipe(recipe_id))


@router.get("/recipes/{recipe_id}/calculation", dependencies=[Depends(require_token)])
async def recipe_calculation(recipe_id: str, request: Request) -> dict[str, object]:
    """Return cost and nutrition figures for a recipe."""
    return _camel_keys(asdict(_catalog(request).calculate(recipe_id)))


@router.post("/recipes/import-rows", dependencies=[Depends(require_token)])
async def import_recipe_rows(
    body: RowImportRequest, request: Request
) -> dict[str, object]:
    """Import decoded spreadsheet rows as recipes."""
    result = _catalog(request).import_recipe_rows(body.rows, body.strategy)
    return _serialize_import(result)


@router.get("/recipes/export-rows", dependencies=[Depends(require_token)])
async def export_recipe_rows(request: Request) -> dict[str, object]:
    """Return the recipes as spreadsheet rows."""
    return {"rows": _catalog(request).export_recipe_rows()}


@router.get("/recipes/template-rows", dependencies=[Depends(require_token)])
async def recipe_template(request: Request) -> dict[str, object]:
    """Return example recipe rows."""
    return {"rows": recipe_template_rows()}


@router.get("/integrity", dependencies=[Depends(require_token)])
async def integrity_report(request: Request) -> dict[str, object]:
    """Return recipes that reference missing materials."""
    orphaned = _catalog(request).check_health()
    return {"orphaned": [_camel_keys(asdict(item)) for item in orphaned]}


@router.post("/integrity/clean", dependencies=[Depends(require_token)])
async def integrity_clean(request: Request) -> dict[str, int]:
    """Remove ingredients that reference missing materials."""
    return {"cleaned": _catalog(request).clean_orphans()}


@router.get("/export", dependencies=[Depends(require_token)])
async def export_collections(request: Request) -> dict[str, object]:
    """Return the export document."""
    return _catalog(request).export()


@router.post("/import", dependencies=[Depends(require_token)])
async def import_collections(body: ImportRequest, request: Request) -> JSONResponse:
    """Reconcile an export document into the collections."""
    result = _catalog(request).import_document(body.document, body.options.to_options())
    code = (
        status.HTTP_200_OK if result.success else status.HTTP_422_UNPROCESSABLE_ENTITY
    )
    return JSONResponse(status_code=code, content=_serialize_import(result))


def _camel_keys(value: Any) -> Any:
    """Rename dataclass field keys to the camelCase used on the wire."""
    if isinstance(value, dict):
        return {to_camel(key): _camel_keys(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_camel_keys(item) for item in value]
    return value


def _serialize_deletion(outcome: DeletionRequest) -> dict[str, object]:
    return {
        "materialId": outcome.material_id,
        "state": outcome.state.value,
        "blockingRecipes": [
            {"id": recipe.id, "name": recipe.name}
            for recipe in outcome.blocking_recipes
        ],
    }


def _serialize_import(result: ImportResult) -> dict[str, object]:
    return {
        "success": result.success,
        "materialsImported": result.materials_imported,
        "recipesImported": result.recipes_imported,
        "skipped": result.skipped,
        "errors": result.errors,
    }
