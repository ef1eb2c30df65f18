"""Dependency container wiring for the application."""

from dataclasses import dataclass
from pathlib import Path

from supabase import create_client

from recipe_db.adapters.json_file_store import JsonFileCollectionStore
from recipe_db.adapters.supabase_collection_store import SupabaseCollectionStore
from recipe_db.config import Settings, parse_storage_backend
from recipe_db.services.catalog import CatalogService
from recipe_db.services.spreadsheet import SpreadsheetImporter
from recipe_db.services.store import CollectionStore, InMemoryCollectionStore
from recipe_db.services.transfer import ImportReconciler


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    store: CollectionStore
    catalog_service: CatalogService


def build_store(settings: Settings) -> CollectionStore:
    """Create the collection store selected by the settings."""
    backend = parse_storage_backend(settings.storage_backend)
    if backend == "memory":
        return InMemoryCollectionStore()
    if backend == "supabase":
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ValueError(
                "Supabase storage needs SUPABASE_URL and SUPABASE_SERVICE_KEY"
            )
        return SupabaseCollectionStore(
            create_client(settings.supabase_url, settings.supabase_service_key)
        )
    return JsonFileCollectionStore(Path(settings.data_dir))


def build_container(
    settings: Settings | None = None, store: CollectionStore | None = None
) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    resolved_store = store or build_store(resolved_settings)
    catalog_service = CatalogService(
        store=resolved_store,
        reconciler=ImportReconciler(
            rename_suffix=resolved_settings.import_rename_suffix
        ),
        spreadsheet_importer=SpreadsheetImporter(
            rename_suffix=resolved_settings.import_rename_suffix
        ),
        app_name=resolved_settings.app_name,
        app_version=resolved_settings.app_version,
        copy_suffix=resolved_settings.recipe_copy_suffix,
    )
    return AppContainer(
        settings=resolved_settings,
        store=resolved_store,
        catalog_service=catalog_service,
    )
