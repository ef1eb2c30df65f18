"""Domain models for importing and exporting collections."""

from dataclasses import dataclass, field
from enum import StrEnum

from recipe_db.domain.materials import Material
from recipe_db.domain.recipes import Recipe

EXPORT_FORMAT_VERSION = 1


class ImportMode(StrEnum):
    """How incoming records combine with the live collections."""

    REPLACE = "replace"
    MERGE = "merge"


class ConflictStrategy(StrEnum):
    """What to do when an incoming record collides with an existing one."""

    SKIP = "skip"
    OVERWRITE = "overwrite"
    RENAME = "rename"


@dataclass(frozen=True)
class ImportOptions:
    """Options selected for a document import."""

    mode: ImportMode = ImportMode.MERGE
    include_materials: bool = True
    include_recipes: bool = True
    handle_conflicts: ConflictStrategy = ConflictStrategy.SKIP


@dataclass
class ImportResult:
    """Summary of an import, with the reconciled collections on success."""

    success: bool = False
    materials_imported: int = 0
    recipes_imported: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    materials: list[Material] | None = None
    recipes: list[Recipe] | None = None
