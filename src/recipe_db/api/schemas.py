"""Pydantic models for API request bodies."""

from pydantic import BaseModel, Field

from recipe_db.domain.transfer import ConflictStrategy, ImportMode, ImportOptions


class ImportOptionsPayload(BaseModel):
    """Import options as sent by clients."""

    mode: ImportMode = ImportMode.MERGE
    include_materials: bool = Field(default=True, alias="includeMaterials")
    include_recipes: bool = Field(default=True, alias="includeRecipes")
    handle_conflicts: ConflictStrategy = Field(
        default=ConflictStrategy.SKIP, alias="handleConflicts"
    )

    def to_options(self) -> ImportOptions:
        return ImportOptions(
            mode=self.mode,
            include_materials=self.include_materials,
            include_recipes=self.include_recipes,
            handle_conflicts=self.handle_conflicts,
        )


class ImportRequest(BaseModel):
    """A document import request."""

    document: dict[str, object]
    options: ImportOptionsPayload = Field(default_factory=ImportOptionsPayload)


class RowImportRequest(BaseModel):
    """Decoded spreadsheet rows keyed by column header."""

    rows: list[dict[str, object]]
    strategy: ConflictStrategy = ConflictStrategy.SKIP


class SubstitutionRequest(BaseModel):
    """Replacement material for a blocked deletion."""

    replacement_id: str = Field(alias="replacementId", min_length=1)
