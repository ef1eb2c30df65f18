"""Exceptions raised by the recipe database."""


class RecipeDbError(Exception):
    """Base class for recipe database errors."""


class InvalidRecordError(RecipeDbError):
    """A record does not satisfy the data model invariants."""

    def __init__(self, messages: list[str]) -> None:
        super().__init__("; ".join(messages) or "Invalid record")
        self.messages = messages


class InvalidDocumentError(RecipeDbError):
    """An import document failed structural validation."""

    def __init__(self, messages: list[str]) -> None:
        super().__init__("; ".join(messages) or "Invalid import document")
        self.messages = messages


class MaterialNotFoundError(RecipeDbError):
    """No material exists with the requested id."""

    def __init__(self, material_id: str) -> None:
        super().__init__(f"Material not found: {material_id}")
        self.material_id = material_id


class RecipeNotFoundError(RecipeDbError):
    """No recipe exists with the requested id."""

    def __init__(self, recipe_id: str) -> None:
        super().__init__(f"Recipe not found: {recipe_id}")
        self.recipe_id = recipe_id


class InvalidSubstitutionError(RecipeDbError):
    """A material cannot be replaced by the requested material."""
