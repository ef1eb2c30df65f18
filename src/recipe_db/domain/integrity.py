"""Domain models for referential integrity."""

from dataclasses import dataclass
from enum import StrEnum

from recipe_db.domain.recipes import Recipe


@dataclass(frozen=True)
class OrphanedReference:
    """A recipe whose ingredients reference materials that no longer exist."""

    recipe_id: str
    recipe_name: str
    missing_material_ids: tuple[str, ...]


class DeletionState(StrEnum):
    """States of a single material deletion request."""

    REQUESTED = "requested"
    BLOCKED = "blocked"
    DELETED = "deleted"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class DeletionRequest:
    """Outcome of asking to delete a material."""

    material_id: str
    state: DeletionState
    blocking_recipes: tuple[Recipe, ...] = ()

    @property
    def is_blocked(self) -> bool:
        return self.state is DeletionState.BLOCKED
