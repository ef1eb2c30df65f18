"""Collection store abstractions."""

import copy
from dataclasses import dataclass, field
from typing import Protocol

MATERIALS_NAMESPACE = "materials"
RECIPES_NAMESPACE = "recipes"


class CollectionStore(Protocol):
    """Persistence interface for whole record collections."""

    def load(self, namespace: str) -> list[dict[str, object]]:
        """Return every stored record of a namespace, in order."""

    def save(self, namespace: str, records: list[dict[str, object]]) -> None:
        """Replace the stored records of a namespace."""


@dataclass
class InMemoryCollectionStore(CollectionStore):
    """Collection store kept in process memory."""

    collections: dict[str, list[dict[str, object]]] = field(default_factory=dict)

    def load(self, namespace: str) -> list[dict[str, object]]:
        """Return a copy of the stored records."""
        return copy.deepcopy(self.collections.get(namespace, []))

    def save(self, namespace: str, records: list[dict[str, object]]) -> None:
        """Store a copy of the records."""
        self.collections[namespace] = copy.deepcopy(records)
