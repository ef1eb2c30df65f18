"""JSON file implementation of the collection store."""

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from recipe_db.services.store import CollectionStore

_logger = logging.getLogger(__name__)


@dataclass
class JsonFileCollectionStore(CollectionStore):
    """Stores each namespace as ``<directory>/<namespace>.json``."""

    directory: Path

    def load(self, namespace: str) -> list[dict[str, object]]:
        """Return stored records, or an empty list when nothing is saved yet."""
        path = self._path(namespace)
        if not path.exists():
            return []
        with path.open(encoding="utf-8") as handle:
            records = json.load(handle)
        if not isinstance(records, list):
            raise ValueError(f"Expected a JSON array in {path}")
        return records

    def save(self, namespace: str, records: list[dict[str, object]]) -> None:
        """Write records atomically by replacing the file."""
        path = self._path(namespace)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(records, handle, ensure_ascii=False, indent=2)
        os.replace(tmp_path, path)
        _logger.debug("Saved %s records to %s", len(records), path)

    def _path(self, namespace: str) -> Path:
        return Path(self.directory) / f"{namespace}.json"
