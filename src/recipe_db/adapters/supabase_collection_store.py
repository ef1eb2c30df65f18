"""Supabase implementation of the collection store."""

from dataclasses import dataclass

from supabase import Client

from recipe_db.services.store import CollectionStore


@dataclass
class SupabaseCollectionStore(CollectionStore):
    """Stores each namespace in a table of ``(id, position, payload)`` rows."""

    client: Client

    def load(self, namespace: str) -> list[dict[str, object]]:
        """Return the stored payloads in their saved order."""
        response = (
            self.client.table(namespace)
            .select("id, position, payload")
            .order("position")
            .execute()
        )
        return [row["payload"] for row in response.data or []]

    def save(self, namespace: str, records: list[dict[str, object]]) -> None:
        """Upsert the records, then delete rows that are no longer present.

        A failed upsert raises before anything is deleted, so the stored
        collection is never left with rows removed but not replaced.
        """
        if records:
            rows = [
                {"id": str(record["id"]), "position": position, "payload": record}
                for position, record in enumerate(records)
            ]
            response = self.client.table(namespace).upsert(rows).execute()
            if not response.data:
                raise RuntimeError(f"Failed to save {namespace}")
        existing = self.client.table(namespace).select("id").execute()
        keep = {str(record["id"]) for record in records}
        stale = [row["id"] for row in existing.data or [] if row["id"] not in keep]
        if stale:
            self.client.table(namespace).delete().in_("id", stale).execute()
