"""Tests for the Supabase collection store."""

from dataclasses import dataclass, field

import pytest

from recipe_db.adapters.supabase_collection_store import SupabaseCollectionStore


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


@dataclass
class FakeTable:
    name: str
    rows: list[dict[str, object]] = field(default_factory=list)
    fail_upsert: bool = False
    calls: list[tuple[str, object]] = field(default_factory=list)

    def select(self, *_args) -> "FakeTable":
        self._action = "select"
        self._payload = None
        return self

    def upsert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "upsert"
        self._payload = payload
        self.calls.append(("upsert", payload))
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        return self

    def in_(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._payload = value
        self.calls.append(("delete", value))
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def execute(self) -> FakeResponse:
        action = getattr(self, "_action", "select")
        if action == "delete":
            self.rows = [row for row in self.rows if row["id"] not in self._payload]
            return FakeResponse(data=[])
        if action == "upsert":
            if self.fail_upsert:
                return FakeResponse(data=[])
            by_id = {row["id"]: row for row in self.rows}
            for row in self._payload:
                by_id[row["id"]] = row
            self.rows = list(by_id.values())
            return FakeResponse(data=list(self._payload))
        return FakeResponse(
            data=sorted(self.rows, key=lambda row: row.get("position", 0))
        )


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def test_load_returns_payloads_by_position() -> None:
    client = FakeSupabaseClient()
    client.table("materials").rows = [
        {"id": "b", "position": 1, "payload": {"id": "b"}},
        {"id": "a", "position": 0, "payload": {"id": "a"}},
    ]

    store = SupabaseCollectionStore(client)

    assert store.load("materials") == [{"id": "a"}, {"id": "b"}]


def test_save_upserts_and_removes_stale_rows() -> None:
    client = FakeSupabaseClient()
    table = client.table("recipes")
    table.rows = [
        {"id": "r1", "position": 0, "payload": {"id": "r1"}},
        {"id": "r2", "position": 1, "payload": {"id": "r2"}},
    ]
    store = SupabaseCollectionStore(client)

    store.save("recipes", [{"id": "r2", "name": "Soup"}, {"id": "r3"}])

    assert ("delete", ["r1"]) in table.calls
    assert store.load("recipes") == [{"id": "r2", "name": "Soup"}, {"id": "r3"}]


def test_save_empty_collection_only_deletes() -> None:
    client = FakeSupabaseClient()
    table = client.table("materials")
    table.rows = [{"id": "a", "position": 0, "payload": {"id": "a"}}]

    SupabaseCollectionStore(client).save("materials", [])

    assert table.rows == []
    assert all(call[0] != "upsert" for call in table.calls)


def test_failed_upsert_keeps_existing_rows() -> None:
    client = FakeSupabaseClient()
    table = client.table("materials")
    table.fail_upsert = True
    table.rows = [
        {"id": "a", "position": 0, "payload": {"id": "a"}},
        {"id": "b", "position": 1, "payload": {"id": "b"}},
    ]

    with pytest.raises(RuntimeError, match="materials"):
        SupabaseCollectionStore(client).save("materials", [{"id": "c"}])

    assert [row["id"] for row in table.rows] == ["a", "b"]
    assert all(call[0] != "delete" for call in table.calls)


def test_save_upserts_before_deleting() -> None:
    client = FakeSupabaseClient()
    table = client.table("recipes")
    table.rows = [{"id": "r1", "position": 0, "payload": {"id": "r1"}}]

    SupabaseCollectionStore(client).save("recipes", [{"id": "r2"}])

    assert [call[0] for call in table.calls] == ["upsert", "delete"]
    assert table.calls[1] == ("delete", ["r1"])
