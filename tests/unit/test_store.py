"""Tests for the SQLite schema and node store."""

import sqlite3

import pytest

from contentful_graph.core.database.schema import (
    SCHEMA_VERSION,
    get_metadata,
    get_schema_version,
    migrate_schema,
    set_metadata,
)
from contentful_graph.core.database.store import SqliteNodeStore
from contentful_graph.core.identity import create_node_id
from contentful_graph.core.importer.snapshot_reader import parse_snapshot
from contentful_graph.core.sync import normalize_snapshot
from contentful_graph.models.node import Node, NodeInternal
from contentful_graph.protocols import NodeStoreProtocol
from tests.unit.snapshots import asset, entry, link, make_snapshot


def _node(node_id: str, entity_type: str | None = None, **fields: object) -> Node:
    return Node(
        id=node_id,
        parent="p",
        children=("c1",),
        fields=dict(fields),
        internal=NodeInternal(
            type="ContentfulThing",
            content_digest="d1",
            media_type="text/markdown",
            entity_type=entity_type,
        ),
    )


def test_migrate_creates_schema() -> None:
    conn = sqlite3.connect(":memory:")
    assert get_schema_version(conn) is None

    migrate_schema(conn)

    assert get_schema_version(conn) == SCHEMA_VERSION


def test_migrate_upgrades_older_database() -> None:
    conn = sqlite3.connect(":memory:")
    conn.execute("CREATE TABLE nodes (id TEXT PRIMARY KEY, type TEXT, sys_type TEXT)")
    conn.execute("PRAGMA user_version = 1")

    migrate_schema(conn)

    indexes = {row[1] for row in conn.execute("PRAGMA index_list(nodes)")}
    assert "idx_nodes_sys_type" in indexes
    assert get_schema_version(conn) == SCHEMA_VERSION


def test_migrate_rejects_newer_database() -> None:
    conn = sqlite3.connect(":memory:")
    conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION + 1}")

    with pytest.raises(RuntimeError, match="newer than supported"):
        migrate_schema(conn)


def test_metadata_roundtrip(db: sqlite3.Connection) -> None:
    assert get_metadata(db, "space_id") is None
    set_metadata(db, "space_id", "space1")
    assert get_metadata(db, "space_id") == "space1"


def test_store_satisfies_protocol(db: sqlite3.Connection) -> None:
    assert isinstance(SqliteNodeStore(db), NodeStoreProtocol)


def test_create_and_get_node(db: sqlite3.Connection) -> None:
    store = SqliteNodeStore(db)
    node = _node("n1", "Entry", title="Hello", sys={"type": "Entry"})

    store.create_node(node)

    assert store.get_node("n1") == node
    assert store.get_node("missing") is None


def test_create_node_replaces_existing(db: sqlite3.Connection) -> None:
    store = SqliteNodeStore(db)
    store.create_node(_node("n1", title="One"))
    store.create_node(_node("n1", title="Two"))

    assert store.count_nodes() == 1
    fetched = store.get_node("n1")
    assert fetched is not None
    assert fetched.fields["title"] == "Two"


def test_root_nodes_are_entries_and_assets(db: sqlite3.Connection) -> None:
    store = SqliteNodeStore(db)
    store.create_node(_node("e", "Entry"))
    store.create_node(_node("a", "Asset"))
    store.create_node(_node("t"))

    assert sorted(n.id for n in store.root_nodes()) == ["a", "e"]


def test_spread_json_sys_field_does_not_make_a_root(db: sqlite3.Connection) -> None:
    store = SqliteNodeStore(db)
    store.create_node(_node("j1", sys="v1"))
    store.create_node(_node("j2", sys={"type": "Entry"}, contentful_id="ghost"))

    assert list(store.root_nodes()) == []
    assert store.get_node("j1") is not None


def test_delete_node(db: sqlite3.Connection) -> None:
    store = SqliteNodeStore(db)
    store.create_node(_node("e", "Entry"))

    store.delete_node("e")
    store.delete_node("missing")

    assert store.get_node("e") is None
    assert store.count_nodes() == 0


def test_normalize_into_sqlite_is_idempotent(db: sqlite3.Connection) -> None:
    store = SqliteNodeStore(db)
    snapshot = parse_snapshot(
        make_snapshot(
            entries=[entry("post1", "blogPost", {"body": {"en-US": "text"}})],
            assets=[asset("asset1")],
        )
    )

    normalize_snapshot(snapshot, store)
    store.commit()
    count = store.count_nodes()
    stats = normalize_snapshot(snapshot, store)

    assert stats.entry_nodes_created == 0
    assert store.count_nodes() == count
    assert store.count_nodes("ContentfulNodeTypeText") == 2


def test_json_child_with_entity_like_keys_is_never_linkable(db: sqlite3.Connection) -> None:
    store = SqliteNodeStore(db)
    first = parse_snapshot(
        make_snapshot(
            entries=[
                entry("post1", "blogPost", {"meta": {"en-US": {"sys": "v1"}}}),
                entry(
                    "post3",
                    "blogPost",
                    {"meta": {"en-US": {"sys": {"type": "Entry"}, "contentful_id": "ghost"}}},
                ),
            ]
        )
    )
    normalize_snapshot(first, store)
    store.commit()

    second = parse_snapshot(
        make_snapshot(entries=[entry("post2", "blogPost", {"author": {"en-US": link("ghost")}})])
    )
    normalize_snapshot(second, store)

    post2 = store.get_node(create_node_id("space1___post2___Entry"))
    assert post2 is not None
    assert "author___NODE" not in post2.fields
    assert {n.fields["contentful_id"] for n in store.root_nodes()} == {"post1", "post2", "post3"}


def test_deleted_entry_is_removed_from_sqlite(db: sqlite3.Connection) -> None:
    store = SqliteNodeStore(db)
    normalize_snapshot(
        parse_snapshot(
            make_snapshot(entries=[entry("post1", "blogPost", {"body": {"en-US": "text"}})])
        ),
        store,
    )
    gone = entry("post1", "blogPost", {})
    gone["sys"]["type"] = "DeletedEntry"

    normalize_snapshot(parse_snapshot(make_snapshot(entries=[gone])), store)

    assert list(store.root_nodes()) == []
    assert store.count_nodes("ContentfulNodeTypeText") == 0
