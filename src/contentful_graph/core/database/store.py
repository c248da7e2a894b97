"""SQLite-backed node store."""

import json
import sqlite3
import time
from collections.abc import Iterator

from contentful_graph.models.node import Node

# Entity types of the nodes links may resolve to.
ROOT_SYS_TYPES = ("Entry", "Asset")


class SqliteNodeStore:
    """Node store keeping each node as a JSON payload keyed by id.

    Writes are committed by ``commit()``, so a failed pass can be rolled back.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def get_node(self, node_id: str) -> Node | None:
        row = self.conn.execute("SELECT payload FROM nodes WHERE id = ?", (node_id,)).fetchone()
        if row is None:
            return None
        return Node.from_dict(json.loads(row[0]))

    def create_node(self, node: Node) -> None:
        entity_type = node.internal.entity_type
        self.conn.execute(
            """INSERT OR REPLACE INTO nodes
               (id, type, content_digest, parent_id, foreign_id, sys_type, payload, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                node.id,
                node.internal.type,
                node.internal.content_digest,
                node.parent,
                node.fields.get("contentful_id") if entity_type else None,
                entity_type,
                json.dumps(node.to_dict(), sort_keys=True),
                int(time.time() * 1000),
            ),
        )

    def root_nodes(self) -> Iterator[Node]:
        placeholders = ", ".join("?" for _ in ROOT_SYS_TYPES)
        rows = self.conn.execute(
            f"SELECT payload FROM nodes WHERE sys_type IN ({placeholders})",  # noqa: S608
            ROOT_SYS_TYPES,
        ).fetchall()
        for (payload,) in rows:
            yield Node.from_dict(json.loads(payload))

    def delete_node(self, node_id: str) -> None:
        self.conn.execute("DELETE FROM nodes WHERE id = ?", (node_id,))

    def count_nodes(self, node_type: str | None = None) -> int:
        if node_type is None:
            return self.conn.execute("SELECT COUNT(*) FROM nodes").fetchone()[0]  # type: ignore[no-any-return]
        row = self.conn.execute("SELECT COUNT(*) FROM nodes WHERE type = ?", (node_type,))
        return row.fetchone()[0]  # type: ignore[no-any-return]

    def commit(self) -> None:
        self.conn.commit()

    def rollback(self) -> None:
        self.conn.rollback()
