"""Shared test fixtures."""

import sqlite3
from collections.abc import Iterator

import pytest
from loguru import logger

from contentful_graph.core.database.schema import create_schema
from contentful_graph.core.images.placeholders import PlaceholderCache
from contentful_graph.core.importer.snapshot_reader import parse_snapshot
from contentful_graph.models.content import SyncSnapshot
from contentful_graph.models.node import Node, NodeInternal
from tests.unit.fakes import FakeNodeStore
from tests.unit.snapshots import asset, entry, link, make_snapshot


@pytest.fixture
def store() -> FakeNodeStore:
    return FakeNodeStore()


@pytest.fixture
def db() -> sqlite3.Connection:
    """Return an in-memory DB with the node schema."""
    conn = sqlite3.connect(":memory:")
    create_schema(conn)
    return conn


@pytest.fixture
def blog_snapshot() -> SyncSnapshot:
    """A post linking an author, another post, a missing entry and an asset."""
    return parse_snapshot(
        make_snapshot(
            entries=[
                entry(
                    "post1",
                    "blogPost",
                    {
                        "title": {"en-US": "Hello", "de": "Hallo"},
                        "body": {"en-US": "# Hi"},
                        "author": {"en-US": link("person1")},
                        "related": {"en-US": [link("post2"), link("missing")]},
                        "keywords": {"en-US": ["a", "b"]},
                        "hero": {"en-US": link("asset1", "Asset")},
                    },
                ),
                entry("post2", "blogPost", {"title": {"en-US": "Second"}}),
                entry("person1", "person", {"name": {"en-US": "Ada"}}),
            ],
            assets=[asset("asset1")],
        )
    )


@pytest.fixture
def image_asset() -> Node:
    """An asset node for a 2000x1000 JPEG on the image API host."""
    return Node(
        id="asset-node",
        fields={
            "contentful_id": "asset1",
            "file": {
                "url": "//images.ctfassets.net/space1/a1/photo.jpg",
                "fileName": "photo.jpg",
                "contentType": "image/jpeg",
                "details": {"image": {"width": 2000, "height": 1000}},
            },
            "sys": {"type": "Asset"},
        },
        internal=NodeInternal(type="ContentfulAsset", content_digest="d1", entity_type="Asset"),
    )


@pytest.fixture
def placeholder_cache() -> PlaceholderCache:
    return PlaceholderCache()


@pytest.fixture
def log_messages() -> Iterator[list[str]]:
    """Collect loguru messages at WARNING and above."""
    messages: list[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="WARNING")
    yield messages
    logger.remove(handler_id)
