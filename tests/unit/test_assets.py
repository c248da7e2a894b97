"""Tests for asset node creation."""

from contentful_graph.core.identity import create_node_id
from contentful_graph.core.importer.snapshot_reader import parse_snapshot
from contentful_graph.core.sync import normalize_snapshot
from tests.unit.fakes import FakeNodeStore
from tests.unit.snapshots import asset, make_snapshot


def test_asset_node_per_locale(store: FakeNodeStore) -> None:
    normalize_snapshot(parse_snapshot(make_snapshot(assets=[asset("asset1")])), store)

    en = store.get_node(create_node_id("space1___asset1___Asset"))
    de = store.get_node(create_node_id("space1___asset1___Asset___de"))
    assert en is not None and de is not None
    assert en.fields["title"] == "Photo"
    assert de.fields["title"] == "Foto"
    # de has no file of its own; falls back to en-US.
    assert de.fields["file"] == en.fields["file"]
    assert en.fields["file"]["contentType"] == "image/jpeg"
    assert en.internal.type == "ContentfulAsset"
    assert en.children == ()


def test_asset_node_carries_sys_and_defaults(store: FakeNodeStore) -> None:
    raw = asset("asset1")
    del raw["fields"]["title"]

    normalize_snapshot(parse_snapshot(make_snapshot(assets=[raw])), store)

    node = store.get_node(create_node_id("space1___asset1___Asset"))
    assert node is not None
    assert node.fields["title"] == ""
    assert node.fields["description"] == ""
    assert node.fields["sys"] == {"type": "Asset", "revision": 2}
    assert node.fields["contentful_id"] == "asset1"
    assert node.internal.content_digest == "2024-01-01T00:00:00Z"


def test_asset_without_file_gets_none(store: FakeNodeStore) -> None:
    raw = asset("asset1")
    del raw["fields"]["file"]

    normalize_snapshot(parse_snapshot(make_snapshot(assets=[raw])), store)

    node = store.get_node(create_node_id("space1___asset1___Asset"))
    assert node is not None
    assert node.fields["file"] is None
