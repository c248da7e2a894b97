"""Fake implementations for testing the normalizer and image engine."""

import asyncio
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from contentful_graph.models.node import Node


class FakeNodeStore:
    """In-memory fake for SqliteNodeStore.

    Keeps nodes in a dict and records every create for assertions.
    """

    def __init__(self, nodes: list[Node] | None = None) -> None:
        self.nodes: dict[str, Node] = {n.id: n for n in nodes or []}
        self.created: list[Node] = []
        self.deleted: list[str] = []

    def get_node(self, node_id: str) -> Node | None:
        return self.nodes.get(node_id)

    def create_node(self, node: Node) -> None:
        self.nodes[node.id] = node
        self.created.append(node)

    def root_nodes(self) -> Iterator[Node]:
        for node in self.nodes.values():
            if node.internal.entity_type in ("Entry", "Asset"):
                yield node

    def delete_node(self, node_id: str) -> None:
        self.nodes.pop(node_id, None)
        self.deleted.append(node_id)

    def by_type(self, node_type: str) -> list[Node]:
        return [n for n in self.nodes.values() if n.internal.type == node_type]


class FakeAssetFetcher:
    """Fake for AssetFetcher that writes canned bytes to a temp dir.

    Unknown URLs fail like a real download would. Each fetch yields to the
    event loop a few times so concurrent callers overlap.
    """

    def __init__(self, cache_dir: Path, files: dict[str, bytes] | None = None) -> None:
        self.cache_dir = cache_dir
        self.files: dict[str, bytes] = dict(files or {})
        self.default: bytes | None = None
        self.calls: list[tuple[str, str | None, str]] = []

    async def fetch_asset(self, url: str, *, name: str | None = None, ext: str = "") -> Path:
        self.calls.append((url, name, ext))
        for _ in range(3):
            await asyncio.sleep(0)
        data = self.files.get(url, self.default)
        if data is None:
            msg = f"FakeAssetFetcher: no file registered for {url!r}"
            raise RuntimeError(msg)
        path = self.cache_dir / f"{len(self.calls)}{ext}"
        path.write_bytes(data)
        return path


class FakeRasterProcessor:
    """Fake raster processor returning fixed results and recording calls."""

    def __init__(self, *, color: str = "#336699", svg: str = "data:image/svg+xml,<svg/>") -> None:
        self.color = color
        self.svg = svg
        self.fail = False
        self.calls: list[tuple[str, Path]] = []
        self.trace_options: list[dict[str, Any]] = []

    async def trace_svg(self, path: Path, options: dict[str, Any]) -> str:
        self.calls.append(("trace_svg", path))
        self.trace_options.append(options)
        if self.fail:
            msg = "FakeRasterProcessor: tracing failed"
            raise OSError(msg)
        return self.svg

    async def get_dominant_color(self, path: Path) -> str:
        self.calls.append(("get_dominant_color", path))
        if self.fail:
            msg = "FakeRasterProcessor: processing failed"
            raise OSError(msg)
        return self.color
