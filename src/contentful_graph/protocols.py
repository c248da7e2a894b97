"""Protocols for the collaborators the normalizer and image engine depend on."""

from collections.abc import Iterable
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from contentful_graph.models.node import Node


@runtime_checkable
class NodeStoreProtocol(Protocol):
    """Protocol for the node persistence/lookup store."""

    def get_node(self, node_id: str) -> Node | None:
        """Return a previously created node, or None."""
        ...

    def create_node(self, node: Node) -> None:
        """Create or replace a node."""
        ...

    def root_nodes(self) -> Iterable[Node]:
        """Yield previously materialized entry and asset nodes."""
        ...

    def delete_node(self, node_id: str) -> None:
        """Remove a node. Unknown ids are ignored."""
        ...


@runtime_checkable
class AssetFetcherProtocol(Protocol):
    """Protocol for fetching remote files into the on-disk cache."""

    async def fetch_asset(
        self,
        url: str,
        *,
        name: str | None = None,
        ext: str = "",
    ) -> Path:
        """Download ``url`` (or reuse the cached copy) and return its local path."""
        ...


@runtime_checkable
class RasterProcessorProtocol(Protocol):
    """Protocol for optional raster processing (tracing, colour extraction)."""

    async def trace_svg(self, path: Path, options: dict[str, Any]) -> str:
        """Return a traced SVG data URI for the image at ``path``."""
        ...

    async def get_dominant_color(self, path: Path) -> str:
        """Return the dominant colour of the image at ``path``."""
        ...
