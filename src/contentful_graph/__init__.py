"""Normalize Contentful sync snapshots into a content graph."""

from contentful_graph.config import SourceOptions
from contentful_graph.core.sync import NormalizeStats, normalize_snapshot
from contentful_graph.fetcher import AssetFetcher
from contentful_graph.protocols import (
    AssetFetcherProtocol,
    NodeStoreProtocol,
    RasterProcessorProtocol,
)

__all__ = [
    "AssetFetcher",
    "AssetFetcherProtocol",
    "NodeStoreProtocol",
    "NormalizeStats",
    "RasterProcessorProtocol",
    "SourceOptions",
    "normalize_snapshot",
]
