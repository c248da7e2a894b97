"""Configuration constants for contentful-graph."""

import os
from dataclasses import dataclass
from pathlib import Path

# Prefix for every generated node type name.
TYPE_PREFIX: str = "Contentful"

# Node attributes owned by the node store. Entry fields with these ids get renamed.
RESTRICTED_NODE_FIELDS: tuple[str, ...] = (
    "children",
    "contentful_id",
    "fields",
    "id",
    "internal",
    "parent",
)

# Only assets served from this host go through the image API.
IMAGE_API_HOST: str = "images.ctfassets.net"

# Largest width or height the image API will render.
IMAGE_MAX_SIZE: int = 4000

# Returned instead of a dominant colour when raster processing is unavailable.
NEUTRAL_FALLBACK_COLOR: str = "rgba(0,0,0,0.5)"

# Env overrides. First non-empty one wins over the defaults below.
DATA_DIR_ENV: str = "CONTENTFUL_GRAPH_DATA_DIR"
CACHE_DIR_ENV: str = "CONTENTFUL_GRAPH_CACHE_DIR"

DEFAULT_DATA_DIR: Path = Path("~/.local/share/contentful-graph").expanduser()
DEFAULT_CACHE_DIR: Path = Path("~/.cache/contentful-graph").expanduser()


@dataclass(frozen=True)
class SourceOptions:
    """Options controlling how a snapshot is turned into nodes."""

    # Label content types by their human name (True) or their raw id (False).
    use_name_for_id: bool = True
    enable_tags: bool = False
    conflict_field_prefix: str = "contentful"
    restricted_node_fields: tuple[str, ...] = RESTRICTED_NODE_FIELDS


def resolve_data_directory() -> Path:
    """Return the directory holding the node database."""
    override = os.environ.get(DATA_DIR_ENV)
    return Path(override).expanduser() if override else DEFAULT_DATA_DIR


def resolve_cache_directory() -> Path:
    """Return the directory where fetched image files are cached."""
    override = os.environ.get(CACHE_DIR_ENV)
    return Path(override).expanduser() if override else DEFAULT_CACHE_DIR
