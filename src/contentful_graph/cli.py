"""CLI for contentful-graph (normalize snapshots, inspect nodes, build image URLs)."""

import asyncio
import dataclasses
import json
import sqlite3
from pathlib import Path
from typing import Annotated, Any

import typer
from loguru import logger

from contentful_graph.config import SourceOptions, resolve_data_directory
from contentful_graph.core.database.schema import migrate_schema, set_metadata
from contentful_graph.core.database.store import SqliteNodeStore
from contentful_graph.core.images.derivatives import resolve_fixed, resolve_fluid, resolve_resize
from contentful_graph.core.images.image_data import LAYOUTS, PLACEHOLDERS, resolve_image_data
from contentful_graph.core.images.placeholders import PlaceholderResolver
from contentful_graph.core.importer.snapshot_reader import load_snapshot
from contentful_graph.core.sync import normalize_snapshot
from contentful_graph.fetcher import AssetFetcher
from contentful_graph.logging_config import configure_logging
from contentful_graph.models.image import ImageOptions
from contentful_graph.models.node import Node

app = typer.Typer(help="Normalize Contentful sync snapshots into a node graph.")

DB_FILENAME = "nodes.db"

_MODES = {"fixed": resolve_fixed, "fluid": resolve_fluid, "resize": resolve_resize}

DataDirOption = Annotated[
    Path | None,
    typer.Option("--data-dir", "-d", help="Node database directory"),
]


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    log_file: Annotated[
        Path | None,
        typer.Option("--log-file", help="Also write debug logs to this file"),
    ] = None,
) -> None:
    configure_logging(verbose=verbose, log_file=log_file)


def _open_db(data_dir: Path | None) -> sqlite3.Connection:
    """Open the node database, exiting if it doesn't exist."""
    db_path = (data_dir or resolve_data_directory()) / DB_FILENAME
    if not db_path.exists():
        logger.error("Node database not found: {}. Run 'normalize' first.", db_path)
        raise typer.Exit(1)
    return sqlite3.connect(str(db_path))


def _load_node(conn: sqlite3.Connection, node_id: str) -> Node:
    node = SqliteNodeStore(conn).get_node(node_id)
    if node is None:
        typer.echo(f"Node '{node_id}' not found.")
        raise typer.Exit(1)
    return node


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, sort_keys=True))


@app.command()
def normalize(
    snapshot: Path = typer.Argument(..., help="Sync snapshot JSON file"),
    data_dir: DataDirOption = None,
    use_name_for_id: bool = typer.Option(
        True,
        "--use-name-for-id/--use-id",
        help="Name node types after content type names or ids",
    ),
    enable_tags: bool = typer.Option(False, "--enable-tags", help="Create tag nodes"),
) -> None:
    """Normalize a sync snapshot into the node database."""
    if not snapshot.exists():
        logger.error("Snapshot file not found: {}", snapshot)
        raise typer.Exit(1)

    dst = data_dir or resolve_data_directory()
    dst.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(dst / DB_FILENAME))
    try:
        store = SqliteNodeStore(conn)
        options = SourceOptions(use_name_for_id=use_name_for_id, enable_tags=enable_tags)
        try:
            migrate_schema(conn)
            parsed = load_snapshot(snapshot)
            stats = normalize_snapshot(parsed, store, options)
        except (ValueError, RuntimeError) as e:
            store.rollback()
            logger.error("Failed to normalize {}: {}", snapshot, e)
            raise typer.Exit(1) from e
        store.commit()
        set_metadata(conn, "space_id", parsed.space_id)
        typer.echo(
            f"Normalized {stats.content_types} content types: "
            f"{stats.entry_nodes_created} entry nodes "
            f"({stats.entry_nodes_skipped} unchanged), "
            f"{stats.child_nodes_created} child nodes, "
            f"{stats.asset_nodes_created} asset nodes, "
            f"{stats.tag_nodes_created} tag nodes"
        )
        if stats.deleted_records:
            typer.echo(f"Skipped {stats.deleted_records} deleted records")
    finally:
        conn.close()


@app.command()
def show(
    node_id: str = typer.Argument(..., help="Node ID to show"),
    data_dir: DataDirOption = None,
) -> None:
    """Print a stored node as JSON."""
    conn = _open_db(data_dir)
    try:
        _echo_json(_load_node(conn, node_id).to_dict())
    finally:
        conn.close()


@app.command()
def image(
    node_id: str = typer.Argument(..., help="Asset node ID"),
    mode: str = typer.Option("fixed", "--mode", "-m", help="fixed, fluid or resize"),
    width: Annotated[int | None, typer.Option("--width", "-w", help="Width in pixels")] = None,
    height: Annotated[int | None, typer.Option("--height", "-h", help="Height in pixels")] = None,
    to_format: str = typer.Option("", "--format", "-f", help="jpg, png, webp or gif"),
    quality: int = typer.Option(50, "--quality", "-q", help="Image quality"),
    base64: bool = typer.Option(False, "--base64", help="Fetch a base64 placeholder"),
    data_dir: DataDirOption = None,
) -> None:
    """Print an image descriptor for an asset node as JSON."""
    resolve = _MODES.get(mode)
    if resolve is None:
        typer.echo(f"Unknown mode '{mode}', expected one of {', '.join(_MODES)}.")
        raise typer.Exit(1)

    conn = _open_db(data_dir)
    try:
        asset = _load_node(conn, node_id)
    finally:
        conn.close()

    if mode == "fluid":
        options = ImageOptions(max_width=width, max_height=height, to_format=to_format, quality=quality)
    else:
        options = ImageOptions(width=width, height=height, to_format=to_format, quality=quality)

    descriptor = resolve(asset, options)
    if descriptor is None:
        typer.echo(f"Node '{node_id}' is not an image asset.")
        raise typer.Exit(1)
    if base64:
        resolver = PlaceholderResolver(AssetFetcher())
        descriptor = asyncio.run(resolver.with_placeholders(descriptor, base64=True))
    _echo_json(dataclasses.asdict(descriptor))


@app.command(name="image-data")
def image_data(
    node_id: str = typer.Argument(..., help="Asset node ID"),
    layout: str = typer.Option("constrained", "--layout", "-l", help=", ".join(LAYOUTS)),
    width: Annotated[int | None, typer.Option("--width", "-w", help="Width in pixels")] = None,
    height: Annotated[int | None, typer.Option("--height", "-h", help="Height in pixels")] = None,
    placeholder: str = typer.Option("none", "--placeholder", "-p", help=", ".join(PLACEHOLDERS)),
    data_dir: DataDirOption = None,
) -> None:
    """Print layout-aware image data for an asset node as JSON."""
    conn = _open_db(data_dir)
    try:
        asset = _load_node(conn, node_id)
    finally:
        conn.close()

    options = ImageOptions(width=width, height=height, layout=layout, placeholder=placeholder)
    resolver = PlaceholderResolver(AssetFetcher())
    try:
        data = asyncio.run(resolve_image_data(asset, options, resolver))
    except ValueError as e:
        typer.echo(str(e))
        raise typer.Exit(1) from e
    if data is None:
        typer.echo(f"Node '{node_id}' is not an image asset.")
        raise typer.Exit(1)
    _echo_json(dataclasses.asdict(data))
