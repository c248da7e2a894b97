"""Orchestrate normalizing a sync snapshot into nodes."""

from dataclasses import dataclass

from loguru import logger

from contentful_graph.config import SourceOptions
from contentful_graph.core.identity import (
    DigestFactory,
    IdMaker,
    NodeIdFactory,
    create_content_digest,
    create_node_id,
)
from contentful_graph.core.normalizer.assets import create_asset_nodes, create_tag_node
from contentful_graph.core.normalizer.context import NormalizeContext
from contentful_graph.core.normalizer.entries import EntryNormalizer
from contentful_graph.core.references import build_entry_list, build_reference_index
from contentful_graph.models.content import EntityRecord, SyncSnapshot
from contentful_graph.protocols import NodeStoreProtocol


@dataclass(frozen=True)
class NormalizeStats:
    """Summary of a normalization pass."""

    content_types: int
    entry_nodes_created: int
    entry_nodes_skipped: int
    child_nodes_created: int
    asset_nodes_created: int
    tag_nodes_created: int
    deleted_records: int


def remove_deleted(
    snapshot: SyncSnapshot,
    store: NodeStoreProtocol,
    id_factory: NodeIdFactory = create_node_id,
) -> int:
    """Drop every locale node of deleted entries and assets, with their children.

    Returns the number of nodes removed.
    """
    records: list[EntityRecord] = [*snapshot.deleted_entries, *snapshot.deleted_assets]
    removed = 0
    for locale in snapshot.locales:
        make_id = IdMaker(
            current_locale=locale.code,
            default_locale=snapshot.default_locale,
            create_node_id=id_factory,
        )
        for record in records:
            node = store.get_node(make_id(snapshot.space_id, record.id, record.type))
            if node is None:
                continue
            for child_id in node.children:
                store.delete_node(child_id)
            store.delete_node(node.id)
            removed += 1
    if removed:
        logger.debug("Removed {} nodes of deleted records", removed)
    return removed


def normalize_snapshot(
    snapshot: SyncSnapshot,
    store: NodeStoreProtocol,
    options: SourceOptions | None = None,
    *,
    id_factory: NodeIdFactory = create_node_id,
    digest_factory: DigestFactory = create_content_digest,
) -> NormalizeStats:
    """Normalize ``snapshot`` and send every new or changed node to ``store``.

    Both reference indexes are built from the full snapshot first, so
    normalizing a content type never needs to look at another one.

    Args:
        snapshot: Parsed sync snapshot.
        store: Node store, used for digest lookups and as the node sink.
        options: Source options; defaults are used when None.
        id_factory: Raw key to node id.
        digest_factory: Payload to content digest.

    Returns:
        NormalizeStats with counts of created/skipped nodes.
    """
    options = options or SourceOptions()
    default_locale = snapshot.default_locale

    # Deleted entities must not stay resolvable through the store.
    remove_deleted(snapshot, store, id_factory)

    entry_lists = build_entry_list(snapshot.content_types, snapshot.entries)
    index = build_reference_index(
        snapshot.content_types,
        entry_lists,
        existing_nodes=list(store.root_nodes()),
        assets=snapshot.assets,
        default_locale=default_locale,
        space_id=snapshot.space_id,
        use_name_for_id=options.use_name_for_id,
    )
    ctx = NormalizeContext(
        space_id=snapshot.space_id,
        locales=snapshot.locales,
        default_locale=default_locale,
        index=index,
        store=store,
        options=options,
        create_node_id=id_factory,
        create_content_digest=digest_factory,
    )

    entries_created = entries_skipped = children_created = 0
    normalizer = EntryNormalizer(ctx)
    for content_type, entries in zip(snapshot.content_types, entry_lists, strict=True):
        produced = normalizer.create_nodes_for_content_type(content_type, entries)
        for node in produced.all_nodes():
            store.create_node(node)
        entries_created += len(produced.entry_nodes)
        entries_skipped += produced.entries_skipped
        children_created += len(produced.child_nodes)

    assets_created = 0
    for asset in snapshot.assets:
        for node in create_asset_nodes(ctx, asset):
            store.create_node(node)
            assets_created += 1

    tags_created = 0
    if options.enable_tags:
        for tag in snapshot.tags:
            store.create_node(create_tag_node(ctx, tag))
            tags_created += 1

    deleted = len(snapshot.deleted_entries) + len(snapshot.deleted_assets)
    logger.info(
        "Normalized {} content types: {} entry nodes ({} unchanged), {} child nodes, "
        "{} asset nodes, {} deleted records",
        len(snapshot.content_types),
        entries_created,
        entries_skipped,
        children_created,
        assets_created,
        deleted,
    )
    return NormalizeStats(
        content_types=len(snapshot.content_types),
        entry_nodes_created=entries_created,
        entry_nodes_skipped=entries_skipped,
        child_nodes_created=children_created,
        asset_nodes_created=assets_created,
        tag_nodes_created=tags_created,
        deleted_records=deleted,
    )
