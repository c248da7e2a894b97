"""Asset and tag nodes."""

from typing import Any

from contentful_graph.core.identity import make_type_name
from contentful_graph.core.locales import make_localized_getter
from contentful_graph.core.normalizer.context import NormalizeContext
from contentful_graph.core.normalizer.entries import tag_node_id
from contentful_graph.models.content import EntityRecord, Tag
from contentful_graph.models.node import Node, NodeInternal


def create_asset_nodes(ctx: NormalizeContext, asset: EntityRecord) -> list[Node]:
    """Create one node per locale for ``asset``. Assets have no children."""
    nodes: list[Node] = []
    for locale in ctx.locales:
        make_id = ctx.id_maker(locale)
        get_field = make_localized_getter(locale, ctx.fallback_chain)

        def localized(name: str, default: Any) -> Any:
            values = asset.fields.get(name)
            if not values:
                return default
            value = get_field(values)
            return default if value is None else value

        sys: dict[str, Any] = {"type": asset.type}
        if asset.revision is not None:
            sys["revision"] = asset.revision

        nodes.append(
            Node(
                id=make_id(ctx.space_id, asset.id, asset.type),
                fields={
                    "contentful_id": asset.id,
                    "spaceId": ctx.space_id,
                    "createdAt": asset.created_at,
                    "updatedAt": asset.updated_at,
                    "file": localized("file", None),
                    "title": localized("title", ""),
                    "description": localized("description", ""),
                    "node_locale": locale.code,
                    "sys": sys,
                },
                internal=NodeInternal(
                    type=make_type_name("Asset"),
                    # updatedAt changes if and only if the asset changed.
                    content_digest=asset.updated_at,
                    entity_type=asset.type,
                ),
            )
        )
    return nodes


def create_tag_node(ctx: NormalizeContext, tag: Tag) -> Node:
    return Node(
        id=tag_node_id(ctx, tag.id),
        fields={"name": tag.name, "contentful_id": tag.id},
        internal=NodeInternal(type=make_type_name("Tag"), content_digest=tag.updated_at),
    )
