"""Turn the entries of one content type into entry, child and content-type nodes."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from contentful_graph.core.identity import (
    SEPARATOR,
    IdMaker,
    entity_key,
    is_link,
    link_key,
    make_type_name,
)
from contentful_graph.core.locales import make_localized_getter
from contentful_graph.core.normalizer.context import NormalizeContext
from contentful_graph.core.normalizer.fields import ChildScope, materialize_field
from contentful_graph.core.references import NODE_SUFFIX, content_type_label
from contentful_graph.models.content import (
    ContentTypeField,
    ContentTypeSchema,
    EntityRecord,
    FieldKind,
    Locale,
)
from contentful_graph.models.node import Node, NodeInternal


@dataclass
class ContentTypeNodes:
    """Nodes produced for one content type across all locales."""

    content_type_node: Node
    entry_nodes: list[Node] = field(default_factory=list)
    child_nodes: list[Node] = field(default_factory=list)
    entries_skipped: int = 0

    def all_nodes(self) -> list[Node]:
        return [self.content_type_node, *self.entry_nodes, *self.child_nodes]


def tag_node_id(ctx: NormalizeContext, tag_id: str) -> str:
    return ctx.create_node_id(f"ContentfulTag__{ctx.space_id}__{tag_id}")


class EntryNormalizer:
    """Create nodes for entries, one content type at a time."""

    def __init__(self, ctx: NormalizeContext) -> None:
        self.ctx = ctx
        # (content type, field) pairs already warned about.
        self._warned_conflicts: set[tuple[str, str]] = set()

    def create_nodes_for_content_type(
        self, content_type: ContentTypeSchema, entries: Iterable[EntityRecord]
    ) -> ContentTypeNodes:
        ctx = self.ctx
        label = content_type_label(content_type, use_name_for_id=ctx.options.use_name_for_id)
        content_type_node_id = ctx.create_node_id(label)
        conflicts = self._conflict_fields(content_type, label)
        entries = [e for e in entries if not e.is_deleted]

        result = ContentTypeNodes(
            content_type_node=Node(
                id=content_type_node_id,
                fields={
                    "name": content_type.name,
                    "displayField": content_type.display_field,
                    "description": content_type.description,
                },
                internal=NodeInternal(
                    type=make_type_name("ContentType"),
                    content_digest=content_type.updated_at,
                ),
            )
        )

        for locale in ctx.locales:
            make_id = ctx.id_maker(locale)
            for entry in entries:
                entry_node_id = make_id(ctx.space_id, entry.id, entry.type)
                # updatedAt changes whenever the entry or anything under it changes.
                if ctx.is_current(entry_node_id, entry.updated_at):
                    result.entries_skipped += 1
                    continue
                entry_node, children = self._create_entry_node(
                    content_type,
                    entry,
                    locale=locale,
                    make_id=make_id,
                    entry_node_id=entry_node_id,
                    label=label,
                    content_type_node_id=content_type_node_id,
                    conflicts=conflicts,
                )
                result.entry_nodes.append(entry_node)
                result.child_nodes.extend(children)

        logger.debug(
            "Content type {!r}: {} entry nodes, {} child nodes, {} unchanged",
            label,
            len(result.entry_nodes),
            len(result.child_nodes),
            result.entries_skipped,
        )
        return result

    def _conflict_fields(self, content_type: ContentTypeSchema, label: str) -> set[str]:
        restricted = self.ctx.options.restricted_node_fields
        prefix = self.ctx.options.conflict_field_prefix
        conflicts = {f.id for f in content_type.fields if f.id in restricted}
        for field_id in sorted(conflicts):
            if (content_type.id, field_id) in self._warned_conflicts:
                continue
            self._warned_conflicts.add((content_type.id, field_id))
            logger.warning(
                "Restricted field found for content type {} and field {}. Prefixing with {}.",
                label,
                field_id,
                prefix,
            )
        return conflicts

    def _localize_fields(
        self, content_type: ContentTypeSchema, entry: EntityRecord, locale: Locale
    ) -> dict[str, Any]:
        get_field = make_localized_getter(locale, self.ctx.fallback_chain)
        localized: dict[str, Any] = {}
        for field_id, values in entry.fields.items():
            schema_field = content_type.get_field(field_id)
            if schema_field.localized:
                localized[field_id] = get_field(values)
            else:
                # Non-localized fields only ever hold a default-locale value.
                localized[field_id] = values.get(self.ctx.default_locale)
        return localized

    def _resolve_links(
        self,
        fields: dict[str, Any],
        schema_fields: dict[str, ContentTypeField],
        make_id: IdMaker,
    ) -> None:
        """Replace link fields by ``<field>___NODE`` with resolvable node ids."""
        ctx = self.ctx
        for key in list(fields):
            value = fields[key]
            kind = schema_fields[key].kind
            if kind is FieldKind.LINK_ARRAY and isinstance(value, list):
                if not (value and is_link(value[0])):
                    continue
                resolved = [
                    make_id.for_link(ctx.space_id, v)
                    for v in value
                    if is_link(v) and ctx.index.is_resolvable(link_key(v))
                ]
                # No field at all when nothing resolves, so no phantom empty list.
                if resolved:
                    fields[f"{key}{NODE_SUFFIX}"] = resolved
                del fields[key]
            elif kind is FieldKind.LINK and is_link(value):
                if ctx.index.is_resolvable(link_key(value)):
                    fields[f"{key}{NODE_SUFFIX}"] = make_id.for_link(ctx.space_id, value)
                del fields[key]

    def _merge_back_references(
        self, fields: dict[str, Any], entry: EntityRecord, make_id: IdMaker
    ) -> None:
        for ref in self.ctx.index.references_to(entity_key(entry.id, entry.type)):
            ref_id = make_id(ref.space_id, ref.id, ref.type)
            existing = fields.get(ref.name)
            if existing is None:
                fields[ref.name] = [ref_id]
            elif isinstance(existing, list):
                existing.append(ref_id)
            # A single id here was set by forward resolution; keep it.

    def _create_entry_node(
        self,
        content_type: ContentTypeSchema,
        entry: EntityRecord,
        *,
        locale: Locale,
        make_id: IdMaker,
        entry_node_id: str,
        label: str,
        content_type_node_id: str,
        conflicts: set[str],
    ) -> tuple[Node, list[Node]]:
        ctx = self.ctx
        prefix = ctx.options.conflict_field_prefix
        fields = self._localize_fields(content_type, entry, locale)

        schema_fields: dict[str, ContentTypeField] = {}
        for field_id in list(fields):
            key = f"{prefix}{field_id}" if field_id in conflicts else field_id
            schema_fields[key] = content_type.get_field(field_id)
            if key != field_id:
                fields[key] = fields.pop(field_id)

        self._resolve_links(fields, schema_fields, make_id)
        self._merge_back_references(fields, entry, make_id)

        scope = ChildScope(
            ctx=ctx,
            make_id=make_id,
            entry_node_id=entry_node_id,
            content_type_label=label,
            updated_at=entry.updated_at,
        )
        child_ids: list[str] = []
        children: list[Node] = []
        for key in list(fields):
            # ___NODE fields are links, already handled.
            if SEPARATOR in key:
                continue
            materialized = materialize_field(scope, schema_fields[key].kind, key, fields[key])
            if materialized is None:
                continue
            del fields[key]
            if materialized.reference is not None:
                fields[f"{key}{NODE_SUFFIX}"] = materialized.reference
            child_ids.extend(materialized.child_ids)
            children.extend(materialized.nodes)

        sys: dict[str, Any] = {"type": entry.type}
        if entry.revision is not None:
            sys["revision"] = entry.revision
        if entry.content_type_id is not None:
            sys[f"contentType{NODE_SUFFIX}"] = content_type_node_id

        fields.update(
            spaceId=ctx.space_id,
            contentful_id=entry.id,
            createdAt=entry.created_at,
            updatedAt=entry.updated_at,
            node_locale=locale.code,
            sys=sys,
        )
        if ctx.options.enable_tags:
            fields["metadata"] = {
                f"tags{NODE_SUFFIX}": [tag_node_id(ctx, t) for t in entry.tag_ids]
            }

        entry_node = Node(
            id=entry_node_id,
            parent=content_type_node_id,
            children=tuple(child_ids),
            fields=fields,
            internal=NodeInternal(
                type=make_type_name(label),
                content_digest=entry.updated_at,
                entity_type=entry.type,
            ),
        )
        return entry_node, children
