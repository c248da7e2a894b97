"""Split composite entry fields into child nodes.

Each materializer gets the localized value of one field and returns the
node reference the entry should carry, plus any child nodes that need
(re)creating. Children whose digest is unchanged are not rebuilt, but the
entry still gets its reference to them.
"""

import json
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

from contentful_graph.core.identity import IdMaker, link_key, make_type_name
from contentful_graph.core.normalizer.context import NormalizeContext
from contentful_graph.models.content import FieldKind
from contentful_graph.models.node import Node, NodeInternal

CIRCULAR_MARKER = "[Circular]"


@dataclass(frozen=True)
class ChildScope:
    """The entry whose fields are being materialized."""

    ctx: NormalizeContext
    make_id: IdMaker
    entry_node_id: str
    content_type_label: str
    updated_at: str


@dataclass
class MaterializedField:
    """Result of materializing one field."""

    reference: str | list[str] | None
    child_ids: list[str] = field(default_factory=list)
    nodes: list[Node] = field(default_factory=list)


def safe_serialize(value: Any) -> str:
    """Serialize to JSON, replacing self-references instead of failing."""
    return json.dumps(_strip_cycles(value, frozenset()))


def _strip_cycles(value: Any, ancestors: frozenset[int]) -> Any:
    if not isinstance(value, (dict, list)):
        return value
    if id(value) in ancestors:
        return CIRCULAR_MARKER
    inner = ancestors | {id(value)}
    if isinstance(value, dict):
        return {k: _strip_cycles(v, inner) for k, v in value.items()}
    return [_strip_cycles(v, inner) for v in value]


def iter_links(value: Any, _ancestors: frozenset[int] = frozenset()) -> Iterator[dict[str, Any]]:
    """Yield every ``{sys: {type: "Link"}}`` object nested anywhere in ``value``."""
    if not isinstance(value, (dict, list)) or id(value) in _ancestors:
        return
    inner = _ancestors | {id(value)}
    if isinstance(value, dict):
        sys = value.get("sys")
        if isinstance(sys, dict) and sys.get("type") == "Link" and sys.get("id"):
            yield value
        children = value.values()
    else:
        children = value
    for child in children:
        yield from iter_links(child, inner)


def _json_fields(value: Any) -> dict[str, Any]:
    if isinstance(value, dict):
        return dict(value)
    return {"content": value}


def _text(scope: ChildScope, key: str, value: Any) -> MaterializedField:
    node_id = scope.ctx.create_node_id(f"{scope.entry_node_id}{key}TextNode")
    result = MaterializedField(reference=node_id, child_ids=[node_id])
    if scope.ctx.is_current(node_id, scope.updated_at):
        return result

    text = value if isinstance(value, str) else ""
    result.nodes.append(
        Node(
            id=node_id,
            parent=scope.entry_node_id,
            fields={"raw": text},
            internal=NodeInternal(
                type=make_type_name("NodeTypeText"),
                media_type="text/markdown",
                content=text,
                # The entry's updatedAt also covers its children.
                content_digest=scope.updated_at,
            ),
        )
    )
    return result


def _rich_text(scope: ChildScope, key: str, value: Any) -> MaterializedField:
    if not isinstance(value, dict):
        return MaterializedField(reference=None)

    node_id = scope.ctx.create_node_id(f"{scope.entry_node_id}{key}RichTextNode")
    result = MaterializedField(reference=node_id, child_ids=[node_id])
    raw = safe_serialize(value)
    # Nested changes are invisible to the entry's updatedAt, so hash the payload.
    digest = scope.ctx.create_content_digest(raw)
    if scope.ctx.is_current(node_id, digest):
        return result

    references: list[str] = []
    for link in iter_links(value):
        if not scope.ctx.index.is_resolvable(link_key(link)):
            continue
        ref_id = scope.make_id.for_link(scope.ctx.space_id, link)
        if ref_id not in references:
            references.append(ref_id)

    result.nodes.append(
        Node(
            id=node_id,
            parent=scope.entry_node_id,
            fields={"raw": raw, "references___NODE": references},
            internal=NodeInternal(
                type=make_type_name(f"{scope.content_type_label} {key} RichTextNode"),
                media_type="application/json",
                content=raw,
                content_digest=digest,
            ),
        )
    )
    return result


def _json_node(scope: ChildScope, key: str, node_id: str, value: Any) -> Node | None:
    if scope.ctx.is_current(node_id, scope.updated_at):
        return None
    return Node(
        id=node_id,
        parent=scope.entry_node_id,
        fields=_json_fields(value),
        internal=NodeInternal(
            type=make_type_name(f"{scope.content_type_label} {key} JsonNode"),
            media_type="application/json",
            content=safe_serialize(value),
            content_digest=scope.updated_at,
        ),
    )


def _json(scope: ChildScope, key: str, value: Any) -> MaterializedField:
    if value is None:
        return MaterializedField(reference=None)

    if isinstance(value, list):
        ids = [
            scope.ctx.create_node_id(f"{scope.entry_node_id}{key}JSONNode{i}")
            for i in range(len(value))
        ]
        result = MaterializedField(reference=ids, child_ids=list(ids))
        for node_id, item in zip(ids, value, strict=True):
            node = _json_node(scope, key, node_id, item)
            if node is not None:
                result.nodes.append(node)
        return result

    node_id = scope.ctx.create_node_id(f"{scope.entry_node_id}{key}JSONNode")
    result = MaterializedField(reference=node_id, child_ids=[node_id])
    node = _json_node(scope, key, node_id, value)
    if node is not None:
        result.nodes.append(node)
    return result


def _location(scope: ChildScope, key: str, value: Any) -> MaterializedField:
    if not isinstance(value, dict):
        return MaterializedField(reference=None)

    node_id = scope.ctx.create_node_id(f"{scope.entry_node_id}{key}LocationNode")
    result = MaterializedField(reference=node_id, child_ids=[node_id])
    if scope.ctx.is_current(node_id, scope.updated_at):
        return result

    result.nodes.append(
        Node(
            id=node_id,
            parent=scope.entry_node_id,
            fields={"lat": value.get("lat"), "lon": value.get("lon")},
            internal=NodeInternal(
                type=make_type_name("NodeTypeLocation"),
                content_digest=scope.updated_at,
            ),
        )
    )
    return result


Materializer = Callable[[ChildScope, str, Any], MaterializedField]

MATERIALIZERS: dict[FieldKind, Materializer] = {
    FieldKind.TEXT: _text,
    FieldKind.RICH_TEXT: _rich_text,
    FieldKind.OBJECT: _json,
    FieldKind.LOCATION: _location,
}


def materialize_field(
    scope: ChildScope, kind: FieldKind, key: str, value: Any
) -> MaterializedField | None:
    """Materialize ``value`` by its declared kind. None for plain scalar kinds."""
    materializer = MATERIALIZERS.get(kind)
    if materializer is None:
        return None
    return materializer(scope, key, value)
