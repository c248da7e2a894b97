"""Output models: the normalized nodes handed to the node store."""

from dataclasses import dataclass, field
from typing import Any

# Fields carried by every node beside its domain fields.
_CORE_KEYS = frozenset({"id", "parent", "children", "internal"})


@dataclass(frozen=True)
class NodeInternal:
    """Bookkeeping attached to every node."""

    type: str
    content_digest: str
    media_type: str | None = None
    content: str | None = None
    # "Entry" or "Asset" on the nodes links resolve to, None on derived nodes.
    entity_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        rv: dict[str, Any] = {"type": self.type, "contentDigest": self.content_digest}
        if self.entity_type is not None:
            rv["entityType"] = self.entity_type
        if self.media_type is not None:
            rv["mediaType"] = self.media_type
        if self.content is not None:
            rv["content"] = self.content
        return rv


@dataclass(frozen=True)
class Node:
    """A single normalized node.

    Domain fields live in ``fields`` and are spread beside the core keys
    by ``to_dict``.
    """

    id: str
    internal: NodeInternal
    parent: str | None = None
    children: tuple[str, ...] = ()
    fields: dict[str, Any] = field(default_factory=dict)

    @property
    def content_digest(self) -> str:
        return self.internal.content_digest

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.fields,
            "id": self.id,
            "parent": self.parent,
            "children": list(self.children),
            "internal": self.internal.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Node":
        internal = data["internal"]
        return cls(
            id=data["id"],
            parent=data.get("parent"),
            children=tuple(data.get("children", ())),
            internal=NodeInternal(
                type=internal["type"],
                content_digest=internal["contentDigest"],
                media_type=internal.get("mediaType"),
                content=internal.get("content"),
                entity_type=internal.get("entityType"),
            ),
            fields={k: v for k, v in data.items() if k not in _CORE_KEYS},
        )


@dataclass(frozen=True)
class ForeignReference:
    """One incoming link, recorded on the entity being linked to."""

    name: str
    id: str
    space_id: str
    type: str
