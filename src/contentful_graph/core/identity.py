"""Deterministic node ids, reference keys and type names."""

import hashlib
import json
import re
import uuid
from collections.abc import Callable
from typing import Any

from contentful_graph.config import TYPE_PREFIX

SEPARATOR = "___"

# Namespace for node ids. Changing it changes every node id.
_NODE_ID_NAMESPACE = uuid.UUID("6a2c4f8e-3b7d-5e91-a0c4-8d2f1b6e9c37")

_WORD_RE = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+|[0-9]+")

NodeIdFactory = Callable[[str], str]
DigestFactory = Callable[[Any], str]


def create_node_id(raw_key: str) -> str:
    """Turn a raw key into an opaque node id. Same key, same id."""
    return str(uuid.uuid5(_NODE_ID_NAMESPACE, raw_key))


def create_content_digest(payload: Any) -> str:
    """Hash a payload. Strings are hashed as-is, anything else as sorted JSON."""
    if not isinstance(payload, str):
        payload = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.md5(payload.encode("utf-8")).hexdigest()


def normalize_type(type_name: str) -> str:
    """Strip the ``Deleted`` prefix sync uses for removed entities."""
    return type_name.removeprefix("Deleted")


def make_id(
    space_id: str,
    entity_id: str,
    current_locale: str,
    default_locale: str,
    type_name: str,
) -> str:
    """Build the raw key for an entity in a locale.

    The default locale gets no suffix, so its ids stay stable when locales
    are added.
    """
    parts = [space_id, entity_id, normalize_type(type_name)]
    if current_locale != default_locale:
        parts.append(current_locale)
    return SEPARATOR.join(parts)


def entity_key(entity_id: str, type_name: str) -> str:
    """Key used for resolvable-set membership and the reference map."""
    return f"{entity_id}{SEPARATOR}{type_name}"


def link_key(link: dict[str, Any]) -> str:
    """Entity key of a ``{sys: {id, type, linkType?}}`` link object."""
    sys = link["sys"]
    return entity_key(sys["id"], sys.get("linkType") or sys["type"])


def is_link(value: Any) -> bool:
    """Check if ``value`` looks like a reference: ``{sys: {type, id}}``."""
    if not isinstance(value, dict):
        return False
    sys = value.get("sys")
    return isinstance(sys, dict) and bool(sys.get("type")) and bool(sys.get("id"))


def upper_camel(text: str) -> str:
    """``"blog post"`` -> ``"BlogPost"``, ``"ContentType"`` -> ``"ContentType"``."""
    return "".join(word[:1].upper() + word[1:].lower() for word in _WORD_RE.findall(text))


def make_type_name(name: str) -> str:
    return TYPE_PREFIX + upper_camel(name)


class IdMaker:
    """Node id factory bound to one locale of a sync pass."""

    def __init__(
        self,
        *,
        current_locale: str,
        default_locale: str,
        create_node_id: NodeIdFactory = create_node_id,
    ) -> None:
        self.current_locale = current_locale
        self.default_locale = default_locale
        self._create_node_id = create_node_id

    def __call__(self, space_id: str, entity_id: str, type_name: str) -> str:
        return self._create_node_id(
            make_id(space_id, entity_id, self.current_locale, self.default_locale, type_name)
        )

    def for_link(self, space_id: str, link: dict[str, Any]) -> str:
        sys = link["sys"]
        return self(space_id, sys["id"], sys.get("linkType") or sys["type"])
