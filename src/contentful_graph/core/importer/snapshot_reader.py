"""Parse raw sync snapshots into domain models."""

import json
from pathlib import Path
from typing import Any

from contentful_graph.models.content import (
    ContentTypeField,
    ContentTypeSchema,
    EntityRecord,
    Locale,
    SyncSnapshot,
    Tag,
)

_REQUIRED_KEYS = {"space", "locales", "contentTypes"}
_OPTIONAL_KEYS = {"entries", "assets", "deletedEntries", "deletedAssets", "tags"}


def parse_locale(raw: dict[str, Any]) -> Locale:
    return Locale(
        code=raw["code"],
        fallback_code=raw.get("fallbackCode"),
        is_default=bool(raw.get("default", False)),
    )


def parse_content_type(raw: dict[str, Any]) -> ContentTypeSchema:
    sys = raw["sys"]
    fields = tuple(
        ContentTypeField(
            id=f["id"],
            type=f["type"],
            localized=bool(f.get("localized", False)),
            link_type=f.get("linkType"),
            items_type=(f.get("items") or {}).get("type"),
        )
        for f in raw.get("fields", [])
    )
    return ContentTypeSchema(
        id=sys["id"],
        name=raw.get("name", sys["id"]),
        display_field=raw.get("displayField"),
        description=raw.get("description", ""),
        updated_at=sys["updatedAt"],
        fields=fields,
    )


def parse_entity(raw: dict[str, Any]) -> EntityRecord:
    """Parse an entry or asset record.

    Raises:
        ValueError: if the record has no ``sys.id`` or ``sys.type``.
    """
    sys = raw.get("sys") or {}
    if not sys.get("id") or not sys.get("type"):
        msg = f"Record without sys.id/sys.type: {sys!r}"
        raise ValueError(msg)

    content_type = sys.get("contentType")
    tags = (raw.get("metadata") or {}).get("tags") or []
    return EntityRecord(
        id=sys["id"],
        type=sys["type"],
        created_at=sys.get("createdAt", ""),
        updated_at=sys.get("updatedAt", ""),
        revision=sys.get("revision"),
        content_type_id=content_type["sys"]["id"] if content_type else None,
        fields=raw.get("fields") or {},
        tag_ids=tuple(t["sys"]["id"] for t in tags),
    )


def parse_tag(raw: dict[str, Any]) -> Tag:
    sys = raw["sys"]
    return Tag(id=sys["id"], name=raw.get("name", sys["id"]), updated_at=sys.get("updatedAt", ""))


def parse_snapshot(data: dict[str, Any]) -> SyncSnapshot:
    """Parse a raw snapshot dict into a SyncSnapshot.

    Entries and assets with a ``Deleted`` sys type are moved to the
    deletion lists, whatever list they came in.

    Raises:
        ValueError: on missing or unknown top-level keys, or when the
            snapshot does not have exactly one default locale.
    """
    keys = set(data)
    if not _REQUIRED_KEYS <= keys or not keys <= _REQUIRED_KEYS | _OPTIONAL_KEYS:
        msg = f"bad snapshot keys: {sorted(keys)!r}"
        raise ValueError(msg)

    locales = tuple(parse_locale(x) for x in data["locales"])
    defaults = [x.code for x in locales if x.is_default]
    if len(defaults) != 1:
        msg = f"expected exactly one default locale, found {defaults!r}"
        raise ValueError(msg)

    entries: list[EntityRecord] = []
    assets: list[EntityRecord] = []
    deleted_entries = [parse_entity(x) for x in data.get("deletedEntries", [])]
    deleted_assets = [parse_entity(x) for x in data.get("deletedAssets", [])]
    for raw in data.get("entries", []):
        record = parse_entity(raw)
        (deleted_entries if record.is_deleted else entries).append(record)
    for raw in data.get("assets", []):
        record = parse_entity(raw)
        (deleted_assets if record.is_deleted else assets).append(record)

    return SyncSnapshot(
        space_id=data["space"]["sys"]["id"],
        locales=locales,
        content_types=tuple(parse_content_type(x) for x in data["contentTypes"]),
        entries=tuple(entries),
        assets=tuple(assets),
        deleted_entries=tuple(deleted_entries),
        deleted_assets=tuple(deleted_assets),
        tags=tuple(parse_tag(x) for x in data.get("tags", [])),
    )


def load_snapshot(path: Path) -> SyncSnapshot:
    """Read and parse a snapshot JSON file."""
    if not path.exists():
        msg = f"Snapshot file not found: {path}"
        raise FileNotFoundError(msg)
    return parse_snapshot(json.loads(path.read_text(encoding="utf-8")))
