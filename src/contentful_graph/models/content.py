"""Source-side models: what a sync snapshot is made of."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FieldKind(Enum):
    """How a content-type field is materialized on the entry node."""

    TEXT = "Text"
    RICH_TEXT = "RichText"
    OBJECT = "Object"
    LOCATION = "Location"
    LINK = "Link"
    LINK_ARRAY = "LinkArray"
    SCALAR = "Scalar"


@dataclass(frozen=True)
class Locale:
    """A locale of the space. Each locale falls back to at most one other."""

    code: str
    fallback_code: str | None = None
    is_default: bool = False


@dataclass(frozen=True)
class ContentTypeField:
    """A single field declared by a content type."""

    id: str
    type: str
    localized: bool = False
    link_type: str | None = None
    items_type: str | None = None

    @property
    def kind(self) -> FieldKind:
        if self.type == "Array":
            return FieldKind.LINK_ARRAY if self.items_type == "Link" else FieldKind.SCALAR
        try:
            return FieldKind(self.type)
        except ValueError:
            return FieldKind.SCALAR


@dataclass(frozen=True)
class ContentTypeSchema:
    """A content type and its declared fields."""

    id: str
    name: str
    display_field: str | None
    description: str
    updated_at: str
    fields: tuple[ContentTypeField, ...] = ()

    def get_field(self, field_id: str) -> ContentTypeField:
        """Return the declared field, raising if the schema does not know it."""
        for candidate in self.fields:
            if candidate.id == field_id:
                return candidate
        msg = f"Field {field_id!r} is not declared by content type {self.id!r}"
        raise ValueError(msg)


@dataclass(frozen=True)
class EntityRecord:
    """An entry or asset record as delivered by the sync API.

    ``fields`` keeps the raw shape: field id -> locale code -> value.
    """

    id: str
    type: str
    created_at: str
    updated_at: str
    fields: dict[str, dict[str, Any]] = field(default_factory=dict)
    revision: int | None = None
    content_type_id: str | None = None
    tag_ids: tuple[str, ...] = ()

    @property
    def is_deleted(self) -> bool:
        return self.type.startswith("Deleted")


@dataclass(frozen=True)
class Tag:
    """A tag of the space."""

    id: str
    name: str
    updated_at: str


@dataclass(frozen=True)
class SyncSnapshot:
    """Everything one sync pass hands to the normalizer."""

    space_id: str
    locales: tuple[Locale, ...]
    content_types: tuple[ContentTypeSchema, ...]
    entries: tuple[EntityRecord, ...] = ()
    assets: tuple[EntityRecord, ...] = ()
    deleted_entries: tuple[EntityRecord, ...] = ()
    deleted_assets: tuple[EntityRecord, ...] = ()
    tags: tuple[Tag, ...] = ()

    @property
    def default_locale(self) -> str:
        for locale in self.locales:
            if locale.is_default:
                return locale.code
        msg = f"Space {self.space_id!r} has no default locale"
        raise ValueError(msg)
