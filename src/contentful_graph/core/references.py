"""Reference indexes built once per sync pass, before any node is created."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from loguru import logger

from contentful_graph.core.identity import SEPARATOR, entity_key, is_link, link_key
from contentful_graph.models.content import ContentTypeSchema, EntityRecord
from contentful_graph.models.node import ForeignReference, Node

NODE_SUFFIX = f"{SEPARATOR}NODE"


@dataclass(frozen=True)
class ReferenceIndex:
    """Which entities may be linked to, and who links to whom."""

    resolvable: frozenset[str]
    foreign_references: dict[str, tuple[ForeignReference, ...]] = field(default_factory=dict)

    def is_resolvable(self, key: str) -> bool:
        return key in self.resolvable

    def references_to(self, key: str) -> tuple[ForeignReference, ...]:
        return self.foreign_references.get(key, ())


def content_type_label(content_type: ContentTypeSchema, *, use_name_for_id: bool) -> str:
    """Identifier of a content type: its human name, or its raw id.

    The raw id is usually a natural-language constant, but may be a
    generated uuid, hence the option.
    """
    return content_type.name if use_name_for_id else content_type.id


def build_entry_list(
    content_types: Sequence[ContentTypeSchema],
    entries: Iterable[EntityRecord],
) -> list[list[EntityRecord]]:
    """Bucket entries by content type, one bucket per schema, in schema order.

    Entries whose content type has no schema are dropped.
    """
    buckets: dict[str, list[EntityRecord]] = {ct.id: [] for ct in content_types}
    dropped = 0
    for entry in entries:
        bucket = buckets.get(entry.content_type_id or "")
        if bucket is None:
            dropped += 1
            continue
        bucket.append(entry)
    if dropped:
        logger.debug("Dropped {} entries without a known content type", dropped)
    return [buckets[ct.id] for ct in content_types]


def build_resolvable_set(
    entry_lists: Iterable[Iterable[EntityRecord]],
    existing_nodes: Iterable[Node] = (),
    assets: Iterable[EntityRecord] = (),
) -> frozenset[str]:
    """Collect the keys of every entity a link may resolve to.

    Only root level entities (entries and assets) are included. Derived
    nodes such as text or JSON children get recreated when needed.
    """
    resolvable: set[str] = set()
    for node in existing_nodes:
        foreign_id = node.fields.get("contentful_id")
        if foreign_id and node.internal.entity_type:
            resolvable.add(entity_key(foreign_id, node.internal.entity_type))

    for entries in entry_lists:
        for entry in entries:
            resolvable.add(entity_key(entry.id, entry.type))

    for asset in assets:
        resolvable.add(entity_key(asset.id, asset.type))

    return frozenset(resolvable)


def build_foreign_reference_map(
    content_types: Sequence[ContentTypeSchema],
    entry_lists: Sequence[Sequence[EntityRecord]],
    resolvable: frozenset[str],
    *,
    default_locale: str,
    space_id: str,
    use_name_for_id: bool,
) -> dict[str, tuple[ForeignReference, ...]]:
    """Build the reverse index: linked entity key -> entities linking to it.

    Only default-locale values are scanned. Links to entities outside
    ``resolvable`` are skipped so no back reference can dangle.
    """
    reverse: dict[str, list[ForeignReference]] = {}

    def record(key: str, entry: EntityRecord, label: str) -> None:
        if key not in resolvable:
            return
        reverse.setdefault(key, []).append(
            ForeignReference(
                name=f"{label}{NODE_SUFFIX}",
                id=entry.id,
                space_id=space_id,
                type=entry.type,
            )
        )

    for content_type, entries in zip(content_types, entry_lists, strict=True):
        label = content_type_label(content_type, use_name_for_id=use_name_for_id).lower()
        for entry in entries:
            for localized in entry.fields.values():
                if not localized:
                    continue
                value = localized.get(default_locale)
                if isinstance(value, list):
                    # Only arrays of references count, judged by the first element.
                    if value and is_link(value[0]):
                        for item in value:
                            if is_link(item):
                                record(link_key(item), entry, label)
                elif is_link(value):
                    record(link_key(value), entry, label)

    return {key: tuple(refs) for key, refs in reverse.items()}


def build_reference_index(
    content_types: Sequence[ContentTypeSchema],
    entry_lists: Sequence[Sequence[EntityRecord]],
    *,
    existing_nodes: Iterable[Node],
    assets: Iterable[EntityRecord],
    default_locale: str,
    space_id: str,
    use_name_for_id: bool,
) -> ReferenceIndex:
    resolvable = build_resolvable_set(entry_lists, existing_nodes, assets)
    foreign = build_foreign_reference_map(
        content_types,
        entry_lists,
        resolvable,
        default_locale=default_locale,
        space_id=space_id,
        use_name_for_id=use_name_for_id,
    )
    logger.debug(
        "Reference index: {} resolvable entities, {} with incoming links",
        len(resolvable),
        len(foreign),
    )
    return ReferenceIndex(resolvable=resolvable, foreign_references=foreign)
